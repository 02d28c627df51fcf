"""
TaskHub Backend — Task Service
================================

What:  Storage operations for tasks. One statement per call, committed before
       returning so the handler can schedule the audit entry afterwards.
Who:   Route handlers in routes/tasks.py and the ownership guard.

Concurrency note:
    The guard loads the task and the handler then mutates it, without a
    transaction spanning both. If another request deletes the task in
    between, the UPDATE/DELETE matches zero rows and the caller gets 404.
"""

import logging
import uuid
from typing import List, Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from taskhub.exceptions import DatabaseError, NotFoundError
from taskhub.models.task import Task
from taskhub.schemas.task import TaskCreate, TaskUpdate
from taskhub.services.access_control import Identity

logger = logging.getLogger(__name__)


class TaskService:

    async def create_task(self, db: AsyncSession, identity: Identity, payload: TaskCreate) -> Task:
        """Inserts a task owned by the caller."""
        task = Task(
            title=payload.title,
            description=payload.description,
            owner_id=identity.user_id,
        )
        db.add(task)
        try:
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error("Database error creating task: %s", e, exc_info=True)
            raise DatabaseError(context={"operation": "create_task"})
        logger.info("Task %s created by %s", task.id, identity.user_id)
        return task

    async def list_tasks(self, db: AsyncSession, identity: Identity) -> List[Task]:
        """Admins see every task; everyone else sees their own. Insertion order."""
        query = select(Task).order_by(Task.created_at, Task.id)
        if not identity.is_admin:
            query = query.where(Task.owner_id == identity.user_id)
        result = await db.execute(query)
        return list(result.scalars().all())

    async def get_task(self, db: AsyncSession, task_id: uuid.UUID) -> Optional[Task]:
        return await db.get(Task, task_id)

    async def update_task(self, db: AsyncSession, task: Task, payload: TaskUpdate) -> Task:
        """
        Applies title/description changes. Fields not sent are left alone;
        owner_id is not updatable.
        """
        changes = payload.model_dump(exclude_unset=True)
        for field, value in changes.items():
            setattr(task, field, value)
        try:
            await db.commit()
        except StaleDataError:
            await db.rollback()
            raise NotFoundError(resource="Task", resource_id=str(task.id))
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error("Database error updating task %s: %s", task.id, e, exc_info=True)
            raise DatabaseError(context={"operation": "update_task", "task_id": str(task.id)})
        return task

    async def delete_task(self, db: AsyncSession, task: Task) -> None:
        try:
            result = await db.execute(delete(Task).where(Task.id == task.id))
            if result.rowcount == 0:
                await db.rollback()
                raise NotFoundError(resource="Task", resource_id=str(task.id))
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error("Database error deleting task %s: %s", task.id, e, exc_info=True)
            raise DatabaseError(context={"operation": "delete_task", "task_id": str(task.id)})
        logger.info("Task %s deleted", task.id)


task_service = TaskService()

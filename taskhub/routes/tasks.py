"""
TaskHub Backend — Task Route Handlers
=======================================

What:  CRUD endpoints for tasks, mounted at TASKS_PREFIX (default /tasks).
How:   Each handler receives the caller's Identity and, for /{id} routes, the
       task already loaded and ownership-checked by get_owned_task. The
       handler performs one storage operation, schedules one audit entry
       (collection "tasks") and returns the envelope.

Endpoints:
    POST   /tasks        create (owner = caller)                 → CREATE_TASK
    GET    /tasks        list own tasks, or all tasks for admins
    GET    /tasks/{id}   read one (owner or admin)
    PUT    /tasks/{id}   update title/description (owner or admin) → UPDATE_TASK
    DELETE /tasks/{id}   delete (owner or admin)                  → DELETE_TASK
"""

import logging

from fastapi import APIRouter, BackgroundTasks, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from taskhub.config import settings
from taskhub.database import get_db_session
from taskhub.dependencies import (
    RequestData,
    client_ip,
    get_audit_logger,
    get_current_identity,
    get_owned_task,
    require_roles,
    validate_request,
)
from taskhub.models.audit_log import AuditAction
from taskhub.models.task import Task
from taskhub.models.user import Role
from taskhub.schemas.common import ErrorResponse, MessageResponse, json_request_body
from taskhub.schemas.task import (
    TaskCreate,
    TaskEnvelope,
    TaskListEnvelope,
    TaskResponse,
    TaskUpdate,
)
from taskhub.services.access_control import Identity
from taskhub.services.audit_service import AuditLogger
from taskhub.services.task_service import task_service
from taskhub.validation import CREATE_TASK_RULES, UPDATE_TASK_RULES

logger = logging.getLogger(__name__)

router = APIRouter(prefix=settings.tasks_prefix, tags=["Tasks"])

AUDIT_COLLECTION = "tasks"

_AUTH_ERRORS = {
    401: {"description": "Missing, invalid or expired token", "model": ErrorResponse},
    403: {"description": "Insufficient role", "model": ErrorResponse},
}
_ITEM_ERRORS = {
    400: {"description": "Invalid task ID", "model": ErrorResponse},
    401: {"description": "Missing, invalid or expired token", "model": ErrorResponse},
    403: {"description": "Caller is neither the owner nor an admin", "model": ErrorResponse},
    404: {"description": "Task not found", "model": ErrorResponse},
}


@router.post(
    "",
    status_code=201,
    response_model=TaskEnvelope,
    responses={400: {"description": "Validation failed", "model": ErrorResponse}, **_AUTH_ERRORS},
    summary="Create a task owned by the caller",
    openapi_extra=json_request_body(TaskCreate),
)
async def create_task(
    request: Request,
    background_tasks: BackgroundTasks,
    identity: Identity = Depends(require_roles(Role.USER, Role.ADMIN)),
    data: RequestData = Depends(validate_request(CREATE_TASK_RULES)),
    db: AsyncSession = Depends(get_db_session),
    audit: AuditLogger = Depends(get_audit_logger),
) -> TaskEnvelope:
    task = await task_service.create_task(db, identity, TaskCreate.model_validate(data.body))
    audit.schedule(
        background_tasks,
        AuditAction.CREATE_TASK,
        AUDIT_COLLECTION,
        user_id=identity.user_id,
        document_id=task.id,
        ip_address=client_ip(request),
    )
    return TaskEnvelope(data=TaskResponse.from_model(task))


@router.get(
    "",
    response_model=TaskListEnvelope,
    responses=_AUTH_ERRORS,
    summary="List tasks",
    description="Returns the caller's tasks, or every task when the caller is an admin.",
)
async def list_tasks(
    identity: Identity = Depends(require_roles(Role.USER, Role.ADMIN)),
    db: AsyncSession = Depends(get_db_session),
) -> TaskListEnvelope:
    tasks = await task_service.list_tasks(db, identity)
    return TaskListEnvelope(count=len(tasks), data=[TaskResponse.from_model(t) for t in tasks])


@router.get(
    "/{id}",
    response_model=TaskEnvelope,
    responses=_ITEM_ERRORS,
    summary="Get a task by id",
)
async def get_task(task: Task = Depends(get_owned_task)) -> TaskEnvelope:
    return TaskEnvelope(data=TaskResponse.from_model(task))


@router.put(
    "/{id}",
    response_model=TaskEnvelope,
    responses=_ITEM_ERRORS,
    summary="Update a task's title and/or description",
    description="Only `title` and `description` are applied; other fields, including `owner`, are ignored.",
    openapi_extra=json_request_body(TaskUpdate),
)
async def update_task(
    request: Request,
    background_tasks: BackgroundTasks,
    identity: Identity = Depends(get_current_identity),
    data: RequestData = Depends(validate_request(UPDATE_TASK_RULES)),
    task: Task = Depends(get_owned_task),
    db: AsyncSession = Depends(get_db_session),
    audit: AuditLogger = Depends(get_audit_logger),
) -> TaskEnvelope:
    task = await task_service.update_task(db, task, TaskUpdate.model_validate(data.body))
    audit.schedule(
        background_tasks,
        AuditAction.UPDATE_TASK,
        AUDIT_COLLECTION,
        user_id=identity.user_id,
        document_id=task.id,
        ip_address=client_ip(request),
    )
    return TaskEnvelope(data=TaskResponse.from_model(task))


@router.delete(
    "/{id}",
    response_model=MessageResponse,
    responses=_ITEM_ERRORS,
    summary="Delete a task",
)
async def delete_task(
    request: Request,
    background_tasks: BackgroundTasks,
    identity: Identity = Depends(get_current_identity),
    task: Task = Depends(get_owned_task),
    db: AsyncSession = Depends(get_db_session),
    audit: AuditLogger = Depends(get_audit_logger),
) -> MessageResponse:
    task_id = task.id
    await task_service.delete_task(db, task)
    audit.schedule(
        background_tasks,
        AuditAction.DELETE_TASK,
        AUDIT_COLLECTION,
        user_id=identity.user_id,
        document_id=task_id,
        ip_address=client_ip(request),
    )
    return MessageResponse(message="Task deleted successfully")

"""
TaskHub Backend — Audit Logger
================================

What:  Appends AuditLogEntry rows for security-relevant actions.
How:   Two explicit steps, always in this order:

           1. the primary operation commits (service layer)
           2. the handler schedules the audit write as a background task

       The background task runs after the response has been produced, in its
       own database session. Whatever happens inside it is logged and
       swallowed: the caller's response has already been decided and must not
       depend on the audit outcome.

Flow (POST /tasks):
    ┌──────────┐    ┌──────────────┐    ┌──────────┐    ┌──────────────┐
    │ Validate │───▶│ Insert+commit│───▶│ Response │───▶│ Audit insert │
    └──────────┘    └──────────────┘    └──────────┘    └──────────────┘
                                                         (errors logged only)
"""

import logging
import uuid
from typing import Optional

from fastapi import BackgroundTasks
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from taskhub.models.audit_log import AuditAction, AuditLogEntry

logger = logging.getLogger(__name__)


class AuditLogger:
    """Best-effort writer for the append-only audit trail."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def record(
        self,
        action: AuditAction,
        collection_name: str,
        user_id: Optional[uuid.UUID] = None,
        document_id: Optional[uuid.UUID] = None,
        ip_address: Optional[str] = None,
    ) -> None:
        """Writes one entry. Never raises."""
        try:
            async with self._session_factory() as session:
                session.add(
                    AuditLogEntry(
                        user_id=user_id,
                        action=action.value,
                        collection_name=collection_name,
                        document_id=document_id,
                        ip_address=ip_address,
                    )
                )
                await session.commit()
        except Exception as e:
            logger.error(
                "Audit log write failed (%s on %s/%s): %s",
                action.value,
                collection_name,
                document_id,
                e,
                exc_info=True,
            )

    def schedule(
        self,
        background_tasks: BackgroundTasks,
        action: AuditAction,
        collection_name: str,
        user_id: Optional[uuid.UUID] = None,
        document_id: Optional[uuid.UUID] = None,
        ip_address: Optional[str] = None,
    ) -> None:
        """Queues `record` to run once the response has been sent."""
        background_tasks.add_task(
            self.record,
            action=action,
            collection_name=collection_name,
            user_id=user_id,
            document_id=document_id,
            ip_address=ip_address,
        )

"""
TaskHub Backend — Audit Log SQLAlchemy Model
==============================================

What:  Append-only record of security-relevant actions.
Who:   Written by AuditLogger only; never updated or deleted.

Table notes:
    - No foreign keys: an entry must outlive the task it describes, and a
      failed login for an unknown email has no user at all
    - action is a free-form tag; the known values live in AuditAction
"""

import enum
import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Index, String, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column

from taskhub.database import Base, utcnow


class AuditAction(str, enum.Enum):
    USER_REGISTER = "USER_REGISTER"
    USER_LOGIN = "USER_LOGIN"
    LOGIN_FAILED = "LOGIN_FAILED"
    CREATE_TASK = "CREATE_TASK"
    UPDATE_TASK = "UPDATE_TASK"
    DELETE_TASK = "DELETE_TASK"


class AuditLogEntry(Base):
    __tablename__ = "audit_logs"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    user_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid,
        nullable=True,
        comment="Actor; NULL for a failed login with an unknown email",
    )

    action: Mapped[str] = mapped_column(String(50), nullable=False)

    collection_name: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        comment="Table the action targeted: users | tasks",
    )

    document_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid, nullable=True)

    ip_address: Mapped[Optional[str]] = mapped_column(String(45), nullable=True)

    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    __table_args__ = (
        Index("idx_audit_logs_user_id", "user_id"),
        Index("idx_audit_logs_timestamp", "timestamp"),
    )

    def __repr__(self) -> str:
        return (
            f"<AuditLogEntry(action='{self.action}', user_id={self.user_id}, "
            f"document_id={self.document_id})>"
        )

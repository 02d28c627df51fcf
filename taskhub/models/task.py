"""
TaskHub Backend — Task SQLAlchemy Model
=========================================

What:  ORM model for the `tasks` table.
Who:   TaskService, the ownership guard and Alembic.

Lifecycle:
    1. Created by an authenticated user; owner_id is the caller's id
    2. title/description updated by the owner or an admin
    3. Deleted by the owner or an admin
    owner_id never changes after creation.

Query Patterns:
    - Own tasks: SELECT ... WHERE owner_id = :uid ORDER BY created_at
      → idx_tasks_owner_id
    - Single task: SELECT ... WHERE id = :uuid → primary key
"""

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Index, String, Text, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column

from taskhub.database import Base, utcnow


class Task(Base):
    """A unit of work owned by exactly one user."""

    __tablename__ = "tasks"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    title: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        comment="3 to 100 characters, enforced by the validation layer",
    )

    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True, default=None)

    owner_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        comment="Creator of the task; immutable",
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    __table_args__ = (
        Index("idx_tasks_owner_id", "owner_id"),
    )

    def __repr__(self) -> str:
        return f"<Task(id={self.id}, owner_id={self.owner_id}, title='{self.title}')>"

"""
TaskHub Backend — User SQLAlchemy Model
=========================================

What:  ORM model for the `users` table.
Who:   AuthService (registration, login, refresh) and Alembic.

Table notes:
    - email is unique and stored lower-cased; the unique index is the
      final guard against two concurrent registrations with one address
    - password_hash holds a bcrypt hash and is never serialized
    - role is 'user' by default; admins are provisioned in the database
"""

import enum
import uuid
from datetime import datetime

from sqlalchemy import DateTime, String, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column

from taskhub.database import Base, utcnow


class Role(str, enum.Enum):
    """Roles understood by the authorization layer."""

    USER = "user"
    ADMIN = "admin"


class User(Base):
    """A registered account. Never deleted through the API."""

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    name: Mapped[str] = mapped_column(String(100), nullable=False)

    email: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        unique=True,
        index=True,
        comment="Lower-cased login address",
    )

    password_hash: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="bcrypt hash; never returned by the API",
    )

    role: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=Role.USER.value,
        server_default=text("'user'"),
        comment="user | admin",
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

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}', role='{self.role}')>"

"""
TaskHub Backend — Task Request/Response Schemas
=================================================

What:  Pydantic models for the /tasks API contract.
How:   Request bodies are checked first by the declarative rules in
       taskhub.validation (which report every violation as a 400); these
       models then give the handler typed values and feed the OpenAPI docs.
       Length limits live only in those rules; the models declare types, so a
       body that passed the rules always validates here.
       Unknown body fields are ignored, so `owner` can never be set or changed
       through a request.
"""

import uuid
from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from taskhub.models.task import Task


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class TaskCreate(BaseModel):
    title: str = Field(examples=["Buy milk"], description="3 to 100 characters")
    description: Optional[str] = Field(default=None, examples=["Two litres, semi-skimmed"])

    model_config = {"extra": "ignore"}


class TaskUpdate(BaseModel):
    """Partial update; only the fields present in the body are applied."""

    title: Optional[str] = Field(default=None, description="3 to 100 characters")
    description: Optional[str] = None

    model_config = {"extra": "ignore"}


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class TaskResponse(BaseModel):
    id: uuid.UUID = Field(description="Task identifier")
    title: str
    description: Optional[str] = None
    owner: uuid.UUID = Field(description="Id of the user who created the task")
    created_at: datetime
    updated_at: datetime

    @field_validator("created_at", "updated_at")
    @classmethod
    def as_utc(cls, value: datetime) -> datetime:
        """SQLite hands back naive values; every timestamp is stored in UTC."""
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    @classmethod
    def from_model(cls, task: Task) -> "TaskResponse":
        return cls(
            id=task.id,
            title=task.title,
            description=task.description,
            owner=task.owner_id,
            created_at=task.created_at,
            updated_at=task.updated_at,
        )


class TaskEnvelope(BaseModel):
    success: bool = True
    data: TaskResponse


class TaskListEnvelope(BaseModel):
    success: bool = True
    count: int
    data: List[TaskResponse]

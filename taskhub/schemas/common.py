"""
TaskHub Backend — Shared Response Schemas
===========================================

Envelopes used across routers, plus the error shape documented in OpenAPI.
"""

from typing import Any, Dict, List, Optional, Type

from pydantic import BaseModel, Field


class MessageResponse(BaseModel):
    success: bool = True
    message: str


class ErrorResponse(BaseModel):
    """
    Error envelope returned for every failure.

    Example:
        {
            "success": false,
            "message": "Validation failed",
            "errors": [{"field": "title", "location": "body",
                        "message": "Title is required"}]
        }
    """
    success: bool = False
    message: str = Field(description="Human-readable error description")
    errors: Optional[List[Dict[str, str]]] = Field(
        default=None, description="Every violated validation rule (400 only)"
    )
    stack: Optional[str] = Field(default=None, description="Traceback (development only)")


class HealthResponse(BaseModel):
    status: str = Field(description="OK while the process is serving requests")
    message: str
    rate_limiter: str = Field(
        alias="rateLimiter",
        description="Backing store of the rate limiter: Memory or Redis",
    )

    model_config = {"populate_by_name": True}


class WelcomeResponse(BaseModel):
    message: str


def json_request_body(model: Type[BaseModel]) -> Dict[str, Any]:
    """
    `openapi_extra` entry documenting a JSON body for handlers that read and
    validate the body themselves instead of declaring a body parameter.
    """
    return {
        "requestBody": {
            "required": True,
            "content": {"application/json": {"schema": model.model_json_schema(by_alias=True)}},
        }
    }

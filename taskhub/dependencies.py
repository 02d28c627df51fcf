"""
TaskHub Backend — Request Dependencies
========================================

What:  The FastAPI dependencies that make up each route's guard chain.
How:   Every guard is a dependency whose return value is passed to the
       handler as a parameter. Nothing is stashed on request.state.

Guard chain (declared in this order on the handler):
    ┌──────────────┐   ┌────────────┐   ┌────────────┐   ┌─────────────┐
    │ Authenticate │──▶│ Check role │──▶│  Validate  │──▶│ Load + own  │
    │ → Identity   │   │            │   │ → body/id  │   │ → Task      │
    └──────────────┘   └────────────┘   └────────────┘   └─────────────┘
         401               403              400             404 / 403

FastAPI resolves a handler's dependencies in parameter order, so a handler
that lists identity, then validated input, then the owned task gets exactly
this sequence.
"""

import json
import logging
import uuid
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Optional, Sequence

from fastapi import Depends, Path, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from taskhub.config import settings
from taskhub.database import get_db_session
from taskhub.exceptions import AuthenticationError, NotFoundError, ValidationError
from taskhub.models.task import Task
from taskhub.models.user import Role
from taskhub.services.access_control import Identity, check_ownership, check_role
from taskhub.services.audit_service import AuditLogger
from taskhub.services.task_service import task_service
from taskhub.services.token_service import token_service
from taskhub.validation import TASK_ID_RULES, FieldRule, enforce

logger = logging.getLogger(__name__)

# auto_error=False: a missing header reaches get_current_identity, which
# answers with the API's own 401 envelope instead of FastAPI's 403.
bearer_scheme = HTTPBearer(auto_error=False, bearerFormat="JWT")


# ── Authentication & Authorization ────────────────────────────────────────

async def get_current_identity(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Identity:
    """Verifies the bearer access token and returns who is calling."""
    if credentials is None or not credentials.credentials:
        raise AuthenticationError(message="Not authorized, no token")
    return token_service.verify_access_token(credentials.credentials)


def require_roles(*roles: Role) -> Callable[..., Awaitable[Identity]]:
    """
    Builds a dependency that authenticates the caller and checks the role
    against `roles`. Returns the Identity so handlers can use it directly:

        identity: Identity = Depends(require_roles(Role.ADMIN))
    """
    allowed = frozenset(roles)

    async def dependency(identity: Identity = Depends(get_current_identity)) -> Identity:
        check_role(identity, allowed)
        return identity

    return dependency


# ── Validation ────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class RequestData:
    """The request inputs that passed a rule set."""

    body: Dict[str, Any] = field(default_factory=dict)
    params: Dict[str, Any] = field(default_factory=dict)


async def read_json_body(request: Request) -> Dict[str, Any]:
    """Parses the body as a JSON object. An empty body counts as `{}`."""
    raw = await request.body()
    if not raw.strip():
        return {}
    try:
        body = json.loads(raw)
    except ValueError:
        raise ValidationError(message="Invalid JSON body")
    if not isinstance(body, dict):
        raise ValidationError(message="Request body must be a JSON object")
    return body


def validate_request(rules: Sequence[FieldRule]) -> Callable[..., Awaitable[RequestData]]:
    """Builds a dependency that checks body and path params against `rules`."""
    reads_body = any(rule.location == "body" for rule in rules)

    async def dependency(request: Request) -> RequestData:
        body = await read_json_body(request) if reads_body else {}
        params = dict(request.path_params)
        enforce({"body": body, "param": params}, rules)
        return RequestData(body=body, params=params)

    return dependency


# ── Ownership Guard ───────────────────────────────────────────────────────

async def get_owned_task(
    task_id: str = Path(alias="id", description="Task id (UUID)"),
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db_session),
) -> Task:
    """
    Loads the task named in the path and checks the caller may touch it.

    Raises:
        ValidationError:    id is not a UUID (400)
        NotFoundError:      no such task (404)
        AuthorizationError: caller is neither owner nor admin (403)
    """
    enforce({"param": {"id": task_id}}, TASK_ID_RULES)
    task = await task_service.get_task(db, uuid.UUID(task_id))
    if task is None:
        raise NotFoundError(resource="Task", resource_id=task_id)
    check_ownership(identity, task.owner_id)
    return task


# ── Request Context ───────────────────────────────────────────────────────

def get_audit_logger(request: Request) -> AuditLogger:
    return request.app.state.audit_logger


def client_ip(request: Request) -> str:
    """
    Client address used for rate limiting and audit entries: the first
    X-Forwarded-For hop when TRUST_PROXY is on, else the socket peer.
    """
    if settings.trust_proxy:
        forwarded = request.headers.get("X-Forwarded-For")
        if forwarded:
            return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"

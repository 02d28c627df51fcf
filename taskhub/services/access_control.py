"""
TaskHub Backend — Access Control Decisions
============================================

What:  The caller's identity value and the two authorization decisions made
       on it: the static role check and the data-dependent ownership check.
How:   Pure functions. No I/O, no request objects; they either return or
       raise AuthorizationError (403). Loading the resource is the caller's
       job (see dependencies.get_owned_task).
"""

import logging
import uuid
from dataclasses import dataclass
from typing import Iterable

from taskhub.exceptions import AuthorizationError
from taskhub.models.user import Role

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Identity:
    """Who is calling, as proven by a verified access token."""

    user_id: uuid.UUID
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role is Role.ADMIN


def check_role(identity: Identity, allowed_roles: Iterable[Role]) -> None:
    """Passes if the caller's role is in the allow-list for the route."""
    allowed = frozenset(allowed_roles)
    if identity.role not in allowed:
        logger.warning(
            "Role '%s' denied for user %s (allowed: %s)",
            identity.role.value,
            identity.user_id,
            ", ".join(sorted(role.value for role in allowed)),
        )
        raise AuthorizationError(
            message="Forbidden: insufficient role",
            context={"role": identity.role.value},
        )


def check_ownership(identity: Identity, owner_id: uuid.UUID, resource: str = "task") -> None:
    """Owner or admin may proceed; anyone else gets 403."""
    if owner_id != identity.user_id and not identity.is_admin:
        logger.warning(
            "User %s denied access to %s owned by %s", identity.user_id, resource, owner_id
        )
        raise AuthorizationError(
            message=f"Forbidden: not allowed to access this {resource}",
            context={"owner_id": str(owner_id)},
        )

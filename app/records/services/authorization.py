import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, FrozenSet, Iterable, Optional

from ..models.db_models import Role, User
from .errors import AuthenticationError, AuthorizationError

logger = logging.getLogger(__name__)


class DenyReason(str, Enum):
    UNAUTHENTICATED = "UNAUTHENTICATED"
    FORBIDDEN = "FORBIDDEN"


@dataclass(frozen=True)
class Decision:
    """Outcome of a role check. ``reason`` is None when the check passed."""
    allowed: bool
    reason: Optional[DenyReason] = None
    message: Optional[str] = None

    def __bool__(self) -> bool:
        return self.allowed


ALLOW = Decision(allowed=True)

_STAFF = frozenset({Role.ADMIN, Role.TEACHER})
_ADMIN_ONLY = frozenset({Role.ADMIN})

# Every mutating operation and the roles allowed to run it.
POLICY: Dict[str, FrozenSet[Role]] = {
    "class:create": _ADMIN_ONLY,
    "class:update": _ADMIN_ONLY,
    "class:delete": _ADMIN_ONLY,
    "enrollment:create": _STAFF,
    "enrollment:delete": _STAFF,
    "attendance:mark": _STAFF,
    "student:create": _ADMIN_ONLY,
    "student:update": _STAFF,
    "student:delete": _ADMIN_ONLY,
    "performance:create": _STAFF,
    "lesson:create": _STAFF,
    "lesson:update": _STAFF,
    "lesson:delete": _STAFF,
    "event:create": _STAFF,
    "event:delete": _STAFF,
}


def check(subject: Optional[User], allowed_roles: Iterable[Role]) -> Decision:
    """
    Decides whether ``subject`` may act given the operation's allowed roles.

    Pure predicate: nothing is logged or raised here, so it can be called
    freely from tests and from other checks.
    """
    allowed_roles = frozenset(allowed_roles)
    if not allowed_roles:
        raise ValueError("allowed_roles must not be empty")

    if subject is None:
        return Decision(False, DenyReason.UNAUTHENTICATED, "User not authenticated")
    if subject.role not in allowed_roles:
        return Decision(False, DenyReason.FORBIDDEN, "Insufficient permissions")
    return ALLOW


def roles_for(operation: str) -> FrozenSet[Role]:
    try:
        return POLICY[operation]
    except KeyError:
        raise KeyError(f"No authorization policy registered for operation '{operation}'") from None


def authorize(subject: Optional[User], operation: str) -> User:
    """
    Runs the policy check for ``operation`` and raises on deny.

    Returns the subject so callers can write ``user = authorize(user, "...")``.
    """
    decision = check(subject, roles_for(operation))
    if decision.allowed:
        return subject

    if decision.reason is DenyReason.UNAUTHENTICATED:
        raise AuthenticationError(decision.message)

    logger.warning(f"User '{subject.id}' ({subject.role.value}) denied '{operation}'.")
    raise AuthorizationError(decision.message)

"""Role checks, in one place.

Every store operation that needs a role goes through authorize(); the
HTTP dependencies in learnhub/api/dependencies.py use the same function,
so the rules cannot drift between layers.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from learnhub.core.errors import ForbiddenRole, LearnHubError, NoActiveSession
from learnhub.models.principal import Principal, Role
from learnhub.models.session import Session

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class AccessDecision:
    principal: Principal | None
    error: LearnHubError | None = None

    @property
    def allowed(self) -> bool:
        return self.error is None

    def unwrap(self) -> Principal:
        if self.error is not None:
            raise self.error
        assert self.principal is not None
        return self.principal


def authorize(session: Session | None, role: Role) -> AccessDecision:
    if session is None:
        return AccessDecision(principal=None, error=NoActiveSession())
    principal = session.principal
    if not principal.has_role(role):
        return AccessDecision(
            principal=principal, error=ForbiddenRole(f"Requires role: {role}")
        )
    return AccessDecision(principal=principal)


def require_role(session: Session | None, role: Role) -> Principal:
    decision = authorize(session, role)
    if not decision.allowed:
        logger.warning(
            "Access denied role=%s user_id=%s reason=%s",
            role,
            decision.principal.user_id if decision.principal else None,
            type(decision.error).__name__,
        )
    return decision.unwrap()


def require_student(session: Session | None) -> Principal:
    return require_role(session, "student")


def require_admin(session: Session | None) -> Principal:
    return require_role(session, "admin")

"""Policy enforcement with access logging."""
from typing import Iterable, List, Tuple, TypeVar

from sqlmodel import Session

from ..domain.errors import denial_for
from ..domain.models import AccessLog
from ..domain.policy import (
    ALLOW,
    Action,
    IdentityContext,
    Reason,
    ResourceDescriptor,
    Verdict,
    deny,
    evaluate,
)

T = TypeVar("T")


class AccessEvaluator:
    def __init__(self, session: Session) -> None:
        self.session = session

    def enforce(
        self,
        context: IdentityContext,
        action: Action,
        descriptor: ResourceDescriptor,
        resource: str,
    ) -> Verdict:
        return self._settle(context, action, evaluate(context, action, descriptor), resource)

    def require_admin(self, context: IdentityContext, action: Action, resource: str) -> Verdict:
        """Gate for staff surfaces that are not one of the resource kinds."""
        if context.is_admin:
            verdict = ALLOW
        elif context.is_anonymous:
            verdict = deny(Reason.NOT_AUTHENTICATED)
        else:
            verdict = deny(Reason.NOT_ADMIN)
        return self._settle(context, action, verdict, resource)

    def _settle(self, context: IdentityContext, action: Action, verdict: Verdict, resource: str) -> Verdict:
        self.session.add(
            AccessLog(
                actor_id=context.subject_id or "anonymous",
                role=getattr(context.role, "value", context.role) or "none",
                action=getattr(action, "value", str(action)),
                resource=resource,
                allowed=verdict.allowed,
                reason=verdict.reason.value,
            )
        )
        if not verdict.allowed:
            # nothing has been written yet; keep the audit row when the request rolls back
            self.session.commit()
            raise denial_for(verdict, resource)
        return verdict

    @staticmethod
    def readable(
        context: IdentityContext,
        candidates: Iterable[Tuple[ResourceDescriptor, T]],
    ) -> List[T]:
        """Keep the records the caller may read; filtering is per record."""
        return [
            record
            for descriptor, record in candidates
            if evaluate(context, Action.READ, descriptor).allowed
        ]

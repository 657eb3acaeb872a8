"""Resolve the calling principal once per request."""
from typing import Optional

from sqlmodel import Session

from ..domain.models import User
from ..domain.policy import IdentityContext


def resolve_identity(session: Session, subject_id: Optional[str]) -> IdentityContext:
    """Build the IdentityContext for ``subject_id``.

    Authentication itself happens upstream; this only looks the role up so
    predicates never have to query it again. A subject with no profile row
    is authenticated but has no role (it is about to sign up).
    """
    subject_id = (subject_id or "").strip()
    if not subject_id:
        return IdentityContext.anonymous()
    profile = session.get(User, subject_id)
    return IdentityContext(subject_id=subject_id, role=profile.role if profile else None)

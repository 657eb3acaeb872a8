"""Access-control exception taxonomy."""
from __future__ import annotations

from typing import FrozenSet, TYPE_CHECKING

if TYPE_CHECKING:
    from .policy import Verdict


class AccessDenied(Exception):
    """Base class for every rejected evaluation."""

    status_code = 403

    def __init__(self, verdict: "Verdict", resource: str = "") -> None:
        self.verdict = verdict
        self.resource = resource
        super().__init__(f"{verdict.reason.value}: {resource}" if resource else verdict.reason.value)

    @property
    def reason(self) -> str:
        return self.verdict.reason.value

    @property
    def denied_fields(self) -> FrozenSet[str]:
        return self.verdict.denied_fields


class NotAuthenticated(AccessDenied):
    status_code = 401


class NotOwner(AccessDenied):
    pass


class NotAdmin(AccessDenied):
    pass


class InvalidLifecycleState(AccessDenied):
    pass


class FieldNotUpdatable(AccessDenied):
    pass


class UnsupportedOperation(AccessDenied):
    pass


class InvalidRecord(ValueError):
    """A write would leave a record violating its own invariants."""


class RecordConflict(ValueError):
    """A create would reuse an existing identity key."""


_BY_REASON = {
    "not_authenticated": NotAuthenticated,
    "not_owner": NotOwner,
    "not_admin": NotAdmin,
    "invalid_lifecycle_state": InvalidLifecycleState,
    "field_not_updatable": FieldNotUpdatable,
    "unsupported": UnsupportedOperation,
}


def denial_for(verdict: "Verdict", resource: str = "") -> AccessDenied:
    if verdict.allowed:
        raise ValueError("denial_for() called with an allow verdict")
    return _BY_REASON.get(verdict.reason.value, UnsupportedOperation)(verdict, resource)

"""Record-level access policy for the six resource kinds.

Each (kind, action) pair maps to a tuple of grants. A grant is a conjunction
of checks and grants are OR-combined: the first grant whose checks all hold
authorizes the action. Anything not granted is denied.

``evaluate`` is a pure function of its arguments. It never raises; unknown
kinds or actions, and faults inside a rule, come back as
``Deny(unsupported)``.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Callable, Dict, FrozenSet, Iterable, Mapping, Optional, Tuple

from .models import RequestStatus, UserRole

logger = logging.getLogger(__name__)


class ResourceKind(str, Enum):
    USER = "user"
    BLOOD_BANK = "blood_bank"
    CAMPAIGN = "campaign"
    BLOOD_REQUEST = "blood_request"
    DONATION = "donation"
    NOTIFICATION = "notification"


class Action(str, Enum):
    CREATE = "create"
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"


class Reason(str, Enum):
    GRANTED = "granted"
    NOT_AUTHENTICATED = "not_authenticated"
    NOT_OWNER = "not_owner"
    NOT_ADMIN = "not_admin"
    INVALID_LIFECYCLE_STATE = "invalid_lifecycle_state"
    FIELD_NOT_UPDATABLE = "field_not_updatable"
    UNSUPPORTED = "unsupported"


@dataclass(frozen=True)
class IdentityContext:
    """The calling principal. ``subject_id`` is None for anonymous callers.

    ``role`` is None for an authenticated subject whose profile does not
    exist yet (signup).
    """

    subject_id: Optional[str] = None
    role: Optional[UserRole] = None

    @classmethod
    def anonymous(cls) -> "IdentityContext":
        return cls()

    @property
    def is_anonymous(self) -> bool:
        return self.subject_id is None

    @property
    def is_admin(self) -> bool:
        return self.subject_id is not None and self.role == UserRole.ADMIN


@dataclass(frozen=True)
class ResourceDescriptor:
    """Typed view of the record being accessed.

    For ``create`` the descriptor is built from the proposed write, so
    ``owner_ref`` is the owner the new record would have. For ``update``,
    ``current_fields`` holds the stored values and ``proposed_fields`` the
    incoming ones.
    """

    kind: ResourceKind
    owner_ref: Optional[str] = None
    lifecycle_status: Optional[Any] = None
    proposed_fields: Mapping[str, Any] = field(default_factory=dict)
    current_fields: Mapping[str, Any] = field(default_factory=dict)

    def changed_fields(self) -> Dict[str, Any]:
        return {
            name: value
            for name, value in self.proposed_fields.items()
            if name not in self.current_fields or _label(self.current_fields[name]) != _label(value)
        }


@dataclass(frozen=True)
class Verdict:
    allowed: bool
    reason: Reason
    denied_fields: FrozenSet[str] = frozenset()

    @property
    def verdict(self) -> str:
        return "allow" if self.allowed else "deny"

    def as_dict(self) -> Dict[str, Any]:
        return {
            "verdict": self.verdict,
            "reason": self.reason.value,
            "denied_fields": sorted(self.denied_fields),
        }


ALLOW = Verdict(True, Reason.GRANTED)


def deny(reason: Reason, fields: Iterable[str] = ()) -> Verdict:
    return Verdict(False, reason, frozenset(fields))


def _label(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value


def _labels(*values: Any) -> FrozenSet[Any]:
    return frozenset(_label(value) for value in values)


# ── Checks ───────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Check:
    name: str
    test: Callable[[IdentityContext, ResourceDescriptor], bool]
    reason: Reason  # reported when this check is the one that failed

    def __call__(self, ctx: IdentityContext, res: ResourceDescriptor) -> bool:
        return bool(self.test(ctx, res))


def _owns(ctx: IdentityContext, res: ResourceDescriptor) -> bool:
    return not ctx.is_anonymous and res.owner_ref is not None and ctx.subject_id == res.owner_ref


is_self = Check("is_self", _owns, Reason.NOT_OWNER)
is_admin = Check("is_admin", lambda ctx, res: ctx.is_admin, Reason.NOT_ADMIN)
is_authenticated = Check("is_authenticated", lambda ctx, res: not ctx.is_anonymous, Reason.NOT_AUTHENTICATED)
is_public = Check("is_public", lambda ctx, res: True, Reason.UNSUPPORTED)


def status_in(*statuses: Any) -> Check:
    allowed = _labels(*statuses)
    return Check(
        f"status_in({', '.join(sorted(allowed))})",
        lambda ctx, res: _label(res.lifecycle_status) in allowed,
        Reason.INVALID_LIFECYCLE_STATE,
    )


EDITABLE_REQUEST_STATUSES = (
    RequestStatus.PENDING_VERIFICATION,
    RequestStatus.PENDING,
    RequestStatus.ACTIVE,
)
PUBLIC_REQUEST_STATUSES = (
    RequestStatus.ACTIVE,
    RequestStatus.PARTIALLY_FULFILLED,
    RequestStatus.FULFILLED,
)

Grant = Tuple[Check, ...]

_ADMIN: Tuple[Grant, ...] = ((is_admin,),)
_SELF_OR_ADMIN: Tuple[Grant, ...] = ((is_self,), (is_admin,))
_PUBLIC_FACILITY: Dict[Action, Tuple[Grant, ...]] = {
    Action.CREATE: _ADMIN,
    Action.READ: ((is_public,),),
    Action.UPDATE: _ADMIN,
    Action.DELETE: _ADMIN,
}

RULES: Dict[ResourceKind, Dict[Action, Tuple[Grant, ...]]] = {
    ResourceKind.USER: {
        Action.CREATE: ((is_self,),),
        Action.READ: _SELF_OR_ADMIN,
        Action.UPDATE: _SELF_OR_ADMIN,
        Action.DELETE: _ADMIN,
    },
    ResourceKind.BLOOD_BANK: _PUBLIC_FACILITY,
    ResourceKind.CAMPAIGN: _PUBLIC_FACILITY,
    ResourceKind.BLOOD_REQUEST: {
        Action.CREATE: ((is_authenticated, is_self),),
        Action.READ: (
            (is_self,),
            (is_admin,),
            (is_authenticated, status_in(*PUBLIC_REQUEST_STATUSES)),
        ),
        Action.UPDATE: ((is_self, status_in(*EDITABLE_REQUEST_STATUSES)), (is_admin,)),
        Action.DELETE: _SELF_OR_ADMIN,
    },
    ResourceKind.DONATION: {
        Action.CREATE: _ADMIN,
        Action.READ: _SELF_OR_ADMIN,
        Action.UPDATE: _ADMIN,
        Action.DELETE: _ADMIN,
    },
    ResourceKind.NOTIFICATION: {
        Action.CREATE: _ADMIN,
        Action.READ: _SELF_OR_ADMIN,
        Action.UPDATE: _SELF_OR_ADMIN,
        Action.DELETE: _ADMIN,
    },
}


# ── Field-level invariants ───────────────────────────────────────────

# never changed by an update, admins included
IMMUTABLE_FIELDS: Dict[ResourceKind, FrozenSet[str]] = {
    kind: frozenset({"uid" if kind is ResourceKind.USER else "id"}) for kind in ResourceKind
}

# the rest only bind non-admins
ADMIN_ONLY_FIELDS: Dict[Tuple[ResourceKind, Action], FrozenSet[str]] = {
    (ResourceKind.USER, Action.UPDATE): frozenset({"role"}),
    (ResourceKind.BLOOD_REQUEST, Action.UPDATE): frozenset({"requester_uid"}),
}

SELF_WRITABLE_FIELDS: Dict[Tuple[ResourceKind, Action], FrozenSet[str]] = {
    (ResourceKind.NOTIFICATION, Action.UPDATE): frozenset({"is_read"}),
}

ALLOWED_VALUES: Dict[Tuple[ResourceKind, Action], Dict[str, FrozenSet[Any]]] = {
    (ResourceKind.USER, Action.CREATE): {"role": _labels(UserRole.DONOR, UserRole.RECIPIENT)},
    (ResourceKind.BLOOD_REQUEST, Action.CREATE): {"status": _labels(RequestStatus.PENDING_VERIFICATION)},
    (ResourceKind.BLOOD_REQUEST, Action.UPDATE): {"status": _labels(RequestStatus.CANCELLED)},
}


def field_violations(ctx: IdentityContext, action: Action, res: ResourceDescriptor) -> FrozenSet[str]:
    """Names of the changed fields the caller may not write."""
    changed = res.changed_fields()
    denied = set()
    if action is Action.UPDATE:
        denied |= IMMUTABLE_FIELDS.get(res.kind, frozenset()) & changed.keys()
    if ctx.is_admin:
        return frozenset(denied)

    key = (res.kind, action)
    denied |= ADMIN_ONLY_FIELDS.get(key, frozenset()) & changed.keys()
    writable = SELF_WRITABLE_FIELDS.get(key)
    if writable is not None:
        denied |= changed.keys() - writable
    for name, allowed in ALLOWED_VALUES.get(key, {}).items():
        if name in changed and _label(changed[name]) not in allowed:
            denied.add(name)
    return frozenset(denied)


# ── Evaluation ───────────────────────────────────────────────────────

def _failure_reason(check: Check, ctx: IdentityContext) -> Reason:
    if check.reason is Reason.NOT_OWNER and ctx.is_anonymous:
        return Reason.NOT_AUTHENTICATED
    return check.reason


def _decide(
    ctx: IdentityContext,
    action: Action,
    res: ResourceDescriptor,
    grants: Tuple[Grant, ...],
) -> Verdict:
    furthest: Optional[Tuple[int, Reason]] = None
    for grant in grants:
        passed = 0
        for check in grant:
            if not check(ctx, res):
                break
            passed += 1
        else:
            violations = field_violations(ctx, action, res)
            if violations:
                return deny(Reason.FIELD_NOT_UPDATABLE, violations)
            return ALLOW
        # the grant that got furthest explains the denial; ties keep the earlier one
        if furthest is None or passed > furthest[0]:
            furthest = (passed, _failure_reason(grant[passed], ctx))
    return deny(furthest[1] if furthest else Reason.UNSUPPORTED)


def evaluate(ctx: Optional[IdentityContext], action: Any, descriptor: ResourceDescriptor) -> Verdict:
    """Decide whether ``ctx`` may perform ``action`` on ``descriptor``."""
    if ctx is None:
        ctx = IdentityContext.anonymous()
    try:
        kind = ResourceKind(descriptor.kind)
        action = Action(action)
        if descriptor.kind is not kind:
            descriptor = replace(descriptor, kind=kind)
    except (AttributeError, TypeError, ValueError):
        logger.debug("unsupported operation %r on %r", action, descriptor)
        return deny(Reason.UNSUPPORTED)

    grants = RULES.get(kind, {}).get(action)
    if not grants:
        return deny(Reason.UNSUPPORTED)

    try:
        verdict = _decide(ctx, action, descriptor, grants)
    except Exception:
        logger.exception("policy evaluation failed: %s %s", action.value, kind.value)
        return deny(Reason.UNSUPPORTED)

    if not verdict.allowed:
        logger.debug(
            "deny %s %s for %s (%s) %s",
            action.value,
            kind.value,
            ctx.subject_id or "anonymous",
            verdict.reason.value,
            sorted(verdict.denied_fields),
        )
    return verdict

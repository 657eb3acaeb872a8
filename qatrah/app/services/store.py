"""Policy-guarded reads and writes over the six resource collections."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Type

from sqlmodel import Session, SQLModel, select

from ..domain.errors import InvalidRecord, RecordConflict
from ..domain.models import (
    BloodBank,
    BloodRequest,
    Campaign,
    Donation,
    Notification,
    User,
    record_fields,
    utcnow,
)
from ..domain.policy import Action, IdentityContext, ResourceDescriptor, ResourceKind
from .abac import AccessEvaluator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Collection:
    model: Type[SQLModel]
    key: str = "id"
    owner_field: Optional[str] = None
    status_field: Optional[str] = None
    order_by: Optional[str] = None


COLLECTIONS: Dict[ResourceKind, Collection] = {
    ResourceKind.USER: Collection(User, key="uid", owner_field="uid", order_by="created_at"),
    ResourceKind.BLOOD_BANK: Collection(BloodBank, order_by="updated_at"),
    ResourceKind.CAMPAIGN: Collection(Campaign, status_field="status", order_by="start_date"),
    ResourceKind.BLOOD_REQUEST: Collection(
        BloodRequest, owner_field="requester_uid", status_field="status", order_by="created_at"
    ),
    ResourceKind.DONATION: Collection(Donation, owner_field="donor_uid", order_by="donation_date"),
    ResourceKind.NOTIFICATION: Collection(Notification, owner_field="user_uid", order_by="created_at"),
}

# rows removed together with their owning profile
_CASCADE_ON_USER_DELETE = ((BloodRequest, "requester_uid"), (Notification, "user_uid"))


class ResourceStore:
    """Runs every read and write for one caller through the policy engine.

    Writes evaluate the policy against the row loaded ``FOR UPDATE`` in the
    same transaction that applies the change, so the checked state is the
    state being written over.
    """

    page_size = 200

    def __init__(self, session: Session, context: IdentityContext) -> None:
        self.session = session
        self.context = context
        self.access = AccessEvaluator(session)

    # ── descriptors ──────────────────────────────────────────────────

    def describe(
        self,
        kind: ResourceKind,
        record: SQLModel,
        proposed: Optional[Mapping[str, Any]] = None,
    ) -> ResourceDescriptor:
        collection = COLLECTIONS[kind]
        current = record_fields(record)
        return ResourceDescriptor(
            kind=kind,
            owner_ref=current.get(collection.owner_field) if collection.owner_field else None,
            lifecycle_status=current.get(collection.status_field) if collection.status_field else None,
            proposed_fields=dict(proposed or {}),
            current_fields=current,
        )

    def propose(self, kind: ResourceKind, fields: Mapping[str, Any]) -> ResourceDescriptor:
        collection = COLLECTIONS[kind]
        return ResourceDescriptor(
            kind=kind,
            owner_ref=fields.get(collection.owner_field) if collection.owner_field else None,
            lifecycle_status=fields.get(collection.status_field) if collection.status_field else None,
            proposed_fields=dict(fields),
        )

    # ── reads ────────────────────────────────────────────────────────

    def get(self, kind: ResourceKind, key: str) -> Optional[SQLModel]:
        record = self.session.get(COLLECTIONS[kind].model, key)
        if record is None:
            return None
        self.access.enforce(self.context, Action.READ, self.describe(kind, record), _resource(kind, key))
        return record

    def list(self, kind: ResourceKind, limit: int = 100, **filters: Any) -> List[SQLModel]:
        collection = COLLECTIONS[kind]
        stmt = select(collection.model)
        for name, value in filters.items():
            if value is not None:
                stmt = stmt.where(getattr(collection.model, name) == value)
        if collection.order_by:
            stmt = stmt.order_by(getattr(collection.model, collection.order_by).desc())
        # stable order across pages
        stmt = stmt.order_by(getattr(collection.model, collection.key).desc())

        visible: List[SQLModel] = []
        offset = 0
        while len(visible) < limit:
            page = self.session.exec(stmt.offset(offset).limit(self.page_size)).all()
            visible.extend(
                AccessEvaluator.readable(
                    self.context, ((self.describe(kind, record), record) for record in page)
                )
            )
            if len(page) < self.page_size:
                break
            offset += self.page_size
        return visible[:limit]

    # ── writes ───────────────────────────────────────────────────────

    def create(self, kind: ResourceKind, fields: Mapping[str, Any]) -> SQLModel:
        collection = COLLECTIONS[kind]
        fields = dict(fields)
        key = fields.get(collection.key)
        self.access.enforce(self.context, Action.CREATE, self.propose(kind, fields), _resource(kind, key))
        if key is not None and self.session.get(collection.model, key) is not None:
            raise RecordConflict(f"{kind.value} {key} already exists")

        record = collection.model(**fields)
        _validate(kind, record)
        self.session.add(record)
        self.session.flush()
        self.session.refresh(record)
        logger.info("%s created %s %s", self._actor, kind.value, getattr(record, collection.key))
        return record

    def update(self, kind: ResourceKind, key: str, fields: Mapping[str, Any]) -> Optional[SQLModel]:
        record = self._lock(kind, key)
        if record is None:
            return None
        self.access.enforce(
            self.context, Action.UPDATE, self.describe(kind, record, fields), _resource(kind, key)
        )
        for name, value in fields.items():
            setattr(record, name, value)
        if hasattr(record, "updated_at"):
            record.updated_at = utcnow()
        _validate(kind, record)
        self.session.add(record)
        self.session.flush()
        self.session.refresh(record)
        logger.info("%s updated %s %s: %s", self._actor, kind.value, key, sorted(fields))
        return record

    def delete(self, kind: ResourceKind, key: str) -> bool:
        record = self._lock(kind, key)
        if record is None:
            return False
        self.access.enforce(self.context, Action.DELETE, self.describe(kind, record), _resource(kind, key))
        if kind is ResourceKind.USER:
            for model, owner_field in _CASCADE_ON_USER_DELETE:
                for owned in self.session.exec(select(model).where(getattr(model, owner_field) == key)).all():
                    self.session.delete(owned)
            self.session.flush()
        self.session.delete(record)
        self.session.flush()
        logger.info("%s deleted %s %s", self._actor, kind.value, key)
        return True

    def _lock(self, kind: ResourceKind, key: str) -> Optional[SQLModel]:
        collection = COLLECTIONS[kind]
        stmt = (
            select(collection.model)
            .where(getattr(collection.model, collection.key) == key)
            .with_for_update()
        )
        return self.session.exec(stmt).first()

    @property
    def _actor(self) -> str:
        return self.context.subject_id or "anonymous"


def _resource(kind: ResourceKind, key: Any) -> str:
    return f"{kind.value}:{key}" if key is not None else f"{kind.value}:new"


def _naive_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def _validate(kind: ResourceKind, record: SQLModel) -> None:
    missing = [
        column.name
        for column in record.__table__.columns
        if not column.nullable and getattr(record, column.name) is None
    ]
    if missing:
        raise InvalidRecord(f"{', '.join(missing)} must not be null")

    problems = []
    if kind is ResourceKind.CAMPAIGN:
        if _naive_utc(record.end_date) < _naive_utc(record.start_date):
            problems.append("end_date must not precede start_date")
        for name in ("goal_units", "collected_units", "participants_count"):
            if getattr(record, name) < 0:
                problems.append(f"{name} must not be negative")
    elif kind is ResourceKind.BLOOD_REQUEST:
        if record.units_required <= 0:
            problems.append("units_required must be positive")
        if record.units_fulfilled < 0:
            problems.append("units_fulfilled must not be negative")
    elif kind is ResourceKind.BLOOD_BANK:
        if any(count < 0 for count in (record.inventory or {}).values()):
            problems.append("inventory counts must not be negative")
    if problems:
        raise InvalidRecord("; ".join(problems))

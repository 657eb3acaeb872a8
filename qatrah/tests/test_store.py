from datetime import date, datetime, timedelta, timezone

import pytest
from sqlmodel import Session, SQLModel, create_engine, select

from qatrah.app.domain.errors import (
    FieldNotUpdatable,
    InvalidLifecycleState,
    InvalidRecord,
    NotAdmin,
    NotAuthenticated,
    NotOwner,
    RecordConflict,
)
from qatrah.app.domain.models import (
    AccessLog,
    BloodRequest,
    Notification,
    RequestStatus,
    User,
    UserRole,
    utcnow,
)
from qatrah.app.domain.policy import Action, IdentityContext, ResourceKind
from qatrah.app.services.abac import AccessEvaluator
from qatrah.app.services.identity import resolve_identity
from qatrah.app.services.store import ResourceStore

ADMIN = IdentityContext(subject_id="admin-1", role=UserRole.ADMIN)
DONOR = IdentityContext(subject_id="donor-1", role=UserRole.DONOR)
OTHER = IdentityContext(subject_id="recipient-9", role=UserRole.RECIPIENT)


def _session_factory():
    engine = create_engine("sqlite://", echo=False)
    SQLModel.metadata.create_all(engine)
    return Session(engine)


def _seed_users(session: Session):
    session.add(User(uid="admin-1", role=UserRole.ADMIN))
    session.add(User(uid="donor-1", role=UserRole.DONOR, first_name="Sam"))
    session.add(User(uid="recipient-9", role=UserRole.RECIPIENT))
    session.commit()


def _request_fields(owner: str, **extra):
    fields = {
        "requester_uid": owner,
        "patient_name": "John Smith",
        "required_blood_group": "B+",
        "units_required": 2,
        "hospital_name": "City General Hospital",
        "hospital_location": "789 South St, Cityville",
        "contact_phone": "555-3000",
    }
    fields.update(extra)
    return fields


def test_resolve_identity():
    session = _session_factory()
    with session:
        _seed_users(session)
        assert resolve_identity(session, None).is_anonymous
        assert resolve_identity(session, "  ").is_anonymous
        assert resolve_identity(session, "admin-1").is_admin
        newcomer = resolve_identity(session, "new-1")
        assert newcomer.subject_id == "new-1"
        assert newcomer.role is None


def test_signup_creates_own_profile():
    session = _session_factory()
    with session:
        newcomer = IdentityContext(subject_id="new-1")
        record = ResourceStore(session, newcomer).create(
            ResourceKind.USER, {"uid": "new-1", "role": "donor", "first_name": "Nia"}
        )
        assert record.role is UserRole.DONOR

        with pytest.raises(RecordConflict):
            ResourceStore(session, newcomer).create(ResourceKind.USER, {"uid": "new-1", "role": "donor"})


def test_signup_cannot_claim_admin():
    session = _session_factory()
    with session:
        with pytest.raises(FieldNotUpdatable) as exc:
            ResourceStore(session, IdentityContext(subject_id="new-2")).create(
                ResourceKind.USER, {"uid": "new-2", "role": "admin"}
            )
        assert exc.value.denied_fields == {"role"}
        assert session.get(User, "new-2") is None


def test_role_self_elevation_is_rejected_whole():
    session = _session_factory()
    with session:
        _seed_users(session)
        store = ResourceStore(session, DONOR)
        with pytest.raises(FieldNotUpdatable):
            store.update(ResourceKind.USER, "donor-1", {"role": UserRole.ADMIN, "first_name": "Sammy"})
        session.rollback()
        user = session.get(User, "donor-1")
        assert user.role is UserRole.DONOR
        assert user.first_name == "Sam"

        updated = ResourceStore(session, ADMIN).update(ResourceKind.USER, "donor-1", {"role": UserRole.ADMIN})
        assert updated.role is UserRole.ADMIN


def test_request_lifecycle_gate():
    session = _session_factory()
    with session:
        _seed_users(session)
        owner_store = ResourceStore(session, DONOR)
        request = owner_store.create(ResourceKind.BLOOD_REQUEST, _request_fields("donor-1"))
        assert request.status is RequestStatus.PENDING_VERIFICATION

        owner_store.update(ResourceKind.BLOOD_REQUEST, request.id, {"units_required": 3})
        ResourceStore(session, ADMIN).update(
            ResourceKind.BLOOD_REQUEST, request.id, {"status": RequestStatus.FULFILLED, "units_fulfilled": 3}
        )
        session.commit()

        with pytest.raises(InvalidLifecycleState):
            owner_store.update(ResourceKind.BLOOD_REQUEST, request.id, {"units_required": 4})
        session.rollback()
        assert session.get(BloodRequest, request.id).units_required == 3


def test_list_filters_per_record():
    session = _session_factory()
    with session:
        _seed_users(session)
        store = ResourceStore(session, DONOR)
        store.create(ResourceKind.BLOOD_REQUEST, _request_fields("donor-1", patient_name="Hidden"))
        visible = ResourceStore(session, ADMIN).update(
            ResourceKind.BLOOD_REQUEST,
            store.create(ResourceKind.BLOOD_REQUEST, _request_fields("donor-1", patient_name="Shown")).id,
            {"status": RequestStatus.ACTIVE},
        )
        session.commit()

        others = ResourceStore(session, OTHER).list(ResourceKind.BLOOD_REQUEST)
        assert [r.id for r in others] == [visible.id]
        assert len(ResourceStore(session, DONOR).list(ResourceKind.BLOOD_REQUEST)) == 2
        assert ResourceStore(session, IdentityContext.anonymous()).list(ResourceKind.BLOOD_REQUEST) == []
        active = ResourceStore(session, ADMIN).list(ResourceKind.BLOOD_REQUEST, status=RequestStatus.ACTIVE)
        assert [r.patient_name for r in active] == ["Shown"]


def test_hidden_request_read_raises():
    session = _session_factory()
    with session:
        _seed_users(session)
        request = ResourceStore(session, DONOR).create(ResourceKind.BLOOD_REQUEST, _request_fields("donor-1"))
        session.commit()
        with pytest.raises(InvalidLifecycleState):
            ResourceStore(session, OTHER).get(ResourceKind.BLOOD_REQUEST, request.id)
        with pytest.raises(NotAuthenticated):
            ResourceStore(session, IdentityContext.anonymous()).get(ResourceKind.BLOOD_REQUEST, request.id)
        assert ResourceStore(session, DONOR).get(ResourceKind.BLOOD_REQUEST, "missing") is None


def test_donations_recorded_by_staff():
    session = _session_factory()
    with session:
        _seed_users(session)
        fields = {"donor_uid": "donor-1", "donation_date": date(2024, 4, 10), "donation_type": "Whole Blood"}
        with pytest.raises(NotAdmin):
            ResourceStore(session, DONOR).create(ResourceKind.DONATION, fields)
        donation = ResourceStore(session, ADMIN).create(ResourceKind.DONATION, fields)
        session.commit()

        assert ResourceStore(session, DONOR).get(ResourceKind.DONATION, donation.id).id == donation.id
        with pytest.raises(NotOwner):
            ResourceStore(session, OTHER).get(ResourceKind.DONATION, donation.id)
        with pytest.raises(NotAdmin):
            ResourceStore(session, DONOR).update(ResourceKind.DONATION, donation.id, {"notes": "mine"})


def test_notification_read_flag():
    session = _session_factory()
    with session:
        _seed_users(session)
        note = ResourceStore(session, ADMIN).create(
            ResourceKind.NOTIFICATION, {"user_uid": "donor-1", "message": "Match found", "type": "match"}
        )
        session.commit()
        store = ResourceStore(session, DONOR)
        assert store.update(ResourceKind.NOTIFICATION, note.id, {"is_read": True}).is_read is True
        session.commit()
        with pytest.raises(FieldNotUpdatable) as exc:
            store.update(ResourceKind.NOTIFICATION, note.id, {"message": "edited"})
        assert exc.value.denied_fields == {"message"}
        assert ResourceStore(session, OTHER).list(ResourceKind.NOTIFICATION) == []


def test_campaign_dates_validated():
    session = _session_factory()
    with session:
        _seed_users(session)
        start = datetime(2024, 7, 15)
        fields = {"title": "Drive", "location": "Plaza", "start_date": start, "end_date": start - timedelta(days=1)}
        with pytest.raises(InvalidRecord):
            ResourceStore(session, ADMIN).create(ResourceKind.CAMPAIGN, fields)


def test_decisions_are_logged_even_when_denied():
    session = _session_factory()
    with session:
        _seed_users(session)
        with pytest.raises(NotAdmin):
            ResourceStore(session, DONOR).create(ResourceKind.BLOOD_BANK, {"name": "X", "location": "Y"})
        session.rollback()
        logs = session.exec(select(AccessLog)).all()
        assert len(logs) == 1
        assert logs[0].actor_id == "donor-1"
        assert logs[0].allowed is False
        assert logs[0].reason == "not_admin"
        assert logs[0].resource == "blood_bank:new"


def test_deleting_profile_cascades_owned_rows():
    session = _session_factory()
    with session:
        _seed_users(session)
        ResourceStore(session, DONOR).create(ResourceKind.BLOOD_REQUEST, _request_fields("donor-1"))
        ResourceStore(session, ADMIN).create(ResourceKind.NOTIFICATION, {"user_uid": "donor-1", "message": "hi"})
        session.commit()
        with pytest.raises(NotAdmin):
            ResourceStore(session, DONOR).delete(ResourceKind.USER, "donor-1")
        assert ResourceStore(session, ADMIN).delete(ResourceKind.USER, "donor-1") is True
        session.commit()
        assert session.exec(select(BloodRequest)).all() == []
        assert session.exec(select(Notification)).all() == []
        assert ResourceStore(session, ADMIN).delete(ResourceKind.USER, "donor-1") is False


def test_required_columns_cannot_be_nulled():
    session = _session_factory()
    with session:
        _seed_users(session)
        request = ResourceStore(session, DONOR).create(ResourceKind.BLOOD_REQUEST, _request_fields("donor-1"))
        session.commit()
        with pytest.raises(InvalidRecord, match="units_required"):
            ResourceStore(session, DONOR).update(ResourceKind.BLOOD_REQUEST, request.id, {"units_required": None})
        session.rollback()
        with pytest.raises(InvalidRecord, match="patient_name"):
            ResourceStore(session, ADMIN).update(ResourceKind.BLOOD_REQUEST, request.id, {"patient_name": None})
        session.rollback()
        assert session.get(BloodRequest, request.id).patient_name == "John Smith"


def test_list_pages_until_limit_is_filled():
    session = _session_factory()
    with session:
        _seed_users(session)
        owner = ResourceStore(session, DONOR)
        admin = ResourceStore(session, ADMIN)
        shown = []
        for n in range(7):
            request = owner.create(ResourceKind.BLOOD_REQUEST, _request_fields("donor-1", patient_name=f"p{n}"))
            if n % 3 == 0:
                admin.update(ResourceKind.BLOOD_REQUEST, request.id, {"status": RequestStatus.ACTIVE})
                shown.append(request.id)
        session.commit()

        store = ResourceStore(session, OTHER)
        store.page_size = 2
        assert sorted(r.id for r in store.list(ResourceKind.BLOOD_REQUEST)) == sorted(shown)
        assert len(store.list(ResourceKind.BLOOD_REQUEST, limit=2)) == 2
        assert len(ResourceStore(session, DONOR).list(ResourceKind.BLOOD_REQUEST, limit=5)) == 5


def test_require_admin_logs_each_decision():
    session = _session_factory()
    with session:
        _seed_users(session)
        assert AccessEvaluator(session).require_admin(ADMIN, Action.READ, "audit:logs").allowed
        with pytest.raises(NotAdmin):
            AccessEvaluator(session).require_admin(DONOR, Action.READ, "audit:logs")
        with pytest.raises(NotAuthenticated):
            AccessEvaluator(session).require_admin(IdentityContext.anonymous(), Action.READ, "audit:logs")
        session.rollback()
        logs = session.exec(select(AccessLog).where(AccessLog.resource == "audit:logs")).all()
        assert sorted((log.actor_id, log.reason) for log in logs) == [
            ("admin-1", "granted"),
            ("anonymous", "not_authenticated"),
            ("donor-1", "not_admin"),
        ]


def test_timestamps_are_timezone_aware():
    assert utcnow().tzinfo is timezone.utc
    assert User(uid="u-1").created_at.tzinfo is timezone.utc

"""Domain models shared between API and persistence layers."""
from __future__ import annotations

from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict
from sqlalchemy import JSON
from sqlalchemy.types import String, TypeDecorator
from sqlmodel import Column, Field as SQLField, SQLModel


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class EnumValueType(TypeDecorator):
    """Stores enum labels ("Pending Verification") rather than member names."""
    impl = String
    cache_ok = True

    def __init__(self, enum_class, **kwargs):
        self.enum_class = enum_class
        super().__init__(length=32, **kwargs)

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if isinstance(value, self.enum_class):
            return value.value
        return self.enum_class(value).value

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return self.enum_class(value)


class UserRole(str, Enum):
    DONOR = "donor"
    RECIPIENT = "recipient"
    ADMIN = "admin"


class BloodGroup(str, Enum):
    A_POS = "A+"
    A_NEG = "A-"
    B_POS = "B+"
    B_NEG = "B-"
    AB_POS = "AB+"
    AB_NEG = "AB-"
    O_POS = "O+"
    O_NEG = "O-"


class Gender(str, Enum):
    MALE = "Male"
    FEMALE = "Female"


class RequestStatus(str, Enum):
    PENDING = "Pending"
    PENDING_VERIFICATION = "Pending Verification"
    ACTIVE = "Active"
    PARTIALLY_FULFILLED = "Partially Fulfilled"
    FULFILLED = "Fulfilled"
    CANCELLED = "Cancelled"
    EXPIRED = "Expired"


class UrgencyLevel(str, Enum):
    CRITICAL = "Critical"
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


class CampaignStatus(str, Enum):
    UPCOMING = "Upcoming"
    ONGOING = "Ongoing"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"


class DonationType(str, Enum):
    WHOLE_BLOOD = "Whole Blood"
    PLATELETS = "Platelets"
    PLASMA = "Plasma"
    POWER_RED = "Power Red"


def _enum_column(enum_class, nullable: bool = True, **kwargs) -> Column:
    return Column(EnumValueType(enum_class), nullable=nullable, **kwargs)


def _json_column(nullable: bool = True) -> Column:
    return Column(JSON, nullable=nullable)


class User(SQLModel, table=True):
    """Profile row mirroring an external authentication record 1:1."""

    __tablename__ = "users"

    uid: str = SQLField(primary_key=True, index=True)
    email: Optional[str] = SQLField(default=None, unique=True, index=True)
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    dob: Optional[date] = None
    blood_group: Optional[BloodGroup] = SQLField(default=None, sa_column=_enum_column(BloodGroup))
    gender: Optional[Gender] = SQLField(default=None, sa_column=_enum_column(Gender))
    role: UserRole = SQLField(
        default=UserRole.RECIPIENT,
        sa_column=_enum_column(UserRole, nullable=False, index=True),
    )
    # donor specific
    last_donation_date: Optional[date] = None
    medical_conditions: Optional[str] = None
    is_eligible: bool = SQLField(default=True)
    next_eligible_date: Optional[date] = None
    total_donations: int = SQLField(default=0)
    created_at: datetime = SQLField(default_factory=utcnow, nullable=False)
    updated_at: datetime = SQLField(default_factory=utcnow, nullable=False)


class UserRead(BaseModel):
    uid: str
    email: Optional[str]
    first_name: Optional[str]
    last_name: Optional[str]
    phone: Optional[str]
    dob: Optional[date]
    blood_group: Optional[BloodGroup]
    gender: Optional[Gender]
    role: UserRole
    last_donation_date: Optional[date]
    medical_conditions: Optional[str]
    is_eligible: bool
    next_eligible_date: Optional[date]
    total_donations: int
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class BloodBank(SQLModel, table=True):
    __tablename__ = "blood_banks"

    id: str = SQLField(default_factory=lambda: str(uuid4()), primary_key=True, index=True)
    name: str
    location: str
    location_coords: Optional[Dict[str, float]] = SQLField(default=None, sa_column=_json_column())
    contact_phone: Optional[str] = None
    operating_hours: Optional[str] = None
    website: Optional[str] = None
    inventory: Dict[str, int] = SQLField(default_factory=dict, sa_column=_json_column(nullable=False))
    last_inventory_update: Optional[datetime] = None
    services_offered: List[str] = SQLField(default_factory=list, sa_column=_json_column(nullable=False))
    created_at: datetime = SQLField(default_factory=utcnow, nullable=False)
    updated_at: datetime = SQLField(default_factory=utcnow, nullable=False)


class BloodBankRead(BaseModel):
    id: str
    name: str
    location: str
    location_coords: Optional[Dict[str, float]]
    contact_phone: Optional[str]
    operating_hours: Optional[str]
    website: Optional[str]
    inventory: Dict[str, int]
    last_inventory_update: Optional[datetime]
    services_offered: List[str]
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class Campaign(SQLModel, table=True):
    """Donation drive; goal/collected counters are maintained outside the store."""

    __tablename__ = "campaigns"

    id: str = SQLField(default_factory=lambda: str(uuid4()), primary_key=True, index=True)
    title: str
    description: Optional[str] = None
    organizer: Optional[str] = None
    start_date: datetime = SQLField(index=True)
    end_date: datetime
    time_details: Optional[str] = None
    location: str
    location_coords: Optional[Dict[str, float]] = SQLField(default=None, sa_column=_json_column())
    image_url: Optional[str] = None
    goal_units: int = SQLField(default=0)
    collected_units: int = SQLField(default=0)
    status: CampaignStatus = SQLField(
        default=CampaignStatus.UPCOMING,
        sa_column=_enum_column(CampaignStatus, nullable=False, index=True),
    )
    participants_count: int = SQLField(default=0)
    required_blood_groups: List[str] = SQLField(default_factory=list, sa_column=_json_column(nullable=False))
    created_at: datetime = SQLField(default_factory=utcnow, nullable=False)
    updated_at: datetime = SQLField(default_factory=utcnow, nullable=False)


class CampaignRead(BaseModel):
    id: str
    title: str
    description: Optional[str]
    organizer: Optional[str]
    start_date: datetime
    end_date: datetime
    time_details: Optional[str]
    location: str
    location_coords: Optional[Dict[str, float]]
    image_url: Optional[str]
    goal_units: int
    collected_units: int
    status: CampaignStatus
    participants_count: int
    required_blood_groups: List[str]
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class BloodRequest(SQLModel, table=True):
    __tablename__ = "blood_requests"

    id: str = SQLField(default_factory=lambda: str(uuid4()), primary_key=True, index=True)
    requester_uid: str = SQLField(foreign_key="users.uid", index=True)
    requester_name: Optional[str] = None  # denormalized for display
    patient_name: str
    required_blood_group: BloodGroup = SQLField(sa_column=_enum_column(BloodGroup, nullable=False))
    units_required: int = SQLField(default=1)
    units_fulfilled: int = SQLField(default=0)
    urgency: UrgencyLevel = SQLField(
        default=UrgencyLevel.MEDIUM,
        sa_column=_enum_column(UrgencyLevel, nullable=False),
    )
    hospital_name: str
    hospital_location: str
    contact_phone: str
    additional_details: Optional[str] = None
    status: RequestStatus = SQLField(
        default=RequestStatus.PENDING_VERIFICATION,
        sa_column=_enum_column(RequestStatus, nullable=False, index=True),
    )
    created_at: datetime = SQLField(default_factory=utcnow, nullable=False)
    updated_at: datetime = SQLField(default_factory=utcnow, nullable=False)


class BloodRequestRead(BaseModel):
    id: str
    requester_uid: str
    requester_name: Optional[str]
    patient_name: str
    required_blood_group: BloodGroup
    units_required: int
    units_fulfilled: int
    urgency: UrgencyLevel
    hospital_name: str
    hospital_location: str
    contact_phone: str
    additional_details: Optional[str]
    status: RequestStatus
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class Donation(SQLModel, table=True):
    """Append-only donation record, written by staff."""

    __tablename__ = "donations"

    id: str = SQLField(default_factory=lambda: str(uuid4()), primary_key=True, index=True)
    donor_uid: str = SQLField(index=True)  # kept when the profile is deleted
    donation_date: date = SQLField(index=True)
    donation_type: DonationType = SQLField(sa_column=_enum_column(DonationType, nullable=False))
    location_name: Optional[str] = None
    campaign_id: Optional[str] = SQLField(default=None, foreign_key="campaigns.id")
    blood_bank_id: Optional[str] = SQLField(default=None, foreign_key="blood_banks.id")
    notes: Optional[str] = None
    created_at: datetime = SQLField(default_factory=utcnow, nullable=False)


class DonationRead(BaseModel):
    id: str
    donor_uid: str
    donation_date: date
    donation_type: DonationType
    location_name: Optional[str]
    campaign_id: Optional[str]
    blood_bank_id: Optional[str]
    notes: Optional[str]
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class Notification(SQLModel, table=True):
    __tablename__ = "notifications"

    id: str = SQLField(default_factory=lambda: str(uuid4()), primary_key=True, index=True)
    user_uid: str = SQLField(foreign_key="users.uid", index=True)
    message: str
    type: Optional[str] = None  # match, campaign, urgent, info, request_update
    link: Optional[str] = None
    is_read: bool = SQLField(default=False)
    created_at: datetime = SQLField(default_factory=utcnow, nullable=False)


class NotificationRead(BaseModel):
    id: str
    user_uid: str
    message: str
    type: Optional[str]
    link: Optional[str]
    is_read: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class AccessLog(SQLModel, table=True):
    __tablename__ = "access_logs"

    id: str = SQLField(default_factory=lambda: str(uuid4()), primary_key=True, index=True)
    actor_id: str = SQLField(index=True)
    role: str
    action: str
    resource: str
    allowed: bool = SQLField(default=True)
    reason: str = SQLField(default="granted")
    created_at: datetime = SQLField(default_factory=utcnow, nullable=False, index=True)


class AccessLogRead(BaseModel):
    id: str
    actor_id: str
    role: str
    action: str
    resource: str
    allowed: bool
    reason: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


def record_fields(record: SQLModel) -> Dict[str, Any]:
    """Column values of a row as a plain mapping."""
    return {column.name: getattr(record, column.name) for column in record.__table__.columns}

"""API I/O schemas.

Update payloads list every writable column, including the ones only admins
may touch, so a forbidden change is rejected by the policy engine instead of
being dropped silently.
"""
from datetime import date, datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .models import (
    BloodGroup,
    CampaignStatus,
    DonationType,
    Gender,
    RequestStatus,
    UrgencyLevel,
    UserRole,
)


class _Payload(BaseModel):
    model_config = ConfigDict(extra="forbid")


class UserCreate(_Payload):
    uid: Optional[str] = Field(None, description="defaults to the calling subject")
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    dob: Optional[date] = None
    blood_group: Optional[BloodGroup] = None
    gender: Optional[Gender] = None
    role: UserRole = UserRole.RECIPIENT
    medical_conditions: Optional[str] = None


class UserUpdate(_Payload):
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    dob: Optional[date] = None
    blood_group: Optional[BloodGroup] = None
    gender: Optional[Gender] = None
    role: Optional[UserRole] = None
    last_donation_date: Optional[date] = None
    medical_conditions: Optional[str] = None
    is_eligible: Optional[bool] = None
    next_eligible_date: Optional[date] = None
    total_donations: Optional[int] = Field(None, ge=0)


class BloodBankCreate(_Payload):
    name: str
    location: str
    location_coords: Optional[Dict[str, float]] = None
    contact_phone: Optional[str] = None
    operating_hours: Optional[str] = None
    website: Optional[str] = None
    inventory: Dict[BloodGroup, int] = Field(default_factory=dict)
    last_inventory_update: Optional[datetime] = None
    services_offered: List[str] = Field(default_factory=list)


class BloodBankUpdate(_Payload):
    name: Optional[str] = None
    location: Optional[str] = None
    location_coords: Optional[Dict[str, float]] = None
    contact_phone: Optional[str] = None
    operating_hours: Optional[str] = None
    website: Optional[str] = None
    inventory: Optional[Dict[BloodGroup, int]] = None
    last_inventory_update: Optional[datetime] = None
    services_offered: Optional[List[str]] = None


class CampaignCreate(_Payload):
    title: str
    description: Optional[str] = None
    organizer: Optional[str] = None
    start_date: datetime
    end_date: datetime
    time_details: Optional[str] = None
    location: str
    location_coords: Optional[Dict[str, float]] = None
    image_url: Optional[str] = None
    goal_units: int = Field(0, ge=0)
    collected_units: int = Field(0, ge=0)
    status: CampaignStatus = CampaignStatus.UPCOMING
    participants_count: int = Field(0, ge=0)
    required_blood_groups: List[BloodGroup] = Field(default_factory=list)

    @model_validator(mode="after")
    def _dates_in_order(self):
        if self.end_date < self.start_date:
            raise ValueError("end_date must not precede start_date")
        return self


class CampaignUpdate(_Payload):
    title: Optional[str] = None
    description: Optional[str] = None
    organizer: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    time_details: Optional[str] = None
    location: Optional[str] = None
    location_coords: Optional[Dict[str, float]] = None
    image_url: Optional[str] = None
    goal_units: Optional[int] = Field(None, ge=0)
    collected_units: Optional[int] = Field(None, ge=0)
    status: Optional[CampaignStatus] = None
    participants_count: Optional[int] = Field(None, ge=0)
    required_blood_groups: Optional[List[BloodGroup]] = None


class BloodRequestCreate(_Payload):
    requester_uid: Optional[str] = Field(None, description="defaults to the calling subject")
    requester_name: Optional[str] = None
    patient_name: str
    required_blood_group: BloodGroup
    units_required: int = Field(1, gt=0)
    urgency: UrgencyLevel = UrgencyLevel.MEDIUM
    hospital_name: str
    hospital_location: str
    contact_phone: str
    additional_details: Optional[str] = None
    status: Optional[RequestStatus] = None


class BloodRequestUpdate(_Payload):
    requester_uid: Optional[str] = None
    requester_name: Optional[str] = None
    patient_name: Optional[str] = None
    required_blood_group: Optional[BloodGroup] = None
    units_required: Optional[int] = Field(None, gt=0)
    units_fulfilled: Optional[int] = Field(None, ge=0)
    urgency: Optional[UrgencyLevel] = None
    hospital_name: Optional[str] = None
    hospital_location: Optional[str] = None
    contact_phone: Optional[str] = None
    additional_details: Optional[str] = None
    status: Optional[RequestStatus] = None


class DonationCreate(_Payload):
    donor_uid: str
    donation_date: date
    donation_type: DonationType
    location_name: Optional[str] = None
    campaign_id: Optional[str] = None
    blood_bank_id: Optional[str] = None
    notes: Optional[str] = None


class DonationUpdate(_Payload):
    donation_date: Optional[date] = None
    donation_type: Optional[DonationType] = None
    location_name: Optional[str] = None
    campaign_id: Optional[str] = None
    blood_bank_id: Optional[str] = None
    notes: Optional[str] = None


class NotificationCreate(_Payload):
    user_uid: str
    message: str
    type: Optional[str] = None
    link: Optional[str] = None


class NotificationUpdate(_Payload):
    message: Optional[str] = None
    type: Optional[str] = None
    link: Optional[str] = None
    is_read: Optional[bool] = None


class DenialOut(BaseModel):
    detail: str
    denied_fields: List[str] = Field(default_factory=list)

"""Donation history endpoints. Records are written by staff."""
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from ..deps import resource_store
from ..domain.models import DonationRead
from ..domain.policy import ResourceKind
from ..domain.schemas import DonationCreate, DonationUpdate
from ..services.store import ResourceStore

router = APIRouter()


@router.get("/", response_model=List[DonationRead])
def list_donations(
    donor_uid: Optional[str] = Query(None),
    campaign_id: Optional[str] = Query(None),
    limit: int = Query(100, ge=1, le=500),
    store: ResourceStore = Depends(resource_store),
):
    return store.list(ResourceKind.DONATION, limit=limit, donor_uid=donor_uid, campaign_id=campaign_id)


@router.post("/", response_model=DonationRead, status_code=status.HTTP_201_CREATED)
def record_donation(payload: DonationCreate, store: ResourceStore = Depends(resource_store)):
    return store.create(ResourceKind.DONATION, payload.model_dump(exclude_unset=True))


@router.get("/{donation_id}", response_model=DonationRead)
def get_donation(donation_id: str, store: ResourceStore = Depends(resource_store)):
    record = store.get(ResourceKind.DONATION, donation_id)
    if not record:
        raise HTTPException(status_code=404, detail="Donation not found")
    return record


@router.patch("/{donation_id}", response_model=DonationRead)
def correct_donation(
    donation_id: str,
    payload: DonationUpdate,
    store: ResourceStore = Depends(resource_store),
):
    record = store.update(ResourceKind.DONATION, donation_id, payload.model_dump(exclude_unset=True))
    if not record:
        raise HTTPException(status_code=404, detail="Donation not found")
    return record


@router.delete("/{donation_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_donation(donation_id: str, store: ResourceStore = Depends(resource_store)):
    if not store.delete(ResourceKind.DONATION, donation_id):
        raise HTTPException(status_code=404, detail="Donation not found")

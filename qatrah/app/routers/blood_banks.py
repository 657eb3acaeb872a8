"""Blood bank endpoints. Reads are public."""
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, status

from ..deps import resource_store
from ..domain.models import BloodBankRead
from ..domain.policy import ResourceKind
from ..domain.schemas import BloodBankCreate, BloodBankUpdate
from ..services.store import ResourceStore

router = APIRouter()


@router.get("/", response_model=List[BloodBankRead])
def list_blood_banks(
    limit: int = Query(100, ge=1, le=500),
    store: ResourceStore = Depends(resource_store),
):
    return store.list(ResourceKind.BLOOD_BANK, limit=limit)


@router.post("/", response_model=BloodBankRead, status_code=status.HTTP_201_CREATED)
def create_blood_bank(payload: BloodBankCreate, store: ResourceStore = Depends(resource_store)):
    return store.create(ResourceKind.BLOOD_BANK, payload.model_dump(exclude_unset=True))


@router.get("/{bank_id}", response_model=BloodBankRead)
def get_blood_bank(bank_id: str, store: ResourceStore = Depends(resource_store)):
    record = store.get(ResourceKind.BLOOD_BANK, bank_id)
    if not record:
        raise HTTPException(status_code=404, detail="Blood bank not found")
    return record


@router.patch("/{bank_id}", response_model=BloodBankRead)
def update_blood_bank(
    bank_id: str,
    payload: BloodBankUpdate,
    store: ResourceStore = Depends(resource_store),
):
    record = store.update(ResourceKind.BLOOD_BANK, bank_id, payload.model_dump(exclude_unset=True))
    if not record:
        raise HTTPException(status_code=404, detail="Blood bank not found")
    return record


@router.delete("/{bank_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_blood_bank(bank_id: str, store: ResourceStore = Depends(resource_store)):
    if not store.delete(ResourceKind.BLOOD_BANK, bank_id):
        raise HTTPException(status_code=404, detail="Blood bank not found")

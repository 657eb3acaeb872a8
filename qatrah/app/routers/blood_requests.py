"""Blood request endpoints."""
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from ..deps import resource_store
from ..domain.models import BloodGroup, BloodRequestRead, RequestStatus
from ..domain.policy import ResourceKind
from ..domain.schemas import BloodRequestCreate, BloodRequestUpdate
from ..services.store import ResourceStore

router = APIRouter()


@router.get("/", response_model=List[BloodRequestRead])
def list_blood_requests(
    status_filter: Optional[RequestStatus] = Query(None, alias="status"),
    blood_group: Optional[BloodGroup] = Query(None),
    requester_uid: Optional[str] = Query(None),
    limit: int = Query(100, ge=1, le=500),
    store: ResourceStore = Depends(resource_store),
):
    return store.list(
        ResourceKind.BLOOD_REQUEST,
        limit=limit,
        status=status_filter,
        required_blood_group=blood_group,
        requester_uid=requester_uid,
    )


@router.post("/", response_model=BloodRequestRead, status_code=status.HTTP_201_CREATED)
def create_blood_request(payload: BloodRequestCreate, store: ResourceStore = Depends(resource_store)):
    fields = payload.model_dump(exclude_unset=True)
    if not fields.get("requester_uid"):
        fields["requester_uid"] = store.context.subject_id
    return store.create(ResourceKind.BLOOD_REQUEST, fields)


@router.get("/{request_id}", response_model=BloodRequestRead)
def get_blood_request(request_id: str, store: ResourceStore = Depends(resource_store)):
    record = store.get(ResourceKind.BLOOD_REQUEST, request_id)
    if not record:
        raise HTTPException(status_code=404, detail="Blood request not found")
    return record


@router.patch("/{request_id}", response_model=BloodRequestRead)
def update_blood_request(
    request_id: str,
    payload: BloodRequestUpdate,
    store: ResourceStore = Depends(resource_store),
):
    record = store.update(ResourceKind.BLOOD_REQUEST, request_id, payload.model_dump(exclude_unset=True))
    if not record:
        raise HTTPException(status_code=404, detail="Blood request not found")
    return record


@router.delete("/{request_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_blood_request(request_id: str, store: ResourceStore = Depends(resource_store)):
    if not store.delete(ResourceKind.BLOOD_REQUEST, request_id):
        raise HTTPException(status_code=404, detail="Blood request not found")

"""Campaign endpoints. Reads are public."""
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from ..deps import resource_store
from ..domain.models import CampaignRead, CampaignStatus
from ..domain.policy import ResourceKind
from ..domain.schemas import CampaignCreate, CampaignUpdate
from ..services.store import ResourceStore

router = APIRouter()


@router.get("/", response_model=List[CampaignRead])
def list_campaigns(
    status_filter: Optional[CampaignStatus] = Query(None, alias="status"),
    limit: int = Query(100, ge=1, le=500),
    store: ResourceStore = Depends(resource_store),
):
    return store.list(ResourceKind.CAMPAIGN, limit=limit, status=status_filter)


@router.post("/", response_model=CampaignRead, status_code=status.HTTP_201_CREATED)
def create_campaign(payload: CampaignCreate, store: ResourceStore = Depends(resource_store)):
    return store.create(ResourceKind.CAMPAIGN, payload.model_dump(exclude_unset=True))


@router.get("/{campaign_id}", response_model=CampaignRead)
def get_campaign(campaign_id: str, store: ResourceStore = Depends(resource_store)):
    record = store.get(ResourceKind.CAMPAIGN, campaign_id)
    if not record:
        raise HTTPException(status_code=404, detail="Campaign not found")
    return record


@router.patch("/{campaign_id}", response_model=CampaignRead)
def update_campaign(
    campaign_id: str,
    payload: CampaignUpdate,
    store: ResourceStore = Depends(resource_store),
):
    record = store.update(ResourceKind.CAMPAIGN, campaign_id, payload.model_dump(exclude_unset=True))
    if not record:
        raise HTTPException(status_code=404, detail="Campaign not found")
    return record


@router.delete("/{campaign_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_campaign(campaign_id: str, store: ResourceStore = Depends(resource_store)):
    if not store.delete(ResourceKind.CAMPAIGN, campaign_id):
        raise HTTPException(status_code=404, detail="Campaign not found")

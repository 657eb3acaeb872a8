"""User profile endpoints."""
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from ..deps import resource_store
from ..domain.models import UserRead, UserRole
from ..domain.policy import ResourceKind
from ..domain.schemas import UserCreate, UserUpdate
from ..services.store import ResourceStore

router = APIRouter()


@router.get("/", response_model=List[UserRead])
def list_users(
    role: Optional[UserRole] = Query(None),
    limit: int = Query(100, ge=1, le=500),
    store: ResourceStore = Depends(resource_store),
):
    return store.list(ResourceKind.USER, limit=limit, role=role)


@router.get("/me", response_model=UserRead)
def get_me(store: ResourceStore = Depends(resource_store)):
    if store.context.is_anonymous:
        raise HTTPException(status_code=401, detail="not_authenticated")
    record = store.get(ResourceKind.USER, store.context.subject_id)
    if not record:
        raise HTTPException(status_code=404, detail="Profile not found")
    return record


@router.post("/", response_model=UserRead, status_code=status.HTTP_201_CREATED)
def create_user(payload: UserCreate, store: ResourceStore = Depends(resource_store)):
    fields = payload.model_dump(exclude_unset=True)
    fields["role"] = payload.role
    if not fields.get("uid"):
        fields["uid"] = store.context.subject_id
    return store.create(ResourceKind.USER, fields)


@router.get("/{uid}", response_model=UserRead)
def get_user(uid: str, store: ResourceStore = Depends(resource_store)):
    record = store.get(ResourceKind.USER, uid)
    if not record:
        raise HTTPException(status_code=404, detail="User not found")
    return record


@router.patch("/{uid}", response_model=UserRead)
def update_user(uid: str, payload: UserUpdate, store: ResourceStore = Depends(resource_store)):
    record = store.update(ResourceKind.USER, uid, payload.model_dump(exclude_unset=True))
    if not record:
        raise HTTPException(status_code=404, detail="User not found")
    return record


@router.delete("/{uid}", status_code=status.HTTP_204_NO_CONTENT)
def delete_user(uid: str, store: ResourceStore = Depends(resource_store)):
    if not store.delete(ResourceKind.USER, uid):
        raise HTTPException(status_code=404, detail="User not found")

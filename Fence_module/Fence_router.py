import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from deps import get_db
from config import settings
from Login_module.Utils.auth_user import CurrentUser, get_current_user
from .Fence_schema import (
    FenceActionResponse,
    FenceCreateResponse,
    FenceData,
    FenceListResponse,
    FenceRequest,
)
from . import Fence_crud

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/dashboard/fences", tags=["Virtual Fences"])


@router.get("", response_model=FenceListResponse)
def get_fences(
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    fences = Fence_crud.list_fences(db, settings.DEFAULT_FARM_ID)
    return FenceListResponse(data=[FenceData.model_validate(f) for f in fences])


@router.post("", response_model=FenceCreateResponse, status_code=201)
def create_fence(
    body: FenceRequest,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    fence = Fence_crud.create_fence(
        db,
        farm_id=settings.DEFAULT_FARM_ID,
        created_by=current_user.id,
        **body.model_dump()
    )
    return FenceCreateResponse(message="Virtual fence created successfully", data={"id": fence.id})


@router.put("/{fence_id}", response_model=FenceActionResponse)
def update_fence(
    fence_id: int,
    body: FenceRequest,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    Fence_crud.update_fence(db, fence_id, settings.DEFAULT_FARM_ID, **body.model_dump())
    return FenceActionResponse(message="Virtual fence updated successfully")


@router.delete("/{fence_id}", response_model=FenceActionResponse)
def delete_fence(
    fence_id: int,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    Fence_crud.delete_fence(db, fence_id, settings.DEFAULT_FARM_ID)
    return FenceActionResponse(message="Virtual fence deleted successfully")

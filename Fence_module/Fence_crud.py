"""
Virtual fence CRUD operations
"""
import logging
import math
from typing import Optional

from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError

from .Fence_model import VirtualFence
from exceptions import NotFoundError, StorageError, ValidationError

logger = logging.getLogger(__name__)

MIN_RADIUS_METERS = 50
MAX_RADIUS_METERS = 10000


def validate_fence(center_latitude: float, center_longitude: float, radius_meters: float) -> None:
    """Bounds are inclusive. NaN and infinity fail every range."""
    if not math.isfinite(center_latitude) or center_latitude < -90 or center_latitude > 90:
        raise ValidationError("Latitude must be between -90 and 90")
    if not math.isfinite(center_longitude) or center_longitude < -180 or center_longitude > 180:
        raise ValidationError("Longitude must be between -180 and 180")
    if not math.isfinite(radius_meters) or radius_meters < MIN_RADIUS_METERS or radius_meters > MAX_RADIUS_METERS:
        raise ValidationError(f"Radius must be between {MIN_RADIUS_METERS} and {MAX_RADIUS_METERS} meters")


def list_fences(db: Session, farm_id: int) -> list[VirtualFence]:
    return db.query(VirtualFence).filter(VirtualFence.farm_id == farm_id).order_by(VirtualFence.id).all()


def count_active_fences(db: Session, farm_id: int) -> int:
    return db.query(VirtualFence).filter(VirtualFence.farm_id == farm_id, VirtualFence.is_active == True).count()


def get_fence_or_404(db: Session, fence_id: int, farm_id: int) -> VirtualFence:
    fence = (
        db.query(VirtualFence)
        .filter(VirtualFence.id == fence_id, VirtualFence.farm_id == farm_id)
        .first()
    )
    if not fence:
        raise NotFoundError("Virtual fence not found")
    return fence


def create_fence(
    db: Session,
    farm_id: int,
    name: str,
    center_latitude: float,
    center_longitude: float,
    radius_meters: float,
    description: Optional[str] = None,
    fence_type: Optional[str] = None,
    is_active: Optional[bool] = True,
    created_by: Optional[int] = None,
) -> VirtualFence:
    validate_fence(center_latitude, center_longitude, radius_meters)

    fence = VirtualFence(
        farm_id=farm_id,
        name=name,
        description=description or None,
        center_latitude=center_latitude,
        center_longitude=center_longitude,
        radius_meters=radius_meters,
        fence_type=fence_type or "custom",
        is_active=is_active is not False,
        created_by=created_by,
    )
    try:
        db.add(fence)
        db.commit()
        db.refresh(fence)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Failed to create virtual fence | name: {name} | Error: {str(e)}", exc_info=True)
        raise StorageError("Failed to create virtual fence", detail=str(e)) from e

    logger.info(f"Virtual fence created: id={fence.id}, radius={fence.radius_meters}m")
    return fence


def update_fence(
    db: Session,
    fence_id: int,
    farm_id: int,
    name: str,
    center_latitude: float,
    center_longitude: float,
    radius_meters: float,
    description: Optional[str] = None,
    fence_type: Optional[str] = None,
    is_active: Optional[bool] = True,
) -> VirtualFence:
    """Full replacement of the fence definition."""
    validate_fence(center_latitude, center_longitude, radius_meters)
    fence = get_fence_or_404(db, fence_id, farm_id)

    fence.name = name
    fence.description = description or None
    fence.center_latitude = center_latitude
    fence.center_longitude = center_longitude
    fence.radius_meters = radius_meters
    fence.fence_type = fence_type or "custom"
    fence.is_active = is_active is not False
    try:
        db.commit()
        db.refresh(fence)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Failed to update virtual fence {fence_id} | Error: {str(e)}", exc_info=True)
        raise StorageError("Failed to update virtual fence", detail=str(e)) from e
    return fence


def delete_fence(db: Session, fence_id: int, farm_id: int) -> None:
    fence = get_fence_or_404(db, fence_id, farm_id)
    try:
        db.delete(fence)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Failed to delete virtual fence {fence_id} | Error: {str(e)}", exc_info=True)
        raise StorageError("Failed to delete virtual fence", detail=str(e)) from e
    logger.info(f"Virtual fence deleted: id={fence_id}")

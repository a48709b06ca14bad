"""
Animal Router - herd management for the dashboard
"""
import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from deps import get_db
from config import settings
from Login_module.Utils.auth_user import CurrentUser, get_current_user
from Location_module.Location_ingest import ingest
from Location_module.Location_schema import IngestResponse, LocationReport
from .Animal_schema import (
    AnimalActionResponse,
    AnimalCreate,
    AnimalData,
    AnimalListResponse,
    AnimalResponse,
    AnimalUpdate,
)
from . import Animal_crud

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/dashboard/animals", tags=["Animals"])


@router.get("", response_model=AnimalListResponse)
def get_animals(
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    animals = Animal_crud.list_animals(db, settings.DEFAULT_FARM_ID)
    return AnimalListResponse(data=[AnimalData.model_validate(a) for a in animals])


@router.post("", response_model=AnimalResponse, status_code=201)
def add_animal(
    body: AnimalCreate,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    animal = Animal_crud.create_animal(db, farm_id=settings.DEFAULT_FARM_ID, **body.model_dump())
    return AnimalResponse(data=AnimalData.model_validate(animal))


@router.get("/{animal_id}", response_model=AnimalResponse)
def get_animal(
    animal_id: int,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    animal = Animal_crud.get_animal_or_404(db, animal_id)
    return AnimalResponse(data=AnimalData.model_validate(animal))


@router.put("/{animal_id}", response_model=AnimalResponse)
def update_animal(
    animal_id: int,
    body: AnimalUpdate,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    """Only fields present in the body are changed."""
    animal = Animal_crud.update_animal(db, animal_id, body.model_dump(exclude_unset=True))
    logger.info(f"Animal updated: id={animal_id} | user_id: {current_user.id}")
    return AnimalResponse(data=AnimalData.model_validate(animal))


@router.delete("/{animal_id}", response_model=AnimalActionResponse)
def delete_animal(
    animal_id: int,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    Animal_crud.deactivate_animal(db, animal_id)
    return AnimalActionResponse(message="Animal deleted")


@router.post("/{animal_id}/location", response_model=IngestResponse, status_code=201)
def update_animal_location(
    animal_id: int,
    report: LocationReport,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    """
    Record a manual position for an animal. Goes through the same pipeline as
    collar reports, so the live position and map subscribers are updated too.
    """
    Animal_crud.get_animal_or_404(db, animal_id)
    report = report.model_copy(update={"animal_id": animal_id, "update_id": None, "id": None})
    result = ingest(db, report)
    return IngestResponse(success=True, message="Location saved", id=result.id)

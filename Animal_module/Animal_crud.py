"""
Animal CRUD operations
"""
import logging
from typing import Optional

from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError

from .Animal_model import Animal
from exceptions import ConflictError, NotFoundError, StorageError, ValidationError

logger = logging.getLogger(__name__)


def list_animals(db: Session, farm_id: int) -> list[Animal]:
    """Active animals of the farm ordered by name."""
    return (
        db.query(Animal)
        .filter(Animal.farm_id == farm_id, Animal.is_active == True)
        .order_by(Animal.name)
        .all()
    )


def get_animal(db: Session, animal_id: int) -> Optional[Animal]:
    return db.query(Animal).filter(Animal.id == animal_id).first()


def get_animal_or_404(db: Session, animal_id: int) -> Animal:
    animal = get_animal(db, animal_id)
    if not animal:
        raise NotFoundError("Animal not found")
    return animal


def _ensure_tag_available(db: Session, tag_number: str, exclude_id: Optional[int] = None) -> None:
    q = db.query(Animal.id).filter(Animal.tag_number == tag_number)
    if exclude_id is not None:
        q = q.filter(Animal.id != exclude_id)
    if q.first():
        raise ConflictError("Tag number already exists")


def create_animal(
    db: Session,
    farm_id: int,
    name: str,
    tag_number: str,
    breed: Optional[str] = None,
    gender: Optional[str] = None,
    birth_date=None,
    notes: Optional[str] = None,
) -> Animal:
    _ensure_tag_available(db, tag_number)

    animal = Animal(
        farm_id=farm_id,
        name=name,
        tag_number=tag_number,
        breed=breed or None,
        gender=gender or "female",
        birth_date=birth_date,
        notes=notes or None,
    )
    try:
        db.add(animal)
        db.commit()
        db.refresh(animal)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Failed to add animal | tag_number: {tag_number} | Error: {str(e)}", exc_info=True)
        raise StorageError("Failed to add animal", detail=str(e)) from e

    logger.info(f"Animal created: id={animal.id}, tag_number={animal.tag_number}")
    return animal


def update_animal(db: Session, animal_id: int, changes: dict) -> Animal:
    """Apply a partial update. Only keys present in `changes` are written."""
    animal = get_animal_or_404(db, animal_id)

    if not changes:
        raise ValidationError("No fields to update")

    if changes.get("tag_number"):
        _ensure_tag_available(db, changes["tag_number"], exclude_id=animal_id)

    for field, value in changes.items():
        setattr(animal, field, value)

    try:
        db.commit()
        db.refresh(animal)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Failed to update animal {animal_id} | Error: {str(e)}", exc_info=True)
        raise StorageError("Failed to update animal", detail=str(e)) from e
    return animal


def deactivate_animal(db: Session, animal_id: int) -> Animal:
    """Soft delete: the row stays so history and alerts keep their references."""
    animal = get_animal_or_404(db, animal_id)
    animal.is_active = False
    try:
        db.commit()
        db.refresh(animal)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Failed to delete animal {animal_id} | Error: {str(e)}", exc_info=True)
        raise StorageError("Failed to delete animal", detail=str(e)) from e
    logger.info(f"Animal deactivated: id={animal_id}")
    return animal

"""
Location CRUD operations - animal_locations history and current_locations upserts
"""
import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError, IntegrityError

from .Location_model import AnimalLocation, CurrentLocation
from Animal_module.Animal_model import Animal
from config import UNATTRIBUTED_ANIMAL_ID
from exceptions import NotFoundError, StorageError
from Login_module.Utils.datetime_utils import now_utc, to_utc, to_utc_isoformat

logger = logging.getLogger(__name__)

# Fields mirrored from a report into current_locations on every upsert
CURRENT_FIELDS = (
    "latitude",
    "longitude",
    "recorded_at",
    "battery_level",
    "signal_quality",
    "temperature_celsius",
)


def entity_key_for(animal_id: Optional[int], collar_id: Optional[int]) -> str:
    """
    Key of the current_locations row a report belongs to.
    Animal identity wins over collar; neither means the raw-position row.
    """
    if animal_id:
        return f"animal:{animal_id}"
    if collar_id:
        return f"collar:{collar_id}"
    return f"animal:{UNATTRIBUTED_ANIMAL_ID}"


def _recorded_at(value: Optional[datetime]) -> datetime:
    """Device timestamps are stored as UTC; offsets are not kept by every backend."""
    return to_utc(value) if value else now_utc()


def insert_history(
    db: Session,
    latitude: float,
    longitude: float,
    animal_id: Optional[int] = None,
    collar_id: Optional[int] = None,
    altitude_meters: Optional[float] = None,
    accuracy_meters: Optional[float] = None,
    speed_kmh: Optional[float] = None,
    heading_degrees: Optional[float] = None,
    recorded_at: Optional[datetime] = None,
    battery_level: Optional[float] = None,
    signal_quality: Optional[float] = None,
    temperature_celsius: Optional[float] = None,
) -> AnimalLocation:
    """
    Append one row to animal_locations.
    recorded_at defaults to ingestion time when the device omits it.
    """
    record = AnimalLocation(
        animal_id=animal_id,
        collar_id=collar_id,
        latitude=float(latitude),
        longitude=float(longitude),
        altitude_meters=altitude_meters,
        accuracy_meters=accuracy_meters,
        speed_kmh=speed_kmh,
        heading_degrees=heading_degrees,
        recorded_at=_recorded_at(recorded_at),
        battery_level=battery_level,
        signal_quality=signal_quality,
        temperature_celsius=temperature_celsius,
    )
    try:
        db.add(record)
        db.commit()
        db.refresh(record)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(
            f"Failed to insert animal location | animal_id: {animal_id} | collar_id: {collar_id} | "
            f"Error: {str(e)}",
            exc_info=True
        )
        raise StorageError("Database error", detail=str(e)) from e

    logger.info(
        f"Animal location saved | ID: {record.id} | animal_id: {animal_id} | collar_id: {collar_id}"
    )
    return record


def get_history(db: Session, location_id: int) -> Optional[AnimalLocation]:
    return db.query(AnimalLocation).filter(AnimalLocation.id == location_id).first()


def correct_history(
    db: Session,
    record: AnimalLocation,
    latitude: float,
    longitude: float,
    altitude_meters: Optional[float] = None,
    accuracy_meters: Optional[float] = None,
    speed_kmh: Optional[float] = None,
    heading_degrees: Optional[float] = None,
    recorded_at: Optional[datetime] = None,
    battery_level: Optional[float] = None,
    signal_quality: Optional[float] = None,
    temperature_celsius: Optional[float] = None,
) -> AnimalLocation:
    """
    Overwrite an existing history row in place. This is the only mutation history allows.
    Identity (animal_id/collar_id) is never changed here.
    """
    record.latitude = float(latitude)
    record.longitude = float(longitude)
    record.altitude_meters = altitude_meters
    record.accuracy_meters = accuracy_meters
    record.speed_kmh = speed_kmh
    record.heading_degrees = heading_degrees
    record.recorded_at = _recorded_at(recorded_at)
    record.battery_level = battery_level
    record.signal_quality = signal_quality
    record.temperature_celsius = temperature_celsius

    try:
        db.commit()
        db.refresh(record)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Failed to update animal location {record.id} | Error: {str(e)}", exc_info=True)
        raise StorageError("Failed to update animal_locations", detail=str(e)) from e

    logger.info(f"Animal location corrected | ID: {record.id}")
    return record


def get_history_or_404(db: Session, location_id: int) -> AnimalLocation:
    record = get_history(db, location_id)
    if record is None:
        raise NotFoundError("GPS record not found")
    return record


def _apply_current_fields(row: CurrentLocation, values: dict) -> None:
    for field in CURRENT_FIELDS:
        setattr(row, field, values[field])


def upsert_current_location(
    db: Session,
    animal_id: Optional[int],
    collar_id: Optional[int],
    latitude: float,
    longitude: float,
    recorded_at: Optional[datetime] = None,
    battery_level: Optional[float] = None,
    signal_quality: Optional[float] = None,
    temperature_celsius: Optional[float] = None,
) -> CurrentLocation:
    """
    Insert the current_locations row for the entity, or overwrite its position fields.
    Concurrent writers for the same key resolve last-write-wins.
    """
    key = entity_key_for(animal_id, collar_id)
    values = {
        "latitude": float(latitude),
        "longitude": float(longitude),
        "recorded_at": _recorded_at(recorded_at),
        "battery_level": battery_level,
        "signal_quality": signal_quality,
        "temperature_celsius": temperature_celsius,
    }

    try:
        row = db.query(CurrentLocation).filter(CurrentLocation.entity_key == key).first()
        if row:
            _apply_current_fields(row, values)
            db.commit()
            db.refresh(row)
            return row

        if animal_id:
            stored_animal_id = animal_id
        elif collar_id:
            stored_animal_id = None
        else:
            stored_animal_id = UNATTRIBUTED_ANIMAL_ID

        try:
            row = CurrentLocation(
                entity_key=key,
                animal_id=stored_animal_id,
                collar_id=collar_id or None,
                **values
            )
            db.add(row)
            db.commit()
            db.refresh(row)
            return row
        except IntegrityError:
            # Another request inserted the same key first: overwrite it instead
            db.rollback()
            row = db.query(CurrentLocation).filter(CurrentLocation.entity_key == key).first()
            if not row:
                raise
            _apply_current_fields(row, values)
            db.commit()
            db.refresh(row)
            return row
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Failed to upsert current_locations | key: {key} | Error: {str(e)}", exc_info=True)
        raise StorageError("Failed to update current location", detail=str(e)) from e


def _current_query(db: Session):
    return (
        db.query(CurrentLocation, Animal.name, Animal.tag_number)
        .outerjoin(Animal, Animal.id == CurrentLocation.animal_id)
        .filter(CurrentLocation.latitude.isnot(None), CurrentLocation.longitude.isnot(None))
    )


def current_location_to_dict(row: CurrentLocation, animal_name=None, tag_number=None) -> dict:
    return {
        "animal_id": row.animal_id,
        "collar_id": row.collar_id,
        "latitude": row.latitude,
        "longitude": row.longitude,
        "recorded_at": to_utc_isoformat(row.recorded_at),
        "battery_level": row.battery_level,
        "signal_quality": row.signal_quality,
        "temperature_celsius": row.temperature_celsius,
        "animal_name": animal_name,
        "tag_number": tag_number,
    }


def history_to_dict(record: AnimalLocation) -> dict:
    return {
        "id": record.id,
        "animal_id": record.animal_id,
        "collar_id": record.collar_id,
        "latitude": record.latitude,
        "longitude": record.longitude,
        "altitude_meters": record.altitude_meters,
        "accuracy_meters": record.accuracy_meters,
        "speed_kmh": record.speed_kmh,
        "heading_degrees": record.heading_degrees,
        "recorded_at": to_utc_isoformat(record.recorded_at),
        "battery_level": record.battery_level,
        "signal_quality": record.signal_quality,
        "temperature_celsius": record.temperature_celsius,
    }


def get_current_location(
    db: Session,
    animal_id: Optional[int] = None,
    collar_id: Optional[int] = None,
) -> Optional[dict]:
    """
    Latest position for an animal or collar. With neither given, returns the raw
    (unattributed) position row.
    """
    q = _current_query(db)
    if animal_id is not None:
        q = q.filter(CurrentLocation.animal_id == animal_id)
    elif collar_id is not None:
        # A collar can own both its animal:<id> and collar:<id> rows; newest position wins
        q = q.filter(CurrentLocation.collar_id == collar_id).order_by(
            CurrentLocation.recorded_at.desc(), CurrentLocation.id.desc()
        )
    else:
        q = q.filter(CurrentLocation.entity_key == entity_key_for(None, None))

    result = q.first()
    if not result:
        return None
    row, animal_name, tag_number = result
    return current_location_to_dict(row, animal_name, tag_number)


def list_markers(db: Session) -> list[dict]:
    """All current positions with coordinates, joined with animal name/tag for map markers."""
    return [
        current_location_to_dict(row, animal_name, tag_number)
        for row, animal_name, tag_number in _current_query(db).all()
    ]


def list_farm_locations(db: Session, farm_id: int) -> list[dict]:
    """
    Latest per-animal positions for a farm. Falls back to history rows
    when no current positions have been recorded yet.
    """
    current_rows = (
        db.query(CurrentLocation, Animal.name, Animal.tag_number)
        .join(Animal, Animal.id == CurrentLocation.animal_id)
        .filter(Animal.farm_id == farm_id)
        .order_by(CurrentLocation.recorded_at.desc())
        .all()
    )
    if current_rows:
        return [current_location_to_dict(row, name, tag) for row, name, tag in current_rows]

    history_rows = (
        db.query(AnimalLocation)
        .join(Animal, Animal.id == AnimalLocation.animal_id)
        .filter(Animal.farm_id == farm_id)
        .order_by(AnimalLocation.recorded_at.desc())
        .all()
    )
    return [history_to_dict(record) for record in history_rows]


def _history_query(db: Session, animal_id: Optional[int] = None, collar_id: Optional[int] = None):
    q = db.query(AnimalLocation)
    if animal_id is not None:
        q = q.filter(AnimalLocation.animal_id == animal_id)
    if collar_id is not None:
        q = q.filter(AnimalLocation.collar_id == collar_id)
    return q


def list_history(
    db: Session,
    animal_id: Optional[int] = None,
    collar_id: Optional[int] = None,
    limit: int = 100,
) -> list[AnimalLocation]:
    """History rows, newest first."""
    return (
        _history_query(db, animal_id, collar_id)
        .order_by(AnimalLocation.recorded_at.desc(), AnimalLocation.id.desc())
        .limit(limit)
        .all()
    )


def count_history(db: Session, animal_id: Optional[int] = None, collar_id: Optional[int] = None) -> int:
    return _history_query(db, animal_id, collar_id).with_entities(func.count(AnimalLocation.id)).scalar() or 0


def count_reporting_collars(db: Session) -> int:
    """Distinct collars with a current position."""
    return (
        db.query(func.count(func.distinct(CurrentLocation.collar_id)))
        .filter(CurrentLocation.collar_id.isnot(None))
        .scalar()
        or 0
    )

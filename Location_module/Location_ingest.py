"""
GPS ingestion pipeline.

Routes a report to the right table(s), performs the history + current dual write
and publishes a live update:

1. update_id/id present -> correct that history row in place, then upsert current
2. no coordinates       -> ValidationError
3. animal/collar given  -> append history, then upsert current
4. otherwise            -> upsert the raw-position current row only

The two writes are not a transaction. History is the primary write: its failure
fails the call. A failed current upsert after a durable history write only leaves
the live position stale, so it is logged and the call still succeeds.
"""
import logging
from typing import Any, Callable, Optional, Tuple

from sqlalchemy.orm import Session

from . import Location_crud
from .Location_events import LocationEventBus, get_event_bus
from .Location_model import AnimalLocation, CurrentLocation
from .Location_schema import IngestResult, LiveUpdate, LocationReport
from exceptions import ConflictError, ValidationError

logger = logging.getLogger(__name__)


def _best_effort(description: str, fn: Callable[..., Any], *args, **kwargs) -> Tuple[bool, Any]:
    """
    Boundary for secondary side effects (current upsert after history, live publish).
    Errors are logged and discarded here and nowhere else in the pipeline.
    """
    try:
        return True, fn(*args, **kwargs)
    except Exception as e:
        logger.warning(f"{description} failed (non-fatal) | Error: {str(e)}")
        return False, None


def _live_update(row: CurrentLocation) -> LiveUpdate:
    return LiveUpdate(
        animal_id=row.animal_id,
        collar_id=row.collar_id,
        latitude=row.latitude,
        longitude=row.longitude,
        recorded_at=row.recorded_at,
        battery_level=row.battery_level,
        signal_quality=row.signal_quality,
        temperature_celsius=row.temperature_celsius,
    )


def _publish(bus: LocationEventBus, row: CurrentLocation) -> bool:
    ok, delivered = _best_effort("Live update publish", lambda: bus.publish(_live_update(row)))
    return bool(ok and delivered)


def _upsert_from_history(db: Session, record: AnimalLocation) -> Tuple[bool, Optional[CurrentLocation]]:
    """Mirror a durable history row into current_locations (secondary write)."""
    return _best_effort(
        "Current location upsert",
        Location_crud.upsert_current_location,
        db,
        animal_id=record.animal_id,
        collar_id=record.collar_id,
        latitude=record.latitude,
        longitude=record.longitude,
        recorded_at=record.recorded_at,
        battery_level=record.battery_level,
        signal_quality=record.signal_quality,
        temperature_celsius=record.temperature_celsius,
    )


def _history_fields(report: LocationReport) -> dict:
    return {
        "altitude_meters": report.altitude_meters,
        "accuracy_meters": report.accuracy_meters,
        "speed_kmh": report.speed_kmh,
        "heading_degrees": report.heading_degrees,
        "recorded_at": report.recorded_at,
        "battery_level": report.battery_level,
        "signal_quality": report.signal_quality,
        "temperature_celsius": report.temperature_celsius,
    }


def _reconcile(db: Session, record: AnimalLocation, bus: LocationEventBus, message: str) -> IngestResult:
    # Read before the secondary write: a rollback there expires the instance
    record_id, animal_id, collar_id = record.id, record.animal_id, record.collar_id

    current_ok, current = _upsert_from_history(db, record)
    published = _publish(bus, current) if current_ok else False
    if not current_ok:
        logger.warning(
            f"History row {record_id} saved but current location not updated | "
            f"animal_id: {animal_id} | collar_id: {collar_id}"
        )
    return IngestResult(id=record_id, message=message, current_updated=current_ok, published=published)


def _ingest_correction(db: Session, report: LocationReport, bus: LocationEventBus) -> IngestResult:
    record = Location_crud.get_history_or_404(db, report.correction_id)

    # A correction may fix a reading but not move it to another entity
    if report.animal_id is not None and report.animal_id != record.animal_id:
        raise ConflictError("Correction cannot change animal_id of an existing GPS record")
    if report.collar_id is not None and report.collar_id != record.collar_id:
        raise ConflictError("Correction cannot change collar_id of an existing GPS record")

    latitude = report.latitude if report.latitude is not None else record.latitude
    longitude = report.longitude if report.longitude is not None else record.longitude

    record = Location_crud.correct_history(
        db,
        record,
        latitude=latitude,
        longitude=longitude,
        **_history_fields(report)
    )
    return _reconcile(db, record, bus, "GPS record updated")


def _ingest_attributed(db: Session, report: LocationReport, bus: LocationEventBus) -> IngestResult:
    record = Location_crud.insert_history(
        db,
        latitude=report.latitude,
        longitude=report.longitude,
        animal_id=report.animal_id or None,
        collar_id=report.collar_id or None,
        **_history_fields(report)
    )
    return _reconcile(db, record, bus, "Animal location saved")


def _ingest_unattributed(db: Session, report: LocationReport, bus: LocationEventBus) -> IngestResult:
    # No history for raw points: the current upsert is the primary write and may raise
    row = Location_crud.upsert_current_location(
        db,
        animal_id=None,
        collar_id=None,
        latitude=report.latitude,
        longitude=report.longitude,
        recorded_at=report.recorded_at,
        battery_level=report.battery_level,
        signal_quality=report.signal_quality,
        temperature_celsius=report.temperature_celsius,
    )
    published = _publish(bus, row)
    return IngestResult(
        id=None,
        message="GPS coordinates saved (updated current location)",
        current_updated=True,
        published=published,
    )


def ingest(db: Session, report: LocationReport, bus: Optional[LocationEventBus] = None) -> IngestResult:
    """
    Ingest one GPS report.

    Raises:
        ValidationError: coordinates missing on a new report
        NotFoundError: correction for an unknown history id
        ConflictError: correction tries to change the row's animal/collar
        StorageError: the primary write failed
    """
    bus = bus or get_event_bus()

    if report.correction_id is not None:
        return _ingest_correction(db, report, bus)

    if not report.has_coordinates:
        raise ValidationError("Missing coordinates")

    if report.is_attributed:
        return _ingest_attributed(db, report, bus)

    return _ingest_unattributed(db, report, bus)

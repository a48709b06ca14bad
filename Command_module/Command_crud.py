"""
Command CRUD operations - enqueue, device poll and acknowledgement.
Expiry is a read-time predicate; every read path filters on expires_at.
"""
import logging
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError

from .Command_model import (
    DeviceCommand,
    COMMAND_TYPES,
    COMMAND_TYPE_CONTROL,
    COMMAND_TYPE_WIFI_UPDATE,
    STATUS_PENDING,
    STATUS_DELIVERED,
    STATUS_ACKNOWLEDGED,
    STATUS_EXPIRED,
)
from .Command_schema import RemoteConfigRequest
from config import settings
from exceptions import NotFoundError, StorageError, ValidationError
from Login_module.Utils.datetime_utils import now_utc, to_utc, to_utc_isoformat

logger = logging.getLogger(__name__)


def default_ttl(command_type: str) -> timedelta:
    """Control commands are short lived; wifi updates wait a day for the device to poll."""
    if command_type == COMMAND_TYPE_WIFI_UPDATE:
        return timedelta(hours=settings.WIFI_COMMAND_TTL_HOURS)
    return timedelta(hours=settings.CONTROL_COMMAND_TTL_HOURS)


def is_expired(command: DeviceCommand, now: Optional[datetime] = None) -> bool:
    return (now or now_utc()) > to_utc(command.expires_at)


def effective_status(command: DeviceCommand, now: Optional[datetime] = None) -> str:
    """Stored status, or 'expired' for an unacknowledged command past expires_at."""
    if command.status != STATUS_ACKNOWLEDGED and is_expired(command, now):
        return STATUS_EXPIRED
    return command.status


def _new_command(
    device_id: str,
    command_type: str,
    payload: Dict[str, Any],
    ttl: Optional[timedelta],
    now: datetime,
) -> DeviceCommand:
    if command_type not in COMMAND_TYPES:
        raise ValidationError(f"Unknown command type: {command_type}")
    if not device_id:
        raise ValidationError("device_id is required")

    return DeviceCommand(
        device_id=device_id,
        command_type=command_type,
        payload=payload,
        status=STATUS_PENDING,
        created_at=now,
        expires_at=now + (ttl if ttl is not None else default_ttl(command_type)),
    )


def _save_commands(db: Session, commands: List[DeviceCommand]) -> List[DeviceCommand]:
    try:
        db.add_all(commands)
        db.commit()
        for command in commands:
            db.refresh(command)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Failed to queue device command(s) | Error: {str(e)}", exc_info=True)
        raise StorageError("Failed to queue command", detail=str(e)) from e

    for command in commands:
        logger.info(
            f"Command queued | ID: {command.id} | device_id: {command.device_id} | "
            f"type: {command.command_type} | expires_at: {to_utc_isoformat(command.expires_at)}"
        )
    return commands


def enqueue(
    db: Session,
    device_id: str,
    command_type: str,
    payload: Dict[str, Any],
    ttl: Optional[timedelta] = None,
) -> DeviceCommand:
    """Queue one command in 'pending'. Several pending commands may coexist per device."""
    command = _new_command(device_id, command_type, payload, ttl, now_utc())
    return _save_commands(db, [command])[0]


def enqueue_remote_config(db: Session, request: RemoteConfigRequest) -> List[DeviceCommand]:
    """
    Split a remote-config request into a control and/or a wifi_update command.
    Wifi credentials are only ever stored in the device's command row, which expires.
    """
    if not request.has_control and not request.has_wifi:
        raise ValidationError("Nothing to send: provide sound, lights or wifi_ssid")

    now = now_utc()
    ttl = timedelta(hours=request.expires_hours) if request.expires_hours else None
    commands = []

    if request.has_control:
        payload = {}
        if request.sound is not None:
            payload["sound"] = request.sound
        if request.lights is not None:
            payload["lights"] = request.lights
        commands.append(_new_command(request.device_id, COMMAND_TYPE_CONTROL, payload, ttl, now))

    if request.has_wifi:
        payload = {"ssid": request.wifi_ssid, "password": request.wifi_password or ""}
        commands.append(_new_command(request.device_id, COMMAND_TYPE_WIFI_UPDATE, payload, ttl, now))

    return _save_commands(db, commands)


def _outstanding_query(db: Session, device_id: str, now: datetime):
    return db.query(DeviceCommand).filter(
        DeviceCommand.device_id == device_id,
        DeviceCommand.status != STATUS_ACKNOWLEDGED,
        DeviceCommand.expires_at > now,
    )


def poll(db: Session, device_id: str) -> List[DeviceCommand]:
    """
    Commands the device still has to act on: not acknowledged and not expired.
    Pending ones are marked delivered; delivered ones keep being returned until acknowledged.
    """
    now = now_utc()
    commands = _outstanding_query(db, device_id, now).order_by(DeviceCommand.id).all()

    newly_delivered = [c for c in commands if c.status == STATUS_PENDING]
    if newly_delivered:
        for command in newly_delivered:
            command.status = STATUS_DELIVERED
            command.delivered_at = now
        try:
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Failed to mark commands delivered | device_id: {device_id} | Error: {str(e)}", exc_info=True)
            raise StorageError("Failed to load commands", detail=str(e)) from e

    logger.info(f"Commands polled | device_id: {device_id} | count: {len(commands)} | new: {len(newly_delivered)}")
    return commands


def count_pending(db: Session, device_id: str) -> int:
    """Outstanding (pending or delivered) commands; expired ones are not counted."""
    return _outstanding_query(db, device_id, now_utc()).count()


def get_command(db: Session, command_id: int) -> Optional[DeviceCommand]:
    return db.query(DeviceCommand).filter(DeviceCommand.id == command_id).first()


def get_command_or_404(db: Session, command_id: int) -> DeviceCommand:
    command = get_command(db, command_id)
    if not command:
        raise NotFoundError("Command not found")
    return command


def acknowledge(db: Session, command_id: int, status: Optional[str] = None) -> DeviceCommand:
    """
    Mark a command acknowledged. Acknowledging twice is a successful no-op.
    An expired, unacknowledged command is terminal and reported as not found.
    """
    command = get_command_or_404(db, command_id)

    if command.status == STATUS_ACKNOWLEDGED:
        logger.info(f"Command already acknowledged | ID: {command_id}")
        return command

    now = now_utc()
    if is_expired(command, now):
        logger.warning(f"Acknowledgement for expired command rejected | ID: {command_id}")
        raise NotFoundError("Command not found or expired")

    command.status = STATUS_ACKNOWLEDGED
    command.ack_status = (status or "ok")[:64]
    command.acknowledged_at = now
    try:
        db.commit()
        db.refresh(command)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Failed to acknowledge command {command_id} | Error: {str(e)}", exc_info=True)
        raise StorageError("Failed to acknowledge command", detail=str(e)) from e

    logger.info(f"Command acknowledged | ID: {command_id} | device_id: {command.device_id} | status: {command.ack_status}")
    return command


def _masked_payload(command: DeviceCommand) -> Dict[str, Any]:
    payload = dict(command.payload or {})
    if command.command_type == COMMAND_TYPE_WIFI_UPDATE and payload.get("password"):
        payload["password"] = "********"
    return payload


def command_to_dict(command: DeviceCommand) -> Dict[str, Any]:
    """Operator view of a command; wifi passwords are masked."""
    return {
        "id": command.id,
        "device_id": command.device_id,
        "command_type": command.command_type,
        "payload": _masked_payload(command),
        "status": effective_status(command),
        "ack_status": command.ack_status,
        "created_at": to_utc_isoformat(command.created_at),
        "expires_at": to_utc_isoformat(command.expires_at),
        "delivered_at": to_utc_isoformat(command.delivered_at),
        "acknowledged_at": to_utc_isoformat(command.acknowledged_at),
    }

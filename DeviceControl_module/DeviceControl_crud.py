import logging
from typing import Optional

from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError, IntegrityError

from .DeviceControl_model import DeviceControl
from config import SYSTEM_ENABLED_KEY, DEFAULT_CONTROL_STATE
from exceptions import StorageError

logger = logging.getLogger(__name__)

STATE_ON = "on"
STATE_OFF = "off"


def normalize_state(value: Optional[str]) -> str:
    return STATE_OFF if value is not None and str(value).strip().lower() == STATE_OFF else STATE_ON


def get_control_state(db: Session, key: str = SYSTEM_ENABLED_KEY) -> str:
    row = db.query(DeviceControl).filter(DeviceControl.control_key == key).first()
    if row is None or row.control_value is None:
        return DEFAULT_CONTROL_STATE
    return normalize_state(row.control_value)


def set_control_state(db: Session, state: Optional[str], key: str = SYSTEM_ENABLED_KEY) -> str:
    """Upsert the switch. Returns the stored state."""
    value = normalize_state(state)
    try:
        row = db.query(DeviceControl).filter(DeviceControl.control_key == key).first()
        if row is None:
            try:
                db.add(DeviceControl(control_key=key, control_value=value))
                db.commit()
            except IntegrityError:
                db.rollback()
                row = db.query(DeviceControl).filter(DeviceControl.control_key == key).one()
        if row is not None:
            row.control_value = value
            db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Failed to set control state | key: {key} | Error: {str(e)}", exc_info=True)
        raise StorageError("Failed to set control state", detail=str(e)) from e

    logger.info(f"Device control updated | {key} = {value}")
    return value

"""
Alert CRUD operations - device alert intake and the dashboard alert lifecycle
"""
import logging
from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError

from .Alert_model import (
    Alert,
    ALERT_STATUSES,
    ALERT_STATUS_ACTIVE,
    ALERT_STATUS_ACKNOWLEDGED,
    ALERT_STATUS_RESOLVED,
    MAX_ALERT_TYPE,
    MAX_SEVERITY,
    MAX_TITLE,
)
from . import email_service
from config import settings
from exceptions import ForbiddenError, NotFoundError, StorageError
from Login_module.Utils.auth_user import CurrentUser
from Login_module.Utils.datetime_utils import now_utc, to_utc, to_utc_isoformat

logger = logging.getLogger(__name__)


def _truncate(value: str, limit: int, field: str) -> str:
    if len(value) > limit:
        logger.warning(f"Truncated {field} from {len(value)} to {limit}")
        return value[:limit]
    return value


def _to_int(payload: Dict[str, Any], key: str) -> Optional[int]:
    value = payload.get(key)
    if value in (None, ""):
        return None
    try:
        return int(float(value))
    except (TypeError, ValueError):
        logger.warning(f"Ignoring non-numeric alert field {key}={value!r}")
        return None


def _to_float(payload: Dict[str, Any], *keys: str) -> Optional[float]:
    for key in keys:
        value = payload.get(key)
        if value in (None, ""):
            continue
        try:
            return float(value)
        except (TypeError, ValueError):
            logger.warning(f"Ignoring non-numeric alert field {key}={value!r}")
            return None
    return None


def _to_bool(value: Any, default: bool = True) -> bool:
    if value is None or value == "":
        return default
    if isinstance(value, str):
        return value.strip().lower() not in ("0", "false", "no", "off")
    return bool(value)


def _parse_triggered_at(value: Any) -> datetime:
    if isinstance(value, datetime):
        return to_utc(value)
    if value:
        try:
            return to_utc(datetime.fromisoformat(str(value).replace("Z", "+00:00")))
        except ValueError:
            logger.warning(f"Ignoring unparseable triggered_at={value!r}")
    return now_utc()


def build_alert(payload: Dict[str, Any]) -> Alert:
    """
    Map a free-form device payload onto an Alert row.
    Devices send short query strings (alert, distance, motion, lat, lon) or full JSON.
    """
    title = str(payload.get("alert") or payload.get("title") or "Device Alert")
    message = payload.get("message") or (
        f"distance={payload.get('distance') or ''} motion={payload.get('motion') or ''}"
    )
    status = str(payload.get("status") or ALERT_STATUS_ACTIVE)
    if status not in ALERT_STATUSES:
        logger.warning(f"Unknown alert status {status!r}, storing as active")
        status = ALERT_STATUS_ACTIVE

    alert_data = payload.get("alert_data")

    return Alert(
        farm_id=_to_int(payload, "farm_id") or settings.DEFAULT_FARM_ID,
        animal_id=_to_int(payload, "animal_id"),
        collar_id=_to_int(payload, "collar_id"),
        fence_id=_to_int(payload, "fence_id"),
        alert_type=_truncate(str(payload.get("alert_type") or "device"), MAX_ALERT_TYPE, "alert_type"),
        severity=_truncate(str(payload.get("severity") or "medium"), MAX_SEVERITY, "severity"),
        title=_truncate(title, MAX_TITLE, "title"),
        message=str(message),
        alert_data=str(alert_data) if alert_data is not None else None,
        location_latitude=_to_float(payload, "lat", "location_latitude"),
        location_longitude=_to_float(payload, "lon", "location_longitude"),
        triggered_at=_parse_triggered_at(payload.get("triggered_at")),
        status=status,
        auto_generated=_to_bool(payload.get("auto_generated")),
    )


def record_alert(db: Session, payload: Dict[str, Any]) -> Alert:
    """
    Store a device alert, then try to e-mail it.
    The e-mail result never changes the outcome of the call.
    """
    alert = build_alert(payload)
    try:
        db.add(alert)
        db.commit()
        db.refresh(alert)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Failed to insert alert | title: {alert.title} | Error: {str(e)}", exc_info=True)
        raise StorageError("Failed to insert alert", detail=str(e)) from e

    logger.info(
        f"Alert recorded | ID: {alert.id} | farm_id: {alert.farm_id} | type: {alert.alert_type} | "
        f"severity: {alert.severity}"
    )
    email_service.send_alert_email(alert)
    return alert


def list_alerts(db: Session, farm_id: int, status: Optional[str] = None, limit: Optional[int] = None) -> list[Alert]:
    """Alerts of a farm, newest first."""
    q = db.query(Alert).filter(Alert.farm_id == farm_id)
    if status:
        q = q.filter(Alert.status == status)
    q = q.order_by(Alert.triggered_at.desc(), Alert.id.desc())
    if limit:
        q = q.limit(limit)
    return q.all()


def count_active_alerts(db: Session, farm_id: int) -> int:
    return db.query(Alert).filter(Alert.farm_id == farm_id, Alert.status == ALERT_STATUS_ACTIVE).count()


def get_alert_or_404(db: Session, alert_id: int) -> Alert:
    alert = db.query(Alert).filter(Alert.id == alert_id).first()
    if not alert:
        raise NotFoundError("Alert not found")
    return alert


def _commit(db: Session, alert: Alert, action: str) -> Alert:
    try:
        db.commit()
        db.refresh(alert)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Failed to {action} alert {alert.id} | Error: {str(e)}", exc_info=True)
        raise StorageError(f"Failed to {action} alert", detail=str(e)) from e
    return alert


def acknowledge_alert(db: Session, alert_id: int, actor_id: Optional[int] = None) -> Alert:
    """active -> acknowledged. Already acknowledged or resolved alerts are left untouched."""
    alert = get_alert_or_404(db, alert_id)
    if alert.status != ALERT_STATUS_ACTIVE:
        logger.info(f"Alert {alert_id} not acknowledged: status is {alert.status}")
        return alert

    alert.status = ALERT_STATUS_ACKNOWLEDGED
    alert.acknowledged_at = now_utc()
    alert.acknowledged_by = actor_id
    _commit(db, alert, "acknowledge")
    logger.info(f"Alert acknowledged | ID: {alert_id} | user_id: {actor_id}")
    return alert


def resolve_alert(db: Session, alert_id: int, actor_id: Optional[int] = None) -> Alert:
    alert = get_alert_or_404(db, alert_id)
    if alert.status == ALERT_STATUS_RESOLVED:
        return alert

    alert.status = ALERT_STATUS_RESOLVED
    alert.resolved_at = now_utc()
    alert.resolved_by = actor_id
    _commit(db, alert, "resolve")
    logger.info(f"Alert resolved | ID: {alert_id} | user_id: {actor_id}")
    return alert


def can_clear_alerts(user: Optional[CurrentUser]) -> bool:
    if user is not None and user.is_admin:
        return True
    return settings.DEV_ALLOW_TRUNCATE and not settings.is_production


def clear_alerts(db: Session, user: Optional[CurrentUser]) -> int:
    """Delete every alert. Admins only, or DEV_ALLOW_TRUNCATE outside production."""
    if not can_clear_alerts(user):
        raise ForbiddenError("Forbidden: admin only")

    try:
        deleted = db.query(Alert).delete(synchronize_session=False)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Failed to clear alerts | Error: {str(e)}", exc_info=True)
        raise StorageError("Failed to clear alerts", detail=str(e)) from e

    logger.warning(f"All alerts cleared | count: {deleted} | user_id: {user.id if user else None}")
    return deleted


def alert_to_dict(alert: Alert) -> Dict[str, Any]:
    return {
        "id": alert.id,
        "animal_id": alert.animal_id,
        "collar_id": alert.collar_id,
        "fence_id": alert.fence_id,
        "alert_type": alert.alert_type,
        "severity": alert.severity,
        "title": alert.title,
        "message": alert.message,
        "status": alert.status,
        "timestamp": to_utc_isoformat(alert.triggered_at),
        "location_latitude": alert.location_latitude,
        "location_longitude": alert.location_longitude,
        "acknowledged_at": to_utc_isoformat(alert.acknowledged_at),
        "resolved_at": to_utc_isoformat(alert.resolved_at),
    }

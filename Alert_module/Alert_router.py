"""
Alert Router - device alert intake and dashboard alert management
"""
import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, Query, Request
from sqlalchemy.orm import Session

from deps import get_db
from config import settings
from Login_module.Utils.auth_user import CurrentUser, get_current_user
from .Alert_model import ALERT_STATUSES
from .Alert_schema import AlertActionResponse, AlertListResponse, AlertRecordedResponse
from . import Alert_crud

logger = logging.getLogger(__name__)

device_router = APIRouter(prefix="/device", tags=["Device Alerts"])
router = APIRouter(prefix="/dashboard/alerts", tags=["Alerts"])


@device_router.api_route("/alert", methods=["GET", "POST"], response_model=AlertRecordedResponse, status_code=201)
def report_alert(
    request: Request,
    body: Optional[Dict[str, Any]] = Body(None),
    db: Session = Depends(get_db),
):
    """
    Devices report alerts here. GET reads query parameters
    (alert, distance, motion, lat, lon...), POST reads a JSON object.
    """
    payload = body if request.method == "POST" and body else dict(request.query_params)
    alert = Alert_crud.record_alert(db, payload)
    return AlertRecordedResponse(success=True, message="Alert recorded", id=alert.id)


@device_router.get("/ping")
def ping():
    """Reachability check for devices (no DB)."""
    return {"success": True, "message": "device route is reachable"}


@router.get("", response_model=AlertListResponse)
def get_alerts(
    status: Optional[str] = Query(None, description=f"One of {', '.join(ALERT_STATUSES)}"),
    limit: Optional[int] = Query(None, ge=1, le=1000),
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    alerts = Alert_crud.list_alerts(db, settings.DEFAULT_FARM_ID, status=status, limit=limit)
    return AlertListResponse(data=[Alert_crud.alert_to_dict(a) for a in alerts])


@router.put("/{alert_id}/read", response_model=AlertActionResponse)
def mark_alert_read(
    alert_id: int,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    Alert_crud.acknowledge_alert(db, alert_id, actor_id=current_user.id)
    return AlertActionResponse(message="Alert marked as read")


@router.put("/{alert_id}/resolve", response_model=AlertActionResponse)
def resolve_alert(
    alert_id: int,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    Alert_crud.resolve_alert(db, alert_id, actor_id=current_user.id)
    return AlertActionResponse(message="Alert resolved")


@router.delete("", response_model=AlertActionResponse)
def clear_alerts(
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    """Delete all alerts. Admin only (or DEV_ALLOW_TRUNCATE outside production)."""
    deleted = Alert_crud.clear_alerts(db, current_user)
    return AlertActionResponse(message=f"Cleared {deleted} alert(s)")

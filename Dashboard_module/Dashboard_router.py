from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from deps import get_db
from config import settings
from Login_module.Utils.auth_user import CurrentUser, get_current_user
from Location_module import Location_crud
from . import Dashboard_crud

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])


@router.get("/summary")
def get_summary(
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    """
    Counts for the dashboard cards plus the two latest active alerts.
    totalTowers counts active virtual fences.
    """
    return {"success": True, "data": Dashboard_crud.build_summary(db, settings.DEFAULT_FARM_ID)}


@router.get("/locations")
def get_locations(
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    """Latest position per animal, or recent history when no live positions exist yet."""
    return {"success": True, "data": Location_crud.list_farm_locations(db, settings.DEFAULT_FARM_ID)}

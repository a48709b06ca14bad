from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from deps import get_db
from .DeviceControl_schema import ControlStateRequest, ControlStateResponse
from . import DeviceControl_crud

router = APIRouter(prefix="/device", tags=["Device Control"])


@router.get("/control", response_model=ControlStateResponse)
def get_control(db: Session = Depends(get_db)):
    """Polled by devices: whether the system is switched on."""
    return ControlStateResponse(state=DeviceControl_crud.get_control_state(db))


@router.post("/control", response_model=ControlStateResponse)
def set_control(body: Optional[ControlStateRequest] = None, db: Session = Depends(get_db)):
    state = DeviceControl_crud.set_control_state(db, body.state if body else None)
    return ControlStateResponse(state=state)

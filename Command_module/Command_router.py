"""
Command Router - operator remote config and the device poll/ack protocol
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from deps import get_db
from Login_module.Utils.auth_user import CurrentUser, get_current_user
from .Command_schema import (
    AckRequest,
    AckResponse,
    CommandDetailResponse,
    PolledCommand,
    RemoteConfigRequest,
    RemoteConfigResponse,
)
from . import Command_crud

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Device Commands"])


@router.post("/settings/remote-config", response_model=RemoteConfigResponse, status_code=201)
def post_remote_config(
    body: RemoteConfigRequest,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    """
    Queue commands for a device. sound/lights become a control command,
    wifi_ssid/wifi_password become a wifi_update command. Requires auth.
    """
    commands = Command_crud.enqueue_remote_config(db, body)
    command_ids = [c.id for c in commands]
    logger.info(
        f"Remote config queued | device_id: {body.device_id} | command_ids: {command_ids} | "
        f"user_id: {current_user.id}"
    )
    return RemoteConfigResponse(
        success=True,
        message=f"{len(command_ids)} command(s) queued for device {body.device_id}",
        data={
            "command_ids": command_ids,
            "pending_count": Command_crud.count_pending(db, body.device_id),
        },
    )


@router.get("/commands", response_model=List[PolledCommand])
def get_commands(device_id: str = Query(..., min_length=1, max_length=128), db: Session = Depends(get_db)):
    """Polled by devices: pending, non-expired commands for device_id."""
    commands = Command_crud.poll(db, device_id.strip())
    return [
        PolledCommand(id=c.id, command_type=c.command_type, payload=c.payload or {})
        for c in commands
    ]


@router.post("/commands/{command_id}/ack", response_model=AckResponse)
def ack_command(command_id: int, body: Optional[AckRequest] = None, db: Session = Depends(get_db)):
    """Device acknowledgement. Idempotent."""
    Command_crud.acknowledge(db, command_id, body.status if body else None)
    return AckResponse(success=True)


@router.get("/commands/{command_id}", response_model=CommandDetailResponse)
def get_command(
    command_id: int,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    """Operator view of a command including its effective (possibly expired) status."""
    command = Command_crud.get_command_or_404(db, command_id)
    return CommandDetailResponse(data=Command_crud.command_to_dict(command))

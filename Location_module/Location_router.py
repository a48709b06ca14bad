"""
GPS Router - collar ingestion, current positions, map markers and live updates
"""
import asyncio
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect
from sqlalchemy.orm import Session

from deps import get_db
from config import settings
from .Location_schema import (
    CurrentLocationResponse,
    HistoryResponse,
    IngestResponse,
    LocationReport,
    MarkersResponse,
)
from .Location_ingest import ingest
from .Location_events import QueueSubscriber, get_event_bus
from . import Location_crud

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/gps", tags=["GPS"])


@router.post("", response_model=IngestResponse)
def post_gps(report: LocationReport, db: Session = Depends(get_db)):
    """
    Save a GPS point sent by a collar or gateway.

    - **animal_id / collar_id**: stored in history and mirrored to the current position
    - **neither**: only the raw current position row is updated
    - **update_id / id**: corrects that history row in place
    """
    result = ingest(db, report)
    logger.info(
        f"GPS report ingested | id: {result.id} | animal_id: {report.animal_id} | "
        f"collar_id: {report.collar_id} | current_updated: {result.current_updated} | "
        f"published: {result.published}"
    )
    return IngestResponse(success=True, message=result.message, id=result.id)


@router.get("", response_model=HistoryResponse)
def get_recent_points(limit: int = Query(100, ge=1, le=1000), db: Session = Depends(get_db)):
    """Most recent GPS history rows across all animals."""
    records = Location_crud.list_history(db, limit=limit)
    return HistoryResponse(data=[Location_crud.history_to_dict(r) for r in records])


@router.get("/markers", response_model=MarkersResponse)
def get_markers(db: Session = Depends(get_db)):
    """Current positions suitable for map markers."""
    return MarkersResponse(data=Location_crud.list_markers(db))


@router.get("/current", response_model=CurrentLocationResponse)
def get_current(
    animal_id: Optional[int] = None,
    collar_id: Optional[int] = None,
    db: Session = Depends(get_db),
):
    """
    Current position for ?animal_id= or ?collar_id=.
    Without either, returns the raw (unattributed) GPS position. data is null when none exists.
    """
    row = Location_crud.get_current_location(db, animal_id=animal_id, collar_id=collar_id)
    return CurrentLocationResponse(data=row)


@router.get("/history", response_model=HistoryResponse)
def get_history(
    animal_id: Optional[int] = None,
    collar_id: Optional[int] = None,
    limit: int = Query(100, ge=1, le=1000),
    db: Session = Depends(get_db),
):
    """GPS history for an animal or collar, newest first."""
    records = Location_crud.list_history(db, animal_id=animal_id, collar_id=collar_id, limit=limit)
    return HistoryResponse(data=[Location_crud.history_to_dict(r) for r in records])


@router.websocket("/ws")
async def gps_live_updates(websocket: WebSocket):
    """Streams every reconciled position as {"type": "location", "data": {...}}. Answers "ping" with pong."""
    bus = get_event_bus()
    subscriber = QueueSubscriber(asyncio.get_running_loop(), maxsize=settings.EVENT_QUEUE_SIZE)
    token = bus.subscribe(subscriber)

    async def send_updates():
        while True:
            event = await subscriber.queue.get()
            await websocket.send_json({"type": "location", "data": event.model_dump(mode="json")})

    async def receive_messages():
        while True:
            data = await websocket.receive_text()
            if data == "ping":
                await websocket.send_json({"type": "pong"})

    try:
        await websocket.accept()
        tasks = [asyncio.create_task(send_updates()), asyncio.create_task(receive_messages())]
        done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
        for task in pending:
            task.cancel()
        for task in done:
            exc = task.exception()
            if exc and not isinstance(exc, WebSocketDisconnect):
                logger.warning(f"Live update socket closed with error: {exc}")
    finally:
        bus.unsubscribe(token)
        if subscriber.dropped:
            logger.info(f"Live update socket closed | dropped events: {subscriber.dropped}")

from typing import Optional, List

from pydantic import BaseModel


class AlertRecordedResponse(BaseModel):
    """Response for device alert reports"""
    success: bool = True
    message: str = "Alert recorded"
    id: Optional[int] = None


class AlertItem(BaseModel):
    """Single alert in list response. Timestamps are UTC ISO strings."""
    id: int
    animal_id: Optional[int] = None
    collar_id: Optional[int] = None
    fence_id: Optional[int] = None
    alert_type: str
    severity: str
    title: str
    message: Optional[str] = None
    status: str
    timestamp: Optional[str] = None
    location_latitude: Optional[float] = None
    location_longitude: Optional[float] = None
    acknowledged_at: Optional[str] = None
    resolved_at: Optional[str] = None


class AlertListResponse(BaseModel):
    success: bool = True
    data: List[AlertItem] = []


class AlertActionResponse(BaseModel):
    success: bool = True
    message: str

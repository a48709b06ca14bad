"""
Location Schemas - Pydantic models for GPS ingestion and position queries
"""
from datetime import datetime
from typing import Optional, List

from pydantic import BaseModel, Field


class LocationReport(BaseModel):
    """
    GPS report sent by a collar or gateway.
    latitude/longitude are required unless update_id (or id) asks for a correction
    of an existing history row.
    """
    latitude: Optional[float] = Field(None, ge=-90, le=90, description="Latitude (-90 to 90)")
    longitude: Optional[float] = Field(None, ge=-180, le=180, description="Longitude (-180 to 180)")
    animal_id: Optional[int] = Field(None, ge=0, description="Animal the report belongs to")
    collar_id: Optional[int] = Field(None, ge=0, description="Collar that produced the report")
    altitude_meters: Optional[float] = None
    accuracy_meters: Optional[float] = Field(None, ge=0)
    speed_kmh: Optional[float] = Field(None, ge=0)
    heading_degrees: Optional[float] = None
    recorded_at: Optional[datetime] = Field(None, description="Device timestamp; defaults to ingestion time")
    battery_level: Optional[float] = None
    signal_quality: Optional[float] = None
    temperature_celsius: Optional[float] = None

    # Correction of an existing animal_locations row
    update_id: Optional[int] = Field(None, ge=1)
    id: Optional[int] = Field(None, ge=1)

    @property
    def correction_id(self) -> Optional[int]:
        return self.update_id or self.id

    @property
    def has_coordinates(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    @property
    def is_attributed(self) -> bool:
        return bool(self.animal_id) or bool(self.collar_id)

    class Config:
        json_schema_extra = {
            "example": {
                "latitude": 40.1,
                "longitude": -73.9,
                "animal_id": 7,
                "collar_id": 12,
                "battery_level": 87,
                "recorded_at": "2026-01-13T15:30:00Z",
            }
        }


class IngestResult(BaseModel):
    """Outcome of one ingest call. current_updated=False means history is ahead of the live position."""
    id: Optional[int] = None
    message: str
    current_updated: bool = False
    published: bool = False


class IngestResponse(BaseModel):
    success: bool = True
    message: str
    id: Optional[int] = None


class LiveUpdate(BaseModel):
    """Broadcast to live subscribers; mirrors exactly what was written to current_locations."""
    animal_id: Optional[int] = None
    collar_id: Optional[int] = None
    latitude: float
    longitude: float
    recorded_at: Optional[datetime] = None
    battery_level: Optional[float] = None
    signal_quality: Optional[float] = None
    temperature_celsius: Optional[float] = None


class CurrentLocationData(BaseModel):
    animal_id: Optional[int] = None
    collar_id: Optional[int] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    recorded_at: Optional[str] = None
    battery_level: Optional[float] = None
    signal_quality: Optional[float] = None
    temperature_celsius: Optional[float] = None
    animal_name: Optional[str] = None
    tag_number: Optional[str] = None


class CurrentLocationResponse(BaseModel):
    success: bool = True
    data: Optional[CurrentLocationData] = None


class MarkersResponse(BaseModel):
    success: bool = True
    data: List[CurrentLocationData] = []


class HistoryItem(BaseModel):
    id: int
    animal_id: Optional[int] = None
    collar_id: Optional[int] = None
    latitude: float
    longitude: float
    altitude_meters: Optional[float] = None
    accuracy_meters: Optional[float] = None
    speed_kmh: Optional[float] = None
    heading_degrees: Optional[float] = None
    recorded_at: Optional[str] = None
    battery_level: Optional[float] = None
    signal_quality: Optional[float] = None
    temperature_celsius: Optional[float] = None


class HistoryResponse(BaseModel):
    success: bool = True
    data: List[HistoryItem] = []

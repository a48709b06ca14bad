"""
Command Schemas - remote config requests, device polling and acknowledgement
"""
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, field_validator


class RemoteConfigRequest(BaseModel):
    """
    Operator request for a device. Becomes up to two queued commands:
    a control command (sound/lights) and a wifi_update command (ssid/password).
    """
    device_id: str = Field(..., min_length=1, max_length=128)
    sound: Optional[bool] = None
    lights: Optional[bool] = None
    wifi_ssid: Optional[str] = Field(None, max_length=64)
    wifi_password: Optional[str] = Field(None, max_length=128)
    expires_hours: Optional[float] = Field(None, gt=0, le=24 * 30, description="Overrides the per-type default expiry")

    @field_validator("device_id")
    @classmethod
    def strip_device_id(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("device_id cannot be empty")
        return v

    @field_validator("wifi_ssid")
    @classmethod
    def blank_ssid_is_none(cls, v):
        if v is None:
            return None
        v = v.strip()
        return v or None

    @property
    def has_control(self) -> bool:
        return self.sound is not None or self.lights is not None

    @property
    def has_wifi(self) -> bool:
        return self.wifi_ssid is not None


class RemoteConfigResponse(BaseModel):
    success: bool = True
    message: str
    data: Dict[str, Any] = Field(default_factory=dict)


class PolledCommand(BaseModel):
    """What a device receives from GET /commands."""
    id: int
    command_type: str
    payload: Dict[str, Any]


class AckRequest(BaseModel):
    status: Optional[str] = Field("ok", max_length=64, description="Device supplied result, e.g. ok/failed")


class AckResponse(BaseModel):
    success: bool = True


class CommandDetail(BaseModel):
    id: int
    device_id: str
    command_type: str
    payload: Dict[str, Any]
    status: str
    ack_status: Optional[str] = None
    created_at: Optional[str] = None
    expires_at: Optional[str] = None
    delivered_at: Optional[str] = None
    acknowledged_at: Optional[str] = None


class CommandDetailResponse(BaseModel):
    success: bool = True
    data: CommandDetail

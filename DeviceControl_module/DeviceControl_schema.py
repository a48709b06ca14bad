from typing import Optional

from pydantic import BaseModel


class ControlStateRequest(BaseModel):
    """Anything other than 'off' (case-insensitive) switches the system on."""
    state: Optional[str] = None


class ControlStateResponse(BaseModel):
    success: bool = True
    state: str

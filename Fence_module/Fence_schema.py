from typing import Optional, List

from pydantic import BaseModel, Field


class FenceRequest(BaseModel):
    """
    Create/update body. Range checks happen in Fence_crud.validate_fence so that
    out-of-range values get a 400 with a readable message.
    """
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    center_latitude: float
    center_longitude: float
    radius_meters: float = Field(..., description="Radius in meters (50 to 10000)")
    fence_type: Optional[str] = Field(None, max_length=50, description="Defaults to custom")
    is_active: Optional[bool] = True

    class Config:
        json_schema_extra = {
            "example": {
                "name": "North pasture",
                "center_latitude": 40.1,
                "center_longitude": -73.9,
                "radius_meters": 250,
                "fence_type": "pasture",
            }
        }


class FenceData(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    center_latitude: float
    center_longitude: float
    radius_meters: float
    fence_type: str
    is_active: bool

    class Config:
        from_attributes = True


class FenceListResponse(BaseModel):
    success: bool = True
    data: List[FenceData] = []


class FenceCreateResponse(BaseModel):
    success: bool = True
    message: str
    data: dict


class FenceActionResponse(BaseModel):
    success: bool = True
    message: str

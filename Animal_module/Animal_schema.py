from datetime import date
from typing import Optional, List

from pydantic import BaseModel, Field, field_validator


class AnimalCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255, description="Animal name")
    tag_number: str = Field(..., min_length=1, max_length=100, description="Ear tag number (unique)")
    breed: Optional[str] = Field(None, max_length=100)
    gender: Optional[str] = Field(None, max_length=20, description="female/male (defaults to female)")
    birth_date: Optional[date] = None
    notes: Optional[str] = None

    @field_validator("name", "tag_number")
    @classmethod
    def strip_required(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("name and tag_number are required")
        return v


class AnimalUpdate(BaseModel):
    """All fields optional; only supplied fields are written."""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    tag_number: Optional[str] = Field(None, min_length=1, max_length=100)
    breed: Optional[str] = Field(None, max_length=100)
    gender: Optional[str] = Field(None, max_length=20)
    birth_date: Optional[date] = None
    notes: Optional[str] = None
    is_active: Optional[bool] = None


class AnimalData(BaseModel):
    id: int
    name: str
    tag_number: str
    breed: Optional[str] = None
    gender: Optional[str] = None
    birth_date: Optional[date] = None
    notes: Optional[str] = None
    is_active: bool = True
    # Not tracked yet, kept for dashboard compatibility
    health_status: str = "healthy"

    class Config:
        from_attributes = True


class AnimalResponse(BaseModel):
    success: bool = True
    data: Optional[AnimalData] = None


class AnimalListResponse(BaseModel):
    success: bool = True
    data: List[AnimalData] = []


class AnimalActionResponse(BaseModel):
    success: bool = True
    message: str

from sqlalchemy import Column, Integer, String, Text, Boolean, Float, DateTime, func

from database import Base


class VirtualFence(Base):
    """Circular geofence around a center point."""
    __tablename__ = "virtual_fences"

    id = Column(Integer, primary_key=True, index=True)
    farm_id = Column(Integer, nullable=False, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    center_latitude = Column(Float, nullable=False)
    center_longitude = Column(Float, nullable=False)
    radius_meters = Column(Float, nullable=False)
    fence_type = Column(String(50), nullable=False, default="custom")
    is_active = Column(Boolean, nullable=False, default=True)
    created_by = Column(Integer, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

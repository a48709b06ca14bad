from sqlalchemy import Column, Integer, String, DateTime, func

from database import Base


class DeviceControl(Base):
    """Key/value switches read by devices, e.g. system_enabled = on|off."""
    __tablename__ = "device_controls"

    id = Column(Integer, primary_key=True, autoincrement=True)
    control_key = Column(String(128), unique=True, nullable=False, index=True)
    control_value = Column(String(64), nullable=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

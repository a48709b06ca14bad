from sqlalchemy import Column, Integer, String, Text, Boolean, Float, DateTime, func, Index

from database import Base

ALERT_STATUS_ACTIVE = "active"
ALERT_STATUS_ACKNOWLEDGED = "acknowledged"
ALERT_STATUS_RESOLVED = "resolved"
ALERT_STATUSES = (ALERT_STATUS_ACTIVE, ALERT_STATUS_ACKNOWLEDGED, ALERT_STATUS_RESOLVED)

# Column sizes; longer device input is truncated, not rejected
MAX_ALERT_TYPE = 100
MAX_SEVERITY = 32
MAX_TITLE = 255


class Alert(Base):
    __tablename__ = "alerts"

    id = Column(Integer, primary_key=True, index=True)
    farm_id = Column(Integer, nullable=False, index=True)
    animal_id = Column(Integer, nullable=True, index=True)
    collar_id = Column(Integer, nullable=True)
    fence_id = Column(Integer, nullable=True)

    alert_type = Column(String(MAX_ALERT_TYPE), nullable=False)
    severity = Column(String(MAX_SEVERITY), nullable=False, default="medium")
    title = Column(String(MAX_TITLE), nullable=False)
    message = Column(Text, nullable=True)
    alert_data = Column(Text, nullable=True)

    location_latitude = Column(Float, nullable=True)
    location_longitude = Column(Float, nullable=True)

    triggered_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    status = Column(String(32), nullable=False, default=ALERT_STATUS_ACTIVE, index=True)
    auto_generated = Column(Boolean, nullable=False, default=True)

    acknowledged_at = Column(DateTime(timezone=True), nullable=True)
    acknowledged_by = Column(Integer, nullable=True)
    resolved_at = Column(DateTime(timezone=True), nullable=True)
    resolved_by = Column(Integer, nullable=True)

    __table_args__ = (
        Index('idx_alerts_farm_triggered', 'farm_id', 'triggered_at'),
    )

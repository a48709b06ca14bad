"""
Command Model - per-device outbox polled by field devices
"""
from sqlalchemy import Column, Integer, String, JSON, DateTime, func, Index

from database import Base

COMMAND_TYPE_CONTROL = "control"
COMMAND_TYPE_WIFI_UPDATE = "wifi_update"
COMMAND_TYPES = (COMMAND_TYPE_CONTROL, COMMAND_TYPE_WIFI_UPDATE)

STATUS_PENDING = "pending"
STATUS_DELIVERED = "delivered"
STATUS_ACKNOWLEDGED = "acknowledged"
# Never stored: reported for commands past expires_at that were not acknowledged
STATUS_EXPIRED = "expired"


class DeviceCommand(Base):
    """
    pending -> delivered (first poll) -> acknowledged.
    Any command not acknowledged by expires_at is terminal; expiry is evaluated
    at read time, there is no sweep job.
    """
    __tablename__ = "device_commands"

    id = Column(Integer, primary_key=True, index=True)
    device_id = Column(String(128), nullable=False, index=True)
    command_type = Column(String(32), nullable=False)
    payload = Column(JSON, nullable=False)
    status = Column(String(32), nullable=False, default=STATUS_PENDING)
    ack_status = Column(String(64), nullable=True)  # free text reported by the device

    created_at = Column(DateTime(timezone=True), nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    delivered_at = Column(DateTime(timezone=True), nullable=True)
    acknowledged_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index('idx_device_commands_device_status', 'device_id', 'status'),
        Index('idx_device_commands_expires_at', 'expires_at'),
    )

"""
Location Models - GPS history (append-only) and latest position per tracked entity.
"""
from sqlalchemy import Column, Integer, String, Float, DateTime, func, Index

from database import Base


class AnimalLocation(Base):
    """
    One row per accepted GPS report attributed to an animal or collar.
    Rows are never deleted; the only mutation is an explicit correction by id.
    """
    __tablename__ = "animal_locations"

    id = Column(Integer, primary_key=True, autoincrement=True, index=True)

    animal_id = Column(Integer, nullable=True, index=True)
    collar_id = Column(Integer, nullable=True, index=True)

    latitude = Column(Float, nullable=False)
    longitude = Column(Float, nullable=False)
    altitude_meters = Column(Float, nullable=True)
    accuracy_meters = Column(Float, nullable=True)
    speed_kmh = Column(Float, nullable=True)
    heading_degrees = Column(Float, nullable=True)

    recorded_at = Column(DateTime(timezone=True), nullable=False)

    # Device health
    battery_level = Column(Float, nullable=True)
    signal_quality = Column(Float, nullable=True)
    temperature_celsius = Column(Float, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        Index('idx_animal_locations_animal_recorded', 'animal_id', 'recorded_at'),
        Index('idx_animal_locations_collar_recorded', 'collar_id', 'recorded_at'),
    )


class CurrentLocation(Base):
    """
    Latest known position per entity key, overwritten in place on every report.
    entity_key is 'animal:<id>' or 'collar:<id>'; raw GPS points use the
    reserved animal id from config.UNATTRIBUTED_ANIMAL_ID.
    Altitude, speed, heading and accuracy live in history only.
    """
    __tablename__ = "current_locations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    entity_key = Column(String(64), unique=True, nullable=False, index=True)

    # No foreign key: the raw-position row uses a reserved animal id
    animal_id = Column(Integer, nullable=True, index=True)
    collar_id = Column(Integer, nullable=True, index=True)

    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    recorded_at = Column(DateTime(timezone=True), nullable=True)

    battery_level = Column(Float, nullable=True)
    signal_quality = Column(Float, nullable=True)
    temperature_celsius = Column(Float, nullable=True)

    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

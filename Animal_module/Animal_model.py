"""
Animal Model - herd register used for display metadata (name, tag) on maps.
"""
from sqlalchemy import Column, Integer, String, Text, Boolean, Date, DateTime, func

from database import Base


class Animal(Base):
    __tablename__ = "animals"

    id = Column(Integer, primary_key=True, index=True)
    farm_id = Column(Integer, nullable=False, index=True)
    name = Column(String(255), nullable=False)
    tag_number = Column(String(100), unique=True, nullable=False, index=True)
    breed = Column(String(100), nullable=True)
    gender = Column(String(20), nullable=False, default="female")
    birth_date = Column(Date, nullable=True)
    notes = Column(Text, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

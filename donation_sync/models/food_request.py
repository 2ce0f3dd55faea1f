"""
Food request model - what a receiving organization needs
"""
import uuid
from datetime import datetime
from enum import Enum

from sqlalchemy import Column, String, Text, Float, Integer, DateTime, Enum as SQLEnum
from donation_sync.database import Base


class RequestStatus(str, Enum):
    ACTIVE = "active"
    MATCHED = "matched"
    FULFILLED = "fulfilled"


class RequestUrgency(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class FoodRequest(Base):
    __tablename__ = "requests"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    ngo_id = Column(String, nullable=False, index=True)

    title = Column(String, nullable=False)
    food_type = Column(String, nullable=False)
    quantity = Column(Float, nullable=False)
    unit = Column(String, nullable=False)
    urgency = Column(SQLEnum(RequestUrgency, native_enum=False), nullable=False, default=RequestUrgency.MEDIUM)
    description = Column(Text, nullable=True)
    serving_size = Column(Integer, nullable=True, default=0)

    # Delivery location
    delivery_address = Column(String, nullable=False)
    delivery_latitude = Column(Float, nullable=True)
    delivery_longitude = Column(Float, nullable=True)

    needed_by = Column(DateTime, nullable=False)

    status = Column(
        SQLEnum(RequestStatus, native_enum=False),
        nullable=False,
        default=RequestStatus.ACTIVE,
        index=True,
    )

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

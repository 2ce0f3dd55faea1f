"""
Food item model - canonical donation record
"""
import uuid
from datetime import datetime
from enum import Enum

from sqlalchemy import Column, String, Text, Float, DateTime, Enum as SQLEnum
from donation_sync.database import Base


class FoodItemStatus(str, Enum):
    AVAILABLE = "available"
    RESERVED = "reserved"
    COLLECTED = "collected"
    EXPIRED = "expired"


class FoodItem(Base):
    """Donated food lot offered by a donor"""
    __tablename__ = "food_items"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    donor_id = Column(String, nullable=False, index=True)

    food_type = Column(String, nullable=False)
    quantity = Column(Float, nullable=False)
    unit = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    image_url = Column(String, nullable=True, default="")

    # Pickup location
    pickup_address = Column(String, nullable=False)
    pickup_latitude = Column(Float, nullable=True)
    pickup_longitude = Column(Float, nullable=True)

    pickup_time = Column(DateTime, nullable=False)
    expiry_date = Column(DateTime, nullable=False)

    status = Column(
        SQLEnum(FoodItemStatus, native_enum=False),
        nullable=False,
        default=FoodItemStatus.AVAILABLE,
        index=True,
    )

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

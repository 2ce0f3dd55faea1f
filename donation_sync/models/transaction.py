"""
Transaction model - canonical record of a donation matched to a request
"""
import uuid
from datetime import datetime
from enum import Enum

from sqlalchemy import Column, String, Float, DateTime, ForeignKey, Enum as SQLEnum
from donation_sync.database import Base


class TransactionStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class Transaction(Base):
    __tablename__ = "transactions"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    donor_id = Column(String, nullable=False, index=True)
    ngo_id = Column(String, nullable=False, index=True)
    food_item_id = Column(String, ForeignKey("food_items.id"), nullable=True)
    request_id = Column(String, ForeignKey("requests.id"), nullable=True)

    quantity_transferred = Column(Float, nullable=False, default=0)
    status = Column(
        SQLEnum(TransactionStatus, native_enum=False),
        nullable=False,
        default=TransactionStatus.PENDING,
    )

    pickup_time = Column(DateTime, nullable=True)
    delivery_time = Column(DateTime, nullable=True)

    # Computed upstream by the matching engine
    match_score = Column(Float, nullable=True)
    distance_km = Column(Float, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

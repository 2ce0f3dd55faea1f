"""
Mirror-side record shapes (camelCase on the wire)
"""
from datetime import datetime
from enum import Enum
from typing import Annotated, List, Optional

from pydantic import AfterValidator, BaseModel, PlainSerializer, field_validator
from pydantic.alias_generators import to_camel

from donation_sync.utils.helpers import isoformat_utc, to_naive_utc

# Held as naive UTC (what the relational columns store), written out with a Z suffix
UtcDateTime = Annotated[
    datetime,
    AfterValidator(to_naive_utc),
    PlainSerializer(isoformat_utc, return_type=str, when_used="json"),
]


class DonationStatus(str, Enum):
    PENDING = "pending"
    MATCHED = "matched"
    COMPLETED = "completed"
    EXPIRED = "expired"


class RequirementStatus(str, Enum):
    ACTIVE = "active"
    MATCHED = "matched"
    FULFILLED = "fulfilled"


class MatchStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class Urgency(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class ActivityType(str, Enum):
    DONATION_CREATED = "donation_created"
    REQUIREMENT_CREATED = "requirement_created"
    MATCH_CREATED = "match_created"
    DONATION_STATUS_UPDATED = "donation_status_updated"
    REQUIREMENT_STATUS_UPDATED = "requirement_status_updated"
    MATCH_STATUS_UPDATED = "match_status_updated"


class MirrorModel(BaseModel):
    class Config:
        alias_generator = to_camel
        populate_by_name = True

    def to_mirror(self) -> dict:
        """JSON-ready dict with mirror field names, unset optionals dropped"""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class Location(MirrorModel):
    address: str
    lat: Optional[float] = None
    lng: Optional[float] = None


def _check_numeric(value: str) -> str:
    try:
        float(value)
    except (TypeError, ValueError):
        raise ValueError(f"quantity must be numeric, got {value!r}")
    return value


# --- Donations ---

class DonationCreate(MirrorModel):
    donor_id: str
    donor_name: str
    food_type: str
    quantity: str
    unit: str
    description: str = ""
    location: Location
    pickup_time: Optional[UtcDateTime] = None
    expiry_date: Optional[UtcDateTime] = None
    image_url: Optional[str] = None

    @field_validator("quantity")
    @classmethod
    def quantity_is_numeric(cls, v: str) -> str:
        return _check_numeric(v)


class FoodDonation(MirrorModel):
    id: str
    donor_id: str
    donor_name: str
    food_type: str
    quantity: str
    unit: str
    description: Optional[str] = ""
    location: Location
    pickup_time: UtcDateTime
    expiry_date: UtcDateTime
    image_url: Optional[str] = None
    status: DonationStatus
    matched_with: Optional[str] = None
    matched_at: Optional[UtcDateTime] = None
    created_at: UtcDateTime
    updated_at: UtcDateTime


# --- Requirements ---

class RequirementCreate(MirrorModel):
    receiver_id: str
    receiver_name: str
    organization_name: str
    title: str
    food_type: str
    quantity: str
    unit: str
    urgency: Urgency = Urgency.MEDIUM
    description: str = ""
    location: Location
    needed_by: Optional[UtcDateTime] = None
    serving_size: str = "0"

    @field_validator("quantity")
    @classmethod
    def quantity_is_numeric(cls, v: str) -> str:
        return _check_numeric(v)


class FoodRequirement(MirrorModel):
    id: str
    receiver_id: str
    receiver_name: str
    organization_name: str
    title: str
    food_type: str
    quantity: str
    unit: str
    urgency: Urgency
    description: Optional[str] = ""
    location: Location
    needed_by: UtcDateTime
    serving_size: str
    status: RequirementStatus
    matched_with: Optional[str] = None
    matched_at: Optional[UtcDateTime] = None
    created_at: UtcDateTime
    updated_at: UtcDateTime


# --- Matches ---

class MatchCreate(MirrorModel):
    donation_id: str
    requirement_id: str
    donor_id: str
    receiver_id: str
    status: MatchStatus = MatchStatus.PENDING
    distance: float = 0
    match_score: float = 0


class Match(MirrorModel):
    id: str
    donation_id: str
    requirement_id: str
    donor_id: str
    receiver_id: str
    status: MatchStatus
    distance: float
    match_score: float
    created_at: UtcDateTime
    updated_at: UtcDateTime


# --- Activity feed ---

class ActivityEntry(MirrorModel):
    id: Optional[str] = None
    type: ActivityType
    message: str
    timestamp: UtcDateTime

    donation_id: Optional[str] = None
    requirement_id: Optional[str] = None
    match_id: Optional[str] = None
    donor_id: Optional[str] = None
    receiver_id: Optional[str] = None

    donor_name: Optional[str] = None
    receiver_name: Optional[str] = None
    organization_name: Optional[str] = None
    title: Optional[str] = None
    food_type: Optional[str] = None
    quantity: Optional[str] = None
    unit: Optional[str] = None
    urgency: Optional[Urgency] = None
    location: Optional[str] = None
    match_score: Optional[float] = None
    distance: Optional[float] = None
    status: Optional[str] = None


class AnalyticsData(MirrorModel):
    donations: List[FoodDonation] = []
    requirements: List[FoodRequirement] = []
    matches: List[Match] = []

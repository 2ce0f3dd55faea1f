"""
Record translator between relational rows and mirror records.

Relational and mirror schemas use different field names and different
status vocabularies. Every status is mapped explicitly in both directions;
an unmapped value raises UnknownStatusError instead of being coerced.
"""
from datetime import datetime
from typing import Any, Dict, Optional

from donation_sync.exceptions import UnknownStatusError
from donation_sync.models import (
    FoodItem,
    FoodItemStatus,
    FoodRequest,
    RequestStatus,
    RequestUrgency,
    Transaction,
    TransactionStatus,
)
from donation_sync.schemas import (
    DonationCreate,
    DonationStatus,
    FoodDonation,
    FoodRequirement,
    Location,
    Match,
    MatchCreate,
    MatchStatus,
    RequirementCreate,
    RequirementStatus,
)
from donation_sync.utils.helpers import format_quantity, to_naive_utc

# Relational has no donor/receiver names; these fill the gap on read
DEFAULT_DONOR_NAME = "Donor"
DEFAULT_RECEIVER_NAME = "Receiver"
DEFAULT_ORGANIZATION_NAME = "Organization"


DONATION_STATUS_TO_MIRROR = {
    FoodItemStatus.AVAILABLE: DonationStatus.PENDING,
    FoodItemStatus.RESERVED: DonationStatus.MATCHED,
    FoodItemStatus.COLLECTED: DonationStatus.COMPLETED,
    FoodItemStatus.EXPIRED: DonationStatus.EXPIRED,
}

REQUIREMENT_STATUS_TO_MIRROR = {
    RequestStatus.ACTIVE: RequirementStatus.ACTIVE,
    RequestStatus.MATCHED: RequirementStatus.MATCHED,
    RequestStatus.FULFILLED: RequirementStatus.FULFILLED,
}

MATCH_STATUS_TO_MIRROR = {
    TransactionStatus.PENDING: MatchStatus.PENDING,
    TransactionStatus.IN_PROGRESS: MatchStatus.CONFIRMED,
    TransactionStatus.COMPLETED: MatchStatus.COMPLETED,
    TransactionStatus.CANCELLED: MatchStatus.CANCELLED,
}

DONATION_STATUS_TO_CANONICAL = {v: k for k, v in DONATION_STATUS_TO_MIRROR.items()}
REQUIREMENT_STATUS_TO_CANONICAL = {v: k for k, v in REQUIREMENT_STATUS_TO_MIRROR.items()}
MATCH_STATUS_TO_CANONICAL = {v: k for k, v in MATCH_STATUS_TO_MIRROR.items()}


def _lookup(table: dict, value, domain: str):
    try:
        return table[value]
    except KeyError:
        raise UnknownStatusError(domain, value) from None


# --- Status lookups ---

def to_mirror_donation_status(status) -> DonationStatus:
    return _lookup(DONATION_STATUS_TO_MIRROR, status, "donation")


def to_canonical_donation_status(status) -> FoodItemStatus:
    return _lookup(DONATION_STATUS_TO_CANONICAL, status, "donation")


def to_mirror_requirement_status(status) -> RequirementStatus:
    return _lookup(REQUIREMENT_STATUS_TO_MIRROR, status, "requirement")


def to_canonical_requirement_status(status) -> RequestStatus:
    return _lookup(REQUIREMENT_STATUS_TO_CANONICAL, status, "requirement")


def to_mirror_match_status(status) -> MatchStatus:
    return _lookup(MATCH_STATUS_TO_MIRROR, status, "match")


def to_canonical_match_status(status) -> TransactionStatus:
    return _lookup(MATCH_STATUS_TO_CANONICAL, status, "match")


# --- Relational row -> mirror record ---

def food_item_to_donation(item: FoodItem, donor_name: str = DEFAULT_DONOR_NAME) -> FoodDonation:
    return FoodDonation(
        id=item.id,
        donor_id=item.donor_id,
        donor_name=donor_name,
        food_type=item.food_type,
        quantity=format_quantity(item.quantity),
        unit=item.unit,
        description=item.description or "",
        location=Location(
            address=item.pickup_address,
            lat=item.pickup_latitude,
            lng=item.pickup_longitude,
        ),
        pickup_time=item.pickup_time,
        expiry_date=item.expiry_date,
        image_url=item.image_url or None,
        status=to_mirror_donation_status(item.status),
        created_at=item.created_at,
        updated_at=item.updated_at,
    )


def request_to_requirement(request: FoodRequest) -> FoodRequirement:
    return FoodRequirement(
        id=request.id,
        receiver_id=request.ngo_id,
        receiver_name=DEFAULT_RECEIVER_NAME,
        organization_name=request.title or DEFAULT_ORGANIZATION_NAME,
        title=request.title,
        food_type=request.food_type,
        quantity=format_quantity(request.quantity),
        unit=request.unit,
        urgency=getattr(request.urgency, "value", request.urgency),
        description=request.description or "",
        location=Location(
            address=request.delivery_address,
            lat=request.delivery_latitude,
            lng=request.delivery_longitude,
        ),
        needed_by=request.needed_by,
        serving_size=str(request.serving_size or 0),
        status=to_mirror_requirement_status(request.status),
        created_at=request.created_at,
        updated_at=request.updated_at,
    )


def transaction_to_match(transaction: Transaction) -> Match:
    return Match(
        id=transaction.id,
        donation_id=transaction.food_item_id or "",
        requirement_id=transaction.request_id or "",
        donor_id=transaction.donor_id,
        receiver_id=transaction.ngo_id,
        status=to_mirror_match_status(transaction.status),
        distance=transaction.distance_km or 0,
        match_score=transaction.match_score or 0,
        created_at=transaction.created_at,
        updated_at=transaction.updated_at,
    )


# --- Create payload -> relational insert values ---

def donation_row(donation: DonationCreate, pickup_time: datetime, expiry_date: datetime) -> Dict[str, Any]:
    return {
        "donor_id": donation.donor_id,
        "food_type": donation.food_type,
        "quantity": float(donation.quantity),
        "unit": donation.unit,
        "description": donation.description,
        "pickup_address": donation.location.address,
        "pickup_latitude": donation.location.lat,
        "pickup_longitude": donation.location.lng,
        "pickup_time": to_naive_utc(pickup_time),
        "expiry_date": to_naive_utc(expiry_date),
        "image_url": donation.image_url or "",
        "status": FoodItemStatus.AVAILABLE,
    }


def _parse_serving_size(value: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def requirement_row(requirement: RequirementCreate, needed_by: datetime) -> Dict[str, Any]:
    return {
        "ngo_id": requirement.receiver_id,
        "title": requirement.title,
        "food_type": requirement.food_type,
        "quantity": float(requirement.quantity),
        "unit": requirement.unit,
        "urgency": RequestUrgency(requirement.urgency.value),
        "description": requirement.description,
        "delivery_address": requirement.location.address,
        "delivery_latitude": requirement.location.lat,
        "delivery_longitude": requirement.location.lng,
        "needed_by": to_naive_utc(needed_by),
        "serving_size": _parse_serving_size(requirement.serving_size),
        "status": RequestStatus.ACTIVE,
    }


def transaction_row(
    match: MatchCreate,
    now: datetime,
    actual_quantity: Optional[float] = None,
) -> Dict[str, Any]:
    return {
        "donor_id": match.donor_id,
        "ngo_id": match.receiver_id,
        "food_item_id": match.donation_id,
        "request_id": match.requirement_id,
        "quantity_transferred": actual_quantity or 0,
        "status": to_canonical_match_status(match.status),
        "pickup_time": now,
        "delivery_time": now,
        "match_score": match.match_score,
        "distance_km": match.distance,
    }

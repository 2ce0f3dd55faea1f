"""
Match API endpoints - donation/requirement pairings (transactions)
"""
from fastapi import APIRouter, Depends, HTTPException
from typing import Optional
from pydantic import BaseModel

from donation_sync.api.donations import RecordCreated
from donation_sync.exceptions import RecordNotFoundError
from donation_sync.schemas import MatchCreate, MatchStatus
from donation_sync.services.sync_service import DonationSyncService, get_sync_service

router = APIRouter()


class MatchRequest(MatchCreate):
    actual_quantity: Optional[float] = None


class MatchStatusUpdate(BaseModel):
    status: MatchStatus


@router.post("/", response_model=RecordCreated)
async def create_match(
    data: MatchRequest,
    service: DonationSyncService = Depends(get_sync_service),
):
    """Record a match; score and distance come from the caller's matching engine"""
    match = MatchCreate(**data.model_dump(exclude={"actual_quantity"}))
    match_id = await service.create_match(match, data.actual_quantity)
    return RecordCreated(id=match_id)


@router.put("/{match_id}/status", response_model=RecordCreated)
async def update_match_status(
    match_id: str,
    data: MatchStatusUpdate,
    service: DonationSyncService = Depends(get_sync_service),
):
    try:
        await service.update_match_status(match_id, data.status)
    except RecordNotFoundError:
        raise HTTPException(status_code=404, detail="Match not found")
    return RecordCreated(id=match_id)

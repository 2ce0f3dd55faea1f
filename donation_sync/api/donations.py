"""
Donation API endpoints - dual-write create/update and one-shot reads
"""
from fastapi import APIRouter, Depends, HTTPException
from typing import List, Optional
from pydantic import BaseModel

from donation_sync.exceptions import RecordNotFoundError
from donation_sync.schemas import DonationCreate, DonationStatus, FoodDonation
from donation_sync.services.sync_service import DonationSyncService, get_sync_service

router = APIRouter()


# --- Pydantic Schemas ---

class DonationStatusUpdate(BaseModel):
    status: DonationStatus
    matched_with: Optional[str] = None


class RecordCreated(BaseModel):
    id: str


# --- Endpoints ---

@router.post("/", response_model=RecordCreated)
async def create_donation(
    data: DonationCreate,
    service: DonationSyncService = Depends(get_sync_service),
):
    """Create a donation in the relational store and mirror it"""
    donation_id = await service.create_donation(data)
    return RecordCreated(id=donation_id)


@router.put("/{donation_id}/status", response_model=RecordCreated)
async def update_donation_status(
    donation_id: str,
    data: DonationStatusUpdate,
    service: DonationSyncService = Depends(get_sync_service),
):
    try:
        await service.update_donation_status(donation_id, data.status, data.matched_with)
    except RecordNotFoundError:
        raise HTTPException(status_code=404, detail="Donation not found")
    return RecordCreated(id=donation_id)


@router.get("/available", response_model=List[FoodDonation])
async def list_available_donations(service: DonationSyncService = Depends(get_sync_service)):
    return await service.list_available_donations()


@router.get("/donor/{donor_id}", response_model=List[FoodDonation])
async def list_donations_by_donor(
    donor_id: str,
    service: DonationSyncService = Depends(get_sync_service),
):
    return await service.list_donations_by_donor(donor_id)

"""
Requirement API endpoints - what receiving organizations need
"""
from fastapi import APIRouter, Depends, HTTPException
from typing import List, Optional
from pydantic import BaseModel

from donation_sync.api.donations import RecordCreated
from donation_sync.exceptions import RecordNotFoundError
from donation_sync.schemas import FoodRequirement, RequirementCreate, RequirementStatus
from donation_sync.services.sync_service import DonationSyncService, get_sync_service

router = APIRouter()


class RequirementStatusUpdate(BaseModel):
    status: RequirementStatus
    matched_with: Optional[str] = None


@router.post("/", response_model=RecordCreated)
async def create_requirement(
    data: RequirementCreate,
    service: DonationSyncService = Depends(get_sync_service),
):
    requirement_id = await service.create_requirement(data)
    return RecordCreated(id=requirement_id)


@router.put("/{requirement_id}/status", response_model=RecordCreated)
async def update_requirement_status(
    requirement_id: str,
    data: RequirementStatusUpdate,
    service: DonationSyncService = Depends(get_sync_service),
):
    try:
        await service.update_requirement_status(requirement_id, data.status, data.matched_with)
    except RecordNotFoundError:
        raise HTTPException(status_code=404, detail="Requirement not found")
    return RecordCreated(id=requirement_id)


@router.get("/active", response_model=List[FoodRequirement])
async def list_active_requirements(service: DonationSyncService = Depends(get_sync_service)):
    return await service.list_active_requirements()


@router.get("/receiver/{receiver_id}", response_model=List[FoodRequirement])
async def list_requirements_by_receiver(
    receiver_id: str,
    service: DonationSyncService = Depends(get_sync_service),
):
    return await service.list_requirements_by_receiver(receiver_id)

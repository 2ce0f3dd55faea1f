"""
User API endpoints - role assignment (stored in the mirror only)
"""
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from donation_sync.exceptions import MirrorWriteError
from donation_sync.services.sync_service import DonationSyncService, get_sync_service

router = APIRouter()


class RoleUpdate(BaseModel):
    role: str


@router.put("/{user_id}/role")
async def update_user_role(
    user_id: str,
    data: RoleUpdate,
    service: DonationSyncService = Depends(get_sync_service),
):
    try:
        await service.update_user_role(user_id, data.role)
    except MirrorWriteError as e:
        raise HTTPException(status_code=502, detail=str(e))
    return {"user_id": user_id, "role": data.role}

"""
Analytics API - aggregate donations/requirements/matches (cached 30s)
"""
from fastapi import APIRouter, Depends

from donation_sync.schemas import AnalyticsData
from donation_sync.services.sync_service import DonationSyncService, get_sync_service

router = APIRouter()


@router.get("/", response_model=AnalyticsData)
async def get_analytics(service: DonationSyncService = Depends(get_sync_service)):
    return await service.get_analytics_data()

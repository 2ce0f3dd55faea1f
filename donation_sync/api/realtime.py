"""
WebSocket streams - each connection holds one subscription and receives the
full result set as a JSON array on connect and after every change.
"""
import logging

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect

from donation_sync.services.subscriptions import Subscription
from donation_sync.services.sync_service import DonationSyncService, get_sync_service

logger = logging.getLogger(__name__)

router = APIRouter()


def _sender(websocket: WebSocket):
    async def send(records):
        await websocket.send_json([r.to_mirror() for r in records])
    return send


async def _hold(websocket: WebSocket, subscription: Subscription) -> None:
    """Keep the subscription open until the client goes away"""
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        logger.info(f"Client left {subscription.name}")
    finally:
        subscription.unsubscribe()


@router.websocket("/donations/available")
async def stream_available_donations(
    websocket: WebSocket,
    service: DonationSyncService = Depends(get_sync_service),
):
    await websocket.accept()
    subscription = await service.listen_to_available_donations(_sender(websocket))
    await _hold(websocket, subscription)


@router.websocket("/donations/donor/{donor_id}")
async def stream_donations_by_donor(
    websocket: WebSocket,
    donor_id: str,
    service: DonationSyncService = Depends(get_sync_service),
):
    await websocket.accept()
    subscription = await service.get_donations_by_donor(donor_id, _sender(websocket))
    await _hold(websocket, subscription)


@router.websocket("/requirements/active")
async def stream_active_requirements(
    websocket: WebSocket,
    service: DonationSyncService = Depends(get_sync_service),
):
    await websocket.accept()
    subscription = await service.listen_to_active_requirements(_sender(websocket))
    await _hold(websocket, subscription)


@router.websocket("/requirements/receiver/{receiver_id}")
async def stream_requirements_by_receiver(
    websocket: WebSocket,
    receiver_id: str,
    service: DonationSyncService = Depends(get_sync_service),
):
    await websocket.accept()
    subscription = await service.get_requirements_by_receiver(receiver_id, _sender(websocket))
    await _hold(websocket, subscription)

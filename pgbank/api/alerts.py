"""
Alert mailbox endpoints
"""

from fastapi import APIRouter, Depends, Query, Response, status

from .dependencies import get_ledger_system
from .schemas import SubscribeRequest
from ..system import LedgerSystem


router = APIRouter()


@router.get("")
def drain_alerts(
    user_id: str = Query(..., min_length=1),
    system: LedgerSystem = Depends(get_ledger_system)
):
    """Return and clear pending alerts for a user"""
    return [alert.to_dict() for alert in system.alerts.drain(user_id)]


@router.post("/subscribe", status_code=status.HTTP_204_NO_CONTENT)
def subscribe(
    request: SubscribeRequest,
    system: LedgerSystem = Depends(get_ledger_system)
):
    """Record delivery channels for a user's alerts"""
    system.alerts.subscribe(
        user_id=request.user_id,
        email=request.email,
        phone=request.phone,
        push_token=request.push_token
    )
    return Response(status_code=status.HTTP_204_NO_CONTENT)

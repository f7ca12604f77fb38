"""
Transfer and card payment endpoints
"""

from fastapi import APIRouter, Depends, status

from .dependencies import get_ledger_system
from .schemas import TransferRequest, CardAuthorizationRequest
from ..system import LedgerSystem


router = APIRouter()


@router.post("/transfers", status_code=status.HTTP_201_CREATED)
def create_transfer(
    request: TransferRequest,
    system: LedgerSystem = Depends(get_ledger_system)
):
    """Execute a transfer; insufficient funds yields a failed transfer, not an error"""
    transaction = system.ledger.transfer(
        from_account_id=request.from_account_id,
        to_account_id=request.to_account_id,
        amount=request.amount,
        transaction_id=request.transfer_id
    )
    return {
        "transfer_id": transaction.id,
        "status": transaction.status.value,
        "failure_reason": transaction.failure_reason,
        "sequence": transaction.sequence,
    }


@router.post("/payments/card/authorize")
def authorize_card(
    request: CardAuthorizationRequest,
    system: LedgerSystem = Depends(get_ledger_system)
):
    """Authorize a card payment (always approved)"""
    transaction = system.ledger.authorize_card(
        card_token=request.card_token,
        terminal_id=request.terminal_id,
        amount=request.amount
    )
    return {
        "auth_id": transaction.id,
        "approved": transaction.metadata["approved"],
        "hold_amount": transaction.metadata["hold_amount"],
    }

"""
Transaction history endpoints
"""

from typing import Optional
from fastapi import APIRouter, Depends

from .dependencies import get_ledger_system
from ..system import LedgerSystem


router = APIRouter()


@router.get("")
def list_transactions(
    account_id: Optional[str] = None,
    system: LedgerSystem = Depends(get_ledger_system)
):
    """List transactions in append order, optionally for one account"""
    return [t.to_dict() for t in system.ledger.list_transactions(account_id)]


@router.get("/{transaction_id}")
def get_transaction(transaction_id: str, system: LedgerSystem = Depends(get_ledger_system)):
    return system.ledger.get_transaction(transaction_id).to_dict()

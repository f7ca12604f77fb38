"""
Account endpoints
"""

from fastapi import APIRouter, Depends, status

from .dependencies import get_ledger_system
from .schemas import OpenAccountRequest, account_response
from ..system import LedgerSystem


router = APIRouter()


@router.post("", status_code=status.HTTP_201_CREATED)
def open_account(
    request: OpenAccountRequest,
    system: LedgerSystem = Depends(get_ledger_system)
):
    """Open a new account with a zero balance"""
    account = system.accounts.open(
        owner_user_id=request.user_id,
        display_name=request.name,
        currency=request.currency or system.config.default_currency,
        account_id=request.account_id,
        overdraft_limit=request.overdraft_limit
    )
    return account_response(account)


@router.get("")
def list_accounts(system: LedgerSystem = Depends(get_ledger_system)):
    """List all accounts in the order they were opened"""
    return [account_response(account) for account in system.accounts.list()]


@router.get("/{account_id}")
def get_account(account_id: str, system: LedgerSystem = Depends(get_ledger_system)):
    """Get account details"""
    return account_response(system.accounts.get(account_id))


@router.post("/{account_id}/close")
def close_account(account_id: str, system: LedgerSystem = Depends(get_ledger_system)):
    """Close an empty account"""
    return account_response(system.accounts.close(account_id))

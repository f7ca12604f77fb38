"""
Pydantic schemas for API requests and responses
"""

from typing import Optional
from pydantic import BaseModel, Field, StrictInt

from ..accounts import Account
from ..currency import format_amount


class OpenAccountRequest(BaseModel):
    user_id: str = Field(..., min_length=1, description="Owning user id")
    name: str = Field(..., min_length=1, description="Display name")
    currency: Optional[str] = Field(None, description="Currency code, defaults to the ledger default")
    account_id: Optional[str] = Field(None, description="Pre-generated account id")
    overdraft_limit: StrictInt = Field(0, ge=0, description="Overdraft limit in minor units")


class TransferRequest(BaseModel):
    from_account_id: str = Field(..., min_length=1)
    to_account_id: str = Field(..., min_length=1)
    amount: StrictInt = Field(..., gt=0, description="Amount in minor units")
    transfer_id: Optional[str] = Field(None, description="Pre-generated transfer id")


class CardAuthorizationRequest(BaseModel):
    card_token: str = Field(..., min_length=1)
    terminal_id: str = Field(..., min_length=1)
    amount: StrictInt = Field(..., gt=0, description="Amount in minor units")


class SubscribeRequest(BaseModel):
    user_id: str = Field(..., min_length=1)
    email: Optional[str] = None
    phone: Optional[str] = None
    push_token: Optional[str] = Field(None, alias="expoPushToken")

    model_config = {"populate_by_name": True}


def account_response(account: Account) -> dict:
    data = account.to_dict()
    data["balance_display"] = format_amount(account.balance, account.currency)
    return data

"""
Currency Support Module

ISO 4217 currency codes with their minor-unit precision. The ledger stores
every amount as an integer count of minor units (cents for USD, yen for JPY);
Decimal is only used when rendering amounts for display. NEVER uses float.
"""

from decimal import Decimal
from enum import Enum

from .errors import InvalidArgument


class Currency(Enum):
    """ISO 4217 Currency Codes with precision info"""
    USD = ("USD", 2)  # US Dollar, 2 decimal places
    EUR = ("EUR", 2)  # Euro, 2 decimal places
    GBP = ("GBP", 2)  # British Pound, 2 decimal places
    JPY = ("JPY", 0)  # Japanese Yen, 0 decimal places
    CAD = ("CAD", 2)  # Canadian Dollar, 2 decimal places
    CHF = ("CHF", 2)  # Swiss Franc, 2 decimal places

    def __init__(self, code: str, precision: int):
        self.code = code
        self.precision = precision

    @classmethod
    def from_code(cls, code: str) -> "Currency":
        """Look up a currency by its ISO code (case-insensitive)"""
        if not isinstance(code, str) or not code.strip():
            raise InvalidArgument("Currency code is required")
        try:
            return cls[code.strip().upper()]
        except KeyError:
            raise InvalidArgument(f"Unsupported currency: {code}") from None


def to_major_units(amount: int, currency: Currency) -> Decimal:
    """Convert an integer minor-unit amount to a Decimal in major units"""
    return Decimal(amount).scaleb(-currency.precision)


def format_amount(amount: int, currency: Currency) -> str:
    """Format a minor-unit amount for display, e.g. ``USD 1,234.50``"""
    major = to_major_units(amount, currency)
    if currency.precision == 0:
        return f"{currency.code} {major:,.0f}"
    return f"{currency.code} {major:,.{currency.precision}f}"

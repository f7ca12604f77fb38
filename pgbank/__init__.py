"""
PG Bank Ledger

In-memory ledger core for the PG Bank API: account balances, transfers,
card authorization stubs and a polling alert mailbox. All amounts are
integers in the currency's minor units.
"""

__version__ = "1.0.0"

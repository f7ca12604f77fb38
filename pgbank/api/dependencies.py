"""
Shared dependencies for API routes
"""

from ..system import LedgerSystem


# Global ledger system instance
ledger_system = LedgerSystem()


def get_ledger_system() -> LedgerSystem:
    return ledger_system

"""
Cash-out ledger enumerations.
"""

import enum


class CashOutStatus(str, enum.Enum):
    """Cash-out ledger entry status enumeration."""
    COMPLETED = "completed"  # Only terminal status written by the settlement engine

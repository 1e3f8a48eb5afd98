from .calculator import AllocationCalculator, calculate_allocations, to_cents, round_half_up
from .validator import validate_portfolio, calculate_total_percentage
from .models import (
    Asset,
    AllocationRequest,
    AllocationResult,
    ValidationResult,
)
from .constants import (
    MIN_ASSETS,
    MAX_ASSETS,
    PERCENTAGE_SUM_TOLERANCE,
    MONEY_MULTIPLIER,
    SHARE_MULTIPLIER,
    MAX_NEW_MONEY,
)

__version__ = "1.0.0"

__all__ = [
    "AllocationCalculator",
    "calculate_allocations",
    "to_cents",
    "round_half_up",
    "validate_portfolio",
    "calculate_total_percentage",
    "Asset",
    "AllocationRequest",
    "AllocationResult",
    "ValidationResult",
    "MIN_ASSETS",
    "MAX_ASSETS",
    "PERCENTAGE_SUM_TOLERANCE",
    "MONEY_MULTIPLIER",
    "SHARE_MULTIPLIER",
    "MAX_NEW_MONEY",
    "__version__",
]

"""Structural checks run before the allocation engine"""

from typing import List, Sequence

from .constants import MIN_ASSETS, MAX_ASSETS, PERCENTAGE_SUM_TOLERANCE
from .models import Asset, ValidationResult


def validate_portfolio(assets: Sequence[Asset], enable_selling: bool = False) -> ValidationResult:
    """
    Check a portfolio against every structural rule.

    All violated rules are reported, not just the first one. Symbols are
    compared as stored, so callers are expected to upper-case them first.

    Args:
        assets: Portfolio holdings
        enable_selling: Whether the portfolio will be rebalanced with sells,
            which allows 0% targets

    Returns:
        ValidationResult with is_valid and the list of error messages
    """
    errors: List[str] = []

    if len(assets) < MIN_ASSETS:
        errors.append(f"Portfolio must contain at least {MIN_ASSETS} assets")

    if len(assets) > MAX_ASSETS:
        errors.append(f"Portfolio cannot contain more than {MAX_ASSETS} assets")

    symbols = [asset.symbol for asset in assets]
    if len(symbols) != len(set(symbols)):
        errors.append("Duplicate symbols are not allowed")

    if any(not asset.symbol or asset.symbol.strip() == '' for asset in assets):
        errors.append("All assets must have a symbol")

    if any(asset.current_value < 0 for asset in assets):
        errors.append("Current values cannot be negative")

    if any(asset.target_percentage < 0 for asset in assets):
        errors.append("Target percentages cannot be negative")
    elif not enable_selling and any(asset.target_percentage == 0 for asset in assets):
        errors.append("Target percentages must be greater than 0 (enable selling to allow 0% targets)")

    percentage_sum = calculate_total_percentage(assets)
    if abs(percentage_sum - 100) > PERCENTAGE_SUM_TOLERANCE:
        errors.append(f"Target percentages must sum to 100% (currently {percentage_sum:.1f}%)")

    return ValidationResult(is_valid=len(errors) == 0, errors=errors)


def calculate_total_percentage(assets: Sequence[Asset]) -> float:
    """Sum of target percentages on the 0-100 scale"""
    return sum(asset.target_percentage for asset in assets) * 100

"""Allocation logic: cent-safe buy-only distribution and full rebalance with sell locks"""

from decimal import Decimal, ROUND_HALF_UP
from typing import List, Optional, Sequence
import logging

from .constants import MONEY_MULTIPLIER
from .models import Asset, AllocationRequest, AllocationResult


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero"""
    return int(Decimal(repr(value)).to_integral_value(rounding=ROUND_HALF_UP))


def to_cents(amount: float) -> int:
    """Convert a currency amount to integer cents"""
    cents = Decimal(repr(amount)) * MONEY_MULTIPLIER
    return int(cents.to_integral_value(rounding=ROUND_HALF_UP))


class AllocationCalculator:
    """Calculate how new money should be spread across a portfolio"""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(__name__)

    def calculate_request(self, request: AllocationRequest) -> List[AllocationResult]:
        return self.calculate_allocations(request.assets, request.new_money, request.enable_selling)

    def calculate_allocations(self, assets: Sequence[Asset], new_money: float,
                              enable_selling: bool = False) -> List[AllocationResult]:
        """
        Calculate per-asset buy (and optionally sell) amounts.

        The portfolio is assumed to have passed validate_portfolio. Results are
        returned in the input order.

        Args:
            assets: Validated portfolio holdings
            new_money: Cash to deploy
            enable_selling: Rebalance fully, selling overweight assets unless
                they are marked no_sell

        Returns:
            One AllocationResult per asset
        """
        if enable_selling:
            return self._calculate_with_selling(assets, new_money)
        return self._calculate_buy_only(assets, new_money)

    def _calculate_buy_only(self, assets: Sequence[Asset], new_money: float) -> List[AllocationResult]:
        current_total = sum(asset.current_value for asset in assets)
        new_total = current_total + new_money

        money_cents = max(0, to_cents(new_money))
        current_cents = [to_cents(asset.current_value) for asset in assets]
        new_total_cents = sum(current_cents) + money_cents

        order = self._sort_by_deviation(assets, current_total)
        allocated = [0] * len(assets)
        remaining = money_cents

        # First pass: close underweight gaps, most underweight first
        for index in order:
            if remaining <= 0:
                break
            target_cents = round_half_up(new_total_cents * assets[index].target_percentage)
            needed = max(0, target_cents - current_cents[index])
            amount = min(needed, remaining)
            allocated[index] += amount
            remaining -= amount

        # Second pass: every asset reached its target, spread the rest by weight
        if remaining > 0:
            pool = remaining
            distributed = 0
            for index in order:
                share = round_half_up(pool * assets[index].target_percentage)
                share = min(share, pool - distributed)
                allocated[index] += share
                distributed += share
            remaining = pool - distributed
            self.logger.debug(f"Distributed ${pool / MONEY_MULTIPLIER:,.2f} surplus proportionally to targets")

        # Rounding leftovers go to the most underweight asset
        if remaining > 0 and order:
            allocated[order[0]] += remaining
            self.logger.debug(f"Assigned {remaining} leftover cents to {assets[order[0]].symbol}")

        return [
            self._build_result(asset, cents / MONEY_MULTIPLIER, new_total)
            for asset, cents in zip(assets, allocated)
        ]

    def _calculate_with_selling(self, assets: Sequence[Asset], new_money: float) -> List[AllocationResult]:
        current_total = sum(asset.current_value for asset in assets)
        new_total = current_total + new_money

        tentative = []
        available_cash = new_money

        for asset in assets:
            ideal_difference = new_total * asset.target_percentage - asset.current_value
            if asset.no_sell:
                # Locked assets can only be topped up and never fund other buys
                tentative.append(max(0.0, ideal_difference))
            else:
                tentative.append(ideal_difference)
                if ideal_difference < 0:
                    available_cash += -ideal_difference

        total_buy_needed = sum(amount for amount in tentative if amount > 0)

        scaling_factor = 1.0
        if total_buy_needed > 0 and available_cash < total_buy_needed:
            scaling_factor = max(0.0, available_cash / total_buy_needed)
            self.logger.debug(
                f"Buys of ${total_buy_needed:,.2f} exceed available cash ${available_cash:,.2f}, "
                f"scaling by {scaling_factor:.4f}"
            )

        # Sells are always realized in full, only buys are throttled
        return [
            self._build_result(asset, amount * scaling_factor if amount > 0 else amount, new_total)
            for asset, amount in zip(assets, tentative)
        ]

    def _sort_by_deviation(self, assets: Sequence[Asset], current_total: float) -> List[int]:
        """Indices ordered from most underweight to most overweight"""
        deviations = []
        for asset in assets:
            current_percentage = (asset.current_value / current_total * 100) if current_total > 0 else 0
            deviations.append(current_percentage - asset.target_percentage * 100)

        order = sorted(range(len(assets)), key=lambda i: deviations[i])
        self.logger.debug(
            "Allocation order: " + ", ".join(f"{assets[i].symbol} ({deviations[i]:+.2f}%)" for i in order)
        )
        return order

    def _build_result(self, asset: Asset, amount_to_add: float, new_total: float) -> AllocationResult:
        new_value = asset.current_value + amount_to_add
        new_percentage = (new_value / new_total * 100) if new_total > 0 else 0.0
        target_percentage = asset.target_percentage * 100
        return AllocationResult(
            symbol=asset.symbol,
            amount_to_add=amount_to_add,
            new_value=new_value,
            new_percentage=new_percentage,
            target_percentage=target_percentage,
            difference=new_percentage - target_percentage
        )


def calculate_allocations(assets: Sequence[Asset], new_money: float,
                          enable_selling: bool = False) -> List[AllocationResult]:
    """Module-level shortcut for AllocationCalculator().calculate_allocations"""
    return AllocationCalculator().calculate_allocations(assets, new_money, enable_selling)

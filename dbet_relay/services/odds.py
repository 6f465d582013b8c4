"""
Odds and outcome derivation for position NFTs.

Pure functions: stake arithmetic stays in integers / Fractions and is only
turned into a two-decimal `Decimal` for display.
"""

import operator
from dataclasses import dataclass
from decimal import ROUND_DOWN, Decimal
from enum import Enum
from fractions import Fraction
from typing import Optional

NEUTRAL_PERCENTAGE = Decimal("50.00")
_CENTS = Decimal("0.01")


class PositionState(str, Enum):
    """Outcome state shown on a position."""
    PENDING = "Pending"
    WON = "Won"
    LOST = "Lost"


class DisplayTier(str, Enum):
    """Asset tier a position is rendered with."""
    INITIAL = "initial"
    SLIGHT_ADVANTAGE = "slight_advantage"
    HUGE_ADVANTAGE = "huge_advantage"
    SLIGHT_DISADVANTAGE = "slight_disadvantage"
    HUGE_DISADVANTAGE = "huge_disadvantage"
    WIN = "win"
    LOSS = "loss"


@dataclass(frozen=True)
class Derivation:
    """Odds and outcome for a single position."""
    percentage: Decimal
    state: PositionState
    tier: DisplayTier

    @property
    def formatted_percentage(self) -> str:
        return format_percentage(self.percentage)


def _non_negative(name: str, value: int) -> int:
    value = operator.index(value)
    if value < 0:
        raise ValueError(f"{name} must be non-negative, got {value}")
    return value


def compute_percentage(total_stake: int, option_stake: int) -> Decimal:
    """Share of the total pool held by one option, as a 0-100 percentage.

    An empty pool yields the neutral 50.00.
    """
    total_stake = _non_negative("total_stake", total_stake)
    option_stake = _non_negative("option_stake", option_stake)
    if total_stake == 0:
        return NEUTRAL_PERCENTAGE

    ratio = Fraction(option_stake * 100, total_stake)
    # Truncate to hundredths in integers; Decimal division would round first
    hundredths = (ratio.numerator * 100) // ratio.denominator
    return Decimal(hundredths).scaleb(-2)


def select_tier(percentage: Decimal) -> DisplayTier:
    """Pick the display tier for an unresolved position.

    The 45-55 band and the exact 25 and 75 boundaries show `initial`.
    """
    if percentage > 75:
        return DisplayTier.HUGE_ADVANTAGE
    if 55 < percentage < 75:
        return DisplayTier.SLIGHT_ADVANTAGE
    if percentage < 25:
        return DisplayTier.HUGE_DISADVANTAGE
    if 25 < percentage < 45:
        return DisplayTier.SLIGHT_DISADVANTAGE
    return DisplayTier.INITIAL


def resolve_state(
    is_resolved: bool,
    winning_index: Optional[int],
    position_option_index: int,
) -> PositionState:
    """Won/Lost once resolved, Pending otherwise."""
    if not is_resolved:
        return PositionState.PENDING
    if winning_index is None:
        raise ValueError("winning_index is required for a resolved market")
    if operator.index(winning_index) == operator.index(position_option_index):
        return PositionState.WON
    return PositionState.LOST


def derive(
    total_stake: int,
    position_option_stake: int,
    is_resolved: bool,
    winning_index: Optional[int],
    position_option_index: int,
) -> Derivation:
    """Derive the odds, outcome state and display tier for a position.

    Args:
        total_stake: Market-wide pooled stake
        position_option_stake: Pooled stake of the option the position backs
        is_resolved: Whether the market has been resolved on-chain
        winning_index: Winning option index, ignored while unresolved
        position_option_index: Option index the position backs

    Returns:
        Derivation with the percentage relative to the position's own option
    """
    percentage = compute_percentage(total_stake, position_option_stake)
    state = resolve_state(is_resolved, winning_index, position_option_index)

    if state is PositionState.WON:
        tier = DisplayTier.WIN
    elif state is PositionState.LOST:
        tier = DisplayTier.LOSS
    else:
        tier = select_tier(percentage)

    return Derivation(percentage=percentage, state=state, tier=tier)


def format_percentage(percentage: Decimal) -> str:
    """Render a percentage for display, e.g. `70.00%`."""
    return f"{percentage.quantize(_CENTS, rounding=ROUND_DOWN)}%"

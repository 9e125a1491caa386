"""
Unit conversion system for the Mill Production Tracker.

This module provides:
- The closed set of weight units and their factors to kilograms
- The bag-style units found in historical data (never converted)
- Conversion to and from the canonical unit (KG)
- Display helpers

Conversion Strategy:
- Every weight unit converts through kilograms (base unit)
- Arithmetic is Decimal throughout; nothing is rounded here
- Bag-style units are opaque counts and must be filtered out by callers
"""

from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import Optional, Union

from src.services.exceptions import InvalidUnitError


class WeightUnit(str, Enum):
    """Weight units accepted for input and output quantities."""

    KG = "KG"
    QUINTAL = "Quintal"
    TON = "Ton"


# ============================================================================
# Standard Conversion Tables
# ============================================================================

WEIGHT_TO_KG = {
    WeightUnit.KG: Decimal("1"),
    WeightUnit.QUINTAL: Decimal("100"),
    WeightUnit.TON: Decimal("1000"),
}

WEIGHT_UNITS = [unit.value for unit in WeightUnit]

# Bag-style units seen in historical records. They count bags, not weight.
BAG_UNITS = ["Bags", "5Kg Bags", "40Kg Bags"]

BASE_UNIT = WeightUnit.KG

UnitLike = Union[WeightUnit, str, None]
AmountLike = Union[Decimal, int, float, str]


# ============================================================================
# Unit Type Detection
# ============================================================================


def parse_weight_unit(unit: UnitLike) -> Optional[WeightUnit]:
    """
    Resolve a unit string to a WeightUnit.

    Matching ignores case and surrounding whitespace ("kg", " Quintal ").

    Args:
        unit: WeightUnit or unit string

    Returns:
        WeightUnit, or None if the unit is not a weight unit
    """
    if isinstance(unit, WeightUnit):
        return unit
    if not unit:
        return None
    wanted = str(unit).strip().lower()
    for weight_unit in WeightUnit:
        if weight_unit.value.lower() == wanted:
            return weight_unit
    return None


def is_weight_unit(unit: UnitLike) -> bool:
    """Check if a unit is one of KG, Quintal, Ton."""
    return parse_weight_unit(unit) is not None


def is_bag_unit(unit: UnitLike) -> bool:
    """Check if a unit is a bag-style count unit."""
    if not unit or isinstance(unit, WeightUnit):
        return False
    wanted = str(unit).strip().lower()
    return any(bag.lower() == wanted for bag in BAG_UNITS)


def get_unit_type(unit: UnitLike) -> str:
    """
    Determine the type of a unit.

    Returns:
        "weight", "bag", or "unknown"
    """
    if is_weight_unit(unit):
        return "weight"
    if is_bag_unit(unit):
        return "bag"
    return "unknown"


def _require_weight_unit(unit: UnitLike) -> WeightUnit:
    weight_unit = parse_weight_unit(unit)
    if weight_unit is None:
        raise InvalidUnitError(unit)
    return weight_unit


def _to_decimal(amount: AmountLike) -> Decimal:
    if isinstance(amount, Decimal):
        return amount
    # str() keeps floats like 0.1 from dragging in binary noise
    return Decimal(str(amount))


# ============================================================================
# Conversions
# ============================================================================


def to_base(amount: AmountLike, unit: UnitLike) -> Decimal:
    """
    Convert a quantity to kilograms.

    Zero and negative amounts are passed through unchanged.

    Args:
        amount: Quantity in `unit`
        unit: KG, Quintal or Ton

    Returns:
        Quantity in kilograms

    Raises:
        InvalidUnitError: If unit is not a weight unit (bag units included)
    """
    weight_unit = _require_weight_unit(unit)
    return _to_decimal(amount) * WEIGHT_TO_KG[weight_unit]


def from_base(amount_kg: AmountLike, target_unit: UnitLike) -> Decimal:
    """
    Convert a quantity in kilograms to `target_unit`.

    Raises:
        InvalidUnitError: If target_unit is not a weight unit
    """
    weight_unit = _require_weight_unit(target_unit)
    return _to_decimal(amount_kg) / WEIGHT_TO_KG[weight_unit]


def convert_weight(amount: AmountLike, from_unit: UnitLike, to_unit: UnitLike) -> Decimal:
    """
    Convert between two weight units via kilograms.

    Example:
        >>> convert_weight(250, "KG", "Quintal")
        Decimal('2.5')
    """
    return from_base(to_base(amount, from_unit), to_unit)


def resolve_display_unit(selection: UnitLike) -> WeightUnit:
    """
    Pick the unit statistics are reported in.

    An empty selection, or anything that isn't a weight unit, means KG.
    """
    return parse_weight_unit(selection) or BASE_UNIT


# ============================================================================
# Display Helpers
# ============================================================================


def format_quantity(
    amount: AmountLike, unit: UnitLike, precision: int = 2
) -> str:
    """
    Format a quantity for display.

    Rounding happens here, at presentation time, never in the conversions.

    Example:
        >>> format_quantity(Decimal("2.456"), "Quintal")
        '2.46 Quintal'
    """
    quantum = Decimal(1).scaleb(-precision)
    rounded = _to_decimal(amount).quantize(quantum, rounding=ROUND_HALF_UP)
    unit_label = unit.value if isinstance(unit, WeightUnit) else (unit or "")
    return f"{rounded} {unit_label}".strip()

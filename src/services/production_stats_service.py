"""
Production Statistics Service.

Rolls a batch of production records up into report totals. Quantities
recorded in different weight units (KG, Quintal, Ton) are normalized to
kilograms, accumulated, then converted once into the unit the user asked
to see.

The engine never fetches data: callers pass records already filtered and
paginated by production_record_service.list_records (or any sequence of
objects with the same attributes). It is pure and deterministic; every
total is a single left-to-right fold over records and their outputs.

Usage:
    from src.services.production_stats_service import aggregate_production_stats

    stats = aggregate_production_stats(records, display_unit="Quintal")
    stats.total_production_by_item["Atta"]
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, Iterable, Optional

from src.services.logging_utils import get_service_logger, log_operation
from src.services.unit_converter import (
    WeightUnit,
    UnitLike,
    from_base,
    is_bag_unit,
    is_weight_unit,
    resolve_display_unit,
    to_base,
)
from src.utils.constants import ITEM_ATTA, ITEM_CHOKAR, ITEM_WASTAGE

logger = get_service_logger(__name__)

ZERO = Decimal("0")
HUNDRED = Decimal("100")


def _decimal(value) -> Decimal:
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


@dataclass
class UnitBreakdown:
    """Raw, unconverted totals for one literal unit string.

    Kept for audit: the headline totals are normalized, this is not.
    bag_count is only set for bag-style units.
    """

    total_qty: Decimal = ZERO
    atta_qty: Decimal = ZERO
    chokar_qty: Decimal = ZERO
    wastage_qty: Decimal = ZERO
    bag_count: Optional[Decimal] = None

    def add(self, item_name: str, quantity: Decimal, bag: bool) -> None:
        self.total_qty += quantity
        if item_name == ITEM_ATTA:
            self.atta_qty += quantity
        elif item_name == ITEM_CHOKAR:
            self.chokar_qty += quantity
        elif item_name == ITEM_WASTAGE:
            self.wastage_qty += quantity
        if bag:
            self.bag_count = (self.bag_count or ZERO) + quantity

    def merged(self, other: "UnitBreakdown") -> "UnitBreakdown":
        if self.bag_count is None and other.bag_count is None:
            bag_count = None
        else:
            bag_count = (self.bag_count or ZERO) + (other.bag_count or ZERO)
        return UnitBreakdown(
            total_qty=self.total_qty + other.total_qty,
            atta_qty=self.atta_qty + other.atta_qty,
            chokar_qty=self.chokar_qty + other.chokar_qty,
            wastage_qty=self.wastage_qty + other.wastage_qty,
            bag_count=bag_count,
        )

    def to_dict(self) -> dict:
        result = {
            "total_qty": str(self.total_qty),
            "atta_qty": str(self.atta_qty),
            "chokar_qty": str(self.chokar_qty),
            "wastage_qty": str(self.wastage_qty),
        }
        if self.bag_count is not None:
            result["bag_count"] = str(self.bag_count)
        return result


@dataclass
class ProductionStatistics:
    """Aggregated statistics for a set of production records.

    All weight totals are expressed in display_unit. Bag counts are kept in
    their own buckets and never mixed into a weight total.
    """

    display_unit: WeightUnit = WeightUnit.KG
    record_count: int = 0
    total_input_consumption: Decimal = ZERO
    input_bag_count: Decimal = ZERO
    total_output: Decimal = ZERO
    overall_efficiency: Decimal = ZERO
    total_production_by_item: Dict[str, Decimal] = field(default_factory=dict)
    average_production_by_item: Dict[str, Decimal] = field(default_factory=dict)
    output_count_by_item: Dict[str, int] = field(default_factory=dict)
    bag_count_by_item: Dict[str, Decimal] = field(default_factory=dict)
    unit_breakdown: Dict[str, UnitBreakdown] = field(default_factory=dict)
    records_by_shift: Dict[str, int] = field(default_factory=dict)
    records_by_location: Dict[str, int] = field(default_factory=dict)
    records_by_status: Dict[str, int] = field(default_factory=dict)

    def average_for(self, item_name: str) -> Decimal:
        """Average output per line for item_name; 0 when it never occurs."""
        return self.average_production_by_item.get(item_name, ZERO)

    def combine(self, other: "ProductionStatistics") -> "ProductionStatistics":
        """Statistics of two disjoint batches as if aggregated in one pass."""
        return merge_statistics(self, other)

    def to_dict(self) -> dict:
        """JSON-safe representation (Decimals as strings)."""

        def _strs(values: Dict[str, Decimal]) -> Dict[str, str]:
            return {key: str(value) for key, value in values.items()}

        return {
            "display_unit": self.display_unit.value,
            "record_count": self.record_count,
            "total_input_consumption": str(self.total_input_consumption),
            "input_bag_count": str(self.input_bag_count),
            "total_output": str(self.total_output),
            "overall_efficiency": str(self.overall_efficiency),
            "total_production_by_item": _strs(self.total_production_by_item),
            "average_production_by_item": _strs(self.average_production_by_item),
            "output_count_by_item": dict(self.output_count_by_item),
            "bag_count_by_item": _strs(self.bag_count_by_item),
            "unit_breakdown": {
                unit: breakdown.to_dict() for unit, breakdown in self.unit_breakdown.items()
            },
            "records_by_shift": dict(self.records_by_shift),
            "records_by_location": dict(self.records_by_location),
            "records_by_status": dict(self.records_by_status),
        }


# =============================================================================
# Per-record helpers
# =============================================================================


def record_output_total_kg(record) -> Decimal:
    """Sum of a record's weight-unit outputs, in KG. Bag outputs are ignored."""
    total = ZERO
    for output in record.outputs or []:
        if is_weight_unit(output.unit):
            total += to_base(_decimal(output.quantity), output.unit)
    return total


def conversion_efficiency(record) -> Decimal:
    """
    Percentage of the input weight that came out as weight outputs.

    Returns 0 when the input is zero or isn't recorded in a weight unit.
    """
    if not is_weight_unit(record.input_unit):
        return ZERO
    input_kg = to_base(_decimal(record.input_quantity), record.input_unit)
    if input_kg == ZERO:
        return ZERO
    return record_output_total_kg(record) / input_kg * HUNDRED


# =============================================================================
# Aggregation
# =============================================================================


def _increment(counter: Dict[str, int], key) -> None:
    if key is None or key == "":
        return
    key = getattr(key, "value", key)
    counter[key] = counter.get(key, 0) + 1


def _efficiency(total_output: Decimal, total_input: Decimal) -> Decimal:
    if total_input == ZERO:
        return ZERO
    return total_output / total_input * HUNDRED


def aggregate_production_stats(
    records: Iterable,
    display_unit: UnitLike = None,
) -> ProductionStatistics:
    """
    Aggregate production records into statistics.

    Args:
        records: Production records (already filtered by the query layer)
        display_unit: Unit to express weight totals in. Empty, or anything
            that isn't a weight unit, means KG.

    Returns:
        ProductionStatistics

    Example:
        One record consuming 1000 KG and producing 700 KG Atta, 250 KG
        Chokar, 50 KG Wastage, shown in Quintal, gives an input of 10 and
        item totals of 7, 2.5 and 0.5.
    """
    unit = resolve_display_unit(display_unit)

    input_kg = ZERO
    input_bags = ZERO
    item_kg: Dict[str, Decimal] = {}
    item_counts: Dict[str, int] = {}
    item_bags: Dict[str, Decimal] = {}
    breakdown: Dict[str, UnitBreakdown] = {}
    by_shift: Dict[str, int] = {}
    by_location: Dict[str, int] = {}
    by_status: Dict[str, int] = {}
    record_count = 0

    for record in records:
        record_count += 1
        _increment(by_shift, getattr(record, "shift", None))
        _increment(by_location, getattr(record, "location", None))
        _increment(by_status, getattr(record, "status", None))

        input_quantity = _decimal(record.input_quantity)
        if is_weight_unit(record.input_unit):
            input_kg += to_base(input_quantity, record.input_unit)
        elif is_bag_unit(record.input_unit):
            input_bags += input_quantity

        for output in record.outputs or []:
            name = output.item_name or ""
            quantity = _decimal(output.quantity)
            output_unit = output.unit or ""
            bag = is_bag_unit(output_unit)

            item_counts[name] = item_counts.get(name, 0) + 1
            if is_weight_unit(output_unit):
                item_kg[name] = item_kg.get(name, ZERO) + to_base(quantity, output_unit)
            elif bag:
                item_bags[name] = item_bags.get(name, ZERO) + quantity

            breakdown.setdefault(output_unit, UnitBreakdown()).add(name, quantity, bag)

    stats = _finalize(
        unit=unit,
        record_count=record_count,
        input_kg=input_kg,
        input_bags=input_bags,
        item_kg=item_kg,
        item_counts=item_counts,
        item_bags=item_bags,
        breakdown=breakdown,
        by_shift=by_shift,
        by_location=by_location,
        by_status=by_status,
    )

    log_operation(
        logger,
        operation="aggregate_production_stats",
        outcome="success",
        level=logging.DEBUG,
        record_count=record_count,
        display_unit=unit.value,
    )
    return stats


def _finalize(
    *,
    unit: WeightUnit,
    record_count: int,
    input_kg: Decimal,
    input_bags: Decimal,
    item_kg: Dict[str, Decimal],
    item_counts: Dict[str, int],
    item_bags: Dict[str, Decimal],
    breakdown: Dict[str, UnitBreakdown],
    by_shift: Dict[str, int],
    by_location: Dict[str, int],
    by_status: Dict[str, int],
) -> ProductionStatistics:
    """Convert KG accumulators into display-unit statistics."""
    totals: Dict[str, Decimal] = {}
    averages: Dict[str, Decimal] = {}
    output_kg = ZERO

    for name, count in item_counts.items():
        kg = item_kg.get(name, ZERO)
        output_kg += kg
        total = from_base(kg, unit)
        totals[name] = total
        averages[name] = total / count if count else ZERO

    return ProductionStatistics(
        display_unit=unit,
        record_count=record_count,
        total_input_consumption=from_base(input_kg, unit),
        input_bag_count=input_bags,
        total_output=from_base(output_kg, unit),
        overall_efficiency=_efficiency(output_kg, input_kg),
        total_production_by_item=totals,
        average_production_by_item=averages,
        output_count_by_item=dict(item_counts),
        bag_count_by_item=item_bags,
        unit_breakdown=breakdown,
        records_by_shift=by_shift,
        records_by_location=by_location,
        records_by_status=by_status,
    )


def _sum_maps(left: Dict, right: Dict, zero) -> Dict:
    merged = dict(left)
    for key, value in right.items():
        merged[key] = merged.get(key, zero) + value
    return merged


def merge_statistics(
    first: ProductionStatistics, second: ProductionStatistics
) -> ProductionStatistics:
    """
    Combine statistics of two disjoint record batches.

    Totals and counts add; averages and efficiency are recomputed from the
    combined totals, so the result matches aggregating both batches at once.

    Raises:
        ValueError: If the two were computed in different display units
    """
    if first.display_unit != second.display_unit:
        raise ValueError(
            f"Cannot merge statistics in {first.display_unit.value} "
            f"and {second.display_unit.value}"
        )

    unit = first.display_unit
    item_kg = {
        name: to_base(total, unit)
        for name, total in _sum_maps(
            first.total_production_by_item, second.total_production_by_item, ZERO
        ).items()
    }
    breakdown = dict(first.unit_breakdown)
    for unit_name, part in second.unit_breakdown.items():
        breakdown[unit_name] = (
            breakdown[unit_name].merged(part) if unit_name in breakdown else part
        )

    return _finalize(
        unit=unit,
        record_count=first.record_count + second.record_count,
        input_kg=to_base(first.total_input_consumption + second.total_input_consumption, unit),
        input_bags=first.input_bag_count + second.input_bag_count,
        item_kg=item_kg,
        item_counts=_sum_maps(first.output_count_by_item, second.output_count_by_item, 0),
        item_bags=_sum_maps(first.bag_count_by_item, second.bag_count_by_item, ZERO),
        breakdown=breakdown,
        by_shift=_sum_maps(first.records_by_shift, second.records_by_shift, 0),
        by_location=_sum_maps(first.records_by_location, second.records_by_location, 0),
        by_status=_sum_maps(first.records_by_status, second.records_by_status, 0),
    )

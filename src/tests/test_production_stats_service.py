"""Tests for the production statistics service.

Covers unit normalization, additivity across record batches, zero-division
safety and the separation of bag counts from weight totals.
"""

from decimal import Decimal

import pytest

from src.services.production_stats_service import (
    ProductionStatistics,
    aggregate_production_stats,
    conversion_efficiency,
    merge_statistics,
    record_output_total_kg,
)
from src.services.unit_converter import WeightUnit


STANDARD_OUTPUTS = [
    ("Atta", "700", "KG"),
    ("Chokar", "250", "KG"),
    ("Wastage", "50", "KG"),
]


class TestAggregateProductionStats:
    """Tests for aggregate_production_stats()."""

    def test_single_record_in_quintal(self, fake_record):
        """1000 KG in, 700/250/50 KG out, shown in Quintal."""
        record = fake_record(outputs=STANDARD_OUTPUTS)

        stats = aggregate_production_stats([record], display_unit="Quintal")

        assert stats.display_unit == WeightUnit.QUINTAL
        assert stats.record_count == 1
        assert stats.total_input_consumption == Decimal("10")
        assert stats.total_production_by_item["Atta"] == Decimal("7")
        assert stats.total_production_by_item["Chokar"] == Decimal("2.5")
        assert stats.total_production_by_item["Wastage"] == Decimal("0.5")
        assert stats.average_for("Atta") == Decimal("7")
        assert stats.total_output == Decimal("10")
        assert stats.overall_efficiency == Decimal("100")

    def test_mixed_units_normalize_through_kg(self, fake_record):
        """Quantities in different units add up as kilograms."""
        records = [
            fake_record(record_id=1, input_quantity="2", input_unit="Ton",
                        outputs=[("Atta", "15", "Quintal")]),
            fake_record(record_id=2, input_quantity="500", input_unit="KG",
                        outputs=[("Atta", "0.3", "Ton")]),
        ]

        stats = aggregate_production_stats(records, display_unit="KG")

        assert stats.total_input_consumption == Decimal("2500")
        assert stats.total_production_by_item["Atta"] == Decimal("1800")
        assert stats.output_count_by_item["Atta"] == 2
        assert stats.average_for("Atta") == Decimal("900")

    def test_default_display_unit_is_kg(self, fake_record):
        """No selection means KG."""
        stats = aggregate_production_stats([fake_record(outputs=STANDARD_OUTPUTS)])
        assert stats.display_unit == WeightUnit.KG
        assert stats.total_input_consumption == Decimal("1000")

    def test_empty_input_is_all_zero(self):
        """No records: every total and average is zero."""
        stats = aggregate_production_stats([], display_unit="Ton")

        assert stats.record_count == 0
        assert stats.total_input_consumption == Decimal("0")
        assert stats.total_output == Decimal("0")
        assert stats.overall_efficiency == Decimal("0")
        assert stats.average_for("Atta") == Decimal("0")

    def test_records_without_outputs_do_not_divide_by_zero(self, fake_record):
        """Averages stay zero for items that never occur."""
        stats = aggregate_production_stats([fake_record(), fake_record(record_id=2)])

        assert stats.record_count == 2
        assert stats.total_production_by_item == {}
        assert stats.average_for("Chokar") == Decimal("0")

    def test_zero_input_gives_zero_efficiency(self, fake_record):
        """Efficiency is 0, not an error, when nothing was consumed."""
        record = fake_record(input_quantity="0", outputs=[("Atta", "5", "KG")])

        stats = aggregate_production_stats([record])

        assert stats.overall_efficiency == Decimal("0")
        assert conversion_efficiency(record) == Decimal("0")

    def test_counts_by_shift_location_status(self, fake_record):
        """Records are counted per shift, location and status."""
        records = [
            fake_record(record_id=1, shift="Day", location="Mill A"),
            fake_record(record_id=2, shift="Night", location="Mill A", status="Finished"),
            fake_record(record_id=3, shift="Night", location="Mill B"),
        ]

        stats = aggregate_production_stats(records)

        assert stats.records_by_shift == {"Day": 1, "Night": 2}
        assert stats.records_by_location == {"Mill A": 2, "Mill B": 1}
        assert stats.records_by_status == {"In Production": 2, "Finished": 1}

    def test_stats_from_persisted_records(self, test_db, sample_record):
        """ProductionRecord models aggregate like any lookalike."""
        stats = aggregate_production_stats([sample_record], display_unit="Quintal")

        assert stats.total_input_consumption == Decimal("10")
        assert stats.total_production_by_item["Chokar"] == Decimal("2.5")


class TestBagUnitIsolation:
    """Bag-style quantities never leak into weight totals."""

    def test_bag_outputs_are_counted_separately(self, fake_record):
        """Bag outputs count as lines but add no weight."""
        record = fake_record(
            outputs=[
                ("Atta", "700", "KG"),
                ("Atta", "12", "40Kg Bags"),
            ]
        )

        stats = aggregate_production_stats([record])

        assert stats.total_production_by_item["Atta"] == Decimal("700")
        assert stats.output_count_by_item["Atta"] == 2
        assert stats.bag_count_by_item["Atta"] == Decimal("12")
        assert stats.total_output == Decimal("700")

    def test_bag_input_is_not_weight(self, fake_record):
        """Input recorded in bags is reported as a bag count."""
        record = fake_record(input_quantity="20", input_unit="Bags",
                             outputs=[("Atta", "700", "KG")])

        stats = aggregate_production_stats([record])

        assert stats.total_input_consumption == Decimal("0")
        assert stats.input_bag_count == Decimal("20")
        assert stats.overall_efficiency == Decimal("0")

    def test_output_total_ignores_bags(self, fake_record):
        """record_output_total_kg sums weight outputs only."""
        record = fake_record(outputs=[("Atta", "2", "Quintal"), ("Chokar", "3", "5Kg Bags")])
        assert record_output_total_kg(record) == Decimal("200")


class TestUnitBreakdown:
    """Raw per-unit totals."""

    def test_breakdown_keeps_literal_units(self, fake_record):
        """Each literal unit string keeps its own unconverted totals."""
        record = fake_record(
            outputs=[
                ("Atta", "7", "Quintal"),
                ("Chokar", "250", "KG"),
                ("Wastage", "50", "KG"),
                ("Atta", "4", "40Kg Bags"),
            ]
        )

        stats = aggregate_production_stats([record], display_unit="Ton")

        quintal = stats.unit_breakdown["Quintal"]
        assert quintal.total_qty == Decimal("7")
        assert quintal.atta_qty == Decimal("7")
        assert quintal.bag_count is None

        kg = stats.unit_breakdown["KG"]
        assert kg.total_qty == Decimal("300")
        assert kg.chokar_qty == Decimal("250")
        assert kg.wastage_qty == Decimal("50")

        bags = stats.unit_breakdown["40Kg Bags"]
        assert bags.bag_count == Decimal("4")

    def test_to_dict_is_json_safe(self, fake_record):
        """Decimals are rendered as strings."""
        stats = aggregate_production_stats([fake_record(outputs=STANDARD_OUTPUTS)])
        data = stats.to_dict()

        assert data["display_unit"] == "KG"
        assert data["total_production_by_item"]["Atta"] == "700"
        assert data["unit_breakdown"]["KG"]["total_qty"] == "1000"


class TestMergeStatistics:
    """Aggregation is additive over disjoint batches."""

    def test_merge_equals_single_pass(self, fake_record):
        """aggregate(A + B) matches merge(aggregate(A), aggregate(B))."""
        batch_a = [
            fake_record(record_id=1, outputs=STANDARD_OUTPUTS),
            fake_record(record_id=2, input_quantity="3", input_unit="Quintal",
                        outputs=[("Atta", "2", "Quintal")]),
        ]
        batch_b = [
            fake_record(record_id=3, input_quantity="1", input_unit="Ton", shift="Night",
                        outputs=[("Atta", "800", "KG"), ("Wastage", "1", "Bags")]),
        ]

        combined = aggregate_production_stats(batch_a + batch_b, display_unit="Quintal")
        merged = merge_statistics(
            aggregate_production_stats(batch_a, display_unit="Quintal"),
            aggregate_production_stats(batch_b, display_unit="Quintal"),
        )

        assert merged.record_count == combined.record_count
        assert merged.total_input_consumption == combined.total_input_consumption
        assert merged.total_production_by_item == combined.total_production_by_item
        assert merged.average_production_by_item == combined.average_production_by_item
        assert merged.output_count_by_item == combined.output_count_by_item
        assert merged.bag_count_by_item == combined.bag_count_by_item
        assert merged.overall_efficiency == combined.overall_efficiency
        assert merged.records_by_shift == combined.records_by_shift
        assert merged.unit_breakdown == combined.unit_breakdown

    def test_combine_method(self, fake_record):
        """ProductionStatistics.combine delegates to merge_statistics."""
        first = aggregate_production_stats([fake_record(outputs=STANDARD_OUTPUTS)])
        second = aggregate_production_stats([fake_record(record_id=2, outputs=STANDARD_OUTPUTS)])

        both = first.combine(second)

        assert both.record_count == 2
        assert both.total_production_by_item["Atta"] == Decimal("1400")
        assert both.average_for("Atta") == Decimal("700")

    def test_merge_with_empty(self, fake_record):
        """Merging with empty statistics changes nothing."""
        stats = aggregate_production_stats([fake_record(outputs=STANDARD_OUTPUTS)])

        merged = merge_statistics(stats, ProductionStatistics())

        assert merged.total_production_by_item == stats.total_production_by_item
        assert merged.record_count == 1

    def test_merge_rejects_different_units(self):
        """Statistics in different display units can't be merged."""
        with pytest.raises(ValueError, match="Cannot merge"):
            merge_statistics(
                aggregate_production_stats([], display_unit="KG"),
                aggregate_production_stats([], display_unit="Ton"),
            )

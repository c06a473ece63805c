"""
Tests for BudgetEngine.

Pricing, aggregation and session splitting over in-memory markers.
"""

from decimal import Decimal

import pytest
from unittest.mock import Mock

from dental_budget.core.annotation import EventType, Marker
from dental_budget.core.budget import DEFAULT_SESSION_AMOUNT, BudgetEngine
from dental_budget.core.errors import CatalogUnavailableError, InvalidSessionCount


def mark(name, image_index=0, x=10.0, y=10.0):
    return Marker(x, y, "#000000", name, image_index)


def record_all(engine, *names, image_index=0):
    markers = [mark(name, image_index) for name in names]
    for marker in markers:
        engine.record_marker(marker)
    return markers


class TestAggregation:
    def test_extraction_and_crown_scenario(self, engine):
        record_all(engine, "Extraction", "Extraction", "Crown")

        lines = engine.compute_lines()

        assert [(l.treatment_name, l.count, l.line_total) for l in lines] == [
            ("Extraction", 2, Decimal(2000)),
            ("Crown", 1, Decimal(1800)),
        ]
        assert lines[0].unit_cost == Decimal(1000)
        assert engine.grand_total() == Decimal(3800)
        assert engine.suggested_session_count() == 1

    def test_lines_follow_first_seen_order(self, engine):
        record_all(engine, "Crown", "Extraction", "Crown")
        assert [l.treatment_name for l in engine.compute_lines()] == [
            "Crown",
            "Extraction",
        ]

    def test_names_are_case_sensitive(self, engine):
        record_all(engine, "Crown", "crown")

        lines = {l.treatment_name: l for l in engine.compute_lines()}
        assert lines["Crown"].unit_cost == Decimal(1800)
        assert lines["crown"].unit_cost == Decimal(0)

    def test_unknown_treatment_costs_nothing(self, engine):
        record_all(engine, "Unknown", "Crown")

        lines = engine.compute_lines()
        assert lines[0].treatment_name == "Unknown"
        assert lines[0].unit_cost == Decimal(0)
        assert lines[0].line_total == Decimal(0)
        assert engine.grand_total() == Decimal(1800)

    def test_inactive_treatment_costs_nothing(self, engine):
        record_all(engine, "Veneer")
        assert engine.grand_total() == Decimal(0)

    def test_empty_budget(self, engine):
        assert engine.compute_lines() == []
        assert engine.grand_total() == Decimal(0)
        assert engine.suggested_session_count() == 1

    def test_grand_total_is_sum_of_lines(self, engine):
        record_all(engine, "Crown", "Bridge", "Extraction", "Crown", "Unknown")
        expected = sum(l.count * l.unit_cost for l in engine.compute_lines())
        assert engine.grand_total() == expected == Decimal(8900)

    def test_catalog_unavailable_falls_back_to_zero(self):
        def lookup(name):
            raise CatalogUnavailableError("store offline")

        engine = BudgetEngine(lookup)
        record_all(engine, "Crown")

        assert engine.compute_lines()[0].unit_cost == Decimal(0)
        assert engine.grand_total() == Decimal(0)

    def test_float_costs_are_converted(self):
        engine = BudgetEngine(lambda name: 0.1)
        record_all(engine, "A", "A", "A")
        assert engine.grand_total() == Decimal("0.3")


class TestMarkerCollection:
    def test_record_is_idempotent(self, engine):
        marker = mark("Crown")

        assert engine.record_marker(marker)
        assert not engine.record_marker(marker)

        assert len(engine) == 1
        assert engine.compute_lines()[0].count == 1

    def test_remove_marker_twice(self, engine):
        marker, other = record_all(engine, "Crown", "Extraction")

        assert engine.remove_marker(marker.marker_id)
        assert not engine.remove_marker(marker.marker_id)

        assert engine.markers == [other]

    def test_counts_track_placements_minus_removals(self, engine):
        crowns = record_all(engine, *["Crown"] * 5)
        record_all(engine, "Extraction")
        for marker in crowns[:2]:
            engine.remove_marker(marker.marker_id)

        counts = {l.treatment_name: l.count for l in engine.compute_lines()}
        assert counts == {"Crown": 3, "Extraction": 1}

    def test_remove_all_for_image(self, engine):
        first = record_all(engine, "Crown", "Extraction", image_index=0)
        second = record_all(engine, "Crown", "Bridge", image_index=1)
        third = record_all(engine, "Extraction", image_index=2)

        removed = engine.remove_all_for_image(1)

        assert set(m.marker_id for m in removed) == set(m.marker_id for m in second)
        assert set(engine.markers) == set(first + third)
        assert engine.markers_by_image() == {
            0: {m.marker_id for m in first},
            2: {m.marker_id for m in third},
        }

    def test_remove_all_for_unknown_image(self, engine):
        record_all(engine, "Crown")
        assert engine.remove_all_for_image(9) == []
        assert len(engine) == 1

    def test_budget_changed_events(self, catalog):
        listener = Mock()
        engine = BudgetEngine(catalog.get_treatment_cost)
        engine.events.on(EventType.BUDGET_CHANGED, listener)

        marker = mark("Crown")
        engine.record_marker(marker)
        engine.record_marker(marker)
        engine.remove_marker(marker.marker_id)
        engine.remove_marker(marker.marker_id)

        assert listener.call_count == 2
        first = listener.call_args_list[0].args[0].data
        assert first["grand_total"] == Decimal(1800)
        assert first["session_plan"].session_count == 1
        last = listener.call_args_list[-1].args[0].data
        assert last["lines"] == []


class TestSessions:
    def test_session_amount_constant(self):
        assert DEFAULT_SESSION_AMOUNT == Decimal(4300)

    def test_nine_thousand_in_three_sessions(self, engine):
        record_all(engine, *["Crown"] * 5)
        assert engine.grand_total() == Decimal(9000)

        plan = engine.compute_session_plan(3)

        assert plan.session_count == 3
        assert plan.amount_per_session == Decimal(3000)

    def test_suggested_count_rounds_up(self):
        engine = BudgetEngine(lambda name: Decimal(4301))
        record_all(engine, "A")
        assert engine.suggested_session_count() == 2

    def test_exact_multiple(self, engine):
        record_all(engine, "Bridge", "Bridge", "Bridge")
        assert engine.suggested_session_count() == 3

    @pytest.mark.parametrize("sessions", [1, 2, 3, 7, 20])
    def test_plan_multiplies_back_to_total(self, engine, sessions):
        record_all(engine, "Extraction", "Extraction", "Crown")
        plan = engine.compute_session_plan(sessions)
        assert abs(plan.amount_per_session * sessions - engine.grand_total()) < Decimal(
            "1e-20"
        )

    @pytest.mark.parametrize("sessions", [0, -1, 2.5, True, "3"])
    def test_invalid_session_count(self, engine, sessions):
        with pytest.raises(InvalidSessionCount):
            engine.compute_session_plan(sessions)

    def test_zero_total_plan(self, engine):
        plan = engine.compute_session_plan(4)
        assert plan.amount_per_session == Decimal(0)

    def test_session_options(self, engine):
        record_all(engine, "Crown")
        assert [p.session_count for p in engine.session_options()] == [1, 3, 6]

    def test_session_options_deduplicate_suggestion(self, engine):
        record_all(engine, "Bridge", "Bridge", "Bridge")
        options = engine.session_options()
        assert [p.session_count for p in options] == [3, 6]
        assert options[0].amount_per_session == Decimal(4300)

    def test_session_override(self, engine):
        record_all(engine, *["Crown"] * 5)
        assert engine.current_session_plan().session_count == 3

        engine.set_session_count(4)
        assert engine.current_session_plan().amount_per_session == Decimal(2250)

        engine.set_session_count(None)
        assert engine.session_count == engine.suggested_session_count()

    def test_invalid_override_is_rejected(self, engine):
        engine.set_session_count(2)
        with pytest.raises(InvalidSessionCount):
            engine.set_session_count(0)
        assert engine.session_count == 2


class TestSummary:
    def test_summary_is_json_friendly(self, engine):
        record_all(engine, "Extraction", "Extraction", "Crown")

        summary = engine.summary()

        assert summary == {
            "lines": [
                {"name": "Extraction", "count": 2, "unit_cost": 1000, "total": 2000},
                {"name": "Crown", "count": 1, "unit_cost": 1800, "total": 1800},
            ],
            "grand_total": 3800,
            "suggested_sessions": 1,
            "session_plan": {"sessions": 1, "amount_per_session": 3800},
        }

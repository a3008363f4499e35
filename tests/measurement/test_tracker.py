"""Unit tests for SessionTracker and SessionReport.

Test Categories:
- Construction (quantity set validation)
- update_all (all-or-nothing, key forms)
- snapshot (independence from the live tracker, export)
"""

from __future__ import annotations

import math

import pytest

from cct_meter.measurement import (
    TRACKED_QUANTITIES,
    MissingQuantityError,
    Quantity,
    SessionTracker,
)


def _sample(
    cct: float = 4000.0,
    illuminance: float = 100.0,
    temperature: float = 25.0,
    integration_time: float = 0.5,
) -> dict[Quantity, float]:
    return {
        Quantity.CCT: cct,
        Quantity.ILLUMINANCE: illuminance,
        Quantity.INTERNAL_TEMPERATURE: temperature,
        Quantity.INTEGRATION_TIME: integration_time,
    }


class TestConstruction:
    """Quantity set handling."""

    def test_default_quantities(self) -> None:
        tracker = SessionTracker()

        assert tracker.quantities == TRACKED_QUANTITIES
        assert tracker.sample_count == 0

    def test_custom_quantities_accept_names(self) -> None:
        tracker = SessionTracker(["cct", Quantity.ILLUMINANCE])

        assert tracker.quantities == (Quantity.CCT, Quantity.ILLUMINANCE)

    def test_empty_quantity_set_rejected(self) -> None:
        with pytest.raises(ValueError, match="at least one"):
            SessionTracker([])

    def test_duplicate_quantities_rejected(self) -> None:
        with pytest.raises(ValueError, match="Duplicate"):
            SessionTracker([Quantity.CCT, "cct"])

    def test_unknown_quantity_rejected(self) -> None:
        with pytest.raises(ValueError):
            SessionTracker(["humidity"])


class TestUpdateAll:
    """Sample folding across all accumulators."""

    def test_updates_every_accumulator(self) -> None:
        """Verifies one call advances all accumulators together.

        Arrangement:
        1. Default tracker, restarted.

        Action:
        Folds two complete samples.

        Assertion Strategy:
        - Every accumulator has count 2.
        - Means per quantity are the averages of the two samples.

        Testing Principle:
        Accumulators of one tracker never diverge in sample count.
        """
        tracker = SessionTracker()
        tracker.restart_all()
        tracker.update_all(_sample(cct=4000.0, illuminance=100.0))
        tracker.update_all(_sample(cct=4010.0, illuminance=102.0))

        for quantity in TRACKED_QUANTITIES:
            assert tracker.accumulator(quantity).sample_count == 2
        assert tracker.accumulator(Quantity.CCT).mean == pytest.approx(4005.0)
        assert tracker.accumulator("illuminance").mean == pytest.approx(101.0)

    def test_missing_quantity_updates_nothing(self) -> None:
        """Verifies a partial sample is rejected before any update.

        Arrangement:
        1. Tracker with one complete sample folded.
        2. Second sample lacks the integration time.

        Action:
        Calls update_all with the partial sample.

        Assertion Strategy:
        - MissingQuantityError names "integration_time".
        - Every accumulator still has count 1 and its previous mean.
        """
        tracker = SessionTracker()
        tracker.update_all(_sample(cct=4000.0))
        partial = _sample(cct=5000.0)
        del partial[Quantity.INTEGRATION_TIME]

        with pytest.raises(MissingQuantityError) as excinfo:
            tracker.update_all(partial)

        assert excinfo.value.missing == ("integration_time",)
        assert "integration_time" in str(excinfo.value)
        for quantity in TRACKED_QUANTITIES:
            assert tracker.accumulator(quantity).sample_count == 1
        assert tracker.accumulator(Quantity.CCT).mean == 4000.0

    def test_string_keys_accepted(self) -> None:
        tracker = SessionTracker()
        tracker.update_all({q.value: v for q, v in _sample(cct=3500.0).items()})

        assert tracker.accumulator(Quantity.CCT).mean == 3500.0

    def test_extra_keys_ignored(self) -> None:
        tracker = SessionTracker([Quantity.CCT])
        tracker.update_all(_sample(cct=3000.0))

        assert tracker.sample_count == 1
        assert tracker.accumulator(Quantity.CCT).mean == 3000.0

    def test_restart_all_empties_every_accumulator(self) -> None:
        tracker = SessionTracker()
        tracker.update_all(_sample())
        tracker.restart_all()

        assert tracker.sample_count == 0
        for quantity in TRACKED_QUANTITIES:
            assert math.isnan(tracker.accumulator(quantity).mean)

    def test_untracked_accumulator_lookup_fails(self) -> None:
        tracker = SessionTracker([Quantity.CCT])

        with pytest.raises(KeyError):
            tracker.accumulator(Quantity.ILLUMINANCE)


class TestSnapshot:
    """SessionReport creation and access."""

    def test_snapshot_is_independent_of_tracker(self) -> None:
        """Verifies a report does not change when the tracker moves on.

        Arrangement:
        1. Tracker with one sample, snapshot taken.

        Action:
        Folds another sample and restarts the tracker.

        Assertion Strategy:
        - Report still shows count 1 and the original CCT mean.
        - Report mapping cannot be mutated.
        """
        tracker = SessionTracker()
        tracker.update_all(_sample(cct=4000.0))
        report = tracker.snapshot()

        tracker.update_all(_sample(cct=6000.0))
        tracker.restart_all()

        assert report.sample_count == 1
        assert report.cct.mean == 4000.0
        with pytest.raises(TypeError):
            report.statistics[Quantity.CCT] = report.cct  # type: ignore[index]

    def test_report_accessors(self) -> None:
        tracker = SessionTracker()
        for cct, lux in ((4000.0, 100.0), (4010.0, 102.0), (3990.0, 98.0)):
            tracker.update_all(_sample(cct=cct, illuminance=lux))
        report = tracker.snapshot()

        assert report.quantities == TRACKED_QUANTITIES
        assert report["cct"] is report.cct
        assert report.cct.standard_deviation == pytest.approx(10.0)
        assert report.illuminance.mean == pytest.approx(100.0)
        assert report.illuminance.standard_deviation == pytest.approx(2.0)
        assert report.internal_temperature.standard_deviation == 0.0
        assert report.integration_time.count == 3

    def test_empty_snapshot_reports_nan(self) -> None:
        report = SessionTracker().snapshot()

        assert report.sample_count == 0
        assert math.isnan(report.cct.mean)
        assert math.isnan(report.cct.standard_deviation)

    def test_to_dict_is_json_safe(self) -> None:
        tracker = SessionTracker([Quantity.CCT])
        tracker.update_all(_sample(cct=4000.0))

        assert tracker.snapshot().to_dict() == {
            "cct": {"count": 1, "mean": 4000.0, "standard_deviation": None}
        }

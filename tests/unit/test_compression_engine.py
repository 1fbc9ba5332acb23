"""
Tests for CompressionEngine.

Covers forward / inverse mapping, cache lifecycle, durations and the
round-trip and ordering properties over a handcrafted and a seeded
random diagram.
"""
import math
import random

import pytest

from timeline_diagram.compression.engine import CompressionEngine
from timeline_diagram.types import Interval
from timeline_diagram.utils.message import Log


class InMemoryDiagram:
    """Interval source backed by a list."""

    def __init__(self, intervals=None):
        self.intervals = list(intervals or [])
        self.reads = 0

    def get_intervals(self):
        self.reads += 1
        return list(self.intervals)


def make_diagram(*spans):
    """spans: (lane_id, start, duration) tuples; ids are 'i0', 'i1', ..."""
    return InMemoryDiagram(
        Interval(id=f"i{index}", lane_id=lane, start_offset=start, duration=duration)
        for index, (lane, start, duration) in enumerate(spans)
    )


@pytest.fixture
def log_records(caplog):
    logger = Log.get_logger()
    logger.addHandler(caplog.handler)
    yield caplog
    logger.removeHandler(caplog.handler)


@pytest.fixture
def scenario_a():
    diagram = make_diagram(("lane-1", 0, 100), ("lane-2", 5000, 100))
    engine = CompressionEngine(diagram, threshold=500, enabled=True)
    return diagram, engine


def random_diagram(seed: int, count: int = 60) -> InMemoryDiagram:
    rng = random.Random(seed)
    spans = []
    cursor = 0.0
    for _ in range(count):
        cursor += rng.choice([0, 0, 10, 300, 800, 2500, 20000])
        duration = float(rng.randint(1, 1500))
        spans.append((f"lane-{rng.randint(1, 5)}", cursor, duration))
        if rng.random() < 0.5:
            cursor += duration
    return make_diagram(*spans)


# =============================================================================
# Scenarios
# =============================================================================

class TestScenarios:

    def test_gap_above_threshold_is_compressed(self, scenario_a):
        diagram, engine = scenario_a
        y = diagram.intervals[1]
        assert engine.get_visual_offset(y) == 100
        assert engine.compressed_to_actual(100) == 5000

    def test_gap_within_threshold_is_kept(self):
        diagram = make_diagram(("lane-1", 0, 100), ("lane-2", 5000, 100))
        engine = CompressionEngine(diagram, threshold=5000, enabled=True)
        assert engine.get_visual_offset(diagram.intervals[1]) == 5000
        assert engine.get_compressed_gaps() == []

    def test_overlapping_lanes_have_no_gaps(self):
        diagram = make_diagram(("lane-1", 0, 1000), ("lane-2", 500, 1000))
        engine = CompressionEngine(diagram, threshold=500, enabled=True)
        assert engine.get_compressed_gaps() == []
        assert engine.get_compressed_duration() == 1500


# =============================================================================
# Forward mapping
# =============================================================================

class TestForwardMapping:

    def test_identity_when_disabled(self):
        diagram = make_diagram(("a", 0, 100), ("b", 5000, 100), ("a", 90000, 10))
        engine = CompressionEngine(diagram, threshold=500, enabled=False)
        for interval in diagram.intervals:
            assert engine.get_visual_offset(interval) == interval.start_offset
        assert engine.get_compression_map() is None

    def test_only_preceding_gaps_are_subtracted(self):
        diagram = make_diagram(("a", 0, 100), ("b", 1000, 100), ("a", 3100, 100))
        engine = CompressionEngine(diagram, threshold=500, enabled=True)
        offsets = [engine.get_visual_offset(i) for i in diagram.intervals]
        assert offsets == [0, 100, 200]

    def test_visual_time_inside_gap_maps_to_seam(self, scenario_a):
        _, engine = scenario_a
        assert engine.get_visual_time(50) == 50
        assert engine.get_visual_time(100) == 100
        assert engine.get_visual_time(2500) == 100
        assert engine.get_visual_time(5050) == 150

    def test_visual_time_interpolates_with_kept_gap_size(self):
        diagram = make_diagram(("a", 0, 100), ("b", 5000, 100))
        engine = CompressionEngine(diagram, threshold=500, enabled=True, compressed_gap_size=98)
        # Halfway through the 4900ms gap lands halfway across the kept 98ms
        assert engine.get_visual_time(2550) == pytest.approx(149)
        assert engine.get_visual_offset(diagram.intervals[1]) == pytest.approx(198)

    def test_unknown_interval_falls_back_to_actual_offset(self, scenario_a):
        _, engine = scenario_a
        stranger = Interval(id="other", lane_id="x", start_offset=7000, duration=10)
        assert engine.get_visual_offset(stranger) == 7000


# =============================================================================
# Inverse mapping
# =============================================================================

class TestInverseMapping:

    def test_identity_when_disabled(self):
        engine = CompressionEngine(make_diagram(("a", 0, 100), ("b", 5000, 100)), enabled=False)
        assert engine.compressed_to_actual(1234.5) == 1234.5

    def test_before_first_gap_unchanged(self, scenario_a):
        _, engine = scenario_a
        assert engine.compressed_to_actual(40) == 40

    def test_after_gap_adds_compression(self, scenario_a):
        _, engine = scenario_a
        assert engine.compressed_to_actual(150) == 5050

    def test_seam_resolves_to_gap_end(self, scenario_a):
        _, engine = scenario_a
        assert engine.compressed_to_actual(100) == 5000

    def test_interpolates_across_kept_gap(self):
        diagram = make_diagram(("a", 0, 100), ("b", 5000, 100))
        engine = CompressionEngine(diagram, threshold=500, enabled=True, compressed_gap_size=100)
        assert engine.compressed_to_actual(150) == pytest.approx(2550)
        assert engine.compressed_to_actual(200) == pytest.approx(5000)

    def test_non_finite_query_treated_as_zero(self, scenario_a):
        _, engine = scenario_a
        assert engine.compressed_to_actual(math.nan) == 0.0


# =============================================================================
# Properties
# =============================================================================

class TestProperties:

    @pytest.mark.parametrize("seed", [3, 17, 2024])
    def test_round_trip(self, seed):
        diagram = random_diagram(seed)
        engine = CompressionEngine(diagram, threshold=500, enabled=True)
        for interval in diagram.intervals:
            visual = engine.get_visual_offset(interval)
            assert engine.compressed_to_actual(visual) == pytest.approx(interval.start_offset, abs=1)

    def test_round_trip_handcrafted(self):
        diagram = make_diagram(
            ("a", 0, 100), ("b", 100, 50), ("a", 2000, 300),
            ("c", 2100, 5000), ("b", 60000, 1), ("a", 60001, 10),
        )
        engine = CompressionEngine(diagram, threshold=500, enabled=True)
        for interval in diagram.intervals:
            visual = engine.get_visual_offset(interval)
            assert engine.compressed_to_actual(visual) == pytest.approx(interval.start_offset, abs=1)

    @pytest.mark.parametrize("seed", [5, 99])
    def test_order_preserved(self, seed):
        diagram = random_diagram(seed)
        engine = CompressionEngine(diagram, threshold=500, enabled=True)
        ordered = sorted(diagram.intervals, key=lambda i: i.start_offset)
        visuals = [engine.get_visual_offset(i) for i in ordered]
        assert visuals == sorted(visuals)

    @pytest.mark.parametrize("seed", [1, 42])
    def test_identity_when_disabled(self, seed):
        diagram = random_diagram(seed)
        engine = CompressionEngine(diagram, threshold=500, enabled=False)
        assert all(engine.get_visual_offset(i) == i.start_offset for i in diagram.intervals)

    def test_duration_bound_strict_when_gaps_exist(self, scenario_a):
        _, engine = scenario_a
        assert engine.get_compressed_duration() < engine.get_total_duration()
        assert engine.get_compressed_duration() == 200

    def test_duration_bound_equal_without_gaps(self):
        engine = CompressionEngine(make_diagram(("a", 0, 100), ("b", 300, 100)), threshold=500, enabled=True)
        assert engine.get_compressed_duration() == engine.get_total_duration() == 400

    def test_compressed_gaps_in_both_coordinates(self):
        diagram = make_diagram(("a", 0, 100), ("b", 1000, 100), ("a", 3100, 100))
        engine = CompressionEngine(diagram, threshold=500, enabled=True)
        gaps = [gap.to_dict() for gap in engine.get_compressed_gaps()]
        assert gaps == [
            {'compressedStart': 100, 'compressedEnd': 100, 'originalStart': 100,
             'originalEnd': 1000, 'compressedSize': 0, 'originalSize': 900},
            {'compressedStart': 200, 'compressedEnd': 200, 'originalStart': 1100,
             'originalEnd': 3100, 'compressedSize': 0, 'originalSize': 2000},
        ]

    def test_break_markers(self, scenario_a):
        _, engine = scenario_a
        [marker] = engine.get_break_markers()
        assert (marker.compressed_start, marker.actual_start, marker.actual_end) == (100, 100, 5000)
        assert marker.compression == 4900


# =============================================================================
# Lifecycle
# =============================================================================

class TestLifecycle:

    def test_map_is_built_lazily_and_memoized(self, scenario_a):
        diagram, engine = scenario_a
        assert not engine.is_cached
        engine.get_visual_offset(diagram.intervals[1])
        engine.get_compressed_duration()
        assert engine.is_cached
        assert diagram.reads == 1

    def test_invalidate_picks_up_moved_interval(self, scenario_a):
        diagram, engine = scenario_a
        y = diagram.intervals[1]
        assert engine.get_visual_offset(y) == 100

        y.start_offset = 400
        assert engine.get_visual_offset(y) == 100  # stale until invalidated
        engine.invalidate()
        assert engine.get_visual_offset(y) == 400

    def test_added_interval_after_invalidate(self, scenario_a):
        diagram, engine = scenario_a
        assert len(engine.get_compressed_gaps()) == 1
        diagram.intervals.append(Interval(id="fill", lane_id="lane-3", start_offset=100, duration=4900))
        engine.invalidate()
        assert engine.get_compressed_gaps() == []

    def test_set_enabled_and_toggle_invalidate(self, scenario_a):
        _, engine = scenario_a
        engine.get_compressed_duration()
        engine.set_enabled(False)
        assert not engine.is_cached
        assert engine.get_compressed_duration() == 5100
        assert engine.toggle() is True
        assert engine.get_compressed_duration() == 200

    def test_threshold_change_invalidates(self, scenario_a):
        diagram, engine = scenario_a
        engine.get_compressed_duration()
        engine.set_threshold(5000)
        assert not engine.is_cached
        assert engine.get_visual_offset(diagram.intervals[1]) == 5000

    def test_empty_diagram(self):
        engine = CompressionEngine(InMemoryDiagram(), enabled=True)
        assert engine.get_total_duration() == 0
        assert engine.get_compressed_duration() == 0
        assert engine.get_compressed_gaps() == []
        assert engine.compressed_to_actual(25) == 25

    def test_single_interval_is_identity(self):
        diagram = make_diagram(("a", 0, 250))
        engine = CompressionEngine(diagram, enabled=True)
        assert engine.get_visual_offset(diagram.intervals[0]) == 0
        assert engine.get_compressed_duration() == 250


# =============================================================================
# Error handling
# =============================================================================

class TestSanitising:

    def test_non_finite_geometry_is_replaced(self, log_records):
        diagram = InMemoryDiagram([
            Interval(id="bad-start", lane_id="a", start_offset=math.nan, duration=100),
            Interval(id="bad-duration", lane_id="a", start_offset=5000, duration=math.inf),
        ])
        engine = CompressionEngine(diagram, threshold=500, enabled=True)
        assert engine.get_visual_offset(diagram.intervals[0]) == 0
        assert engine.get_total_duration() == 5001
        assert engine.get_visual_offset(diagram.intervals[1]) == 100
        assert any("Replaced" in record.getMessage() for record in log_records.records)

    def test_non_positive_threshold_is_accepted_with_warning(self, log_records):
        diagram = make_diagram(("a", 0, 100), ("b", 101, 100))
        engine = CompressionEngine(diagram, threshold=0, enabled=True)
        assert engine.threshold == 0
        assert engine.get_visual_offset(diagram.intervals[1]) == 100
        assert any("compresses every idle span" in r.getMessage() for r in log_records.records)

    def test_non_finite_threshold_falls_back_to_default(self):
        engine = CompressionEngine(InMemoryDiagram(), threshold=math.nan)
        assert engine.threshold == 500

    def test_invalid_geometry_is_reported_once_per_build(self, log_records):
        diagram = InMemoryDiagram([
            Interval(id="ok", lane_id="a", start_offset=0, duration=100),
            Interval(id="bad", lane_id="a", start_offset=5000, duration=math.nan),
        ])
        engine = CompressionEngine(diagram, threshold=500, enabled=True)
        for _ in range(5):
            engine.get_visual_offset(diagram.intervals[1])
            engine.sanitize(diagram.intervals[1])

        def reports():
            return [r for r in log_records.records if "invalid duration" in r.getMessage()]

        assert len(reports()) == 1
        engine.invalidate()
        engine.get_total_duration()
        assert len(reports()) == 2

    def test_min_duration_setter_rebuilds_map(self):
        diagram = InMemoryDiagram([Interval(id="bad", lane_id="a", start_offset=0, duration=-5)])
        engine = CompressionEngine(diagram, enabled=True)
        assert engine.get_total_duration() == 1
        assert engine.is_cached

        engine.min_duration = 1000
        assert not engine.is_cached
        assert engine.get_total_duration() == 1000

    def test_min_duration_never_below_one_ms(self):
        engine = CompressionEngine(InMemoryDiagram(), min_duration=math.nan)
        assert engine.min_duration == 1
        engine.min_duration = 0.25
        assert engine.min_duration == 1

"""
Tests for RulerIntervalSelector.
"""
import pytest

from timeline_diagram.compression.engine import CompressionEngine
from timeline_diagram.timing.coordinate_mapper import CoordinateMapper
from timeline_diagram.timing.ruler import RulerIntervalSelector
from timeline_diagram.timing.units import BaseTimeUnit
from timeline_diagram.types import Interval


class InMemoryDiagram:
    def __init__(self, intervals=None):
        self.intervals = list(intervals or [])

    def get_intervals(self):
        return list(self.intervals)


def make_selector(intervals=(), base_unit=BaseTimeUnit.MILLISECONDS, **kwargs):
    engine = CompressionEngine(InMemoryDiagram(intervals), threshold=500)
    mapper = CoordinateMapper(engine, base_unit=base_unit)
    return RulerIntervalSelector(mapper, **kwargs)


class TestSelectInterval:

    def test_smallest_candidate_clearing_min_spacing(self):
        selector = make_selector()
        assert selector.mapper.scale == 0.15
        assert selector.select_interval(10000) == 500

    def test_zooming_in_picks_finer_interval(self):
        selector = make_selector()
        selector.mapper.set_scale(1.5)
        # 50ms * 1.5 = 75px, 20ms * 1.5 = 30px
        assert selector.select_interval(10000) == 50

    def test_tick_cap_overrides_spacing(self):
        selector = make_selector(max_ticks=11)
        selector.mapper.set_scale(100)
        # Spacing would allow 1ms, but 10000 / 1000 + 1 = 11 ticks is the first that fits
        assert selector.select_interval(10000) == 1000

    def test_fallback_to_acceptable_count_when_nothing_is_wide_enough(self):
        selector = make_selector(min_spacing_px=10 ** 12)
        assert selector.select_interval(10000) == 30

    def test_synthesized_interval_when_no_candidate_fits(self):
        selector = make_selector(max_ticks=3)
        end = 10 ** 13
        assert selector.select_interval(end) == pytest.approx(end / 2)

    def test_candidates_include_unit_and_threshold_multiples(self):
        candidates = make_selector(base_unit=BaseTimeUnit.MINUTES).get_candidates()
        assert 15000 in candidates  # 15 x granularity (s)
        assert 900000 in candidates  # 15 x base unit (m)
        assert candidates == sorted(set(candidates))

    def test_tick_count(self):
        selector = make_selector()
        assert selector.tick_count(10000, 500) == 21
        assert selector.tick_count(0, 500) == 1


class TestMajorTicks:

    def test_aligned_to_unit_boundary(self):
        selector = make_selector()
        assert selector.get_major_interval(500) == 1000
        assert selector.get_major_interval(200) == 1000
        assert selector.get_major_interval(100) == 1000

    def test_every_fifth_tick_otherwise(self):
        selector = make_selector()
        assert selector.get_major_interval(1) == 5
        assert selector.get_major_interval(300000) == 1500000

    def test_is_major_with_epsilon(self):
        assert RulerIntervalSelector.is_major(3000, 1000)
        assert RulerIntervalSelector.is_major(0.1 * 3 * 10000, 1000)
        assert not RulerIntervalSelector.is_major(2500, 1000)


class TestTicks:

    def test_ticks_cover_minimum_timeline(self):
        selector = make_selector([Interval("x", "a", 0, 100)])
        assert selector.display_end_time() == 11000
        ticks = selector.build_ticks()
        assert ticks[0].visual_time == 0
        assert ticks[-1].visual_time == 11000
        assert ticks[1].x == pytest.approx(75)
        assert ticks[2].label == "1s"

    def test_ticks_labelled_with_actual_time_when_compressed(self):
        selector = make_selector([
            Interval("x", "a", 0, 100),
            Interval("y", "b", 5000, 100),
        ])
        selector.mapper.compression.set_enabled(True)
        selector.mapper.set_scale(0.6)
        ticks = selector.build_ticks(end_time=300)
        assert [tick.visual_time for tick in ticks] == [0, 100, 200, 300]
        by_visual = {tick.visual_time: tick for tick in ticks}
        assert by_visual[100].actual_time == 5000
        assert by_visual[100].label == "5s"

    def test_tick_count_is_capped(self):
        selector = make_selector(max_ticks=5, min_spacing_px=1)
        assert len(selector.build_ticks(end_time=10 ** 13)) == 5

    def test_break_marker_label(self):
        selector = make_selector([
            Interval("x", "a", 0, 100),
            Interval("y", "b", 5000, 100),
        ])
        selector.mapper.compression.set_enabled(True)
        [marker] = selector.build_break_markers()
        assert selector.break_marker_label(marker) == "Gap: 4.9s (100ms → 5s)"

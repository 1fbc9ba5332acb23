"""
Tests for minimap geometry and navigation.
"""
import pytest

from timeline_diagram.compression.engine import CompressionEngine
from timeline_diagram.interaction.minimap import Minimap
from timeline_diagram.timing.coordinate_mapper import CoordinateMapper
from timeline_diagram.types import Interval


class InMemoryDiagram:
    def __init__(self, intervals=None):
        self.intervals = list(intervals or [])

    def get_intervals(self):
        return list(self.intervals)


@pytest.fixture
def diagram():
    return InMemoryDiagram([
        Interval(id="x", lane_id="a", start_offset=0, duration=100),
        Interval(id="y", lane_id="b", start_offset=5000, duration=4000),
    ])


@pytest.fixture
def engine(diagram):
    return CompressionEngine(diagram, threshold=500)


@pytest.fixture
def minimap(diagram, engine):
    return Minimap(diagram, CoordinateMapper(engine, scale=0.1))


# Width 1008 leaves 1000px between the 4px paddings; 9000ms + 1000ms trailing
WIDTH = 1008
HEIGHT = 48


class TestGeometry:

    def test_time_scale(self, minimap):
        assert minimap.timeline_duration() == 10000
        assert minimap.time_scale(WIDTH) == pytest.approx(0.1)

    def test_time_scale_uses_compressed_duration(self, minimap, engine):
        engine.set_enabled(True)
        # 4100ms compressed + 1000ms trailing
        assert minimap.time_scale(WIDTH) == pytest.approx(1000 / 5100)

    def test_item_rects(self, minimap):
        x_rect, y_rect = minimap.item_rects(WIDTH, HEIGHT)
        assert (x_rect.key, x_rect.x, x_rect.y) == ("x", 4, 4)
        assert x_rect.width == pytest.approx(10)
        assert x_rect.height == 19
        assert y_rect.x == pytest.approx(504)
        assert y_rect.y == 24

    def test_tiny_items_keep_minimum_width(self, diagram, minimap):
        diagram.intervals.append(Interval(id="z", lane_id="a", start_offset=200, duration=1))
        rect = {r.key: r for r in minimap.item_rects(WIDTH, HEIGHT)}["z"]
        assert rect.width == 2

    def test_explicit_lane_order(self, minimap):
        rects = {r.key: r for r in minimap.item_rects(WIDTH, HEIGHT, lane_ids=["b", "a"])}
        assert rects["y"].y == 4
        assert rects["x"].y == 24

    def test_gap_rects_only_when_compressed(self, minimap, engine):
        assert minimap.gap_rects(WIDTH, HEIGHT) == []
        engine.set_enabled(True)
        [gap] = minimap.gap_rects(WIDTH, HEIGHT)
        assert gap.x == pytest.approx(4 + 100 * 1000 / 5100)
        assert gap.width == 0
        assert gap.height == HEIGHT

    def test_viewport_rect(self, minimap):
        # scale 0.1px/ms: scroll 100px = 1000ms, 200px wide = 2000ms
        left, width = minimap.viewport_rect(WIDTH, scroll_offset=100, visible_width=200)
        assert left == pytest.approx(104)
        assert width == pytest.approx(200)


class TestNavigation:

    def test_max_scroll(self, minimap):
        assert minimap.max_scroll(visible_width=200) == pytest.approx(800)
        assert minimap.max_scroll(visible_width=5000) == 0

    def test_click_centres_time(self, minimap):
        # Click at 504 -> 5000ms -> 500px, centred in a 200px viewport
        assert minimap.scroll_for_click(504, WIDTH, visible_width=200) == pytest.approx(400)

    def test_click_is_clamped(self, minimap):
        assert minimap.scroll_for_click(4, WIDTH, visible_width=200) == 0
        assert minimap.scroll_for_click(1004, WIDTH, visible_width=200) == pytest.approx(800)

    def test_press_outside_viewport_jumps(self, minimap):
        assert minimap.press(504, WIDTH, scroll_offset=0, visible_width=200) == pytest.approx(400)
        assert not minimap.is_dragging

    def test_drag_viewport(self, minimap):
        assert minimap.press(150, WIDTH, scroll_offset=100, visible_width=200) is None
        assert minimap.is_dragging
        # 1000 timeline px over 1000 minimap px
        assert minimap.drag_to(450, WIDTH, visible_width=200) == pytest.approx(400)
        assert minimap.drag_to(5000, WIDTH, visible_width=200) == pytest.approx(800)
        assert minimap.drag_to(-500, WIDTH, visible_width=200) == 0
        minimap.release()
        assert minimap.drag_to(450, WIDTH, visible_width=200) is None


class TestEmptyDiagram:

    def test_duration_and_scale(self):
        empty = InMemoryDiagram()
        engine = CompressionEngine(empty, threshold=500)
        minimap = Minimap(empty, CoordinateMapper(engine, trailing_space=0))
        assert minimap.timeline_duration() == 1
        engine.set_enabled(True)
        assert minimap.timeline_duration() == 0
        assert minimap.time_scale(WIDTH) == 0

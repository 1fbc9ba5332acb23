"""
Time Converter

Formats milliseconds (internal format) for ruler labels, break markers,
measurement read-outs and the zoom indicator.

Design:
- Pure functions (no side effects)
- Display threshold is a parameter (not stored state)
"""

from ..constants import DEFAULT_PIXELS_PER_MS, DEFAULT_TIME_FORMAT_THRESHOLD
from ..types import is_finite_number


class TimeConverter:
    """
    Converts milliseconds to display strings.

    All methods are static - pure functions with no state.
    """

    @staticmethod
    def format_duration(ms: float, threshold: float = DEFAULT_TIME_FORMAT_THRESHOLD) -> str:
        """
        Format a duration for display.

        Args:
            ms: Duration in milliseconds
            threshold: Switch from ms to seconds at or above this value (0 = always ms)

        Returns:
            e.g. "250ms", "1.5s", "2m 3.0s", "12μs", "40ns"
        """
        if not is_finite_number(ms):
            return "0ms"

        # Sub-millisecond values (extreme zoom)
        if 0 < ms < 1:
            us = ms * 1000
            if us < 1:
                ns = us * 1000
                return f"{ns:.{1 if ns < 10 else 0}f}ns"
            return f"{us:.{1 if us < 10 else 0}f}μs"

        if threshold == 0:
            return f"{round(ms)}ms"

        if ms >= threshold:
            if ms >= 60000:
                minutes = int(ms // 60000)
                seconds = f"{(ms % 60000) / 1000:.1f}"
                return f"{minutes}m" if seconds == "0.0" else f"{minutes}m {seconds}s"
            decimals = 0 if ms % 1000 == 0 else 1
            return f"{ms / 1000:.{decimals}f}s"

        return f"{round(ms)}ms"

    @staticmethod
    def format_zoom_level(scale: float, default_scale: float = DEFAULT_PIXELS_PER_MS) -> str:
        """
        Format a zoom scale as a percentage of the default scale.

        Returns:
            e.g. "100%", "0.7%", "667k%"
        """
        if not is_finite_number(scale) or not default_scale:
            return "100%"
        percent = (scale / default_scale) * 100
        if percent >= 10000:
            return f"{percent / 1000:.0f}k%"
        if percent < 1:
            return f"{percent:.1f}%"
        return f"{round(percent)}%"

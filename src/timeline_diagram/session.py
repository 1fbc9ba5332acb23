"""
Diagram Session

Per-diagram wiring of the compression engine, coordinate mapper and
every consumer that has to agree on where a moment in time is drawn.

One session owns one compression map and one coordinate state; the
ruler, drag handler, measurement tool and minimap all hold references
to the same objects. Timing settings flow in through the settings
manager's signals, so a threshold change invalidates the map and a base
unit change re-derives the coordinate state before the next read.

Persisted per-diagram state:
    {
        "compressionEnabled": bool,          # absent = False
        "viewState": {"scale", "fitModeActive", "priorScale", "priorScrollOffset"},
        "pinnedMeasurement": {"startX", "endX"}   # only while pinned
    }
"""

from typing import Any, Dict, Optional

from PyQt6.QtCore import QObject, pyqtSignal

from .compression.engine import CompressionEngine
from .interaction.measurement import MeasurementTool
from .interaction.minimap import Minimap
from .interaction.movement_controller import MovementController
from .interfaces import IntervalSourceInterface, MutableIntervalSourceInterface
from .settings.timeline_settings import TimelineSettingsManager
from .timing.coordinate_mapper import CoordinateMapper
from .timing.ruler import RulerIntervalSelector
from .timing.snap_calculator import SnapCalculator
from .utils.message import Log


class DiagramSession(QObject):
    """
    Engine, mapper and consumers for one open diagram.

    Signals:
        geometry_invalidated(): Emitted whenever drawn positions may have changed
    """

    geometry_invalidated = pyqtSignal()

    def __init__(
        self,
        source: IntervalSourceInterface,
        settings_manager: Optional[TimelineSettingsManager] = None,
        compression_enabled: bool = False,
        parent=None
    ):
        """
        Initialize the session.

        Args:
            source: Diagram model supplying intervals
            settings_manager: Timing settings (None = in-memory defaults)
            compression_enabled: Initial compression state
            parent: Parent QObject
        """
        super().__init__(parent)

        self._source = source
        self.settings = settings_manager or TimelineSettingsManager(parent=self)
        settings = self.settings

        self.compression = CompressionEngine(
            source,
            threshold=settings.compression_threshold,
            enabled=compression_enabled,
            min_duration=settings.base_time_unit.granularity,
        )
        self.mapper = CoordinateMapper(
            self.compression,
            base_unit=settings.base_time_unit,
            min_pixels_per_ms=settings.min_pixels_per_ms,
            max_pixels_per_ms=settings.max_pixels_per_ms,
            trailing_space=settings.trailing_space,
            min_box_width=settings.min_box_width_px,
        )
        self.snap_calculator = SnapCalculator(settings.base_time_unit)
        self.ruler = RulerIntervalSelector(
            self.mapper,
            min_spacing_px=settings.ruler_min_spacing_px,
            max_ticks=settings.ruler_max_ticks,
            display_threshold=settings.time_format_threshold,
        )
        self.measurement = MeasurementTool(
            source,
            self.mapper,
            snap_threshold_px=settings.alignment_snap_px,
            display_threshold=settings.time_format_threshold,
        )
        self.minimap = Minimap(source, self.mapper)

        self.movement: Optional[MovementController] = None
        if isinstance(source, MutableIntervalSourceInterface):
            self.movement = MovementController(source, self.compression, self.mapper, self.snap_calculator, parent=self)
            self.movement.edits_completed.connect(self._on_geometry_edited)
            self.movement.interval_created.connect(self._on_geometry_edited)

        settings.settings_changed.connect(self._on_setting_changed)
        settings.settings_loaded.connect(self._apply_all_settings)

    # =========================================================================
    # Lifecycle
    # =========================================================================

    @property
    def compression_enabled(self) -> bool:
        return self.compression.enabled

    def set_compression_enabled(self, enabled: bool) -> None:
        self.compression.set_enabled(enabled)
        self.geometry_invalidated.emit()

    def toggle_compression(self) -> bool:
        enabled = self.compression.toggle()
        Log.info(f"DiagramSession: Compression {'enabled' if enabled else 'disabled'}")
        self.geometry_invalidated.emit()
        return enabled

    def invalidate(self) -> None:
        """Call after any interval add / move / resize / remove made outside the session."""
        self.compression.invalidate()
        self.geometry_invalidated.emit()

    def close(self) -> None:
        """Stop listening to settings changes."""
        self.settings.settings_changed.disconnect(self._on_setting_changed)
        self.settings.settings_loaded.disconnect(self._apply_all_settings)

    # =========================================================================
    # Settings
    # =========================================================================

    def _on_setting_changed(self, name: str) -> None:
        settings = self.settings
        if name == 'compression_threshold':
            self.compression.set_threshold(settings.compression_threshold)
        elif name == 'base_time_unit':
            base_unit = settings.base_time_unit
            self.mapper.set_base_unit(base_unit)
            self.compression.min_duration = base_unit.granularity
            self.snap_calculator.base_unit = base_unit
        elif name == 'trailing_space':
            self.mapper.trailing_space = settings.trailing_space
        elif name == 'time_format_threshold':
            self.ruler.display_threshold = settings.time_format_threshold
            self.measurement.display_threshold = settings.time_format_threshold
        elif name == 'ruler_min_spacing_px':
            self.ruler.min_spacing_px = settings.ruler_min_spacing_px
        elif name == 'ruler_max_ticks':
            self.ruler.max_ticks = max(2, int(settings.ruler_max_ticks))
        elif name == 'min_box_width_px':
            self.mapper.min_box_width = settings.min_box_width_px
        elif name == 'alignment_snap_px':
            self.measurement.snap_threshold_px = settings.alignment_snap_px
        else:
            return

        Log.debug(f"DiagramSession: Applied setting {name}")
        self.geometry_invalidated.emit()

    def _apply_all_settings(self) -> None:
        for name in (
            'compression_threshold', 'base_time_unit', 'trailing_space', 'time_format_threshold',
            'ruler_min_spacing_px', 'ruler_max_ticks', 'min_box_width_px', 'alignment_snap_px',
        ):
            self._on_setting_changed(name)

    def _on_geometry_edited(self, _result: Any) -> None:
        self.geometry_invalidated.emit()

    # =========================================================================
    # Persistence
    # =========================================================================

    def to_dict(self) -> Dict[str, Any]:
        """Per-diagram state for the persistence layer."""
        data = {
            'compressionEnabled': self.compression.enabled,
            'viewState': self.mapper.get_view_state().to_dict(),
        }
        pinned = self.measurement.to_dict()
        if pinned is not None:
            data['pinnedMeasurement'] = pinned
        return data

    def restore(self, data: Optional[Dict[str, Any]]) -> None:
        """
        Restore state saved by to_dict(), clamping invalid values.

        Diagrams saved without the flag load with compression disabled.
        """
        data = data or {}

        enabled = data.get('compressionEnabled', False)
        if not isinstance(enabled, bool):
            Log.warning(f"DiagramSession: Invalid compressionEnabled {enabled!r}, using False")
            enabled = False
        self.compression.set_enabled(enabled)

        view_state = data.get('viewState')
        if view_state is not None and not isinstance(view_state, dict):
            Log.warning(f"DiagramSession: Ignored invalid viewState {view_state!r}")
            view_state = None
        self.mapper.restore_view_state(view_state)

        self.measurement.restore(data.get('pinnedMeasurement'))
        Log.debug(f"DiagramSession: Restored (compression={enabled}, scale={self.mapper.scale:g})")
        self.geometry_invalidated.emit()

    @classmethod
    def from_dict(
        cls,
        source: IntervalSourceInterface,
        data: Optional[Dict[str, Any]],
        settings_manager: Optional[TimelineSettingsManager] = None,
        parent=None
    ) -> 'DiagramSession':
        session = cls(source, settings_manager, parent=parent)
        session.restore(data)
        return session

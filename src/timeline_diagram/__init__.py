"""
Timeline Diagram Package
========================

Temporal compression and coordinate mapping for timeline diagram editors:
named lanes of time-stamped, resizable boxes.

Directory Structure
-------------------
- compression/  - Gap detection and the actual <-> visual time mapping
- timing/       - Units, time <-> pixel conversion, snapping, ruler spacing
- interaction/  - Drag / resize / create, measurement, minimap geometry
- settings/     - Validated settings and their Qt manager
- utils/        - Logging

Import Examples
---------------
    from timeline_diagram.session import DiagramSession
    from timeline_diagram.compression import CompressionEngine
    from timeline_diagram.timing import CoordinateMapper, RulerIntervalSelector
    from timeline_diagram.types import Interval

Features
--------
- Idle spans shared by every lane collapse to a seam when compression is on
- Exact inverse mapping, so pointer positions resolve to stored time
- Zoom clamping, centre-preserving zoom and a fit-to-view toggle
- Adaptive ruler tick spacing labelled with actual time
"""

__version__ = "0.1.0"

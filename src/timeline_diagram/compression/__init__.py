"""
Compression

Visual gap compression: idle spans shared by every lane are collapsed
for display without touching stored interval values.

Modules:
- gap_detector: Sweep-line detection of compressible gaps
- engine: Memoized compression map and actual <-> visual mapping
"""

from .gap_detector import detect_gaps, cumulative_compression
from .engine import CompressionEngine

__all__ = [
    'detect_gaps',
    'cumulative_compression',
    'CompressionEngine',
]

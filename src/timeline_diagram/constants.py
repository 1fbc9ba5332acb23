"""
Timeline Constants

Central location for scale, compression, ruler and interaction defaults.
All times are milliseconds, all distances are pixels.
"""

# =============================================================================
# Scale / Zoom
# =============================================================================

DEFAULT_PIXELS_PER_MS = 0.15  # Default scale level (100%)
MIN_PIXELS_PER_MS = 0.001  # Extreme zoom out (see entire timeline)
MAX_PIXELS_PER_MS = 1000.0  # Extreme zoom in (sub-microsecond detail)
ZOOM_IN_FACTOR = 1.25
ZOOM_OUT_FACTOR = 0.8

FIT_MARGIN_FACTOR = 1.1  # Trailing margin reserved by fit-to-view

# =============================================================================
# Compression
# =============================================================================

DEFAULT_COMPRESSION_THRESHOLD = 500.0  # Gaps larger than this get compressed
COMPRESSED_GAP_SIZE = 0.0  # Compressed gaps collapse to a single seam
DEFAULT_TRAILING_SPACE = 1000.0  # Extra space after the last interval

# =============================================================================
# Ruler
# =============================================================================

DEFAULT_MIN_TIMELINE_MS = 10000.0  # Ruler never shows less than this
RULER_MIN_SPACING_PX = 60
RULER_MAX_TICKS = 360
MAJOR_TICK_MULTIPLIER = 5
MAX_MAJOR_TICK_RATIO = 10  # Unit-aligned majors at most every 10th tick
TICK_EPSILON = 1e-6

# Ascending ruler intervals, sub-millisecond to multi-year
RULER_INTERVALS_MS = [
    0.001, 0.002, 0.005,              # Microseconds
    0.01, 0.02, 0.05,                 # Tens of microseconds
    0.1, 0.2, 0.5,                    # Sub-millisecond
    1, 2, 5,                          # Milliseconds
    10, 20, 50,                       # Tens of ms
    100, 200, 500,                    # Hundreds of ms
    1000, 2000, 5000,                 # Seconds
    10000, 30000, 60000,              # Tens of seconds / minute
    120000, 300000, 600000,           # Minutes
    1200000, 1800000, 3600000,        # Half hour / hour
    7200000, 21600000, 43200000,      # Hours
    86400000, 172800000, 604800000,   # Days / week
    2592000000, 7776000000,           # 30 / 90 days
    31536000000, 63072000000,         # Years
    157680000000, 315360000000,       # 5 / 10 years
]

# Multiples of the base unit, granularity and display threshold added to the candidates
UNIT_INTERVAL_MULTIPLES = [1, 2, 5, 10, 15, 30]
THRESHOLD_INTERVAL_MULTIPLES = [1, 2, 5, 10]

# =============================================================================
# Display
# =============================================================================

DEFAULT_TIME_FORMAT_THRESHOLD = 1000.0  # Switch from ms to seconds above this (0 = always ms)
MIN_BOX_WIDTH_PX = 20

# =============================================================================
# Interaction
# =============================================================================

MIN_RESIZE_DURATION_MS = 50.0
MIN_CREATE_DURATION_MS = 20.0
DRAG_THRESHOLD_PX = 3  # Pointer travel before a move or resize starts
CREATE_DRAG_THRESHOLD_PX = 5  # A shorter create drag is treated as a click
ALIGNMENT_SNAP_THRESHOLD_PX = 8

# =============================================================================
# Minimap
# =============================================================================

MINIMAP_PADDING_PX = 4
MINIMAP_MIN_ITEM_PX = 2

"""
Timeline Constants

Central location for timeline dimensions, zoom bounds and interaction tuning.
Every value here is the default for the matching field of TimelineSettings.
"""

# =============================================================================
# Viewport
# =============================================================================

# Pixel density per zoom unit: days_visible = width / (zoom_level * K)
VIEWPORT_DENSITY = 10

# Pan sensitivity: horizontal pixels of pointer travel per day of center shift
PAN_PIXELS_PER_DAY = 15

DEFAULT_VIEWPORT_WIDTH = 1200

# =============================================================================
# Zoom
# =============================================================================

ZOOM_YEAR = 0.3    # ~400 days across the default width
ZOOM_MONTH = 1.0   # ~120 days across the default width
ZOOM_DAY = 4.0     # ~30 days across the default width

MIN_ZOOM = ZOOM_YEAR
MAX_ZOOM = ZOOM_DAY
DEFAULT_ZOOM = ZOOM_MONTH
ZOOM_STEP = 0.1

# Wheel units per zoom step (one mouse notch reports 120)
WHEEL_DELTA_PER_STEP = 120

# =============================================================================
# Layout
# =============================================================================

MIN_ITEM_WIDTH = 50     # Rects are never narrower than this (pixels)
ITEM_HEIGHT = 40
TRACK_SPACING = 10
PADDING_TOP = 20

# =============================================================================
# Editing
# =============================================================================

MIN_STEP_DAYS = 1        # Resize never shrinks a step below this
MIN_SELECTION_PX = 20    # Range selections at or below this width are ignored

# =============================================================================
# Timing
# =============================================================================

# One render tick (~60 FPS). Pointer moves between ticks collapse to the latest.
FRAME_INTERVAL_MS = 16

# How long teardown waits for in-flight persistence workers
SHUTDOWN_TIMEOUT_MS = 2000

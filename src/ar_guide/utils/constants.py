"""
Constants used throughout the AR guidance engine
"""

# Guidance thresholds
GUIDANCE_CONFIDENCE_THRESHOLD = 0.70  # Items must score strictly above this

# Overlay lifetimes (milliseconds)
GUIDANCE_TTL_MS = 3000  # Arrow + info label
WARNING_TTL_MS = 2000  # "No appropriate bin detected"

# Category -> overlay color
BIN_COLORS = {
    "biodegradable": "#4ade80",
    "recyclable": "#3b82f6",
    "hazardous": "#ef4444",
    "general": "#6b7280",
}
DEFAULT_BIN_COLOR = "#6b7280"

# Fixed overlay colors
LABEL_COLOR = "#00ff00"
WARNING_COLOR = "#ff6600"
TITLE_COLOR = "#ffffff"
HINT_COLOR = "#fbbf24"

WELCOME_MESSAGE = "Point your camera at waste items to get sorting guidance"
NO_BIN_MESSAGE = "No appropriate bin detected"

# Camera defaults
DEFAULT_FACING = "environment"
DEFAULT_CAMERA_WIDTH = 1280
DEFAULT_CAMERA_HEIGHT = 720
MAX_CAMERA_RECONNECT_ATTEMPTS = 2
CAMERA_RECONNECT_DELAY = 2.0  # Seconds between reconnection attempts
CAMERA_OPEN_TIMEOUT_MS = 5000  # Stream sources only
CAMERA_READ_TIMEOUT_MS = 500  # Upper bound on one read() from a stream source

# Detector worker
DEFAULT_WORKER_QUEUE_SIZE = 2  # Outstanding detect_frame requests
DEFAULT_WORKER_SPAWN_TIMEOUT = 30.0  # Seconds to wait for worker_ready
WORKER_JOIN_TIMEOUT = 2.0

# Scheduling
DEFAULT_TICK_HZ = 30
STATUS_REPORT_INTERVAL = 300  # Log pipeline status every N ticks

# Environment variables
ENV_CAMERA_SOURCE = "AR_GUIDE_CAMERA_SOURCE"

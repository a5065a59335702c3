"""
clipcore.constants

Shared constants for capture, storage and search.
"""

APP_NAME = "clipdeck"
"""Application name, also used to recognise the application's own windows."""

# --- History ---
DEFAULT_MAX_ITEMS = 500
MIN_MAX_ITEMS = 50
MAX_MAX_ITEMS = 5000
MAX_OCR_CHARS = 12_000
"""Upper bound on recognised text stored per image entry."""

# --- Search ---
DEFAULT_FUZZY_THRESHOLD = 0.4
MIN_FUZZY_THRESHOLD = 0.1
MAX_FUZZY_THRESHOLD = 0.9
EXACT_MATCH_SCORE = 1.0
DISPLAY_MAX_CHARS = 260
"""Length of the single-line display form before an ellipsis is appended."""
DISPLAY_ELLIPSIS = "…"

# Literal match weights
LITERAL_BASE = 0.65
LITERAL_START_WEIGHT = 0.25
LITERAL_LENGTH_WEIGHT = 0.10
LITERAL_LENGTH_NORM = 12

# Subsequence match weights
SUBSEQ_DENSITY_WEIGHT = 0.6
SUBSEQ_START_WEIGHT = 0.3
SUBSEQ_GAP_WEIGHT = 0.1

# --- Capture ---
DEFAULT_POLL_INTERVAL = 0.2
DEFAULT_CONTEXT_FRESHNESS = 7.0
DEFAULT_CONTEXT_INTERVAL = 1.5
THUMBNAIL_DIM = (160, 160)

IGNORED_WINDOW_NAMES = [
    # screenshot tools
    "snippingtool",
    "screenclippinghost",
    "screensketch",
    "sharex",
    "greenshot",
    "flameshot",
    "gnome-screenshot",
    "spectacle",
    "screencaptureui",
    # shell ui
    "explorer",
    "shellexperiencehost",
    "startmenuexperiencehost",
    "searchhost",
    "searchapp",
    "textinputhost",
    "lockapp",
    "gnome-shell",
    "plasmashell",
    "dock",
    "windowserver",
    # ourselves
    APP_NAME,
]
"""Lowercased app or title names that mark a window as transient noise."""

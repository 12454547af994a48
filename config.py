# config.py — Map pin generation defaults
# Edit this file to change built-in colors, scales, file layout, etc.
# Every value here can be overridden per run through the option mapping
# passed to pin_generator.generate_pins (or .env / --set on the CLI).

# ── Option defaults ──────────────────────────────────────────────────
# Keys are the recognised option names.  An option that is missing or set
# to the empty string falls back to the value below.
DEFAULT_OPTIONS = {
    "BASE_PIN_COLOR_ACTIVE": "#000",
    "BASE_PIN_COLOR_DEFAULT": "#FFF",
    "BASE_PIN_COLOR_OWN": "#FFF",
    "BASE_PIN_RING_COLOR_ACTIVE": "#FFF",
    "BASE_PIN_STROKE_COLOR_OWN": "#000",
    "CLUSTER_COLOR": "#000",
    "CLUSTER_TEXT_COLOR": "#000",
    "COMPOSITE_SCALE": "2",
    "OUTPUT_SCALE": "1",
    "ICON_COLOR_ACTIVE": "#FFF",
    "ICON_COLOR_DEFAULT": "#000",
    "ICON_OFFSET_X_ACTIVE": "0",
    "ICON_OFFSET_X_DEFAULT": "0",
    "ICON_OFFSET_Y_ACTIVE": "0",
    "ICON_OFFSET_Y_DEFAULT": "0",
    "ICON_SCALE": "0.32",
    "MAP_PINS_BASE_URI": "pngWithSvg",
}

# ── Base pins ────────────────────────────────────────────────────────
# File stems of the three fixed pin shapes.  Icons with one of these stems
# are reserved and never composited.
DEFAULT_PIN = "defaultPin"
ACTIVE_PIN = "defaultPinActive"
OWN_LOCATION_PIN = "ownLocationPin"
BASE_PIN_NAMES = (DEFAULT_PIN, ACTIVE_PIN, OWN_LOCATION_PIN)

# Colors baked into the base pin artwork that get swapped for the
# configured ones.
PIN_FILL_TOKEN = "#F7F5F0"
ACTIVE_FILL_TOKENS = ("#000000", "#000", "black")
OWN_STROKE_TOKEN = "#141414"

# Suffix appended to a marker name for its active-state image
ACTIVE_SUFFIX = "Active"

# ── Rasterisation ────────────────────────────────────────────────────
# Alpha values at or below this are treated as background when trimming a
# rendered icon down to its visual bounding box.
TRIM_THRESHOLD = 1

# ── File layout (relative to the project root) ───────────────────────
SVG_DIR = "svg"
BASE_DIR = "mapPins"
OUTPUT_DIR = "pngWithSvg"
MAP_SETTINGS_TEMPLATE = "simpleMapSettings.json"
MAP_SETTINGS_OUTPUT = "mapSettings.json"
ENV_FILE = ".env"
LOG_FILE = "pin_generator.log"
ARCHIVE_NAME = "map-pins.zip"

# ── Uploads ──────────────────────────────────────────────────────────
# Same limit the upload form enforces per file (5 MiB).
MAX_UPLOAD_BYTES = 5 * 1024 * 1024

"""Application settings and constants."""

# Supported file formats (extension -> format name understood by the viewer)
SUPPORTED_FORMATS = {
    ".pdb": "pdb",
    ".ent": "pdb",
    ".cif": "cif",
    ".mmcif": "cif",
}

# Default window dimensions
DEFAULT_WINDOW_WIDTH = 1200
DEFAULT_WINDOW_HEIGHT = 800

# Panel proportions (right panel percentage)
RIGHT_PANEL_RATIO = 0.30

# Viewer settings
DEFAULT_VIEWER_STYLE = "cartoon"
DEFAULT_BACKGROUND_COLOR = "white"

# File size limits (in bytes)
MAX_FILE_SIZE_WARNING = 100 * 1024 * 1024  # 100MB

# Selection
MAX_SELECTION = 10
MIN_ANALYSIS_SELECTION = 2

# Contact map cutoff between side-chain (or fallback) atoms (Å)
CONTACT_CUTOFF = 5.0

# User-tunable proximity threshold bounds (Å)
MIN_PROXIMITY_THRESHOLD = 1.0
MAX_PROXIMITY_THRESHOLD = 5.0
DEFAULT_PROXIMITY_THRESHOLD = 5.0
PROXIMITY_THRESHOLD_STEP = 0.5

# Delay before a threshold change is applied (ms)
THRESHOLD_DEBOUNCE_MS = 75

# Application info
APP_NAME = "ResidueScope"
APP_VERSION = "0.1.0"

"""Project-wide constants for dpistamp."""

# ==============================================================================
# Raster Limits
# ==============================================================================

# Largest width/height any resolved output may have (signed 16-bit canvas limit)
MAX_RASTER_DIM = 32767

# ==============================================================================
# Output Defaults
# ==============================================================================

# Last entry of the DPI precedence table: explicit > Config.default_dpi > this
DEFAULT_DPI = 300
DEFAULT_QUALITY = 80

# JFIF stores densities as unsigned 16-bit integers
MAX_JPEG_DPI = 0xFFFF

# PNG pHYs densities are pixels per meter
PIXELS_PER_METER_PER_DPI = 39.3701

# ==============================================================================
# Source Detection
# ==============================================================================

_KB = 1000

# Extensionless platform assets smaller than this are thumbnails or junk
SYSTEM_ASSET_MIN_BYTES = 100 * _KB
UNTYPED_MIME_TYPES = frozenset({"", "application/octet-stream"})

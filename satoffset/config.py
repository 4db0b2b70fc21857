"""
Configuration constants for satoffset.

This module centralizes all configuration parameters used throughout the application,
making them easily configurable and maintainable.
"""

from . import __version__

# MPC 80-column Record Layout (0-based columns)
MPC_RECORD_LENGTH = 80
NOTE2_COLUMN = 14                  # 'S' observation / 's' offset marker
DATE_COLUMNS = (15, 32)            # "YYYY MM DD.dddddd"
VELOCITY_TIMESTAMP_COLUMNS = (15, 31)
UNIT_FLAG_COLUMN = 32
OFFSET_FIELDS_START = 34           # sign of x; y and z follow every 12 columns
OFFSET_FIELD_STRIDE = 12
OFFSET_BLANK_RANGE = (33, 72)      # cleared before the offsets are written
SITE_CODE_COLUMNS = (77, 80)

SPACECRAFT_OBS_MARKER = 'S'
SPACECRAFT_OFFSET_MARKER = 's'
SPACECRAFT_MARKERS = (SPACECRAFT_OBS_MARKER, SPACECRAFT_OFFSET_MARKER)

# Epoch Handling
# No spacecraft astrometry predates HST; earlier dates are malformed lines.
HST_LAUNCH_JD = 2448005.5          # 1990 April 24
MIN_VALID_MONTH = 1
MAX_VALID_MONTH = 12
EPOCH_MATCH_TOLERANCE_DAYS = 1e-5

# Offset Encoding
KM_UNIT_FLAG = '1'
AU_UNIT_FLAG = '2'
MAX_KM_OFFSET = 9999999.0          # anything larger is written in AU
AU_SEVEN_DIGIT_THRESHOLD = 9.9     # AU offsets above this lose one decimal
KM_THREE_DIGIT_THRESHOLD = 99999.0
KM_TWO_DIGIT_THRESHOLD = 999999.0
OFFSET_MAGNITUDE_WIDTH = 10

# Velocity comment written ahead of each regenerated observation
VELOCITY_COMMENT_PREFIX = "COM vel (km/s) "

# JPL Horizons Service
HORIZONS_API_URL = "https://ssd.jpl.nasa.gov/api/horizons.api"
HORIZONS_CENTER = "500@399"        # geocenter
HORIZONS_REF_PLANE = "FRAME"       # J2000 equatorial
HORIZONS_TABLE_TYPE = "V"          # state vectors
HORIZONS_VEC_TABLE = "2"           # position and velocity
HORIZONS_OUT_UNITS = "KM-S"
HORIZONS_TIMEOUT_SECONDS = 120
HORIZONS_USER_AGENT = f"satoffset/{__version__}"

# Horizons rejects request URLs much beyond 8000 bytes. Each epoch adds
# 17 bytes ("'2458843.421181'" plus a comma). No batch holds more than
# 458 epochs whatever the id length.
HORIZONS_MAX_QUERY_BYTES = 8000
HORIZONS_EPOCH_BYTES = 17
HORIZONS_MAX_EPOCHS_PER_QUERY = 458
HORIZONS_EPOCH_FORMAT = "{:.6f}"

# Response markers
HORIZONS_EPOCH_HEADER_MARKERS = (" = A.D. ", " TDB")
HORIZONS_NO_EPHEMERIS_MARKER = "No ephemeris"

# Spacecraft cross-reference: MPC site code -> Horizons object id.
# This table needs occasional fixes as spacecraft are launched.
# 'Cas', 'SoO' and 'PSP' are not official MPC codes.
SPACECRAFT_XREF = {
    '245': -79,       # Spitzer
    '249': -21,       # SOHO
    '250': -48,       # Hubble
    '258': -139479,   # Gaia
    'Cas': -82,       # Cassini
    'C49': -234,      # STEREO-A
    'C50': -235,      # STEREO-B
    'C51': -163,      # WISE
    'C52': -128485,   # Swift
    'C53': -139089,   # NEOSSat
    'C54': -98,       # New Horizons
    'C55': -227,      # Kepler
    'C56': -141043,   # LISA Pathfinder
    'C57': -95,       # TESS
    'C59': -148840,   # Yangwang-1
    'PSP': -96,       # Parker Solar Probe
    '274': -170,      # James Webb Space Telescope
    'SoO': -144,      # Solar Orbiter
}
SITE_CODE_LENGTH = 3

# Run Reporting
RUN_BANNER_TEMPLATE = "COM satoffset ver {version},  run {timestamp}"
RUN_SUMMARY_TEMPLATE = "COM {n_set} positions set by satoffset; {n_failed} failed in {elapsed:.2f} seconds"

FAILURE_UNKNOWN_SITE_CODE = "Unknown site code"
FAILURE_TRANSPORT = "Transport error"
FAILURE_MALFORMED_RESPONSE = "Malformed response"
FAILURE_NO_EPHEMERIS = "No ephemeris available"
FAILURE_NOT_IN_RESPONSE = "Not in response"

# Logging Configuration
DEFAULT_LOG_LEVEL = "WARNING"
DEFAULT_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
VERBOSITY_LOG_LEVELS = {
    0: DEFAULT_LOG_LEVEL,
    1: "INFO",
    2: "DEBUG",
}

# I/O Configuration
ENCODING_FALLBACK_ORDER = ['utf-8', 'latin-1']

from enum import Enum

# Metatile stride: x/y are addressed in blocks of METATILE x METATILE tiles
METATILE = 8

# Highest supported zoom level (2^MAX_ZOOM - 1 fits comfortably in any int)
MAX_ZOOM = 20

# Default map (style) name rendered when --map is not given
XMLCONFIG_DEFAULT = 'default'

# Default tile storage location
HASH_PATH = '/var/cache/renderd/tiles'

# Default render service endpoint (URL or unix socket path)
RENDER_SOCKET = 'http://127.0.0.1'

# Default load ceiling above which submissions are held back
MAX_LOAD_OLD = 16

# Default number of render worker threads
NUM_THREADS_DEFAULT = 1

# Capacity of the in-memory render queue shared by the workers
QMAX = 32

# Pause between load checks while the system is above the load ceiling (s)
LOAD_SLEEP_SECONDS = 5.0

# Pause before a worker retries after a connection failure (s)
RECONNECT_DELAY_SECONDS = 1.0

# Number of connection attempts a worker makes for a single job
RENDER_RETRIES_DEFAULT = 3

# Print a rate snapshot every N submissions while reading from a stream
STREAM_REPORT_EVERY = 10

# Minimum interval between "Checking (x, y)" progress lines (s)
PROGRESS_INTERVAL_SECONDS = 1.0

# Longest raw line echoed back for a malformed stream entry
BAD_LINE_MAX_CHARS = 1024

# --- Storage
# URL scheme selecting the null backend (reports every tile absent)
STORAGE_NULL_SCHEME = 'null://'
# URL scheme selecting the SQLite backend
STORAGE_SQLITE_SCHEME = 'sqlite://'
# Marker file in the storage root; its mtime is the last data import time
PLANET_MARKER = 'planet-import-complete'

# --- HTTP render trigger
HTTP_TIMEOUT_DEFAULT = 60.0
HTTP_OK_MIN = 200
HTTP_OK_MAX = 300
# Path template appended to the service URL to request a (re-)render
RENDER_PATH_TEMPLATE = '/{map}/{z}/{x}/{y}.png/dirty'

# --- Profiles
PROFILES_DIR = 'configs/profiles'

# --- Logging
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

# Exit codes
EXIT_OK = 0
EXIT_CONFIG_ERROR = 1
EXIT_USAGE = -1

# Availability flags for optional libs
PSUTIL_AVAILABLE = True


class TraversalMode(str, Enum):
    """Strategy the dispatcher runs for a given configuration."""

    PYRAMID = 'pyramid'
    RANGE = 'range'
    STREAM = 'stream'

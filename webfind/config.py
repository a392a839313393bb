"""
Configuration constants for webfind.
"""

# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------
DEFAULT_NAME_PATTERN = ".+"
DEFAULT_MAX_BODY_SIZE = 512 * 1024    # bytes read per response body

# Directory listings render directory entries with a trailing slash.
FOLDER_HREF_RE = r".+/$"

UP_DIR = "../"
ROOT_DIR = "/"

FILE_TYPE_REG = "f"
FILE_TYPE_DIR = "d"

# ---------------------------------------------------------------------------
# Transport defaults (milliseconds, like the CLI flags)
# ---------------------------------------------------------------------------
DEFAULT_TIMEOUT = 180_000              # dial timeout
DEFAULT_KEEP_ALIVE = 30_000            # interval between keep-alive probes
DEFAULT_MAX_IDLE_CONNS = 1000          # idle connections across all hosts
DEFAULT_MAX_IDLE_CONNS_PER_HOST = 1000 # idle connections per host
DEFAULT_TLS_HANDSHAKE_TIMEOUT = 30_000

MAX_RETRIES = 3                        # urllib3 retries on 5xx responses

USER_AGENT = "webfind/1.0 (python-requests)"

# ---------------------------------------------------------------------------
# Exponential backoff tuning (seconds)
# ---------------------------------------------------------------------------
BACKOFF_INITIAL_INTERVAL = 2.0
BACKOFF_MAX_INTERVAL = 10.0
BACKOFF_MAX_ELAPSED_TIME = 5 * 60.0
BACKOFF_MULTIPLIER = 1.5
BACKOFF_RANDOMIZATION_FACTOR = 0.5

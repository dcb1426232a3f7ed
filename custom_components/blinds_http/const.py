"""Constants for the blinds_http integration."""

DOMAIN = "blinds_http"

CONF_UP_URL = "up_url"
CONF_DOWN_URL = "down_url"
CONF_STOP_URL = "stop_url"
CONF_POSITION_URL = "position_url"
CONF_SHOW_STOP_BUTTON = "show_stop_button"
CONF_STOP_AT_BOUNDARIES = "trigger_stop_at_boundaries"
CONF_USE_SAME_URL_FOR_STOP = "use_same_url_for_stop"
CONF_HTTP_METHOD = "http_method"
CONF_HTTP_HEADERS = "http_headers"
CONF_HTTP_BODY = "http_body"
CONF_SUCCESS_CODES = "success_codes"
CONF_MAX_HTTP_ATTEMPTS = "max_http_attempts"
CONF_RETRY_DELAY = "retry_delay"
CONF_RETRY_STRATEGY = "retry_strategy"
CONF_MOTION_TIME = "motion_time"
CONF_RESPONSE_LAG = "response_lag"
CONF_VERBOSE = "verbose"

HTTP_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE"]

RETRY_NON_SUCCESS = "non_success"
RETRY_HTTP_OR_NETWORK_ERROR = "http_or_network_error"
RETRY_STRATEGIES = [RETRY_NON_SUCCESS, RETRY_HTTP_OR_NETWORK_ERROR]

DEFAULT_HTTP_METHOD = "POST"
DEFAULT_SUCCESS_CODES = (200,)
DEFAULT_MAX_HTTP_ATTEMPTS = 5
DEFAULT_RETRY_DELAY = 2000
DEFAULT_MOTION_TIME = 10000
DEFAULT_RESPONSE_LAG = 0

MIN_HTTP_ATTEMPTS = 1
MIN_RETRY_DELAY = 100

# Per-attempt HTTP timeout in seconds
REQUEST_TIMEOUT = 10

POSITION_CLOSED = 0
POSITION_OPEN = 100

STORAGE_KEY = f"{DOMAIN}.positions"
STORAGE_VERSION = 1
STORAGE_SAVE_DELAY = 1

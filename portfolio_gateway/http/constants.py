"""HTTP constants for the resilient client.

Centralizes status ranges, retry sets, defaults and log event names.
"""

# HTTP Status Code Ranges
HTTP_STATUS_OK_MIN = 200
HTTP_STATUS_OK_MAX = 300

# Statuses worth repeating without changing the request
RETRYABLE_STATUSES = frozenset({408, 425, 429, 500, 502, 503, 504})

# Client defaults
DEFAULT_TIMEOUT_MS = 10_000
DEFAULT_MAX_RETRIES = 2
DEFAULT_RETRY_DELAY_MS = 100
DEFAULT_BACKOFF_FACTOR = 2.0
DEFAULT_DEPENDENCY_NAME = "http-client"

# Upper bounds shared by client and environment settings
MAX_TIMEOUT_MS = 600_000
MAX_RETRIES = 10
MAX_RETRY_DELAY_MS = 60_000
MAX_BACKOFF_FACTOR = 10.0

# Log event names
EVENT_RESPONSE = "http_response"
EVENT_RETRY = "http_retry"
EVENT_ERROR = "http_error"

# Error class tag attached to terminal failure logs
ERROR_CLASS_DEPENDENCY = "dependency"

OUTCOME_SUCCESS = "success"
OUTCOME_RETRY = "retry"
OUTCOME_ERROR = "error"

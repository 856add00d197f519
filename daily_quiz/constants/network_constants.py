"""Network configuration constants for the daily quiz client."""

DEFAULT_API_BASE_URL: str = "http://localhost:3000"
DEFAULT_TIMEOUT_SECONDS: float = 10.0
DEFAULT_CDN_TIMEOUT_SECONDS: float = 10.0

DEFAULT_HEADERS: dict[str, str] = {
    "Content-Type": "application/json",
    "Accept": "application/json",
}
CDN_HEADERS: dict[str, str] = {
    "Accept": "application/json",
    "Cache-Control": "no-cache",
}

DAILY_NEXT_ENDPOINT: str = "/daily/next"
DAILY_TODAY_ENDPOINT: str = "/daily"
DAILY_STATUS_ENDPOINT: str = "/daily/status"
ATTEMPTS_TODAY_ENDPOINT: str = "/attempts/today"
ATTEMPTS_START_ENDPOINT: str = "/attempts/start"
ATTEMPT_ANSWER_ENDPOINT_TEMPLATE: str = "/attempts/{attempt_id}/answer"
ATTEMPT_FINISH_ENDPOINT_TEMPLATE: str = "/attempts/{attempt_id}/finish"

# Transport pseudo-statuses used when no HTTP response was received.
NETWORK_FAILURE_STATUS: int = 0
TIMEOUT_STATUS: int = 408

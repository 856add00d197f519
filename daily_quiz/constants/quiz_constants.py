"""Quiz-related constants shared across the client layers."""

DEFAULT_SPEED_TAP_ROUND_SECONDS: int = 30
UNSELECTED_CHOICE_INDEX: int = -1
RANKING_PLACEHOLDER_TEMPLATE: str = "choice{index}"

# Retry hints (seconds) attached to transient errors.
TEMPLATE_NOT_READY_RETRY_SECONDS: int = 300
NETWORK_RETRY_SECONDS: int = 30
CDN_RETRY_SECONDS: int = 30
CDN_TIMEOUT_RETRY_SECONDS: int = 60

# Availability decision reasons.
REASON_NOT_YET_AVAILABLE: str = "Quiz not yet available"
REASON_WINDOW_EXPIRED: str = "Quiz window expired"
REASON_TEMPLATE_NOT_READY: str = "Quiz is preparing, try again in a few minutes"
REASON_NO_QUIZ_TODAY: str = "No quiz available today"
REASON_UNKNOWN: str = "Unknown error occurred"

# Result screen thresholds.
SCORE_EXCELLENT_THRESHOLD: int = 3000
SCORE_GREAT_THRESHOLD: int = 2000
SCORE_GOOD_THRESHOLD: int = 1000

# The server rejects a finish once its clock passes the deadline, so the
# countdown-driven finish fires this many seconds early.
AUTO_SUBMIT_LEAD_SECONDS: float = 1.0

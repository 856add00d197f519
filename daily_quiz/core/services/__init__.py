"""Network-facing services of the daily quiz client."""

from .attempt_client import AttemptClient, format_time_remaining, get_time_remaining, is_time_up
from .availability_service import AvailabilityService
from .collaborators import ErrorNotifier, IdentityProvider, LoggingErrorNotifier, StaticTokenIdentity
from .http_client import ApiHttpClient

__all__ = [
    "ApiHttpClient",
    "AttemptClient",
    "AvailabilityService",
    "ErrorNotifier",
    "IdentityProvider",
    "LoggingErrorNotifier",
    "StaticTokenIdentity",
    "format_time_remaining",
    "get_time_remaining",
    "is_time_up",
]

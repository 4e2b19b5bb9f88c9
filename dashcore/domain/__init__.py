"""Domain package exports for error and retry value objects."""

from .errors import ErrorKind, ErrorState, HandledError
from .retry_policy import RetryPolicy
from .settings import ResilienceSettings

__all__ = [
    "ErrorKind",
    "ErrorState",
    "HandledError",
    "ResilienceSettings",
    "RetryPolicy",
]

"""Client-side resilience core for dashboard views.

Classified error handling with bounded retries, debounce/throttle scheduling,
and a reference-counted loading flag, all owned by a per-view scope.
"""

from .app.debounce_scheduler import DebounceScheduler, Debounced, Throttled, UpdatePriority
from .app.loading import LoadingAggregator
from .app.performance import Performance
from .app.scope import Scope
from .domain.errors import ErrorKind, ErrorState, HandledError
from .domain.observable import Observable
from .domain.retry_policy import RetryPolicy
from .domain.settings import ResilienceSettings
from .usecases.error_handling import ErrorHandling
from .usecases.error_mapping import classify
from .utils.logging import configure_root
from .viewmodels.dashboard_vm import DashboardVM

__all__ = [
    "DashboardVM",
    "DebounceScheduler",
    "Debounced",
    "ErrorHandling",
    "ErrorKind",
    "ErrorState",
    "HandledError",
    "LoadingAggregator",
    "Observable",
    "Performance",
    "ResilienceSettings",
    "RetryPolicy",
    "Scope",
    "Throttled",
    "UpdatePriority",
    "classify",
    "configure_root",
]

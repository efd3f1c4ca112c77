"""ghostsync - two-way sync between Ghost Inspector suites and local folders."""

from .api import GhostInspectorClient
from .exceptions import (
    GhostAPIError,
    GhostAuthenticationError,
    GhostConfigError,
    GhostInvalidResponseError,
    GhostLocalError,
    GhostMappingError,
    GhostNetworkError,
    GhostNotFoundError,
    GhostPermissionError,
    GhostRateLimitError,
    GhostSyncError,
)

__all__ = [
    "GhostInspectorClient",
    "GhostAPIError",
    "GhostAuthenticationError",
    "GhostConfigError",
    "GhostInvalidResponseError",
    "GhostLocalError",
    "GhostMappingError",
    "GhostNetworkError",
    "GhostNotFoundError",
    "GhostPermissionError",
    "GhostRateLimitError",
    "GhostSyncError",
]

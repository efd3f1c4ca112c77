"""Exceptions raised by ghostsync."""


class GhostSyncError(Exception):
    """Base exception for all ghostsync errors."""


class GhostConfigError(GhostSyncError):
    """Required configuration (API key, folder id) is missing."""


class GhostMappingError(GhostSyncError):
    """The suite mapping file could not be read or written."""


class GhostLocalError(GhostSyncError):
    """A local filesystem operation for a suite failed."""


class GhostAPIError(GhostSyncError):
    """Base exception for Ghost Inspector API errors."""


class GhostAuthenticationError(GhostAPIError):
    """API key was rejected."""


class GhostPermissionError(GhostAPIError):
    """Access to the resource is forbidden."""


class GhostNotFoundError(GhostAPIError):
    """Requested resource does not exist."""


class GhostRateLimitError(GhostAPIError):
    """Too many requests."""


class GhostNetworkError(GhostAPIError):
    """Transport level failure (connection reset, timeout, DNS)."""


class GhostInvalidResponseError(GhostAPIError):
    """Server returned something that is not the expected JSON or archive."""

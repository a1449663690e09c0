"""
Error types raised by Gmail Purge
"""

from typing import Optional


class PurgeError(Exception):
    """Base class for all purge errors"""


class ConfigError(PurgeError):
    """Invalid cutoff date or option, detected before any remote call"""


class RemoteError(PurgeError):
    """A Gmail API call failed"""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class RateLimitedError(RemoteError):
    """Gmail asked us to slow down (429, or 403 with a rate limit reason)"""


class ArchiveError(PurgeError, OSError):
    """A message could not be archived locally"""


class RunInterrupted(PurgeError):
    """A stop was requested while the run was in progress"""

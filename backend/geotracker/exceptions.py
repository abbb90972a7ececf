"""
Error taxonomy for audit orchestration and persistence
"""

from typing import Any, Dict, Optional


class GeoTrackerError(Exception):
    """Base exception for the tracker"""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ScoringServiceError(GeoTrackerError):
    """Network, timeout or remote error from an external scoring service.

    Never fatal to a batch: the prompt is left unresolved for a later retry.
    """


class CampaignCreationError(GeoTrackerError):
    """The campaign record could not be created; no audit call was made"""


class PersistenceError(GeoTrackerError):
    """The authoritative store could not be read or written"""


class ValidationError(GeoTrackerError):
    """The operation was refused and no state was changed"""


class NotFoundError(ValidationError):
    """A referenced client, prompt, campaign or schedule does not exist"""

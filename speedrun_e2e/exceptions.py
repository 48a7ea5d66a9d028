"""
Exceptions for the Speedrun E2E harness.
"""
from typing import Optional


class SpeedrunError(Exception):
    """Base exception for all harness errors."""
    pass


class ConfigurationError(SpeedrunError, ValueError):
    """
    Raised for unsupported chains, assets missing on a chain, or missing
    credentials. Always detected before any network call.
    """
    pass


class ChainInteractionError(SpeedrunError):
    """Raised when an RPC call fails, a contract reverts, or a receipt reports failure."""

    def __init__(self, message: str, tx_hash: Optional[str] = None):
        self.tx_hash = tx_hash
        super().__init__(message)


class StatusApiError(SpeedrunError):
    """Raised when the Speedrun status API returns an error or an unreadable response."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class IntentNotIndexedError(SpeedrunError):
    """Raised when the status API keeps answering 404 for an intent."""

    def __init__(self, intent_id: str, attempts: int):
        self.intent_id = intent_id
        self.attempts = attempts
        super().__init__(f"Intent not found in API after {attempts} attempts")

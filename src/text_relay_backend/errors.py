"""
Error taxonomy for request correlation.

Every failure that can end a submission or reject a callback is raised as a
subclass of CorrelationError. The HTTP layer in main maps these onto status
codes; the core never retries.
"""

from __future__ import annotations


class CorrelationError(Exception):
    """Base class for all correlation failures."""

    default_message = "Correlation failed"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class DuplicateIdentifier(CorrelationError):
    """A request identifier was registered twice."""

    default_message = "Request identifier is already registered"


class DispatchError(CorrelationError):
    """The outbound call to the processor failed before the caller suspended."""

    default_message = "Failed to dispatch request to processor"


class RequestTimeout(CorrelationError):
    default_message = "Request timeout"


class CallbackReportedError(CorrelationError):
    """The processor answered the callback with an explicit error."""

    default_message = "Processor reported an error"


class MissingIdentifier(CorrelationError):
    default_message = "Request ID is missing in callback"


class UnknownIdentifier(CorrelationError):
    """No pending request matches the callback (never existed, settled or expired)."""

    default_message = "No matching pending request found"

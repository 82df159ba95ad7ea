"""Exception types raised by the event stream pipeline."""


class EventStreamError(Exception):
    """Base class for all pipeline errors."""


class FingerprintConfigError(EventStreamError):
    """Raised when a fingerprint registry is malformed."""


class FrozenDocumentError(EventStreamError):
    """Raised when a document is mutated after it was handed to the bulk writer."""


class BulkSubmissionError(EventStreamError):
    """Raised when the bulk request as a whole could not be delivered."""

    def __init__(self, message: str, submitted: int = 0):
        super().__init__(message)
        self.submitted = submitted

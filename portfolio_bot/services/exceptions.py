"""
Service Layer Exceptions

Failures of the external collaborators (transport, record store, extraction
service). They are caught once, at the ChatService boundary; the session is
not saved when one of them escapes a request.
"""


class CollaboratorError(Exception):
    """Base class for failures of an external collaborator."""
    pass


class DeliveryError(CollaboratorError):
    """Raised when the transport did not accept an outbound message."""

    def __init__(self, method: str):
        super().__init__(f"Transport call '{method}' failed.")
        self.method = method


class StoreError(CollaboratorError):
    """Raised when the record store rejects a read or a write."""
    pass


class ExtractionError(CollaboratorError):
    """Raised when the date/time extraction service fails or times out."""
    pass

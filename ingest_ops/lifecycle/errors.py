"""Operator-facing errors raised by lifecycle operations."""

from typing import Optional


class IngestOpsError(Exception):
    """Base class for every error ingest_ops raises on purpose."""


class DuplicateSubmission(IngestOpsError):
    """The URL already has an ingest request (open or completed)."""

    def __init__(self, url: str, existing_id: Optional[str] = None):
        self.url = url
        self.existing_id = existing_id
        super().__init__(f"URL already submitted: {url} (request {existing_id})")


class InvalidState(IngestOpsError):
    """The request is not in the state the operation requires."""

    def __init__(self, request_id: str, status: str, action: str, reason: str = ""):
        self.request_id = request_id
        self.status = status
        self.action = action
        message = f"Cannot {action} request {request_id} in status '{status}'"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class RequestNotFound(IngestOpsError):
    def __init__(self, request_id: str):
        self.request_id = request_id
        super().__init__(f"Ingest request not found: {request_id}")


class UnsupportedSource(IngestOpsError):
    def __init__(self, url: str):
        self.url = url
        super().__init__(
            "Unsupported URL type. Please provide a YouTube URL or direct audio file URL."
        )


class DeletionNotConfirmed(IngestOpsError):
    def __init__(self, request_id: str):
        self.request_id = request_id
        super().__init__(f"Deletion of request {request_id} was not confirmed")

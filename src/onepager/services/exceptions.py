"""Custom exceptions for onepager services."""

from typing import Optional


class OnePagerError(Exception):
    """Base class for onepager errors."""


class AIServiceError(OnePagerError):
    """Raised when an AI request fails or returns an unusable payload.

    Attributes:
        status_code: HTTP status of the failed response, if one was received
        message: Human-readable error message
    """

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        self.message = message
        if status_code is not None:
            super().__init__(f"{message} (HTTP {status_code})")
        else:
            super().__init__(message)


class GenerationError(OnePagerError):
    """Raised when user-initiated document generation fails.

    The document is left unchanged; callers show the message to the user.
    """


class ActionInProgressError(OnePagerError):
    """Raised when an AI action cannot start because another is in flight.

    Attributes:
        block_id: Block the rejected action targeted
        pending_block_ids: Blocks that currently have a request in flight
    """

    def __init__(self, block_id: str, pending_block_ids: list[str]):
        self.block_id = block_id
        self.pending_block_ids = pending_block_ids
        if block_id in pending_block_ids:
            message = f"An AI action is already running for block {block_id}"
        else:
            message = (
                f"Cannot start an AI action for block {block_id}: "
                f"waiting on {', '.join(pending_block_ids)}"
            )
        super().__init__(message)


class DocumentStoreError(OnePagerError):
    """Raised when the document store cannot be read or written.

    Attributes:
        path: Location of the store
    """

    def __init__(self, path: str, message: str):
        self.path = path
        super().__init__(f"{message}: {path}")

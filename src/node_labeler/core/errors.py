"""
Error taxonomy.

We separate error types so callers can react correctly.
Example:
ParseError keeps the previous compatibility mapping and is reported once.
NotFoundError on a node is absorbed by the reconciler as a no op.
ConflictError and StoreUnavailableError are worth retrying on the next pass.
WriteError is terminal for the attempt that raised it.
"""


class LabelerError(Exception):
    """Base class for all labeler exceptions."""

    retryable: bool = False


class ParseError(LabelerError):
    """Raised when compatibility configuration is malformed."""


class NotFoundError(LabelerError):
    """Raised when a node or configuration object does not exist."""


class ConflictError(LabelerError):
    """Raised when a label write was based on a stale resource version."""

    retryable = True


class StoreUnavailableError(LabelerError):
    """Raised on transient failures talking to the node store or config source."""

    retryable = True


class WriteError(LabelerError):
    """Raised when the node store rejects a label write for a non transient reason."""


class Cancelled(LabelerError):
    """Raised when the caller cancelled the call or its deadline expired."""

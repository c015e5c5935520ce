"""Error types raised by configuration store implementations."""

from eval_engine.core.errors import EvalEngineError


class StoreError(EvalEngineError):
    """Base class for configuration store failures."""


class DocumentNotFoundError(StoreError):
    """Raised when a referenced document does not exist."""

    def __init__(self, collection: str, document_id: str) -> None:
        self.collection = collection
        self.document_id = document_id
        super().__init__(
            f"Failed to read store: {collection} document '{document_id}' not found"
        )


class StoreUnavailableError(StoreError):
    """Raised when the store cannot be read or written."""

    def __init__(self, reason: str) -> None:
        super().__init__(f"Failed to access store: {reason}", retriable=True)


class MalformedDocumentError(StoreError):
    """Raised when a stored document does not match its expected shape."""

    def __init__(self, collection: str, document_id: str, reason: str) -> None:
        super().__init__(
            f"Failed to read store: {collection} document '{document_id}' is"
            f" malformed: {reason}"
        )

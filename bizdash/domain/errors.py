"""Error taxonomy shared by the engine's layers."""
from __future__ import annotations


class BizdashError(Exception):
    """Base class for failures surfaced to callers."""


class SourceError(BizdashError):
    """A failure attributable to one configured source."""

    def __init__(self, source: str, message: str, cause: BaseException | None = None) -> None:
        super().__init__(f"{source}: {message}")
        self.source = source
        self.cause = cause


class AuthError(SourceError):
    """Login was rejected or the source could not be reached."""


class FetchError(SourceError):
    """One of the entity collection calls failed."""

    def __init__(
        self,
        source: str,
        entity: str,
        message: str,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(source, f"fetching {entity} failed: {message}", cause)
        self.entity = entity


class AggregateError(BizdashError):
    """An unexpected failure escaped a per-source task during consolidation."""

    def __init__(self, source: str, cause: BaseException) -> None:
        super().__init__(f"consolidation aborted by {source}: {cause}")
        self.source = source
        self.cause = cause


class UnsupportedDocumentType(BizdashError, ValueError):
    def __init__(self, doc_type: str) -> None:
        super().__init__(f"document type {doc_type!r} is not supported")
        self.doc_type = doc_type


class RecordNotFound(BizdashError, LookupError):
    def __init__(self, kind: str, key: str) -> None:
        super().__init__(f"{kind} {key!r} not found")
        self.kind = kind
        self.key = key

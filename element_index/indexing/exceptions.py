"""Error taxonomy for index synchronisation and result denormalization."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


class ElementIndexError(RuntimeError):
    """Base class for all errors raised by this package."""


class ElasticsearchConnectionError(ElementIndexError):
    """Raised when the client fails to connect to Elasticsearch."""


class UnsupportedEntityKind(ElementIndexError):
    """No type adapter is registered for the element's kind."""

    def __init__(self, kind: Any) -> None:
        super().__init__(f"No type adapter registered for element kind {kind!r}")
        self.kind = kind


class IndexDataException(ElementIndexError):
    """Building the index document for one element failed."""


class UnsupportedDenormalizationTarget(ElementIndexError):
    """The raw data or the requested result type cannot be denormalized."""


@dataclass(frozen=True)
class BulkItemFailure:
    operation: Any
    reason: Any


class BulkFlushFailure(ElementIndexError):
    """One or more operations of a flushed batch were rejected.

    Items that succeeded stay applied; nothing is retried.
    """

    def __init__(self, failures: list[BulkItemFailure], applied: int) -> None:
        super().__init__(
            f"{len(failures)} bulk operation(s) failed, {applied} applied"
        )
        self.failures = failures
        self.applied = applied

"""Ordered buffer of pending bulk operations.

Operations are sent in append order; nothing is deduplicated, so several
operations on one id within a flush resolve by last-write-wins on the engine
side.  Flushing hands the buffer to the document store in chunks of
``bulk_size``.  Items rejected by the engine, and every item from a failed
request onwards, are reported through :class:`BulkFlushFailure` and never
retried here.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from itertools import batched
from typing import Any, Callable, Optional, Protocol, Union

from element_index.common.settings import settings
from element_index.indexing.entities import IndexDocument
from element_index.indexing.exceptions import BulkFlushFailure, BulkItemFailure

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Upsert:
    index: str
    id: Any
    document: IndexDocument

    def to_action(self) -> dict[str, Any]:
        """Routing header ``{update: {_index, _id}}`` followed by ``{doc, doc_as_upsert}``."""
        return {
            "_op_type": "update",
            "_index": self.index,
            "_id": str(self.id),
            "doc": self.document,
            "doc_as_upsert": True,
        }


@dataclass(frozen=True)
class Delete:
    index: str
    id: Any

    def to_action(self) -> dict[str, Any]:
        return {"_op_type": "delete", "_index": self.index, "_id": str(self.id)}


BulkOperation = Union[Upsert, Delete]


class BulkStore(Protocol):
    def bulk(self, actions: list[dict[str, Any]], refresh: bool = False) -> list[tuple[bool, dict[str, Any]]]: ...


def _failure_reason(item: dict[str, Any]) -> Any:
    info = next(iter(item.values()), {}) if item else {}
    if isinstance(info, dict):
        return info.get("error", info)
    return info


class BulkBatchQueue:
    """Thread-safe FIFO of :data:`BulkOperation` flushed as bulk requests."""

    def __init__(self, store: BulkStore, bulk_size: Optional[int] = None) -> None:
        self._store = store
        self._bulk_size = max(1, bulk_size or settings.bulk_size)
        self._operations: list[BulkOperation] = []
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._operations)

    @property
    def pending(self) -> tuple[BulkOperation, ...]:
        with self._lock:
            return tuple(self._operations)

    def add(self, operation: BulkOperation) -> None:
        with self._lock:
            self._operations.append(operation)

    def last_operation(self, index: str, doc_id: Any) -> Optional[BulkOperation]:
        """Most recently queued operation for *index*/*doc_id*, if any."""
        key = str(doc_id)
        with self._lock:
            for operation in reversed(self._operations):
                if operation.index == index and str(operation.id) == key:
                    return operation
        return None

    def discard(self, predicate: Callable[[BulkOperation], bool]) -> int:
        """Drop unflushed operations matching *predicate*; return how many were dropped."""
        with self._lock:
            kept = [op for op in self._operations if not predicate(op)]
            dropped = len(self._operations) - len(kept)
            self._operations = kept
        return dropped

    def clear(self) -> None:
        with self._lock:
            self._operations = []

    def flush(self, refresh: bool = False) -> int:
        """Send all buffered operations and empty the buffer.

        Args:
            refresh: Make the written documents searchable right away.  The
                flag is sent with every chunk; a bulk refresh only covers the
                shards that chunk wrote to.

        Returns:
            Number of operations the engine applied.

        Raises:
            BulkFlushFailure: At least one operation was rejected or could not
                be sent; the applied ones stay applied.
        """
        with self._lock:
            operations, self._operations = self._operations, []
        if not operations:
            return 0

        applied = 0
        failures: list[BulkItemFailure] = []
        request_error: Optional[Exception] = None
        chunks = list(batched(operations, self._bulk_size))
        for number, chunk in enumerate(chunks):
            try:
                results = self._store.bulk([op.to_action() for op in chunk], refresh=refresh)
            except Exception as exc:
                request_error = exc
                unsent = [op for rest in chunks[number:] for op in rest]
                logger.error("Bulk request failed, %d operation(s) not applied: %s", len(unsent), exc)
                failures.extend(BulkItemFailure(op, exc) for op in unsent)
                break
            for operation, (ok, item) in zip(chunk, results):
                if ok:
                    applied += 1
                else:
                    reason = _failure_reason(item)
                    logger.warning("Bulk %s of id %s in '%s' failed: %s",
                                   type(operation).__name__.lower(), operation.id, operation.index, reason)
                    failures.append(BulkItemFailure(operation, reason))
            for operation in chunk[len(results):]:
                failures.append(BulkItemFailure(operation, "no result returned"))

        logger.info("Flushed %d bulk operation(s): %d applied, %d failed.",
                    len(operations), applied, len(failures))
        if failures:
            raise BulkFlushFailure(failures, applied) from request_error
        return applied

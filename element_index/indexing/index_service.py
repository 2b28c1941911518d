"""Keep the search index in step with element changes.

Workflow
---------
1. Resolve the element's alias through its type adapter.
2. Read the current checksum: a queued operation for the same id, else the
   stored document (``-1`` if missing or unreadable).
3. Build the fresh document, custom fields and checksum included.
4. Skip if the checksums match, otherwise queue an upsert.

Deletes are queued unconditionally.  Nothing is written until :meth:`commit`
(or the queue's own :meth:`flush`) is called.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Optional, Protocol

from element_index.common.settings import settings
from element_index.indexing.bulk_queue import BulkBatchQueue, Delete, Upsert
from element_index.indexing.document_normalizer import DocumentNormalizer
from element_index.indexing.entities import (
    CHECKSUM_SENTINEL,
    Element,
    SystemField,
)
from element_index.indexing.exceptions import IndexDataException, UnsupportedEntityKind
from element_index.indexing.type_adapters import TypeAdapterRegistry

logger = logging.getLogger(__name__)


class DocumentReader(Protocol):
    def get_document(self, index_name: str, doc_id: Any) -> Optional[dict[str, Any]]: ...


@dataclass(frozen=True)
class IndexingFailure:
    element: Element
    error: Exception


class IndexService:
    """Checksum-gated scheduling of index updates and deletes."""

    def __init__(
        self,
        registry: TypeAdapterRegistry,
        store: DocumentReader,
        queue: BulkBatchQueue,
        normalizer: DocumentNormalizer,
        perform_index_refresh: Optional[bool] = None,
    ) -> None:
        self._registry = registry
        self._store = store
        self._queue = queue
        self._normalizer = normalizer
        self.perform_index_refresh = (
            settings.perform_index_refresh if perform_index_refresh is None else perform_index_refresh
        )

    @property
    def queue(self) -> BulkBatchQueue:
        return self._queue

    def get_stored_checksum(self, index_name: str, element_id: Any) -> int:
        """Checksum of the stored document, or the sentinel if it cannot be read."""
        try:
            document = self._store.get_document(index_name, element_id)
        except Exception as exc:
            logger.debug("Reading '%s' id %s failed: %s", index_name, element_id, exc)
            return CHECKSUM_SENTINEL
        if not document:
            return CHECKSUM_SENTINEL
        checksum = SystemField.CHECKSUM.get_data(document)
        return CHECKSUM_SENTINEL if checksum is None else checksum

    def get_current_checksum(self, index_name: str, element_id: Any) -> int:
        """Checksum the index will hold after the next flush.

        A queued operation for the same id wins over the stored document.
        """
        pending = self._queue.last_operation(index_name, element_id)
        if isinstance(pending, Upsert):
            return SystemField.CHECKSUM.get_data(pending.document)
        if isinstance(pending, Delete):
            return CHECKSUM_SENTINEL
        return self.get_stored_checksum(index_name, element_id)

    def schedule_update(self, element: Element) -> bool:
        """Queue an upsert unless the index already holds this content.

        Returns:
            *True* if an upsert was queued.

        Raises:
            UnsupportedEntityKind: No adapter handles the element.
            IndexDataException: The document could not be built.
        """
        index_name = self._registry.resolve(element).get_alias_index_name_by_element(element)
        original_checksum = self.get_current_checksum(index_name, element.id)

        document = self._normalizer.build(element)

        if SystemField.CHECKSUM.get_data(document) == original_checksum:
            logger.info(
                "Not updating index '%s' for element ID %s - nothing has changed.",
                index_name,
                element.id,
            )
            return False

        self._queue.add(Upsert(index_name, element.id, document))
        logger.info("Add update of element ID %s from '%s' index to bulk.", element.id, index_name)
        return True

    def schedule_delete(self, element: Element) -> None:
        """Queue a delete; a missing document is harmless."""
        index_name = self._registry.resolve(element).get_alias_index_name_by_element(element)
        self._queue.add(Delete(index_name, element.id))
        logger.info("Add deletion of item ID %s from '%s' index to bulk.", element.id, index_name)

    def schedule_updates(self, elements: Iterable[Element]) -> list[IndexingFailure]:
        """Schedule many updates; one failing element never stops the others."""
        failures: list[IndexingFailure] = []
        for element in elements:
            try:
                self.schedule_update(element)
            except (UnsupportedEntityKind, IndexDataException) as exc:
                logger.warning("Skipping element ID %s: %s", getattr(element, "id", None), exc)
                failures.append(IndexingFailure(element, exc))
        return failures

    def schedule_deletes(self, elements: Iterable[Element]) -> list[IndexingFailure]:
        failures: list[IndexingFailure] = []
        for element in elements:
            try:
                self.schedule_delete(element)
            except UnsupportedEntityKind as exc:
                logger.warning("Skipping deletion of element ID %s: %s", getattr(element, "id", None), exc)
                failures.append(IndexingFailure(element, exc))
        return failures

    def commit(self) -> int:
        """Flush the queue; see :meth:`BulkBatchQueue.flush`."""
        return self._queue.flush(refresh=self.perform_index_refresh)

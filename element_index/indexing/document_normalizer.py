"""Build complete index documents: system, standard and custom fields plus checksum.

The checksum is a CRC32 over a canonical JSON rendering (sorted keys, compact
separators, NaN rejected) of the three sections with the checksum field
removed.  It only serves change detection.  Listeners that put volatile
values (timestamps, random ids) into custom fields make every update look
like a change; keeping hook output deterministic is the listener's job.
"""

from __future__ import annotations

import copy
import json
import logging
import zlib
from typing import Any

from element_index.indexing.entities import (
    Element,
    FieldCategory,
    IndexDocument,
    SystemField,
)
from element_index.indexing.exceptions import IndexDataException, UnsupportedEntityKind
from element_index.indexing.hooks import HookDispatcher
from element_index.indexing.type_adapters import TypeAdapterRegistry

logger = logging.getLogger(__name__)


def compute_checksum(document: IndexDocument) -> int:
    """Return an unsigned 32-bit checksum of *document* ignoring ``system.checksum``."""
    system = {
        name: value
        for name, value in document[FieldCategory.SYSTEM_FIELDS.value].items()
        if name != SystemField.CHECKSUM.value
    }
    payload = json.dumps(
        [
            system,
            document[FieldCategory.STANDARD_FIELDS.value],
            document[FieldCategory.CUSTOM_FIELDS.value],
        ],
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        allow_nan=False,
    )
    return zlib.crc32(payload.encode("utf-8"))


class DocumentNormalizer:
    """Turn an element into a finalized :class:`IndexDocument`."""

    def __init__(self, registry: TypeAdapterRegistry, dispatcher: HookDispatcher) -> None:
        self._registry = registry
        self._dispatcher = dispatcher

    def normalize(self, element: Element) -> IndexDocument:
        """Run the kind-specific normalizer; custom fields empty, no checksum."""
        data = self._registry.resolve(element).get_normalizer().normalize(element)
        return {
            FieldCategory.SYSTEM_FIELDS.value: dict(data[FieldCategory.SYSTEM_FIELDS.value]),
            FieldCategory.STANDARD_FIELDS.value: dict(data[FieldCategory.STANDARD_FIELDS.value]),
            FieldCategory.CUSTOM_FIELDS.value: {},
        }

    def finalize(self, document: IndexDocument, custom_fields: dict[str, Any]) -> IndexDocument:
        """Attach *custom_fields* and set ``system.checksum`` last."""
        system = {
            name: value
            for name, value in document[FieldCategory.SYSTEM_FIELDS.value].items()
            if name != SystemField.CHECKSUM.value
        }
        finalized: IndexDocument = {
            FieldCategory.SYSTEM_FIELDS.value: system,
            FieldCategory.STANDARD_FIELDS.value: document[FieldCategory.STANDARD_FIELDS.value],
            FieldCategory.CUSTOM_FIELDS.value: dict(custom_fields),
        }
        system[SystemField.CHECKSUM.value] = compute_checksum(finalized)
        return finalized

    def build(self, element: Element) -> IndexDocument:
        """Normalize, collect custom fields from listeners and finalize.

        Raises:
            UnsupportedEntityKind: No adapter handles the element.
            IndexDataException: Normalization, a listener or serialization
                failed; no partial document is returned.
        """
        adapter = self._registry.resolve(element)
        try:
            document = self.normalize(element)
            event = adapter.create_update_index_data_event(element, {})
            custom_fields = self._dispatcher.dispatch(event).fields
            # listeners may keep references to what they returned
            return self.finalize(document, copy.deepcopy(custom_fields))
        except UnsupportedEntityKind:
            raise
        except Exception as exc:
            logger.warning("Building index data for element %s failed: %s", element.id, exc)
            raise IndexDataException(str(exc)) from exc

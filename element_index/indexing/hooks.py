"""Extension hooks for custom index fields.

Two hooks exist per element kind:

* *extract mapping* – listeners receive the schema context (a
  :class:`ClassDefinition` or :class:`AssetMetadataSchema`) and the custom
  field mapping built so far, and return the mapping to continue with.
* *update index data* – listeners receive the element being indexed and the
  custom field values built so far, and return the values to continue with.

Listeners run synchronously in registration order; each one sees the result
of the previous one.  The dispatcher is passed explicitly to whoever fires the
hooks, there is no global registry.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Callable

from element_index.indexing.entities import (
    Asset,
    AssetMetadataSchema,
    ClassDefinition,
    DataObject,
)

logger = logging.getLogger(__name__)

Listener = Callable[[Any, dict[str, Any]], dict[str, Any]]


@dataclass
class IndexEvent:
    """Accumulator carried through the listener chain."""

    subject: Any
    fields: dict[str, Any] = field(default_factory=dict)


@dataclass
class AssetExtractMappingEvent(IndexEvent):
    subject: AssetMetadataSchema


@dataclass
class DataObjectExtractMappingEvent(IndexEvent):
    subject: ClassDefinition


@dataclass
class AssetUpdateIndexDataEvent(IndexEvent):
    subject: Asset


@dataclass
class DataObjectUpdateIndexDataEvent(IndexEvent):
    subject: DataObject


class HookDispatcher:
    """Ordered listener lists keyed by event class."""

    def __init__(self) -> None:
        self._listeners: dict[type[IndexEvent], list[Listener]] = defaultdict(list)

    def subscribe(self, event_type: type[IndexEvent], listener: Listener) -> None:
        self._listeners[event_type].append(listener)

    def dispatch(self, event: IndexEvent) -> IndexEvent:
        """Fold *event.fields* through every listener subscribed to its class."""
        for listener in self._listeners.get(type(event), ()):
            result = listener(event.subject, event.fields)
            if not isinstance(result, Mapping):
                raise TypeError(
                    f"Listener {listener!r} for {type(event).__name__} returned "
                    f"{type(result).__name__}, expected a mapping"
                )
            event.fields = dict(result)
        logger.debug(
            "Dispatched %s to %d listener(s)",
            type(event).__name__,
            len(self._listeners.get(type(event), ())),
        )
        return event

"""Index and alias lifecycle per schema context.

Every alias points at one of two physical indices, ``<alias>-odd`` or
``<alias>-even``.  A reindex builds the other one, copies the documents over
and repoints the alias in a single atomic alias update.
"""

from __future__ import annotations

import logging
from typing import Any, Optional, Protocol

from element_index.indexing.mapping import MappingComposer
from element_index.indexing.type_adapters import (
    DataObjectTypeAdapter,
    TypeAdapter,
    TypeAdapterRegistry,
)

logger = logging.getLogger(__name__)

ODD_SUFFIX = "-odd"
EVEN_SUFFIX = "-even"


class IndexAdminStore(Protocol):
    def index_exists(self, index_name: str) -> bool: ...
    def create_index(self, index_name: str, mapping_properties: dict[str, Any]) -> None: ...
    def delete_index(self, index_name: str) -> None: ...
    def put_mapping(self, index_name: str, mapping_properties: dict[str, Any]) -> None: ...
    def resolve_alias(self, alias_name: str) -> list[str]: ...
    def put_alias(self, alias_name: str, index_name: str, remove_from: Any = ()) -> None: ...
    def reindex(self, source_index: str, dest_index: str) -> None: ...


class IndexHandler:
    def __init__(
        self,
        registry: TypeAdapterRegistry,
        composer: MappingComposer,
        store: IndexAdminStore,
    ) -> None:
        self._registry = registry
        self._composer = composer
        self._store = store

    def _adapter(self, context: Any) -> TypeAdapter:
        adapter = self._registry.resolve_context(context)
        if adapter is None:
            raise ValueError(f"Unsupported schema context {type(context).__name__}")
        return adapter

    def get_current_full_index_name(self, context: Any) -> Optional[str]:
        """Physical index behind the context's alias, ``None`` if there is none yet."""
        alias = self._adapter(context).get_alias_index_name(context)
        indices = self._store.resolve_alias(alias)
        return indices[0] if indices else None

    def get_next_full_index_name(self, context: Any) -> str:
        alias = self._adapter(context).get_alias_index_name(context)
        current = self.get_current_full_index_name(context)
        if current == f"{alias}{ODD_SUFFIX}":
            return f"{alias}{EVEN_SUFFIX}"
        return f"{alias}{ODD_SUFFIX}"

    def update_mapping(self, context: Any, force_create: bool = False) -> str:
        """Make sure the context's index exists with the current mapping.

        Returns:
            The physical index name now behind the alias.
        """
        current = self.get_current_full_index_name(context)
        if current is None or force_create:
            return self.create_index(context)

        self._store.put_mapping(current, self._composer.compose(context))
        return current

    def create_index(self, context: Any) -> str:
        """Create the next physical index and point the alias(es) at it.

        The previous physical index is deleted along with its documents.
        """
        adapter = self._adapter(context)
        alias = adapter.get_alias_index_name(context)
        current = self.get_current_full_index_name(context)
        index_name = self.get_next_full_index_name(context)

        if self._store.index_exists(index_name):
            self._store.delete_index(index_name)
        self._store.create_index(index_name, self._composer.compose(context))
        self._put_aliases(adapter, alias, index_name, current)

        if current is not None:
            self._store.delete_index(current)
        return index_name

    def reindex(self, context: Any) -> str:
        """Rebuild the index under a fresh mapping without downtime."""
        adapter = self._adapter(context)
        alias = adapter.get_alias_index_name(context)
        self._composer.invalidate(alias)

        current = self.get_current_full_index_name(context)
        if current is None:
            return self.create_index(context)

        index_name = self.get_next_full_index_name(context)
        if self._store.index_exists(index_name):
            self._store.delete_index(index_name)
        self._store.create_index(index_name, self._composer.compose(context))
        self._store.reindex(current, index_name)
        self._put_aliases(adapter, alias, index_name, current)
        self._store.delete_index(current)
        logger.info("Reindexed '%s' from '%s' into '%s'.", alias, current, index_name)
        return index_name

    def _put_aliases(self, adapter: TypeAdapter, alias: str, index_name: str, previous: Optional[str]) -> None:
        remove_from = [previous] if previous else []
        self._store.put_alias(alias, index_name, remove_from=remove_from)
        if isinstance(adapter, DataObjectTypeAdapter):
            self._store.put_alias(adapter.get_shared_alias_name(), index_name, remove_from=remove_from)

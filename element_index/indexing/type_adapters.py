"""Per-kind type adapters and the registry that resolves them.

An adapter knows, for one element kind, which alias the element lives behind,
which normalizer builds its document and which hook events carry its custom
fields.  The registry maps each :class:`ElementType` to exactly one adapter
and is built once at startup.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Iterable, Optional

from element_index.common.settings import settings
from element_index.indexing.entities import (
    Asset,
    AssetMetadataSchema,
    ClassDefinition,
    DataObject,
    Element,
    ElementType,
)
from element_index.indexing.exceptions import UnsupportedEntityKind
from element_index.indexing.hooks import (
    AssetExtractMappingEvent,
    AssetUpdateIndexDataEvent,
    DataObjectExtractMappingEvent,
    DataObjectUpdateIndexDataEvent,
    IndexEvent,
)
from element_index.indexing.normalizers import (
    AssetNormalizer,
    DataObjectNormalizer,
    ElementNormalizer,
)

ASSET_INDEX_ALIAS = "asset"
DATA_OBJECT_INDEX_ALIAS = "data-object"
DATA_OBJECT_FOLDER_NAME = "folder"


class TypeAdapter(ABC):
    """Capabilities shared by every element kind."""

    kind: ElementType

    def __init__(self, index_prefix: Optional[str] = None) -> None:
        self.index_prefix = settings.index_prefix if index_prefix is None else index_prefix

    def get_index_name(self, name: str) -> str:
        return f"{self.index_prefix}{name}"

    @abstractmethod
    def supports_context(self, context: Any) -> bool:
        """Return *True* if *context* is a schema this adapter composes mappings for."""

    @abstractmethod
    def get_alias_index_name(self, context: Any = None) -> str: ...

    @abstractmethod
    def get_alias_index_name_by_element(self, element: Element) -> str: ...

    @abstractmethod
    def get_normalizer(self) -> ElementNormalizer: ...

    @abstractmethod
    def create_update_index_data_event(
        self, element: Element, custom_fields: dict[str, Any]
    ) -> IndexEvent: ...

    @abstractmethod
    def create_extract_mapping_event(
        self, context: Any, custom_mapping: dict[str, Any]
    ) -> IndexEvent: ...


class AssetTypeAdapter(TypeAdapter):
    kind = ElementType.ASSET

    def __init__(self, index_prefix: Optional[str] = None) -> None:
        super().__init__(index_prefix)
        self._normalizer = AssetNormalizer()

    def supports_context(self, context: Any) -> bool:
        return isinstance(context, AssetMetadataSchema)

    def get_alias_index_name(self, context: Any = None) -> str:
        return self.get_index_name(ASSET_INDEX_ALIAS)

    def get_alias_index_name_by_element(self, element: Element) -> str:
        return self.get_alias_index_name()

    def get_normalizer(self) -> AssetNormalizer:
        return self._normalizer

    def create_update_index_data_event(
        self, element: Asset, custom_fields: dict[str, Any]
    ) -> AssetUpdateIndexDataEvent:
        return AssetUpdateIndexDataEvent(element, custom_fields)

    def create_extract_mapping_event(
        self, context: AssetMetadataSchema, custom_mapping: dict[str, Any]
    ) -> AssetExtractMappingEvent:
        return AssetExtractMappingEvent(context, custom_mapping)


class DataObjectTypeAdapter(TypeAdapter):
    """Data objects get one index per class, named after the class.

    Objects without a class (folders) share one index; its schema context is
    the string :data:`DATA_OBJECT_FOLDER_NAME`.
    """

    kind = ElementType.DATA_OBJECT

    def __init__(self, index_prefix: Optional[str] = None) -> None:
        super().__init__(index_prefix)
        self._normalizer = DataObjectNormalizer()

    def supports_context(self, context: Any) -> bool:
        return isinstance(context, ClassDefinition) or context == DATA_OBJECT_FOLDER_NAME

    def get_alias_index_name(self, context: Any = None) -> str:
        class_name = context.name if isinstance(context, ClassDefinition) else DATA_OBJECT_FOLDER_NAME
        return self.get_index_name(f"{DATA_OBJECT_INDEX_ALIAS}_{class_name.lower()}")

    def get_alias_index_name_by_element(self, element: DataObject) -> str:
        return self.get_alias_index_name(element.class_definition)

    def get_shared_alias_name(self) -> str:
        """Alias spanning every class index."""
        return self.get_index_name(DATA_OBJECT_INDEX_ALIAS)

    def get_normalizer(self) -> DataObjectNormalizer:
        return self._normalizer

    def create_update_index_data_event(
        self, element: DataObject, custom_fields: dict[str, Any]
    ) -> DataObjectUpdateIndexDataEvent:
        return DataObjectUpdateIndexDataEvent(element, custom_fields)

    def create_extract_mapping_event(
        self, context: ClassDefinition, custom_mapping: dict[str, Any]
    ) -> DataObjectExtractMappingEvent:
        return DataObjectExtractMappingEvent(context, custom_mapping)


class TypeAdapterRegistry:
    """Resolve the adapter responsible for an element or a schema context."""

    def __init__(self, adapters: Iterable[TypeAdapter]) -> None:
        self._adapters: dict[ElementType, TypeAdapter] = {}
        for adapter in adapters:
            if adapter.kind in self._adapters:
                raise ValueError(f"Duplicate type adapter for {adapter.kind.value!r}")
            self._adapters[adapter.kind] = adapter

    @classmethod
    def default(cls, index_prefix: Optional[str] = None) -> "TypeAdapterRegistry":
        return cls([AssetTypeAdapter(index_prefix), DataObjectTypeAdapter(index_prefix)])

    def resolve(self, element: Element) -> TypeAdapter:
        return self.resolve_kind(getattr(element, "kind", None))

    def resolve_kind(self, kind: Any) -> TypeAdapter:
        try:
            return self._adapters[kind]
        except (KeyError, TypeError):
            raise UnsupportedEntityKind(kind) from None

    def resolve_context(self, context: Any) -> Optional[TypeAdapter]:
        """Adapter composing mappings for *context*, or ``None`` if unrecognised."""
        for adapter in self._adapters.values():
            if adapter.supports_context(context):
                return adapter
        return None

"""Serialization handlers keyed by asset type.

A handler builds the (sub)typed result model for one asset type and fills in
what only that type has; the denormalizer sets the common fields afterwards.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional, Protocol

from element_index.indexing.entities import SystemField
from element_index.search.results import AssetSearchResultItem, ImageSearchResultItem


class SerializationHandler(Protocol):
    def create_search_result_model(self, data: Mapping[str, Any]) -> AssetSearchResultItem: ...


class ImageSerializationHandler:
    def create_search_result_model(self, data: Mapping[str, Any]) -> ImageSearchResultItem:
        return ImageSearchResultItem(
            width=SystemField.WIDTH.get_data(data),
            height=SystemField.HEIGHT.get_data(data),
        )


class SerializationHandlerRegistry:
    def __init__(self, handlers: Optional[Mapping[str, SerializationHandler]] = None) -> None:
        self._handlers: dict[str, SerializationHandler] = dict(handlers or {})

    @classmethod
    def default(cls) -> "SerializationHandlerRegistry":
        return cls({"image": ImageSerializationHandler()})

    def register(self, asset_type: str, handler: SerializationHandler) -> None:
        self._handlers[asset_type] = handler

    def get_serialization_handler(self, asset_type: Optional[str]) -> Optional[SerializationHandler]:
        if asset_type is None:
            return None
        return self._handlers.get(asset_type)

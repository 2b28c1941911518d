"""Rebuild typed asset search results from raw index documents.

Two modes share one document shape:

* default – every field, including the raw document in ``search_index_data``.
* ``SKIP_LAZY_LOADED_FIELDS`` set in the context – list-view results without
  file size, workflow flag, children flag and raw document.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any, Optional

from element_index.indexing.entities import (
    NOT_LOCALIZED_KEY,
    FieldCategory,
    SystemField,
)
from element_index.indexing.exceptions import UnsupportedDenormalizationTarget
from element_index.search.results import AssetMetaData, AssetSearchResultItem
from element_index.search.serialization import SerializationHandlerRegistry

logger = logging.getLogger(__name__)

SKIP_LAZY_LOADED_FIELDS = "skip_lazy_loaded_fields"


def parse_timestamp(value: Any) -> Optional[int]:
    """ISO-8601 text to epoch seconds; naive values are taken as UTC."""
    if not isinstance(value, str) or not value:
        return None
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        logger.debug("Unparseable timestamp %r", value)
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return int(parsed.timestamp())


def hydrate_metadata(standard_fields: Any) -> list[AssetMetaData]:
    result: list[AssetMetaData] = []
    if not isinstance(standard_fields, Mapping):
        return result
    for language, fields in standard_fields.items():
        if not isinstance(fields, Mapping):
            continue
        for name, data in fields.items():
            result.append(
                AssetMetaData(
                    name=name,
                    language=language if language != NOT_LOCALIZED_KEY else None,
                    data=data,
                )
            )
    return result


class AssetSearchResultDenormalizer:
    def __init__(self, handlers: Optional[SerializationHandlerRegistry] = None) -> None:
        self._handlers = handlers or SerializationHandlerRegistry.default()

    def supports(self, data: Any, target_type: Any) -> bool:
        return (
            isinstance(data, Mapping)
            and isinstance(target_type, type)
            and issubclass(target_type, AssetSearchResultItem)
        )

    def denormalize(
        self,
        data: Mapping[str, Any],
        target_type: type[AssetSearchResultItem] = AssetSearchResultItem,
        context: Optional[Mapping[str, Any]] = None,
    ) -> AssetSearchResultItem:
        """Build a result item from *data* (a ``_source`` mapping or a full hit).

        Raises:
            UnsupportedDenormalizationTarget: *data* is not a mapping or
                *target_type* is not an asset result model.
        """
        if not self.supports(data, target_type):
            raise UnsupportedDenormalizationTarget(
                f"Cannot denormalize {type(data).__name__} into {target_type!r}"
            )
        source = data.get("_source", data)
        context = context or {}

        asset_type = SystemField.TYPE.get_data(source)
        handler = self._handlers.get_serialization_handler(asset_type)
        item = handler.create_search_result_model(source) if handler else target_type()

        item.id = SystemField.ID.get_data(source)
        item.parent_id = SystemField.PARENT_ID.get_data(source)
        item.type = asset_type
        item.key = SystemField.KEY.get_data(source)
        item.path = SystemField.PATH.get_data(source)
        item.full_path = SystemField.FULL_PATH.get_data(source)
        item.mime_type = SystemField.MIME_TYPE.get_data(source)
        item.user_owner = SystemField.USER_OWNER.get_data(source) or 0
        item.user_modification = SystemField.USER_MODIFICATION.get_data(source)
        item.locked = SystemField.LOCKED.get_data(source)
        item.is_locked = bool(SystemField.IS_LOCKED.get_data(source))
        item.meta_data = hydrate_metadata(source.get(FieldCategory.STANDARD_FIELDS.value))
        item.creation_date = parse_timestamp(SystemField.CREATION_DATE.get_data(source))
        item.modification_date = parse_timestamp(SystemField.MODIFICATION_DATE.get_data(source))

        if context.get(SKIP_LAZY_LOADED_FIELDS):
            return item

        item.file_size = SystemField.FILE_SIZE.get_data(source)
        item.has_workflow_with_permissions = SystemField.HAS_WORKFLOW_WITH_PERMISSIONS.get_data(source)
        item.has_children = SystemField.HAS_CHILDREN.get_data(source)
        item.search_index_data = dict(source)
        return item

"""Compose Elasticsearch mappings per schema context.

A mapping has three sections matching the document shape:

* ``system``   – fixed per element kind, never derived from user schema.
* ``standard`` – one entry per field definition, typed via
  :data:`FIELD_TYPE_MAPPING`.  Unknown field types fall back to
  :data:`GENERIC_FIELD_MAPPING`.
* ``custom``   – starts empty and is filled by *extract mapping* listeners.

Results are cached per alias name until :meth:`MappingComposer.invalidate`.
"""

from __future__ import annotations

import copy
import logging
from typing import Any, Iterable, Optional

from element_index.common.settings import settings
from element_index.indexing.entities import (
    NOT_LOCALIZED_KEY,
    AssetMetadataSchema,
    ClassDefinition,
    ElementType,
    FieldCategory,
    FieldDefinition,
    SystemField,
)
from element_index.indexing.hooks import HookDispatcher
from element_index.indexing.type_adapters import (
    DATA_OBJECT_FOLDER_NAME,
    TypeAdapter,
    TypeAdapterRegistry,
)

logger = logging.getLogger(__name__)

_KEYWORD = {"type": "keyword"}
_TEXT = {"type": "text", "fields": {"keyword": {"type": "keyword", "ignore_above": 1024}}}
_DATE = {"type": "date"}
_BOOLEAN = {"type": "boolean"}
_LONG = {"type": "long"}
_DOUBLE = {"type": "double"}

GENERIC_FIELD_MAPPING: dict[str, Any] = _KEYWORD

FIELD_TYPE_MAPPING: dict[str, dict[str, Any]] = {
    "input": _TEXT,
    "textarea": _TEXT,
    "wysiwyg": _TEXT,
    "numeric": _DOUBLE,
    "slider": _DOUBLE,
    "integer": _LONG,
    "date": _DATE,
    "datetime": _DATE,
    "checkbox": _BOOLEAN,
    "boolean": _BOOLEAN,
    "booleanSelect": _BOOLEAN,
    "select": _KEYWORD,
    "multiselect": _KEYWORD,
    "country": _KEYWORD,
    "language": _KEYWORD,
    "email": _KEYWORD,
    "asset": _KEYWORD,
    "document": _KEYWORD,
    "object": _KEYWORD,
}

COMMON_SYSTEM_FIELDS: dict[str, dict[str, Any]] = {
    SystemField.ID.value: _LONG,
    SystemField.PARENT_ID.value: _LONG,
    SystemField.CREATION_DATE.value: _DATE,
    SystemField.MODIFICATION_DATE.value: _DATE,
    SystemField.TYPE.value: _KEYWORD,
    SystemField.KEY.value: _TEXT,
    SystemField.PATH.value: _KEYWORD,
    SystemField.FULL_PATH.value: _KEYWORD,
    SystemField.USER_OWNER.value: _LONG,
    SystemField.USER_MODIFICATION.value: _LONG,
    SystemField.LOCKED.value: _KEYWORD,
    SystemField.IS_LOCKED.value: _BOOLEAN,
    SystemField.HAS_WORKFLOW_WITH_PERMISSIONS.value: _BOOLEAN,
    SystemField.HAS_CHILDREN.value: _BOOLEAN,
    SystemField.CHECKSUM.value: _LONG,
}

SYSTEM_FIELDS: dict[ElementType, dict[str, dict[str, Any]]] = {
    ElementType.ASSET: {
        **COMMON_SYSTEM_FIELDS,
        SystemField.MIME_TYPE.value: _KEYWORD,
        SystemField.FILE_SIZE.value: _LONG,
        SystemField.WIDTH.value: _LONG,
        SystemField.HEIGHT.value: _LONG,
    },
    ElementType.DATA_OBJECT: {
        **COMMON_SYSTEM_FIELDS,
        SystemField.CLASS_NAME.value: _KEYWORD,
        SystemField.PUBLISHED.value: _BOOLEAN,
    },
}


def get_field_type_mapping(definition: FieldDefinition) -> dict[str, Any]:
    mapping = FIELD_TYPE_MAPPING.get(definition.fieldtype)
    if mapping is None:
        logger.debug(
            "No mapping for field type '%s' (%s); using generic mapping.",
            definition.fieldtype,
            definition.name,
        )
        mapping = GENERIC_FIELD_MAPPING
    return copy.deepcopy(mapping)


def get_mapping_for_field_definitions(
    definitions: Iterable[FieldDefinition], languages: list[str]
) -> dict[str, Any]:
    """Data object fields; localized ones nest one sub-field per language."""
    properties: dict[str, Any] = {}
    for definition in definitions:
        field_mapping = get_field_type_mapping(definition)
        if definition.localized:
            properties[definition.name] = {
                "properties": {lang: copy.deepcopy(field_mapping) for lang in languages}
            }
        else:
            properties[definition.name] = field_mapping
    return {"properties": properties}


def get_mapping_for_asset_metadata(
    definitions: Iterable[FieldDefinition], languages: list[str]
) -> dict[str, Any]:
    """Asset metadata is stored per language, unlocalized values under the sentinel key."""
    fields = {definition.name: get_field_type_mapping(definition) for definition in definitions}
    return {
        "properties": {
            lang: {"properties": copy.deepcopy(fields)}
            for lang in [NOT_LOCALIZED_KEY, *languages]
        }
    }


class MappingComposer:
    """Build (and cache) the full mapping for a class definition or asset schema."""

    def __init__(
        self,
        registry: TypeAdapterRegistry,
        dispatcher: HookDispatcher,
        languages: Optional[list[str]] = None,
    ) -> None:
        self._registry = registry
        self._dispatcher = dispatcher
        self._languages = list(settings.valid_languages if languages is None else languages)
        self._cache: dict[str, dict[str, Any]] = {}

    def compose(self, context: Any) -> dict[str, Any]:
        """Return ``{system, standard, custom}`` mapping properties for *context*.

        An unrecognised context yields an empty mapping.
        """
        adapter = self._registry.resolve_context(context)
        if adapter is None:
            return {}

        alias = adapter.get_alias_index_name(context)
        if alias not in self._cache:
            self._cache[alias] = self._extract_mapping(adapter, context)
            logger.info("Composed mapping for '%s'.", alias)
        return copy.deepcopy(self._cache[alias])

    def invalidate(self, alias: Optional[str] = None) -> None:
        if alias is None:
            self._cache.clear()
        else:
            self._cache.pop(alias, None)

    def fire_extract_mapping(self, adapter: TypeAdapter, context: Any, custom_mapping: dict[str, Any]) -> dict[str, Any]:
        event = adapter.create_extract_mapping_event(context, custom_mapping)
        return self._dispatcher.dispatch(event).fields

    def _extract_mapping(self, adapter: TypeAdapter, context: Any) -> dict[str, Any]:
        if isinstance(context, ClassDefinition):
            standard = get_mapping_for_field_definitions(context.field_definitions, self._languages)
        elif isinstance(context, AssetMetadataSchema):
            standard = get_mapping_for_asset_metadata(context.field_definitions, self._languages)
        elif context == DATA_OBJECT_FOLDER_NAME:
            standard = {"properties": {}}
        else:
            return {}

        # folders have no schema for listeners to extend
        custom = {} if context == DATA_OBJECT_FOLDER_NAME else self.fire_extract_mapping(adapter, context, {})
        return {
            FieldCategory.SYSTEM_FIELDS.value: {
                "properties": copy.deepcopy(SYSTEM_FIELDS[adapter.kind]),
            },
            FieldCategory.STANDARD_FIELDS.value: standard,
            FieldCategory.CUSTOM_FIELDS.value: {"properties": custom},
        }

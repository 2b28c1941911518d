"""Kind-specific normalizers.

Each normalizer turns one element into the ``system`` and ``standard``
sections of its index document.  Custom fields and the checksum are added
later by :class:`element_index.indexing.document_normalizer.DocumentNormalizer`.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Protocol

from element_index.indexing.entities import (
    NOT_LOCALIZED_KEY,
    Asset,
    DataObject,
    Element,
    FieldCategory,
    SystemField,
)


class ElementNormalizer(Protocol):
    def normalize(self, element: Any) -> dict[str, dict[str, Any]]: ...


def normalize_value(value: Any) -> Any:
    """Convert host values into JSON-compatible index values."""
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, (set, frozenset)):
        return sorted(normalize_value(v) for v in value)
    if isinstance(value, (list, tuple)):
        return [normalize_value(v) for v in value]
    if isinstance(value, dict):
        return {str(k): normalize_value(v) for k, v in value.items()}
    return value


def _common_system_fields(element: Element, element_type: str) -> dict[str, Any]:
    return {
        SystemField.ID.value: element.id,
        SystemField.PARENT_ID.value: element.parent_id,
        SystemField.CREATION_DATE.value: normalize_value(element.creation_date),
        SystemField.MODIFICATION_DATE.value: normalize_value(element.modification_date),
        SystemField.TYPE.value: element_type,
        SystemField.KEY.value: element.key,
        SystemField.PATH.value: element.path,
        SystemField.FULL_PATH.value: element.full_path,
        SystemField.USER_OWNER.value: element.user_owner,
        SystemField.USER_MODIFICATION.value: element.user_modification,
        SystemField.LOCKED.value: element.locked,
        SystemField.IS_LOCKED.value: element.is_locked,
        SystemField.HAS_WORKFLOW_WITH_PERMISSIONS.value: element.has_workflow_with_permissions,
        SystemField.HAS_CHILDREN.value: element.has_children,
    }


class AssetNormalizer:
    def normalize(self, element: Asset) -> dict[str, dict[str, Any]]:
        system = _common_system_fields(element, element.type)
        system.update(
            {
                SystemField.MIME_TYPE.value: element.mime_type,
                SystemField.FILE_SIZE.value: element.file_size,
                SystemField.WIDTH.value: element.width,
                SystemField.HEIGHT.value: element.height,
            }
        )

        standard: dict[str, dict[str, Any]] = {}
        for metadata in element.metadata:
            language = metadata.language or NOT_LOCALIZED_KEY
            standard.setdefault(language, {})[metadata.name] = normalize_value(metadata.data)

        return {
            FieldCategory.SYSTEM_FIELDS.value: system,
            FieldCategory.STANDARD_FIELDS.value: standard,
        }


class DataObjectNormalizer:
    def normalize(self, element: DataObject) -> dict[str, dict[str, Any]]:
        system = _common_system_fields(element, element.type)
        system.update(
            {
                SystemField.CLASS_NAME.value: element.class_name,
                SystemField.PUBLISHED.value: element.published,
            }
        )

        standard: dict[str, Any] = {}
        field_definitions = (
            element.class_definition.field_definitions if element.class_definition else []
        )
        for definition in field_definitions:
            if definition.localized:
                standard[definition.name] = {
                    locale: normalize_value(values[definition.name])
                    for locale, values in element.localized_values.items()
                    if definition.name in values
                }
            else:
                standard[definition.name] = normalize_value(element.values.get(definition.name))

        return {
            FieldCategory.SYSTEM_FIELDS.value: system,
            FieldCategory.STANDARD_FIELDS.value: standard,
        }

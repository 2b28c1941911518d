"""entities.py
Shared type definitions used across indexing and search.

Elements and schema contexts are owned by the host application; they are
modelled here only as far as the normalizers and mapping composer read them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, ClassVar, Mapping, Optional, TypedDict

NOT_LOCALIZED_KEY = "default"
CHECKSUM_SENTINEL = -1


class ElementType(str, Enum):
    ASSET = "asset"
    DATA_OBJECT = "dataObject"
    DOCUMENT = "document"


class FieldCategory(str, Enum):
    SYSTEM_FIELDS = "system"
    STANDARD_FIELDS = "standard"
    CUSTOM_FIELDS = "custom"


class SystemField(str, Enum):
    ID = "id"
    PARENT_ID = "parent_id"
    CREATION_DATE = "creation_date"
    MODIFICATION_DATE = "modification_date"
    TYPE = "type"
    KEY = "key"
    PATH = "path"
    FULL_PATH = "full_path"
    USER_OWNER = "user_owner"
    USER_MODIFICATION = "user_modification"
    LOCKED = "locked"
    IS_LOCKED = "is_locked"
    HAS_WORKFLOW_WITH_PERMISSIONS = "has_workflow_with_permissions"
    HAS_CHILDREN = "has_children"
    CHECKSUM = "checksum"
    # assets
    MIME_TYPE = "mime_type"
    FILE_SIZE = "file_size"
    WIDTH = "width"
    HEIGHT = "height"
    # data objects
    CLASS_NAME = "class_name"
    PUBLISHED = "published"

    def get_data(self, data: Mapping[str, Any]) -> Any:
        """Read this field from a ``_source`` mapping or a full get/search hit."""
        source = data.get("_source", data)
        system = source.get(FieldCategory.SYSTEM_FIELDS.value) or {}
        return system.get(self.value)


class IndexDocument(TypedDict):
    """Canonical on-the-wire shape of every indexed element."""

    system: dict[str, Any]
    standard: dict[str, Any]
    custom: dict[str, Any]


@dataclass
class FieldDefinition:
    name: str
    fieldtype: str
    localized: bool = False


@dataclass
class ClassDefinition:
    """Schema of one data object class."""

    id: str
    name: str
    field_definitions: list[FieldDefinition] = field(default_factory=list)


@dataclass
class AssetMetadataSchema:
    """Predefined asset metadata fields; every asset index shares one."""

    field_definitions: list[FieldDefinition] = field(default_factory=list)


@dataclass
class Element:
    id: int
    parent_id: Optional[int]
    key: str
    path: str
    creation_date: datetime
    modification_date: datetime
    user_owner: Optional[int] = None
    user_modification: Optional[int] = None
    locked: Optional[str] = None
    is_locked: bool = False
    has_children: bool = False
    has_workflow_with_permissions: bool = False

    kind: ClassVar[ElementType]

    @property
    def full_path(self) -> str:
        return f"{self.path}{self.key}"


@dataclass
class AssetMetadata:
    name: str
    data: Any
    language: Optional[str] = None
    type: str = "input"


@dataclass
class Asset(Element):
    type: str = "document"
    mime_type: Optional[str] = None
    file_size: Optional[int] = None
    width: Optional[int] = None
    height: Optional[int] = None
    metadata: list[AssetMetadata] = field(default_factory=list)

    kind: ClassVar[ElementType] = ElementType.ASSET


@dataclass
class DataObject(Element):
    class_definition: Optional[ClassDefinition] = None
    type: str = "object"
    published: bool = True
    values: dict[str, Any] = field(default_factory=dict)
    localized_values: dict[str, dict[str, Any]] = field(default_factory=dict)

    kind: ClassVar[ElementType] = ElementType.DATA_OBJECT

    @property
    def class_name(self) -> Optional[str]:
        return self.class_definition.name if self.class_definition else None

"""Typed search results reconstructed from raw index documents."""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, Field


class AssetMetaData(BaseModel):
    name: str
    language: Optional[str] = None
    data: Any = None


class AssetSearchResultItem(BaseModel):
    """One asset hit.

    ``file_size``, ``has_workflow_with_permissions``, ``has_children`` and
    ``search_index_data`` stay ``None`` when lazy fields are skipped.
    """

    id: Optional[int] = None
    parent_id: Optional[int] = None
    type: Optional[str] = None
    key: Optional[str] = None
    path: Optional[str] = None
    full_path: Optional[str] = None
    mime_type: Optional[str] = None
    user_owner: int = 0
    user_modification: Optional[int] = None
    locked: Optional[str] = None
    is_locked: bool = False
    meta_data: list[AssetMetaData] = Field(default_factory=list)
    creation_date: Optional[int] = None
    modification_date: Optional[int] = None

    file_size: Optional[int] = None
    has_workflow_with_permissions: Optional[bool] = None
    has_children: Optional[bool] = None
    search_index_data: Optional[dict[str, Any]] = None


class ImageSearchResultItem(AssetSearchResultItem):
    width: Optional[int] = None
    height: Optional[int] = None

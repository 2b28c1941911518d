import pytest

from element_index.indexing.exceptions import UnsupportedDenormalizationTarget
from element_index.search.denormalizer import (
    SKIP_LAZY_LOADED_FIELDS,
    AssetSearchResultDenormalizer,
    parse_timestamp,
)
from element_index.search.results import AssetSearchResultItem, ImageSearchResultItem
from element_index.search.serialization import SerializationHandlerRegistry

ALWAYS_POPULATED = [
    "id",
    "parent_id",
    "type",
    "key",
    "path",
    "full_path",
    "mime_type",
    "user_owner",
    "user_modification",
    "locked",
    "is_locked",
    "meta_data",
    "creation_date",
    "modification_date",
]


@pytest.fixture
def denormalizer():
    return AssetSearchResultDenormalizer()


@pytest.fixture
def raw_document(normalizer, asset):
    return normalizer.build(asset)


def test_round_trip_keeps_element_attributes(denormalizer, raw_document, asset):
    item = denormalizer.denormalize(raw_document, AssetSearchResultItem)

    assert item.id == asset.id
    assert item.parent_id == asset.parent_id
    assert item.key == asset.key
    assert item.path == asset.path
    assert item.full_path == asset.full_path
    assert item.mime_type == asset.mime_type
    assert item.user_owner == asset.user_owner
    assert item.user_modification == asset.user_modification
    assert item.creation_date == int(asset.creation_date.timestamp())
    assert item.modification_date == int(asset.modification_date.timestamp())


def test_lazy_fields_are_filled_by_default(denormalizer, raw_document):
    item = denormalizer.denormalize(raw_document, AssetSearchResultItem)

    assert item.file_size == 2048
    assert item.has_children is False
    assert item.has_workflow_with_permissions is False
    assert item.search_index_data == raw_document


def test_skip_lazy_fields_keeps_the_rest(denormalizer, raw_document):
    full = denormalizer.denormalize(raw_document, AssetSearchResultItem)
    lean = denormalizer.denormalize(raw_document, AssetSearchResultItem, {SKIP_LAZY_LOADED_FIELDS: True})

    for name in ALWAYS_POPULATED:
        assert getattr(lean, name) == getattr(full, name), name
    assert lean.file_size is None
    assert lean.has_workflow_with_permissions is None
    assert lean.has_children is None
    assert lean.search_index_data is None


def test_metadata_languages(denormalizer, raw_document):
    item = denormalizer.denormalize(raw_document, AssetSearchResultItem)

    entries = {(m.name, m.language): m.data for m in item.meta_data}
    assert entries == {
        ("title", "en"): "A cat",
        ("title", "de"): "Eine Katze",
        ("copyright", None): "ACME",
    }


def test_missing_owner_defaults_to_zero(denormalizer):
    item = denormalizer.denormalize({"system": {"id": 3, "type": "text"}, "standard": {}, "custom": {}})

    assert item.user_owner == 0
    assert item.creation_date is None
    assert item.meta_data == []


def test_image_handler_builds_image_results(denormalizer, raw_document):
    item = denormalizer.denormalize(raw_document, AssetSearchResultItem)

    assert isinstance(item, ImageSearchResultItem)
    assert (item.width, item.height) == (640, 480)


def test_unknown_type_falls_back_to_requested_model(raw_document):
    denormalizer = AssetSearchResultDenormalizer(SerializationHandlerRegistry())

    item = denormalizer.denormalize(raw_document, AssetSearchResultItem)

    assert type(item) is AssetSearchResultItem


def test_accepts_full_hits(denormalizer, raw_document):
    item = denormalizer.denormalize({"_id": "42", "_source": raw_document})

    assert item.id == 42
    assert item.search_index_data == raw_document


def test_supports(denormalizer):
    assert denormalizer.supports({}, AssetSearchResultItem)
    assert denormalizer.supports({}, ImageSearchResultItem)
    assert not denormalizer.supports([], AssetSearchResultItem)
    assert not denormalizer.supports("raw", AssetSearchResultItem)
    assert not denormalizer.supports({}, dict)
    assert not denormalizer.supports({}, "AssetSearchResultItem")


def test_unsupported_target_raises(denormalizer):
    with pytest.raises(UnsupportedDenormalizationTarget):
        denormalizer.denormalize(["not", "a", "mapping"], AssetSearchResultItem)
    with pytest.raises(UnsupportedDenormalizationTarget):
        denormalizer.denormalize({}, dict)


def test_parse_timestamp():
    assert parse_timestamp("1970-01-01T00:01:00+00:00") == 60
    assert parse_timestamp("1970-01-01T00:01:00") == 60
    assert parse_timestamp("yesterday") is None
    assert parse_timestamp(None) is None

import copy
from datetime import datetime, timezone

import pytest

from element_index.indexing.bulk_queue import BulkBatchQueue
from element_index.indexing.document_normalizer import DocumentNormalizer
from element_index.indexing.entities import (
    Asset,
    AssetMetadata,
    AssetMetadataSchema,
    ClassDefinition,
    DataObject,
    FieldDefinition,
)
from element_index.indexing.hooks import HookDispatcher
from element_index.indexing.index_service import IndexService
from element_index.indexing.mapping import MappingComposer
from element_index.indexing.type_adapters import TypeAdapterRegistry


class FakeStore:
    """In-memory stand-in for ElasticsearchDocumentStore."""

    def __init__(self):
        self.documents = {}
        self.bulk_calls = []
        self.read_error = None
        self.rejected = {}

    def get_document(self, index_name, doc_id):
        if self.read_error is not None:
            raise self.read_error
        document = self.documents.get((index_name, str(doc_id)))
        return copy.deepcopy(document)

    def bulk(self, actions, refresh=False):
        self.bulk_calls.append((copy.deepcopy(actions), refresh))
        results = []
        for action in actions:
            op_type = action["_op_type"]
            key = (action["_index"], action["_id"])
            if action["_id"] in self.rejected:
                results.append(
                    (False, {op_type: {"_id": action["_id"], "status": 400, "error": self.rejected[action["_id"]]}})
                )
                continue
            if op_type == "update":
                self.documents[key] = copy.deepcopy(action["doc"])
            elif op_type == "delete":
                self.documents.pop(key, None)
            results.append((True, {op_type: {"_id": action["_id"], "status": 200}}))
        return results


@pytest.fixture
def store():
    return FakeStore()


@pytest.fixture
def dispatcher():
    return HookDispatcher()


@pytest.fixture
def registry():
    return TypeAdapterRegistry.default(index_prefix="test_")


@pytest.fixture
def normalizer(registry, dispatcher):
    return DocumentNormalizer(registry, dispatcher)


@pytest.fixture
def composer(registry, dispatcher):
    return MappingComposer(registry, dispatcher, languages=["en", "de"])


@pytest.fixture
def queue(store):
    return BulkBatchQueue(store, bulk_size=100)


@pytest.fixture
def service(registry, store, queue, normalizer):
    return IndexService(registry, store, queue, normalizer, perform_index_refresh=False)


@pytest.fixture
def asset():
    return Asset(
        id=42,
        parent_id=1,
        key="cat.jpg",
        path="/images/",
        creation_date=datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc),
        modification_date=datetime(2024, 3, 2, 8, 30, tzinfo=timezone.utc),
        user_owner=7,
        user_modification=8,
        type="image",
        mime_type="image/jpeg",
        file_size=2048,
        width=640,
        height=480,
        has_children=False,
        metadata=[
            AssetMetadata(name="title", data="A cat", language="en"),
            AssetMetadata(name="title", data="Eine Katze", language="de"),
            AssetMetadata(name="copyright", data="ACME"),
        ],
    )


@pytest.fixture
def asset_schema():
    return AssetMetadataSchema(
        field_definitions=[
            FieldDefinition("title", "input"),
            FieldDefinition("copyright", "textarea"),
        ]
    )


@pytest.fixture
def product_class():
    return ClassDefinition(
        id="1",
        name="Product",
        field_definitions=[
            FieldDefinition("sku", "input"),
            FieldDefinition("price", "numeric"),
            FieldDefinition("released", "date"),
            FieldDefinition("name", "input", localized=True),
            FieldDefinition("geo", "geopoint"),
        ],
    )


@pytest.fixture
def product(product_class):
    return DataObject(
        id=100,
        parent_id=5,
        key="shoe",
        path="/products/",
        creation_date=datetime(2024, 1, 10, tzinfo=timezone.utc),
        modification_date=datetime(2024, 1, 11, tzinfo=timezone.utc),
        user_owner=2,
        class_definition=product_class,
        values={"sku": "SH-1", "price": 59.9, "released": datetime(2023, 12, 24, tzinfo=timezone.utc)},
        localized_values={"en": {"name": "Shoe"}, "de": {"name": "Schuh"}},
    )

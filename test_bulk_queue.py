import threading

import pytest

from element_index.indexing.bulk_queue import BulkBatchQueue, Delete, Upsert
from element_index.indexing.exceptions import BulkFlushFailure


def _doc(checksum):
    return {"system": {"checksum": checksum}, "standard": {}, "custom": {}}


def test_flush_keeps_append_order_without_dedup(store):
    queue = BulkBatchQueue(store, bulk_size=10)
    queue.add(Upsert("idx", 1, _doc(1)))
    queue.add(Upsert("idx", 1, _doc(2)))
    queue.add(Delete("idx", 1))

    assert queue.flush() == 3

    actions, refresh = store.bulk_calls[0]
    assert [(a["_op_type"], a["_id"]) for a in actions] == [("update", "1"), ("update", "1"), ("delete", "1")]
    assert refresh is False
    assert ("idx", "1") not in store.documents
    assert len(queue) == 0


def test_flush_of_empty_queue_sends_nothing(store):
    assert BulkBatchQueue(store).flush(refresh=True) == 0
    assert store.bulk_calls == []


def test_flush_chunks_and_refreshes_every_chunk(store):
    queue = BulkBatchQueue(store, bulk_size=2)
    for doc_id in range(5):
        queue.add(Upsert("idx", doc_id, _doc(doc_id)))

    assert queue.flush(refresh=True) == 5

    assert [len(actions) for actions, _ in store.bulk_calls] == [2, 2, 1]
    assert [refresh for _, refresh in store.bulk_calls] == [True, True, True]


def test_refresh_reaches_every_index_of_a_chunked_flush(store):
    refreshed = set()
    bulk = store.bulk

    def bulk_refreshing_written_indices(actions, refresh=False):
        if refresh:
            refreshed.update(action["_index"] for action in actions)
        return bulk(actions, refresh=refresh)

    store.bulk = bulk_refreshing_written_indices
    queue = BulkBatchQueue(store, bulk_size=2)
    queue.add(Upsert("assets", 1, _doc(1)))
    queue.add(Upsert("assets", 2, _doc(2)))
    queue.add(Upsert("products", 3, _doc(3)))

    assert queue.flush(refresh=True) == 3
    assert refreshed == {"assets", "products"}


def test_failed_request_reports_unsent_operations(store):
    bulk = store.bulk
    calls = []

    def bulk_failing_on_second_request(actions, refresh=False):
        calls.append(actions)
        if len(calls) == 2:
            raise ConnectionError("connection reset")
        return bulk(actions, refresh=refresh)

    store.bulk = bulk_failing_on_second_request
    queue = BulkBatchQueue(store, bulk_size=1)
    for doc_id in (1, 2, 3):
        queue.add(Delete("idx", doc_id))

    with pytest.raises(BulkFlushFailure) as excinfo:
        queue.flush()

    failure = excinfo.value
    assert failure.applied == 1
    assert [f.operation for f in failure.failures] == [Delete("idx", 2), Delete("idx", 3)]
    assert all(isinstance(f.reason, ConnectionError) for f in failure.failures)
    assert isinstance(failure.__cause__, ConnectionError)
    assert len(calls) == 2


def test_partial_failure_is_reported_per_item(store):
    store.rejected = {"2": {"type": "mapper_parsing_exception", "reason": "failed to parse"}}
    queue = BulkBatchQueue(store)
    queue.add(Upsert("idx", 1, _doc(1)))
    queue.add(Upsert("idx", 2, _doc(2)))
    queue.add(Delete("idx", 3))

    with pytest.raises(BulkFlushFailure) as excinfo:
        queue.flush()

    failure = excinfo.value
    assert failure.applied == 2
    assert [f.operation.id for f in failure.failures] == [2]
    assert failure.failures[0].reason["type"] == "mapper_parsing_exception"
    assert ("idx", "1") in store.documents
    assert len(queue) == 0


def test_discard_drops_unflushed_operations(store):
    queue = BulkBatchQueue(store)
    queue.add(Upsert("idx", 1, _doc(1)))
    queue.add(Delete("idx", 2))
    queue.add(Upsert("idx", 3, _doc(3)))

    assert queue.discard(lambda op: op.id == 1) == 1
    assert [op.id for op in queue.pending] == [2, 3]


def test_last_operation_matches_index_and_id(store):
    queue = BulkBatchQueue(store)
    queue.add(Upsert("idx", 1, _doc(1)))
    queue.add(Delete("idx", 1))
    queue.add(Upsert("other", 1, _doc(9)))

    assert queue.last_operation("idx", "1") == Delete("idx", 1)
    assert queue.last_operation("idx", 2) is None


def test_concurrent_producers_lose_nothing(store):
    queue = BulkBatchQueue(store, bulk_size=1000)

    def produce(offset):
        for doc_id in range(offset, offset + 200):
            queue.add(Delete("idx", doc_id))

    threads = [threading.Thread(target=produce, args=(n * 1000,)) for n in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(queue) == 800
    assert queue.flush() == 800

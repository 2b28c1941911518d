"""Thin wrapper around the official Elasticsearch client.

Provides the document-store operations the index synchroniser relies on:

* :py:meth:`get_document` – fetch the stored ``_source`` of one element.
* :py:meth:`bulk` – send one chunk of bulk actions, reporting every item.
* :py:meth:`put_alias` / :py:meth:`resolve_alias` – alias (re)pointing.
* index administration used by :class:`element_index.indexing.index_handler.IndexHandler`.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Optional

from elasticsearch import Elasticsearch, helpers
from elasticsearch.exceptions import NotFoundError, TransportError
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from element_index.common.settings import settings
from element_index.indexing.exceptions import ElasticsearchConnectionError

logger = logging.getLogger(__name__)

BulkResult = tuple[bool, dict[str, Any]]


@retry(
    stop=stop_after_attempt(settings.connect_retries),
    wait=wait_exponential(multiplier=0.5, min=0.5, max=8),
    retry=retry_if_exception_type(ElasticsearchConnectionError),
    reraise=True,
)
def _wait_for_cluster(client: Elasticsearch, hosts: Any) -> None:
    """Ping once, raising if the cluster is not reachable yet."""
    if not client.ping():
        logger.info("ES ping failed for %s; retrying…", hosts)
        raise ElasticsearchConnectionError(f"Unable to connect to Elasticsearch at {hosts}")


class ElasticsearchDocumentStore:
    """Document store backed by Elasticsearch."""

    def __init__(
        self,
        hosts: list[str] | str | None = None,
        *,
        client: Optional[Elasticsearch] = None,
        verify_connection: bool = True,
    ) -> None:
        """Instantiate the store and optionally verify connectivity.

        Args:
            hosts: Single host or list of hosts where Elasticsearch is available.
                Defaults to ``settings.es_host``.
            client: Pre-built client; *hosts* is ignored when given.
            verify_connection: Ping the cluster (with retries) before returning.

        Raises:
            ElasticsearchConnectionError: If the cluster is unreachable.
        """
        hosts = hosts or settings.es_host
        self._client = client or Elasticsearch(hosts, request_timeout=settings.request_timeout)
        if verify_connection:
            _wait_for_cluster(self._client, hosts)

    def get_document(self, index_name: str, doc_id: Any) -> Optional[dict[str, Any]]:
        """Return the stored ``_source`` or ``None`` if the document does not exist.

        Transport errors and timeouts propagate to the caller.
        """
        try:
            response = self._client.get(index=index_name, id=str(doc_id))
        except NotFoundError:
            return None
        return dict(response["_source"])

    def bulk(self, actions: list[dict[str, Any]], refresh: bool = False) -> list[BulkResult]:
        """Send *actions* as a single bulk request.

        Returns one ``(ok, {op_type: item})`` pair per action, in request order.
        Deleting a missing document counts as success.  If the request itself
        fails, every action is reported as failed with the transport error.
        """
        if not actions:
            return []

        kwargs: dict[str, Any] = {}
        if refresh:
            kwargs["refresh"] = True

        results: list[BulkResult] = []
        try:
            for ok, item in helpers.streaming_bulk(
                self._client,
                actions,
                chunk_size=len(actions),
                raise_on_error=False,
                raise_on_exception=False,
                **kwargs,
            ):
                op_type, info = next(iter(item.items()))
                if not ok and op_type == "delete" and info.get("status") == 404:
                    ok = True
                results.append((ok, item))
        except TransportError as exc:
            reason = f"{type(exc).__name__}: {exc.message}"
            logger.error("Bulk request failed: %s", reason)
            failed = [(False, {action.get("_op_type", "index"): {"error": reason}}) for action in actions]
            return results + failed[len(results):]

        return results

    def index_exists(self, index_name: str) -> bool:
        return bool(self._client.indices.exists(index=index_name))

    def create_index(self, index_name: str, mapping_properties: dict[str, Any]) -> None:
        self._client.indices.create(
            index=index_name,
            settings={
                "number_of_shards": settings.number_of_shards,
                "number_of_replicas": settings.number_of_replicas,
            },
            mappings={"properties": mapping_properties},
        )
        logger.info("Created index '%s'.", index_name)

    def delete_index(self, index_name: str) -> None:
        try:
            self._client.indices.delete(index=index_name)
            logger.info("Deleted index '%s'.", index_name)
        except NotFoundError:
            pass

    def put_mapping(self, index_name: str, mapping_properties: dict[str, Any]) -> None:
        self._client.indices.put_mapping(index=index_name, properties=mapping_properties)
        logger.info("Updated mapping of '%s'.", index_name)

    def resolve_alias(self, alias_name: str) -> list[str]:
        """Physical indices currently behind *alias_name* (empty if none)."""
        try:
            response = self._client.indices.get_alias(name=alias_name)
        except NotFoundError:
            return []
        return sorted(response.keys())

    def put_alias(self, alias_name: str, index_name: str, remove_from: Iterable[str] = ()) -> None:
        """Point *alias_name* at *index_name*, atomically detaching it from *remove_from*."""
        actions: list[dict[str, Any]] = [
            {"remove": {"index": old, "alias": alias_name}} for old in remove_from if old != index_name
        ]
        actions.append({"add": {"index": index_name, "alias": alias_name}})
        self._client.indices.update_aliases(actions=actions)
        logger.info("Alias '%s' now points to '%s'.", alias_name, index_name)

    def reindex(self, source_index: str, dest_index: str) -> None:
        self._client.reindex(
            source={"index": source_index},
            dest={"index": dest_index},
            refresh=True,
            wait_for_completion=True,
        )
        logger.info("Reindexed '%s' into '%s'.", source_index, dest_index)

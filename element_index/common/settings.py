"""Settings shared by *indexing* and *search*.

All values are sourced from environment variables (or a ``.env`` file loaded at
import time).  They control the Elasticsearch connection, index naming and the
bulk write policy.
"""

from __future__ import annotations

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings

load_dotenv(override=True)


class Settings(BaseSettings):
    """Index synchronisation configuration.

    Fields
    ------
    es_host
        Elasticsearch HTTP endpoint.
    index_prefix
        Prepended to every alias name (e.g. ``element_index_asset``).
    request_timeout
        Per-request I/O timeout in seconds, forwarded to the client.
    connect_retries
        Number of ping attempts before giving up on the cluster.
    bulk_size
        Maximum number of operations sent in one bulk request.
    perform_index_refresh
        If *true*, flushes make the written documents immediately searchable.
    valid_languages
        Locales used when composing mappings for localized fields.
    number_of_shards / number_of_replicas
        Settings baked into newly created physical indices.
    """

    es_host: str = Field("http://localhost:9200", env="ES_HOST")
    index_prefix: str = Field("element_index_", env="INDEX_PREFIX")
    request_timeout: int = Field(10, env="REQUEST_TIMEOUT")
    connect_retries: int = Field(6, env="CONNECT_RETRIES")

    bulk_size: int = Field(500, env="BULK_SIZE")
    perform_index_refresh: bool = Field(False, env="PERFORM_INDEX_REFRESH")

    valid_languages: list[str] = Field(["en", "de"], env="VALID_LANGUAGES")

    number_of_shards: int = Field(1, env="NUMBER_OF_SHARDS")
    number_of_replicas: int = Field(0, env="NUMBER_OF_REPLICAS")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


settings = Settings()

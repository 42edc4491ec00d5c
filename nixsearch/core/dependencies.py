import os

from elasticsearch import AsyncElasticsearch
from pydantic import BaseModel, Field, ValidationError

from nixsearch.domain.errors import ConfigurationError
from nixsearch.services.commands import CommandRunner, SubprocessRunner
from nixsearch.services.importer.packages import NIXPKGS_ARCHIVE_URL
from nixsearch.services.search.bulk_loader import DEFAULT_CHUNK_SIZE
from nixsearch.storage.object_store import ObjectStore
from nixsearch.storage.s3_object_store import DEFAULT_BUCKET_URL, S3ObjectStore

ES_URL_ENV_VAR = "NIXSEARCH_ES_URL"
S3_URL_ENV_VAR = "NIXSEARCH_S3_URL"
NIXPKGS_ARCHIVE_ENV_VAR = "NIXSEARCH_NIXPKGS_ARCHIVE"
CHUNK_SIZE_ENV_VAR = "NIXSEARCH_BULK_CHUNK_SIZE"
TIMEOUT_ENV_VAR = "NIXSEARCH_REQUEST_TIMEOUT"


class Settings(BaseModel):
    """
    Runtime configuration of a channel import.

    Values come from ``NIXSEARCH_*`` environment variables; command line
    flags override them.
    """

    es_url: str = Field(
        default="http://localhost:9200",
        description="Elasticsearch connection URL.",
    )
    s3_bucket_url: str = Field(
        default=DEFAULT_BUCKET_URL,
        description="Base URL of the public release bucket listing evaluations.",
    )
    nixpkgs_archive_url: str = Field(
        default=NIXPKGS_ARCHIVE_URL,
        description="Tarball URL template for a revision; '{git_revision}' is substituted.",
    )
    bulk_chunk_size: int = Field(
        default=DEFAULT_CHUNK_SIZE,
        ge=1,
        description="Number of documents per bulk request.",
    )
    request_timeout: float = Field(
        default=60.0,
        gt=0,
        description="Timeout in seconds for object-store and search-engine requests.",
    )


def get_settings(**overrides) -> Settings:
    values = {}
    env_map = {
        "es_url": ES_URL_ENV_VAR,
        "s3_bucket_url": S3_URL_ENV_VAR,
        "nixpkgs_archive_url": NIXPKGS_ARCHIVE_ENV_VAR,
        "bulk_chunk_size": CHUNK_SIZE_ENV_VAR,
        "request_timeout": TIMEOUT_ENV_VAR,
    }
    for field_name, env_var in env_map.items():
        env_value = os.environ.get(env_var)
        if env_value:
            values[field_name] = env_value
    values.update({k: v for k, v in overrides.items() if v is not None})
    try:
        return Settings(**values)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid settings: {e}") from e


def get_object_store(settings: Settings) -> ObjectStore:
    return S3ObjectStore(settings.s3_bucket_url, timeout=settings.request_timeout)


def get_search_client(settings: Settings) -> AsyncElasticsearch:
    return AsyncElasticsearch(settings.es_url, request_timeout=settings.request_timeout)


def get_command_runner() -> CommandRunner:
    return SubprocessRunner()

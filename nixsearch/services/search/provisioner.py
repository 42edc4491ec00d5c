"""
Delete and recreate the per-channel indices so every run starts from an
empty index with the current mapping.
"""
from __future__ import annotations

import logging
from typing import Any, Dict

from elasticsearch import ApiError, AsyncElasticsearch
from elasticsearch import TransportError as ESTransportError

from nixsearch.domain.errors import TransportError
from nixsearch.services.search.schema import INDEX_SETTINGS, MAPPINGS, index_name

logger = logging.getLogger(__name__)


async def provision_index(client: AsyncElasticsearch, name: str, mappings: Dict[str, Any]) -> None:
    """
    Drop ``name`` if it exists, then create it empty with ``mappings``.

    A failure after the delete leaves the index absent; the run must be
    retried in full.
    """
    try:
        if await client.indices.exists(index=name):
            logger.info(f"Deleting existing index {name}")
            await client.indices.delete(index=name)

        logger.info(f"Creating index {name}")
        await client.indices.create(index=name, settings=INDEX_SETTINGS, mappings=mappings)
    except (ApiError, ESTransportError) as e:
        logger.error(f"Failed to provision index {name}: {e}", exc_info=True)
        raise TransportError(f"Failed to provision index '{name}': {e}") from e


async def provision_unit(client: AsyncElasticsearch, channel: str, unit: str) -> str:
    name = index_name(channel, unit)
    await provision_index(client, name, MAPPINGS[unit])
    return name


async def provision(client: AsyncElasticsearch, channel: str) -> None:
    """Recreate both the packages and the options index of ``channel``."""
    for unit in MAPPINGS:
        await provision_unit(client, channel, unit)

"""
Stream search documents into an index with the bulk API.
"""
from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Iterable, Iterator, Optional, Protocol

from elasticsearch import ApiError, AsyncElasticsearch
from elasticsearch import TransportError as ESTransportError
from elasticsearch.helpers import async_streaming_bulk

from nixsearch.domain.errors import TransportError

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 500


class SearchDocument(Protocol):
    id: str

    def to_source(self) -> Dict[str, Any]: ...


ProgressCallback = Callable[[int, int], None]


def bulk_actions(index: str, documents: Iterable[SearchDocument]) -> Iterator[Dict[str, Any]]:
    for document in documents:
        yield {
            "_op_type": "index",
            "_index": index,
            "_id": document.id,
            "_source": document.to_source(),
        }


async def bulk_load(
    client: AsyncElasticsearch,
    index: str,
    count: int,
    documents: Iterable[SearchDocument],
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    on_progress: Optional[ProgressCallback] = None,
) -> int:
    """
    Write ``documents`` to ``index`` and return how many were acknowledged.

    Documents are sent in chunks of ``chunk_size`` while the acknowledgements
    of earlier chunks are consumed, so at most about one chunk is held in
    memory. A rejected document is logged and counted as a failure; only a
    transport-level error aborts the load. With ``count == 0`` nothing is sent.
    """
    if count == 0:
        logger.debug(f"Nothing to write to {index}")
        return 0

    successes = 0
    processed = 0
    try:
        async for ok, item in async_streaming_bulk(
            client,
            bulk_actions(index, documents),
            chunk_size=chunk_size,
            raise_on_error=False,
            raise_on_exception=True,
        ):
            processed += 1
            if ok:
                successes += 1
            else:
                logger.warning(f"Failed to index document into {index}: {item}")
            if on_progress is not None:
                on_progress(processed, count)
    except (ApiError, ESTransportError) as e:
        logger.error(
            f"Bulk load into {index} aborted after {processed}/{count} documents: {e}",
            exc_info=True,
        )
        raise TransportError(f"Bulk load into '{index}' failed: {e}") from e

    logger.info(f"Indexed {successes}/{count} documents into {index}")
    return successes

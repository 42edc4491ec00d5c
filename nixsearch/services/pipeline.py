"""
Import one channel: resolve its latest evaluation, extract packages and
options, recreate the channel's indices and bulk load the documents.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Optional, Tuple

from elasticsearch import AsyncElasticsearch

from nixsearch.core.dependencies import (
    Settings,
    get_command_runner,
    get_object_store,
    get_search_client,
    get_settings,
)
from nixsearch.domain.entities import DocumentSource
from nixsearch.domain.models import ChannelRunResult, Evaluation, LoadOutcome
from nixsearch.services.commands import CommandRunner
from nixsearch.services.evaluations import EvaluationResolver
from nixsearch.services.importer.options import extract_options
from nixsearch.services.importer.packages import extract_packages
from nixsearch.services.search.bulk_loader import bulk_load
from nixsearch.services.search.provisioner import provision_unit
from nixsearch.storage.object_store import ObjectStore

logger = logging.getLogger(__name__)


def _print_progress(done: int, total: int) -> None:
    percent = (done / total) * 100 if total else 100.0
    print(f"\rProgress: {percent:.1f}%", end="", flush=True)


async def load_unit(
    client: AsyncElasticsearch,
    channel: str,
    source: DocumentSource,
    chunk_size: int,
    show_progress: bool = False,
) -> LoadOutcome:
    """
    Recreate the index of ``source.unit`` and write its documents.

    The index is always recreated so no stale documents survive; the bulk
    load is skipped entirely for an empty source.
    """
    index = await provision_unit(client, channel, source.unit)
    outcome = LoadOutcome(unit=source.unit, index=index, count=source.count)
    if source.count == 0:
        logger.info(f"No {source.unit} to index for {channel}")
        return outcome

    print(f"Indexing {source.unit}...")
    outcome.successes = await bulk_load(
        client,
        index,
        source.count,
        source.documents(),
        chunk_size=chunk_size,
        on_progress=_print_progress if show_progress else None,
    )
    if show_progress:
        print()
    print(f"Indexed {outcome.successes}/{outcome.count} {source.unit}")
    return outcome


async def _extract_all(
    evaluation: Evaluation, runner: CommandRunner, archive_url: str
) -> Tuple[DocumentSource, DocumentSource]:
    """Run both extractions concurrently; a failure in one cancels the other."""
    tasks = [
        asyncio.ensure_future(extract_packages(evaluation, runner, archive_url=archive_url)),
        asyncio.ensure_future(extract_options(evaluation, runner, archive_url=archive_url)),
    ]
    try:
        packages, options = await asyncio.gather(*tasks)
    except BaseException:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise
    return packages, options


async def run_channel(
    channel: str,
    settings: Optional[Settings] = None,
    store: Optional[ObjectStore] = None,
    client: Optional[AsyncElasticsearch] = None,
    runner: Optional[CommandRunner] = None,
    show_progress: bool = False,
) -> ChannelRunResult:
    """
    Rebuild the search indices of ``channel`` from its newest evaluation.

    Collaborators not passed in are created from ``settings`` and closed
    again before returning. Resolution and extraction errors propagate before
    any index is touched.
    """
    settings = settings or get_settings()
    owns_store = store is None
    owns_client = client is None
    store = store or get_object_store(settings)
    client = client or get_search_client(settings)
    runner = runner or get_command_runner()

    try:
        evaluation = await EvaluationResolver(store).resolve(channel)
        logger.info(
            f"Latest evaluation of {channel}: "
            f"{evaluation.revisions_since_start}.{evaluation.git_revision}"
        )

        packages, options = await _extract_all(evaluation, runner, settings.nixpkgs_archive_url)

        package_outcome = await load_unit(
            client, channel, packages, settings.bulk_chunk_size, show_progress
        )
        option_outcome = await load_unit(
            client, channel, options, settings.bulk_chunk_size, show_progress
        )
    finally:
        if owns_store:
            await store.close()
        if owns_client:
            await client.close()

    return ChannelRunResult(
        channel=channel,
        evaluation=evaluation,
        packages=package_outcome,
        options=option_outcome,
    )

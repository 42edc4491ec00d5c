"""
Find the most recent evaluation of a channel in the release bucket.

Evaluations live one level below ``<project>/<project_version>/`` and are
named ``<channel>[beta].<revisions_since_start>.<git_revision>/``.
"""
from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Tuple

from pydantic import BaseModel

from nixsearch.domain.errors import InvalidChannelError, NoEvaluationsError, NotFoundError
from nixsearch.domain.models import Evaluation
from nixsearch.storage.object_store import ObjectStore

logger = logging.getLogger(__name__)

BETA_MARKER = "beta"


class EvaluationParseResult(BaseModel):
    """Outcome of parsing one listing entry: an evaluation or the reason it was skipped."""

    prefix: str
    evaluation: Optional[Evaluation] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.evaluation is not None


def split_channel(channel: str) -> Tuple[str, str]:
    """Split ``nixos-21.05`` into ``("nixos", "21.05")`` on the first dash."""
    project, sep, project_version = channel.partition("-")
    if not sep or not project or not project_version:
        raise InvalidChannelError(
            f"Invalid channel '{channel}': expected '<project>-<project_version>'"
        )
    return project, project_version


def channel_prefix(channel: str) -> str:
    project, project_version = split_channel(channel)
    return f"{project}/{project_version}/"


def parse_evaluation(channel: str, prefix: str) -> EvaluationParseResult:
    """
    Parse a listing entry such as ``nixos/21.05/nixos-21.05.105.abc123/``.
    """
    base = f"{channel_prefix(channel)}{channel}"
    if not prefix.startswith(base):
        return EvaluationParseResult(prefix=prefix, error=f"not under {base!r}")

    remainder = prefix[len(base):]
    if remainder.startswith(BETA_MARKER):
        remainder = remainder[len(BETA_MARKER):]

    fields = remainder.lstrip(".").rstrip("/").split(".")
    if len(fields) != 2:
        return EvaluationParseResult(prefix=prefix, error=f"expected 2 fields, got {len(fields)}")

    counter, git_revision = fields
    if not (counter.isascii() and counter.isdigit()):
        return EvaluationParseResult(prefix=prefix, error=f"counter {counter!r} is not a number")
    if not git_revision:
        return EvaluationParseResult(prefix=prefix, error="empty git revision")

    evaluation = Evaluation(
        revisions_since_start=int(counter),
        git_revision=git_revision,
        storage_prefix=prefix,
    )
    return EvaluationParseResult(prefix=prefix, evaluation=evaluation)


def select_latest_evaluation(channel: str, prefixes: Iterable[str]) -> Evaluation:
    """
    Pick the evaluation with the highest ``revisions_since_start``.

    Equal counters are broken by the lexicographically greatest git revision,
    so the result never depends on listing order.
    """
    prefixes = list(prefixes)
    if not prefixes:
        raise NotFoundError(channel_prefix(channel))

    candidates: List[Evaluation] = []
    for result in (parse_evaluation(channel, prefix) for prefix in prefixes):
        if result.ok:
            candidates.append(result.evaluation)
        else:
            logger.debug(f"Skipping listing entry {result.prefix!r}: {result.error}")

    if not candidates:
        raise NoEvaluationsError(channel, len(prefixes))

    latest = max(candidates, key=lambda e: (e.revisions_since_start, e.git_revision))
    logger.debug(
        f"Selected evaluation {latest.revisions_since_start}.{latest.git_revision} "
        f"out of {len(candidates)} candidates"
    )
    return latest


class EvaluationResolver:
    """Resolves a channel name to its newest evaluation."""

    def __init__(self, store: ObjectStore):
        self.store = store

    async def resolve(self, channel: str) -> Evaluation:
        prefix = channel_prefix(channel)
        logger.info(f"Looking up evaluations of {channel} under {prefix}")
        prefixes = await self.store.list_common_prefixes(prefix, delimiter="/")
        return select_latest_evaluation(channel, prefixes)

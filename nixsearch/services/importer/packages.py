"""
Enumerate the packages of an evaluation with ``nix-env`` and normalize them
into search documents.
"""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

from nixsearch.domain.entities import DocumentSource
from nixsearch.domain.errors import ExtractionFailedError
from nixsearch.domain.models import Evaluation, PackageDocument
from nixsearch.domain.nix_utils import (
    attr_set_of,
    first_string,
    normalize_licenses,
    normalize_maintainers,
    normalize_platforms,
    strip_store_prefix,
)
from nixsearch.services.commands import CommandRunner

logger = logging.getLogger(__name__)

NIXPKGS_ARCHIVE_URL = "https://github.com/NixOS/nixpkgs/archive/{git_revision}.tar.gz"
PACKAGES_CONFIG_PATH = Path(__file__).with_name("packages-config.nix")


def nixpkgs_archive(evaluation: Evaluation, archive_url: str = NIXPKGS_ARCHIVE_URL) -> str:
    return archive_url.format(git_revision=evaluation.git_revision)


def package_query_command(
    evaluation: Evaluation,
    archive_url: str = NIXPKGS_ARCHIVE_URL,
    config_path: Path = PACKAGES_CONFIG_PATH,
) -> List[str]:
    return [
        "nix-env",
        "-f", "<nixpkgs>",
        "-I", f"nixpkgs={nixpkgs_archive(evaluation, archive_url)}",
        "--arg", "config", f"import {config_path}",
        "-qa",
        "--json",
        "--meta",
    ]


def normalize_package(attr_name: str, data: Dict[str, Any]) -> PackageDocument:
    """
    Map one ``nix-env --json`` entry to a ``PackageDocument``.

    ``meta.license`` and ``meta.maintainers`` may be a string, an object or a
    list of either; ``meta.platforms`` may contain non-string entries. All of
    them are normalized to lists.
    """
    meta = data.get("meta")
    if not isinstance(meta, dict):
        meta = {}

    description = meta.get("description")
    long_description = meta.get("longDescription")

    return PackageDocument(
        id=attr_name,
        attr_name=attr_name,
        attr_set=attr_set_of(attr_name),
        name=data.get("pname") or data.get("name"),
        version=data.get("version"),
        description=description if isinstance(description, str) else None,
        long_description=long_description if isinstance(long_description, str) else "",
        license=normalize_licenses(meta.get("license")),
        maintainers=normalize_maintainers(meta.get("maintainers")),
        platforms=normalize_platforms(meta.get("platforms")),
        position=strip_store_prefix(first_string(meta.get("position"))),
        homepage=first_string(meta.get("homepage")),
    )


def parse_package_listing(stdout: str, command: Optional[List[str]] = None) -> Dict[str, Dict[str, Any]]:
    try:
        packages = json.loads(stdout)
    except json.JSONDecodeError as e:
        raise ExtractionFailedError(f"nix-env produced invalid JSON: {e}", command=command) from e

    if not isinstance(packages, dict):
        raise ExtractionFailedError(
            f"nix-env produced a JSON {type(packages).__name__}, expected an object",
            command=command,
        )
    return packages


async def extract_packages(
    evaluation: Evaluation,
    runner: CommandRunner,
    archive_url: str = NIXPKGS_ARCHIVE_URL,
    config_path: Path = PACKAGES_CONFIG_PATH,
) -> DocumentSource[PackageDocument]:
    """
    Enumerate all packages of ``evaluation``.

    Returns a document source whose count is the number of enumerated
    attributes. Raises ``ExtractionFailedError`` if ``nix-env`` fails or its
    output is not a JSON object.
    """
    command = package_query_command(evaluation, archive_url, config_path)
    logger.info(f"Enumerating packages of {evaluation.git_revision}")

    result = await runner.run(command)
    if not result.ok:
        raise ExtractionFailedError(
            "Package enumeration failed",
            command=command,
            returncode=result.returncode,
            stderr=result.stderr,
        )

    packages = parse_package_listing(result.stdout, command)
    entries = list(packages.items())
    logger.debug(f"Found {len(entries)} packages")

    def generate() -> Iterator[PackageDocument]:
        for attr_name, data in entries:
            yield normalize_package(attr_name, data if isinstance(data, dict) else {})

    return DocumentSource("packages", len(entries), generate)

"""
Build the NixOS options documentation of an evaluation with ``nix-build`` and
normalize ``options.json`` into search documents.
"""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

import aiofiles

from nixsearch.domain.entities import DocumentSource
from nixsearch.domain.errors import ExtractionFailedError
from nixsearch.domain.models import Evaluation, OptionDocument
from nixsearch.domain.nix_utils import first_string, unwrap_example
from nixsearch.services.commands import CommandRunner
from nixsearch.services.importer.packages import NIXPKGS_ARCHIVE_URL, nixpkgs_archive

logger = logging.getLogger(__name__)

OPTIONS_FILE_PATH = "share/doc/nixos/options.json"


def options_build_command(evaluation: Evaluation, archive_url: str = NIXPKGS_ARCHIVE_URL) -> List[str]:
    return [
        "nix-build",
        "<nixpkgs/nixos/release.nix>",
        "--no-out-link",
        "-A", "options",
        "-I", f"nixpkgs={nixpkgs_archive(evaluation, archive_url)}",
    ]


def normalize_option(option_name: str, option: Dict[str, Any]) -> OptionDocument:
    description = option.get("description")
    option_type = option.get("type")

    return OptionDocument(
        id=option_name,
        option_name=option_name,
        description=description if isinstance(description, str) else None,
        type=option_type if isinstance(option_type, str) else None,
        default=str(option.get("default")),
        example=str(unwrap_example(option.get("example"))),
        source=first_string(option.get("declarations")),
    )


def _output_path(stdout: str) -> Optional[Path]:
    lines = [line.strip() for line in stdout.splitlines() if line.strip()]
    return Path(lines[-1]) if lines else None


async def read_options_file(options_file: Path) -> Dict[str, Dict[str, Any]]:
    async with aiofiles.open(options_file, "r", encoding="utf-8") as f:
        content = await f.read()

    try:
        options = json.loads(content)
    except json.JSONDecodeError as e:
        raise ExtractionFailedError(f"Invalid JSON in {options_file}: {e}") from e

    if not isinstance(options, dict):
        raise ExtractionFailedError(
            f"{options_file} holds a JSON {type(options).__name__}, expected an object"
        )
    return options


async def extract_options(
    evaluation: Evaluation,
    runner: CommandRunner,
    archive_url: str = NIXPKGS_ARCHIVE_URL,
) -> DocumentSource[OptionDocument]:
    """
    Build the options documentation of ``evaluation`` and read its options.

    An evaluation without an options file yields an empty source. Raises
    ``ExtractionFailedError`` if ``nix-build`` fails.
    """
    command = options_build_command(evaluation, archive_url)
    logger.info(f"Building options documentation of {evaluation.git_revision}")

    result = await runner.run(command)
    if not result.ok:
        raise ExtractionFailedError(
            "Options documentation build failed",
            command=command,
            returncode=result.returncode,
            stderr=result.stderr,
        )

    out_path = _output_path(result.stdout)
    options_file = out_path / OPTIONS_FILE_PATH if out_path else None
    if options_file is None or not options_file.is_file():
        logger.info(f"No options file found at {options_file}, skipping options")
        return DocumentSource.empty("options")

    options = await read_options_file(options_file)
    entries = list(options.items())
    logger.debug(f"Found {len(entries)} options in {options_file}")

    def generate() -> Iterator[OptionDocument]:
        for option_name, option in entries:
            yield normalize_option(option_name, option if isinstance(option, dict) else {})

    return DocumentSource("options", len(entries), generate)

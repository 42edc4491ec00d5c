from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence, Set

import pytest

from nixsearch.services.commands import CommandResult, CommandRunner
from nixsearch.services.search import bulk_loader
from nixsearch.storage.object_store import ObjectStore


class FakeObjectStore(ObjectStore):
    def __init__(self, prefixes: Iterable[str] = ()) -> None:
        self.prefixes = list(prefixes)
        self.calls: List[tuple[str, str]] = []
        self.closed = False

    async def list_common_prefixes(self, prefix: str, delimiter: str = "/") -> List[str]:
        self.calls.append((prefix, delimiter))
        return list(self.prefixes)

    async def close(self) -> None:
        self.closed = True


class FakeRunner(CommandRunner):
    """Answers each command by its executable name."""

    def __init__(self, responses: Optional[Dict[str, tuple[int, str, str]]] = None) -> None:
        self.responses = responses or {}
        self.calls: List[List[str]] = []

    async def run(self, args: Sequence[str]) -> CommandResult:
        args = list(args)
        self.calls.append(args)
        returncode, stdout, stderr = self.responses[args[0]]
        return CommandResult(args=args, returncode=returncode, stdout=stdout, stderr=stderr)


class FakeIndices:
    def __init__(self) -> None:
        self.store: Dict[str, Dict[str, Any]] = {}
        self.calls: List[tuple[str, str]] = []

    async def exists(self, index: str) -> bool:
        self.calls.append(("exists", index))
        return index in self.store

    async def delete(self, index: str) -> None:
        self.calls.append(("delete", index))
        del self.store[index]

    async def create(self, index: str, settings: Dict[str, Any], mappings: Dict[str, Any]) -> None:
        self.calls.append(("create", index))
        self.store[index] = {"settings": settings, "mappings": mappings, "docs": {}}


class FakeSearchClient:
    """In-memory stand-in for the index administration part of the client."""

    def __init__(self) -> None:
        self.indices = FakeIndices()
        self.closed = False

    def docs(self, index: str) -> Dict[str, Dict[str, Any]]:
        return self.indices.store[index]["docs"]

    async def close(self) -> None:
        self.closed = True


class FakeBulk:
    """Replaces ``async_streaming_bulk`` and writes into a ``FakeSearchClient``."""

    def __init__(self) -> None:
        self.reject: Set[str] = set()
        self.chunk_sizes: List[int] = []
        self.calls = 0
        self.raise_after: Optional[int] = None
        self.error: Optional[Exception] = None

    async def __call__(
        self,
        client: FakeSearchClient,
        actions: Iterable[Dict[str, Any]],
        chunk_size: int = 500,
        raise_on_error: bool = True,
        raise_on_exception: bool = True,
    ):
        self.calls += 1
        self.chunk_sizes.append(chunk_size)
        assert raise_on_error is False
        for position, action in enumerate(actions):
            if self.raise_after is not None and position == self.raise_after:
                raise self.error
            doc_id = action["_id"]
            if doc_id in self.reject:
                yield False, {"index": {"_id": doc_id, "status": 400, "error": "mapper_parsing_exception"}}
                continue
            # Mimic the JSON serialization the real client performs.
            client.docs(action["_index"])[doc_id] = json.loads(json.dumps(action["_source"]))
            yield True, {"index": {"_id": doc_id, "status": 201}}


@pytest.fixture
def search_client() -> FakeSearchClient:
    return FakeSearchClient()


@pytest.fixture
def fake_bulk(monkeypatch: pytest.MonkeyPatch) -> FakeBulk:
    fake = FakeBulk()
    monkeypatch.setattr(bulk_loader, "async_streaming_bulk", fake)
    return fake


@pytest.fixture
def channel_listing() -> List[str]:
    return [
        "nixos/21.05/nixos-21.05.100.abcdef/",
        "nixos/21.05/nixos-21.05.105.abc123/",
    ]


@pytest.fixture
def options_output(tmp_path: Path):
    """Create a fake ``nix-build`` output directory holding ``options``."""

    def _write(options: Optional[Dict[str, Any]]) -> Path:
        out = tmp_path / "nixos-options"
        doc_dir = out / "share" / "doc" / "nixos"
        doc_dir.mkdir(parents=True, exist_ok=True)
        if options is not None:
            (doc_dir / "options.json").write_text(json.dumps(options), encoding="utf-8")
        return out

    return _write


@pytest.fixture
def make_store():
    return FakeObjectStore


@pytest.fixture
def make_runner():
    return FakeRunner

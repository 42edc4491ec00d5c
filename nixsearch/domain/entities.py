from typing import Callable, Generic, Iterable, Iterator, TypeVar
import logging

logger = logging.getLogger(__name__)

DocumentT = TypeVar("DocumentT")


class DocumentSource(Generic[DocumentT]):
    """
    A counted, restartable sequence of search documents.

    ``count`` is known before any document is produced, so callers can set up
    progress reporting without a pre-pass. Every call to ``documents()`` runs
    the normalization again from the captured upstream data.
    """

    def __init__(self, unit: str, count: int, factory: Callable[[], Iterable[DocumentT]]):
        self.unit = unit
        self.count = count
        self._factory = factory

    def documents(self) -> Iterator[DocumentT]:
        logger.debug(f"Producing {self.count} {self.unit} documents")
        return iter(self._factory())

    def __len__(self) -> int:
        return self.count

    def __repr__(self) -> str:
        return f"DocumentSource(unit={self.unit!r}, count={self.count})"

    @classmethod
    def empty(cls, unit: str) -> "DocumentSource[DocumentT]":
        return cls(unit, 0, lambda: ())

from abc import ABC, abstractmethod
from typing import List


class ObjectStore(ABC):
    """
    Abstract base class for read-only object storage listing.
    """

    @abstractmethod
    async def list_common_prefixes(self, prefix: str, delimiter: str = "/") -> List[str]:
        """
        List the immediate children of ``prefix``, directory style.

        Returns the common prefixes (e.g. ``"nixos/21.05/nixos-21.05.105.abc123/"``)
        grouped by ``delimiter``, one level deep.
        """
        pass

    async def close(self) -> None:
        """Release any underlying connection resources."""
        pass

"""Abstract base class for platform adapters."""

from abc import ABC, abstractmethod
from types import TracebackType

from src.core.config import SearchFilters
from src.core.schemas import JobRecord


class PlatformAdapter(ABC):
    """Base class that every platform adapter must implement."""

    @property
    @abstractmethod
    def platform_id(self) -> str:
        """Unique identifier for this platform (e.g. 'linkedin')."""

    @abstractmethod
    async def search(self, filters: SearchFilters, max_count: int = 10) -> list[JobRecord]:
        """Run a search and return up to ``max_count`` enriched records."""

    @abstractmethod
    async def close(self) -> None:
        """Release browser resources. Idempotent."""

    async def __aenter__(self) -> "PlatformAdapter":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.close()

"""Deduplicating background queue that enriches org refs with company details.

One worker task drains the pending set on its own browser surface while the
paginator keeps extracting listings. Results are cached per org_ref; a failed
fetch caches ``OrgDetails.empty()`` so it is never retried.

Concurrency: every read-modify-write of the pending set, in-flight set and
cache happens in a synchronous block on the event loop thread, with no
``await`` in between. The event loop is the single owner of that state, so
enqueues from the paginator and pops from the worker never interleave.
"""

import asyncio
import logging
from collections.abc import Iterable, Mapping
from types import MappingProxyType
from typing import Protocol

from src.core.config import TimingConfig
from src.core.schemas import JobRecord, OrgDetails

logger = logging.getLogger(__name__)


class OrgFetcher(Protocol):
    """Fetches details for one organization reference."""

    async def fetch(self, org_ref: str) -> OrgDetails: ...


class EnrichmentQueue:
    """Pending set + cache + a single asyncio worker task.

    Usage::

        queue = EnrichmentQueue(LinkedInOrgFetcher(worker_page))
        queue.enqueue(org_ref)
        queue.ensure_worker_running()
        ...
        await queue.await_drain()
        records = merge_enrichment(records, queue.cache)
    """

    def __init__(
        self,
        fetcher: OrgFetcher,
        *,
        timing: TimingConfig | None = None,
        log: logging.Logger | None = None,
    ) -> None:
        self._fetcher = fetcher
        self._timing = timing or TimingConfig()
        self._log = log or logger
        # dict keys give an insertion-ordered set
        self._pending: dict[str, None] = {}
        self._in_flight: set[str] = set()
        self._cache: dict[str, OrgDetails] = {}
        self._task: asyncio.Task[None] | None = None

    @property
    def cache(self) -> Mapping[str, OrgDetails]:
        """Read-only view of the org_ref -> OrgDetails cache."""
        return MappingProxyType(self._cache)

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def enqueue(self, org_ref: str) -> bool:
        """Add ``org_ref`` unless it is empty, cached, pending or in flight.

        Returns True when the ref was newly added.
        """
        if not org_ref:
            return False
        if org_ref in self._cache or org_ref in self._pending or org_ref in self._in_flight:
            return False
        self._pending[org_ref] = None
        self._log.debug("Queued company %s (%d pending)", org_ref, len(self._pending))
        return True

    def ensure_worker_running(self) -> None:
        """Start the worker task if none is alive. Never blocks."""
        if self.is_running or not self._pending:
            return
        self._log.info("Processing %d companies in the background", len(self._pending))
        self._task = asyncio.create_task(self._drain(), name="enrichment-worker")

    async def await_drain(self) -> None:
        """Wait until the worker stopped and nothing is pending.

        Bounded by ``timing.drain_timeout_s``. On timeout the worker is
        cancelled and every unfinished ref is cached as empty.
        """
        try:
            await asyncio.wait_for(self._join(), timeout=self._timing.drain_timeout_s)
        except asyncio.TimeoutError:
            self._log.warning(
                "Company enrichment did not finish within %.0fs; %d left unenriched",
                self._timing.drain_timeout_s, len(self._pending) + len(self._in_flight),
            )
            await self.close()
            self._abandon_unfinished()

    async def close(self) -> None:
        """Cancel a live worker task."""
        task = self._task
        if task is None or task.done():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def _join(self) -> None:
        while True:
            self.ensure_worker_running()
            task = self._task
            if task is None or task.done():
                return
            await asyncio.shield(task)

    async def _drain(self) -> None:
        while self._pending:
            org_ref = next(iter(self._pending))
            del self._pending[org_ref]
            if org_ref in self._cache:
                self._log.debug("Cached: %s", org_ref)
                continue

            self._in_flight.add(org_ref)
            try:
                details = await self._fetch_one(org_ref)
            except asyncio.CancelledError:
                self._cache.setdefault(org_ref, OrgDetails.empty())
                raise
            finally:
                self._in_flight.discard(org_ref)
            self._cache[org_ref] = details
        self._log.info("Finished processing company details (%d cached)", len(self._cache))

    async def _fetch_one(self, org_ref: str) -> OrgDetails:
        try:
            return await asyncio.wait_for(
                self._fetcher.fetch(org_ref), timeout=self._timing.org_fetch_timeout_s,
            )
        except asyncio.CancelledError:
            raise
        except Exception:
            self._log.warning("Failed to fetch company %s", org_ref, exc_info=True)
            return OrgDetails.empty()

    def _abandon_unfinished(self) -> None:
        for org_ref in [*self._in_flight, *self._pending]:
            self._cache.setdefault(org_ref, OrgDetails.empty())
        self._in_flight.clear()
        self._pending.clear()


def merge_enrichment(
    records: Iterable[JobRecord], cache: Mapping[str, OrgDetails],
) -> list[JobRecord]:
    """Copy cached OrgDetails into every record whose org_ref is cached.

    Records without an org_ref, or whose ref is not cached, are returned as is.
    """
    merged: list[JobRecord] = []
    for record in records:
        details = cache.get(record.org_ref) if record.org_ref else None
        merged.append(record.with_org_details(details) if details is not None else record)
    return merged

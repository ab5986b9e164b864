"""Job acquisition engine: wires auth, query builder, paginator and enrichment.

Data flow:
  1. Authenticate (saved session, login form, challenge)
  2. Build the search URL from filters
  3. Paginate and extract listings; company refs go to the enrichment queue
  4. Wait for the enrichment queue to drain
  5. Merge cached company details into the records
"""

import json
import logging
from collections.abc import Iterable

from src.auth.session_store import SessionStore
from src.auth.state_machine import AuthenticationStateMachine, AuthState
from src.auth.verification import GmailCodeProvider, VerificationCodeProvider
from src.browser.session import BrowserSession
from src.core.config import SearchFilters, Settings
from src.core.log import resolve_logger
from src.core.schemas import JobRecord
from src.enrichment.queue import EnrichmentQueue, merge_enrichment
from src.platforms.base import PlatformAdapter
from src.platforms.linkedin.paginator import ListingPaginator
from src.platforms.linkedin.parser import LinkedInOrgFetcher
from src.platforms.linkedin.searcher import build_url

logger = logging.getLogger(__name__)


class JobAcquisitionEngine(PlatformAdapter):
    """One authenticated LinkedIn session serving sequential searches.

    Usage::

        async with JobAcquisitionEngine(settings) as engine:
            records = await engine.search(SearchFilters(keywords="Python"), 25)

    After ``close()`` the instance cannot be reused; build a new engine for a
    fresh session.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        session: BrowserSession | None = None,
        store: SessionStore | None = None,
        code_provider: VerificationCodeProvider | None = None,
        log: logging.Logger | None = None,
    ) -> None:
        self._settings = settings
        self._log = resolve_logger(log, __name__, silent=settings.silent)
        self._session = session or BrowserSession(settings.browser, log=self._log)
        self._store = store or SessionStore(settings.browser.session_path, log=self._log)
        if code_provider is None and settings.gmail is not None:
            code_provider = GmailCodeProvider(settings.gmail, log=self._log)
        self._code_provider = code_provider
        self._auth: AuthenticationStateMachine | None = None
        self._queue: EnrichmentQueue | None = None
        self._closed = False

    @property
    def platform_id(self) -> str:
        return "linkedin"

    @property
    def auth_state(self) -> AuthState:
        if self._auth is None:
            return AuthState.UNAUTHENTICATED
        return self._auth.state

    @property
    def closed(self) -> bool:
        return self._closed

    async def search(self, filters: SearchFilters, max_count: int = 10) -> list[JobRecord]:
        """Search LinkedIn and return up to ``max_count`` enriched records.

        Raises:
            AuthenticationError: login or challenge resolution failed.
            RuntimeError: the engine was already closed.
        """
        if self._closed:
            msg = "JobAcquisitionEngine is closed; create a new instance"
            raise RuntimeError(msg)

        self._log.info("=== Starting LinkedIn job search ===")
        await self._session.start()
        await self._ensure_authenticated()

        url = build_url(filters)
        self._log.info("Search URL: %s", url)
        _log_filters(self._log, filters)

        queue = await self._ensure_queue()
        paginator = ListingPaginator(
            self._session.page, queue, timing=self._settings.timing, log=self._log,
        )
        records = await paginator.run(url, max_count)
        self._log.info("Scraped %d jobs, waiting for company details", len(records))

        await queue.await_drain()
        merged = merge_enrichment(records, queue.cache)
        self._log.info("Search complete: %d jobs", len(merged))
        return merged

    async def close(self) -> None:
        """Stop the worker and close both browser surfaces. Idempotent."""
        if self._closed:
            return
        self._closed = True
        if self._queue is not None:
            await self._queue.close()
        await self._session.close()
        self._log.info("Browser closed")

    async def __aenter__(self) -> "JobAcquisitionEngine":
        return self

    async def _ensure_authenticated(self) -> None:
        if self._auth is None:
            self._auth = AuthenticationStateMachine(
                self._session.page,
                self._settings.linkedin,
                self._store,
                code_provider=self._code_provider,
                timing=self._settings.timing,
                log=self._log,
            )
        await self._auth.ensure()

    async def _ensure_queue(self) -> EnrichmentQueue:
        """Open the worker surface once, after authentication, and wrap it in a queue."""
        if self._queue is None:
            worker_page = await self._session.open_worker_page()
            fetcher = LinkedInOrgFetcher(worker_page, timing=self._settings.timing, log=self._log)
            self._queue = EnrichmentQueue(fetcher, timing=self._settings.timing, log=self._log)
        return self._queue


def _log_filters(log: logging.Logger, filters: SearchFilters) -> None:
    for name, value in filters.model_dump(exclude_defaults=True).items():
        if isinstance(value, list):
            value = ", ".join(value)
        log.info("  %s: %s", name, value)


def export_records_json(records: Iterable[JobRecord]) -> str:
    """Export records as a JSON array string."""
    data = [r.model_dump(mode="json") for r in records]
    return json.dumps(data, indent=2)

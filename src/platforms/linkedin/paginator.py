"""Paginated listing extraction over LinkedIn search results.

Per page: pick the first container strategy with matches, extract each card
(card fields, then the detail panel), queue company refs for enrichment, then
follow the enabled "next" control. Per-record failures are logged and skipped.
"""

import asyncio
import logging
from typing import Any

from patchright.async_api import TimeoutError as PlaywrightTimeoutError

from src.browser.actions import scroll_until_stable, settle
from src.browser.extract import clean_text, find_all_first, find_first
from src.core.config import TimingConfig
from src.core.schemas import JobRecord
from src.enrichment.queue import EnrichmentQueue
from src.platforms.linkedin.parser import DetailFields, parse_card, parse_detail
from src.platforms.linkedin.searcher import RESULTS_PER_PAGE, is_platform_url, max_pages_for
from src.platforms.linkedin.selectors import (
    APPLY_BUTTON_SELECTORS,
    CARD_SELECTORS,
    DETAIL_CONTAINER_SELECTORS,
    NEXT_PAGE_SELECTORS,
)

logger = logging.getLogger(__name__)

EASY_APPLY_LABEL = "easy apply"
CARD_RENDER_WAIT_MS = 150


class ListingPaginator:
    """Walks result pages and emits JobRecords in page-then-position order."""

    def __init__(
        self,
        page: Any,
        queue: EnrichmentQueue | None = None,
        *,
        timing: TimingConfig | None = None,
        page_size: int = RESULTS_PER_PAGE,
        log: logging.Logger | None = None,
    ) -> None:
        self._page = page
        self._queue = queue
        self._timing = timing or TimingConfig()
        self._page_size = page_size
        self._log = log or logger

    async def run(self, search_url: str, max_count: int) -> list[JobRecord]:
        """Collect up to ``max_count`` records starting at ``search_url``."""
        max_pages = max_pages_for(max_count, self._page_size)
        records: list[JobRecord] = []
        if max_pages == 0:
            return records

        self._log.info("Scraping up to %d job listings (max %d pages)", max_count, max_pages)
        try:
            await self._page.goto(search_url, wait_until="domcontentloaded")
            await settle(self._timing.page_settle_s)
        except Exception as e:
            self._log.error("Could not open search results: %s", e)
            return records

        for page_num in range(1, max_pages + 1):
            try:
                await settle(self._timing.card_settle_s)
                await scroll_until_stable(self._page, CARD_SELECTORS)
                selector, cards = await find_all_first(self._page, CARD_SELECTORS)
            except Exception as e:
                self._log.warning("Could not read results page %d, stopping: %s", page_num, e)
                break
            if not cards:
                self._log.info("No job cards found on page %d, stopping", page_num)
                break
            self._log.info(
                "Page %d: found %d cards with selector '%s'", page_num, len(cards), selector,
            )

            for card in cards[: max_count - len(records)]:
                try:
                    record = await self._extract_record(card)
                except Exception as e:
                    self._log.warning("Error scraping job %d: %s", len(records) + 1, e)
                    self._log.debug("Record extraction traceback", exc_info=True)
                    continue
                records.append(record)
                self._log.info(
                    "Scraped %d/%d: %s at %s",
                    len(records), max_count, record.title, record.org_name,
                )

            if len(records) >= max_count:
                self._log.info("Reached target of %d jobs", max_count)
                break
            if page_num == max_pages:
                break

            next_button = await self._find_next_button()
            if next_button is None:
                self._log.info("No more pages available. Total jobs: %d", len(records))
                break
            self._log.info("Loading page %d", page_num + 1)
            try:
                await next_button.click()
                await settle(self._timing.page_settle_s)
            except Exception as e:
                self._log.warning("Could not load page %d, stopping: %s", page_num + 1, e)
                break

        return records

    async def _extract_record(self, card: Any) -> JobRecord:
        await card.scroll_into_view_if_needed()
        await self._page.wait_for_timeout(CARD_RENDER_WAIT_MS)
        fields = await parse_card(card)

        await card.click()
        # the panel stays mounted between cards; wait for it to re-render
        await settle(self._timing.detail_settle_s)
        detail = await self._read_detail_panel()
        apply_url = fields.link
        if detail is None:
            detail = DetailFields()
        elif fields.link:
            apply_url = await self._resolve_apply_url(fields.link)

        if detail.org_ref and self._queue is not None:
            self._queue.enqueue(detail.org_ref)
            self._queue.ensure_worker_running()

        return JobRecord(
            job_id=fields.job_id,
            title=fields.title,
            link=fields.link,
            apply_url=apply_url,
            location=fields.location,
            posted_at=detail.posted_at,
            description=detail.description,
            org_name=fields.org_name,
            org_ref=detail.org_ref,
        )

    async def _read_detail_panel(self) -> DetailFields | None:
        """Wait (bounded) for the detail panel; None when it never renders."""
        timeout_ms = self._timing.detail_wait_s * 1000
        for selector in DETAIL_CONTAINER_SELECTORS:
            try:
                el = await self._page.wait_for_selector(selector, timeout=timeout_ms)
            except Exception:
                continue
            if el is not None:
                return await parse_detail(self._page)
        self._log.debug("Detail panel did not render, using defaults")
        return None

    async def _resolve_apply_url(self, link: str) -> str:
        """Easy Apply keeps ``link``; external apply captures the redirect target."""
        try:
            button = await find_first(self._page, APPLY_BUTTON_SELECTORS)
            if button is None:
                return link
            label = clean_text(await button.text_content())
            if EASY_APPLY_LABEL in label.lower():
                return link
            return await self._capture_external_apply(button, link)
        except Exception:
            self._log.debug("Could not resolve apply URL", exc_info=True)
            return link

    async def _capture_external_apply(self, button: Any, link: str) -> str:
        timeout_ms = self._timing.apply_capture_s * 1000
        before = self._page.url
        popup_wait = asyncio.ensure_future(
            self._page.context.wait_for_event("page", timeout=timeout_ms),
        )
        try:
            await button.click()
            popup = await popup_wait
        except (PlaywrightTimeoutError, asyncio.TimeoutError):
            popup = None
        finally:
            if not popup_wait.done():
                popup_wait.cancel()

        if popup is not None:
            url = popup.url
            await popup.close()
            self._log.debug("Captured external apply URL: %s", url)
            return url or link

        current = self._page.url
        if current != before and not is_platform_url(current):
            self._log.debug("Captured external apply URL via navigation: %s", current)
            await self._page.go_back()
            await settle(self._timing.card_settle_s)
            return current

        self._log.debug("Could not capture external apply URL")
        return link

    async def _find_next_button(self) -> Any | None:
        """First next-page control that is not disabled."""
        for selector in NEXT_PAGE_SELECTORS:
            try:
                button = await self._page.query_selector(selector)
                if button is None:
                    continue
                disabled = await button.evaluate(
                    "el => el.disabled || el.getAttribute('aria-disabled') === 'true'",
                )
            except Exception:
                self._log.debug("Next selector '%s' raised", selector, exc_info=True)
                continue
            if not disabled:
                return button
        return None

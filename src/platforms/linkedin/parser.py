"""LinkedIn DOM parsing: result cards, the job detail panel, company pages.

Design rules:
  - Every field is read through an ordered extractor chain (first match wins).
  - Titles are split on '\\n' and the first line taken.
  - A missing field returns "" and never raises.
"""

import logging
from dataclasses import dataclass
from typing import Any

from src.browser.actions import settle
from src.browser.extract import (
    Extractor,
    attr_of,
    clean_text,
    first_match,
    own_attr,
    text_of,
    texts,
)
from src.core.config import TimingConfig
from src.core.schemas import OrgDetails
from src.platforms.linkedin.searcher import (
    absolute_url,
    build_job_url,
    company_ref,
    is_platform_url,
)
from src.platforms.linkedin.selectors import (
    COMPANY_ADDRESS_SELECTORS,
    COMPANY_DESCRIPTION_SELECTORS,
    COMPANY_INFO_ITEM_SELECTOR,
    COMPANY_LINK_SELECTORS,
    COMPANY_SELECTORS,
    COMPANY_WEBSITE_SELECTORS,
    DESCRIPTION_SELECTORS,
    JOB_ID_ATTRS,
    LOCATION_SELECTORS,
    POSTED_TIME_SELECTORS,
    TITLE_LINK_SELECTORS,
    TITLE_SELECTORS,
)

logger = logging.getLogger(__name__)

VERIFICATION_SUFFIX = " with verification"
POSTED_HINTS: tuple[str, ...] = ("ago", "hour", "minute", "day", "week", "month")

# --- Extractor chains ---

JOB_ID_CHAIN: tuple[Extractor, ...] = tuple(own_attr(a) for a in JOB_ID_ATTRS)
TITLE_CHAIN: tuple[Extractor, ...] = (
    *texts(TITLE_SELECTORS, first_line=True),
    *(attr_of(s, "aria-label") for s in TITLE_LINK_SELECTORS),
)
LINK_CHAIN: tuple[Extractor, ...] = tuple(attr_of(s, "href") for s in TITLE_LINK_SELECTORS)
COMPANY_CHAIN = texts(COMPANY_SELECTORS)
LOCATION_CHAIN = texts(LOCATION_SELECTORS)

DESCRIPTION_CHAIN = texts(DESCRIPTION_SELECTORS)
ORG_LINK_CHAIN: tuple[Extractor, ...] = tuple(attr_of(s, "href") for s in COMPANY_LINK_SELECTORS)

ORG_WEBSITE_CHAIN: tuple[Extractor, ...] = tuple(
    attr_of(s, "href") for s in COMPANY_WEBSITE_SELECTORS
)
ORG_DESCRIPTION_CHAIN = texts(COMPANY_DESCRIPTION_SELECTORS)
ORG_ADDRESS_CHAIN = texts(COMPANY_ADDRESS_SELECTORS)


@dataclass
class CardFields:
    """Fields readable from a result card without opening the detail panel."""

    job_id: str = ""
    title: str = ""
    org_name: str = ""
    location: str = ""
    link: str = ""


@dataclass
class DetailFields:
    """Fields readable from the detail panel after clicking a card."""

    description: str = ""
    posted_at: str = ""
    org_ref: str = ""


async def parse_card(card: Any) -> CardFields:
    """Extract identifier, title, org name, location and canonical link."""
    job_id = await first_match(card, JOB_ID_CHAIN)
    title = _strip_verification(await first_match(card, TITLE_CHAIN))
    org_name = await first_match(card, COMPANY_CHAIN)
    location = await first_match(card, LOCATION_CHAIN)

    href = await first_match(card, LINK_CHAIN)
    if href:
        link = absolute_url(href)
    elif job_id:
        link = build_job_url(job_id)
    else:
        link = ""

    return CardFields(
        job_id=job_id, title=title, org_name=org_name, location=location, link=link,
    )


async def parse_detail(page: Any) -> DetailFields:
    """Extract description, posted time and company link from the detail panel."""
    description = await first_match(page, DESCRIPTION_CHAIN)
    posted_at = await _parse_posted_time(page)
    href = await first_match(page, ORG_LINK_CHAIN)
    return DetailFields(
        description=description,
        posted_at=posted_at,
        org_ref=company_ref(href) if href else "",
    )


async def _parse_posted_time(page: Any) -> str:
    """First posted-time candidate that reads like a relative time."""
    for selector in POSTED_TIME_SELECTORS:
        try:
            elements = await page.query_selector_all(selector)
            for el in elements:
                text = clean_text(await el.text_content())
                if any(hint in text.lower() for hint in POSTED_HINTS):
                    return text
        except Exception:
            logger.debug("Posted time selector '%s' raised", selector, exc_info=True)
    return ""


def _strip_verification(title: str) -> str:
    if title.endswith(VERIFICATION_SUFFIX):
        return title[: -len(VERIFICATION_SUFFIX)]
    return title


def _is_external_website(href: str) -> bool:
    return href.startswith("http") and not is_platform_url(href)


class LinkedInOrgFetcher:
    """Fetches OrgDetails by visiting the company page on a dedicated surface."""

    NAVIGATION_TIMEOUT_MS = 15000

    def __init__(
        self,
        page: Any,
        *,
        timing: TimingConfig | None = None,
        log: logging.Logger | None = None,
    ) -> None:
        self._page = page
        self._timing = timing or TimingConfig()
        self._log = log or logger

    async def fetch(self, org_ref: str) -> OrgDetails:
        """Navigate to ``org_ref`` and extract the company fields.

        Navigation errors propagate; the enrichment queue caches them as empty.
        """
        self._log.info("Fetching company: %s", org_ref.rstrip("/").split("/")[-1])
        await self._page.goto(
            org_ref, wait_until="domcontentloaded", timeout=self.NAVIGATION_TIMEOUT_MS,
        )
        await settle(self._timing.org_settle_s)

        website = await first_match(self._page, ORG_WEBSITE_CHAIN, accept=_is_external_website)
        description = await first_match(self._page, ORG_DESCRIPTION_CHAIN)
        employee_count, industries = await self._parse_info_items()
        address = await first_match(self._page, ORG_ADDRESS_CHAIN, accept=lambda t: "," in t)

        return OrgDetails(
            website=website,
            description=description,
            address=address,
            employee_count=employee_count,
            industries=industries,
        )

    async def _parse_info_items(self) -> tuple[str, str]:
        """Employee count and industry from the top-card info list."""
        employee_count = ""
        industries = ""
        try:
            items = await self._page.query_selector_all(COMPANY_INFO_ITEM_SELECTOR)
        except Exception:
            self._log.debug("Company info items not found", exc_info=True)
            return employee_count, industries

        for item in items:
            text = clean_text(await item.text_content())
            if not text:
                continue
            lowered = text.lower()
            if "employee" in lowered:
                employee_count = employee_count or text
            elif "followers" not in lowered and 5 < len(text) < 100 and not industries:
                industries = text
        return employee_count, industries

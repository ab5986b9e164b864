"""LinkedIn URL builder and pagination helpers.

Pure functions, no browser dependency.
"""

import logging
import math
from collections.abc import Iterable
from urllib.parse import quote_plus, urlencode, urlparse

from src.core.config import SearchFilters

logger = logging.getLogger(__name__)

LINKEDIN_BASE = "https://www.linkedin.com"
LOGIN_URL = f"{LINKEDIN_BASE}/login"
FEED_URL = f"{LINKEDIN_BASE}/feed/"
JOBS_SEARCH_URL = f"{LINKEDIN_BASE}/jobs/search"

RESULTS_PER_PAGE = 25
QUERY_SEPARATOR = ","

# Address fragments that mean "logged in" / "security challenge".
AUTHENTICATED_URL_PATTERNS: tuple[str, ...] = ("/feed", "/mynetwork", "/jobs")
CHALLENGE_URL_PATTERNS: tuple[str, ...] = ("challenge", "checkpoint")

# --- Mapping dicts (URL concern) ---

DATE_POSTED_MAP: dict[str, str] = {
    "any-time": "",
    "past-24-hours": "r86400",
    "past-week": "r604800",
    "past-month": "r2592000",
}

EXPERIENCE_LEVEL_MAP: dict[str, str] = {
    "internship": "1",
    "entry-level": "2",
    "associate": "3",
    "mid-senior": "4",
    "director": "5",
    "executive": "6",
}

JOB_TYPE_MAP: dict[str, str] = {
    "full-time": "F",
    "part-time": "P",
    "contract": "C",
    "temporary": "T",
    "volunteer": "V",
    "internship": "I",
    "other": "O",
}

REMOTE_MAP: dict[str, str] = {
    "on-site": "1",
    "remote": "2",
    "hybrid": "3",
}


def build_query(filters: SearchFilters) -> str:
    """Map filters to a LinkedIn query string.

    Each non-empty field contributes exactly one parameter. Multi-valued
    fields are mapped element-wise and comma-joined. ``any-time`` is absent.
    """
    params: dict[str, str] = {}

    if filters.keywords and filters.keywords.strip():
        params["keywords"] = filters.keywords.strip()

    if filters.location and filters.location.strip():
        params["location"] = filters.location.strip()

    date_code = DATE_POSTED_MAP.get(filters.date_posted, "")
    if date_code:
        params["f_TPR"] = date_code

    exp_codes = _map_values(filters.experience_level, EXPERIENCE_LEVEL_MAP, "experience_level")
    if exp_codes:
        params["f_E"] = QUERY_SEPARATOR.join(exp_codes)

    jt_codes = _map_values(filters.job_type, JOB_TYPE_MAP, "job_type")
    if jt_codes:
        params["f_JT"] = QUERY_SEPARATOR.join(jt_codes)

    wt_codes = _map_values(filters.remote, REMOTE_MAP, "remote")
    if wt_codes:
        params["f_WT"] = QUERY_SEPARATOR.join(wt_codes)

    return urlencode(params, quote_via=quote_plus)


def build_url(filters: SearchFilters) -> str:
    """Build the fully qualified jobs search URL for ``filters``."""
    query = build_query(filters)
    return f"{JOBS_SEARCH_URL}?{query}" if query else JOBS_SEARCH_URL


def max_pages_for(max_count: int, page_size: int = RESULTS_PER_PAGE) -> int:
    """Upper bound on result pages to visit for ``max_count`` records."""
    if max_count <= 0:
        return 0
    return math.ceil(max_count / page_size)


def build_job_url(job_id: str) -> str:
    """Build a canonical LinkedIn job detail URL."""
    return f"{LINKEDIN_BASE}/jobs/view/{job_id}/"


def absolute_url(href: str) -> str:
    """Drop query/fragment and prepend the domain to relative links."""
    href = href.split("?")[0].split("#")[0]
    if href.startswith("/"):
        return f"{LINKEDIN_BASE}{href}"
    return href


def company_ref(href: str) -> str:
    """Normalize a company link to the canonical company page URL."""
    url = absolute_url(href.strip())
    if url.endswith("/"):
        url = url[:-1]
    if url.endswith("/life"):
        url = url[: -len("/life")]
    return url


def is_authenticated_url(url: str) -> bool:
    return any(p in url for p in AUTHENTICATED_URL_PATTERNS)


def is_challenge_url(url: str) -> bool:
    return any(p in url for p in CHALLENGE_URL_PATTERNS)


def is_platform_url(url: str) -> bool:
    host = urlparse(url).netloc.lower()
    return host == "linkedin.com" or host.endswith(".linkedin.com")


def _map_values(
    values: Iterable[str],
    mapping: dict[str, str],
    field_name: str,
) -> list[str]:
    """Map user-facing filter values to LinkedIn URL codes.

    Unknown values are logged and skipped (never crash).
    """
    codes: list[str] = []
    for v in values:
        key = v.lower().strip()
        code = mapping.get(key)
        if code is None:
            logger.warning("Unknown %s value '%s', skipping", field_name, v)
        else:
            codes.append(code)
    return codes

"""Timing and scrolling primitives shared by the login and listing flows.

Every wait is a jittered settle interval, so no wait is unbounded and none is
exactly periodic. Result lists render lazily, so they are scrolled in steps
until the card count stops growing.
"""

import asyncio
import logging
import random
from collections.abc import Iterable
from typing import Any

from src.browser.extract import find_all_first

logger = logging.getLogger(__name__)

MAX_SCROLL_ATTEMPTS = 5
SCROLL_DELAY_FLOOR = 1.0
SETTLE_JITTER = 0.3
SCROLL_TO_BOTTOM = "window.scrollTo(0, document.body.scrollHeight)"


async def random_sleep(min_s: float, max_s: float) -> float:
    """Sleep a uniformly random duration in [min_s, max_s] and return it.

    Negative bounds are clamped to zero and an inverted range collapses to min_s.
    """
    low = max(min_s, 0.0)
    duration = random.uniform(low, max(max_s, low))
    await asyncio.sleep(duration)
    return duration


async def settle(seconds: float) -> float:
    """Wait a settle interval so asynchronous rendering can finish."""
    return await random_sleep(seconds, seconds * (1.0 + SETTLE_JITTER))


async def scroll_until_stable(
    page: Any,
    card_selectors: Iterable[str],
    *,
    max_attempts: int = MAX_SCROLL_ATTEMPTS,
    delay_s: float = SCROLL_DELAY_FLOOR,
) -> int:
    """Scroll to the bottom until two consecutive card counts match.

    Returns the last card count seen (0 when nothing rendered).
    """
    selectors = tuple(card_selectors)
    delay_s = max(delay_s, SCROLL_DELAY_FLOOR)
    seen = -1

    for attempt in range(1, max_attempts + 1):
        _, cards = await find_all_first(page, selectors)
        logger.debug("Scroll %d/%d: %d cards", attempt, max_attempts, len(cards))
        if len(cards) == seen:
            break
        seen = len(cards)
        await page.evaluate(SCROLL_TO_BOTTOM)
        await settle(delay_s)

    return max(seen, 0)

"""First-match-wins extraction over ordered chains of extractor callables.

An extractor is a small async function ``(surface) -> str | None``. A chain is
a tuple of extractors tried in order; the first non-empty result wins. Chains
keep the fragility of markup-dependent lookups explicit: adding a fallback is
appending to a tuple, and each extractor can be tested in isolation.

Every extractor swallows its own lookup errors and returns None, so a broken
selector only ever costs one fallback step.
"""

import logging
from collections.abc import Awaitable, Callable, Iterable
from typing import Any, Protocol, runtime_checkable

logger = logging.getLogger(__name__)


@runtime_checkable
class ElementLike(Protocol):
    """Minimal element/page interface so tests can use AsyncMock instead of patchright."""

    async def query_selector(self, selector: str) -> "ElementLike | None": ...
    async def get_attribute(self, name: str) -> str | None: ...
    async def text_content(self) -> str | None: ...


Extractor = Callable[[Any], Awaitable[str | None]]


def clean_text(text: str | None) -> str:
    """Strip and collapse runs of whitespace."""
    if not text:
        return ""
    return " ".join(text.split())


def text_of(selector: str, *, first_line: bool = False) -> Extractor:
    """Text content of the first element matching ``selector``."""

    async def _extract(surface: Any) -> str | None:
        try:
            el = await surface.query_selector(selector)
            if el is None:
                return None
            raw = await el.text_content()
        except Exception:
            logger.debug("Selector '%s' raised, trying next", selector, exc_info=True)
            return None
        if raw and first_line:
            raw = raw.strip().split("\n")[0]
        return clean_text(raw) or None

    _extract.__name__ = f"text_of({selector!r})"
    return _extract


def attr_of(selector: str, name: str) -> Extractor:
    """Attribute ``name`` of the first element matching ``selector``."""

    async def _extract(surface: Any) -> str | None:
        try:
            el = await surface.query_selector(selector)
            if el is None:
                return None
            value = await el.get_attribute(name)
        except Exception:
            logger.debug("Selector '%s' raised, trying next", selector, exc_info=True)
            return None
        return value.strip() if value and value.strip() else None

    _extract.__name__ = f"attr_of({selector!r}, {name!r})"
    return _extract


def own_attr(name: str) -> Extractor:
    """Attribute ``name`` of the surface itself."""

    async def _extract(surface: Any) -> str | None:
        try:
            value = await surface.get_attribute(name)
        except Exception:
            logger.debug("Attribute '%s' raised, trying next", name, exc_info=True)
            return None
        return value.strip() if value and value.strip() else None

    _extract.__name__ = f"own_attr({name!r})"
    return _extract


def texts(selectors: Iterable[str], *, first_line: bool = False) -> tuple[Extractor, ...]:
    """Build a chain of ``text_of`` extractors from a selector tuple."""
    return tuple(text_of(s, first_line=first_line) for s in selectors)


async def first_match(
    surface: Any,
    chain: Iterable[Extractor],
    default: str = "",
    *,
    accept: Callable[[str], bool] | None = None,
) -> str:
    """Run ``chain`` in order and return the first non-empty accepted value."""
    for extractor in chain:
        value = await extractor(surface)
        if value and (accept is None or accept(value)):
            return value
    return default


async def find_first(surface: Any, selectors: Iterable[str]) -> Any | None:
    """Return the first element matching any selector in order."""
    for selector in selectors:
        try:
            el = await surface.query_selector(selector)
            if el is not None:
                return el
        except Exception:
            logger.debug("Selector '%s' raised, trying next", selector, exc_info=True)
    return None


async def find_all_first(surface: Any, selectors: Iterable[str]) -> tuple[str, list[Any]]:
    """Return (selector, elements) for the first selector with any match.

    Strategies are never mixed: elements all come from one selector.
    """
    for selector in selectors:
        try:
            elements = await surface.query_selector_all(selector)
        except Exception:
            logger.debug("Selector '%s' raised, trying next", selector, exc_info=True)
            continue
        if elements:
            return selector, list(elements)
    return "", []

"""Tests for paginated listing extraction (mock results page, no browser)."""

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from patchright.async_api import TimeoutError as PlaywrightTimeoutError

from src.core.config import TimingConfig
from src.platforms.linkedin.paginator import ListingPaginator
from src.platforms.linkedin.selectors import CARD_SELECTORS, NEXT_PAGE_SELECTORS

SEARCH_URL = "https://www.linkedin.com/jobs/search?keywords=Python"
APPLY_SELECTOR = ".jobs-apply-button"
COMPANY_LINK = 'a[href*="/company/"]'
DETAIL_CONTAINER = ".jobs-search__job-details--container"


def _el(text: str | None = None, attrs: dict[str, str] | None = None) -> AsyncMock:
    el = AsyncMock()
    el.text_content.return_value = text
    el.get_attribute.side_effect = lambda name: (attrs or {}).get(name)
    return el


def _card(job_id: str, *, company: str = "acme", broken: bool = False) -> AsyncMock:
    """Result card; ``company`` becomes the detail panel's company link."""
    mapping = {
        "a span strong": _el(f"Engineer {job_id}"),
        'a[href*="/jobs/view/"]': _el(attrs={"href": f"/jobs/view/{job_id}/?trk=x"}),
        ".job-card-container__primary-description": _el(company.title()),
        ".job-card-container__metadata-item": _el("Remote"),
    }
    card = AsyncMock()
    card.query_selector = AsyncMock(side_effect=lambda s: mapping.get(s))
    card.get_attribute.side_effect = lambda name: (
        job_id if name == "data-occludable-job-id" else None
    )
    card.company = company
    if broken:
        card.scroll_into_view_if_needed.side_effect = RuntimeError("element detached")
    return card


class FakeResultsPage:
    """Search results page with ``pages`` of cards and a working detail panel."""

    def __init__(
        self,
        pages: list[list[AsyncMock]],
        *,
        next_disabled_on_last: bool = True,
        detail_renders: bool = True,
        apply_label: str | None = "Easy Apply",
    ) -> None:
        self.url = "about:blank"
        self._pages = pages
        self._index = 0
        self._selected: AsyncMock | None = None
        self._detail_renders = detail_renders
        self._next_disabled_on_last = next_disabled_on_last

        self.goto = AsyncMock(side_effect=self._goto)
        self.wait_for_timeout = AsyncMock()
        self.evaluate = AsyncMock()
        self.go_back = AsyncMock()
        self.context = MagicMock()
        self.context.wait_for_event = AsyncMock(side_effect=PlaywrightTimeoutError("no popup"))

        self.next_button = AsyncMock()
        self.next_button.click.side_effect = self._next
        self.next_button.evaluate.side_effect = self._next_disabled

        self.apply_button = AsyncMock() if apply_label is not None else None
        if self.apply_button is not None:
            self.apply_button.text_content.return_value = apply_label

        for page_cards in pages:
            for card in page_cards:
                card.click.side_effect = self._selector_for(card)

    async def _goto(self, url: str, **kwargs: object) -> None:
        self.url = url

    async def _next(self) -> None:
        self._index += 1
        self._selected = None

    async def _next_disabled(self, script: str) -> bool:
        return self._next_disabled_on_last and self._index >= len(self._pages) - 1

    def _selector_for(self, card: AsyncMock):  # type: ignore[no-untyped-def]
        async def _click(*args: object, **kwargs: object) -> None:
            self._selected = card
        return _click

    async def query_selector_all(self, selector: str) -> list[AsyncMock]:
        if selector == CARD_SELECTORS[0] and self._index < len(self._pages):
            return list(self._pages[self._index])
        return []

    async def query_selector(self, selector: str) -> AsyncMock | None:
        if selector == NEXT_PAGE_SELECTORS[0]:
            return self.next_button
        if self._selected is None:
            return None
        if selector == ".jobs-description__content":
            return _el(f"Description of {self._selected.company}")
        if selector == COMPANY_LINK:
            return _el(attrs={"href": f"/company/{self._selected.company}/life/"})
        if selector == APPLY_SELECTOR:
            return self.apply_button
        return None

    async def wait_for_selector(self, selector: str, **kwargs: object) -> AsyncMock:
        if self._detail_renders and selector == DETAIL_CONTAINER:
            return AsyncMock()
        msg = f"Timeout waiting for {selector}"
        raise PlaywrightTimeoutError(msg)


@pytest.fixture(autouse=True)
def _patch_sleep() -> "pytest.Generator[None]":  # type: ignore[type-arg]
    with patch.object(asyncio, "sleep", new_callable=AsyncMock):
        yield


def _paginator(page: FakeResultsPage, queue: MagicMock | None = None) -> ListingPaginator:
    return ListingPaginator(page, queue, timing=TimingConfig(), page_size=3)


# ---------------------------------------------------------------------------
# TestRun
# ---------------------------------------------------------------------------


class TestRun:
    async def test_zero_budget_no_navigation(self) -> None:
        page = FakeResultsPage([[_card("1")]])
        assert await _paginator(page).run(SEARCH_URL, 0) == []
        page.goto.assert_not_awaited()

    async def test_no_cards_returns_empty(self) -> None:
        page = FakeResultsPage([[]])
        records = await _paginator(page).run(SEARCH_URL, 10)
        assert records == []
        page.goto.assert_awaited_once()

    async def test_single_page_fields(self) -> None:
        page = FakeResultsPage([[_card("101", company="acme")]])
        records = await _paginator(page).run(SEARCH_URL, 1)

        assert len(records) == 1
        r = records[0]
        assert r.job_id == "101"
        assert r.title == "Engineer 101"
        assert r.link == "https://www.linkedin.com/jobs/view/101/"
        assert r.apply_url == r.link
        assert r.org_name == "Acme"
        assert r.location == "Remote"
        assert r.description == "Description of acme"
        assert r.org_ref == "https://www.linkedin.com/company/acme"
        assert r.org_website == ""

    async def test_walks_pages_in_order(self) -> None:
        pages = [[_card("1"), _card("2"), _card("3")], [_card("4"), _card("5"), _card("6")]]
        page = FakeResultsPage(pages)
        records = await _paginator(page).run(SEARCH_URL, 5)

        assert [r.job_id for r in records] == ["1", "2", "3", "4", "5"]
        page.next_button.click.assert_awaited_once()

    async def test_never_exceeds_budget(self) -> None:
        page = FakeResultsPage([[_card(str(i)) for i in range(3)]])
        records = await _paginator(page).run(SEARCH_URL, 2)
        assert len(records) == 2

    async def test_page_bound_respected(self) -> None:
        pages = [[_card("1")], [_card("2")], [_card("3")], [_card("4")]]
        page = FakeResultsPage(pages, next_disabled_on_last=False)
        # 3 per page, budget 6 -> at most 2 pages
        records = await _paginator(page).run(SEARCH_URL, 6)
        assert [r.job_id for r in records] == ["1", "2"]

    async def test_disabled_next_stops(self) -> None:
        page = FakeResultsPage([[_card("1")]])
        records = await _paginator(page).run(SEARCH_URL, 6)
        assert len(records) == 1
        page.next_button.click.assert_not_awaited()

    async def test_failing_card_skipped(self) -> None:
        page = FakeResultsPage([[_card("1"), _card("2", broken=True), _card("3")]])
        records = await _paginator(page).run(SEARCH_URL, 3)
        assert [r.job_id for r in records] == ["1", "3"]

    async def test_detail_panel_missing_uses_defaults(self) -> None:
        page = FakeResultsPage([[_card("1")]], detail_renders=False)
        queue = MagicMock()
        records = await _paginator(page, queue).run(SEARCH_URL, 1)

        assert records[0].description == ""
        assert records[0].org_ref == ""
        assert records[0].apply_url == records[0].link
        queue.enqueue.assert_not_called()

    async def test_org_refs_enqueued(self) -> None:
        page = FakeResultsPage([[_card("1", company="acme"), _card("2", company="globex")]])
        queue = MagicMock()
        await _paginator(page, queue).run(SEARCH_URL, 2)

        enqueued = [c.args[0] for c in queue.enqueue.call_args_list]
        assert enqueued == [
            "https://www.linkedin.com/company/acme",
            "https://www.linkedin.com/company/globex",
        ]
        assert queue.ensure_worker_running.call_count == 2


# ---------------------------------------------------------------------------
# TestApplyUrl
# ---------------------------------------------------------------------------


class TestApplyUrl:
    async def test_no_apply_button_keeps_link(self) -> None:
        page = FakeResultsPage([[_card("1")]], apply_label=None)
        records = await _paginator(page).run(SEARCH_URL, 1)
        assert records[0].apply_url == "https://www.linkedin.com/jobs/view/1/"

    async def test_external_popup_captured_and_closed(self) -> None:
        page = FakeResultsPage([[_card("1")]], apply_label="Apply")
        popup = AsyncMock()
        popup.url = "https://careers.acme.example/jobs/1"
        page.context.wait_for_event = AsyncMock(return_value=popup)

        records = await _paginator(page).run(SEARCH_URL, 1)

        assert records[0].apply_url == "https://careers.acme.example/jobs/1"
        popup.close.assert_awaited_once()
        page.apply_button.click.assert_awaited_once()

    async def test_same_tab_redirect_captured(self) -> None:
        page = FakeResultsPage([[_card("1")]], apply_label="Apply")

        async def _navigate_away() -> None:
            page.url = "https://jobs.globex.example/apply/1"

        page.apply_button.click.side_effect = _navigate_away
        records = await _paginator(page).run(SEARCH_URL, 1)

        assert records[0].apply_url == "https://jobs.globex.example/apply/1"
        page.go_back.assert_awaited_once()

    async def test_nothing_captured_keeps_link(self) -> None:
        page = FakeResultsPage([[_card("1")]], apply_label="Apply")
        records = await _paginator(page).run(SEARCH_URL, 1)
        assert records[0].apply_url == records[0].link
        page.go_back.assert_not_awaited()


# ---------------------------------------------------------------------------
# TestDetailPanel
# ---------------------------------------------------------------------------


class LaggingResultsPage(FakeResultsPage):
    """Detail panel keeps showing the previous card until the page settles."""

    def __init__(self, pages: list[list[AsyncMock]], **kwargs: object) -> None:
        self._rendering: AsyncMock | None = None
        super().__init__(pages, **kwargs)  # type: ignore[arg-type]

    def _selector_for(self, card: AsyncMock):  # type: ignore[no-untyped-def]
        async def _click(*args: object, **kwargs: object) -> None:
            self._rendering = card
        return _click

    async def render(self, *args: object) -> None:
        if self._rendering is not None:
            self._selected, self._rendering = self._rendering, None


class TestDetailPanel:
    async def test_panel_read_after_rerender(self) -> None:
        cards = [
            _card("1", company="acme"),
            _card("2", company="globex"),
            _card("3", company="initech"),
        ]
        page = LaggingResultsPage([cards])
        with patch(
            "src.platforms.linkedin.paginator.settle", new_callable=AsyncMock,
        ) as mock_settle:
            mock_settle.side_effect = page.render
            records = await _paginator(page).run(SEARCH_URL, 3)

        assert [r.org_ref.rsplit("/", 1)[-1] for r in records] == ["acme", "globex", "initech"]
        assert [r.description for r in records] == [
            "Description of acme", "Description of globex", "Description of initech",
        ]

    async def test_detail_settle_interval_used(self) -> None:
        page = FakeResultsPage([[_card("1")]])
        timing = TimingConfig(detail_settle_s=2.5)
        with patch(
            "src.platforms.linkedin.paginator.settle", new_callable=AsyncMock,
        ) as mock_settle:
            await ListingPaginator(page, timing=timing, page_size=3).run(SEARCH_URL, 1)
        assert 2.5 in [c.args[0] for c in mock_settle.call_args_list]


# ---------------------------------------------------------------------------
# TestPartialResults
# ---------------------------------------------------------------------------


class TestPartialResults:
    async def test_empty_second_page_keeps_first(self) -> None:
        pages = [[_card("1"), _card("2"), _card("3")], []]
        page = FakeResultsPage(pages, next_disabled_on_last=False)
        records = await _paginator(page).run(SEARCH_URL, 6)

        assert [r.job_id for r in records] == ["1", "2", "3"]
        page.next_button.click.assert_awaited_once()

    async def test_next_click_failure_returns_collected(self) -> None:
        pages = [[_card("1")], [_card("2")]]
        page = FakeResultsPage(pages)
        page.next_button.click.side_effect = PlaywrightTimeoutError("next button detached")

        records = await _paginator(page).run(SEARCH_URL, 6)

        assert [r.job_id for r in records] == ["1"]

    async def test_scroll_failure_on_later_page_returns_collected(self) -> None:
        pages = [[_card("1")], [_card("2")]]
        page = FakeResultsPage(pages)

        async def _evaluate(script: str) -> None:
            if page._index == 1:
                msg = "Execution context was destroyed"
                raise RuntimeError(msg)

        page.evaluate.side_effect = _evaluate
        records = await _paginator(page).run(SEARCH_URL, 6)

        assert [r.job_id for r in records] == ["1"]

    async def test_failed_navigation_returns_empty(self) -> None:
        page = FakeResultsPage([[_card("1")]])
        page.goto.side_effect = PlaywrightTimeoutError("Timeout 30000ms exceeded")

        assert await _paginator(page).run(SEARCH_URL, 5) == []

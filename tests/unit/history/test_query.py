"""Tests for search queries and the debounced HistoryBrowser."""

import asyncio

import pytest

from clipstash.config.schema import SearchConfig
from clipstash.core.types import ContentType
from clipstash.history.query import (
    HistoryBrowser,
    SearchMode,
    SearchQuery,
    compile_search_pattern,
    run_query,
)
from clipstash.history.store import HistoryStore
from clipstash.history.types import ClipboardItem, FilePayload, LinkPayload


@pytest.fixture
def filled(store: HistoryStore, clock) -> HistoryStore:
    for text in ["order 1234", "ORDER 99", "hello world", "résumé draft"]:
        clock.advance(1)
        store.add_text(text)
    clock.advance(1)
    store.insert(ClipboardItem.create(FilePayload(("/tmp/a.log", "/tmp/b.txt")), now=store.now()))
    clock.advance(1)
    store.insert(ClipboardItem.create(LinkPayload("https://example.com/order"), now=store.now()))
    return store


def texts(items: list[ClipboardItem]) -> list[str | None]:
    return [item.text_content for item in items]


class TestCompileSearchPattern:
    def test_invalid_pattern_is_none(self) -> None:
        assert compile_search_pattern("([unclosed") is None

    def test_case_insensitive(self) -> None:
        pattern = compile_search_pattern("abc")
        assert pattern is not None
        assert pattern.search("xABCx")

    def test_cached(self) -> None:
        assert compile_search_pattern(r"\d+") is compile_search_pattern(r"\d+")


class TestRunQuery:
    def test_substring(self, filled: HistoryStore) -> None:
        result = run_query(filled, SearchQuery(text="resume"))
        assert texts(result) == ["résumé draft"]

    def test_regex(self, filled: HistoryStore) -> None:
        result = run_query(filled, SearchQuery(text=r"order \d{3,}", mode=SearchMode.REGEX))
        assert texts(result) == ["order 1234"]

    def test_regex_is_case_insensitive(self, filled: HistoryStore) -> None:
        result = run_query(filled, SearchQuery(text=r"^order \d+$", mode=SearchMode.REGEX))
        assert texts(result) == ["ORDER 99", "order 1234"]

    def test_regex_matches_file_paths(self, filled: HistoryStore) -> None:
        result = run_query(filled, SearchQuery(text=r"\.log$", mode=SearchMode.REGEX))
        assert [item.content_type for item in result] == [ContentType.FILE]

    def test_invalid_regex_matches_nothing(self, filled: HistoryStore) -> None:
        assert run_query(filled, SearchQuery(text="(", mode=SearchMode.REGEX)) == []

    def test_regex_with_type_filter_and_limit(self, filled: HistoryStore) -> None:
        query = SearchQuery(text="order", mode=SearchMode.REGEX, content_type=ContentType.TEXT, limit=1)
        assert texts(run_query(filled, query)) == ["ORDER 99"]

    def test_empty_regex_returns_everything(self, filled: HistoryStore) -> None:
        assert len(run_query(filled, SearchQuery(mode=SearchMode.REGEX))) == 6


class TestHistoryBrowser:
    @pytest.mark.asyncio
    async def test_latest_query_wins(self, filled: HistoryStore) -> None:
        published: list[tuple[SearchQuery, list[ClipboardItem]]] = []
        browser = HistoryBrowser(
            filled,
            lambda query, items: published.append((query, items)),
            SearchConfig(debounce=0.02, max_results=10),
        )

        browser.search(SearchQuery(text="o"))
        browser.search(SearchQuery(text="or"))
        browser.search(SearchQuery(text="hello"))
        await browser.wait()

        assert len(published) == 1
        query, items = published[0]
        assert query.text == "hello"
        assert query.limit == 10
        assert texts(items) == ["hello world"]
        assert browser.dropped == 2
        assert browser.last_query == query

    @pytest.mark.asyncio
    async def test_async_result_handler(self, filled: HistoryStore) -> None:
        published: list[int] = []

        async def on_results(query: SearchQuery, items: list[ClipboardItem]) -> None:
            await asyncio.sleep(0)
            published.append(len(items))

        browser = HistoryBrowser(filled, on_results, SearchConfig(debounce=0, max_results=2))
        browser.search(SearchQuery())
        await browser.wait()

        assert published == [2]

    @pytest.mark.asyncio
    async def test_cancel(self, filled: HistoryStore) -> None:
        published: list[SearchQuery] = []
        browser = HistoryBrowser(
            filled, lambda query, items: published.append(query), SearchConfig(debounce=0.02)
        )

        browser.search(SearchQuery(text="x"))
        browser.cancel()
        await asyncio.sleep(0.05)

        assert published == []

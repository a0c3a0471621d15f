"""End-to-end: pasteboard changes through rules and retention into search and stats."""

import asyncio
import time

import pytest

from clipstash.capture.monitor import CaptureMonitor, MonitorState
from clipstash.capture.paste_stack import PasteMode, PasteStack
from clipstash.config.schema import CaptureConfig, HistoryConfig, SearchConfig
from clipstash.core.types import ContentType, Representation
from clipstash.history.analytics import AnalyticsAggregator
from clipstash.history.grouping import group_by_time
from clipstash.history.query import HistoryBrowser, SearchMode, SearchQuery
from clipstash.history.store import HistoryStore
from clipstash.rules.storage import RuleStorage
from clipstash.rules.types import TransformKind
from clipstash.snippets.storage import SnippetStore, resolve_template
from clipstash.storage.database import Database


async def wait_until(predicate, timeout: float = 3.0) -> None:
    deadline = time.monotonic() + timeout
    while not predicate():
        if time.monotonic() > deadline:
            raise AssertionError("condition not reached in time")
        await asyncio.sleep(0.01)


@pytest.fixture
def pipeline_store(db: Database, clock) -> HistoryStore:
    return HistoryStore(db, HistoryConfig(max_history_count=5, retention_days=0), clock=clock)


@pytest.fixture
def rules(db: Database) -> RuleStorage:
    storage = RuleStorage(db)
    storage.seed_defaults()
    return storage


class TestCapturePipeline:
    @pytest.mark.asyncio
    async def test_capture_flow(
        self, pasteboard, pipeline_store: HistoryStore, rules: RuleStorage, clock
    ) -> None:
        """Copies flow through exclusions, default rules, dedup and the count cap."""
        store = pipeline_store
        monitor = CaptureMonitor(pasteboard, store, CaptureConfig(), rules=rules.enabled_rules)
        await monitor.prime()

        async def copy(text: str, bundle: str | None = None, app: str | None = None) -> None:
            clock.advance(1)
            pasteboard.put_text(text, bundle, app)
            await monitor.tick()

        await copy("\x1b[32mbuild ok\x1b[0m", "com.apple.Terminal", "Terminal")
        await copy("secret-password", "com.1password.1password", "1Password")
        await copy("https://example.com/?utm_source=x", "com.apple.Safari", "Safari")
        await copy("https://example.com/?utm_source=x", "com.apple.Safari", "Safari")
        await copy("Café notes", "com.apple.Notes", "Notes")

        items = store.fetch()
        assert [i.text_content for i in items] == [
            "Café notes",
            "https://example.com/?utm_source=x",
            "build ok",
        ]
        assert items[1].content_type == ContentType.LINK
        assert items[2].source_app_name == "Terminal"

        # Rules are re-read per capture, so enabling one takes effect at once
        tracking = next(
            r for r in rules.list_rules() if r.transform is TransformKind.STRIP_TRACKING_PARAMS
        )
        rules.toggle(tracking.id)
        await copy("https://shop.example/p?id=1&gclid=zz", "com.apple.Safari", "Safari")
        assert store.item_at(0).text_content == "https://shop.example/p?id=1"

        for n in range(4):
            await copy(f"filler {n}")
        assert store.count() == 5
        assert store.fetch(search_text="build") == []

    @pytest.mark.asyncio
    async def test_polling_loop_captures_live_changes(
        self, pasteboard, pipeline_store: HistoryStore
    ) -> None:
        pasteboard.put_text("already there")
        monitor = CaptureMonitor(pasteboard, pipeline_store, CaptureConfig(poll_interval=0.01))
        monitor.start()
        await asyncio.sleep(0.05)

        pasteboard.put_text("copied while watching")
        await wait_until(lambda: pipeline_store.count() == 1)
        await monitor.stop()

        assert pipeline_store.item_at(0).text_content == "copied while watching"

    @pytest.mark.asyncio
    async def test_browse_pin_and_copy_out(
        self, pasteboard, pipeline_store: HistoryStore, clock
    ) -> None:
        store = pipeline_store
        monitor = CaptureMonitor(pasteboard, store, CaptureConfig(resume_delay=0.05))
        await monitor.prime()
        for text in ["alpha", "beta", "gamma"]:
            clock.advance(60)
            pasteboard.put_text(text)
            await monitor.tick()
        pasteboard.put({Representation.FILES: b"/docs/alpha.pdf"})
        await monitor.tick()

        results: list[list[str]] = []
        browser = HistoryBrowser(
            store,
            lambda query, items: results.append([i.preview for i in items]),
            SearchConfig(debounce=0.01),
        )
        browser.search(SearchQuery(text="alp"))
        browser.search(SearchQuery(text="alpha"))
        await browser.wait()
        browser.search(SearchQuery(text="^(beta|gamma)$", mode=SearchMode.REGEX))
        await browser.wait()

        assert results == [["1 file", "alpha"], ["gamma", "beta"]]

        alpha = store.fetch(search_text="alpha", filter_type=ContentType.TEXT)[0]
        store.toggle_pin(alpha.id)
        sections = group_by_time(store.fetch(), now=store.now())
        assert sections[0].id == "pinned"
        assert [i.text_content for i in sections[0].items] == ["alpha"]

        await monitor.copy_out(alpha)
        assert monitor.state is MonitorState.SUSPENDED
        assert await monitor.tick() is None
        await wait_until(lambda: monitor.state is MonitorState.ACTIVE)

        assert store.count() == 4
        reused = AnalyticsAggregator(store).most_reused_items()
        assert [i.id for i in reused] == [alpha.id]

    @pytest.mark.asyncio
    async def test_paste_stack_collects_and_replays(
        self, pasteboard, pipeline_store: HistoryStore, clock
    ) -> None:
        stack = PasteStack(PasteMode.STACK)
        monitor = CaptureMonitor(pasteboard, pipeline_store, CaptureConfig(), paste_stack=stack)
        await monitor.prime()
        stack.activate()

        for text in ["one", "two", "three"]:
            clock.advance(1)
            pasteboard.put_text(text)
            await monitor.tick()

        assert stack.depth == 3
        assert [stack.paste_next().text for _ in range(3)] == ["three", "two", "one"]


class TestSnippetsWithHistory:
    def test_snippet_uses_latest_clipboard_item(
        self, db: Database, pipeline_store: HistoryStore, clock
    ) -> None:
        snippets = SnippetStore(db, clock=clock)
        snippets.seed_builtins()
        pipeline_store.add_text("your invoice")

        reply = next(s for s in snippets.list_snippets() if s.title == "Email Reply")
        text = resolve_template(
            reply,
            {"name": "Sam", "topic": "billing"},
            clipboard_text=pipeline_store.item_at(0).text_content,
        )
        snippets.touch(reply.id)

        assert text.startswith("Hi Sam,\n\nThank you for your email regarding billing.")
        assert "your invoice" in text
        assert snippets.get(reply.id).use_count == 1

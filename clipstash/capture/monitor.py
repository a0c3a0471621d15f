"""Capture monitor - polls the pasteboard and records new content.

State machine:
    ACTIVE     each change is read, classified, filtered, transformed and stored
    SUSPENDED  changes only advance the watermark; nothing is recorded

The monitor suspends itself around its own pasteboard writes (copy_out) and
resumes after a fixed delay, so content it puts back on the pasteboard is
not captured again.

Example:
    monitor = CaptureMonitor(SystemPasteboard(), store, config.capture)
    task = monitor.start()
    ...
    await monitor.stop()
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Iterable
from enum import Enum

from clipstash.capture.classify import classify, encode_payload
from clipstash.capture.exclusions import ExclusionFilter
from clipstash.capture.paste_stack import PasteStack
from clipstash.config.schema import CaptureConfig
from clipstash.core.errors import ClipStashError, PasteboardError, StorageError
from clipstash.core.interfaces import NotificationPort, PasteboardPort
from clipstash.history.store import HistoryStore
from clipstash.history.types import (
    ClipboardItem,
    LinkPayload,
    Payload,
    RichTextPayload,
    TextPayload,
    content_type_of,
    payload_hash,
)
from clipstash.rules.engine import apply_rules
from clipstash.rules.types import ClipboardRule

logger = logging.getLogger(__name__)

RuleSource = Callable[[], Iterable[ClipboardRule]]
ErrorHandler = Callable[[ClipStashError], None]


class MonitorState(str, Enum):
    ACTIVE = "active"
    SUSPENDED = "suspended"


def transform_payload(
    payload: Payload,
    rules: Iterable[ClipboardRule],
    source_bundle_id: str | None,
) -> Payload:
    """Apply rules to the text a payload carries. Other payloads pass through."""
    content_type = content_type_of(payload)
    if isinstance(payload, TextPayload):
        return TextPayload(apply_rules(rules, payload.text, source_bundle_id, content_type))
    if isinstance(payload, LinkPayload):
        return LinkPayload(apply_rules(rules, payload.url, source_bundle_id, content_type))
    if isinstance(payload, RichTextPayload) and payload.plain_text is not None:
        return RichTextPayload(
            payload.rtf,
            apply_rules(rules, payload.plain_text, source_bundle_id, content_type),
        )
    return payload


class CaptureMonitor:
    """Polls a PasteboardPort and feeds new content into a HistoryStore."""

    def __init__(
        self,
        pasteboard: PasteboardPort,
        store: HistoryStore,
        config: CaptureConfig | None = None,
        *,
        rules: RuleSource | None = None,
        notifier: NotificationPort | None = None,
        on_error: ErrorHandler | None = None,
        paste_stack: PasteStack | None = None,
    ) -> None:
        """Initialize the monitor.

        Args:
            pasteboard: Pasteboard to poll and write to.
            store: Destination for captured items.
            config: Poll cadence, resume delay, exclusions.
            rules: Returns the rules to apply; called once per capture so
                edits take effect without a restart.
            notifier: Told about each stored item.
            on_error: Receives storage failures. Polling continues either way.
            paste_stack: Receives each stored item while it is active.
        """
        self._pasteboard = pasteboard
        self._store = store
        self._config = config or CaptureConfig()
        self._exclusions = ExclusionFilter(self._config)
        self._rules = rules
        self._notifier = notifier
        self._on_error = on_error
        self._paste_stack = paste_stack

        self._state = MonitorState.ACTIVE
        self._last_change_count: int | None = None
        self._last_self_write_hash: str | None = None
        self._resume_handle: asyncio.TimerHandle | None = None

        self._run_task: asyncio.Task[None] | None = None
        self._tick_task: asyncio.Task[ClipboardItem | None] | None = None
        self._sweep_task: asyncio.Task[int] | None = None
        self.skipped_ticks = 0

    @property
    def state(self) -> MonitorState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._run_task is not None and not self._run_task.done()

    # --- State transitions ---

    def suspend(self) -> None:
        """Stop recording. Changes seen while suspended are never captured."""
        self._cancel_resume()
        self._state = MonitorState.SUSPENDED
        logger.debug("Capture suspended")

    def resume(self) -> None:
        self._cancel_resume()
        self._state = MonitorState.ACTIVE
        logger.debug("Capture resumed")

    def _cancel_resume(self) -> None:
        if self._resume_handle is not None:
            self._resume_handle.cancel()
            self._resume_handle = None

    def _report(self, error: ClipStashError) -> None:
        if self._on_error is None:
            return
        try:
            self._on_error(error)
        except Exception:
            logger.exception("on_error handler failed")

    # --- Polling ---

    async def prime(self) -> None:
        """Take the current change count as the watermark.

        Whatever is on the pasteboard at this point is treated as already seen.
        """
        try:
            self._last_change_count = await asyncio.to_thread(self._pasteboard.change_count)
        except PasteboardError as e:
            logger.warning("Cannot read pasteboard change count: %s", e.message)

    async def tick(self) -> ClipboardItem | None:
        """Check the pasteboard once.

        Returns:
            The stored item, or None if nothing new was recorded.
        """
        try:
            count = await asyncio.to_thread(self._pasteboard.change_count)
        except PasteboardError as e:
            logger.warning("Skipping tick, change count unavailable: %s", e.message)
            return None

        if self._last_change_count is None:
            self._last_change_count = count
            return None
        if count == self._last_change_count:
            return None
        self._last_change_count = count

        if self._state is MonitorState.SUSPENDED:
            return None

        try:
            contents = await asyncio.to_thread(self._pasteboard.read)
            payload = classify(contents)
        except PasteboardError as e:
            logger.warning("Skipping pasteboard change %d: %s", count, e.message)
            return None
        if payload is None:
            return None

        if self._exclusions.is_excluded(contents.source_bundle_id):
            logger.debug("Skipping capture from excluded app: %s", contents.source_bundle_id)
            return None

        if self._last_self_write_hash is not None:
            own_write = payload_hash(payload) == self._last_self_write_hash
            self._last_self_write_hash = None
            if own_write:
                logger.debug("Skipping capture of content written by clipstash")
                return None

        try:
            return await asyncio.to_thread(self._record, payload, contents.source_bundle_id,
                                           contents.source_app_name)
        except StorageError as e:
            logger.error("Failed to store capture: %s", e.message)
            self._report(e)
            return None

    def _record(
        self,
        payload: Payload,
        source_bundle_id: str | None,
        source_app_name: str | None,
    ) -> ClipboardItem | None:
        # Runs in a worker thread
        if self._rules is not None:
            payload = transform_payload(payload, self._rules(), source_bundle_id)
        item = ClipboardItem.create(
            payload,
            source_bundle_id=source_bundle_id,
            source_app_name=source_app_name,
            now=self._store.now(),
        )
        if not self._store.insert(item):
            return None
        logger.debug("Captured %s item from %s", item.content_type.value,
                     source_app_name or source_bundle_id or "unknown app")

        if self._paste_stack is not None and self._paste_stack.is_active:
            self._paste_stack.push(item)
        if self._notifier is not None:
            try:
                self._notifier.notify_new_item(item)
            except Exception:
                logger.exception("Notifier failed for item %s", item.id)
        return item

    async def _guarded_tick(self) -> ClipboardItem | None:
        try:
            return await self.tick()
        except Exception:
            logger.exception("Unexpected error during capture tick")
            return None

    async def sweep(self) -> int:
        """Run the store's retention sweep in a worker thread."""
        try:
            return await asyncio.to_thread(self._store.retention_sweep)
        except StorageError as e:
            logger.error("Retention sweep failed: %s", e.message)
            self._report(e)
            return 0

    async def run(self) -> None:
        """Poll until cancelled.

        A tick that is still running when the next interval comes due makes
        that interval a no-op; ticks are skipped, never queued.
        """
        loop = asyncio.get_running_loop()
        await self.prime()
        await self.sweep()
        next_sweep = loop.time() + self._config.retention_interval
        logger.info("Clipboard monitoring started (poll every %.2fs)", self._config.poll_interval)

        try:
            while True:
                if self._tick_task is None or self._tick_task.done():
                    self._tick_task = loop.create_task(self._guarded_tick())
                else:
                    self.skipped_ticks += 1
                    logger.debug("Previous tick still running, skipping")

                if loop.time() >= next_sweep:
                    next_sweep = loop.time() + self._config.retention_interval
                    if self._sweep_task is None or self._sweep_task.done():
                        self._sweep_task = loop.create_task(self.sweep())

                await asyncio.sleep(self._config.poll_interval)
        finally:
            for task in (self._tick_task, self._sweep_task):
                if task is not None and not task.done():
                    task.cancel()
            self._cancel_resume()
            logger.info("Clipboard monitoring stopped")

    def start(self) -> asyncio.Task[None]:
        """Start run() as a task on the running loop. Idempotent."""
        if not self.is_running:
            self._run_task = asyncio.get_running_loop().create_task(self.run())
        assert self._run_task is not None
        return self._run_task

    async def stop(self) -> None:
        """Cancel the poll loop and wait for it to finish."""
        task, self._run_task = self._run_task, None
        if task is None or task.done():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    # --- User copy action ---

    async def copy_out(self, item: ClipboardItem) -> None:
        """Put a history item back on the pasteboard.

        Suspends capture, writes, records the use, and schedules resume()
        after capture.resume_delay. Must be called from the event loop.

        Raises:
            PasteboardError: If the write fails (capture resumes immediately).
        """
        full = await asyncio.to_thread(self._store.load_payload, item)
        content_type, data = encode_payload(full.payload)

        self.suspend()
        try:
            await asyncio.to_thread(self._pasteboard.write, content_type, data)
        except PasteboardError:
            self.resume()
            raise
        if self._config.verify_self_writes:
            self._last_self_write_hash = full.content_hash

        try:
            await asyncio.to_thread(self._store.touch, full.id)
        except StorageError as e:
            logger.error("Failed to record use of %s: %s", full.id, e.message)
            self._report(e)

        self._resume_handle = asyncio.get_running_loop().call_later(
            self._config.resume_delay, self.resume
        )

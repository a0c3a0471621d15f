"""Tests for the pyperclip-backed SystemPasteboard."""

import pyperclip
import pytest

from clipstash.capture.system import SystemPasteboard
from clipstash.core.errors import PasteboardError
from clipstash.core.types import ContentType, Representation


@pytest.fixture
def clipboard(monkeypatch: pytest.MonkeyPatch) -> dict[str, str]:
    """Replace the OS clipboard with a dict."""
    state = {"text": ""}
    monkeypatch.setattr(pyperclip, "paste", lambda: state["text"])
    monkeypatch.setattr(pyperclip, "copy", lambda text: state.update(text=text))
    return state


class TestChangeCount:
    def test_first_read_is_baseline(self, clipboard: dict[str, str]) -> None:
        clipboard["text"] = "already there"
        pasteboard = SystemPasteboard()

        assert pasteboard.change_count() == 0
        assert pasteboard.change_count() == 0

    def test_advances_when_text_changes(self, clipboard: dict[str, str]) -> None:
        pasteboard = SystemPasteboard()
        baseline = pasteboard.change_count()

        clipboard["text"] = "new"
        assert pasteboard.change_count() == baseline + 1
        assert pasteboard.change_count() == baseline + 1

    def test_own_write_advances_once(self, clipboard: dict[str, str]) -> None:
        pasteboard = SystemPasteboard()
        baseline = pasteboard.change_count()

        pasteboard.write(ContentType.TEXT, b"mine")

        assert clipboard["text"] == "mine"
        assert pasteboard.change_count() == baseline + 1


class TestReadWrite:
    def test_read_text(self, clipboard: dict[str, str]) -> None:
        clipboard["text"] = "héllo"
        contents = SystemPasteboard().read()

        assert contents.get(Representation.TEXT) == "héllo".encode("utf-8")
        assert contents.source_bundle_id is None

    def test_read_empty(self, clipboard: dict[str, str]) -> None:
        assert SystemPasteboard().read().representations == {}

    def test_image_write_rejected(self, clipboard: dict[str, str]) -> None:
        with pytest.raises(PasteboardError):
            SystemPasteboard().write(ContentType.IMAGE, b"png")

    def test_pyperclip_failure_wrapped(self, monkeypatch: pytest.MonkeyPatch) -> None:
        def broken() -> str:
            raise pyperclip.PyperclipException("no clipboard mechanism")

        monkeypatch.setattr(pyperclip, "paste", broken)

        with pytest.raises(PasteboardError):
            SystemPasteboard().change_count()

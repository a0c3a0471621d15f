"""Pasteboard capture: classification, exclusions and the polling monitor."""

from clipstash.capture.classify import as_link, classify, encode_payload
from clipstash.capture.exclusions import DEFAULT_EXCLUSIONS, ExclusionFilter
from clipstash.capture.monitor import CaptureMonitor, MonitorState, transform_payload
from clipstash.capture.paste_stack import PasteMode, PasteStack, PasteStackEntry

__all__ = [
    "CaptureMonitor",
    "DEFAULT_EXCLUSIONS",
    "ExclusionFilter",
    "MonitorState",
    "PasteMode",
    "PasteStack",
    "PasteStackEntry",
    "as_link",
    "classify",
    "encode_payload",
    "transform_payload",
]

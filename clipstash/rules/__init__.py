"""Rule-based transformation of captured text."""

from clipstash.rules.engine import apply_rules, apply_transform
from clipstash.rules.storage import DEFAULT_RULES, RuleStorage
from clipstash.rules.types import ClipboardRule, TransformKind

__all__ = [
    "ClipboardRule",
    "DEFAULT_RULES",
    "RuleStorage",
    "TransformKind",
    "apply_rules",
    "apply_transform",
]

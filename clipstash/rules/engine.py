"""Rule application: pure text transforms chained in rule order.

A transform that cannot apply (invalid JSON for prettifyJson, an
uncompilable pattern for regexReplace) returns its input unchanged and the
chain continues with the next rule.
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Callable, Iterable
from urllib.parse import unquote_plus, urlsplit, urlunsplit

from clipstash.core.cache import LRUCache
from clipstash.core.types import ContentType
from clipstash.rules.types import ClipboardRule, TransformKind

logger = logging.getLogger(__name__)

_ANSI_RE = re.compile(r"\x1b\[[0-9;]*[A-Za-z]|\x1b\]\d*;[^\x07]*\x07")
_URL_RE = re.compile(r"https?://[^\s<>\"']+", re.IGNORECASE)

_TRACKING_PREFIXES = ("utm_", "mc_")
_TRACKING_NAMES = frozenset({"fbclid", "gclid", "mc_cid", "mc_eid"})

# Sentence punctuation that ends a URL match but belongs to the surrounding text
_TRAILING_PUNCT = ".,;:!?)]"
_OPENERS = {")": "(", "]": "["}

# None caches a pattern that failed to compile
_regex_cache: LRUCache[str, re.Pattern[str] | None] = LRUCache(capacity=128)


def _compiled(pattern: str) -> re.Pattern[str] | None:
    if pattern in _regex_cache:
        return _regex_cache.get(pattern)
    try:
        compiled: re.Pattern[str] | None = re.compile(pattern)
    except re.error as e:
        logger.debug("Rule pattern %r does not compile: %s", pattern, e)
        compiled = None
    _regex_cache.set(pattern, compiled)
    return compiled


def strip_ansi(text: str) -> str:
    """Remove ANSI CSI sequences (colors, cursor moves) and OSC sequences."""
    return _ANSI_RE.sub("", text)


def prettify_json(text: str) -> str:
    """Re-serialize JSON with 2-space indent and sorted keys."""
    try:
        data = json.loads(text)
    except ValueError:
        return text
    return json.dumps(data, indent=2, sort_keys=True, ensure_ascii=False)


def _is_tracking_param(name: str) -> bool:
    name = unquote_plus(name)
    return name in _TRACKING_NAMES or name.startswith(_TRACKING_PREFIXES)


def _clean_url(url: str) -> str:
    try:
        parts = urlsplit(url)
    except ValueError:
        return url
    if not parts.query:
        return url
    fields = parts.query.split("&")
    kept = [f for f in fields if f and not _is_tracking_param(f.split("=", 1)[0])]
    if len(kept) == len([f for f in fields if f]):
        return url
    return urlunsplit(parts._replace(query="&".join(kept)))


def _split_trailing(url: str) -> tuple[str, str]:
    end = len(url)
    while end and url[end - 1] in _TRAILING_PUNCT:
        closer = url[end - 1]
        opener = _OPENERS.get(closer)
        # A closer with its own opener inside the URL is part of it: /wiki/Foo_(bar)
        if opener and url.count(opener, 0, end) >= url.count(closer, 0, end):
            break
        end -= 1
    return url[:end], url[end:]


def _clean_match(match: re.Match[str]) -> str:
    url, trailing = _split_trailing(match.group(0))
    return _clean_url(url) + trailing


def strip_tracking_params(text: str) -> str:
    """Drop utm_*, mc_*, fbclid and gclid query parameters from every http(s) URL.

    Other parameters keep their original order and encoding. A URL left
    without parameters loses its "?". Trailing sentence punctuation and an
    unbalanced closing bracket are left outside the URL.
    """
    return _URL_RE.sub(_clean_match, text)


def regex_replace(text: str, pattern: str | None, replacement: str | None) -> str:
    """re.sub() with the rule's pattern. Missing or invalid input is a no-op."""
    if not pattern or replacement is None:
        return text
    compiled = _compiled(pattern)
    if compiled is None:
        return text
    try:
        return compiled.sub(replacement, text)
    except (re.error, IndexError) as e:
        # bad group reference in the replacement template
        logger.debug("Rule replacement %r failed: %s", replacement, e)
        return text


def trim_whitespace(text: str) -> str:
    """Strip each line, then the text as a whole."""
    return "\n".join(line.strip() for line in text.split("\n")).strip()


_SIMPLE: dict[TransformKind, Callable[[str], str]] = {
    TransformKind.STRIP_ANSI: strip_ansi,
    TransformKind.PRETTIFY_JSON: prettify_json,
    TransformKind.STRIP_TRACKING_PARAMS: strip_tracking_params,
    TransformKind.TRIM_WHITESPACE: trim_whitespace,
    TransformKind.LOWERCASE_ALL: str.lower,
    TransformKind.UPPERCASE_ALL: str.upper,
}


def apply_transform(rule: ClipboardRule, text: str) -> str:
    """Apply a single rule's transform, ignoring its filters."""
    if rule.transform is TransformKind.REGEX_REPLACE:
        return regex_replace(text, rule.pattern, rule.replacement)
    return _SIMPLE[rule.transform](text)


def ordered(rules: Iterable[ClipboardRule]) -> list[ClipboardRule]:
    """Rules in application order: sort_order ascending, then oldest first."""
    return sorted(rules, key=lambda r: (r.sort_order, r.created_at))


def apply_rules(
    rules: Iterable[ClipboardRule],
    text: str,
    source_bundle_id: str | None = None,
    content_type: ContentType = ContentType.TEXT,
) -> str:
    """Run every matching enabled rule over text, in application order.

    Args:
        rules: Candidate rules, in any order.
        text: Captured text.
        source_bundle_id: Application the text was copied from, if known.
        content_type: Kind of capture the text belongs to.

    Returns:
        The transformed text. Never raises for bad rule data.
    """
    result = text
    for rule in ordered(rules):
        if not rule.matches(source_bundle_id, content_type):
            continue
        result = apply_transform(rule, result)
    return result

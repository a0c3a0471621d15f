"""Reusable text snippets with {{placeholder}} templates."""

from clipstash.snippets.storage import (
    BUILTIN_SNIPPETS,
    SnippetStore,
    builtin_variables,
    resolve_template,
)
from clipstash.snippets.types import Snippet, SnippetFolder, extract_placeholders

__all__ = [
    "BUILTIN_SNIPPETS",
    "Snippet",
    "SnippetFolder",
    "SnippetStore",
    "builtin_variables",
    "extract_placeholders",
    "resolve_template",
]

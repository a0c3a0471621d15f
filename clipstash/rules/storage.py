"""SQLite persistence for clipboard rules."""

from __future__ import annotations

import logging
import sqlite3
from typing import Any

from clipstash.core.types import ContentType
from clipstash.rules.types import ClipboardRule, TransformKind
from clipstash.storage.database import Database, storage_errors

logger = logging.getLogger(__name__)

# (name, source bundle id, transform, enabled)
DEFAULT_RULES: tuple[tuple[str, str | None, TransformKind, bool], ...] = (
    ("Strip Terminal Colors", "com.apple.Terminal", TransformKind.STRIP_ANSI, True),
    ("Strip iTerm Colors", "com.googlecode.iterm2", TransformKind.STRIP_ANSI, True),
    ("Clean URL Tracking", None, TransformKind.STRIP_TRACKING_PARAMS, False),
)

_UPDATABLE = frozenset({
    "name",
    "enabled",
    "source_bundle_id",
    "source_app_name",
    "content_type",
    "transform",
    "pattern",
    "replacement",
    "sort_order",
})


class RuleStorage:
    """CRUD for ClipboardRule rows in a clipstash Database."""

    def __init__(self, db: Database) -> None:
        self._db = db

    def _row_to_rule(self, row: sqlite3.Row) -> ClipboardRule | None:
        try:
            transform = TransformKind(row["transform"])
            content_type = ContentType(row["content_type"]) if row["content_type"] else None
        except ValueError:
            # Written by a newer version; skip rather than fail the whole list
            logger.warning("Skipping rule %s with unknown transform or content type", row["id"])
            return None
        return ClipboardRule(
            id=row["id"],
            name=row["name"],
            transform=transform,
            enabled=bool(row["enabled"]),
            source_bundle_id=row["source_bundle_id"],
            source_app_name=row["source_app_name"],
            content_type=content_type,
            pattern=row["pattern"],
            replacement=row["replacement"],
            sort_order=row["sort_order"],
            created_at=row["created_at"],
        )

    def add(self, rule: ClipboardRule) -> None:
        """Persist a new rule."""
        with storage_errors("add rule"), self._db.transaction() as conn:
            conn.execute(
                """INSERT INTO rules
                   (id, name, enabled, source_bundle_id, source_app_name, content_type,
                    transform, pattern, replacement, sort_order, created_at)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                (
                    rule.id,
                    rule.name,
                    1 if rule.enabled else 0,
                    rule.source_bundle_id,
                    rule.source_app_name,
                    rule.content_type.value if rule.content_type else None,
                    rule.transform.value,
                    rule.pattern,
                    rule.replacement,
                    rule.sort_order,
                    rule.created_at,
                ),
            )
        logger.debug("Added rule %s (%s)", rule.name, rule.transform.value)

    def get(self, rule_id: str) -> ClipboardRule | None:
        with storage_errors("get rule"):
            row = self._db.reader().execute(
                "SELECT * FROM rules WHERE id = ?", (rule_id,)
            ).fetchone()
        return self._row_to_rule(row) if row else None

    def list_rules(self) -> list[ClipboardRule]:
        """All rules in application order."""
        with storage_errors("list rules"):
            rows = self._db.reader().execute(
                "SELECT * FROM rules ORDER BY sort_order, created_at, seq"
            ).fetchall()
        return [rule for rule in map(self._row_to_rule, rows) if rule is not None]

    def enabled_rules(self) -> list[ClipboardRule]:
        return [rule for rule in self.list_rules() if rule.enabled]

    def update(self, rule_id: str, **fields: Any) -> bool:
        """Change stored fields of a rule.

        Returns:
            False if the id is unknown.

        Raises:
            ValueError: For a field name that cannot be updated.
        """
        unknown = set(fields) - _UPDATABLE
        if unknown:
            raise ValueError(f"Cannot update rule fields: {sorted(unknown)}")
        if not fields:
            return self.get(rule_id) is not None

        columns: list[str] = []
        params: list[Any] = []
        for name, value in fields.items():
            if name == "enabled":
                value = 1 if value else 0
            elif name in ("transform", "content_type") and value is not None:
                value = value.value
            columns.append(f"{name} = ?")
            params.append(value)
        params.append(rule_id)

        with storage_errors("update rule"), self._db.transaction() as conn:
            cur = conn.execute(f"UPDATE rules SET {', '.join(columns)} WHERE id = ?", params)
        return cur.rowcount > 0

    def toggle(self, rule_id: str) -> bool | None:
        """Flip enabled. Returns the new state, or None if the id is unknown."""
        with storage_errors("toggle rule"), self._db.transaction() as conn:
            row = conn.execute("SELECT enabled FROM rules WHERE id = ?", (rule_id,)).fetchone()
            if row is None:
                return None
            enabled = not row["enabled"]
            conn.execute("UPDATE rules SET enabled = ? WHERE id = ?", (1 if enabled else 0, rule_id))
        return enabled

    def delete(self, rule_id: str) -> bool:
        with storage_errors("delete rule"), self._db.transaction() as conn:
            cur = conn.execute("DELETE FROM rules WHERE id = ?", (rule_id,))
        return cur.rowcount > 0

    def seed_defaults(self) -> int:
        """Install the default rules if no rule exists yet.

        Returns:
            Number of rules added (0 when rules were already present).
        """
        with storage_errors("seed rules"), self._db.transaction() as conn:
            if conn.execute("SELECT COUNT(*) FROM rules").fetchone()[0]:
                return 0
            for index, (name, bundle_id, transform, enabled) in enumerate(DEFAULT_RULES):
                self.add(ClipboardRule.create(
                    name,
                    transform,
                    enabled=enabled,
                    source_bundle_id=bundle_id,
                    sort_order=index,
                ))
        logger.info("Seeded %d default rules", len(DEFAULT_RULES))
        return len(DEFAULT_RULES)

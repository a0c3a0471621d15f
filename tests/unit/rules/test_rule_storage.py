"""Tests for RuleStorage."""

import pytest

from clipstash.core.types import ContentType
from clipstash.rules.storage import DEFAULT_RULES, RuleStorage
from clipstash.rules.types import ClipboardRule, TransformKind
from clipstash.storage.database import Database


@pytest.fixture
def rules(db: Database) -> RuleStorage:
    return RuleStorage(db)


def make(name: str, sort_order: int = 0, created_at: float = 1.0, **kwargs) -> ClipboardRule:
    return ClipboardRule.create(
        name, TransformKind.UPPERCASE_ALL, sort_order=sort_order, now=created_at, **kwargs
    )


class TestRuleCrud:
    def test_add_and_get(self, rules: RuleStorage) -> None:
        rule = ClipboardRule.create(
            "Dates",
            TransformKind.REGEX_REPLACE,
            source_bundle_id="com.app",
            source_app_name="App",
            content_type=ContentType.TEXT,
            pattern=r"(\d+)/(\d+)",
            replacement=r"\2/\1",
            now=5.0,
        )
        rules.add(rule)

        assert rules.get(rule.id) == rule

    def test_get_unknown(self, rules: RuleStorage) -> None:
        assert rules.get("nope") is None

    def test_list_in_application_order(self, rules: RuleStorage) -> None:
        late = make("late", sort_order=2)
        early_new = make("early new", sort_order=1, created_at=9.0)
        early_old = make("early old", sort_order=1, created_at=3.0)
        for rule in (late, early_new, early_old):
            rules.add(rule)

        assert [r.name for r in rules.list_rules()] == ["early old", "early new", "late"]

    def test_enabled_rules(self, rules: RuleStorage) -> None:
        rules.add(make("on"))
        rules.add(make("off", enabled=False))

        assert [r.name for r in rules.enabled_rules()] == ["on"]

    def test_update(self, rules: RuleStorage) -> None:
        rule = make("r")
        rules.add(rule)

        assert rules.update(
            rule.id,
            name="renamed",
            transform=TransformKind.LOWERCASE_ALL,
            content_type=ContentType.LINK,
            enabled=False,
        )
        updated = rules.get(rule.id)

        assert updated.name == "renamed"
        assert updated.transform == TransformKind.LOWERCASE_ALL
        assert updated.content_type == ContentType.LINK
        assert updated.enabled is False

    def test_update_unknown_field(self, rules: RuleStorage) -> None:
        rule = make("r")
        rules.add(rule)
        with pytest.raises(ValueError):
            rules.update(rule.id, created_at=0)

    def test_update_unknown_rule(self, rules: RuleStorage) -> None:
        assert rules.update("nope", name="x") is False

    def test_toggle(self, rules: RuleStorage) -> None:
        rule = make("r")
        rules.add(rule)

        assert rules.toggle(rule.id) is False
        assert rules.toggle(rule.id) is True
        assert rules.toggle("nope") is None

    def test_delete(self, rules: RuleStorage) -> None:
        rule = make("r")
        rules.add(rule)

        assert rules.delete(rule.id) is True
        assert rules.delete(rule.id) is False
        assert rules.list_rules() == []

    def test_unknown_transform_row_skipped(self, rules: RuleStorage, db: Database) -> None:
        rules.add(make("good"))
        bad = make("from the future")
        rules.add(bad)
        with db.transaction() as conn:
            conn.execute("UPDATE rules SET transform = 'rot13' WHERE id = ?", (bad.id,))

        assert [r.name for r in rules.list_rules()] == ["good"]
        assert rules.get(bad.id) is None


class TestSeedDefaults:
    def test_seeds_once(self, rules: RuleStorage) -> None:
        assert rules.seed_defaults() == len(DEFAULT_RULES)
        assert rules.seed_defaults() == 0

        seeded = rules.list_rules()
        assert [r.name for r in seeded] == [name for name, _, _, _ in DEFAULT_RULES]
        assert [r.name for r in rules.enabled_rules()] == [
            "Strip Terminal Colors",
            "Strip iTerm Colors",
        ]

    def test_existing_rules_prevent_seeding(self, rules: RuleStorage) -> None:
        rules.add(make("mine"))

        assert rules.seed_defaults() == 0
        assert len(rules.list_rules()) == 1

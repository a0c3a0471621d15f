"""Tests for the source application blocklist."""

from clipstash.capture.exclusions import DEFAULT_EXCLUSIONS, ExclusionFilter
from clipstash.config.schema import CaptureConfig


class TestExclusionFilter:
    def test_defaults_excluded(self) -> None:
        exclusions = ExclusionFilter()

        assert exclusions.is_excluded("com.bitwarden.desktop")
        assert not exclusions.is_excluded("com.apple.Safari")
        assert exclusions.all_exclusions() == DEFAULT_EXCLUSIONS

    def test_unknown_source_never_excluded(self) -> None:
        assert not ExclusionFilter().is_excluded(None)

    def test_user_exclusions_added(self) -> None:
        exclusions = ExclusionFilter(CaptureConfig(excluded_bundle_ids={"com.secret.app"}))

        assert exclusions.is_excluded("com.secret.app")
        assert exclusions.is_excluded("com.1password.1password")

    def test_defaults_can_be_disabled(self) -> None:
        exclusions = ExclusionFilter(
            CaptureConfig(excluded_bundle_ids={"com.secret.app"}, use_default_exclusions=False)
        )

        assert exclusions.all_exclusions() == frozenset({"com.secret.app"})
        assert not exclusions.is_excluded("com.bitwarden.desktop")

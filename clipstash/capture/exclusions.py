"""Source applications whose copies are never recorded."""

from __future__ import annotations

from clipstash.config.schema import CaptureConfig

# Password managers and credential stores
DEFAULT_EXCLUSIONS: frozenset[str] = frozenset({
    "com.1password.1password",
    "com.agilebits.onepassword7",
    "com.bitwarden.desktop",
    "org.keepassxc.keepassxc",
    "com.lastpass.LastPass",
    "com.apple.keychainaccess",
})


class ExclusionFilter:
    """Blocklist check on the source bundle id of a capture."""

    def __init__(self, config: CaptureConfig | None = None) -> None:
        config = config or CaptureConfig()
        excluded = set(config.excluded_bundle_ids)
        if config.use_default_exclusions:
            excluded |= DEFAULT_EXCLUSIONS
        self._excluded = frozenset(excluded)

    def is_excluded(self, bundle_id: str | None) -> bool:
        """True if copies from bundle_id must be skipped. Unknown sources pass."""
        return bundle_id is not None and bundle_id in self._excluded

    def all_exclusions(self) -> frozenset[str]:
        return self._excluded

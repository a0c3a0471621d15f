"""Tests for clipstash.core.secure_io."""

import os
import stat
from pathlib import Path

import pytest

from clipstash.core.secure_io import secure_mkdir, secure_touch


def mode_of(path: Path) -> int:
    return stat.S_IMODE(os.stat(path).st_mode)


@pytest.mark.unix_only
class TestSecureMkdir:
    def test_creates_missing_ancestors_owner_only(self, tmp_path: Path) -> None:
        target = tmp_path / "a" / "b" / "c"
        secure_mkdir(target)

        for directory in (tmp_path / "a", tmp_path / "a" / "b", target):
            assert directory.is_dir()
            assert mode_of(directory) == 0o700

    def test_existing_ancestor_keeps_its_mode(self, tmp_path: Path) -> None:
        shared = tmp_path / "shared"
        shared.mkdir()
        os.chmod(shared, 0o755)

        secure_mkdir(shared / "logs")

        assert mode_of(shared) == 0o755
        assert mode_of(shared / "logs") == 0o700

    def test_existing_target_is_tightened(self, tmp_path: Path) -> None:
        target = tmp_path / "logs"
        target.mkdir()
        os.chmod(target, 0o777)

        secure_mkdir(target)

        assert mode_of(target) == 0o700


@pytest.mark.unix_only
class TestSecureTouch:
    def test_new_file_is_owner_only(self, tmp_path: Path) -> None:
        path = tmp_path / "history.db"
        secure_touch(path)

        assert path.is_file()
        assert mode_of(path) == 0o600

    def test_existing_file_untouched(self, tmp_path: Path) -> None:
        path = tmp_path / "history.db"
        path.write_text("data")
        os.chmod(path, 0o644)

        secure_touch(path)

        assert path.read_text() == "data"
        assert mode_of(path) == 0o644

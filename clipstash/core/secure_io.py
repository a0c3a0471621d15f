"""Secure file helpers for clipstash.

Clipboard history routinely contains passwords and tokens, so the database
and log files are created owner-only.
"""

import os
import stat
from pathlib import Path

# Owner-only directory permissions
SECURE_DIR_MODE: int = stat.S_IRWXU  # 0o700

# Owner read/write only
SECURE_FILE_MODE: int = stat.S_IRUSR | stat.S_IWUSR  # 0o600


def secure_mkdir(path: Path) -> None:
    """Create path and any missing ancestors as owner-only (0o700) directories.

    Ancestors that already exist keep their permissions; path itself is
    always tightened to 0o700.
    """
    missing = [d for d in (path, *path.parents) if not d.exists()]
    for directory in reversed(missing):
        directory.mkdir(mode=SECURE_DIR_MODE, exist_ok=True)
    # mkdir's mode is filtered through the umask
    os.chmod(path, SECURE_DIR_MODE)
    for directory in missing[1:]:
        os.chmod(directory, SECURE_DIR_MODE)


def secure_touch(path: Path) -> None:
    """Create an empty file with 0o600 permissions if it does not exist.

    Uses O_CREAT | O_EXCL so the file never exists with looser permissions.
    An existing file is left alone.
    """
    if path.exists():
        return
    try:
        fd = os.open(
            str(path),
            os.O_CREAT | os.O_EXCL | os.O_WRONLY,
            SECURE_FILE_MODE,
        )
    except FileExistsError:
        # Lost a creation race; the other creator used the same mode
        return
    os.close(fd)

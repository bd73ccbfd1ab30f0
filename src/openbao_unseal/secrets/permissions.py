"""File permission hygiene for key material.

The age identity and the encrypted init file must only be accessible by
their owner. Their parent directories should be owner-only as well, but a
directory that cannot be tightened is only reported.
"""

import stat
from pathlib import Path

from icecream import ic

from openbao_unseal import console
from openbao_unseal.exceptions import InsecurePermissionsError

SECURE_FILE_MODE = 0o600
SECURE_DIRECTORY_MODE = 0o700

_GROUP_OTHER_BITS = stat.S_IRWXG | stat.S_IRWXO


def _mode(path: Path) -> int:
    return stat.S_IMODE(path.stat().st_mode)


def secure_file(path: Path) -> None:
    """Restrict a file to owner-only access if group or others can access it.

    Args:
        path: The file to check. Missing files are ignored.

    Raises:
        InsecurePermissionsError: If the permissions cannot be changed.

    """
    if not path.is_file():
        return

    current = _mode(path)
    if not current & _GROUP_OTHER_BITS:
        ic(path, oct(current))
        return

    console.warning(f"Insecure permissions detected for {console.highlight(path.name)}")
    console.step(f"Current: {current:o} (should be {SECURE_FILE_MODE:o})")
    console.step(f"File: {path}")

    try:
        path.chmod(SECURE_FILE_MODE)
    except OSError as err:
        raise InsecurePermissionsError(f"Cannot secure permissions of {path}: {err.strerror}") from err

    console.success(f"Set permissions of {console.highlight(path.name)} to {_mode(path):o}")


def secure_directory(path: Path) -> None:
    """Restrict a directory to owner-only access, warning on failure.

    Args:
        path: The directory to check. Missing directories are ignored.

    """
    if not path.is_dir():
        return

    current = _mode(path)
    if current == SECURE_DIRECTORY_MODE:
        ic(path, oct(current))
        return

    console.warning(
        f"Directory permissions for {console.highlight(f'{path.name}/')} should be "
        f"{SECURE_DIRECTORY_MODE:o} (currently: {current:o})"
    )

    try:
        path.chmod(SECURE_DIRECTORY_MODE)
    except OSError as err:
        console.warning(f"Failed to secure permissions of {path}/ ({err.strerror}), continuing anyway")
        return

    console.success(f"Set permissions of {console.highlight(f'{path.name}/')} to {_mode(path):o}")


def secure_key_material(*files: Path) -> None:
    """Check and fix permissions of key files and their parent directories.

    Args:
        *files: The key material files.

    Raises:
        InsecurePermissionsError: If a file cannot be secured.

    """
    console.action("Checking file permissions")
    for directory in dict.fromkeys(file.parent for file in files):
        secure_directory(directory)
    for file in files:
        secure_file(file)
    console.success("File permissions check completed")

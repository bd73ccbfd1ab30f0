"""Host system checks for openbao-unseal.

This module verifies that the binaries and input files an unseal run
depends on are present before anything else happens.
"""

import shutil
from pathlib import Path

from icecream import ic

from openbao_unseal.exceptions import BinaryNotFoundError, PreconditionError

# Binary name -> installation hint
REQUIRED_BINARIES: dict[str, str] = {
    "age": "install age, e.g. 'sudo apt install age' (see https://github.com/FiloSottile/age)",
    "kubectl": "see https://kubernetes.io/docs/tasks/tools/",
}


def ensure_binaries(names: tuple[str, ...] = tuple(REQUIRED_BINARIES)) -> None:
    """Ensure every required binary is available in PATH.

    Args:
        names: Binaries to look up.

    Raises:
        BinaryNotFoundError: If a binary is missing.

    """
    for name in names:
        location = shutil.which(name)
        ic(name, location)
        if location is None:
            hint = REQUIRED_BINARIES.get(name, "")
            raise BinaryNotFoundError(f"{name} not installed: {hint}" if hint else f"{name} not installed")


def ensure_input_files(*paths: Path) -> None:
    """Ensure the key material files exist.

    Args:
        *paths: Files that must exist.

    Raises:
        PreconditionError: If a file is missing.

    """
    for path in paths:
        if not path.is_file():
            raise PreconditionError(f"Required file not found: {path}")

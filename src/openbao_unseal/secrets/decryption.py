"""Unseal key decryption.

The OpenBao init document (the JSON printed by `bao operator init`) is
stored encrypted with age. Decryption is delegated to the age binary; this
module only runs it and extracts the unseal key shares.
"""

import json
import subprocess

from icecream import ic

from openbao_unseal import console
from openbao_unseal.config import Settings
from openbao_unseal.exceptions import BinaryNotFoundError, DecryptionError, InsufficientKeysError

# Placeholder key set used when no real decryption happens
DRY_RUN_KEYS: tuple[str, ...] = ("dummy-key-1", "dummy-key-2", "dummy-key-3")


def parse_unseal_keys(document: str, *, field: str, threshold: int) -> tuple[str, ...]:
    """Extract the first `threshold` key shares from a decrypted init document.

    Args:
        document: The decrypted JSON document.
        field: Name of the field holding the key share array.
        threshold: Number of key shares required to unseal.

    Returns:
        The key shares, in document order.

    Raises:
        DecryptionError: If the document is not JSON or has no key share array.
        InsufficientKeysError: If fewer than `threshold` key shares are present.

    """
    try:
        data = json.loads(document)
    except ValueError as err:
        raise DecryptionError("Decrypted document is not valid JSON") from err

    keys = data.get(field) if isinstance(data, dict) else None
    if not isinstance(keys, list) or not all(isinstance(key, str) for key in keys):
        raise DecryptionError(f"Decrypted document has no '{field}' list of strings")

    selected = tuple(key for key in keys[:threshold] if key)
    if len(selected) < threshold:
        raise InsufficientKeysError(
            f"Not enough unseal keys found (required: {threshold}, found: {len(selected)})"
        )
    return selected


def decrypt_unseal_keys(settings: Settings) -> tuple[str, ...]:
    """Decrypt the init document with age and return the unseal key shares.

    Args:
        settings: Run settings naming the identity and encrypted file.

    Returns:
        The key shares.

    Raises:
        BinaryNotFoundError: If age is not installed.
        DecryptionError: If age fails, times out or the output is unusable.
        InsufficientKeysError: If fewer key shares than the threshold are found.

    """
    cmd: list[str] = [
        "age",
        "--decrypt",
        "--identity",
        str(settings.age_key_file),
        str(settings.encrypted_file),
    ]
    ic(cmd)

    try:
        with console.spinner("Decrypting unseal keys..."):
            result = subprocess.run(cmd, capture_output=True, text=True, check=True, timeout=settings.timeout)
    except FileNotFoundError as err:
        raise BinaryNotFoundError("age not installed") from err
    except subprocess.CalledProcessError as err:
        raise DecryptionError(f"Decryption failed (age exit code {err.returncode})") from None
    except subprocess.TimeoutExpired:
        raise DecryptionError(f"Decryption timed out after {settings.timeout}s") from None

    return parse_unseal_keys(result.stdout, field=settings.keys_field, threshold=settings.key_threshold)


def load_unseal_keys(settings: Settings, *, dry_run: bool) -> tuple[str, ...]:
    """Return the key set for this run.

    Args:
        settings: Run settings.
        dry_run: If True, return placeholders without decrypting anything.

    Returns:
        The key shares to submit.

    """
    if dry_run:
        console.dry_run("Would decrypt unseal keys")
        keys = DRY_RUN_KEYS
    else:
        console.action("Decrypting unseal keys")
        keys = decrypt_unseal_keys(settings)

    console.info(f"Using {len(keys)} unseal keys")
    return keys

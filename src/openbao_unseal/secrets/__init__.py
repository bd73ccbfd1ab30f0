"""Key material subpackage.

This package contains modules for securing the key files on disk and
decrypting the unseal key shares.
"""

from openbao_unseal.secrets.decryption import DRY_RUN_KEYS, decrypt_unseal_keys, load_unseal_keys, parse_unseal_keys
from openbao_unseal.secrets.permissions import secure_directory, secure_file, secure_key_material

__all__ = [
    # decryption
    "DRY_RUN_KEYS",
    "decrypt_unseal_keys",
    "load_unseal_keys",
    "parse_unseal_keys",
    # permissions
    "secure_directory",
    "secure_file",
    "secure_key_material",
]

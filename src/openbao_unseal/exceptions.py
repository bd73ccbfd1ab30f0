"""Custom exceptions for openbao-unseal.

This module defines the exception hierarchy used throughout the application.
Every exception except TunnelError is fatal for the whole run and is
reported once by the CLI; TunnelError only fails the pod being processed.
"""


class OpenBaoUnsealError(Exception):
    """Base exception for all openbao-unseal errors.

    All custom exceptions in this package inherit from this class,
    allowing the CLI to catch every fatal error with a single except clause.
    """

    pass


class PreconditionError(OpenBaoUnsealError):
    """Raised when the host is not ready for an unseal run.

    This can occur when:
    - A required input file (age key, encrypted init file) is missing
    - A required binary is not installed
    - The configuration file is invalid
    """

    pass


class BinaryNotFoundError(PreconditionError):
    """Raised when a required binary (age, kubectl) is not in PATH."""

    pass


class ConfigurationError(PreconditionError):
    """Raised when the configuration file cannot be used.

    This can occur when:
    - The file is not valid YAML
    - The document is not a mapping
    - The document contains unknown settings
    """

    pass


class InsecurePermissionsError(OpenBaoUnsealError):
    """Raised when a key file cannot be restricted to owner-only access."""

    pass


class DecryptionError(OpenBaoUnsealError):
    """Raised when the unseal keys cannot be decrypted.

    This typically means:
    - The age identity does not match the encrypted file
    - The encrypted file is corrupted
    - The decrypted document is not the expected JSON
    """

    pass


class InsufficientKeysError(DecryptionError):
    """Raised when fewer unseal keys than the threshold were decrypted."""

    pass


class ClusterConnectionError(OpenBaoUnsealError):
    """Raised when connection to the Kubernetes cluster fails.

    This can occur when:
    - The kubeconfig is invalid or missing
    - The cluster is unreachable
    - Authentication fails
    """

    pass


class PodNotFoundError(OpenBaoUnsealError):
    """Raised when an explicitly requested pod does not exist in the namespace."""

    pass


class NoTargetsError(OpenBaoUnsealError):
    """Raised when the label selector matches no pods."""

    pass


class TunnelError(OpenBaoUnsealError):
    """Raised when a port-forward to a pod cannot be established.

    This can occur when:
    - kubectl port-forward exits right after starting
    - The forwarded port does not answer an HTTP probe in time
    """

    pass

"""openbao-unseal: unseal OpenBao pods running in Kubernetes.

This package decrypts the stored unseal key shares and submits them to
every sealed OpenBao pod through a temporary port-forward.

Example usage:
    from openbao_unseal import load_settings, run

    settings = load_settings()
    summary = run(settings, ["openbao-0"], dry_run=True)
"""

__version__ = "0.1.0"

from openbao_unseal.cluster import Cluster
from openbao_unseal.config import Settings, load_settings
from openbao_unseal.exceptions import (
    BinaryNotFoundError,
    ClusterConnectionError,
    ConfigurationError,
    DecryptionError,
    InsecurePermissionsError,
    InsufficientKeysError,
    NoTargetsError,
    OpenBaoUnsealError,
    PodNotFoundError,
    PreconditionError,
    TunnelError,
)
from openbao_unseal.models import Outcome, PodInfo, RunSummary, SealStatus
from openbao_unseal.workflow import run, unseal_pod, unseal_pods

__all__ = [
    # Version
    "__version__",
    # Workflow
    "run",
    "unseal_pod",
    "unseal_pods",
    # Classes
    "Cluster",
    "Settings",
    "load_settings",
    "Outcome",
    "PodInfo",
    "RunSummary",
    "SealStatus",
    # Exceptions
    "OpenBaoUnsealError",
    "PreconditionError",
    "BinaryNotFoundError",
    "ConfigurationError",
    "InsecurePermissionsError",
    "DecryptionError",
    "InsufficientKeysError",
    "ClusterConnectionError",
    "PodNotFoundError",
    "NoTargetsError",
    "TunnelError",
]

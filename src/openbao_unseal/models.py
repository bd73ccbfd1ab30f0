"""Data models for openbao-unseal.

This module provides type-safe data structures for pods, seal status
and per-run results.
"""

from dataclasses import dataclass
from enum import Enum
from typing import NamedTuple

# Pod phase reported by Kubernetes for a pod whose containers are up
RUNNING_PHASE = "Running"


class Classification(str, Enum):
    """How a pod outcome is counted in the run summary."""

    SUCCESS = "success"
    SKIPPED = "skipped"
    FAILED = "failed"


class Outcome(str, Enum):
    """Terminal state of processing a single pod.

    Inherits from str so values can be printed and compared directly.
    """

    NOT_RUNNING = "not-running"
    TUNNEL_FAILED = "tunnel-failed"
    STATUS_UNKNOWN = "status-unknown"
    ALREADY_UNSEALED = "already-unsealed"
    SUBMISSION_FAILED = "submission-failed"
    UNSEAL_INCOMPLETE = "unseal-incomplete"
    UNSEALED = "unsealed"
    DRY_RUN = "dry-run"

    @property
    def classification(self) -> Classification:
        """The summary bucket this outcome is counted in."""
        if self is Outcome.NOT_RUNNING:
            return Classification.SKIPPED
        if self in (Outcome.ALREADY_UNSEALED, Outcome.UNSEALED, Outcome.DRY_RUN):
            return Classification.SUCCESS
        return Classification.FAILED


class PodInfo(NamedTuple):
    """A target pod as found by enumeration.

    Attributes:
        name: The pod name.
        phase: The pod phase at enumeration time (e.g. 'Running', 'Pending').

    """

    name: str
    phase: str

    @property
    def is_running(self) -> bool:
        return self.phase == RUNNING_PHASE


@dataclass(frozen=True, slots=True)
class SealStatus:
    """Seal state reported by an OpenBao server.

    Attributes:
        sealed: Whether the server is sealed.
        progress: Number of key shares accepted towards the current unseal.
        threshold: Number of key shares required to unseal.

    """

    sealed: bool
    progress: int
    threshold: int


@dataclass(slots=True)
class RunSummary:
    """Counters accumulated over a run.

    Attributes:
        total: Number of pods selected for processing.
        succeeded: Pods unsealed, already unsealed or simulated.
        skipped: Pods that were not running.
        failed: Pods that could not be unsealed.

    """

    total: int = 0
    succeeded: int = 0
    skipped: int = 0
    failed: int = 0

    def record(self, outcome: Outcome) -> None:
        """Count a pod's terminal outcome in exactly one bucket.

        Args:
            outcome: The outcome of processing the pod.

        """
        match outcome.classification:
            case Classification.SUCCESS:
                self.succeeded += 1
            case Classification.SKIPPED:
                self.skipped += 1
            case Classification.FAILED:
                self.failed += 1

    @property
    def exit_code(self) -> int:
        """Process exit code: 1 if any pod failed, 0 otherwise."""
        return 1 if self.failed else 0

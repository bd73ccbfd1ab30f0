"""Port-forward tunnels to OpenBao pods.

Each pod is reached through a short-lived `kubectl port-forward` process.
A tunnel is acquired, verified with an HTTP probe, and released once the
pod has been processed. In dry-run mode a null tunnel stands in for the
process so the workflow runs unchanged without touching the cluster.
"""

import contextlib
import subprocess
import time
from collections.abc import Generator

import requests
from icecream import ic

from openbao_unseal.config import Settings
from openbao_unseal.exceptions import TunnelError
from openbao_unseal.openbao import SEAL_STATUS_PATH

# Seconds to wait for kubectl to exit after SIGTERM before killing it
_TERMINATE_TIMEOUT = 5


class Tunnel:
    """A port-forward bound to one pod.

    Attributes:
        pod: Name of the pod the tunnel forwards to.
        address: Base URL of the forwarded OpenBao API.
        process: The kubectl process, or None for a dry-run tunnel.

    """

    def __init__(self, pod: str, address: str, process: subprocess.Popen | None = None) -> None:
        self.pod: str = pod
        self.address: str = address
        self.process: subprocess.Popen | None = process
        self.released: bool = False

    @property
    def is_alive(self) -> bool:
        return self.process is not None and self.process.poll() is None

    def __repr__(self) -> str:
        pid = self.process.pid if self.process is not None else None
        return f"Tunnel(pod={self.pod!r}, address={self.address!r}, pid={pid!r}, released={self.released!r})"


def _stop_process(process: subprocess.Popen) -> None:
    """Terminate a kubectl process and wait for it to exit."""
    if process.poll() is not None:
        return
    process.terminate()
    try:
        process.wait(timeout=_TERMINATE_TIMEOUT)
    except subprocess.TimeoutExpired:
        process.kill()
        process.wait()


def build_port_forward_cmd(pod: str, settings: Settings, context: str | None = None) -> list[str]:
    """Build the kubectl port-forward command for a pod.

    Args:
        pod: The pod name.
        settings: Run settings providing namespace and ports.
        context: Kube context to use, or None for kubectl's current context.

    Returns:
        List of command arguments ready for subprocess execution.

    """
    cmd: list[str] = [
        "kubectl",
        "port-forward",
        "-n",
        settings.namespace,
        f"pod/{pod}",
        f"{settings.local_port}:{settings.remote_port}",
    ]
    if context:
        cmd.append(f"--context={context}")
    return cmd


def acquire(pod: str, settings: Settings, *, context: str | None = None, dry_run: bool = False) -> Tunnel:
    """Open and verify a port-forward to a pod.

    Args:
        pod: The pod name.
        settings: Run settings.
        context: Kube context to use.
        dry_run: If True, return a null tunnel without starting anything.

    Returns:
        The verified tunnel.

    Raises:
        TunnelError: If kubectl exits early or the API does not answer in
                     time. The kubectl process is stopped before raising.

    """
    if dry_run:
        return Tunnel(pod=pod, address=settings.address)

    cmd = build_port_forward_cmd(pod, settings, context)
    ic(cmd)
    try:
        process = subprocess.Popen(cmd, stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL)
    except OSError as err:
        raise TunnelError(f"Port-forward to pod {pod} could not be started: {err}") from err

    tunnel = Tunnel(pod=pod, address=settings.address, process=process)
    time.sleep(settings.settle_delay)

    if not tunnel.is_alive:
        raise TunnelError(f"Port-forward to pod {pod} exited with code {process.returncode}")

    try:
        with requests.get(f"{settings.address}{SEAL_STATUS_PATH}", timeout=settings.probe_timeout) as r:
            ic(r.status_code)
    except requests.RequestException as err:
        _stop_process(process)
        raise TunnelError(f"Port-forward established but cannot connect to OpenBao API on pod {pod}") from err

    ic(tunnel)
    return tunnel


def release(tunnel: Tunnel) -> None:
    """Close a tunnel. Safe to call more than once and on null tunnels.

    Args:
        tunnel: The tunnel to close.

    """
    if tunnel.released:
        return
    tunnel.released = True
    if tunnel.process is None:
        return
    ic(tunnel)
    _stop_process(tunnel.process)


@contextlib.contextmanager
def port_forward(
    pod: str, settings: Settings, *, context: str | None = None, dry_run: bool = False
) -> Generator[Tunnel, None, None]:
    """Hold a tunnel to a pod for the duration of a with-block.

    Args:
        pod: The pod name.
        settings: Run settings.
        context: Kube context to use.
        dry_run: If True, yield a null tunnel.

    Yields:
        The verified tunnel, released on every exit path.

    Raises:
        TunnelError: If the tunnel cannot be established.

    """
    tunnel = acquire(pod, settings, context=context, dry_run=dry_run)
    try:
        yield tunnel
    finally:
        release(tunnel)

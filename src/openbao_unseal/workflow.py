"""Unseal workflow.

This module ties the pieces together: it secures and decrypts the key
material, resolves the target pods and processes them one at a time,
tunnel -> seal status -> key submission, collecting the outcomes into a
run summary.
"""

from collections.abc import Sequence

from icecream import ic

from openbao_unseal import console
from openbao_unseal.cluster import Cluster
from openbao_unseal.config import Settings
from openbao_unseal.exceptions import TunnelError
from openbao_unseal.host import ensure_binaries, ensure_input_files
from openbao_unseal.models import Outcome, PodInfo, RunSummary
from openbao_unseal.openbao import OpenBaoClient
from openbao_unseal.secrets import load_unseal_keys, secure_key_material
from openbao_unseal.tunnel import port_forward


def submit_keys(client: OpenBaoClient, pod: str, keys: Sequence[str]) -> Outcome:
    """Submit key shares to a sealed server until it reports unsealed.

    Keys are sent in order, one per request. Once the server is unsealed
    the remaining keys are not sent.

    Args:
        client: Client connected to the pod.
        pod: Pod name, for messages.
        keys: The key shares.

    Returns:
        UNSEALED, SUBMISSION_FAILED or UNSEAL_INCOMPLETE.

    """
    for index, key in enumerate(keys, start=1):
        status = client.submit_key(key)
        if status is None:
            console.error(f"No response from pod {console.highlight(pod)} when sending key {index}")
            return Outcome.SUBMISSION_FAILED

        console.step(f"Key {index}/{len(keys)} sent, progress {status.progress}/{status.threshold}")
        if not status.sealed:
            console.success(f"Pod {console.highlight(pod)} successfully unsealed")
            return Outcome.UNSEALED

    console.error(f"Pod {console.highlight(pod)} could not be unsealed after {len(keys)} keys")
    return Outcome.UNSEAL_INCOMPLETE


def unseal_via(client: OpenBaoClient, pod: str, keys: Sequence[str]) -> Outcome:
    """Check the seal state of a pod and unseal it if needed.

    Args:
        client: Client connected to the pod.
        pod: Pod name, for messages.
        keys: The key shares.

    Returns:
        The pod's outcome.

    """
    status = client.seal_status()
    ic(pod, status)

    if status is None:
        console.error(f"Could not query sealed status of pod {console.highlight(pod)}")
        return Outcome.STATUS_UNKNOWN

    if not status.sealed:
        console.success(f"Pod {console.highlight(pod)} is already unsealed")
        return Outcome.ALREADY_UNSEALED

    console.warning(f"Pod {console.highlight(pod)} is sealed, starting unseal process")
    return submit_keys(client, pod, keys)


def unseal_pod(
    pod: PodInfo,
    keys: Sequence[str],
    settings: Settings,
    *,
    context: str | None = None,
    dry_run: bool = False,
) -> Outcome:
    """Process a single pod.

    Never raises for per-pod problems; they are reported and returned as
    an outcome. The tunnel is released before returning.

    Args:
        pod: The target pod.
        keys: The key shares.
        settings: Run settings.
        context: Kube context for the port-forward.
        dry_run: If True, stop after the (null) tunnel is acquired.

    Returns:
        The pod's outcome.

    """
    console.action(f"Processing pod {console.highlight(pod.name)}")

    if not pod.is_running:
        console.warning(f"Pod {pod.name} is not Running (status: {pod.phase}), skipping")
        return Outcome.NOT_RUNNING

    try:
        with port_forward(pod.name, settings, context=context, dry_run=dry_run) as tunnel:
            if dry_run:
                console.dry_run(f"Would check sealed status of {pod.name}")
                console.dry_run(f"Pod {pod.name} would be unsealed")
                return Outcome.DRY_RUN

            with OpenBaoClient(tunnel.address, timeout=settings.timeout) as client:
                return unseal_via(client, pod.name, keys)
    except TunnelError as e:
        console.error(str(e))
        return Outcome.TUNNEL_FAILED


def render_summary(summary: RunSummary, *, dry_run: bool) -> None:
    """Print the run summary panel.

    Args:
        summary: The collected counters.
        dry_run: Whether this was a simulated run.

    """
    items = {"Total pods": str(summary.total), "Successful": str(summary.succeeded)}
    if summary.skipped:
        items["Skipped"] = str(summary.skipped)
    if summary.failed:
        items["Failed"] = str(summary.failed)

    console.summary_panel(
        "DRY-RUN Summary" if dry_run else "Summary",
        items,
        border_style="red" if summary.failed else "green",
    )


def unseal_pods(
    pods: Sequence[PodInfo],
    keys: Sequence[str],
    settings: Settings,
    *,
    context: str | None = None,
    dry_run: bool = False,
) -> RunSummary:
    """Process pods one after another and summarize the outcomes.

    Args:
        pods: The target pods.
        keys: The key shares.
        settings: Run settings.
        context: Kube context for the port-forwards.
        dry_run: Whether to simulate.

    Returns:
        The run summary.

    """
    summary = RunSummary(total=len(pods))
    for pod in pods:
        outcome = unseal_pod(pod, keys, settings, context=context, dry_run=dry_run)
        ic(pod.name, outcome)
        summary.record(outcome)
        console.newline()

    render_summary(summary, dry_run=dry_run)
    return summary


def probe_seal_state(pod: PodInfo, settings: Settings, *, context: str | None = None) -> str:
    """Describe a pod's seal state for the status listing.

    Args:
        pod: The pod.
        settings: Run settings.
        context: Kube context for the port-forward.

    Returns:
        'unsealed', 'sealed', 'unknown', or 'n/a' for pods that are not running.

    """
    if not pod.is_running:
        return "n/a"

    try:
        with port_forward(pod.name, settings, context=context) as tunnel:
            with OpenBaoClient(tunnel.address, timeout=settings.probe_timeout) as client:
                status = client.seal_status()
    except TunnelError as e:
        ic(pod.name, e)
        return "unknown"

    if status is None:
        return "unknown"
    return "sealed" if status.sealed else "unsealed"


def list_pod_status(cluster: Cluster, settings: Settings) -> None:
    """Print every OpenBao pod with its phase and seal state.

    Args:
        cluster: The connected cluster.
        settings: Run settings.

    Raises:
        NoTargetsError: If no OpenBao pods exist.

    """
    pods = cluster.discover_pods()
    rows = []
    for pod in pods:
        with console.spinner(f"Checking {pod.name}..."):
            rows.append((pod.name, pod.phase, probe_seal_state(pod, settings, context=cluster.context)))
    console.pod_table(rows)


def run(
    settings: Settings,
    pod_names: Sequence[str] = (),
    *,
    select_context: bool = False,
    dry_run: bool = False,
) -> RunSummary:
    """Run a full unseal pass.

    Key material is checked and decrypted before the cluster is contacted,
    so a bad key file aborts without opening any tunnel.

    Args:
        settings: Run settings.
        pod_names: Explicit pods to process. If empty, pods are discovered.
        select_context: Prompt for the kube context.
        dry_run: Simulate without decrypting or calling the OpenBao API.

    Returns:
        The run summary.

    Raises:
        OpenBaoUnsealError: On any fatal precondition, decryption or
                            enumeration failure.

    """
    if dry_run:
        console.dry_run("Dry-run mode activated")

    ensure_binaries()
    ensure_input_files(settings.age_key_file, settings.encrypted_file)
    secure_key_material(settings.age_key_file, settings.encrypted_file)
    console.newline()

    keys = load_unseal_keys(settings, dry_run=dry_run)

    cluster = Cluster(settings, select_context=select_context)
    pods = cluster.resolve_targets(pod_names)
    console.newline()

    return unseal_pods(pods, keys, settings, context=cluster.context, dry_run=dry_run)

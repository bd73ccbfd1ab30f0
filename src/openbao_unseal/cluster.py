"""Kubernetes cluster interaction utilities.

This module provides the Cluster class for selecting the kube context and
finding the OpenBao pods to process.
"""

from collections.abc import Sequence

import click
import questionary
from icecream import ic
from kubernetes import client, config
from kubernetes.client.exceptions import ApiException
from kubernetes.config.config_exception import ConfigException
from urllib3.exceptions import MaxRetryError, ReadTimeoutError

from openbao_unseal import console
from openbao_unseal.config import Settings
from openbao_unseal.exceptions import ClusterConnectionError, NoTargetsError, PodNotFoundError
from openbao_unseal.models import PodInfo
from openbao_unseal.styles import POINTER, PROMPT_STYLE, QMARK


class Cluster:
    """Manages Kubernetes cluster interactions for unseal operations.

    Attributes:
        context: The active Kubernetes context name.
        namespace: Namespace the OpenBao pods run in.
        pod_label: Label selector matching the OpenBao pods.
        timeout: Seconds to wait for each Kubernetes API response.

    """

    def __init__(self, settings: Settings, *, select_context: bool) -> None:
        """Initialize Cluster with context selection.

        Args:
            settings: Run settings providing namespace and label selector.
            select_context: If True, prompt user to select a context.
                           If False, use the current context.
                           Must be passed as a keyword argument.

        """
        self.namespace: str = settings.namespace
        self.pod_label: str = settings.pod_label
        self.timeout: int = settings.timeout
        self.context: str = self._set_context(select_context=select_context)
        try:
            config.load_kube_config(context=self.context)
        except ConfigException as e:
            raise ClusterConnectionError(f"Cannot load context {self.context!r}: {e}") from e

    @staticmethod
    def _set_context(*, select_context: bool) -> str:
        """Set the Kubernetes context to use.

        Args:
            select_context: If True, prompt user to select a context.
                           Must be passed as a keyword argument.

        Returns:
            The selected or current context name.

        Raises:
            ClusterConnectionError: If kubeconfig is invalid or missing.
            click.Abort: If user cancels context selection.

        """
        try:
            contexts, current_context = config.list_kube_config_contexts()
        except ConfigException as e:
            raise ClusterConnectionError(f"Invalid or missing kubeconfig: {e}") from e
        if select_context:
            context_names: list[str] = [context["name"] for context in contexts]
            context: str | None = questionary.select(
                "Select context to work with",
                choices=context_names,
                style=PROMPT_STYLE,
                pointer=POINTER,
                qmark=QMARK,
            ).ask()
            if context is None:
                console.warning("Context selection cancelled.")
                raise click.Abort()
        else:
            context = str(current_context["name"])
        console.action(f"Working with {console.highlight(context)} cluster")
        return context

    def get_pod(self, name: str) -> PodInfo:
        """Look up a single pod in the OpenBao namespace.

        Args:
            name: The pod name.

        Returns:
            PodInfo with the pod's current phase.

        Raises:
            ClusterConnectionError: If the cluster is unreachable or does not answer in time.
            PodNotFoundError: If the pod does not exist.

        """
        try:
            pod = client.CoreV1Api().read_namespaced_pod(
                name=name, namespace=self.namespace, _request_timeout=self.timeout
            )
        except ApiException as e:
            if e.status == 404:
                raise PodNotFoundError(f"Pod '{name}' not found in namespace '{self.namespace}'") from None
            raise ClusterConnectionError(f"Failed to read pod '{name}': {e.reason}") from e
        except MaxRetryError as e:
            raise ClusterConnectionError(f"Failed to connect to the Kubernetes cluster: {e.reason}") from e
        except ReadTimeoutError as e:
            raise ClusterConnectionError(f"Timed out reading pod '{name}' after {self.timeout}s") from e

        return PodInfo(name=pod.metadata.name, phase=pod.status.phase or "Unknown")

    def list_pods(self) -> list[PodInfo]:
        """List the pods matching the OpenBao label selector.

        Returns:
            PodInfo for every matching pod, sorted by name.

        Raises:
            ClusterConnectionError: If the cluster is unreachable or does not answer in time.

        """
        with console.spinner("Searching for OpenBao pods..."):
            try:
                items = client.CoreV1Api().list_namespaced_pod(
                    namespace=self.namespace, label_selector=self.pod_label, _request_timeout=self.timeout
                ).items
            except ApiException as e:
                raise ClusterConnectionError(f"Failed to list pods in '{self.namespace}': {e.reason}") from e
            except MaxRetryError as e:
                raise ClusterConnectionError(f"Failed to connect to the Kubernetes cluster: {e.reason}") from e
            except ReadTimeoutError as e:
                raise ClusterConnectionError(
                    f"Timed out listing pods in '{self.namespace}' after {self.timeout}s"
                ) from e

        pods = sorted(
            (PodInfo(name=pod.metadata.name, phase=pod.status.phase or "Unknown") for pod in items),
            key=lambda pod: pod.name,
        )
        ic(pods)
        return pods

    def discover_pods(self) -> list[PodInfo]:
        """List the OpenBao pods, requiring at least one.

        Raises:
            NoTargetsError: If the label selector matches no pods.

        """
        pods = self.list_pods()
        if not pods:
            raise NoTargetsError(f"No OpenBao pods found in namespace '{self.namespace}' ({self.pod_label})")
        return pods

    def resolve_targets(self, names: Sequence[str]) -> list[PodInfo]:
        """Resolve the pods to process.

        Explicit names are all validated before any is returned, so a single
        missing pod aborts the run before any pod is touched.

        Args:
            names: Explicit pod names. If empty, pods are discovered by label.

        Returns:
            The target pods.

        Raises:
            PodNotFoundError: If an explicit pod does not exist.
            NoTargetsError: If discovery finds no pods.

        """
        if names:
            unique = list(dict.fromkeys(names))
            console.info(f"Processing specific pods: {', '.join(unique)}")
            return [self.get_pod(name) for name in unique]

        pods = self.discover_pods()
        console.info(f"Found pods: {', '.join(pod.name for pod in pods)}")
        return pods

    def __repr__(self) -> str:
        """Return a detailed string representation for debugging."""
        return f"Cluster(context={self.context!r}, namespace={self.namespace!r}, pod_label={self.pod_label!r})"

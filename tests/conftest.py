"""Shared test fixtures for openbao-unseal tests."""

import contextlib
from unittest.mock import MagicMock, patch

import pytest
from kubernetes.client.exceptions import ApiException

from openbao_unseal.config import Settings
from openbao_unseal.models import SealStatus
from openbao_unseal.tunnel import Tunnel


class FakeOpenBao:
    """In-memory stand-in for one OpenBao server.

    Unseals once `unseal_after` key shares have been submitted; never
    unseals when `unseal_after` is None.
    """

    def __init__(self, *, sealed=True, unseal_after=None, threshold=3):
        self.sealed = sealed
        self.unseal_after = unseal_after
        self.threshold = threshold
        self.progress = 0
        self.submitted = []
        self.status_calls = 0

    def status(self):
        return SealStatus(sealed=self.sealed, progress=self.progress, threshold=self.threshold)

    def seal_status(self):
        self.status_calls += 1
        return self.status()

    def submit_key(self, key):
        self.submitted.append(key)
        if not self.sealed:
            return self.status()
        self.progress += 1
        if self.unseal_after is not None and self.progress >= self.unseal_after:
            self.sealed = False
            self.progress = 0
        return self.status()

    @property
    def http_calls(self):
        return self.status_calls + len(self.submitted)


class FakeCluster:
    """Routes per-pod tunnels and clients to FakeOpenBao servers.

    Install with `install()`; records every acquire and release.
    """

    def __init__(self, servers):
        self.servers = servers
        self.acquired = []
        self.released = []

    @contextlib.contextmanager
    def port_forward(self, pod, settings, *, context=None, dry_run=False):
        self.acquired.append(pod)
        try:
            yield Tunnel(pod=pod, address=f"fake://{pod}")
        finally:
            self.released.append(pod)

    def client(self, address, *, timeout):
        server = self.servers[address.removeprefix("fake://")]
        client = MagicMock()
        client.__enter__ = MagicMock(return_value=server)
        client.__exit__ = MagicMock(return_value=False)
        return client

    @contextlib.contextmanager
    def install(self):
        with (
            patch("openbao_unseal.workflow.port_forward", side_effect=self.port_forward),
            patch("openbao_unseal.workflow.OpenBaoClient", side_effect=self.client),
        ):
            yield self


@pytest.fixture
def settings(tmp_path):
    """Settings pointing at key files inside a temporary directory."""
    return Settings(
        age_key_file=tmp_path / "age" / "openbao-key.txt",
        encrypted_file=tmp_path / "openbao" / "openbao-init.json.age",
        settle_delay=0,
    )


@pytest.fixture
def key_files(settings):
    """Create the key files with owner-only permissions."""
    for path in (settings.age_key_file, settings.encrypted_file):
        path.parent.mkdir(mode=0o700)
        path.write_text("secret")
        path.chmod(0o600)
    return settings


@pytest.fixture
def mock_kube_contexts():
    """Mock kubernetes config contexts."""
    with patch("kubernetes.config.list_kube_config_contexts") as mock:
        mock.return_value = ([{"name": "test-context"}], {"name": "test-context"})
        yield mock


@pytest.fixture
def mock_kube_config():
    """Mock kubernetes config loading."""
    with patch("kubernetes.config.load_kube_config") as mock:
        yield mock


def make_pod(name, phase="Running"):
    """Build a mock V1Pod."""
    pod = MagicMock()
    pod.metadata.name = name
    pod.status.phase = phase
    return pod


@pytest.fixture
def mock_core_v1_api():
    """Mock CoreV1Api with three running OpenBao pods."""
    with patch("kubernetes.client.CoreV1Api") as mock:
        api_instance = MagicMock()
        mock.return_value = api_instance
        pods = {name: make_pod(name) for name in ["openbao-0", "openbao-1", "openbao-2"]}

        def read_namespaced_pod(name, namespace, _request_timeout=None):
            if name not in pods:
                raise ApiException(status=404, reason="Not Found")
            return pods[name]

        api_instance.list_namespaced_pod.return_value.items = list(pods.values())
        api_instance.read_namespaced_pod.side_effect = read_namespaced_pod
        yield api_instance


@pytest.fixture
def cluster_mocks(mock_kube_contexts, mock_kube_config, mock_core_v1_api):
    """Combined fixture for creating a Cluster instance without cluster access."""
    return {
        "contexts": mock_kube_contexts,
        "config": mock_kube_config,
        "core_api": mock_core_v1_api,
    }


@pytest.fixture
def mock_popen():
    """Mock subprocess.Popen with a kubectl process that keeps running."""
    with patch("openbao_unseal.tunnel.subprocess.Popen") as mock:
        process = MagicMock()
        process.pid = 4242
        process.poll.return_value = None
        process.returncode = None
        mock.return_value = process
        yield mock


@pytest.fixture
def mock_sleep():
    """Skip the port-forward settle delay."""
    with patch("openbao_unseal.tunnel.time.sleep") as mock:
        yield mock


@pytest.fixture
def mock_probe():
    """Mock the port-forward reachability probe."""
    with patch("openbao_unseal.tunnel.requests.get") as mock:
        yield mock

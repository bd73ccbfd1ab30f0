"""Minimal client for the OpenBao seal API.

Only the two endpoints needed for unsealing are wrapped:

    GET  /v1/sys/seal-status
    POST /v1/sys/unseal  {"key": "<share>"}

Both answer with a JSON document carrying `sealed`, `progress` and `t`.
"""

from typing import Any

import requests
from icecream import ic

from openbao_unseal.models import SealStatus

SEAL_STATUS_PATH = "/v1/sys/seal-status"
UNSEAL_PATH = "/v1/sys/unseal"


def parse_seal_status(data: Any) -> SealStatus | None:
    """Build a SealStatus from a decoded response body.

    Args:
        data: The decoded JSON body.

    Returns:
        The SealStatus, or None if the body carries no boolean `sealed` field.

    """
    if not isinstance(data, dict) or not isinstance(data.get("sealed"), bool):
        return None
    progress = data.get("progress")
    threshold = data.get("t")
    return SealStatus(
        sealed=data["sealed"],
        progress=progress if isinstance(progress, int) else 0,
        threshold=threshold if isinstance(threshold, int) else 0,
    )


class OpenBaoClient:
    """HTTP client for a single OpenBao server.

    Every call is bounded by the timeout and never retried. Transport
    errors and unusable bodies are reported as None rather than raised,
    since the caller treats both the same way.

    Attributes:
        address: Base URL of the server, e.g. http://localhost:8200.
        timeout: Timeout in seconds for each request.

    """

    def __init__(self, address: str, *, timeout: float) -> None:
        self.address: str = address.rstrip("/")
        self.timeout: float = timeout
        self.session: requests.Session = requests.Session()

    def _request(self, method: str, path: str, **kwargs: Any) -> SealStatus | None:
        try:
            response = self.session.request(method, f"{self.address}{path}", timeout=self.timeout, **kwargs)
            data = response.json()
        except requests.RequestException as err:
            ic(method, path, err)
            return None
        except ValueError:
            ic(method, path, "non-JSON response")
            return None
        return parse_seal_status(data)

    def seal_status(self) -> SealStatus | None:
        """Query the current seal state."""
        return self._request("GET", SEAL_STATUS_PATH)

    def submit_key(self, key: str) -> SealStatus | None:
        """Submit a single unseal key share.

        Args:
            key: The key share.

        Returns:
            The seal state after the share was applied, or None on failure.

        """
        return self._request("POST", UNSEAL_PATH, json={"key": key})

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> "OpenBaoClient":
        return self

    def __exit__(self, exc_type: type | None, exc_val: Exception | None, exc_tb: object) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"OpenBaoClient(address={self.address!r}, timeout={self.timeout!r})"

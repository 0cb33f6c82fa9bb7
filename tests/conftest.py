"""
Pytest configuration and fixtures for authttp tests.
"""

import json
from typing import Any, Callable, Optional

import httpx
import pytest

from authttp import AuthenticatedHttpClient, ClientConfig, HTTPXTransportBackend
from authttp.token_store import InMemoryTokenStore

BASE_URL = "https://api.company.com"


class RecordingNavigator:
    """Navigator remembering every redirect it was asked for."""

    def __init__(self) -> None:
        self.unauthorized: list[dict[str, Optional[int]]] = []
        self.maintenance: list[Optional[int]] = []

    def on_unauthorized(
        self, code: Optional[int] = None, status_code: Optional[int] = None
    ) -> None:
        self.unauthorized.append({"code": code, "status_code": status_code})

    def on_maintenance(self, code: Optional[int] = None) -> None:
        self.maintenance.append(code)


def json_response(payload: Any, status_code: int = 200) -> httpx.Response:
    return httpx.Response(status_code, content=json.dumps(payload).encode())


@pytest.fixture
def navigator() -> RecordingNavigator:
    return RecordingNavigator()


@pytest.fixture
def config() -> ClientConfig:
    return ClientConfig(base_url=BASE_URL + "/", maintenance_code=9)


@pytest.fixture
def make_client(
    navigator: RecordingNavigator,
) -> Callable[..., AuthenticatedHttpClient]:
    """Build a client whose transport is served by ``handler``."""

    def factory(
        handler: Callable[[httpx.Request], Any],
        token: Optional[str] = None,
        **config_overrides: Any,
    ) -> AuthenticatedHttpClient:
        config = ClientConfig(
            **{"base_url": BASE_URL, "maintenance_code": 9, **config_overrides}
        )
        backend = HTTPXTransportBackend(
            default_timeout=config.timeout, transport=httpx.MockTransport(handler)
        )
        return AuthenticatedHttpClient(
            config,
            backend=backend,
            token_store=InMemoryTokenStore(token),
            navigator=navigator,
        )

    return factory

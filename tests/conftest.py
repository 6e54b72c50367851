"""Pytest configuration and fixtures."""

from collections.abc import Callable, Iterator
from typing import Any

import httpx
import pytest

from buildnotifier.core.config import get_settings
from buildnotifier.delivery.client import WebhookClient
from buildnotifier.models.build import Build
from buildnotifier.models.config import NotifierConfig


@pytest.fixture(autouse=True)
def fresh_settings() -> Iterator[None]:
    """Drop cached settings so environment changes apply per test."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def sample_build_data() -> dict:
    """Build event as published by the build service."""
    return {
        "id": "b-1",
        "projectId": "acme-ci",
        "status": "SUCCESS",
        "logUrl": "https://x/log",
        "buildTriggerId": "trigger-42",
        "substitutions": {"BRANCH_NAME": "main", "_DEPLOY_ENV": "staging"},
        "tags": ["nightly"],
        "createTime": "2026-01-10T14:30:00Z",
    }


@pytest.fixture
def sample_build(sample_build_data: dict) -> Build:
    return Build.model_validate(sample_build_data)


def make_config(
    filter: str = "status == SUCCESS",
    url: Any = "https://hooks.example.com/build",
    template: str | None = "Build {{ build.id }} succeeded",
    params: dict[str, str] | None = None,
    secrets: list[dict[str, str]] | None = None,
) -> NotifierConfig:
    delivery = {} if url is None else {"url": url}
    notification: dict[str, Any] = {
        "filter": filter,
        "delivery": delivery,
        "params": params or {},
    }
    if template is not None:
        notification["template"] = {"content": template}
    return NotifierConfig.model_validate(
        {
            "apiVersion": "cloud-build-notifiers/v1",
            "kind": "HTTPNotifier",
            "metadata": {"name": "test-notifier"},
            "spec": {"notification": notification, "secrets": secrets or []},
        }
    )


class RecordingTransport:
    """Captures outgoing requests and answers with a fixed status."""

    def __init__(self, status_code: int = 200):
        self.status_code = status_code
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status_code, text="ok")


@pytest.fixture
def config_factory() -> Callable[..., NotifierConfig]:
    return make_config


@pytest.fixture
def transport_factory() -> Callable[[int], RecordingTransport]:
    return RecordingTransport


@pytest.fixture
def webhook_factory() -> Callable[..., WebhookClient]:
    """Build webhook clients backed by a mock transport."""

    def _factory(handler: Callable[[httpx.Request], Any]) -> WebhookClient:
        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        return WebhookClient(client, user_agent="BuildNotifier/test (http)")

    return _factory

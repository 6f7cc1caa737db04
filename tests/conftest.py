import sys
import threading
from dataclasses import replace
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

# Ensure project root is on sys.path for imports
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from config import get_settings  # noqa: E402
from counter import SharedCounter  # noqa: E402
from responses import RepoTag  # noqa: E402


TAG_PAYLOAD = [
    {
        "name": "v1.1.0",
        "zipball_url": "https://api.github.com/repos/alice/repo-x/zipball/refs/tags/v1.1.0",
        "tarball_url": "https://api.github.com/repos/alice/repo-x/tarball/refs/tags/v1.1.0",
        "commit": {
            "sha": "c5b97d5ae6c19d5c5df71a34c7fbeeda2479ccbc",
            "url": "https://api.github.com/repos/alice/repo-x/commits/c5b97d5ae6c19d5c5df71a34c7fbeeda2479ccbc",
        },
        "node_id": "MDM6UmVmcmVmcy90YWdzL3YxLjEuMA==",
    },
    {
        "name": "v1.0.0",
        "zipball_url": "https://api.github.com/repos/alice/repo-x/zipball/refs/tags/v1.0.0",
        "tarball_url": "https://api.github.com/repos/alice/repo-x/tarball/refs/tags/v1.0.0",
        "commit": {"sha": "0a1b2c3d"},
        "node_id": "MDM6UmVmcmVmcy90YWdzL3YxLjAuMA==",
    },
]


class FakeUpstream:
    """Canned ``UpstreamClient``: returns ``tags`` or raises ``error``.

    When ``block`` is set, calls park until ``release`` fires (or 5s pass).
    """

    def __init__(self, tags=None, error=None, block=False):
        self.tags = tags if tags is not None else [RepoTag.model_validate(t) for t in TAG_PAYLOAD]
        self.error = error
        self.block = block
        self.calls = []
        self.entered = threading.Event()
        self.release = threading.Event()

    def fetch_tags(self, username, repo):
        self.calls.append((username, repo))
        self.entered.set()
        if self.block:
            self.release.wait(timeout=5)
        if self.error is not None:
            raise self.error
        return self.tags


@pytest.fixture()
def settings(monkeypatch):
    for name in ("APP_PORT", "APP_API_PREFIX", "APP_COUNTER_DELAY", "APP_UPSTREAM_BASE_URL"):
        monkeypatch.delenv(name, raising=False)
    return replace(get_settings(), log_level="WARNING")


@pytest.fixture()
def counter():
    return SharedCounter()


@pytest.fixture()
def upstream():
    return FakeUpstream()


@pytest.fixture()
def make_client(settings, counter):
    from main import create_app

    def _make(upstream, raise_server_exceptions=True, **overrides):
        app = create_app(replace(settings, **overrides), counter=counter, upstream=upstream)
        return TestClient(app, raise_server_exceptions=raise_server_exceptions)

    return _make


@pytest.fixture()
def client(make_client, upstream):
    return make_client(upstream)

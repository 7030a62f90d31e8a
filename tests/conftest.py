import threading

import pytest

from counter.server import CounterServer
from counter.store import VisitorStore


@pytest.fixture
def store():
    return VisitorStore()


@pytest.fixture
def base_url(store):
    """Run a CounterServer on an ephemeral port for the duration of a test."""
    server = CounterServer(("127.0.0.1", 0), store)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    host, port = server.server_address[:2]
    yield f"http://{host}:{port}"
    server.shutdown()
    server.server_close()
    thread.join(timeout=5)


@pytest.fixture(autouse=True)
def no_proxy(monkeypatch):
    """Keep requests from routing localhost traffic through an env proxy."""
    for name in ("HTTP_PROXY", "HTTPS_PROXY", "ALL_PROXY", "http_proxy", "https_proxy", "all_proxy"):
        monkeypatch.delenv(name, raising=False)

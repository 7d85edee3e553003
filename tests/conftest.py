from __future__ import annotations
import threading

import pytest
import requests


class FakeSession:
    """Stands in for requests.Session: records calls, replays a canned body or raises."""
    def __init__(self, body: bytes = b"{}", status: int = 200, exc: Exception | None = None):
        self.body = body
        self.status = status
        self.exc = exc
        self.calls: list[dict] = []
        self.closed = False
        self._lock = threading.Lock()

    def request(self, method, url, data=None, headers=None, timeout=None):
        with self._lock:
            self.calls.append({"method": method, "url": url, "data": data, "headers": headers, "timeout": timeout})
        if self.exc is not None:
            raise self.exc
        r = requests.Response()
        r.status_code = self.status
        r.url = url
        r._content = self.body
        return r

    def close(self):
        self.closed = True


@pytest.fixture
def fake_session():
    return FakeSession

# tests/conftest.py
"""
Pytest configuration and shared fixtures for mdproc tests

No test touches the network: downloads go through FakeSession, which
serves canned bodies and records every request.
"""
import pytest
from pathlib import Path
from typing import Dict, List, Union

import requests

from mdproc.config_utils import SyncConfig
from mdproc.localizer import ResourceLocalizer
from mdproc.store import TextClassStore


BASE_PATH = "http://base/"


class FakeResponse:
    """Just enough of requests.Response for the localizer"""

    def __init__(self, url: str, body: bytes, status_code: int = 200):
        self.url = url
        self.content = body
        self.status_code = status_code
        self.closed = False

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error for url: {self.url}",
                                     response=self)

    def iter_content(self, chunk_size: int = 1):
        for i in range(0, len(self.content), chunk_size):
            yield self.content[i:i + chunk_size]

    def close(self):
        self.closed = True


Route = Union[bytes, str, int, Exception]


class FakeSession:
    """
    Stand-in for requests.Session.

    routes maps URL -> bytes/str body, an int status code, or an exception
    to raise. Unknown URLs raise ConnectionError.
    """

    def __init__(self, routes: Dict[str, Route] = None):
        self.routes = dict(routes or {})
        self.calls: List[str] = []
        self.headers: Dict[str, str] = {}

    def get(self, url, stream=False, timeout=None, **kwargs):
        self.calls.append(url)
        route = self.routes.get(url)
        if route is None:
            raise requests.ConnectionError(f"No route to {url}")
        if isinstance(route, Exception):
            raise route
        if isinstance(route, int):
            return FakeResponse(url, b"", status_code=route)
        if isinstance(route, str):
            route = route.encode("utf-8")
        return FakeResponse(url, route)


@pytest.fixture
def fake_session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def sync_root(tmp_path: Path) -> Path:
    """Temporary sync directory"""
    root = tmp_path / "sync"
    root.mkdir()
    return root


@pytest.fixture
def config(sync_root: Path, tmp_path: Path) -> SyncConfig:
    return SyncConfig(
        db_path=str(tmp_path / "test.db"),
        destination_root=str(sync_root),
        base_path=BASE_PATH,
        poll_interval_ms=20,
        user_agent="mdproc-tests",
    )


@pytest.fixture
def localizer(config: SyncConfig, fake_session: FakeSession) -> ResourceLocalizer:
    return ResourceLocalizer(config, session=fake_session)


@pytest.fixture
def store(config: SyncConfig):
    """Store with the schema, grade 1 and its courses 1 and 2 in place"""
    store = TextClassStore(config.db_path)
    store.ensure_schema()
    grade_id = store.add_grade("Grade 1")
    store.add_course(grade_id, "Math")
    store.add_course(grade_id, "Science")
    yield store
    store.close()

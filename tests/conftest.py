import json
import threading

import pytest
import requests

from pass_predictor.client import PredictionClient
from pass_predictor.controller import SyncController
from pass_predictor.health import HealthMonitor
from pass_predictor.history import HistoryLedger
from pass_predictor.storage import MemoryStore

API = "http://backend.test"


class FakeResponse:
    def __init__(self, status_code=200, body=None, text=None):
        self.status_code = status_code
        self.ok = 200 <= status_code < 300
        self._text = text if text is not None else json.dumps(body)

    def json(self, **kwargs):
        return json.loads(self._text, **kwargs)


class FakeSession:
    """Replays queued outcomes: a FakeResponse is returned, an exception is raised."""

    def __init__(self, get=None, post=None, gate=None):
        self.get_outcomes = list(get or [])
        self.post_outcomes = list(post or [])
        self.gate = gate
        self.calls = []

    def _next(self, outcomes):
        if self.gate is not None:
            self.gate.wait(timeout=5)
        outcome = outcomes.pop(0) if len(outcomes) > 1 else outcomes[0]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    def get(self, url, **kwargs):
        self.calls.append(("GET", url, kwargs))
        return self._next(self.get_outcomes)

    def post(self, url, **kwargs):
        self.calls.append(("POST", url, kwargs))
        return self._next(self.post_outcomes)

    @property
    def posts(self):
        return [c for c in self.calls if c[0] == "POST"]


def ok(body):
    return FakeResponse(200, body)


def connection_error():
    return requests.ConnectionError("connection refused")


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def ledger(store):
    return HistoryLedger(store)


def make_controller(session, ledger, with_monitor=True):
    client = PredictionClient(API, session=session)
    monitor = HealthMonitor(API, session=session) if with_monitor else None
    return SyncController(client, ledger, monitor=monitor)


@pytest.fixture
def gate():
    return threading.Event()

import datetime as dt
from typing import Dict, List

import pytest
import requests

from finance_tracker.config import AppConfig
from finance_tracker.sheets import SheetsService
from finance_tracker.webapp import create_app

TODAY = dt.date(2025, 7, 15)


def fixed_clock():
    return TODAY


class FakeSpreadsheet:
    """Stands in for ``gspread.Spreadsheet``; rows are kept per tab."""

    def __init__(self, tabs: Dict[str, List[List]] = None, fail: bool = False) -> None:
        self.tabs = {k: [list(r) for r in v] for k, v in (tabs or {}).items()}
        self.fail = fail
        self.updates = []
        self.appends = []

    def _check(self):
        if self.fail:
            raise requests.ConnectionError("connection reset")

    def values_get(self, range_name, params=None):
        self._check()
        rows = self.tabs.get(range_name.split("!")[0], [])
        if not rows:
            return {"range": range_name}
        return {"range": range_name, "values": [list(r) for r in rows]}

    def values_update(self, range_name, params=None, body=None):
        self._check()
        self.updates.append((range_name, params, body))
        return {"updatedRange": range_name}

    def values_append(self, range_name, params=None, body=None):
        self._check()
        self.appends.append((range_name, params, body))
        self.tabs.setdefault(range_name.split("!")[0], [["header"]]).extend(body["values"])
        return {"updates": {"updatedRange": range_name}}


class FakeClient:
    def __init__(self, spreadsheet: FakeSpreadsheet) -> None:
        self.spreadsheet = spreadsheet

    def open_by_key(self, key):
        return self.spreadsheet


@pytest.fixture
def demo_service():
    return SheetsService(AppConfig(), clock=fixed_clock)


@pytest.fixture
def make_service():
    def factory(tabs=None, fail=False):
        sheet = FakeSpreadsheet(tabs, fail=fail)
        return SheetsService(AppConfig(), client=FakeClient(sheet), clock=fixed_clock), sheet

    return factory


@pytest.fixture
def make_app():
    def factory(service):
        config = AppConfig(secret_key="test-secret", database_url="sqlite://")
        app = create_app(config=config, service=service, overrides={"TESTING": True})
        return app

    return factory


@pytest.fixture
def client(make_app, demo_service):
    return make_app(demo_service).test_client()


@pytest.fixture
def signed_in(client):
    resp = client.post("/auth/signin", json={"email": "ana@example.com", "password": "x"})
    assert resp.status_code == 200
    return client

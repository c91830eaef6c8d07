from finance_tracker.checks import (
    CheckRunner,
    api_checks,
    data_validation_checks,
    expect,
    persist_suite,
)
from finance_tracker.models import CheckRun, db
from finance_tracker.sources import LocalSource
from finance_tracker.store import FinanceStore

from conftest import fixed_clock


def test_run_check_records_pass_and_fail():
    runner = CheckRunner()
    ok = runner.run_check("ok", lambda: "fine")
    bad = runner.run_check("bad", lambda: expect(False, "broken"))
    boom = runner.run_check("boom", lambda: 1 / 0)
    assert (ok.passed, ok.message) == (True, "fine")
    assert (bad.passed, bad.message) == (False, "broken")
    assert boom.passed is False
    assert ok.duration_ms >= 0
    assert [r.name for r in runner.results()] == ["ok", "bad", "boom"]
    runner.clear()
    assert runner.results() == []


def test_run_suite_totals():
    suite = CheckRunner().run_suite("s", [("a", lambda: None), ("b", lambda: expect(False, "no"))])
    assert (suite.total, suite.passed, suite.failed) == (2, 1, 1)
    assert suite.to_dict()["results"][0]["message"] == "OK"


def test_builtin_suites_against_demo_data(demo_service):
    source = LocalSource(demo_service)
    store = FinanceStore(source, clock=fixed_clock)
    store.load_data()
    runner = CheckRunner()
    data_suite = runner.run_suite("data", data_validation_checks(store))
    results = {r.name: r for r in data_suite.results}
    assert results["Records pass validation"].passed
    assert results["Expense categories match budgets"].passed
    assert results["Category totals add up"].passed
    # Demo budgets carry their own stored spent figures.
    assert results["Budget spent reconciles"].passed is False

    api_suite = runner.run_suite("api", api_checks(source, 7, 2025))
    assert api_suite.failed == 0
    assert api_suite.total == 7


def test_persist_suite(make_app, demo_service):
    app = make_app(demo_service)
    suite = CheckRunner().run_suite("s", [("a", lambda: None)])
    with app.app_context():
        persist_suite(suite)
        rows = CheckRun.query.all()
        assert [(r.suite, r.name, r.passed) for r in rows] == [("s", "a", True)]
        db.session.remove()

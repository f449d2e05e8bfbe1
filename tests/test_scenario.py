import pytest
from playwright.sync_api import Error as PlaywrightError

from ecolabel import scenario as scenario_module
from ecolabel.scenario import Scenario, ScenarioResult, ScenarioRunner, system_metrics


class StubScenario(Scenario):
    def __init__(self, name, url, fail=False):
        super().__init__(name, url)
        self.fail = fail
        self.browsers = []

    def run(self, browser):
        self.browsers.append(browser)
        if self.fail:
            raise PlaywrightError("net::ERR_CONNECTION_REFUSED")
        return ScenarioResult(name=self.name, url=self.url, metrics={"CPUTime": 0.1})


def test_system_metrics_shape():
    metrics = system_metrics()
    assert set(metrics) == {
        "systemCpuPercent",
        "systemTotalMemoryMB",
        "systemUsedMemoryMB",
        "processRssMemoryMB",
        "processVmsMemoryMB",
    }
    assert metrics["systemTotalMemoryMB"] >= metrics["systemUsedMemoryMB"] >= 0


def test_runner_requires_acquire():
    with pytest.raises(RuntimeError):
        ScenarioRunner().run([])


def test_runner_is_sequential_and_keeps_going(monkeypatch):
    runner = ScenarioRunner()
    browser = object()
    monkeypatch.setattr(runner, "_browser", browser)

    scenarios = [
        StubScenario("first", "https://a.example"),
        StubScenario("broken", "https://b.example", fail=True),
        StubScenario("third", "https://c.example"),
    ]
    results = runner.run(scenarios)

    assert [r.name for r in results] == ["first", "broken", "third"]
    assert results[1].error == "net::ERR_CONNECTION_REFUSED"
    assert results[0].metrics == {"CPUTime": 0.1}
    assert all(s.browsers == [browser] for s in scenarios)

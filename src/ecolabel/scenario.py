"""Performance scenarios: sample browser and system resources per URL."""

import logging
import time
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any, Optional

import psutil
from playwright.sync_api import Browser, Error as PlaywrightError, Playwright, sync_playwright

logger = logging.getLogger(__name__)

BYTES_PER_MB = 1024 * 1024

BROWSER_ARGS = [
    "--no-sandbox",
    "--disable-dev-shm-usage",
    "--disable-background-networking",
    "--disable-background-timer-throttling",
    "--disable-renderer-backgrounding",
    "--disable-extensions",
    "--enable-memory-info",
    "--mute-audio",
    "--no-first-run",
]

JS_HEAP_SCRIPT = """() => {
    const m = performance.memory;
    return {
        used: m ? m.usedJSHeapSize : 0,
        total: m ? m.totalJSHeapSize : 0,
        limit: m ? m.jsHeapSizeLimit : 0,
    };
}"""


@dataclass
class ScenarioResult:
    """Metrics collected for one scenario."""
    name: str
    url: str
    metrics: dict[str, Any] = field(default_factory=dict)
    error: Optional[str] = None


class Scenario:
    """Visit a URL and record resource usage."""

    def __init__(
        self,
        name: str,
        url: str,
        navigation_timeout: float = 30.0,
        settle_seconds: float = 2.0,
        sample_seconds: float = 1.0,
    ):
        self.name = name
        self.url = url
        self.navigation_timeout = navigation_timeout
        self.settle_seconds = settle_seconds
        self.sample_seconds = sample_seconds

    def run(self, browser: Browser) -> ScenarioResult:
        """Run the scenario in an already launched browser.

        Raises:
            playwright.sync_api.Error: if the page cannot be loaded
        """
        logger.info("=== %s ===", self.name)
        result = ScenarioResult(name=self.name, url=self.url)
        metrics = result.metrics

        page = browser.new_page(viewport={"width": 1920, "height": 1080})
        try:
            page.goto(self.url, wait_until="networkidle", timeout=self.navigation_timeout * 1000)
            time.sleep(self.settle_seconds)

            # Chrome DevTools Performance domain
            try:
                session = page.context.new_cdp_session(page)
                session.send("Performance.enable")
                time.sleep(self.sample_seconds)
                for metric in session.send("Performance.getMetrics").get("metrics", []):
                    metrics[metric["name"]] = metric["value"]
                session.detach()
            except PlaywrightError as e:
                logger.warning("Could not read performance metrics: %s", e)

            metrics.update(system_metrics())
            metrics["gpuCompositorEnabled"] = _gpu_compositor_enabled(page)

            try:
                heap = page.evaluate(JS_HEAP_SCRIPT)
                metrics["JSHeapUsedSize"] = heap.get("used") or 0
                metrics["JSHeapTotalSize"] = heap.get("total") or 0
            except PlaywrightError as e:
                logger.warning("Could not read JS heap metrics: %s", e)
                metrics["JSHeapUsedSize"] = 0
                metrics["JSHeapTotalSize"] = 0

            metrics["CPUTime"] = metrics.get("ThreadTime") or metrics.get("TaskDuration") or 0
        finally:
            page.close()

        return result


def system_metrics() -> dict[str, float]:
    """CPU and memory of the machine and of this process."""
    memory = psutil.virtual_memory()
    process = psutil.Process().memory_info()
    return {
        "systemCpuPercent": psutil.cpu_percent(interval=None),
        "systemTotalMemoryMB": round(memory.total / BYTES_PER_MB),
        "systemUsedMemoryMB": round(memory.used / BYTES_PER_MB),
        "processRssMemoryMB": round(process.rss / BYTES_PER_MB),
        "processVmsMemoryMB": round(process.vms / BYTES_PER_MB),
    }


def _gpu_compositor_enabled(page) -> bool:
    try:
        return page.evaluate("() => !!(window.chrome && window.chrome.gpuBenchmarking !== undefined)") is True
    except PlaywrightError:
        return False


class ScenarioRunner:
    """Owns one Chromium instance and runs scenarios one at a time."""

    def __init__(self, headless: bool = True, executable_path: str | None = None):
        self.headless = headless
        self.executable_path = executable_path
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None

    def acquire(self) -> "ScenarioRunner":
        if self._browser is None:
            self._playwright = sync_playwright().start()
            self._browser = self._playwright.chromium.launch(
                headless=self.headless,
                executable_path=self.executable_path,
                args=BROWSER_ARGS,
            )
        return self

    def release(self) -> None:
        if self._browser is not None:
            self._browser.close()
            self._browser = None
        if self._playwright is not None:
            self._playwright.stop()
            self._playwright = None

    def __enter__(self) -> "ScenarioRunner":
        return self.acquire()

    def __exit__(self, *exc_info) -> None:
        self.release()

    def run(self, scenarios: Sequence[Scenario]) -> list[ScenarioResult]:
        """Run scenarios in order; a failing one is recorded and skipped."""
        if self._browser is None:
            raise RuntimeError("ScenarioRunner used before acquire()")
        # Prime psutil so the first cpu_percent() is meaningful
        psutil.cpu_percent(interval=None)

        results = []
        for scenario in scenarios:
            try:
                results.append(scenario.run(self._browser))
            except PlaywrightError as e:
                logger.error("Scenario %s failed: %s", scenario.name, e)
                results.append(ScenarioResult(name=scenario.name, url=scenario.url, error=str(e)))
        return results

"""Auditors that produce a Lighthouse performance report for a URL."""

import json
import logging
import os
import shutil
import subprocess
from abc import ABC, abstractmethod
from typing import Any, Optional

import httpx

from .config import Settings
from .exceptions import AuditFailure
from .lighthouse import parse_lighthouse_report
from .models import RawAuditReport

logger = logging.getLogger(__name__)

PAGESPEED_API = "https://www.googleapis.com/pagespeedonline/v5/runPagespeed"

CHROME_FLAGS = [
    "--headless=new",
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-features=VizDisplayCompositor",
    "--window-size=1920,1080",
    "--no-proxy-server",
    "--disable-default-apps",
    "--disable-extensions",
]


def _parse_result(url: str, lhr: dict[str, Any]) -> RawAuditReport:
    error = lhr.get("runtimeError")
    if error:
        message = error.get("message") if isinstance(error, dict) else error
        raise AuditFailure(url, f"Lighthouse error: {message or 'unknown'}")
    return parse_lighthouse_report(lhr)


class Auditor(ABC):
    """Base class for auditors.

    An auditor holds one expensive resource (an HTTP client, a browser) and
    is used for one URL at a time. ``acquire`` and ``release`` bracket its
    use; the class also works as a context manager.
    """

    name: str

    def acquire(self) -> "Auditor":
        return self

    def release(self) -> None:
        pass

    def __enter__(self) -> "Auditor":
        return self.acquire()

    def __exit__(self, *exc_info) -> None:
        self.release()

    @abstractmethod
    def audit(self, url: str) -> RawAuditReport:
        """Audit a URL.

        Raises:
            AuditFailure: if the page could not be loaded or audited
        """


class PageSpeedAuditor(Auditor):
    """Runs Lighthouse remotely through Google PageSpeed Insights."""

    name = "pagespeed"

    def __init__(
        self,
        api_key: str | None = None,
        strategy: str = "desktop",
        timeout: float = 60.0,
        transport: httpx.BaseTransport | None = None,
    ):
        self.api_key = api_key or os.getenv("PSI_API_KEY")
        self.strategy = strategy
        self.timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.Client] = None

    def acquire(self) -> "PageSpeedAuditor":
        if self._client is None:
            self._client = httpx.Client(timeout=self.timeout, transport=self._transport)
        return self

    def release(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None

    def audit(self, url: str) -> RawAuditReport:
        if self._client is None:
            raise RuntimeError("PageSpeedAuditor used before acquire()")

        params = {"url": url, "strategy": self.strategy, "category": "performance"}
        if self.api_key:
            params["key"] = self.api_key

        logger.info("Running PageSpeed audit for %s (%s)", url, self.strategy)
        try:
            response = self._client.get(PAGESPEED_API, params=params)
            response.raise_for_status()
            data = response.json()
        except httpx.TimeoutException:
            raise AuditFailure(url, f"Timeout after {self.timeout}s")
        except httpx.HTTPStatusError as e:
            raise AuditFailure(url, f"HTTP {e.response.status_code}")
        except httpx.RequestError as e:
            raise AuditFailure(url, f"Request failed: {e}")
        except json.JSONDecodeError:
            raise AuditFailure(url, "Invalid JSON in PageSpeed response")

        lhr = data.get("lighthouseResult") if isinstance(data, dict) else None
        if not lhr or not isinstance(lhr, dict):
            raise AuditFailure(url, "PageSpeed response has no lighthouseResult")
        return _parse_result(url, lhr)


class LighthouseAuditor(Auditor):
    """Runs the local ``lighthouse`` CLI against headless Chrome."""

    name = "lighthouse"

    def __init__(
        self,
        executable: str | None = None,
        chrome_path: str | None = None,
        strategy: str = "desktop",
        timeout: float = 120.0,
    ):
        self.executable = executable or os.getenv("LIGHTHOUSE_PATH") or "lighthouse"
        self.chrome_path = chrome_path or os.getenv("CHROME_PATH")
        self.strategy = strategy
        self.timeout = timeout
        self._resolved: Optional[str] = None

    def acquire(self) -> "LighthouseAuditor":
        resolved = shutil.which(self.executable)
        if resolved is None:
            raise AuditFailure("", f"Lighthouse executable not found: {self.executable}")
        self._resolved = resolved
        return self

    def release(self) -> None:
        self._resolved = None

    def command(self, url: str) -> list[str]:
        """Build the Lighthouse command line for a URL."""
        cmd = [
            self._resolved or self.executable,
            url,
            "--output=json",
            "--output-path=stdout",
            "--only-categories=performance",
            "--quiet",
            f"--chrome-flags={' '.join(CHROME_FLAGS)}",
        ]
        if self.strategy == "desktop":
            cmd.append("--preset=desktop")
        return cmd

    def _env(self) -> dict[str, str]:
        env = dict(os.environ)
        if self.chrome_path:
            env["CHROME_PATH"] = self.chrome_path
        return env

    def audit(self, url: str) -> RawAuditReport:
        if self._resolved is None:
            raise RuntimeError("LighthouseAuditor used before acquire()")

        logger.info("Running Lighthouse for %s", url)
        try:
            proc = subprocess.run(
                self.command(url),
                capture_output=True,
                text=True,
                timeout=self.timeout,
                env=self._env(),
                check=True,
            )
        except subprocess.TimeoutExpired:
            raise AuditFailure(url, f"Timeout after {self.timeout}s")
        except subprocess.CalledProcessError as e:
            detail = (e.stderr or "").strip().splitlines()
            raise AuditFailure(url, f"Lighthouse exited with {e.returncode}: {detail[-1] if detail else ''}")
        except OSError as e:
            raise AuditFailure(url, f"Could not run Lighthouse: {e}")

        try:
            lhr: dict[str, Any] = json.loads(proc.stdout)
        except json.JSONDecodeError:
            raise AuditFailure(url, "Lighthouse produced invalid JSON")
        if not isinstance(lhr, dict):
            raise AuditFailure(url, "Lighthouse output is not a result object")
        return _parse_result(url, lhr)


def build_auditor(settings: Settings) -> Auditor:
    """Create the auditor selected in the settings."""
    if settings.auditor == "lighthouse":
        return LighthouseAuditor(
            executable=settings.lighthouse_path,
            chrome_path=settings.chrome_path,
            strategy=settings.strategy,
            timeout=settings.timeout,
        )
    return PageSpeedAuditor(
        api_key=settings.api_key,
        strategy=settings.strategy,
        timeout=settings.timeout,
    )

import json
import subprocess

import httpx
import pytest

from ecolabel import auditors
from ecolabel.auditors import LighthouseAuditor, PageSpeedAuditor, build_auditor
from ecolabel.config import Settings
from ecolabel.exceptions import AuditFailure


def psi_auditor(handler, **kwargs):
    return PageSpeedAuditor(transport=httpx.MockTransport(handler), **kwargs)


def test_pagespeed_audit(sample_lhr):
    seen = {}

    def handler(request):
        seen.update(request.url.params)
        return httpx.Response(200, json={"lighthouseResult": sample_lhr})

    with psi_auditor(handler, api_key="secret", strategy="mobile") as auditor:
        report = auditor.audit("https://www.example.com/")

    assert report.performance_score == 0.87
    assert seen["url"] == "https://www.example.com/"
    assert seen["strategy"] == "mobile"
    assert seen["category"] == "performance"
    assert seen["key"] == "secret"


def test_pagespeed_http_error():
    with psi_auditor(lambda request: httpx.Response(500)) as auditor:
        with pytest.raises(AuditFailure, match="HTTP 500"):
            auditor.audit("https://www.example.com/")


def test_pagespeed_timeout():
    def handler(request):
        raise httpx.ReadTimeout("timed out", request=request)

    with psi_auditor(handler, timeout=5) as auditor:
        with pytest.raises(AuditFailure, match="Timeout after 5"):
            auditor.audit("https://www.example.com/")


def test_pagespeed_runtime_error(sample_lhr):
    sample_lhr["runtimeError"] = {"code": "FAILED_DOCUMENT_REQUEST", "message": "Unable to load page"}

    with psi_auditor(lambda r: httpx.Response(200, json={"lighthouseResult": sample_lhr})) as auditor:
        with pytest.raises(AuditFailure, match="Unable to load page"):
            auditor.audit("https://www.example.com/")


def test_pagespeed_release_closes_client():
    auditor = psi_auditor(lambda r: httpx.Response(200, json={}))
    auditor.acquire()
    auditor.release()
    with pytest.raises(RuntimeError):
        auditor.audit("https://www.example.com/")


def test_lighthouse_missing_executable(monkeypatch):
    monkeypatch.setattr(auditors.shutil, "which", lambda name: None)
    with pytest.raises(AuditFailure, match="not found"):
        LighthouseAuditor(executable="lighthouse").acquire()


def test_lighthouse_audit(monkeypatch, sample_lhr):
    calls = []

    def fake_run(cmd, **kwargs):
        calls.append((cmd, kwargs))
        return subprocess.CompletedProcess(cmd, 0, stdout=json.dumps(sample_lhr), stderr="")

    monkeypatch.setattr(auditors.shutil, "which", lambda name: "/usr/bin/lighthouse")
    monkeypatch.setattr(auditors.subprocess, "run", fake_run)

    with LighthouseAuditor(chrome_path="/opt/chrome", timeout=90) as auditor:
        report = auditor.audit("https://www.example.com/")

    cmd, kwargs = calls[0]
    assert cmd[:2] == ["/usr/bin/lighthouse", "https://www.example.com/"]
    assert "--only-categories=performance" in cmd
    assert "--preset=desktop" in cmd
    assert kwargs["timeout"] == 90
    assert kwargs["env"]["CHROME_PATH"] == "/opt/chrome"
    assert report.bootup_time_ms == 312.5


def test_lighthouse_timeout(monkeypatch):
    def fake_run(cmd, **kwargs):
        raise subprocess.TimeoutExpired(cmd, kwargs["timeout"])

    monkeypatch.setattr(auditors.shutil, "which", lambda name: "/usr/bin/lighthouse")
    monkeypatch.setattr(auditors.subprocess, "run", fake_run)

    with LighthouseAuditor(timeout=1) as auditor:
        with pytest.raises(AuditFailure, match="Timeout"):
            auditor.audit("https://www.example.com/")


def test_lighthouse_nonzero_exit(monkeypatch):
    def fake_run(cmd, **kwargs):
        raise subprocess.CalledProcessError(1, cmd, output="", stderr="Runtime error\nChrome crashed")

    monkeypatch.setattr(auditors.shutil, "which", lambda name: "/usr/bin/lighthouse")
    monkeypatch.setattr(auditors.subprocess, "run", fake_run)

    with LighthouseAuditor() as auditor:
        with pytest.raises(AuditFailure, match="Chrome crashed"):
            auditor.audit("https://www.example.com/")


def test_build_auditor(tmp_path):
    assert isinstance(build_auditor(Settings(reports_dir=tmp_path)), PageSpeedAuditor)
    lighthouse = build_auditor(Settings(reports_dir=tmp_path, auditor="lighthouse", strategy="mobile"))
    assert isinstance(lighthouse, LighthouseAuditor)
    assert lighthouse.strategy == "mobile"


@pytest.mark.parametrize("body", [
    None,
    ["lighthouseResult"],
    {"lighthouseResult": "oops"},
    {"lighthouseResult": {"runtimeError": "NO_FCP"}},
])
def test_pagespeed_malformed_payload(body):
    with psi_auditor(lambda r: httpx.Response(200, content=json.dumps(body))) as auditor:
        with pytest.raises(AuditFailure):
            auditor.audit("https://www.example.com/")


def test_lighthouse_cannot_start(monkeypatch):
    def fake_run(cmd, **kwargs):
        raise PermissionError(13, "Permission denied")

    monkeypatch.setattr(auditors.shutil, "which", lambda name: "/usr/bin/lighthouse")
    monkeypatch.setattr(auditors.subprocess, "run", fake_run)

    with LighthouseAuditor() as auditor:
        with pytest.raises(AuditFailure, match="Could not run Lighthouse"):
            auditor.audit("https://www.example.com/")


def test_lighthouse_output_not_an_object(monkeypatch):
    def fake_run(cmd, **kwargs):
        return subprocess.CompletedProcess(cmd, 0, stdout="[]", stderr="")

    monkeypatch.setattr(auditors.shutil, "which", lambda name: "/usr/bin/lighthouse")
    monkeypatch.setattr(auditors.subprocess, "run", fake_run)

    with LighthouseAuditor() as auditor:
        with pytest.raises(AuditFailure, match="not a result object"):
            auditor.audit("https://www.example.com/")

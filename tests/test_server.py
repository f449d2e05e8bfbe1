import pytest
from fastapi.testclient import TestClient

from ecolabel.config import Settings
from ecolabel.server import create_app
from ecolabel.storage import ReportStore


@pytest.fixture
def make_client(tmp_path, fake_auditor):
    def make(results):
        auditor = fake_auditor(results)
        app = create_app(Settings(reports_dir=tmp_path), auditor, ReportStore(tmp_path))
        return TestClient(app), auditor
    return make


def test_analyze(make_client, good_report):
    client, auditor = make_client({"https://example.com": good_report})

    response = client.post("/api/analyze", json={"url": "example.com"})

    assert response.status_code == 200
    body = response.json()
    assert body["url"] == "https://example.com"
    assert body["ecoData"]["ecoScore"] == 82
    assert body["ecoLabel"] == {"grade": "A", "label": "Excellent", "color": "#00852e"}
    assert body["filename"].startswith("report-example-com-")
    assert auditor.acquired == auditor.released == 1


@pytest.mark.parametrize("body", [{}, {"url": ""}, {"url": "   "}, {"url": None}])
def test_analyze_requires_url(make_client, body):
    client, auditor = make_client({})

    response = client.post("/api/analyze", json=body)

    assert response.status_code == 400
    assert response.json() == {"error": "URL is required"}
    assert auditor.audited == []


def test_analyze_multiple_without_urls(make_client):
    client, _ = make_client({})

    response = client.post("/api/analyze-multiple", json={})

    assert response.status_code == 400
    assert response.json()["success"] is False


def test_analyze_failure(make_client):
    client, _ = make_client({"https://example.com": "Timeout after 60s"})

    response = client.post("/api/analyze", json={"url": "https://example.com"})

    assert response.status_code == 500
    assert response.json() == {"error": "Analysis failed", "message": "Timeout after 60s"}


def test_analyze_multiple(make_client, good_report, poor_report):
    urls = ["https://example.com/", "https://example.com/about", "https://example.com/contact"]
    client, _ = make_client({urls[0]: good_report, urls[1]: "HTTP 404", urls[2]: poor_report})

    response = client.post("/api/analyze-multiple", json={"urls": urls})

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["domain"] == "example.com"
    assert body["successfulAnalyses"] == 2
    assert body["failedAnalyses"] == 1
    assert body["errors"] == [{"url": urls[1], "error": "HTTP 404"}]
    assert body["aggregatedEcoData"]["ecoScore"] == 47
    assert body["ecoLabel"]["grade"] == "D"
    assert body["filename"].startswith("website-report-example-com-")


def test_analyze_multiple_too_many(make_client):
    client, auditor = make_client({})
    urls = [f"https://example.com/{i}" for i in range(11)]

    response = client.post("/api/analyze-multiple", json={"urls": urls})

    assert response.status_code == 400
    assert auditor.audited == []


def test_analyze_multiple_all_failed(make_client):
    urls = ["https://example.com/a", "https://example.com/b"]
    client, _ = make_client({u: "HTTP 500" for u in urls})

    response = client.post("/api/analyze-multiple", json={"urls": urls})

    assert response.status_code == 500
    body = response.json()
    assert body["success"] is False
    assert body["successfulAnalyses"] == 0
    assert body["failedAnalyses"] == 2


def test_reports(make_client, good_report):
    client, _ = make_client({"https://example.com": good_report})
    assert client.get("/api/reports").json() == []

    filename = client.post("/api/analyze", json={"url": "example.com"}).json()["filename"]

    listing = client.get("/api/reports").json()
    assert [r["filename"] for r in listing] == [filename]
    report = client.get(f"/api/reports/{filename}").json()
    assert report["ecoData"]["ecoScore"] == 82


def test_report_not_found(make_client):
    client, _ = make_client({})
    response = client.get("/api/reports/missing.json")
    assert response.status_code == 404
    assert response.json() == {"error": "Report not found"}


def test_unexpected_error_keeps_response_shape(make_client, good_report):
    urls = ["https://example.com/", "https://example.com/about"]
    client, _ = make_client({urls[0]: good_report, urls[1]: ValueError("bad payload")})

    single = client.post("/api/analyze", json={"url": urls[1]})
    assert single.status_code == 500
    assert single.json() == {"error": "Analysis failed", "message": "bad payload"}

    multiple = client.post("/api/analyze-multiple", json={"urls": urls})
    assert multiple.status_code == 200
    assert multiple.json()["successfulAnalyses"] == 1
    assert multiple.json()["errors"] == [{"url": urls[1], "error": "bad payload"}]

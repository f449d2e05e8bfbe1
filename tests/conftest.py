from datetime import datetime, timezone

import pytest

from ecolabel.auditors import Auditor
from ecolabel.exceptions import AuditFailure
from ecolabel.models import EcoData, RawAuditReport

FIXED_TIME = datetime(2024, 5, 1, 10, 20, 30, 123456, tzinfo=timezone.utc)


class FakeAuditor(Auditor):
    """Returns canned reports; strings are raised as AuditFailure, exceptions as-is."""

    name = "fake"

    def __init__(self, results):
        self.results = results
        self.audited = []
        self.acquired = 0
        self.released = 0

    def acquire(self):
        self.acquired += 1
        return self

    def release(self):
        self.released += 1

    def audit(self, url):
        self.audited.append(url)
        result = self.results[url]
        if isinstance(result, str):
            raise AuditFailure(url, result)
        if isinstance(result, Exception):
            raise result
        return result


@pytest.fixture
def fake_auditor():
    return FakeAuditor


@pytest.fixture
def clock():
    return lambda: FIXED_TIME


@pytest.fixture
def good_report():
    return RawAuditReport(
        performance_score=0.9,
        total_byte_weight=500_000,
        bootup_time_ms=200,
        uses_green_hosting=True,
        uses_optimized_images=True,
        cumulative_layout_shift=0.05,
    )


@pytest.fixture
def poor_report():
    return RawAuditReport(
        performance_score=0.3,
        total_byte_weight=3_000_000,
        bootup_time_ms=2500,
        uses_green_hosting=False,
        uses_optimized_images=False,
        cumulative_layout_shift=0.4,
    )


@pytest.fixture
def make_eco_data():
    def make(**overrides):
        values = dict(
            eco_score=70,
            performance=80.0,
            total_bytes=400_000.0,
            bootup_time=300.0,
            hosting_green=100,
            image_optimization=100,
            cls=0.05,
        )
        values.update(overrides)
        return EcoData(**values)
    return make


@pytest.fixture
def sample_lhr():
    """Trimmed Lighthouse result document."""
    return {
        "lighthouseVersion": "11.4.0",
        "requestedUrl": "https://www.example.com/",
        "categories": {"performance": {"id": "performance", "score": 0.87}},
        "audits": {
            "total-byte-weight": {"score": 1, "numericValue": 523_456},
            "bootup-time": {"score": 0.9, "numericValue": 312.5},
            "uses-optimized-images": {"score": 1},
            "cumulative-layout-shift": {"score": 1, "numericValue": 0.021},
            "first-contentful-paint": {"score": 0.95, "numericValue": 1210.0},
            "largest-contentful-paint": {"score": 0.8, "numericValue": 2280.0},
            "max-potential-fid": {"score": 1, "numericValue": 64.0},
        },
    }

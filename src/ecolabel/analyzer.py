"""Analysis orchestration: audit URLs, score them and build reports."""

import dataclasses
import logging
from collections.abc import Callable, Sequence
from datetime import datetime, timezone
from typing import Optional
from urllib.parse import urlparse

from .auditors import Auditor
from .exceptions import (
    AggregationFailure,
    AuditFailure,
    BatchFailure,
    InvalidRequestError,
    InvalidScoreError,
)
from .models import PageAnalysis, PageError, WebsiteReport
from .scoring import aggregate, classify, compute_eco_score
from .storage import ReportStore

logger = logging.getLogger(__name__)

MAX_URLS_PER_REQUEST = 10

Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def normalize_url(url: str) -> str:
    """Ensure URL has a scheme."""
    url = url.strip()
    if not url.startswith(("http://", "https://")):
        url = "https://" + url
    return url


def validate_urls(urls: Sequence[str]) -> list[str]:
    """Check a multi-page request before anything is audited.

    Raises:
        InvalidRequestError: if there are no URLs or more than
            MAX_URLS_PER_REQUEST
    """
    cleaned = [u for u in (u.strip() for u in urls) if u]
    if not cleaned:
        raise InvalidRequestError("At least one URL is required")
    if len(cleaned) > MAX_URLS_PER_REQUEST:
        raise InvalidRequestError(
            f"At most {MAX_URLS_PER_REQUEST} URLs can be analyzed at once, got {len(cleaned)}"
        )
    return [normalize_url(u) for u in cleaned]


def iso_timestamp(moment: datetime) -> str:
    """ISO-8601 UTC timestamp with milliseconds, e.g. 2024-05-01T10:20:30.123Z."""
    moment = moment.astimezone(timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"


def sanitize_domain(url: str) -> str:
    """Hostname of a URL with dots replaced by dashes."""
    return (urlparse(url).hostname or "unknown").replace(".", "-")


def _file_timestamp(moment: datetime) -> str:
    return iso_timestamp(moment).replace(":", "-").replace(".", "-")


def report_filename(url: str, moment: datetime) -> str:
    return f"report-{sanitize_domain(url)}-{_file_timestamp(moment)}.json"


def website_report_filename(url: str, moment: datetime) -> str:
    return f"website-report-{sanitize_domain(url)}-{_file_timestamp(moment)}.json"


def _score_page(url: str, auditor: Auditor, clock: Clock) -> tuple[PageAnalysis, Optional[dict]]:
    report = auditor.audit(url)
    eco_data = compute_eco_score(report)
    analysis = PageAnalysis(
        url=url,
        eco_data=eco_data,
        eco_label=classify(eco_data.eco_score),
        analyzed_at=iso_timestamp(clock()),
    )
    logger.info("%s: EcoScore %d (%s)", url, eco_data.eco_score, analysis.eco_label.grade.value)
    return analysis, report.source


def analyze_url(
    url: str,
    auditor: Auditor,
    store: Optional[ReportStore] = None,
    clock: Clock = _utcnow,
) -> PageAnalysis:
    """Analyze a single URL.

    Args:
        url: The URL to analyze
        auditor: An acquired auditor
        store: Where to save the report (not saved if None)
        clock: Source of the current time

    Returns:
        PageAnalysis with EcoData and grade

    Raises:
        AuditFailure: if the page could not be audited
        InvalidScoreError: if the computed EcoScore is invalid
    """
    url = normalize_url(url)
    analysis, source = _score_page(url, auditor, clock)

    if store is not None:
        filename = report_filename(url, clock())
        analysis = dataclasses.replace(analysis, filename=filename)
        payload = analysis.to_dict()
        payload["lighthouseResult"] = source
        store.save(filename, payload)

    return analysis


def analyze_website(
    urls: Sequence[str],
    auditor: Auditor,
    store: Optional[ReportStore] = None,
    clock: Clock = _utcnow,
    on_progress: Optional[Callable[[int, int, str], None]] = None,
) -> tuple[WebsiteReport, Optional[str]]:
    """Analyze several pages of a site and aggregate the results.

    URLs are audited one after another, in order, with the same auditor.
    A page that fails is recorded in ``errors`` and the rest continue.

    Args:
        urls: Up to MAX_URLS_PER_REQUEST URLs
        auditor: An acquired auditor
        store: Where to save the website report (not saved if None)
        clock: Source of the current time
        on_progress: Called with (index, total, url) before each audit

    Returns:
        The WebsiteReport and the filename it was saved under (None if
        not saved)

    Raises:
        InvalidRequestError: if the URL list is empty or too long
        BatchFailure: if no page could be analyzed
        AggregationFailure: if aggregating the successful pages failed
    """
    targets = validate_urls(urls)
    pages: list[PageAnalysis] = []
    errors: list[PageError] = []

    for index, url in enumerate(targets, 1):
        if on_progress:
            on_progress(index, len(targets), url)
        try:
            analysis, _ = _score_page(url, auditor, clock)
            pages.append(analysis)
        except AuditFailure as e:
            logger.warning("Audit failed for %s: %s", url, e)
            errors.append(PageError(url=url, error=str(e)))
        except InvalidScoreError as e:
            logger.error("Invalid EcoScore for %s: %s", url, e)
            errors.append(PageError(url=url, error=str(e)))
        except Exception as e:
            logger.exception("Unexpected error analyzing %s", url)
            errors.append(PageError(url=url, error=str(e) or type(e).__name__))

    if not pages:
        raise BatchFailure(f"None of the {len(targets)} pages could be analyzed", errors)

    try:
        aggregated = aggregate([p.eco_data for p in pages])
    except Exception as e:
        logger.exception("Aggregation failed")
        raise AggregationFailure(f"Aggregation failed: {e}", pages, errors) from e

    now = clock()
    report = WebsiteReport(
        domain=urlparse(targets[0]).hostname or "",
        analyzed_at=iso_timestamp(now),
        aggregated_eco_data=aggregated,
        eco_label=classify(aggregated.eco_score),
        pages=pages,
        errors=errors,
    )

    filename = None
    if store is not None:
        filename = website_report_filename(targets[0], now)
        store.save(filename, report.to_dict())

    return report, filename

"""HTTP API for running analyses and browsing saved reports."""

import logging
import threading
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from . import __version__
from .analyzer import MAX_URLS_PER_REQUEST, analyze_url, analyze_website
from .auditors import Auditor, build_auditor
from .config import Settings
from .exceptions import (
    AggregationFailure,
    BatchFailure,
    EcoLabelError,
    InvalidRequestError,
    ReportNotFoundError,
)
from .storage import ReportStore

logger = logging.getLogger(__name__)


class AnalyzeRequest(BaseModel):
    url: Optional[str] = None


class AnalyzeMultipleRequest(BaseModel):
    urls: list[str] = Field(default_factory=list)


def create_app(
    settings: Optional[Settings] = None,
    auditor: Optional[Auditor] = None,
    store: Optional[ReportStore] = None,
) -> FastAPI:
    """Create the API application.

    Analyses share one auditor and run one at a time.
    """
    settings = settings or Settings.from_env()
    auditor = auditor or build_auditor(settings)
    store = store or ReportStore(settings.reports_dir)
    analysis_lock = threading.Lock()

    app = FastAPI(title="EcoLabel", version=__version__)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.post("/api/analyze")
    def analyze(request: AnalyzeRequest):
        if not (request.url or "").strip():
            return JSONResponse(status_code=400, content={"error": "URL is required"})
        logger.info("Starting analysis for: %s", request.url)
        try:
            with analysis_lock, auditor:
                result = analyze_url(request.url, auditor, store)
        except EcoLabelError as e:
            logger.error("Analysis error: %s", e)
            return JSONResponse(status_code=500, content={"error": "Analysis failed", "message": str(e)})
        except Exception as e:
            logger.exception("Unexpected error analyzing %s", request.url)
            return JSONResponse(status_code=500, content={"error": "Analysis failed", "message": str(e)})
        return result.to_dict()

    @app.post("/api/analyze-multiple")
    def analyze_multiple(request: AnalyzeMultipleRequest):
        logger.info("Starting analysis for %d URLs", len(request.urls))
        try:
            with analysis_lock, auditor:
                report, filename = analyze_website(request.urls, auditor, store)
        except InvalidRequestError as e:
            return JSONResponse(
                status_code=400,
                content={"success": False, "error": str(e), "maxUrls": MAX_URLS_PER_REQUEST},
            )
        except BatchFailure as e:
            return JSONResponse(status_code=500, content={
                "success": False,
                "error": str(e),
                "errors": [err.to_dict() for err in e.errors],
                "successfulAnalyses": 0,
                "failedAnalyses": len(e.errors),
            })
        except AggregationFailure as e:
            return JSONResponse(status_code=500, content={
                "success": False,
                "error": str(e),
                "pages": [p.to_dict() for p in e.pages],
                "errors": [err.to_dict() for err in e.errors],
                "successfulAnalyses": len(e.pages),
                "failedAnalyses": len(e.errors),
            })
        except EcoLabelError as e:
            logger.error("Website analysis error: %s", e)
            return JSONResponse(status_code=500, content={"success": False, "error": str(e)})
        return {"success": True, "filename": filename, **report.to_dict()}

    @app.get("/api/reports")
    def list_reports():
        return [r.to_dict() for r in store.list()]

    @app.get("/api/reports/{filename}")
    def get_report(filename: str):
        try:
            return store.load(filename)
        except ReportNotFoundError:
            return JSONResponse(status_code=404, content={"error": "Report not found"})

    return app

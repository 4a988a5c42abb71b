# SPDX-License-Identifier: AGPL-3.0-or-later
"""HTTP surface: upstream proxy with record recovery, summaries and insights."""

from __future__ import annotations

import logging
from typing import Any, Optional

from fastapi import FastAPI, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from .cascade import build_proxy_response, is_table_shaped, payload_value, recover_payload
from .errors import EmptyResultError, InsightError, UpstreamTransportError
from .insight import request_insight
from .normalize import detect_upstream_notice, normalize_analytics
from .sample import generate_sample_points
from .settings import VisitlogSettings, get_settings
from .stats import compute_stats, summarize_points
from .transport import fetch_upstream

logger = logging.getLogger(__name__)


class DataRequest(BaseModel):
    data: Any = None


class AnalyzeRequest(DataRequest):
    custom_prompt: Optional[str] = Field(default=None, alias="customPrompt")


def _error(status_code: int, message: str, details: Optional[str] = None) -> JSONResponse:
    content: dict[str, Any] = {"error": True, "message": message}
    if details is not None:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content)


def _structured(data: Any) -> Any:
    return payload_value(data) if isinstance(data, str) else data


def create_app(settings: Optional[VisitlogSettings] = None) -> FastAPI:
    """Build the FastAPI application; settings resolve lazily per request."""

    def _settings() -> VisitlogSettings:
        return settings or get_settings()

    app = FastAPI(title="visitlog-adapter", version="0.1.0")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=_settings().server.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/proxy-api")
    def proxy_api(url: Optional[str] = Query(default=None)) -> Any:
        if not url:
            return JSONResponse(status_code=400, content={"error": "url parameter is required"})
        try:
            upstream = fetch_upstream(url, settings=_settings().upstream)
        except UpstreamTransportError as exc:
            if exc.status is not None:
                return JSONResponse(
                    status_code=200,
                    content={
                        "error": True,
                        "status": exc.status,
                        "data": exc.body,
                        "message": str(exc),
                    },
                )
            return _error(500, "Upstream request failed", str(exc))
        recovery = recover_payload(upstream.text)
        return build_proxy_response(
            recovery,
            text=upstream.text,
            status=upstream.status,
            status_text=upstream.status_text,
        )

    @app.post("/process-data")
    def process_data(request: DataRequest) -> Any:
        if not request.data:
            return JSONResponse(status_code=400, content={"error": "data is required"})
        return {"success": True, "message": "Data processed", "processed_data": request.data}

    @app.post("/api/summarize")
    def summarize(request: DataRequest) -> Any:
        if request.data is None:
            return JSONResponse(status_code=400, content={"error": "data is required"})
        cfg = _settings().parsing
        data = _structured(request.data)
        points = normalize_analytics(data, date_label=cfg.date_label)
        stats = None
        if is_table_shaped(data):
            stats = compute_stats(
                data,
                date_column=cfg.date_column,
                time_column=cfg.time_column,
                keyword_column=cfg.keyword_column,
            ).to_dict()
        chart = summarize_points(points)
        notice = detect_upstream_notice(request.data) if isinstance(request.data, str) else None
        return {
            "points": [point.to_dict() for point in points],
            "stats": stats,
            "chart": chart.to_dict() if chart else None,
            "notice": notice,
        }

    @app.get("/api/sample")
    def sample(days: int = Query(default=30, ge=1, le=366)) -> Any:
        points = generate_sample_points(days)
        chart = summarize_points(points)
        return {
            "points": [point.to_dict() for point in points],
            "chart": chart.to_dict() if chart else None,
        }

    @app.post("/api/analyze")
    def analyze(request: AnalyzeRequest) -> Any:
        if not request.data:
            return JSONResponse(status_code=400, content={"error": "data is required"})
        cfg = _settings().insight
        if not cfg.api_key:
            return _error(500, "Text-generation API key is not configured")
        try:
            analysis = request_insight(request.data, request.custom_prompt, settings=cfg)
        except EmptyResultError as exc:
            return _error(500, "No analysis result", str(exc))
        except InsightError as exc:
            logger.error("Analysis failed: %s", exc)
            return _error(500, "Analysis failed", str(exc))
        return {"analysis": analysis}

    return app


__all__ = ["create_app"]

# SPDX-License-Identifier: AGPL-3.0-or-later
"""Command line interface for the recovery pipeline."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any

from .cascade import build_proxy_response, payload_value, recover_payload
from .errors import InsightError, UpstreamTransportError
from .insight import request_insight
from .normalize import detect_upstream_notice, normalize_analytics
from .sample import generate_sample_points
from .settings import get_settings
from .stats import compute_stats, summarize_points
from .transport import fetch_upstream


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Recover and summarise visit-log analytics payloads")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity written to stderr",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    recover_parser = subparsers.add_parser("recover", help="Recover a table from a saved payload")
    recover_parser.add_argument("path", help="Payload file, or '-' for stdin")

    fetch_parser = subparsers.add_parser("fetch", help="Fetch the upstream endpoint and recover a table")
    fetch_parser.add_argument("url", nargs="?", help="Endpoint URL (defaults to upstream.default_url)")

    normalize_parser = subparsers.add_parser("normalize", help="Print the per-date series of a payload")
    normalize_parser.add_argument("path", help="Payload or recovered JSON file, or '-' for stdin")

    stats_parser = subparsers.add_parser("stats", help="Print visit statistics of a payload")
    stats_parser.add_argument("path", help="Payload or recovered JSON file, or '-' for stdin")

    analyze_parser = subparsers.add_parser("analyze", help="Ask the LLM backend for insights")
    analyze_parser.add_argument("path", help="Payload or recovered JSON file, or '-' for stdin")
    analyze_parser.add_argument("--prompt", help="Custom instruction replacing the default one")

    sample_parser = subparsers.add_parser("sample", help="Print a synthetic visit series")
    sample_parser.add_argument("--days", type=int, default=30, help="Number of days to generate")

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP service")
    serve_parser.add_argument("--host", help="Bind address (defaults to server.host)")
    serve_parser.add_argument("--port", type=int, help="Bind port (defaults to server.port)")

    return parser.parse_args(argv)


def _read_text(path: str) -> str:
    if path == "-":
        return sys.stdin.read()
    return Path(path).expanduser().read_text(encoding="utf-8")


def _emit(payload: Any) -> None:
    print(json.dumps(payload, ensure_ascii=False, indent=2))


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    if args.command == "sample":
        if args.days < 1:
            print("--days must be >= 1", file=sys.stderr)
            return 2
        points = generate_sample_points(args.days)
        chart = summarize_points(points)
        _emit({"points": [point.to_dict() for point in points], "chart": chart.to_dict() if chart else None})
        return 0
    if args.command == "serve":
        return _serve(args)
    if args.command == "fetch":
        return _handle_fetch(args)

    try:
        text = _read_text(args.path)
    except OSError as exc:
        print(str(exc), file=sys.stderr)
        return 2

    if args.command == "recover":
        recovery = recover_payload(text)
        _emit(build_proxy_response(recovery, text=text, status=200, status_text="OK"))
        return 0
    if args.command == "normalize":
        return _handle_normalize(text)
    if args.command == "stats":
        parsing = get_settings().parsing
        stats = compute_stats(
            payload_value(text),
            date_column=parsing.date_column,
            time_column=parsing.time_column,
            keyword_column=parsing.keyword_column,
        )
        _emit(stats.to_dict())
        return 0
    if args.command == "analyze":
        try:
            analysis = request_insight(payload_value(text), args.prompt, settings=get_settings().insight)
        except InsightError as exc:
            print(str(exc), file=sys.stderr)
            return 4
        print(analysis)
        return 0
    raise ValueError(f"Unhandled command: {args.command}")


def _handle_fetch(args: argparse.Namespace) -> int:
    settings = get_settings()
    url = args.url or settings.upstream.default_url
    if not url:
        print("No URL given and upstream.default_url is not configured", file=sys.stderr)
        return 2
    try:
        upstream = fetch_upstream(url, settings=settings.upstream)
    except UpstreamTransportError as exc:
        print(str(exc), file=sys.stderr)
        if exc.body:
            print(exc.body, file=sys.stderr)
        return 3
    recovery = recover_payload(upstream.text)
    _emit(
        build_proxy_response(
            recovery,
            text=upstream.text,
            status=upstream.status,
            status_text=upstream.status_text,
        )
    )
    return 0


def _handle_normalize(text: str) -> int:
    notice = detect_upstream_notice(text)
    if notice:
        print(notice, file=sys.stderr)
    points = normalize_analytics(payload_value(text), date_label=get_settings().parsing.date_label)
    _emit([point.to_dict() for point in points])
    return 0


def _serve(args: argparse.Namespace) -> int:
    import uvicorn

    server = get_settings().server
    uvicorn.run(
        "visitlog.service:create_app",
        factory=True,
        host=args.host or server.host,
        port=args.port or server.port,
    )
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())

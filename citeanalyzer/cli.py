from __future__ import annotations

import argparse
import json
import sys
from collections.abc import Sequence
from dataclasses import asdict
from typing import Any

from citeanalyzer.logging_config import configure_logging, parse_redact_fields
from citeanalyzer.services.metrics.application import compare_researchers
from citeanalyzer.services.scholar.application import extract, extract_many
from citeanalyzer.services.scholar.cache import ProfileCache
from citeanalyzer.services.scholar.citation_history import fetch_citation_history
from citeanalyzer.services.scholar.errors import CiteAnalyzerError
from citeanalyzer.settings import settings


def _add_extraction_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--max-publications",
        type=int,
        default=settings.extraction_max_publications,
        help="Maximum number of publications to extract per profile.",
    )
    parser.add_argument(
        "--rate-limit",
        type=float,
        default=settings.extraction_rate_limit_seconds,
        help="Seconds to wait between consecutive requests.",
    )
    parser.add_argument(
        "--retry-attempts",
        type=int,
        default=settings.extraction_retry_attempts,
        help="Attempts per page before the extraction is aborted.",
    )
    parser.add_argument("--cache-dir", default=None, help="Directory holding cached profiles.")
    parser.add_argument("--user-agent", default=None, help="User-Agent header sent with every request.")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="citeanalyzer",
        description="Extract and compare researcher bibliometrics from Google Scholar profiles.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    extract_parser = subparsers.add_parser("extract", help="Extract one profile and print it as JSON.")
    extract_parser.add_argument("scholar_id")
    _add_extraction_options(extract_parser)

    compare_parser = subparsers.add_parser("compare", help="Extract several profiles and rank them.")
    compare_parser.add_argument("scholar_ids", nargs="+")
    compare_parser.add_argument("--max-workers", type=int, default=None)
    _add_extraction_options(compare_parser)

    history_parser = subparsers.add_parser("history", help="Print the yearly citations of one publication.")
    history_parser.add_argument("pub_id")
    history_parser.add_argument("--rate-limit", type=float, default=settings.extraction_rate_limit_seconds)
    history_parser.add_argument("--retry-attempts", type=int, default=settings.extraction_retry_attempts)
    history_parser.add_argument("--user-agent", default=None)

    clear_parser = subparsers.add_parser("clear-cache", help="Remove cached profiles.")
    clear_parser.add_argument("scholar_id", nargs="?", default=None)
    clear_parser.add_argument("--cache-dir", default=None)
    return parser


def _extraction_kwargs(args: argparse.Namespace) -> dict[str, Any]:
    return {
        "max_publications": args.max_publications,
        "rate_limit_seconds": args.rate_limit,
        "retry_attempts": args.retry_attempts,
        "user_agent": args.user_agent,
        "cache_dir": args.cache_dir,
    }


def _run(args: argparse.Namespace) -> Any:
    if args.command == "extract":
        return asdict(extract(args.scholar_id, **_extraction_kwargs(args)))
    if args.command == "compare":
        profiles = extract_many(args.scholar_ids, max_workers=args.max_workers, **_extraction_kwargs(args))
        return [asdict(row) for row in compare_researchers(profiles)]
    if args.command == "history":
        points = fetch_citation_history(
            args.pub_id,
            rate_limit_seconds=args.rate_limit,
            retry_attempts=args.retry_attempts,
            user_agent=args.user_agent,
        )
        return [asdict(point) for point in points]
    removed = ProfileCache(args.cache_dir).clear(args.scholar_id)
    return {"status": "ok", "removed": removed}


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(
        level=settings.log_level,
        log_format=settings.log_format,
        redact_fields=parse_redact_fields(settings.log_redact_fields),
        include_http_client=settings.log_include_http_client,
        stream=sys.stderr,
    )

    try:
        payload = _run(args)
    except CiteAnalyzerError as exc:
        print(json.dumps({"status": "failed", "error": str(exc), "error_type": type(exc).__name__}, indent=2))
        return 1

    print(json.dumps(payload, indent=2, ensure_ascii=False, default=str))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

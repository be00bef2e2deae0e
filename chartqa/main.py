"""Command-line entry point.

Usage:
    python -m chartqa.main chart --chart-id CH-1001
    python -m chartqa.main chart --patient-id P-77 --no-ai
    python -m chartqa.main chart --chart-id CH-1001 --force-reextract --max-concurrency 4
    python -m chartqa.main extract --file-ref uploads/visit.pdf
    python -m chartqa.main extract --file-ref https://host/training.mp4 --frames-json frames.json
"""

import argparse
import json
import sys
from pathlib import Path
from typing import Any

from chartqa.config.exceptions import ConfigurationError
from chartqa.config.settings import Settings
from chartqa.database.connection import close_pool, init_pool
from chartqa.extraction.factory import ContentExtractorFactory
from chartqa.extraction.models import ClientFrame, ExtractionRequest
from chartqa.inference.factory import InferenceClientFactory
from chartqa.inference.retry import RetryingInvoker
from chartqa.logging.logger import Log
from chartqa.processor.chart_runner import build_chart_runner
from chartqa.processor.exceptions import ChartNotFoundError
from chartqa.processor.models import ChartRequest

EXIT_NOT_FOUND = 1
EXIT_CONFIGURATION = 2


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Clinical chart QA pipeline")
    commands = parser.add_subparsers(dest="command", required=True)

    chart = commands.add_parser("chart", help="Run QA over every document of a chart")
    target = chart.add_mutually_exclusive_group(required=True)
    target.add_argument("--chart-id", help="Chart identifier")
    target.add_argument("--patient-id", help="Patient identifier (all of the patient's documents)")
    chart.add_argument(
        "--no-ai",
        action="store_true",
        help="Aggregate stored analyses only; do not call the AI provider",
    )
    chart.add_argument(
        "--force-reextract",
        action="store_true",
        help="Re-extract and re-analyze documents that already have results",
    )
    chart.add_argument(
        "--max-concurrency",
        type=int,
        default=None,
        help="Documents processed in parallel (default: CHART_MAX_CONCURRENCY)",
    )

    extract = commands.add_parser("extract", help="Extract text from a single file")
    extract.add_argument(
        "--file-ref",
        required=True,
        help="Path under FILES_ROOT, http(s) URL or data: URL",
    )
    extract.add_argument("--kind", help="Declared kind: pdf, video or powerpoint")
    extract.add_argument("--file-name", help="Original file name (used for type detection)")
    extract.add_argument(
        "--frames-json",
        type=Path,
        help='JSON file with client-rendered frames: [{"data": "...", "timestamp": "0:05"}]',
    )
    return parser.parse_args(argv)


def _load_frames(path: Path | None) -> list[ClientFrame]:
    if path is None:
        return []
    raw = json.loads(path.read_text(encoding="utf-8"))
    return [ClientFrame(data=item["data"], timestamp=item.get("timestamp", "")) for item in raw]


def _print_json(payload: dict[str, Any]) -> None:
    json.dump(payload, sys.stdout, indent=2, default=str)
    sys.stdout.write("\n")


def run_chart(args: argparse.Namespace, settings: Settings) -> int:
    if args.max_concurrency is not None:
        settings = settings.model_copy(update={"chart_max_concurrency": args.max_concurrency})
    request = ChartRequest(
        chart_id=args.chart_id,
        patient_id=args.patient_id,
        include_ai_analysis=not args.no_ai,
        force_re_extract=args.force_reextract,
    )
    init_pool(settings)
    try:
        runner = build_chart_runner(settings)
        report = runner.run(request)
    except ChartNotFoundError as exc:
        Log.error(str(exc))
        return EXIT_NOT_FOUND
    finally:
        close_pool()
    _print_json(report.to_payload())
    return 0


def run_extract(args: argparse.Namespace, settings: Settings) -> int:
    client = InferenceClientFactory.create(settings)
    invoker = RetryingInvoker(InferenceClientFactory.retry_policy(settings))
    extractor = ContentExtractorFactory.create(settings, client=client, invoker=invoker)
    request = ExtractionRequest(
        file_ref=args.file_ref,
        declared_kind=args.kind,
        file_name=args.file_name,
        client_frames=_load_frames(args.frames_json),
    )
    result = extractor.extract(request)
    _print_json(result.to_response())
    return 0


def main(argv: list[str] | None = None) -> int:
    """Entry point: load settings -> dispatch sub-command -> print JSON."""
    args = parse_args(argv)
    settings = Settings()
    Log.configure(settings.log_level)
    try:
        if args.command == "chart":
            return run_chart(args, settings)
        return run_extract(args, settings)
    except ConfigurationError as exc:
        Log.error(f"Configuration error: {exc}")
        return EXIT_CONFIGURATION


if __name__ == "__main__":
    sys.exit(main())

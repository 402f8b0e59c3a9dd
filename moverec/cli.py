import argparse
import json
import logging
import signal
import sys
from pathlib import Path

from dotenv import load_dotenv

from moverec.config.models import ALGORITHM_NAMES
from moverec.core.runner import RefactoringRunner
from moverec.entities.loader import load_snapshot
from moverec.evaluation.comparator import Comparator
from moverec.exceptions import (
    ConfigurationMismatch,
    InputValidationError,
    MoveRecError,
    OperationCanceled,
)
from moverec.reporting.reporter import report_results
from moverec.utils.logging_utils import get_logger, setup_logger
from moverec.utils.progress import CancellationToken

logger = get_logger(__name__)


def _progress_logger(step: float = 0.1):
    """Callback logging progress every ``step`` fraction."""
    last = [-1]

    def on_progress(fraction: float):
        bucket = int(fraction / step)
        if bucket != last[0]:
            last[0] = bucket
            logging.getLogger("moverec").debug(f"Progress: {fraction:.0%}")

    return on_progress


def _configure_logging(level: str, log_file: str | None = None, format_string: str | None = None):
    """Set up the package logger with its console handler on stderr so stdout stays clean."""
    return setup_logger(
        "moverec",
        level=level,
        log_file=log_file,
        format_string=format_string,
        stream=sys.stderr,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="moverec: recommend Move Method / Move Field refactorings"
    )
    parser.add_argument("--version", action="version", version="moverec 1.0.0")
    parser.add_argument(
        "--snapshot", required=True, help="Path to the entity snapshot (.json, .yaml or .yml)"
    )
    parser.add_argument(
        "--config",
        default="config/config.yaml",
        help="Path to configuration file (default: config/config.yaml)",
    )
    parser.add_argument(
        "--algorithm",
        action="append",
        choices=ALGORITHM_NAMES,
        help="Algorithm to run (repeatable; default: from config)",
    )
    parser.add_argument("--workers", type=int, help="Maximum parallel workers")
    parser.add_argument("--min-confidence", type=float, help="Drop suggestions below this confidence")
    parser.add_argument(
        "--normalization",
        choices=["none", "minmax", "zscore", "robust"],
        help="Feature normalization across the snapshot",
    )
    parser.add_argument(
        "--expected", help="JSON file of expected moves (entity -> class) to evaluate against"
    )
    parser.add_argument("--json", action="store_true", help="Output results in JSON format")
    parser.add_argument(
        "--report", action="store_true", help="Print telemetry report lines to stderr"
    )
    parser.add_argument(
        "--verbose", action="store_true", help="Enable verbose logging (DEBUG level)"
    )
    return parser


def main(argv: list[str] | None = None):
    # Load .env file (MOVEREC_USER_ID for telemetry)
    load_dotenv()

    args = build_parser().parse_args(argv)

    token = CancellationToken(on_progress=_progress_logger())
    _cancellation_requested = False

    def handle_sigint(signum, frame):
        """First Ctrl+C cancels cooperatively, the second one exits."""
        nonlocal _cancellation_requested
        if _cancellation_requested:
            sys.exit(130)
        _cancellation_requested = True
        token.cancel()

    previous_handlers = {
        sig: signal.signal(sig, handle_sigint) for sig in (signal.SIGINT, signal.SIGTERM)
    }

    log_level = "DEBUG" if args.verbose else "INFO"
    _configure_logging(log_level)

    config_overrides = {}
    if args.algorithm:
        config_overrides["algorithms"] = args.algorithm
    execution_overrides = {}
    if args.workers is not None:
        execution_overrides["max_workers"] = args.workers
    if args.min_confidence is not None:
        execution_overrides["min_confidence"] = args.min_confidence
    if execution_overrides:
        config_overrides["execution"] = execution_overrides
    if args.normalization:
        config_overrides["distance"] = {"normalization": args.normalization}

    config_path = Path(args.config)
    try:
        runner = RefactoringRunner(
            config_file=str(config_path) if config_path.exists() else None,
            config_overrides=config_overrides,
        )
        if runner.config.logging.file or runner.config.logging.level != "INFO":
            _configure_logging(
                log_level if args.verbose else runner.config.logging.level,
                log_file=runner.config.logging.file,
                format_string=runner.config.logging.format,
            )

        snapshot = load_snapshot(args.snapshot)
        results = runner.run(snapshot, token)

        evaluations = {}
        if args.expected:
            with open(args.expected, encoding="utf-8") as f:
                expected = json.load(f)
            if not isinstance(expected, dict):
                raise InputValidationError(
                    f"Expected moves file must map entity names to classes: {args.expected}"
                )
            for comparison in Comparator().compare_algorithms(results, expected):
                m = comparison.metrics
                evaluations[comparison.algorithm_name] = {
                    "precision": m.precision,
                    "recall": m.recall,
                    "f1": m.f1_score,
                }

        if args.report:
            for line in report_results(results, runner.config.reporting):
                print(line, file=sys.stderr)

        if args.json:
            output = {
                "status": "success",
                "snapshot": {
                    "classes": len(snapshot.classes),
                    "methods": len(snapshot.methods),
                    "fields": len(snapshot.fields),
                    "properties": snapshot.properties_count,
                },
                "results": [r.to_dict() for r in results],
            }
            if evaluations:
                output["evaluation"] = evaluations
            print(json.dumps(output, indent=2))
        else:
            for result in results:
                print("\n" + "=" * 60)
                print(
                    f"{result.algorithm_name}: {len(result.refactorings)} refactorings "
                    f"({result.execution_time:.2f}s, {len(result.skipped)} skipped)"
                )
                print("=" * 60)
                for r in sorted(result.refactorings, key=lambda r: (-r.confidence, r.entity_name)):
                    print(f"  {r.entity_name} -> {r.target_class} (confidence: {r.confidence:.2f})")
                if result.algorithm_name in evaluations:
                    e = evaluations[result.algorithm_name]
                    print(
                        f"  Precision={e['precision']:.2f} Recall={e['recall']:.2f} F1={e['f1']:.2f}"
                    )

    except OperationCanceled:
        if args.json:
            print(json.dumps({"status": "cancelled", "error": "Operation cancelled by user"}))
        else:
            print("\nOperation cancelled by user.")
        sys.exit(130)
    except ConfigurationMismatch as e:
        if args.json:
            print(json.dumps({"status": "error", "error": str(e), "expected": e.expected}))
        else:
            logger.error(f"Metric schema mismatch: {e}")
        sys.exit(1)
    except (MoveRecError, FileNotFoundError, json.JSONDecodeError) as e:
        if args.json:
            print(json.dumps({"status": "error", "error": str(e)}))
        else:
            logger.error(f"Error running moverec: {e}", exc_info=args.verbose)
        sys.exit(1)
    finally:
        for sig, handler in previous_handlers.items():
            signal.signal(sig, handler)


if __name__ == "__main__":
    main()

#!/usr/bin/env python3
"""
CLI for evaluating exchange records.

Usage:
    python -m reporting.cli evaluate <record_json> [--now ISO] [--json]
    python -m reporting.cli labels

Examples:
    # Text summary of an exported exchange record
    python -m reporting.cli evaluate exports/exchange_7869.json

    # JSON output as of a fixed date
    python -m reporting.cli evaluate exports/exchange_7869.json --now 2025-09-01 --json
"""

import argparse
import json
import sys
from pathlib import Path

from core.exchange import evaluate_exchange, known_labels, parse_date
from utils.config import Config

from .summary import render_summary


def load_record(path: Path) -> dict:
    """
    Load an exchange record from a JSON file.

    Raises:
        ValueError if the file does not hold a JSON object
    """
    with open(path, "r") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError("expected a JSON object at the top level")
    return data


def cmd_evaluate(args):
    """Evaluate an exchange record file."""
    input_path = Path(args.record_file)

    if not input_path.exists():
        print(f"Error: File not found: {input_path}", file=sys.stderr)
        return 1

    try:
        record = load_record(input_path)
    except json.JSONDecodeError as e:
        print(f"Error: Invalid JSON: {e}", file=sys.stderr)
        return 1
    except ValueError as e:
        print(f"Error: Invalid record: {e}", file=sys.stderr)
        return 1
    except OSError as e:
        print(f"Error: Cannot read {input_path}: {e}", file=sys.stderr)
        return 1

    now = None
    if args.now:
        now = parse_date(args.now)
        if now is None:
            print(f"Error: Invalid --now timestamp: {args.now}", file=sys.stderr)
            return 1

    config = Config.load()
    evaluation = evaluate_exchange(record, now, config.operator_email_domains)

    if args.json:
        print(json.dumps(evaluation.to_dict(), indent=2))
    else:
        print(render_summary(evaluation))
    return 0


def cmd_labels(args):
    """List the canonical labels the resolver knows."""
    for label in known_labels():
        print(label)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Exchange Lifecycle Engine - stage, deadline and roster evaluation",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    python -m reporting.cli evaluate exports/exchange_7869.json
    python -m reporting.cli evaluate exports/exchange_7869.json --json
    python -m reporting.cli labels
        """,
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    # Evaluate command
    eval_parser = subparsers.add_parser(
        "evaluate",
        help="Evaluate an exchange record JSON file",
    )
    eval_parser.add_argument(
        "record_file",
        help="Path to JSON exchange record",
    )
    eval_parser.add_argument(
        "--now",
        help="Reference instant (ISO-8601), default: current time",
    )
    eval_parser.add_argument(
        "--json",
        action="store_true",
        help="Print JSON instead of a text summary",
    )
    eval_parser.set_defaults(func=cmd_evaluate)

    # Labels command
    labels_parser = subparsers.add_parser(
        "labels",
        help="List known field labels",
    )
    labels_parser.set_defaults(func=cmd_labels)

    return parser


def main(argv=None):
    """Main CLI entry point."""
    args = build_parser().parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())

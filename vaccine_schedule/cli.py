"""Command-line runner for schedule reconciliation.

Reads JSON snapshots of the calendar and records responses, reconciles them
for one child and prints the age buckets with their applied/total badges.

**Exit Codes:**
- 0: Reconciliation completed
- 1: Infrastructure error (missing file, invalid JSON, invalid configuration)
- 2: The records response asks for a vaccination country assignment first
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

from .config_loader import DEFAULT_CONFIG_PATH, load_config, log_level
from .data_models import AgeBucket, BucketCount, DoseTemplate, MatchedEntry, VaccineRecord
from .date_labels import encode, format_display_date
from .enums import Language
from .reconcile import entry_status, reconcile, unmatched_records
from .registration import suggest_template
from .schedule_adapter import parse_records_response, templates_for_country
from .summary import overall_completion, summarize
from .timestamps import normalize
from .translation_helpers import status_label

LOG = logging.getLogger(__name__)

DEFAULT_OUTPUT_DIR = Path.cwd() / "output"


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Reconcile a country immunization calendar with a child's vaccine records",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s calendar.json records.json --birth-date 01/01/2024
  %(prog)s listing.json records.json --country MX --birth-date 2024-01-01 --language es
        """,
    )
    parser.add_argument("calendar_file", type=Path, help="Calendar response JSON")
    parser.add_argument("records_file", type=Path, help="Vaccine records response JSON")
    parser.add_argument(
        "--birth-date",
        default=None,
        help="Child's birth date (DD/MM/YYYY or ISO-8601). Omit when unknown.",
    )
    parser.add_argument(
        "--country",
        default=None,
        help="Country id to select when the calendar file is a listing of calendars",
    )
    parser.add_argument(
        "--language",
        choices=sorted(Language.all_codes()),
        default=None,
        help="Label language (default: from configuration)",
    )
    parser.add_argument(
        "--today",
        default=None,
        help="Reference date for overdue detection (DD/MM/YYYY or ISO-8601)",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=DEFAULT_CONFIG_PATH,
        dest="config_path",
        help=f"Configuration file (default: {DEFAULT_CONFIG_PATH})",
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=DEFAULT_OUTPUT_DIR,
        dest="output_dir",
        help="Output directory for logs and JSON results (default: ./output)",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        dest="write_json",
        help="Write the reconciled buckets to <output>/reconciliation_<run_id>.json",
    )
    return parser.parse_args(argv)


def validate_args(args: argparse.Namespace) -> None:
    """Validate command-line arguments and raise errors if invalid."""
    for path in (args.calendar_file, args.records_file):
        if not path.exists():
            raise FileNotFoundError(f"Input file not found: {path}")
    if args.today is not None and normalize(args.today) is None:
        raise ValueError(f"Invalid --today date: {args.today}")


def configure_logging(output_dir: Path, run_id: str, level: int = logging.INFO) -> Path:
    """Configure file logging for a reconciliation run.

    Parameters
    ----------
    output_dir : Path
        Root output directory where the logs subdirectory will be created.
    run_id : str
        Unique run identifier used in the log filename.
    level : int
        Root logging level.

    Returns
    -------
    Path
        Path to the created log file.
    """
    log_dir = output_dir / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)
    log_path = log_dir / f"reconcile_{run_id}.log"

    handler = logging.FileHandler(log_path, encoding="utf-8")
    formatter = logging.Formatter("%(asctime)s %(levelname)s %(message)s")
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(level)
    root_logger.addHandler(handler)

    return log_path


def load_json(path: Path) -> Any:
    """Read a JSON file."""
    with path.open("r", encoding="utf-8") as f:
        return json.load(f)


def build_payload(
    run_id: str,
    buckets: List[AgeBucket],
    summary: Dict[str, BucketCount],
    extras: List[VaccineRecord],
    today: Any = None,
) -> Dict[str, Any]:
    """Serialize a reconciliation result to a JSON-compatible dict."""
    total = overall_completion(summary)

    def date_or_none(instant: Optional[int]) -> Optional[str]:
        return encode(instant) if instant is not None else None

    def entry_dict(entry) -> Dict[str, Any]:
        if isinstance(entry, MatchedEntry):
            return {
                "kind": entry.kind.value,
                "name": entry.name,
                "status": entry_status(entry, today).value,
                "record_id": entry.record.id,
                "scheduled_date": date_or_none(entry.record.scheduled_date),
                "applied_date": date_or_none(entry.record.applied_date),
            }
        return {
            "kind": entry.kind.value,
            "name": entry.name,
            "status": entry_status(entry, today).value,
            "template_id": entry.template_id,
            "suggested_date": date_or_none(entry.suggested_scheduled_date),
            "notes": entry.notes,
        }

    return {
        "run_id": run_id,
        "created_at": datetime.now(timezone.utc).isoformat(),
        "applied": total.applied,
        "total": total.total,
        "complete": total.is_complete,
        "buckets": [
            {
                "key": bucket.key,
                "label": bucket.label,
                "applied": summary[bucket.key].applied,
                "total": summary[bucket.key].total,
                "entries": [entry_dict(entry) for entry in bucket.entries],
            }
            for bucket in buckets
        ],
        "unmatched_records": [
            {"id": record.id, "name": record.name, "status": record.status.value}
            for record in extras
        ],
    }


def print_buckets(
    buckets: List[AgeBucket],
    summary: Dict[str, BucketCount],
    language: str,
    today: Any = None,
) -> None:
    """Print each bucket with its badge and entries."""
    for bucket in buckets:
        print()
        print(f"{'=' * 60}")
        print(f"{bucket.label} [{summary[bucket.key].fraction}]")
        print(f"{'=' * 60}")
        for entry in bucket.entries:
            status = status_label(entry_status(entry, today), language)
            if isinstance(entry, MatchedEntry):
                when = entry.record.applied_date or entry.record.scheduled_date
            else:
                when = entry.suggested_scheduled_date
            print(f"  {entry.name:<30} {status:<12} {format_display_date(when, language)}")


def print_extras(
    extras: List[VaccineRecord],
    templates: List[DoseTemplate],
    threshold: int,
    language: str,
) -> None:
    """Print records outside the calendar, with the closest calendar dose if any."""
    for record in extras:
        status = status_label(record.status, language)
        when = record.applied_date or record.scheduled_date
        line = f"  {record.name:<30} {status:<12} {format_display_date(when, language)}"
        suggestion = suggest_template(record.name, templates, threshold)
        if suggestion is not None and suggestion.name != record.name:
            line += f"  (calendar: {suggestion.name})"
        print(line)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run reconciliation from the command line and return an exit code."""
    args = parse_args(argv)

    try:
        validate_args(args)
        config = load_config(args.config_path)
        language = args.language or Language.from_string(config.get("language")).value
        tolerance = (config.get("reconciliation", {}) or {}).get("tolerance_months", 1)
        threshold = (config.get("registration", {}) or {}).get("name_match_threshold", 80)

        run_id = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%S")
        log_path = configure_logging(args.output_dir, run_id, log_level(config))
        LOG.info("Reconciliation run %s started", run_id)

        response = parse_records_response(load_json(args.records_file))
        if response.needs_country_assignment:
            print(
                "⚠️  No vaccination calendar is assigned to this child. "
                "Assign a country before reconciling.",
                file=sys.stderr,
            )
            return 2

        templates = templates_for_country(load_json(args.calendar_file), args.country)
        today = normalize(args.today) if args.today is not None else None

        buckets = reconcile(
            templates,
            args.birth_date,
            response.records,
            tolerance_months=tolerance,
            language=language,
        )
        summary = summarize(buckets)
        extras = unmatched_records(buckets, response.records)

        print_buckets(buckets, summary, language, today)
        total = overall_completion(summary)
        print()
        print(f"✅ {total.fraction} doses applied across {len(buckets)} age groups.")
        if extras:
            print(f"ℹ️  {len(extras)} record(s) outside the calendar.")
            print_extras(extras, templates, threshold, language)

        if args.write_json:
            args.output_dir.mkdir(parents=True, exist_ok=True)
            result_path = args.output_dir / f"reconciliation_{run_id}.json"
            payload = build_payload(run_id, buckets, summary, extras, today)
            result_path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
            LOG.info("Wrote reconciliation result to %s", result_path)
            print(f"📄 Result written to {result_path}")

        print(f"🗂️  Log: {log_path}")
        return 0

    except (FileNotFoundError, ValueError, json.JSONDecodeError, yaml.YAMLError) as exc:
        print(f"\n❌ Reconciliation failed: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())

#!/usr/bin/env python3
"""Dry-run parse of a marketplace report.

Parses a WB or Ozon export and prints the parse result (rows, period,
diagnostics, warnings, errors) as JSON. Nothing is persisted.

Usage:
    python scripts/parse_report.py --marketplace WB path/to/report.xlsx
    python scripts/parse_report.py --marketplace OZON report.xlsx --summary
"""
import argparse
import asyncio
import json
import sys
from pathlib import Path

# Add project root to path
script_dir = Path(__file__).parent
project_root = script_dir.parent
sys.path.insert(0, str(project_root))

from report_ingestion.errors import ValidationError
from report_ingestion.models import ParseResult, ReportFile
from report_ingestion.parsers import parse_report


def summarize(result: ParseResult) -> dict:
    """Everything except the rows themselves."""
    return {
        "marketplace": result.marketplace,
        "file_name": result.file_name,
        "file_hash": result.file_hash,
        "period_start": result.period_start.isoformat() if result.period_start else None,
        "period_end": result.period_end.isoformat() if result.period_end else None,
        "rows": len(result.rows),
        "diagnostics": result.diagnostics.model_dump(),
        "warnings": result.warnings,
        "errors": result.errors,
    }


async def main() -> int:
    parser = argparse.ArgumentParser(description="Dry-run parse of a marketplace report")
    parser.add_argument("file", type=Path, help="Report file (.xlsx)")
    parser.add_argument(
        "--marketplace",
        required=True,
        help="Report format: WB or OZON",
    )
    parser.add_argument(
        "--summary",
        action="store_true",
        help="Print diagnostics only, without rows",
    )
    args = parser.parse_args()

    if not args.file.exists():
        print(f"❌ File not found: {args.file}", file=sys.stderr)
        return 2

    try:
        result = await parse_report(ReportFile.from_path(args.file), args.marketplace)
    except ValidationError as e:
        print(f"❌ {e.message}", file=sys.stderr)
        return 2

    if args.summary:
        print(json.dumps(summarize(result), ensure_ascii=False, indent=2))
    else:
        print(result.model_dump_json(indent=2))

    return 0 if result.ok else 1


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))

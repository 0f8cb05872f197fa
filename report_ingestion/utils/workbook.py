"""Workbook loading and period detection.

Workbooks are read once with pandas into plain grids (lists of rows with
native cell values and None for blanks), so the parsers never touch the
reader objects and nothing stays open after a parse.
"""
from datetime import date
from io import BytesIO
from pathlib import PurePath
import re
from typing import Any, Dict, Optional, Pattern, Tuple

import pandas as pd
import structlog

from report_ingestion.utils.headers import Grid, normalize_header_text

logger = structlog.get_logger(__name__)

Workbook = Dict[str, Grid]
Period = Tuple[Optional[date], Optional[date]]


def _engine_for(file_name: str) -> str:
    """Pick the pandas engine by file extension (openpyxl by default)."""
    extension = PurePath(file_name).suffix.lower()
    if extension == ".xls":
        return "xlrd"
    return "openpyxl"


def _frame_to_grid(frame: pd.DataFrame) -> Grid:
    """Convert a header-less DataFrame into rows of native values."""
    cleaned = frame.astype(object).where(pd.notna(frame), None)
    return [list(row) for row in cleaned.itertuples(index=False, name=None)]


def load_workbook(content: bytes, file_name: str = "") -> Workbook:
    """Read every sheet of a workbook into grids, preserving sheet order.

    Raises:
        Whatever the underlying reader raises for corrupt content; parsers
        convert that into a single error string.
    """
    frames = pd.read_excel(
        BytesIO(content),
        sheet_name=None,
        header=None,
        dtype=object,
        engine=_engine_for(file_name),
    )
    workbook = {str(name): _frame_to_grid(frame) for name, frame in frames.items()}
    logger.debug(
        "workbook_loaded",
        sheets=list(workbook),
        rows={name: len(grid) for name, grid in workbook.items()},
    )
    return workbook


def find_sheet(workbook: Workbook, expected_name: str) -> Optional[str]:
    """Find the first sheet whose normalized name contains the expected name."""
    expected = normalize_header_text(expected_name)
    for sheet_name in workbook:
        if expected in normalize_header_text(sheet_name):
            return sheet_name
    return None


def detect_period(
    workbook: Workbook,
    pattern: Pattern[str],
    max_rows: int,
    max_cols: int = 10,
) -> Period:
    """Detect the reporting period from free-text cells.

    Scans rows 0..max_rows and columns 0..max_cols of every sheet, in
    sheet order, for a cell matching ``pattern``. The pattern must capture
    six groups: day, month, year of the start date, then of the end date.
    The first match with two valid calendar dates wins.

    Returns:
        (start, end), or (None, None) if no sheet contains a period
    """
    for grid in workbook.values():
        for row in grid[: max_rows + 1]:
            for cell in row[: max_cols + 1]:
                if cell is None or cell == "":
                    continue
                match = pattern.search(str(cell))
                if not match:
                    continue
                period = _period_from_match(match.groups())
                if period is not None:
                    return period
    return None, None


def _period_from_match(groups: Tuple[Any, ...]) -> Optional[Tuple[date, date]]:
    try:
        day1, month1, year1, day2, month2, year2 = (int(g) for g in groups)
        return date(year1, month1, day1), date(year2, month2, day2)
    except (TypeError, ValueError):
        return None


# "с 01.01.2024 по 07.01.2024"
WB_PERIOD_PATTERN = re.compile(
    r"с\s+(\d{1,2})\.(\d{1,2})\.(\d{4})\s+по\s+(\d{1,2})\.(\d{1,2})\.(\d{4})",
    re.IGNORECASE,
)

# "Период: 01.01.2024 - 07.01.2024"
OZON_PERIOD_PATTERN = re.compile(
    r"период[:\s]+(\d{1,2})\.(\d{1,2})\.(\d{4})\s*[-–—]\s*(\d{1,2})\.(\d{1,2})\.(\d{4})",
    re.IGNORECASE,
)

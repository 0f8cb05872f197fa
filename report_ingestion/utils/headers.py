"""Header and row utilities for loosely structured report grids.

A grid is a list of rows, each row a list of cell values (str, number or
None). These helpers find the table inside exports that put titles and
metadata above the real header, and tell product rows apart from totals
and garbage rows.
"""

import re
from typing import Any, Callable, Collection, List, Optional, Pattern, Sequence, Union

Grid = List[List[Any]]
ColumnCandidate = Union[str, Pattern[str]]

# Marketplace exports put titles/metadata above the table; scanning deeper
# than this risks matching words inside data rows.
DEFAULT_HEADER_SCAN_ROWS = 50

TOTALS_MARKERS = ("итого", "всего", "total")
# "Итоговая сумма", "Итого:" and similar; other markers must match the whole cell
TOTALS_PREFIX = "итог"

ARTIKUL_PATTERN = re.compile(r"^[A-Z0-9]+-[A-Z0-9]+")

_WHITESPACE_RE = re.compile(r"\s+")


def normalize_header_text(cell: Any) -> str:
    """Normalize header text: trim, collapse whitespace (incl. NBSP and line breaks), lower-case."""
    if cell is None:
        return ""
    text = str(cell)
    return _WHITESPACE_RE.sub(" ", text).strip().lower()


def locate_header_row(
    grid: Sequence[Sequence[Any]],
    predicate: Callable[[str], bool],
    max_rows_scanned: int = DEFAULT_HEADER_SCAN_ROWS,
) -> Optional[int]:
    """Find the first row (0..max_rows_scanned inclusive) with a cell matching predicate.

    Args:
        grid: Sheet rows
        predicate: Called with each non-empty normalized cell text
        max_rows_scanned: Last row index to inspect

    Returns:
        Row index, or None when no row inside the window matches
    """
    last_row = min(max_rows_scanned, len(grid) - 1)
    for row_index in range(last_row + 1):
        for cell in grid[row_index] or []:
            normalized = normalize_header_text(cell)
            if normalized and predicate(normalized):
                return row_index
    return None


def locate_header_row_by_keywords(
    grid: Sequence[Sequence[Any]],
    keywords: Sequence[str],
    max_rows_scanned: int = DEFAULT_HEADER_SCAN_ROWS,
) -> Optional[int]:
    """Find the first row with a cell containing any of the keywords."""
    normalized_keywords = [normalize_header_text(keyword) for keyword in keywords]
    return locate_header_row(
        grid,
        lambda cell: any(keyword in cell for keyword in normalized_keywords),
        max_rows_scanned,
    )


def _candidate_matches(candidate: ColumnCandidate, header: str) -> bool:
    if isinstance(candidate, str):
        return normalize_header_text(candidate) in header
    return candidate.search(header) is not None


def resolve_column(
    headers: Sequence[Any],
    candidates: Sequence[ColumnCandidate],
    exclude: Collection[int] = (),
) -> Optional[int]:
    """Resolve a column index from an ordered list of candidates.

    Candidates are tried in priority order; the first candidate that
    matches any header wins, even when a later candidate would match a
    header more precisely. String candidates match as substrings of the
    normalized header, compiled patterns via ``search``.

    Args:
        headers: Header cells (raw or already normalized)
        candidates: Ordered phrasings, most preferred first
        exclude: Indices already claimed by another field

    Returns:
        Index of the matching header, or None
    """
    normalized_headers = [normalize_header_text(header) for header in headers]
    for candidate in candidates:
        for index, header in enumerate(normalized_headers):
            if index in exclude or not header:
                continue
            if _candidate_matches(candidate, header):
                return index
    return None


def is_identifier_valid(value: Any) -> bool:
    """Check that a value looks like a seller artikul (e.g. GFA-5200)."""
    if value is None:
        return False
    return ARTIKUL_PATTERN.match(str(value).strip().upper()) is not None


def is_totals_row(row: Sequence[Any]) -> bool:
    """Check if row looks like a totals/summary row by its first cell."""
    if not row or row[0] is None:
        return False
    first_cell = str(row[0]).strip().lower()
    return first_cell in TOTALS_MARKERS or first_cell.startswith(TOTALS_PREFIX)


def is_blank_row(row: Optional[Sequence[Any]]) -> bool:
    """Check if every cell of the row is empty."""
    if not row:
        return True
    return all(cell is None or str(cell).strip() == "" for cell in row)


def cell_at(row: Sequence[Any], index: Optional[int]) -> Any:
    """Return the cell at index, or None for an unresolved column or short row."""
    if index is None or index >= len(row):
        return None
    return row[index]

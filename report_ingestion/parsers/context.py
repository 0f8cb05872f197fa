"""Mutable state of a single parse call.

A fresh ParseContext is created for every parse and converted into the
frozen ParseResult exactly once, so no state is shared between calls.
"""
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Optional, Sequence, Union

from report_ingestion.models.parse_result import Marketplace, ParseDiagnostics, ParseResult
from report_ingestion.models.report_row import OzonRow, WildberriesRow
from report_ingestion.utils.numbers import (
    ClampCallback,
    clamp_fraction,
    is_blank_value,
    parse_percent_to_fraction,
    safe_divide,
)

ReportRow = Union[WildberriesRow, OzonRow]

SKIP_TOTALS_ROW = "totals_row"
SKIP_INVALID_ARTIKUL = "invalid_artikul"
SKIP_MISSING_REQUIRED = "missing_required"
SKIP_INVALID_VALUES = "invalid_values"


@dataclass
class ParseContext:
    """Accumulates rows, diagnostics, warnings and errors of one parse."""
    marketplace: Marketplace
    file_name: str = ""
    file_hash: Optional[str] = None
    period_start: Optional[date] = None
    period_end: Optional[date] = None
    rows: List[ReportRow] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    diagnostics: Dict[str, Any] = field(default_factory=dict)
    skip_reasons: Dict[str, int] = field(default_factory=dict)
    # dict keeps first-seen order; values unused
    _warnings: Dict[str, None] = field(default_factory=dict)

    def set_diagnostic(self, name: str, value: Any) -> None:
        self.diagnostics[name] = value

    def warn(self, message: str) -> None:
        """Add an operator warning; repeated messages are kept once."""
        self._warnings.setdefault(message, None)

    @property
    def warnings(self) -> List[str]:
        return list(self._warnings)

    def fail(self, messages: Sequence[str]) -> None:
        self.errors.extend(messages)

    # ------------------------------------------------------------------
    # Row bookkeeping
    # ------------------------------------------------------------------

    def count_scanned(self) -> None:
        self._increment("total_rows_scanned")

    def skip(self, reason: str) -> None:
        self._increment("rows_skipped")
        self.skip_reasons[reason] = self.skip_reasons.get(reason, 0) + 1

    def accept(self, row: ReportRow) -> None:
        self._increment("rows_accepted")
        self.rows.append(row)

    def _increment(self, name: str, by: int = 1) -> None:
        self.diagnostics[name] = self.diagnostics.get(name, 0) + by

    # ------------------------------------------------------------------
    # Value corrections
    # ------------------------------------------------------------------

    def negative_clamped(self, label: str) -> ClampCallback:
        """Callback recording that a negative value of ``label`` was zeroed."""
        def record(_value: float) -> None:
            self._increment("negative_values_clamped")
            self.warn(f'{self.marketplace}: отрицательные значения "{label}" были обнулены.')
        return record

    def fraction_clamped(self, label: str) -> ClampCallback:
        """Callback recording that a ratio of ``label`` was forced into 0..1."""
        def record(_value: float) -> None:
            self.warn(f'{self.marketplace}: значения "{label}" вне диапазона 0..1 были ограничены.')
        return record

    def resolve_ratio(
        self,
        raw: Any,
        numerator: Optional[float],
        denominator: Optional[float],
        label: str,
    ) -> Optional[float]:
        """Take a ratio from its source cell, or compute it from the counts.

        A blank cell silently uses the computed ratio. A present cell that
        is not a valid percent/fraction also falls back to the computed
        ratio, and that substitution is reported as a warning.
        """
        if not is_blank_value(raw):
            parsed = parse_percent_to_fraction(raw)
            if parsed is not None:
                return parsed
            self.warn(
                f'{self.marketplace}: нераспознанные значения "{label}" '
                f'заменены расчетными.'
            )
        return clamp_fraction(safe_divide(numerator, denominator), self.fraction_clamped(label))

    # ------------------------------------------------------------------
    # Result
    # ------------------------------------------------------------------

    def to_result(self) -> ParseResult:
        """Freeze the accumulated state into a ParseResult."""
        clamped = self.diagnostics.get("negative_values_clamped", 0)
        if clamped:
            self.warn(
                f"{self.marketplace}: обнаружены отрицательные значения ({clamped} шт.), "
                f"они были обнулены."
            )

        diagnostics = ParseDiagnostics(
            **self.diagnostics,
            skip_reasons=dict(self.skip_reasons),
        )
        return ParseResult(
            marketplace=self.marketplace,
            file_name=self.file_name,
            file_hash=self.file_hash,
            # rows are unreliable once any structural error was found
            rows=[] if self.errors else list(self.rows),
            period_start=self.period_start,
            period_end=self.period_end,
            diagnostics=diagnostics,
            warnings=self.warnings,
            errors=list(self.errors),
        )

"""Pydantic models for parse results and diagnostics."""
from datetime import date
from typing import Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from report_ingestion.models.report_row import OzonRow, WildberriesRow

Marketplace = Literal["WB", "OZON"]


class ParseDiagnostics(BaseModel):
    """Audit information about one parse, for operator display only.
    
    Callers must not branch on diagnostics: use ``errors``/``warnings`` of
    the result for control flow.
    """
    
    sheet_name: Optional[str] = None
    header_row_index: Optional[int] = Field(
        default=None,
        description="Header row of single-row header reports (WB)"
    )
    header_start_row: Optional[int] = Field(
        default=None,
        description="Group row of two-row header reports (Ozon)"
    )
    header_second_row: Optional[int] = Field(
        default=None,
        description="Metric row of two-row header reports (Ozon)"
    )
    header_sample: List[str] = Field(default_factory=list)
    total_rows_scanned: int = 0
    rows_accepted: int = 0
    rows_skipped: int = 0
    skip_reasons: Dict[str, int] = Field(default_factory=dict)
    column_mapping: Dict[str, Optional[str]] = Field(default_factory=dict)
    missing_columns: List[str] = Field(default_factory=list)
    duplicates_aggregated: int = 0
    aggregation_applied: bool = False
    negative_values_clamped: int = 0
    
    model_config = ConfigDict(frozen=True)


class ParseResult(BaseModel):
    """Outcome of parsing one report file.
    
    A non-empty ``errors`` list means the file must be rejected and
    ``rows`` is empty. Warnings alone mean the rows can be stored, but the
    operator should see the warnings.
    """
    
    marketplace: Marketplace
    file_name: str = ""
    file_hash: Optional[str] = Field(
        default=None,
        description="SHA-256 of the raw file bytes"
    )
    rows: List[Union[WildberriesRow, OzonRow]] = Field(default_factory=list)
    period_start: Optional[date] = None
    period_end: Optional[date] = None
    diagnostics: ParseDiagnostics = Field(default_factory=ParseDiagnostics)
    warnings: List[str] = Field(default_factory=list)
    errors: List[str] = Field(default_factory=list)
    
    model_config = ConfigDict(frozen=True)
    
    @property
    def ok(self) -> bool:
        """True when the rows may be persisted."""
        return not self.errors

"""Pydantic models for parsed report data."""
from report_ingestion.models.report_row import (
    ParsedRow,
    WildberriesRow,
    OzonRow,
)
from report_ingestion.models.parse_result import (
    Marketplace,
    ParseDiagnostics,
    ParseResult,
)
from report_ingestion.models.report_file import ReportFile

__all__ = [
    "ParsedRow",
    "WildberriesRow",
    "OzonRow",
    "Marketplace",
    "ParseDiagnostics",
    "ParseResult",
    "ReportFile",
]

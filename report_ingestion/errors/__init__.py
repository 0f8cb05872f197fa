"""Error handling module."""
from report_ingestion.errors.exceptions import (
    DataIngestionError,
    ParserError,
    ValidationError,
    StructureError,
)

__all__ = [
    "DataIngestionError",
    "ParserError",
    "ValidationError",
    "StructureError",
]

"""Custom exception hierarchy for report ingestion errors."""
from typing import List, Optional


class DataIngestionError(Exception):
    """Base exception for all report ingestion errors."""
    
    def __init__(self, message: str, *args, **kwargs):
        """Initialize error with message."""
        self.message = message
        super().__init__(message, *args, **kwargs)


class ParserError(DataIngestionError):
    """Raised when parser encounters an error during report parsing."""
    pass


class ValidationError(DataIngestionError):
    """Raised when caller input (marketplace code, file handle) is invalid."""
    pass


class StructureError(ParserError):
    """Raised when the workbook does not have the expected report structure.
    
    Carries every problem found by the failing check, so that all missing
    columns are reported at once instead of one per upload attempt.
    """
    
    def __init__(self, message: str, messages: Optional[List[str]] = None):
        super().__init__(message)
        self.messages = messages or [message]

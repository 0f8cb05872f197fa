"""Pytest configuration and fixtures for test suite.

This is the root-level conftest.py that provides:
- Python path setup (so we can import report_ingestion without installing)
- Basic environment variable defaults
- Workbook builders shared by the parser tests
"""
import os
import sys
from io import BytesIO
from pathlib import Path
from typing import Any, Callable, Dict, List

import pytest

# Set environment variables BEFORE importing modules that use settings
os.environ.setdefault("INGESTION_LOG_LEVEL", "WARNING")
os.environ.setdefault("INGESTION_LOG_FORMAT", "console")

# Add project root to Python path
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

import openpyxl

from report_ingestion.config import get_settings
from report_ingestion.models import ReportFile


Sheets = Dict[str, List[List[Any]]]


def build_workbook_bytes(sheets: Sheets) -> bytes:
    """Write sheets (name -> rows) into an in-memory .xlsx file."""
    workbook = openpyxl.Workbook()
    workbook.remove(workbook.active)
    for name, rows in sheets.items():
        sheet = workbook.create_sheet(title=name)
        for row in rows:
            sheet.append(row)
    buffer = BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


@pytest.fixture(scope="session", autouse=True)
def setup_test_environment():
    """Set up basic test environment variables before any tests run."""
    os.environ.setdefault("INGESTION_ENVIRONMENT", "test")
    
    yield


@pytest.fixture
def make_report() -> Callable[..., ReportFile]:
    """Factory building a ReportFile from sheet rows.
    
    Usage:
        report = make_report({"Товары": [[...], [...]]})
    """
    def _make(sheets: Sheets, name: str = "report.xlsx") -> ReportFile:
        return ReportFile(name=name, content=build_workbook_bytes(sheets))
    return _make


@pytest.fixture
def fresh_settings():
    """Drop cached settings before and after a test that changes env vars."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()

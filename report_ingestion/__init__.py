"""Marketplace report ingestion: parsing of WB and Ozon seller reports."""
from report_ingestion.parsers import parse_ozon_file, parse_report, parse_wb_file

__all__ = ["parse_wb_file", "parse_ozon_file", "parse_report"]

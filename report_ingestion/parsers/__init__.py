"""Parser modules for marketplace report formats."""
from report_ingestion.parsers.base_parser import ReportParser
from report_ingestion.parsers.parser_registry import (
    register_parser,
    get_parser,
    create_parser_instance,
    list_registered_parsers,
    parse_report,
)
from report_ingestion.parsers.wb_parser import WildberriesReportParser, parse_wb_file
from report_ingestion.parsers.ozon_parser import OzonReportParser, parse_ozon_file

# Register parsers
register_parser("wb", WildberriesReportParser)
register_parser("ozon", OzonReportParser)

__all__ = [
    "ReportParser",
    "register_parser",
    "get_parser",
    "create_parser_instance",
    "list_registered_parsers",
    "parse_report",
    "WildberriesReportParser",
    "OzonReportParser",
    "parse_wb_file",
    "parse_ozon_file",
]

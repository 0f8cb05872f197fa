"""Parser registry for dynamic parser registration and retrieval."""
from typing import Any, Dict, Type, Optional

from report_ingestion.errors.exceptions import ParserError, ValidationError
from report_ingestion.models.parse_result import ParseResult
from report_ingestion.parsers.base_parser import ReportParser


# Global registry mapping parser type strings to parser classes
_parser_registry: Dict[str, Type[ReportParser]] = {}


def register_parser(parser_type: str, parser_class: Type[ReportParser]) -> None:
    """Register a parser class for a given parser type.
    
    Args:
        parser_type: Unique identifier for the parser (e.g., "wb")
        parser_class: Parser class that inherits from ReportParser
    
    Raises:
        ValueError: If parser_type is already registered
        TypeError: If parser_class does not inherit from ReportParser
    """
    if not issubclass(parser_class, ReportParser):
        raise TypeError(
            f"Parser class {parser_class.__name__} must inherit from ReportParser"
        )
    
    if parser_type in _parser_registry:
        raise ValueError(
            f"Parser type '{parser_type}' is already registered. "
            f"Existing: {_parser_registry[parser_type].__name__}"
        )
    
    _parser_registry[parser_type] = parser_class


def get_parser(parser_type: str) -> Optional[Type[ReportParser]]:
    """Get parser class for a given parser type, or None."""
    return _parser_registry.get(parser_type)


def create_parser_instance(parser_type: str, **kwargs) -> ReportParser:
    """Create an instance of a parser for a given parser type.
    
    Raises:
        ParserError: If parser type is not registered
    """
    parser_class = get_parser(parser_type)
    if parser_class is None:
        available = ", ".join(_parser_registry.keys()) if _parser_registry else "none"
        raise ParserError(
            f"Parser type '{parser_type}' is not registered. "
            f"Available parsers: {available}"
        )
    
    try:
        return parser_class(**kwargs)
    except Exception as e:
        raise ParserError(
            f"Failed to create parser instance for '{parser_type}': {e}"
        ) from e


def list_registered_parsers() -> list[str]:
    """List all registered parser types."""
    return list(_parser_registry.keys())


async def parse_report(file: Any, marketplace: str) -> ParseResult:
    """Parse a report with the parser of the given marketplace ("WB" or "OZON").
    
    Raises:
        ValidationError: If the marketplace code is unknown (caller error,
                         reported before the file is touched)
    """
    parser_type = (marketplace or "").strip().lower()
    if get_parser(parser_type) is None:
        raise ValidationError(f"Invalid marketplace: {marketplace!r}")
    return await create_parser_instance(parser_type).parse(file)

"""Abstract parser interface for marketplace report formats."""
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional, Sequence, Set

import structlog

from report_ingestion.config import get_settings
from report_ingestion.errors.exceptions import StructureError, ValidationError
from report_ingestion.models.parse_result import Marketplace, ParseResult
from report_ingestion.parsers.context import ParseContext
from report_ingestion.utils.file_reader import compute_file_hash, get_file_name, read_file_bytes
from report_ingestion.utils.headers import normalize_header_text
from report_ingestion.utils.workbook import Workbook, load_workbook

logger = structlog.get_logger(__name__)


class ReportParser(ABC):
    """Abstract base class for marketplace report parsers.

    ``parse()`` owns the outer flow shared by every format: read the bytes,
    open the workbook and convert any failure into ``errors``. Subclasses
    implement ``parse_workbook()`` for their sheet layout and raise
    StructureError for fatal structure problems.

    ``parse()`` never raises: a corrupt file, an unreadable handle or an
    unexpected bug all end up as a single error string in the result.
    """

    marketplace: Marketplace

    async def parse(self, file: Any) -> ParseResult:
        """Parse a report file handle into a ParseResult.

        Args:
            file: Object with ``read()`` (plain or awaitable) and ``name``
                  or ``filename``

        Returns:
            Fresh ParseResult; check ``errors`` before persisting rows
        """
        file_name = get_file_name(file)
        context = ParseContext(marketplace=self.marketplace, file_name=file_name)
        log = logger.bind(marketplace=self.marketplace, file_name=file_name)
        log.info("report_parse_started")

        try:
            content = await read_file_bytes(file)
            context.file_hash = compute_file_hash(content)
            workbook = load_workbook(content, file_name)
            self.parse_workbook(workbook, context, log)
        except StructureError as e:
            log.warning("report_structure_invalid", errors=e.messages)
            context.fail(e.messages)
        except ValidationError as e:
            log.warning("report_file_rejected", error=e.message)
            context.fail([e.message])
        except Exception as e:
            log.exception("report_parse_failed", error=str(e))
            context.fail([f"Ошибка парсинга: {e}"])

        result = context.to_result()
        log.info(
            "report_parse_completed",
            rows=len(result.rows),
            errors=len(result.errors),
            warnings=len(result.warnings),
            period_start=str(result.period_start) if result.period_start else None,
        )
        return result

    @abstractmethod
    def parse_workbook(self, workbook: Workbook, context: ParseContext, log: Any) -> None:
        """Parse an opened workbook into the context.

        Raises:
            StructureError: If the sheet, header or a required column is missing
        """
        pass

    @abstractmethod
    def get_parser_name(self) -> str:
        """Return unique identifier for this parser type (e.g. "wb", "ozon")."""
        pass

    # ------------------------------------------------------------------
    # Helpers shared by the formats
    # ------------------------------------------------------------------

    @staticmethod
    def header_sample(headers: Sequence[Any], limit: Optional[int] = None) -> List[str]:
        """First non-blank header texts, for operator debugging."""
        limit = limit or get_settings().header_sample_size
        texts = [normalize_header_text(header) for header in headers]
        return [text for text in texts if text][:limit]

    @staticmethod
    def resolve_columns(
        specs: Dict[str, Any],
        resolve: Callable[[Any, Set[int]], Optional[int]],
    ) -> Dict[str, Optional[int]]:
        """Resolve every field in order; a source column serves one field only.

        Args:
            specs: Field -> whatever ``resolve`` needs to find its column
            resolve: Called with the spec and the indices already claimed
        """
        claimed: Set[int] = set()
        column_map: Dict[str, Optional[int]] = {}
        for key, spec in specs.items():
            index = resolve(spec, claimed)
            if index is not None:
                claimed.add(index)
            column_map[key] = index
        return column_map

    @staticmethod
    def record_column_mapping(
        context: ParseContext,
        column_map: Dict[str, Optional[int]],
        headers: Sequence[Any],
    ) -> None:
        """Store column -> source header text for diagnostics."""
        mapping: Dict[str, Optional[str]] = {}
        for key, index in column_map.items():
            if index is None or index >= len(headers) or headers[index] is None:
                mapping[key] = None
            else:
                mapping[key] = str(headers[index])
        context.set_diagnostic("column_mapping", mapping)

    @staticmethod
    def check_required_columns(
        context: ParseContext,
        column_map: Dict[str, Optional[int]],
        required: Dict[str, str],
        message_template: str,
    ) -> None:
        """Raise StructureError listing every unresolved required column.

        Args:
            required: Column key -> human label
            message_template: Error text with a ``{label}`` placeholder
        """
        missing = [key for key in required if column_map.get(key) is None]
        context.set_diagnostic("missing_columns", missing)
        if missing:
            messages = [message_template.format(label=required[key]) for key in missing]
            raise StructureError(messages[0], messages)

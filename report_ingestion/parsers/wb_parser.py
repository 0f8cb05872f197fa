"""Wildberries sales funnel report parser.

Single header row, located by the artikul column label, with tolerant
column matching: every field has an ordered list of phrasings, and the
exact export wording is preferred over looser fallbacks.
"""
import re
from typing import Any, Dict, List, Optional

from pydantic import ValidationError as PydanticValidationError

from report_ingestion.models.parse_result import ParseResult
from report_ingestion.models.report_row import WildberriesRow
from report_ingestion.parsers.base_parser import ReportParser
from report_ingestion.parsers.context import (
    SKIP_INVALID_ARTIKUL,
    SKIP_INVALID_VALUES,
    SKIP_MISSING_REQUIRED,
    SKIP_TOTALS_ROW,
    ParseContext,
)
from report_ingestion.errors.exceptions import StructureError
from report_ingestion.utils.headers import (
    ColumnCandidate,
    cell_at,
    is_blank_row,
    is_identifier_valid,
    is_totals_row,
    locate_header_row,
    resolve_column,
)
from report_ingestion.utils.numbers import (
    clamp_non_negative,
    coerce_non_negative_int,
    parse_locale_number,
)
from report_ingestion.utils.workbook import (
    WB_PERIOD_PATTERN,
    Workbook,
    detect_period,
    find_sheet,
)

SHEET_NAME = "Товары"
ARTIKUL_KEYWORD = "артикул"
HEADER_SCAN_ROWS = 20
PERIOD_SCAN_ROWS = 50

COLUMN_CANDIDATES: Dict[str, List[ColumnCandidate]] = {
    "artikul": ["артикул продавца", "артикул"],
    "impressions": ["показы"],
    "visits": ["переходы в карточку", "перешли в карточку", "переход", "карточ"],
    "ctr": ["ctr"],
    "add_to_cart": ["положили в корзину", "добавления в корзину", "добавили в корзину"],
    "cr_to_cart": ["конверсия в корзину", "конверси"],
    # revenue first: its header also starts with "заказали"
    "revenue": ["заказали на сумму", "выруч"],
    "orders": ["заказали, шт", "заказали шт", "заказы, шт", re.compile(r"заказали(?!.*сумм)")],
    "price_avg": ["средняя цена"],
    "stock_end": ["остатки", "остаток", "остатк"],
    "delivery_avg_hours": ["среднее время доставки", "время достав"],
    "rating": ["рейтинг"],
    "reviews_count": ["отзыв"],
}

REQUIRED_COLUMNS = {
    "artikul": "Артикул продавца",
    "impressions": "Показы",
}

FIELD_LABELS = {
    "impressions": "Показы",
    "visits": "Переходы в карточку",
    "ctr": "CTR",
    "add_to_cart": "Положили в корзину",
    "cr_to_cart": "Конверсия в корзину",
    "orders": "Заказали, шт",
    "revenue": "Заказали на сумму",
    "price_avg": "Средняя цена",
    "stock_end": "Остатки",
    "delivery_avg_hours": "Среднее время доставки",
    "rating": "Рейтинг",
    "reviews_count": "Отзывы",
}


class WildberriesReportParser(ReportParser):
    """Parser for the Wildberries "Товары" sales funnel export."""

    marketplace = "WB"

    def get_parser_name(self) -> str:
        return "wb"

    def parse_workbook(self, workbook: Workbook, context: ParseContext, log: Any) -> None:
        context.period_start, context.period_end = detect_period(
            workbook, WB_PERIOD_PATTERN, max_rows=PERIOD_SCAN_ROWS
        )

        sheet_name = find_sheet(workbook, SHEET_NAME)
        if sheet_name is None:
            log.warning("sheet_not_found", expected=SHEET_NAME, sheets=list(workbook))
            raise StructureError(
                'Лист "Товары" не найден. Проверьте, что файл содержит лист '
                'с названием, содержащим "товары"'
            )
        context.set_diagnostic("sheet_name", sheet_name)

        grid = workbook[sheet_name]
        if len(grid) < 2:
            raise StructureError("Файл не содержит данных (меньше 2 строк)")

        header_row = locate_header_row(
            grid, lambda cell: ARTIKUL_KEYWORD in cell, HEADER_SCAN_ROWS
        )
        if header_row is None:
            raise StructureError(
                f'WB: не нашли строку шапки с колонкой "Артикул продавца" '
                f'в первых {HEADER_SCAN_ROWS + 1} строках'
            )
        context.set_diagnostic("header_row_index", header_row)
        log.info("header_row_detected", header_row=header_row)

        headers = grid[header_row]
        context.set_diagnostic("header_sample", self.header_sample(headers))

        column_map = self.resolve_columns(
            COLUMN_CANDIDATES,
            lambda candidates, claimed: resolve_column(headers, candidates, exclude=claimed),
        )
        self.record_column_mapping(context, column_map, headers)
        self.check_required_columns(
            context,
            column_map,
            REQUIRED_COLUMNS,
            'Обязательная колонка "{label}" не найдена',
        )

        if column_map["visits"] is None:
            context.warn(
                'WB: колонка "Переходы в карточку" не найдена, переходы приняты за 0, '
                'CTR рассчитан от нуля.'
            )

        for row in grid[header_row + 1:]:
            self._parse_row(row, column_map, context, log)

    def _parse_row(
        self,
        row: List[Any],
        columns: Dict[str, Optional[int]],
        context: ParseContext,
        log: Any,
    ) -> None:
        if is_blank_row(row):
            return
        context.count_scanned()

        if is_totals_row(row):
            context.skip(SKIP_TOTALS_ROW)
            return

        artikul = str(cell_at(row, columns["artikul"]) or "").strip().upper()
        if not is_identifier_valid(artikul):
            context.skip(SKIP_INVALID_ARTIKUL)
            return

        def number(key: str) -> Optional[float]:
            return parse_locale_number(cell_at(row, columns[key]))

        def count(key: str) -> Optional[int]:
            return coerce_non_negative_int(number(key), context.negative_clamped(FIELD_LABELS[key]))

        def amount(key: str) -> Optional[float]:
            return clamp_non_negative(number(key), context.negative_clamped(FIELD_LABELS[key]))

        impressions = count("impressions")
        if impressions is None:
            context.skip(SKIP_MISSING_REQUIRED)
            return

        visits = count("visits") or 0
        add_to_cart = count("add_to_cart") or 0

        ctr = context.resolve_ratio(
            cell_at(row, columns["ctr"]), visits, impressions, FIELD_LABELS["ctr"]
        )
        cr_to_cart = context.resolve_ratio(
            cell_at(row, columns["cr_to_cart"]), add_to_cart, visits, FIELD_LABELS["cr_to_cart"]
        )

        try:
            parsed = WildberriesRow(
                artikul=artikul,
                impressions=impressions,
                visits=visits,
                ctr=ctr if ctr is not None else 0.0,
                add_to_cart=add_to_cart,
                cr_to_cart=cr_to_cart if cr_to_cart is not None else 0.0,
                orders=count("orders") or 0,
                revenue=amount("revenue"),
                price_avg=amount("price_avg"),
                stock_end=count("stock_end"),
                delivery_avg_hours=amount("delivery_avg_hours"),
                rating=amount("rating"),
                reviews_count=count("reviews_count"),
            )
        except PydanticValidationError as e:
            log.warning("row_validation_failed", artikul=artikul, error=str(e))
            context.skip(SKIP_INVALID_VALUES)
            return

        context.accept(parsed)


async def parse_wb_file(file: Any) -> ParseResult:
    """Parse a Wildberries report file handle."""
    return await WildberriesReportParser().parse(file)

"""Ozon "by products" analytics report parser.

The Ozon export has a two-row header: an upper group row ("Воронка
продаж", "Продажи", "Факторы продаж") where a group label spans several
columns and is only written in its first cell, and a lower metric row.
Columns are matched on the composite "group | metric" text, falling back
to the metric text alone when the group row is missing or misdetected.

One product can appear on several rows; those rows are aggregated per
artikul (see aggregation.py).
"""
from typing import Any, Collection, Dict, List, Optional, Sequence, Tuple

from pydantic import ValidationError as PydanticValidationError

from report_ingestion.errors.exceptions import StructureError
from report_ingestion.models.parse_result import ParseResult
from report_ingestion.models.report_row import OzonRow
from report_ingestion.parsers.aggregation import aggregate_duplicates
from report_ingestion.parsers.base_parser import ReportParser
from report_ingestion.parsers.context import (
    SKIP_INVALID_ARTIKUL,
    SKIP_INVALID_VALUES,
    SKIP_MISSING_REQUIRED,
    SKIP_TOTALS_ROW,
    ParseContext,
)
from report_ingestion.utils.headers import (
    cell_at,
    is_blank_row,
    is_identifier_valid,
    is_totals_row,
    normalize_header_text,
    resolve_column,
)
from report_ingestion.utils.numbers import (
    clamp_non_negative,
    coerce_non_negative_int,
    is_blank_value,
    parse_locale_number,
    parse_percent_to_fraction,
)
from report_ingestion.utils.workbook import (
    OZON_PERIOD_PATTERN,
    Workbook,
    detect_period,
    find_sheet,
)

# Policy constant, reported in diagnostics for auditability
AGGREGATE_DUPLICATES = True

SHEET_NAME = "По товарам"
HEADER_SCAN_ROWS = 60
PERIOD_SCAN_ROWS = 20
# Units/spacer rows between the metric header row and the data
DATA_OFFSET_ROWS = 3

COMPOSITE_SEPARATOR = " | "
DYNAMICS_MARKER = "динамика"
PRODUCTS_KEYWORD = "товар"
GROUP_KEYWORDS = ("воронка продаж", "факторы продаж", "продажи")

FUNNEL = "воронка продаж"
SALES = "продажи"
FACTORS = "факторы продаж"

# field -> (group patterns, ordered metric candidates)
COLUMN_SPECS: Dict[str, Tuple[Tuple[str, ...], List[str]]] = {
    "artikul": ((), ["артикул"]),
    "impressions": ((FUNNEL,), ["показы всего", "показы"]),
    "visits": ((FUNNEL,), ["посещения карточки товара", "посещения карточки"]),
    "add_to_cart": ((FUNNEL,), ["добавления в корзину всего", "добавления в корзину"]),
    "cr_to_cart": ((FUNNEL,), ["конверсия в корзину общая", "конверсия в корзину"]),
    # revenue first: its header also starts with "заказано"
    "revenue": ((SALES,), ["заказано на сумму", "сумм", "выручка"]),
    "orders": ((FUNNEL,), ["заказано товаров", "заказано"]),
    "price_avg": ((FACTORS,), ["средняя цена"]),
    "drr": ((FACTORS,), ["общая дрр", "дрр"]),
    "stock_end": ((FACTORS,), ["остаток на конец периода", "остаток на конец", "остаток"]),
    "rating": ((FACTORS,), ["рейтинг товара", "рейтинг"]),
    "reviews_count": ((FACTORS,), ["отзывы"]),
}

REQUIRED_COLUMNS = {
    "artikul": "Артикул",
    "impressions": "Показы всего",
    "visits": "Посещения карточки товара",
}

FIELD_LABELS = {
    "impressions": "Показы всего",
    "visits": "Посещения карточки товара",
    "add_to_cart": "Добавления в корзину",
    "cr_to_cart": "Конверсия в корзину",
    "orders": "Заказано товаров",
    "revenue": "Выручка",
    "price_avg": "Средняя цена",
    "drr": "ДРР",
    "stock_end": "Остаток",
    "rating": "Рейтинг",
    "reviews_count": "Отзывы",
    "ctr": "CTR",
}


def build_composite_headers(group_row: Sequence[Any], metric_row: Sequence[Any]) -> List[str]:
    """Build "group | metric" header texts from the two header rows.

    A blank group cell inherits the nearest non-blank group to its left.
    Columns whose group or metric mentions dynamics hold trend indicators,
    not values, and get an empty header so they never match.
    """
    headers: List[str] = []
    last_group = ""

    for index in range(max(len(group_row), len(metric_row))):
        group = normalize_header_text(cell_at(group_row, index)) or last_group
        metric = normalize_header_text(cell_at(metric_row, index))
        if group:
            last_group = group

        if metric:
            composite = f"{group}{COMPOSITE_SEPARATOR}{metric}" if group else metric
        else:
            composite = group

        headers.append("" if DYNAMICS_MARKER in composite else composite)

    return headers


def metric_part(header: str) -> str:
    """Metric segment of a composite header (the whole text if no group)."""
    parts = [part.strip() for part in header.split("|")]
    return parts[1] if len(parts) > 1 else parts[0]


def group_part(header: str) -> str:
    """Group segment of a composite header (the whole text if no metric)."""
    return header.split("|")[0].strip()


def resolve_composite_column(
    headers: Sequence[str],
    group_patterns: Sequence[str],
    metric_candidates: Sequence[str],
    exclude: Collection[int] = (),
) -> Optional[int]:
    """Resolve a column needing a group match and a metric match.

    Metric candidates keep their priority order: the first candidate found
    in any header of a matching group wins. Without group patterns this is
    a plain candidate match. If nothing matches, the metric segments alone
    are matched, which tolerates a missing or misdetected group row.
    """
    if group_patterns:
        group_headers = [
            metric_part(header)
            if any(pattern in group_part(header) for pattern in group_patterns)
            else ""
            for header in headers
        ]
    else:
        group_headers = list(headers)

    index = resolve_column(group_headers, metric_candidates, exclude)
    if index is not None:
        return index
    return resolve_column(
        [metric_part(header) for header in headers], metric_candidates, exclude
    )


def is_header_start_row(row: Sequence[Any]) -> bool:
    """Group header row: has a products cell and a known group label."""
    normalized = [normalize_header_text(cell) for cell in row]
    has_products = any(PRODUCTS_KEYWORD in cell for cell in normalized)
    has_groups = any(
        keyword in cell for cell in normalized for keyword in GROUP_KEYWORDS
    )
    return has_products and has_groups


class OzonReportParser(ReportParser):
    """Parser for the Ozon "По товарам" analytics export."""

    marketplace = "OZON"

    def get_parser_name(self) -> str:
        return "ozon"

    def parse_workbook(self, workbook: Workbook, context: ParseContext, log: Any) -> None:
        context.period_start, context.period_end = detect_period(
            workbook, OZON_PERIOD_PATTERN, max_rows=PERIOD_SCAN_ROWS
        )
        context.set_diagnostic("aggregation_applied", AGGREGATE_DUPLICATES)

        sheet_name = find_sheet(workbook, SHEET_NAME)
        if sheet_name is None:
            log.warning("sheet_not_found", expected=SHEET_NAME, sheets=list(workbook))
            raise StructureError('OZON: лист с названием "По товарам" не найден.')
        context.set_diagnostic("sheet_name", sheet_name)

        grid = workbook[sheet_name]
        if len(grid) < 3:
            raise StructureError("Файл не содержит данных (меньше 3 строк)")

        header_start_row = self._locate_header_start_row(grid)
        if header_start_row is None:
            raise StructureError(
                'OZON: не нашли строку шапки (ожидали "Воронка продаж" / '
                '"Факторы продаж" / "Продажи").'
            )
        header_second_row = header_start_row + 1
        if header_second_row >= len(grid):
            raise StructureError("OZON: не нашли вторую строку шапки (двухстрочная шапка).")

        context.set_diagnostic("header_start_row", header_start_row)
        context.set_diagnostic("header_second_row", header_second_row)
        log.info(
            "header_row_detected",
            header_start_row=header_start_row,
            header_second_row=header_second_row,
        )

        headers = build_composite_headers(grid[header_start_row], grid[header_second_row])
        sample = self.header_sample(headers)
        context.set_diagnostic("header_sample", sample)

        column_map = self.resolve_columns(
            COLUMN_SPECS,
            lambda spec, claimed: resolve_composite_column(headers, *spec, exclude=claimed),
        )
        self.record_column_mapping(context, column_map, headers)

        sample_text = ", ".join(sample) if sample else "не найдено"
        sample_text = sample_text.replace("{", "{{").replace("}", "}}")
        self.check_required_columns(
            context,
            column_map,
            REQUIRED_COLUMNS,
            'OZON: не нашли колонку "{label}". Найденные composite заголовки '
            f'(первые {len(sample)}): {sample_text}',
        )

        zero_impressions = 0
        for row in grid[header_second_row + DATA_OFFSET_ROWS:]:
            parsed = self._parse_row(row, column_map, context, log)
            if parsed is not None and parsed.impressions == 0:
                zero_impressions += 1

        if AGGREGATE_DUPLICATES:
            rows, merged_count = aggregate_duplicates(
                context.rows, context.fraction_clamped(FIELD_LABELS["ctr"])
            )
            context.rows = rows
            context.set_diagnostic("duplicates_aggregated", merged_count)

        if zero_impressions:
            context.warn(
                f"OZON: {zero_impressions} строк(и) с показами = 0. CTR рассчитан как null."
            )

    def _locate_header_start_row(self, grid: Sequence[Sequence[Any]]) -> Optional[int]:
        last_row = min(HEADER_SCAN_ROWS, len(grid) - 1)
        for row_index in range(last_row + 1):
            if is_header_start_row(grid[row_index] or []):
                return row_index
        return None

    def _parse_row(
        self,
        row: List[Any],
        columns: Dict[str, Optional[int]],
        context: ParseContext,
        log: Any,
    ) -> Optional[OzonRow]:
        if is_blank_row(row):
            return None
        context.count_scanned()

        if is_totals_row(row):
            context.skip(SKIP_TOTALS_ROW)
            return None

        artikul = str(cell_at(row, columns["artikul"]) or "").strip().upper()
        if not is_identifier_valid(artikul):
            context.skip(SKIP_INVALID_ARTIKUL)
            return None

        def raw(key: str) -> Any:
            return cell_at(row, columns[key])

        def count(key: str) -> Optional[int]:
            return coerce_non_negative_int(
                parse_locale_number(raw(key)), context.negative_clamped(FIELD_LABELS[key])
            )

        def amount(key: str) -> Optional[float]:
            return clamp_non_negative(
                parse_locale_number(raw(key)), context.negative_clamped(FIELD_LABELS[key])
            )

        impressions = count("impressions")
        visits = count("visits")
        if impressions is None or visits is None:
            context.skip(SKIP_MISSING_REQUIRED)
            return None

        add_to_cart = count("add_to_cart") or 0

        drr = parse_percent_to_fraction(raw("drr"))
        if drr is None and not is_blank_value(raw("drr")):
            context.warn(
                f'OZON: значения "{FIELD_LABELS["drr"]}" вне диапазона 0..100% отброшены.'
            )
        ctr = context.resolve_ratio(None, visits, impressions, FIELD_LABELS["ctr"])
        cr_to_cart = context.resolve_ratio(
            raw("cr_to_cart"), add_to_cart, visits, FIELD_LABELS["cr_to_cart"]
        )

        try:
            parsed = OzonRow(
                artikul=artikul,
                impressions=impressions,
                visits=visits,
                ctr=ctr,
                add_to_cart=add_to_cart,
                cr_to_cart=cr_to_cart,
                orders=count("orders") or 0,
                revenue=amount("revenue"),
                price_avg=amount("price_avg"),
                drr=drr,
                stock_end=count("stock_end"),
                rating=amount("rating"),
                reviews_count=count("reviews_count"),
            )
        except PydanticValidationError as e:
            log.warning("row_validation_failed", artikul=artikul, error=str(e))
            context.skip(SKIP_INVALID_VALUES)
            return None

        context.accept(parsed)
        return parsed


async def parse_ozon_file(file: Any) -> ParseResult:
    """Parse an Ozon report file handle."""
    return await OzonReportParser().parse(file)

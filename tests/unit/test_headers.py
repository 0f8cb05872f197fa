"""Unit tests for header detection and row classification helpers."""
import re

import pytest

from report_ingestion.utils.headers import (
    cell_at,
    is_blank_row,
    is_identifier_valid,
    is_totals_row,
    locate_header_row,
    locate_header_row_by_keywords,
    normalize_header_text,
    resolve_column,
)


class TestNormalizeHeaderText:
    """Test normalize_header_text()."""
    
    def test_collapses_whitespace_and_lowercases(self):
        """Verify NBSP, line breaks and repeated spaces collapse to one space."""
        assert normalize_header_text("  Артикул\u00a0 продавца\n") == "артикул продавца"
        assert normalize_header_text("Заказали,\nшт") == "заказали, шт"
    
    def test_none_is_empty(self):
        assert normalize_header_text(None) == ""
    
    def test_numbers_are_stringified(self):
        assert normalize_header_text(2024) == "2024"


class TestLocateHeaderRow:
    """Test header row detection in grids with metadata rows."""
    
    @pytest.fixture
    def grid(self):
        return [
            ["Отчет по воронке продаж", None],
            ["с 01.01.2024 по 07.01.2024", None],
            [None, None],
            ["Артикул продавца", "Показы"],
            ["ABC-123", 120],
        ]
    
    def test_skips_metadata_rows(self, grid):
        """Verify the first row with a matching cell is returned."""
        assert locate_header_row(grid, lambda cell: "артикул" in cell) == 3
    
    def test_window_is_inclusive(self, grid):
        """Verify the row at max_rows_scanned is still inspected."""
        assert locate_header_row(grid, lambda cell: "артикул" in cell, max_rows_scanned=3) == 3
        assert locate_header_row(grid, lambda cell: "артикул" in cell, max_rows_scanned=2) is None
    
    def test_not_found(self, grid):
        assert locate_header_row(grid, lambda cell: "штрихкод" in cell) is None
    
    def test_empty_grid(self):
        assert locate_header_row([], lambda cell: True) is None
    
    def test_by_keywords(self, grid):
        """Verify keyword lookup normalizes the keywords too."""
        assert locate_header_row_by_keywords(grid, ["  ПОКАЗЫ "]) == 3


class TestResolveColumn:
    """Test resolve_column() candidate priority."""
    
    def test_earlier_candidate_wins(self):
        """Verify the most preferred candidate decides, not the leftmost header."""
        headers = ["Переход в корзину", "Переходы в карточку"]
        assert resolve_column(headers, ["переходы в карточку", "переход"]) == 1
    
    def test_candidate_order_not_header_order(self):
        """Verify a loose first candidate wins even over a more precise later one."""
        headers = ["Переход в корзину", "Переходы в карточку"]
        assert resolve_column(headers, ["переход", "переходы в карточку"]) == 0
    
    def test_substring_match_on_normalized_headers(self):
        headers = [None, "  Заказали\u00a0на сумму, ₽ "]
        assert resolve_column(headers, ["заказали на сумму"]) == 1
    
    def test_regex_candidate(self):
        headers = ["CTR, динамика", "CTR"]
        assert resolve_column(headers, [re.compile(r"^ctr$")]) == 1
    
    def test_excluded_columns_are_skipped(self):
        """Verify a column claimed by another field is not matched again."""
        headers = ["Заказали на сумму", "Заказали, шт"]
        assert resolve_column(headers, ["заказали"]) == 0
        assert resolve_column(headers, ["заказали"], exclude={0}) == 1
        assert resolve_column(headers[:1], ["заказали"], exclude={0}) is None
    
    def test_unresolved(self):
        assert resolve_column(["Показы"], ["остатки"]) is None
        assert resolve_column([], ["показы"]) is None


class TestRowClassification:
    """Test totals, blank and identifier checks."""
    
    @pytest.mark.parametrize("row,expected", [
        (["Итого", 100], True),
        (["  ИТОГО:  ", 100], True),
        (["Итоговая сумма"], True),
        (["Всего"], True),
        (["Total"], True),
        (["TOTAL-1", 100], False),
        (["Всего товаров-1"], False),
        (["ABC-123", 100], False),
        ([None, "Итого"], False),
        ([], False),
    ])
    def test_is_totals_row(self, row, expected):
        """Verify totals are detected by the first cell only."""
        assert is_totals_row(row) is expected
    
    @pytest.mark.parametrize("row,expected", [
        ([None, None], True),
        (["", "   "], True),
        ([], True),
        (None, True),
        ([None, 0], False),
        (["—"], False),
    ])
    def test_is_blank_row(self, row, expected):
        assert is_blank_row(row) is expected
    
    @pytest.mark.parametrize("value,expected", [
        ("ABC-123", True),
        ("abc-123", True),
        (" GFA-5200 ", True),
        ("A-1", True),
        ("ABC-123-XL", True),
        ("ABC123", False),
        ("-123", False),
        ("Итого", False),
        ("", False),
        (None, False),
        (12345, False),
    ])
    def test_is_identifier_valid(self, value, expected):
        """Verify seller artikuls look like ALNUM-ALNUM."""
        assert is_identifier_valid(value) is expected
    
    def test_cell_at(self):
        """Verify unresolved columns and short rows yield None."""
        row = ["ABC-123", 120]
        assert cell_at(row, 1) == 120
        assert cell_at(row, 5) is None
        assert cell_at(row, None) is None

"""Unit tests for row and result models."""
import pytest
from pydantic import ValidationError as PydanticValidationError

from report_ingestion.models import (
    OzonRow,
    ParseDiagnostics,
    ParseResult,
    ParsedRow,
    WildberriesRow,
)


class TestParsedRow:
    """Test ParsedRow validation."""
    
    def test_artikul_is_uppercased(self):
        row = ParsedRow(artikul="abc-123", impressions=1, visits=0)
        
        assert row.artikul == "ABC-123"
    
    @pytest.mark.parametrize("artikul", ["ABC123", "Итого", "AB"])
    def test_invalid_artikul_rejected(self, artikul):
        with pytest.raises(PydanticValidationError):
            ParsedRow(artikul=artikul, impressions=1, visits=0)
    
    def test_negative_count_rejected(self):
        with pytest.raises(PydanticValidationError):
            ParsedRow(artikul="ABC-123", impressions=-1, visits=0)
    
    def test_rate_outside_unit_interval_rejected(self):
        with pytest.raises(PydanticValidationError):
            OzonRow(artikul="ABC-123", impressions=10, visits=20, ctr=2.0)
    
    def test_non_finite_amount_rejected(self):
        with pytest.raises(PydanticValidationError):
            ParsedRow(artikul="ABC-123", impressions=1, visits=0, revenue=float("inf"))
    
    def test_wb_rates_default_to_zero(self):
        row = WildberriesRow(artikul="ABC-123", impressions=0, visits=0)
        
        assert row.ctr == 0.0
        assert row.cr_to_cart == 0.0
    
    def test_ozon_rates_may_be_null(self):
        row = OzonRow(artikul="ABC-123", impressions=0, visits=0)
        
        assert row.ctr is None
        assert row.drr is None


class TestParseResult:
    """Test ParseResult behaviour."""
    
    def test_ok_reflects_errors(self):
        assert ParseResult(marketplace="WB").ok
        assert not ParseResult(marketplace="WB", errors=["boom"]).ok
    
    def test_result_is_frozen(self):
        result = ParseResult(marketplace="OZON")
        
        with pytest.raises(PydanticValidationError):
            result.errors = ["late error"]
        with pytest.raises(PydanticValidationError):
            result.diagnostics.rows_accepted = 5
    
    def test_unknown_marketplace_rejected(self):
        with pytest.raises(PydanticValidationError):
            ParseResult(marketplace="AMAZON")
    
    def test_diagnostics_defaults(self):
        diagnostics = ParseDiagnostics()
        
        assert diagnostics.total_rows_scanned == 0
        assert diagnostics.skip_reasons == {}
        assert diagnostics.missing_columns == []

"""Unit tests for the parser registry and marketplace dispatch."""
import pytest

from report_ingestion.errors.exceptions import ParserError, ValidationError
from report_ingestion.parsers import (
    OzonReportParser,
    WildberriesReportParser,
    create_parser_instance,
    get_parser,
    list_registered_parsers,
    parse_report,
    register_parser,
)


class TestRegistry:
    """Test parser registration and lookup."""
    
    def test_builtin_parsers_registered(self):
        assert set(list_registered_parsers()) >= {"wb", "ozon"}
        assert get_parser("wb") is WildberriesReportParser
        assert get_parser("ozon") is OzonReportParser
    
    def test_unknown_parser_type(self):
        assert get_parser("yandex") is None
        with pytest.raises(ParserError) as exc_info:
            create_parser_instance("yandex")
        assert "not registered" in exc_info.value.message
    
    def test_duplicate_registration_rejected(self):
        with pytest.raises(ValueError):
            register_parser("wb", WildberriesReportParser)
    
    def test_non_parser_class_rejected(self):
        with pytest.raises(TypeError):
            register_parser("dict", dict)
    
    def test_parser_names_match_registry_keys(self):
        for parser_type in ("wb", "ozon"):
            assert create_parser_instance(parser_type).get_parser_name() == parser_type


class TestParseReport:
    """Test parse_report() marketplace dispatch."""
    
    @pytest.mark.asyncio
    async def test_dispatches_by_marketplace(self, make_report):
        report = make_report({"Товары": [["Артикул продавца", "Показы"], ["ABC-123", 120]]})
        
        result = await parse_report(report, "WB")
        
        assert result.marketplace == "WB"
        assert result.ok
        assert len(result.rows) == 1
    
    @pytest.mark.asyncio
    async def test_marketplace_code_is_case_insensitive(self, make_report):
        report = make_report({"Лист1": [["x"]]})
        
        result = await parse_report(report, " oZon ")
        
        assert result.marketplace == "OZON"
        assert not result.ok
    
    @pytest.mark.asyncio
    @pytest.mark.parametrize("marketplace", ["YANDEX", "", None])
    async def test_unknown_marketplace_raises(self, make_report, marketplace):
        """Verify an invalid marketplace is a caller error, not a parse error."""
        report = make_report({"Товары": [["Артикул продавца", "Показы"]]})
        
        with pytest.raises(ValidationError):
            await parse_report(report, marketplace)

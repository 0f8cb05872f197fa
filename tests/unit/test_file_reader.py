"""Unit tests for report file reading and settings-driven limits."""
import io

import pytest

from report_ingestion.config import get_settings
from report_ingestion.errors.exceptions import ValidationError
from report_ingestion.models import ReportFile
from report_ingestion.utils.file_reader import (
    compute_file_hash,
    get_file_name,
    read_file_bytes,
)


class UploadStub:
    """Upload object of a web framework: async read() and a filename."""
    
    def __init__(self, content, filename="upload.xlsx"):
        self.filename = filename
        self._content = content
    
    async def read(self):
        return self._content


class TestReadFileBytes:
    """Test read_file_bytes() on different handle kinds."""
    
    @pytest.mark.asyncio
    async def test_async_handle(self):
        assert await read_file_bytes(UploadStub(b"PK\x03\x04")) == b"PK\x03\x04"
    
    @pytest.mark.asyncio
    async def test_sync_handle(self):
        assert await read_file_bytes(io.BytesIO(b"data")) == b"data"
    
    @pytest.mark.asyncio
    async def test_report_file(self):
        assert await read_file_bytes(ReportFile(name="a.xlsx", content=b"abc")) == b"abc"
    
    @pytest.mark.asyncio
    async def test_text_mode_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            await read_file_bytes(io.StringIO("text"))
        assert "бинарном" in exc_info.value.message
    
    @pytest.mark.asyncio
    async def test_not_a_file(self):
        with pytest.raises(ValidationError):
            await read_file_bytes(object())
    
    @pytest.mark.asyncio
    async def test_empty_content(self):
        with pytest.raises(ValidationError) as exc_info:
            await read_file_bytes(UploadStub(b""))
        assert exc_info.value.message == "Файл пустой"
    
    @pytest.mark.asyncio
    async def test_size_limit_from_settings(self, monkeypatch, fresh_settings):
        """Verify INGESTION_MAX_FILE_SIZE_MB caps the accepted content."""
        monkeypatch.setenv("INGESTION_MAX_FILE_SIZE_MB", "1")
        get_settings.cache_clear()
        assert get_settings().max_file_size_bytes == 1024 * 1024
        
        with pytest.raises(ValidationError) as exc_info:
            await read_file_bytes(UploadStub(b"x" * (1024 * 1024 + 1)))
        assert "слишком большой" in exc_info.value.message


class TestFileMetadata:
    """Test file name and hash helpers."""
    
    def test_file_name_sources(self):
        assert get_file_name(UploadStub(b"", filename="wb.xlsx")) == "wb.xlsx"
        assert get_file_name(ReportFile(name="ozon.xlsx", content=b"")) == "ozon.xlsx"
        assert get_file_name(io.BytesIO(b"")) == ""
    
    def test_hash_is_stable_sha256(self):
        assert compute_file_hash(b"abc") == (
            "ba7816bf8f01cfea414140de5dae2223b00361a396177a9cb410ff61f20015ad"
        )

"""
Report File Reader
==================

Reads the raw bytes of an uploaded report. The only I/O suspension point
of a parse: everything after this is synchronous work on memory.

Accepts any handle with a ``read()`` method (plain or awaitable, e.g. an
uploaded-file object of a web framework) and a ``name`` or ``filename``.
"""

import hashlib
import inspect
from typing import Any

from report_ingestion.config import get_settings
from report_ingestion.errors.exceptions import ValidationError


def get_file_name(file: Any) -> str:
    """Return the handle's file name, or an empty string when it has none."""
    name = getattr(file, "filename", None) or getattr(file, "name", None)
    return str(name) if name else ""


async def read_file_bytes(file: Any) -> bytes:
    """
    Read the whole content of a report file handle.

    Raises:
        ValidationError: If the handle cannot be read, is empty or exceeds
                         the configured size limit
    """
    reader = getattr(file, "read", None)
    if reader is None:
        raise ValidationError("Объект файла не поддерживает чтение")

    content = reader()
    if inspect.isawaitable(content):
        content = await content

    if isinstance(content, str):
        raise ValidationError("Файл должен быть открыт в бинарном режиме")
    content = bytes(content or b"")

    if not content:
        raise ValidationError("Файл пустой")

    max_bytes = get_settings().max_file_size_bytes
    if len(content) > max_bytes:
        raise ValidationError(
            f"Файл слишком большой: {len(content)} байт, "
            f"допустимо не более {max_bytes} байт"
        )

    return content


def compute_file_hash(content: bytes) -> str:
    """Compute SHA-256 hex digest of file content (detects re-uploads)."""
    return hashlib.sha256(content).hexdigest()

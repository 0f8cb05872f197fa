"""In-memory report file handle."""
from dataclasses import dataclass
from pathlib import Path
from typing import Union


@dataclass(frozen=True)
class ReportFile:
    """Named binary content of an uploaded report.
    
    Parsers accept any object with ``read()`` and ``name``/``filename``;
    this is the plain implementation used by scripts and tests.
    """
    name: str
    content: bytes
    
    async def read(self) -> bytes:
        return self.content
    
    @classmethod
    def from_path(cls, path: Union[str, Path]) -> "ReportFile":
        file_path = Path(path)
        return cls(name=file_path.name, content=file_path.read_bytes())

"""
COURIER - Filesystem Abstraction

Provides abstraction layer for reading upload files.
This allows mocking in tests and makes the upload path testable.
"""

import os
from typing import Iterator, Protocol


class FileSystemAdapter(Protocol):
    """Protocol for the file operations used by uploads."""

    def is_file(self, path: str) -> bool:
        """Check if a path is a regular file."""
        ...

    def read_chunks(self, path: str, chunk_size: int) -> Iterator[bytes]:
        """Yield file contents in chunks of at most chunk_size bytes."""
        ...


class RealFileSystem:
    """Real filesystem implementation."""

    def is_file(self, path: str) -> bool:
        return os.path.isfile(path)

    def read_chunks(self, path: str, chunk_size: int) -> Iterator[bytes]:
        with open(path, "rb") as f:
            while True:
                chunk = f.read(chunk_size)
                if not chunk:
                    break
                yield chunk


class MockFileSystem:
    """Mock filesystem for testing."""

    def __init__(self):
        self._files: dict[str, bytes] = {}

    def write(self, path: str, content: bytes) -> None:
        self._files[path] = content

    def is_file(self, path: str) -> bool:
        return path in self._files

    def read_chunks(self, path: str, chunk_size: int) -> Iterator[bytes]:
        if path not in self._files:
            raise FileNotFoundError(f"File not found: {path}")
        content = self._files[path]
        for start in range(0, len(content), chunk_size):
            yield content[start : start + chunk_size]

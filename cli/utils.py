"""Utility functions for CLI operations."""

import sys

from cli.constants import GREEN, RESET


class ProgressFileWrapper:
    """File-like wrapper that displays upload progress to stdout."""

    def __init__(self, file_path: str, file_size: int, filename: str):
        self.file_path = file_path
        self.file_size = file_size
        self.filename = filename
        self._file = open(file_path, 'rb')
        self._uploaded = 0
        self._finished = False

    def read(self, size: int = -1) -> bytes:
        """
        Read bytes from the file and update progress display.

        Args:
            size: Number of bytes to read (-1 or 0 for default chunk size)
        """
        chunk = self._file.read(size if size > 0 else 8192)
        if chunk:
            self._uploaded += len(chunk)
            self._display_progress()
        elif not self._finished:
            self._finish_progress()
        return chunk

    def _display_progress(self) -> None:
        progress = (self._uploaded / self.file_size) * 100 if self.file_size else 100.0
        sys.stdout.write(
            f"\rUploading {self.filename}: {format_file_size(self._uploaded)} / "
            f"{format_file_size(self.file_size)} ({GREEN}{progress:.1f}%{RESET})"
        )
        sys.stdout.flush()

    def _finish_progress(self) -> None:
        self._finished = True
        sys.stdout.write('\n')
        sys.stdout.flush()

    def close(self) -> None:
        if self._file:
            self._file.close()

    def __enter__(self) -> 'ProgressFileWrapper':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


def format_file_size(size_bytes: int) -> str:
    """
    Format file size in bytes to human-readable format with appropriate unit.

    Uses binary units (1024-based), e.g. "1.50 MiB", "512 B".
    """
    if size_bytes < 1024:
        return f"{size_bytes} B"

    units = ['KiB', 'MiB', 'GiB', 'TiB']
    size = size_bytes / 1024.0

    for unit in units:
        if size < 1024.0:
            return f"{size:.2f} {unit}"
        size /= 1024.0

    return f"{size:.2f} PiB"

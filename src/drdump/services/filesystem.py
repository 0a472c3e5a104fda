"""Filesystem helpers for drdump."""

import logging
import os
import tempfile

from rich.console import Console


class FileSystemService:
    """Encapsulates temporary artifact files and their removal."""

    def __init__(self, logger: logging.Logger, console: Console):
        self.logger = logger
        self.console = console

    def ensure_dir(self, path: str):
        os.makedirs(path, exist_ok=True)

    def allocate_temp_file(self, directory: str, prefix: str, suffix: str) -> str:
        """Creates an empty, uniquely named file and returns its absolute path."""
        self.ensure_dir(directory)
        fd, path = tempfile.mkstemp(prefix=prefix, suffix=suffix, dir=directory)
        os.close(fd)
        return os.path.abspath(path)

    def remove_file(self, path: str):
        if os.path.exists(path):
            try:
                os.remove(path)
                self.logger.debug("Removed file: %s", path)
            except OSError as exc:
                message = f"Warning: Could not remove {path}: {exc}"
                self.console.print(f"[yellow]{message}[/yellow]")
                self.logger.warning(message)

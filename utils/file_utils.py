from __future__ import annotations

import os
from pathlib import Path

__all__: list[str] = ["FileUtils"]


class FileUtils:
    """Path helpers for the configuration file, the log file and the cache database."""

    @staticmethod
    def resolve_path(path: str | Path, *, strict: bool = False) -> Path:
        """Convert a user-supplied path to an absolute path.

        Expands environment variables and `~`, and resolves relative paths against the current
        working directory.

        Args:
            path (str | Path): The input path (e.g., "~/cache/$APP_ENV/translation_cache.db").
            strict (bool): Raise if the path does not exist.

        Returns:
            Path: The absolute path.
        """
        expanded: str = os.path.expandvars(str(path))
        user_expanded: Path = Path(expanded).expanduser()

        if user_expanded.is_absolute():
            return user_expanded.resolve(strict=strict)
        return (Path.cwd() / user_expanded).resolve(strict=strict)

    @staticmethod
    def ensure_parent_dir(file_path: Path) -> Path:
        """Create the parent directory of `file_path` if it is missing and return `file_path`."""
        file_path.parent.mkdir(parents=True, exist_ok=True)
        return file_path

"""Saving JSON data into the cache directory."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

import platformdirs


def cache_dir() -> Path:
    """Return the cache directory, creating it if needed."""
    directory = Path(platformdirs.user_cache_path()) / "ghq"
    directory.mkdir(parents=True, exist_ok=True)
    return directory


def save(
    filename: str, data: Any, directory: str | os.PathLike[str] | None = None
) -> Path:
    """Write ``data`` as indented JSON to ``filename`` and return its path.

    The file goes into ``directory`` when given, otherwise into the cache
    directory.
    """
    target = cache_dir() if directory is None else Path(directory)
    target.mkdir(parents=True, exist_ok=True)
    path = target / filename
    path.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")
    return path
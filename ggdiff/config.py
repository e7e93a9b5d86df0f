"""User configuration loaded from a YAML file."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

import yaml

DEFAULT_COMMENT_PANEL_MIN_WIDTH = 40
DEFAULT_DIFF_MIN_WIDTH = 80
DEFAULT_SCROLL_MARGIN = 5

_U16_MAX = 0xFFFF
_USIZE_MAX = 2**64 - 1

_OPTIONAL_STRINGS = ("help_mode", "commit_prompt", "pr_prompt")
_INTEGER_LIMITS = {
    "comment_panel_min_width": _U16_MAX,
    "diff_min_width": _U16_MAX,
    "scroll_margin": _USIZE_MAX,
}


class _InvalidConfig(ValueError):
    """Raised internally when the YAML document does not fit the schema."""


@dataclass
class Config:
    """Settings read from ``config.yaml``; missing keys take their defaults."""

    help_mode: str | None = None
    commit_prompt: str | None = None
    pr_prompt: str | None = None
    comment_panel_min_width: int = DEFAULT_COMMENT_PANEL_MIN_WIDTH
    diff_min_width: int = DEFAULT_DIFF_MIN_WIDTH
    scroll_margin: int = DEFAULT_SCROLL_MARGIN

    @classmethod
    def load(cls) -> Config:
        """Load from the standard location, or return defaults."""
        path = config_path()
        if path is None:
            return cls()
        return cls.load_from(path)

    @classmethod
    def load_from(cls, path: str | os.PathLike[str]) -> Config:
        """Load from ``path``; an unreadable or invalid file gives defaults."""
        try:
            contents = Path(path).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError):
            return cls()
        try:
            config = cls._from_document(yaml.safe_load(contents))
        except (yaml.YAMLError, _InvalidConfig):
            return cls()
        config._clamp_minimums()
        return config

    @classmethod
    def _from_document(cls, document: object) -> Config:
        if document is None:
            return cls()
        if not isinstance(document, dict):
            raise _InvalidConfig("configuration must be a mapping")
        values: dict[str, object] = {}
        for key in _OPTIONAL_STRINGS:
            if key in document:
                value = document[key]
                if value is not None and not isinstance(value, str):
                    raise _InvalidConfig(f"{key} must be a string")
                values[key] = value
        for key, upper in _INTEGER_LIMITS.items():
            if key in document:
                value = document[key]
                if isinstance(value, bool) or not isinstance(value, int):
                    raise _InvalidConfig(f"{key} must be an integer")
                if not 0 <= value <= upper:
                    raise _InvalidConfig(f"{key} is out of range")
                values[key] = value
        return cls(**values)

    def _clamp_minimums(self) -> None:
        self.comment_panel_min_width = max(
            self.comment_panel_min_width, DEFAULT_COMMENT_PANEL_MIN_WIDTH
        )
        self.diff_min_width = max(self.diff_min_width, DEFAULT_DIFF_MIN_WIDTH)


def config_dir() -> Path | None:
    """Directory holding the configuration file."""
    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg is not None:
        return Path(xdg) / "gg"
    try:
        home = Path.home()
    except RuntimeError:
        return None
    return home / ".config" / "gg"


def config_path() -> Path | None:
    """Full path of ``config.yaml``."""
    directory = config_dir()
    return None if directory is None else directory / "config.yaml"
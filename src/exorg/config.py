"""Configuration loaded from ``exorg.toml``.

Example ``exorg.toml``::

    tab_width = 4
    emacs = "/usr/local/bin/emacs"
    pdflatex = "pdflatex"

    [languages]
    nim = "nim"
    zig = "zig"
"""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Union

from exorg.errors import FileOpenError, FileReadError
from exorg.files import DEFAULT_TAB_WIDTH

CONFIG_FILE_NAME = "exorg.toml"


@dataclass
class Config:
    """Settings for tangling and weaving."""

    tab_width: int = DEFAULT_TAB_WIDTH
    emacs: str = "emacs"
    pdflatex: str = "pdflatex"
    languages: Dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if isinstance(self.tab_width, bool) or not isinstance(self.tab_width, int):
            raise ValueError(f"tab_width must be an integer, got {self.tab_width!r}")
        if self.tab_width < 0:
            raise ValueError(f"tab_width must not be negative, got {self.tab_width}")
        for key in ("emacs", "pdflatex"):
            value = getattr(self, key)
            if not isinstance(value, str) or not value:
                raise ValueError(f"{key} must be a non-empty string, got {value!r}")
        for language, suffix in self.languages.items():
            if not isinstance(suffix, str) or not suffix:
                raise ValueError(f"suffix for language {language!r} must be a non-empty string")

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "Config":
        known = {"tab_width", "emacs", "pdflatex", "languages"}
        unknown = set(data) - known
        if unknown:
            raise ValueError("unknown configuration keys: " + ", ".join(sorted(unknown)))
        values = dict(data)
        if "languages" in values:
            if not isinstance(values["languages"], Mapping):
                raise ValueError("languages must be a table")
            values["languages"] = dict(values["languages"])
        return cls(**values)

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "Config":
        """Load configuration from a specific file."""
        try:
            f = open(path, "rb")
        except OSError as e:
            raise FileOpenError(str(path)) from e
        with f:
            try:
                data = tomllib.load(f)
            except (OSError, tomllib.TOMLDecodeError) as e:
                raise FileReadError(str(path)) from e
        return cls.from_mapping(data)

    @classmethod
    def from_dir(cls, path: Union[str, Path]) -> "Config":
        """Load configuration from a directory (looks for exorg.toml)."""
        config_path = Path(path) / CONFIG_FILE_NAME
        if config_path.is_file():
            return cls.from_file(config_path)
        return cls()

"""Reading documents into lines and writing lines back out."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, Union

from exorg.errors import FileCreationError, FileOpenError, FileReadError, FileWriteError

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

DEFAULT_TAB_WIDTH = 4


def read_lines(path: PathLike, tab_width: int = DEFAULT_TAB_WIDTH) -> list[str]:
    """Read a text file into newline-free lines with tabs expanded."""
    path = str(path)
    try:
        f = open(path, "r", encoding="utf-8")
    except OSError as e:
        raise FileOpenError(path) from e

    tab = " " * tab_width
    with f:
        try:
            lines = [line.rstrip("\n").replace("\t", tab) for line in f]
        except (OSError, UnicodeDecodeError) as e:
            raise FileReadError(path) from e

    logger.debug("Read %d lines from %s", len(lines), path)
    return lines


def write_lines(path: PathLike, lines: Iterable[str]) -> None:
    """Write lines to a file, each followed by a newline.

    Any existing file is overwritten. Missing parent directories are
    created.
    """
    target = Path(path)
    try:
        if target.parent != Path("."):
            target.parent.mkdir(parents=True, exist_ok=True)
        f = open(target, "w", encoding="utf-8", newline="\n")
    except OSError as e:
        raise FileCreationError(str(path)) from e

    with f:
        try:
            for line in lines:
                f.write(line)
                f.write("\n")
            f.flush()
        except OSError as e:
            raise FileWriteError(str(path)) from e

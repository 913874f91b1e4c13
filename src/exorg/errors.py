"""Exception hierarchy for exorg.

Every error raised by the library derives from :class:`ExorgError`, so
callers can catch the whole family at once. The command-line layer turns
these into an ``Error: ...`` message and a non-zero exit status.
"""

from __future__ import annotations

from typing import Sequence


class ExorgError(Exception):
    """Base class for all exorg errors."""


# --- File I/O ---


class FileError(ExorgError):
    """A document or output file could not be accessed."""

    def __init__(self, path: str, message: str) -> None:
        super().__init__(message)
        self.path = path


class FileOpenError(FileError):
    def __init__(self, path: str) -> None:
        super().__init__(path, f"{path} could not be opened")


class FileReadError(FileError):
    def __init__(self, path: str) -> None:
        super().__init__(path, f"Error while reading {path}")


class FileCreationError(FileError):
    def __init__(self, path: str) -> None:
        super().__init__(path, f"{path} could not be created")


class FileWriteError(FileError):
    def __init__(self, path: str) -> None:
        super().__init__(path, f"writing to {path} failed")


class RecursiveInclusion(FileError):
    """A document includes itself, directly or through other documents."""

    def __init__(self, chain: Sequence[str]) -> None:
        self.chain = list(chain)
        super().__init__(
            self.chain[-1],
            "recursive inclusion: " + " -> ".join(self.chain),
        )


# --- Block selection ---


class CodeBlockNotFound(ExorgError):
    def __init__(self, selector: str) -> None:
        super().__init__(f"no code block matches {selector!r}")
        self.selector = selector


class AmbiguousCodeBlockName(ExorgError):
    def __init__(self, selector: str, candidates: Sequence[str]) -> None:
        self.selector = selector
        self.candidates = list(candidates)
        super().__init__(
            f"code block name {selector!r} is ambiguous, candidates: "
            + ", ".join(repr(c) for c in self.candidates)
        )


class UnsatisfiableDependencies(ExorgError):
    def __init__(self, unresolved: Sequence[str]) -> None:
        self.unresolved = list(unresolved)
        super().__init__(
            "dependencies cannot be satisfied for: " + ", ".join(self.unresolved)
        )


# --- Weaving ---


class ExternalToolFailed(ExorgError):
    """An external typesetting program failed."""


class EmacsCallFailed(ExternalToolFailed):
    pass


class PdfLatexCallFailed(ExternalToolFailed):
    pass


class InvalidOutputFormat(ExorgError):
    def __init__(self, fmt: str) -> None:
        super().__init__(f"invalid output format {fmt!r}")
        self.format = fmt

"""exorg - Literate Programming with Org documents.

This package extracts named code blocks from Org documents (tangling) and
typesets whole documents to PDF (weaving). Blocks can declare dependencies
on other blocks with ``#+DEPS:``; selecting a block pulls in everything it
depends on, in a valid order.

Example:
    >>> from exorg import Exporter
    >>> exporter = Exporter.from_file("program.org")
    >>> exporter.tangle("rust", selector="main")
    ['program.rs']
"""

from exorg.config import Config
from exorg.errors import (
    AmbiguousCodeBlockName,
    CodeBlockNotFound,
    EmacsCallFailed,
    ExorgError,
    ExternalToolFailed,
    FileCreationError,
    FileError,
    FileOpenError,
    FileReadError,
    FileWriteError,
    InvalidOutputFormat,
    PdfLatexCallFailed,
    RecursiveInclusion,
    UnsatisfiableDependencies,
)
from exorg.exporter import Exporter, tangle
from exorg.model import CodeBlock, Document, LanguageMapping, OutputFile
from exorg.parser import parse_file, parse_lines
from exorg.resolver import select_blocks

__all__ = [
    "Config",
    "Exporter",
    "CodeBlock",
    "Document",
    "LanguageMapping",
    "OutputFile",
    "parse_file",
    "parse_lines",
    "select_blocks",
    "tangle",
    "ExorgError",
    "FileError",
    "FileOpenError",
    "FileReadError",
    "FileCreationError",
    "FileWriteError",
    "RecursiveInclusion",
    "CodeBlockNotFound",
    "AmbiguousCodeBlockName",
    "UnsatisfiableDependencies",
    "ExternalToolFailed",
    "EmacsCallFailed",
    "PdfLatexCallFailed",
    "InvalidOutputFormat",
    "main",
]

__version__ = "0.1.0"


def main() -> int:
    """CLI entry point."""
    from exorg.cli import main as cli_main
    return cli_main()

"""Tangling and weaving a parsed document.

Example:
    >>> from exorg import Exporter
    >>> exporter = Exporter.from_file("program.org")
    >>> exporter.tangle("python", selector="main")
    ['program.py']
"""

from __future__ import annotations

import logging
import os
from dataclasses import replace
from pathlib import Path
from typing import Optional

from exorg.config import Config
from exorg.errors import InvalidOutputFormat
from exorg.files import PathLike, write_lines
from exorg.model import CodeBlock, Document, LanguageMapping, OutputFile
from exorg.parser import parse_file
from exorg.resolver import select_blocks
from exorg.router import filter_for_target, output_file_name, route
from exorg.weave import weave

logger = logging.getLogger(__name__)

# format -> use minted
WEAVE_FORMATS = {
    "pdf": False,
    "pdf-minted": True,
}


class Exporter:
    """Produces output files from one parsed document.

    Relative ``:tangle`` destinations resolve against the directory of the
    document, the same rule ``#+INCLUDE:`` paths follow. The default output
    file and an explicit ``output`` resolve against ``base_dir``, or the
    current directory when it is None.
    """

    def __init__(
        self,
        document: Document,
        config: Optional[Config] = None,
        base_dir: Optional[PathLike] = None,
    ) -> None:
        self.document = document
        self.config = config or Config()
        self.base_dir = None if base_dir is None else str(base_dir)

    @classmethod
    def from_file(
        cls,
        path: PathLike,
        config: Optional[Config] = None,
        base_dir: Optional[PathLike] = None,
    ) -> "Exporter":
        config = config or Config()
        document = parse_file(path, tab_width=config.tab_width)
        return cls(document, config, base_dir)

    @property
    def blocks(self) -> tuple[CodeBlock, ...]:
        return self.document.blocks

    @property
    def languages(self) -> tuple[LanguageMapping, ...]:
        return self.document.languages

    def resolve_path(self, path: str) -> str:
        """Resolve a relative path against the base directory."""
        if self.base_dir is None or os.path.isabs(path):
            return path
        return os.path.join(self.base_dir, path)

    def anchor_destination(self, block: CodeBlock) -> CodeBlock:
        """Make a relative destination relative to the document's directory."""
        if not block.destination or self.document.path is None:
            return block
        if os.path.isabs(block.destination):
            return block
        directory = os.path.dirname(os.path.abspath(self.document.path))
        return replace(block, destination=os.path.join(directory, block.destination))

    def default_output(self, target: str) -> str:
        return output_file_name(
            self.document.path or "",
            target,
            self.languages,
            self.config.languages,
        )

    def plan(
        self,
        target: str,
        selector: Optional[str] = None,
        output: Optional[str] = None,
    ) -> list[OutputFile]:
        """Compute the output files for a tangle without writing them."""
        target = target.lower()
        if not target:
            raise InvalidOutputFormat(target)

        blocks = filter_for_target(self.blocks, target)
        if selector is not None:
            blocks = select_blocks(self.blocks, selector, pool=blocks)
        blocks = [self.anchor_destination(b) for b in blocks]
        logger.debug("Tangling %d blocks for target %r", len(blocks), target)

        default_path = output if output is not None else self.default_output(target)
        return [
            OutputFile(self.resolve_path(f.path), f.lines)
            for f in route(blocks, target, default_path)
        ]

    def tangle(
        self,
        target: str,
        selector: Optional[str] = None,
        output: Optional[str] = None,
    ) -> list[str]:
        """Extract code for ``target`` and return the written paths.

        No file is written unless every output file could be computed.
        """
        files = self.plan(target, selector, output)
        for f in files:
            write_lines(f.path, f.lines)
            logger.info("Wrote %s (%d lines)", f.path, len(f.lines))
        return [f.path for f in files]

    def weave(self, minted: bool = False) -> Path:
        if self.document.path is None:
            raise ValueError("only documents read from a file can be woven")
        return weave(self.document.path, self.blocks, minted=minted, config=self.config)

    def export(
        self,
        fmt: str,
        selector: Optional[str] = None,
        output: Optional[str] = None,
    ) -> list[str]:
        """Weave for ``pdf``/``pdf-minted``, tangle for any other format."""
        lower = fmt.lower()
        if lower in WEAVE_FORMATS:
            return [str(self.weave(WEAVE_FORMATS[lower]))]
        if not lower:
            raise InvalidOutputFormat(fmt)
        return self.tangle(lower, selector, output)

    def __repr__(self) -> str:
        return f"Exporter(document={self.document!r}, base_dir={self.base_dir!r})"


def tangle(
    document_path: PathLike,
    target: str,
    selector: Optional[str] = None,
    output: Optional[str] = None,
    config: Optional[Config] = None,
    base_dir: Optional[PathLike] = None,
) -> list[str]:
    """Parse a document and tangle it in one call."""
    return Exporter.from_file(document_path, config, base_dir).tangle(target, selector, output)

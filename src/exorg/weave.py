"""Typesetting a document to PDF through Emacs and pdflatex.

Emacs exports the Org document to LaTeX in batch mode, then pdflatex
compiles the result next to the document. The ``minted`` variant rewrites
the generated LaTeX first, so code blocks are highlighted with the
``minted`` package instead of being set as plain verbatim text.
"""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from typing import Optional, Sequence

from exorg.config import Config
from exorg.errors import EmacsCallFailed, PdfLatexCallFailed
from exorg.files import PathLike, read_lines, write_lines
from exorg.model import CodeBlock

logger = logging.getLogger(__name__)

EXPORT_TO_LATEX = (
    "(progn (setq org-confirm-babel-evaluate nil) "
    "(org-latex-export-to-latex) (kill-emacs))"
)
NO_PDF_MARKER = "no output PDF file produced"


def export_latex(document_path: PathLike, emacs: str = "emacs") -> Path:
    """Run the Org LaTeX exporter and return the path of the .tex file."""
    document = Path(document_path)
    cmd = [emacs, document.name, "--batch", "--eval", EXPORT_TO_LATEX]
    logger.debug("Running %s", " ".join(cmd))
    try:
        result = subprocess.run(
            cmd,
            cwd=document.parent,
            capture_output=True,
            text=True,
            stdin=subprocess.DEVNULL,
        )
    except OSError as e:
        raise EmacsCallFailed(f"could not run {emacs}: {e}") from e

    if result.returncode != 0:
        raise EmacsCallFailed(
            f"{emacs} exited with status {result.returncode}: {result.stderr.strip()}"
        )
    return document.with_suffix(".tex")


def compile_pdf(tex_path: PathLike, pdflatex: str = "pdflatex") -> Path:
    """Compile a .tex file in its own directory and return the PDF path."""
    tex = Path(tex_path)
    cmd = [pdflatex, "-shell-escape", tex.name]
    logger.debug("Running %s", " ".join(cmd))
    try:
        result = subprocess.run(
            cmd,
            cwd=tex.parent,
            capture_output=True,
            text=True,
            stdin=subprocess.DEVNULL,
        )
    except OSError as e:
        raise PdfLatexCallFailed(f"could not run {pdflatex}: {e}") from e

    if NO_PDF_MARKER in result.stdout:
        logger.error("pdflatex log:\n%s", result.stdout)
        raise PdfLatexCallFailed(f"{pdflatex} produced no PDF for {tex}")
    return tex.with_suffix(".pdf")


def mint_tex(lines: Sequence[str], blocks: Sequence[CodeBlock]) -> list[str]:
    """Replace verbatim code environments with minted ones.

    Verbatim environments are matched to ``blocks`` in order: an
    environment is taken to be the next block when its first line contains
    that block's first line. Blocks without lines have no first line to
    match and are skipped.
    """
    blocks = [b for b in blocks if not b.is_empty()]
    result: list[str] = []
    index = 0
    in_minted = False
    has_package = False

    for i, line in enumerate(lines):
        if not has_package and line.startswith("\\usepackage"):
            result.append("\\usepackage{minted}")
            has_package = True

        if (
            index < len(blocks)
            and "begin" in line
            and "{verbatim}" in line
            and i + 1 < len(lines)
            and _first_line(blocks[index]) in lines[i + 1].strip()
        ):
            result.append(f"\\begin{{minted}}{{{blocks[index].language}}}")
            in_minted = True
            index += 1
        elif in_minted and "end" in line and "{verbatim}" in line:
            result.append("\\end{minted}")
            in_minted = False
        else:
            result.append(line)

    return result


def _first_line(block: CodeBlock) -> str:
    return block.lines[0].strip()


def weave(
    document_path: PathLike,
    blocks: Sequence[CodeBlock] = (),
    minted: bool = False,
    config: Optional[Config] = None,
) -> Path:
    """Typeset a document to PDF and return the PDF path.

    ``blocks`` are the document's code blocks, needed only for ``minted``.
    """
    config = config or Config()
    tex_path = export_latex(document_path, config.emacs)

    if minted:
        lines = read_lines(tex_path, config.tab_width)
        write_lines(tex_path, mint_tex(lines, blocks))

    pdf_path = compile_pdf(tex_path, config.pdflatex)
    logger.info("Wrote %s", pdf_path)
    return pdf_path

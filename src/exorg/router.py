"""Grouping tangled blocks into output files.

Three routing modes exist:

- single-file: every block goes to one default file, blocks separated by a
  blank line;
- multi-file: blocks go to their ``:tangle`` destination, or to the
  default file when they have none;
- notebook: blocks become the code cells of one Jupyter notebook.

Routing only builds :class:`~exorg.model.OutputFile` values. Writing them
is left to the caller, once every file is complete.
"""

from __future__ import annotations

from pathlib import Path
from typing import Mapping, Optional, Sequence

from exorg.model import CodeBlock, LanguageMapping, OutputFile
from exorg.notebook import build_notebook

COPY_TARGET = "."
NOTEBOOK_TARGET = "jupyter"
NOTEBOOK_LANGUAGE = "python"

SUFFIXES = {
    "awk": "awk",
    "bash": "sh",
    "sh": "sh",
    "shell": "sh",
    "c": "c",
    "cpp": "cpp",
    "c++": "cpp",
    "csharp": "cs",
    "c#": "cs",
    "cs": "cs",
    "css": "css",
    "d": "d",
    "emacs-lisp": "el",
    "go": "go",
    "html": "html",
    "java": "java",
    "js": "js",
    "json": "json",
    "julia": "jl",
    "jupyter": "ipynb",
    "latex": "tex",
    "lua": "lua",
    "markdown": "md",
    "ocaml": "ml",
    "perl": "pl",
    "php": "php",
    "prolog": "pl",
    "python": "py",
    "r": "r",
    "ruby": "rb",
    "rust": "rs",
    "sql": "sql",
    "toml": "toml",
    "yaml": "yml",
}


def document_stem(document_path: str) -> str:
    """Get the document's file name up to its first dot."""
    return Path(document_path).name.split(".")[0]


def output_file_name(
    document_path: str,
    target: str,
    languages: Sequence[LanguageMapping] = (),
    extra_languages: Optional[Mapping[str, str]] = None,
) -> str:
    """Derive the default output file name for a target.

    Well-known targets use a fixed suffix. Other targets look up the
    document's ``#+SRC_LANG:`` mappings, then ``extra_languages``. Unknown
    targets get the bare stem.
    """
    stem = document_stem(document_path)
    if not target:
        return stem

    suffix = SUFFIXES.get(target)
    if suffix is None:
        for language, declared in languages:
            if language == target:
                suffix = declared
                break
    if suffix is None and extra_languages:
        suffix = extra_languages.get(target)

    return f"{stem}.{suffix}" if suffix else stem


def matches_target(block: CodeBlock, target: str) -> bool:
    if target == COPY_TARGET:
        return True
    if target == NOTEBOOK_TARGET and block.language == NOTEBOOK_LANGUAGE:
        return True
    # untagged blocks only ever match the copy target
    return bool(target) and block.language == target


def filter_for_target(blocks: Sequence[CodeBlock], target: str) -> list[CodeBlock]:
    """Keep the blocks that belong in output for ``target``."""
    return [b for b in blocks if matches_target(b, target)]


def is_multi_file(blocks: Sequence[CodeBlock], target: str) -> bool:
    if target == COPY_TARGET:
        return True
    if target == NOTEBOOK_TARGET:
        return False
    return any(b.destination for b in blocks)


def route(blocks: Sequence[CodeBlock], target: str, default_path: str) -> list[OutputFile]:
    """Build the output files for already ordered blocks.

    In single-file mode the default file is returned even without lines.
    In multi-file mode only files that received lines are returned, in
    order of first use.
    """
    if target == NOTEBOOK_TARGET:
        return [OutputFile(default_path, build_notebook(blocks))]

    if is_multi_file(blocks, target):
        files: dict[str, OutputFile] = {}
        for block in blocks:
            path = block.destination or default_path
            output = files.setdefault(path, OutputFile(path))
            output.lines.extend(block.lines)
            output.lines.append("")
        return [f for f in files.values() if not f.is_empty()]

    lines: list[str] = []
    for block in blocks:
        lines.extend(block.lines)
        lines.append("")
    if lines:
        lines.pop()
    return [OutputFile(default_path, lines)]

"""Recovering code blocks from an Org document.

Parsing is a single pass over the document's lines. Each line is fed to
:func:`step` together with the current :class:`ParseState`; ``step`` is a
pure function returning the next state and, when the line completes
something, an event:

- a :class:`~exorg.model.CodeBlock` when ``#+END_SRC`` closes a block,
- a :class:`~exorg.model.LanguageMapping` for ``#+SRC_LANG:``,
- an :class:`Inclusion` for an ``#+INCLUDE:`` that carries code.

:func:`parse_lines` drives ``step`` and resolves inclusions, recursing into
included documents and merging their blocks and mappings into its own.

Example:
    >>> doc = parse_lines([
    ...     "#+NAME: hello",
    ...     "#+BEGIN_SRC python",
    ...     "print('hello')",
    ...     "#+END_SRC",
    ... ])
    >>> doc.blocks[0].name, doc.blocks[0].lines
    ('hello', ("print('hello')",))
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Optional, Sequence, Union

from exorg.errors import RecursiveInclusion
from exorg.files import DEFAULT_TAB_WIDTH, PathLike, read_lines
from exorg.model import CodeBlock, Document, LanguageMapping

logger = logging.getLogger(__name__)

BEGIN_SRC = "#+BEGIN_SRC"
END_SRC = "#+END_SRC"
NAME = "#+NAME:"
DEPS = "#+DEPS:"
SRC_LANG = "#+SRC_LANG:"
INCLUDE = "#+INCLUDE:"

TANGLE_KEY = ":tangle"
TANGLE_SENTINELS = ("yes", "no")
SRC_MARKER = "src"
MISSING_TOKEN = "fail"


@dataclass(frozen=True)
class ParseState:
    """The pending block: everything seen since the last block closed."""

    language: Optional[str] = None
    name: Optional[str] = None
    lines: tuple[str, ...] = ()
    dependencies: tuple[str, ...] = ()
    destination: Optional[str] = None
    in_block: bool = False


@dataclass(frozen=True)
class Inclusion:
    """An ``#+INCLUDE:`` directive that pulls in code.

    ``language`` is None for a nested document, and the block language for
    a verbatim source import. The remaining fields carry the pending block
    state at the inclusion site and only apply to source imports.
    """

    path: str
    language: Optional[str] = None
    name: Optional[str] = None
    dependencies: tuple[str, ...] = ()
    destination: Optional[str] = None

    @property
    def is_source(self) -> bool:
        return self.language is not None


Event = Union[CodeBlock, LanguageMapping, Inclusion, None]


def _header_args(tokens: Sequence[str]) -> tuple[Optional[str], Optional[str]]:
    """Split block header tokens into (language, destination).

    Two-character flags (``-n``, ``-i``) are skipped. Tokens starting with
    ``:`` are header keys and consume the following token as their value.
    """
    language = None
    destination = None
    i = 0
    while i < len(tokens):
        token = tokens[i]
        if token.startswith(":"):
            value = None
            if i + 1 < len(tokens) and not tokens[i + 1].startswith(":"):
                value = tokens[i + 1]
            if token == TANGLE_KEY and value is not None and value not in TANGLE_SENTINELS:
                destination = value
            i += 1 if value is None else 2
            continue
        if not (len(token) == 2 and token.startswith("-")) and language is None:
            language = token
        i += 1
    return language, destination


def parse_begin_src(line: str) -> tuple[Optional[str], Optional[str]]:
    """Parse a ``#+BEGIN_SRC`` line into (language, destination)."""
    return _header_args(line[len(BEGIN_SRC):].split())


def parse_name(line: str) -> str:
    return line[len(NAME):].strip()


def parse_deps(line: str) -> tuple[str, ...]:
    # duplicates collapse, first occurrence wins
    return tuple(dict.fromkeys(line[len(DEPS):].split()))


def parse_src_lang(line: str) -> LanguageMapping:
    args = line[len(SRC_LANG):].split()
    language = args[0] if len(args) > 0 else MISSING_TOKEN
    suffix = args[1] if len(args) > 1 else MISSING_TOKEN
    return LanguageMapping(language, suffix)


def parse_include(line: str, state: ParseState) -> Optional[Inclusion]:
    """Parse an ``#+INCLUDE:`` line.

    Returns None for include shapes that are assumed to carry no code.
    """
    args = line.split()
    if len(args) == 2:
        return Inclusion(path=args[1])
    if len(args) >= 4 and args[2] == SRC_MARKER:
        _, destination = _header_args(args[4:])
        return Inclusion(
            path=args[1],
            language=args[3],
            name=state.name,
            dependencies=state.dependencies,
            destination=destination,
        )
    return None


def step(state: ParseState, line: str) -> tuple[ParseState, Event]:
    """Advance the parse by one line."""
    if line.startswith(BEGIN_SRC):
        language, destination = parse_begin_src(line)
        return replace(state, language=language, destination=destination, in_block=True), None

    if line.startswith(END_SRC):
        if not state.in_block:
            return ParseState(), None
        block = CodeBlock(
            name=state.name or "",
            language=state.language or "",
            lines=state.lines,
            dependencies=state.dependencies,
            destination=state.destination,
        )
        return ParseState(), block

    if line.startswith(NAME):
        return replace(state, name=parse_name(line)), None

    if line.startswith(DEPS):
        return replace(state, dependencies=parse_deps(line)), None

    if line.startswith(SRC_LANG):
        return state, parse_src_lang(line)

    if line.startswith(INCLUDE):
        inclusion = parse_include(line, state)
        return replace(state, name=None, dependencies=(), destination=None), inclusion

    if state.in_block:
        return replace(state, lines=state.lines + (line,)), None

    return state, None


def _resolve_include_path(target: str, document_path: Optional[str]) -> str:
    if document_path is None or os.path.isabs(target):
        return target
    return str(Path(document_path).parent / target)


def parse_lines(
    lines: Sequence[str],
    path: Optional[PathLike] = None,
    tab_width: int = DEFAULT_TAB_WIDTH,
    _chain: tuple[str, ...] = (),
) -> Document:
    """Parse document lines into a :class:`~exorg.model.Document`.

    ``path`` is the document's own location; relative inclusions resolve
    against its directory. Blocks left open at the end of input are
    dropped.
    """
    if path is not None:
        path = str(path)
        key = os.path.realpath(path)
        if key not in _chain:
            _chain = _chain + (key,)
    blocks: list[CodeBlock] = []
    languages: list[LanguageMapping] = []

    state = ParseState()
    for line in lines:
        state, event = step(state, line)
        if event is None:
            continue
        if isinstance(event, CodeBlock):
            blocks.append(event)
        elif isinstance(event, LanguageMapping):
            languages.append(event)
        elif event.is_source:
            source_path = _resolve_include_path(event.path, path)
            blocks.append(CodeBlock(
                name=event.name or "",
                language=event.language,
                lines=tuple(read_lines(source_path, tab_width)),
                dependencies=event.dependencies,
                destination=event.destination,
            ))
        else:
            nested = parse_file(
                _resolve_include_path(event.path, path),
                tab_width=tab_width,
                _chain=_chain,
            )
            blocks.extend(nested.blocks)
            languages.extend(nested.languages)

    if state.in_block:
        logger.debug("Dropping unterminated block in %s", path or "<lines>")

    logger.debug("Parsed %d blocks from %s", len(blocks), path or "<lines>")
    return Document(path=path, blocks=tuple(blocks), languages=tuple(languages))


def parse_file(
    path: PathLike,
    tab_width: int = DEFAULT_TAB_WIDTH,
    _chain: tuple[str, ...] = (),
) -> Document:
    """Read and parse a document, following its inclusions."""
    key = os.path.realpath(path)
    if key in _chain:
        raise RecursiveInclusion(_chain[_chain.index(key):] + (key,))
    lines = read_lines(path, tab_width)
    return parse_lines(lines, path, tab_width=tab_width, _chain=_chain + (key,))

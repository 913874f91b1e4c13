"""Data types shared by the parser, resolver and router."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import NamedTuple, Optional


@dataclass(frozen=True)
class CodeBlock:
    """A named, language-tagged fragment of a document."""

    name: str = ""
    language: str = ""
    lines: tuple[str, ...] = ()
    dependencies: tuple[str, ...] = ()
    destination: Optional[str] = None

    @property
    def source(self) -> str:
        """Get the block body as a single string."""
        return "\n".join(self.lines)

    def is_empty(self) -> bool:
        return not self.lines

    def line_count(self) -> int:
        return len(self.lines)

    def __repr__(self) -> str:
        return (
            f"CodeBlock(name={self.name!r}, language={self.language!r}, "
            f"lines={len(self.lines)}, dependencies={list(self.dependencies)!r}, "
            f"destination={self.destination!r})"
        )


class LanguageMapping(NamedTuple):
    """A document-declared ``language -> file suffix`` pair."""

    language: str
    suffix: str


@dataclass
class OutputFile:
    """A file produced by tangling, built up before being written."""

    path: str
    lines: list[str] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not self.lines


@dataclass(frozen=True)
class Document:
    """A parsed document: its code blocks and language mappings."""

    path: Optional[str]
    blocks: tuple[CodeBlock, ...] = ()
    languages: tuple[LanguageMapping, ...] = ()

    def get_by_name(self, name: str) -> list[CodeBlock]:
        """Get blocks by exact name."""
        return [b for b in self.blocks if b.name == name]

    def names(self) -> list[str]:
        """Get the distinct block names, in document order."""
        return list(dict.fromkeys(b.name for b in self.blocks))

    def destinations(self) -> list[str]:
        """Get all explicit destination paths, in document order."""
        return list(
            dict.fromkeys(b.destination for b in self.blocks if b.destination)
        )

    def __len__(self) -> int:
        return len(self.blocks)

    def __repr__(self) -> str:
        return (
            f"Document(path={self.path!r}, blocks={len(self.blocks)}, "
            f"languages={len(self.languages)})"
        )

"""Selecting a block and everything it depends on, in a valid order.

A selector names one block, either exactly or by an unambiguous prefix.
The selection is the transitive closure of that block's ``#+DEPS:``
declarations, emitted so every block follows all of its dependencies.
Blocks that become ready at the same time keep their document order, so
identical input always produces identical output.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from exorg.errors import AmbiguousCodeBlockName, CodeBlockNotFound, UnsatisfiableDependencies
from exorg.model import CodeBlock

logger = logging.getLogger(__name__)


def resolve_selector(blocks: Sequence[CodeBlock], selector: str) -> str:
    """Resolve a selector to a full block name.

    An exact name match wins. Without one, the selector is completed to the
    single block name it is a prefix of.

    Raises:
        AmbiguousCodeBlockName: Several blocks carry the exact name, or no
            exact match exists and several names start with the selector.
        CodeBlockNotFound: Nothing matches.
    """
    exact = [i for i, b in enumerate(blocks) if b.name == selector]
    if len(exact) > 1:
        raise AmbiguousCodeBlockName(selector, [blocks[i].name for i in exact])
    if exact:
        return selector

    prefixed = [i for i, b in enumerate(blocks) if b.name.startswith(selector)]
    if not prefixed:
        raise CodeBlockNotFound(selector)
    if len(prefixed) > 1:
        raise AmbiguousCodeBlockName(selector, [blocks[i].name for i in prefixed])

    name = blocks[prefixed[0]].name
    logger.debug("Completed block name %r to %r", selector, name)
    return name


def dependency_closure(blocks: Sequence[CodeBlock], name: str) -> list[str]:
    """Collect ``name`` and every name it transitively depends on.

    The result is in discovery order. Cyclic declarations terminate since
    a name is only ever added once.
    """
    relevant = {name: None}
    added = True
    while added:
        added = False
        for block in blocks:
            if block.name not in relevant:
                continue
            for dep in block.dependencies:
                if dep not in relevant:
                    relevant[dep] = None
                    added = True
    return list(relevant)


def order_blocks(pool: Sequence[CodeBlock], relevant: Sequence[str]) -> list[CodeBlock]:
    """Order the relevant blocks of ``pool`` so dependencies come first.

    Each sweep walks ``pool`` in document order and emits every block whose
    dependencies have all been emitted. One block is emitted per name; later
    blocks reusing an emitted name are skipped.

    Raises:
        UnsatisfiableDependencies: A sweep made no progress while names
            remain, because of a cycle or a dependency without a block.
    """
    ids = {name: k for k, name in enumerate(relevant)}

    # (pool index, name id, dependency ids) for blocks in the selection
    arena: list[tuple[int, int, tuple[int, ...]]] = []
    for i, block in enumerate(pool):
        if block.name not in ids:
            continue
        deps = tuple(ids.get(dep, -1) for dep in block.dependencies)
        arena.append((i, ids[block.name], deps))

    inserted = [False] * len(ids)
    count = 0
    ordered: list[CodeBlock] = []
    while count < len(ids):
        progress = False
        for i, k, deps in arena:
            if inserted[k]:
                continue
            if all(d >= 0 and inserted[d] for d in deps):
                inserted[k] = True
                count += 1
                ordered.append(pool[i])
                progress = True
        if not progress:
            missing = [name for name, k in ids.items() if not inserted[k]]
            raise UnsatisfiableDependencies(missing)
    return ordered


def select_blocks(
    blocks: Sequence[CodeBlock],
    selector: str,
    pool: Optional[Sequence[CodeBlock]] = None,
) -> list[CodeBlock]:
    """Select a block and its dependency closure, dependencies first.

    Names are resolved against ``blocks``. Emission draws from ``pool``,
    which defaults to ``blocks`` and is usually the blocks matching the
    tangle target.
    """
    name = resolve_selector(blocks, selector)
    relevant = dependency_closure(blocks, name)
    logger.debug("Selection %r requires %s", name, relevant)
    return order_blocks(blocks if pool is None else pool, relevant)

"""Serializing code blocks as a Jupyter notebook (nbformat 4)."""

from __future__ import annotations

import json
from typing import Any, Dict, List, Sequence

from exorg.model import CodeBlock

NOTEBOOK_METADATA: Dict[str, Any] = {
    "kernelspec": {
        "display_name": "Python 3",
        "language": "python",
        "name": "python3",
    },
    "language_info": {
        "codemirror_mode": {
            "name": "ipython",
            "version": 3,
        },
        "file_extension": ".py",
        "mimetype": "text/x-python",
        "name": "python",
        "nbconvert_exporter": "python",
        "pygments_lexer": "ipython3",
        "version": "3.6.4",
    },
}


def code_cell(lines: Sequence[str]) -> Dict[str, Any]:
    """Build a code cell; every source line but the last keeps its newline."""
    source = [line + "\n" for line in lines]
    if source:
        source[-1] = lines[-1]
    return {
        "cell_type": "code",
        "execution_count": None,
        "metadata": {},
        "outputs": [],
        "source": source,
    }


def build_notebook(blocks: Sequence[CodeBlock]) -> List[str]:
    """Render blocks as notebook JSON, one code cell per block."""
    notebook = {
        "cells": [code_cell(block.lines) for block in blocks],
        "metadata": NOTEBOOK_METADATA,
        "nbformat": 4,
        "nbformat_minor": 2,
    }
    return json.dumps(notebook, indent=1, ensure_ascii=False).split("\n")

"""Grammar file loader."""

from __future__ import annotations
from pathlib    import Path
from typing     import Dict

from ..rules import Rule


def load_grammar_text(path: str) -> str:
    """
    Load Grammar Text
    """
    text = Path(path).read_text(encoding="utf-8")
    return text.replace("\r\n", "\n").replace("\r", "\n")


def load_grammar(path: str) -> Dict[str, Rule]:
    from .parser import parse_grammar
    return parse_grammar(load_grammar_text(path))

r"""gel: a small grammar-driven text matcher.

This package provides:
- Rule nodes (Token, Ref, Seq, Tagged, Choice, Repeat) and helpers
- A recursive matcher that runs actions on named rules
- `Parser`, the per-rule-set front end
- A textual grammar reader (`gel.grammar`) and the `gelc` CLI

Minimal use:

    import re
    from gel import Parser, or_

    rules = {
        "$begin": "expr",
        "expr": or_([{"left": "int"}, re.compile(r"\+"), {"right": "expr"}],
                    {"atom": "int"}),
        "int": re.compile(r"[0-9]+"),
    }
    actions = {
        "expr": lambda m: m.left + m.right if m.left is not None else m.atom,
        "int": int,
    }
    Parser(rules, actions).run("1 + 2 + 3")   # -> 6
"""

from .rules import (
    Token, Ref, Seq, Tagged, Choice, Repeat, Rule,
    coerce_rule, or_, times,
)
from .match import Match
from .engine import Matcher
from .runtime import Parser, ParserOption, ParseOutcome

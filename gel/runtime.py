# gel/runtime.py
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Mapping, Optional

from .engine import Matcher, SPACE
from .rules import DEFAULT_SPACE, Rule, Token, coerce_rules

BEGIN = "$begin"


@dataclass
class ParserOption:
    """Per-run diagnostics. Never changes what matches."""
    verbose: bool = False
    log_func: Callable[[str], None] = field(default=print)


@dataclass
class ParseOutcome:
    ok: bool
    value: Any
    end: int
    text: str

    @property
    def rest(self) -> str:
        """Unconsumed input (whole input on failure)."""
        return self.text[self.end:] if self.ok else self.text

    @property
    def complete(self) -> bool:
        return self.ok and self.end == len(self.text)


class Parser:
    """Run a rule set + action set against input text.

    Both mappings are copied at construction; `$space` defaults to
    ``[ \\t\\r\\n]*`` in the private copy when the caller leaves it out.
    """
    def __init__(self, rule_set: Mapping[str, Any], action_set: Optional[Mapping[str, Any]] = None):
        rules: Dict[str, Rule] = coerce_rules(rule_set)
        if BEGIN not in rules:
            raise ValueError(f"rule set has no '{BEGIN}' rule")
        if SPACE not in rules:
            rules[SPACE] = Token(DEFAULT_SPACE)
        actions = dict(action_set or {})
        for name, act in actions.items():
            if not callable(act):
                raise TypeError(f"action for '{name}' is not callable: {act!r}")
        self.rules = rules
        self.actions = actions

    def parse(self, text: str, option: Optional[ParserOption] = None) -> ParseOutcome:
        option = option or ParserOption()
        log = option.log_func if option.verbose else None
        engine = Matcher(self.rules, self.actions, log)
        ok, value, end = engine.apply(BEGIN, text)
        if not ok:
            return ParseOutcome(False, None, 0, text)
        return ParseOutcome(True, value, end, text)

    def run(self, text: str, option: Optional[ParserOption] = None) -> Any:
        """Value of `$begin`, or None when it does not match."""
        return self.parse(text, option).value

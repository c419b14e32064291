# gel/rules.py
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Tuple, Union
import re

import regex

# ---- Rule node definitions ----

@dataclass(frozen=True)
class Token:
    pattern: str
    flags: int = 0
    compiled: "regex.Pattern" = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "compiled", regex.compile(self.pattern, self.flags))

@dataclass(frozen=True)
class Ref:
    name: str

@dataclass(frozen=True)
class Seq:
    items: Tuple["Rule", ...]

@dataclass(frozen=True)
class Tagged:
    tag: str
    node: "Rule"

@dataclass(frozen=True)
class Choice:
    alts: Tuple["Rule", ...]

@dataclass(frozen=True)
class Repeat:
    node: "Rule"
    min: Optional[int] = None  # None = no lower bound
    max: Optional[int] = None  # None = unbounded

    def __post_init__(self) -> None:
        for b in (self.min, self.max):
            if b is not None and b < 0:
                raise ValueError(f"repeat bound must be >= 0, got {b}")
        if self.min is not None and self.max is not None and self.min > self.max:
            raise ValueError(f"repeat bounds out of order: min={self.min} > max={self.max}")

Rule = Union[Token, Ref, Seq, Tagged, Choice, Repeat]
RULE_TYPES = (Token, Ref, Seq, Tagged, Choice, Repeat)

DEFAULT_SPACE = r"[ \t\r\n]*"


def _is_pattern(value: Any) -> bool:
    # re.Pattern and regex.Pattern both expose .pattern/.flags/.match
    return hasattr(value, "pattern") and hasattr(value, "flags") and hasattr(value, "match")


# re and regex disagree on some flag bits (re.ASCII is regex.VERSION1)
_RE_FLAG_MAP = (
    (re.IGNORECASE, regex.IGNORECASE),
    (re.MULTILINE, regex.MULTILINE),
    (re.DOTALL, regex.DOTALL),
    (re.VERBOSE, regex.VERBOSE),
    (re.ASCII, regex.ASCII),
)


def _translate_re_flags(flags: int) -> int:
    out = 0
    for src, dst in _RE_FLAG_MAP:
        if flags & src:
            out |= dst
    return out


def coerce_rule(value: Any) -> Rule:
    """Turn a data-shaped rule declaration into a rule node.

    - ``str``               -> Ref(name)
    - compiled pattern      -> Token(pattern.pattern, flags)  (re flags translated)
    - ``list`` / ``tuple``  -> Seq(items)
    - ``{tag: rule}``       -> Tagged(tag, rule)
    - rule node             -> itself (children are coerced)
    """
    if isinstance(value, RULE_TYPES):
        if isinstance(value, Seq):
            return Seq(tuple(coerce_rule(it) for it in value.items))
        if isinstance(value, Choice):
            return Choice(tuple(coerce_rule(it) for it in value.alts))
        if isinstance(value, Tagged):
            return Tagged(value.tag, coerce_rule(value.node))
        if isinstance(value, Repeat):
            return Repeat(coerce_rule(value.node), value.min, value.max)
        return value
    if isinstance(value, str):
        return Ref(value)
    if isinstance(value, re.Pattern):
        return Token(value.pattern, _translate_re_flags(value.flags))
    if _is_pattern(value):
        return Token(value.pattern, value.flags)
    if isinstance(value, (list, tuple)):
        return Seq(tuple(coerce_rule(it) for it in value))
    if isinstance(value, Mapping):
        if len(value) != 1:
            raise TypeError(f"tagged rule must have exactly one tag, got {list(value)!r}")
        (tag, node), = value.items()
        return Tagged(str(tag), coerce_rule(node))
    raise TypeError(f"cannot use {type(value).__name__} as a rule: {value!r}")


def coerce_rules(rule_set: Mapping[str, Any]) -> Dict[str, Rule]:
    return {str(name): coerce_rule(r) for name, r in rule_set.items()}


# ---- Declaration helpers ----

def or_(*alts: Any) -> Choice:
    """Ordered choice: the first alternative that matches wins."""
    return Choice(tuple(coerce_rule(a) for a in alts))


def times(node: Any, count: Optional[int] = None, *,
          min: Optional[int] = None, max: Optional[int] = None) -> Repeat:
    """Bounded repetition. ``times(r, 5)`` means exactly five."""
    if count is not None:
        if min is not None or max is not None:
            raise ValueError("times(): pass either count or min/max, not both")
        min = max = count
    return Repeat(coerce_rule(node), min, max)

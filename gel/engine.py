# gel/engine.py
from __future__ import annotations
from typing import Any, Callable, Dict, Mapping, Optional, Tuple

from .match import merge
from .rules import Token, Ref, Seq, Tagged, Choice, Repeat, Rule

# Recursive rule evaluator:
# - Position, tag accumulator and the $space-skip flag are passed in and
#   returned; nothing is shared between runs.
# - A failure is a plain (False, ...) result, never an exception.
# - Left recursion is not supported; a reference cycle that consumes no
#   input recurses until Python's recursion limit.

Tags = Dict[str, Any]
Result = Tuple[bool, Any, int, Tags]  # (ok, value, end, tags)

SPACE = "$space"


def _no_log(message: str) -> None:
    pass


class Matcher:
    def __init__(self, rules: Mapping[str, Rule], actions: Mapping[str, Callable[[Any], Any]],
                 log: Optional[Callable[[str], None]] = None):
        self.rules = rules
        self.actions = actions
        self.log = log or _no_log
        self.text = ""

    # ---- Public entrypoint for one rule ----
    def apply(self, name: str, text: str, pos: int = 0) -> Tuple[bool, Any, int]:
        self.text = text
        ok, value, end, _ = self._eval(Ref(name), pos, {}, True)
        return ok, value, end

    # ---- Evaluator ----
    def _eval(self, node: Rule, pos: int, tags: Tags, skip: bool) -> Result:
        if isinstance(node, Token):
            return self._token(node, pos, tags, skip)

        if isinstance(node, Ref):
            return self._ref(node.name, pos, tags, skip)

        if isinstance(node, Seq):
            self.log(f"Sequence rule: {len(node.items)} items")
            values = []
            cur = pos
            for it in node.items:
                ok, value, cur, tags = self._eval(it, cur, tags, skip)
                if not ok:
                    # no rollback: report where the failing item stopped
                    return False, None, cur, tags
                values.append(value)
            return True, values, cur, tags

        if isinstance(node, Tagged):
            self.log(f"Tagged rule: {{{node.tag}: ...}}")
            ok, value, end, inner = self._eval(node.node, pos, {}, skip)
            if not ok:
                return False, None, pos, tags
            # inner tags stay visible to the enclosing rule as well as under node.tag
            return True, value, end, {**tags, **inner, node.tag: merge(value, inner)}

        if isinstance(node, Choice):
            self.log(f"Choice rule: {len(node.alts)} alternatives")
            for i, alt in enumerate(node.alts):
                ok, value, end, alt_tags = self._eval(alt, pos, tags, skip)
                if ok:
                    self.log(f"-> alternative {i} matched")
                    return True, value, end, alt_tags
            return False, None, pos, tags

        if isinstance(node, Repeat):
            return self._repeat(node, pos, tags, skip)

        self.log(f"Unknown rule: {node!r}")
        return False, None, pos, tags

    def _token(self, node: Token, pos: int, tags: Tags, skip: bool) -> Result:
        self.log(f"Token rule: /{node.pattern}/")
        start = pos
        if skip:
            ok, _, end, _ = self._ref(SPACE, pos, {}, False)
            if ok:
                start = end
        # anchored at the start of the remaining input
        m = node.compiled.match(self.text[start:])
        if m is None:
            self.log("-> no match")
            return False, None, pos, tags
        self.log(f'-> match: "{m.group(0)}"')
        return True, m.group(0), start + m.end(), tags

    def _ref(self, name: str, pos: int, tags: Tags, skip: bool) -> Result:
        self.log(f"Reference rule: {name}")
        rule = self.rules.get(name)
        if rule is None:
            self.log(f"-> undefined rule '{name}'")
            return False, None, pos, tags
        ok, value, end, inner = self._eval(rule, pos, {}, skip)
        if not ok:
            # caller's tags untouched
            return False, None, end, tags
        action = self.actions.get(name)
        if action is not None:
            value = action(merge(value, inner))
        else:
            value = merge(value, inner)
        return True, value, end, tags

    def _repeat(self, node: Repeat, pos: int, tags: Tags, skip: bool) -> Result:
        self.log(f"Repeat rule: min={node.min} max={node.max}")
        values = []
        cur, cur_tags = pos, tags
        while node.max is None or len(values) < node.max:
            ok, value, end, next_tags = self._eval(node.node, cur, cur_tags, skip)
            if not ok:
                break
            values.append(value)
            progressed = end != cur
            cur, cur_tags = end, next_tags
            if not progressed:
                # same state again: repeats would match identically
                if node.min is not None:
                    values.extend([value] * (node.min - len(values)))
                break
        if node.min is not None and len(values) < node.min:
            self.log(f"-> {len(values)} < min {node.min}")
            return False, None, pos, tags
        return True, values, cur, cur_tags

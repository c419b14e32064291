# gel/grammar/parser.py
from __future__ import annotations
from typing import Dict, List, Optional

import regex

from ..rules import Token, Ref, Seq, Tagged, Choice, Repeat, Rule

# Grammar we parse:
#   grammar  := (rule)*
#   rule     := NAME "<-" expr
#   expr     := seq ("|" seq)*
#   seq      := (item)*
#   item     := (NAME ":")* primary suffix?
#   suffix   := "?" | "*" | "+" | "{" INT? ("," INT?)? "}"
#   primary  := NAME | regex | literal | "(" expr ")"
#
#   NAME     := [$A-Za-z_][A-Za-z0-9_]*
#   regex    := "/" ... "/" [imsx]*     ("\/" for a literal slash)
#   literal  := ' ... ' | " ... "        (matched verbatim; \n \r \t \\ \' \" escapes)
#   comments: "#" ... endline

_FLAG_MAP = {
    'i': regex.IGNORECASE,
    'm': regex.MULTILINE,
    's': regex.DOTALL,
    'x': regex.VERBOSE,
}

_ESCAPES = {"n": "\n", "r": "\r", "t": "\t"}


class _TS:
    def __init__(self, src: str):
        self.s = src
        self.i = 0
        self.n = len(src)

    def _peek(self, k: int = 0) -> Optional[str]:
        j = self.i + k
        if j >= self.n:
            return None
        return self.s[j]

    def _starts(self, lit: str) -> bool:
        return self.s.startswith(lit, self.i)

    def _bump(self, n: int = 1) -> None:
        self.i += n

    def _eof(self) -> bool:
        return self.i >= self.n

    def _err(self, msg: str) -> SyntaxError:
        return SyntaxError(f"grammar parse error at {self.i}: {msg}")

    def _skip_ws(self) -> None:
        while not self._eof():
            ch = self._peek()
            if ch in " \t\r\n":
                self._bump(1)
                continue
            if ch == "#":
                while not self._eof() and self._peek() != "\n":
                    self._bump(1)
                continue
            break

    def _eat(self, lit: str) -> None:
        self._skip_ws()
        if not self._starts(lit):
            raise self._err(f"expected {lit!r}")
        self._bump(len(lit))

    def _try_eat(self, lit: str) -> bool:
        self._skip_ws()
        if self._starts(lit):
            self._bump(len(lit))
            return True
        return False

    def _is_name_start(self, ch: Optional[str]) -> bool:
        if ch is None:
            return False
        return ch.isalpha() or ch in "_$"

    def _is_name_continue(self, ch: Optional[str]) -> bool:
        if ch is None:
            return False
        return ch.isalnum() or ch == "_"

    def _name(self) -> str:
        self._skip_ws()
        if not self._is_name_start(self._peek()):
            raise self._err("expected NAME")
        start = self.i
        self._bump(1)
        while self._is_name_continue(self._peek()):
            self._bump(1)
        return self.s[start:self.i]

    def _int(self) -> Optional[int]:
        self._skip_ws()
        start = self.i
        while not self._eof() and self._peek().isdigit():
            self._bump(1)
        if start == self.i:
            return None
        return int(self.s[start:self.i])

    def _regex(self) -> Token:
        self._eat("/")
        out = []
        while True:
            c = self._peek()
            if c is None or c == "\n":
                raise self._err("unterminated regex")
            self._bump(1)
            if c == "/":
                break
            if c == "\\" and self._peek() == "/":
                self._bump(1)
                out.append("/")
            elif c == "\\":
                nxt = self._peek()
                if nxt is None:
                    raise self._err("unterminated regex")
                self._bump(1)
                out.append(c + nxt)
            else:
                out.append(c)
        flags = 0
        while self._peek() in _FLAG_MAP:
            flags |= _FLAG_MAP[self._peek()]
            self._bump(1)
        pattern = "".join(out)
        try:
            return Token(pattern, flags)
        except regex.error as e:
            raise self._err(f"bad regex /{pattern}/: {e}")

    def _literal(self) -> Token:
        self._skip_ws()
        q = self._peek()
        if q not in ("'", '"'):
            raise self._err("expected quote")
        self._bump(1)
        out = []
        while not self._eof():
            c = self._peek()
            if c == q:
                self._bump(1)
                break
            if c == "\\":
                self._bump(1)
                nxt = self._peek()
                if nxt is None:
                    raise self._err("unterminated string")
                out.append(_ESCAPES.get(nxt, nxt))
                self._bump(1)
            else:
                out.append(c)
                self._bump(1)
        else:
            raise self._err("unterminated string")
        return Token(regex.escape("".join(out)))

    def _at_rule_head(self) -> bool:
        """True if NAME "<-" follows (the start of the next rule)."""
        save = self.i
        try:
            self._name()
            return self._try_eat("<-")
        except SyntaxError:
            return False
        finally:
            self.i = save

    def _at_tag(self) -> bool:
        save = self.i
        try:
            self._name()
            self._skip_ws()
            return self._starts(":")
        except SyntaxError:
            return False
        finally:
            self.i = save

    # --- recursive descent for expressions ---

    def parse_grammar(self) -> Dict[str, Rule]:
        rules: Dict[str, Rule] = {}
        while True:
            self._skip_ws()
            if self._eof():
                break
            name = self._name()
            self._eat("<-")
            expr = self._parse_expr()
            if name in rules:
                raise self._err(f"duplicate rule '{name}'")
            rules[name] = expr
        if not rules:
            raise self._err("empty grammar")
        return rules

    def _parse_expr(self) -> Rule:
        alts = [self._parse_seq()]
        while self._try_eat("|"):
            alts.append(self._parse_seq())
        if len(alts) == 1:
            return alts[0]
        return Choice(tuple(alts))

    def _parse_seq(self) -> Rule:
        items: List[Rule] = []
        while True:
            self._skip_ws()
            ch = self._peek()
            if ch is None or ch in ")|":
                break
            if self._is_name_start(ch) and self._at_rule_head():
                break
            items.append(self._parse_item())
        if len(items) == 1:
            return items[0]
        return Seq(tuple(items))  # empty Seq always matches, yields []

    def _parse_item(self) -> Rule:
        self._skip_ws()
        if self._is_name_start(self._peek()) and self._at_tag():
            tag = self._name()
            self._eat(":")
            return Tagged(tag, self._parse_item())
        return self._parse_suffix()

    def _parse_suffix(self) -> Rule:
        node = self._parse_primary()
        self._skip_ws()
        if self._try_eat("?"):
            return Repeat(node, 0, 1)
        if self._try_eat("*"):
            return Repeat(node, 0, None)
        if self._try_eat("+"):
            return Repeat(node, 1, None)
        if self._try_eat("{"):
            lo = self._int()
            if self._try_eat(","):
                hi = self._int()
            else:
                if lo is None:
                    raise self._err("expected count")
                hi = lo
            self._eat("}")
            try:
                return Repeat(node, lo, hi)
            except ValueError as e:
                raise self._err(str(e))
        return node

    def _parse_primary(self) -> Rule:
        self._skip_ws()
        ch = self._peek()
        if ch == "(":
            self._bump(1)
            e = self._parse_expr()
            self._eat(")")
            return e
        if ch == "/":
            return self._regex()
        if ch in ("'", '"'):
            return self._literal()
        if self._is_name_start(ch):
            return Ref(self._name())
        raise self._err(f"unexpected {ch!r}" if ch else "unexpected end of input")


def parse_grammar(src: str) -> Dict[str, Rule]:
    """Parse grammar text into a rule set usable by `gel.Parser`."""
    ts = _TS(src)
    return ts.parse_grammar()

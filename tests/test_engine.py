import re
from concurrent.futures import ThreadPoolExecutor

import pytest
import regex

from gel import Parser, ParserOption, Token, Ref, Seq, Tagged, Choice, Repeat, Match, or_, times
from gel.engine import Matcher


def _parser(rule, actions=None):
    return Parser({"$begin": rule}, actions or {})


def _calc():
    rules = {
        "$begin": "expr",
        "expr": or_([{"left": "int"}, re.compile(r"\+"), {"right": "expr"}],
                    {"atom": "int"}),
        "int": re.compile(r"[0-9]+"),
    }
    actions = {
        "expr": lambda m: m.left + m.right if m.left is not None else m.atom,
        "int": lambda m: int(m),
    }
    return Parser(rules, actions)


def test_calculator():
    assert _calc().run("1 + 2 + 3 + 2000 + 100") == 2106


def test_calculator_concurrent_runs():
    parser = _calc()
    with ThreadPoolExecutor(max_workers=4) as pool:
        results = list(pool.map(parser.run, ["1 + 2 + 3 + 2000 + 100"] * 16))
    assert results == [2106] * 16


def test_choice_tags_are_exclusive():
    parser = Parser({
        "$begin": or_({"a": "int"}, {"b": "alphabet"}),
        "int": re.compile(r"[0-9]+"),
        "alphabet": re.compile(r"[a-zA-Z]+"),
    })
    r1 = parser.run("100")
    assert r1.a == "100"
    assert r1.b is None
    r2 = parser.run("abc")
    assert r2.a is None
    assert r2.b == "abc"


def test_choice_order_matters():
    assert _parser(or_(re.compile("a"), re.compile("aa"))).run("aa") == "a"
    assert _parser(or_(re.compile("aa"), re.compile("a"))).run("aa") == "aa"


def test_choice_drops_failed_alternative_tags():
    rule = or_([{"x": re.compile("a")}, re.compile("b")],
               [re.compile("a"), re.compile("c")])
    result = _parser(rule).run("a c")
    assert result == ["a", "c"]
    assert not isinstance(result, Match)


def test_action_receives_raw_string():
    seen = []

    def begin(m):
        seen.append(m)
        return int(m)

    assert _parser(re.compile("[0-9]+"), {"$begin": begin}).run("100") == 100
    assert seen == ["100"]


def test_space_action_and_rules_not_mutated():
    seen = []

    def space(m):
        seen.append(m)
        return m

    rules = {"$begin": re.compile("[0-9]+")}
    result = Parser(rules, {"$space": space}).run(" \t\r\n123")
    assert result == "123"
    assert seen == [" \t\r\n"]
    assert "$space" not in rules


def test_custom_space_rule():
    parser = Parser({
        "$begin": [re.compile("a"), re.compile("b")],
        "$space": re.compile(r"[ _]*"),
    })
    assert parser.run("a__b") == ["a", "b"]
    assert parser.run("a\nb") is None


def test_failed_token_does_not_consume_space():
    out = _parser(times(re.compile("a"), min=0)).parse("a a  ")
    assert out.ok
    assert out.value == ["a", "a"]
    assert out.end == 3
    assert out.rest == "  "
    assert not out.complete


def test_logging():
    parser = _parser(re.compile("."))
    buf = []
    parser.run("test", ParserOption(verbose=False, log_func=buf.append))
    assert buf == []
    parser.run("test", ParserOption(verbose=True, log_func=buf.append))
    assert buf
    assert any(line.startswith("Token rule") for line in buf)


def test_tagged_visible_to_action():
    seen = {}

    def begin(m):
        seen["a"] = m.a
        seen["item"] = m["a"]
        return m

    _parser({"a": re.compile("hello")}, {"$begin": begin}).run("hello")
    assert seen == {"a": "hello", "item": "hello"}


def test_nested_tags():
    result = _parser({"a": {"b": {"c": re.compile("100")}}}).run("100")
    assert result.a.b.c == "100"


def test_sequence():
    rule = [re.compile("a"), re.compile("b"), re.compile("c")]
    assert _parser(rule).run("a b c") == ["a", "b", "c"]
    assert _parser(rule).run("a c") is None


def test_sequence_failure_reports_stop_position():
    parser = Parser({"$begin": "x", "x": [re.compile("a"), re.compile("b")]})
    ok, _, end = Matcher(parser.rules, {}).apply("$begin", "a c")
    assert not ok
    assert end == 1


def test_repeat_exact():
    bounded = Seq((Repeat(Token("a"), 5, 5), Token(r"\Z")))
    assert _parser(times(re.compile("a"), 5)).run("aaaaa") == ["a"] * 5
    assert _parser(times(re.compile("a"), 5)).run("aaaa") is None
    assert _parser(bounded).run("aaaaaa") is None
    out = _parser(times(re.compile("a"), 5)).parse("aaaaaa")
    assert out.rest == "a"


def test_repeat_min_max():
    greater = _parser(times(re.compile("b"), min=2))
    assert greater.run("b") is None
    assert greater.run("bbbbb") == ["b"] * 5

    lesser = _parser(times(re.compile("c"), max=8))
    assert lesser.run("") == []
    assert lesser.parse("c" * 9).value == ["c"] * 8

    ranged = _parser(times(re.compile("d"), min=3, max=5))
    assert ranged.run("dd") is None
    assert ranged.run("ddd") == ["d"] * 3
    assert ranged.parse("dddddd").end == 5


def test_repeat_tags_last_write_wins():
    result = _parser(times({"d": re.compile("[0-9]")}, 3)).run("1 2 3")
    assert list(result) == ["1", "2", "3"]
    assert result.d == "3"


def test_repeat_short_of_min_keeps_no_tags():
    rule = or_([times({"d": re.compile("[0-9]")}, min=3), re.compile("x")],
               [re.compile("[0-9]"), {"e": re.compile("[0-9]")}])
    result = _parser(rule).run("12")
    assert result.d is None
    assert result.e == "2"


def test_repeat_zero_width_terminates():
    out = _parser(times(Token("x*"))).parse("b")
    assert out.ok
    assert out.value == [""]
    assert out.end == 0


def test_action_isolation():
    seen = {}

    def record(name):
        def act(m):
            seen[name] = set(m.keys()) if isinstance(m, Match) else set()
            return m
        return act

    parser = Parser({
        "$begin": [{"x": "inner"}, "other"],
        "inner": [{"p": re.compile("a")}, re.compile("b")],
        "other": {"q": re.compile("c")},
    }, {name: record(name) for name in ("$begin", "inner", "other")})
    parser.run("a b c")
    assert seen == {"inner": {"p"}, "other": {"q"}, "$begin": {"x"}}


def test_undefined_reference_fails():
    buf = []
    parser = Parser({"$begin": "missing"})
    assert parser.run("x", ParserOption(verbose=True, log_func=buf.append)) is None
    assert any("undefined" in line for line in buf)


def test_action_errors_propagate():
    def boom(m):
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError):
        _parser(re.compile("a"), {"$begin": boom}).run("a")


def test_compiled_pattern_flags_kept():
    assert _parser(re.compile("abc", re.I)).run("ABC") == "ABC"


def test_construction_errors():
    with pytest.raises(ValueError):
        Parser({"int": re.compile("[0-9]+")})
    with pytest.raises(TypeError):
        Parser({"$begin": re.compile("a")}, {"$begin": "not callable"})
    with pytest.raises(TypeError):
        Parser({"$begin": {"a": "x", "b": "y"}})
    with pytest.raises(TypeError):
        Parser({"$begin": 42})
    with pytest.raises(ValueError):
        Repeat(Token("a"), 3, 1)
    with pytest.raises(ValueError):
        times(Token("a"), 2, min=1)


def test_rule_nodes_used_directly():
    parser = Parser({
        "$begin": Seq((Tagged("k", Ref("word")), Token("="), Tagged("v", Choice((Ref("num"), Ref("word")))))),
        "word": Token("[a-z]+"),
        "num": Token("[0-9]+"),
    }, {"$begin": lambda m: {m.k: m.v}})
    assert parser.run("x = 10") == {"x": "10"}


def test_tags_inside_tagged_reach_the_action():
    seen = {}

    def begin(m):
        seen["x"] = m.x
        seen["outer"] = m.outer
        return m

    rule = {"outer": [{"x": re.compile("a")}, re.compile("b")]}
    _parser(rule, {"$begin": begin}).run("ab")
    assert seen["x"] == "a"
    assert seen["outer"].x == "a"
    assert list(seen["outer"]) == ["a", "b"]


def test_stdlib_ascii_flag_translated():
    assert _parser(re.compile(r"\w+", re.ASCII)).run("é") is None
    assert _parser(re.compile(r"\w+")).run("é") == "é"


def test_regex_pattern_flags_pass_through():
    assert _parser(regex.compile("abc", regex.IGNORECASE)).run("ABC") == "ABC"


def test_repeat_zero_width_meets_min():
    out = _parser(Repeat(Token("x?"), 2, 2)).parse("")
    assert out.ok
    assert out.value == ["", ""]
    assert out.end == 0


def test_token_anchored_at_remaining_input():
    assert _parser([re.compile("a"), re.compile("^b")]).run("ab") == ["a", "b"]
    assert _parser([re.compile("a"), re.compile("(?<!a)b")]).run("ab") == ["a", "b"]


def test_repeat_drops_partial_sequence_iteration():
    out = _parser(times([re.compile("a"), re.compile("b")])).parse("ab a")
    assert out.ok
    assert out.value == [["a", "b"]]
    assert out.end == 2

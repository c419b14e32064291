# gel/gelc.py
"""gelc – gel CLI

사용 예)
    $ python -m gel.gelc check examples/calc.gel -D
    $ python -m gel.gelc run examples/calc.gel --text "1 + 2 + 3" -v
    $ python -m gel.gelc run examples/calc.gel --input expr.txt --full

기능
----
- check : 문법 파일을 읽어 규칙 목록을 검증하고 요약 출력
- run   : 문법의 `$begin` 규칙으로 입력을 매칭하고 결과(repr)를 출력

`-v/--verbose` 를 켜면 매칭 과정 로그를 stderr로 출력합니다.
"""

from __future__ import annotations
import argparse
import sys
from typing import Optional

# ------------------------------
# 헬퍼
# ------------------------------

def _eprint(*args, **kw) -> None:
    print(*args, file=sys.stderr, **kw)


def _print_rules(rules) -> None:
    _eprint("\n[RULES]")
    for name, rule in rules.items():
        _eprint(f"  {name:>10} <- {rule!r}")

# ------------------------------
# 커맨드 구현
# ------------------------------

def cmd_check(args) -> int:
    from .grammar import load_grammar
    try:
        rules = load_grammar(args.file)
    except SyntaxError as e:
        _eprint("[SYNTAX ERROR]")
        _eprint(str(e))
        return 2
    except Exception as e:
        _eprint("[ERROR]", type(e).__name__, str(e))
        return 2

    if args.debug:
        _print_rules(rules)

    begin = "yes" if "$begin" in rules else "no"
    print(f"[CHECK OK] rules={len(rules)} begin={begin}")
    return 0


def cmd_run(args) -> int:
    from .grammar import load_grammar
    from .runtime import Parser, ParserOption
    try:
        parser = Parser(load_grammar(args.file))
        if args.text is not None:
            text = args.text
        else:
            with open(args.input, "r", encoding="utf-8") as f:
                text = f.read()
    except SyntaxError as e:
        _eprint("[SYNTAX ERROR]")
        _eprint(str(e))
        return 2
    except Exception as e:
        _eprint("[ERROR]", type(e).__name__, str(e))
        return 2

    out = parser.parse(text, ParserOption(verbose=args.verbose, log_func=_eprint))
    if not out.ok:
        _eprint("[NO MATCH]")
        return 1
    if args.full and not out.complete:
        _eprint(f"[NO MATCH] unconsumed input at {out.end}: {out.rest[:40]!r}")
        return 1
    print(repr(out.value))
    return 0

# ------------------------------
# 엔트리포인트
# ------------------------------

def main(argv: Optional[list[str]] = None) -> int:
    ap = argparse.ArgumentParser(prog="gelc", description="gel grammar matcher CLI")
    sub = ap.add_subparsers(dest="cmd", required=True)

    p_check = sub.add_parser("check", help="문법 파일을 읽어 규칙을 검사합니다")
    p_check.add_argument("file", help=".gel 문법 파일")
    p_check.add_argument("-D", "--debug", action="store_true", help="규칙 목록을 상세 출력")
    p_check.set_defaults(func=cmd_check)

    p_run = sub.add_parser("run", help="문법으로 입력 텍스트를 매칭합니다")
    p_run.add_argument("file", help=".gel 문법 파일")
    src_group = p_run.add_mutually_exclusive_group(required=True)
    src_group.add_argument("--text", help="직접 입력 텍스트")
    src_group.add_argument("--input", help="입력 텍스트 파일 경로")
    p_run.add_argument("--full", action="store_true", help="입력 전체를 소비해야 성공으로 간주")
    p_run.add_argument("-v", "--verbose", action="store_true", help="매칭 로그를 stderr로 출력")
    p_run.set_defaults(func=cmd_run)

    args = ap.parse_args(argv)
    return int(args.func(args))

if __name__ == "__main__":
    sys.exit(main())

r"""Textual grammar front end for gel.

    expr <- left:int /\+/ right:expr | atom:int
    int  <- /[0-9]+/
"""

from .loader import load_grammar_text, load_grammar
from .parser import parse_grammar

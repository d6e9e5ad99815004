"""
Condition Parser
================
Compiles condition strings such as ``temperature > 30 AND city == "Oslo"``
into expression trees. Parsing only validates syntax: field names are
resolved against rows at evaluation time.

Grammar (AND binds tighter than OR, both left-associative):

    condition  := or_expr EOF
    or_expr    := and_expr (("OR" | "||") and_expr)*
    and_expr   := not_expr (("AND" | "&&") not_expr)*
    not_expr   := ("NOT" | "!") not_expr | primary
    primary    := "(" or_expr ")" | operand (COMPARE operand)?
    operand    := IDENT | NUMBER | STRING | "true" | "false"
"""
import re
from dataclasses import dataclass
from typing import List, Optional

from notifier_core.errors import ParseError
from notifier_core.expression.nodes import (
    And,
    Comparison,
    Expression,
    FieldRef,
    Literal,
    Not,
    Operand,
    Or,
)
from notifier_core.values import COMPARISON_OPERATORS, Number, String

# Order matters: two-character operators before their one-character prefixes
_TOKEN_PATTERN = re.compile(r"""
    (?P<ws>\s+)
  | (?P<number>-?(?:\d+\.\d*|\.\d+|\d+)(?:[eE][+-]?\d+)?)
  | (?P<string>"(?:[^"\\]|\\.)*"|'(?:[^'\\]|\\.)*')
  | (?P<op><=|>=|==|!=|&&|\|\||<|>|!|\(|\))
  | (?P<ident>[A-Za-z_][A-Za-z0-9_.]*)
""", re.VERBOSE)

_KEYWORDS = {
    'and': 'AND',
    'or': 'OR',
    'not': 'NOT',
}
_SYMBOL_KEYWORDS = {
    '&&': 'AND',
    '||': 'OR',
    '!': 'NOT',
}
_BOOLEAN_LITERALS = {'true', 'false'}


@dataclass(frozen=True)
class Token:
    kind: str  # number, string, op, ident, keyword, end
    text: str
    position: int


def _unescape(body: str) -> str:
    return re.sub(r'\\(.)', r'\1', body)


def tokenize(text: str) -> List[Token]:
    """Split condition text into tokens; raises ParseError on stray input."""
    tokens: List[Token] = []
    position = 0
    length = len(text)

    while position < length:
        m = _TOKEN_PATTERN.match(text, position)
        if m is None:
            char = text[position]
            if char in '"\'':
                raise ParseError("Unterminated string literal", text, position)
            if char in '=&|':
                raise ParseError(f"Unknown operator '{char}'", text, position)
            raise ParseError(f"Unexpected character '{char}'", text, position)

        kind = m.lastgroup
        value = m.group()
        if kind == 'ws':
            pass
        elif kind == 'string':
            tokens.append(Token('string', _unescape(value[1:-1]), position))
        elif kind == 'op' and value in _SYMBOL_KEYWORDS:
            tokens.append(Token('keyword', _SYMBOL_KEYWORDS[value], position))
        elif kind == 'ident' and value.lower() in _KEYWORDS:
            tokens.append(Token('keyword', _KEYWORDS[value.lower()], position))
        else:
            tokens.append(Token(kind, value, position))
        position = m.end()

    tokens.append(Token('end', '', length))
    return tokens


class _Parser:
    """Recursive descent parser over a token list."""

    def __init__(self, text: str):
        self.text = text
        self.tokens = tokenize(text)
        self.index = 0

    @property
    def current(self) -> Token:
        return self.tokens[self.index]

    def _advance(self) -> Token:
        token = self.tokens[self.index]
        self.index += 1
        return token

    def _accept_keyword(self, keyword: str) -> bool:
        if self.current.kind == 'keyword' and self.current.text == keyword:
            self.index += 1
            return True
        return False

    def _error(self, message: str, token: Optional[Token] = None) -> ParseError:
        token = token or self.current
        return ParseError(message, self.text, token.position)

    def parse(self) -> Expression:
        if self.current.kind == 'end':
            raise ParseError("Empty condition", self.text)

        expr = self._or_expr()

        if self.current.kind != 'end':
            if self.current.text == ')':
                raise self._error("Unbalanced parenthesis ')'")
            raise self._error(f"Unexpected token '{self.current.text}'")
        return expr

    def _or_expr(self) -> Expression:
        expr = self._and_expr()
        while self._accept_keyword('OR'):
            expr = Or(expr, self._and_expr())
        return expr

    def _and_expr(self) -> Expression:
        expr = self._not_expr()
        while self._accept_keyword('AND'):
            expr = And(expr, self._not_expr())
        return expr

    def _not_expr(self) -> Expression:
        if self._accept_keyword('NOT'):
            return Not(self._not_expr())
        return self._primary()

    def _primary(self) -> Expression:
        token = self.current

        if token.kind == 'op' and token.text == '(':
            self._advance()
            if self.current.kind == 'op' and self.current.text == ')':
                raise self._error("Empty parentheses")
            expr = self._or_expr()
            if not (self.current.kind == 'op' and self.current.text == ')'):
                raise self._error("Unbalanced parenthesis: expected ')'", token)
            self._advance()
            return expr

        left = self._operand()

        if self.current.kind == 'op' and self.current.text in COMPARISON_OPERATORS:
            op = self._advance().text
            right = self._operand()
            return Comparison(op, left, right)

        return left

    def _operand(self) -> Operand:
        token = self.current

        if token.kind == 'number':
            self._advance()
            return Literal(Number(float(token.text)))
        if token.kind == 'string':
            self._advance()
            return Literal(String(token.text))
        if token.kind == 'ident':
            self._advance()
            if token.text.lower() in _BOOLEAN_LITERALS:
                return Literal(String(token.text.lower()))
            return FieldRef(token.text)

        if token.kind == 'end':
            raise self._error("Unexpected end of condition")
        if token.kind == 'op' and token.text == ')':
            raise self._error("Unbalanced parenthesis ')'")
        if token.kind == 'op' and token.text in COMPARISON_OPERATORS:
            raise self._error(f"Missing operand before '{token.text}'")
        raise self._error(f"Unexpected token '{token.text}'")


def compile_condition(text: str) -> Expression:
    """
    Compile a condition string into an expression tree.

    Args:
        text: Condition text, e.g. ``"humidity < 60 OR status == 'alarm'"``

    Returns:
        Root node of the compiled expression

    Raises:
        ParseError: on empty input, unbalanced parentheses, unknown
            operators or any other malformed syntax
    """
    if text is None or not str(text).strip():
        raise ParseError("Empty condition", text or '')
    return _Parser(str(text)).parse()

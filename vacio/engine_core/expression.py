"""
Formula Evaluator for rule values.

Rule effects may carry a formula instead of a number, e.g.
"floor(CARD_VALUE / 5)" or "CARD_VALUE * 2".

Supports:
- Number literals (integers and decimals)
- The CARD_VALUE token (the acting card's value)
- floor(...)
- + - * / and parentheses, unary minus

Anything else is rejected before evaluation. The evaluator never
executes code: it is a small recursive-descent parser over a
whitelisted token stream.

Grammar:
    expr    := term (("+" | "-") term)*
    term    := unary (("*" | "/") unary)*
    unary   := "-" unary | primary
    primary := NUMBER | CARD_VALUE | "floor" "(" expr ")" | "(" expr ")"
"""

from __future__ import annotations
import logging
import math
import re

logger = logging.getLogger(__name__)

_ALLOWED = re.compile(r"^[0-9+\-*/().\s]*$")
_IDENTIFIERS = re.compile(r"CARD_VALUE|floor")
_TOKEN = re.compile(r"\s*(?:(\d+(?:\.\d+)?)|(CARD_VALUE|floor)|([+\-*/()]))")

# Deepest allowed nesting of parentheses, floor() and unary minus.
MAX_DEPTH = 32


class FormulaError(ValueError):
    """Raised internally when a formula cannot be parsed or evaluated."""


class FormulaEvaluator:
    """
    Evaluates one formula against a card value.

    Usage:
        FormulaEvaluator().evaluate("floor(CARD_VALUE / 5)", 7)  # -> 1

    Any failure is logged and evaluates to 0.
    """

    def evaluate(self, formula: str, card_value: int = 0) -> float:
        try:
            self._tokens = self._tokenize(formula)
            self._pos = 0
            self._depth = 0
            self._card_value = card_value
            result = self._expr()
            if self._pos != len(self._tokens):
                raise FormulaError(f"unexpected token {self._tokens[self._pos]!r}")
            if not math.isfinite(result):
                raise FormulaError("result is not finite")
            return result
        except (ValueError, ZeroDivisionError, OverflowError) as e:
            logger.warning("Could not evaluate formula %r: %s", formula, e)
            return 0

    def check(self, formula: str) -> str | None:
        """Parse without evaluating. Returns an error message, or None if valid."""
        try:
            self._tokens = self._tokenize(formula)
            self._pos = 0
            self._depth = 0
            self._card_value = 1
            self._expr()
            if self._pos != len(self._tokens):
                raise FormulaError(f"unexpected token {self._tokens[self._pos]!r}")
        except FormulaError as e:
            return str(e)
        except (ZeroDivisionError, OverflowError):
            return None
        return None

    def _tokenize(self, formula: str) -> list[str]:
        if not isinstance(formula, str):
            raise FormulaError("formula must be a string")
        if not _ALLOWED.match(_IDENTIFIERS.sub(" ", formula)):
            raise FormulaError("formula contains characters outside the whitelist")

        tokens = []
        pos = 0
        text = formula.rstrip()
        while pos < len(text):
            match = _TOKEN.match(text, pos)
            if not match:
                raise FormulaError(f"cannot read formula at position {pos}")
            tokens.append(match.group(match.lastindex))
            pos = match.end()
        if not tokens:
            raise FormulaError("empty formula")
        return tokens

    def _peek(self) -> str | None:
        if self._pos < len(self._tokens):
            return self._tokens[self._pos]
        return None

    def _take(self, expected: str | None = None) -> str:
        token = self._peek()
        if token is None:
            raise FormulaError("unexpected end of formula")
        if expected is not None and token != expected:
            raise FormulaError(f"expected {expected!r}, got {token!r}")
        self._pos += 1
        return token

    def _expr(self) -> float:
        value = self._term()
        while self._peek() in ("+", "-"):
            if self._take() == "+":
                value += self._term()
            else:
                value -= self._term()
        return value

    def _term(self) -> float:
        value = self._unary()
        while self._peek() in ("*", "/"):
            if self._take() == "*":
                value *= self._unary()
            else:
                value /= self._unary()
        return value

    def _unary(self) -> float:
        self._depth += 1
        if self._depth > MAX_DEPTH:
            raise FormulaError(f"formula nested deeper than {MAX_DEPTH} levels")
        try:
            if self._peek() == "-":
                self._take()
                return -self._unary()
            return self._primary()
        finally:
            self._depth -= 1

    def _primary(self) -> float:
        token = self._take()
        if token == "CARD_VALUE":
            return self._card_value
        if token == "floor":
            self._take("(")
            value = self._expr()
            self._take(")")
            return math.floor(value)
        if token == "(":
            value = self._expr()
            self._take(")")
            return value
        if token[0].isdigit():
            return float(token) if "." in token else int(token)
        raise FormulaError(f"unexpected token {token!r}")


def evaluate_formula(formula: str, card_value: int = 0) -> int:
    """Evaluate a formula and floor the result to a non-negative int."""
    result = FormulaEvaluator().evaluate(formula, card_value)
    return max(0, math.floor(result))

"""Expression trees for FFmpeg's per-frame expression language.

Overlay motion is built as a small typed tree (constants, variables, binary
operations, function calls) and serialized once with ``render()``. The same
tree can be evaluated numerically with ``evaluate()``, which mirrors the
semantics FFmpeg applies when it evaluates ``x``/``y``/``alpha``/``enable``
options once per output frame.

Example:
    >>> p = clamp((T - 1) / 2, 0, 1)
    >>> render(p)
    'min(max((t-1)/2,0),1)'
    >>> evaluate(p, {"t": 2})
    0.5
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Callable, Mapping, Optional, Union

from ..exceptions import ExpressionError


class Expr:
    """Base class for expression nodes.

    Arithmetic operators build new nodes (with constant folding), so motion
    formulas can be written naturally: ``offset + eased * (rest - offset)``.
    """

    def __add__(self, other: ExprLike) -> Expr:
        return add(self, other)

    def __radd__(self, other: ExprLike) -> Expr:
        return add(other, self)

    def __sub__(self, other: ExprLike) -> Expr:
        return sub(self, other)

    def __rsub__(self, other: ExprLike) -> Expr:
        return sub(other, self)

    def __mul__(self, other: ExprLike) -> Expr:
        return mul(self, other)

    def __rmul__(self, other: ExprLike) -> Expr:
        return mul(other, self)

    def __truediv__(self, other: ExprLike) -> Expr:
        return div(self, other)

    def __rtruediv__(self, other: ExprLike) -> Expr:
        return div(other, self)

    def __neg__(self) -> Expr:
        return neg(self)

    def __str__(self) -> str:
        return render(self)


@dataclass(frozen=True, eq=True)
class Const(Expr):
    value: float


@dataclass(frozen=True, eq=True)
class Var(Expr):
    name: str


@dataclass(frozen=True, eq=True)
class Neg(Expr):
    operand: Expr


@dataclass(frozen=True, eq=True)
class BinOp(Expr):
    op: str  # one of + - * / ^
    left: Expr
    right: Expr


@dataclass(frozen=True, eq=True)
class Call(Expr):
    func: str
    args: tuple[Expr, ...]


ExprLike = Union[Expr, float, int, str]

# Frame timestamp in seconds, as seen by overlay/drawtext/scale filters
T = Var("t")
ZERO = Const(0)
ONE = Const(1)


def as_expr(value: ExprLike) -> Expr:
    """Coerce a number, expression string or node into an ``Expr``."""
    if isinstance(value, Expr):
        return value
    if isinstance(value, bool):
        return Const(int(value))
    if isinstance(value, (int, float)):
        return Const(value)
    if isinstance(value, str):
        return parse(value)
    raise ExpressionError(f"Cannot build an expression from {value!r}")


def _const(expr: Expr) -> Optional[float]:
    return expr.value if isinstance(expr, Const) else None


# =============================================================================
# Builders (with constant folding)
# =============================================================================


def add(left: ExprLike, right: ExprLike) -> Expr:
    a, b = as_expr(left), as_expr(right)
    ca, cb = _const(a), _const(b)
    if ca is not None and cb is not None:
        return Const(ca + cb)
    if ca == 0:
        return b
    if cb == 0:
        return a
    return BinOp("+", a, b)


def sub(left: ExprLike, right: ExprLike) -> Expr:
    a, b = as_expr(left), as_expr(right)
    ca, cb = _const(a), _const(b)
    if ca is not None and cb is not None:
        return Const(ca - cb)
    if cb == 0:
        return a
    if ca == 0:
        return neg(b)
    return BinOp("-", a, b)


def mul(left: ExprLike, right: ExprLike) -> Expr:
    a, b = as_expr(left), as_expr(right)
    ca, cb = _const(a), _const(b)
    if ca is not None and cb is not None:
        return Const(ca * cb)
    if ca == 0 or cb == 0:
        return ZERO
    if ca == 1:
        return b
    if cb == 1:
        return a
    return BinOp("*", a, b)


def div(left: ExprLike, right: ExprLike) -> Expr:
    a, b = as_expr(left), as_expr(right)
    ca, cb = _const(a), _const(b)
    if ca is not None and cb:
        return Const(ca / cb)
    if cb == 1:
        return a
    return BinOp("/", a, b)


def neg(operand: ExprLike) -> Expr:
    a = as_expr(operand)
    if isinstance(a, Const):
        return Const(-a.value)
    if isinstance(a, Neg):
        return a.operand
    return Neg(a)


def call(func: str, *args: ExprLike) -> Expr:
    return Call(func, tuple(as_expr(arg) for arg in args))


def if_(cond: ExprLike, then: ExprLike, otherwise: ExprLike) -> Expr:
    """``if(cond, then, otherwise)``; folds when the condition is constant."""
    c, a, b = as_expr(cond), as_expr(then), as_expr(otherwise)
    cc = _const(c)
    if cc is not None:
        return a if cc != 0 else b
    if a == b:
        return a
    return Call("if", (c, a, b))


def lt(left: ExprLike, right: ExprLike) -> Expr:
    return call("lt", left, right)


def between(value: ExprLike, low: ExprLike, high: ExprLike) -> Expr:
    """Inclusive range test, true when ``low <= value <= high``."""
    return call("between", value, low, high)


def min_(left: ExprLike, right: ExprLike) -> Expr:
    a, b = as_expr(left), as_expr(right)
    if isinstance(a, Const) and isinstance(b, Const):
        return Const(min(a.value, b.value))
    return Call("min", (a, b))


def max_(left: ExprLike, right: ExprLike) -> Expr:
    a, b = as_expr(left), as_expr(right)
    if isinstance(a, Const) and isinstance(b, Const):
        return Const(max(a.value, b.value))
    return Call("max", (a, b))


def clamp(value: ExprLike, low: ExprLike = 0, high: ExprLike = 1) -> Expr:
    """``min(max(value, low), high)``."""
    return min_(max_(value, low), high)


def pow_(base: ExprLike, exponent: ExprLike) -> Expr:
    a, b = as_expr(base), as_expr(exponent)
    if isinstance(a, Const) and isinstance(b, Const):
        return Const(_power(a.value, b.value))
    if _const(b) == 1:
        return a
    return Call("pow", (a, b))


def sin(value: ExprLike) -> Expr:
    a = as_expr(value)
    if isinstance(a, Const):
        return Const(math.sin(a.value))
    return Call("sin", (a,))


# =============================================================================
# Serialization
# =============================================================================

_PRECEDENCE = {"+": 1, "-": 1, "*": 2, "/": 2, "^": 3}


def format_number(value: float) -> str:
    """Format a number compactly (9 decimals max, no trailing zeros).

    Magnitudes below 5e-10 are written as ``0``, far below one frame
    interval or one pixel.
    """
    if not math.isfinite(value):
        raise ExpressionError(f"Cannot serialize non-finite number: {value}")
    if value == int(value) and abs(value) < 1e15:
        return str(int(value))
    text = f"{value:.9f}".rstrip("0").rstrip(".")
    return "0" if text in ("", "-0") else text


def render(expr: ExprLike, names: Optional[Mapping[str, str]] = None) -> str:
    """Serialize an expression to FFmpeg's expression syntax.

    Args:
        expr: Expression to serialize
        names: Optional variable renames (e.g. ``{"t": "T"}`` for geq)

    Returns:
        Expression string suitable for a (quoted) filter option.
    """
    return _render(as_expr(expr), names or {}, top=True)


def _render(expr: Expr, names: Mapping[str, str], top: bool = False) -> str:
    if isinstance(expr, Const):
        text = format_number(expr.value)
        return text if top or expr.value >= 0 else f"({text})"
    if isinstance(expr, Var):
        return names.get(expr.name, expr.name)
    if isinstance(expr, Neg):
        inner = _render_operand(expr.operand, names, 4, right=False)
        text = f"-{inner}"
        return text if top else f"({text})"
    if isinstance(expr, BinOp):
        prec = _PRECEDENCE[expr.op]
        left = _render_operand(expr.left, names, prec, right=False)
        right = _render_operand(expr.right, names, prec, right=True)
        return f"{left}{expr.op}{right}"
    if isinstance(expr, Call):
        args = ",".join(_render(arg, names, top=True) for arg in expr.args)
        return f"{expr.func}({args})"
    raise ExpressionError(f"Unknown expression node: {expr!r}")


def _render_operand(expr: Expr, names: Mapping[str, str], parent: int, right: bool) -> str:
    if isinstance(expr, BinOp):
        prec = _PRECEDENCE[expr.op]
        text = _render(expr, names)
        # a-(b-c), a/(b*c) and a^(b^c) need explicit grouping
        if prec < parent or (right and prec == parent):
            return f"({text})"
        return text
    return _render(expr, names)


# =============================================================================
# Parsing
# =============================================================================

_TOKEN_RE = re.compile(
    r"\s*(?:(?P<number>(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)"
    r"|(?P<name>[A-Za-z_][A-Za-z0-9_]*)"
    r"|(?P<op>[-+*/^(),]))"
)


def parse(text: str) -> Expr:
    """Parse an FFmpeg expression string into a tree.

    Supports numbers, variables, function calls, unary minus, parentheses
    and the ``+ - * / ^`` operators. Used for caller-supplied positions
    such as ``"(w-text_w)/2"`` or ``"h*0.8"``.

    Raises:
        ExpressionError: If the text is not a valid expression
    """
    tokens = _tokenize(text)
    parser = _Parser(tokens, text)
    expr = parser.expression()
    if parser.peek() is not None:
        raise ExpressionError(f"Unexpected {parser.peek()[1]!r} in expression: {text}")
    return expr


def _tokenize(text: str) -> list[tuple[str, str]]:
    tokens = []
    pos = 0
    stripped = text.rstrip()
    while pos < len(stripped):
        match = _TOKEN_RE.match(stripped, pos)
        if not match:
            raise ExpressionError(f"Invalid character at {pos} in expression: {text}")
        kind = match.lastgroup
        tokens.append((kind, match.group(kind)))
        pos = match.end()
    if not tokens:
        raise ExpressionError("Empty expression")
    return tokens


class _Parser:
    def __init__(self, tokens: list[tuple[str, str]], source: str):
        self.tokens = tokens
        self.pos = 0
        self.source = source

    def peek(self) -> Optional[tuple[str, str]]:
        return self.tokens[self.pos] if self.pos < len(self.tokens) else None

    def take(self, value: Optional[str] = None) -> tuple[str, str]:
        token = self.peek()
        if token is None or (value is not None and token[1] != value):
            expected = f"{value!r}" if value else "a token"
            raise ExpressionError(f"Expected {expected} in expression: {self.source}")
        self.pos += 1
        return token

    def _accept(self, *values: str) -> Optional[str]:
        token = self.peek()
        if token is not None and token[0] == "op" and token[1] in values:
            self.pos += 1
            return token[1]
        return None

    def expression(self) -> Expr:
        node = self.term()
        while (op := self._accept("+", "-")) is not None:
            node = BinOp(op, node, self.term())
        return node

    def term(self) -> Expr:
        node = self.unary()
        while (op := self._accept("*", "/")) is not None:
            node = BinOp(op, node, self.unary())
        return node

    def unary(self) -> Expr:
        if self._accept("-"):
            return neg(self.unary())
        if self._accept("+"):
            return self.unary()
        return self.power()

    def power(self) -> Expr:
        node = self.primary()
        if self._accept("^"):
            return BinOp("^", node, self.unary())
        return node

    def primary(self) -> Expr:
        kind, value = self.take()
        if kind == "number":
            return Const(float(value))
        if kind == "name":
            if self._accept("("):
                args = [self.expression()]
                while self._accept(","):
                    args.append(self.expression())
                self.take(")")
                return Call(value, tuple(args))
            return Var(value)
        if value == "(":
            node = self.expression()
            self.take(")")
            return node
        raise ExpressionError(f"Unexpected {value!r} in expression: {self.source}")


# =============================================================================
# Evaluation
# =============================================================================

DEFAULT_CONSTANTS: dict[str, float] = {"PI": math.pi, "E": math.e, "PHI": (1 + math.sqrt(5)) / 2}


def _power(base: float, exponent: float) -> float:
    # Python returns a complex number for a negative base and fractional exponent
    result = base ** exponent
    if isinstance(result, complex):
        raise ExpressionError(f"Power has no real value: ({base:g})^{exponent:g}")
    return result


_FUNCTIONS: dict[str, Callable[..., float]] = {
    "lt": lambda a, b: float(a < b),
    "lte": lambda a, b: float(a <= b),
    "gt": lambda a, b: float(a > b),
    "gte": lambda a, b: float(a >= b),
    "eq": lambda a, b: float(a == b),
    "between": lambda x, lo, hi: float(lo <= x <= hi),
    "min": min,
    "max": max,
    "abs": abs,
    "sin": math.sin,
    "cos": math.cos,
    "sqrt": math.sqrt,
    "pow": _power,
    "clip": lambda x, lo, hi: min(max(x, lo), hi),
    "floor": math.floor,
    "ceil": math.ceil,
    "trunc": math.trunc,
}


def evaluate(expr: ExprLike, env: Optional[Mapping[str, float]] = None) -> float:
    """Evaluate an expression numerically.

    ``if()`` is lazy, as in FFmpeg, so guarded branches are never computed.

    Args:
        expr: Expression (node or string)
        env: Variable values, e.g. ``{"t": 1.5, "w": 1080, "text_w": 300}``

    Returns:
        The value as a float.

    Raises:
        ExpressionError: On unknown variables or functions, division by
            zero, or a result that is not a real number
    """
    node = as_expr(expr)
    scope = dict(DEFAULT_CONSTANTS)
    if env:
        scope.update(env)
    try:
        return float(_eval(node, scope))
    except ZeroDivisionError as e:
        raise ExpressionError(f"Division by zero in expression: {render(node)}") from e
    except (ValueError, OverflowError) as e:
        raise ExpressionError(f"Cannot evaluate {render(node)}: {e}") from e


def _eval(expr: Expr, scope: Mapping[str, float]) -> float:
    if isinstance(expr, Const):
        return expr.value
    if isinstance(expr, Var):
        if expr.name not in scope:
            raise ExpressionError(f"Unbound variable: {expr.name}")
        return scope[expr.name]
    if isinstance(expr, Neg):
        return -_eval(expr.operand, scope)
    if isinstance(expr, BinOp):
        a = _eval(expr.left, scope)
        b = _eval(expr.right, scope)
        if expr.op == "+":
            return a + b
        if expr.op == "-":
            return a - b
        if expr.op == "*":
            return a * b
        if expr.op == "/":
            return a / b
        return _power(a, b)
    if isinstance(expr, Call):
        if expr.func == "if":
            cond, then, otherwise = expr.args
            return _eval(then, scope) if _eval(cond, scope) != 0 else _eval(otherwise, scope)
        func = _FUNCTIONS.get(expr.func)
        if func is None:
            raise ExpressionError(f"Unknown function: {expr.func}")
        return func(*(_eval(arg, scope) for arg in expr.args))
    raise ExpressionError(f"Unknown expression node: {expr!r}")

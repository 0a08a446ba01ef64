"""
Sandboxed arithmetic for the calculate tool.

An expression has to clear three textual gates (length, dunder/denylist,
identifier allow-list) before it is parsed with ``ast`` and walked by an
evaluator that only understands numbers, arithmetic operators and the
allow-listed math names. Nothing is ever passed to ``eval``.
"""

import ast
import math
import operator
import re
from typing import Optional, Union

MAX_EXPRESSION_LENGTH = 200
MAX_EXPONENT = 10000
MAX_FACTORIAL = 1000
MAX_RESULT_BITS = 10000

DENYLIST = (
    "import", "exec", "eval", "open", "system", "compile",
    "getattr", "setattr", "delattr", "globals", "locals", "vars", "dir",
    "breakpoint", "input", "print", "lambda",
    "__import__", "__class__", "__mro__", "__subclasses__", "__builtins__",
    "__globals__", "__getattribute__", "__dict__",
)
_DENYLIST_PATTERN = re.compile(r"\b(?:" + "|".join(re.escape(w) for w in DENYLIST) + r")\b", re.IGNORECASE)
# Letters glued to a digit (1e5, 0x1F) belong to a numeric literal
_IDENTIFIER = re.compile(r"(?<!\w)[A-Za-z_][A-Za-z0-9_]*")

Number = Union[int, float]


def _factorial(n):
    if isinstance(n, float):
        if not n.is_integer():
            raise ExpressionError("factorial() only accepts integral values")
        n = int(n)
    if n > MAX_FACTORIAL:
        raise ExpressionError(f"factorial() argument larger than {MAX_FACTORIAL}")
    return math.factorial(n)


FUNCTIONS = {
    "sqrt": math.sqrt, "sin": math.sin, "cos": math.cos, "tan": math.tan,
    "asin": math.asin, "acos": math.acos, "atan": math.atan, "atan2": math.atan2,
    "sinh": math.sinh, "cosh": math.cosh, "tanh": math.tanh,
    "log": math.log, "log2": math.log2, "log10": math.log10, "exp": math.exp,
    "ceil": math.ceil, "floor": math.floor, "factorial": _factorial, "gcd": math.gcd,
    "degrees": math.degrees, "radians": math.radians,
    "abs": abs, "round": round, "min": min, "max": max, "int": int, "float": float,
}

CONSTANTS = {"pi": math.pi, "e": math.e, "tau": math.tau, "inf": math.inf}

# "math" only ever appears as the qualifier in math.sqrt(...) and friends;
# pow and sum are implemented directly by the evaluator
ALLOWED_IDENTIFIERS = frozenset(FUNCTIONS) | frozenset(CONSTANTS) | {"math", "pow", "sum"}

_BINARY_OPS = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: operator.truediv,
    ast.FloorDiv: operator.floordiv,
    ast.Mod: operator.mod,
}
_UNARY_OPS = {ast.UAdd: operator.pos, ast.USub: operator.neg}


class ExpressionError(ValueError):
    """The expression is well-formed but cannot be evaluated to a finite number."""


class UnsafeExpressionError(ValueError):
    """The expression was rejected before evaluation."""


def check_expression(expression: str) -> Optional[str]:
    """Return the reason an expression is refused, or None if it may be evaluated."""
    stripped = expression.strip() if isinstance(expression, str) else ""
    if not stripped:
        return "Expression is empty"
    if len(expression) > MAX_EXPRESSION_LENGTH:
        return f"Expression longer than {MAX_EXPRESSION_LENGTH} characters"
    if "__" in stripped:
        return "Double underscores are not allowed"
    denied = _DENYLIST_PATTERN.search(stripped)
    if denied:
        return f"Forbidden identifier: {denied.group(0)}"
    for identifier in _IDENTIFIER.findall(stripped):
        if identifier not in ALLOWED_IDENTIFIERS:
            return f"Unknown identifier: {identifier}"
    return None


def _power(base, exponent):
    if isinstance(exponent, (int, float)) and abs(exponent) > MAX_EXPONENT:
        raise ExpressionError(f"Exponent larger than {MAX_EXPONENT}")
    if isinstance(base, int) and isinstance(exponent, int) and base.bit_length() * exponent > MAX_RESULT_BITS:
        raise ExpressionError("Result too large")
    return operator.pow(base, exponent)


class _Evaluator(ast.NodeVisitor):
    def generic_visit(self, node):
        raise UnsafeExpressionError(f"Unsupported syntax: {type(node).__name__}")

    def visit_Expression(self, node):
        return self.visit(node.body)

    def visit_Constant(self, node):
        if isinstance(node.value, bool) or not isinstance(node.value, (int, float)):
            raise UnsafeExpressionError(f"Unsupported literal: {node.value!r}")
        return node.value

    def visit_Name(self, node):
        if node.id in CONSTANTS:
            return CONSTANTS[node.id]
        raise UnsafeExpressionError(f"Unknown name: {node.id}")

    def visit_BinOp(self, node):
        left = self.visit(node.left)
        right = self.visit(node.right)
        if isinstance(node.op, ast.Pow):
            return _power(left, right)
        op = _BINARY_OPS.get(type(node.op))
        if op is None:
            raise UnsafeExpressionError(f"Unsupported operator: {type(node.op).__name__}")
        return op(left, right)

    def visit_UnaryOp(self, node):
        op = _UNARY_OPS.get(type(node.op))
        if op is None:
            raise UnsafeExpressionError(f"Unsupported operator: {type(node.op).__name__}")
        return op(self.visit(node.operand))

    def visit_Tuple(self, node):
        # Only reachable as an argument list, e.g. sum((1, 2, 3))
        return tuple(self.visit(elt) for elt in node.elts)

    visit_List = visit_Tuple

    def _function_name(self, func) -> str:
        if isinstance(func, ast.Name):
            return func.id
        if isinstance(func, ast.Attribute) and isinstance(func.value, ast.Name) and func.value.id == "math":
            return func.attr
        raise UnsafeExpressionError("Only math functions may be called")

    def visit_Call(self, node):
        if node.keywords:
            raise UnsafeExpressionError("Keyword arguments are not allowed")
        name = self._function_name(node.func)
        args = [self.visit(arg) for arg in node.args]
        if name == "pow":
            if len(args) != 2:
                raise ExpressionError("pow() takes exactly 2 arguments")
            return _power(*args)
        if name == "sum":
            if len(args) != 1 or not isinstance(args[0], tuple):
                raise ExpressionError("sum() takes one sequence")
            return sum(args[0])
        func = FUNCTIONS.get(name)
        if func is None:
            raise UnsafeExpressionError(f"Unknown function: {name}")
        return func(*args)

    def visit_Attribute(self, node):
        if isinstance(node.value, ast.Name) and node.value.id == "math" and node.attr in CONSTANTS:
            return CONSTANTS[node.attr]
        raise UnsafeExpressionError("Attribute access is not allowed")


def evaluate_expression(expression: str) -> Number:
    """
    Evaluate an arithmetic expression and return a finite int or float.

    ``^`` is treated as exponentiation. Raises UnsafeExpressionError when a
    gate refuses the input and ExpressionError when evaluation fails.
    """
    reason = check_expression(expression)
    if reason:
        raise UnsafeExpressionError(reason)

    source = expression.strip().replace("^", "**")
    try:
        tree = ast.parse(source, mode="eval")
    except SyntaxError as e:
        raise ExpressionError(f"Invalid syntax: {e.msg}") from e

    try:
        result = _Evaluator().visit(tree)
    except (UnsafeExpressionError, ExpressionError):
        raise
    except (ArithmeticError, ValueError, TypeError) as e:
        raise ExpressionError(str(e)) from e

    if isinstance(result, bool) or not isinstance(result, (int, float)):
        raise ExpressionError(f"Result is not a number: {result!r}")
    if isinstance(result, float) and not math.isfinite(result):
        raise ExpressionError(f"Result is not finite: {result}")
    if isinstance(result, int) and result.bit_length() > MAX_RESULT_BITS:
        raise ExpressionError("Result too large")
    return result

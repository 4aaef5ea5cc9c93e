"""
Sandboxed interpreter for user-supplied scalar equations.

Equations are written as Python expressions and evaluated by walking the
AST directly, never through eval(). Only a small, numeric subset of the
language is accepted:

- int/float literals and the constants ``pi``, ``e``, ``tau``
- names declared by the caller (e.g. ``x``, ``d``, ``O``, ``N``, ``L``)
- unary ``+ - not`` and binary ``+ - * / // % **`` (``^`` is rejected with
  a hint, since it would parse with xor precedence)
- comparisons, ``and``/``or`` and ``a if cond else b``
- integer subscripts of tuple arguments (``N[d]``, ``O[0]``)
- calls to whitelisted functions: math functions, aggregates over tuples
  and the registered preset gap laws

Everything else (attributes, lambdas, comprehensions, keyword arguments,
unknown names) is rejected when the expression is compiled, so a bad
equation fails once up front rather than once per grid cell.

Example:
    ```python
    expr = Expression("L * sin((pi / 2) * (x + sum(O)) / sum(N))",
                      names=("x", "d", "O", "N", "L"))
    expr.evaluate({"x": 0.0, "d": 0, "O": (0.0,), "N": (64.0,), "L": 1.5})
    ```
"""

import ast
import math
import operator
from typing import Any, Callable, Dict, Iterable, Mapping, Optional

from ..errors import EquationCompileError
from ..grid.index import round_half_away
from .presets import preset_functions


_BINOPS: Dict[type, Callable[[Any, Any], Any]] = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: operator.truediv,
    ast.FloorDiv: operator.floordiv,
    ast.Mod: operator.mod,
    ast.Pow: operator.pow,
}

_UNARYOPS: Dict[type, Callable[[Any], Any]] = {
    ast.UAdd: operator.pos,
    ast.USub: operator.neg,
    ast.Not: operator.not_,
}

_CMPOPS: Dict[type, Callable[[Any, Any], bool]] = {
    ast.Eq: operator.eq,
    ast.NotEq: operator.ne,
    ast.Lt: operator.lt,
    ast.LtE: operator.le,
    ast.Gt: operator.gt,
    ast.GtE: operator.ge,
}

CONSTANTS: Dict[str, float] = {
    "pi": math.pi,
    "e": math.e,
    "tau": math.tau,
}

FUNCTIONS: Dict[str, Callable[..., Any]] = {
    # elementary
    "abs": abs,
    "sqrt": math.sqrt,
    "exp": math.exp,
    "log": math.log,
    "log2": math.log2,
    "log10": math.log10,
    "pow": math.pow,
    "hypot": math.hypot,
    "floor": math.floor,
    "ceil": math.ceil,
    "round": round_half_away,
    # trigonometric
    "sin": math.sin,
    "cos": math.cos,
    "tan": math.tan,
    "asin": math.asin,
    "acos": math.acos,
    "atan": math.atan,
    "atan2": math.atan2,
    "sinh": math.sinh,
    "cosh": math.cosh,
    "tanh": math.tanh,
    # aggregates over tuple arguments
    "sum": sum,
    "prod": math.prod,
    "min": min,
    "max": max,
    "len": len,
}


class Expression:
    """
    Compiled, validated scalar expression.

    Args:
        source: Expression text
        names: Variable names the expression may reference; their values
            are supplied on every ``evaluate`` call
        functions: Extra callables to expose (defaults to the math
            whitelist plus the preset gap laws)
    """

    def __init__(
        self,
        source: str,
        names: Iterable[str],
        functions: Optional[Mapping[str, Callable[..., Any]]] = None,
    ):
        self.source = source
        self.names = tuple(names)
        self.functions: Dict[str, Callable[..., Any]] = dict(FUNCTIONS)
        self.functions.update(preset_functions())
        if functions:
            self.functions.update(functions)

        text = source.strip()
        if not text:
            raise EquationCompileError(source, "empty expression")
        try:
            self._tree = ast.parse(text, mode="eval")
        except SyntaxError as e:
            raise EquationCompileError(source, f"syntax error: {e.msg}") from e

        self._validate(self._tree.body)

    def __repr__(self) -> str:
        return f"Expression({self.source!r})"

    # ------------------------------------------------------------------
    # compile-time validation
    # ------------------------------------------------------------------

    def _validate(self, node: ast.AST) -> None:
        if isinstance(node, ast.Constant):
            if isinstance(node.value, bool) or not isinstance(node.value, (int, float)):
                raise EquationCompileError(self.source, f"non-numeric constant {node.value!r}")
            return

        if isinstance(node, ast.Name):
            if node.id not in self.names and node.id not in CONSTANTS:
                if node.id in self.functions:
                    raise EquationCompileError(self.source, f"function '{node.id}' used as a value")
                raise EquationCompileError(self.source, f"unknown name '{node.id}'")
            return

        if isinstance(node, ast.BinOp):
            if isinstance(node.op, ast.BitXor):
                raise EquationCompileError(self.source, "use ** for powers, not ^")
            if type(node.op) not in _BINOPS:
                raise EquationCompileError(
                    self.source, f"unsupported operator {type(node.op).__name__}"
                )
            self._validate(node.left)
            self._validate(node.right)
            return

        if isinstance(node, ast.UnaryOp):
            if type(node.op) not in _UNARYOPS:
                raise EquationCompileError(
                    self.source, f"unsupported operator {type(node.op).__name__}"
                )
            self._validate(node.operand)
            return

        if isinstance(node, ast.BoolOp):
            for value in node.values:
                self._validate(value)
            return

        if isinstance(node, ast.Compare):
            for op in node.ops:
                if type(op) not in _CMPOPS:
                    raise EquationCompileError(
                        self.source, f"unsupported comparison {type(op).__name__}"
                    )
            self._validate(node.left)
            for comparator in node.comparators:
                self._validate(comparator)
            return

        if isinstance(node, ast.IfExp):
            self._validate(node.test)
            self._validate(node.body)
            self._validate(node.orelse)
            return

        if isinstance(node, ast.Call):
            if not isinstance(node.func, ast.Name) or node.func.id not in self.functions:
                name = node.func.id if isinstance(node.func, ast.Name) else ast.dump(node.func)
                raise EquationCompileError(self.source, f"unknown function '{name}'")
            if node.keywords:
                raise EquationCompileError(self.source, "keyword arguments are not allowed")
            for arg in node.args:
                if isinstance(arg, ast.Starred):
                    raise EquationCompileError(self.source, "starred arguments are not allowed")
                self._validate(arg)
            return

        if isinstance(node, ast.Subscript):
            if isinstance(node.slice, ast.Slice):
                raise EquationCompileError(self.source, "slices are not allowed")
            self._validate(node.value)
            self._validate(node.slice)
            return

        raise EquationCompileError(
            self.source, f"unsupported syntax node {type(node).__name__}"
        )

    # ------------------------------------------------------------------
    # evaluation
    # ------------------------------------------------------------------

    def evaluate(self, namespace: Mapping[str, Any]) -> Any:
        """
        Evaluate the expression.

        Raises:
            KeyError: If a declared name is missing from ``namespace``
            ArithmeticError, ValueError, TypeError, IndexError: Whatever the
                arithmetic raises; callers wrap these into equation errors
        """
        return self._eval(self._tree.body, namespace)

    def _eval(self, node: ast.AST, ns: Mapping[str, Any]) -> Any:
        if isinstance(node, ast.Constant):
            return node.value

        if isinstance(node, ast.Name):
            if node.id in ns:
                return ns[node.id]
            if node.id in CONSTANTS:
                return CONSTANTS[node.id]
            raise KeyError(node.id)

        if isinstance(node, ast.BinOp):
            return _BINOPS[type(node.op)](self._eval(node.left, ns), self._eval(node.right, ns))

        if isinstance(node, ast.UnaryOp):
            return _UNARYOPS[type(node.op)](self._eval(node.operand, ns))

        if isinstance(node, ast.BoolOp):
            if isinstance(node.op, ast.And):
                result: Any = True
                for value in node.values:
                    result = self._eval(value, ns)
                    if not result:
                        return result
                return result
            result = False
            for value in node.values:
                result = self._eval(value, ns)
                if result:
                    return result
            return result

        if isinstance(node, ast.Compare):
            left = self._eval(node.left, ns)
            for op, comparator in zip(node.ops, node.comparators):
                right = self._eval(comparator, ns)
                if not _CMPOPS[type(op)](left, right):
                    return False
                left = right
            return True

        if isinstance(node, ast.IfExp):
            if self._eval(node.test, ns):
                return self._eval(node.body, ns)
            return self._eval(node.orelse, ns)

        if isinstance(node, ast.Call):
            func = self.functions[node.func.id]  # type: ignore[attr-defined]
            return func(*(self._eval(arg, ns) for arg in node.args))

        if isinstance(node, ast.Subscript):
            container = self._eval(node.value, ns)
            if not isinstance(container, tuple):
                raise TypeError(f"cannot index {type(container).__name__}")
            index = self._eval(node.slice, ns)
            if isinstance(index, float):
                if not index.is_integer():
                    raise IndexError(f"non-integral index {index}")
                index = int(index)
            return container[index]

        # _validate has already rejected everything else
        raise TypeError(f"unsupported syntax node {type(node).__name__}")

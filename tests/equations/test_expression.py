"""Tests for the sandboxed expression interpreter.

Verifies that:
1. The numeric subset evaluates like Python
2. Disallowed constructs are rejected at compile time
3. Presets and the math whitelist are callable by name
"""

import math

import pytest

from nusgen.equations import Expression
from nusgen.equations.presets import sinegap
from nusgen.errors import EquationCompileError

GAP = ("x", "d", "O", "N", "L")


class TestEvaluation:
    """Test evaluation of accepted expressions."""

    def test_arithmetic(self):
        """Test operator precedence and power."""
        assert Expression("1 + 2 * 3", ()).evaluate({}) == 7
        assert Expression("2 ** 3 ** 2", ()).evaluate({}) == 512
        assert Expression("-7 // 2", ()).evaluate({}) == -4
        assert Expression("7 % 4", ()).evaluate({}) == 3

    def test_names_and_subscripts(self):
        """Test variables and tuple subscripts."""
        expr = Expression("N[d] + O[0]", GAP)
        assert expr.evaluate({"x": 0.0, "d": 1, "O": (2.0, 0.0), "N": (4.0, 8.0), "L": 1.0}) == 10.0

    def test_integral_float_index(self):
        """Test that integral floats may index tuples."""
        assert Expression("N[1.0]", ("N",)).evaluate({"N": (3.0, 5.0)}) == 5.0

    def test_constants(self):
        """Test the built-in constants."""
        assert Expression("pi", ()).evaluate({}) == math.pi
        assert Expression("tau / 2", ()).evaluate({}) == math.pi

    def test_functions(self):
        """Test whitelisted functions and aggregates."""
        ns = {"N": (4.0, 6.0)}
        assert Expression("sum(N)", ("N",)).evaluate(ns) == 10.0
        assert Expression("prod(N)", ("N",)).evaluate(ns) == 24.0
        assert Expression("max(N) - min(N)", ("N",)).evaluate(ns) == 2.0
        assert Expression("sqrt(16)", ()).evaluate({}) == 4.0

    def test_round_is_half_away(self):
        """Test that round() in expressions rounds halves away from zero."""
        assert Expression("round(2.5)", ()).evaluate({}) == 3

    def test_conditional_and_comparison(self):
        """Test conditional expressions and chained comparisons."""
        expr = Expression("1 if 0 <= x < 2 else 0", ("x",))
        assert expr.evaluate({"x": 1.0}) == 1
        assert expr.evaluate({"x": 2.0}) == 0

    def test_boolean_operators(self):
        """Test short-circuit and/or."""
        expr = Expression("x > 0 and x < 1 or x == 5", ("x",))
        assert expr.evaluate({"x": 0.5})
        assert expr.evaluate({"x": 5.0})
        assert not expr.evaluate({"x": 3.0})

    def test_presets_callable(self):
        """Test that preset gap laws are available by name."""
        ns = {"x": 3.0, "d": 0, "O": (0.0,), "N": (16.0,), "L": 2.0}
        value = Expression("sinegap(x, d, O, N, L)", GAP).evaluate(ns)
        assert value == sinegap(3.0, 0, (0.0,), (16.0,), 2.0)

    def test_extra_functions(self):
        """Test caller supplied functions."""
        expr = Expression("double(x)", ("x",), functions={"double": lambda v: 2 * v})
        assert expr.evaluate({"x": 4.0}) == 8.0

    def test_runtime_errors_propagate(self):
        """Test that arithmetic errors surface unchanged."""
        with pytest.raises(ZeroDivisionError):
            Expression("1 / x", ("x",)).evaluate({"x": 0.0})
        with pytest.raises(IndexError):
            Expression("N[5]", ("N",)).evaluate({"N": (1.0,)})
        with pytest.raises(TypeError):
            Expression("x[0]", ("x",)).evaluate({"x": 1.0})


class TestCompileErrors:
    """Test rejection of disallowed constructs."""

    @pytest.mark.parametrize(
        "source,message",
        [
            ("", "empty"),
            ("   ", "empty"),
            ("sin(", "syntax"),
            ("y + 1", "unknown name 'y'"),
            ("sin + 1", "used as a value"),
            ("x ^ 2", r"\*\*"),
            ("x << 2", "unsupported operator"),
            ("~x", "unsupported operator"),
            ("x in N", "unsupported comparison"),
            ("'abc'", "non-numeric"),
            ("True", "non-numeric"),
            ("__import__('os')", "unknown function"),
            ("x.real", "unsupported syntax"),
            ("lambda: 1", "unsupported syntax"),
            ("[x for x in N]", "unsupported syntax"),
            ("max(N, key=abs)", "keyword"),
            ("max(*N)", "starred"),
            ("N[0:1]", "slices"),
        ],
    )
    def test_rejected(self, source, message):
        """Test that the construct fails to compile with a clear reason."""
        with pytest.raises(EquationCompileError, match=message):
            Expression(source, GAP)

    def test_error_keeps_source(self):
        """Test that the error records the offending expression."""
        with pytest.raises(EquationCompileError) as exc_info:
            Expression("y", ("x",))
        assert exc_info.value.expression == "y"
        assert "unknown name" in exc_info.value.reason

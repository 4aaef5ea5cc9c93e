"""Tests for GapEquation, DensityEquation and the preset registry."""

import math

import numpy as np
import pytest

from nusgen.equations import (
    DensityEquation,
    GapEquation,
    get_preset,
    list_presets,
    register_preset,
)
from nusgen.equations.presets import poissongap, poisrnd, sineburst, sinegap
from nusgen.errors import (
    EquationCompileError,
    EquationDomainError,
    EquationError,
    EquationEvaluationError,
)


class TestGapEquation:
    """Test the gap law contract."""

    def test_deterministic_increment(self):
        """Test that the law value plus one is added to x."""
        eq = GapEquation("L")
        assert eq.next_term(0.0, 0, (0,), (16,), 1.0) == 2.0
        assert eq.next_term(2.0, 0, (0,), (16,), 2.5) == 5.5

    def test_zero_law_gives_unit_step(self):
        """Test the minimum spacing of one grid point."""
        eq = GapEquation(lambda x, d, O, N, L: 0.0)
        assert eq.next_term(3.0, 0, (0,), (16,), 1.0) == 4.0

    def test_arguments_reach_the_law(self):
        """Test argument types and values seen by a callable law."""
        seen = {}

        def law(x, d, O, N, L):
            seen.update(x=x, d=d, O=O, N=N, L=L)
            return 0.0

        GapEquation(law).next_term(1.0, 1, (2, 0), (4, 8), 0.5)
        assert seen == {"x": 1.0, "d": 1, "O": (2.0, 0.0), "N": (4.0, 8.0), "L": 0.5}
        assert isinstance(seen["d"], int)

    def test_axis_indexes_sizes(self):
        """Test that d is zero-based and indexes N."""
        eq = GapEquation("N[d]")
        assert eq.next_term(0.0, 1, (0, 0), (4, 8), 1.0) == 9.0

    def test_poisson_request(self):
        """Test that a negative law value requests a Poisson gap."""
        eq = GapEquation("poisrnd(0)")
        # rate 0: the first quasirandom product is already below exp(0)
        assert eq.next_term(0.0, 0, (0,), (16,), 1.0) == 1.0

    def test_poisson_gaps_reproducible(self):
        """Test that Poisson gaps restart identically after reset."""
        eq = GapEquation("poisrnd(3)")
        first = [eq.poisson(3.0) for _ in range(25)]
        eq.reset()
        second = [eq.poisson(3.0) for _ in range(25)]

        assert first == second
        assert all(k >= 1 and float(k).is_integer() for k in first)
        assert len(set(first)) > 1

    def test_angular_domain(self):
        """Test that (x + sum(O)) / sum(N) > 1 is a domain error."""
        eq = GapEquation("L")
        assert eq.next_term(16.0, 0, (0,), (16,), 1.0) == 18.0

        with pytest.raises(EquationDomainError) as exc_info:
            eq.next_term(17.0, 0, (0,), (16,), 1.0)
        assert exc_info.value.term == 19.0

    def test_angular_domain_uses_origin(self):
        """Test that the origin offset counts towards the angle."""
        eq = GapEquation("L")
        with pytest.raises(EquationDomainError):
            eq.next_term(5.0, 1, (4, 0), (4, 4), 1.0)

    def test_non_finite_result(self):
        """Test that NaN and infinity are domain errors."""
        eq = GapEquation(lambda x, d, O, N, L: float("nan"))
        with pytest.raises(EquationDomainError):
            eq.next_term(0.0, 0, (0,), (16,), 1.0)

    def test_evaluation_error_carries_inputs(self):
        """Test that exceptions inside the law are wrapped with inputs."""
        eq = GapEquation("log(x)")
        with pytest.raises(EquationEvaluationError) as exc_info:
            eq.next_term(0.0, 0, (0,), (16,), 1.0)

        err = exc_info.value
        assert err.call == "g"
        assert err.inputs["x"] == 0.0
        assert err.inputs["N"] == [16.0]
        assert isinstance(err.cause, ValueError)
        assert "g(x=0.0" in str(err)
        assert "ValueError" in str(err)

    def test_compile_error_up_front(self):
        """Test that a bad expression fails at construction."""
        with pytest.raises(EquationCompileError):
            GapEquation("x[0] +")

    def test_rejects_non_equation(self):
        """Test that only strings and callables are accepted."""
        with pytest.raises(TypeError):
            GapEquation(42)

    def test_errors_share_base(self):
        """Test that equation failures derive from EquationError."""
        assert issubclass(EquationDomainError, EquationError)
        assert issubclass(EquationEvaluationError, EquationError)
        assert issubclass(EquationCompileError, EquationError)


class TestDensityEquation:
    """Test the density contract."""

    def test_value(self):
        """Test evaluation at one coordinate."""
        eq = DensityEquation("x[0] + x[1] / N[1]")
        assert eq((1, 2), (4, 4)) == 1.5

    def test_callable(self):
        """Test a Python callable density."""
        eq = DensityEquation(lambda x, N: x[0] * 2)
        assert eq((3,), (8,)) == 6.0

    def test_negative_is_domain_error(self):
        """Test that negative density is rejected."""
        eq = DensityEquation("x[0] - 1")
        with pytest.raises(EquationDomainError):
            eq((0,), (4,))

    def test_non_finite_is_domain_error(self):
        """Test that infinite density is rejected."""
        eq = DensityEquation(lambda x, N: math.inf)
        with pytest.raises(EquationDomainError):
            eq((0,), (4,))

    def test_evaluation_error(self):
        """Test that exceptions are wrapped with the offending coordinate."""
        eq = DensityEquation("1 / x[0]")
        with pytest.raises(EquationEvaluationError) as exc_info:
            eq((0,), (4,))
        assert exc_info.value.call == "f"
        assert exc_info.value.inputs == {"x": [0.0], "N": [4.0]}
        assert isinstance(exc_info.value.cause, ZeroDivisionError)

    def test_field_uses_linear_index(self):
        """Test that the field is laid out by linear index."""
        eq = DensityEquation("x[0] + 10 * x[1]")
        field = eq.evaluate_field((2, 3))
        np.testing.assert_array_equal(field, [0, 1, 10, 11, 20, 21])

    def test_gap_names_not_available(self):
        """Test that densities only see x and N."""
        with pytest.raises(EquationCompileError, match="unknown name 'L'"):
            DensityEquation("L * x[0]")


class TestPresets:
    """Test the preset gap law registry."""

    def test_registered(self):
        """Test that the standard presets are registered."""
        names = {p.name for p in list_presets()}
        assert {"poisrnd", "sinegap", "poissongap", "sineburst"} <= names

    def test_lookup(self):
        """Test lookup by name and unknown names."""
        preset = get_preset("sinegap")
        assert preset.func is sinegap
        assert "sin" in preset.expression

        with pytest.raises(KeyError, match="Available"):
            get_preset("nosuchgap")

    def test_duplicate_registration(self):
        """Test that names cannot be registered twice."""
        with pytest.raises(KeyError, match="already exists"):
            register_preset("sinegap", "L")(lambda x, d, O, N, L: L)

    def test_sinegap(self):
        """Test sine weighting from the origin to the far corner."""
        assert sinegap(0.0, 0, (0.0,), (16.0,), 2.0) == 0.0
        assert sinegap(16.0, 0, (0.0,), (16.0,), 2.0) == pytest.approx(2.0)
        assert sinegap(8.0, 0, (0.0,), (16.0,), 2.0) == pytest.approx(2.0 * math.sin(math.pi / 4))

    def test_poisrnd(self):
        """Test the Poisson rate encoding."""
        assert poisrnd(3.0) == -5.0
        assert poissongap(16.0, 0, (0.0,), (16.0,), 2.0) == pytest.approx(-4.0)

    def test_sineburst(self):
        """Test the burst modulation along the line axis."""
        assert sineburst(0.0, 0, (0.0,), (16.0,), 1.0) == 0.0
        # theta = 0.5: sin(pi/4) * sin(2 pi)^2 with N[0] = 16
        assert sineburst(8.0, 0, (0.0,), (16.0,), 1.0) == pytest.approx(0.0, abs=1e-12)
        # theta = 1/8: sin(pi/16) * sin(pi/2)^2
        assert sineburst(2.0, 0, (0.0,), (16.0,), 1.0) == pytest.approx(math.sin(math.pi / 16))

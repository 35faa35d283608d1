# File: tests/test_taylor.py

import math
import pytest

from symbolic_differentiation import (
    MissingBindingError, TaylorBuilder, build_taylor, parse
)


def test_sine_cubic_approximation():
    polynomial = build_taylor(parse("sin(x)"), "x", 0.0, 3)
    approx = polynomial.evaluate({"x": 0.1})
    assert abs(approx - math.sin(0.1)) <= 0.1 ** 5 / 120


def test_sine_coefficients():
    builder = TaylorBuilder("x", 0.0, 3)
    builder.build(parse("sin(x)"))
    terms = builder.coefficients()
    assert [t.order for t in terms] == [0, 1, 2, 3]
    assert [t.coefficient for t in terms] == pytest.approx([0.0, 1.0, 0.0, -1.0 / 6.0])
    assert terms[3].derivative_value == pytest.approx(-1.0)


def test_cosh_coefficients_use_factorials():
    builder = TaylorBuilder("x", 0.0, 4)
    builder.build(parse("cosh(x)"))
    assert [t.coefficient for t in builder.terms] == pytest.approx([1.0, 0.0, 0.5, 0.0, 1.0 / 24.0])


@pytest.mark.parametrize("v", [-2.0, 0.3, 4.5])
def test_polynomial_is_reproduced_exactly(v):
    polynomial = build_taylor(parse("x^3 + 2*x - 7"), "x", 1.0, 3)
    assert polynomial.evaluate({"x": v}) == pytest.approx(v ** 3 + 2 * v - 7)


def test_order_zero_is_constant():
    polynomial = build_taylor(parse("cos(x) + 1"), "x", 0.0, 0)
    assert polynomial.variables() == set()
    assert polynomial.evaluate() == pytest.approx(2.0)


def test_expansion_around_nonzero_point():
    polynomial = build_taylor(parse("ln(x)"), "x", 1.0, 4)
    h = 0.1
    assert abs(polynomial.evaluate({"x": 1.0 + h}) - math.log(1.0 + h)) <= h ** 5 / 5


def test_other_bindings_are_used():
    polynomial = build_taylor(parse("a*sin(x)"), "x", 0.0, 1, bindings={"a": 2.0})
    assert polynomial.variables() == {"x"}
    assert polynomial.evaluate({"x": 0.01}) == pytest.approx(0.02)


def test_missing_binding_propagates():
    with pytest.raises(MissingBindingError):
        build_taylor(parse("a*sin(x)"), "x", 0.0, 2)


def test_undefined_derivative_is_kept_as_nan():
    builder = TaylorBuilder("x", 0.0, 1)
    polynomial = builder.build(parse("ln(x)"))
    assert math.isnan(builder.terms[0].derivative_value)
    assert math.isnan(polynomial.evaluate({"x": 0.5}))


def test_negative_order_rejected():
    with pytest.raises(ValueError):
        TaylorBuilder("x", 0.0, -1)


def test_input_untouched_and_result_valid():
    expr = parse("sin(x)*cos(x)")
    before = expr.to_prefix()
    polynomial = build_taylor(expr, "x", 0.5, 3)
    assert expr.to_prefix() == before
    assert polynomial.validate()


def test_undefined_coefficients_print_reparseable():
    polynomial = build_taylor(parse("ln(x)"), "x", 0.0, 1)
    again = parse(polynomial.to_string())
    assert math.isnan(again.evaluate({"x": 0.5}))

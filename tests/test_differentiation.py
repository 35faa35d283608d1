# File: tests/test_differentiation.py

import math
import numpy as np
import pytest

from symbolic_differentiation import (
    Differentiator, SymPyChecker, UnknownOperationError, Expression, OpType,
    differentiate, evaluate, parse, get_global_pool
)
from symbolic_differentiation.expression_tree import BinaryOpNode, UnaryOpNode, VariableNode, ConstantNode
from symbolic_differentiation.expression_tree.utils import get_all_nodes


# ─── 1) Basic rules ──────────────────────────────────────────────────────────────

def test_product_of_x_at_three():
    derivative = differentiate(parse("x*x"), "x", 1)
    assert evaluate(derivative, {"x": 3.0}) == 6.0


@pytest.mark.parametrize("v", np.linspace(-3.0, 3.0, 13))
def test_sine_derivative_is_cosine(v):
    derivative = differentiate(parse("sin(x)"), "x", 1)
    assert derivative.evaluate({"x": float(v)}) == pytest.approx(math.cos(v), abs=1e-9)


@pytest.mark.parametrize("text, bindings", [
    ("x^2 + 3*x",         {"x": 1.5}),
    ("sin(x) / (1 + y)",  {"x": 0.3, "y": 2.0}),
    ("log(2, x)",         {"x": 5.0}),
    ("arctan(x) * y",     {"x": -0.4, "y": 3.0}),
])
def test_zeroth_derivative_is_identity(text, bindings):
    expr = parse(text)
    same = differentiate(expr, "x", 0)
    assert same is not expr
    assert same.root is not expr.root
    assert same.evaluate(bindings) == expr.evaluate(bindings)


def test_constant_and_foreign_variable_give_zero():
    d = Differentiator("x")
    assert d.derivative(ConstantNode(7.0)).value == 0.0
    assert d.derivative(VariableNode("y")).value == 0.0
    assert d.derivative(VariableNode("x")).value == 1.0


def test_partial_derivative_in_other_variable():
    derivative = parse("x*y + y^2").differentiate("y")
    assert derivative.evaluate({"x": 5.0, "y": 2.0}) == pytest.approx(9.0)


def test_negative_order_rejected():
    with pytest.raises(ValueError):
        differentiate(parse("x"), "x", -1)


def test_empty_expression_stays_empty():
    assert differentiate(Expression(), "x", 2).root is None


# ─── 2) Cross-check against SymPy ────────────────────────────────────────────────

CHECKER = SymPyChecker(tolerance=1e-8)
POINTS = [0.2, 0.45, 0.7]


@pytest.mark.parametrize("text, points", [
    ("x^3 - 2*x",                POINTS),
    ("sin(x)*cos(x)",            POINTS),
    ("ln(x)/x",                  POINTS),
    ("x^x",                      POINTS),
    ("2^x",                      POINTS),
    ("log(2, x)",                POINTS),
    ("log(x, 10)",               POINTS),
    ("log(x, x^2 + 1)",          POINTS),
    ("tan(x)",                   POINTS),
    ("cot(x)",                   POINTS),
    ("sinh(x) + cosh(2*x)",      POINTS),
    ("arcsin(x)",                POINTS),
    ("arccos(x^2)",              POINTS),
    ("arctan(3*x)",              POINTS),
    ("arccot(x)",                POINTS),
    ("arsinh(x)",                POINTS),
    ("arccosh(x)",               [1.5, 2.0, 3.0]),
    ("artanh(x)",                POINTS),
    ("(x^2 + 1)^0.5",            POINTS),
    ("sin(cos(x)) / (x + 2)",    POINTS),
])
def test_first_derivative_matches_sympy(text, points):
    expr = parse(text)
    derivative = differentiate(expr, "x", 1)
    result = CHECKER.compare_derivative(expr, derivative, "x", 1, points)
    assert result["compared_points"] == len(points)
    assert result["matches"], result


@pytest.mark.parametrize("text, order", [
    ("sin(x)*x^2",   2),
    ("sin(x)*x^2",   3),
    ("ln(x) * x",    2),
    ("x^x",          2),
])
def test_higher_orders_match_sympy(text, order):
    expr = parse(text)
    derivative = differentiate(expr, "x", order, simplify_steps=True)
    result = CHECKER.compare_derivative(expr, derivative, "x", order, POINTS)
    assert result["matches"], result


@pytest.mark.parametrize("text", [
    "x^3 - 2*x",
    "sin(x)*cos(x)",
    "ln(x)/x",
])
def test_first_derivative_simplifies_to_sympy_result(text):
    expr = parse(text)
    derivative = differentiate(expr, "x", 1)
    assert CHECKER.simplifies_to_zero(expr, derivative, "x")


def test_fifth_derivative_of_quintic():
    derivative = differentiate(parse("x^5"), "x", 5, simplify_steps=True)
    for v in (-2.0, 0.5, 3.0):
        assert derivative.evaluate({"x": v}) == pytest.approx(120.0)


def test_other_bindings_fold_during_step_simplification():
    derivative = differentiate(parse("(a*2)*x^2"), "x", 1, simplify_steps=True, bindings={"a": 3.0})
    assert "a" not in derivative.variables()
    assert derivative.evaluate({"x": 10.0}) == pytest.approx(120.0)


# ─── 3) Ownership ────────────────────────────────────────────────────────────────

def test_input_is_not_mutated():
    expr = parse("sin(x)*x^2/(ln(x)+x)")
    before = expr.to_prefix()
    differentiate(expr, "x", 2)
    assert expr.to_prefix() == before


def test_derivative_shares_no_nodes_with_input():
    expr = parse("(x*y)^x + log(x, y) * tan(x)")
    derivative = differentiate(expr, "x", 1)
    original_ids = {id(n) for n in get_all_nodes(expr.root)}
    derived_ids = {id(n) for n in get_all_nodes(derivative.root)}
    assert not original_ids & derived_ids
    assert derivative.validate()
    assert expr.validate()


def test_intermediate_orders_are_released():
    pool = get_global_pool()
    before = pool.released_count
    differentiate(parse("sin(x)*cos(x)"), "x", 3)
    assert pool.released_count > before


# ─── 4) Unknown operations ───────────────────────────────────────────────────────

def test_unknown_binary_operation_raises():
    bad = BinaryOpNode(99, VariableNode("x"), ConstantNode(1.0))
    expr = Expression(BinaryOpNode(OpType.ADD, VariableNode("x"), bad))
    with pytest.raises(UnknownOperationError) as info:
        differentiate(expr, "x", 1)
    assert info.value.operator == 99


def test_unary_node_with_binary_code_raises():
    expr = Expression(UnaryOpNode(OpType.MUL, VariableNode("x")))
    with pytest.raises(UnknownOperationError):
        expr.differentiate("x")


def test_unknown_operation_releases_sibling_derivative():
    pool = get_global_pool()
    bad = UnaryOpNode(42, VariableNode("x"))
    expr = Expression(BinaryOpNode(OpType.MUL, VariableNode("x"), bad))
    before = pool.released_count
    with pytest.raises(UnknownOperationError):
        differentiate(expr, "x", 2)
    assert pool.released_count == before + 1


# ─── 5) Deep trees ───────────────────────────────────────────────────────────────

def test_long_flat_sum_differentiates():
    expr = parse("+".join(["x"] * 1500))
    first = differentiate(expr, "x", 1)
    assert first.size() == expr.size()
    assert first.evaluate({"x": 0.0}) == 1500.0
    assert differentiate(expr, "x", 2).evaluate({"x": 0.0}) == 0.0


def test_unknown_operation_after_long_chain_releases_finished_part():
    chain = VariableNode("x")
    for _ in range(1000):
        chain = BinaryOpNode(OpType.ADD, chain, VariableNode("x"))
    root = BinaryOpNode(OpType.ADD, chain, UnaryOpNode(42, VariableNode("x")))
    pool = get_global_pool()
    before = pool.released_count
    with pytest.raises(UnknownOperationError):
        Differentiator("x").derivative(root)
    assert pool.released_count == before + 2001

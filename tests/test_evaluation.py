# File: tests/test_evaluation.py

import math
import numpy as np
import pytest

from symbolic_differentiation import (
    Expression, MissingBindingError, UnknownOperationError, OpType, VariableTable,
    evaluate, evaluate_grid, parse
)
from symbolic_differentiation.expression_tree import (
    BinaryOpNode, ConstantNode, UnaryOpNode, VariableNode, evaluate_binary_op, evaluate_unary_op
)


@pytest.mark.parametrize("text, expected", [
    ("sin(x)",        math.sin(0.5)),
    ("cos(x)",        math.cos(0.5)),
    ("tan(x)",        math.tan(0.5)),
    ("cot(x)",        1.0 / math.tan(0.5)),
    ("sinh(x)",       math.sinh(0.5)),
    ("cosh(x)",       math.cosh(0.5)),
    ("arcsin(x)",     math.asin(0.5)),
    ("arccos(x)",     math.acos(0.5)),
    ("arctan(x)",     math.atan(0.5)),
    ("arccot(x)",     math.pi / 2 - math.atan(0.5)),
    ("arsinh(x)",     math.asinh(0.5)),
    ("arccosh(x+1)",  math.acosh(1.5)),
    ("artanh(x)",     math.atanh(0.5)),
    ("ln(x)",         math.log(0.5)),
    ("log(10, x)",    math.log10(0.5)),
    ("x^3",           0.125),
])
def test_function_values(text, expected):
    assert parse(text).evaluate({"x": 0.5}) == pytest.approx(expected, rel=1e-12)


# ─── Domain errors produce NaN ───────────────────────────────────────────────────

@pytest.mark.parametrize("text", [
    "arcsin(2)",
    "arccos(0-2)",
    "ln(0)",
    "ln(0-1)",
    "log(1, 5)",
    "log(0-2, 5)",
    "1/0",
    "1/0.00000000001",
    "(0-8)^0.5",
    "0^(0-1)",
    "arccosh(0.5)",
    "artanh(1)",
    "cot(0)",
])
def test_domain_errors_are_nan(text):
    assert math.isnan(parse(text).evaluate())


def test_nan_propagates_through_ancestors():
    expr = parse("sin(ln(x) * 2) + 1")
    assert math.isnan(expr.evaluate({"x": -1.0}))
    assert not math.isnan(expr.evaluate({"x": 1.0}))


def test_negative_base_with_integer_exponent():
    assert parse("(0-2)^3").evaluate() == -8.0


def test_kernels_directly():
    assert evaluate_binary_op(6.0, 3.0, OpType.DIV) == 2.0
    assert math.isnan(evaluate_binary_op(1.0, 0.0, OpType.DIV))
    assert evaluate_unary_op(0.0, OpType.COS) == 1.0
    assert math.isnan(evaluate_unary_op(math.nan, OpType.SIN))


# ─── Bindings ────────────────────────────────────────────────────────────────────

def test_missing_binding_names_variable():
    with pytest.raises(MissingBindingError) as info:
        parse("x + y").evaluate({"x": 1.0})
    assert info.value.variable == "y"


def test_missing_binding_is_lookup_error():
    with pytest.raises(LookupError):
        evaluate(parse("z"))


def test_variable_table_as_bindings():
    table = VariableTable.from_mapping({"x": 2.0, "y": 3.0})
    assert evaluate(parse("x^y"), table) == 8.0


def test_evaluate_accepts_bare_node():
    node = BinaryOpNode(OpType.MUL, ConstantNode(4.0), VariableNode("t"))
    assert evaluate(node, {"t": 2.5}) == 10.0


def test_empty_expression_cannot_be_evaluated():
    with pytest.raises(ValueError):
        Expression().evaluate()


def test_unknown_operation_raises():
    expr = Expression(UnaryOpNode(77, ConstantNode(1.0)))
    with pytest.raises(UnknownOperationError):
        expr.evaluate()


def test_deep_tree_evaluates_without_recursion_limit():
    node = VariableNode("x")
    for _ in range(5000):
        node = BinaryOpNode(OpType.ADD, node, ConstantNode(1.0))
    assert evaluate(node, {"x": 0.0}) == 5000.0


def test_grid_evaluation():
    values = np.linspace(-1.0, 1.0, 5)
    out = evaluate_grid(parse("x^2 + a"), "x", values, {"a": 1.0})
    np.testing.assert_allclose(out, values ** 2 + 1.0)


def test_grid_evaluation_accepts_a_scalar():
    out = evaluate_grid(parse("x^2"), "x", 3.0)
    assert out.shape == (1,)
    assert out[0] == 9.0


def test_grid_evaluation_marks_undefined_points():
    out = evaluate_grid(parse("ln(x)"), "x", [-1.0, 1.0])
    assert math.isnan(out[0])
    assert out[1] == 0.0

# File: tests/test_parser.py

import math
import pytest

from symbolic_differentiation import (
    ExpressionParser, ExpressionSyntaxError, Expression, OpType, parse, get_global_pool
)
from symbolic_differentiation.expression_tree import BinaryOpNode, UnaryOpNode, VariableNode, ConstantNode


# ─── 1) Precedence and associativity ─────────────────────────────────────────────

@pytest.mark.parametrize("text, expected", [
    ("2+3*4",         14.0),
    ("(2+3)*4",       20.0),
    ("2*3^2",         18.0),
    ("2^3^2",         512.0),
    ("10-4-3",        3.0),
    ("24/4/3",        2.0),
    ("  1 +\t2 ",     3.0),
    ("1.5e2 + .5",    150.5),
])
def test_numeric_precedence(text, expected):
    assert parse(text).evaluate() == pytest.approx(expected)


def test_power_is_right_associative():
    root = parse("x^y^z").root
    assert root.operator == OpType.POW
    assert isinstance(root.left, VariableNode)
    assert isinstance(root.right, BinaryOpNode)
    assert root.right.operator == OpType.POW


def test_subtraction_is_left_associative():
    root = parse("a-b-c").root
    assert root.operator == OpType.SUB
    assert isinstance(root.left, BinaryOpNode)
    assert root.right.name == "c"


def test_variables_are_single_letters():
    root = parse("x*y").root
    assert root.left.name == "x"
    assert root.right.name == "y"


# ─── 2) Function names ───────────────────────────────────────────────────────────

@pytest.mark.parametrize("text, op", [
    ("sin(x)",     OpType.SIN),
    ("sinh(x)",    OpType.SINH),
    ("cos(x)",     OpType.COS),
    ("cosh(x)",    OpType.COSH),
    ("tan(x)",     OpType.TAN),
    ("cot(x)",     OpType.COT),
    ("ln(x)",      OpType.LN),
    ("arcsin(x)",  OpType.ARCSIN),
    ("arccos(x)",  OpType.ARCCOS),
    ("arccosh(x)", OpType.ARCCOSH),
    ("arctan(x)",  OpType.ARCTAN),
    ("arccot(x)",  OpType.ARCCOT),
    ("arsinh(x)",  OpType.ARSINH),
    ("artanh(x)",  OpType.ARTANH),
])
def test_function_names(text, op):
    root = parse(text).root
    assert isinstance(root, UnaryOpNode)
    assert root.operator == op
    assert root.operand.name == "x"


def test_log_takes_base_first():
    expr = parse("log(2, 8)")
    assert expr.root.operator == OpType.LOG
    assert expr.root.left.value == 2.0
    assert expr.evaluate() == pytest.approx(3.0)


def test_nested_function_calls():
    expr = parse("sin(cos(x) + ln(y))")
    assert expr.evaluate({"x": 0.0, "y": math.e}) == pytest.approx(math.sin(2.0))


def test_to_string_reparses_to_same_tree():
    expr = parse("log(2, x) * sinh(x - 3) ^ 2 / (1 + y)")
    again = parse(expr.to_string())
    assert again == expr


def test_negative_constant_prints_reparseable():
    expr = Expression(get_global_pool().get_constant_node(-2.5))
    assert expr.to_string() == "(0 - 2.5)"
    assert parse(expr.to_string()).evaluate() == -2.5


@pytest.mark.parametrize("value, text", [
    (math.nan,   "(0 / 0)"),
    (math.inf,   "1e999"),
    (-math.inf,  "(0 - 1e999)"),
])
def test_non_finite_constant_prints_reparseable(value, text):
    expr = Expression(get_global_pool().get_constant_node(value))
    assert expr.to_string() == text
    again = parse(text).evaluate()
    if math.isnan(value):
        assert math.isnan(again)
    else:
        assert again == value


# ─── 3) Syntax errors ────────────────────────────────────────────────────────────

@pytest.mark.parametrize("text, position", [
    ("2+",       2),
    ("",         0),
    ("(x+1",     4),
    ("x y",      2),
    ("foo",      1),
    ("sin x",    4),
    ("log(2)",   5),
    ("3 * * 4",  4),
    ("x)",       1),
])
def test_syntax_error_positions(text, position):
    with pytest.raises(ExpressionSyntaxError) as info:
        parse(text)
    assert info.value.position == position


def test_syntax_error_is_value_error():
    with pytest.raises(ValueError):
        parse("2+")


def test_syntax_error_message_points_at_position():
    with pytest.raises(ExpressionSyntaxError) as info:
        parse("2+")
    assert "position 2" in str(info.value)
    assert str(info.value).rstrip().endswith("^")


def test_failed_parse_returns_partial_nodes_to_pool():
    pool = get_global_pool()
    before = pool.released_count
    with pytest.raises(ExpressionSyntaxError):
        parse("sin(x) + cos(y) * (2 +")
    # sin(x), x, cos(y), y, 2 and the product built so far
    assert pool.released_count > before


# ─── 4) Depth bound ──────────────────────────────────────────────────────────────

def test_moderate_nesting_parses():
    text = "(" * 50 + "x" + ")" * 50
    assert parse(text).evaluate({"x": 4.0}) == 4.0


def test_excessive_nesting_is_syntax_error():
    text = "(" * 150 + "x" + ")" * 150
    with pytest.raises(ExpressionSyntaxError):
        parse(text)


def test_custom_depth_limit():
    parser = ExpressionParser(max_depth=3)
    assert isinstance(parser.parse("((x))").root, VariableNode)
    with pytest.raises(ExpressionSyntaxError):
        parser.parse("((((x))))")


def test_long_flat_chain_is_not_limited_by_nesting():
    text = "+".join(["1"] * 3000)
    expr = parse(text)
    assert expr.size() == 5999
    assert expr.evaluate() == 3000.0


def test_numbers_parse_as_constants():
    root = parse("42").root
    assert isinstance(root, ConstantNode)
    assert root.value == 42.0

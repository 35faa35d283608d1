"""
Symbolic differentiation by structural induction over the tree.

The differentiator only ever allocates: the input tree is read, never
modified, and every operand that appears in a derivative more than once is a
fresh deep copy. Simplification (which mutates in place) runs afterwards on
the result, never on the input.
"""

from typing import Callable, Dict, List, Mapping, Optional, Tuple

from .errors import UnknownOperationError
from .expression_tree import Expression
from .expression_tree.core.node import Node, ConstantNode, VariableNode, BinaryOpNode, UnaryOpNode
from .expression_tree.core.operators import OpType, resolve_operator
from .expression_tree.optimization.memory_pool import get_global_pool
from .expression_tree.utils.simplifier import optimize, MAX_SIMPLIFY_ITERATIONS
from .logging_system import log_critical, log_step, log_milestone


def _const(value: float) -> Node:
    return get_global_pool().get_constant_node(value)


def _bin(op: OpType, left: Node, right: Node) -> Node:
    return get_global_pool().get_binary_node(op, left, right)


def _un(op: OpType, operand: Node) -> Node:
    return get_global_pool().get_unary_node(op, operand)


def _square(node: Node) -> Node:
    return _bin(OpType.POW, node, _const(2.0))


def _neg(node: Node) -> Node:
    return _bin(OpType.MUL, _const(-1.0), node)


# Outer derivatives f'(u) * du for one-argument functions. `u` returns a fresh
# copy of the operand on every call.
_UNARY_RULES: Dict[OpType, Callable[[Callable[[], Node], Node], Node]] = {
    OpType.LN: lambda u, du: _bin(OpType.DIV, du, u()),
    OpType.SIN: lambda u, du: _bin(OpType.MUL, _un(OpType.COS, u()), du),
    OpType.COS: lambda u, du: _bin(OpType.MUL, _neg(_un(OpType.SIN, u())), du),
    OpType.TAN: lambda u, du: _bin(OpType.DIV, du, _square(_un(OpType.COS, u()))),
    OpType.COT: lambda u, du: _bin(OpType.DIV, _neg(du), _square(_un(OpType.SIN, u()))),
    OpType.SINH: lambda u, du: _bin(OpType.MUL, _un(OpType.COSH, u()), du),
    OpType.COSH: lambda u, du: _bin(OpType.MUL, _un(OpType.SINH, u()), du),
    OpType.ARCSIN: lambda u, du: _bin(
        OpType.DIV, du, _bin(OpType.POW, _bin(OpType.SUB, _const(1.0), _square(u())), _const(0.5))),
    OpType.ARCCOS: lambda u, du: _bin(
        OpType.DIV, _neg(du), _bin(OpType.POW, _bin(OpType.SUB, _const(1.0), _square(u())), _const(0.5))),
    OpType.ARCTAN: lambda u, du: _bin(OpType.DIV, du, _bin(OpType.ADD, _const(1.0), _square(u()))),
    OpType.ARCCOT: lambda u, du: _bin(OpType.DIV, _neg(du), _bin(OpType.ADD, _const(1.0), _square(u()))),
    OpType.ARSINH: lambda u, du: _bin(
        OpType.DIV, du, _bin(OpType.POW, _bin(OpType.ADD, _square(u()), _const(1.0)), _const(0.5))),
    OpType.ARCCOSH: lambda u, du: _bin(
        OpType.DIV, du, _bin(OpType.POW, _bin(OpType.SUB, _square(u()), _const(1.0)), _const(0.5))),
    OpType.ARTANH: lambda u, du: _bin(OpType.DIV, du, _bin(OpType.SUB, _const(1.0), _square(u()))),
}


class Differentiator:
    """
    d/d(variable) of a node, returned as a new parentless tree.

    The input is walked with an explicit stack: each node is planned on the
    way down (its rule and the children whose derivatives the rule needs) and
    combined on the way up from a stack of finished child derivatives, so
    tree depth is bounded only by memory.

    Raises UnknownOperationError for an operation without a derivative rule;
    every derivative subtree already built for that call is released first.
    """

    def __init__(self, variable: str = 'x'):
        self.variable = variable
        self.pool = get_global_pool()
        self._binary_rules: Dict[OpType, Callable[..., Node]] = {
            OpType.ADD: self._add,
            OpType.SUB: self._sub,
            OpType.MUL: self._mul,
            OpType.DIV: self._div,
            OpType.POW: self._pow,
            OpType.LOG: self._log,
        }

    def derivative(self, node: Node) -> Node:
        finished: List[Node] = []
        stack: List[Tuple[Node, Optional[Callable[..., Node]], int]] = [(node, None, 0)]
        try:
            while stack:
                current, rule, arity = stack.pop()
                if rule is None:
                    rule, targets = self._plan(current)
                    stack.append((current, rule, len(targets)))
                    stack.extend((child, None, 0) for child in reversed(targets))
                    continue
                split = len(finished) - arity
                child_derivatives = finished[split:]
                del finished[split:]
                finished.append(rule(current, *child_derivatives))
        except UnknownOperationError:
            for partial in finished:
                self.pool.release_tree(partial)
            raise
        return finished[0]

    def _plan(self, node: Node) -> Tuple[Callable[..., Node], Tuple[Node, ...]]:
        """Rule for `node` and the children it has to differentiate first"""
        if isinstance(node, ConstantNode):
            return self._constant, ()
        if isinstance(node, VariableNode):
            return self._variable, ()

        op_type = resolve_operator(getattr(node, 'operator', None))
        if isinstance(node, BinaryOpNode) and op_type in self._binary_rules:
            if op_type is OpType.POW and isinstance(node.right, ConstantNode):
                return self._pow_constant_exponent, (node.left,)
            if op_type is OpType.POW and isinstance(node.left, ConstantNode):
                return self._pow_constant_base, (node.right,)
            return self._binary_rules[op_type], (node.left, node.right)
        if isinstance(node, UnaryOpNode) and op_type in _UNARY_RULES:
            outer = _UNARY_RULES[op_type]
            return (lambda n, d_operand: outer(n.operand.copy, d_operand)), (node.operand,)

        name = getattr(node, 'operator', type(node).__name__)
        log_critical(f"No derivative rule for {name!r}")
        raise UnknownOperationError(name)

    def _constant(self, node: ConstantNode) -> Node:
        return _const(0.0)

    def _variable(self, node: VariableNode) -> Node:
        return _const(1.0 if node.name == self.variable else 0.0)

    def _add(self, node: BinaryOpNode, d_left: Node, d_right: Node) -> Node:
        return _bin(OpType.ADD, d_left, d_right)

    def _sub(self, node: BinaryOpNode, d_left: Node, d_right: Node) -> Node:
        return _bin(OpType.SUB, d_left, d_right)

    def _mul(self, node: BinaryOpNode, d_left: Node, d_right: Node) -> Node:
        return _bin(OpType.ADD,
                    _bin(OpType.MUL, d_left, node.right.copy()),
                    _bin(OpType.MUL, node.left.copy(), d_right))

    def _div(self, node: BinaryOpNode, d_left: Node, d_right: Node) -> Node:
        numerator = _bin(OpType.SUB,
                         _bin(OpType.MUL, d_left, node.right.copy()),
                         _bin(OpType.MUL, node.left.copy(), d_right))
        return _bin(OpType.DIV, numerator, _bin(OpType.MUL, node.right.copy(), node.right.copy()))

    def _pow_constant_exponent(self, node: BinaryOpNode, d_base: Node) -> Node:
        # c * L^(c-1) * dL
        c = node.right.value
        power = _bin(OpType.POW, node.left.copy(), _const(c - 1.0))
        return _bin(OpType.MUL, _bin(OpType.MUL, _const(c), power), d_base)

    def _pow_constant_base(self, node: BinaryOpNode, d_exponent: Node) -> Node:
        # a^R * ln(a) * dR
        a = node.left.value
        power = _bin(OpType.POW, _const(a), node.right.copy())
        return _bin(OpType.MUL, _bin(OpType.MUL, power, _un(OpType.LN, _const(a))), d_exponent)

    def _pow(self, node: BinaryOpNode, d_base: Node, d_exponent: Node) -> Node:
        # L^R * (dR * ln(L) + R * dL / L)
        base, exponent = node.left, node.right
        log_term = _bin(OpType.MUL, d_exponent, _un(OpType.LN, base.copy()))
        ratio_term = _bin(OpType.DIV, _bin(OpType.MUL, exponent.copy(), d_base), base.copy())
        return _bin(OpType.MUL,
                    _bin(OpType.POW, base.copy(), exponent.copy()),
                    _bin(OpType.ADD, log_term, ratio_term))

    def _log(self, node: BinaryOpNode, d_base: Node, d_argument: Node) -> Node:
        # log(b, a) = ln(a) / ln(b); d = ((da/a) * ln(b) - ln(a) * (db/b)) / ln(b)^2
        base, argument = node.left, node.right
        numerator = _bin(OpType.SUB,
                         _bin(OpType.MUL,
                              _bin(OpType.DIV, d_argument, argument.copy()),
                              _un(OpType.LN, base.copy())),
                         _bin(OpType.MUL,
                              _un(OpType.LN, argument.copy()),
                              _bin(OpType.DIV, d_base, base.copy())))
        denominator = _bin(OpType.MUL, _un(OpType.LN, base.copy()), _un(OpType.LN, base.copy()))
        return _bin(OpType.DIV, numerator, denominator)


def differentiate(expression: Expression, variable: str = 'x', order: int = 1,
                  simplify_steps: bool = False,
                  bindings: Optional[Mapping[str, float]] = None,
                  max_simplify_iterations: int = MAX_SIMPLIFY_ITERATIONS) -> Expression:
    """
    The `order`-th derivative of `expression` as a new Expression.

    Each order is derived from the previous one, which is released as soon as
    the next exists. With `simplify_steps` every intermediate is simplified
    before it is differentiated again, which keeps high orders small.
    """
    if order < 0:
        raise ValueError(f"Derivative order must be non-negative, got {order}")
    if order == 0 or expression.root is None:
        return expression.copy()

    differentiator = Differentiator(variable)
    current: Optional[Expression] = None
    try:
        for k in range(1, order + 1):
            source = expression.root if current is None else current.root
            result = Expression(differentiator.derivative(source))
            if simplify_steps:
                optimize(result, bindings, variable, max_simplify_iterations)
            if current is not None:
                current.release()
            current = result
            log_step(k, current.size())
    except UnknownOperationError:
        if current is not None:
            current.release()
        raise

    log_milestone(f"d^{order}/d{variable}^{order} built with {current.size()} nodes")
    return current

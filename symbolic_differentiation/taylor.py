"""
Taylor polynomial assembly.

Drives the differentiator, evaluator and simplifier once per order:

    T(v) = sum_{k=0..n} f^(k)(a) / k! * (v - a)^k
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Mapping, Optional

from .errors import DifferentiatorError
from .differentiation import Differentiator
from .expression_tree import Expression
from .expression_tree.core.node import Node
from .expression_tree.core.evaluator import evaluate_node
from .expression_tree.core.operators import OpType
from .expression_tree.optimization.memory_pool import get_global_pool
from .expression_tree.utils.simplifier import optimize, MAX_SIMPLIFY_ITERATIONS
from .logging_system import log_warning, log_milestone, log_step


@dataclass
class TaylorTerm:
    order: int                # k
    derivative_value: float   # f^(k)(point), NaN where undefined
    coefficient: float        # derivative_value / k!


class TaylorBuilder:
    """Builds the Taylor polynomial of an expression around `point`.

    Notes:
        - Derivative k is taken from derivative k-1, which is released
          right after, so only one derivative tree is alive at a time.
        - k! is accumulated as a running product.
        - Bindings other than `variable` are used when evaluating the
          derivatives; `variable` itself is bound to `point`.
    """

    def __init__(self, variable: str = 'x', point: float = 0.0, order: int = 1,
                 bindings: Optional[Mapping[str, float]] = None,
                 simplify_steps: bool = True,
                 max_simplify_iterations: int = MAX_SIMPLIFY_ITERATIONS):
        if order < 0:
            raise ValueError(f"Taylor order must be non-negative, got {order}")
        self.variable = variable
        self.point = float(point)
        self.order = order
        self.bindings = bindings
        self.simplify_steps = simplify_steps
        self.max_simplify_iterations = max_simplify_iterations
        self.terms: List[TaylorTerm] = []
        self.pool = get_global_pool()

    def _evaluation_bindings(self) -> dict:
        local = dict(self.bindings.items()) if self.bindings is not None else {}
        local[self.variable] = self.point
        return local

    def _term(self, k: int, coefficient: float) -> Node:
        if k == 0:
            return self.pool.get_constant_node(coefficient)
        shift = self.pool.get_binary_node(
            OpType.SUB, self.pool.get_variable_node(self.variable), self.pool.get_constant_node(self.point))
        power = self.pool.get_binary_node(OpType.POW, shift, self.pool.get_constant_node(float(k)))
        return self.pool.get_binary_node(OpType.MUL, self.pool.get_constant_node(coefficient), power)

    def build(self, expression: Expression) -> Expression:
        if expression.root is None:
            raise ValueError("Cannot build a Taylor polynomial of an empty expression")

        self.terms = []
        differentiator = Differentiator(self.variable)
        local = self._evaluation_bindings()
        factorial = 1.0
        derivative = expression.copy()
        polynomial = Expression()

        try:
            for k in range(self.order + 1):
                if k > 0:
                    factorial *= k
                    next_derivative = Expression(differentiator.derivative(derivative.root))
                    if self.simplify_steps:
                        optimize(next_derivative, self.bindings, self.variable, self.max_simplify_iterations)
                    derivative.release()
                    derivative = next_derivative
                    log_step(k, derivative.size(), "(Taylor)")

                value = evaluate_node(derivative.root, local)
                coefficient = value / factorial
                if math.isnan(value):
                    log_warning(f"Derivative of order {k} is undefined at {self.variable}={self.point:g}")
                self.terms.append(TaylorTerm(k, value, coefficient))

                term = self._term(k, coefficient)
                if polynomial.root is None:
                    polynomial.root = term
                else:
                    total = polynomial.root
                    polynomial.root = None
                    polynomial.root = self.pool.get_binary_node(OpType.ADD, total, term)
        except DifferentiatorError:
            polynomial.release()
            raise
        finally:
            derivative.release()

        optimize(polynomial, self.bindings, self.variable, self.max_simplify_iterations)
        log_milestone(f"Taylor polynomial of order {self.order} at {self.variable}={self.point:g} "
                      f"built with {polynomial.size()} nodes")
        return polynomial

    def coefficients(self) -> List[TaylorTerm]:
        return list(self.terms)


def build_taylor(expression: Expression, variable: str = 'x', point: float = 0.0, order: int = 1,
                 bindings: Optional[Mapping[str, float]] = None) -> Expression:
    """Taylor polynomial of `expression` around `point`, simplified"""
    return TaylorBuilder(variable, point, order, bindings).build(expression)

"""
Differentiation session: one parsed expression, its variable table and the
trees derived from it.
"""

import numpy as np
from typing import Dict, Mapping, Optional

from .differentiation import differentiate
from .expression_tree import Expression
from .expression_tree.core.evaluator import evaluate_node, evaluate_on_grid
from .expression_tree.utils.simplifier import optimize, MAX_SIMPLIFY_ITERATIONS
from .logging_system import LogLevel, set_log_level, log_info
from .parser import parse_expression
from .taylor import TaylorBuilder
from .variable_table import VariableTable


class DifferentiationSession:
    """
    Owns everything a single differentiation run needs.

    Derivatives are cached per order and simplified against the current
    bindings, so changing a variable drops the cache. A MissingBindingError
    from any evaluation is resolved by calling set_variable() and retrying.
    """

    def __init__(self, text: str, variable: str = 'x',
                 bindings: Optional[Mapping[str, float]] = None,
                 max_simplify_iterations: int = MAX_SIMPLIFY_ITERATIONS,
                 simplify_steps: bool = True,
                 log_level: Optional[LogLevel] = None):
        if log_level is not None:
            set_log_level(log_level)
        self.variable = variable
        self.max_simplify_iterations = max_simplify_iterations
        self.simplify_steps = simplify_steps
        self.variables = VariableTable.from_mapping(bindings)
        self.expression: Optional[Expression] = parse_expression(text)
        self._derivatives: Dict[int, Expression] = {}
        log_info(f"Session opened for '{text}' in variable '{variable}'")

    def _require_open(self) -> Expression:
        if self.expression is None:
            raise RuntimeError("Session is closed")
        return self.expression

    def _invalidate(self):
        for tree in self._derivatives.values():
            tree.release()
        self._derivatives.clear()

    def set_variable(self, name: str, value: float):
        self.variables.set(name, value)
        self._invalidate()

    def differentiate(self, order: int = 1) -> Expression:
        """Simplified derivative of the given order; owned by the session, do not release"""
        expression = self._require_open()
        cached = self._derivatives.get(order)
        if cached is not None:
            return cached

        result = differentiate(expression, self.variable, order,
                               simplify_steps=self.simplify_steps,
                               bindings=self.variables,
                               max_simplify_iterations=self.max_simplify_iterations)
        optimize(result, self.variables, self.variable, self.max_simplify_iterations)
        self._derivatives[order] = result
        return result

    def evaluate(self, extra_bindings: Optional[Mapping[str, float]] = None) -> float:
        bindings = self.variables
        if extra_bindings:
            bindings = self.variables.copy()
            bindings.update(extra_bindings)
        return evaluate_node(self._require_open().root, bindings)

    def evaluate_derivative(self, order: int, at: Optional[float] = None) -> float:
        bindings = self.variables
        if at is not None:
            bindings = self.variables.copy()
            bindings.set(self.variable, at)
        return evaluate_node(self.differentiate(order).root, bindings)

    def taylor(self, point: float, order: int) -> Expression:
        """New Taylor polynomial; the caller owns it"""
        builder = TaylorBuilder(self.variable, point, order, self.variables,
                                self.simplify_steps, self.max_simplify_iterations)
        return builder.build(self._require_open())

    def sample(self, x_min: float, x_max: float, n_points: int = 100,
               taylor_point: Optional[float] = None,
               taylor_order: Optional[int] = None,
               tangent_point: Optional[float] = None) -> Dict[str, np.ndarray]:
        """
        Function values on a uniform grid, plus optional overlays.

        Returns a dict with 'x' and 'function'. A Taylor point and order add
        'taylor'; a tangent point x0 adds 'tangent', the line
        f(x0) + f'(x0) * (x - x0). Undefined points are NaN.
        """
        if n_points < 2:
            raise ValueError("n_points must be at least 2")
        expression = self._require_open()
        grid = np.linspace(x_min, x_max, n_points)
        data = {
            'x': grid,
            'function': evaluate_on_grid(expression.root, self.variable, grid, self.variables),
        }
        if taylor_point is not None and taylor_order is not None:
            polynomial = self.taylor(taylor_point, taylor_order)
            try:
                data['taylor'] = evaluate_on_grid(polynomial.root, self.variable, grid, self.variables)
            finally:
                polynomial.release()
        if tangent_point is not None:
            value = self.evaluate({self.variable: tangent_point})
            slope = self.evaluate_derivative(1, at=tangent_point)
            data['tangent'] = value + slope * (grid - tangent_point)
        return data

    def close(self):
        self._invalidate()
        if self.expression is not None:
            self.expression.release()
            self.expression = None

    def __enter__(self) -> 'DifferentiationSession':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

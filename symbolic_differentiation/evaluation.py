"""
Numeric evaluation entry points for expressions and bare nodes.

Domain errors are NaN; an unbound variable raises MissingBindingError.
"""

import numpy as np
from typing import Iterable, Mapping, Optional, Union

from .expression_tree import Expression
from .expression_tree.core.node import Node
from .expression_tree.core.evaluator import evaluate_node, evaluate_on_grid

Evaluable = Union[Expression, Node]


def _root(target: Evaluable) -> Optional[Node]:
    if isinstance(target, Expression):
        return target.root
    return target


def evaluate(target: Evaluable, bindings: Optional[Mapping[str, float]] = None) -> float:
    return evaluate_node(_root(target), bindings)


def evaluate_grid(target: Evaluable, variable: str, values: Union[float, Iterable[float]],
                  bindings: Optional[Mapping[str, float]] = None) -> np.ndarray:
    return evaluate_on_grid(_root(target), variable, values, bindings)

"""Utilities for expression trees."""

from .simplifier import ExpressionSimplifier, optimize, MAX_SIMPLIFY_ITERATIONS
from .sympy_utils import SymPyChecker
from .validator import ExpressionValidator
from .tree_utils import (
    get_all_nodes, post_order_nodes, walk, calculate_tree_depth,
    contains_variable, get_variables, find_nodes_by_operator,
    is_number, structurally_equal, replace_subtree, detach_child
)

__all__ = [
    'ExpressionSimplifier', 'optimize', 'MAX_SIMPLIFY_ITERATIONS',
    'SymPyChecker', 'ExpressionValidator',
    'get_all_nodes', 'post_order_nodes', 'walk', 'calculate_tree_depth',
    'contains_variable', 'get_variables', 'find_nodes_by_operator',
    'is_number', 'structurally_equal', 'replace_subtree', 'detach_child'
]

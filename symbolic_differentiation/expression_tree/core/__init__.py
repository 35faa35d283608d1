"""Core expression tree components."""

from .node import Node, VariableNode, ConstantNode, BinaryOpNode, UnaryOpNode, format_number
from .operators import (
    NodeType, OpType, OperationInfo, OPERATIONS, FUNCTION_TABLE, INFIX_OPS, SYMBOL_TO_OP,
    EPSILON, match_function, resolve_operator,
    evaluate_binary_op, evaluate_unary_op
)
from .evaluator import evaluate_node, evaluate_on_grid

__all__ = [
    'Node', 'VariableNode', 'ConstantNode', 'BinaryOpNode', 'UnaryOpNode', 'format_number',
    'NodeType', 'OpType', 'OperationInfo', 'OPERATIONS', 'FUNCTION_TABLE', 'INFIX_OPS',
    'SYMBOL_TO_OP', 'EPSILON', 'match_function', 'resolve_operator',
    'evaluate_binary_op', 'evaluate_unary_op',
    'evaluate_node', 'evaluate_on_grid'
]

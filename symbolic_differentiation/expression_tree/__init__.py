"""Expression Tree Module

Node model, operation registry, node allocation and tree utilities.
"""

from .expression import Expression
from .core.node import (
    Node,
    VariableNode,
    ConstantNode,
    BinaryOpNode,
    UnaryOpNode
)
from .core.operators import (
    NodeType,
    OpType,
    OperationInfo,
    OPERATIONS,
    FUNCTION_TABLE,
    INFIX_OPS,
    EPSILON,
    evaluate_binary_op,
    evaluate_unary_op
)
from .core.evaluator import evaluate_node, evaluate_on_grid
from .optimization import NodePool, get_global_pool, clear_global_pool
from .utils import ExpressionSimplifier, ExpressionValidator, SymPyChecker, optimize, walk, structurally_equal

__all__ = [
    "Expression",
    "Node", "VariableNode", "ConstantNode", "BinaryOpNode", "UnaryOpNode",
    "NodeType", "OpType", "OperationInfo", "OPERATIONS", "FUNCTION_TABLE", "INFIX_OPS", "EPSILON",
    "evaluate_binary_op", "evaluate_unary_op", "evaluate_node", "evaluate_on_grid",
    "NodePool", "get_global_pool", "clear_global_pool",
    "ExpressionSimplifier", "ExpressionValidator", "SymPyChecker", "optimize", "walk",
    "structurally_equal"
]

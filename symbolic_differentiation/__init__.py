"""Symbolic Differentiation Package

Parses expressions over single-letter variables, differentiates them to any
order, simplifies, evaluates and builds Taylor polynomials.
"""

from .errors import (
  DifferentiatorError, ExpressionSyntaxError, UnknownOperationError,
  MissingBindingError, SimplifierNonTerminationWarning
)
from .logging_system import LogLevel, get_logger, set_log_level, configure_logging
from .expression_tree import (
  Expression, Node, VariableNode, ConstantNode,
  BinaryOpNode, UnaryOpNode, OpType, OPERATIONS,
  ExpressionSimplifier, ExpressionValidator, SymPyChecker, optimize, walk, structurally_equal,
  get_global_pool
)
from .variable_table import VariableTable
from .parser import ExpressionParser, parse_expression, MAX_PARSE_DEPTH
from .prefix_format import to_prefix, from_prefix
from .differentiation import Differentiator, differentiate
from .evaluation import evaluate, evaluate_grid
from .taylor import TaylorBuilder, TaylorTerm, build_taylor
from .session import DifferentiationSession

parse = parse_expression

__version__ = "0.1.0"
__all__ = [
  "DifferentiatorError", "ExpressionSyntaxError", "UnknownOperationError",
  "MissingBindingError", "SimplifierNonTerminationWarning",
  "LogLevel", "get_logger", "set_log_level", "configure_logging",
  "Expression", "Node", "VariableNode", "ConstantNode",
  "BinaryOpNode", "UnaryOpNode", "OpType", "OPERATIONS",
  "ExpressionSimplifier", "ExpressionValidator", "SymPyChecker",
  "optimize", "walk", "structurally_equal", "get_global_pool",
  "VariableTable",
  "ExpressionParser", "parse", "parse_expression", "MAX_PARSE_DEPTH",
  "to_prefix", "from_prefix",
  "Differentiator", "differentiate",
  "evaluate", "evaluate_grid",
  "TaylorBuilder", "TaylorTerm", "build_taylor",
  "DifferentiationSession"
]

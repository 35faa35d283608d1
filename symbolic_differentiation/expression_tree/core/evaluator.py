import numpy as np
from typing import Optional, Mapping, Iterable, Union
from .node import Node, VariableNode, ConstantNode, BinaryOpNode, UnaryOpNode
from .operators import OPERATIONS, resolve_operator, evaluate_binary_op, evaluate_unary_op
from ...errors import UnknownOperationError, MissingBindingError
from ...logging_system import log_critical


def _resolve(node: Node, arity: int):
  op_type = resolve_operator(node.operator)
  if op_type is None or OPERATIONS[op_type].arity != arity:
    log_critical(f"Evaluation hit unknown operation {node.operator!r}")
    raise UnknownOperationError(node.operator)
  return op_type


def _lookup(bindings, name: str) -> float:
  value = bindings.get(name) if bindings is not None else None
  if value is None:
    raise MissingBindingError(name)
  return float(value)


def evaluate_node(node: Node, bindings: Optional[Mapping[str, float]] = None) -> float:
  """
  Evaluate a subtree against variable bindings.

  Post-order walk with an explicit stack, so depth is bounded only by memory.
  Domain errors come back as NaN and propagate through ancestors; a variable
  without a binding raises MissingBindingError instead of blocking.
  """
  if node is None:
    raise ValueError("Cannot evaluate an empty expression")

  stack = [(node, False)]
  results = []
  while stack:
    current, expanded = stack.pop()
    if isinstance(current, ConstantNode):
      results.append(current.value)
    elif isinstance(current, VariableNode):
      results.append(_lookup(bindings, current.name))
    elif isinstance(current, BinaryOpNode):
      if not expanded:
        stack.append((current, True))
        stack.append((current.right, False))
        stack.append((current.left, False))
      else:
        op_type = _resolve(current, 2)
        right = results.pop()
        left = results.pop()
        results.append(float(evaluate_binary_op(left, right, op_type)))
    elif isinstance(current, UnaryOpNode):
      if not expanded:
        stack.append((current, True))
        stack.append((current.operand, False))
      else:
        op_type = _resolve(current, 1)
        results.append(float(evaluate_unary_op(results.pop(), op_type)))
    else:
      log_critical(f"Evaluation hit unknown node type {type(current).__name__}")
      raise UnknownOperationError(type(current).__name__, context="node type")

  return results[-1]


def evaluate_on_grid(node: Node, variable: str, values: Union[float, Iterable[float]],
                     bindings: Optional[Mapping[str, float]] = None) -> np.ndarray:
  """Evaluate `node` once per value of `variable` (a scalar counts as one value); other bindings are held fixed"""
  grid = np.atleast_1d(np.asarray(values, dtype=np.float64))
  local = dict(bindings.items()) if bindings is not None else {}
  out = np.empty(grid.shape[0], dtype=np.float64)
  for i, value in enumerate(grid):
    local[variable] = float(value)
    out[i] = evaluate_node(node, local)
  return out

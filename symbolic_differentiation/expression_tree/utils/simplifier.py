import math
import warnings
from typing import Optional, Mapping, TYPE_CHECKING
from ..core.node import Node, ConstantNode, BinaryOpNode, UnaryOpNode
from ..core.operators import OpType, EPSILON
from ..core.evaluator import evaluate_node
from ..optimization.memory_pool import get_global_pool
from .tree_utils import (
  post_order_nodes, contains_variable, is_number, structurally_equal,
  replace_subtree, detach_child
)
from ...errors import DifferentiatorError, SimplifierNonTerminationWarning
from ...logging_system import log_warning, log_debug

if TYPE_CHECKING:
  from ..expression import Expression

MAX_SIMPLIFY_ITERATIONS = 100


class ExpressionSimplifier:
  """
  In-place constant folding and algebraic rewriting, repeated to a fixpoint.

  Each iteration runs a post-order folding pass and then a post-order rewrite
  pass (at most one rule per node). A rewrite at a child can expose a new
  opportunity at its parent, hence the loop. Subtrees that cannot be folded or
  rewritten are left untouched; the simplifier never fails as a whole.
  """

  def __init__(self, variable: str = 'x', bindings: Optional[Mapping[str, float]] = None,
               max_iterations: int = MAX_SIMPLIFY_ITERATIONS, tolerance: float = EPSILON):
    self.variable = variable
    self.bindings = bindings
    self.max_iterations = max_iterations
    self.tolerance = tolerance
    self.iterations = 0
    self.pool = get_global_pool()

  def simplify(self, expression: 'Expression') -> bool:
    """Simplify `expression` in place; True if anything changed"""
    self.iterations = 0
    if expression.root is None:
      return False

    changed_any = False
    while self.iterations < self.max_iterations:
      self.iterations += 1
      changed = self._fold_constants(expression)
      changed = self._rewrite(expression) or changed
      if not changed:
        return changed_any
      changed_any = True

    message = (f"Simplifier stopped after {self.max_iterations} iterations "
               f"without reaching a fixpoint; keeping the last state")
    log_warning(message)
    warnings.warn(message, SimplifierNonTerminationWarning, stacklevel=2)
    return changed_any

  # Constant folding

  def _fold_constants(self, expression: 'Expression') -> bool:
    changed = False
    for node in post_order_nodes(expression.root):
      if not isinstance(node, (BinaryOpNode, UnaryOpNode)):
        continue
      if any(contains_variable(child, self.variable) for child in node.children()):
        continue
      value = self._try_evaluate(node)
      if value is None:
        continue
      replace_subtree(expression, node, self.pool.get_constant_node(value))
      changed = True
    return changed

  def _try_evaluate(self, node: Node) -> Optional[float]:
    try:
      value = evaluate_node(node, self.bindings)
    except DifferentiatorError as e:
      log_debug(f"Not folding {node.to_string()}: {e}")
      return None
    if not math.isfinite(value):
      return None
    return value

  # Algebraic rewriting

  def _rewrite(self, expression: 'Expression') -> bool:
    changed = False
    for node in post_order_nodes(expression.root):
      if not isinstance(node, BinaryOpNode):
        continue
      replacement = self._apply_rule(node)
      if replacement is not None:
        replace_subtree(expression, node, replacement)
        changed = True
    return changed

  def _zero(self, node: Optional[Node]) -> bool:
    return is_number(node, 0.0, self.tolerance)

  def _one(self, node: Optional[Node]) -> bool:
    return is_number(node, 1.0, self.tolerance)

  def _apply_rule(self, node: BinaryOpNode) -> Optional[Node]:
    """Replacement for `node` from the first matching rule, or None"""
    left, right = node.left, node.right
    op = node.operator

    if op == OpType.ADD:
      if self._zero(right):
        return detach_child(node, left)             # x + 0 = x
      if self._zero(left):
        return detach_child(node, right)            # 0 + x = x

    elif op == OpType.SUB:
      if self._zero(right):
        return detach_child(node, left)             # x - 0 = x
      if structurally_equal(left, right, self.tolerance):
        return self.pool.get_constant_node(0.0)     # x - x = 0

    elif op == OpType.MUL:
      if self._zero(left) or self._zero(right):
        return self.pool.get_constant_node(0.0)     # 0 * x = x * 0 = 0
      if self._one(left):
        return detach_child(node, right)            # 1 * x = x
      if self._one(right):
        return detach_child(node, left)             # x * 1 = x

    elif op == OpType.DIV:
      if self._one(right):
        return detach_child(node, left)             # x / 1 = x
      if (self._zero(left) and not self._zero(right)
          and not contains_variable(right, self.variable)):
        return self.pool.get_constant_node(0.0)     # 0 / x = 0

    elif op == OpType.POW:
      if self._zero(right):
        return self.pool.get_constant_node(1.0)     # x ^ 0 = 1, 0 ^ 0 included
      if self._one(right):
        return detach_child(node, left)             # x ^ 1 = x
      if self._one(left):
        return self.pool.get_constant_node(1.0)     # 1 ^ x = 1
      if self._zero(left) and isinstance(right, ConstantNode) and right.value > 0:
        return self.pool.get_constant_node(0.0)     # 0 ^ c = 0 for c > 0

    return None


def optimize(expression: 'Expression', bindings: Optional[Mapping[str, float]] = None,
             variable: str = 'x', max_iterations: int = MAX_SIMPLIFY_ITERATIONS) -> bool:
  """Fold constants and apply algebraic identities to `expression` in place"""
  return ExpressionSimplifier(variable, bindings, max_iterations).simplify(expression)

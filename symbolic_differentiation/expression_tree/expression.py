from typing import Optional, Mapping, Set
import sympy as sp
from .core.node import Node
from .core.operators import EPSILON
from .core.evaluator import evaluate_node
from .optimization.memory_pool import get_global_pool
from .utils.tree_utils import structurally_equal, calculate_tree_depth, get_variables


class Expression:
  """
  An expression tree: owns exactly one root node (None for an empty tree).

  Destroying the tree with release() returns every node to the pool. Trees
  never share nodes; copy() is the only way to reuse a subexpression.
  """

  __slots__ = ('_root',)

  def __init__(self, root: Optional[Node] = None):
    self._root = None
    self.root = root

  @property
  def root(self) -> Optional[Node]:
    return self._root

  @root.setter
  def root(self, node: Optional[Node]):
    if node is not None and node.parent is not None:
      raise ValueError("Root node must not have a parent; detach or copy() it first")
    self._root = node

  @classmethod
  def parse(cls, text: str) -> 'Expression':
    from ..parser import parse_expression
    return parse_expression(text)

  @classmethod
  def from_prefix(cls, text: str) -> 'Expression':
    from ..prefix_format import from_prefix
    return from_prefix(text)

  def to_prefix(self) -> str:
    from ..prefix_format import to_prefix
    return to_prefix(self)

  def to_string(self) -> str:
    if self._root is None:
      return ''
    return self._root.to_string()

  def copy(self) -> 'Expression':
    if self._root is None:
      return Expression()
    return Expression(self._root.copy())

  def release(self):
    """Destroy the tree; the expression is empty afterwards"""
    root = self._root
    self._root = None
    get_global_pool().release_tree(root)

  def evaluate(self, bindings: Optional[Mapping[str, float]] = None) -> float:
    return evaluate_node(self._root, bindings)

  def differentiate(self, variable: str = 'x', order: int = 1) -> 'Expression':
    """New expression holding the `order`-th derivative; this tree is not modified"""
    from ..differentiation import differentiate
    return differentiate(self, variable, order)

  def optimize(self, bindings: Optional[Mapping[str, float]] = None, variable: str = 'x') -> bool:
    """Simplify in place; True if the tree changed"""
    from .utils.simplifier import optimize
    return optimize(self, bindings, variable)

  def validate(self) -> bool:
    from .utils.validator import ExpressionValidator
    return ExpressionValidator.is_valid_expression(self._root)

  def size(self) -> int:
    """Node count"""
    if self._root is None:
      return 0
    return self._root.size()

  def depth(self) -> int:
    return calculate_tree_depth(self._root)

  def variables(self) -> Set[str]:
    return get_variables(self._root)

  def to_sympy(self) -> sp.Expr:
    if self._root is None:
      raise ValueError("Cannot convert an empty expression")
    return self._root.to_sympy()

  def equals(self, other: 'Expression', tolerance: float = EPSILON) -> bool:
    return structurally_equal(self._root, other._root, tolerance)

  def __eq__(self, other) -> bool:
    if not isinstance(other, Expression):
      return NotImplemented
    return self.equals(other)

  __hash__ = None

  def __str__(self) -> str:
    return self.to_string()

  def __repr__(self) -> str:
    return f"Expression({self.to_string()!r})"

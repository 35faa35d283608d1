import math
import string
import sympy as sp
from abc import ABC, abstractmethod
from typing import Optional, List
from .operators import NodeType, OpType, OPERATIONS
from ..optimization.memory_pool import get_global_pool


def format_number(value: float) -> str:
  """Shortest exact text for a literal; integral values drop the '.0'"""
  if math.isfinite(value) and value.is_integer() and abs(value) < 1e16:
    return str(int(value))
  return repr(float(value))


def is_variable_name(name) -> bool:
  return isinstance(name, str) and len(name) == 1 and name in string.ascii_letters


class Node(ABC):
  """Base node. `parent` is a non-owning back-reference kept in sync by the child setters."""

  __slots__ = ('parent',)

  node_type: NodeType

  def __init__(self):
    self.parent: Optional['Node'] = None

  @abstractmethod
  def _render(self, parts: List[str]) -> str:
    """Infix text of this node given the rendered text of each slot in `_slots()`"""
    pass

  @abstractmethod
  def _copy_from(self, copies: dict) -> 'Node':
    """Copy of this node alone, wired to the already copied children in `copies` (keyed by id)"""
    pass

  @abstractmethod
  def to_sympy(self) -> sp.Expr:
    pass

  def children(self) -> List['Node']:
    return []

  def _slots(self) -> tuple:
    """Child slots in order, empty ones included as None"""
    return ()

  def replace_child(self, old: 'Node', new: Optional['Node']):
    raise ValueError(f"{type(self).__name__} has no children")

  def _clear_links(self):
    self.parent = None

  def _adopt(self, current: Optional['Node'], child: Optional['Node']) -> Optional['Node']:
    """Claim ownership of `child` for a slot currently holding `current`"""
    if child is None or child is current:
      return child
    if child.parent is not None:
      raise ValueError("Node already belongs to another tree position; use copy()")
    if child is self:
      raise ValueError("A node cannot be its own child")
    if current is not None:
      current.parent = None
    child.parent = self
    return child

  def copy(self) -> 'Node':
    """Deep copy built children-first with an explicit stack; the new root has no parent"""
    copies = {}
    stack = [(self, False)]
    while stack:
      node, expanded = stack.pop()
      children = node.children()
      if expanded or not children:
        copies[id(node)] = node._copy_from(copies)
      else:
        stack.append((node, True))
        stack.extend((child, False) for child in children)
    return copies[id(self)]

  def to_string(self) -> str:
    rendered: List[str] = []
    stack = [(self, False)]
    while stack:
      node, expanded = stack.pop()
      if node is None:
        rendered.append('nil')
        continue
      slots = node._slots()
      if slots and not expanded:
        stack.append((node, True))
        stack.extend((child, False) for child in reversed(slots))
        continue
      split = len(rendered) - len(slots)
      parts = rendered[split:]
      del rendered[split:]
      rendered.append(node._render(parts))
    return rendered[0]

  def size(self) -> int:
    count = 0
    stack = [self]
    while stack:
      node = stack.pop()
      count += 1
      stack.extend(node.children())
    return count

  def contains_variable(self, name: str) -> bool:
    stack = [self]
    while stack:
      node = stack.pop()
      if isinstance(node, VariableNode) and node.name == name:
        return True
      stack.extend(node.children())
    return False

  def __str__(self) -> str:
    return self.to_string()

  def __repr__(self) -> str:
    return f"{type(self).__name__}({self.to_string()})"


class VariableNode(Node):
  __slots__ = ('name',)

  node_type = NodeType.VARIABLE

  def __init__(self, name: str):
    super().__init__()
    if not is_variable_name(name):
      raise ValueError(f"Variable name must be a single ASCII letter, got {name!r}")
    self.name = name

  def _render(self, parts: List[str]) -> str:
    return self.name

  def _copy_from(self, copies: dict) -> 'VariableNode':
    return get_global_pool().get_variable_node(self.name)

  def to_sympy(self):
    return sp.Symbol(self.name)


class ConstantNode(Node):
  __slots__ = ('value',)

  node_type = NodeType.NUMBER

  def __init__(self, value: float):
    super().__init__()
    self.value = float(value)

  def _render(self, parts: List[str]) -> str:
    # The grammar has no unary minus and no nan/inf literals: NaN is written as
    # 0 / 0 (division by zero evaluates to NaN), infinity as an overflowing 1e999
    if math.isnan(self.value):
      return "(0 / 0)"
    magnitude = "1e999" if math.isinf(self.value) else format_number(abs(self.value))
    if self.value < 0:
      return f"(0 - {magnitude})"
    return magnitude

  def _copy_from(self, copies: dict) -> 'ConstantNode':
    return get_global_pool().get_constant_node(self.value)

  def to_sympy(self):
    if self.value.is_integer():
      return sp.Integer(int(self.value))
    return sp.Float(self.value)


class BinaryOpNode(Node):
  """Infix operator or two-argument function; for `log` the left child is the base."""

  __slots__ = ('operator', '_left', '_right')

  node_type = NodeType.OPERATION

  def __init__(self, operator: OpType, left: Optional[Node], right: Optional[Node]):
    super().__init__()
    self.operator = operator
    self._left = None
    self._right = None
    self.left = left
    self.right = right

  @property
  def left(self) -> Optional[Node]:
    return self._left

  @left.setter
  def left(self, node: Optional[Node]):
    self._left = self._adopt(self._left, node)

  @property
  def right(self) -> Optional[Node]:
    return self._right

  @right.setter
  def right(self, node: Optional[Node]):
    self._right = self._adopt(self._right, node)

  def children(self) -> List[Node]:
    return [child for child in (self._left, self._right) if child is not None]

  def replace_child(self, old: Node, new: Optional[Node]):
    if old is None:
      raise ValueError("Cannot replace an empty slot")
    if self._left is old:
      self._left = None
      old.parent = None
      self.left = new
    elif self._right is old:
      self._right = None
      old.parent = None
      self.right = new
    else:
      raise ValueError("Node is not a child of this node")

  def _clear_links(self):
    self.parent = None
    self._left = None
    self._right = None

  def _slots(self) -> tuple:
    return (self._left, self._right)

  def _render(self, parts: List[str]) -> str:
    info = OPERATIONS.get(self.operator)
    symbol = info.symbol if info is not None else f"<op {self.operator}>"
    left, right = parts
    if info is not None and info.is_function:
      return f"{symbol}({left}, {right})"
    return f"({left} {symbol} {right})"

  def _copy_from(self, copies: dict) -> 'BinaryOpNode':
    left = copies[id(self._left)] if self._left is not None else None
    right = copies[id(self._right)] if self._right is not None else None
    return get_global_pool().get_binary_node(self.operator, left, right)

  def to_sympy(self):
    left = self._left.to_sympy()
    right = self._right.to_sympy()
    if self.operator == OpType.ADD:
      return sp.Add(left, right)
    elif self.operator == OpType.SUB:
      return sp.Add(left, sp.Mul(-1, right))
    elif self.operator == OpType.MUL:
      return sp.Mul(left, right)
    elif self.operator == OpType.DIV:
      return sp.Mul(left, sp.Pow(right, -1))
    elif self.operator == OpType.POW:
      return sp.Pow(left, right)
    elif self.operator == OpType.LOG:
      return sp.log(right) / sp.log(left)
    else:
      raise RuntimeWarning(f"to_sympy reached unexpected binary operation: {self.operator}")


_SYMPY_FUNCTIONS = {
  OpType.SIN: sp.sin,
  OpType.COS: sp.cos,
  OpType.TAN: sp.tan,
  OpType.COT: sp.cot,
  OpType.SINH: sp.sinh,
  OpType.COSH: sp.cosh,
  OpType.ARCSIN: sp.asin,
  OpType.ARCCOS: sp.acos,
  OpType.ARCTAN: sp.atan,
  OpType.ARCCOT: sp.acot,
  OpType.ARSINH: sp.asinh,
  OpType.ARCCOSH: sp.acosh,
  OpType.ARTANH: sp.atanh,
  OpType.LN: sp.log,
}


class UnaryOpNode(Node):
  """One-argument function; the operand occupies the left slot in the prefix format."""

  __slots__ = ('operator', '_operand')

  node_type = NodeType.OPERATION

  def __init__(self, operator: OpType, operand: Optional[Node]):
    super().__init__()
    self.operator = operator
    self._operand = None
    self.operand = operand

  @property
  def operand(self) -> Optional[Node]:
    return self._operand

  @operand.setter
  def operand(self, node: Optional[Node]):
    self._operand = self._adopt(self._operand, node)

  def children(self) -> List[Node]:
    return [self._operand] if self._operand is not None else []

  def replace_child(self, old: Node, new: Optional[Node]):
    if old is None or self._operand is not old:
      raise ValueError("Node is not a child of this node")
    self._operand = None
    old.parent = None
    self.operand = new

  def _clear_links(self):
    self.parent = None
    self._operand = None

  def _slots(self) -> tuple:
    return (self._operand,)

  def _render(self, parts: List[str]) -> str:
    info = OPERATIONS.get(self.operator)
    symbol = info.symbol if info is not None else f"<op {self.operator}>"
    return f"{symbol}({parts[0]})"

  def _copy_from(self, copies: dict) -> 'UnaryOpNode':
    operand = copies[id(self._operand)] if self._operand is not None else None
    return get_global_pool().get_unary_node(self.operator, operand)

  def to_sympy(self):
    function = _SYMPY_FUNCTIONS.get(self.operator)
    if function is None:
      raise RuntimeWarning(f"to_sympy reached unexpected unary operation: {self.operator}")
    return function(self._operand.to_sympy())

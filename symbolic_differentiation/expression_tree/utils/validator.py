from typing import List, Optional
from ..core.node import Node, ConstantNode, BinaryOpNode, UnaryOpNode, VariableNode, is_variable_name
from ..core.operators import OPERATIONS, resolve_operator


class ExpressionValidator:
  """Checks the strict-tree invariants: single ownership, consistent parent links, correct arity."""

  @staticmethod
  def is_valid_expression(node: Optional[Node]) -> bool:
    return not ExpressionValidator.find_violations(node)

  @staticmethod
  def find_violations(node: Optional[Node]) -> List[str]:
    if node is None:
      return []

    violations = []
    if node.parent is not None:
      violations.append("root has a parent")

    seen = set()
    stack = [node]
    while stack:
      current = stack.pop()
      if id(current) in seen:
        violations.append(f"node {current!r} is reachable twice")
        continue
      seen.add(id(current))
      violations.extend(ExpressionValidator._check_node(current))
      for child in current.children():
        if child.parent is not current:
          violations.append(f"child {child!r} of {current!r} has a stale parent link")
        stack.append(child)

    return violations

  @staticmethod
  def _check_node(node: Node) -> List[str]:
    if isinstance(node, ConstantNode):
      return []

    elif isinstance(node, VariableNode):
      if not is_variable_name(node.name):
        return [f"invalid variable name {node.name!r}"]
      return []

    elif isinstance(node, (BinaryOpNode, UnaryOpNode)):
      op_type = resolve_operator(node.operator)
      if op_type is None:
        return [f"unknown operation {node.operator!r}"]
      arity = OPERATIONS[op_type].arity
      if isinstance(node, BinaryOpNode):
        if arity != 2:
          return [f"{OPERATIONS[op_type].symbol} takes {arity} argument(s), stored as binary"]
        if node.left is None or node.right is None:
          return [f"{OPERATIONS[op_type].symbol} is missing an operand"]
      else:
        if arity != 1:
          return [f"{OPERATIONS[op_type].symbol} takes {arity} argument(s), stored as unary"]
        if node.operand is None:
          return [f"{OPERATIONS[op_type].symbol} is missing its argument"]
      return []

    return [f"unknown node type {type(node).__name__}"]

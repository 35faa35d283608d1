"""
Prefix persistence format.

Every node is written as ``( VALUE LEFT RIGHT )`` and an absent child as
``nil``; a one-argument function keeps its argument in the LEFT slot:

    ( + ( x nil nil ) ( sin ( x nil nil ) nil ) )

Numbers are written with full float precision, so reading a written tree
gives back a structurally identical tree.
"""

import re
from typing import List, Optional, Tuple, Union

from .errors import ExpressionSyntaxError
from .expression_tree import Expression
from .expression_tree.core.node import (
    Node, BinaryOpNode, UnaryOpNode, format_number, is_variable_name
)
from .expression_tree.core.operators import NodeType, OPERATIONS, SYMBOL_TO_OP, resolve_operator
from .expression_tree.optimization.memory_pool import get_global_pool
from .logging_system import log_warning

NIL = 'nil'

_TOKEN_PATTERN = re.compile(r'\(|\)|[^\s()]+')


def _value_text(node: Node) -> str:
    if node.node_type is NodeType.NUMBER:
        return format_number(node.value)
    if node.node_type is NodeType.VARIABLE:
        return node.name
    op_type = resolve_operator(node.operator)
    if op_type is None:
        raise ValueError(f"Cannot serialize unknown operation {node.operator!r}")
    return OPERATIONS[op_type].symbol


def _slots(node: Node) -> Tuple[Optional[Node], Optional[Node]]:
    if isinstance(node, BinaryOpNode):
        return node.left, node.right
    if isinstance(node, UnaryOpNode):
        return node.operand, None
    return None, None


def node_to_prefix(node: Optional[Node]) -> str:
    parts: List[str] = []
    pending: List[Union[Node, str, None]] = [node]
    while pending:
        item = pending.pop()
        if item is None:
            parts.append(NIL)
        elif isinstance(item, str):
            parts.append(item)
        else:
            left, right = _slots(item)
            parts.append(f"( {_value_text(item)}")
            pending.extend((')', right, left))
    return ' '.join(parts)


def to_prefix(expression: Expression) -> str:
    return node_to_prefix(expression.root)


class PrefixReader:
    """Reads the prefix format back into nodes, releasing partial trees on error"""

    def __init__(self, text: str):
        self.text = text
        self.tokens: List[Tuple[str, int]] = [(m.group(0), m.start()) for m in _TOKEN_PATTERN.finditer(text)]
        self.index = 0
        self.pool = get_global_pool()

    def _error(self, message: str) -> ExpressionSyntaxError:
        position = self.tokens[self.index][1] if self.index < len(self.tokens) else len(self.text)
        return ExpressionSyntaxError(message, position, self.text)

    def _next(self) -> str:
        if self.index >= len(self.tokens):
            raise self._error("Unexpected end of tree text")
        token = self.tokens[self.index][0]
        self.index += 1
        return token

    def read(self) -> Expression:
        try:
            root = self._read_tree()
            if self.index != len(self.tokens):
                self.pool.release_tree(root)
                raise self._error(f"Unexpected token {self.tokens[self.index][0]!r} after tree")
        except ExpressionSyntaxError as e:
            log_warning(f"Malformed tree text: {e.message} at position {e.position}")
            raise
        return Expression(root)

    def _read_tree(self) -> Optional[Node]:
        # One frame per open '(': its value token and the children read so far
        frames: List[Tuple[str, List[Optional[Node]]]] = []
        try:
            while True:
                token = self._next()
                if token == '(':
                    frames.append((self._next(), []))
                    continue
                if token != NIL:
                    self.index -= 1
                    raise self._error(f"Expected '(' or 'nil', found {token!r}")

                node = None
                while frames:
                    value_token, slots = frames[-1]
                    slots.append(node)
                    if len(slots) < 2:
                        break
                    # _build leaves the children in the frame when it fails
                    node = self._build(value_token, slots[0], slots[1])
                    frames.pop()
                    if self.index >= len(self.tokens) or self.tokens[self.index][0] != ')':
                        self.pool.release_tree(node)
                        raise self._error("Expected ')'")
                    self.index += 1
                else:
                    return node
        except ExpressionSyntaxError:
            for _, slots in frames:
                for child in slots:
                    self.pool.release_tree(child)
            raise

    def _build(self, token: str, left: Optional[Node], right: Optional[Node]) -> Node:
        if token in ('(', ')'):
            raise self._error(f"Expected a node value, found {token!r}")

        op_type = SYMBOL_TO_OP.get(token)
        if op_type is not None:
            arity = OPERATIONS[op_type].arity
            if arity == 2:
                if left is None or right is None:
                    raise self._error(f"'{token}' needs two operands")
                return self.pool.get_binary_node(op_type, left, right)
            if left is None or right is not None:
                raise self._error(f"'{token}' needs exactly one operand in the left slot")
            return self.pool.get_unary_node(op_type, left)

        if left is not None or right is not None:
            raise self._error(f"Leaf {token!r} cannot have children")

        if is_variable_name(token):
            return self.pool.get_variable_node(token)
        try:
            return self.pool.get_constant_node(float(token))
        except ValueError:
            raise self._error(f"Unrecognized node value {token!r}") from None


def from_prefix(text: str) -> Expression:
    """Parse the prefix format; raises ExpressionSyntaxError on malformed input"""
    return PrefixReader(text).read()

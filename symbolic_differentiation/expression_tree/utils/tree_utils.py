"""
Tree Utility Functions

Traversal, comparison and relinking helpers shared by the parser,
differentiator, simplifier and any read-only presentation layer.
"""

import math
from typing import List, Set, Optional, Callable, TYPE_CHECKING

from ..core.node import Node, BinaryOpNode, UnaryOpNode, ConstantNode, VariableNode
from ..core.operators import EPSILON
from ..optimization.memory_pool import get_global_pool

if TYPE_CHECKING:
    from ..expression import Expression


def get_all_nodes(node: Optional[Node], traversal_order: str = 'breadth_first') -> List[Node]:
    """
    Get all nodes in the tree using specified traversal order.

    Args:
        node: Root node of the tree
        traversal_order: 'breadth_first' (default), 'depth_first' or 'post_order'

    Returns:
        List of all nodes in the tree
    """
    if node is None:
        return []
    if traversal_order == 'breadth_first':
        return _breadth_first_traversal(node)
    elif traversal_order == 'depth_first':
        return _depth_first_traversal(node)
    elif traversal_order == 'post_order':
        return post_order_nodes(node)
    else:
        raise ValueError(f"Invalid traversal_order: {traversal_order}")


def _breadth_first_traversal(node: Node) -> List[Node]:
    """Breadth-first traversal (iterative)"""
    nodes_to_visit = [node]
    all_nodes = []
    index = 0

    while index < len(nodes_to_visit):
        current_node = nodes_to_visit[index]
        index += 1
        all_nodes.append(current_node)
        nodes_to_visit.extend(current_node.children())

    return all_nodes


def _depth_first_traversal(node: Node) -> List[Node]:
    """Pre-order depth-first traversal (iterative)"""
    stack = [node]
    nodes = []

    while stack:
        current_node = stack.pop()
        nodes.append(current_node)
        stack.extend(reversed(current_node.children()))

    return nodes


def post_order_nodes(node: Optional[Node]) -> List[Node]:
    """Children before parents, left before right (iterative)"""
    if node is None:
        return []
    stack = [node]
    reversed_order = []

    while stack:
        current_node = stack.pop()
        reversed_order.append(current_node)
        stack.extend(current_node.children())

    reversed_order.reverse()
    return reversed_order


def walk(node: Optional[Node], visitor: Callable[[Node, int], None], order: str = 'pre'):
    """
    Read-only visitor for presentation layers.

    Args:
        node: Root node of the tree
        visitor: Called as visitor(node, depth); must not modify the tree
        order: 'pre' (parent first) or 'post' (children first)
    """
    if node is None:
        return
    if order not in ('pre', 'post'):
        raise ValueError(f"Invalid order: {order}")

    stack = [(node, 0, False)]
    while stack:
        current_node, depth, expanded = stack.pop()
        if order == 'pre':
            visitor(current_node, depth)
            for child in reversed(current_node.children()):
                stack.append((child, depth + 1, False))
        elif expanded:
            visitor(current_node, depth)
        else:
            stack.append((current_node, depth, True))
            for child in reversed(current_node.children()):
                stack.append((child, depth + 1, False))


def calculate_tree_depth(node: Optional[Node]) -> int:
    """
    Calculate the maximum depth of the tree.

    Args:
        node: Root node of the tree

    Returns:
        Maximum depth (leaf nodes have depth 1, empty tree 0)
    """
    if node is None:
        return 0
    max_depth = 0
    stack = [(node, 1)]
    while stack:
        current_node, depth = stack.pop()
        max_depth = max(max_depth, depth)
        for child in current_node.children():
            stack.append((child, depth + 1))
    return max_depth


def contains_variable(node: Optional[Node], name: str) -> bool:
    """True if any leaf of the subtree is the variable `name`"""
    if node is None:
        return False
    stack = [node]
    while stack:
        current_node = stack.pop()
        if isinstance(current_node, VariableNode):
            if current_node.name == name:
                return True
        else:
            stack.extend(current_node.children())
    return False


def get_variables(node: Optional[Node]) -> Set[str]:
    """Names of all variables used in the subtree"""
    return {n.name for n in get_all_nodes(node) if isinstance(n, VariableNode)}


def find_nodes_by_operator(node: Optional[Node], operator) -> List[Node]:
    """
    Find all operation nodes with a specific operation code.

    Args:
        node: Root node of the tree
        operator: OpType to search for

    Returns:
        List of nodes with the specified operator
    """
    return [n for n in get_all_nodes(node)
            if isinstance(n, (BinaryOpNode, UnaryOpNode)) and n.operator == operator]


def is_number(node: Optional[Node], value: float, tolerance: float = EPSILON) -> bool:
    """True if `node` is a numeric literal within `tolerance` of `value`"""
    return isinstance(node, ConstantNode) and abs(node.value - value) < tolerance


def structurally_equal(a: Optional[Node], b: Optional[Node], tolerance: float = EPSILON) -> bool:
    """
    Semantic tree equality.

    Numbers compare with an absolute tolerance, variables by name, operations
    by code plus recursive equality of their children.
    """
    stack = [(a, b)]
    while stack:
        left, right = stack.pop()
        if left is None or right is None:
            if left is not right:
                return False
            continue
        if type(left) is not type(right):
            return False
        if isinstance(left, ConstantNode):
            if math.isnan(left.value) and math.isnan(right.value):
                continue
            if left.value != right.value and not abs(left.value - right.value) < tolerance:
                return False
        elif isinstance(left, VariableNode):
            if left.name != right.name:
                return False
        elif isinstance(left, BinaryOpNode):
            if left.operator != right.operator:
                return False
            stack.append((left.left, right.left))
            stack.append((left.right, right.right))
        elif isinstance(left, UnaryOpNode):
            if left.operator != right.operator:
                return False
            stack.append((left.operand, right.operand))
        else:
            return False
    return True


def replace_subtree(expression: 'Expression', target: Node, replacement: Node):
    """
    Put `replacement` where `target` is and destroy `target`'s subtree.

    Relinks the parent's child slot, or the expression root when `target` is
    the root. `replacement` must be detached (no parent).
    """
    parent = target.parent
    if parent is None:
        if expression.root is not target:
            raise ValueError("Target is neither the root nor attached to a parent")
        expression.root = replacement
    else:
        parent.replace_child(target, replacement)
    get_global_pool().release_tree(target)


def detach_child(node: Node, child: Node) -> Node:
    """Unlink `child` from `node` so it can be moved elsewhere without copying"""
    node.replace_child(child, None)
    return child

from typing import Dict, List, TYPE_CHECKING, Optional
import threading

if TYPE_CHECKING:
  from ..core.node import Node, VariableNode, ConstantNode, BinaryOpNode, UnaryOpNode


def _node_classes():
  # Deferred: core.node imports this module for get_global_pool
  from ..core.node import VariableNode, ConstantNode, BinaryOpNode, UnaryOpNode
  return (('variable', VariableNode), ('constant', ConstantNode),
          ('binary', BinaryOpNode), ('unary', UnaryOpNode))


class NodePool:
  """
  Recycling allocator for tree nodes.

  Every node of every tree is handed out by one of the get_*_node methods and
  comes back through release_tree() when its tree is destroyed. Released nodes
  are kept on a per-kind free list, capped at `max_pooled` each, and
  re-initialised in place on the next request.
  """

  def __init__(self, initial_size: int = 400, max_pooled: int = 500):
    self.max_pooled = max_pooled
    self.released_count = 0
    self._kinds = _node_classes()
    self._free: Dict[type, List['Node']] = {cls: [] for _, cls in self._kinds}

    per_kind = initial_size // len(self._kinds)
    for _, cls in self._kinds:
      self._free[cls].extend(cls.__new__(cls) for _ in range(per_kind))

  def _acquire(self, cls, *args):
    free = self._free[cls]
    if not free:
      return cls(*args)
    node = free.pop()
    node.__init__(*args)
    return node

  def get_variable_node(self, name: str) -> 'VariableNode':
    return self._acquire(self._kinds[0][1], name)

  def get_constant_node(self, value: float) -> 'ConstantNode':
    return self._acquire(self._kinds[1][1], value)

  def get_binary_node(self, operator, left: 'Node', right: 'Node') -> 'BinaryOpNode':
    return self._acquire(self._kinds[2][1], operator, left, right)

  def get_unary_node(self, operator, operand: 'Node') -> 'UnaryOpNode':
    return self._acquire(self._kinds[3][1], operator, operand)

  def return_node(self, node: 'Node'):
    """Take back one node that no longer has parent or children"""
    free = self._free.get(type(node))
    if free is not None and len(free) < self.max_pooled:
      free.append(node)

  def release_tree(self, node: Optional['Node']):
    """
    Destroy a subtree. The root is first cut out of its parent's slot, then
    each node is unlinked and recycled. The released nodes must not be used
    again by the caller.
    """
    if node is None:
      return
    owner = node.parent
    if owner is not None:
      owner.replace_child(node, None)

    pending = [node]
    while pending:
      current = pending.pop()
      pending.extend(current.children())
      current._clear_links()
      self.return_node(current)
      self.released_count += 1

  def get_stats(self) -> dict:
    stats = {f"{label}_pool_size": len(self._free[cls]) for label, cls in self._kinds}
    stats['released_count'] = self.released_count
    return stats

  def clear(self):
    for free in self._free.values():
      free.clear()


_GLOBAL_POOL: Optional[NodePool] = None
_POOL_LOCK = threading.Lock()


def get_global_pool() -> NodePool:
  """Shared pool used by the parser, differentiator and simplifier"""
  global _GLOBAL_POOL
  pool = _GLOBAL_POOL
  if pool is None:
    with _POOL_LOCK:
      if _GLOBAL_POOL is None:
        _GLOBAL_POOL = NodePool()
      pool = _GLOBAL_POOL
  return pool


def clear_global_pool():
  """Forget the shared pool; a fresh one is built on next use"""
  global _GLOBAL_POOL
  with _POOL_LOCK:
    old, _GLOBAL_POOL = _GLOBAL_POOL, None
  if old is not None:
    old.clear()

"""
Variable table: single-letter name -> float, scoped to one session.
"""

import numpy as np
from typing import Dict, Iterator, List, Mapping, Optional, Tuple

from .errors import MissingBindingError
from .expression_tree.core.node import is_variable_name


class VariableTable:
    """
    Append-only mapping from variable name to value.

    Setting an existing name overwrites its value. Values live in a float64
    array whose capacity doubles when full.
    """

    def __init__(self, initial_capacity: int = 4):
        if initial_capacity < 1:
            raise ValueError("initial_capacity must be positive")
        self._names: List[str] = []
        self._index: Dict[str, int] = {}
        self._values = np.empty(initial_capacity, dtype=np.float64)

    @classmethod
    def from_mapping(cls, mapping: Optional[Mapping[str, float]] = None) -> 'VariableTable':
        table = cls()
        if mapping:
            table.update(mapping)
        return table

    @property
    def capacity(self) -> int:
        return int(self._values.shape[0])

    def _grow(self):
        grown = np.empty(self.capacity * 2, dtype=np.float64)
        grown[:len(self._names)] = self._values[:len(self._names)]
        self._values = grown

    def set(self, name: str, value: float):
        if not is_variable_name(name):
            raise ValueError(f"Variable name must be a single ASCII letter, got {name!r}")
        index = self._index.get(name)
        if index is None:
            if len(self._names) == self.capacity:
                self._grow()
            index = len(self._names)
            self._names.append(name)
            self._index[name] = index
        self._values[index] = float(value)

    def update(self, mapping: Mapping[str, float]):
        for name, value in mapping.items():
            self.set(name, value)

    def get(self, name: str, default: Optional[float] = None) -> Optional[float]:
        index = self._index.get(name)
        if index is None:
            return default
        return float(self._values[index])

    def __getitem__(self, name: str) -> float:
        value = self.get(name)
        if value is None:
            raise MissingBindingError(name)
        return value

    def __setitem__(self, name: str, value: float):
        self.set(name, value)

    def __contains__(self, name) -> bool:
        return name in self._index

    def __len__(self) -> int:
        return len(self._names)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._names))

    def items(self) -> List[Tuple[str, float]]:
        return [(name, float(self._values[i])) for i, name in enumerate(self._names)]

    def as_dict(self) -> Dict[str, float]:
        return dict(self.items())

    def copy(self) -> 'VariableTable':
        table = VariableTable(self.capacity)
        table._names = list(self._names)
        table._index = dict(self._index)
        table._values = self._values.copy()
        return table

    def __repr__(self) -> str:
        pairs = ", ".join(f"{name}={value:g}" for name, value in self.items())
        return f"VariableTable({pairs})"

import sympy as sp
import numpy as np
from typing import Dict, Any, Iterable, Mapping, Optional, TYPE_CHECKING

if TYPE_CHECKING:
  from ..expression import Expression


class SymPyChecker:
  """Independent SymPy oracle for derivatives produced by the tree engine"""

  def __init__(self, tolerance: float = 1e-8):
    self.tolerance = tolerance

  def to_sympy(self, expression: 'Expression') -> sp.Expr:
    return expression.to_sympy()

  def reference_derivative(self, expression: 'Expression', variable: str, order: int = 1) -> sp.Expr:
    """Derivative computed by SymPy from the same tree"""
    sympy_expr = self.to_sympy(expression)
    if order == 0:
      return sympy_expr
    return sp.diff(sympy_expr, sp.Symbol(variable), order)

  def compare_derivative(self, expression: 'Expression', derivative: 'Expression', variable: str,
                         order: int, points: Iterable[float],
                         bindings: Optional[Mapping[str, float]] = None) -> Dict[str, Any]:
    """
    Evaluate our derivative and SymPy's at each point.

    Returns:
        Dict with both value arrays, the max absolute error over points where
        both are finite, and whether that error is within tolerance
    """
    fixed = dict(bindings.items()) if bindings is not None else {}
    reference = self.reference_derivative(expression, variable, order)
    reference = reference.subs({sp.Symbol(name): value for name, value in fixed.items() if name != variable})
    reference_func = sp.lambdify(sp.Symbol(variable), reference, modules='numpy')

    grid = np.asarray(list(points), dtype=np.float64)
    ours = np.array([derivative.evaluate({**fixed, variable: float(x)}) for x in grid])
    with np.errstate(all='ignore'):
      theirs = np.broadcast_to(np.asarray(reference_func(grid), dtype=np.float64), grid.shape)

    mask = np.isfinite(ours) & np.isfinite(theirs)
    max_error = float(np.max(np.abs(ours[mask] - theirs[mask]))) if mask.any() else 0.0
    return {
      'ours': ours,
      'reference': np.array(theirs),
      'max_error': max_error,
      'compared_points': int(mask.sum()),
      'matches': bool(mask.any()) and max_error <= self.tolerance
    }

  def simplifies_to_zero(self, expression: 'Expression', derivative: 'Expression',
                         variable: str, order: int = 1) -> bool:
    """Symbolic check: our derivative minus SymPy's simplifies to 0"""
    difference = self.to_sympy(derivative) - self.reference_derivative(expression, variable, order)
    return sp.simplify(difference) == 0

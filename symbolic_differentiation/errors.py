"""
Error taxonomy for the differentiation engine.

Parsing and differentiation fail fast by raising; numeric domain problems are
not errors at all (they evaluate to NaN), and simplifier non-termination is a
warning because the partially simplified tree is still usable.
"""

from typing import Optional


class DifferentiatorError(Exception):
    """Base class for every error raised by this package"""


class ExpressionSyntaxError(DifferentiatorError, ValueError):
    """Malformed expression text; carries the offending cursor position"""

    def __init__(self, message: str, position: int, text: Optional[str] = None):
        self.message = message
        self.position = position
        self.text = text
        super().__init__(self._format())

    def _format(self) -> str:
        if self.text is None:
            return f"{self.message} at position {self.position}"
        return (f"{self.message} at position {self.position}\n"
                f"  {self.text}\n"
                f"  {' ' * self.position}^")


class UnknownOperationError(DifferentiatorError):
    """An operation code has no evaluation or derivative rule"""

    def __init__(self, operator, context: str = "operation"):
        self.operator = operator
        self.context = context
        super().__init__(f"Unknown {context}: {operator!r}")


class MissingBindingError(DifferentiatorError, LookupError):
    """A variable was evaluated without a value bound to it"""

    def __init__(self, variable: str):
        self.variable = variable
        super().__init__(f"No value bound for variable '{variable}'")


class SimplifierNonTerminationWarning(RuntimeWarning):
    """Simplifier reached its iteration cap before a fixpoint"""

import math
import numba
from enum import IntEnum
from types import MappingProxyType
from typing import NamedTuple, Optional

# Absolute tolerance for literal comparisons and near-zero denominators
EPSILON = 1e-10


class NodeType(IntEnum):
  NUMBER = 0
  VARIABLE = 1
  OPERATION = 2


class OpType(IntEnum):
  # Infix ops
  ADD = 0
  SUB = 1
  MUL = 2
  DIV = 3
  POW = 4
  # Two-argument function
  LOG = 5
  # One-argument functions
  SIN = 6
  COS = 7
  TAN = 8
  COT = 9
  SINH = 10
  COSH = 11
  ARCSIN = 12
  ARCCOS = 13
  ARCTAN = 14
  ARCCOT = 15
  ARSINH = 16
  ARCCOSH = 17
  ARTANH = 18
  LN = 19


class OperationInfo(NamedTuple):
  op_type: OpType
  symbol: str
  arity: int
  is_function: bool
  latex: str


# Declaration order matters: the parser takes the first function whose symbol
# is a literal prefix of the input, so 'sinh' must precede 'sin' and
# 'arccosh' must precede 'arccos'.
_DECLARATIONS = (
  OperationInfo(OpType.ADD,     '+',       2, False, '{0} + {1}'),
  OperationInfo(OpType.SUB,     '-',       2, False, '{0} - {1}'),
  OperationInfo(OpType.MUL,     '*',       2, False, '{0} \\cdot {1}'),
  OperationInfo(OpType.DIV,     '/',       2, False, '\\frac{{{0}}}{{{1}}}'),
  OperationInfo(OpType.POW,     '^',       2, False, '{0}^{{{1}}}'),
  OperationInfo(OpType.LOG,     'log',     2, True,  '\\log_{{{0}}}{{{1}}}'),
  OperationInfo(OpType.LN,      'ln',      1, True,  '\\ln {0}'),
  OperationInfo(OpType.SINH,    'sinh',    1, True,  '\\sinh {0}'),
  OperationInfo(OpType.COSH,    'cosh',    1, True,  '\\cosh {0}'),
  OperationInfo(OpType.SIN,     'sin',     1, True,  '\\sin {0}'),
  OperationInfo(OpType.COS,     'cos',     1, True,  '\\cos {0}'),
  OperationInfo(OpType.TAN,     'tan',     1, True,  '\\tan {0}'),
  OperationInfo(OpType.COT,     'cot',     1, True,  '\\cot {0}'),
  OperationInfo(OpType.ARCSIN,  'arcsin',  1, True,  '\\arcsin {0}'),
  OperationInfo(OpType.ARCCOSH, 'arccosh', 1, True,  '\\operatorname{{arccosh}} {0}'),
  OperationInfo(OpType.ARCCOS,  'arccos',  1, True,  '\\arccos {0}'),
  OperationInfo(OpType.ARCTAN,  'arctan',  1, True,  '\\arctan {0}'),
  OperationInfo(OpType.ARCCOT,  'arccot',  1, True,  '\\operatorname{{arccot}} {0}'),
  OperationInfo(OpType.ARSINH,  'arsinh',  1, True,  '\\operatorname{{arsinh}} {0}'),
  OperationInfo(OpType.ARTANH,  'artanh',  1, True,  '\\operatorname{{artanh}} {0}'),
)

# Registry: OpType -> OperationInfo, immutable after import
OPERATIONS = MappingProxyType({info.op_type: info for info in _DECLARATIONS})

# Named functions in declaration order, for prefix matching in the parser
FUNCTION_TABLE = tuple(info for info in _DECLARATIONS if info.is_function)

# Single-character infix operators
INFIX_OPS = MappingProxyType({info.symbol: info.op_type for info in _DECLARATIONS if not info.is_function})

# Every symbol (infix or function) -> OpType, used by the prefix reader
SYMBOL_TO_OP = MappingProxyType({info.symbol: info.op_type for info in _DECLARATIONS})


def match_function(text: str, position: int) -> Optional[OperationInfo]:
  """First function in declaration order whose symbol starts at `position`"""
  for info in FUNCTION_TABLE:
    if text.startswith(info.symbol, position):
      return info
  return None


def resolve_operator(operator) -> Optional[OpType]:
  """Map a raw operation code to OpType, None if it is not registered"""
  try:
    return OpType(operator)
  except (ValueError, TypeError):
    return None


@numba.njit(cache=True)
def evaluate_binary_op(left_val, right_val, op_type):
  if op_type == OpType.ADD:
    return left_val + right_val
  elif op_type == OpType.SUB:
    return left_val - right_val
  elif op_type == OpType.MUL:
    return left_val * right_val
  elif op_type == OpType.DIV:
    if abs(right_val) < EPSILON:
      return math.nan
    return left_val / right_val
  elif op_type == OpType.POW:
    if math.isnan(left_val) or math.isnan(right_val):
      return math.nan
    if left_val < 0.0 and math.floor(right_val) != right_val:
      return math.nan
    if left_val == 0.0 and right_val < 0.0:
      return math.nan
    return left_val ** right_val
  elif op_type == OpType.LOG:
    # log(base, argument)
    if left_val <= 0.0 or right_val <= 0.0 or abs(left_val - 1.0) < EPSILON:
      return math.nan
    return math.log(right_val) / math.log(left_val)
  return math.nan


@numba.njit(cache=True)
def evaluate_unary_op(operand_val, op_type):
  if math.isnan(operand_val):
    return math.nan
  if op_type == OpType.SIN:
    return math.sin(operand_val)
  elif op_type == OpType.COS:
    return math.cos(operand_val)
  elif op_type == OpType.TAN:
    return math.tan(operand_val)
  elif op_type == OpType.COT:
    tangent = math.tan(operand_val)
    if abs(tangent) < EPSILON:
      return math.nan
    return 1.0 / tangent
  elif op_type == OpType.SINH:
    return math.sinh(operand_val)
  elif op_type == OpType.COSH:
    return math.cosh(operand_val)
  elif op_type == OpType.ARCSIN:
    if operand_val < -1.0 or operand_val > 1.0:
      return math.nan
    return math.asin(operand_val)
  elif op_type == OpType.ARCCOS:
    if operand_val < -1.0 or operand_val > 1.0:
      return math.nan
    return math.acos(operand_val)
  elif op_type == OpType.ARCTAN:
    return math.atan(operand_val)
  elif op_type == OpType.ARCCOT:
    # Principal value in (0, pi), continuous at zero
    return 0.5 * math.pi - math.atan(operand_val)
  elif op_type == OpType.ARSINH:
    return math.asinh(operand_val)
  elif op_type == OpType.ARCCOSH:
    if operand_val < 1.0:
      return math.nan
    return math.acosh(operand_val)
  elif op_type == OpType.ARTANH:
    if operand_val <= -1.0 or operand_val >= 1.0:
      return math.nan
    return math.atanh(operand_val)
  elif op_type == OpType.LN:
    if operand_val <= 0.0:
      return math.nan
    return math.log(operand_val)
  return math.nan

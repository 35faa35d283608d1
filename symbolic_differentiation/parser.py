"""
Recursive-descent parser for infix expressions.

Grammar, lowest to highest precedence ('^' is right-associative):

    Grammar      := Expr END
    Expr         := Term (('+' | '-') Term)*
    Term         := Pow (('*' | '/') Pow)*
    Pow          := Primary ('^' Pow)?
    Primary      := FunctionCall | '(' Expr ')' | Number | Variable
    FunctionCall := Name '(' Expr (',' Expr)? ')'

Function names are matched by literal prefix against the operation table in
declaration order. A variable is exactly one ASCII letter.
"""

import re
import string
from contextlib import contextmanager
from typing import Optional

from .errors import ExpressionSyntaxError
from .expression_tree import Expression
from .expression_tree.core.node import Node
from .expression_tree.core.operators import OpType, INFIX_OPS, OperationInfo, match_function
from .expression_tree.optimization.memory_pool import get_global_pool
from .logging_system import log_warning, log_debug

MAX_PARSE_DEPTH = 100

_NUMBER_PATTERN = re.compile(r'(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?')


class ExpressionParser:
    """
    Turns expression text into an Expression.

    Any failure raises ExpressionSyntaxError. Partial subtrees built before
    the failure are released to the node pool on the way out, so a caller
    never receives (or has to free) a half-built tree.
    """

    def __init__(self, max_depth: int = MAX_PARSE_DEPTH):
        self.max_depth = max_depth
        self.pool = get_global_pool()
        self._text = ''
        self._pos = 0
        self._depth = 0

    def parse(self, text: str) -> Expression:
        self._text = text
        self._pos = 0
        self._depth = 0
        try:
            root = self._grammar()
        except ExpressionSyntaxError as e:
            log_warning(f"Syntax error: {e.message} at position {e.position}")
            raise
        log_debug(f"Parsed '{text}' into {root.size()} nodes")
        return Expression(root)

    # Cursor helpers

    def _peek(self) -> str:
        if self._pos < len(self._text):
            return self._text[self._pos]
        return ''

    def _skip_spaces(self):
        while self._pos < len(self._text) and self._text[self._pos].isspace():
            self._pos += 1

    def _error(self, message: str) -> ExpressionSyntaxError:
        return ExpressionSyntaxError(message, self._pos, self._text)

    def _unexpected(self) -> ExpressionSyntaxError:
        char = self._peek()
        if not char:
            return self._error("Unexpected end of expression")
        return self._error(f"Unexpected character {char!r}")

    def _expect(self, char: str, *partial: Optional[Node]):
        self._skip_spaces()
        if self._peek() != char:
            for node in partial:
                self.pool.release_tree(node)
            if not self._peek():
                raise self._error(f"Expected '{char}' but reached end of expression")
            raise self._error(f"Expected '{char}' but found {self._peek()!r}")
        self._pos += 1

    @contextmanager
    def _nested(self):
        self._depth += 1
        try:
            if self._depth > self.max_depth:
                raise self._error(f"Expression nested deeper than {self.max_depth} levels")
            yield
        finally:
            self._depth -= 1

    # Grammar rules

    def _grammar(self) -> Node:
        node = self._expression()
        self._skip_spaces()
        if self._pos != len(self._text):
            self.pool.release_tree(node)
            raise self._unexpected()
        return node

    def _binary_chain(self, operand_rule, symbols: str) -> Node:
        node = operand_rule()
        self._skip_spaces()
        while self._peek() and self._peek() in symbols:
            op = INFIX_OPS[self._peek()]
            self._pos += 1
            try:
                right = operand_rule()
            except ExpressionSyntaxError:
                self.pool.release_tree(node)
                raise
            node = self.pool.get_binary_node(op, node, right)
            self._skip_spaces()
        return node

    def _expression(self) -> Node:
        with self._nested():
            return self._binary_chain(self._term, '+-')

    def _term(self) -> Node:
        return self._binary_chain(self._pow, '*/')

    def _pow(self) -> Node:
        node = self._primary()
        self._skip_spaces()
        if self._peek() == '^':
            self._pos += 1
            try:
                with self._nested():
                    exponent = self._pow()
            except ExpressionSyntaxError:
                self.pool.release_tree(node)
                raise
            node = self.pool.get_binary_node(OpType.POW, node, exponent)
        return node

    def _primary(self) -> Node:
        self._skip_spaces()

        info = match_function(self._text, self._pos)
        if info is not None:
            return self._function_call(info)

        char = self._peek()
        if char == '(':
            self._pos += 1
            node = self._expression()
            self._expect(')', node)
            return node

        if char and char in string.ascii_letters:
            self._pos += 1
            return self.pool.get_variable_node(char)

        match = _NUMBER_PATTERN.match(self._text, self._pos)
        if match:
            self._pos = match.end()
            return self.pool.get_constant_node(float(match.group(0)))

        raise self._unexpected()

    def _function_call(self, info: OperationInfo) -> Node:
        self._pos += len(info.symbol)
        self._expect('(')

        first = self._expression()
        if info.arity == 1:
            self._expect(')', first)
            return self.pool.get_unary_node(info.op_type, first)

        self._expect(',', first)
        try:
            second = self._expression()
        except ExpressionSyntaxError:
            self.pool.release_tree(first)
            raise
        self._expect(')', first, second)
        return self.pool.get_binary_node(info.op_type, first, second)


def parse_expression(text: str, max_depth: int = MAX_PARSE_DEPTH) -> Expression:
    """Parse infix text; raises ExpressionSyntaxError on malformed input"""
    return ExpressionParser(max_depth).parse(text)

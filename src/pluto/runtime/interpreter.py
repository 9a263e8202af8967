"""
Tree-walking interpreter for Pluto.

Evaluates AST nodes directly against a chain of scopes. Every statement
evaluates to a Value; an action call without local assignments returns the
value of the last statement it executed.
"""

import logging
import math
import sys
from dataclasses import dataclass, field
from typing import List, Optional, TextIO

from .values import (
    Value, ValueKind, ABSENT,
    number_val, string_val, bool_val, array_val, record_val, callable_val,
    values_equal, format_value, type_name,
)
from .context import Scope, ActionFrame
from .builtins import (
    BuiltinError, BuiltinArityError, get_builtin_registry,
)

from ..ast import (
    Program, Statement, Assignment, ExpressionStatement, ActionDefinition,
    Conditional, ForEach, WhileLoop, Block,
    Expression, Literal, Identifier, BinaryOp, UnaryOp,
    Call, MemberAccess, ArrayLiteral,
)
from ..errors import (
    UndefinedVariableError,
    error_undefined_variable,
    error_not_callable,
    error_type_mismatch,
    error_arity,
    error_iteration_limit,
    error_recursion_depth,
)
from ..tokens import SourceSpan, TokenType


logger = logging.getLogger(__name__)

DEFAULT_MAX_ITERATIONS = 10000

_OPERATOR_TEXT = {
    TokenType.PLUS: "+",
    TokenType.MINUS: "-",
    TokenType.STAR: "*",
    TokenType.SLASH: "/",
    TokenType.PERCENT: "%",
    TokenType.LT: "<",
    TokenType.GT: ">",
    TokenType.LE: "<=",
    TokenType.GE: ">=",
}


@dataclass(eq=False)
class Action:
    """A user-defined callable and the scope it was defined in."""
    name: str
    parameters: List[str]
    body: Block
    closure: Scope
    source_lines: List[str] = field(default_factory=list)  # for error excerpts

    def __str__(self) -> str:
        return f"<action {self.name}>"


class Interpreter:
    """
    Tree-walking interpreter for Pluto programs.

    One interpreter owns one global scope. Bindings made by a program stay
    in that scope and are visible to later programs run on the same
    instance.
    """

    def __init__(self, max_iterations: int = DEFAULT_MAX_ITERATIONS,
                 output: Optional[TextIO] = None):
        """
        Initialize the interpreter.

        Args:
            max_iterations: Ceiling for loop iterations. 'each' stops
                silently at the ceiling, 'as' raises IterationLimitError.
            output: Stream for print/log output (default: sys.stdout)
        """
        if isinstance(max_iterations, bool) or not isinstance(max_iterations, int) or max_iterations < 1:
            raise ValueError(f"max_iterations must be a positive integer, got {max_iterations!r}")
        self.max_iterations = max_iterations
        self.output = output
        self.globals = Scope(name="global")
        self._source_lines: List[str] = []

        for func in get_builtin_registry().functions():
            self.globals.define(func.name, callable_val(func))

    def write(self, text: str) -> None:
        """Write console output for print/log."""
        stream = self.output if self.output is not None else sys.stdout
        stream.write(text)

    def execute(self, program: Program, source: Optional[str] = None) -> Value:
        """
        Run a program in the global scope.

        Args:
            program: The parsed program
            source: Original source code for error messages

        Returns:
            The value of the last top-level statement, or ABSENT
        """
        self._source_lines = source.splitlines() if source else []
        logger.debug("executing %d top-level statement(s)", len(program.statements))
        try:
            return self._execute_statements(program.statements, self.globals, None)
        except RecursionError as exc:
            raise error_recursion_depth() from exc

    def call_value(self, callee: Value, args: List[Value],
                   span: Optional[SourceSpan] = None,
                   description: Optional[str] = None) -> Value:
        """Invoke a callable value with already-evaluated arguments."""
        if callee.kind != ValueKind.CALLABLE:
            if description is None:
                description = format_value(callee, True)
            raise error_not_callable(description, type_name(callee), span,
                                     self._source_line(span))

        fn = callee.data
        if isinstance(fn, Action):
            return self._call_action(fn, args)

        try:
            return fn(self, args)
        except BuiltinArityError as exc:
            raise error_arity(exc.message, span, self._source_line(span)) from exc
        except BuiltinError as exc:
            raise error_type_mismatch(exc.message, span, self._source_line(span)) from exc

    def _source_line(self, span: Optional[SourceSpan]) -> Optional[str]:
        if span is None:
            return None
        line = span.start.line
        if 1 <= line <= len(self._source_lines):
            return self._source_lines[line - 1]
        return None

    def _type_error(self, message: str, span: SourceSpan):
        return error_type_mismatch(message, span, self._source_line(span))

    # =========================================================================
    # Statements
    # =========================================================================

    def _execute_statements(self, statements: List[Statement], scope: Scope,
                            frame: Optional[ActionFrame]) -> Value:
        """Execute statements in order; the last one's value is the result."""
        result = ABSENT
        for stmt in statements:
            result = self._execute_statement(stmt, scope, frame)
        return result

    def _execute_statement(self, stmt: Statement, scope: Scope,
                           frame: Optional[ActionFrame]) -> Value:
        """Execute a statement."""
        if isinstance(stmt, Assignment):
            return self._execute_assignment(stmt, scope, frame)
        elif isinstance(stmt, ExpressionStatement):
            return self._evaluate(stmt.expression, scope)
        elif isinstance(stmt, ActionDefinition):
            return self._execute_action_definition(stmt, scope)
        elif isinstance(stmt, Conditional):
            return self._execute_conditional(stmt, scope, frame)
        elif isinstance(stmt, ForEach):
            return self._execute_for_each(stmt, scope, frame)
        elif isinstance(stmt, WhileLoop):
            return self._execute_while(stmt, scope, frame)
        elif isinstance(stmt, Block):
            return self._execute_statements(stmt.statements, scope, frame)
        else:
            raise RuntimeError(f"Unknown statement type: {type(stmt).__name__}")

    def _execute_assignment(self, stmt: Assignment, scope: Scope,
                            frame: Optional[ActionFrame]) -> Value:
        """
        Bind a name.

        A name unknown to the whole chain is defined in the current scope.
        Otherwise the nearest scope holding it is updated, except that
        inside an action the walk stops at the call scope: names reached
        there are bound locally and recorded for the implicit return, so
        an action never rebinds names outside its own call.
        """
        value = self._evaluate(stmt.value, scope)
        name = stmt.name

        if not scope.has(name):
            scope.define(name, value)
            if frame is not None and scope is frame.scope:
                frame.record(name)
            return value

        if frame is None:
            scope.set(name, value)
            return value

        # Inside an action: update the nearest holder below the call scope,
        # otherwise bind in the call scope itself
        target = scope
        while target is not frame.scope and not target.has_local(name):
            target = target.parent
        target.define(name, value)
        if target is frame.scope:
            frame.record(name)
        return value

    def _execute_action_definition(self, stmt: ActionDefinition, scope: Scope) -> Value:
        """Bind an action in the current scope, capturing that scope."""
        action = callable_val(Action(stmt.name, list(stmt.parameters), stmt.body, scope,
                                     self._source_lines))
        scope.define(stmt.name, action)
        return action

    def _execute_conditional(self, stmt: Conditional, scope: Scope,
                             frame: Optional[ActionFrame]) -> Value:
        """Execute a check statement. Branches share the enclosing scope."""
        condition = self._evaluate(stmt.condition, scope)
        if condition.is_truthy():
            return self._execute_statements(stmt.consequent.statements, scope, frame)
        if stmt.alternate is not None:
            return self._execute_statements(stmt.alternate.statements, scope, frame)
        return ABSENT

    def _execute_for_each(self, stmt: ForEach, scope: Scope,
                          frame: Optional[ActionFrame]) -> Value:
        """Execute an each loop, one fresh scope per iteration."""
        iterable = self._evaluate(stmt.iterable, scope)
        if iterable.kind != ValueKind.ARRAY:
            raise self._type_error(
                f"each expects an Array, got {type_name(iterable)}", stmt.iterable.span
            )

        items = iterable.data
        count = len(items)
        if count > self.max_iterations:
            logger.debug("each over %d items stopped at the iteration ceiling (%d)",
                         count, self.max_iterations)
            count = self.max_iterations

        result = ABSENT
        for i in range(count):
            iteration_scope = scope.child("each")
            iteration_scope.define(stmt.variable, items[i])
            result = self._execute_statements(stmt.body.statements, iteration_scope, frame)
        return result

    def _execute_while(self, stmt: WhileLoop, scope: Scope,
                       frame: Optional[ActionFrame]) -> Value:
        """Execute an as loop directly in the enclosing scope."""
        iterations = 0
        result = ABSENT
        while self._evaluate(stmt.condition, scope).is_truthy():
            if iterations >= self.max_iterations:
                raise error_iteration_limit(self.max_iterations, stmt.span,
                                            self._source_line(stmt.span))
            iterations += 1
            result = self._execute_statements(stmt.body.statements, scope, frame)
        return result

    def _call_action(self, action: Action, args: List[Value]) -> Value:
        """
        Invoke a user action.

        Missing arguments bind to ABSENT and surplus ones are ignored. The
        result follows the implicit-return rule: the single locally
        assigned name's value, a record of all of them when there are
        several, or the last statement's value when there are none.
        """
        call_scope = action.closure.child(f"action:{action.name}")
        for i, param in enumerate(action.parameters):
            call_scope.define(param, args[i] if i < len(args) else ABSENT)

        logger.debug("calling action %s with %d argument(s)", action.name, len(args))
        frame = ActionFrame(call_scope, list(action.parameters))

        # Error excerpts come from the source the action was defined in
        caller_lines = self._source_lines
        self._source_lines = action.source_lines
        try:
            last = self._execute_statements(action.body.statements, call_scope, frame)
        finally:
            self._source_lines = caller_lines

        if len(frame.assigned) == 1:
            return call_scope.variables[frame.assigned[0]]
        if frame.assigned:
            return record_val({name: call_scope.variables[name] for name in frame.assigned})
        return last

    # =========================================================================
    # Expressions
    # =========================================================================

    def _evaluate(self, expr: Expression, scope: Scope) -> Value:
        """Evaluate an expression to produce a Value."""
        if isinstance(expr, Literal):
            return self._eval_literal(expr)
        elif isinstance(expr, Identifier):
            return self._eval_identifier(expr, scope)
        elif isinstance(expr, BinaryOp):
            return self._eval_binary_op(expr, scope)
        elif isinstance(expr, UnaryOp):
            return self._eval_unary_op(expr, scope)
        elif isinstance(expr, Call):
            return self._eval_call(expr, scope)
        elif isinstance(expr, MemberAccess):
            return self._eval_member_access(expr, scope)
        elif isinstance(expr, ArrayLiteral):
            return array_val([self._evaluate(e, scope) for e in expr.elements])
        else:
            raise RuntimeError(f"Unknown expression type: {type(expr).__name__}")

    def _eval_literal(self, lit: Literal) -> Value:
        """Evaluate a literal value."""
        if lit.literal_type == TokenType.NUMBER:
            return number_val(lit.value)
        elif lit.literal_type == TokenType.STRING:
            return string_val(lit.value)
        elif lit.literal_type == TokenType.BOOLEAN:
            return bool_val(lit.value)
        else:
            raise RuntimeError(f"Unknown literal type: {lit.literal_type}")

    def _eval_identifier(self, ident: Identifier, scope: Scope) -> Value:
        """Evaluate an identifier (variable lookup)."""
        try:
            return scope.get(ident.name)
        except UndefinedVariableError:
            raise error_undefined_variable(
                ident.name, ident.span, self._source_line(ident.span)
            ) from None

    def _eval_binary_op(self, op: BinaryOp, scope: Scope) -> Value:
        """Evaluate a binary operation. Both operands are always evaluated."""
        left = self._evaluate(op.left, scope)
        right = self._evaluate(op.right, scope)
        operator = op.operator

        # Logical operators do not short-circuit
        if operator == TokenType.AND:
            return bool_val(left.is_truthy() and right.is_truthy())
        if operator == TokenType.OR:
            return bool_val(left.is_truthy() or right.is_truthy())

        if operator == TokenType.EQ:
            return bool_val(values_equal(left, right))
        if operator == TokenType.NE:
            return bool_val(not values_equal(left, right))

        if operator == TokenType.PLUS and (left.kind == ValueKind.STRING or
                                           right.kind == ValueKind.STRING):
            return string_val(format_value(left) + format_value(right))

        if operator in (TokenType.LT, TokenType.GT, TokenType.LE, TokenType.GE):
            return self._compare(op, left, right)

        if left.kind != ValueKind.NUMBER or right.kind != ValueKind.NUMBER:
            raise self._type_error(
                f"unsupported operand kinds for {_OPERATOR_TEXT[operator]}: "
                f"{type_name(left)} and {type_name(right)}",
                op.span
            )

        a, b = left.data, right.data
        if operator == TokenType.PLUS:
            return number_val(a + b)
        elif operator == TokenType.MINUS:
            return number_val(a - b)
        elif operator == TokenType.STAR:
            return number_val(a * b)
        elif operator == TokenType.SLASH:
            return number_val(_divide(a, b))
        elif operator == TokenType.PERCENT:
            return number_val(_remainder(a, b))
        else:
            raise RuntimeError(f"Unknown binary operator: {operator}")

    def _compare(self, op: BinaryOp, left: Value, right: Value) -> Value:
        """Ordering on two Numbers or two Strings."""
        if left.kind != right.kind or left.kind not in (ValueKind.NUMBER, ValueKind.STRING):
            raise self._type_error(
                f"cannot compare {type_name(left)} and {type_name(right)} "
                f"with {_OPERATOR_TEXT[op.operator]}",
                op.span
            )
        a, b = left.data, right.data
        if op.operator == TokenType.LT:
            return bool_val(a < b)
        elif op.operator == TokenType.GT:
            return bool_val(a > b)
        elif op.operator == TokenType.LE:
            return bool_val(a <= b)
        return bool_val(a >= b)

    def _eval_unary_op(self, op: UnaryOp, scope: Scope) -> Value:
        """Evaluate a unary operation."""
        operand = self._evaluate(op.operand, scope)

        if op.operator == TokenType.MINUS:
            if operand.kind != ValueKind.NUMBER:
                raise self._type_error(
                    f"cannot negate {type_name(operand)}", op.span
                )
            return number_val(-operand.data)
        elif op.operator == TokenType.NOT:
            return bool_val(not operand.is_truthy())
        else:
            raise RuntimeError(f"Unknown unary operator: {op.operator}")

    def _eval_call(self, call: Call, scope: Scope) -> Value:
        """Evaluate a call. The callee first, then arguments left to right."""
        callee = self._evaluate(call.callee, scope)
        args = [self._evaluate(arg, scope) for arg in call.arguments]
        return self.call_value(callee, args, call.span, _describe(call.callee))

    def _eval_member_access(self, access: MemberAccess, scope: Scope) -> Value:
        """Evaluate obj.name or obj[index]. Missing members give ABSENT."""
        obj = self._evaluate(access.object, scope)

        if access.computed:
            key = self._evaluate(access.property, scope)
        else:
            key = string_val(access.property)

        if obj.kind == ValueKind.ABSENT:
            raise self._type_error(
                f"cannot read member {format_value(key, True)} of absent", access.span
            )

        if obj.kind in (ValueKind.ARRAY, ValueKind.STRING):
            if key.kind == ValueKind.STRING:
                if key.data == "length":
                    return number_val(len(obj.data))
                return ABSENT
            if key.kind != ValueKind.NUMBER:
                return ABSENT
            index = key.data
            if not index.is_integer() or index < 0 or index >= len(obj.data):
                return ABSENT
            item = obj.data[int(index)]
            return string_val(item) if obj.kind == ValueKind.STRING else item

        if obj.kind == ValueKind.RECORD:
            field_name = key.data if key.kind == ValueKind.STRING else format_value(key)
            return obj.data.get(field_name, ABSENT)

        return ABSENT


def _callee_name(expr: Expression) -> Optional[str]:
    if isinstance(expr, Identifier):
        return expr.name
    if isinstance(expr, MemberAccess) and not expr.computed:
        owner = _callee_name(expr.object)
        if owner is not None:
            return f"{owner}.{expr.property}"
    return None


def _describe(expr: Expression) -> str:
    """Name a callee expression for error messages."""
    name = _callee_name(expr)
    return f"'{name}'" if name is not None else "expression"


def _divide(a: float, b: float) -> float:
    """IEEE-754 division: zero divisors give infinities or NaN."""
    if b == 0:
        if a == 0 or math.isnan(a):
            return math.nan
        return math.copysign(math.inf, a) * math.copysign(1.0, b)
    return a / b


def _remainder(a: float, b: float) -> float:
    """Truncated remainder with the sign of the dividend."""
    if b == 0 or math.isinf(a) or math.isnan(a) or math.isnan(b):
        return math.nan
    return math.fmod(a, b)

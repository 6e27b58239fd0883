"""Tree-walking evaluator for lox.

Statements return a Completion describing how they finished: normally, or by return/break/continue. Completions
propagate up through blocks and ifs until a loop (break/continue) or a function call (return) absorbs them. A
break/continue that reaches a function boundary or the top level is a runtime error. Runtime errors are LoxRuntimeErrors
and abort the current interpret call.

Local variables are read through the scope distances recorded by the Resolver; anything it didn't record is global.
"""

import math
import time
from dataclasses import dataclass
from enum import Enum, auto

from lox.core.environment import Environment
from lox.core.objects import LoxCallable, LoxClass, LoxFunction, LoxInstance, NativeFunction
from lox.core.tokens import Token, TokenType
from lox.lang.error import LoxRuntimeError


class Flow(Enum):
    NORMAL = auto()
    RETURN = auto()
    BREAK = auto()
    CONTINUE = auto()


@dataclass(frozen=True)
class Completion:
    """Outcome of executing a statement. token is the return/break/continue keyword, value the returned value."""
    flow: Flow
    value: object = None
    token: Token = None

    @property
    def abrupt(self):
        return self.flow != Flow.NORMAL

    def check_escaped(self):
        """Raises if a break/continue has escaped past every loop it could have belonged to."""
        if self.flow in (Flow.BREAK, Flow.CONTINUE):
            raise LoxRuntimeError(f"'{self.token.lexeme}' outside of loop.", self.token)


NORMAL = Completion(Flow.NORMAL)


def is_truthy(value):
    """nil and false are falsey, everything else (including 0 and "") is truthy."""
    return value is not None and value is not False


def is_number(value):
    return isinstance(value, float) and not isinstance(value, bool)


def is_equal(left, right):
    if left is None or right is None:
        return left is right
    if type(left) is not type(right):  # keeps true != 1
        return False
    if is_number(left) and math.isnan(left):
        return math.isnan(right)  # NaN equals itself
    return left == right


def stringify(value):
    """Returns the lox representation of value, as used by print."""
    if value is None:
        return "nil"
    elif isinstance(value, bool):
        return "true" if value else "false"
    elif isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        elif math.isinf(value):
            return "Infinity" if value > 0 else "-Infinity"
        elif value.is_integer():
            return str(int(value))
        return repr(value)
    return str(value)


def divide(left, right):
    """Floating-point division, with IEEE 754 results instead of ZeroDivisionError."""
    if right != 0:
        return left / right
    if left == 0 or math.isnan(left):
        return math.nan
    return math.copysign(math.inf, left) * math.copysign(1.0, right)


class Evaluator:
    ARITHMETIC = {
        TokenType.MINUS: lambda left, right: left - right,
        TokenType.STAR: lambda left, right: left * right,
        TokenType.SLASH: divide,
    }
    COMPARISON = {
        TokenType.GREATER: lambda left, right: left > right,
        TokenType.GREATER_EQUAL: lambda left, right: left >= right,
        TokenType.LESS: lambda left, right: left < right,
        TokenType.LESS_EQUAL: lambda left, right: left <= right,
    }

    def __init__(self, error_handler):
        self.error_handler = error_handler

        self.globals = Environment()
        self.environment = self.globals
        self.locals = {}  # dict of Expr uid: scope distance, filled in by Resolver

        self.globals.define("clock", NativeFunction("clock", 0, time.time))

    def interpret(self, statements):
        """Executes statements, reporting the first runtime error. Returns whether execution succeeded."""
        try:
            for stmt in statements:
                completion = self.execute(stmt)
                completion.check_escaped()
                if completion.flow == Flow.RETURN:
                    raise LoxRuntimeError("Can't return from top-level code.", completion.token)
        except LoxRuntimeError as error:
            self.error_handler.runtime_error(error)
            return False
        return True

    def resolve(self, expr, depth):
        """Called by Resolver: expr refers to a variable declared depth scopes out."""
        self.locals[expr.uid] = depth

    def evaluate(self, expr):
        return expr.accept(self)

    def execute(self, stmt):
        return stmt.accept(self)

    def execute_block(self, statements, environment):
        """Executes statements in environment, restoring the current environment afterwards (even on error)."""
        previous = self.environment
        try:
            self.environment = environment
            for stmt in statements:
                completion = self.execute(stmt)
                if completion.abrupt:
                    return completion
            return NORMAL
        finally:
            self.environment = previous

    # statements

    def visit_expression_stmt(self, stmt):
        self.evaluate(stmt.expression)
        return NORMAL

    def visit_print_stmt(self, stmt):
        print(stringify(self.evaluate(stmt.expression)))
        return NORMAL

    def visit_var_stmt(self, stmt):
        if stmt.initializer is None:
            self.environment.define(stmt.name.lexeme)
        else:
            self.environment.define(stmt.name.lexeme, self.evaluate(stmt.initializer))
        return NORMAL

    def visit_block_stmt(self, stmt):
        return self.execute_block(stmt.statements, Environment(self.environment))

    def visit_if_stmt(self, stmt):
        if is_truthy(self.evaluate(stmt.condition)):
            return self.execute(stmt.then_branch)
        elif stmt.else_branch is not None:
            return self.execute(stmt.else_branch)
        return NORMAL

    def visit_while_stmt(self, stmt):
        while is_truthy(self.evaluate(stmt.condition)):
            completion = self.execute(stmt.body)

            if completion.flow == Flow.BREAK:
                break
            elif completion.flow == Flow.RETURN:
                return completion

            if stmt.increment is not None:
                self.evaluate(stmt.increment)
        return NORMAL

    def visit_break_stmt(self, stmt):
        return Completion(Flow.BREAK, token=stmt.keyword)

    def visit_continue_stmt(self, stmt):
        return Completion(Flow.CONTINUE, token=stmt.keyword)

    def visit_return_stmt(self, stmt):
        value = None if stmt.value is None else self.evaluate(stmt.value)
        return Completion(Flow.RETURN, value, stmt.keyword)

    def visit_function_stmt(self, stmt):
        function = LoxFunction(stmt.name.lexeme, stmt.params, stmt.body, self.environment)
        self.environment.define(stmt.name.lexeme, function)
        return NORMAL

    def visit_class_stmt(self, stmt):
        superclass = None
        if stmt.superclass is not None:
            superclass = self.evaluate(stmt.superclass)
            if not isinstance(superclass, LoxClass):
                raise LoxRuntimeError("Superclass must be a class.", stmt.superclass.name)

        self.environment.define(stmt.name.lexeme, None)

        methods = {}
        for method in stmt.methods:
            name = method.name.lexeme
            is_initializer = name == "init"
            is_getter = not is_initializer and not method.params  # zero-parameter methods read as properties
            methods[name] = LoxFunction(name, method.params, method.body, self.environment, is_initializer, is_getter)

        statics = {}
        for static in stmt.statics:
            statics[static.name.lexeme] = LoxFunction(static.name.lexeme, static.params, static.body, self.environment)

        klass = LoxClass(stmt.name.lexeme, superclass, methods, statics)
        self.environment.assign(stmt.name, klass)
        return NORMAL

    # expressions

    def visit_literal_expr(self, expr):
        return expr.value

    def visit_grouping_expr(self, expr):
        return self.evaluate(expr.expression)

    def visit_unary_expr(self, expr):
        right = self.evaluate(expr.right)

        if expr.operator.type == TokenType.BANG:
            return not is_truthy(right)

        Evaluator.check_numbers(expr.operator, right)
        return -right

    def visit_binary_expr(self, expr):
        left = self.evaluate(expr.left)
        right = self.evaluate(expr.right)
        operator = expr.operator

        if operator.type == TokenType.COMMA:
            return right
        elif operator.type == TokenType.EQUAL_EQUAL:
            return is_equal(left, right)
        elif operator.type == TokenType.BANG_EQUAL:
            return not is_equal(left, right)
        elif operator.type == TokenType.PLUS:
            return Evaluator.add(operator, left, right)
        elif operator.type in Evaluator.COMPARISON:
            Evaluator.check_numbers(operator, left, right)
            return Evaluator.COMPARISON[operator.type](left, right)

        Evaluator.check_numbers(operator, left, right)
        return Evaluator.ARITHMETIC[operator.type](left, right)

    def visit_logical_expr(self, expr):
        left = self.evaluate(expr.left)

        if expr.operator.type == TokenType.OR:
            if is_truthy(left):
                return left
        elif not is_truthy(left):
            return left

        return self.evaluate(expr.right)

    def visit_ternary_expr(self, expr):
        if is_truthy(self.evaluate(expr.condition)):
            return self.evaluate(expr.then_branch)
        return self.evaluate(expr.else_branch)

    def visit_variable_expr(self, expr):
        return self.look_up_variable(expr.name, expr)

    def visit_this_expr(self, expr):
        return self.look_up_variable(expr.keyword, expr)

    def visit_assign_expr(self, expr):
        value = self.evaluate(expr.value)

        distance = self.locals.get(expr.uid)
        if distance is None:
            self.globals.assign(expr.name, value)
        else:
            self.environment.assign_at(distance, expr.name, value)

        return value

    def visit_lambda_expr(self, expr):
        return LoxFunction(None, expr.params, expr.body, self.environment)

    def visit_call_expr(self, expr):
        callee = self.evaluate(expr.callee)
        arguments = [self.evaluate(argument) for argument in expr.arguments]

        if not isinstance(callee, LoxCallable):
            raise LoxRuntimeError("Can only call functions and classes.", expr.paren)

        if len(arguments) != callee.arity():
            raise LoxRuntimeError(f"Expected {callee.arity()} arguments but got {len(arguments)}.", expr.paren)

        return callee.call(self, arguments)

    def visit_get_expr(self, expr):
        obj = self.evaluate(expr.object)

        if isinstance(obj, LoxInstance):
            return obj.get(expr.name, self)
        elif isinstance(obj, LoxClass):
            return obj.get(expr.name)

        raise LoxRuntimeError("Only instances have properties.", expr.name)

    def visit_set_expr(self, expr):
        obj = self.evaluate(expr.object)

        if not isinstance(obj, (LoxInstance, LoxClass)):
            raise LoxRuntimeError("Only instances have fields.", expr.name)

        value = self.evaluate(expr.value)
        obj.set(expr.name, value)
        return value

    # helpers

    def look_up_variable(self, name, expr):
        distance = self.locals.get(expr.uid)
        if distance is None:
            return self.globals.get(name)
        return self.environment.get_at(distance, name)

    @staticmethod
    def add(operator, left, right):
        """+ adds numbers and concatenates strings. A number concatenated with a string is stringified first."""
        if is_number(left) and is_number(right):
            return left + right
        elif isinstance(left, str) and isinstance(right, str):
            return left + right
        elif isinstance(left, str) and is_number(right):
            return left + stringify(right)
        elif is_number(left) and isinstance(right, str):
            return stringify(left) + right

        raise LoxRuntimeError("Operands of '+' must be two numbers or include a string.", operator)

    @staticmethod
    def check_numbers(operator, *operands):
        if not all(is_number(operand) for operand in operands):
            if len(operands) == 1:
                raise LoxRuntimeError(f"Operand of '{operator.lexeme}' must be a number.", operator)
            raise LoxRuntimeError(f"Operands of '{operator.lexeme}' must be numbers.", operator)

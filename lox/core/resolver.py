"""Static resolution pass. Walks the syntax tree once before execution and tells the evaluator, for every local
variable reference, how many scopes lie between the reference and the scope that declares it.

The scopes pushed here must mirror the Environments the evaluator creates: one per block, one per function call
(parameters and body share it), and one holding 'this' around each class's methods. Names not found in any scope are
globals and are looked up dynamically.

Also reports static errors (duplicate declarations, self-referencing initializers, misplaced return/break/continue/this)
and warns about locals that are never used.
"""

from dataclasses import dataclass
from enum import Enum, auto

from lox.core.tokens import Token
from lox.lang.error import LoxResolveError


class FunctionType(Enum):
    NONE = auto()
    FUNCTION = auto()  # any function, method, static method or lambda body


class ClassType(Enum):
    NONE = auto()
    CLASS = auto()
    STATIC = auto()  # inside a static method's body


@dataclass
class VariableStatus:
    """declared -> defined -> used state of a local name."""
    token: Token
    defined: bool = False
    used: bool = False
    check_unused: bool = True  # parameters and 'this' are never reported


class Resolver:

    def __init__(self, evaluator, error_handler):
        self.evaluator = evaluator
        self.error_handler = error_handler

        self.scopes = []  # innermost last
        self.current_function = FunctionType.NONE
        self.current_class = ClassType.NONE
        self.loop_depth = 0

    def resolve(self, statements):
        """Resolves a list of statements. Errors are reported to the ErrorHandler, never raised."""
        for stmt in statements:
            stmt.accept(self)

    def _resolve(self, node):
        if node is not None:
            node.accept(self)

    # statements

    def visit_block_stmt(self, stmt):
        self.begin_scope()
        self.resolve(stmt.statements)
        self.end_scope()

    def visit_var_stmt(self, stmt):
        self.declare(stmt.name)
        self._resolve(stmt.initializer)
        self.define(stmt.name)

    def visit_function_stmt(self, stmt):
        self.declare(stmt.name)
        self.define(stmt.name)
        self.resolve_function(stmt, FunctionType.FUNCTION)

    def visit_class_stmt(self, stmt):
        enclosing_class = self.current_class

        self.declare(stmt.name)
        self.define(stmt.name)

        if stmt.superclass is not None:
            if stmt.superclass.name.lexeme == stmt.name.lexeme:
                self.error(stmt.superclass.name, "A class can't inherit from itself.")
            self._resolve(stmt.superclass)

        self.current_class = ClassType.STATIC
        for static in stmt.statics:
            self.resolve_function(static, FunctionType.FUNCTION)

        self.current_class = ClassType.CLASS
        self.begin_scope()
        self.scopes[-1]["this"] = VariableStatus(stmt.name, defined=True, check_unused=False)

        for method in stmt.methods:
            self.resolve_function(method, FunctionType.FUNCTION)

        self.end_scope()
        self.current_class = enclosing_class

    def visit_expression_stmt(self, stmt):
        self._resolve(stmt.expression)

    def visit_print_stmt(self, stmt):
        self._resolve(stmt.expression)

    def visit_if_stmt(self, stmt):
        self._resolve(stmt.condition)
        self._resolve(stmt.then_branch)
        self._resolve(stmt.else_branch)

    def visit_while_stmt(self, stmt):
        self._resolve(stmt.condition)

        self.loop_depth += 1
        self._resolve(stmt.body)
        self._resolve(stmt.increment)
        self.loop_depth -= 1

    def visit_break_stmt(self, stmt):
        if self.loop_depth == 0:
            self.error(stmt.keyword, "Can't use 'break' outside of a loop.")

    def visit_continue_stmt(self, stmt):
        if self.loop_depth == 0:
            self.error(stmt.keyword, "Can't use 'continue' outside of a loop.")

    def visit_return_stmt(self, stmt):
        if self.current_function == FunctionType.NONE:
            self.error(stmt.keyword, "Can't return from top-level code.")
        self._resolve(stmt.value)

    # expressions

    def visit_variable_expr(self, expr):
        if self.scopes:
            status = self.scopes[-1].get(expr.name.lexeme)
            if status is not None and not status.defined:
                self.error(expr.name, "Can't read local variable in its own initializer.")
        self.resolve_local(expr, expr.name)

    def visit_assign_expr(self, expr):
        self._resolve(expr.value)
        status = self.resolve_local(expr, expr.name)
        if status is not None:
            status.defined = True

    def visit_this_expr(self, expr):
        if self.current_class == ClassType.NONE:
            self.error(expr.keyword, "Can't use 'this' outside of a class.")
        elif self.current_class == ClassType.STATIC:
            self.error(expr.keyword, "Can't use 'this' in a static method.")
        else:
            self.resolve_local(expr, expr.keyword)

    def visit_lambda_expr(self, expr):
        self.resolve_function(expr, FunctionType.FUNCTION)

    def visit_literal_expr(self, expr):
        pass

    def visit_grouping_expr(self, expr):
        self._resolve(expr.expression)

    def visit_unary_expr(self, expr):
        self._resolve(expr.right)

    def visit_binary_expr(self, expr):
        self._resolve(expr.left)
        self._resolve(expr.right)

    def visit_logical_expr(self, expr):
        self._resolve(expr.left)
        self._resolve(expr.right)

    def visit_ternary_expr(self, expr):
        self._resolve(expr.condition)
        self._resolve(expr.then_branch)
        self._resolve(expr.else_branch)

    def visit_call_expr(self, expr):
        self._resolve(expr.callee)
        for argument in expr.arguments:
            self._resolve(argument)

    def visit_get_expr(self, expr):
        self._resolve(expr.object)

    def visit_set_expr(self, expr):
        self._resolve(expr.value)
        self._resolve(expr.object)

    # helpers

    def resolve_function(self, function, kind):
        """Resolves a Function statement or Lambda expression: parameters and body share one scope."""
        enclosing_function, enclosing_loop_depth = self.current_function, self.loop_depth
        self.current_function = kind
        self.loop_depth = 0  # break/continue can't jump out of a function

        self.begin_scope()
        for param in function.params:
            self.declare(param)
            self.define(param)
            self.scopes[-1][param.lexeme].check_unused = False
        self.resolve(function.body)
        self.end_scope()

        self.current_function, self.loop_depth = enclosing_function, enclosing_loop_depth

    def resolve_local(self, expr, name):
        """Records expr's scope distance with the evaluator and marks name as used. Returns name's VariableStatus, or
        None if name is assumed to be global.
        """
        for distance, scope in enumerate(reversed(self.scopes)):
            if name.lexeme in scope:
                self.evaluator.resolve(expr, distance)
                status = scope[name.lexeme]
                status.used = True
                return status
        return None

    def begin_scope(self):
        self.scopes.append({})

    def end_scope(self):
        for name, status in self.scopes.pop().items():
            if status.check_unused and not status.used:
                self.error_handler.warn(LoxResolveError(f"Local variable '{name}' is never used.", status.token))

    def declare(self, name):
        if not self.scopes:
            return

        scope = self.scopes[-1]
        if name.lexeme in scope:
            self.error(name, f"Already a variable named '{name.lexeme}' in this scope.")
        scope[name.lexeme] = VariableStatus(name)

    def define(self, name):
        if self.scopes:
            self.scopes[-1][name.lexeme].defined = True

    def error(self, token, msg):
        self.error_handler.error(LoxResolveError(msg, token))

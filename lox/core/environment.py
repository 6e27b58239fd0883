"""Runtime scopes. An Environment is one frame of name: value bindings plus a (shared) reference to its enclosing
frame. Closures keep their defining frame alive simply by referencing it.
"""

from lox.lang.error import LoxException, LoxRuntimeError


class _Uninitialized:
    """Sentinel bound to variables declared without an initializer."""

    def __repr__(self):
        return "<uninitialized>"


UNINITIALIZED = _Uninitialized()


class Environment:

    def __init__(self, enclosing=None):
        self.enclosing = enclosing
        self.values = {}

    def define(self, name, value=UNINITIALIZED):
        """Binds name in this frame, overwriting any existing binding."""
        self.values[name] = value

    def get(self, name):
        """Looks up name (a Token) in this frame, then in enclosing frames."""
        environment = self
        while environment is not None:
            if name.lexeme in environment.values:
                return Environment._check_initialized(name, environment.values[name.lexeme])
            environment = environment.enclosing

        raise LoxRuntimeError(f"Undefined variable '{name.lexeme}'.", name)

    def assign(self, name, value):
        """Rebinds name (a Token) in the nearest frame that defines it."""
        environment = self
        while environment is not None:
            if name.lexeme in environment.values:
                environment.values[name.lexeme] = value
                return
            environment = environment.enclosing

        raise LoxRuntimeError(f"Undefined variable '{name.lexeme}'.", name)

    def ancestor(self, distance):
        """Returns the frame distance hops outward. distance must not walk past the root frame."""
        environment = self
        for __ in range(distance):
            environment = environment.enclosing
            if environment is None:
                raise LoxException(f"scope distance {distance} walks past the global scope", internal=True)
        return environment

    def get_at(self, distance, name):
        """Looks up name directly in the frame distance hops outward (no search)."""
        values = self.ancestor(distance).values
        if name.lexeme not in values:
            raise LoxRuntimeError(f"Undefined variable '{name.lexeme}'.", name)
        return Environment._check_initialized(name, values[name.lexeme])

    def assign_at(self, distance, name, value):
        self.ancestor(distance).values[name.lexeme] = value

    @staticmethod
    def _check_initialized(name, value):
        if value is UNINITIALIZED:
            msg = f"Uninitialized variable '{name.lexeme}'. Assign it a value before reading it."
            raise LoxRuntimeError(msg, name)
        return value

    def __repr__(self):
        return f"Environment({self.values}, enclosing={self.enclosing is not None})"

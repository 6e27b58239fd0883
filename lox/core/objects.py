"""Runtime object model: functions (closures), classes and instances. All of these are ordinary Python objects with
reference semantics, so closures and bound methods can outlive the scope that created them.
"""

from abc import ABC, abstractmethod

from lox.core.environment import Environment
from lox.lang.error import LoxRuntimeError


class LoxCallable(ABC):
    """Superclass for anything that can appear as the callee of a call expression."""

    @abstractmethod
    def arity(self):
        """Number of arguments this callable expects."""

    @abstractmethod
    def call(self, evaluator, arguments):
        """Calls this object with already-evaluated arguments. Assumes len(arguments) == self.arity()."""


class NativeFunction(LoxCallable):
    """Function implemented in Python, ex: clock."""

    def __init__(self, name, arity, function):
        self.name = name
        self._arity = arity
        self.function = function

    def arity(self):
        return self._arity

    def call(self, evaluator, arguments):
        return self.function(*arguments)

    def __str__(self):
        return "<native fn>"


class LoxFunction(LoxCallable):
    """Named function, method or lambda plus the Environment it closes over. name is None for lambdas."""

    def __init__(self, name, params, body, closure, is_initializer=False, is_getter=False):
        self.name = name
        self.params = params
        self.body = body
        self.closure = closure

        self.is_initializer = is_initializer
        self.is_getter = is_getter

    def arity(self):
        return len(self.params)

    def call(self, evaluator, arguments):
        environment = Environment(self.closure)
        for param, argument in zip(self.params, arguments):
            environment.define(param.lexeme, argument)

        completion = evaluator.execute_block(self.body, environment)
        completion.check_escaped()  # break/continue can't cross a function boundary

        if self.is_initializer:
            return self.closure.values["this"]
        return completion.value

    def bind(self, instance):
        """Returns a copy of this function whose closure has 'this' bound to instance."""
        environment = Environment(self.closure)
        environment.define("this", instance)
        return LoxFunction(self.name, self.params, self.body, environment, self.is_initializer, self.is_getter)

    def __str__(self):
        if self.name is None:
            return "<fn anonymous>"
        return f"<fn {self.name}>"


class LoxClass(LoxCallable):
    """Calling a class constructs an instance and runs its (possibly inherited) init method, if any.

    statics is the class's own table of class-level members: static methods declared with a leading 'class', plus any
    values assigned to Klass.name at runtime.
    """

    def __init__(self, name, superclass, methods, statics=None):
        self.name = name
        self.superclass = superclass
        self.methods = methods
        self.statics = statics if statics is not None else {}

    def find_method(self, name):
        """Looks name up in this class's methods, then up the superclass chain. Returns None if not found."""
        klass = self
        while klass is not None:
            if name in klass.methods:
                return klass.methods[name]
            klass = klass.superclass
        return None

    def get(self, name):
        """Reads static member name (a Token), searching up the superclass chain."""
        klass = self
        while klass is not None:
            if name.lexeme in klass.statics:
                return klass.statics[name.lexeme]
            klass = klass.superclass

        raise LoxRuntimeError(f"Undefined static member '{name.lexeme}' on class {self.name}.", name)

    def set(self, name, value):
        self.statics[name.lexeme] = value

    def arity(self):
        initializer = self.find_method("init")
        return 0 if initializer is None else initializer.arity()

    def call(self, evaluator, arguments):
        instance = LoxInstance(self)

        initializer = self.find_method("init")
        if initializer is not None:
            initializer.bind(instance).call(evaluator, arguments)

        return instance

    def __str__(self):
        return self.name


class LoxInstance:
    """Instance of a LoxClass. Fields are created on first assignment and shadow methods of the same name."""

    def __init__(self, klass):
        self.klass = klass
        self.fields = {}

    def get(self, name, evaluator):
        """Reads property name (a Token): a field, else a bound method. Getters are invoked immediately."""
        if name.lexeme in self.fields:
            return self.fields[name.lexeme]

        method = self.klass.find_method(name.lexeme)
        if method is None:
            raise LoxRuntimeError(f"Undefined property '{name.lexeme}'.", name)

        bound = method.bind(self)
        if method.is_getter:
            return bound.call(evaluator, [])
        return bound

    def set(self, name, value):
        self.fields[name.lexeme] = value

    def __str__(self):
        return f"{self.klass.name} instance"

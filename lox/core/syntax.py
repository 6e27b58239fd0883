"""Abstract syntax tree for lox. Two closed families of immutable nodes: expressions (Expr) and statements (Stmt).

Every Expr gets a process-unique uid on construction. The resolver records scope distances against that uid, so the
evaluator can look them up without relying on node equality.

Visitors implement visit_<name>_expr / visit_<name>_stmt, ex: visit_binary_expr, visit_while_stmt.
"""

from dataclasses import dataclass, field
from itertools import count
from typing import List, Optional

from lox.core.tokens import Token


_uids = count()


class Node:
    """Superclass representing any syntax tree node."""
    visitor_method = None

    def accept(self, visitor):
        """Dispatches to visitor's method for this node type."""
        return getattr(visitor, self.visitor_method)(self)


class Expr(Node):

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        cls.visitor_method = f"visit_{cls.__name__.lower()}_expr"


class Stmt(Node):

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        cls.visitor_method = f"visit_{cls.__name__.lower()}_stmt"


def _uid():
    return next(_uids)


# expressions

@dataclass(frozen=True, eq=False)
class Literal(Expr):
    value: object
    uid: int = field(default_factory=_uid, init=False, repr=False)


@dataclass(frozen=True, eq=False)
class Grouping(Expr):
    expression: Expr
    uid: int = field(default_factory=_uid, init=False, repr=False)


@dataclass(frozen=True, eq=False)
class Unary(Expr):
    operator: Token
    right: Expr
    uid: int = field(default_factory=_uid, init=False, repr=False)


@dataclass(frozen=True, eq=False)
class Binary(Expr):
    """Arithmetic, comparison, equality and comma operators."""
    left: Expr
    operator: Token
    right: Expr
    uid: int = field(default_factory=_uid, init=False, repr=False)


@dataclass(frozen=True, eq=False)
class Logical(Expr):
    """Short-circuiting 'and'/'or'."""
    left: Expr
    operator: Token
    right: Expr
    uid: int = field(default_factory=_uid, init=False, repr=False)


@dataclass(frozen=True, eq=False)
class Ternary(Expr):
    condition: Expr
    then_branch: Expr
    else_branch: Expr
    uid: int = field(default_factory=_uid, init=False, repr=False)


@dataclass(frozen=True, eq=False)
class Assign(Expr):
    name: Token
    value: Expr
    uid: int = field(default_factory=_uid, init=False, repr=False)


@dataclass(frozen=True, eq=False)
class Variable(Expr):
    name: Token
    uid: int = field(default_factory=_uid, init=False, repr=False)


@dataclass(frozen=True, eq=False)
class Call(Expr):
    callee: Expr
    paren: Token  # closing paren, used for error locations
    arguments: List[Expr]
    uid: int = field(default_factory=_uid, init=False, repr=False)


@dataclass(frozen=True, eq=False)
class Get(Expr):
    object: Expr
    name: Token
    uid: int = field(default_factory=_uid, init=False, repr=False)


@dataclass(frozen=True, eq=False)
class Set(Expr):
    object: Expr
    name: Token
    value: Expr
    uid: int = field(default_factory=_uid, init=False, repr=False)


@dataclass(frozen=True, eq=False)
class This(Expr):
    keyword: Token
    uid: int = field(default_factory=_uid, init=False, repr=False)


@dataclass(frozen=True, eq=False)
class Lambda(Expr):
    """Anonymous function literal: fun (params) { body }."""
    keyword: Token
    params: List[Token]
    body: List[Stmt]
    uid: int = field(default_factory=_uid, init=False, repr=False)


# statements

@dataclass(frozen=True, eq=False)
class Expression(Stmt):
    expression: Expr


@dataclass(frozen=True, eq=False)
class Print(Stmt):
    expression: Expr


@dataclass(frozen=True, eq=False)
class Var(Stmt):
    name: Token
    initializer: Optional[Expr]


@dataclass(frozen=True, eq=False)
class Block(Stmt):
    statements: List[Stmt]


@dataclass(frozen=True, eq=False)
class If(Stmt):
    condition: Expr
    then_branch: Stmt
    else_branch: Optional[Stmt]


@dataclass(frozen=True, eq=False)
class While(Stmt):
    """increment is only set for desugared for loops: it runs after every iteration, including continued ones."""
    condition: Expr
    body: Stmt
    increment: Optional[Expr] = None


@dataclass(frozen=True, eq=False)
class Break(Stmt):
    keyword: Token


@dataclass(frozen=True, eq=False)
class Continue(Stmt):
    keyword: Token


@dataclass(frozen=True, eq=False)
class Function(Stmt):
    """Named function or method declaration. A method with no parameters is a getter."""
    name: Token
    params: List[Token]
    body: List[Stmt]


@dataclass(frozen=True, eq=False)
class Return(Stmt):
    keyword: Token
    value: Optional[Expr]


@dataclass(frozen=True, eq=False)
class Class(Stmt):
    """statics holds methods declared with a leading 'class' keyword."""
    name: Token
    superclass: Optional[Variable]
    methods: List[Function]
    statics: List[Function] = field(default_factory=list)

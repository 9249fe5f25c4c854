from dataclasses import dataclass

from treelox import expr as ex
from treelox.tokens import Token

@dataclass(frozen=True, eq=False)
class Stmt:
    ...

@dataclass(frozen=True, eq=False)
class Block(Stmt):
    statements: list[Stmt]

@dataclass(frozen=True, eq=False)
class Function(Stmt):
    name: Token
    function: ex.Function

@dataclass(frozen=True, eq=False)
class Class(Stmt):
    name: Token
    methods: list[Function]

@dataclass(frozen=True, eq=False)
class Expression(Stmt):
    expression: ex.Expr

@dataclass(frozen=True, eq=False)
class If(Stmt):
    condition: ex.Expr
    then_branch: Stmt
    else_branch: Stmt | None = None

@dataclass(frozen=True, eq=False)
class Print(Stmt):
    expression: ex.Expr

@dataclass(frozen=True, eq=False)
class Return(Stmt):
    keyword: Token
    value: ex.Expr | None

@dataclass(frozen=True, eq=False)
class Var(Stmt):
    name: Token
    initializer: ex.Expr | None = None

# `step` is the desugared increment of a for-loop, run after every iteration
# of the body, including one cut short by `continue`.
@dataclass(frozen=True, eq=False)
class While(Stmt):
    condition: ex.Expr
    body: Stmt
    step: Stmt | None = None

@dataclass(frozen=True, eq=False)
class Break(Stmt):
    keyword: Token

@dataclass(frozen=True, eq=False)
class Continue(Stmt):
    keyword: Token

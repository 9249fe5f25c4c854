from dataclasses import dataclass
from typing import Any, TYPE_CHECKING

from treelox.tokens import Token

if TYPE_CHECKING:
    from treelox import stmt as st


# eq=False keeps hashing by identity: the resolver keys distances on the node
# itself, so two identical references to the same name stay distinct.
@dataclass(frozen=True, eq=False)
class Expr:
    ...

@dataclass(frozen=True, eq=False)
class Assign(Expr):
    name: Token
    value: Expr

@dataclass(frozen=True, eq=False)
class Binary(Expr):
    left: Expr
    operator: Token
    right: Expr

@dataclass(frozen=True, eq=False)
class Call(Expr):
    callee: Expr
    paren: Token
    arguments: list[Expr]

@dataclass(frozen=True, eq=False)
class Get(Expr):
    object: Expr
    name: Token

@dataclass(frozen=True, eq=False)
class Ternary(Expr):
    selector: Expr
    on_true: Expr
    on_false: Expr
    selector_line: int

@dataclass(frozen=True, eq=False)
class Grouping(Expr):
    expression: Expr

@dataclass(frozen=True, eq=False)
class Literal(Expr):
    value: Any

@dataclass(frozen=True, eq=False)
class Logical(Expr):
    left: Expr
    operator: Token
    right: Expr

@dataclass(frozen=True, eq=False)
class Set(Expr):
    object: Expr
    name: Token
    value: Expr

@dataclass(frozen=True, eq=False)
class This(Expr):
    keyword: Token

@dataclass(frozen=True, eq=False)
class Unary(Expr):
    operator: Token
    right: Expr

@dataclass(frozen=True, eq=False)
class Variable(Expr):
    name: Token

@dataclass(frozen=True, eq=False)
class Function(Expr):
    params: list[Token]
    body: list['st.Stmt']

@dataclass(frozen=True, eq=False)
class ListLiteral(Expr):
    elements: list[Expr]

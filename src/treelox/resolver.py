from contextlib import contextmanager
from enum import Enum, auto
from functools import singledispatchmethod
from typing import Final

from treelox.diagnostics import Diagnostics
from treelox.tokens import Token
from treelox import interpreter as interp, stmt as st, expr as ex

class FunctionType(Enum):
    NONE = auto()
    FUNCTION = auto()
    INITIALIZER = auto()
    METHOD = auto()

class ClassType(Enum):
    NONE = auto()
    CLASS = auto()

class VariableState(Enum):
    DECLARED = auto()
    DEFINED = auto()

class Variable:
    name: Final[Token]
    state: VariableState

    def __init__(self, name: Token, state: VariableState) -> None:
        self.name = name
        self.state = state

class Resolver:
    """Static pass recording, for each local variable reference, how many
    scopes out its binding lives. References left unrecorded are globals.

    Also the single authority on where ``return``, ``break``, ``continue``
    and ``this`` may appear.
    """
    interpreter: interp.Interpreter
    scopes: list[dict[str, Variable]]
    current_function: FunctionType
    current_class: ClassType
    in_loop: bool

    def __init__(self, interpreter: interp.Interpreter, diagnostics: Diagnostics) -> None:
        self.interpreter = interpreter
        self.diagnostics = diagnostics
        self.scopes = []
        self.current_function = FunctionType.NONE
        self.current_class = ClassType.NONE
        self.in_loop = False

    def resolve(self, node: list[st.Stmt] | st.Stmt | ex.Expr) -> None:
        match node:
            case list(statements):
                for statement in statements:
                    self.resolve(statement)
            case st.Stmt() | ex.Expr():
                self.visit(node)
            case _:
                raise NotImplementedError(f"'{node.__class__.__name__}' could not be handled by resolve()")

    def begin_scope(self, content: dict[str, Variable] | None = None) -> None:
        if content is None:
            content = {}
        self.scopes.append(content)

    def end_scope(self) -> None:
        self.scopes.pop()

    @contextmanager
    def scope(self, content: dict[str, Variable] | None = None):
        try:
            self.begin_scope(content)
            yield self.scopes[-1]
        finally:
            self.end_scope()

    @contextmanager
    def loop(self, in_loop: bool = True):
        enclosing = self.in_loop
        try:
            self.in_loop = in_loop
            yield
        finally:
            self.in_loop = enclosing

    def declare(self, name: Token) -> None:
        if self.scopes:
            scope = self.scopes[-1]
            if name.lexeme in scope:
                self.diagnostics.error(name, "Already a variable with this name in this scope")

            scope[name.lexeme] = Variable(name, VariableState.DECLARED)

    def define(self, name: Token) -> None:
        if self.scopes:
            self.scopes[-1][name.lexeme].state = VariableState.DEFINED

    def resolve_local(self, expr: ex.Expr, name: Token) -> None:
        for i, scope in enumerate(reversed(self.scopes)):
            var = scope.get(name.lexeme)
            if var is None:
                continue
            # A name still being initialized in this scope isn't visible to
            # its own initializer, the lookup continues outward.
            if i == 0 and var.state is VariableState.DECLARED:
                continue

            self.interpreter.resolve(expr, i)
            return

    def resolve_function(self, function: ex.Function, type: FunctionType) -> None:
        enclosing_function = self.current_function
        self.current_function = type

        with self.loop(False), self.scope():
            for param in function.params:
                self.declare(param)
                self.define(param)
            self.resolve(function.body)

        self.current_function = enclosing_function

    @singledispatchmethod
    def visit(self, obj: st.Stmt | ex.Expr) -> None:
        raise NotImplementedError(f"'{obj.__class__.__name__}' could not be dispatched by visit()")

    @visit.register
    def _(self, stmt: st.Block) -> None:
        with self.scope():
            self.resolve(stmt.statements)

    @visit.register
    def _(self, stmt: st.Break) -> None:
        if not self.in_loop:
            self.diagnostics.error(stmt.keyword, "Can't use 'break' outside of a loop")

    @visit.register
    def _(self, stmt: st.Continue) -> None:
        if not self.in_loop:
            self.diagnostics.error(stmt.keyword, "Can't use 'continue' outside of a loop")

    @visit.register
    def _(self, stmt: st.Class) -> None:
        enclosing_class = self.current_class
        self.current_class = ClassType.CLASS

        self.declare(stmt.name)
        self.define(stmt.name)

        with self.scope() as top:
            top["this"] = Variable(stmt.name, VariableState.DEFINED)
            for method in stmt.methods:
                declaration = FunctionType.METHOD
                if method.name.lexeme == "init":
                    declaration = FunctionType.INITIALIZER
                self.resolve_function(method.function, declaration)

        self.current_class = enclosing_class

    @visit.register
    def _(self, stmt: st.Expression) -> None:
        self.resolve(stmt.expression)

    @visit.register
    def _(self, stmt: st.Function) -> None:
        self.declare(stmt.name)
        self.define(stmt.name)

        self.resolve_function(stmt.function, FunctionType.FUNCTION)

    @visit.register
    def _(self, stmt: st.If) -> None:
        self.resolve(stmt.condition)
        self.resolve(stmt.then_branch)

        if stmt.else_branch is not None:
            self.resolve(stmt.else_branch)

    @visit.register
    def _(self, stmt: st.Print) -> None:
        self.resolve(stmt.expression)

    @visit.register
    def _(self, stmt: st.Return) -> None:
        if self.current_function is FunctionType.NONE:
            self.diagnostics.error(stmt.keyword, "Can't return from top-level code")

        if stmt.value is not None:
            if self.current_function is FunctionType.INITIALIZER:
                self.diagnostics.error(stmt.keyword, "Can't return a value from an initializer")
            self.resolve(stmt.value)

    @visit.register
    def _(self, stmt: st.Var) -> None:
        self.declare(stmt.name)
        if stmt.initializer is not None:
            initializer = stmt.initializer
            while isinstance(initializer, ex.Grouping):
                initializer = initializer.expression
            if (self.scopes and isinstance(initializer, ex.Variable)
                    and initializer.name.lexeme == stmt.name.lexeme):
                self.diagnostics.error(initializer.name,
                                       "Can't read local variable in its own initializer")
            self.resolve(stmt.initializer)
        self.define(stmt.name)

    @visit.register
    def _(self, stmt: st.While) -> None:
        self.resolve(stmt.condition)
        with self.loop():
            self.resolve(stmt.body)
            if stmt.step is not None:
                self.resolve(stmt.step)

    @visit.register
    def _(self, expr: ex.Assign) -> None:
        self.resolve(expr.value)
        self.resolve_local(expr, expr.name)

    @visit.register
    def _(self, expr: ex.Binary) -> None:
        self.resolve(expr.left)
        self.resolve(expr.right)

    @visit.register
    def _(self, expr: ex.Call) -> None:
        self.resolve(expr.callee)

        for argument in expr.arguments:
            self.resolve(argument)

    @visit.register
    def _(self, expr: ex.Ternary) -> None:
        self.resolve(expr.selector)
        self.resolve(expr.on_true)
        self.resolve(expr.on_false)

    @visit.register
    def _(self, expr: ex.Get) -> None:
        self.resolve(expr.object)

    @visit.register
    def _(self, expr: ex.Function) -> None:
        self.resolve_function(expr, FunctionType.FUNCTION)

    @visit.register
    def _(self, expr: ex.Grouping) -> None:
        self.resolve(expr.expression)

    @visit.register
    def _(self, expr: ex.ListLiteral) -> None:
        for element in expr.elements:
            self.resolve(element)

    @visit.register
    def _(self, expr: ex.Literal) -> None:
        pass

    @visit.register
    def _(self, expr: ex.Logical) -> None:
        self.resolve(expr.left)
        self.resolve(expr.right)

    @visit.register
    def _(self, expr: ex.Set) -> None:
        self.resolve(expr.value)
        self.resolve(expr.object)

    @visit.register
    def _(self, expr: ex.This) -> None:
        if self.current_class is ClassType.NONE:
            self.diagnostics.error(expr.keyword, "Can't use 'this' outside of a class")
            return

        self.resolve_local(expr, expr.keyword)

    @visit.register
    def _(self, expr: ex.Unary) -> None:
        self.resolve(expr.right)

    @visit.register
    def _(self, expr: ex.Variable) -> None:
        self.resolve_local(expr, expr.name)

from functools import singledispatchmethod

from treelox import expr as ex
from treelox import stmt as st

class AstPrinter:
    """Renders syntax trees as parenthesized prefix forms, for debugging."""

    def print(self, node: ex.Expr | st.Stmt | list[st.Stmt]) -> str:
        if isinstance(node, list):
            return "\n".join(self.visit(statement) for statement in node)
        return self.visit(node)

    @singledispatchmethod
    def visit(self, obj: ex.Expr | st.Stmt) -> str:
        raise NotImplementedError(f"'{obj.__class__.__name__}' could not be dispatched by visit()")

    @visit.register
    def _(self, expr: ex.Assign) -> str:
        return self.parenthesize(f"= {expr.name.lexeme}", expr.value)

    @visit.register
    def _(self, expr: ex.Binary) -> str:
        return self.parenthesize(expr.operator.lexeme, expr.left, expr.right)

    @visit.register
    def _(self, expr: ex.Logical) -> str:
        return self.parenthesize(expr.operator.lexeme, expr.left, expr.right)

    @visit.register
    def _(self, expr: ex.Call) -> str:
        return self.parenthesize("call", expr.callee, *expr.arguments)

    @visit.register
    def _(self, expr: ex.Get) -> str:
        return self.parenthesize(f". {expr.name.lexeme}", expr.object)

    @visit.register
    def _(self, expr: ex.Set) -> str:
        return self.parenthesize(f".= {expr.name.lexeme}", expr.object, expr.value)

    @visit.register
    def _(self, expr: ex.Ternary) -> str:
        return self.parenthesize("?:", expr.selector, expr.on_true, expr.on_false)

    @visit.register
    def _(self, expr: ex.Grouping) -> str:
        return self.parenthesize("group", expr.expression)

    @visit.register
    def _(self, expr: ex.Literal) -> str:
        match expr.value:
            case None:
                return "nil"
            case bool(b):
                return str(b).lower()
            case float(num) if num.is_integer():
                return str(int(num))
            case str(s):
                return f'"{s}"'
            case value:
                return str(value)

    @visit.register
    def _(self, expr: ex.This) -> str:
        return "this"

    @visit.register
    def _(self, expr: ex.Unary) -> str:
        return self.parenthesize(expr.operator.lexeme, expr.right)

    @visit.register
    def _(self, expr: ex.Variable) -> str:
        return expr.name.lexeme

    @visit.register
    def _(self, expr: ex.Function) -> str:
        return self.function("fun", expr)

    @visit.register
    def _(self, expr: ex.ListLiteral) -> str:
        return self.parenthesize("list", *expr.elements)

    @visit.register
    def _(self, stmt: st.Block) -> str:
        return self.parenthesize("block", *stmt.statements)

    @visit.register
    def _(self, stmt: st.Class) -> str:
        return self.parenthesize(f"class {stmt.name.lexeme}", *stmt.methods)

    @visit.register
    def _(self, stmt: st.Expression) -> str:
        return self.parenthesize(";", stmt.expression)

    @visit.register
    def _(self, stmt: st.Function) -> str:
        return self.function(f"fun {stmt.name.lexeme}", stmt.function)

    @visit.register
    def _(self, stmt: st.If) -> str:
        if stmt.else_branch is None:
            return self.parenthesize("if", stmt.condition, stmt.then_branch)
        return self.parenthesize("if", stmt.condition, stmt.then_branch, stmt.else_branch)

    @visit.register
    def _(self, stmt: st.Print) -> str:
        return self.parenthesize("print", stmt.expression)

    @visit.register
    def _(self, stmt: st.Return) -> str:
        if stmt.value is None:
            return "(return)"
        return self.parenthesize("return", stmt.value)

    @visit.register
    def _(self, stmt: st.Var) -> str:
        if stmt.initializer is None:
            return f"(var {stmt.name.lexeme})"
        return self.parenthesize(f"var {stmt.name.lexeme}", stmt.initializer)

    @visit.register
    def _(self, stmt: st.While) -> str:
        if stmt.step is None:
            return self.parenthesize("while", stmt.condition, stmt.body)
        return self.parenthesize("while", stmt.condition, stmt.body, stmt.step)

    @visit.register
    def _(self, stmt: st.Break) -> str:
        return "(break)"

    @visit.register
    def _(self, stmt: st.Continue) -> str:
        return "(continue)"

    def function(self, name: str, function: ex.Function) -> str:
        params = " ".join(param.lexeme for param in function.params)
        return self.parenthesize(f"{name} ({params})", *function.body)

    def parenthesize(self, name: str, *nodes: ex.Expr | st.Stmt) -> str:
        if not nodes:
            return f"({name})"

        content = " ".join([self.visit(node) for node in nodes])

        return f"({name} {content})"

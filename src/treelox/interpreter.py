import math
from functools import singledispatchmethod
from typing import Any

from treelox.completion import Completion, CompletionType as CT, NORMAL
from treelox.diagnostics import Diagnostics
from treelox.environment import Environment
from treelox.errors import LoxRuntimeError
from treelox import expr as ex
from treelox import function as fn
from treelox import loxclass as cl
from treelox import loxlist
from treelox import stmt as st
from treelox.tokens import Token, TokenType as TT, TokenGroup as TG


class Interpreter:
    globals: Environment
    environment: Environment
    locals: dict[ex.Expr, int]

    def __init__(self, diagnostics: Diagnostics) -> None:
        self.diagnostics = diagnostics
        self.globals = Environment()
        self.environment = self.globals
        self.locals = {}

        self.register_native(fn.clock)
        for native in loxlist.NATIVES:
            self.register_native(native)

    def register_native(self, function: fn.NativeFunction, name: str | None = None):
        if name is None:
            name = function.name

        self.globals.define(name, function)

    def interpret(self, statements: list[st.Stmt]) -> None:
        try:
            for statement in statements:
                self.execute(statement)
        except LoxRuntimeError as error:
            self.diagnostics.runtime_error(error)

    def interpret_printing(self, statement: st.Stmt) -> None:
        if isinstance(statement, st.Expression):
            statement = st.Print(statement.expression)

        self.interpret([statement])

    def resolve(self, expr: ex.Expr, depth: int) -> None:
        self.locals[expr] = depth

    @singledispatchmethod
    def visit(self, obj: ex.Expr | st.Stmt) -> Any:
        raise NotImplementedError(f"'{obj.__class__.__name__}' could not be dispatched by visit()")

    # Expressions

    @visit.register
    def _(self, expr: ex.Literal) -> Any:
        return expr.value

    @visit.register
    def _(self, expr: ex.Grouping) -> Any:
        return self.evaluate(expr.expression)

    @visit.register
    def _(self, expr: ex.Unary) -> Any:
        right = self.evaluate(expr.right)

        match expr.operator.type:
            case TT.BANG:
                return not self.is_truthy(right)
            case TT.MINUS:
                self.check_number_operands(expr.operator, right)
                return -right
            case _:
                raise LoxRuntimeError(expr.operator, "Unsupported unary operator")

    @visit.register
    def _(self, expr: ex.Binary) -> Any:
        left = self.evaluate(expr.left)
        right = self.evaluate(expr.right)

        if expr.operator.type in TG.Factor | TG.Comparison | {TT.MINUS}:
            self.check_number_operands(expr.operator, left, right)

        match expr.operator.type:
            case TT.BANG_EQUAL:
                return not self.is_equal(left, right)
            case TT.EQUAL_EQUAL:
                return self.is_equal(left, right)
            case TT.GREATER:
                return left > right
            case TT.GREATER_EQUAL:
                return left >= right
            case TT.LESS:
                return left < right
            case TT.LESS_EQUAL:
                return left <= right
            case TT.MINUS:
                return left - right
            case TT.SLASH:
                if right == 0:
                    raise LoxRuntimeError(expr.operator, "Division by zero")
                return left / right
            case TT.STAR:
                return left * right
            case TT.PLUS:
                if (
                    isinstance(left, (float, str)) and
                    type(left) == type(right)
                ):
                    return left + right
                elif isinstance(left, str) or isinstance(right, str):
                    return self.stringify(left) + self.stringify(right)
                else:
                    raise LoxRuntimeError(expr.operator,
                                          "Operands must be two numbers or at least one string")
            case _:
                raise LoxRuntimeError(expr.operator, "Unsupported binary operator")

    @visit.register
    def _(self, expr: ex.Ternary) -> Any:
        selector = self.evaluate(expr.selector)

        if not isinstance(selector, bool):
            raise LoxRuntimeError(
                expr.selector_line,
                f"Ternary selector must evaluate to a boolean but was: {self.stringify(selector)}"
            )

        if selector:
            return self.evaluate(expr.on_true)
        else:
            return self.evaluate(expr.on_false)

    @visit.register
    def _(self, expr: ex.Variable) -> Any:
        return self.look_up_variable(expr.name, expr)

    @visit.register
    def _(self, expr: ex.This) -> Any:
        return self.look_up_variable(expr.keyword, expr)

    @visit.register
    def _(self, expr: ex.Assign) -> Any:
        value = self.evaluate(expr.value)
        self.assign_variable(expr.name, expr, value)
        return value

    @visit.register
    def _(self, expr: ex.Logical) -> Any:
        left = self.evaluate(expr.left)

        if expr.operator.type == TT.OR:
            if self.is_truthy(left):
                return left
        else:
            if not self.is_truthy(left):
                return left

        return self.evaluate(expr.right)

    @visit.register
    def _(self, expr: ex.Call) -> Any:
        callee = self.evaluate(expr.callee)

        arguments = []
        for argument in expr.arguments:
            arguments.append(self.evaluate(argument))

        if not isinstance(callee, fn.LoxCallable):
            raise LoxRuntimeError(expr.paren, "Can only call functions and classes")

        function = callee

        if len(arguments) != function.arity():
            raise LoxRuntimeError(expr.paren,
            f"Expected {function.arity()} arguments but got {len(arguments)}")

        try:
            return function.call(self, arguments)
        except LoxRuntimeError as error:
            # Natives don't know where they were called from
            if error.line is None:
                raise LoxRuntimeError(expr.paren, str(error)) from error
            raise

    @visit.register
    def _(self, expr: ex.Get) -> Any:
        obj = self.evaluate(expr.object)
        if isinstance(obj, cl.LoxInstance):
            return obj.get(expr.name)

        raise LoxRuntimeError(expr.name, "Only instances have properties")

    @visit.register
    def _(self, expr: ex.Set) -> Any:
        obj = self.evaluate(expr.object)
        if not isinstance(obj, cl.LoxInstance):
            raise LoxRuntimeError(expr.name, "Only instances have fields")

        value = self.evaluate(expr.value)
        obj.set(expr.name, value)
        return value

    @visit.register
    def _(self, expr: ex.Function) -> Any:
        return fn.LoxFunction(None, expr, self.environment)

    @visit.register
    def _(self, expr: ex.ListLiteral) -> Any:
        return loxlist.LoxList(self.evaluate(element) for element in expr.elements)

    # Statements

    @visit.register
    def _(self, stmt: st.Expression) -> Completion:
        self.evaluate(stmt.expression)
        return NORMAL

    @visit.register
    def _(self, stmt: st.Print) -> Completion:
        value = self.evaluate(stmt.expression)
        print(self.stringify(value))
        return NORMAL

    @visit.register
    def _(self, stmt: st.Var) -> Completion:
        value = None
        if stmt.initializer is not None:
            value = self.evaluate(stmt.initializer)

        self.environment.define(stmt.name.lexeme, value)
        return NORMAL

    @visit.register
    def _(self, stmt: st.Block) -> Completion:
        return self.execute_block(stmt.statements, Environment(self.environment))

    @visit.register
    def _(self, stmt: st.Function) -> Completion:
        function = fn.LoxFunction(stmt.name.lexeme, stmt.function, self.environment)
        self.environment.define(stmt.name.lexeme, function)
        return NORMAL

    @visit.register
    def _(self, stmt: st.Class) -> Completion:
        self.environment.define(stmt.name.lexeme, None)

        methods: dict[str, fn.LoxFunction] = {}
        for method in stmt.methods:
            name = method.name.lexeme
            methods[name] = fn.LoxFunction(
                name, method.function, self.environment, is_initializer=name == "init"
            )

        klass = cl.LoxClass(stmt.name.lexeme, methods)
        self.environment.assign(stmt.name, klass)
        return NORMAL

    @visit.register
    def _(self, stmt: st.If) -> Completion:
        if self.is_truthy(self.evaluate(stmt.condition)):
            return self.execute(stmt.then_branch)
        elif stmt.else_branch is not None:
            return self.execute(stmt.else_branch)
        return NORMAL

    @visit.register
    def _(self, stmt: st.While) -> Completion:
        while self.is_truthy(self.evaluate(stmt.condition)):
            completion = self.execute(stmt.body)

            match completion.type:
                case CT.BREAK:
                    break
                case CT.RETURN:
                    return completion

            # Reached after a normal pass or a `continue`
            if stmt.step is not None:
                self.execute(stmt.step)

        return NORMAL

    @visit.register
    def _(self, stmt: st.Return) -> Completion:
        value = None
        if stmt.value is not None:
            value = self.evaluate(stmt.value)

        return Completion(CT.RETURN, value, stmt)

    @visit.register
    def _(self, stmt: st.Break) -> Completion:
        return Completion(CT.BREAK, origin=stmt)

    @visit.register
    def _(self, stmt: st.Continue) -> Completion:
        return Completion(CT.CONTINUE, origin=stmt)

    def evaluate(self, expr: ex.Expr) -> Any:
        return self.visit(expr)

    def execute(self, stmt: st.Stmt) -> Completion:
        return self.visit(stmt)

    def execute_block(self, statements: list[st.Stmt], environment: Environment) -> Completion:
        previous = self.environment

        try:
            self.environment = environment

            for statement in statements:
                completion = self.execute(statement)
                if not completion.is_normal:
                    return completion

            return NORMAL
        finally:
            self.environment = previous

    def look_up_variable(self, name: Token, expr: ex.Expr) -> Any:
        distance = self.locals.get(expr)
        if distance is not None:
            return self.environment.get_at(distance, name.lexeme)
        else:
            return self.globals.get(name)

    def assign_variable(self, name: Token, expr: ex.Expr, value: Any) -> None:
        distance = self.locals.get(expr)
        if distance is not None:
            self.environment.assign_at(distance, name, value)
        else:
            self.globals.assign(name, value)

    def is_truthy(self, obj: Any) -> bool:
        return obj is not None and obj is not False

    def is_equal(self, left: Any, right: Any) -> bool:
        if left is None:
            return right is None
        # Keeps `true == 1` false, Python would say otherwise
        return type(left) is type(right) and left == right

    @staticmethod
    def is_number(num: Any) -> bool:
        return isinstance(num, float)

    def check_number_operands(self, operator: Token, *operands: Any) -> None:
        if not all(map(self.is_number, operands)):
            plural = "s" if len(operands) > 1 else ""

            raise LoxRuntimeError(operator, f"Operand{plural} must be a number.")

    def stringify(self, obj: Any) -> str:
        match obj:
            case None:
                return "nil"
            case bool(b):
                return str(b).lower()
            case float(num) if math.isinf(num):
                return "Infinity" if num > 0 else "-Infinity"
            case float(num):
                text = str(num)
                return text[:-2] if text.endswith(".0") else text
            case loxlist.LoxList():
                return "[" + ", ".join(self.stringify(e) for e in obj.elements) + "]"
            case _:
                return str(obj)

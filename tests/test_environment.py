from typing import Any

import pytest

from treelox import expr as ex
from treelox.diagnostics import Diagnostics
from treelox.environment import Environment
from treelox.errors import LoxRuntimeError
from treelox.interpreter import Interpreter
from treelox.resolver import Resolver
from treelox.tokens import Token, TokenType as TT

from conftest import parse


def name(lexeme: str, line: int = 1) -> Token:
    return Token(TT.IDENTIFIER, lexeme, line)


def test_define_overwrites():
    env = Environment()
    env.define("a", 1.0)
    env.define("a", 2.0)

    assert env.get(name("a")) == 2.0


def test_get_walks_enclosing_chain():
    outer = Environment()
    outer.define("a", "outer")
    inner = Environment(Environment(outer))

    assert inner.get(name("a")) == "outer"
    assert inner.ancestor(2) is outer
    assert inner.get_at(2, "a") == "outer"


def test_assign_updates_declaring_scope():
    outer = Environment()
    outer.define("a", 1.0)
    inner = Environment(outer)

    inner.assign(name("a"), 5.0)

    assert "a" not in inner.values
    assert outer.values["a"] == 5.0


def test_assign_at_ignores_shadowing():
    outer = Environment()
    outer.define("a", "outer")
    inner = Environment(outer)
    inner.define("a", "inner")

    inner.assign_at(1, name("a"), "changed")

    assert inner.get_at(0, "a") == "inner"
    assert outer.get_at(0, "a") == "changed"


def test_undefined_variable():
    env = Environment(Environment())

    with pytest.raises(LoxRuntimeError, match="Undefined variable 'nope'") as info:
        env.get(name("nope", line=7))
    assert info.value.line == 7

    with pytest.raises(LoxRuntimeError):
        env.assign(name("nope"), 1.0)


def test_ancestor_past_global_scope():
    with pytest.raises(ValueError):
        Environment().ancestor(1)


class DynamicInterpreter(Interpreter):
    """Looks every name up by walking the scope chain at run time."""

    def resolve(self, expr: ex.Expr, depth: int) -> None:
        pass

    def look_up_variable(self, name: Token, expr: ex.Expr) -> Any:
        return self.environment.get(name)

    def assign_variable(self, name: Token, expr: ex.Expr, value: Any) -> None:
        self.environment.assign(name, value)


def execute(interpreter_type: type[Interpreter], source: str, capsys) -> str:
    diagnostics = Diagnostics()
    statements, _ = parse(source, diagnostics)
    interpreter = interpreter_type(diagnostics)
    Resolver(interpreter, diagnostics).resolve(statements)
    assert not diagnostics.had_error, diagnostics.messages

    interpreter.interpret(statements)
    assert not diagnostics.had_runtime_error, diagnostics.messages
    return capsys.readouterr().out


@pytest.mark.parametrize("source", [
    "var a = 1; { var b = a + 1; { var c = b * 2; print a + b + c; } }",
    "fun add(x, y) { return x + y; } print add(2, 3);",
    """
    fun counter() { var n = 0; fun inc() { n = n + 1; return n; } return inc; }
    var c = counter(); c(); print c();
    """,
    """
    class Point {
        init(x, y) { this.x = x; this.y = y; }
        sum() { return this.x + this.y; }
    }
    print Point(1, 2).sum();
    """,
    "var total = 0; for (var i = 0; i < 5; i = i + 1) { if (i == 3) continue; total = total + i; } print total;",
    "var l = [1, 2]; { var m = l; add(m, 3); } print l;",
])
def test_resolved_lookup_matches_dynamic_lookup(source, capsys):
    resolved = execute(Interpreter, source, capsys)
    dynamic = execute(DynamicInterpreter, source, capsys)

    assert resolved == dynamic
    assert resolved != ""

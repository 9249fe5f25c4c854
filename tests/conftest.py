from dataclasses import dataclass

import pytest

from treelox import stmt as st
from treelox.ast_printer import AstPrinter
from treelox.diagnostics import Diagnostics
from treelox.interpreter import Interpreter
from treelox.lox import Lox
from treelox.parser import Parser
from treelox.resolver import Resolver
from treelox.scanner import Scanner


@dataclass
class Outcome:
    output: list[str]
    errors: list[str]
    had_error: bool
    had_runtime_error: bool


def parse(source: str, diagnostics: Diagnostics | None = None) -> tuple[list[st.Stmt], Diagnostics]:
    if diagnostics is None:
        diagnostics = Diagnostics()
    tokens = Scanner(source, diagnostics).scan_tokens()
    return Parser(tokens, diagnostics).parse(), diagnostics


def resolve(source: str) -> tuple[list[st.Stmt], Interpreter, Diagnostics]:
    statements, diagnostics = parse(source)
    assert not diagnostics.had_error, diagnostics.messages
    interpreter = Interpreter(diagnostics)
    Resolver(interpreter, diagnostics).resolve(statements)
    return statements, interpreter, diagnostics


def show(source: str) -> str:
    statements, diagnostics = parse(source)
    assert not diagnostics.had_error, diagnostics.messages
    return AstPrinter().print(statements)


@pytest.fixture
def lox() -> Lox:
    return Lox(Diagnostics())


@pytest.fixture
def run(lox, capsys):
    def run(source: str, interactive: bool = False) -> Outcome:
        start = len(lox.diagnostics.messages)
        lox.run(source, interactive=interactive)
        output = capsys.readouterr().out
        return Outcome(
            output.splitlines(),
            lox.diagnostics.messages[start:],
            lox.had_error,
            lox.had_runtime_error,
        )

    return run

import os

from treelox.diagnostics import Diagnostics
from treelox.interpreter import Interpreter
from treelox.parser import Parser
from treelox.resolver import Resolver
from treelox.scanner import Scanner

class Lox:
    """Runs source text through scanner, parser, resolver and interpreter.

    The interpreter outlives single runs, so globals and resolved closures
    persist from one prompt line to the next.
    """
    diagnostics: Diagnostics
    interpreter: Interpreter

    def __init__(self, diagnostics: Diagnostics | None = None) -> None:
        if diagnostics is None:
            diagnostics = Diagnostics()
        self.diagnostics = diagnostics
        self.interpreter = Interpreter(diagnostics)

    @property
    def had_error(self) -> bool:
        return self.diagnostics.had_error

    @property
    def had_runtime_error(self) -> bool:
        return self.diagnostics.had_runtime_error

    def run_file(self, path: str | os.PathLike) -> None:
        with open(path, "r") as file:
            prog = file.read()
            self.run(prog)

    def run_prompt(self) -> None:
        try:
            while True:
                line = input("> ")
                if line.strip():
                    self.run(line, interactive=True)
                self.diagnostics.reset()
        except EOFError:
            print("Bye.")

    def run(self, source: str, interactive: bool = False) -> None:
        scanner = Scanner(source, self.diagnostics)
        tokens = scanner.scan_tokens()

        parser = Parser(tokens, self.diagnostics)
        statements = parser.parse()

        if self.had_error or not statements:
            return

        resolver = Resolver(self.interpreter, self.diagnostics)
        resolver.resolve(statements)

        if self.had_error:
            return

        if interactive and len(statements) == 1:
            self.interpreter.interpret_printing(statements[0])
        else:
            self.interpreter.interpret(statements)

import sys
from typing import TextIO, TYPE_CHECKING

from treelox.tokens import Token, TokenType as TT

if TYPE_CHECKING:
    from treelox.errors import LoxRuntimeError


class Diagnostics:
    """Collects the errors reported by every stage of one run.

    The driver inspects ``had_error`` between stages: any syntax or
    resolution error suppresses execution. ``had_runtime_error`` only
    decides the exit code, a REPL calls ``reset()`` and keeps going.
    """

    had_error: bool
    had_runtime_error: bool
    messages: list[str]

    def __init__(self, stream: TextIO | None = None) -> None:
        self.stream = stream
        self.had_error = False
        self.had_runtime_error = False
        self.messages = []

    def error(self, where: int | Token, message: str) -> None:
        if isinstance(where, int):
            self.report(where, "", message)
        elif where.type == TT.EOF:
            self.report(where.line, " at end", message)
        else:
            self.report(where.line, f" at '{where.lexeme}'", message)

    def runtime_error(self, error: 'LoxRuntimeError') -> None:
        if error.line is not None:
            self.emit(f"{error}\n[line {error.line}]")
        else:
            self.emit(str(error))
        self.had_runtime_error = True

    def report(self, line: int, where: str, message: str) -> None:
        self.emit(f"[line {line}] Error{where}: {message}")
        self.had_error = True

    def emit(self, text: str) -> None:
        self.messages.append(text)
        print(text, file=self.stream if self.stream is not None else sys.stderr)

    def reset(self) -> None:
        self.had_error = False
        self.had_runtime_error = False
        self.messages.clear()

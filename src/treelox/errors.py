from typing import Final

from treelox.tokens import Token


class LoxRuntimeError(Exception):
    """A fault raised while executing a program.

    ``where`` is the offending token, or a bare line number for faults such
    as a non-boolean ternary selector that have no single token. Natives
    raise with ``None`` and the call site fills in its own token.
    """
    token: Final[Token | None]
    line: Final[int | None]

    def __init__(self, where: Token | int | None, message: str) -> None:
        super().__init__(message)
        if isinstance(where, Token):
            self.token = where
            self.line = where.line
        else:
            self.token = None
            self.line = where

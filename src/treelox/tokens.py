from dataclasses import dataclass
from enum import Enum
from typing import Any


class TokenType(Enum):
    LEFT_PAREN = "("
    RIGHT_PAREN = ")"
    LEFT_BRACE = "{"
    RIGHT_BRACE = "}"
    LEFT_BRACKET = "["
    RIGHT_BRACKET = "]"
    COMMA = ","
    DOT = "."
    MINUS = "-"
    PLUS = "+"
    SEMICOLON = ";"
    SLASH = "/"
    STAR = "*"
    QUESTION = "?"
    COLON = ":"

    BANG = "!"
    BANG_EQUAL = "!="
    EQUAL = "="
    EQUAL_EQUAL = "=="
    GREATER = ">"
    GREATER_EQUAL = ">="
    LESS = "<"
    LESS_EQUAL = "<="

    IDENTIFIER = "<identifier>"
    STRING = "<string>"
    NUMBER = "<number>"

    AND = "and"
    BREAK = "break"
    CLASS = "class"
    CONTINUE = "continue"
    ELSE = "else"
    FALSE = "false"
    FUN = "fun"
    FOR = "for"
    IF = "if"
    NIL = "nil"
    OR = "or"
    PRINT = "print"
    RETURN = "return"
    THIS = "this"
    TRUE = "true"
    VAR = "var"
    WHILE = "while"

    EOF = "<eof>"

_TT = TokenType

KEYWORDS: dict[str, TokenType] = {
    tt.value: tt for tt in (
        _TT.AND, _TT.BREAK, _TT.CLASS, _TT.CONTINUE, _TT.ELSE, _TT.FALSE,
        _TT.FUN, _TT.FOR, _TT.IF, _TT.NIL, _TT.OR, _TT.PRINT, _TT.RETURN,
        _TT.THIS, _TT.TRUE, _TT.VAR, _TT.WHILE,
    )
}

class TokenGroup:
    Comparison = {_TT.GREATER, _TT.GREATER_EQUAL, _TT.LESS, _TT.LESS_EQUAL}
    Equality = {_TT.EQUAL_EQUAL, _TT.BANG_EQUAL}
    Factor = {_TT.STAR, _TT.SLASH}
    Term = {_TT.PLUS, _TT.MINUS}

@dataclass(frozen=True)
class Token:
    type: TokenType
    lexeme: str
    line: int
    literal: Any = None

    def __str__(self) -> str:
        return f"{self.type} {self.lexeme} {self.literal}"

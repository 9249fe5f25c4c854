import pytest

from treelox.diagnostics import Diagnostics
from treelox.scanner import Scanner
from treelox.tokens import TokenType as TT


def scan(source: str) -> tuple[list, Diagnostics]:
    diagnostics = Diagnostics()
    return Scanner(source, diagnostics).scan_tokens(), diagnostics


def types(source: str) -> list[TT]:
    tokens, _ = scan(source)
    return [token.type for token in tokens]


def test_variable_declaration():
    tokens, diagnostics = scan("var x = 1.5;")

    assert [t.type for t in tokens] == [
        TT.VAR, TT.IDENTIFIER, TT.EQUAL, TT.NUMBER, TT.SEMICOLON, TT.EOF
    ]
    assert tokens[1].lexeme == "x"
    assert tokens[3].literal == 1.5
    assert not diagnostics.had_error


@pytest.mark.parametrize("source, expected", [
    ("!= == <= >= < > = !", [TT.BANG_EQUAL, TT.EQUAL_EQUAL, TT.LESS_EQUAL, TT.GREATER_EQUAL,
                             TT.LESS, TT.GREATER, TT.EQUAL, TT.BANG]),
    ("[1, 2]", [TT.LEFT_BRACKET, TT.NUMBER, TT.COMMA, TT.NUMBER, TT.RIGHT_BRACKET]),
    ("a ? b : c", [TT.IDENTIFIER, TT.QUESTION, TT.IDENTIFIER, TT.COLON, TT.IDENTIFIER]),
    ("break continue this", [TT.BREAK, TT.CONTINUE, TT.THIS]),
    ("_under score_1", [TT.IDENTIFIER, TT.IDENTIFIER]),
    ("classy class", [TT.IDENTIFIER, TT.CLASS]),
])
def test_token_types(source, expected):
    assert types(source) == expected + [TT.EOF]


def test_integer_literal_is_float():
    tokens, _ = scan("42")
    assert tokens[0].literal == 42.0
    assert isinstance(tokens[0].literal, float)


def test_comments_are_skipped_and_lines_counted():
    tokens, diagnostics = scan("// comment\n/* one\ntwo /* nested */ */ print")

    assert [t.type for t in tokens] == [TT.PRINT, TT.EOF]
    assert tokens[0].line == 3
    assert not diagnostics.had_error


def test_multiline_string():
    tokens, _ = scan('"a\nb" x')

    assert tokens[0].type == TT.STRING
    assert tokens[0].literal == "a\nb"
    assert tokens[1].line == 2


def test_unterminated_string():
    _, diagnostics = scan('"abc')

    assert diagnostics.had_error
    assert diagnostics.messages == ["[line 1] Error: Unterminated string"]


def test_unexpected_characters_grouped_by_line(capsys):
    tokens, diagnostics = scan("@ # 1\n$")

    assert diagnostics.messages == [
        "[line 1] Error: Unexpected characters: @#",
        "[line 2] Error: Unexpected characters: $",
    ]
    assert [t.type for t in tokens] == [TT.NUMBER, TT.EOF]
    assert "Unexpected characters: @#" in capsys.readouterr().err

import pytest

from treelox import expr as ex
from treelox import stmt as st

from conftest import parse, show


@pytest.mark.parametrize("source, expected", [
    ("1 + 2 * 3;", "(; (+ 1 (* 2 3)))"),
    ("(1 + 2) * 3;", "(; (* (group (+ 1 2)) 3))"),
    ("1 - 2 - 3;", "(; (- (- 1 2) 3))"),
    ("-a - -b;", "(; (- (- a) (- b)))"),
    ("!!a;", "(; (! (! a)))"),
    ("a < b == c >= d;", "(; (== (< a b) (>= c d)))"),
    ("a or b and c;", "(; (or a (and b c)))"),
    ("a and b ? c : d;", "(; (and a (?: b c d)))"),
    ("a == b ? x : y;", "(; (?: (== a b) x y))"),
    ("a ? b ? c : d : e;", "(; (?: a (?: b c d) e))"),
    ("a = b = 1;", "(; (= a (= b 1)))"),
    ("obj.field = 3;", "(; (.= field obj 3))"),
    ("f(1)(2).x;", "(; (. x (call (call f 1) 2)))"),
    ("f();", "(; (call f))"),
    ('[1, "a", nil, true];', '(; (list 1 "a" nil true))'),
    ("[];", "(; (list))"),
    ("fun (a) { return a; };", "(; (fun (a) (return a)))"),
    ("print 2.5;", "(print 2.5)"),
    ("var a;", "(var a)"),
    ("if (a) print 1; else print 2;", "(if a (print 1) (print 2))"),
    ("while (a) { a = false; }", "(while a (block (; (= a false))))"),
])
def test_expression_precedence(source, expected):
    assert show(source) == expected


def test_for_loop_desugars_into_while_with_step():
    assert show("for (var i = 0; i < 3; i = i + 1) print i;") == (
        "(block (var i 0) (while (< i 3) (print i) (; (= i (+ i 1)))))"
    )


def test_empty_for_loop_clauses():
    assert show("for (;;) break;") == "(while true (break))"


def test_for_loop_step_is_attached_to_while():
    statements, _ = parse("for (; i < 3; i = i + 1) {}")
    loop = statements[0]

    assert isinstance(loop, st.While)
    assert isinstance(loop.step, st.Expression)
    assert isinstance(loop.step.expression, ex.Assign)


def test_class_declaration():
    assert show("class A { init(x) { this.x = x; } get() { return this.x; } }") == (
        "(class A (fun init (x) (; (.= x this x))) (fun get () (return (. x this))))"
    )


def test_ternary_records_selector_line():
    statements, _ = parse("print\na\n? 1 : 2;")
    ternary = statements[0].expression

    assert isinstance(ternary, ex.Ternary)
    assert ternary.selector_line == 2


def test_missing_semicolon():
    statements, diagnostics = parse("print 1")

    assert statements == []
    assert diagnostics.messages == ["[line 1] Error at end: Expected ';' after value"]


def test_missing_expression():
    _, diagnostics = parse("print ;")
    assert diagnostics.messages == ["[line 1] Error at ';': Expected expression"]


def test_missing_ternary_colon():
    _, diagnostics = parse("a ? b;")
    assert diagnostics.messages == ["[line 1] Error at ';': Expected ':' in ternary expression"]


def test_recovers_and_reports_every_statement_error():
    statements, diagnostics = parse("print 1 print 2;\nvar = 3;\nprint 4;")

    assert diagnostics.messages == [
        "[line 1] Error at 'print': Expected ';' after value",
        "[line 2] Error at '=': Expected variable name",
    ]
    assert len(statements) == 1
    assert isinstance(statements[0], st.Print)


def test_recovers_inside_block():
    statements, diagnostics = parse("{ var = 1; print 2; }")

    assert len(diagnostics.messages) == 1
    assert isinstance(statements[0], st.Block)
    assert isinstance(statements[0].statements[0], st.Print)


def test_invalid_assignment_target_keeps_parsing():
    statements, diagnostics = parse("a + b = c; print 1;")

    assert diagnostics.messages == ["[line 1] Error at '=': Invalid assignment target"]
    assert len(statements) == 2
    assert isinstance(statements[0].expression, ex.Binary)


@pytest.mark.parametrize("source", [
    "break;",
    "if (true) break;",
    "while (true) { fun f() { break; } }",
    "for (;;) { var f = fun () { break; }; }",
])
def test_break_outside_loop(source):
    _, diagnostics = parse(source)

    assert diagnostics.had_error
    assert "Can't use 'break' outside of a loop" in diagnostics.messages[0]


def test_continue_outside_loop():
    _, diagnostics = parse("continue;")
    assert diagnostics.messages == ["[line 1] Error at 'continue': Can't use 'continue' outside of a loop"]


@pytest.mark.parametrize("source", [
    "while (true) break;",
    "while (true) { if (true) { continue; } }",
    "for (;;) { while (false) {} break; }",
])
def test_control_flow_inside_loop(source):
    _, diagnostics = parse(source)
    assert not diagnostics.had_error


def test_too_many_arguments_is_reported_but_parsed():
    args = ", ".join(["1"] * 256)
    statements, diagnostics = parse(f"f({args});")

    assert diagnostics.messages == ["[line 1] Error at '1': Can't have more than 255 arguments"]
    assert len(statements[0].expression.arguments) == 256


def test_too_many_parameters():
    params = ", ".join(f"p{i}" for i in range(256))
    statements, diagnostics = parse(f"fun f({params}) {{}}")

    assert diagnostics.messages == ["[line 1] Error at 'p255': Can't have more than 255 parameters"]
    assert len(statements[0].function.params) == 256


def test_identical_references_are_distinct_nodes():
    statements, _ = parse("a; a;")
    first, second = (s.expression for s in statements)

    assert first is not second
    assert first != second
    assert len({first, second}) == 2

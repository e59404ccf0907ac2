import pytest

from reef.risp.errors import ErrorCodes, RispSyntaxError
from reef.risp.nodes import Call, Clause, Literal, SymbolRef, referenced_symbols, unparse
from reef.risp.parser import MAX_DEPTH, is_symbol_name, parse
from reef.risp.values import FALSE, TRUE, Duration, Instant, Number


def test_parses_leaf_literals_by_shape():
    assert parse("80") == Literal(Number(80))
    assert parse("-1.5") == Literal(Number(-1.5))
    assert parse(".5") == Literal(Number(0.5))
    assert parse("1e3") == Literal(Number(1000))
    assert parse("PT5M") == Literal(Duration(300))
    assert parse("P1DT2H") == Literal(Duration(86_400 + 7_200))
    assert parse("-PT30S") == Literal(Duration(-30))
    assert parse("08:30:00") == Literal(Instant.clock(8, 30))
    assert parse("true") == Literal(TRUE)
    assert parse("t") == Literal(TRUE)
    assert parse("false") == Literal(FALSE)
    assert parse("Tank_Temperature") == SymbolRef("Tank_Temperature")


def test_integer_and_float_literals_are_the_same_number():
    assert parse("80") == parse("80.0")


def test_bare_now_is_a_call():
    assert parse("now") == Call("now")
    assert parse("(now)") == Call("now")


def test_time_window_example():
    node = parse("(if (> 06:00:00 (now) 18:00:00) 1 0)")

    assert node == Call(
        "if",
        (
            Call(">", (Literal(Instant.clock(6)), Call("now"), Literal(Instant.clock(18)))),
            Literal(Number(1)),
            Literal(Number(0)),
        ),
    )


def test_heater_cond_example_uses_grouping():
    node = parse("(cond ((> Tank_Temperature 82) (0)) ((< Tank_Temperature 78) (1)) (t Heater_Outlet))")

    assert node == Call(
        "cond",
        (
            Clause(Call(">", (SymbolRef("Tank_Temperature"), Literal(Number(82)))), Literal(Number(0))),
            Clause(Call("<", (SymbolRef("Tank_Temperature"), Literal(Number(78)))), Literal(Number(1))),
            Clause(Literal(TRUE), SymbolRef("Heater_Outlet")),
        ),
    )


def test_word_aliases_keep_their_spelling():
    assert parse("(add 1 2)") == Call("add", (Literal(Number(1)), Literal(Number(2))))
    assert parse("(rem 7 2)").operator == "rem"


def test_whitespace_is_insignificant():
    assert parse("  (+\n 1\t2 )  ") == parse("(+ 1 2)")


def test_same_text_yields_equal_trees():
    text = "(and (> Tank_Temperature 70) (not (== Pump_State false)))"
    assert parse(text) == parse(text)


@pytest.mark.parametrize(
    "text",
    [
        "(if (> 06:00:00 (now) 18:00:00) 1 0)",
        "(cond ((> Tank_Temperature 82) 0) ((< Tank_Temperature 78) 1) (t Heater_Outlet))",
        "(+ Feed_Time PT15M)",
        "(- 1.25 -3)",
    ],
)
def test_unparse_reparses_to_an_equal_tree(text):
    node = parse(text)
    assert parse(unparse(node)) == node


def test_referenced_symbols_lists_channel_names():
    node = parse("(cond ((> Tank_Temperature 82) 0) (t Heater_Outlet))")
    assert referenced_symbols(node) == {"Tank_Temperature", "Heater_Outlet"}


@pytest.mark.parametrize("text", ["Tank_Temperature", "Lights.On", "_x", "nowish", "T"])
def test_is_symbol_name_accepts_channel_names(text):
    assert is_symbol_name(text)
    assert parse(text) == SymbolRef(text)


@pytest.mark.parametrize("text", ["now", "t", "true", "false", "if", "mul", "PT5M", "P1H", "08:30:00", "80", "a b"])
def test_is_symbol_name_rejects_reserved_and_literal_tokens(text):
    assert not is_symbol_name(text)


@pytest.mark.parametrize(
    "text, fragment",
    [
        ("", "empty expression"),
        ("(+ 1 2", "never closed"),
        ("(+ 1 2))", "unexpected ')'"),
        (")", "unexpected ')'"),
        ("()", "empty form"),
        ("(frobnicate 1 2)", "unknown operator"),
        ("(1 2)", "must start with an operator"),
        ("25:00:00", "invalid time of day"),
        ("P1H", "malformed duration"),
        ("12abc", "unrecognized literal"),
        ("+", "must be called as a form"),
        ("1 2", "trailing input"),
        ("(cond (t))", "(test result) pair"),
    ],
)
def test_malformed_text_raises_syntax_error(text, fragment):
    with pytest.raises(RispSyntaxError) as excinfo:
        parse(text)

    assert fragment in str(excinfo.value)
    assert excinfo.value.code == ErrorCodes.SYNTAX_ERROR


def test_syntax_error_reports_position():
    with pytest.raises(RispSyntaxError) as excinfo:
        parse("(+ 1 (bogus 2))")

    assert excinfo.value.position == 6
    assert excinfo.value.to_dict()["position"] == 6


def test_nesting_limit():
    deep = "(not " * (MAX_DEPTH + 2) + "true" + ")" * (MAX_DEPTH + 2)

    with pytest.raises(RispSyntaxError, match="nested too deeply"):
        parse(deep)

import pytest

from automata_errors import ParseError
from automata_rules import (
    Action, Direction, PRINT_KEY, parse_mode, parse_rule_line, parse_rules, parse_rules_file,
)


def test_parse_rules_skips_blank_and_comment_lines() -> None:
    text = """
    // header comment
    # another comment

    1] right (a,2) (b,3)
    3] accept
    """

    records, max_id = parse_rules(text)

    assert [r.state_id for r in records] == [1, 3]
    assert records[0].pairs == [("a", 2), ("b", 3)]
    assert records[0].line == 5
    assert records[1].accept and not records[1].reject
    assert max_id == 3


def test_max_id_counts_targets() -> None:
    _, max_id = parse_rules("1] right (a,7)\n2] reject\n")
    assert max_id == 7


def test_empty_text_parses_to_nothing() -> None:
    assert parse_rules("") == ([], 0)


@pytest.mark.parametrize(
    "mode, expected",
    [
        ("left", (Direction.LEFT, Action.SCAN)),
        ("r", (Direction.RIGHT, Action.SCAN)),
        ("pop", (Direction.RIGHT, Action.POP1)),
        ("scan-left", (Direction.LEFT, Action.SCAN)),
        ("left scan", (Direction.LEFT, Action.SCAN)),
        ("push2 L", (Direction.LEFT, Action.PUSH2)),
        ("write", (Direction.RIGHT, Action.PUSH1)),
        ("read2", (Direction.RIGHT, Action.POP2)),
        ("NONE", (Direction.RIGHT, Action.NONE)),
        ("print", (Direction.RIGHT, Action.PRINT)),
    ],
)
def test_parse_mode(mode, expected) -> None:
    direction, action, write_symbol = parse_mode(mode)
    assert (direction, action) == expected
    assert write_symbol is None


def test_parse_mode_tape_write() -> None:
    assert parse_mode("put=x left") == (Direction.LEFT, Action.WRITE_TAPE, "x")
    assert parse_mode("right write_tape=-") == (Direction.RIGHT, Action.WRITE_TAPE, "-")


@pytest.mark.parametrize(
    "mode, expected",
    [
        ("put=x-left", (Direction.LEFT, Action.WRITE_TAPE, "x")),
        ("left-put=x", (Direction.LEFT, Action.WRITE_TAPE, "x")),
        ("write_tape=--right", (Direction.RIGHT, Action.WRITE_TAPE, "-")),
        ("put=- l", (Direction.LEFT, Action.WRITE_TAPE, "-")),
    ],
)
def test_parse_mode_tape_write_with_hyphens(mode, expected) -> None:
    assert parse_mode(mode) == expected


def test_hyphenated_tape_write_in_a_rule_line() -> None:
    rule = parse_rule_line("3] put=x-left (a,5)", line=1)

    assert rule.action == Action.WRITE_TAPE
    assert rule.write_symbol == "x"
    assert rule.direction == Direction.LEFT


@pytest.mark.parametrize("mode", ["jump", "left right", "scan pop", "left scan pop", "put=xy", "put=#", ""])
def test_parse_mode_rejects_bad_modes(mode) -> None:
    with pytest.raises(ParseError):
        parse_mode(mode, line=4)


def test_print_line_uses_placeholder_key() -> None:
    rule = parse_rule_line("2] print (a,1)", line=1)

    assert rule.action == Action.PRINT
    assert rule.print_symbol == "a"
    assert rule.pairs == [(PRINT_KEY, 1)]


@pytest.mark.parametrize(
    "line, fragment",
    [
        ("1 right (a,2)", "missing ']'"),
        ("1] right a,2", "missing '('"),
        ("x] right (a,2)", "state id"),
        ("-1] right (a,2)", "state id"),
        ("\u00b2] accept", "state id"),
        ("1] right (a,\u00b2)", "target state"),
        ("1] right (a,b)", "target state"),
        ("1] right (ab,2)", "exactly one character"),
        ("1] right (,2)", "exactly one character"),
        ("1] right (a,2,3)", "expected (symbol,target)"),
        ("1] fly (a,2)", "unknown mode"),
        ("1] print (a,2) (b,3)", "exactly one"),
        ("1] print (#,2)", "print symbol"),
    ],
)
def test_parse_errors_carry_line_number(line, fragment) -> None:
    with pytest.raises(ParseError) as excinfo:
        parse_rules(f"// first\n{line}\n")

    assert excinfo.value.line == 2
    assert fragment in excinfo.value.reason
    assert str(excinfo.value).startswith("line 2:")


def test_parse_error_is_a_value_error() -> None:
    with pytest.raises(ValueError):
        parse_rules("1] bogus (a,2)")


def test_parse_rules_file(rules_dir) -> None:
    records, max_id = parse_rules_file(rules_dir / "pda.txt")

    assert [r.state_id for r in records] == [1, 2, 3, 4]
    assert records[1].action == Action.PUSH1
    assert max_id == 4

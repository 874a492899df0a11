"""
Rule file parser.

A rule file describes a machine one state per line:

    // comment
    # comment (hash followed by a space)
    1] right (a,2) (b,3)        direction only: action defaults to scan
    2] push (a,2) (b,4)         action only: direction defaults to right
    3] put=x left (a,5)         Turing machine tape write of 'x'
    4] print (a,1)              transducer: emit 'a', go to 1
    5] accept
    6] reject

Mode words are separated by spaces or hyphens ("scan-left", "left scan").
Symbols are single characters; '#' is the tape boundary marker.

parse_rules() only checks syntax. Turning the records into a graph is done by
automata_graph.build_graph().
"""

from dataclasses import dataclass, field
from enum import IntEnum
from pathlib import Path
from typing import List, Optional, Tuple
import re

from automata_errors import ParseError


BOUNDARY = '#'
PRINT_KEY = '_'  # edge key of the single successor of a print state


class Direction(IntEnum):
    LEFT = -1
    RIGHT = 1

    @property
    def short(self) -> str:
        return 'L' if self is Direction.LEFT else 'R'


class Action(IntEnum):
    NONE = 0
    SCAN = 1
    WRITE_TAPE = 2
    PUSH1 = 3
    POP1 = 4
    PUSH2 = 5
    POP2 = 6
    PRINT = 7

    @property
    def label(self) -> str:
        return ACTION_LABELS[self]


ACTION_LABELS = {
    Action.NONE: 'None',
    Action.SCAN: 'Scan',
    Action.WRITE_TAPE: 'WTape',
    Action.PUSH1: 'Push1',
    Action.POP1: 'Pop1',
    Action.PUSH2: 'Push2',
    Action.POP2: 'Pop2',
    Action.PRINT: 'Print',
}

DIRECTION_WORDS = {
    'left': Direction.LEFT,
    'l': Direction.LEFT,
    'right': Direction.RIGHT,
    'r': Direction.RIGHT,
}

ACTION_WORDS = {
    'scan': Action.SCAN,
    'none': Action.NONE,
    'print': Action.PRINT,
    'write': Action.PUSH1,
    'write1': Action.PUSH1,
    'push': Action.PUSH1,
    'push1': Action.PUSH1,
    'write2': Action.PUSH2,
    'push2': Action.PUSH2,
    'read': Action.POP1,
    'read1': Action.POP1,
    'pop': Action.POP1,
    'pop1': Action.POP1,
    'read2': Action.POP2,
    'pop2': Action.POP2,
}

# put=<sym> / write_tape=<sym>
TAPE_WRITE_WORDS = ('put', 'write_tape')

_PAIR_PATTERN = re.compile(r'\(([^()]*)\)')


@dataclass
class RawRule:
    """One parsed line of a rule file, before graph construction."""
    line: int
    state_id: int
    direction: Direction = Direction.RIGHT
    action: Optional[Action] = None  # None for accept/reject lines
    pairs: List[Tuple[str, int]] = field(default_factory=list)
    accept: bool = False
    reject: bool = False
    print_symbol: Optional[str] = None
    write_symbol: Optional[str] = None

    @property
    def targets(self) -> List[int]:
        return [target for _, target in self.pairs]


def _parse_id(text: str, line: int, what: str) -> int:
    text = text.strip()
    # isdigit() alone also admits digits int() cannot read, e.g. '²'
    if not (text.isascii() and text.isdigit()):
        raise ParseError(line, f"{what} must be a non-negative integer, got {text!r}")
    return int(text)


def _parse_symbol(text: str, line: int, what: str = 'symbol') -> str:
    text = text.strip()
    if len(text) != 1:
        raise ParseError(line, f"{what} must be exactly one character, got {text!r}")
    return text


def _split_words(text: str) -> List[str]:
    return [part for part in text.split('-') if part]


def _mode_tokens(mode: str) -> List[str]:
    """
    Split a mode string on spaces and hyphens, keeping 'put=<sym>' intact.

    The symbol after '=' may itself be a hyphen, so only a hyphen following
    the one-character symbol separates the next word: 'put=x-left',
    'left-put=x', 'write_tape=--right'.
    """
    tokens = []
    for word in mode.split():
        if '=' not in word:
            tokens.extend(_split_words(word))
            continue
        head, _, value = word.partition('=')
        *before, key = head.split('-')
        tokens.extend(part for part in before if part)
        if len(value) > 1 and value[1] == '-':
            tokens.append(f"{key}={value[0]}")
            tokens.extend(_split_words(value[2:]))
        else:
            tokens.append(f"{key}={value}")
    return tokens


def parse_mode(mode: str, line: int = 0) -> Tuple[Direction, Action, Optional[str]]:
    """
    Parse the mode part of a rule line.

    Args:
        mode: text between ']' and the first '(' (e.g. "scan-left", "pop")
        line: line number used in error messages

    Returns:
        Tuple of (direction, action, write_symbol). write_symbol is only set
        for tape-writing modes.
    """
    tokens = _mode_tokens(mode)
    if not tokens:
        raise ParseError(line, "empty mode")
    if len(tokens) > 2:
        raise ParseError(line, f"too many mode words in {mode!r}")

    direction = None
    action = None
    write_symbol = None

    for token in tokens:
        word = token.lower()
        if '=' in word:
            key, _, value = token.partition('=')
            if key.lower() not in TAPE_WRITE_WORDS or action is not None:
                raise ParseError(line, f"unknown mode {mode!r}")
            write_symbol = _parse_symbol(value, line, 'write symbol')
            if write_symbol == BOUNDARY:
                raise ParseError(line, f"write symbol cannot be {BOUNDARY!r}")
            action = Action.WRITE_TAPE
        elif word in DIRECTION_WORDS and direction is None:
            direction = DIRECTION_WORDS[word]
        elif word in ACTION_WORDS and action is None:
            action = ACTION_WORDS[word]
        else:
            raise ParseError(line, f"unknown mode {mode!r}")

    if action is None:
        action = Action.SCAN
    if direction is None:
        direction = Direction.RIGHT
    return direction, action, write_symbol


def _parse_pairs(text: str, line: int) -> List[Tuple[str, int]]:
    pairs = []
    for match in _PAIR_PATTERN.finditer(text):
        parts = match.group(1).split(',')
        if len(parts) != 2:
            raise ParseError(line, f"expected (symbol,target), got ({match.group(1)})")
        symbol = _parse_symbol(parts[0], line)
        target = _parse_id(parts[1], line, 'target state')
        pairs.append((symbol, target))
    return pairs


def parse_rule_line(text: str, line: int = 0) -> Optional[RawRule]:
    """
    Parse a single line. Returns None for blank and comment lines.
    """
    text = text.strip()
    if not text or text.startswith('//') or text.startswith('# '):
        return None

    head, sep, rest = text.partition(']')
    if not sep:
        raise ParseError(line, "missing ']'")
    state_id = _parse_id(head, line, 'state id')
    rest = rest.strip()

    keyword = rest.lower()
    if keyword == 'accept':
        return RawRule(line=line, state_id=state_id, accept=True)
    if keyword == 'reject':
        return RawRule(line=line, state_id=state_id, reject=True)

    paren = rest.find('(')
    if paren < 0:
        raise ParseError(line, "missing '('")
    direction, action, write_symbol = parse_mode(rest[:paren], line)
    pairs = _parse_pairs(rest[paren:], line)
    if not pairs:
        raise ParseError(line, "expected at least one (symbol,target) pair")

    rule = RawRule(line=line, state_id=state_id, direction=direction,
                   action=action, pairs=pairs, write_symbol=write_symbol)

    if action == Action.PRINT:
        if len(pairs) != 1:
            raise ParseError(line, "print takes exactly one (symbol,target) pair")
        symbol, target = pairs[0]
        if symbol == BOUNDARY:
            raise ParseError(line, f"print symbol cannot be {BOUNDARY!r}")
        rule.print_symbol = symbol
        rule.pairs = [(PRINT_KEY, target)]

    return rule


def parse_rules(text: str) -> Tuple[List[RawRule], int]:
    """
    Parse a whole rule file.

    Args:
        text: newline-delimited rule text

    Returns:
        Tuple of (records, max_id) where records keep file order and max_id is
        the largest state id referenced as a source or a target (0 if none).
    """
    records = []
    max_id = 0
    for number, raw_line in enumerate(text.splitlines(), start=1):
        rule = parse_rule_line(raw_line, number)
        if rule is None:
            continue
        records.append(rule)
        max_id = max([max_id, rule.state_id] + rule.targets)
    return records, max_id


def parse_rules_file(path) -> Tuple[List[RawRule], int]:
    """Read and parse a rule file from disk."""
    return parse_rules(Path(path).read_text(encoding='utf-8'))

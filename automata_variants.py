"""
Machine kinds and their variant descriptors.

A descriptor is a row in a dispatch table: how the head moves, what the
acceptance check is, and which storage (tape writes, stacks, output) the kind
uses. The stepper in automaton.py only ever consults the descriptor, so a new
kind is a new row here.
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import Callable, Dict

from automata_rules import Action, BOUNDARY


class MachineKind(IntEnum):
    TWA = 0
    TM = 1
    PDA = 2
    TWO_PDA = 3
    TRANSDUCER = 4


# head_rule(ctx, state, successor, symbol) -> head delta
# accepts(ctx) -> bool

def move_by_successor(ctx, state, successor, symbol):
    """Two-way machines: every step moves by the successor's direction."""
    return int(successor.direction)


def advance_unless_boundary(ctx, state, successor, symbol):
    """One-way pushdown: consume the symbol unless it is the boundary."""
    return 0 if symbol == BOUNDARY else 1


def advance_while_scanning(ctx, state, successor, symbol):
    """Transducer: print steps stay put, scanning steps consume the symbol."""
    if state.action == Action.PRINT or symbol == BOUNDARY:
        return 0
    return 1


def accept_always(ctx):
    return True


def accept_if_stack1_empty(ctx):
    return not ctx.stack1


def accept_if_stacks_empty(ctx):
    return not ctx.stack1 and not ctx.stack2


@dataclass(frozen=True)
class VariantDescriptor:
    """
    Per-kind execution policy.

    Attributes:
        kind: the MachineKind this row describes
        name: short name used on the command line and in exports
        head_rule: callable returning the head delta for one step
        accepts: acceptance predicate evaluated on entering an accept state
        uses_stack1 / uses_stack2: stacks the kind may push to and pop from
        emits_output: print states append to the output sequence
        writes_tape: write states overwrite the tape cell under the head
        halts_at_right_boundary: reaching the last '#' outside a print state
            accepts immediately
        stack_fault_is_error: a failed pop raises MachineRuntimeError instead
            of rejecting
        show_direction: exporters label states with their direction
    """
    kind: MachineKind
    name: str
    head_rule: Callable
    accepts: Callable
    uses_stack1: bool = False
    uses_stack2: bool = False
    emits_output: bool = False
    writes_tape: bool = False
    halts_at_right_boundary: bool = False
    stack_fault_is_error: bool = False
    show_direction: bool = False

    def supports(self, action: Action) -> bool:
        """Whether the side effect of action has storage in this kind."""
        if action in (Action.PUSH1, Action.POP1):
            return self.uses_stack1
        if action in (Action.PUSH2, Action.POP2):
            return self.uses_stack2
        if action == Action.PRINT:
            return self.emits_output
        if action == Action.WRITE_TAPE:
            return self.writes_tape
        return True


DESCRIPTORS: Dict[MachineKind, VariantDescriptor] = {
    MachineKind.TWA: VariantDescriptor(
        kind=MachineKind.TWA, name='twa',
        head_rule=move_by_successor, accepts=accept_always,
        show_direction=True,
    ),
    MachineKind.TM: VariantDescriptor(
        kind=MachineKind.TM, name='tm',
        head_rule=move_by_successor, accepts=accept_always,
        writes_tape=True,
    ),
    MachineKind.PDA: VariantDescriptor(
        kind=MachineKind.PDA, name='pda',
        head_rule=advance_unless_boundary, accepts=accept_if_stack1_empty,
        uses_stack1=True, stack_fault_is_error=True,
    ),
    MachineKind.TWO_PDA: VariantDescriptor(
        kind=MachineKind.TWO_PDA, name='2pda',
        head_rule=advance_unless_boundary, accepts=accept_if_stacks_empty,
        uses_stack1=True, uses_stack2=True, stack_fault_is_error=True,
    ),
    MachineKind.TRANSDUCER: VariantDescriptor(
        kind=MachineKind.TRANSDUCER, name='transducer',
        head_rule=advance_while_scanning, accepts=accept_always,
        emits_output=True, halts_at_right_boundary=True,
    ),
}

KIND_ALIASES = {
    'twa': MachineKind.TWA,
    'tm': MachineKind.TM,
    'pda': MachineKind.PDA,
    '2pda': MachineKind.TWO_PDA,
    'two_pda': MachineKind.TWO_PDA,
    'twopda': MachineKind.TWO_PDA,
    'trans': MachineKind.TRANSDUCER,
    'transducer': MachineKind.TRANSDUCER,
    'gtrans': MachineKind.TRANSDUCER,
    'gt': MachineKind.TRANSDUCER,
}


def parse_machine_kind(text: str) -> MachineKind:
    """Map a command-line kind name (case-insensitive) to a MachineKind."""
    key = text.strip().lower()
    if key not in KIND_ALIASES:
        raise ValueError(f"unknown machine kind {text!r} (use: twa|tm|pda|2pda|transducer)")
    return KIND_ALIASES[key]


def descriptor_for(kind) -> VariantDescriptor:
    """Look up the descriptor for a MachineKind or a kind name."""
    if isinstance(kind, str):
        kind = parse_machine_kind(kind)
    return DESCRIPTORS[MachineKind(kind)]

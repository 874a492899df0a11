"""
Automaton Interpreter

Runs a transition graph (see automata_graph) against a tape under one of five
execution semantics:

    twa         two-way finite automaton
    tm          Turing machine (tape writes)
    pda         one-stack pushdown automaton, empty-stack acceptance
    2pda        two-stack pushdown automaton, empty-stack acceptance
    transducer  emits symbols from print states

All kinds share one stepper. What differs between them (head movement,
acceptance, which side effects have storage) comes from the variant
descriptor in automata_variants.

Tapes are strings wrapped with the boundary marker, e.g. '#aabb#'. The head
starts on index 1, just inside the left boundary.

Outcomes are three-way:
    - ACCEPT / REJECT are normal results. A missing transition rejects.
    - MachineRuntimeError is raised for machines that cannot continue: the
      head leaves the tape, a stack pop fails (for kinds where that is an
      error), a print state has no successor, or the step cap is exceeded.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Callable, List, Optional, Union
import logging

from automata_errors import MachineRuntimeError, RuntimeErrorKind
from automata_graph import State, TransitionGraph, compile_rules, load_graph
from automata_rules import Action, BOUNDARY
from automata_validate import validate_graph
from automata_variants import MachineKind, VariantDescriptor, descriptor_for


logger = logging.getLogger(__name__)

DEFAULT_MAX_STEPS = 10_000_000
START_HEAD = 1


class StepStatus(Enum):
    CONTINUE = 'continue'
    ACCEPT = 'accept'
    REJECT = 'reject'


@dataclass(frozen=True)
class StepEvent:
    """What happened in one completed step, as reported to observers."""
    step: int
    state_id: int
    action: Action
    symbol: str
    successor_id: int
    head: int  # index the symbol was read from
    tape: str = ''  # tape after the step, only filled in when snapshots are requested


@dataclass
class StepResult:
    status: StepStatus
    successor: Optional[State]
    event: Optional[StepEvent] = None


@dataclass
class RuntimeContext:
    """Mutable state of a single run. Never shared between runs."""
    tape: List[str]
    descriptor: VariantDescriptor
    head: int = START_HEAD
    stack1: List[str] = field(default_factory=list)
    stack2: List[str] = field(default_factory=list)
    output: List[str] = field(default_factory=list)
    steps: int = 0

    @property
    def symbol(self) -> str:
        return self.tape[self.head]

    def in_bounds(self, index: int) -> bool:
        return 0 <= index < len(self.tape)


@dataclass
class RunResult:
    accepted: bool
    tape: str
    output: str
    steps: int
    final_state: int
    head: int
    stack1: str = ''
    stack2: str = ''

    @property
    def outcome(self) -> str:
        return 'ACCEPT' if self.accepted else 'REJECT'


def wrap_tape(word: str) -> str:
    """Wrap an input word with boundary markers: 'ab' -> '#ab#'."""
    return f"{BOUNDARY}{word}{BOUNDARY}"


def parse_tape(tape: Union[str, List[str]]) -> List[str]:
    """
    Check a tape argument and return it as a list of symbols.

    Raises:
        ValueError: the tape is not wrapped with boundary markers
    """
    if isinstance(tape, str):
        tape = tape.strip()
    cells = list(tape)
    if len(cells) < 2 or cells[0] != BOUNDARY or cells[-1] != BOUNDARY:
        raise ValueError(f"tape must be wrapped with {BOUNDARY}...{BOUNDARY}, got {''.join(cells)!r}")
    if any(len(cell) != 1 for cell in cells):
        raise ValueError("tape cells must be single characters")
    return cells


def interior(tape: str) -> str:
    """The symbols between the boundary markers."""
    return tape[1:-1]


def _stack_fault(ctx, state, kind, detail):
    if ctx.descriptor.stack_fault_is_error:
        raise MachineRuntimeError(kind, state.id, detail)
    logger.debug("state %d: %s (%s), rejecting", state.id, kind.value, detail)
    return False


def _pop(ctx, state, stack, name, symbol):
    if symbol == BOUNDARY:
        # left for the empty-stack check
        return True
    if not stack:
        return _stack_fault(ctx, state, RuntimeErrorKind.STACK_UNDERFLOW, f"{name} is empty")
    top = stack[-1]
    if state.stack_symbol is not None and top != state.stack_symbol:
        return _stack_fault(ctx, state, RuntimeErrorKind.STACK_MISMATCH,
                            f"{name} top is {top!r}, expected {state.stack_symbol!r}")
    stack.pop()
    return True


def _push(state, stack, symbol):
    gate = state.stack_symbol
    if gate is None:
        if symbol != BOUNDARY:
            stack.append(symbol)
    elif symbol == gate:
        stack.append(gate)


def apply_side_effect(ctx: RuntimeContext, state: State, symbol: str) -> bool:
    """
    Apply the configured action of state for the symbol under the head.

    Returns False when a failed pop rejects the input; raises when the
    descriptor treats failed pops as errors.
    """
    action = state.action
    if not ctx.descriptor.supports(action):
        return True

    if action == Action.WRITE_TAPE:
        if state.write_symbol is not None:
            ctx.tape[ctx.head] = state.write_symbol
    elif action == Action.PUSH1:
        _push(state, ctx.stack1, symbol)
    elif action == Action.PUSH2:
        _push(state, ctx.stack2, symbol)
    elif action == Action.POP1:
        return _pop(ctx, state, ctx.stack1, 'stack1', symbol)
    elif action == Action.POP2:
        return _pop(ctx, state, ctx.stack2, 'stack2', symbol)
    return True


def _successor_status(ctx: RuntimeContext, successor: State) -> StepStatus:
    if successor.reject:
        return StepStatus.REJECT
    if successor.accept:
        return StepStatus.ACCEPT if ctx.descriptor.accepts(ctx) else StepStatus.REJECT
    return StepStatus.CONTINUE


def step(graph: TransitionGraph, ctx: RuntimeContext, state: State,
         snapshot: bool = False) -> StepResult:
    """
    Execute one transition from state.

    With snapshot=True the returned event carries a copy of the tape.

    When the successor is terminal the run halts with the head left on the
    cell it last read. A move onto a non-terminal successor that would take
    the head off the tape raises OUT_OF_BOUNDS straight away.
    """
    descriptor = ctx.descriptor
    if not ctx.in_bounds(ctx.head):
        raise MachineRuntimeError(RuntimeErrorKind.OUT_OF_BOUNDS, state.id, f"head at {ctx.head}")

    head = ctx.head
    symbol = ctx.tape[head]

    if (descriptor.halts_at_right_boundary and symbol == BOUNDARY
            and head == len(ctx.tape) - 1 and state.action != Action.PRINT):
        return StepResult(StepStatus.ACCEPT, state)

    if state.action == Action.PRINT:
        target = state.print_target()
        if target is None:
            raise MachineRuntimeError(RuntimeErrorKind.MALFORMED_PRINT_STATE, state.id, "no successor")
        if state.print_symbol is None:
            raise MachineRuntimeError(RuntimeErrorKind.MALFORMED_PRINT_STATE, state.id, "no print symbol")
        successor = graph[target]
        if descriptor.emits_output:
            ctx.output.append(state.print_symbol)
        delta = 0
    else:
        target = state.target_on(symbol)
        if target is None:
            return StepResult(StepStatus.REJECT, None)
        successor = graph[target]
        if not apply_side_effect(ctx, state, symbol):
            return StepResult(StepStatus.REJECT, None)
        delta = descriptor.head_rule(ctx, state, successor, symbol)

    ctx.steps += 1
    event = StepEvent(ctx.steps, state.id, state.action, symbol, successor.id, head,
                      ''.join(ctx.tape) if snapshot else '')
    status = _successor_status(ctx, successor)

    if status is StepStatus.CONTINUE and delta:
        new_head = head + delta
        if not ctx.in_bounds(new_head):
            raise MachineRuntimeError(RuntimeErrorKind.OUT_OF_BOUNDS, state.id,
                                      f"head would move to {new_head}")
        ctx.head = new_head

    return StepResult(status, successor, event)


def run(graph: TransitionGraph, tape, kind=MachineKind.TWA,
        observer: Optional[Callable[[StepEvent], None]] = None,
        max_steps: int = DEFAULT_MAX_STEPS,
        descriptor: Optional[VariantDescriptor] = None,
        validate: bool = True) -> RunResult:
    """
    Run a graph against a tape.

    Args:
        graph: TransitionGraph to execute (not modified)
        tape: boundary-wrapped tape string such as '#abba#'
        kind: MachineKind or kind name; ignored when descriptor is given
        observer: optional callable invoked with a StepEvent after every
                  completed step (tracing, pacing, recording)
        max_steps: step cap; exceeding it raises NON_HALTING
        descriptor: explicit VariantDescriptor (e.g. with a different stack
                    fault policy)
        validate: run validate_graph() first

    Returns:
        RunResult with the outcome, final tape, output and stacks
    """
    if max_steps is None or max_steps < 1:
        raise ValueError(f"max_steps must be a positive integer, got {max_steps}")
    if descriptor is None:
        descriptor = descriptor_for(kind)
    if validate:
        validate_graph(graph, descriptor)

    ctx = RuntimeContext(tape=parse_tape(tape), descriptor=descriptor)
    state = graph.start

    while True:
        if ctx.steps >= max_steps:
            raise MachineRuntimeError(RuntimeErrorKind.NON_HALTING, state.id,
                                      f"no halt after {max_steps} steps")
        result = step(graph, ctx, state, snapshot=observer is not None)
        if result.event is not None and observer is not None:
            observer(result.event)
        if result.status is not StepStatus.CONTINUE:
            break
        state = result.successor

    final_state = result.successor.id if result.successor is not None else state.id
    accepted = result.status is StepStatus.ACCEPT
    logger.debug("%s run finished: %s after %d steps",
                 descriptor.name, 'ACCEPT' if accepted else 'REJECT', ctx.steps)
    return RunResult(
        accepted=accepted,
        tape=''.join(ctx.tape),
        output=''.join(ctx.output),
        steps=ctx.steps,
        final_state=final_state,
        head=ctx.head,
        stack1=''.join(ctx.stack1),
        stack2=''.join(ctx.stack2),
    )


class Machine:
    """
    A validated graph bound to a machine kind.

    Example:
        machine = Machine.from_file('rules/pda.txt', 'pda')
        machine.run('#aabb#').accepted  # True
    """

    def __init__(self, graph: TransitionGraph, kind=MachineKind.TWA,
                 stack_fault_is_error: Optional[bool] = None):
        descriptor = descriptor_for(kind)
        if stack_fault_is_error is not None:
            descriptor = replace(descriptor, stack_fault_is_error=stack_fault_is_error)
        self.graph = graph
        self.descriptor = descriptor
        validate_graph(graph, descriptor)

    @classmethod
    def from_rules(cls, text: str, kind=MachineKind.TWA, **kwargs) -> 'Machine':
        return cls(compile_rules(text), kind, **kwargs)

    @classmethod
    def from_file(cls, path, kind=MachineKind.TWA, **kwargs) -> 'Machine':
        return cls(load_graph(path), kind, **kwargs)

    @property
    def kind(self) -> MachineKind:
        return self.descriptor.kind

    def run(self, tape, observer=None, max_steps: int = DEFAULT_MAX_STEPS) -> RunResult:
        return run(self.graph, tape, observer=observer, max_steps=max_steps,
                   descriptor=self.descriptor, validate=False)

    def nodes(self):
        return self.graph.nodes()

    def edges(self):
        return self.graph.edges()

    def dump(self) -> str:
        from automata_export import dump_graph
        return dump_graph(self.graph, self.descriptor.show_direction)

    def write_dot(self, path):
        from automata_export import write_dot
        return write_dot(self.graph, path, self.descriptor.show_direction)

"""
Transition graph construction.

The graph is an arena: states live in a dict keyed by id and every edge stores
the target id, not a reference to the target state. Cycles and back-edges are
ordinary edges, and exporters can walk nodes and edges without following
object pointers.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Set, Tuple
import logging

from automata_errors import GraphError
from automata_rules import (
    Action, Direction, RawRule, PRINT_KEY, parse_rules, parse_rules_file,
)


logger = logging.getLogger(__name__)

START_STATE = 1


@dataclass(frozen=True)
class State:
    """A single machine state. Read-only once the graph is built."""
    id: int
    direction: Direction = Direction.RIGHT
    action: Action = Action.SCAN
    transitions: Dict[str, int] = field(default_factory=dict)
    accept: bool = False
    reject: bool = False
    write_symbol: Optional[str] = None
    stack_symbol: Optional[str] = None
    print_symbol: Optional[str] = None

    @property
    def terminal(self) -> bool:
        return self.accept or self.reject

    def target_on(self, symbol: str) -> Optional[int]:
        return self.transitions.get(symbol)

    def print_target(self) -> Optional[int]:
        """Successor of a print state: the placeholder edge, else a lone edge."""
        if PRINT_KEY in self.transitions:
            return self.transitions[PRINT_KEY]
        if len(self.transitions) == 1:
            return next(iter(self.transitions.values()))
        return None


class TransitionGraph:
    """
    Ordered collection of states addressed by id, with state 1 as start.
    """

    def __init__(self, states: Dict[int, State]):
        if START_STATE not in states:
            raise GraphError(f"start state {START_STATE} not defined")
        self._states = {state_id: states[state_id] for state_id in sorted(states)}

    def __getitem__(self, state_id: int) -> State:
        return self._states[state_id]

    def __contains__(self, state_id: int) -> bool:
        return state_id in self._states

    def __iter__(self):
        return iter(self._states.values())

    def __len__(self) -> int:
        return len(self._states)

    @property
    def start(self) -> State:
        return self._states[START_STATE]

    @property
    def ids(self) -> List[int]:
        return list(self._states)

    def nodes(self) -> List[State]:
        """States that take part in the machine (have edges or are terminal)."""
        return [s for s in self._states.values() if s.transitions or s.terminal]

    def edges(self) -> List[Tuple[int, str, int]]:
        """All edges as (source_id, symbol, target_id), in source-id order."""
        result = []
        for state in self._states.values():
            for symbol, target in state.transitions.items():
                result.append((state.id, symbol, target))
        return result

    def reachable(self, origin: int = START_STATE) -> Set[int]:
        """Ids reachable from origin by following edges."""
        seen = {origin}
        frontier = [origin]
        while frontier:
            state = self._states[frontier.pop()]
            for target in state.transitions.values():
                if target not in seen:
                    seen.add(target)
                    frontier.append(target)
        return seen


@dataclass
class _Draft:
    id: int
    direction: Direction = Direction.RIGHT
    action: Action = Action.SCAN
    transitions: Dict[str, int] = field(default_factory=dict)
    accept: bool = False
    reject: bool = False
    write_symbol: Optional[str] = None
    stack_symbol: Optional[str] = None
    print_symbol: Optional[str] = None


def build_graph(records: Iterable[RawRule]) -> TransitionGraph:
    """
    Resolve parsed rule records into a TransitionGraph.

    Every id referenced as a source or target gets a state defaulting to
    (right, scan). Later records for the same id add edges and overwrite the
    configured direction / action.

    Raises:
        GraphError: id 0 is used, a state is both accept and reject, or state 1
            is never referenced.
    """
    records = list(records)
    drafts: Dict[int, _Draft] = {}

    def draft_for(state_id: int, line: int) -> _Draft:
        if state_id == 0:
            raise GraphError(f"line {line}: state ids must be positive")
        if state_id not in drafts:
            drafts[state_id] = _Draft(id=state_id)
        return drafts[state_id]

    for rule in records:
        draft = draft_for(rule.state_id, rule.line)
        for target in rule.targets:
            draft_for(target, rule.line)

        if rule.accept:
            draft.accept = True
        if rule.reject:
            draft.reject = True
        if draft.accept and draft.reject:
            raise GraphError(f"state {rule.state_id} is marked both accept and reject")

        if rule.pairs or rule.action is not None:
            draft.direction = rule.direction
        if rule.action is not None:
            draft.action = rule.action

        if rule.action in (Action.PUSH1, Action.PUSH2) and rule.pairs:
            draft.stack_symbol = rule.pairs[0][0]
        if rule.action == Action.PRINT:
            draft.print_symbol = rule.print_symbol
        if rule.action == Action.WRITE_TAPE:
            draft.write_symbol = rule.write_symbol

        for symbol, target in rule.pairs:
            draft.transitions[symbol] = target

    if START_STATE not in drafts:
        raise GraphError(f"start state {START_STATE} not defined")

    states = {
        d.id: State(
            id=d.id,
            direction=d.direction,
            action=d.action,
            transitions=dict(d.transitions),
            accept=d.accept,
            reject=d.reject,
            write_symbol=d.write_symbol,
            stack_symbol=d.stack_symbol,
            print_symbol=d.print_symbol,
        )
        for d in drafts.values()
    }
    graph = TransitionGraph(states)
    logger.debug("built graph with %d states and %d edges", len(graph), len(graph.edges()))
    return graph


def compile_rules(text: str) -> TransitionGraph:
    """Parse rule text and build its graph."""
    records, _ = parse_rules(text)
    return build_graph(records)


def load_graph(path) -> TransitionGraph:
    """Parse a rule file and build its graph."""
    records, _ = parse_rules_file(path)
    return build_graph(records)

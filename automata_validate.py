"""
Structural checks run once per (graph, kind) before any tape is executed.
"""

import logging

from automata_errors import ValidationError
from automata_rules import Action, BOUNDARY
from automata_variants import descriptor_for


logger = logging.getLogger(__name__)

PUSH_ACTIONS = (Action.PUSH1, Action.PUSH2)


def validate_graph(graph, kind):
    """
    Check graph against the rules of the given machine kind.

    Push states of stack machines may not have an edge on the boundary marker:
    the boundary is reserved for the empty-stack acceptance check, and the
    gate symbol of a push state is taken from its first edge.

    Actions whose storage the kind does not have are logged and later skipped
    by the stepper.

    Args:
        graph: TransitionGraph to check
        kind: MachineKind, kind name, or VariantDescriptor

    Raises:
        ValidationError: naming the first offending state id
    """
    descriptor = kind if hasattr(kind, 'head_rule') else descriptor_for(kind)
    stack_machine = descriptor.uses_stack1 or descriptor.uses_stack2

    for state in graph:
        if stack_machine and state.action in PUSH_ACTIONS and BOUNDARY in state.transitions:
            raise ValidationError(
                state.id, f"push state has a transition on boundary marker {BOUNDARY!r}")
        if (state.transitions or state.terminal) and not descriptor.supports(state.action):
            logger.warning("state %d: action %s has no effect in a %s machine",
                           state.id, state.action.label, descriptor.name)

    return graph

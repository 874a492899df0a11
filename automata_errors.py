"""
Error taxonomy for the automaton interpreter.

Construction-time errors (ParseError, GraphError, ValidationError) are raised
before any tape is run. MachineRuntimeError is raised while stepping and is
never turned into a reject: a missing transition is a normal reject outcome,
a machine that walks off its tape is not.
"""

from enum import Enum
from typing import Optional


class AutomatonError(Exception):
    """Base class for every error raised by the interpreter."""


class ParseError(AutomatonError, ValueError):
    """A rule file line could not be parsed."""

    def __init__(self, line: int, reason: str):
        self.line = line
        self.reason = reason
        super().__init__(f"line {line}: {reason}")


class GraphError(AutomatonError, ValueError):
    """Parsed rules do not form a usable transition graph."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(reason)


class ValidationError(AutomatonError, ValueError):
    """The graph breaks a structural rule of the selected machine kind."""

    def __init__(self, state_id: int, reason: str):
        self.state_id = state_id
        self.reason = reason
        super().__init__(f"state {state_id}: {reason}")


class RuntimeErrorKind(Enum):
    OUT_OF_BOUNDS = "OutOfBounds"
    STACK_UNDERFLOW = "StackUnderflow"
    STACK_MISMATCH = "StackMismatch"
    NON_HALTING = "NonHalting"
    MALFORMED_PRINT_STATE = "MalformedPrintState"


class MachineRuntimeError(AutomatonError, RuntimeError):
    """
    A run could not continue.

    Attributes:
        kind: RuntimeErrorKind describing what went wrong
        state_id: id of the state being executed (None if unknown)
        detail: free-form extra context (head index, stack top, ...)
    """

    def __init__(self, kind: RuntimeErrorKind, state_id: Optional[int], detail: str = ""):
        self.kind = kind
        self.state_id = state_id
        self.detail = detail
        message = f"{kind.value} at state {state_id}"
        if detail:
            message += f": {detail}"
        super().__init__(message)

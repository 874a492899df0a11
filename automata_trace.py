"""
Step observers and trace analysis.

An observer is any callable taking a StepEvent. run() calls it once per
completed step; with no observer nothing is printed and nothing is delayed.

    recorder = TraceRecorder()
    run(graph, '#abba#', 'twa', observer=chain_observers(TapeTracer(), recorder))
    arr, symbol_encoding = trace_to_numpy(recorder.events)
"""

from pathlib import Path
from typing import Callable, Dict, List, Optional
import sys
import time

import numpy as np
import pandas as pd


def highlight_tape(tape: str, head: int) -> str:
    """Show the tape with the head cell in brackets: '#a[b]b#'."""
    if head < 0 or head >= len(tape):
        return tape
    return f"{tape[:head]}[{tape[head]}]{tape[head + 1:]}"


class TapeTracer:
    """
    Printing observer.

    Args:
        delay: seconds to sleep after each step (0 for none)
        stream: file object to write to (default: sys.stdout)
        show_tape: also print the tape with the head highlighted
    """

    def __init__(self, delay: float = 0.0, stream=None, show_tape: bool = True):
        if delay < 0:
            raise ValueError(f"delay must be >= 0, got {delay}")
        self.delay = delay
        self.stream = stream
        self.show_tape = show_tape
        self.steps = 0

    def _print(self, text: str) -> None:
        print(text, file=self.stream if self.stream is not None else sys.stdout)

    def __call__(self, event) -> None:
        if self.steps == 0:
            self._print("== TRACE START ==")
        self.steps += 1
        if self.show_tape and event.tape:
            self._print(f"Tape : {highlight_tape(event.tape, event.head)}")
        self._print(f"Step {event.step}: State={event.state_id} ({event.action.label}), "
                    f"Read={event.symbol!r} -> Next={event.successor_id}, Head={event.head}")
        if self.delay:
            time.sleep(self.delay)


class TraceRecorder:
    """Observer that keeps every event in memory."""

    def __init__(self):
        self.events: List = []

    def __call__(self, event) -> None:
        self.events.append(event)

    def __len__(self) -> int:
        return len(self.events)

    def clear(self) -> None:
        self.events.clear()


def chain_observers(*observers: Optional[Callable]) -> Optional[Callable]:
    """Combine observers into one; None entries are dropped."""
    active = [observer for observer in observers if observer is not None]
    if not active:
        return None
    if len(active) == 1:
        return active[0]

    def observe(event):
        for observer in active:
            observer(event)
    return observe


def trace_to_numpy(events, symbol_encoding: Optional[Dict[str, int]] = None):
    """
    Convert a list of StepEvents to an integer array of shape (n_steps, 5).

    Columns are [state, read, successor, head, action]. State ids and the
    head index are stored as-is; read symbols go through symbol_encoding,
    which is built from the sorted set of read symbols when not given.

    Returns:
        Tuple of (array, symbol_encoding)
    """
    if not events:
        return np.zeros((0, 5), dtype=np.int32), dict(symbol_encoding or {})

    if symbol_encoding is None:
        symbols = sorted({event.symbol for event in events})
        symbol_encoding = {symbol: i for i, symbol in enumerate(symbols)}

    arr = np.zeros((len(events), 5), dtype=np.int32)
    for i, event in enumerate(events):
        arr[i, 0] = event.state_id
        arr[i, 1] = symbol_encoding[event.symbol]
        arr[i, 2] = event.successor_id
        arr[i, 3] = event.head
        arr[i, 4] = int(event.action)
    return arr, symbol_encoding


def trace_to_frame(events) -> pd.DataFrame:
    """One row per step, indexed by step number."""
    rows = [
        {
            'step': event.step,
            'state': event.state_id,
            'action': event.action.label,
            'read': event.symbol,
            'successor': event.successor_id,
            'head': event.head,
        }
        for event in events
    ]
    frame = pd.DataFrame(rows, columns=['step', 'state', 'action', 'read', 'successor', 'head'])
    return frame.set_index('step')


def save_trace(events, filepath) -> Path:
    """
    Save a trace to disk: .npy via numpy, anything else as CSV via pandas.
    """
    filepath = Path(filepath)
    filepath.parent.mkdir(parents=True, exist_ok=True)
    if filepath.suffix == '.npy':
        arr, _ = trace_to_numpy(events)
        np.save(filepath, arr)
    else:
        trace_to_frame(events).to_csv(filepath)
    return filepath

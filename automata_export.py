"""
Graph export: plain-text dump, Graphviz DOT source, and a matplotlib drawing.

These only read TransitionGraph.nodes() / edges(); nothing here affects how a
machine runs.
"""

from collections import defaultdict
from pathlib import Path
from typing import Dict, List, Tuple

import matplotlib.pyplot as plt
import numpy as np


def _state_label(state, show_direction: bool) -> str:
    if show_direction:
        return f"{state.id}\\n[{state.action.label},{state.direction.short}]"
    return f"{state.id}\\n[{state.action.label}]"


def _dot_escape(symbol: str) -> str:
    return symbol.replace('\\', '\\\\').replace('"', '\\"')


def dump_graph(graph, show_direction: bool = True) -> str:
    """
    Text listing of the machine, one state per line:

        1] dir=R action=Scan  (a->2) (b->3)
        4] dir=R action=Scan [ACCEPT]
    """
    lines = ["=== FSM (node graph) ==="]
    for state in graph.nodes():
        tag = ''
        if state.accept:
            tag += ' [ACCEPT]'
        if state.reject:
            tag += ' [REJECT]'
        extra = ''
        if state.stack_symbol is not None:
            extra += f" stack={state.stack_symbol}"
        if state.write_symbol is not None:
            extra += f" write={state.write_symbol}"
        if state.print_symbol is not None:
            extra += f" print={state.print_symbol}"
        direction = f"dir={state.direction.short} " if show_direction else ''
        edges = ' '.join(f"({symbol}->{target})" for symbol, target in state.transitions.items())
        lines.append(f"{state.id}] {direction}action={state.action.label}{extra}{tag}  {edges}".rstrip())
    return '\n'.join(lines)


def to_dot(graph, show_direction: bool = False) -> str:
    """Graphviz source: accept states are green double circles, reject states red octagons."""
    out = ["digraph FSM {", '  rankdir=LR; node [shape=circle, fontname="Arial"];']
    for state in graph.nodes():
        shape = 'circle'
        color = ''
        if state.accept:
            shape = 'doublecircle'
            color = ', color="green"'
        if state.reject:
            shape = 'octagon'
            color = ', color="red"'
        label = _state_label(state, show_direction)
        out.append(f'  {state.id} [label="{label}", shape={shape}{color}];')
        for symbol, target in state.transitions.items():
            out.append(f'  {state.id} -> {target} [label="{_dot_escape(symbol)}"];')
    out.append("}")
    return '\n'.join(out) + '\n'


def write_dot(graph, path, show_direction: bool = False) -> Path:
    """Write to_dot() output to path, creating parent directories."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(to_dot(graph, show_direction), encoding='utf-8')
    return path


def _grouped_edges(graph) -> Dict[Tuple[int, int], List[str]]:
    grouped = defaultdict(list)
    for source, symbol, target in graph.edges():
        grouped[(source, target)].append(symbol)
    return grouped


def circular_layout(ids: List[int], radius: float = 1.0) -> Dict[int, np.ndarray]:
    """Place states evenly on a circle, state 1 on the left."""
    if not ids:
        return {}
    angles = np.pi - np.linspace(0, 2 * np.pi, len(ids), endpoint=False)
    return {state_id: radius * np.array([np.cos(a), np.sin(a)]) for state_id, a in zip(ids, angles)}


def render_graph_png(graph, path, show_direction: bool = False, title: str = None, dpi: int = 150) -> Path:
    """
    Draw the machine with matplotlib and save it as an image.

    Args:
        graph: TransitionGraph to draw
        path: output file (format taken from the extension, usually .png)
        show_direction: include the direction in state labels
        title: optional figure title
        dpi: output resolution

    Returns:
        The path written
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    nodes = graph.nodes()
    positions = circular_layout([state.id for state in nodes])

    fig, ax = plt.subplots(figsize=(8, 8))
    for (source, target), symbols in _grouped_edges(graph).items():
        if source not in positions or target not in positions:
            continue
        label = ','.join(symbols)
        start = positions[source]
        if source == target:
            ax.annotate(label, xy=start, xytext=start * 1.25, ha='center', va='center',
                        fontsize=9, arrowprops=dict(arrowstyle='->', connectionstyle='arc3,rad=0.8'))
            continue
        end = positions[target]
        ax.annotate('', xy=end, xytext=start,
                    arrowprops=dict(arrowstyle='->', shrinkA=14, shrinkB=14,
                                    connectionstyle='arc3,rad=0.15'))
        middle = (start + end) / 2
        normal = np.array([start[1] - end[1], end[0] - start[0]]) * 0.08
        ax.text(*(middle + normal), label, ha='center', va='center', fontsize=9)

    for state in nodes:
        x, y = positions[state.id]
        color = 'white'
        marker = 'o'
        if state.accept:
            color = 'palegreen'
            ax.scatter([x], [y], s=1400, facecolors='none', edgecolors='green', zorder=2)
        if state.reject:
            color = 'salmon'
            marker = '8'
        ax.scatter([x], [y], s=900, c=color, marker=marker, edgecolors='black', zorder=3)
        ax.text(x, y, _state_label(state, show_direction).replace('\\n', '\n'),
                ha='center', va='center', fontsize=8, zorder=4)

    if title:
        ax.set_title(title)
    ax.set_aspect('equal')
    ax.axis('off')
    ax.margins(0.2)
    fig.tight_layout()
    fig.savefig(path, dpi=dpi)
    plt.close(fig)
    return path

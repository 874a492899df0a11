import numpy as np
import pytest

from automata_export import circular_layout, dump_graph, render_graph_png, to_dot, write_dot
from automata_graph import compile_rules


MIXED = """
1] right (a,2) (b,3) (",1)
2] accept
3] reject
"""


@pytest.fixture()
def mixed_graph():
    return compile_rules(MIXED)


def test_dot_shapes_and_colors(mixed_graph) -> None:
    dot = to_dot(mixed_graph)

    assert dot.startswith("digraph FSM {\n")
    assert dot.rstrip().endswith("}")
    assert '  2 [label="2\\n[Scan]", shape=doublecircle, color="green"];' in dot
    assert '  3 [label="3\\n[Scan]", shape=octagon, color="red"];' in dot
    assert '  1 [label="1\\n[Scan]", shape=circle];' in dot
    assert '  1 -> 2 [label="a"];' in dot


def test_dot_escapes_quotes(mixed_graph) -> None:
    assert '  1 -> 1 [label="\\""];' in to_dot(mixed_graph)


def test_dot_direction_labels(load_machine) -> None:
    dot = to_dot(load_machine("twa.txt", "twa").graph, show_direction=True)
    assert '[label="1\\n[Scan,R]"' in dot


def test_machine_write_dot(tmp_path, load_machine) -> None:
    machine = load_machine("pda.txt", "pda")

    path = machine.write_dot(tmp_path / "dots" / "pda.dot")

    text = path.read_text(encoding="utf-8")
    assert path.parent.name == "dots"
    assert '  2 [label="2\\n[Push1]", shape=circle];' in text
    assert '  3 -> 4 [label="#"];' in text


def test_write_dot_returns_path(tmp_path, mixed_graph) -> None:
    path = write_dot(mixed_graph, str(tmp_path / "m.dot"))
    assert path.exists()
    assert path.read_text(encoding="utf-8") == to_dot(mixed_graph)


def test_dump_graph(load_machine) -> None:
    text = dump_graph(load_machine("trans.txt", "transducer").graph, show_direction=False)

    lines = text.splitlines()
    assert lines[0] == "=== FSM (node graph) ==="
    assert lines[1] == "1] action=Scan  (a->2) (b->3)"
    assert lines[2] == "2] action=Print print=a  (_->1)"


def test_dump_graph_marks_terminals(mixed_graph) -> None:
    lines = dump_graph(mixed_graph).splitlines()
    assert "2] dir=R action=Scan [ACCEPT]" in lines
    assert "3] dir=R action=Scan [REJECT]" in lines


def test_circular_layout() -> None:
    positions = circular_layout([1, 2, 3, 4])

    assert list(positions) == [1, 2, 3, 4]
    np.testing.assert_allclose(positions[1], [-1.0, 0.0], atol=1e-9)
    for point in positions.values():
        assert np.linalg.norm(point) == pytest.approx(1.0)
    assert circular_layout([]) == {}


def test_render_graph_png(tmp_path, load_machine) -> None:
    machine = load_machine("2pda.txt", "2pda")

    path = render_graph_png(machine.graph, tmp_path / "img" / "2pda.png", title="2pda")

    assert path.exists()
    assert path.read_bytes()[:8] == b"\x89PNG\r\n\x1a\n"

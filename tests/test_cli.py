import pandas as pd
import pytest

from automata_cli import EXIT_ACCEPT, EXIT_ERROR, EXIT_REJECT, main


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    for name in ["AUTOMATA_MAX_STEPS", "AUTOMATA_STEP_DELAY", "AUTOMATA_DOT_DIR"]:
        monkeypatch.delenv(name, raising=False)


def test_pda_accepts(rules_dir, capsys) -> None:
    code = main(["pda", str(rules_dir / "pda.txt"), "#aabb#"])

    out = capsys.readouterr().out
    assert code == EXIT_ACCEPT
    assert "=== FSM (node graph) ===" in out
    assert "== TRACE START ==" in out
    assert "Result     : ACCEPT" in out
    assert "Final tape : #aabb#" in out


def test_kind_defaults_to_twa(rules_dir, capsys) -> None:
    code = main([str(rules_dir / "twa.txt"), "#abba#", "--quiet"])

    out = capsys.readouterr().out
    assert code == EXIT_ACCEPT
    assert "1] dir=R action=Scan" in out
    assert "TRACE" not in out


def test_reject_exit_status(rules_dir, capsys) -> None:
    code = main(["tm", str(rules_dir / "tm.txt"), "#abab#", "-q"])

    assert code == EXIT_REJECT
    assert "Result     : REJECT" in capsys.readouterr().out


def test_transducer_prints_output(rules_dir, capsys) -> None:
    code = main(["transducer", str(rules_dir / "complement.txt"), "#0110#", "-q"])

    out = capsys.readouterr().out
    assert code == EXIT_ACCEPT
    assert "Output tape: 1001" in out


def test_dot_and_png_files(rules_dir, tmp_path, capsys) -> None:
    png = tmp_path / "graph.png"

    code = main(["2pda", str(rules_dir / "2pda.txt"), "#abcd#", "-q",
                 "--dot-dir", str(tmp_path / "dots"), "--png", str(png)])

    out = capsys.readouterr().out
    assert code == EXIT_ACCEPT
    assert (tmp_path / "dots" / "2pda.dot").read_text(encoding="utf-8").startswith("digraph FSM {")
    assert png.stat().st_size > 0
    assert "DOT saved to:" in out


def test_dot_dir_from_environment(rules_dir, tmp_path, monkeypatch, capsys) -> None:
    monkeypatch.setenv("AUTOMATA_DOT_DIR", str(tmp_path))

    main(["pda", str(rules_dir / "pda.txt"), "#ab#", "-q"])

    assert (tmp_path / "pda.dot").exists()


def test_trace_csv(rules_dir, tmp_path, capsys) -> None:
    trace = tmp_path / "trace.csv"

    code = main(["pda", str(rules_dir / "pda.txt"), "#ab#", "-q", "--trace-csv", str(trace)])

    assert code == EXIT_ACCEPT
    frame = pd.read_csv(trace, index_col="step")
    assert list(frame["state"]) == [1, 2, 3]


def test_suite(rules_dir, capsys) -> None:
    code = main(["--suite", str(rules_dir / "machines.yaml"), "-q"])

    out = capsys.readouterr().out
    assert code == EXIT_ACCEPT
    assert "=== anbn (pda) ===" in out
    assert "FAIL" not in out
    assert "0 failing case(s)" in out


def test_stack_underflow_is_an_error(rules_dir, capsys) -> None:
    code = main(["pda", str(rules_dir / "pda.txt"), "#abb#", "-q"])

    assert code == EXIT_ERROR
    assert "StackUnderflow" in capsys.readouterr().err


def test_lenient_stack_rejects(rules_dir, capsys) -> None:
    code = main(["pda", str(rules_dir / "pda.txt"), "#abb#", "-q", "--lenient-stack"])
    assert code == EXIT_REJECT


def test_step_cap(tmp_path, capsys) -> None:
    rules = tmp_path / "loop.txt"
    rules.write_text("1] right (a,2) (#,2)\n2] left (a,1) (#,1)\n", encoding="utf-8")

    code = main([str(rules), "#aa#", "-q", "--max-steps", "50"])

    assert code == EXIT_ERROR
    assert "NonHalting" in capsys.readouterr().err


def test_rule_file_errors(tmp_path, capsys) -> None:
    rules = tmp_path / "bad.txt"
    rules.write_text("1] sideways (a,2)\n", encoding="utf-8")

    assert main([str(rules), "#a#", "-q"]) == EXIT_ERROR
    assert "ParseError: line 1" in capsys.readouterr().err


def test_bad_tape_and_missing_file(rules_dir, tmp_path, capsys) -> None:
    assert main(["pda", str(rules_dir / "pda.txt"), "aabb", "-q"]) == EXIT_ERROR
    assert main(["pda", str(tmp_path / "missing.txt"), "#ab#", "-q"]) == EXIT_ERROR


def test_bad_environment(rules_dir, monkeypatch, capsys) -> None:
    monkeypatch.setenv("AUTOMATA_MAX_STEPS", "lots")

    assert main(["pda", str(rules_dir / "pda.txt"), "#ab#"]) == EXIT_ERROR
    assert "config error" in capsys.readouterr().err


@pytest.mark.parametrize("argv", [["nfa", "rules.txt", "#a#"], ["#a#"], []])
def test_usage_errors(argv, capsys) -> None:
    with pytest.raises(SystemExit) as excinfo:
        main(argv)
    assert excinfo.value.code == 2

from pathlib import Path

import matplotlib

matplotlib.use("Agg")

import pytest

from automaton import Machine


RULES_DIR = Path(__file__).resolve().parents[1] / "rules"


@pytest.fixture()
def rules_dir() -> Path:
    return RULES_DIR


@pytest.fixture()
def load_machine():
    def _load(name: str, kind: str, **kwargs) -> Machine:
        return Machine.from_file(RULES_DIR / name, kind, **kwargs)
    return _load

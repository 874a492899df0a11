"""
Configuration: environment settings and YAML machine documents.

Settings come from the process environment, after a .env file (if any) has
been loaded with python-dotenv:

    AUTOMATA_MAX_STEPS    step cap for every run (default 10000000)
    AUTOMATA_STEP_DELAY   seconds the tracer sleeps after each step (default 0)
    AUTOMATA_DOT_DIR      directory the CLI writes .dot files to (unset: none)

A machine document bundles a rule set with the tapes it should be run on:

    name: anbn
    kind: pda
    rules: |
      1] scan (a,2)
      2] push (a,2) (b,3)
      3] pop (b,3) (#,4)
      4] accept
    cases:
      - tape: '#aabb#'
        expect: accept
      - tape: '#aaab#'
        expect: reject

'rules_file' (relative to the document) may be used instead of 'rules'. A
suite file holds a list of documents under 'machines'.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Mapping, Optional
import logging
import os

import yaml
from dotenv import load_dotenv

from automata_errors import MachineRuntimeError
from automaton import DEFAULT_MAX_STEPS, Machine, RunResult
from automata_variants import MachineKind, parse_machine_kind


logger = logging.getLogger(__name__)

EXPECTATIONS = ('accept', 'reject', 'error')


@dataclass
class Settings:
    max_steps: int = DEFAULT_MAX_STEPS
    step_delay: float = 0.0
    dot_dir: Optional[Path] = None


def load_settings(env_file=None, environ: Optional[Mapping[str, str]] = None) -> Settings:
    """
    Build Settings from the environment.

    Args:
        env_file: optional path of a .env file; by default python-dotenv
                  searches for one. Existing variables are not overridden.
        environ: mapping to read instead of os.environ (no .env loading)
    """
    if environ is None:
        load_dotenv(env_file)
        environ = os.environ

    settings = Settings()
    raw_steps = environ.get('AUTOMATA_MAX_STEPS')
    if raw_steps:
        try:
            settings.max_steps = int(raw_steps)
        except ValueError:
            raise ValueError(f"AUTOMATA_MAX_STEPS must be an integer, got {raw_steps!r}") from None
        if settings.max_steps < 1:
            raise ValueError(f"AUTOMATA_MAX_STEPS must be positive, got {settings.max_steps}")

    raw_delay = environ.get('AUTOMATA_STEP_DELAY')
    if raw_delay:
        try:
            settings.step_delay = float(raw_delay)
        except ValueError:
            raise ValueError(f"AUTOMATA_STEP_DELAY must be a number, got {raw_delay!r}") from None
        if settings.step_delay < 0:
            raise ValueError(f"AUTOMATA_STEP_DELAY must be >= 0, got {settings.step_delay}")

    raw_dir = environ.get('AUTOMATA_DOT_DIR')
    if raw_dir:
        settings.dot_dir = Path(raw_dir)
    return settings


@dataclass
class TapeCase:
    tape: str
    expect: Optional[str] = None
    output: Optional[str] = None
    final_tape: Optional[str] = None


@dataclass
class MachineDocument:
    name: str
    kind: MachineKind
    rules: str
    cases: List[TapeCase] = field(default_factory=list)
    source: Optional[Path] = None

    def machine(self, **kwargs) -> Machine:
        return Machine.from_rules(self.rules, self.kind, **kwargs)


@dataclass
class CaseResult:
    case: TapeCase
    result: Optional[RunResult] = None
    error: Optional[MachineRuntimeError] = None

    @property
    def outcome(self) -> str:
        if self.error is not None:
            return 'error'
        return 'accept' if self.result.accepted else 'reject'

    @property
    def passed(self) -> bool:
        case = self.case
        if case.expect is not None and case.expect != self.outcome:
            return False
        if self.result is None:
            return True
        if case.output is not None and case.output != self.result.output:
            return False
        if case.final_tape is not None and case.final_tape != self.result.tape:
            return False
        return True


def _parse_case(raw, index: int) -> TapeCase:
    if isinstance(raw, str):
        return TapeCase(tape=raw)
    if not isinstance(raw, dict) or 'tape' not in raw:
        raise ValueError(f"case {index} must be a tape string or a mapping with 'tape'")
    expect = raw.get('expect')
    if expect is not None:
        expect = str(expect).lower()
        if expect not in EXPECTATIONS:
            raise ValueError(f"case {index}: expect must be one of {EXPECTATIONS}, got {expect!r}")
    output = raw.get('output')
    final_tape = raw.get('final_tape')
    return TapeCase(
        tape=str(raw['tape']),
        expect=expect,
        output=str(output) if output is not None else None,
        final_tape=str(final_tape) if final_tape is not None else None,
    )


def machine_from_mapping(data: Dict, base_dir: Optional[Path] = None, default_name: str = 'machine') -> MachineDocument:
    """Build a MachineDocument from an already-parsed YAML mapping."""
    if not isinstance(data, dict):
        raise ValueError("machine document must be a mapping")
    if 'kind' not in data:
        raise ValueError("machine document needs a 'kind'")
    kind = parse_machine_kind(str(data['kind']))

    if 'rules' in data:
        rules = str(data['rules'])
    elif 'rules_file' in data:
        rules_path = Path(data['rules_file'])
        if base_dir is not None and not rules_path.is_absolute():
            rules_path = base_dir / rules_path
        rules = rules_path.read_text(encoding='utf-8')
    else:
        raise ValueError("machine document needs 'rules' or 'rules_file'")

    cases = [_parse_case(raw, i) for i, raw in enumerate(data.get('cases') or [])]
    return MachineDocument(name=str(data.get('name', default_name)), kind=kind, rules=rules, cases=cases)


def parse_machine_documents(yaml_string: str, base_dir: Optional[Path] = None) -> List[MachineDocument]:
    """
    Parse YAML text holding one machine document or a 'machines' list.
    """
    data = yaml.safe_load(yaml_string)
    if isinstance(data, dict) and 'machines' in data:
        entries = data['machines'] or []
    else:
        entries = [data]
    return [machine_from_mapping(entry, base_dir, default_name=f"machine{i + 1}")
            for i, entry in enumerate(entries)]


def load_machine_documents(path) -> List[MachineDocument]:
    """Load a YAML machine or suite file; rules_file paths are relative to it."""
    path = Path(path)
    documents = parse_machine_documents(path.read_text(encoding='utf-8'), base_dir=path.parent)
    for document in documents:
        document.source = path
    return documents


def run_document(document: MachineDocument, observer=None, max_steps: int = DEFAULT_MAX_STEPS,
                 stack_fault_is_error: Optional[bool] = None) -> List[CaseResult]:
    """
    Run every case of a document. Runtime errors are recorded per case so one
    faulty tape does not hide the others; construction errors propagate.
    """
    machine = document.machine(stack_fault_is_error=stack_fault_is_error)
    results = []
    for case in document.cases:
        try:
            result = machine.run(case.tape, observer=observer, max_steps=max_steps)
        except MachineRuntimeError as exc:
            logger.info("%s %s: %s", document.name, case.tape, exc)
            results.append(CaseResult(case=case, error=exc))
            continue
        results.append(CaseResult(case=case, result=result))
    return results

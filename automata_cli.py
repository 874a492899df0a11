"""
Command-line runner.

    python automata_cli.py rules/twa.txt "#abba#"            (two-way automaton)
    python automata_cli.py pda rules/pda.txt "#aabb#"
    python automata_cli.py transducer rules/trans.txt "#ab#" --quiet
    python automata_cli.py --suite rules/machines.yaml

Exit status: 0 accept (or every suite case passed), 1 reject (or a suite
case failed), 2 error.
"""

from pathlib import Path
import argparse
import logging
import sys

from automata_config import load_machine_documents, load_settings, run_document
from automata_errors import AutomatonError
from automata_export import render_graph_png
from automata_trace import TapeTracer, TraceRecorder, chain_observers, save_trace
from automata_variants import MachineKind, parse_machine_kind
from automaton import Machine


EXIT_ACCEPT = 0
EXIT_REJECT = 1
EXIT_ERROR = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Run a rule-file automaton (twa|tm|pda|2pda|transducer) on a tape."
    )
    parser.add_argument(
        "args",
        nargs="*",
        metavar="[kind] rules tape",
        help="machine kind (default twa), rule file, and a tape wrapped with '#'",
    )
    parser.add_argument("--suite", type=Path, help="YAML machine/suite file to run instead")
    parser.add_argument("--quiet", "-q", action="store_true", help="do not print the step trace")
    parser.add_argument("--delay", type=float, default=None,
                        help="seconds to pause after each traced step (default: AUTOMATA_STEP_DELAY)")
    parser.add_argument("--max-steps", type=int, default=None,
                        help="step cap (default: AUTOMATA_MAX_STEPS or 10000000)")
    parser.add_argument("--lenient-stack", action="store_true",
                        help="reject instead of failing on stack underflow/mismatch")
    parser.add_argument("--dot-dir", type=Path, default=None,
                        help="write <rules>.dot into this directory (default: AUTOMATA_DOT_DIR)")
    parser.add_argument("--png", type=Path, default=None, help="draw the state graph to this image")
    parser.add_argument("--trace-csv", type=Path, default=None,
                        help="save the step trace (.csv, or .npy for a numpy array)")
    parser.add_argument("--log-level", default="WARNING",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    return parser


def _split_positionals(parser, values):
    if len(values) == 2:
        return MachineKind.TWA, Path(values[0]), values[1]
    if len(values) == 3:
        try:
            kind = parse_machine_kind(values[0])
        except ValueError as exc:
            parser.error(str(exc))
        return kind, Path(values[1]), values[2]
    parser.error("expected: [kind] rules tape")


def run_suite(path: Path, settings, stack_fault_is_error, observer) -> int:
    failures = 0
    for document in load_machine_documents(path):
        print(f"=== {document.name} ({document.kind.name.lower()}) ===")
        for case_result in run_document(document, observer=observer, max_steps=settings.max_steps,
                                        stack_fault_is_error=stack_fault_is_error):
            status = "PASS" if case_result.passed else "FAIL"
            detail = case_result.outcome.upper()
            if case_result.error is not None:
                detail += f" ({case_result.error})"
            elif case_result.result.output:
                detail += f" output={case_result.result.output}"
            print(f"  {status}  {case_result.case.tape:<24} {detail}")
            failures += not case_result.passed
    print(f"{failures} failing case(s)")
    return EXIT_ACCEPT if failures == 0 else EXIT_REJECT


def run_single(args, kind, rules_path, tape, settings, stack_fault_is_error, observer, recorder) -> int:
    machine = Machine.from_file(rules_path, kind, stack_fault_is_error=stack_fault_is_error)
    print(machine.dump())

    dot_dir = args.dot_dir or settings.dot_dir
    if dot_dir is not None:
        dot_path = machine.write_dot(dot_dir / f"{rules_path.stem}.dot")
        print(f"DOT saved to: {dot_path}")
    if args.png is not None:
        render_graph_png(machine.graph, args.png, machine.descriptor.show_direction,
                         title=f"{rules_path.name} ({machine.descriptor.name})")
        print(f"Graph image saved to: {args.png}")

    result = machine.run(tape, observer=observer, max_steps=settings.max_steps)

    if recorder is not None:
        save_trace(recorder.events, args.trace_csv)
        print(f"Trace saved to: {args.trace_csv}")

    print(f"Final tape : {result.tape}")
    print(f"Result     : {result.outcome}")
    if machine.descriptor.emits_output:
        print(f"Output tape: {result.output}")
    return EXIT_ACCEPT if result.accepted else EXIT_REJECT


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level), format="%(levelname)s %(name)s: %(message)s")

    try:
        settings = load_settings()
    except ValueError as exc:
        print(f"config error: {exc}", file=sys.stderr)
        return EXIT_ERROR
    if args.max_steps is not None:
        settings.max_steps = args.max_steps
    if args.delay is not None:
        settings.step_delay = args.delay

    stack_fault_is_error = False if args.lenient_stack else None
    tracer = None if args.quiet else TapeTracer(delay=settings.step_delay)
    recorder = TraceRecorder() if args.trace_csv is not None and args.suite is None else None
    observer = chain_observers(tracer, recorder)

    try:
        if args.suite is not None:
            return run_suite(args.suite, settings, stack_fault_is_error, observer)
        kind, rules_path, tape = _split_positionals(parser, args.args)
        return run_single(args, kind, rules_path, tape, settings, stack_fault_is_error, observer, recorder)
    except AutomatonError as exc:
        print(f"{type(exc).__name__}: {exc}", file=sys.stderr)
        return EXIT_ERROR
    except (OSError, ValueError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return EXIT_ERROR


if __name__ == "__main__":
    sys.exit(main())

#!/usr/bin/env python3
"""Quality gate for the album editor: formatting, lint and the test suite.

    python run_all_linters.py            # check only, then run pytest
    python run_all_linters.py --fix      # let black/isort/ruff rewrite files first
    python run_all_linters.py --no-tests # skip pytest (e.g. while a test is WIP)

Exit status is 0 only when every selected step passes.
"""

from __future__ import annotations

import argparse
from dataclasses import dataclass
from pathlib import Path
import subprocess
import sys
import time

ROOT = Path(__file__).parent
PACKAGES = ["album_core", "album_app", "album_infra"]
SOURCES = [*PACKAGES, "tests", "main.py", "run_all_linters.py"]


@dataclass
class Step:
    name: str
    args: list[str]
    ok: bool = False
    output: str = ""
    seconds: float = 0.0

    def run(self) -> bool:
        cmd = [sys.executable, "-m", *self.args]
        print(f"-> {self.name}: {' '.join(self.args)}", flush=True)
        started = time.perf_counter()
        try:
            proc = subprocess.run(cmd, capture_output=True, text=True, check=False, cwd=ROOT)
            self.ok = proc.returncode == 0
            self.output = (proc.stdout + proc.stderr).strip()
        except OSError as ex:
            self.output = f"could not start {self.args[0]}: {ex}"
        self.seconds = time.perf_counter() - started
        return self.ok


def build_steps(fix: bool, tests: bool) -> list[Step]:
    if fix:
        steps = [
            Step("isort", ["isort", *SOURCES]),
            Step("black", ["black", *SOURCES]),
            Step("ruff", ["ruff", "check", "--fix", *SOURCES]),
        ]
    else:
        steps = [
            Step("isort", ["isort", "--check-only", "--diff", *SOURCES]),
            Step("black", ["black", "--check", *SOURCES]),
            Step("ruff", ["ruff", "check", *SOURCES]),
        ]
    steps.append(Step("pylint", ["pylint", *PACKAGES, "main.py"]))
    if tests:
        steps.append(Step("pytest", ["pytest", "-q", "tests"]))
    return steps


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--fix", action="store_true", help="apply formatter and ruff fixes")
    parser.add_argument("--no-tests", action="store_true", help="skip the pytest step")
    parser.add_argument("--fail-fast", action="store_true", help="stop at the first failing step")
    args = parser.parse_args(argv)

    steps = build_steps(fix=args.fix, tests=not args.no_tests)
    executed: list[Step] = []
    for step in steps:
        executed.append(step)
        if not step.run() and args.fail_fast:
            break

    failed = [s for s in executed if not s.ok]
    for step in failed:
        print(f"\n--- {step.name} output ---\n{step.output or '(no output)'}")

    print()
    for step in executed:
        print(f"{'PASS' if step.ok else 'FAIL'}  {step.name:<7} {step.seconds:6.1f}s")
    skipped = len(steps) - len(executed)
    if skipped:
        print(f"({skipped} step(s) skipped after failure)")
    return 1 if failed else 0


if __name__ == "__main__":
    sys.exit(main())

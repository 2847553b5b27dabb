#!/usr/bin/env python3
"""Compact test runner: one status line, then failures and thin coverage.

Extra arguments are forwarded to pytest, e.g. ``scripts/test.py tests/test_labels.py -k clamp``.
Coverage gating only applies to full runs.
"""

import argparse
import re
import subprocess
import sys

PACKAGE = "src/inlayhints"
FAIL_UNDER = 90
# Modules below this line rate are listed after the status line.
THIN_COVERAGE = 80

_COUNT_RE = re.compile(r"(\d+) (passed|failed|errors?|skipped)")
_TOTAL_RE = re.compile(r"^TOTAL\s+\d+\s+\d+\s+(\d+)%", re.MULTILINE)
_MODULE_RE = re.compile(r"^(src/\S+\.py)\s+\d+\s+\d+\s+(\d+)%", re.MULTILINE)


def _counts(output: str) -> dict[str, int]:
    counts = {"passed": 0, "failed": 0, "error": 0, "skipped": 0}
    for number, label in _COUNT_RE.findall(output):
        counts[label.rstrip("s") if label.startswith("error") else label] = int(number)
    return counts


def _pytest_command(pytest_args: list[str], with_coverage: bool) -> list[str]:
    command = [sys.executable, "-m", "pytest", "-q", "--tb=line", "--no-header"]
    if with_coverage:
        command += [
            f"--cov={PACKAGE}",
            "--cov-report=term",
            f"--cov-fail-under={FAIL_UNDER}" if not pytest_args else "--cov-fail-under=0",
        ]
    return command + pytest_args


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--no-cov", action="store_true", help="Skip coverage measurement")
    args, pytest_args = parser.parse_known_args(argv)

    result = subprocess.run(
        _pytest_command(pytest_args, not args.no_cov),
        capture_output=True,
        text=True,
    )
    output = result.stdout + result.stderr

    counts = _counts(output)
    total = match.group(1) + "%" if (match := _TOTAL_RE.search(output)) else "-"
    status = "PASS" if result.returncode == 0 else "FAIL"
    print(
        f"tests:{status} passed:{counts['passed']} failed:{counts['failed']} "
        f"errors:{counts['error']} skipped:{counts['skipped']} coverage:{total}"
    )

    for line in output.splitlines():
        line = line.strip()
        if line.startswith(("FAILED", "ERROR")) and "::" in line:
            print(line)

    for module, rate in _MODULE_RE.findall(output):
        if int(rate) < THIN_COVERAGE:
            print(f"thin coverage: {module} {rate}%")

    return result.returncode


if __name__ == "__main__":
    sys.exit(main())

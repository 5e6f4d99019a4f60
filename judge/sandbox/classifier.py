"""
Verdict classification.

Pure functions: no I/O, no logging. Inputs are already capped by the
workspace, so truncation happens before any comparison below.
"""

from __future__ import annotations

from collections.abc import Iterable

from judge.sandbox.models import ExecutionResult, RawRunOutcome, Verdict

# Substrings in stderr that indicate the program never got to run its logic.
# Java: "error: ", "javac"; C/C++: "error:", "gcc", "g++";
# Python: "SyntaxError", "IndentationError"
COMPILE_ERROR_MARKERS: tuple[str, ...] = (
    "error:",
    "SyntaxError",
    "IndentationError",
    "javac",
    "gcc",
    "g++",
)

NO_STDERR_FALLBACK = "Process exited with error but no stderr output."


def is_compilation_error(stderr: str, markers: Iterable[str] = COMPILE_ERROR_MARKERS) -> bool:
    """Approximate: substring match against known compiler/interpreter markers."""
    return any(marker in stderr for marker in markers)


def classify(
    outcome: RawRunOutcome,
    expected_output: str | None = None,
    markers: Iterable[str] = COMPILE_ERROR_MARKERS,
) -> ExecutionResult:
    """
    Turn a raw run into an ``ExecutionResult``.

    Args:
        outcome: What the container produced.
        expected_output: Output to judge against; ``None`` reports the raw
            output as accepted (ad hoc runs without an answer key).
        markers: Compiler-diagnostic substrings for the runtime.
    """
    if outcome.timed_out:
        return ExecutionResult(
            status=Verdict.TIME_LIMIT_EXCEEDED,
            stdout="",
            execution_time_ms=outcome.host_elapsed_ms,
        )

    if outcome.exit_code != 0:
        stderr = outcome.stderr.strip()
        status = (
            Verdict.COMPILATION_ERROR
            if is_compilation_error(stderr, markers)
            else Verdict.RUNTIME_ERROR
        )
        return ExecutionResult(
            status=status,
            stdout=stderr or NO_STDERR_FALLBACK,
            execution_time_ms=outcome.host_elapsed_ms,
        )

    actual = outcome.stdout.strip()
    status = Verdict.ACCEPTED
    if expected_output is not None and actual != expected_output.strip():
        status = Verdict.WRONG_ANSWER

    return ExecutionResult(
        status=status,
        stdout=actual,
        execution_time_ms=outcome.host_elapsed_ms,
    )


def worse(a: Verdict, b: Verdict) -> Verdict:
    """Return the more severe of two verdicts."""
    return a if a.severity >= b.severity else b


def aggregate_verdict(verdicts: Iterable[Verdict]) -> Verdict:
    """Most severe verdict present; ``ACCEPTED`` when all passed (or none ran)."""
    overall = Verdict.ACCEPTED
    for verdict in verdicts:
        overall = worse(overall, verdict)
    return overall

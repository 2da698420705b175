"""Batch processing, result sinks and reporting.

References in a batch are checked strictly one after another with a polite
pause between them, so the external services see at most one request at a
time from a run.
"""

from __future__ import annotations

import datetime
import json
import logging
import time
from collections.abc import Callable, Iterable
from typing import IO, Any

from refcheck.history import HistoryStore
from refcheck.models import CheckResult, Verdict, VerdictStatus
from refcheck.orchestrator import ReferenceVerifier
from refcheck.parser import clean_reference, prepare_references

logger = logging.getLogger(__name__)

DEFAULT_DELAY = 0.5


# ------------- Result Sinks -------------


class ResultSink:
    """Receives results as a batch progresses. Methods default to no-ops."""

    def run_started(self, total: int) -> None:
        pass

    def result(self, result: CheckResult) -> None:
        pass

    def run_finished(self, results: list[CheckResult]) -> None:
        pass


class LoggingSink(ResultSink):
    """Logs each verdict as it arrives."""

    LEVELS = {
        VerdictStatus.VERIFIED: logging.INFO,
        VerdictStatus.POTENTIAL: logging.WARNING,
        VerdictStatus.ERROR: logging.WARNING,
        VerdictStatus.UNVERIFIED: logging.WARNING,
    }

    def __init__(self, log: logging.Logger | None = None):
        self.log = log or logger

    def result(self, result: CheckResult) -> None:
        verdict = result.verdict
        self.log.log(
            self.LEVELS[verdict.status], "[%s] %s -> %s", verdict.status.value.upper(), result.reference, verdict.message
        )


class JsonlSink(ResultSink):
    """Appends each result to a JSONL file as soon as it is ready.

    Partial results survive an interrupted run.
    """

    def __init__(self, path: str):
        self.path = path
        self._file: IO[str] | None = None

    def run_started(self, total: int) -> None:
        self._file = open(self.path, "a", encoding="utf-8")  # noqa: SIM115

    def result(self, result: CheckResult) -> None:
        if self._file is None:
            return
        self._file.write(json.dumps(result_to_dict(result), ensure_ascii=False) + "\n")
        self._file.flush()

    def run_finished(self, results: list[CheckResult]) -> None:
        if self._file is not None:
            self._file.close()
            self._file = None


class MultiSink(ResultSink):
    """Fans events out to several sinks in order."""

    def __init__(self, sinks: Iterable[ResultSink]):
        self.sinks = list(sinks)

    def run_started(self, total: int) -> None:
        for sink in self.sinks:
            sink.run_started(total)

    def result(self, result: CheckResult) -> None:
        for sink in self.sinks:
            sink.result(result)

    def run_finished(self, results: list[CheckResult]) -> None:
        for sink in self.sinks:
            sink.run_finished(results)


def result_to_dict(result: CheckResult) -> dict[str, Any]:
    return {"reference": result.reference, **result.verdict.to_dict()}


# ------------- Batch Runner -------------


class BatchRunner:
    """Runs the verifier over a list of references, one at a time."""

    PROBLEMATIC_STATUSES = (VerdictStatus.POTENTIAL, VerdictStatus.UNVERIFIED)

    def __init__(
        self,
        verifier: ReferenceVerifier,
        delay: float = DEFAULT_DELAY,
        sink: ResultSink | None = None,
        history: HistoryStore | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """Initialize the runner.

        Args:
            verifier: Orchestrator producing one verdict per reference
            delay: Pause in seconds between consecutive references
            sink: Receives run events and each result as it completes
            history: Receives the cleaned references at the end of a run
            sleep: Sleep function, replaceable in tests
        """
        self.verifier = verifier
        self.delay = max(delay, 0.0)
        self.sink = sink or ResultSink()
        self.history = history
        self.sleep = sleep

    def run(self, references: str | Iterable[str]) -> list[CheckResult]:
        """Check every non-blank, non-comment reference in input order."""
        lines = prepare_references(references)
        results: list[CheckResult] = []
        self.sink.run_started(len(lines))
        try:
            for index, line in enumerate(lines):
                if index > 0 and self.delay:
                    self.sleep(self.delay)
                logger.info("Checking %d/%d: %s", index + 1, len(lines), clean_reference(line))
                result = CheckResult(reference=line, verdict=self.verifier.check(line))
                results.append(result)
                self.sink.result(result)
        finally:
            self.sink.run_finished(results)

        if lines and self.history is not None:
            try:
                self.history.append([clean_reference(line) for line in lines])
            except OSError as e:
                logger.warning("Could not save query history: %s", e)
        return results

    # ------------- Reporting -------------

    def generate_summary(self, results: list[CheckResult]) -> dict[str, Any]:
        """Generate summary statistics from results."""
        counts = {s.value: 0 for s in VerdictStatus}
        for r in results:
            counts[r.verdict.status.value] += 1
        total = len(results)
        return {
            "total": total,
            "status_counts": counts,
            "verified_rate": counts[VerdictStatus.VERIFIED.value] / total if total else 0,
            "problematic_count": sum(counts[s.value] for s in self.PROBLEMATIC_STATUSES),
        }

    def generate_json_report(self, results: list[CheckResult]) -> dict[str, Any]:
        """Generate full JSON report."""
        summary = self.generate_summary(results)
        summary["timestamp"] = datetime.datetime.now().isoformat()
        return {"summary": summary, "entries": [result_to_dict(r) for r in results]}

    def generate_jsonl(self, results: list[CheckResult]) -> list[str]:
        """Generate JSONL format (one JSON object per line)."""
        return [json.dumps(result_to_dict(r), ensure_ascii=False) for r in results]


def run_batch(
    references: str | Iterable[str],
    verifier: ReferenceVerifier,
    delay: float = DEFAULT_DELAY,
    sink: ResultSink | None = None,
    history: HistoryStore | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> list[Verdict]:
    """Check a batch of references and return their verdicts in input order."""
    runner = BatchRunner(verifier, delay=delay, sink=sink, history=history, sleep=sleep)
    return [r.verdict for r in runner.run(references)]

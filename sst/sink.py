from __future__ import annotations

import sys
from typing import List, Optional, TextIO

from .results import EntryKind, ReportEntry


GLYPHS = {
    "pass": "[ ok ]",
    "fail": "[FAIL]",
    "warn": "[warn]",
    "error": "[ERR ]",
}


class ReportSink:
    """
    Append-only collector of check results for one tool run.

    Every entry is printed as soon as it is recorded; summarize() prints
    the totals and the verdict.
    """

    def __init__(self, out: Optional[TextIO] = None) -> None:
        self._out = out
        self.entries: List[ReportEntry] = []
        self.counts = {"pass": 0, "fail": 0, "warn": 0, "error": 0}

    @property
    def stream(self) -> TextIO:
        # Resolved late so pytest's capsys sees the output.
        return self._out if self._out is not None else sys.stdout

    def _record(self, kind: EntryKind, message: str) -> None:
        self.entries.append(ReportEntry(kind=kind, message=message))
        self.counts[kind] += 1
        print(f"  {GLYPHS[kind]} {message}", file=self.stream)

    def pass_(self, message: str) -> None:
        self._record("pass", message)

    def fail(self, message: str) -> None:
        self._record("fail", message)

    def warn(self, message: str) -> None:
        self._record("warn", message)

    def error(self, message: str) -> None:
        self._record("error", message)

    def section(self, title: str) -> None:
        print(f"\n{title}", file=self.stream)

    def messages(self, kind: EntryKind) -> List[str]:
        return [e.message for e in self.entries if e.kind == kind]

    @property
    def ready(self) -> bool:
        return self.counts["fail"] == 0 and self.counts["error"] == 0

    def summarize(self) -> None:
        out = self.stream
        print("\n=== Summary ===", file=out)
        print("Passed  :", self.counts["pass"], file=out)
        print("Failed  :", self.counts["fail"], file=out)
        print("Warnings:", self.counts["warn"], file=out)
        print("Errors  :", self.counts["error"], file=out)

        if self.ready:
            print("\nAll critical checks passed. Site is ready for production.", file=out)
        else:
            print("\nPlease address failed checks before deployment.", file=out)

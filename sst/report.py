from __future__ import annotations

import csv
import json
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from .batch import BatchSummary
from .results import OptimizationResult
from .sink import ReportSink


@dataclass(frozen=True)
class FileReport:
    src_path: str
    kind: str
    out_path: Optional[str]
    original_bytes: int
    new_bytes: int
    saved_bytes: int
    saved_percent: float
    error: Optional[str]
    skipped_reason: Optional[str]


@dataclass(frozen=True)
class OptimizeReport:
    created_utc: str
    tool: str
    summary: dict
    files: List[FileReport]


@dataclass(frozen=True)
class CheckReport:
    created_utc: str
    tool: str
    summary: dict
    entries: List[dict]


def _now_utc() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds").replace("+00:00", "Z")


def format_bytes(n: int) -> str:
    """1536 -> '1.5 KB'. Negative values keep their sign."""
    if n == 0:
        return "0 Bytes"
    sign = "-" if n < 0 else ""
    units = ("Bytes", "KB", "MB")
    value = float(abs(n))
    i = 0
    while value >= 1024 and i < len(units) - 1:
        value /= 1024
        i += 1
    text = f"{value:.2f}".rstrip("0").rstrip(".")
    return f"{sign}{text} {units[i]}"


def build_optimize_report(results: List[OptimizationResult], summary: BatchSummary) -> OptimizeReport:
    files: List[FileReport] = []
    for r in results:
        files.append(
            FileReport(
                src_path=str(r.file),
                kind=r.kind,
                out_path=str(r.out_path) if r.out_path else None,
                original_bytes=r.original_size_bytes,
                new_bytes=r.new_size_bytes,
                saved_bytes=r.savings_bytes,
                saved_percent=round(r.savings_percent, 2),
                error=r.error,
                skipped_reason=r.skipped_reason,
            )
        )

    summary_dict = {
        "total_files": summary.total_files,
        "optimized": dict(summary.optimized),
        "failed": summary.failed,
        "skipped": summary.skipped,
        "total_original_bytes": summary.total_original_bytes,
        "total_new_bytes": summary.total_new_bytes,
        "saved_bytes": summary.saved_bytes,
        "saved_percent": round(summary.saved_percent, 2),
    }

    return OptimizeReport(created_utc=_now_utc(), tool="optimize", summary=summary_dict, files=files)


def build_check_report(tool: str, sink: ReportSink) -> CheckReport:
    summary = dict(sink.counts)
    summary["ready"] = sink.ready
    entries = [asdict(e) for e in sink.entries]
    return CheckReport(created_utc=_now_utc(), tool=tool, summary=summary, entries=entries)


def save_report_json(report, path: Path) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    with path.open("w", encoding="utf-8") as f:
        json.dump(asdict(report), f, indent=2, ensure_ascii=False)


def save_report_csv(report, path: Path) -> None:
    """One row per file (optimize) or per entry (validate/test)."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    if isinstance(report, OptimizeReport):
        rows = [asdict(f) for f in report.files]
        header = list(FileReport.__dataclass_fields__)
    else:
        rows = list(report.entries)
        header = ["kind", "message"]

    with path.open("w", encoding="utf-8", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=header)
        writer.writeheader()
        writer.writerows(rows)


def save_report(report, path: Path) -> None:
    if Path(path).suffix.lower() == ".csv":
        save_report_csv(report, path)
    else:
        save_report_json(report, path)

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Literal, Optional


EntryKind = Literal["pass", "fail", "warn", "error"]


@dataclass(frozen=True)
class FileEntry:
    path: Path
    extension: str


@dataclass(frozen=True)
class ReportEntry:
    kind: EntryKind
    message: str


@dataclass(frozen=True)
class OptimizationResult:
    """
    Output of minifying a single file.

    out_path is None when nothing was written (failure or skipped).
    """
    file: Path
    kind: str  # "html" | "css" | "js" | "image"
    out_path: Optional[Path]
    original_size_bytes: int
    new_size_bytes: int
    error: Optional[str] = None
    skipped_reason: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def savings_bytes(self) -> int:
        # May be negative if a minifier ever expands its input.
        return self.original_size_bytes - self.new_size_bytes

    @property
    def savings_percent(self) -> float:
        if self.original_size_bytes <= 0:
            return 0.0
        return (self.savings_bytes / self.original_size_bytes) * 100.0

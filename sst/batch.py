from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Optional

from .collect import collect_files
from .engine import IMAGE_EXTS, optimize_image_file, optimize_text_file
from .results import OptimizationResult
from .settings import OptimizeSettings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BatchSummary:
    optimized: Dict[str, int] = field(default_factory=dict)  # kind -> files written
    failed: int = 0
    skipped: int = 0
    total_original_bytes: int = 0
    total_new_bytes: int = 0

    @property
    def total_files(self) -> int:
        return sum(self.optimized.values()) + self.failed + self.skipped

    @property
    def saved_bytes(self) -> int:
        return self.total_original_bytes - self.total_new_bytes

    @property
    def saved_percent(self) -> float:
        if self.total_original_bytes <= 0:
            return 0.0
        return (self.saved_bytes / self.total_original_bytes) * 100.0


def plan_batch(root: Path, settings: OptimizeSettings) -> List[tuple[str, Path]]:
    """
    List (stage, path) pairs in processing order: html, css, js, images.

    Already-minified files are never picked up again, and JS files whose
    path mentions a vendored library are left alone.
    """
    root = Path(root)
    collect = dict(include_minified=False, min_marker=settings.min_marker)

    plan: List[tuple[str, Path]] = []
    for stage, sub, ext in (
        ("html", settings.html_dir, ".html"),
        ("css", settings.css_dir, ".css"),
        ("js", settings.js_dir, ".js"),
    ):
        for entry in collect_files(root / sub, ext, **collect):
            if stage == "js" and _is_vendored(entry.path.relative_to(root / sub), settings):
                logger.debug("skipping vendored script %s", entry.path)
                continue
            plan.append((stage, entry.path))

    if settings.include_images:
        # Extensions compared case-insensitively: HERO.JPG is an image too.
        images = [
            e.path
            for e in collect_files(root / settings.image_dir, "", **collect)
            if e.path.suffix.lower() in IMAGE_EXTS
        ]
        plan.extend(("image", p) for p in images)

    return plan


def _is_vendored(path: Path, settings: OptimizeSettings) -> bool:
    text = path.as_posix().lower()
    return any(name in text for name in settings.js_denylist)


def process_batch(
    root: Path,
    settings: OptimizeSettings,
    on_result: Optional[Callable[[OptimizationResult], None]] = None,
) -> tuple[List[OptimizationResult], BatchSummary]:
    results: List[OptimizationResult] = []

    optimized: Dict[str, int] = {"html": 0, "css": 0, "js": 0, "image": 0}
    failed = 0
    skipped = 0
    total_original = 0
    total_new = 0

    for stage, path in plan_batch(root, settings):
        try:
            if stage == "image":
                r = optimize_image_file(path, settings)
            else:
                r = optimize_text_file(path, settings)
        except Exception as e:
            # One bad file must not stop the rest of the batch.
            logger.warning("could not optimize %s: %s", path, e)
            r = OptimizationResult(
                file=path,
                kind=stage,
                out_path=None,
                original_size_bytes=0,
                new_size_bytes=0,
                error=str(e) or e.__class__.__name__,
            )

        results.append(r)
        if on_result:
            on_result(r)

        if not r.ok:
            failed += 1
            continue
        if r.out_path is None:
            skipped += 1
        else:
            optimized[r.kind] += 1

        total_original += r.original_size_bytes
        total_new += r.new_size_bytes

    summary = BatchSummary(
        optimized=optimized,
        failed=failed,
        skipped=skipped,
        total_original_bytes=total_original,
        total_new_bytes=total_new,
    )
    return results, summary

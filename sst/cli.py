from __future__ import annotations

import argparse
import logging
from dataclasses import replace
from pathlib import Path

from .batch import process_batch
from .report import build_check_report, build_optimize_report, format_bytes, save_report
from .results import OptimizationResult
from .settings import OptimizeSettings, load_settings
from .smoke import run_smoke_tests
from .validate import validate_site


STAGE_TITLES = {
    "html": "Optimizing HTML files...",
    "css": "Optimizing CSS files...",
    "js": "Optimizing JavaScript files...",
    "image": "Optimizing images...",
}


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="sst",
        description="Static Site Toolkit: minify assets, validate pages, run smoke tests",
    )
    sub = p.add_subparsers(dest="command", required=True)

    # Shared by every command
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--root", default=".", help="Site root directory (default: current directory)")
    common.add_argument("--config", default=None, help="JSON file overriding the default settings")
    common.add_argument("--report", default=None, help="Also write a report (.json or .csv)")
    common.add_argument(
        "--strict",
        action="store_true",
        help="Exit with status 1 when anything failed (default: always 0)",
    )
    common.add_argument("-v", "--verbose", action="store_true", help="Debug logging on stderr")

    opt = sub.add_parser("optimize", parents=[common], help="Write .min siblings of HTML/CSS/JS files")
    opt.add_argument("--images", action="store_true", help="Also re-encode images under the image folder")

    sub.add_parser("validate", parents=[common], help="Check pages and required files")
    sub.add_parser("test", parents=[common], help="Run the site smoke tests")

    return p


def _print_result(r: OptimizationResult, root: Path) -> None:
    try:
        name = r.file.relative_to(root).as_posix()
    except ValueError:
        name = str(r.file)

    if not r.ok:
        print(f"  x {name}: Error - {r.error}")
    elif r.out_path is None:
        print(f"  - {name}: skipped ({r.skipped_reason})")
    else:
        print(f"  + {name}: {format_bytes(r.savings_bytes)} saved")


def _run_optimize(args: argparse.Namespace, root: Path, optimize_settings: OptimizeSettings) -> int:
    settings = optimize_settings
    if args.images:
        settings = replace(settings, include_images=True)

    print("Starting website optimization...")
    current = {"stage": None}

    def on_result(r: OptimizationResult) -> None:
        if r.kind != current["stage"]:
            current["stage"] = r.kind
            print(f"\n{STAGE_TITLES.get(r.kind, r.kind)}")
        _print_result(r, root)

    results, summary = process_batch(root, settings, on_result=on_result)

    print("\n=== Optimization Report ===")
    print("HTML files optimized:", summary.optimized.get("html", 0))
    print("CSS files optimized :", summary.optimized.get("css", 0))
    print("JS files optimized  :", summary.optimized.get("js", 0))
    if settings.include_images:
        print("Images optimized    :", summary.optimized.get("image", 0))
        print("Images skipped      :", summary.skipped)
    print("Failed              :", summary.failed)
    print(f"Total space saved   : {format_bytes(summary.saved_bytes)} ({summary.saved_percent:.1f}%)")

    if args.report:
        save_report(build_optimize_report(results, summary), Path(args.report))
        print("\nReport written:", args.report)

    if args.strict and summary.failed:
        return 1
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    root = Path(args.root)
    if not root.is_dir():
        parser.error(f"site root is not a directory: {root}")

    try:
        optimize_settings, check_settings = load_settings(Path(args.config) if args.config else None)
    except (OSError, ValueError) as e:
        parser.error(f"bad config: {e}")

    if args.command == "optimize":
        return _run_optimize(args, root, optimize_settings)

    if args.command == "validate":
        print("Starting website validation...")
        sink = validate_site(root, check_settings)
    elif args.command == "test":
        print("Running website tests...")
        sink = run_smoke_tests(root, check_settings)
    else:
        parser.print_help()
        return 2

    sink.summarize()

    if args.report:
        save_report(build_check_report(args.command, sink), Path(args.report))
        print("\nReport written:", args.report)

    if args.strict and not sink.ready:
        return 1
    return 0

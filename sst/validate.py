from __future__ import annotations

from pathlib import Path
from typing import Callable, List, Optional, Sequence

from bs4 import BeautifulSoup

from .collect import collect_files
from .markup import has_aria, has_attr_anywhere, has_h1, has_title, meta_named, read_page
from .settings import CheckSettings
from .sink import ReportSink


PageCheck = tuple[Callable[[BeautifulSoup], bool], str]

STRUCTURE_CHECKS: List[PageCheck] = [
    (has_title, "Title tag present"),
    (lambda soup: meta_named(soup, "description"), "Meta description present"),
    (lambda soup: meta_named(soup, "viewport"), "Viewport meta tag present"),
    (lambda soup: has_attr_anywhere(soup, "lang"), "Language attribute present"),
    (has_h1, "H1 tag present"),
]

ACCESSIBILITY_CHECKS: List[PageCheck] = [
    (lambda soup: has_attr_anywhere(soup, "alt"), "Images have alt attributes"),
    (has_aria, "ARIA attributes present"),
    (lambda soup: has_attr_anywhere(soup, "role"), "Role attributes present"),
]


def label(path: Path, root: Path) -> str:
    try:
        return Path(path).relative_to(root).as_posix()
    except ValueError:
        return str(path)


def html_pages(root: Path) -> List[Path]:
    # .min.html copies are generated output, not pages to review.
    return [e.path for e in collect_files(root, ".html", include_minified=False)]


def validate_html_structure(root: Path, pages: Sequence[Path], sink: ReportSink) -> None:
    sink.section("Validating HTML structure...")
    for page in pages:
        name = label(page, root)
        try:
            _, soup = read_page(page)
        except (OSError, UnicodeDecodeError) as e:
            sink.error(f"{name}: Cannot read file - {e}")
            continue

        for check, message in STRUCTURE_CHECKS:
            if check(soup):
                sink.pass_(f"{name}: {message}")
            else:
                sink.fail(f"{name}: Missing {message}")


def validate_accessibility(root: Path, pages: Sequence[Path], sink: ReportSink) -> None:
    sink.section("Validating accessibility...")
    for page in pages:
        name = label(page, root)
        try:
            _, soup = read_page(page)
        except (OSError, UnicodeDecodeError) as e:
            sink.error(f"{name}: Cannot validate accessibility - {e}")
            continue

        for check, message in ACCESSIBILITY_CHECKS:
            if check(soup):
                sink.pass_(f"{name}: {message}")
            else:
                sink.warn(f"{name}: Consider adding {message}")


def _check_exists(
    root: Path,
    names: Sequence[str],
    found: str,
    missing: str,
    on_missing: Callable[[str], None],
    sink: ReportSink,
) -> None:
    for name in names:
        if (root / name).exists():
            sink.pass_(f"{found}: {name}")
        else:
            on_missing(f"{missing}: {name}")


def validate_site(
    root: Path,
    checks: Optional[CheckSettings] = None,
    sink: Optional[ReportSink] = None,
) -> ReportSink:
    """
    Run every validator check against the site at root.

    Checks never depend on each other: a failing one does not stop the rest.
    """
    root = Path(root)
    checks = checks or CheckSettings()
    sink = sink or ReportSink()

    pages = html_pages(root)

    validate_html_structure(root, pages, sink)

    sink.section("Validating assets...")
    _check_exists(root, checks.critical_assets, "Asset exists", "Missing critical asset", sink.error, sink)

    sink.section("Validating SEO elements...")
    _check_exists(root, checks.seo_files, "SEO file exists", "Missing SEO file", sink.warn, sink)

    sink.section("Validating security measures...")
    _check_exists(root, checks.security_files, "Security file exists", "Missing security file", sink.warn, sink)

    sink.section("Validating performance optimizations...")
    _check_exists(root, checks.performance_files, "Performance file exists", "Missing performance file", sink.warn, sink)

    validate_accessibility(root, pages, sink)

    return sink

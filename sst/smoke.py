from __future__ import annotations

import re
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Optional, Sequence

from .markup import (
    has_aria,
    has_attr_anywhere,
    has_charset,
    has_html5_doctype,
    has_html_structure,
    image_coverage,
    internal_html_links,
    read_page,
    resolve_link,
)
from .settings import CheckSettings
from .sink import ReportSink
from .validate import html_pages, label


SECURITY_DIRECTIVES = [
    (re.compile(r"Header.*X-XSS-Protection", re.I), "XSS Protection header"),
    (re.compile(r"Header.*X-Content-Type-Options", re.I), "Content-Type-Options header"),
    (re.compile(r"Header.*X-Frame-Options", re.I), "Frame-Options header"),
    (re.compile(r"RewriteRule.*https", re.I), "HTTPS redirect"),
]

SITEMAP_ROOTS = {"urlset", "sitemapindex"}


def check_file_structure(root: Path, checks: CheckSettings, sink: ReportSink) -> None:
    sink.section("Testing file structure...")
    for name in checks.required_files:
        if (root / name).exists():
            sink.pass_(f"File exists: {name}")
        else:
            sink.fail(f"Missing required file: {name}")


def check_html_validity(root: Path, pages: Sequence[Path], sink: ReportSink) -> None:
    sink.section("Testing HTML validity...")
    for page in pages:
        name = label(page, root)
        try:
            text, soup = read_page(page)
        except (OSError, UnicodeDecodeError) as e:
            sink.fail(f"{name}: Cannot read file - {e}")
            continue

        if has_html5_doctype(soup):
            sink.pass_(f"{name}: Valid DOCTYPE")
        else:
            sink.fail(f"{name}: Missing or invalid DOCTYPE")

        if has_html_structure(soup, text):
            sink.pass_(f"{name}: Valid HTML structure")
        else:
            sink.fail(f"{name}: Invalid HTML structure")

        if has_charset(soup):
            sink.pass_(f"{name}: Charset meta tag present")
        else:
            sink.fail(f"{name}: Missing charset meta tag")


def check_link_integrity(root: Path, pages: Sequence[Path], sink: ReportSink) -> None:
    sink.section("Testing link integrity...")
    for page in pages:
        name = label(page, root)
        try:
            _, soup = read_page(page)
        except (OSError, UnicodeDecodeError) as e:
            sink.fail(f"{name}: Cannot test links - {e}")
            continue

        for href in internal_html_links(soup):
            if resolve_link(href, page, root).is_file():
                sink.pass_(f"{name}: Link valid - {href}")
            else:
                sink.fail(f"{name}: Broken link - {href}")


def check_image_optimization(
    root: Path,
    pages: Sequence[Path],
    checks: CheckSettings,
    sink: ReportSink,
) -> None:
    sink.section("Testing image optimization...")
    for page in pages:
        name = label(page, root)
        try:
            _, soup = read_page(page)
        except (OSError, UnicodeDecodeError) as e:
            sink.fail(f"{name}: Cannot test images - {e}")
            continue

        coverage = image_coverage(soup)
        if coverage is None:
            continue
        _, lazy_pct, alt_pct = coverage

        if lazy_pct > checks.lazy_threshold:
            sink.pass_(f"{name}: Good lazy loading coverage ({lazy_pct:.1f}%)")
        else:
            sink.warn(f"{name}: Consider more lazy loading ({lazy_pct:.1f}%)")

        if alt_pct > checks.alt_threshold:
            sink.pass_(f"{name}: Good alt text coverage ({alt_pct:.1f}%)")
        else:
            sink.warn(f"{name}: Consider adding more alt text ({alt_pct:.1f}%)")


def _local_name(tag: str) -> str:
    # "{http://www.sitemaps.org/schemas/sitemap/0.9}urlset" -> "urlset"
    return tag.rsplit("}", 1)[-1]


def check_seo_compliance(root: Path, sink: ReportSink) -> None:
    sink.section("Testing SEO compliance...")

    sitemap = root / "sitemap.xml"
    if sitemap.exists():
        try:
            tree = ET.parse(sitemap)
        except (ET.ParseError, OSError) as e:
            sink.fail(f"Sitemap: Invalid XML structure ({e})")
        else:
            if _local_name(tree.getroot().tag) in SITEMAP_ROOTS:
                sink.pass_("Sitemap: Valid XML structure")
            else:
                sink.fail("Sitemap: Invalid XML structure")

    robots = root / "robots.txt"
    if robots.exists():
        try:
            lines = robots.read_text(encoding="utf-8").splitlines()
        except (OSError, UnicodeDecodeError) as e:
            sink.fail(f"Robots.txt: Cannot read file - {e}")
        else:
            if any(line.strip().lower().startswith("user-agent:") for line in lines):
                sink.pass_("Robots.txt: Valid format")
            else:
                sink.fail("Robots.txt: Invalid format")


def check_security_measures(root: Path, sink: ReportSink) -> None:
    sink.section("Testing security measures...")

    htaccess = root / ".htaccess"
    if not htaccess.exists():
        return
    try:
        text = htaccess.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        sink.fail(f"Security: Cannot read .htaccess - {e}")
        return

    for pattern, message in SECURITY_DIRECTIVES:
        if pattern.search(text):
            sink.pass_(f"Security: {message} configured")
        else:
            sink.warn(f"Security: Consider adding {message}")


def check_performance(root: Path, checks: CheckSettings, sink: ReportSink) -> None:
    sink.section("Testing performance optimizations...")

    for name in checks.performance_files:
        if (root / name).exists():
            sink.pass_(f"Performance: {name} present")
        else:
            sink.warn(f"Performance: Consider adding {name}")


def check_accessibility(root: Path, pages: Sequence[Path], sink: ReportSink) -> None:
    sink.section("Testing accessibility...")
    for page in pages:
        name = label(page, root)
        try:
            _, soup = read_page(page)
        except (OSError, UnicodeDecodeError) as e:
            sink.fail(f"{name}: Cannot test accessibility - {e}")
            continue

        if has_aria(soup):
            sink.pass_(f"{name}: ARIA attributes present")
        else:
            sink.warn(f"{name}: Consider adding ARIA attributes")

        if has_attr_anywhere(soup, "role"):
            sink.pass_(f"{name}: Role attributes present")
        else:
            sink.warn(f"{name}: Consider adding role attributes")


def run_smoke_tests(
    root: Path,
    checks: Optional[CheckSettings] = None,
    sink: Optional[ReportSink] = None,
) -> ReportSink:
    root = Path(root)
    checks = checks or CheckSettings()
    sink = sink or ReportSink()

    pages = html_pages(root)

    check_file_structure(root, checks, sink)
    check_html_validity(root, pages, sink)
    check_link_integrity(root, pages, sink)
    check_image_optimization(root, pages, checks, sink)
    check_seo_compliance(root, sink)
    check_security_measures(root, sink)
    check_performance(root, checks, sink)
    check_accessibility(root, pages, sink)

    return sink

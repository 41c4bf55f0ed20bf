"""
Markup queries shared by the validator and the smoke tests.

Pages are parsed once with BeautifulSoup; every helper below answers one
checklist question against the resulting tree.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import List, Optional
from urllib.parse import unquote, urlparse

from bs4 import BeautifulSoup, Doctype


def soup_of(html: str) -> BeautifulSoup:
    # html.parser keeps the tree close to the source (no implied <html>/<body>)
    return BeautifulSoup(html, "html.parser")


def read_page(path: Path) -> tuple[str, BeautifulSoup]:
    text = Path(path).read_text(encoding="utf-8")
    return text, soup_of(text)


def meta_named(soup: BeautifulSoup, name: str) -> bool:
    for tag in soup.find_all("meta"):
        if str(tag.get("name") or "").strip().lower() == name:
            return True
    return False


def has_title(soup: BeautifulSoup) -> bool:
    return soup.find("title") is not None


def has_h1(soup: BeautifulSoup) -> bool:
    return soup.find("h1") is not None


def has_attr_anywhere(soup: BeautifulSoup, attr: str) -> bool:
    return soup.find(attrs={attr: True}) is not None


def has_aria(soup: BeautifulSoup) -> bool:
    return soup.find(lambda tag: any(a.startswith("aria-") for a in tag.attrs)) is not None


def has_html5_doctype(soup: BeautifulSoup) -> bool:
    for node in soup.contents:
        if isinstance(node, Doctype):
            return str(node).strip().lower() == "html"
    return False


_CLOSING_HTML = re.compile(r"</html\s*>", re.I)


def has_html_structure(soup: BeautifulSoup, text: str) -> bool:
    # The parser cannot tell whether </html> was written, so look at the source.
    return soup.find("html") is not None and _CLOSING_HTML.search(text) is not None


def has_charset(soup: BeautifulSoup) -> bool:
    for tag in soup.find_all("meta"):
        if tag.get("charset"):
            return True
        equiv = str(tag.get("http-equiv") or "").lower()
        if equiv == "content-type" and "charset=" in str(tag.get("content") or "").lower():
            return True
    return False


def image_coverage(soup: BeautifulSoup) -> Optional[tuple[int, float, float]]:
    """
    (image_count, lazy_percent, alt_percent), or None if the page has no <img>.

    An empty alt="" counts as alt text: it marks a decorative image.
    """
    imgs = soup.find_all("img")
    if not imgs:
        return None

    lazy = sum(1 for img in imgs if str(img.get("loading") or "").strip().lower() == "lazy")
    alt = sum(1 for img in imgs if img.has_attr("alt"))
    total = len(imgs)
    return total, lazy * 100.0 / total, alt * 100.0 / total


def internal_html_links(soup: BeautifulSoup) -> List[str]:
    """
    href values pointing at local .html pages, in document order.

    Absolute URLs (any scheme, or protocol-relative) and pure fragments
    are not internal links.
    """
    links: List[str] = []
    for tag in soup.find_all(href=True):
        href = str(tag["href"]).strip()
        if not href or href.startswith("#") or href.startswith("//"):
            continue
        parsed = urlparse(href)
        if parsed.scheme or parsed.netloc:
            continue
        if not parsed.path.lower().endswith(".html"):
            continue
        links.append(href)
    return links


def resolve_link(href: str, page: Path, root: Path) -> Path:
    # "/about.html" is root-relative; anything else is relative to the page.
    path = unquote(urlparse(href).path)
    if path.startswith("/"):
        return Path(root) / path.lstrip("/")
    return Path(page).parent / path

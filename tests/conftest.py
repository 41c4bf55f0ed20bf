from pathlib import Path

import pytest


GOOD_PAGE = """<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="utf-8">
  <title>Home</title>
  <meta name="description" content="Freight and logistics">
  <meta name="viewport" content="width=device-width, initial-scale=1">
</head>
<body>
  <nav role="navigation" aria-label="Main">
    <a href="about.html">About</a>
    <a href="https://example.com/">External</a>
    <a href="#top">Top</a>
  </nav>
  <h1>Welcome</h1>
  <img src="a.png" alt="A" loading="lazy">
</body>
</html>
"""


@pytest.fixture
def make_site(tmp_path: Path):
    """Write {relative_path: text or bytes} under a fresh site root and return it."""

    def _make(files: dict) -> Path:
        root = tmp_path / "site"
        root.mkdir(exist_ok=True)
        for rel, content in files.items():
            p = root / rel
            p.parent.mkdir(parents=True, exist_ok=True)
            if isinstance(content, bytes):
                p.write_bytes(content)
            else:
                p.write_text(content, encoding="utf-8")
        return root

    return _make


@pytest.fixture
def good_page() -> str:
    return GOOD_PAGE

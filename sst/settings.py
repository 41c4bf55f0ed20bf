from __future__ import annotations

import json
import logging
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Optional, Tuple

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OptimizeSettings:
    """
    All knobs of the minification pass.

    Pure data object (no logic) so it stays easy to test and easy to
    override from a JSON config file.
    """

    # ----- Where to look (relative to the site root) -----
    html_dir: str = "."
    css_dir: str = "assets/css"
    js_dir: str = "assets/js"
    image_dir: str = "assets/images"

    # Vendored libraries are shipped pre-minified; matched as path substrings.
    js_denylist: Tuple[str, ...] = ("jquery", "bootstrap", "swiper", "gsap")

    # Inserted before the extension: site.css -> site.min.css
    min_marker: str = ".min"

    # ----- HTML (minify-html) -----
    html_keep_comments: bool = False
    html_minify_css: bool = True
    html_minify_js: bool = True
    # Conservative: keep the tags the structural checks look for.
    html_keep_closing_tags: bool = True
    html_keep_html_and_head_opening_tags: bool = True

    # ----- CSS / JS (rcssmin / rjsmin) -----
    keep_bang_comments: bool = False

    # ----- Images (Pillow), off unless asked for -----
    include_images: bool = False
    jpeg_quality: int = 82
    png_compress_level: int = 9
    webp_quality: int = 80


@dataclass(frozen=True)
class CheckSettings:
    """Fixed file lists and thresholds used by the validator and the smoke tests."""

    critical_assets: Tuple[str, ...] = (
        "assets/css/main.css",
        "assets/js/main.js",
        "assets/images/logo/Marassi_logo.png",
        "header.html",
        "footer.html",
    )
    seo_files: Tuple[str, ...] = ("sitemap.xml", "robots.txt", "manifest.json")
    security_files: Tuple[str, ...] = (".htaccess", "assets/js/security.js")
    performance_files: Tuple[str, ...] = ("sw.js", "assets/js/performance.js")

    required_files: Tuple[str, ...] = (
        "index.html",
        "about.html",
        "service.html",
        "project.html",
        "contact.html",
        "header.html",
        "footer.html",
        "privacy-policy.html",
        "terms-of-service.html",
        "404.html",
        "500.html",
        "sitemap.xml",
        "robots.txt",
        "manifest.json",
        ".htaccess",
    )

    # Coverage must be strictly above these to pass.
    lazy_threshold: float = 80.0
    alt_threshold: float = 90.0


def _coerce(cls: type, section: str, data: Any) -> dict:
    if not isinstance(data, dict):
        raise ValueError(f"config section '{section}' must be an object")

    known = {f.name: f for f in fields(cls)}
    out: dict = {}
    for key, value in data.items():
        if key not in known:
            raise ValueError(f"unknown setting '{section}.{key}'")

        default = getattr(cls(), key)
        if isinstance(default, tuple):
            if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
                raise ValueError(f"setting '{section}.{key}' must be a list of strings")
            value = tuple(value)
        elif isinstance(default, bool):
            if not isinstance(value, bool):
                raise ValueError(f"setting '{section}.{key}' must be true or false")
        elif isinstance(default, (int, float)):
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ValueError(f"setting '{section}.{key}' must be a number")
            value = type(default)(value)
        elif isinstance(default, str):
            if not isinstance(value, str):
                raise ValueError(f"setting '{section}.{key}' must be a string")
        out[key] = value
    return out


def load_settings(
    path: Optional[Path],
    optimize: Optional[OptimizeSettings] = None,
    checks: Optional[CheckSettings] = None,
) -> tuple[OptimizeSettings, CheckSettings]:
    """
    Read a JSON config file and apply it on top of the defaults.

    Layout:
      {"optimize": {...OptimizeSettings fields...},
       "checks":   {...CheckSettings fields...}}
    """
    optimize = optimize or OptimizeSettings()
    checks = checks or CheckSettings()
    if path is None:
        return optimize, checks

    path = Path(path)
    try:
        with path.open("r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ValueError(f"{path}: invalid JSON ({e})") from e

    if not isinstance(data, dict):
        raise ValueError(f"{path}: top level must be an object")

    unknown = set(data) - {"optimize", "checks"}
    if unknown:
        raise ValueError(f"{path}: unknown section(s): {', '.join(sorted(unknown))}")

    if "optimize" in data:
        optimize = replace(optimize, **_coerce(OptimizeSettings, "optimize", data["optimize"]))
    if "checks" in data:
        checks = replace(checks, **_coerce(CheckSettings, "checks", data["checks"]))

    logger.debug("loaded settings from %s", path)
    return optimize, checks

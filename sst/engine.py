from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path

import minify_html
import rcssmin
import rjsmin
from PIL import Image, ImageOps

from .results import OptimizationResult
from .settings import OptimizeSettings

logger = logging.getLogger(__name__)


TEXT_KINDS = {".html": "html", ".css": "css", ".js": "js"}

IMAGE_EXTS = {".jpg", ".jpeg", ".png", ".webp"}

# Maps the source extension to the Pillow encoder.
EXT_TO_FORMAT = {
    ".jpg": "jpeg",
    ".jpeg": "jpeg",
    ".png": "png",
    ".webp": "webp",
}


def min_path(src_path: Path, marker: str = ".min") -> Path:
    # assets/css/site.css -> assets/css/site.min.css
    return src_path.with_name(f"{src_path.stem}{marker}{src_path.suffix}")


def minify_text(kind: str, content: str, s: OptimizeSettings) -> str:
    if kind == "html":
        return minify_html.minify(
            content,
            keep_comments=s.html_keep_comments,
            keep_closing_tags=s.html_keep_closing_tags,
            keep_html_and_head_opening_tags=s.html_keep_html_and_head_opening_tags,
            minify_css=s.html_minify_css,
            minify_js=s.html_minify_js,
        )

    if kind == "css":
        return rcssmin.cssmin(content, keep_bang_comments=s.keep_bang_comments)

    if kind == "js":
        return rjsmin.jsmin(content, keep_bang_comments=s.keep_bang_comments)

    raise ValueError(f"Unknown text kind: {kind}")


def optimize_text_file(src_path: Path, s: OptimizeSettings) -> OptimizationResult:
    """
    Minify one HTML/CSS/JS file into its .min sibling.

    Errors (unreadable file, bad encoding, minifier failure) propagate;
    the batch loop decides what to do with them.
    """
    src_path = Path(src_path)
    kind = TEXT_KINDS.get(src_path.suffix.lower())
    if kind is None:
        raise ValueError(f"Unsupported extension: {src_path.suffix}")

    content = src_path.read_text(encoding="utf-8")
    original_size = len(content.encode("utf-8"))

    minified = minify_text(kind, content, s)
    data = minified.encode("utf-8")

    out_path = min_path(src_path, s.min_marker)
    # Bytes, not text mode, so the output is identical on every platform.
    out_path.write_bytes(data)
    logger.debug("minified %s: %d -> %d bytes", src_path, original_size, len(data))

    return OptimizationResult(
        file=src_path,
        kind=kind,
        out_path=out_path,
        original_size_bytes=original_size,
        new_size_bytes=len(data),
    )


def optimize_image_file(src_path: Path, s: OptimizeSettings) -> OptimizationResult:
    src_path = Path(src_path)
    src_bytes = _file_size(src_path)

    out_format = EXT_TO_FORMAT.get(src_path.suffix.lower())
    if out_format is None:
        raise ValueError(f"Unsupported image extension: {src_path.suffix}")

    out_path = min_path(src_path, s.min_marker)

    with Image.open(src_path) as im:
        im.load()
        # Metadata is dropped below, so bake the EXIF orientation in first.
        im = ImageOps.exif_transpose(im)

        if out_format == "jpeg" and im.mode not in ("RGB", "L"):
            im = im.convert("RGB")

        tmp_path = _save_to_temp(im, s, out_format, out_path.parent, src_path.suffix)

    tmp_bytes = _file_size(tmp_path)

    if tmp_bytes >= src_bytes:
        tmp_path.unlink(missing_ok=True)
        return OptimizationResult(
            file=src_path,
            kind="image",
            out_path=None,
            original_size_bytes=src_bytes,
            new_size_bytes=src_bytes,
            skipped_reason="not_smaller",
        )

    tmp_path.replace(out_path)

    return OptimizationResult(
        file=src_path,
        kind="image",
        out_path=out_path,
        original_size_bytes=src_bytes,
        new_size_bytes=_file_size(out_path),
    )


def _save_to_temp(im: Image.Image, s: OptimizeSettings, out_format: str, directory: Path, suffix: str) -> Path:
    # Same directory as the target so the final rename stays on one filesystem
    fd, tmp_name = tempfile.mkstemp(prefix="sst_", suffix=suffix, dir=str(directory))
    os.close(fd)
    tmp_path = Path(tmp_name)

    try:
        im.save(tmp_path, format=out_format.upper(), **_build_save_kwargs(s, out_format))
    except Exception:
        tmp_path.unlink(missing_ok=True)
        raise

    return tmp_path


def _build_save_kwargs(s: OptimizeSettings, out_format: str) -> dict:
    # No exif/icc_profile passed: metadata is stripped.
    kwargs: dict = {}

    if out_format == "jpeg":
        kwargs["quality"] = int(s.jpeg_quality)
        kwargs["optimize"] = True
        kwargs["progressive"] = True

    elif out_format == "png":
        kwargs["compress_level"] = int(s.png_compress_level)
        kwargs["optimize"] = True

    elif out_format == "webp":
        kwargs["quality"] = int(s.webp_quality)
        kwargs["method"] = 6

    return kwargs


def _file_size(p: Path) -> int:
    try:
        return p.stat().st_size
    except FileNotFoundError:
        return 0

from pathlib import Path

import pytest
from PIL import Image

from sst.batch import plan_batch, process_batch
from sst.engine import min_path, minify_text, optimize_text_file
from sst.settings import OptimizeSettings


CSS = """/* site header */
body {
    color : red ;
    margin : 0 ;
}

.nav  a {
    padding : 4px  8px ;
}
"""

JS = """// greeting helper
function  hello ( name ) {
    /* build the message */
    return 'hi ' + name ;
}
"""

HTML = """<!DOCTYPE html>
<html lang="en">
  <head>
    <!-- page meta -->
    <title>Home</title>
  </head>
  <body>
    <h1>   Welcome   aboard   </h1>
  </body>
</html>
"""


def test_min_path_inserts_marker_before_extension():
    assert min_path(Path("assets/css/site.css")) == Path("assets/css/site.min.css")
    assert min_path(Path("html.page.html")) == Path("html.page.min.html")


@pytest.mark.parametrize(
    "kind, source, gone",
    [
        ("css", CSS, "site header"),
        ("js", JS, "greeting helper"),
        ("html", HTML, "page meta"),
    ],
)
def test_minify_text_shrinks_and_drops_comments(kind, source, gone):
    out = minify_text(kind, source, OptimizeSettings())
    assert len(out.encode("utf-8")) < len(source.encode("utf-8"))
    assert gone not in out


def test_html_minify_keeps_structural_tags():
    out = minify_text("html", HTML, OptimizeSettings())
    assert "<title>Home</title>" in out
    assert "<html" in out


def test_minify_text_rejects_unknown_kind():
    with pytest.raises(ValueError):
        minify_text("xml", "<a/>", OptimizeSettings())


def test_optimize_text_file_writes_sibling(tmp_path):
    src = tmp_path / "site.css"
    src.write_text(CSS, encoding="utf-8")

    r = optimize_text_file(src, OptimizeSettings())

    assert r.ok
    assert r.kind == "css"
    assert r.out_path == tmp_path / "site.min.css"
    assert r.out_path.read_bytes() and r.new_size_bytes == r.out_path.stat().st_size
    assert r.original_size_bytes == len(CSS.encode("utf-8"))
    assert r.savings_bytes == r.original_size_bytes - r.new_size_bytes > 0
    # source untouched
    assert src.read_text(encoding="utf-8") == CSS


def _site(make_site):
    return make_site({
        "index.html": HTML,
        "index.min.html": "<p>old</p>",
        "assets/css/site.css": CSS,
        "assets/css/site.min.css": "body{}",
        "assets/js/app.js": JS,
        "assets/js/jquery-3.7.1.js": JS,
        "assets/js/vendor/bootstrap.bundle.js": JS,
        "assets/js/app.min.js": "x()",
        "node_modules/lib/index.html": HTML,
    })


def test_plan_skips_minified_vendored_and_dependency_files(make_site):
    root = _site(make_site)

    plan = [(stage, p.relative_to(root).as_posix()) for stage, p in plan_batch(root, OptimizeSettings())]

    assert plan == [
        ("html", "index.html"),
        ("css", "assets/css/site.css"),
        ("js", "assets/js/app.js"),
    ]


def test_process_batch_writes_min_files_and_totals(make_site):
    root = _site(make_site)
    seen = []

    results, summary = process_batch(root, OptimizeSettings(), on_result=seen.append)

    assert seen == results
    assert summary.optimized == {"html": 1, "css": 1, "js": 1, "image": 0}
    assert summary.failed == 0
    assert summary.total_files == 3
    assert summary.saved_bytes == sum(r.savings_bytes for r in results) > 0
    assert (root / "assets/css/site.min.css").read_text(encoding="utf-8") != "body{}"
    assert not (root / "assets/js/jquery-3.7.1.min.js").exists()
    assert not (root / "index.min.min.html").exists()


def test_output_never_larger_than_valid_input(make_site):
    root = _site(make_site)
    results, _ = process_batch(root, OptimizeSettings())
    for r in results:
        assert r.new_size_bytes <= r.original_size_bytes


def test_second_run_is_byte_identical(make_site):
    root = _site(make_site)
    outputs = ["index.min.html", "assets/css/site.min.css", "assets/js/app.min.js"]

    process_batch(root, OptimizeSettings())
    first = {name: (root / name).read_bytes() for name in outputs}

    process_batch(root, OptimizeSettings())
    second = {name: (root / name).read_bytes() for name in outputs}

    assert first == second


def test_one_bad_file_does_not_stop_the_batch(make_site):
    root = make_site({
        "assets/css/a-broken.css": b"\xff\xfe body { color: red }",
        "assets/css/b-good.css": CSS,
    })

    results, summary = process_batch(root, OptimizeSettings())

    assert [r.file.name for r in results] == ["a-broken.css", "b-good.css"]
    broken, good = results
    assert not broken.ok and broken.error
    assert broken.out_path is None
    assert good.ok and (root / "assets/css/b-good.min.css").exists()
    assert summary.failed == 1
    assert summary.optimized["css"] == 1


def test_images_are_only_processed_when_enabled(make_site):
    root = make_site({})
    img_dir = root / "assets/images"
    img_dir.mkdir(parents=True)
    Image.new("RGB", (200, 200), (30, 120, 200)).save(img_dir / "hero.png", format="PNG", compress_level=0)

    _, summary = process_batch(root, OptimizeSettings())
    assert summary.total_files == 0

    results, summary = process_batch(root, OptimizeSettings(include_images=True))

    (r,) = results
    assert r.kind == "image"
    assert r.out_path == img_dir / "hero.min.png"
    assert r.new_size_bytes < r.original_size_bytes
    assert summary.optimized["image"] == 1
    with Image.open(r.out_path) as im:
        assert im.size == (200, 200)


def test_image_not_written_when_not_smaller(make_site):
    root = make_site({})
    img_dir = root / "assets/images"
    img_dir.mkdir(parents=True)
    Image.new("RGB", (1, 1)).save(img_dir / "dot.png", format="PNG", optimize=True, compress_level=9)

    results, summary = process_batch(root, OptimizeSettings(include_images=True))

    (r,) = results
    assert r.out_path is None
    assert r.skipped_reason == "not_smaller"
    assert summary.skipped == 1
    assert not (img_dir / "dot.min.png").exists()
    assert [p.name for p in img_dir.iterdir()] == ["dot.png"]


def test_failed_file_is_logged_as_warning(make_site, caplog):
    root = make_site({"assets/js/app.js": b"\xff\xfe var x = 1;"})

    with caplog.at_level("WARNING", logger="sst.batch"):
        process_batch(root, OptimizeSettings())

    (record,) = [r for r in caplog.records if r.name == "sst.batch"]
    assert record.levelname == "WARNING"
    assert "app.js" in record.getMessage()


def test_image_extensions_match_case_insensitively(make_site):
    root = make_site({})
    img_dir = root / "assets/images"
    img_dir.mkdir(parents=True)
    Image.new("RGB", (8, 8)).save(img_dir / "HERO.JPG", format="JPEG")
    Image.new("RGB", (8, 8)).save(img_dir / "logo.Png", format="PNG")
    (img_dir / "notes.txt").write_text("not an image", encoding="utf-8")

    plan = [(stage, p.name) for stage, p in plan_batch(root, OptimizeSettings(include_images=True))]

    assert plan == [("image", "HERO.JPG"), ("image", "logo.Png")]

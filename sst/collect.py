from __future__ import annotations

import logging
import stat
from pathlib import Path
from typing import Iterable, List

from .results import FileEntry

logger = logging.getLogger(__name__)

DEPENDENCY_DIRS = ("node_modules",)


def is_minified(path: Path, marker: str = ".min") -> bool:
    """site.min.css -> True, site.css -> False"""
    return path.stem.endswith(marker)


def collect_files(
    root: Path,
    extension: str,
    skip_dirs: Iterable[str] = DEPENDENCY_DIRS,
    include_minified: bool = True,
    min_marker: str = ".min",
) -> List[FileEntry]:
    """
    Return every file under root whose name ends with extension.

    Depth-first: inside each directory the subdirectories are walked
    (sorted by name) before that directory's own files (sorted by name).
    Hidden directories and skip_dirs are never entered. Directory symlinks
    are not followed.

    Unreadable directories and entries are skipped and whatever was found is
    returned; the tools using this are advisory.
    """
    skip = set(skip_dirs)
    found: List[FileEntry] = []

    def walk(directory: Path) -> None:
        try:
            children = sorted(directory.iterdir(), key=lambda p: p.name)
        except OSError as e:
            logger.debug("skipping unreadable directory %s: %s", directory, e)
            return

        dirs = []
        files = []
        for child in children:
            try:
                mode = child.lstat().st_mode
                if stat.S_ISLNK(mode):
                    mode = child.stat().st_mode
                    if stat.S_ISDIR(mode):
                        continue
            except OSError as e:
                # Listed but not stat-able (e.g. parent lacks execute permission).
                logger.debug("skipping unreadable entry %s: %s", child, e)
                continue

            if stat.S_ISDIR(mode):
                if child.name.startswith(".") or child.name in skip:
                    continue
                dirs.append(child)
            elif child.name.endswith(extension):
                if not include_minified and is_minified(child, min_marker):
                    continue
                files.append(child)

        for d in dirs:
            walk(d)
        for f in files:
            found.append(FileEntry(path=f, extension=extension))

    walk(Path(root))
    return found

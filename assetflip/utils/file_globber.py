# assetflip/utils/file_globber.py
from __future__ import annotations

import fnmatch
import glob
import os
from typing import Iterable, List

from assetflip.models.config import FileGlob


def _ignored(path: str, ignore: Iterable[str]) -> bool:
    normalized = os.path.normpath(path)
    return any(
        fnmatch.fnmatch(path, pattern) or fnmatch.fnmatch(normalized, os.path.normpath(pattern))
        for pattern in ignore
    )


def expand_globs(globs: Iterable[FileGlob], root_dir: str = ".") -> List[str]:
    """
    Expand the configured glob patterns into a sorted list of regular files.
    Paths are relative to root_dir, matching how the patterns are written.
    """
    found: List[str] = []
    for file_glob in globs:
        matches = glob.glob(os.path.join(root_dir, file_glob.pattern), recursive=True)
        for match in sorted(matches):
            if not os.path.isfile(match):
                continue
            rel = os.path.relpath(match, root_dir)
            if _ignored(rel, file_glob.ignore):
                continue
            found.append(rel if root_dir == "." else match)
    return found


def collect_local_files(manifest_path: str, globs: Iterable[FileGlob], local_file_paths: Iterable[str], root_dir: str = ".") -> List[str]:
    """The manifest first, then globbed files, then explicit paths; duplicates dropped, order kept."""
    ordered: List[str] = []
    seen = set()
    for path in [manifest_path, *expand_globs(globs, root_dir), *local_file_paths]:
        marker = os.path.abspath(path)
        if marker in seen:
            continue
        seen.add(marker)
        ordered.append(path)
    return ordered

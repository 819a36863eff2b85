# assetflip/services/revision.py
from __future__ import annotations

import os
import re
import subprocess
from dataclasses import dataclass
from typing import Optional

from assetflip.errors import RevisionLookupError

GIT_BIN = os.environ.get("ASSETFLIP_GIT_BIN", "git")

# unit separator; never appears in author names or subjects
_SEP = "\x1f"

# git-info comes from object metadata; only plain shas reach the command line
_REVISION_ID = re.compile(r"^[0-9a-fA-F]{4,64}$")


@dataclass(frozen=True)
class RevisionInfo:
    author: str
    date: str
    message: str


class GitRevisionLookup:
    """Reads author, date and subject of a commit from the local git checkout."""

    def __init__(self, repo_dir: Optional[str] = None, git_bin: str = GIT_BIN, timeout: int = 10):
        self.repo_dir = repo_dir
        self.git_bin = git_bin
        self.timeout = timeout

    def lookup(self, revision_id: str) -> RevisionInfo:
        if not _REVISION_ID.fullmatch(revision_id or ""):
            raise RevisionLookupError("git log", repr(revision_id), "not a commit sha")
        cmd = [
            self.git_bin,
            "log",
            "-1",
            "--date=format:%Y-%m-%d %H:%M",
            f"--pretty=format:%aN{_SEP}%ad{_SEP}%s",
            revision_id,
            "--",
        ]
        try:
            proc = subprocess.run(cmd, cwd=self.repo_dir, capture_output=True, check=False, timeout=self.timeout)
        except (OSError, subprocess.TimeoutExpired) as e:
            raise RevisionLookupError("git log", revision_id, str(e)) from e

        if proc.returncode != 0:
            raise RevisionLookupError("git log", revision_id, proc.stderr.decode("utf-8", "replace").strip())

        parts = proc.stdout.decode("utf-8", "replace").strip().split(_SEP)
        if len(parts) != 3:
            raise RevisionLookupError("git log", revision_id, "unexpected output")
        author, date, message = parts
        return RevisionInfo(author=author, date=date, message=message)

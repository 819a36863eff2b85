# assetflip/services/build_identity.py
from __future__ import annotations

import hashlib
import json
import logging
from pathlib import Path
from typing import Union

from assetflip.errors import ConfigurationError, UsageOrderError, WriteError
from assetflip.models.build import BuildManifest, short_hash

logger = logging.getLogger(__name__)

__all__ = ["make_raw_identity", "make_build_hash", "short_hash", "build_manifest", "configure", "read_manifest"]


def make_raw_identity(commit_id: str, branch_name: str) -> str:
    return f"{commit_id}|{branch_name}"


def make_build_hash(commit_id: str, branch_name: str) -> str:
    """sha256 hex of "<commit>|<branch>". Same pair, same hash: this is the release pointer value."""
    raw = make_raw_identity(commit_id, branch_name)
    return hashlib.sha256(raw.encode("utf-8")).hexdigest()


def build_manifest(commit_id: str, branch_name: str, base_path: str) -> BuildManifest:
    commit_id = (commit_id or "").strip()
    branch_name = (branch_name or "").strip()
    problems = []
    if not commit_id:
        problems.append("commit id is empty")
    if not branch_name:
        problems.append("branch name is empty")
    if problems:
        raise ConfigurationError(problems)

    build_hash = make_build_hash(commit_id, branch_name)
    return BuildManifest(
        commit_id=commit_id,
        branch_name=branch_name,
        raw_identity=make_raw_identity(commit_id, branch_name),
        build_hash=build_hash,
        storage_prefix=f"{base_path.rstrip('/')}/{build_hash}",
    )


def configure(commit_id: str, branch_name: str, base_path: str, manifest_path: Union[str, Path]) -> BuildManifest:
    """Derive the build identity and persist it as the local build manifest."""
    manifest = build_manifest(commit_id, branch_name, base_path)
    try:
        with open(manifest_path, "w", encoding="utf-8") as f:
            f.write(manifest.to_json())
    except OSError as e:
        raise WriteError(f"Could not write the build manifest to {manifest_path}: {e}") from e

    logger.info(f"Configured build {manifest.build_hash} for {manifest.raw_identity}")
    return manifest


def read_manifest(manifest_path: Union[str, Path]) -> BuildManifest:
    try:
        with open(manifest_path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError as e:
        raise UsageOrderError(
            f"No build manifest found at {manifest_path}. "
            "Run 'assetflip configure <gitCommitSha> <gitBranch>' before deploying."
        ) from e
    except (OSError, ValueError) as e:
        raise UsageOrderError(
            f"The build manifest at {manifest_path} could not be read ({e}). Re-run 'assetflip configure'."
        ) from e

    try:
        return BuildManifest.from_dict(data)
    except (KeyError, TypeError) as e:
        raise UsageOrderError(
            f"The build manifest at {manifest_path} is missing {e}. Re-run 'assetflip configure'."
        ) from e

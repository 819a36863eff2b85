# assetflip/models/build.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict
import json

MANIFEST_SUFFIX = ".manifest"
SHORT_HASH_LENGTH = 7


def short_hash(value: str) -> str:
    """Canonical 7-character display form for build hashes and revision ids."""
    return value[:SHORT_HASH_LENGTH]


# One configured build; written by `configure`, read by `deploy`
@dataclass(frozen=True)
class BuildManifest:
    commit_id: str
    branch_name: str
    raw_identity: str        # "<commit>|<branch>", also stored as the git-info tag
    build_hash: str          # sha256 hex of raw_identity
    storage_prefix: str      # "<basePath>/<buildHash>"

    @property
    def manifest_key(self) -> str:
        """Sibling of the asset prefix, never under it."""
        return self.storage_prefix + MANIFEST_SUFFIX

    def asset_key(self, filename: str) -> str:
        return f"{self.storage_prefix}/{filename}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "commitId": self.commit_id,
            "branchName": self.branch_name,
            "rawIdentity": self.raw_identity,
            "buildHash": self.build_hash,
            "storagePrefix": self.storage_prefix,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BuildManifest":
        return cls(
            commit_id=data["commitId"],
            branch_name=data["branchName"],
            raw_identity=data["rawIdentity"],
            build_hash=data["buildHash"],
            storage_prefix=data["storagePrefix"],
        )

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2)


__all__ = ["BuildManifest", "MANIFEST_SUFFIX", "SHORT_HASH_LENGTH", "short_hash"]

# assetflip/models/artifact.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from assetflip.models.build import short_hash


# One published build, rebuilt from a bucket listing on every query
@dataclass
class ArtifactRecord:
    manifest_path: str            # "<basePath>/<hash>.manifest"
    directory_path: str           # "<basePath>/<hash>"
    last_modified: datetime
    bucket_name: str
    build_hash: str
    revision_id: Optional[str] = None     # from the git-info object tag
    branch_name: Optional[str] = None
    display_label: Optional[str] = None   # set by ArtifactCatalog.describe

    @property
    def build_hash_short(self) -> str:
        return short_hash(self.build_hash)

    @property
    def revision_id_short(self) -> Optional[str]:
        if self.revision_id is None:
            return None
        return short_hash(self.revision_id)

    @property
    def asset_prefix(self) -> str:
        return self.directory_path + "/"

    def __str__(self) -> str:
        return self.display_label or f"{self.bucket_name}/{self.manifest_path}"


__all__ = ["ArtifactRecord"]

# assetflip/services/catalog.py
from __future__ import annotations

import logging
import posixpath
import re
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, List, Optional, Sequence

from assetflip.errors import RevisionLookupError
from assetflip.models.artifact import ArtifactRecord
from assetflip.models.build import MANIFEST_SUFFIX
from assetflip.services.publisher import GIT_INFO_KEY
from assetflip.services.revision import GitRevisionLookup
from assetflip.utils.s3_handler import S3Handler

logger = logging.getLogger(__name__)

_MANIFEST_NAME = re.compile(r"^(?P<hash>[0-9a-fA-F]{7,})" + re.escape(MANIFEST_SUFFIX) + r"$")


def _truncate(text: str, length: int) -> str:
    text = " ".join(text.splitlines())
    if len(text) <= length:
        return text
    return text[: length - 3] + "..."


def parse_manifest_key(key: str) -> Optional[str]:
    """Build hash for "<basePath>/<hash>.manifest" keys, None for anything else."""
    match = _MANIFEST_NAME.match(posixpath.basename(key))
    return match.group("hash") if match else None


def sort_by_recency(records: Sequence[ArtifactRecord]) -> List[ArtifactRecord]:
    """Newest first. Equal timestamps fall back to build hash so the order is reproducible."""
    by_hash = sorted(records, key=lambda r: r.build_hash)
    return sorted(by_hash, key=lambda r: r.last_modified, reverse=True)


def limit(records: Sequence[ArtifactRecord], n: int) -> List[ArtifactRecord]:
    return list(sort_by_recency(records)[: max(n, 0)])


class ArtifactCatalog:
    def __init__(
        self,
        handler_factory: Callable[[str], S3Handler],
        revisions: Optional[GitRevisionLookup] = None,
        package_name: str = "",
        max_workers: int = 8,
    ):
        self._handler_factory = handler_factory
        self._handlers = {}
        self.revisions = revisions or GitRevisionLookup()
        self.package_name = package_name
        self.max_workers = max_workers

    def _handler(self, bucket: str) -> S3Handler:
        if bucket not in self._handlers:
            self._handlers[bucket] = self._handler_factory(bucket)
        return self._handlers[bucket]

    def list_manifests(self, bucket: str, base_path: str) -> List[ArtifactRecord]:
        """
        One record per build. The "/" delimiter keeps the listing at the first
        level, so asset keys under "<hash>/" come back as CommonPrefixes and are
        never walked; only the sibling "<hash>.manifest" objects are kept.
        """
        prefix = base_path.rstrip("/") + "/"
        records = []
        for obj in self._handler(bucket).iter_objects(prefix, delimiter="/"):
            key = obj["Key"]
            build_hash = parse_manifest_key(key)
            if build_hash is None:
                continue
            records.append(
                ArtifactRecord(
                    manifest_path=key,
                    directory_path=key[: -len(MANIFEST_SUFFIX)],
                    last_modified=obj["LastModified"],
                    bucket_name=bucket,
                    build_hash=build_hash,
                )
            )
        logger.info(f"Found {len(records)} deployed build(s) in s3://{bucket}/{prefix}")
        return records

    def recent(self, bucket: str, base_path: str, n: int) -> List[ArtifactRecord]:
        return limit(self.list_manifests(bucket, base_path), n)

    def attach_revision(self, record: ArtifactRecord) -> ArtifactRecord:
        """Reads the git-info tag ("<revision>|<branch>") from the manifest object."""
        metadata = self._handler(record.bucket_name).head_metadata(record.manifest_path) or {}
        git_info = metadata.get(GIT_INFO_KEY, "")
        if git_info:
            revision_id, _, branch_name = git_info.partition("|")
            record.revision_id = revision_id or None
            record.branch_name = branch_name or None
        else:
            logger.warning(f"{record.manifest_path} carries no {GIT_INFO_KEY} metadata")
        return record

    def describe(self, record: ArtifactRecord) -> ArtifactRecord:
        """
        Composes the one-line label shown in prompts. A revision git cannot
        resolve (rewritten history, shallow clone, untagged build) gives a
        reduced label built from the storage timestamp instead of an error.
        """
        package = f"{self.package_name}[{record.build_hash_short}]"
        if record.revision_id:
            try:
                info = self.revisions.lookup(record.revision_id)
            except RevisionLookupError as e:
                logger.warning(f"Falling back to storage metadata for {record.build_hash_short}: {e}")
            else:
                branch = _truncate(record.branch_name or "", 15)
                message = _truncate(info.message, 30)
                record.display_label = (
                    f"{info.date:<16} | {package} | {info.author:<16} | "
                    f"git[{record.revision_id_short}] | [{branch}] {message}"
                )
                return record

        record.display_label = f"{record.last_modified:%Y-%m-%d %H:%M} | {package} | unknown revision"
        return record

    def enrich(self, record: ArtifactRecord, describe: bool = True) -> ArtifactRecord:
        self.attach_revision(record)
        if describe:
            self.describe(record)
        return record

    def enrich_all(self, records: Sequence[ArtifactRecord], describe: bool = True) -> List[ArtifactRecord]:
        """Fans the per-record lookups out over threads; the result keeps the input order."""
        if not records:
            return []
        workers = max(1, min(self.max_workers, len(records)))
        with ThreadPoolExecutor(max_workers=workers) as pool:
            return list(pool.map(lambda r: self.enrich(r, describe=describe), records))

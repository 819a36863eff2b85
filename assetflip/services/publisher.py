# assetflip/services/publisher.py
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Callable, Iterable, List, Optional

from assetflip.errors import StorageError
from assetflip.models.build import BuildManifest
from assetflip.utils.content_types import content_type_for
from assetflip.utils.s3_handler import S3Handler

logger = logging.getLogger(__name__)

GIT_INFO_KEY = "git-info"
PUBLIC_READ = "public-read"


@dataclass(frozen=True)
class UploadResult:
    local_path: str
    bucket: str
    key: str
    content_type: str
    dry_run: bool = False
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class PublishReport:
    manifest: BuildManifest
    dry_run: bool
    results: List[UploadResult] = field(default_factory=list)

    @property
    def successes(self) -> List[UploadResult]:
        return [r for r in self.results if r.ok]

    @property
    def failures(self) -> List[UploadResult]:
        return [r for r in self.results if not r.ok]


def remote_key(manifest: BuildManifest, local_path: str, manifest_path: str) -> str:
    """
    The build manifest becomes "<prefix>.manifest"; everything else lands under
    "<prefix>/" by basename alone, so files sharing a name collide on one key.
    """
    if os.path.abspath(local_path) == os.path.abspath(manifest_path):
        return manifest.manifest_key
    return manifest.asset_key(os.path.basename(local_path))


class ArtifactPublisher:
    """
    Uploads a build's files to every configured bucket.

    A failed (file, bucket) upload is recorded and the remaining pairs are
    still attempted; callers inspect report.failures. Nothing is rolled back.
    """

    def __init__(self, handler_factory: Callable[[str], S3Handler]):
        self._handler_factory = handler_factory

    def publish(
        self,
        buckets: Iterable[str],
        manifest: BuildManifest,
        local_files: Iterable[str],
        manifest_path: str,
        dry_run: bool = False,
    ) -> PublishReport:
        buckets = list(buckets)
        report = PublishReport(manifest=manifest, dry_run=dry_run)
        handlers = {} if dry_run else {b: self._handler_factory(b) for b in buckets}
        metadata = {GIT_INFO_KEY: manifest.raw_identity}
        sources = {}

        for local_path in local_files:
            key = remote_key(manifest, local_path, manifest_path)
            if key in sources:
                logger.warning(f"{local_path} and {sources[key]} both map to {key}; the later upload wins")
                print(f"Warning: {local_path} overwrites {sources[key]} at {key}")
            sources[key] = local_path
            content_type = content_type_for(key)
            for bucket in buckets:
                if dry_run:
                    print(f"Only pretending to deploy {local_path} to S3 bucket {bucket} {key}")
                    report.results.append(UploadResult(local_path, bucket, key, content_type, dry_run=True))
                    continue
                try:
                    handlers[bucket].upload_file(
                        local_path, key, content_type=content_type, metadata=metadata, acl=PUBLIC_READ
                    )
                except StorageError as e:
                    logger.error(f"Upload of {local_path} to {bucket} failed, continuing with the rest: {e}")
                    print(f"Failed to deploy {local_path} to S3 bucket {bucket} {key}: {e}")
                    report.results.append(UploadResult(local_path, bucket, key, content_type, error=str(e)))
                    continue
                print(f"Successfully deployed {local_path} to S3 bucket {bucket} {key}")
                report.results.append(UploadResult(local_path, bucket, key, content_type))

        return report

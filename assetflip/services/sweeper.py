# assetflip/services/sweeper.py
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Callable, Iterable, List, Optional, Sequence

from assetflip.models.artifact import ArtifactRecord
from assetflip.models.config import ToolConfig
from assetflip.models.environment import EnvironmentRelease
from assetflip.services.catalog import ArtifactCatalog, sort_by_recency
from assetflip.services.parameter_store import ParameterStore
from assetflip.utils.prompts import Prompter
from assetflip.utils.s3_handler import S3Handler

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def find_candidates(
    records: Iterable[ArtifactRecord],
    releases: Iterable[EnvironmentRelease],
    cutoff: datetime,
) -> List[ArtifactRecord]:
    """Builds older than cutoff that no environment currently points at."""
    live = {r.released_hash for r in releases if r.released_hash}
    return [r for r in records if r.last_modified < cutoff and r.build_hash not in live]


@dataclass
class SweepReport:
    server_class: str
    bucket: str
    scanned: bool = False
    total: int = 0
    candidates: List[ArtifactRecord] = field(default_factory=list)
    confirmed: bool = False
    deleted: List[str] = field(default_factory=list)    # build hashes
    objects_deleted: int = 0


class RetentionSweeper:
    def __init__(
        self,
        config: ToolConfig,
        parameter_store: ParameterStore,
        catalog: ArtifactCatalog,
        handler_factory: Callable[[str], S3Handler],
        prompter: Prompter,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.config = config
        self.parameter_store = parameter_store
        self.catalog = catalog
        self.handler_factory = handler_factory
        self.prompter = prompter
        self.clock = clock

    def delete_artifact(self, handler: S3Handler, record: ArtifactRecord) -> int:
        """Assets under "<hash>/" first, then the manifest, so a half-finished delete still lists."""
        count = handler.delete_prefix(record.asset_prefix)
        count += handler.delete_keys([record.manifest_path])
        return count

    def sweep(self, server_class: str, retention: Optional[timedelta] = None) -> SweepReport:
        bucket = self.config.bucket_for(server_class)
        base_path = self.config.base_path
        retention = retention if retention is not None else self.config.retention
        report = SweepReport(server_class=server_class, bucket=bucket, scanned=True)

        print(f"Cleaning up {self.config.package_name} assets in the S3 bucket {bucket} with the path: {base_path}")

        # Pointers are read fresh for every sweep, so a release that landed
        # moments ago still protects its build.
        releases = self.parameter_store.fetch_releases(self.config.environments)
        records = sort_by_recency(self.catalog.list_manifests(bucket, base_path))
        report.total = len(records)
        print(f"There are currently a total of {report.total} deployed artifacts in {server_class}.")

        cutoff = self.clock() - retention
        candidates = find_candidates(records, releases, cutoff)
        report.candidates = self.catalog.enrich_all(candidates)
        print(
            f"We are going to delete {len(report.candidates)} {self.config.package_name} "
            f"artifact(s) in {server_class}"
        )
        if not report.candidates:
            print("Nothing to delete.")
            return report

        for record in report.candidates:
            print(record.display_label)

        report.confirmed = self.prompter.confirm(
            f"Really delete these assets in the S3 bucket {bucket} with the path: {base_path}?",
            default=False,
        )
        if not report.confirmed:
            print("Very well, not deleting anything then.")
            return report

        handler = self.handler_factory(bucket)
        for record in report.candidates:
            print("Deleting", record.build_hash)
            report.objects_deleted += self.delete_artifact(handler, record)
            report.deleted.append(record.build_hash)
        print("Deleted.")
        logger.info(f"Removed {len(report.deleted)} build(s), {report.objects_deleted} object(s) from {bucket}")
        return report

    def run(self, retention: Optional[timedelta] = None, server_classes: Optional[Sequence[str]] = None) -> List[SweepReport]:
        """Asks once per server class, then sweeps the accepted ones in config order."""
        server_classes = list(server_classes or self.config.server_classes())
        accepted = []
        for server_class in server_classes:
            bucket = self.config.bucket_for(server_class)
            if self.prompter.confirm(
                f"Do you want to clean up the {self.config.package_name} assets in the S3 bucket "
                f"{bucket} with the path: {self.config.base_path}?",
                default=False,
            ):
                accepted.append(server_class)

        reports = []
        for server_class in server_classes:
            if server_class in accepted:
                reports.append(self.sweep(server_class, retention))
            else:
                reports.append(SweepReport(server_class=server_class, bucket=self.config.bucket_for(server_class)))
        return reports

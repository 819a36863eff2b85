# assetflip/services/release_workflow.py
from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Optional

from assetflip.errors import EmptyCatalog
from assetflip.models.artifact import ArtifactRecord
from assetflip.models.config import ToolConfig
from assetflip.models.environment import EnvironmentRelease
from assetflip.services.activator import ReleaseActivator
from assetflip.services.catalog import ArtifactCatalog
from assetflip.services.parameter_store import ParameterStore
from assetflip.services.selector import ReleaseSelector, validate_identifier

logger = logging.getLogger(__name__)


class ReleaseStatus(enum.Enum):
    RELEASED = "released"
    CANCELLED = "cancelled"
    NOTHING_DEPLOYED = "nothing-deployed"


@dataclass(frozen=True)
class ReleaseOutcome:
    status: ReleaseStatus
    release: Optional[EnvironmentRelease] = None
    artifact: Optional[ArtifactRecord] = None


class ReleaseWorkflow:
    """resolve environment -> resolve artifact -> confirm -> activate"""

    def __init__(
        self,
        config: ToolConfig,
        parameter_store: ParameterStore,
        catalog: ArtifactCatalog,
        selector: ReleaseSelector,
        activator: ReleaseActivator,
        operator: str,
    ):
        self.config = config
        self.parameter_store = parameter_store
        self.catalog = catalog
        self.selector = selector
        self.activator = activator
        self.operator = operator

    def run(self, environment_key: Optional[str] = None, commit: Optional[str] = None) -> ReleaseOutcome:
        # Reject a short sha before anything touches AWS or the terminal.
        if commit:
            validate_identifier(commit)

        releases = self.parameter_store.fetch_releases(self.config.environments)
        release = self.selector.resolve_environment(releases, environment_key)
        env = release.environment

        bucket = self.config.bucket_for(env.server_class)
        records = self.catalog.recent(bucket, self.config.base_path, self.config.display_limit)
        if not records:
            print(f"\n> {EmptyCatalog(bucket, self.config.base_path)}\n")
            return ReleaseOutcome(ReleaseStatus.NOTHING_DEPLOYED, release=release)

        # Matching on a sha only needs the git-info tag; the git lookup is
        # deferred to the single record that gets released.
        records = self.catalog.enrich_all(records, describe=not commit)
        artifact = self.selector.resolve_artifact(records, commit)
        if artifact.display_label is None:
            self.catalog.describe(artifact)

        if not self.selector.confirm(release, artifact):
            print("Cancelling release...")
            return ReleaseOutcome(ReleaseStatus.CANCELLED, release=release, artifact=artifact)

        self.activator.activate(env, artifact, self.operator)
        logger.info(f"{self.operator} released {artifact.build_hash} to {env.key}")
        return ReleaseOutcome(ReleaseStatus.RELEASED, release=release, artifact=artifact)

# assetflip/services/selector.py
from __future__ import annotations

from typing import Optional, Sequence

from assetflip.errors import EmptyCatalog, IdentifierTooShort, NoMatchingArtifact, UnknownEnvironment
from assetflip.models.artifact import ArtifactRecord
from assetflip.models.build import SHORT_HASH_LENGTH
from assetflip.models.config import DEFAULT_PROTECTED_BRANCH
from assetflip.models.environment import EnvironmentRelease
from assetflip.utils.prompts import Prompter

MIN_IDENTIFIER_LENGTH = SHORT_HASH_LENGTH


def validate_identifier(candidate: str) -> str:
    if len(candidate) < MIN_IDENTIFIER_LENGTH:
        raise IdentifierTooShort(candidate, MIN_IDENTIFIER_LENGTH)
    return candidate


class ReleaseSelector:
    """Picks the environment and the build to release, by key/partial sha or by asking."""

    def __init__(self, prompter: Prompter, package_name: str, protected_branch_name: str = DEFAULT_PROTECTED_BRANCH):
        self.prompter = prompter
        self.package_name = package_name
        self.protected_branch_name = protected_branch_name

    def resolve_environment(self, releases: Sequence[EnvironmentRelease], key: Optional[str] = None) -> EnvironmentRelease:
        if key:
            for release in releases:
                if release.key == key:
                    return release
            raise UnknownEnvironment(key, [r.key for r in releases])

        return self.prompter.choose(
            "Which environment will receive this release?",
            [(f"{r.environment.label:<12} {r.released_hash_short}", r) for r in releases],
        )

    def resolve_artifact(self, records: Sequence[ArtifactRecord], candidate: Optional[str] = None) -> ArtifactRecord:
        """records must already be in display (recency) order; the first prefix match wins."""
        if not records:
            raise EmptyCatalog()

        if candidate:
            validate_identifier(candidate)
            for record in records:
                if record.revision_id and record.revision_id.startswith(candidate):
                    return record
            raise NoMatchingArtifact(candidate)

        return self.prompter.choose(
            "Which deployed version would you like to release?",
            [(record.display_label or str(record), record) for record in records],
        )

    def needs_branch_warning(self, release: EnvironmentRelease, record: ArtifactRecord) -> bool:
        return release.environment.protected_branch and record.branch_name != self.protected_branch_name

    def confirm(self, release: EnvironmentRelease, record: ArtifactRecord) -> bool:
        """Blank answers mean no at both gates."""
        approved = self.prompter.confirm(
            f"Do you want to release {self.package_name} git[{record.revision_id_short or 'unknown'}] "
            f"hash[{record.build_hash_short}] to {release.key}?",
            default=False,
        )
        if not approved:
            return False

        if self.needs_branch_warning(release, record):
            return self.prompter.confirm(
                f"Warning: You are attempting to release a non-{self.protected_branch_name} "
                f"branch[{record.branch_name or 'unknown'}] to a {self.protected_branch_name}-only "
                f"environment[{release.environment.server_class}]. Do you wish to proceed?",
                default=False,
            )
        return True

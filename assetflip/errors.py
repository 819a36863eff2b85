# assetflip/errors.py
from __future__ import annotations

from typing import Iterable, List, Optional


class AssetFlipError(RuntimeError):
    """Base class for failures reported to the operator with exit code 1."""


class ConfigurationError(AssetFlipError):
    """Raised when the configuration document is missing or malformed."""

    def __init__(self, violations: Iterable[str]):
        self.violations: List[str] = list(violations)
        super().__init__("Invalid configuration:\n  - " + "\n  - ".join(self.violations))


class WriteError(AssetFlipError):
    """The local build manifest could not be written."""


class UsageOrderError(AssetFlipError):
    """A command ran before the step that produces its input (e.g. deploy before configure)."""


# ---- release selection ----

class SelectionError(AssetFlipError):
    pass


class UnknownEnvironment(SelectionError):
    def __init__(self, key: str, valid_keys: Iterable[str]):
        self.key = key
        self.valid_keys = list(valid_keys)
        super().__init__(
            f'"{key}" does not appear to be a valid environment. '
            f"The choices are: {', '.join(self.valid_keys)}"
        )


class IdentifierTooShort(SelectionError):
    def __init__(self, candidate: str, minimum: int):
        self.candidate = candidate
        self.minimum = minimum
        super().__init__(
            f'The checksum "{candidate}" is not long enough, '
            f"it should be at least {minimum} characters."
        )


class NoMatchingArtifact(SelectionError):
    def __init__(self, candidate: str):
        self.candidate = candidate
        super().__init__(f'"{candidate}" does not appear to be a valid checksum.')


# ---- external services ----

class ExternalServiceError(AssetFlipError):
    """A call to S3, SSM, Lambda or git failed."""

    def __init__(self, operation: str, target: str, detail: Optional[str] = None):
        self.operation = operation
        self.target = target
        message = f"{operation} failed for {target}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class StorageError(ExternalServiceError):
    pass


class ParameterStoreError(ExternalServiceError):
    pass


class RevisionLookupError(ExternalServiceError):
    pass


class ActivationError(ExternalServiceError):
    pass


class NotificationError(AssetFlipError):
    """Never fatal; the activator logs it and carries on."""


class EmptyCatalog(Exception):
    """Nothing has been deployed yet. Not an error: the release flow stops with guidance."""

    def __init__(self, bucket: str = "", base_path: str = ""):
        self.bucket = bucket
        self.base_path = base_path
        super().__init__(
            "There are no currently deployed versions. Run "
            "'assetflip configure <gitCommitSha> <gitBranch>' and 'assetflip deploy' and try again."
        )


class PromptUnavailable(AssetFlipError):
    """A question needed an answer but stdin is closed (no terminal attached)."""

    def __init__(self, message: str):
        super().__init__(
            f"Cannot ask \"{message}\": no interactive input is available. "
            "Pass --environment and --commit to run without prompts."
        )

# assetflip/services/config_loader.py
"""
Reads the assetflip configuration document and turns it into a ToolConfig.

The document is either a package.json with an "assetflip" section (the package
name comes from "name") or a standalone JSON file holding the section itself
with a "packageName" key. Every problem is collected in one pass and raised
together, so the operator fixes the file once.
"""
from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Tuple

from assetflip.errors import ConfigurationError
from assetflip.models.config import (
    DEFAULT_DISPLAY_LIMIT,
    DEFAULT_MANIFEST_PATH,
    DEFAULT_MAX_WORKERS,
    DEFAULT_PROTECTED_BRANCH,
    DEFAULT_RETENTION_DAYS,
    FileGlob,
    NotificationConfig,
    ToolConfig,
)
from assetflip.models.environment import Environment

logger = logging.getLogger(__name__)

SECTION_KEY = "assetflip"
NOTIFICATION_KEYS = ("webhookUrl", "username", "iconEmoji", "repoUrl")


def _non_empty_str(value: Any) -> bool:
    return isinstance(value, str) and value.strip() != ""


def _positive_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def _split_document(document: Dict[str, Any]) -> Tuple[Dict[str, Any], Any]:
    if SECTION_KEY in document:
        return document[SECTION_KEY], document.get("name")
    return document, document.get("packageName")


def _check_globs(section: Dict[str, Any], violations: List[str]) -> None:
    globs = section.get("fileGlobs", [])
    paths = section.get("localFilePaths", [])

    if not isinstance(globs, list):
        violations.append("The config value fileGlobs is not an array.")
        globs = []
    if not isinstance(paths, list):
        violations.append("The config value localFilePaths is not an array.")
        paths = []
    if not globs and not paths:
        violations.append(
            "The config values fileGlobs and localFilePaths are both empty. "
            "At least one file must be configured between the two."
        )

    for g in globs:
        if not isinstance(g, dict) or not _non_empty_str(g.get("pattern")):
            violations.append("At least one glob pattern in fileGlobs is missing, empty or not a string.")
            continue
        ignore = g.get("ignore", [])
        if not isinstance(ignore, list):
            violations.append(f"The ignore value of glob {g['pattern']!r} is not an array.")
        elif not all(_non_empty_str(p) for p in ignore):
            violations.append(f"At least one ignore pattern of glob {g['pattern']!r} is empty or not a string.")

    if not all(_non_empty_str(p) for p in paths):
        violations.append("At least one localFilePaths value is empty or not a string.")


def _check_environments(section: Dict[str, Any], bucket_names: Dict[str, Any], violations: List[str]) -> None:
    environments = section.get("environments")
    if not isinstance(environments, list) or not environments:
        violations.append("The config value environments is not set.")
        return

    seen_keys = set()
    for idx, env in enumerate(environments):
        where = f"environments[{idx}]"
        if not isinstance(env, dict):
            violations.append(f"{where} is not an object.")
            continue
        key = env.get("key")
        if not _non_empty_str(key):
            violations.append(f"{where}.key is not set.")
        elif key in seen_keys:
            violations.append(f"The environment key {key!r} is used more than once.")
        else:
            seen_keys.add(key)
        if not _non_empty_str(env.get("parameterName")):
            violations.append(f"{where}.parameterName is not set.")
        server_class = env.get("serverClass")
        if not _non_empty_str(server_class):
            violations.append(f"{where}.serverClass is not set.")
        elif isinstance(bucket_names, dict) and server_class not in bucket_names:
            violations.append(f"The server class {server_class!r} of {where} has no entry in bucketNames.")
        if "protectedBranch" in env and not isinstance(env["protectedBranch"], bool):
            violations.append(f"{where}.protectedBranch must be true or false.")
        if "notificationChannel" in env and not _non_empty_str(env["notificationChannel"]):
            violations.append(f"{where}.notificationChannel is empty.")


def _check_notification(section: Dict[str, Any], violations: List[str]) -> None:
    # Omitting the whole group disables notifications; a partial group is a mistake.
    if "notification" not in section:
        return
    group = section["notification"]
    if not isinstance(group, dict):
        violations.append("The config value notification is not an object.")
        return
    for name in NOTIFICATION_KEYS:
        if not _non_empty_str(group.get(name)):
            violations.append(f"The config value notification.{name} is not set.")


def collect_violations(document: Any) -> List[str]:
    """Single validation pass; an empty list means the document is usable."""
    if not isinstance(document, dict):
        return ["The configuration document is not a JSON object."]

    section, package_name = _split_document(document)
    if not isinstance(section, dict):
        return [f"The {SECTION_KEY} section is not an object."]

    violations: List[str] = []
    if not _non_empty_str(package_name):
        violations.append("The package name is not set.")

    bucket_names = section.get("bucketNames")
    if not isinstance(bucket_names, dict) or not bucket_names:
        violations.append("The config value bucketNames is not set.")
    elif not all(_non_empty_str(b) for b in bucket_names.values()):
        violations.append("At least one bucketNames value is empty or not a string.")

    for name in ("basePath", "bucketRegion"):
        if not _non_empty_str(section.get(name)):
            violations.append(f"The config value {name} is not set.")

    _check_globs(section, violations)
    _check_environments(section, bucket_names if isinstance(bucket_names, dict) else {}, violations)
    _check_notification(section, violations)

    functions = section.get("remoteActivationFunctions", {})
    if not isinstance(functions, dict) or not all(_non_empty_str(v) for v in functions.values()):
        violations.append("The config value remoteActivationFunctions must map server classes to function names.")

    for name in ("retentionDays", "displayLimit", "maxWorkers"):
        if name in section and not _positive_int(section[name]):
            violations.append(f"The config value {name} must be a positive integer.")
    for name in ("manifestPath", "protectedBranchName"):
        if name in section and not _non_empty_str(section[name]):
            violations.append(f"The config value {name} is empty.")

    return violations


def parse_config(document: Dict[str, Any]) -> ToolConfig:
    violations = collect_violations(document)
    if violations:
        raise ConfigurationError(violations)

    section, package_name = _split_document(document)
    environments = tuple(
        Environment(
            key=env["key"],
            label=env.get("label") or env["key"],
            parameter_name=env["parameterName"],
            server_class=env["serverClass"],
            protected_branch=env.get("protectedBranch", False),
            notification_channel=env.get("notificationChannel"),
        )
        for env in section["environments"]
    )
    notification = None
    if "notification" in section:
        group = section["notification"]
        notification = NotificationConfig(
            webhook_url=group["webhookUrl"],
            username=group["username"],
            icon_emoji=group["iconEmoji"],
            repo_url=group["repoUrl"].rstrip("/"),
        )

    return ToolConfig(
        package_name=package_name,
        bucket_names=dict(section["bucketNames"]),
        bucket_region=section["bucketRegion"],
        base_path=section["basePath"].rstrip("/"),
        environments=environments,
        file_globs=tuple(FileGlob(g["pattern"], tuple(g.get("ignore", []))) for g in section.get("fileGlobs", [])),
        local_file_paths=tuple(section.get("localFilePaths", [])),
        notification=notification,
        remote_activation_functions=dict(section.get("remoteActivationFunctions", {})),
        manifest_path=section.get("manifestPath", DEFAULT_MANIFEST_PATH),
        retention_days=section.get("retentionDays", DEFAULT_RETENTION_DAYS),
        display_limit=section.get("displayLimit", DEFAULT_DISPLAY_LIMIT),
        protected_branch_name=section.get("protectedBranchName", DEFAULT_PROTECTED_BRANCH),
        max_workers=section.get("maxWorkers", DEFAULT_MAX_WORKERS),
    )


def load_config(path: str) -> ToolConfig:
    try:
        with open(path, "r", encoding="utf-8") as f:
            document = json.load(f)
    except FileNotFoundError as e:
        raise ConfigurationError([f"The configuration file {path} does not exist."]) from e
    except (OSError, ValueError) as e:
        raise ConfigurationError([f"The configuration file {path} could not be read: {e}"]) from e

    config = parse_config(document)
    logger.info(f"Loaded configuration for {config.package_name} from {path}")
    return config

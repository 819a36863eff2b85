# assetflip/services/activator.py
from __future__ import annotations

import json
import logging
from typing import Dict, Optional

from botocore.exceptions import BotoCoreError, ClientError

from assetflip.errors import ActivationError, NotificationError, ParameterStoreError
from assetflip.models.artifact import ArtifactRecord
from assetflip.models.environment import Environment
from assetflip.services.notifier import SlackNotifier
from assetflip.services.parameter_store import ParameterStore

logger = logging.getLogger(__name__)


class ReleaseActivator:
    """
    Points an environment at a build.

    Server classes listed in remote_functions delegate the write to a Lambda
    function (for callers whose credentials cannot write the parameter);
    the rest write the SSM parameter directly. Either way the write is an
    unconditional overwrite: the last release to land is the live one.
    """

    def __init__(
        self,
        parameter_store: ParameterStore,
        package_name: str,
        remote_functions: Optional[Dict[str, str]] = None,
        lambda_client=None,
        notifier: Optional[SlackNotifier] = None,
    ):
        self.parameter_store = parameter_store
        self.package_name = package_name
        self.remote_functions = remote_functions or {}
        self.lambda_client = lambda_client
        self.notifier = notifier

    def _invoke_remote(self, function_name: str, environment: Environment, build_hash: str) -> None:
        if self.lambda_client is None:
            raise ActivationError("invoke", function_name, "no Lambda client configured")
        payload = {"parameterName": environment.parameter_name, "parameterValue": build_hash}
        try:
            response = self.lambda_client.invoke(
                FunctionName=function_name,
                InvocationType="RequestResponse",
                Payload=json.dumps(payload),
            )
        except (ClientError, BotoCoreError) as e:
            raise ActivationError("invoke", function_name, str(e)) from e

        status = response.get("StatusCode")
        if status != 200:
            raise ActivationError(
                "invoke", function_name,
                f"unsuccessful lambda invocation; unable to release asset version; got status {status}",
            )
        if response.get("FunctionError"):
            body = response.get("Payload")
            body = body.read().decode("utf-8", "replace") if hasattr(body, "read") else str(body)
            raise ActivationError(
                "invoke", function_name,
                f"one or more parameter store values could not be updated: {body}",
            )

    def write_pointer(self, environment: Environment, build_hash: str) -> None:
        function_name = self.remote_functions.get(environment.server_class)
        if function_name:
            logger.info(f"Delegating release of {environment.key} to {function_name}")
            self._invoke_remote(function_name, environment, build_hash)
            return
        try:
            self.parameter_store.put_pointer(environment.parameter_name, build_hash)
        except ParameterStoreError as e:
            raise ActivationError("put-parameter", environment.parameter_name, str(e)) from e

    def activate(self, environment: Environment, record: ArtifactRecord, operator: str) -> None:
        self.write_pointer(environment, record.build_hash)
        self.announce(environment, record, operator)

    def announce(self, environment: Environment, record: ArtifactRecord, operator: str) -> None:
        revision = record.revision_id or record.build_hash
        print(
            f"\n> {operator} successfully released the version "
            f"{self.package_name}[{revision}] to {environment.key}\n"
        )
        if self.notifier is None or not environment.notification_channel:
            return

        text = "\n".join([
            f"*{operator}* successfully released a new {self.package_name} version to *{environment.key}*",
            f"_{record.display_label or record.build_hash_short}_",
            f"<{self.notifier.commit_url(revision)}|View commit on GitHub>",
        ])
        try:
            self.notifier.send(environment.notification_channel, text)
        except NotificationError as e:
            logger.warning(f"Release succeeded but the notification was not delivered: {e}")

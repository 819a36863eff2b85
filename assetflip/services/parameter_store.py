# assetflip/services/parameter_store.py
from __future__ import annotations

import logging
from typing import Dict, Iterable, List

from botocore.exceptions import BotoCoreError, ClientError

from assetflip.errors import ParameterStoreError
from assetflip.models.environment import Environment, EnvironmentRelease

logger = logging.getLogger(__name__)

# GetParameters accepts at most 10 names per call
GET_PARAMETERS_LIMIT = 10


class ParameterStore:
    """
    Release pointers in SSM Parameter Store. Each pointer is a plain
    last-write-wins String parameter: there is no versioning or
    compare-and-swap, so two concurrent releases to one environment race
    and the later write is what consumers see.
    """

    def __init__(self, ssm_client):
        self.ssm = ssm_client

    def fetch_releases(self, environments: Iterable[Environment]) -> List[EnvironmentRelease]:
        """What each environment currently points at. Always hits SSM; nothing is cached."""
        environments = list(environments)
        names = list(dict.fromkeys(env.parameter_name for env in environments))
        found: Dict[str, dict] = {}

        for start in range(0, len(names), GET_PARAMETERS_LIMIT):
            batch = names[start:start + GET_PARAMETERS_LIMIT]
            try:
                response = self.ssm.get_parameters(Names=batch)
            except (ClientError, BotoCoreError) as e:
                raise ParameterStoreError("get-parameters", ", ".join(batch), str(e)) from e
            for param in response.get("Parameters", []):
                found[param["Name"]] = param
            for missing in response.get("InvalidParameters", []):
                logger.info(f"Parameter {missing} does not exist yet; treating it as unreleased")

        releases = []
        for env in environments:
            param = found.get(env.parameter_name)
            if param is None:
                releases.append(EnvironmentRelease(environment=env))
            else:
                releases.append(
                    EnvironmentRelease(
                        environment=env,
                        released_hash=param.get("Value"),
                        release_timestamp=param.get("LastModifiedDate"),
                    )
                )
        return releases

    def put_pointer(self, parameter_name: str, value: str) -> None:
        """Unconditional overwrite."""
        try:
            self.ssm.put_parameter(Name=parameter_name, Value=value, Type="String", Overwrite=True)
        except (ClientError, BotoCoreError) as e:
            raise ParameterStoreError("put-parameter", parameter_name, str(e)) from e
        logger.info(f"Set {parameter_name} = {value}")

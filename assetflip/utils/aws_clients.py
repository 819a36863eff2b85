# assetflip/utils/aws_clients.py
import os
from typing import Optional

import boto3


def _region(default: Optional[str] = None) -> str:
    return default or os.environ.get("AWS_REGION") or os.environ.get("AWS_DEFAULT_REGION") or "us-east-1"


class AwsClients:
    """Lazily built boto3 clients sharing one session (profile + region from the config)."""

    def __init__(self, region: Optional[str] = None, profile: Optional[str] = None, session_factory=boto3.Session):
        session_kwargs = {"region_name": _region(region)}
        if profile:
            session_kwargs["profile_name"] = profile
        self._session = session_factory(**session_kwargs)
        self._s3 = None
        self._ssm = None
        self._lambda = None

    def s3(self):
        if self._s3 is None:
            kwargs = {}
            # LocalStack
            ep = os.environ.get("AWS_ENDPOINT_URL_S3")
            if ep:
                kwargs["endpoint_url"] = ep
            self._s3 = self._session.client("s3", **kwargs)
        return self._s3

    def ssm(self):
        if self._ssm is None:
            self._ssm = self._session.client("ssm")
        return self._ssm

    def lambda_(self):
        if self._lambda is None:
            self._lambda = self._session.client("lambda")
        return self._lambda

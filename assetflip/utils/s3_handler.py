import logging
from typing import Any, Dict, Iterator, List, Optional

import boto3
from boto3.exceptions import S3UploadFailedError
from botocore.exceptions import BotoCoreError, ClientError

from assetflip.errors import StorageError

logger = logging.getLogger(__name__)

# delete_objects accepts at most this many keys per request
DELETE_BATCH_SIZE = 1000


class S3Handler:
    def __init__(self, bucket_name, s3_client=None, region_name="us-east-1"):
        self.bucket_name = bucket_name
        self.s3 = s3_client or boto3.client("s3", region_name=region_name)
        logger.debug(f"S3Handler initialized for bucket: {self.bucket_name}")

    def _target(self, key: str) -> str:
        return f"s3://{self.bucket_name}/{key}"

    def upload_file(
        self,
        local_path: str,
        key: str,
        content_type: Optional[str] = None,
        metadata: Optional[Dict[str, str]] = None,
        acl: Optional[str] = None,
    ) -> bool:
        """
        Uploads a local file to S3 with optional content-type, object metadata and canned ACL.
        """
        extra = {}
        if content_type:
            extra["ContentType"] = content_type
        if metadata:
            extra["Metadata"] = metadata
        if acl:
            extra["ACL"] = acl

        try:
            self.s3.upload_file(
                Filename=str(local_path),
                Bucket=self.bucket_name,
                Key=key,
                ExtraArgs=extra,
            )
            logger.info("Successfully uploaded file to %s/%s", self.bucket_name, key)
            return True
        except (ClientError, BotoCoreError, S3UploadFailedError) as e:
            logger.error("Failed to upload file %s to %s/%s: %s", local_path, self.bucket_name, key, e)
            raise StorageError("upload", self._target(key), str(e)) from e
        except OSError as e:
            # boto3 opens the file itself; a vanished or unreadable file surfaces here
            raise StorageError("upload", self._target(key), f"cannot read {local_path}: {e}") from e

    def list_page(self, prefix: str, delimiter: Optional[str] = None, continuation_token: Optional[str] = None) -> Dict[str, Any]:
        kwargs = {"Bucket": self.bucket_name, "Prefix": prefix}
        if delimiter:
            kwargs["Delimiter"] = delimiter
        if continuation_token:
            kwargs["ContinuationToken"] = continuation_token
        try:
            return self.s3.list_objects_v2(**kwargs)
        except (ClientError, BotoCoreError) as e:
            raise StorageError("list", self._target(prefix), str(e)) from e

    def iter_objects(self, prefix: str, delimiter: Optional[str] = None) -> Iterator[Dict[str, Any]]:
        """Yields every object under prefix, following continuation tokens until the listing is exhausted."""
        cont = None
        pages = 0
        while True:
            resp = self.list_page(prefix, delimiter=delimiter, continuation_token=cont)
            pages += 1
            for obj in resp.get("Contents", []) or []:
                yield obj
            if resp.get("IsTruncated"):
                cont = resp.get("NextContinuationToken")
            else:
                break
        logger.debug(f"Listed s3://{self.bucket_name}/{prefix} in {pages} page(s)")

    def head_metadata(self, key: str) -> Optional[Dict[str, str]]:
        """Returns the user metadata of an object, or None if the object does not exist."""
        try:
            response = self.s3.head_object(Bucket=self.bucket_name, Key=key)
        except ClientError as e:
            if e.response["Error"]["Code"] in ("404", "NoSuchKey", "NotFound"):
                logger.warning(f"Object not found: {self._target(key)}")
                return None
            raise StorageError("head", self._target(key), str(e)) from e
        except BotoCoreError as e:
            raise StorageError("head", self._target(key), str(e)) from e
        return response.get("Metadata", {}) or {}

    def delete_keys(self, keys: List[str]) -> int:
        deleted = 0
        for start in range(0, len(keys), DELETE_BATCH_SIZE):
            batch = keys[start:start + DELETE_BATCH_SIZE]
            try:
                resp = self.s3.delete_objects(
                    Bucket=self.bucket_name,
                    Delete={"Objects": [{"Key": k} for k in batch], "Quiet": True},
                )
            except (ClientError, BotoCoreError) as e:
                raise StorageError("delete", self._target(batch[0]), str(e)) from e
            errors = resp.get("Errors") or []
            if errors:
                first = errors[0]
                raise StorageError(
                    "delete",
                    self._target(first.get("Key", batch[0])),
                    f"{len(errors)} object(s) not deleted: {first.get('Message', first.get('Code'))}",
                )
            deleted += len(batch)
        return deleted

    def delete_prefix(self, prefix: str) -> int:
        """Deletes every object under prefix. Deleting an empty prefix is a no-op."""
        keys = [obj["Key"] for obj in self.iter_objects(prefix)]
        if not keys:
            return 0
        count = self.delete_keys(keys)
        logger.info(f"Deleted {count} object(s) under {self._target(prefix)}")
        return count

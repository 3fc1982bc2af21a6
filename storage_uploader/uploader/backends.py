"""
Storage backends for the uploader.

A backend exposes the four storage operations the orchestrator needs (put,
list one page, delete one, delete many) on top of a provider SDK:

- S3Backend: Amazon S3 and S3-compatible services via boto3
- GCSBackend: Google Cloud Storage via google-cloud-storage

Backends do no retrying, wrapping or classification of SDK errors; whatever
the SDK raises reaches the caller unchanged.

Example usage:
    >>> backend = create_backend("s3", region="eu-west-1", profile="dev")
    >>> page = backend.list_objects("my-bucket", prefix="reports/")
    >>> page.keys, page.is_truncated
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, BinaryIO, Dict, List, Optional

import boto3
from google.cloud import storage

from storage_uploader.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class ListPage:
    """
    One page of a listing call.

    Attributes:
        keys: Object keys on this page, in service order
        is_truncated: Whether more pages follow
        next_token: Continuation token for the next page (None on the last)
    """

    keys: List[str] = field(default_factory=list)
    is_truncated: bool = False
    next_token: Optional[str] = None


class StorageBackend(ABC):
    """Storage capability used by StorageUploader."""

    name = "abstract"

    @abstractmethod
    def put_object(
        self,
        bucket: str,
        key: str,
        body: BinaryIO,
        content_type: str,
        metadata: Optional[Dict[str, str]] = None,
    ) -> Optional[str]:
        """Write ``body`` under ``key`` and return the service's ETag, if any."""

    @abstractmethod
    def list_objects(
        self,
        bucket: str,
        prefix: str = "",
        continuation_token: Optional[str] = None,
        max_keys: Optional[int] = None,
    ) -> ListPage:
        """Fetch one page of keys starting with ``prefix``."""

    @abstractmethod
    def delete_object(self, bucket: str, key: str) -> None:
        """Delete a single object."""

    @abstractmethod
    def delete_objects(self, bucket: str, keys: List[str]) -> List[str]:
        """Delete ``keys`` in one request and return the keys confirmed deleted."""


class S3Backend(StorageBackend):
    """
    Amazon S3 backend built on a boto3 session.

    The credential profile is handed to the session explicitly instead of
    being exported through AWS_PROFILE, so constructing a backend never
    changes process-wide state.

    Args:
        region: AWS region name
        profile: Named profile from the shared credentials file
        endpoint_url: Custom endpoint for S3-compatible services (MinIO, R2, ...)
        client: Pre-built S3 client; skips session creation when given
    """

    name = "s3"

    def __init__(
        self,
        region: Optional[str] = None,
        profile: Optional[str] = None,
        endpoint_url: Optional[str] = None,
        client: Any = None,
    ) -> None:
        if client is None:
            session = boto3.session.Session(profile_name=profile, region_name=region)
            client = session.client("s3", endpoint_url=endpoint_url)
        self.client = client
        logger.debug(
            f"S3 backend ready (region={region}, profile={profile}, endpoint={endpoint_url})"
        )

    def put_object(self, bucket, key, body, content_type, metadata=None):
        response = self.client.put_object(
            Bucket=bucket,
            Key=key,
            Body=body,
            ContentType=content_type,
            Metadata=dict(metadata or {}),
        )
        return response.get("ETag")

    def list_objects(self, bucket, prefix="", continuation_token=None, max_keys=None):
        params: Dict[str, Any] = {"Bucket": bucket, "Prefix": prefix}
        if continuation_token:
            params["ContinuationToken"] = continuation_token
        if max_keys is not None:
            params["MaxKeys"] = max_keys

        response = self.client.list_objects_v2(**params)
        keys = [item["Key"] for item in response.get("Contents", []) if item.get("Key")]
        return ListPage(
            keys=keys,
            is_truncated=bool(response.get("IsTruncated", False)),
            next_token=response.get("NextContinuationToken"),
        )

    def delete_object(self, bucket, key):
        self.client.delete_object(Bucket=bucket, Key=key)

    def delete_objects(self, bucket, keys):
        response = self.client.delete_objects(
            Bucket=bucket,
            Delete={"Objects": [{"Key": key} for key in keys], "Quiet": False},
        )
        for error in response.get("Errors", []):
            logger.warning(
                f"S3 refused to delete {error.get('Key')}: "
                f"{error.get('Code')} {error.get('Message')}"
            )
        return [item.get("Key", "") for item in response.get("Deleted", [])]


class GCSBackend(StorageBackend):
    """
    Google Cloud Storage backend.

    Credentials come from Application Default Credentials
    (GOOGLE_APPLICATION_CREDENTIALS, gcloud login, workload identity).

    Args:
        project: Project used for the client (inferred from credentials if None)
        client: Pre-built storage.Client
    """

    name = "gcs"

    def __init__(self, project: Optional[str] = None, client: Any = None) -> None:
        self.client = client if client is not None else storage.Client(project=project)
        logger.debug(f"GCS backend ready (project={project})")

    def put_object(self, bucket, key, body, content_type, metadata=None):
        blob = self.client.bucket(bucket).blob(key)
        if metadata:
            blob.metadata = dict(metadata)
        blob.upload_from_file(body, content_type=content_type)
        return blob.etag

    def list_objects(self, bucket, prefix="", continuation_token=None, max_keys=None):
        iterator = self.client.list_blobs(
            bucket,
            prefix=prefix or None,
            page_token=continuation_token,
            max_results=max_keys,
        )
        page = next(iterator.pages, None)
        keys = [blob.name for blob in page] if page is not None else []

        # max_results caps the whole iteration, so a capped probe is never truncated
        next_token = iterator.next_page_token if max_keys is None else None
        return ListPage(keys=keys, is_truncated=next_token is not None, next_token=next_token)

    def delete_object(self, bucket, key):
        self.client.bucket(bucket).blob(key).delete()

    def delete_objects(self, bucket, keys):
        gcs_bucket = self.client.bucket(bucket)
        missing = set()

        def _on_missing(blob):
            logger.warning(f"GCS object not found during batch delete: {blob.name}")
            missing.add(blob.name)

        gcs_bucket.delete_blobs([gcs_bucket.blob(key) for key in keys], on_error=_on_missing)
        return [key for key in keys if key not in missing]


def create_backend(
    provider: str = "s3",
    region: Optional[str] = None,
    profile: Optional[str] = None,
    endpoint_url: Optional[str] = None,
    project: Optional[str] = None,
) -> StorageBackend:
    """
    Build the backend for ``provider``.

    Args:
        provider: ``s3`` or ``gcs``
        region: S3 region
        profile: S3 credential profile
        endpoint_url: S3-compatible endpoint override
        project: GCS project

    Raises:
        ValueError: If the provider is not supported
    """
    provider = provider.lower()
    if provider == "s3":
        return S3Backend(region=region, profile=profile, endpoint_url=endpoint_url)
    if provider == "gcs":
        if profile:
            logger.warning("--profile is ignored for the gcs provider")
        return GCSBackend(project=project)
    raise ValueError(f"Unsupported storage provider: {provider} (supported: s3, gcs)")

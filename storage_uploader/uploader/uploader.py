"""
Object storage upload orchestration.

Provides single-file and recursive directory uploads with optional
skip-if-exists semantics, paginated prefix listing, and single/batch deletion
on top of a StorageBackend (Amazon S3 or Google Cloud Storage).

Error policy:
    - A missing local file or directory raises FileNotFoundError before any
      network call is made.
    - The existence probe used when ``overwrite`` is False is fail-open: if
      the probe itself errors, the error is logged and the upload goes ahead
      as if the object did not exist.
    - Every other storage error is fail-closed: it is logged and re-raised
      unchanged. Nothing is retried.
    - A directory upload isolates per-file failures. The failing file is
      logged and left out of the returned results, so a caller reading only
      the results cannot tell "failed" from "never enumerated".

Example usage:
    >>> from storage_uploader.uploader import StorageUploader, UploadOptions, create_backend
    >>> uploader = StorageUploader(create_backend("s3", region="us-east-1"))
    >>> result = uploader.upload_file("my-bucket", "./report.pdf")
    >>> results = uploader.upload_directory(
    ...     "my-bucket", "./site", prefix="www", options=UploadOptions(overwrite=False)
    ... )
"""

import mimetypes
import os
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from storage_uploader.uploader.backends import StorageBackend
from storage_uploader.uploader.keys import build_object_key, default_object_key
from storage_uploader.utils.config import MAX_DELETE_BATCH_SIZE
from storage_uploader.utils.logging import get_logger, log_function_call
from storage_uploader.utils.metrics import UploaderMetrics, get_metrics

logger = get_logger(__name__)

DEFAULT_CONTENT_TYPE = "application/octet-stream"


@dataclass
class UploadOptions:
    """
    Options shared by single-file and directory uploads.

    Attributes:
        overwrite: When False, skip files whose key already exists in the bucket
        content_type: MIME type override (guessed from the extension if None)
        metadata: User metadata attached to every uploaded object
        verbose: Report per-object progress at INFO instead of DEBUG
    """

    overwrite: bool = True
    content_type: Optional[str] = None
    metadata: Dict[str, str] = field(default_factory=dict)
    verbose: bool = False


@dataclass(frozen=True)
class UploadResult:
    """
    Outcome of one single-file upload.

    Attributes:
        key: Object key the file was (or would have been) written to
        uploaded: True if written, False if skipped because the key existed
        etag: Integrity token returned by the service (None when skipped)
    """

    key: str
    uploaded: bool
    etag: Optional[str] = None


def list_files(dir_path: str) -> List[str]:
    """
    Recursively enumerate every non-directory entry under ``dir_path``.

    Traversal is depth-first in filesystem enumeration order. Symlinks are not
    followed; a symlink is reported like a file.
    """
    files: List[str] = []

    def _walk(current: str) -> None:
        with os.scandir(current) as entries:
            for entry in entries:
                if entry.is_dir(follow_symlinks=False):
                    _walk(entry.path)
                else:
                    files.append(entry.path)

    _walk(dir_path)
    return files


def guess_content_type(file_path: str, override: Optional[str] = None) -> str:
    """Explicit override, else a MIME type guessed from the extension, else octet-stream."""
    if override:
        return override
    guessed, _ = mimetypes.guess_type(file_path)
    return guessed or DEFAULT_CONTENT_TYPE


class StorageUploader:
    """
    Upload, list, and delete objects through a storage backend.

    Calls run strictly one after another; the backend's client is created
    once and reused for every request.

    Args:
        backend: StorageBackend to talk to
        delete_batch_size: Maximum keys per batch-delete request
        metrics: Metrics sink (global metrics if None)
    """

    def __init__(
        self,
        backend: StorageBackend,
        delete_batch_size: int = MAX_DELETE_BATCH_SIZE,
        metrics: Optional[UploaderMetrics] = None,
    ) -> None:
        if delete_batch_size < 1:
            raise ValueError(f"delete_batch_size must be positive, got {delete_batch_size}")
        self.backend = backend
        self.delete_batch_size = delete_batch_size
        self.metrics = metrics if metrics is not None else get_metrics()

    # ------------------------------------------------------------------
    # Uploads
    # ------------------------------------------------------------------

    def upload_file(
        self,
        bucket: str,
        file_path: str,
        key: Optional[str] = None,
        options: Optional[UploadOptions] = None,
    ) -> UploadResult:
        """
        Upload one local file.

        Args:
            bucket: Target bucket
            file_path: Local file to upload
            key: Object key (defaults to the file's base name)
            options: UploadOptions (defaults apply if None)

        Returns:
            UploadResult; ``uploaded`` is False when the file was skipped

        Raises:
            FileNotFoundError: If ``file_path`` does not exist
            Exception: Any storage error from the put request, unchanged
        """
        options = options or UploadOptions()

        if not os.path.exists(file_path):
            raise FileNotFoundError(f"File not found: {file_path}")

        object_key = key or default_object_key(file_path)

        if not options.overwrite and self._object_exists(bucket, object_key):
            self._progress(options.verbose, f"Skipping {object_key} - already exists")
            self.metrics.record_upload("skipped")
            return UploadResult(key=object_key, uploaded=False)

        return self._put_file(bucket, file_path, object_key, options)

    @log_function_call
    def upload_directory(
        self,
        bucket: str,
        dir_path: str,
        prefix: str = "",
        options: Optional[UploadOptions] = None,
    ) -> List[UploadResult]:
        """
        Upload every file under ``dir_path``, keyed by its relative path.

        Files are uploaded sequentially. A file that fails is logged and
        omitted from the results; the batch carries on.

        Args:
            bucket: Target bucket
            dir_path: Local directory to upload
            prefix: Key prefix prepended to each relative path
            options: UploadOptions shared by every file

        Returns:
            Results for files that were uploaded or skipped, in enumeration order

        Raises:
            FileNotFoundError: If ``dir_path`` is missing or not a directory
        """
        options = options or UploadOptions()

        if not os.path.isdir(dir_path):
            raise FileNotFoundError(f"Directory not found: {dir_path}")

        files = list_files(dir_path)
        logger.debug(f"Found {len(files)} files under {dir_path}")

        results: List[UploadResult] = []
        for file_path in files:
            try:
                relative_path = os.path.relpath(file_path, dir_path)
                object_key = build_object_key(prefix, relative_path)
                results.append(self.upload_file(bucket, file_path, object_key, options))
            except Exception as e:
                logger.error(f"Error uploading {file_path}: {e}")

        uploaded = sum(1 for r in results if r.uploaded)
        self._progress(
            options.verbose,
            f"Directory upload complete: {uploaded} uploaded, "
            f"{len(results) - uploaded} skipped, {len(files) - len(results)} failed",
        )
        return results

    # ------------------------------------------------------------------
    # Listing and deletion
    # ------------------------------------------------------------------

    @log_function_call
    def list_objects(self, bucket: str, prefix: str = "") -> List[str]:
        """
        List every key under ``prefix``, following continuation tokens.

        Raises:
            Exception: The first page error, unchanged; earlier pages are discarded
        """
        keys: List[str] = []
        token: Optional[str] = None

        try:
            while True:
                page = self.backend.list_objects(bucket, prefix, continuation_token=token)
                self.metrics.record_list_page()
                keys.extend(page.keys)
                if not page.is_truncated:
                    break
                token = page.next_token
        except Exception as e:
            logger.error(f"Error listing objects in {bucket} with prefix '{prefix}': {e}")
            self.metrics.record_storage_error("list", e)
            raise

        return keys

    def delete_object(self, bucket: str, key: str, verbose: bool = False) -> bool:
        """
        Delete one object.

        Returns:
            True once the service accepted the delete

        Raises:
            Exception: Any storage error, unchanged
        """
        try:
            self.backend.delete_object(bucket, key)
        except Exception as e:
            logger.error(f"Error deleting {key}: {e}")
            self.metrics.record_storage_error("delete", e)
            raise

        self.metrics.record_deleted(1)
        self._progress(verbose, f"Successfully deleted {key}")
        return True

    @log_function_call
    def delete_objects(self, bucket: str, keys: List[str], verbose: bool = False) -> List[str]:
        """
        Delete many objects, at most ``delete_batch_size`` keys per request.

        An empty ``keys`` list returns immediately without contacting storage.

        Returns:
            Keys the service confirmed deleted, chunk by chunk in service order

        Raises:
            Exception: The first chunk error, unchanged
        """
        if not keys:
            return []

        deleted: List[str] = []
        for start in range(0, len(keys), self.delete_batch_size):
            chunk = keys[start:start + self.delete_batch_size]
            try:
                confirmed = self.backend.delete_objects(bucket, chunk)
            except Exception as e:
                logger.error(f"Error deleting objects: {e}")
                self.metrics.record_storage_error("delete", e)
                raise
            deleted.extend(confirmed)
            self.metrics.record_deleted(len(confirmed))

        self._progress(verbose, f"Successfully deleted {len(deleted)} objects")
        return deleted

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _object_exists(self, bucket: str, key: str) -> bool:
        """Prefix probe limited to one key. Errors count as "does not exist"."""
        try:
            page = self.backend.list_objects(bucket, key, max_keys=1)
        except Exception as e:
            logger.error(f"Error checking if object exists: {e}")
            self.metrics.record_storage_error("probe", e)
            return False
        return len(page.keys) > 0

    def _put_file(
        self, bucket: str, file_path: str, key: str, options: UploadOptions
    ) -> UploadResult:
        content_type = guess_content_type(file_path, options.content_type)

        try:
            size = os.path.getsize(file_path)
            with open(file_path, "rb") as body, self.metrics.track_upload():
                etag = self.backend.put_object(
                    bucket, key, body, content_type, options.metadata
                )
        except Exception as e:
            logger.error(f"Error uploading {key}: {e}")
            self.metrics.record_storage_error("put", e)
            self.metrics.record_upload("failed")
            raise

        self.metrics.record_upload("uploaded", bytes_uploaded=size)
        self._progress(options.verbose, f"Successfully uploaded {key}")
        return UploadResult(key=key, uploaded=True, etag=etag)

    @staticmethod
    def _progress(verbose: bool, message: str) -> None:
        if verbose:
            logger.info(message)
        else:
            logger.debug(message)

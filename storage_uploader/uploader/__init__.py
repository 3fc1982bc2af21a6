"""
Object storage uploader module.

Maps local files and directory trees onto object keys and uploads them to a
bucket, with prefix listing and single/batch deletion. Backends are provided
for Amazon S3 and Google Cloud Storage.
"""

from .backends import (
    GCSBackend,
    ListPage,
    S3Backend,
    StorageBackend,
    create_backend,
)
from .keys import build_object_key, default_object_key
from .uploader import (
    StorageUploader,
    UploadOptions,
    UploadResult,
    guess_content_type,
    list_files,
)

__all__ = [
    "GCSBackend",
    "ListPage",
    "S3Backend",
    "StorageBackend",
    "StorageUploader",
    "UploadOptions",
    "UploadResult",
    "build_object_key",
    "create_backend",
    "default_object_key",
    "guess_content_type",
    "list_files",
]

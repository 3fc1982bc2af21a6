"""
storage-uploader

Upload, list, and delete objects in a cloud object-storage bucket from the
command line or from Python. Amazon S3 and Google Cloud Storage are supported
through interchangeable backends.

This package provides:
- uploader: key mapping, upload orchestration, storage backends
- cli: the ``storage-uploader`` command
- utils: logging, configuration, manifests, metrics
"""

__version__ = "0.1.0"

from storage_uploader.uploader import (
    StorageUploader,
    UploadOptions,
    UploadResult,
    create_backend,
)

__all__ = [
    "StorageUploader",
    "UploadOptions",
    "UploadResult",
    "create_backend",
    "__version__",
]

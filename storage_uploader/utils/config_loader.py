"""
Upload manifest loader and validator.

Loads YAML manifests describing a set of uploads to run in one invocation and
validates them against the expected schema before anything touches storage.

Example manifest (uploads.yaml):
    ```yaml
    version: "1.0"
    bucket: my-bucket

    uploads:
      - file: ./reports/q3.pdf
        key: reports/2026/q3.pdf
        overwrite: false
        metadata:
          team: finance

      - dir: ./site
        prefix: www
        content_type: text/html
    ```

Usage:
    >>> from storage_uploader.utils.config_loader import load_manifest, validate_manifest
    >>> manifest = load_manifest("uploads.yaml")
    >>> errors = validate_manifest(manifest)
    >>> if not errors:
    ...     entries = manifest_entries(manifest)
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from storage_uploader.utils.logging import get_logger

logger = get_logger(__name__)


SUPPORTED_VERSIONS = ["1.0"]

_STRING_FIELDS = ["key", "prefix", "content_type"]


@dataclass
class ManifestError:
    """Validation error in a manifest file."""

    field: str
    message: str
    value: Optional[Any] = None

    def __str__(self) -> str:
        if self.value is not None:
            return f"{self.field}: {self.message} (got: {self.value})"
        return f"{self.field}: {self.message}"


@dataclass
class ManifestEntry:
    """One upload described by a manifest."""

    path: str
    is_directory: bool
    key: Optional[str] = None
    prefix: str = ""
    overwrite: Optional[bool] = None
    content_type: Optional[str] = None
    metadata: Dict[str, str] = field(default_factory=dict)


def load_manifest(manifest_path: Union[str, Path]) -> Dict[str, Any]:
    """
    Load an upload manifest from a YAML file.

    Args:
        manifest_path: Path to YAML manifest

    Returns:
        Dictionary containing the parsed manifest

    Raises:
        FileNotFoundError: If the manifest doesn't exist
        ValueError: If the path is not a file or the document is empty/not a mapping
        yaml.YAMLError: If YAML is malformed
    """
    path = Path(manifest_path)
    logger.info(f"Loading manifest from: {path}")

    if not path.exists():
        raise FileNotFoundError(f"Manifest file not found: {path}")

    if not path.is_file():
        raise ValueError(f"Manifest path is not a file: {path}")

    try:
        with open(path, "r", encoding="utf-8") as f:
            manifest = yaml.safe_load(f)
    except yaml.YAMLError as e:
        logger.error(f"Failed to parse YAML: {e}")
        raise

    if manifest is None:
        raise ValueError("Manifest file is empty")
    if not isinstance(manifest, dict):
        raise ValueError(f"Manifest must be a mapping, got {type(manifest).__name__}")

    logger.debug(f"Manifest loaded with {len(manifest.get('uploads') or [])} uploads")
    return dict(manifest)


def validate_manifest(manifest: Dict[str, Any]) -> List[ManifestError]:
    """
    Validate a manifest against the expected schema.

    Args:
        manifest: Parsed manifest dictionary

    Returns:
        List of validation errors (empty if valid)
    """
    errors: List[ManifestError] = []

    if "version" not in manifest:
        errors.append(ManifestError("version", "Missing required field"))
    elif str(manifest["version"]) not in SUPPORTED_VERSIONS:
        errors.append(
            ManifestError(
                "version",
                f"Unsupported version (supported: {SUPPORTED_VERSIONS})",
                manifest["version"],
            )
        )

    if "bucket" in manifest and not isinstance(manifest["bucket"], str):
        errors.append(
            ManifestError("bucket", "Must be a string", type(manifest["bucket"]).__name__)
        )

    if "uploads" not in manifest:
        errors.append(ManifestError("uploads", "Missing required field"))
    else:
        errors.extend(_validate_uploads(manifest["uploads"]))

    if errors:
        logger.warning(f"Manifest validation failed with {len(errors)} errors")
    else:
        logger.debug("Manifest validation passed")

    return errors


def _validate_uploads(uploads: Any) -> List[ManifestError]:
    errors: List[ManifestError] = []

    if not isinstance(uploads, list):
        errors.append(ManifestError("uploads", "Must be a list", type(uploads).__name__))
        return errors

    if len(uploads) == 0:
        errors.append(ManifestError("uploads", "Must contain at least one upload"))

    for i, upload in enumerate(uploads):
        prefix = f"uploads[{i}]"

        if not isinstance(upload, dict):
            errors.append(ManifestError(prefix, "Must be a mapping", type(upload).__name__))
            continue

        has_file = "file" in upload
        has_dir = "dir" in upload
        if has_file == has_dir:
            errors.append(ManifestError(prefix, "Exactly one of 'file' or 'dir' is required"))

        for name in ["file", "dir"] + _STRING_FIELDS:
            if name in upload and not isinstance(upload[name], str):
                errors.append(
                    ManifestError(f"{prefix}.{name}", "Must be a string", type(upload[name]).__name__)
                )

        if "key" in upload and has_dir:
            errors.append(ManifestError(f"{prefix}.key", "Only valid for 'file' uploads"))
        if "prefix" in upload and has_file:
            errors.append(ManifestError(f"{prefix}.prefix", "Only valid for 'dir' uploads"))

        if "overwrite" in upload and not isinstance(upload["overwrite"], bool):
            errors.append(
                ManifestError(
                    f"{prefix}.overwrite", "Must be a boolean", type(upload["overwrite"]).__name__
                )
            )

        if "metadata" in upload:
            metadata = upload["metadata"]
            if not isinstance(metadata, dict):
                errors.append(
                    ManifestError(f"{prefix}.metadata", "Must be a mapping", type(metadata).__name__)
                )
            else:
                for name, value in metadata.items():
                    if not isinstance(value, (str, int, float)):
                        errors.append(
                            ManifestError(
                                f"{prefix}.metadata.{name}",
                                "Must be a string, number or boolean",
                                type(value).__name__,
                            )
                        )

    return errors


def manifest_entries(manifest: Dict[str, Any]) -> List[ManifestEntry]:
    """
    Convert a validated manifest into upload entries, in manifest order.

    Raises:
        ValueError: If the manifest does not validate
    """
    errors = validate_manifest(manifest)
    if errors:
        raise ValueError("Invalid manifest: " + "; ".join(str(e) for e in errors))

    entries = []
    for upload in manifest["uploads"]:
        is_directory = "dir" in upload
        entries.append(
            ManifestEntry(
                path=upload["dir"] if is_directory else upload["file"],
                is_directory=is_directory,
                key=upload.get("key"),
                prefix=upload.get("prefix", ""),
                overwrite=upload.get("overwrite"),
                content_type=upload.get("content_type"),
                metadata={str(k): str(v) for k, v in (upload.get("metadata") or {}).items()},
            )
        )
    return entries

"""
Environment configuration loader for storage-uploader.

Loads defaults for the CLI and library from a .env file or environment
variables: which storage provider to talk to, the default bucket, and the
region/profile/endpoint handed to the storage client.
"""

import os
from pathlib import Path
from typing import Optional
from dataclasses import dataclass

from dotenv import load_dotenv

SUPPORTED_PROVIDERS = ["s3", "gcs"]

# S3 DeleteObjects accepts at most 1000 keys per request
MAX_DELETE_BATCH_SIZE = 1000


@dataclass
class UploaderConfig:
    """Uploader environment configuration."""

    # Storage target
    provider: str = "s3"
    bucket: Optional[str] = None

    # Client settings
    region: str = "us-east-1"
    profile: Optional[str] = None
    endpoint_url: Optional[str] = None
    gcs_project: Optional[str] = None

    # Behaviour
    delete_batch_size: int = MAX_DELETE_BATCH_SIZE

    @classmethod
    def from_env(cls, env_file: Optional[Path] = None) -> "UploaderConfig":
        """
        Load configuration from environment variables.

        Loads ``env_file`` (default: ``.env`` in the working directory) if it
        exists, without overriding variables already set, then reads from
        os.environ.

        Returns:
            UploaderConfig instance with loaded values

        Raises:
            ValueError: If a variable holds an unsupported value
        """
        env_path = env_file if env_file is not None else Path.cwd() / ".env"
        if env_path.exists():
            load_dotenv(env_path)

        provider = os.getenv("STORAGE_PROVIDER", "s3").strip().lower()
        if provider not in SUPPORTED_PROVIDERS:
            raise ValueError(
                f"STORAGE_PROVIDER must be one of {SUPPORTED_PROVIDERS}, got '{provider}'"
            )

        raw_batch_size = os.getenv("DELETE_BATCH_SIZE", str(MAX_DELETE_BATCH_SIZE))
        try:
            delete_batch_size = int(raw_batch_size)
        except ValueError:
            raise ValueError(
                f"DELETE_BATCH_SIZE must be an integer, got '{raw_batch_size}'"
            ) from None
        if not 1 <= delete_batch_size <= MAX_DELETE_BATCH_SIZE:
            raise ValueError(
                f"DELETE_BATCH_SIZE must be between 1 and {MAX_DELETE_BATCH_SIZE}, "
                f"got {delete_batch_size}"
            )

        return cls(
            provider=provider,
            bucket=os.getenv("STORAGE_BUCKET") or None,
            region=os.getenv("STORAGE_REGION", "us-east-1"),
            profile=os.getenv("STORAGE_PROFILE") or None,
            endpoint_url=os.getenv("STORAGE_ENDPOINT_URL") or None,
            gcs_project=os.getenv("GCS_PROJECT") or None,
            delete_batch_size=delete_batch_size,
        )


# Global config instance (lazy-loaded)
_config: Optional[UploaderConfig] = None


def get_config() -> UploaderConfig:
    """
    Get or create uploader configuration singleton.

    Example:
        >>> config = get_config()
        >>> print(config.region)
        us-east-1
    """
    global _config
    if _config is None:
        _config = UploaderConfig.from_env()
    return _config

"""
Command-line interface for storage-uploader.

Usage:
    storage-uploader --bucket my-bucket --file ./path/to/file.jpg
    storage-uploader --bucket my-bucket --dir ./site --prefix uploads/site
    storage-uploader --bucket my-bucket --list uploads/
    storage-uploader --bucket my-bucket --delete uploads/file.jpg
    storage-uploader --bucket my-bucket --delete-all uploads/old/
    storage-uploader --manifest uploads.yaml
"""

import argparse
import os
import sys
from typing import Any, Dict, List, Optional

from storage_uploader import __version__
from storage_uploader.uploader import StorageUploader, UploadOptions, create_backend, list_files
from storage_uploader.utils.config import SUPPORTED_PROVIDERS, get_config
from storage_uploader.utils.config_loader import load_manifest, manifest_entries
from storage_uploader.utils.logging import get_logger, setup_logging

logger = get_logger(__name__)

NON_INTERACTIVE_ENV = "STORAGE_UPLOADER_NON_INTERACTIVE"

EPILOG = """
Examples:
  # Upload a single file to the root of the bucket
  %(prog)s --bucket my-bucket --file ./path/to/file.jpg

  # Upload a directory under a prefix, skipping objects that already exist
  %(prog)s --bucket my-bucket --dir ./path/to/directory --prefix uploads/my-dir --no-overwrite

  # List objects under a prefix
  %(prog)s --bucket my-bucket --list uploads/

  # Delete one object, or everything under a prefix (asks for confirmation)
  %(prog)s --bucket my-bucket --delete uploads/file.jpg
  %(prog)s --bucket my-bucket --delete-all uploads/old/

  # Run the uploads listed in a YAML manifest
  %(prog)s --manifest uploads.yaml --yes
"""


class _ArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that exits with status 1 on usage errors."""

    def error(self, message: str) -> None:  # type: ignore[override]
        self.print_usage(sys.stderr)
        self.exit(1, f"{self.prog}: error: {message}\n")


def build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog="storage-uploader",
        description="Upload and manage files in a cloud object-storage bucket",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=EPILOG,
    )

    target = parser.add_argument_group("storage target")
    target.add_argument("--bucket", help="Bucket name (default: $STORAGE_BUCKET)")
    target.add_argument("--region", help="Region for S3 (default: $STORAGE_REGION or us-east-1)")
    target.add_argument("--profile", help="Credential profile name for S3")
    target.add_argument(
        "--provider",
        choices=SUPPORTED_PROVIDERS,
        help="Storage provider (default: $STORAGE_PROVIDER or s3)",
    )
    target.add_argument("--endpoint-url", help="Custom endpoint for S3-compatible services")

    operations = parser.add_argument_group("operations")
    operations.add_argument("--file", help="Path to file to upload")
    operations.add_argument("--dir", help="Path to directory to upload")
    operations.add_argument(
        "--list",
        nargs="?",
        const="",
        metavar="PREFIX",
        help="List objects with the given prefix (all objects if omitted)",
    )
    operations.add_argument("--delete", metavar="KEY", help="Delete a single object")
    operations.add_argument(
        "--delete-all",
        metavar="PREFIX",
        help="Delete all objects with the given prefix (use with caution)",
    )
    operations.add_argument("--manifest", help="YAML manifest of uploads to run")

    upload = parser.add_argument_group("upload options")
    upload.add_argument("--prefix", help="Key prefix (folder path in bucket)")
    upload.add_argument(
        "--no-overwrite",
        dest="overwrite",
        action="store_false",
        help="Skip files that already exist in the bucket",
    )
    upload.add_argument("--content-type", help="Content type for uploaded objects")
    upload.add_argument(
        "-m",
        "--metadata",
        action="append",
        metavar="KEY=VALUE",
        help="Metadata key=value pair (can specify multiple times)",
    )

    parser.add_argument(
        "-y", "--yes", action="store_true", help="Do not ask for confirmation"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose output")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    return parser


def parse_metadata(metadata_args: Optional[List[str]]) -> Dict[str, str]:
    """Parse ``key=value`` arguments into a dictionary."""
    if not metadata_args:
        return {}

    metadata = {}
    for item in metadata_args:
        if "=" not in item:
            logger.warning(f"Invalid metadata format (use key=value): {item}")
            continue

        key, value = item.split("=", 1)
        metadata[key.strip()] = value.strip()

    return metadata


def is_non_interactive() -> bool:
    return os.getenv(NON_INTERACTIVE_ENV, "").strip().lower() in ("1", "true", "yes")


def prompt_yes_no(question: str) -> bool:
    """Ask a yes/no question on stdin. Anything but y/yes (or EOF) means no."""
    try:
        answer = input(question)
    except EOFError:
        return False
    return answer.strip().lower() in ("y", "yes")


def _confirm(question: str, assume_yes: bool) -> bool:
    if assume_yes:
        return True
    if prompt_yes_no(question):
        return True
    print("Operation cancelled.")
    return False


# ============================================================================
# Commands
# ============================================================================

def list_command(uploader: StorageUploader, bucket: str, prefix: str) -> int:
    print(f'Listing objects in bucket {bucket} with prefix "{prefix}"...')
    keys = uploader.list_objects(bucket, prefix)

    if not keys:
        print("No objects found.")
    else:
        print(f"Found {len(keys)} objects:")
        for key in keys:
            print(f"- {key}")
    return 0


def delete_command(
    uploader: StorageUploader, bucket: str, key: str, assume_yes: bool, verbose: bool
) -> int:
    print(f"Preparing to delete object {key} from bucket {bucket}...")

    if not _confirm("Are you sure you want to delete this object? (y/n): ", assume_yes):
        return 0

    uploader.delete_object(bucket, key, verbose=verbose)
    print("✅ Object deleted successfully.")
    return 0


def delete_all_command(
    uploader: StorageUploader, bucket: str, prefix: str, assume_yes: bool, verbose: bool
) -> int:
    print(f'Listing objects to delete in bucket {bucket} with prefix "{prefix}"...')
    keys = uploader.list_objects(bucket, prefix)

    if not keys:
        print("No objects found to delete.")
        return 0

    print(f"Found {len(keys)} objects to delete:")
    for key in keys:
        print(f"- {key}")

    question = f"Are you sure you want to delete these {len(keys)} objects? (y/n): "
    if not _confirm(question, assume_yes):
        return 0

    deleted = uploader.delete_objects(bucket, keys, verbose=verbose)
    print(f"✅ Successfully deleted {len(deleted)} objects.")
    if len(deleted) != len(keys):
        print(f"⚠️  {len(keys) - len(deleted)} objects were not confirmed deleted")
    return 0


def upload_file_command(
    uploader: StorageUploader,
    bucket: str,
    file_path: str,
    prefix: Optional[str],
    options: UploadOptions,
    assume_yes: bool,
) -> int:
    resolved_path = os.path.abspath(file_path)
    if not os.path.exists(resolved_path):
        print(f"❌ File not found: {resolved_path}", file=sys.stderr)
        return 1

    file_name = os.path.basename(resolved_path)
    key = f"{prefix}/{file_name}" if prefix else None

    print(f"Preparing to upload file {resolved_path} to bucket {bucket} as {key or file_name}...")

    if options.overwrite and not _confirm(
        "This may overwrite an existing file. Continue? (y/n): ", assume_yes
    ):
        return 0

    result = uploader.upload_file(bucket, resolved_path, key, options)

    if result.uploaded:
        print(f"✅ Successfully uploaded: {result.key}")
    else:
        print(f"Skipped (already exists): {result.key}")
    return 0


def upload_directory_command(
    uploader: StorageUploader,
    bucket: str,
    dir_path: str,
    prefix: Optional[str],
    options: UploadOptions,
    assume_yes: bool,
) -> int:
    resolved_path = os.path.abspath(dir_path)
    if not os.path.isdir(resolved_path):
        print(f"❌ Directory not found: {resolved_path}", file=sys.stderr)
        return 1

    file_count = len(list_files(resolved_path))
    destination = f"{prefix}/" if prefix else "root of bucket"
    print(
        f"Preparing to upload {file_count} files from {resolved_path} "
        f"to {destination} in bucket {bucket}..."
    )

    if file_count > 0:
        note = " (may overwrite existing files)" if options.overwrite else ""
        if not _confirm(f"Continue with uploading {file_count} files{note}? (y/n): ", assume_yes):
            return 0

    results = uploader.upload_directory(bucket, resolved_path, prefix or "", options)

    uploaded = sum(1 for r in results if r.uploaded)
    skipped = len(results) - uploaded
    failed = file_count - len(results)

    print(f"\n📊 Upload complete: {uploaded} files uploaded, {skipped} files skipped")
    if failed > 0:
        print(f"❌ {failed} files failed to upload (see log for details)")
        return 1
    return 0


def manifest_command(
    uploader: StorageUploader,
    bucket: str,
    manifest_path: str,
    manifest: Dict[str, Any],
    base_options: UploadOptions,
    assume_yes: bool,
) -> int:
    entries = manifest_entries(manifest)
    base_dir = os.path.dirname(os.path.abspath(manifest_path))

    print(f"📤 Running {len(entries)} uploads from {manifest_path} into bucket {bucket}")
    if not _confirm(f"Continue with {len(entries)} uploads? (y/n): ", assume_yes):
        return 0

    exit_code = 0
    for entry in entries:
        path = os.path.join(base_dir, entry.path)
        options = UploadOptions(
            overwrite=base_options.overwrite if entry.overwrite is None else entry.overwrite,
            content_type=entry.content_type or base_options.content_type,
            metadata={**base_options.metadata, **entry.metadata},
            verbose=base_options.verbose,
        )

        if entry.is_directory:
            if not os.path.isdir(path):
                print(f"❌ Directory not found: {path}", file=sys.stderr)
                exit_code = 1
                continue
            file_count = len(list_files(path))
            results = uploader.upload_directory(bucket, path, entry.prefix, options)
            uploaded = sum(1 for r in results if r.uploaded)
            print(f"  {entry.path}: {uploaded} uploaded, {len(results) - uploaded} skipped")
            if len(results) < file_count:
                print(f"  ❌ {file_count - len(results)} files failed under {entry.path}")
                exit_code = 1
        else:
            if not os.path.exists(path):
                print(f"❌ File not found: {path}", file=sys.stderr)
                exit_code = 1
                continue
            result = uploader.upload_file(bucket, path, entry.key, options)
            status = "uploaded" if result.uploaded else "skipped (already exists)"
            print(f"  {entry.path} -> {result.key}: {status}")

    return exit_code


# ============================================================================
# Entry point
# ============================================================================

def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the storage-uploader CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(level="DEBUG" if args.verbose else "INFO")

    try:
        env_config = get_config()
    except ValueError as e:
        print(f"❌ Configuration error: {e}", file=sys.stderr)
        return 1

    has_operation = any(
        [args.file, args.dir, args.list is not None, args.delete, args.delete_all, args.manifest]
    )
    if not has_operation:
        print(
            "Error: You must specify an operation "
            "(--file, --dir, --list, --delete, --delete-all, or --manifest)",
            file=sys.stderr,
        )
        parser.print_usage(sys.stderr)
        return 1

    manifest: Optional[Dict[str, Any]] = None
    if args.manifest:
        try:
            manifest = load_manifest(args.manifest)
        except (OSError, ValueError) as e:
            print(f"❌ Could not load manifest: {e}", file=sys.stderr)
            return 1

    bucket = args.bucket or (manifest or {}).get("bucket") or env_config.bucket
    if not bucket:
        print("Error: --bucket option is required", file=sys.stderr)
        parser.print_usage(sys.stderr)
        return 1

    assume_yes = args.yes or is_non_interactive()
    options = UploadOptions(
        overwrite=args.overwrite,
        content_type=args.content_type,
        metadata=parse_metadata(args.metadata),
        verbose=args.verbose,
    )

    try:
        backend = create_backend(
            provider=args.provider or env_config.provider,
            region=args.region or env_config.region,
            profile=args.profile or env_config.profile,
            endpoint_url=args.endpoint_url or env_config.endpoint_url,
            project=env_config.gcs_project,
        )
        uploader = StorageUploader(backend, delete_batch_size=env_config.delete_batch_size)

        if args.list is not None:
            return list_command(uploader, bucket, args.list)
        if args.delete:
            return delete_command(uploader, bucket, args.delete, assume_yes, args.verbose)
        if args.delete_all:
            return delete_all_command(uploader, bucket, args.delete_all, assume_yes, args.verbose)
        if args.file:
            return upload_file_command(
                uploader, bucket, args.file, args.prefix, options, assume_yes
            )
        if args.dir:
            return upload_directory_command(
                uploader, bucket, args.dir, args.prefix, options, assume_yes
            )
        return manifest_command(uploader, bucket, args.manifest, manifest, options, assume_yes)

    except KeyboardInterrupt:
        print("\n⚠️  Operation cancelled by user")
        return 130

    except Exception as e:
        logger.error(f"Unexpected error: {e}", exc_info=args.verbose)
        print(f"❌ Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())

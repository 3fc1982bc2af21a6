"""Pytest configuration."""

import sys
from pathlib import Path

import pytest
from prometheus_client import CollectorRegistry

# Add project root to path for imports
project_root = Path(__file__).parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from storage_uploader.uploader import ListPage, StorageBackend  # noqa: E402
from storage_uploader.utils.metrics import UploaderMetrics  # noqa: E402


class FakeBackend(StorageBackend):
    """In-memory storage backend recording every call."""

    name = "fake"

    def __init__(self, page_size=1000):
        self.objects = {}
        self.page_size = page_size
        self.calls = []
        self.fail_put_keys = set()
        self.fail_list = None
        self.fail_probe = None

    def put_object(self, bucket, key, body, content_type, metadata=None):
        self.calls.append(("put", bucket, key, content_type, dict(metadata or {})))
        if key in self.fail_put_keys:
            raise RuntimeError(f"put failed for {key}")
        data = body.read()
        self.objects[(bucket, key)] = {
            "data": data,
            "content_type": content_type,
            "metadata": dict(metadata or {}),
        }
        return f'"etag-{len(data)}"'

    def list_objects(self, bucket, prefix="", continuation_token=None, max_keys=None):
        self.calls.append(("list", bucket, prefix, continuation_token, max_keys))
        if max_keys is not None and self.fail_probe is not None:
            raise self.fail_probe
        if max_keys is None and self.fail_list is not None:
            raise self.fail_list

        keys = sorted(k for (b, k) in self.objects if b == bucket and k.startswith(prefix))
        start = int(continuation_token) if continuation_token else 0
        size = max_keys if max_keys is not None else self.page_size
        page = keys[start:start + size]
        end = start + len(page)
        truncated = max_keys is None and end < len(keys)
        return ListPage(keys=page, is_truncated=truncated, next_token=str(end) if truncated else None)

    def delete_object(self, bucket, key):
        self.calls.append(("delete", bucket, key))
        self.objects.pop((bucket, key), None)

    def delete_objects(self, bucket, keys):
        self.calls.append(("delete_many", bucket, list(keys)))
        deleted = []
        for key in keys:
            if self.objects.pop((bucket, key), None) is not None:
                deleted.append(key)
        return deleted

    def calls_of(self, kind):
        return [call for call in self.calls if call[0] == kind]


@pytest.fixture
def fake_backend():
    return FakeBackend()


@pytest.fixture
def metrics():
    return UploaderMetrics(registry=CollectorRegistry())


@pytest.fixture(autouse=True)
def reset_config(monkeypatch, tmp_path):
    """Isolate tests from the developer's environment and .env file."""
    import storage_uploader.utils.config as config_module

    for name in [
        "STORAGE_BUCKET",
        "STORAGE_PROVIDER",
        "STORAGE_REGION",
        "STORAGE_PROFILE",
        "STORAGE_ENDPOINT_URL",
        "GCS_PROJECT",
        "DELETE_BATCH_SIZE",
        "STORAGE_UPLOADER_NON_INTERACTIVE",
    ]:
        # set first so teardown also removes values written by load_dotenv
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    monkeypatch.chdir(tmp_path)
    config_module._config = None
    yield
    config_module._config = None

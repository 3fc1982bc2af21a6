"""
Utility modules for storage-uploader.

This package provides shared utilities used by the uploader and CLI:
- logging: Console/JSON logging with entry/exit decorators
- config: Environment configuration
- config_loader: YAML upload manifests
- metrics: Prometheus collectors
"""

from storage_uploader.utils.logging import get_logger, log_function_call

__all__ = ["get_logger", "log_function_call"]

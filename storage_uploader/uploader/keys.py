"""Object key construction from local paths."""

import os
from typing import Optional


def build_object_key(prefix: Optional[str], relative_path: str) -> str:
    """
    Map a path relative to an upload root onto an object key.

    The prefix is joined with a single "/" and every backslash in the result
    becomes a forward slash. Keys are otherwise passed through untouched:
    duplicate slashes are kept and nothing is encoded or length-checked.

    Example:
        >>> build_object_key("up", "sub\\\\y.txt")
        'up/sub/y.txt'
        >>> build_object_key("", "x.txt")
        'x.txt'
    """
    key = f"{prefix}/{relative_path}" if prefix else relative_path
    return key.replace("\\", "/")


def default_object_key(file_path: str) -> str:
    """Key used for a single-file upload when none is given: the base name."""
    return os.path.basename(file_path)

# streamlearn/utils/path.py
from __future__ import annotations

import os
from pathlib import Path
from urllib.parse import urlparse
from urllib.request import url2pathname

from streamlearn.utils.errors import MalformedModelPath


def resolve_model_path(raw: str) -> Path:
    """
    Resolve a model location to a local path.

    - ``$VAR`` / ``${VAR}`` references are expanded from the environment
    - ``file:`` URIs are converted to filesystem paths
    - anything else is treated as a plain path
    """
    expanded = os.path.expandvars(raw.strip())

    if not expanded.lower().startswith("file:"):
        return Path(expanded)

    # spaces are legal in paths but not in URIs
    uri = expanded.replace(" ", "%20")
    parsed = urlparse(uri)
    if parsed.scheme.lower() != "file" or parsed.netloc not in ("", "localhost"):
        raise MalformedModelPath(f"Malformed URI for model path: {raw}")
    if not parsed.path:
        raise MalformedModelPath(f"Malformed URI for model path: {raw}")

    return Path(url2pathname(parsed.path))

"""Runtime configuration read from the environment."""

import os


def _int_env(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        return default


LOG_FILE = os.environ.get("OPENPATH_LOG_FILE") or None
DECISIONS_FILE = os.environ.get("OPENPATH_DECISIONS_FILE") or None
VERBOSE = os.environ.get("OPENPATH_VERBOSE", "0") == "1"

# Page sizes: flat rule listing and root-domain group listing
PAGE_SIZE = _int_env("OPENPATH_PAGE_SIZE", 50)
GROUP_PAGE_SIZE = _int_env("OPENPATH_GROUP_PAGE_SIZE", 20)

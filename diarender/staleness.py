"""
Staleness checks between a diagram source and its cached export.

Timestamps are integer milliseconds since the epoch.
"""

import os
from pathlib import Path
from typing import Optional, Union

# Platforms may not store millisecond accurate timestamps
TIMESTAMP_TOLERANCE = 1000


def is_stale(source_modified: Optional[int], cached_modified: Optional[int]) -> bool:
    """
    Decide whether a cached export must be regenerated.

    Args:
        source_modified: Last modified of the source, 0 or None when unknown
        cached_modified: Last modified of the cached export, None when missing

    Returns:
        True when the export is missing, the source timestamp is unknown,
        or the two timestamps differ by at least TIMESTAMP_TOLERANCE
        in either direction
    """
    if cached_modified is None:
        return True
    if not source_modified:
        return True
    diff = source_modified - cached_modified
    # negative branch: system clock moved backward
    return diff >= TIMESTAMP_TOLERANCE or diff <= -TIMESTAMP_TOLERANCE


def file_modified_ms(path: Union[str, Path]) -> Optional[int]:
    """Return the file's mtime in milliseconds, or None if it does not exist."""
    try:
        return os.stat(path).st_mtime_ns // 1_000_000
    except FileNotFoundError:
        return None

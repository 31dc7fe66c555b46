"""
CacheStore - Lays out exports below the cache directory.
"""

from pathlib import Path
from typing import Union

from .cache_keys import CacheKey

CACHE_SUBDIR = 'diarender.DiaExport'


class CacheStore:
    """Maps cache keys to files below a shared cache directory."""

    def __init__(self, cache_dir: Union[str, Path]):
        self.root = Path(cache_dir) / CACHE_SUBDIR

    def path_for(self, key: CacheKey) -> Path:
        return self.root / key.relative_path

    def prepare(self, key: CacheKey) -> Path:
        """
        Return the export path for key, creating its directory if needed.

        Safe when sibling keys create the same directories concurrently.
        """
        path = self.path_for(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        return path

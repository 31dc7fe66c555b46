"""
RenderConfig - Configuration for diagram exports.
"""

import os
import sys
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

LINUX_DIA_PATH = '/usr/bin/dia'
WINDOWS_DIA_PATH = 'C:\\Program Files (x86)\\Dia\\bin\\dia.exe'

# Ordered lowest to highest, the first is the default
PIXEL_DENSITIES = [1, 2, 3, 4]


def default_dia_path(platform: str = sys.platform) -> str:
    """Location of the dia binary for the given platform."""
    if platform.startswith('win'):
        return WINDOWS_DIA_PATH
    return LINUX_DIA_PATH


def parse_books(value: str) -> Dict[str, Path]:
    """
    Parse 'prefix=dir' pairs separated by ';'.

    Example:
        '/docs=/srv/docs;/ops=/srv/ops' -> {'/docs': Path('/srv/docs'), ...}
    """
    books = {}
    for item in value.split(';'):
        item = item.strip()
        if not item:
            continue
        if '=' not in item:
            raise ValueError(f"Book must be 'prefix=dir': {item!r}")
        prefix, root = item.split('=', 1)
        books[prefix.strip()] = Path(root.strip())
    return books


def parse_densities(value: str) -> List[int]:
    """Parse a comma separated density list such as '1,2,3,4'."""
    return [int(d) for d in value.split(',') if d.strip()]


@dataclass
class RenderConfig:
    """
    Diagram export configuration.

    Attributes:
        dia_path: Path to the dia binary
        cache_dir: Directory exports are cached under
        books: Mapping of book prefix to root directory
        timeout: Seconds before a dia process is killed
        densities: Pixel densities rendered for each diagram
        max_workers: Threads used to render density variants
        wait_timeout: Seconds a request waits on another request's export,
            None to wait for as long as it runs
    """
    dia_path: str = field(default_factory=default_dia_path)
    cache_dir: Path = field(default_factory=lambda: Path(tempfile.gettempdir()))
    books: Dict[str, Path] = field(default_factory=dict)
    timeout: float = 60.0
    densities: List[int] = field(default_factory=lambda: list(PIXEL_DENSITIES))
    max_workers: int = 8
    wait_timeout: Optional[float] = None

    @classmethod
    def from_env(cls) -> 'RenderConfig':
        """Create configuration from environment variables."""
        config = cls()
        if os.getenv('DIA_PATH'):
            config.dia_path = os.getenv('DIA_PATH')
        if os.getenv('DIA_CACHE_DIR'):
            config.cache_dir = Path(os.getenv('DIA_CACHE_DIR'))
        if os.getenv('DIA_BOOKS'):
            config.books = parse_books(os.getenv('DIA_BOOKS'))
        if os.getenv('DIA_TIMEOUT'):
            config.timeout = float(os.getenv('DIA_TIMEOUT'))
        if os.getenv('DIA_DENSITIES'):
            config.densities = parse_densities(os.getenv('DIA_DENSITIES'))
        if os.getenv('DIA_MAX_WORKERS'):
            config.max_workers = int(os.getenv('DIA_MAX_WORKERS'))
        if os.getenv('DIA_WAIT_TIMEOUT'):
            config.wait_timeout = float(os.getenv('DIA_WAIT_TIMEOUT'))
        return config

    def validate(self) -> List[str]:
        """Return a list of configuration errors, empty when valid."""
        errors = []
        if not self.dia_path:
            errors.append("DIA_PATH is not set")
        if not self.books:
            errors.append("DIA_BOOKS is not set")
        for prefix, root in self.books.items():
            if not root.is_dir():
                errors.append(f"Book {prefix!r} root is not a directory: {root}")
        if not self.densities:
            errors.append("At least one pixel density is required")
        elif any(d <= 0 for d in self.densities):
            errors.append(f"Pixel densities must be positive: {self.densities}")
        elif self.densities != sorted(set(self.densities)):
            errors.append(f"Pixel densities must be unique and ascending: {self.densities}")
        if self.timeout is not None and self.timeout <= 0:
            errors.append(f"Timeout must be positive: {self.timeout}")
        if self.max_workers <= 0:
            errors.append(f"max_workers must be positive: {self.max_workers}")
        return errors

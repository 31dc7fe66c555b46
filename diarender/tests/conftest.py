"""
Pytest fixtures for diarender tests.
"""

import os
import threading
import time
from unittest.mock import MagicMock

import pytest

SOURCE_MTIME_MS = 1_700_000_000_000


class FakeDia:
    """
    Stands in for the dia binary behind sh.Command.

    Writes a white PNG at the requested size (keeping a 2:1 aspect ratio
    when only one dimension is given) and reports the export on stderr the
    way dia 0.97 does.
    """

    def __init__(self, delay: float = 0.0, natural_size=(100, 50)):
        self.delay = delay
        self.natural_size = natural_size
        self.calls = []
        self._lock = threading.Lock()

    @property
    def call_count(self) -> int:
        with self._lock:
            return len(self.calls)

    def __call__(self, *args, **kwargs):
        from PIL import Image

        with self._lock:
            self.calls.append(args)
        if self.delay:
            time.sleep(self.delay)

        export = next(a for a in args if a.startswith('--export='))[len('--export='):]
        size = next((a[len('--size='):] for a in args if a.startswith('--size=')), None)
        source = args[-1]

        Image.new('RGB', self._size(size), 'white').save(export, format='PNG')

        proc = MagicMock()
        proc.exit_code = 0
        proc.stdout = b''
        proc.stderr = (
            'Xlib:  extension "RANDR" missing on display ":0".\n'
            f"{source} --> {export}\n"
        ).encode()
        return proc

    def _size(self, size):
        natural_width, natural_height = self.natural_size
        if size is None:
            return natural_width, natural_height
        width, height = size.split('x')
        if width and height:
            return int(width), int(height)
        if width:
            return int(width), max(1, int(width) * natural_height // natural_width)
        return max(1, int(height) * natural_width // natural_height), int(height)


@pytest.fixture
def logger():
    """Fixture providing a logger."""
    import logging
    return logging.getLogger('test')


@pytest.fixture
def book_root(tmp_path):
    """Fixture providing a book with two diagrams sharing a file name."""
    root = tmp_path / 'books' / 'docs'
    for rel in ('a/diagram.dia', 'b/diagram.dia'):
        file_path = root / rel
        file_path.parent.mkdir(parents=True, exist_ok=True)
        file_path.write_bytes(b'<?xml version="1.0"?><dia:diagram/>')
        mtime_ns = SOURCE_MTIME_MS * 1_000_000
        os.utime(file_path, ns=(mtime_ns, mtime_ns))
    return root


@pytest.fixture
def store(book_root):
    """Fixture providing a source store with the '/docs' book."""
    from diarender.sources import BookSourceStore
    return BookSourceStore({'/docs': book_root})


@pytest.fixture
def cache(tmp_path):
    """Fixture providing an empty export cache."""
    from diarender.cache_store import CacheStore
    return CacheStore(tmp_path / 'cache')


@pytest.fixture
def fake_dia(mocker):
    """Fixture patching sh.Command so dia runs in-process."""
    fake = FakeDia()
    mocker.patch('diarender.converter.Command', return_value=fake)
    return fake


@pytest.fixture
def converter(logger):
    """Fixture providing a converter that verifies dia's stderr."""
    from diarender.converter import DiaConverter
    from diarender.success_criteria import VerifyDiagnosticText
    return DiaConverter('/usr/bin/dia', success_criterion=VerifyDiagnosticText(), logger=logger)


@pytest.fixture
def renderer(store, cache, converter, logger):
    """Fixture providing a renderer over the '/docs' book."""
    from diarender.renderer import DiagramRenderer
    with DiagramRenderer(store, cache, converter, logger=logger) as r:
        yield r


@pytest.fixture
def source(store):
    """Fixture providing the '/docs/a/diagram.dia' source."""
    return store.resolve('/docs', '/a/diagram.dia')


@pytest.fixture
def slow_dia(mocker):
    """Fixture patching sh.Command with a dia that takes a while to export."""
    fake = FakeDia(delay=0.2)
    mocker.patch('diarender.converter.Command', return_value=fake)
    return fake


@pytest.fixture
def source_mtime_ms():
    """Fixture providing the last modified time given to every source."""
    return SOURCE_MTIME_MS


@pytest.fixture
def out_dir(tmp_path):
    """Fixture providing an empty output directory."""
    path = tmp_path / 'out'
    path.mkdir()
    return path

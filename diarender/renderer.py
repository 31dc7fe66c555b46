"""
DiagramRenderer - Exports diagrams at every pixel density, once per key.
"""

import concurrent.futures
import logging
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from .cache_keys import CacheKey, decode_address, derive_key, encode_address
from .cache_store import CacheStore
from .converter import DiaConverter, DiaExport, read_export
from .exceptions import SourceNotFound
from .render_config import PIXEL_DENSITIES, RenderConfig
from .single_flight import SingleFlight
from .sources import DIA_EXTENSION, BookSourceStore, SourceArtifact
from .staleness import file_modified_ms, is_stale

# Used when neither width nor height is requested
DEFAULT_WIDTH = 200

IMAGES_DIR = Path(__file__).parent / 'images'
PLACEHOLDER_NAME = 'broken-chain-640x480.png'
PLACEHOLDER_PATH = '/diarender/images/' + PLACEHOLDER_NAME
PLACEHOLDER_WIDTH = 640
PLACEHOLDER_HEIGHT = 480


def placeholder_size(width: int, height: int) -> Tuple[int, int]:
    """
    Display size of the missing-diagram image.

    A single requested dimension scales the placeholder proportionally;
    0 means unspecified.
    """
    if not width and not height:
        return PLACEHOLDER_WIDTH, PLACEHOLDER_HEIGHT
    return (
        width or PLACEHOLDER_WIDTH * height // PLACEHOLDER_HEIGHT,
        height or PLACEHOLDER_HEIGHT * width // PLACEHOLDER_WIDTH,
    )


def _scaled(value: int, density: int) -> Optional[int]:
    return None if value == 0 else value * density


class DiagramRenderer:
    """
    Renders diagrams through the export cache.

    Each (diagram, size) key is exported by at most one thread at a time;
    density variants of one request are exported concurrently.
    """

    def __init__(
        self,
        store: BookSourceStore,
        cache: CacheStore,
        converter: DiaConverter,
        densities: Sequence[int] = PIXEL_DENSITIES,
        max_workers: int = 8,
        coordinator: Optional[SingleFlight] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize renderer.

        Args:
            store: Resolves book paths to diagram files
            cache: Export cache layout
            converter: Runs dia
            densities: Pixel densities, lowest first; the first is the default
            max_workers: Threads used for density variants
            coordinator: Per-key coordinator (default: a new SingleFlight)
            logger: Optional logger instance
        """
        self.store = store
        self.cache = cache
        self.converter = converter
        self.densities = list(densities)
        self.coordinator = coordinator or SingleFlight(logger=logger)
        self.logger = logger or logging.getLogger(__name__)
        self._executor = concurrent.futures.ThreadPoolExecutor(
            max_workers=max_workers,
            thread_name_prefix='diarender'
        )

    @classmethod
    def from_config(
        cls,
        config: RenderConfig,
        logger: Optional[logging.Logger] = None
    ) -> 'DiagramRenderer':
        """Build a renderer and its collaborators from configuration."""
        return cls(
            store=BookSourceStore(config.books, logger=logger),
            cache=CacheStore(config.cache_dir),
            converter=DiaConverter(config.dia_path, timeout=config.timeout, logger=logger),
            densities=config.densities,
            max_workers=config.max_workers,
            coordinator=SingleFlight(wait_timeout=config.wait_timeout, logger=logger),
            logger=logger,
        )

    def close(self) -> None:
        self._executor.shutdown(wait=True)

    def __enter__(self) -> 'DiagramRenderer':
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def export(
        self,
        source: SourceArtifact,
        width: Optional[int] = None,
        height: Optional[int] = None
    ) -> DiaExport:
        """
        Return an up to date export of source at the requested size.

        Raises:
            ConversionError: If dia fails
            RenderInterrupted: If waiting on another thread's export timed out
        """
        key = derive_key(source.book, source.path, width, height)
        output_path = self.cache.prepare(key)
        return self.coordinator.do(key, lambda: self._refresh(source, key, output_path))

    def _refresh(self, source: SourceArtifact, key: CacheKey, output_path) -> DiaExport:
        """Re-export when missing or timestamps indicate it needs recreated."""
        if not is_stale(source.last_modified, file_modified_ms(output_path)):
            try:
                return read_export(output_path)
            except OSError as e:
                self.logger.warning(f"Unreadable cached export {output_path}: {e}")

        self.logger.debug(f"Exporting {key.book}{key.path}{key.dimensions}")
        try:
            return self.converter.convert(source, output_path, key.width, key.height)
        except Exception as e:
            self.logger.error(f"Export failed for {key.book}{key.path}{key.dimensions}: {e}")
            raise

    def export_path(
        self,
        book: str,
        path: str,
        width: Optional[int] = None,
        height: Optional[int] = None,
        strict: bool = False
    ) -> Optional[DiaExport]:
        """
        Export one size of a book diagram.

        Returns None when the diagram does not exist, or raises
        SourceNotFound instead when strict is True.
        """
        source = self.store.resolve(book, path)
        if source is None:
            if strict:
                raise SourceNotFound(book, path)
            return None
        return self.export(source, width, height)

    def export_address(self, address: str) -> Optional[DiaExport]:
        """
        Export the diagram named by an export address.

        Returns:
            DiaExport, or None when the address is malformed or the diagram
            cannot be found
        """
        decoded = decode_address(address)
        if decoded is None:
            return None
        combined_path, width, height = decoded

        book = self.store.find_book(combined_path)
        if book is None:
            return None
        return self.export_path(book, combined_path[len(book):] + DIA_EXTENSION, width, height)

    def render_all(
        self,
        book: str,
        path: str,
        width: int = 0,
        height: int = 0,
        densities: Optional[Sequence[int]] = None
    ) -> Optional[List[DiaExport]]:
        """
        Export a diagram at every pixel density concurrently.

        Args:
            book: Book prefix
            path: Diagram path inside the book
            width: Base width, 0 for unspecified
            height: Base height, 0 for unspecified
            densities: Pixel densities (default: the renderer's densities)

        Returns:
            One DiaExport per density in density order, or None when the
            diagram does not exist

        Raises:
            ConversionError: The first failure in density order, raised once
                every variant has finished
        """
        if width == 0 and height == 0:
            width = DEFAULT_WIDTH
        densities = list(self.densities if densities is None else densities)

        source = self.store.resolve(book, path)
        if source is None:
            self.logger.info(f"Diagram not found, using placeholder: {book}{path}")
            return None

        futures = [
            self._executor.submit(self.export, source, _scaled(width, d), _scaled(height, d))
            for d in densities
        ]
        concurrent.futures.wait(futures)
        return [f.result() for f in futures]

    def variant_address(self, book: str, path: str, width: int, height: int, density: int) -> str:
        """Export address of one density variant of a request."""
        if width == 0 and height == 0:
            width = DEFAULT_WIDTH
        key = derive_key(book, path, _scaled(width, density), _scaled(height, density))
        return encode_address(key)

    def display_size(
        self,
        exports: Optional[List[DiaExport]],
        width: int,
        height: int,
        densities: Optional[Sequence[int]] = None
    ) -> Tuple[int, int]:
        """Size to display the default density at, or the placeholder's size."""
        if not exports:
            if width == 0 and height == 0:
                width = DEFAULT_WIDTH
            return placeholder_size(width, height)
        density = (self.densities if densities is None else densities)[0]
        return exports[0].width // density, exports[0].height // density

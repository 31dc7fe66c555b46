"""
Pregenerator - Warms the export cache for every diagram in a set of books.
"""

import logging
from typing import Iterator, List, Optional, Tuple

from .exceptions import RenderError
from .renderer import DiagramRenderer
from .render_stats import RenderStats


class Pregenerator:
    """
    Exports every diagram of the selected books at one base size.

    Diagrams are processed one after another; the density variants of each
    diagram are exported concurrently by the renderer.
    """

    def __init__(
        self,
        renderer: DiagramRenderer,
        width: int = 0,
        height: int = 0,
        dry_run: bool = False,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize pre-generator.

        Args:
            renderer: Renderer to export through
            width: Base width, 0 for unspecified
            height: Base height, 0 for unspecified
            dry_run: If True, list diagrams without exporting them
            logger: Optional logger instance
        """
        self.renderer = renderer
        self.width = width
        self.height = height
        self.dry_run = dry_run
        self.logger = logger or logging.getLogger(__name__)
        self.stats = RenderStats()
        self._stop_requested = False

    def stop(self) -> None:
        """Request the run to stop after the current diagram."""
        self._stop_requested = True

    def diagrams(self, books: Optional[List[str]] = None) -> Iterator[Tuple[str, str]]:
        """Yield (book, path) for every diagram in the selected books."""
        store = self.renderer.store
        for book in sorted(store.books):
            if books and book not in books:
                continue
            for path in store.iter_diagrams(book):
                yield book, path

    def run(self, books: Optional[List[str]] = None, limit: Optional[int] = None) -> RenderStats:
        """
        Export every diagram found.

        Args:
            books: Optional list of book prefixes to process
            limit: Optional limit on the number of diagrams

        Returns:
            RenderStats with results
        """
        todo = list(self.diagrams(books))
        if limit:
            todo = todo[:limit]
        self.stats = RenderStats(total_to_process=len(todo))

        mode_str = " [DRY RUN]" if self.dry_run else ""
        self.logger.info(f"Starting pre-render: {len(todo)} diagrams{mode_str}")

        for book, path in todo:
            if self._stop_requested:
                self.logger.info("Stop requested, halting pre-render")
                break
            self._process(book, path)

        self.logger.info(
            f"Pre-render complete: {self.stats.processed} exported, "
            f"{self.stats.missing} missing, {self.stats.errors} errors "
            f"({self.stats.elapsed_seconds:.1f}s)"
        )
        return self.stats

    def _process(self, book: str, path: str) -> None:
        if self.dry_run:
            self.logger.info(f"[DRY RUN] Would export: {book}{path}")
            self.stats.processed += 1
            return

        try:
            exports = self.renderer.render_all(book, path, self.width, self.height)
        except RenderError as e:
            error_msg = f"Error exporting {book}{path}: {e}"
            self.logger.error(error_msg)
            self.stats.errors += 1
            self.stats.error_details.append(error_msg)
            return

        if exports is None:
            self.logger.warning(f"Diagram vanished: {book}{path}")
            self.stats.missing += 1
            return

        self.stats.processed += 1
        self.stats.variants += len(exports)
        self.logger.info(
            f"Exported: {book}{path} ({len(exports)} densities) "
            f"[{self.stats.completed_count}/{self.stats.total_to_process}]"
        )

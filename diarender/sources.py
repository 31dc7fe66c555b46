"""
Source resolution - Maps book-qualified diagram paths to local files.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterator, Optional

from .staleness import file_modified_ms

DIA_EXTENSION = '.dia'


@dataclass(frozen=True)
class SourceArtifact:
    """
    A diagram source file.

    Attributes:
        book: Book prefix the diagram belongs to (e.g., '/docs')
        path: Path of the diagram inside the book (e.g., '/net/layout.dia')
        file_path: Readable local file handed to dia
        last_modified: Milliseconds since the epoch, 0 when unknown
    """
    book: str
    path: str
    file_path: Path
    last_modified: int = 0


def is_diagram(path: str) -> bool:
    """True when path names a .dia file, ignoring case."""
    return path.lower().endswith(DIA_EXTENSION)


def normalize_book(book: str) -> str:
    """Canonical book prefix: 'docs/' -> '/docs', '/' or '' -> ''."""
    book = '/' + book.strip('/')
    return '' if book == '/' else book


class BookSourceStore:
    """
    Resolves diagrams from books stored on the local filesystem.

    Each book is a prefix such as '/docs' mapped to a root directory.
    """

    def __init__(self, books: Dict[str, Path], logger: Optional[logging.Logger] = None):
        """
        Initialize store.

        Args:
            books: Mapping of book prefix to root directory
            logger: Optional logger instance
        """
        self.books = {normalize_book(k): Path(v) for k, v in books.items()}
        self.logger = logger or logging.getLogger(__name__)

    def is_available(self, book: str) -> bool:
        """True when the book is configured and its root directory exists."""
        root = self.books.get(normalize_book(book))
        return root is not None and root.is_dir()

    def find_book(self, combined_path: str) -> Optional[str]:
        """Return the longest book prefix that owns combined_path."""
        best = None
        for book in self.books:
            if combined_path == book or combined_path.startswith(book + '/'):
                if best is None or len(book) > len(best):
                    best = book
        return best

    def resolve(self, book: str, path: str) -> Optional[SourceArtifact]:
        """
        Resolve a diagram inside a book.

        Returns:
            SourceArtifact, or None if the book is unavailable, the path
            escapes the book or is not a .dia file, or the file does not exist
        """
        book = normalize_book(book)
        if not self.is_available(book):
            self.logger.debug(f"Book not available: {book!r}")
            return None

        if not path.startswith('/'):
            path = '/' + path
        if '..' in path.split('/'):
            self.logger.warning(f"Rejected path outside of book: {book}{path}")
            return None
        if not is_diagram(path):
            self.logger.debug(f"Not a diagram: {book}{path}")
            return None

        file_path = self.books[book] / path.lstrip('/')
        if not file_path.is_file():
            self.logger.debug(f"Diagram not found: {file_path}")
            return None

        return SourceArtifact(
            book=book,
            path=path,
            file_path=file_path,
            last_modified=file_modified_ms(file_path) or 0,
        )

    def iter_diagrams(self, book: str) -> Iterator[str]:
        """Yield every diagram path in a book, sorted."""
        book = normalize_book(book)
        if not self.is_available(book):
            return
        root = self.books[book]
        found = []
        for dirpath, _, filenames in os.walk(root):
            for name in filenames:
                if is_diagram(name):
                    rel = Path(dirpath, name).relative_to(root)
                    found.append('/' + rel.as_posix())
        yield from sorted(found)

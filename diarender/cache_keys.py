"""
Cache keys for diagram exports and the address scheme used to fetch them.

An address looks like '/docs/net/layout-400x_.png': the book-qualified
diagram path without its extension, then '-', the width, 'x', the height
and '.png'. '_' stands for an unspecified dimension.
"""

from dataclasses import dataclass
from typing import Optional, Tuple
from urllib.parse import quote

from .converter import PNG_EXTENSION
from .sources import DIA_EXTENSION, is_diagram, normalize_book

SIZE_SEPARATOR = '-'
DIMENSION_SEPARATOR = 'x'
EMPTY_SIZE = '_'


def strip_extension(path: str) -> str:
    """Remove a trailing .dia extension, ignoring case."""
    if path.lower().endswith(DIA_EXTENSION):
        return path[:-len(DIA_EXTENSION)]
    return path


def _format_dimension(value: Optional[int]) -> str:
    return EMPTY_SIZE if value is None else str(value)


def _parse_dimension(text: str) -> Tuple[bool, Optional[int]]:
    """Return (valid, value) for one encoded dimension."""
    if text == EMPTY_SIZE:
        return True, None
    if not (text.isascii() and text.isdigit()):
        return False, None
    value = int(text)
    if value <= 0:
        return False, None
    return True, value


@dataclass(frozen=True)
class CacheKey:
    """
    Identifies one export of one diagram at one requested size.

    Attributes:
        book: Book prefix (e.g., '/docs', '' for the root book)
        path: Diagram path inside the book, extension stripped
        width: Requested width, None for unspecified
        height: Requested height, None for unspecified
    """
    book: str
    path: str
    width: Optional[int] = None
    height: Optional[int] = None

    @property
    def dimensions(self) -> str:
        return (
            SIZE_SEPARATOR
            + _format_dimension(self.width)
            + DIMENSION_SEPARATOR
            + _format_dimension(self.height)
        )

    @property
    def relative_path(self) -> str:
        """
        Location of the export below the cache directory.

        The book prefix is quoted into a single directory so that a nested
        book never shares files with its parent.
        """
        book_dir = quote(self.book or '/', safe='')
        return f"{book_dir}/{self.path.lstrip('/')}{self.dimensions}{PNG_EXTENSION}"


def derive_key(
    book: str,
    path: str,
    width: Optional[int] = None,
    height: Optional[int] = None
) -> CacheKey:
    """
    Build the cache key for a diagram export.

    Raises:
        ValueError: If a dimension is given but not positive, or the path
            contains a '..' segment or does not end in .dia
    """
    for name, value in (('width', width), ('height', height)):
        if value is not None and value <= 0:
            raise ValueError(f"{name} must be positive, got {value}")
    if not path.startswith('/'):
        path = '/' + path
    if '..' in path.split('/'):
        raise ValueError(f"path escapes its book: {path}")
    if not is_diagram(path):
        raise ValueError(f"not a {DIA_EXTENSION} diagram: {path}")
    return CacheKey(book=normalize_book(book), path=strip_extension(path), width=width, height=height)


def encode_address(key: CacheKey) -> str:
    """Address of an export, relative to the export endpoint."""
    return f"{key.book}{key.path}{key.dimensions}{PNG_EXTENSION}"


def decode_address(address: str) -> Optional[Tuple[str, Optional[int], Optional[int]]]:
    """
    Parse an export address.

    Returns:
        Tuple of (combined diagram path without extension, width, height),
        or None when the address is malformed or names neither dimension
    """
    if not address or not address.startswith('/') or not address.endswith(PNG_EXTENSION):
        return None
    body = address[:-len(PNG_EXTENSION)]

    dim_pos = body.rfind(DIMENSION_SEPARATOR)
    if dim_pos == -1:
        return None
    size_pos = body.rfind(SIZE_SEPARATOR, 0, dim_pos)
    if size_pos == -1:
        return None

    valid, height = _parse_dimension(body[dim_pos + 1:])
    if not valid:
        return None
    valid, width = _parse_dimension(body[size_pos + 1:dim_pos])
    if not valid:
        return None
    if width is None and height is None:
        return None

    combined_path = body[:size_pos]
    if not combined_path or combined_path == '/':
        return None
    return combined_path, width, height

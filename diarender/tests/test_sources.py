"""Tests for book source resolution."""

import pytest

from diarender.sources import BookSourceStore, normalize_book


class TestNormalizeBook:
    """Tests for normalize_book."""

    @pytest.mark.parametrize('book,expected', [
        ('/docs', '/docs'),
        ('docs/', '/docs'),
        ('/docs/api/', '/docs/api'),
        ('/', ''),
        ('', ''),
    ])
    def test_normalize(self, book, expected):
        assert normalize_book(book) == expected


class TestBookSourceStore:
    """Tests for BookSourceStore."""

    def test_is_available(self, store, tmp_path):
        """Test configured books with a root directory are available."""
        assert store.is_available('/docs')
        assert store.is_available('docs')
        assert not store.is_available('/other')

        missing = BookSourceStore({'/gone': tmp_path / 'gone'})
        assert not missing.is_available('/gone')

    def test_resolve(self, store, book_root, source_mtime_ms):
        """Test resolving an existing diagram."""
        source = store.resolve('/docs', '/a/diagram.dia')

        assert source.book == '/docs'
        assert source.path == '/a/diagram.dia'
        assert source.file_path == book_root / 'a' / 'diagram.dia'
        assert source.last_modified == source_mtime_ms

    def test_resolve_adds_leading_slash(self, store):
        assert store.resolve('docs', 'a/diagram.dia').path == '/a/diagram.dia'

    def test_resolve_missing_file(self, store):
        assert store.resolve('/docs', '/a/missing.dia') is None

    def test_resolve_directory(self, store):
        assert store.resolve('/docs', '/a') is None

    def test_resolve_rejects_other_extensions(self, store, book_root):
        """Test only .dia files resolve, whatever else sits beside them."""
        (book_root / 'a' / 'diagram').write_text('x')
        (book_root / 'a' / 'diagram.png').write_text('x')

        assert store.resolve('/docs', '/a/diagram') is None
        assert store.resolve('/docs', '/a/diagram.png') is None

    def test_resolve_unavailable_book(self, store):
        assert store.resolve('/other', '/a/diagram.dia') is None

    def test_resolve_rejects_parent_segments(self, store, book_root):
        """Test paths cannot climb out of the book root."""
        (book_root.parent / 'secret.dia').write_text('x')

        assert store.resolve('/docs', '/../secret.dia') is None
        assert store.resolve('/docs', '/a/../../secret.dia') is None

    def test_find_book_prefers_longest(self, tmp_path):
        store = BookSourceStore({'/docs': tmp_path, '/docs/api': tmp_path, '': tmp_path})

        assert store.find_book('/docs/api/net/layout') == '/docs/api'
        assert store.find_book('/docs/net/layout') == '/docs'
        assert store.find_book('/docsx/layout') == ''

    def test_find_book_none(self, store):
        """Test no book owns a path outside every prefix."""
        assert store.find_book('/other/layout') is None
        assert store.find_book('/docsx/layout') is None

    def test_iter_diagrams(self, store, book_root):
        (book_root / 'a' / 'notes.txt').write_text('not a diagram')
        (book_root / 'UPPER.DIA').write_text('x')

        assert list(store.iter_diagrams('/docs')) == [
            '/UPPER.DIA',
            '/a/diagram.dia',
            '/b/diagram.dia',
        ]

    def test_iter_diagrams_unavailable_book(self, store):
        assert list(store.iter_diagrams('/other')) == []

"""Tests for RenderConfig."""

from pathlib import Path

import pytest

from diarender.render_config import (
    LINUX_DIA_PATH,
    PIXEL_DENSITIES,
    WINDOWS_DIA_PATH,
    RenderConfig,
    default_dia_path,
    parse_books,
    parse_densities,
)

ENV_VARS = [
    'DIA_PATH', 'DIA_CACHE_DIR', 'DIA_BOOKS', 'DIA_TIMEOUT',
    'DIA_DENSITIES', 'DIA_MAX_WORKERS', 'DIA_WAIT_TIMEOUT',
]


@pytest.fixture
def clean_env(monkeypatch):
    """Fixture removing export settings from the environment."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestDefaultDiaPath:
    """Tests for default_dia_path."""

    def test_linux(self):
        assert default_dia_path('linux') == LINUX_DIA_PATH

    def test_windows(self):
        assert default_dia_path('win32') == WINDOWS_DIA_PATH


class TestParseBooks:
    """Tests for parse_books."""

    def test_pairs(self):
        books = parse_books('/docs=/srv/docs; /ops = /srv/ops ;')

        assert books == {'/docs': Path('/srv/docs'), '/ops': Path('/srv/ops')}

    def test_missing_separator(self):
        with pytest.raises(ValueError):
            parse_books('/docs')


class TestParseDensities:
    """Tests for parse_densities."""

    def test_parse(self):
        assert parse_densities('1, 2,3,') == [1, 2, 3]

    def test_invalid(self):
        with pytest.raises(ValueError):
            parse_densities('1,two')


class TestRenderConfig:
    """Tests for RenderConfig."""

    def test_defaults(self, clean_env):
        config = RenderConfig.from_env()

        assert config.timeout == 60.0
        assert config.densities == PIXEL_DENSITIES
        assert config.wait_timeout is None
        assert config.books == {}

    def test_from_env(self, clean_env, tmp_path):
        clean_env.setenv('DIA_PATH', '/opt/dia/bin/dia')
        clean_env.setenv('DIA_CACHE_DIR', str(tmp_path))
        clean_env.setenv('DIA_BOOKS', f'/docs={tmp_path}')
        clean_env.setenv('DIA_TIMEOUT', '15')
        clean_env.setenv('DIA_DENSITIES', '1,2')
        clean_env.setenv('DIA_MAX_WORKERS', '3')
        clean_env.setenv('DIA_WAIT_TIMEOUT', '2.5')

        config = RenderConfig.from_env()

        assert config.dia_path == '/opt/dia/bin/dia'
        assert config.cache_dir == tmp_path
        assert config.books == {'/docs': tmp_path}
        assert config.timeout == 15.0
        assert config.densities == [1, 2]
        assert config.max_workers == 3
        assert config.wait_timeout == 2.5

    def test_densities_default_is_a_copy(self):
        config = RenderConfig()
        config.densities.append(8)

        assert PIXEL_DENSITIES == [1, 2, 3, 4]

    def test_validate_ok(self, tmp_path):
        config = RenderConfig(books={'/docs': tmp_path})

        assert config.validate() == []

    def test_validate_errors(self, tmp_path):
        config = RenderConfig(
            dia_path='',
            books={'/docs': tmp_path / 'missing'},
            timeout=0,
            densities=[2, 1],
            max_workers=0,
        )

        errors = config.validate()

        assert "DIA_PATH is not set" in errors
        assert any('not a directory' in e for e in errors)
        assert any('ascending' in e for e in errors)
        assert any('Timeout' in e for e in errors)
        assert any('max_workers' in e for e in errors)

    def test_validate_requires_books(self):
        assert "DIA_BOOKS is not set" in RenderConfig().validate()

    def test_validate_rejects_non_positive_density(self, tmp_path):
        config = RenderConfig(books={'/docs': tmp_path}, densities=[0, 1])

        assert any('positive' in e for e in config.validate())

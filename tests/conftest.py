"""Shared pytest fixtures for all tests."""

import pytest
from pathlib import Path

from cli.config import Config
from uploader.catalog import Catalog


@pytest.fixture
def temp_config_dir(tmp_path):
    """
    Create temporary config directory.

    Args:
        tmp_path: pytest tmp_path fixture

    Returns:
        Path to temporary .thunderspear-cli directory
    """
    config_dir = tmp_path / '.thunderspear-cli'
    config_dir.mkdir()
    return config_dir


@pytest.fixture
def temp_config(temp_config_dir):
    """
    Create temporary config instance.

    Returns:
        Config instance with temp config file
    """
    return Config(temp_config_dir / 'config.json')


@pytest.fixture
def catalog_path(tmp_path):
    return tmp_path / 'catalog.json'


@pytest.fixture
def catalog(catalog_path):
    """
    Empty catalog with credentials configured.

    Returns:
        Catalog persisted at tmp_path/catalog.json
    """
    catalog = Catalog(catalog_path)
    catalog.set_token('test-token')
    catalog.set_channel('42')
    return catalog


@pytest.fixture
def make_file(tmp_path):
    """
    Factory writing a file of `size` bytes with a repeating, position-dependent pattern.

    Returns:
        Callable (name, size) -> Path
    """
    def _make(name: str, size: int) -> Path:
        path = tmp_path / name
        path.write_bytes(bytes(i % 251 for i in range(size)))
        return path

    return _make


@pytest.fixture
def make_sparse_file(tmp_path):
    """
    Factory creating a sparse file of `size` bytes without writing its content.

    Returns:
        Callable (name, size) -> Path
    """
    def _make(name: str, size: int) -> Path:
        path = tmp_path / name
        with open(path, 'wb') as f:
            f.truncate(size)
        return path

    return _make

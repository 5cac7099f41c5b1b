"""Tests for CLI configuration module."""

import json
from pathlib import Path

from cli.config import Config, default_config_path
from common.constants import (
    DEFAULT_API_BASE_URL,
    DEFAULT_RATE_LIMIT_MAX_ATTEMPTS,
    DEFAULT_REQUEST_TIMEOUT_SECONDS,
)


def test_config_creates_default_file(tmp_path):
    """Test that config file is created with defaults if missing."""
    config_path = tmp_path / '.thunderspear-cli' / 'config.json'
    config = Config(config_path)

    assert config_path.exists()

    assert config.data['timeout'] == DEFAULT_REQUEST_TIMEOUT_SECONDS
    assert config.data['rate_limit_max_attempts'] == DEFAULT_RATE_LIMIT_MAX_ATTEMPTS
    assert config.data['catalog_path'] is None
    assert 'token' not in config.data


def test_config_loads_existing_file(tmp_path):
    """Test loading existing config file merges over defaults."""
    config_path = tmp_path / '.thunderspear-cli' / 'config.json'
    config_path.parent.mkdir(parents=True)

    existing_data = {
        'api_base_url': 'http://localhost:9000/api/',
        'rate_limit_max_attempts': 5,
    }
    with open(config_path, 'w') as f:
        json.dump(existing_data, f)

    config = Config(config_path)

    assert config.get_base_url() == 'http://localhost:9000/api'
    assert config.get_rate_limit_max_attempts() == 5
    assert config.get_timeout() == DEFAULT_REQUEST_TIMEOUT_SECONDS


def test_config_unlimited_rate_limit_attempts(temp_config):
    temp_config.data['rate_limit_max_attempts'] = None
    temp_config.save()

    reloaded = Config(temp_config.config_path)
    assert reloaded.get_rate_limit_max_attempts() is None


def test_config_catalog_path(temp_config, tmp_path, monkeypatch):
    """Test catalog path falls back to the per-OS default when unset."""
    monkeypatch.setattr(Path, 'home', classmethod(lambda cls: tmp_path))
    monkeypatch.setattr('sys.platform', 'linux')
    assert temp_config.get_catalog_path() == tmp_path / '.thunderspear'

    temp_config.data['catalog_path'] = str(tmp_path / 'custom.json')
    assert temp_config.get_catalog_path() == tmp_path / 'custom.json'


def test_config_missing_base_url_uses_default(temp_config):
    temp_config.data.pop('api_base_url')

    assert temp_config.get_base_url() == DEFAULT_API_BASE_URL


def test_config_corrupted_file_recovery(tmp_path):
    """Test recovery from corrupted config file."""
    config_path = tmp_path / '.thunderspear-cli' / 'config.json'
    config_path.parent.mkdir(parents=True)

    with open(config_path, 'w') as f:
        f.write('{ invalid json content')

    config = Config(config_path)

    assert config.data['timeout'] == DEFAULT_REQUEST_TIMEOUT_SECONDS
    backup_path = config_path.with_suffix('.json.bak')
    assert backup_path.exists()


def test_default_config_path_env_override(monkeypatch, tmp_path):
    monkeypatch.setenv('THUNDERSPEAR_CONFIG', str(tmp_path / 'other.json'))

    assert default_config_path() == tmp_path / 'other.json'

"""Tests for CLI configuration module."""

import json

from cli.config import Config


def test_config_creates_default_file(tmp_path):
    """Test that config file is created with defaults if missing."""
    config_path = tmp_path / '.noteshare' / 'config.json'
    config = Config(config_path)

    assert config_path.exists()
    assert config.data['server_host'] == 'localhost'
    assert config.data['server_port'] == 8000
    assert config.data['timeout'] == 30
    assert config.data['max_retries'] == 3
    assert 'api_key' not in config.data


def test_config_loads_existing_file(tmp_path):
    config_path = tmp_path / '.noteshare' / 'config.json'
    config_path.parent.mkdir(parents=True)
    with open(config_path, 'w') as f:
        json.dump({'api_key': 'notes_test123', 'server_host': 'example.com', 'server_port': 9000}, f)

    config = Config(config_path)

    assert config.get_api_key() == 'notes_test123'
    assert config.get_base_url() == 'http://example.com:9000'
    assert config.data['timeout'] == 30


def test_config_save_and_clear_api_key(temp_config):
    assert temp_config.get_api_key() is None

    temp_config.set_api_key('notes_abc123')
    with open(temp_config.config_path, 'r') as f:
        assert json.load(f)['api_key'] == 'notes_abc123'

    temp_config.clear_api_key()
    assert temp_config.get_api_key() is None


def test_config_handles_corrupted_file(tmp_path):
    """Test recovery from corrupted config file."""
    config_path = tmp_path / '.noteshare' / 'config.json'
    config_path.parent.mkdir(parents=True)
    config_path.write_text('{ invalid json content')

    config = Config(config_path)

    assert config.data['server_port'] == 8000
    assert config_path.with_suffix('.json.bak').exists()


def test_config_get_retry_config(temp_config):
    assert temp_config.get_retry_config() == {'max_retries': 3, 'retry_backoff_multiplier': 2}

    temp_config.data['max_retries'] = 5
    assert temp_config.get_retry_config()['max_retries'] == 5


def test_directory_files_live_next_to_config(temp_config, temp_config_dir):
    assert temp_config.get_directory_path() == temp_config_dir / 'channels.json'
    assert temp_config.get_directory_marker_path() == temp_config_dir / 'channels.changed'

#!/usr/bin/env python3
# tests/test_util.py - Unit tests for util.py

import pytest
import json
import os
import tempfile
import shutil
from unittest.mock import patch
import sys

# Add src directory to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

pytest.importorskip('gi')

import util
from config import AppConfig, PunctuationStyle


@pytest.fixture
def temp_dirs():
    """Create temporary directories for testing"""
    temp_home = tempfile.mkdtemp()

    yield {
        'home': temp_home,
        'config_dir': os.path.join(temp_home, '.config', 'ibus-kotonoha'),
        'config_file': os.path.join(temp_home, '.config', 'ibus-kotonoha', 'config.json'),
    }

    # Cleanup
    shutil.rmtree(temp_home, ignore_errors=True)


class TestGetConfigData:
    """Test suite for get_config_data() function"""

    def test_no_warnings_when_config_exists_and_valid(self, temp_dirs):
        """Test that no warnings are returned when config exists and is valid"""
        os.makedirs(temp_dirs['config_dir'], exist_ok=True)
        with open(temp_dirs['config_file'], 'w', encoding='utf-8') as f:
            json.dump(util.get_default_config_data(), f)

        with patch('util.get_user_config_dir', return_value=temp_dirs['config_dir']):
            config, warnings = util.get_config_data()

        assert warnings == ""
        assert config == AppConfig()

    def test_values_are_read(self, temp_dirs):
        os.makedirs(temp_dirs['config_dir'], exist_ok=True)
        with open(temp_dirs['config_file'], 'w', encoding='utf-8') as f:
            json.dump({'general': {'punctuation_style': 'fullwidth_comma_kuten'}}, f)

        with patch('util.get_user_config_dir', return_value=temp_dirs['config_dir']):
            config, warnings = util.get_config_data()

        assert warnings == ""
        assert config.general.punctuation_style == PunctuationStyle.FULLWIDTH_COMMA_KUTEN

    def test_warning_when_config_not_found(self, temp_dirs):
        """Test that a missing config.json is written from the defaults"""
        with patch('util.get_user_config_dir', return_value=temp_dirs['config_dir']):
            config, warnings = util.get_config_data()

        assert "config.json is not found" in warnings
        assert "Writing the default config.json" in warnings
        assert config == AppConfig()
        # Verify config file was created
        assert os.path.exists(temp_dirs['config_file'])

    def test_warning_when_value_is_bad(self, temp_dirs):
        os.makedirs(temp_dirs['config_dir'], exist_ok=True)
        with open(temp_dirs['config_file'], 'w', encoding='utf-8') as f:
            json.dump({'logging_level': 'LOUD', 'general': {'symbol_style': 'fancy'}}, f)

        with patch('util.get_user_config_dir', return_value=temp_dirs['config_dir']):
            config, warnings = util.get_config_data()

        assert warnings.count('\n') == 1
        assert config == AppConfig()

    def test_each_warning_is_logged_once(self, temp_dirs, caplog):
        os.makedirs(temp_dirs['config_dir'], exist_ok=True)
        with open(temp_dirs['config_file'], 'w', encoding='utf-8') as f:
            json.dump({'logging_level': 'LOUD', 'general': {'symbol_style': 'fancy'}}, f)

        with patch('util.get_user_config_dir', return_value=temp_dirs['config_dir']):
            with caplog.at_level('WARNING'):
                _, warnings = util.get_config_data()

        logged = [r.getMessage() for r in caplog.records if r.levelname == 'WARNING']
        assert sorted(logged) == sorted(warnings.split('\n'))

    def test_json_decode_error_returns_default_config(self, temp_dirs):
        """Test that JSONDecodeError triggers fallback to default config"""
        os.makedirs(temp_dirs['config_dir'], exist_ok=True)
        with open(temp_dirs['config_file'], 'w', encoding='utf-8') as f:
            f.write("{ invalid json }")

        with patch('util.get_user_config_dir', return_value=temp_dirs['config_dir']):
            config, warnings = util.get_config_data()

        assert config == AppConfig()
        assert "could not be loaded" in warnings
        # the broken file is left alone
        with open(temp_dirs['config_file'], encoding='utf-8') as f:
            assert f.read() == "{ invalid json }"


class TestSaveConfigData:
    """Test suite for save_config_data() function"""

    def test_save_creates_directory(self, temp_dirs):
        with patch('util.get_user_config_dir', return_value=temp_dirs['config_dir']):
            assert util.save_config_data(AppConfig()) is True

        with open(temp_dirs['config_file'], encoding='utf-8') as f:
            saved = json.load(f)
        assert saved == util.get_default_config_data()

    def test_save_keeps_japanese_readable(self, temp_dirs):
        with patch('util.get_user_config_dir', return_value=temp_dirs['config_dir']):
            util.save_config_data({'romaji_table': {'rows': [{'input': 'ka', 'output': 'か'}]}})

        with open(temp_dirs['config_file'], encoding='utf-8') as f:
            assert 'か' in f.read()

    def test_save_failure(self, temp_dirs):
        # a file where the directory should be
        with open(os.path.join(temp_dirs['home'], 'blocker'), 'w') as f:
            f.write('')
        config_dir = os.path.join(temp_dirs['home'], 'blocker', 'ibus-kotonoha')

        with patch('util.get_user_config_dir', return_value=config_dir):
            assert util.save_config_data(AppConfig()) is False

    def test_config_mtime(self, temp_dirs):
        with patch('util.get_user_config_dir', return_value=temp_dirs['config_dir']):
            assert util.get_config_mtime() is None
            util.save_config_data(AppConfig())
            assert util.get_config_mtime() is not None


class TestCandidateServiceSocketPath:
    """Test suite for get_candidate_service_socket_path()"""

    def test_configured_path(self):
        config = AppConfig(candidate_service_socket='~/kotonoha.sock')

        path = util.get_candidate_service_socket_path(config)

        assert path == os.path.expanduser('~/kotonoha.sock')

    def test_default_path(self):
        with patch('util.GLib.get_user_runtime_dir', return_value='/run/user/1000'):
            path = util.get_candidate_service_socket_path(AppConfig())

        assert path == '/run/user/1000/ibus-kotonoha/candidate-service.sock'

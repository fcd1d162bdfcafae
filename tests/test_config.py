"""
Unit tests for cookbookvendor.config module
"""
import unittest
import tempfile
import os
import shutil
import json
from pathlib import Path
from unittest.mock import patch

import toml
import yaml

from cookbookvendor.config import (
    load_config,
    save_config,
    get_config_path,
    get_default_config,
    generate_default_config,
    merge_configs,
    apply_env_overrides,
    split_path_list,
    configure_logging,
    stderr_handler,
)
from cookbookvendor.exit_codes import ConfigError


class TestConfigManagement(unittest.TestCase):
    """Test configuration management functionality"""

    def setUp(self):
        """Set up test environment"""
        self.temp_dir = tempfile.mkdtemp()
        self.env = patch.dict(os.environ, {'HOME': self.temp_dir}, clear=False)
        self.env.start()
        for key in list(os.environ):
            if key.startswith('COOKBOOKVENDOR_'):
                del os.environ[key]

    def tearDown(self):
        """Clean up test environment"""
        self.env.stop()
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def _use_config_file(self, name):
        path = Path(self.temp_dir) / name
        os.environ['COOKBOOKVENDOR_CONFIG'] = str(path)
        return path

    def test_default_path_in_home(self):
        """Without an override the config lives in ~/.cookbookvendor"""
        self.assertEqual(get_config_path(), Path(self.temp_dir) / '.cookbookvendor' / 'config.json')

    def test_existing_yaml_file_is_found(self):
        """An existing YAML config is preferred over the default JSON name"""
        config_dir = Path(self.temp_dir) / '.cookbookvendor'
        config_dir.mkdir()
        (config_dir / 'config.yaml').write_text("install:\n  default_ref: main\n")
        self.assertEqual(get_config_path(), config_dir / 'config.yaml')
        self.assertEqual(load_config()['install']['default_ref'], 'main')

    def test_load_defaults_when_no_file(self):
        """Test loading defaults when no config file exists"""
        config = load_config()
        self.assertEqual(config, get_default_config())
        self.assertEqual(config['repository']['vendor_branch_prefix'], 'chef-vendor-')
        self.assertEqual(config['github']['anonymous_protocol'], 'https')

    def test_load_json_merges_with_defaults(self):
        """Partial JSON config keeps the other defaults"""
        path = self._use_config_file('config.json')
        path.write_text(json.dumps({"repository": {"default_branch": "main"}}))

        config = load_config()

        self.assertEqual(config['repository']['default_branch'], 'main')
        self.assertEqual(config['repository']['vendor_branch_prefix'], 'chef-vendor-')
        self.assertEqual(config['general']['cookbook_path'], ['~/chef-repo/cookbooks'])

    def test_load_toml(self):
        """TOML config files are supported"""
        path = self._use_config_file('config.toml')
        path.write_text('[github]\nhost = "github.example.com"\ntimeout_seconds = 5\n')

        config = load_config()

        self.assertEqual(config['github']['host'], 'github.example.com')
        self.assertEqual(config['github']['timeout_seconds'], 5)

    def test_invalid_json_raises_config_error(self):
        """A broken config file is a ConfigError, not a crash"""
        path = self._use_config_file('config.json')
        path.write_text("{not json")

        with self.assertRaises(ConfigError) as ctx:
            load_config()
        self.assertEqual(ctx.exception.exit_code, 66)

    def test_non_mapping_yaml_raises_config_error(self):
        path = self._use_config_file('config.yaml')
        path.write_text("- just\n- a list\n")

        with self.assertRaises(ConfigError):
            load_config()

    def test_save_and_reload_yaml(self):
        """Saved YAML config round-trips through load_config"""
        path = self._use_config_file('config.yaml')
        config = get_default_config()
        config['general']['cookbook_path'] = ['/srv/cookbooks', '/srv/site-cookbooks']

        self.assertEqual(save_config(config), path)

        self.assertEqual(yaml.safe_load(path.read_text())['general']['cookbook_path'][0], '/srv/cookbooks')
        self.assertEqual(load_config()['general']['cookbook_path'][1], '/srv/site-cookbooks')

    def test_save_toml(self):
        path = self._use_config_file('config.toml')
        save_config(get_default_config())
        self.assertEqual(toml.loads(path.read_text())['install']['default_ref'], 'master')

    def test_generate_default_config(self):
        """init writes the defaults once and never overwrites"""
        path, created = generate_default_config()
        self.assertTrue(created)
        self.assertTrue(path.exists())

        path.write_text(json.dumps({"install": {"default_ref": "stable"}}))
        path_again, created_again = generate_default_config()
        self.assertEqual(path_again, path)
        self.assertFalse(created_again)
        self.assertEqual(json.loads(path.read_text())['install']['default_ref'], 'stable')


class TestEnvOverrides(unittest.TestCase):
    """Test COOKBOOKVENDOR_<SECTION>_<KEY> overrides"""

    def test_string_override_with_underscored_key(self):
        config = get_default_config()
        with patch.dict(os.environ, {'COOKBOOKVENDOR_REPOSITORY_DEFAULT_BRANCH': 'main'}):
            apply_env_overrides(config)
        self.assertEqual(config['repository']['default_branch'], 'main')

    def test_boolean_and_integer_values(self):
        config = get_default_config()
        env = {
            'COOKBOOKVENDOR_REPOSITORY_USE_CURRENT_BRANCH': 'yes',
            'COOKBOOKVENDOR_GITHUB_SSH_FOR_OWN_REPOS': 'off',
            'COOKBOOKVENDOR_GITHUB_TIMEOUT_SECONDS': '10',
        }
        with patch.dict(os.environ, env):
            apply_env_overrides(config)
        self.assertIs(config['repository']['use_current_branch'], True)
        self.assertIs(config['github']['ssh_for_own_repos'], False)
        self.assertEqual(config['github']['timeout_seconds'], 10)

    def test_cookbook_path_is_split(self):
        config = get_default_config()
        with patch.dict(os.environ, {'COOKBOOKVENDOR_GENERAL_COOKBOOK_PATH': '/a:/b'}):
            apply_env_overrides(config)
        self.assertEqual(config['general']['cookbook_path'], ['/a', '/b'])

    def test_numeric_and_boolean_looking_refs_stay_strings(self):
        config = get_default_config()
        env = {
            'COOKBOOKVENDOR_INSTALL_DEFAULT_REF': '2024',
            'COOKBOOKVENDOR_REPOSITORY_DEFAULT_BRANCH': 'true',
        }
        with patch.dict(os.environ, env):
            apply_env_overrides(config)
        self.assertEqual(config['install']['default_ref'], '2024')
        self.assertEqual(config['repository']['default_branch'], 'true')

    def test_bad_values_for_typed_settings(self):
        for env_key, value in [('COOKBOOKVENDOR_GITHUB_TIMEOUT_SECONDS', 'soon'),
                               ('COOKBOOKVENDOR_GITHUB_SSH_FOR_OWN_REPOS', 'maybe')]:
            with self.subTest(env_key=env_key):
                with patch.dict(os.environ, {env_key: value}):
                    with self.assertRaises(ConfigError) as cm:
                        apply_env_overrides(get_default_config())
                self.assertIn(env_key, str(cm.exception))

    def test_unknown_keys_are_ignored(self):
        config = get_default_config()
        with patch.dict(os.environ, {'COOKBOOKVENDOR_NOPE_SETTING': 'x', 'COOKBOOKVENDOR_CONFIG': '/x'}):
            apply_env_overrides(config)
        self.assertEqual(config, get_default_config())


class TestConfigureLogging(unittest.TestCase):

    def tearDown(self):
        configure_logging(get_default_config())

    def test_format_is_applied_to_stderr_handler(self):
        config = get_default_config()
        config['logging']['format'] = '[%(name)s] %(message)s'
        configure_logging(config)
        self.assertEqual(stderr_handler.formatter._fmt, '[%(name)s] %(message)s')

    def test_invalid_format(self):
        config = get_default_config()
        config['logging']['format'] = '%(message'
        with self.assertRaises(ConfigError):
            configure_logging(config)


class TestHelpers(unittest.TestCase):

    def test_merge_configs_is_recursive(self):
        merged = merge_configs({'a': {'b': 1, 'c': 2}, 'd': 3}, {'a': {'b': 10}, 'e': 4})
        self.assertEqual(merged, {'a': {'b': 10, 'c': 2}, 'd': 3, 'e': 4})

    def test_split_path_list(self):
        self.assertEqual(split_path_list('/a::/b:'), ['/a', '/b'])
        self.assertEqual(split_path_list(''), [])


if __name__ == '__main__':
    unittest.main()

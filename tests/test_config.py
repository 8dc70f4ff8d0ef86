"""
Test suite for configuration loading.
"""

import json

import pytest

from dirseal.config import Config, create_default_config, load_config
from dirseal.errors import ConfigError


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    for name in Config.ENV_MAPPINGS:
        monkeypatch.delenv(name, raising=False)


class TestConfig:
    """Test layered configuration."""

    def test_defaults(self):
        config = Config(search_defaults=False)
        assert config.get('files.marker_extension') == '.enc'
        assert config.get('files.overwrite') is False
        assert config.get('security.secure_delete.enabled') is False
        assert config.get('output.log_level') == 'INFO'
        config.validate()

    def test_toml_file(self, tmp_path):
        path = tmp_path / "dirseal.toml"
        path.write_text('[files]\nmarker_extension = ".locked"\n')
        config = Config(str(path))
        assert config.get('files.marker_extension') == '.locked'
        assert config.get('files.overwrite') is False

    def test_yaml_file(self, tmp_path):
        path = tmp_path / "dirseal.yaml"
        path.write_text("security:\n  secure_delete:\n    enabled: true\n    passes: 3\n")
        config = Config(str(path))
        assert config.get('security.secure_delete.enabled') is True
        assert config.get('security.secure_delete.passes') == 3

    def test_json_file(self, tmp_path):
        path = tmp_path / "dirseal.json"
        path.write_text(json.dumps({'output': {'log_level': 'DEBUG'}}))
        assert Config(str(path)).get('output.log_level') == 'DEBUG'

    def test_unsupported_format(self, tmp_path):
        path = tmp_path / "dirseal.ini"
        path.write_text("[files]\n")
        with pytest.raises(ConfigError):
            Config(str(path))

    def test_invalid_file(self, tmp_path):
        path = tmp_path / "dirseal.toml"
        path.write_text("this is = = not toml")
        with pytest.raises(ConfigError):
            Config(str(path))

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError):
            Config(str(tmp_path / "missing.toml"))

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv('DIRSEAL_MARKER_EXTENSION', '.sealed')
        monkeypatch.setenv('DIRSEAL_SECURE_DELETE', 'yes')
        monkeypatch.setenv('DIRSEAL_SHRED_PASSES', '2')
        config = Config(search_defaults=False)
        assert config.get('files.marker_extension') == '.sealed'
        assert config.get('security.secure_delete.enabled') is True
        assert config.get('security.secure_delete.passes') == 2

    def test_bad_integer_environment(self, monkeypatch):
        monkeypatch.setenv('DIRSEAL_SHRED_PASSES', 'many')
        with pytest.raises(ConfigError):
            Config(search_defaults=False)

    @pytest.mark.parametrize("marker", ["", "enc", ".", "./enc", 5])
    def test_invalid_marker(self, marker):
        config = Config(search_defaults=False)
        config.set('files.marker_extension', marker)
        with pytest.raises(ConfigError):
            config.validate()

    def test_invalid_passes(self):
        config = Config(search_defaults=False)
        config['security.secure_delete.passes'] = 0
        with pytest.raises(ConfigError):
            config.validate()

    def test_invalid_log_level(self):
        config = Config(search_defaults=False)
        config.set('output.log_level', 'LOUD')
        with pytest.raises(ConfigError):
            config.validate()

    def test_dict_access(self):
        config = Config(search_defaults=False)
        config['files.overwrite'] = True
        assert config['files.overwrite'] is True
        assert 'files.marker_extension' in config
        assert 'files.nothing' not in config

    def test_to_dict_is_copy(self):
        config = Config(search_defaults=False)
        data = config.to_dict()
        data['files']['marker_extension'] = '.changed'
        assert config.get('files.marker_extension') == '.enc'


class TestDefaultConfigFile:
    """Test writing and reloading the default configuration."""

    @pytest.mark.parametrize("name", ["config.toml", "config.yaml", "config.json"])
    def test_create_and_load(self, tmp_path, name):
        path = tmp_path / name
        create_default_config(str(path))
        config = load_config(str(path))
        assert config.get('files.marker_extension') == '.enc'
        assert config.get('security.secure_delete.passes') == 1

    def test_load_config_validates(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({'files': {'marker_extension': 'enc'}}))
        with pytest.raises(ConfigError):
            load_config(str(path))

"""
Unit tests for the configuration manager.
"""

import json
import shutil
import tempfile
from pathlib import Path

import pytest
import yaml

from sortd.organization_logic.settings import CollisionPolicy
from sortd.utils.config_manager import ConfigManager
from sortd.utils.errors import ConfigurationError, ErrorKind


class TestConfigManager:
    """Test the ConfigManager class."""

    def setup_method(self):
        """Set up test fixtures."""
        self.temp_dir = Path(tempfile.mkdtemp())

        self.json_config = self.temp_dir / "config.json"
        self.yaml_config = self.temp_dir / "config.yaml"

        self.sample_config = {
            "organize": {
                "patterns": [
                    {"match": "*.txt", "target": "documents"},
                    {"glob": "*.jpg", "dest_dir": "images"},
                ]
            },
            "settings": {"collision": "skip", "backup": True},
        }

        with open(self.json_config, "w") as f:
            json.dump(self.sample_config, f)

        with open(self.yaml_config, "w") as f:
            yaml.safe_dump(self.sample_config, f)

    def teardown_method(self):
        """Clean up test fixtures."""
        shutil.rmtree(self.temp_dir)

    def write_yaml(self, data, name="custom.yaml"):
        path = self.temp_dir / name
        with open(path, "w") as f:
            yaml.safe_dump(data, f)
        return path

    def test_default_config(self):
        """Test loading default configuration."""
        config = ConfigManager().to_config()

        assert config.rules == ()
        assert config.settings.dry_run is False
        assert config.settings.create_dirs is True
        assert config.settings.backup is False
        assert config.settings.collision is CollisionPolicy.RENAME
        assert config.default_directory == "."

    @pytest.mark.parametrize("name", ["config.json", "config.yaml"])
    def test_load_from_file(self, name):
        config = ConfigManager(config_file=self.temp_dir / name).to_config()

        assert [r.target for r in config.rules] == ["documents", "images"]
        assert config.settings.collision is CollisionPolicy.SKIP
        assert config.settings.backup is True
        # Unset values keep their defaults
        assert config.settings.create_dirs is True

    def test_missing_file_uses_defaults(self):
        manager = ConfigManager(config_file=self.temp_dir / "missing.yaml")
        assert manager.to_config().rules == ()

    def test_empty_file_uses_defaults(self):
        path = self.temp_dir / "empty.yaml"
        path.write_text("")

        assert ConfigManager(config_file=path).get("settings.collision") == "rename"

    def test_invalid_yaml(self):
        path = self.temp_dir / "broken.yaml"
        path.write_text("organize: [unclosed")

        with pytest.raises(ConfigurationError):
            ConfigManager(config_file=path)

    def test_unsupported_format(self):
        path = self.temp_dir / "config.ini"
        path.write_text("[settings]")

        with pytest.raises(ConfigurationError):
            ConfigManager(config_file=path)

    def test_invalid_collision_rejected_at_load(self):
        path = self.write_yaml({"settings": {"collision": "overwrite"}})

        with pytest.raises(ConfigurationError) as exc_info:
            ConfigManager(config_file=path)

        assert "invalid collision setting" in str(exc_info.value)
        assert "overwrite" in str(exc_info.value)

    def test_pattern_without_target_rejected(self):
        path = self.write_yaml({"organize": {"patterns": [{"match": "*.txt"}]}})

        with pytest.raises(ConfigurationError) as exc_info:
            ConfigManager(config_file=path)

        assert exc_info.value.kind is ErrorKind.INVALID_RULE

    def test_non_boolean_setting_rejected(self):
        path = self.write_yaml({"settings": {"dry_run": "sometimes"}})

        with pytest.raises(ConfigurationError):
            ConfigManager(config_file=path)

    def test_invalid_log_level(self):
        path = self.write_yaml({"logging": {"level": "LOUD"}})

        with pytest.raises(ConfigurationError):
            ConfigManager(config_file=path)

    def test_non_positive_watch_interval(self):
        path = self.write_yaml({"watch": {"interval": 0}})

        with pytest.raises(ConfigurationError):
            ConfigManager(config_file=path)

    def test_environment_overrides_file(self, monkeypatch):
        monkeypatch.setenv("SORTD_SETTINGS__COLLISION", "fail")
        monkeypatch.setenv("SORTD_SETTINGS__DRY_RUN", "true")
        monkeypatch.setenv("SORTD_WATCH__INTERVAL", "2.5")

        manager = ConfigManager(config_file=self.yaml_config)
        config = manager.to_config()

        assert config.settings.collision is CollisionPolicy.FAIL
        assert config.settings.dry_run is True
        assert manager.get("watch.interval") == 2.5

    def test_log_level_shortcut(self, monkeypatch):
        monkeypatch.setenv("SORTD_LOG_LEVEL", "debug")

        assert ConfigManager().get("logging.level") == "DEBUG"

    def test_environment_ignored_when_disabled(self, monkeypatch):
        monkeypatch.setenv("SORTD_SETTINGS__COLLISION", "fail")

        config = ConfigManager(use_env=False).to_config()

        assert config.settings.collision is CollisionPolicy.RENAME

    def test_overrides_apply_last(self, monkeypatch):
        monkeypatch.setenv("SORTD_LOG_LEVEL", "ERROR")

        manager = ConfigManager(overrides={"logging.level": "WARNING"})

        assert manager.get("logging.level") == "WARNING"

    def test_get_and_set(self):
        manager = ConfigManager()

        manager.set("directories.default", "/tmp/inbox")

        assert manager.get("directories.default") == "/tmp/inbox"
        assert manager.get("no.such.key", "fallback") == "fallback"

    def test_watch_directories_merged(self):
        path = self.write_yaml(
            {
                "watch_directories": ["/a"],
                "directories": {"watch": ["/a", "/b"]},
            }
        )

        config = ConfigManager(config_file=path).to_config()

        assert config.watch_directories == ("/a", "/b")

    def test_add_rule_appends(self):
        manager = ConfigManager(config_file=self.yaml_config)

        rule = manager.add_rule({"match": "*.pdf", "target": "pdfs"})

        assert rule.target == "pdfs"
        assert [r.target for r in manager.get_rules()] == [
            "documents",
            "images",
            "pdfs",
        ]

    def test_add_invalid_rule(self):
        manager = ConfigManager()

        with pytest.raises(ConfigurationError):
            manager.add_rule({"target": "pdfs"})

        assert manager.get_rules() == []

    @pytest.mark.parametrize("name", ["saved.yaml", "saved.json"])
    def test_save_and_reload(self, name):
        manager = ConfigManager(config_file=self.yaml_config)
        manager.add_rule({"match": "*.pdf", "target": "pdfs", "prefixes": ["inv_"]})
        output = self.temp_dir / "nested" / name

        manager.save(output)
        reloaded = ConfigManager(config_file=output).to_config()

        assert reloaded.rules == manager.to_config().rules
        assert reloaded.settings == manager.to_config().settings

    def test_default_location_read_when_present(self, default_config_path):
        default_config_path.parent.mkdir(parents=True)
        shutil.copy(self.yaml_config, default_config_path)

        manager = ConfigManager()

        assert manager.config_file == default_config_path
        assert [r.target for r in manager.get_rules()] == ["documents", "images"]

    def test_save_defaults_to_default_location(self, default_config_path):
        manager = ConfigManager()
        manager.add_rule({"match": "*.pdf", "target": "pdfs"})

        saved_to = manager.save()

        assert saved_to == default_config_path
        assert [r.target for r in ConfigManager().get_rules()] == ["pdfs"]

    def test_save_leaves_out_environment_and_overrides(self, monkeypatch):
        monkeypatch.setenv("SORTD_SETTINGS__DRY_RUN", "true")
        manager = ConfigManager(
            config_file=self.yaml_config, overrides={"logging.level": "DEBUG"}
        )
        manager.add_rule({"match": "*.pdf", "target": "pdfs"})

        manager.save()

        with open(self.yaml_config) as f:
            saved = yaml.safe_load(f)
        assert "logging" not in saved
        assert "dry_run" not in saved["settings"]
        assert saved["organize"]["patterns"][-1]["target"] == "pdfs"

    def test_set_values_are_saved(self):
        manager = ConfigManager(config_file=self.yaml_config)
        manager.set("settings.create_dirs", False)

        manager.save()

        reloaded = ConfigManager(config_file=self.yaml_config).to_config()
        assert reloaded.settings.create_dirs is False

    def test_home_directory_expanded_in_directories(self, monkeypatch):
        monkeypatch.setenv("HOME", str(self.temp_dir))
        path = self.write_yaml(
            {
                "directories": {"default": "~/Downloads", "watch": ["~/Desktop"]},
                "watch_directories": ["~/Downloads"],
            }
        )

        config = ConfigManager(config_file=path).to_config()

        assert config.default_directory == str(self.temp_dir / "Downloads")
        assert config.watch_directories == (
            str(self.temp_dir / "Downloads"),
            str(self.temp_dir / "Desktop"),
        )

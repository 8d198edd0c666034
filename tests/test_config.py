"""Tests for configuration loading."""

from pathlib import Path

import pytest

from todosh.config import (
    CONFIG_ENV_VAR,
    DATA_DIR_ENV_VAR,
    Config,
    ConfigModel,
    get_config,
    load_config,
)
from todosh.exceptions import ConfigError


class TestConfigModel:
    """Tests for the config dataclass."""

    def test_defaults(self):
        config = ConfigModel()

        assert config.get_db_path() == Path("data") / "db.csv"
        assert config.get_lock_path() == Path("data") / "db.csv.lock"
        assert config.use_lock is True
        assert config.backup_on_write is False
        assert config.table_style == "modern"
        assert config.get_backup_path() == Path("data") / "backups"

    def test_backup_dir_follows_data_dir(self):
        config = ConfigModel(data_dir="elsewhere")

        assert config.get_backup_path() == Path("elsewhere") / "backups"
        assert config.get_backup_path("stamp") == Path("elsewhere") / "backups" / "db-stamp.csv"

    def test_explicit_backup_dir(self):
        config = ConfigModel(data_dir="elsewhere", backup_dir="saved")

        assert config.get_backup_path() == Path("saved")

    @pytest.mark.parametrize("value, expected", [
        (True, True), (False, False), ("yes", True), ("no", False),
        ("On", True), ("off", False), ("1", True), ("0", False),
    ])
    def test_bool_settings_are_coerced(self, value, expected):
        assert ConfigModel(use_lock=value).use_lock is expected

    @pytest.mark.parametrize("value", ["maybe", "", 2, None])
    def test_bad_bool_settings_raise(self, value):
        with pytest.raises(ConfigError, match="use_lock"):
            ConfigModel(use_lock=value)

    def test_unknown_keys_are_ignored(self):
        config = ConfigModel.from_yaml("db_file: todos.csv\ncolour: purple\n")

        assert config.db_file == "todos.csv"
        assert not hasattr(config, "colour")

    def test_empty_yaml_gives_defaults(self):
        assert ConfigModel.from_yaml("") == ConfigModel()

    def test_non_mapping_yaml_raises(self):
        with pytest.raises(ConfigError):
            ConfigModel.from_yaml("- just\n- a list\n")

    def test_unknown_table_style_falls_back(self):
        assert ConfigModel(table_style="fancy").table_style == "modern"

    def test_expands_user_paths(self):
        config = ConfigModel(data_dir="~/todosh")

        assert config.data_dir == str(Path.home() / "todosh")


class TestConfigLoading:
    """Tests for where configuration comes from."""

    def test_defaults_without_file(self):
        assert load_config() == ConfigModel()

    def test_explicit_path(self, tmp_path):
        path = tmp_path / "custom.yaml"
        path.write_text("db_file: custom.csv\n")

        assert load_config(path).db_file == "custom.csv"

    def test_env_path(self, tmp_path, monkeypatch):
        path = tmp_path / "env.yaml"
        path.write_text("table_style: rounded\n")
        monkeypatch.setenv(CONFIG_ENV_VAR, str(path))

        assert load_config().table_style == "rounded"

    def test_default_location(self, tmp_path):
        (tmp_path / "data").mkdir()
        (tmp_path / "data" / "config.yaml").write_text("no_color: true\n")

        assert load_config().no_color is True

    def test_data_dir_env_override(self, tmp_path, monkeypatch):
        path = tmp_path / "custom.yaml"
        path.write_text("data_dir: from-file\n")
        monkeypatch.setenv(DATA_DIR_ENV_VAR, str(tmp_path / "from-env"))

        assert load_config(path).data_dir == str(tmp_path / "from-env")

    def test_missing_explicit_file_raises(self, tmp_path):
        with pytest.raises(ConfigError, match="Failed to read"):
            load_config(tmp_path / "missing.yaml")

    def test_invalid_yaml_raises(self, tmp_path):
        path = tmp_path / "broken.yaml"
        path.write_text("db_file: [unclosed\n")

        with pytest.raises(ConfigError, match="Invalid config"):
            load_config(path)

    def test_get_config_caches(self):
        first = get_config()

        assert get_config() is first
        Config.reset()
        assert get_config() is not first


    def test_quoted_no_disables_lock(self, tmp_path):
        path = tmp_path / "custom.yaml"
        path.write_text('use_lock: "no"\nbackup_on_write: "yes"\n')

        config = load_config(path)

        assert config.use_lock is False
        assert config.backup_on_write is True

    def test_bad_bool_in_file_raises(self, tmp_path):
        path = tmp_path / "custom.yaml"
        path.write_text("no_color: sometimes\n")

        with pytest.raises(ConfigError, match="no_color"):
            load_config(path)

    def test_data_dir_env_moves_backups(self, tmp_path, monkeypatch):
        monkeypatch.setenv(DATA_DIR_ENV_VAR, str(tmp_path / "from-env"))

        assert load_config().get_backup_path() == tmp_path / "from-env" / "backups"

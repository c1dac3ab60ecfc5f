"""
Tests for configuration loading.
"""

import os
import pytest
import yaml

from pidgin import PidginConfig, load_config


class TestPidginConfig:
    """Test the configuration dataclass."""

    def test_defaults(self):
        config = PidginConfig()
        assert config.search_paths == [".", "examples"]
        assert config.extension == ".pg"
        assert config.max_call_depth == 1000

    def test_from_dict(self):
        config = PidginConfig.from_dict({"search_paths": ["lib"], "max_call_depth": 10})
        assert config.search_paths == ["lib"]
        assert config.max_call_depth == 10
        assert config.extension == ".pg"

    def test_single_search_path_string(self):
        assert PidginConfig.from_dict({"search_paths": "lib"}).search_paths == ["lib"]

    def test_extension_gets_dot(self):
        assert PidginConfig.from_dict({"extension": "pidgin"}).extension == ".pidgin"

    def test_unknown_key(self):
        with pytest.raises(ValueError, match="unknown configuration keys: colour"):
            PidginConfig.from_dict({"colour": "blue"})

    def test_bad_call_depth(self):
        with pytest.raises(ValueError):
            PidginConfig.from_dict({"max_call_depth": 0})

    def test_round_trip_through_yaml(self):
        config = PidginConfig(search_paths=["a", "b"], max_call_depth=5)
        data = yaml.safe_load(yaml.safe_dump(config.to_dict()))
        assert PidginConfig.from_dict(data) == config


class TestLoadConfig:
    """Test reading pidgin.yaml and PIDGIN_PATH."""

    @pytest.fixture(autouse=True)
    def clean_env(self, monkeypatch, tmp_path):
        monkeypatch.delenv("PIDGIN_PATH", raising=False)
        monkeypatch.chdir(tmp_path)

    def test_defaults_without_file(self):
        assert load_config() == PidginConfig()

    def test_reads_working_directory_file(self, tmp_path):
        (tmp_path / "pidgin.yaml").write_text("search_paths: [src]\nmax_call_depth: 100\n")
        config = load_config()
        assert config.search_paths == ["src"]
        assert config.max_call_depth == 100

    def test_explicit_path(self, tmp_path):
        path = tmp_path / "custom.yaml"
        path.write_text("extension: .pgn\n")
        assert load_config(path).extension == ".pgn"

    def test_explicit_path_missing(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "nope.yaml")

    def test_empty_file(self, tmp_path):
        (tmp_path / "pidgin.yaml").write_text("")
        assert load_config() == PidginConfig()

    def test_non_mapping(self, tmp_path):
        (tmp_path / "pidgin.yaml").write_text("- a\n- b\n")
        with pytest.raises(ValueError, match="expected mapping"):
            load_config()

    def test_environment_paths_come_first(self, monkeypatch):
        monkeypatch.setenv("PIDGIN_PATH", os.pathsep.join(["one", "two"]))
        assert load_config().search_paths == ["one", "two", ".", "examples"]

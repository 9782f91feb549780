"""
Tests for configuration loading and the layered .env loader.
"""

import json
import os
from pathlib import Path

import pytest
from pydantic import ValidationError

from showcase.core.config import (
    ShowcaseConfig,
    StoreConfig,
    clear_cache,
    get_project_config_path,
    get_user_config_path,
    load_config,
    load_layered_env,
)
from showcase.core.config.loader import apply_env_overrides, deep_merge, load_json_file
from showcase.utils import find_project_root


def write_json(path: Path, data: dict) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data))


# ==============================================================================
# Helpers
# ==============================================================================


class TestDeepMerge:
    def test_nested_dicts_merge(self):
        base = {"store": {"backend": "json", "poll_interval": 2.0}, "server": {"port": 1}}
        override = {"store": {"backend": "http"}}
        assert deep_merge(base, override) == {
            "store": {"backend": "http", "poll_interval": 2.0},
            "server": {"port": 1},
        }

    def test_base_not_mutated(self):
        base = {"store": {"backend": "json"}}
        deep_merge(base, {"store": {"backend": "http"}})
        assert base == {"store": {"backend": "json"}}

    def test_non_dict_replaces(self):
        assert deep_merge({"a": {"b": 1}}, {"a": 5}) == {"a": 5}


class TestLoadJsonFile:
    def test_missing(self, tmp_path):
        assert load_json_file(tmp_path / "nope.json") is None

    def test_invalid(self, tmp_path, caplog):
        path = tmp_path / "bad.json"
        path.write_text("{oops")
        assert load_json_file(path) is None
        assert "Failed to parse config" in caplog.text

    def test_non_object(self, tmp_path):
        path = tmp_path / "list.json"
        path.write_text("[1, 2]")
        assert load_json_file(path) is None

    def test_object(self, tmp_path):
        path = tmp_path / "ok.json"
        write_json(path, {"store": {"backend": "memory"}})
        assert load_json_file(path) == {"store": {"backend": "memory"}}


class TestEnvOverrides:
    """Test SHOWCASE_* variables."""

    def test_all_overrides(self, monkeypatch):
        monkeypatch.setenv("SHOWCASE_STORE", "HTTP")
        monkeypatch.setenv("SHOWCASE_DATA_PATH", "/data/site.json")
        monkeypatch.setenv("SHOWCASE_STORE_URL", "https://docs.test")
        monkeypatch.setenv("SHOWCASE_STORE_TOKEN", "secret")
        monkeypatch.setenv("SHOWCASE_PORT", "9000")

        result = apply_env_overrides({"store": {"poll_interval": 1.0}})

        assert result == {
            "store": {
                "poll_interval": 1.0,
                "backend": "http",
                "path": "/data/site.json",
                "base_url": "https://docs.test",
                "token": "secret",
            },
            "server": {"port": 9000},
        }

    @pytest.mark.parametrize(
        ("name", "value"),
        [
            ("SHOWCASE_STORE", "mongo"),
            ("SHOWCASE_PORT", "eighty"),
            ("SHOWCASE_PORT", "70000"),
        ],
    )
    def test_invalid_values_ignored(self, monkeypatch, caplog, name, value):
        monkeypatch.setenv(name, value)
        assert apply_env_overrides({}) == {}
        assert name in caplog.text


# ==============================================================================
# load_config
# ==============================================================================


class TestLoadConfig:
    """Test layering, path resolution and caching."""

    def test_defaults(self, tmp_path):
        config = load_config(project_dir=tmp_path, use_cache=False)
        assert config.store.backend == "json"
        assert config.store.path == tmp_path / "showcase-data.json"
        assert config.server.port == 8080

    def test_precedence(self, tmp_path, monkeypatch):
        write_json(get_user_config_path(), {"store": {"backend": "memory"}, "server": {"port": 7000}})
        write_json(get_project_config_path(tmp_path), {"server": {"port": 7100}})
        monkeypatch.setenv("SHOWCASE_STORE", "http")
        monkeypatch.setenv("SHOWCASE_STORE_URL", "https://docs.test/")

        config = load_config(project_dir=tmp_path, use_cache=False)

        assert config.store.backend == "http"
        assert config.store.base_url == "https://docs.test"
        assert config.server.port == 7100

    def test_user_config_under_xdg_home(self, tmp_path):
        assert get_user_config_path() == tmp_path / "xdg" / "showcase" / "config.json"

    def test_absolute_path_kept(self, tmp_path):
        data = tmp_path / "elsewhere" / "data.json"
        write_json(get_project_config_path(tmp_path), {"store": {"path": str(data)}})
        assert load_config(project_dir=tmp_path, use_cache=False).store.path == data

    def test_unknown_keys_ignored(self, tmp_path):
        write_json(get_project_config_path(tmp_path), {"theme": "dark"})
        assert isinstance(load_config(project_dir=tmp_path, use_cache=False), ShowcaseConfig)

    def test_invalid_values_raise(self, tmp_path):
        write_json(get_project_config_path(tmp_path), {"server": {"port": 0}})
        with pytest.raises(ValidationError):
            load_config(project_dir=tmp_path, use_cache=False)

    def test_cache(self, tmp_path):
        first = load_config(project_dir=tmp_path)
        write_json(get_project_config_path(tmp_path), {"server": {"port": 7200}})
        assert load_config(project_dir=tmp_path) is first

        clear_cache()
        assert load_config(project_dir=tmp_path).server.port == 7200


class TestStoreConfig:
    def test_blank_base_url_is_none(self):
        assert StoreConfig(base_url="/").base_url is None

    def test_poll_interval_must_be_positive(self):
        with pytest.raises(ValidationError):
            StoreConfig(poll_interval=0)


# ==============================================================================
# Layered .env
# ==============================================================================


class TestLoadLayeredEnv:
    """Test .env precedence: shell > project > user."""

    @pytest.fixture
    def env_names(self, monkeypatch):
        names = ("SHOWCASE_TEST_A", "SHOWCASE_TEST_B", "SHOWCASE_TEST_C")
        for name in names:
            # Registers each name so monkeypatch removes it afterwards
            monkeypatch.setenv(name, "")
            monkeypatch.delenv(name)
        return names

    def test_precedence(self, tmp_path, monkeypatch, env_names):
        user_env = tmp_path / "user.env"
        user_env.write_text("SHOWCASE_TEST_A=user\nSHOWCASE_TEST_B=user\nSHOWCASE_TEST_C=user\n")
        project_env = tmp_path / "project.env"
        project_env.write_text("SHOWCASE_TEST_B=project\nSHOWCASE_TEST_C=project\n")
        monkeypatch.setenv("SHOWCASE_TEST_C", "shell")

        load_layered_env(user_env_paths=[user_env], project_env_paths=[project_env])

        assert os.environ["SHOWCASE_TEST_A"] == "user"
        assert os.environ["SHOWCASE_TEST_B"] == "project"
        assert os.environ["SHOWCASE_TEST_C"] == "shell"

    def test_default_paths(self, tmp_path, env_names):
        project = tmp_path / "site"
        project.mkdir()
        (project / ".env.local").write_text("SHOWCASE_TEST_A=local\n")
        user_env = tmp_path / "xdg" / "showcase" / ".env"
        user_env.parent.mkdir(parents=True)
        user_env.write_text("SHOWCASE_TEST_B=user\n")

        load_layered_env(project_dir=project)

        assert os.environ["SHOWCASE_TEST_A"] == "local"
        assert os.environ["SHOWCASE_TEST_B"] == "user"

    def test_missing_files_are_fine(self, tmp_path, env_names):
        load_layered_env(project_dir=tmp_path / "nowhere")
        assert "SHOWCASE_TEST_A" not in os.environ


class TestFindProjectRoot:
    def test_finds_marker_upwards(self, tmp_path):
        (tmp_path / ".showcase.json").write_text("{}")
        nested = tmp_path / "a" / "b"
        nested.mkdir(parents=True)
        assert find_project_root(nested) == tmp_path.resolve()

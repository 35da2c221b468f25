"""Tests for configuration loading."""

from pathlib import Path

import pytest

from readmevalidation.config import CONFIG_ENV_VAR, CONFIG_FILENAME, ValidatorConfig


@pytest.fixture(autouse=True)
def isolated_cwd(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)
    return tmp_path


def test_defaults():
    config = ValidatorConfig.default()

    assert config.registry_dir == Path("registry")
    assert config.icons_dir == Path(".icons")
    assert config.max_workers == 4
    assert config.verbose is False


def test_icons_dir_follows_registry_dir():
    config = ValidatorConfig(registry_dir="/repo/registry")
    assert config.icons_dir == Path("/repo/.icons")

    config = ValidatorConfig(registry_dir="/repo/registry", icons_dir="/shared/icons")
    assert config.icons_dir == Path("/shared/icons")


def test_invalid_worker_count():
    with pytest.raises(ValueError):
        ValidatorConfig(max_workers=0)


def test_from_file(tmp_path):
    path = tmp_path / "custom.yaml"
    path.write_text("registry_dir: /repo/registry\nmax_workers: 2\nverbose: true\n")

    config = ValidatorConfig.from_file(path)

    assert config.registry_dir == Path("/repo/registry")
    assert config.icons_dir == Path("/repo/.icons")
    assert config.max_workers == 2
    assert config.verbose is True


def test_from_empty_file(tmp_path):
    path = tmp_path / "empty.yaml"
    path.write_text("")
    assert ValidatorConfig.from_file(path) == ValidatorConfig.default()


def test_load_without_config():
    assert ValidatorConfig.load() == ValidatorConfig.default()


def test_load_from_env(tmp_path, monkeypatch):
    path = tmp_path / "ci.yaml"
    path.write_text("max_workers: 8\n")
    monkeypatch.setenv(CONFIG_ENV_VAR, str(path))

    assert ValidatorConfig.load().max_workers == 8


def test_local_file_wins_over_env(tmp_path, monkeypatch):
    (tmp_path / CONFIG_FILENAME).write_text("max_workers: 3\n")
    env_path = tmp_path / "ci.yaml"
    env_path.write_text("max_workers: 8\n")
    monkeypatch.setenv(CONFIG_ENV_VAR, str(env_path))

    assert ValidatorConfig.load().max_workers == 3

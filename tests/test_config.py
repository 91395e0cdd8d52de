import pytest

from modgraph.errors import ConfigError
from modgraph.utils.config import config


def write_config(tmp_path, text):
    path = tmp_path / ".modgraph.yaml"
    path.write_text(text, encoding="utf-8")
    return path


def test_defaults_without_a_file(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("MODGRAPH_CONFIG", raising=False)

    assert config.namespace_policy == "suppress"
    assert config.max_cycles == 100
    assert config.workers == 1
    assert ".ts" in config.extensions
    assert config.log_file is None


def test_values_from_yaml(tmp_path):
    path = write_config(tmp_path, (
        "analysis:\n"
        "  namespace_policy: report\n"
        "  entry_points: ['src/index.ts']\n"
        "  workers: 4\n"
        "resolution:\n"
        "  extensions: ['.ts']\n"
    ))

    config.load(path)

    assert config.namespace_policy == "report"
    assert config.entry_points == ["src/index.ts"]
    assert config.workers == 4
    assert config.extensions == [".ts"]
    # Untouched sections fall back to defaults
    assert config.max_cycles == 100


def test_file_found_in_working_directory(tmp_path, monkeypatch):
    write_config(tmp_path, "analysis:\n  workers: 3\n")
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("MODGRAPH_CONFIG", raising=False)

    config.load()

    assert config.workers == 3


def test_env_var_points_at_config(tmp_path, monkeypatch):
    path = tmp_path / "custom.yaml"
    path.write_text("analysis:\n  max_cycles: 5\n", encoding="utf-8")
    monkeypatch.setenv("MODGRAPH_CONFIG", str(path))

    config.load()

    assert config.max_cycles == 5


def test_log_level_from_environment(tmp_path, monkeypatch):
    path = write_config(tmp_path, "logging:\n  level: WARNING\n")
    monkeypatch.setenv("MODGRAPH_LOG_LEVEL", "DEBUG")

    config.load(path)

    assert config.log_level == "DEBUG"


def test_unknown_namespace_policy_raises(tmp_path):
    config.load(write_config(tmp_path, "analysis:\n  namespace_policy: maybe\n"))

    with pytest.raises(ConfigError):
        config.namespace_policy


def test_workers_below_one_raise(tmp_path):
    config.load(write_config(tmp_path, "analysis:\n  workers: 0\n"))

    with pytest.raises(ConfigError):
        config.workers


def test_top_level_must_be_mapping(tmp_path):
    with pytest.raises(ConfigError):
        config.load(write_config(tmp_path, "- just\n- a list\n"))

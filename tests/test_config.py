"""Tests for generator settings."""

import tempfile
from pathlib import Path

import pytest
import yaml

from abigen.config import SourceType, load_settings
from abigen.errors import ConfigError


def _write_config(data) -> str:
    tmpdir = tempfile.mkdtemp()
    path = Path(tmpdir) / "abigen.yaml"
    path.write_text(yaml.dump(data))
    return str(path)


def test_defaults_without_file(monkeypatch):
    for name in ("ABIGEN_OUTPUT_DIR", "ABIGEN_LOG_LEVEL", "ABIGEN_HTTP_TIMEOUT"):
        monkeypatch.delenv(name, raising=False)
    settings = load_settings()
    assert settings.default_output_dir == "./generated"
    assert settings.write_ir is False
    assert settings.http_timeout == 30.0
    assert settings.log_level == "INFO"
    assert settings.sources == []


def test_load_sources(monkeypatch):
    monkeypatch.delenv("ABIGEN_OUTPUT_DIR", raising=False)
    path = _write_config(
        {
            "default_output_dir": "out",
            "write_ir": True,
            "log_level": "debug",
            "sources": [
                {"type": "file", "path": "schemas/nft.xml"},
                {"type": "url", "path": "https://example.org/abi.xml", "output_dir": "out/remote"},
                "https://example.org/other.xml",
            ],
        }
    )
    settings = load_settings(path)
    assert settings.write_ir is True
    assert settings.log_level == "DEBUG"
    assert [s.type for s in settings.sources] == [SourceType.FILE, SourceType.URL, SourceType.URL]
    assert settings.output_dir_for(settings.sources[0]) == "out"
    assert settings.output_dir_for(settings.sources[1]) == "out/remote"


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("ABIGEN_OUTPUT_DIR", "/tmp/bindings")
    monkeypatch.setenv("ABIGEN_LOG_LEVEL", "warning")
    monkeypatch.setenv("ABIGEN_HTTP_TIMEOUT", "5")
    settings = load_settings(_write_config({"default_output_dir": "out", "http_timeout": 60}))
    assert settings.default_output_dir == "/tmp/bindings"
    assert settings.log_level == "WARNING"
    assert settings.http_timeout == 5.0


def test_invalid_configs():
    with pytest.raises(ConfigError):
        load_settings(_write_config({"sources": [{"type": "ftp", "path": "x"}]}))
    with pytest.raises(ConfigError):
        load_settings(_write_config({"sources": [{"type": "file"}]}))
    with pytest.raises(ConfigError):
        load_settings(_write_config({"http_timeout": "soon"}))
    with pytest.raises(ConfigError):
        load_settings(_write_config(["not", "a", "mapping"]))
    with pytest.raises(ConfigError):
        load_settings("/nonexistent/abigen.yaml")


def test_bad_env_timeout(monkeypatch):
    monkeypatch.setenv("ABIGEN_HTTP_TIMEOUT", "never")
    with pytest.raises(ConfigError):
        load_settings()

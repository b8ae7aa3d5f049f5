"""Generator settings, loaded from YAML with environment overrides.

Example ``abigen.yaml``::

    default_output_dir: ./generated
    write_ir: true
    sources:
      - type: file
        path: schemas/nft.xml
      - type: url
        path: https://example.org/abi/jettons.xml
        output_dir: ./generated/jettons
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

import yaml

from abigen.errors import ConfigError


class SourceType(Enum):
    FILE = "file"
    URL = "url"


@dataclass
class SchemaSource:
    """One schema to generate bindings for."""

    type: SourceType
    path: str
    output_dir: str | None = None  # Defaults to the settings' default_output_dir


@dataclass
class GeneratorSettings:
    default_output_dir: str = "./generated"
    write_ir: bool = False
    http_timeout: float = 30.0
    log_level: str = "INFO"
    sources: list[SchemaSource] = field(default_factory=list)

    def output_dir_for(self, source: SchemaSource) -> str:
        return source.output_dir or self.default_output_dir


def load_settings(path: str | Path | None = None) -> GeneratorSettings:
    """Load settings from a YAML (or JSON) file, then apply env overrides.

    Without ``path`` only defaults and environment variables apply.
    """
    data: dict = {}
    if path is not None:
        try:
            with open(path) as f:
                data = yaml.safe_load(f) or {}
        except OSError as exc:
            raise ConfigError(f"Cannot read config {path}: {exc}") from exc
        except yaml.YAMLError as exc:
            raise ConfigError(f"Invalid YAML in {path}: {exc}") from exc
        if not isinstance(data, dict):
            raise ConfigError(f"Config {path} must be a mapping")

    settings = GeneratorSettings(
        default_output_dir=str(data.get("default_output_dir", "./generated")),
        write_ir=bool(data.get("write_ir", False)),
        http_timeout=_as_float(data.get("http_timeout", 30.0), "http_timeout"),
        log_level=str(data.get("log_level", "INFO")).upper(),
        sources=[_parse_source(item) for item in data.get("sources", []) or []],
    )
    _apply_env(settings)
    return settings


def _parse_source(item) -> SchemaSource:
    if isinstance(item, str):
        is_url = item.startswith(("http://", "https://"))
        return SchemaSource(type=SourceType.URL if is_url else SourceType.FILE, path=item)
    if not isinstance(item, dict) or not item.get("path"):
        raise ConfigError(f"Source entry needs a 'path': {item!r}")
    try:
        source_type = SourceType(item.get("type", "file"))
    except ValueError:
        raise ConfigError(
            f"Unknown source type '{item.get('type')}' (expected 'file' or 'url')"
        ) from None
    return SchemaSource(type=source_type, path=str(item["path"]), output_dir=item.get("output_dir"))


def _apply_env(settings: GeneratorSettings) -> None:
    output_dir = os.environ.get("ABIGEN_OUTPUT_DIR")
    if output_dir:
        settings.default_output_dir = output_dir
    log_level = os.environ.get("ABIGEN_LOG_LEVEL")
    if log_level:
        settings.log_level = log_level.upper()
    timeout = os.environ.get("ABIGEN_HTTP_TIMEOUT")
    if timeout:
        settings.http_timeout = _as_float(timeout, "ABIGEN_HTTP_TIMEOUT")


def _as_float(value, name: str) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ConfigError(f"{name} must be a number, got {value!r}") from None

"""Exceptions shared across the generation pipeline."""

from __future__ import annotations


class AbigenError(Exception):
    """Base class for errors raised by abigen."""


class SchemaSyntaxError(AbigenError):
    """The schema container itself could not be parsed."""


class SourceError(AbigenError):
    """A schema source could not be read or fetched."""


class ConfigError(AbigenError):
    """The generator configuration is invalid."""

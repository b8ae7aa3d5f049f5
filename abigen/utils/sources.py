"""Schema sources — read schema text from a local file or an HTTP(S) URL."""

from __future__ import annotations

import logging
from pathlib import Path

import httpx

from abigen.errors import SourceError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0


def is_url(location: str) -> bool:
    return location.startswith(("http://", "https://"))


def is_ir_json(location: str) -> bool:
    """IR dumps are JSON; everything else is treated as an XML schema."""
    path = httpx.URL(location).path if is_url(location) else location
    return path.lower().endswith(".json")


def read_schema_source(location: str, timeout: float = DEFAULT_TIMEOUT) -> str:
    """Return the text at ``location``.

    Raises:
        SourceError: if the file cannot be read or the URL cannot be fetched.
    """
    if is_url(location):
        logger.info("Fetching schema from %s", location)
        try:
            response = httpx.get(location, timeout=timeout, follow_redirects=True)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise SourceError(f"Failed to fetch {location}: {exc}") from exc
        return response.text

    path = Path(location)
    if not path.is_file():
        raise SourceError(f"Schema file not found: {location}")
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise SourceError(f"Failed to read {location}: {exc}") from exc

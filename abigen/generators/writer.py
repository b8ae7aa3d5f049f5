"""Artifact writer — persists an emit result as a Python package."""

from __future__ import annotations

import json
import logging
from pathlib import Path

from abigen.codegen.emitter import EmitResult
from abigen.ir.models import SchemaDocument, document_to_dict

logger = logging.getLogger(__name__)

IR_FILE = "abi.json"


def write_artifacts(
    result: EmitResult,
    output_dir: str | Path,
    document: SchemaDocument | None = None,
) -> list[Path]:
    """Write every generated module into ``output_dir``.

    When ``document`` is given its IR is also dumped to ``abi.json``.
    Returns the written paths in write order.
    """
    output = Path(output_dir)
    output.mkdir(parents=True, exist_ok=True)

    written = []
    for file_name, source in result.files().items():
        path = output / file_name
        path.write_text(source, encoding="utf-8")
        written.append(path)

    if document is not None:
        path = output / IR_FILE
        with open(path, "w") as f:
            json.dump(document_to_dict(document), f, indent=2)
        written.append(path)

    logger.info("Wrote %d files to %s", len(written), output)
    return written

"""Binding generator — runs the full pipeline for one schema source."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path

from abigen.codegen.emitter import emit
from abigen.config import GeneratorSettings
from abigen.errors import AbigenError, SchemaSyntaxError
from abigen.generators.writer import write_artifacts
from abigen.ir.inheritance import resolve
from abigen.ir.models import SchemaDocument, SchemaWarning, document_from_dict
from abigen.ir.parser import ParseResult, parse_schema
from abigen.utils.sources import DEFAULT_TIMEOUT, is_ir_json, read_schema_source

logger = logging.getLogger(__name__)


@dataclass
class GenerationReport:
    """Result of generating bindings for one source."""

    source: str
    output_dir: str
    interfaces: list[str] = field(default_factory=list)
    probe_order: list[str] = field(default_factory=list)
    files: list[str] = field(default_factory=list)
    warnings: list[SchemaWarning] = field(default_factory=list)
    error: str = ""

    @property
    def passed(self) -> bool:
        return not self.error

    def summary(self) -> str:
        if self.error:
            return f"{self.source}: FAILED ({self.error})"
        return (
            f"{self.source}: {len(self.interfaces)} interfaces, "
            f"{len(self.files)} files, {len(self.warnings)} warnings -> {self.output_dir}"
        )


def load_document(location: str, timeout: float = DEFAULT_TIMEOUT) -> ParseResult:
    """Read and parse a schema source (XML schema or IR JSON)."""
    text = read_schema_source(location, timeout=timeout)
    if is_ir_json(location):
        try:
            return ParseResult(document_from_dict(json.loads(text)), [])
        except (json.JSONDecodeError, AttributeError) as exc:
            raise SchemaSyntaxError(f"Invalid IR JSON in {location}: {exc}") from exc
    return parse_schema(text)


class BindingGenerator:
    """Generates a bindings package from a schema."""

    def __init__(
        self,
        output_dir: str | Path = "./generated",
        write_ir: bool = False,
        http_timeout: float = DEFAULT_TIMEOUT,
    ):
        self.output_dir = Path(output_dir)
        self.write_ir = write_ir
        self.http_timeout = http_timeout

    def generate(self, location: str) -> GenerationReport:
        """Generate bindings for the schema at ``location`` (file or URL).

        Raises:
            SourceError: if the source cannot be read.
            SchemaSyntaxError: if the schema container cannot be parsed.
        """
        document, warnings = load_document(location, timeout=self.http_timeout)
        return self.generate_document(document, warnings, origin=location)

    def generate_text(self, text: str, origin: str = "<text>") -> GenerationReport:
        document, warnings = parse_schema(text)
        return self.generate_document(document, warnings, origin=origin)

    def generate_document(
        self,
        document: SchemaDocument,
        warnings: list[SchemaWarning] | None = None,
        origin: str = "<document>",
    ) -> GenerationReport:
        # Step 1: Resolve inheritance
        resolution = resolve(document)

        # Step 2: Emit sources
        result = emit(document, resolution)

        # Step 3: Write the package
        paths = write_artifacts(
            result, self.output_dir, document=document if self.write_ir else None
        )

        report = GenerationReport(
            source=origin,
            output_dir=str(self.output_dir),
            interfaces=list(result.bindings),
            probe_order=list(result.probe_order),
            files=[p.name for p in paths],
            warnings=list(warnings or []) + result.warnings,
        )
        logger.info(report.summary())
        return report


def generate_from_settings(settings: GeneratorSettings) -> list[GenerationReport]:
    """Generate every configured source; a failing source does not stop the rest."""
    reports = []
    for source in settings.sources:
        output_dir = settings.output_dir_for(source)
        generator = BindingGenerator(
            output_dir=output_dir,
            write_ir=settings.write_ir,
            http_timeout=settings.http_timeout,
        )
        try:
            reports.append(generator.generate(source.path))
        except AbigenError as exc:
            logger.error("Generation failed for %s: %s", source.path, exc)
            reports.append(GenerationReport(source=source.path, output_dir=output_dir, error=str(exc)))
    return reports

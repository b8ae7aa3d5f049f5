"""abigen CLI — the main entry point for the bindings generator."""

import json
import logging
import sys

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from abigen import __version__
from abigen.errors import AbigenError

console = Console()


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _fail(error: Exception) -> None:
    console.print(f"[red]Error:[/] {error}")
    sys.exit(1)


@click.group()
@click.version_option(version=__version__)
@click.option("--log-level", default=None, help="Logging level (default: INFO or ABIGEN_LOG_LEVEL)")
def main(log_level: str | None):
    """abigen — contract interface bindings generator.

    Turns an ABI schema into typed Python bindings with conformance
    probes, and inspects schemas and their inheritance.
    """
    from abigen.config import load_settings

    try:
        _configure_logging(log_level or load_settings().log_level)
    except (AbigenError, ValueError) as e:
        _fail(e)


# ── Generate ─────────────────────────────────────────────────────────


@main.command()
@click.argument("source", required=False)
@click.option("--output", "-o", default=None, help="Output directory for the bindings package")
@click.option("--ir/--no-ir", "write_ir", default=None, help="Also write the IR as abi.json")
@click.option("--config", "config_path", default=None, help="YAML config listing sources")
def generate(source: str | None, output: str | None, write_ir: bool | None, config_path: str | None):
    """Generate bindings from a schema.

    SOURCE can be an XML schema file, an http(s) URL, or an IR JSON dump.
    Without SOURCE, every source listed in --config is generated.
    """
    from abigen.config import load_settings
    from abigen.generators.binding_generator import BindingGenerator, generate_from_settings

    try:
        settings = load_settings(config_path)
    except AbigenError as e:
        _fail(e)
    if write_ir is not None:
        settings.write_ir = write_ir
    if output:
        settings.default_output_dir = output

    if source is None:
        if not settings.sources:
            console.print("[yellow]Nothing to generate: pass SOURCE or a --config with sources.[/]")
            sys.exit(1)
        reports = generate_from_settings(settings)
    else:
        console.print(f"\n[bold blue]abigen[/] — Generating bindings from: {source}\n")
        generator = BindingGenerator(
            output_dir=settings.default_output_dir,
            write_ir=settings.write_ir,
            http_timeout=settings.http_timeout,
        )
        try:
            reports = [generator.generate(source)]
        except AbigenError as e:
            _fail(e)

    for report in reports:
        if not report.passed:
            console.print(f"[red]✗[/] {report.summary()}")
            continue
        console.print(f"[green]✓[/] {report.summary()}")
        for warning in report.warnings:
            console.print(f"  [yellow]![/] {warning}")

    if not all(r.passed for r in reports):
        sys.exit(1)


# ── Inspect ──────────────────────────────────────────────────────────


@main.command()
@click.argument("source")
def inspect(source: str):
    """Show the interfaces of a schema, their members and the probe order."""
    from abigen.codegen import emit
    from abigen.generators.binding_generator import load_document
    from abigen.ir.inheritance import resolve

    try:
        document, warnings = load_document(source)
    except AbigenError as e:
        _fail(e)

    resolution = resolve(document)
    result = emit(document, resolution)

    table = Table(title=f"Interfaces ({len(result.binding_classes)} found)")
    table.add_column("Interface", style="cyan")
    table.add_column("Parent", style="dim")
    table.add_column("Queries", justify="right", style="green")
    table.add_column("Sends", justify="right")
    table.add_column("Class")

    for binding in result.binding_classes:
        table.add_row(
            binding.interface_name,
            binding.parent_name or "-",
            str(len(binding.query_methods)),
            str(len(binding.send_methods)),
            f"{binding.module_name}.{binding.class_name}",
        )
    console.print(table)

    order = " → ".join(result.probe_order) or "(no probeable interfaces)"
    console.print(Panel(order, title="Probe order", border_style="blue"))

    all_warnings = list(warnings) + result.warnings
    if all_warnings:
        console.print(f"\n[yellow]Warnings ({len(all_warnings)}):[/]")
        for warning in all_warnings:
            console.print(f"  [yellow]![/] {warning}")


# ── IR ───────────────────────────────────────────────────────────────


@main.command()
@click.argument("source")
def ir(source: str):
    """Print the parsed IR of a schema as JSON."""
    from abigen.generators.binding_generator import load_document
    from abigen.ir.models import document_to_dict

    try:
        document, _ = load_document(source)
    except AbigenError as e:
        _fail(e)
    click.echo(json.dumps(document_to_dict(document), indent=2))


# ── Parse message ────────────────────────────────────────────────────


@main.command("parse-message")
@click.argument("text")
def parse_message(text: str):
    """Parse a single message declaration and show its parameters."""
    from abigen.ir.parser import parse_message_text
    from abigen.tlb.mapper import map_type

    syntax = parse_message_text(text)
    if syntax is None:
        console.print("[red]Declaration does not match name#opcode params = Type;[/]")
        sys.exit(1)

    console.print(
        f"[bold]{syntax.definition_name}[/] opcode [cyan]{syntax.opcode}[/] "
        f"→ {syntax.return_type_name}"
    )
    table = Table()
    table.add_column("#", style="dim", width=3)
    table.add_column("Name", style="cyan")
    table.add_column("Type")
    table.add_column("Category", style="green")
    for i, param in enumerate(syntax.params):
        table.add_row(str(i + 1), param.name, param.raw_type or "", str(map_type(param.raw_type)))
    console.print(table)


# ── History ──────────────────────────────────────────────────────────


@main.command()
@click.argument("address")
@click.option("--dir", "history_dir", default=None, help="History directory")
def history(address: str, history_dir: str | None):
    """Show recorded conformance checks for a contract address."""
    from abigen.conformance.history import ConformanceHistoryStore
    from abigen.runtime.codec import raw_address

    try:
        raw = raw_address(address)
    except Exception as e:
        _fail(e)

    entries = ConformanceHistoryStore(history_dir).get_history(raw)
    if not entries:
        console.print(f"[yellow]No conformance history for {raw}.[/]")
        return

    table = Table(title=f"Conformance history for {raw}")
    table.add_column("Ran at", style="dim")
    table.add_column("Interface", style="cyan")
    table.add_column("Verdict")
    table.add_column("Queries", justify="right")
    table.add_column("Sends", justify="right")
    for entry in entries:
        verdict = "[green]implemented[/]" if entry.implemented else "[red]not implemented[/]"
        table.add_row(
            entry.ran_at,
            entry.interface_name,
            verdict,
            f"{entry.query_passed}/{entry.query_total}",
            f"{entry.send_passed}/{entry.send_total}",
        )
    console.print(table)


if __name__ == "__main__":
    main()

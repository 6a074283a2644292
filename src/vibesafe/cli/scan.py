"""CLI command: vibesafe scan [directory] — static security analysis."""

from __future__ import annotations

import sys
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from vibesafe.config import VibeSafeConfig
from vibesafe.policy.loader import DEFAULT_PRESET, HIGH_ONLY_PRESET, load_preset, resolve_policy
from vibesafe.policy.models import Policy
from vibesafe.reporting import render_json, render_markdown
from vibesafe.scanner.engine import ScanEngine
from vibesafe.scanner.models import DependencyFinding, Finding, ScanResult, Severity

console = Console(stderr=True)

_SEVERITY_COLORS = {
    Severity.CRITICAL: "bold red",
    Severity.HIGH: "red",
    Severity.MEDIUM: "yellow",
    Severity.LOW: "blue",
    Severity.INFO: "cyan",
    Severity.NONE: "dim",
}


@click.command()
@click.argument(
    "directory",
    default=".",
    type=click.Path(exists=True, file_okay=False),
)
@click.option(
    "--high-only",
    is_flag=True,
    help="Report only High/Critical findings (plus policy inclusions) and fail on them.",
)
@click.option(
    "--exclude",
    "-e",
    multiple=True,
    help="Extra ignore patterns (gitignore syntax).",
)
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False),
    help="Write results as JSON to this file.",
)
@click.option(
    "--report",
    "-r",
    type=click.Path(dir_okay=False),
    help="Write a Markdown report to this file.",
)
@click.option("--offline", is_flag=True, help="Skip the vulnerability database lookup.")
@click.pass_context
def scan(
    ctx: click.Context,
    directory: str,
    high_only: bool,
    exclude: tuple[str, ...],
    output: str | None,
    report: str | None,
    offline: bool,
) -> None:
    """Scan a project for secrets, vulnerable dependencies and risky code."""
    policy_ref = ctx.obj.get("policy_ref")
    if policy_ref and high_only:
        raise click.UsageError("--high-only selects the high-only preset and cannot be combined with --policy.")

    config = VibeSafeConfig.load()
    if offline:
        config.offline = True

    policy = _select_policy(policy_ref, high_only, config)
    mode = "threshold" if policy.is_threshold else "report-all"
    console.print(
        f"[bold]VibeSafe[/bold] scanning [cyan]{directory}[/cyan] "
        f"with policy [cyan]{policy.name}[/cyan] ({mode})\n"
    )

    engine = ScanEngine(config=config, policy=policy, exclude_patterns=list(exclude))
    result = engine.scan(directory)

    for fault in result.integrity_faults:
        console.print(f"[bold red]INTEGRITY FAULT:[/bold red] {fault}")

    if output:
        Path(output).write_text(render_json(result), encoding="utf-8")
        console.print(f"JSON results written to [cyan]{output}[/cyan]")
    if report:
        Path(report).write_text(render_markdown(result), encoding="utf-8")
        console.print(f"Markdown report written to [cyan]{report}[/cyan]")

    if not output and not report:
        if result.findings:
            _print_table(result.findings)
        else:
            console.print("[green]No findings.[/green]")
    _print_summary(result)

    if result.exit_code and policy.defaults.exit_severity is not None:
        console.print(
            f"\n[red]Exiting with code {result.exit_code}: findings at or above "
            f"{policy.defaults.exit_severity.label}[/red]"
        )
        sys.exit(result.exit_code)


def _select_policy(ref: str | None, high_only: bool, config: VibeSafeConfig) -> Policy:
    try:
        if ref:
            return resolve_policy(ref, config.policy_dirs)
        return load_preset(HIGH_ONLY_PRESET if high_only else DEFAULT_PRESET)
    except (OSError, ValueError) as e:
        raise click.BadParameter(str(e), param_hint="--policy") from e


def _print_table(findings: list[Finding]) -> None:
    table = Table(title="Findings", show_lines=False)
    table.add_column("Severity", style="bold", width=10)
    table.add_column("Category")
    table.add_column("Location", style="cyan")
    table.add_column("Type")
    table.add_column("Details", max_width=60)

    for finding in findings:
        color = _SEVERITY_COLORS.get(finding.severity, "white")
        if isinstance(finding, DependencyFinding) and finding.error:
            severity = "[bold red]ERROR[/bold red]"
            details = finding.error
        else:
            severity = f"[{color}]{finding.severity.label}[/{color}]"
            details = finding.message
        table.add_row(
            severity,
            finding.category.value,
            finding.location,
            finding.type,
            details,
        )

    console.print(table)


def _print_summary(result: ScanResult) -> None:
    console.print(
        f"\nScanned {result.files_scanned} files "
        f"({result.files_skipped} skipped), "
        f"{result.dependencies_checked} dependencies checked "
        f"in {result.duration:.2f}s"
    )
    counts = ", ".join(
        f"{count} {severity.label}" for severity, count in result.summary.by_severity.items()
    )
    console.print(f"Total findings: {result.summary.total}" + (f" ({counts})" if counts else ""))

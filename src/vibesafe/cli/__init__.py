"""CLI entry point — Click group with global options."""

from __future__ import annotations

import logging

import click

from vibesafe import __version__


@click.group()
@click.version_option(version=__version__, prog_name="vibesafe")
@click.option(
    "--policy",
    "-p",
    help="Threshold policy: a YAML file, a policy name, or preset:<name>.",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.pass_context
def main(ctx: click.Context, policy: str | None, verbose: bool) -> None:
    """VibeSafe — security checks for web application projects."""
    ctx.ensure_object(dict)
    ctx.obj["policy_ref"] = policy

    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def _register_commands() -> None:
    from vibesafe.cli.scan import scan  # noqa: F811

    main.add_command(scan)


_register_commands()

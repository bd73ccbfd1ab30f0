#!/usr/bin/env python
"""Command-line interface for openbao-unseal.

This module provides the main CLI entry point, handling command-line
argument parsing and turning the run result into an exit code.
"""

import sys
from pathlib import Path

import click
from icecream import ic

from openbao_unseal import __version__, console
from openbao_unseal.cluster import Cluster
from openbao_unseal.config import load_settings
from openbao_unseal.exceptions import OpenBaoUnsealError
from openbao_unseal.workflow import list_pod_status, run

_EPILOG = """\b
Examples:
  openbao-unseal                          unseal all pods
  openbao-unseal openbao-0 openbao-2      unseal specific pods
  openbao-unseal --dry-run                simulate all pods
  openbao-unseal --timeout 60 openbao-0   use a longer timeout
"""


@click.command(
    help="Unseal OpenBao pods running in Kubernetes. Without POD_NAME, all OpenBao pods are processed.",
    epilog=_EPILOG,
    context_settings={"help_option_names": ["-h", "--help"]},
)
@click.option("--version", "-v", required=False, is_flag=True, help="print version")
@click.option("--debug", required=False, is_flag=True, help="print debug information")
@click.option("--list", "-l", "list_pods", required=False, is_flag=True, help="list OpenBao pods and their seal status")
@click.option("--dry-run", "-d", required=False, is_flag=True, help="simulate without unsealing")
@click.option(
    "--timeout",
    "-t",
    required=False,
    type=click.IntRange(min=1),
    help="timeout for operations in seconds (default: 30)",
)
@click.option("--select", required=False, is_flag=True, default=False, help="prompt for context select")
@click.option(
    "--config",
    "-c",
    "config_path",
    required=False,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="path to a YAML config file",
)
@click.argument("pods", nargs=-1)
def cli(
    debug: bool,
    list_pods: bool,
    dry_run: bool,
    timeout: int | None,
    select: bool,
    config_path: Path | None,
    pods: tuple[str, ...],
    version: bool,
) -> None:
    """Process CLI arguments and execute the appropriate action.

    Args:
        debug: Enable debug output.
        list_pods: List pods with their seal status and exit.
        dry_run: Simulate without decrypting keys or calling the OpenBao API.
        timeout: Timeout for operations in seconds.
        select: Prompt for Kubernetes context selection.
        config_path: Path to a YAML config file.
        pods: Explicit pod names to process.
        version: Print version and exit.

    """
    if not debug:
        ic.disable()

    if version:
        click.echo(__version__)
        return

    try:
        settings = load_settings(config_path, timeout=timeout)

        if list_pods:
            list_pod_status(Cluster(settings, select_context=select), settings)
            return

        summary = run(settings, pods, select_context=select, dry_run=dry_run)
    except OpenBaoUnsealError as e:
        console.error(str(e))
        sys.exit(1)

    sys.exit(summary.exit_code)


if __name__ == "__main__":
    cli()

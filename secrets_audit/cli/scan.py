"""CLI commands for discovering credentials in cloud accounts."""

from typing import Any

import click
import structlog

from secrets_audit.cli.context import CLIContext, pass_cli_context
from secrets_audit.exceptions import DuplicateNameError, SecretsAuditError
from secrets_audit.scanners import SCANNERS

log = structlog.get_logger(__name__)


@click.group(name="scan")
def scan_group() -> None:
    """Discover credentials in cloud accounts (Pro feature).

    Examples:
        secrets-audit scan aws
        secrets-audit scan github --auto-add
    """


def _auto_add(out: CLIContext, registry: Any, payloads: list[dict[str, Any]]) -> tuple[list[str], list[str]]:
    added: list[str] = []
    skipped: list[str] = []
    for payload in payloads:
        try:
            registry.add(payload)
            added.append(payload["name"])
        except DuplicateNameError:
            skipped.append(payload["name"])
            out.info(f"  ⚠ Skipped {payload['name']} (already exists)", fg="yellow")
    return added, skipped


def _run_scan(out: CLIContext, scanner_name: str, auto_add: bool) -> None:
    scanner = SCANNERS[scanner_name]()
    try:
        registry = out.open_registry()
        out.require_paid_tier(registry, "Cloud scanning")
        out.info(f"🔍 Scanning {scanner_name} credentials...\n", fg="cyan")
        found = scanner.scan()
        payloads = scanner.to_registry_input(found)
        added, skipped = _auto_add(out, registry, payloads) if auto_add else ([], [])
    except SecretsAuditError as e:
        out.fail(e)

    log.info("scan_complete", scanner=scanner_name, found=len(found), added=len(added))

    if out.json_output:
        out.success(
            {
                "scanner": scanner_name,
                "found": [item.to_dict() for item in found],
                "added": added,
                "skipped": skipped,
            }
        )
        return

    if not found:
        out.echo(f"No {scanner_name} credentials found.", fg="yellow")
        return

    out.echo(f"Found {len(found)} credential{'' if len(found) == 1 else 's'}:\n", fg="green")
    for item in found:
        out.echo(f"  • {item.name}")
        if item.created_at:
            out.echo(f"    Created: {item.created_at}")
        for key, value in item.details.items():
            out.echo(f"    {key}: {value if value is not None else 'unknown'}")
        if item.scan_error:
            out.echo(f"    Could not read details: {item.scan_error}", fg="yellow")
    out.echo()

    if auto_add:
        out.echo(f"✓ Added {len(added)} secret{'' if len(added) == 1 else 's'} to the registry", fg="green")
    else:
        out.info(f"To add these automatically: secrets-audit scan {scanner_name} --auto-add", fg="cyan")


@scan_group.command("aws")
@click.option("--auto-add", is_flag=True, help="Add discovered keys to the registry")
@pass_cli_context
def scan_aws(out: CLIContext, auto_add: bool) -> None:
    """Scan the current IAM user's access keys."""
    _run_scan(out, "aws", auto_add)


@scan_group.command("github")
@click.option("--auto-add", is_flag=True, help="Add the discovered token to the registry")
@pass_cli_context
def scan_github(out: CLIContext, auto_add: bool) -> None:
    """Inspect the personal access token in GITHUB_TOKEN."""
    _run_scan(out, "github", auto_add)

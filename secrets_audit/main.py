"""CLI entry point for secrets-audit."""

import sys
from pathlib import Path
from typing import Any

import click
import structlog

from secrets_audit import __version__
from secrets_audit.cli.context import STATUS_COLORS, CLIContext, pass_cli_context
from secrets_audit.cli.mcp import mcp_command
from secrets_audit.cli.scan import scan_group
from secrets_audit.cli.update import update_check_command
from secrets_audit.config.settings import AuditSettings
from secrets_audit.engine.registry import categorize_records, summarize
from secrets_audit.enums import ReportFormat, Status
from secrets_audit.exceptions import (
    ConfigurationError,
    PersistenceError,
    SecretsAuditError,
    ValidationError,
)
from secrets_audit.models.domain import ClassifiedCredential
from secrets_audit.rendering import render
from secrets_audit.schema import get_schema
from secrets_audit.utils.logging_config import configure_logging

log = structlog.get_logger(__name__)

FAIL_ON_LEVELS = ["warning", "critical", "expired"]


@click.group(invoke_without_command=True)
@click.option("--json", "json_output", is_flag=True, help="Output as JSON (machine-readable)")
@click.option("-q", "--quiet", is_flag=True, help="Suppress non-essential output")
@click.option("--no-color", is_flag=True, help="Disable colored output")
@click.option("--schema", "show_schema", is_flag=True, help="Output the command schema as JSON")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], case_sensitive=False),
    default=None,
    help="Logging level (default from settings: WARNING)",
)
@click.option(
    "--settings",
    "settings_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="Path to a YAML settings file",
)
@click.version_option(__version__, prog_name="secrets-audit")
@click.pass_context
def cli(
    ctx: click.Context,
    json_output: bool,
    quiet: bool,
    no_color: bool,
    show_schema: bool,
    log_level: str | None,
    settings_path: str | None,
) -> None:
    """secrets-audit: track, audit and get warned before your secrets expire.

    Only metadata is recorded (dates, provider, rotation policy), never the
    secret values themselves.
    """
    try:
        settings = AuditSettings.from_yaml(settings_path) if settings_path else AuditSettings()
    except ConfigurationError as e:
        CLIContext(json_output=json_output, color=not no_color).fail(e)
    except Exception as e:
        CLIContext(json_output=json_output, color=not no_color).fail(
            ConfigurationError(f"Invalid settings: {e}")
        )

    configure_logging(log_level or settings.log_level)
    ctx.obj = CLIContext(settings=settings, json_output=json_output, quiet=quiet, color=not no_color)

    if show_schema:
        ctx.obj.emit_json(get_schema())
        ctx.exit(0)

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


def _print_record(out: CLIContext, record: ClassifiedCredential, verbose: bool = True) -> None:
    credential = record.credential
    assessment = record.assessment
    status = assessment.status.value
    out.echo(f"{assessment.emoji} " + click.style(credential.name, bold=True))
    out.echo(f"   Provider: {credential.provider} | Type: {credential.kind}")
    out.echo(f"   Status: {click.style(status.upper(), fg=STATUS_COLORS[status])} - {assessment.message}")
    if verbose and assessment.age_days is not None:
        out.echo(f"   Age: {assessment.age_days} days")
    if verbose and credential.notes:
        out.echo(f"   Notes: {credential.notes}")
    out.echo()


@cli.command("init")
@click.option("-g", "--global", "use_global", is_flag=True, help="Create in ~/.config/secrets-audit/")
@pass_cli_context
def init_command(out: CLIContext, use_global: bool) -> None:
    """Create a new secrets audit registry file."""
    try:
        location = out.store().init(use_global=use_global)
    except SecretsAuditError as e:
        out.fail(e)

    if out.json_output:
        out.success({"configPath": str(location.path), "message": "Config file created"})
        return

    out.echo(click.style("✓ Config file created at: ", fg="green") + str(location.path))
    out.info("\nNext steps:", fg="cyan")
    out.info("  1. Add a secret: secrets-audit add <name>")
    out.info("  2. Check status: secrets-audit check")


def _field_options(command: Any) -> Any:
    """Options shared by add and update for the credential fields."""
    options = [
        click.option("-p", "--provider", default=None, help="Service provider (e.g., stripe, aws, github)"),
        click.option("-t", "--type", "kind", default=None, help="Secret type (api_key, token, password)"),
        click.option("-c", "--created", default=None, help="Creation date (YYYY-MM-DD)"),
        click.option("-e", "--expires", default=None, help="Expiry date (YYYY-MM-DD)"),
        click.option("--last-rotated", default=None, help="Last rotation date (YYYY-MM-DD)"),
        click.option("-r", "--rotation", type=int, default=None, help="Rotation policy in days"),
        click.option("--no-rotation-policy", is_flag=True, help="Track without a rotation requirement"),
        click.option("-n", "--notes", default=None, help="Additional notes"),
    ]
    for option in reversed(options):
        command = option(command)
    return command


def _collect_fields(
    provider: str | None,
    kind: str | None,
    created: str | None,
    expires: str | None,
    last_rotated: str | None,
    rotation: int | None,
    no_rotation_policy: bool,
    notes: str | None,
) -> dict[str, Any]:
    if rotation is not None and no_rotation_policy:
        raise ValidationError("--rotation and --no-rotation-policy are mutually exclusive", field="rotationPolicy")

    supplied = {
        "provider": provider,
        "type": kind,
        "createdAt": created,
        "expiresAt": expires,
        "lastRotated": last_rotated,
        "rotationPolicy": rotation,
        "notes": notes,
    }
    data = {key: value for key, value in supplied.items() if value is not None}
    if no_rotation_policy:
        data["rotationPolicy"] = None
    return data


def _prompt_fields() -> dict[str, Any]:
    data: dict[str, Any] = {
        "provider": click.prompt("Provider (e.g., stripe, aws, github)", default="unknown"),
        "type": click.prompt("Type (api_key, token, password)", default="api_key"),
    }
    created = click.prompt("Created date (YYYY-MM-DD), blank for today", default="", show_default=False)
    if created:
        data["createdAt"] = created
    expires = click.prompt("Expires date (YYYY-MM-DD), blank for none", default="", show_default=False)
    data["expiresAt"] = expires or None
    data["rotationPolicy"] = click.prompt("Rotation policy in days (0 for none)", default=90, type=int) or None
    data["notes"] = click.prompt("Notes", default="", show_default=False)
    return data


@cli.command("add")
@click.argument("name")
@_field_options
@click.option("-i", "--interactive", is_flag=True, help="Prompt for every field")
@pass_cli_context
def add_command(out: CLIContext, name: str, interactive: bool, **fields: Any) -> None:
    """Add a new secret to track."""
    try:
        registry = out.open_registry()
        data = {"name": name}
        data.update(_prompt_fields() if interactive else _collect_fields(**fields))
        added = registry.add(data)
    except SecretsAuditError as e:
        out.fail(e)

    if out.json_output:
        out.success({"secret": added.to_dict()})
        return

    policy = added.credential.rotation_policy_days
    out.echo(click.style("✓ Secret added: ", fg="green") + added.name)
    out.echo(f"  Status: {added.assessment.emoji} {added.status.value}")
    out.echo(f"  Provider: {added.credential.provider}")
    out.echo(f"  Rotation Policy: {f'{policy} days' if policy else 'none'}")


@cli.command("list")
@click.option(
    "-s",
    "--status",
    type=click.Choice([s.value for s in Status]),
    default=None,
    help="Filter by status",
)
@pass_cli_context
def list_command(out: CLIContext, status: str | None) -> None:
    """List all tracked secrets."""
    try:
        records = out.open_registry().list()
    except SecretsAuditError as e:
        out.fail(e)

    if status:
        records = [r for r in records if r.status.value == status]

    if out.json_output:
        out.success({"count": len(records), "secrets": [r.to_dict() for r in records]})
        return

    if not records:
        out.echo("No secrets tracked yet.", fg="yellow")
        out.info("Add a secret with: secrets-audit add <name>")
        return

    out.info(f"\n{len(records)} secret{'' if len(records) == 1 else 's'} tracked:\n", bold=True)
    for record in records:
        _print_record(out, record, verbose=not out.quiet)


def check_exit_code(summary: dict[str, int], fail_on: str) -> int:
    """Exit code for ``check --ci``.

    2 when expired or critical secrets reach the ``fail_on`` level, 1 for
    warnings under ``--fail-on warning``, otherwise 0.
    """
    threshold = Status(fail_on).severity
    if summary[Status.EXPIRED.value] and Status.EXPIRED.severity >= threshold:
        return 2
    if summary[Status.CRITICAL.value] and Status.CRITICAL.severity >= threshold:
        return 2
    if summary[Status.WARNING.value] and Status.WARNING.severity >= threshold:
        return 1
    return 0


@cli.command("check")
@click.option("--ci", is_flag=True, help="CI mode: exit 1 for warnings, 2 for critical/expired")
@click.option(
    "--fail-on",
    type=click.Choice(FAIL_ON_LEVELS),
    default="critical",
    show_default=True,
    help="Lowest status that fails the check in CI mode",
)
@pass_cli_context
def check_command(out: CLIContext, ci: bool, fail_on: str) -> None:
    """Audit every secret and report expiring or overdue ones."""
    try:
        registry = out.open_registry()
    except SecretsAuditError as e:
        out.fail(e)

    records = registry.list()
    buckets = categorize_records(records)
    summary = summarize(records)
    exit_code = check_exit_code(summary, fail_on) if ci else 0

    if out.json_output:
        out.success(
            {
                "total": summary["total"],
                "summary": {k: v for k, v in summary.items() if k != "total"},
                "secrets": {status: [r.to_dict() for r in records] for status, records in buckets.items()},
                "actionRequired": bool(summary["critical"] or summary["expired"]),
            }
        )
        sys.exit(exit_code)

    out.echo("\n🔍 Secrets Audit Results\n", bold=True)
    out.echo(f"Total secrets: {summary['total']}")
    out.echo(f"🟢 Healthy: {summary['healthy']}", fg="green")
    out.echo(f"🟡 Warning: {summary['warning']}", fg="yellow")
    out.echo(f"🔴 Critical: {summary['critical']}", fg="red")
    out.echo(f"⛔ Expired: {summary['expired']}", fg="red")
    out.echo()

    for status, heading in (
        (Status.EXPIRED, "⛔ EXPIRED SECRETS:"),
        (Status.CRITICAL, "🔴 CRITICAL:"),
        (Status.WARNING, "🟡 WARNINGS:"),
    ):
        records = buckets[status.value]
        if not records:
            continue
        color = STATUS_COLORS[status.value]
        out.echo(heading, fg=color, bold=True)
        for record in records:
            out.echo(f"  • {record.name}: {record.assessment.message}", fg=color)
        out.echo()

    if summary["expired"] or summary["critical"]:
        out.echo("⚠️  Action required! Rotate or renew these secrets.", fg="red")
    elif summary["warning"]:
        out.echo("⚠️  Some secrets need attention soon.", fg="yellow")
    else:
        out.echo("✓ All secrets are healthy!", fg="green")

    log.info("check_complete", exit_code=exit_code, **summary)
    sys.exit(exit_code)


@cli.command("remove")
@click.argument("name")
@pass_cli_context
def remove_command(out: CLIContext, name: str) -> None:
    """Stop tracking a secret."""
    try:
        removed = out.open_registry().remove(name)
    except SecretsAuditError as e:
        out.fail(e)

    if out.json_output:
        out.success({"removed": removed.to_dict(), "message": f'Secret "{name}" removed'})
        return
    out.echo(click.style("✓ Secret removed: ", fg="green") + name)


@cli.command("rotate")
@click.argument("name")
@pass_cli_context
def rotate_command(out: CLIContext, name: str) -> None:
    """Mark a secret as rotated today."""
    try:
        rotated = out.open_registry().rotate(name)
    except SecretsAuditError as e:
        out.fail(e)

    if out.json_output:
        out.success({"secret": rotated.to_dict()})
        return
    out.echo(click.style("✓ Secret rotated: ", fg="green") + rotated.name)
    out.echo(f"  New status: {rotated.assessment.emoji} {rotated.status.value}")
    out.echo(f"  Last rotated: {rotated.credential.last_rotated}")


@cli.command("update")
@click.argument("name")
@click.option("--rename", default=None, help="New name for the secret")
@_field_options
@click.option("--no-expiry", is_flag=True, help="Clear the expiry date")
@pass_cli_context
def update_command(out: CLIContext, name: str, rename: str | None, no_expiry: bool, **fields: Any) -> None:
    """Change fields of a tracked secret."""
    try:
        changes = _collect_fields(**fields)
        if no_expiry:
            if "expiresAt" in changes:
                raise ValidationError("--expires and --no-expiry are mutually exclusive", field="expiresAt")
            changes["expiresAt"] = None
        if rename is not None:
            changes["name"] = rename
        if not changes:
            raise ValidationError("Nothing to update. Pass at least one field option.")
        updated = out.open_registry().update(name, changes)
    except SecretsAuditError as e:
        out.fail(e)

    if out.json_output:
        out.success({"secret": updated.to_dict()})
        return
    out.echo(click.style("✓ Secret updated: ", fg="green") + updated.name)
    out.echo(f"  Status: {updated.assessment.emoji} {updated.status.value} - {updated.assessment.message}")


def _write_report(path: str, report: str | bytes) -> None:
    target = Path(path)
    try:
        if isinstance(report, bytes):
            target.write_bytes(report)
        else:
            target.write_text(report + "\n", encoding="utf-8")
    except OSError as e:
        raise PersistenceError(f"Cannot write report to {path}: {e}", path=path) from e


@cli.command("report")
@click.option(
    "-f",
    "--format",
    "fmt",
    type=click.Choice([f.value for f in ReportFormat if not f.is_binary]),
    default=ReportFormat.TEXT.value,
    show_default=True,
    help="Report format",
)
@click.option("--pdf", "pdf_path", type=click.Path(dir_okay=False), default=None, help="Write a PDF report to FILE")
@click.option("-o", "--output", type=click.Path(dir_okay=False), default=None, help="Output file (defaults to stdout)")
@pass_cli_context
def report_command(out: CLIContext, fmt: str, pdf_path: str | None, output: str | None) -> None:
    """Generate an audit report.

    Text reports are available on every tier; JSON, Markdown and PDF need a
    paid tier.
    """
    try:
        registry = out.open_registry()
        records = registry.list()
        if pdf_path:
            out.require_paid_tier(registry, "PDF export")
            _write_report(pdf_path, render(records, ReportFormat.PDF))
            written = pdf_path
        else:
            if fmt != ReportFormat.TEXT.value:
                out.require_paid_tier(registry, f"The {fmt} report format")
            report = render(records, fmt)
            if output is None:
                click.echo(report)
                return
            _write_report(output, report)
            written = output
    except SecretsAuditError as e:
        out.fail(e)

    log.info("report_written", path=written, format="pdf" if pdf_path else fmt)
    if out.json_output:
        out.success({"path": written})
    else:
        out.echo(click.style("✓ Report saved to: ", fg="green") + written)


cli.add_command(scan_group)
cli.add_command(mcp_command)
cli.add_command(update_check_command)


if __name__ == "__main__":
    cli()

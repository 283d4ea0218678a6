"""CLI command for updating secrets-audit itself from PyPI."""

import click
import structlog

from secrets_audit.cli.context import CLIContext, pass_cli_context
from secrets_audit.exceptions import SecretsAuditError
from secrets_audit.utils.update_check import check_for_update, perform_update

log = structlog.get_logger(__name__)


@click.command(name="update-check")
@click.option(
    "--check",
    "check_only",
    is_flag=True,
    help="Only check for updates, don't install them",
)
@pass_cli_context
def update_check_command(out: CLIContext, check_only: bool) -> None:
    """Check PyPI for a newer release and upgrade in place.

    Examples:

        # Check whether a newer version exists
        secrets-audit update-check --check

        # Upgrade to the latest version
        secrets-audit update-check
    """
    settings = out.settings
    try:
        info = check_for_update(settings.package_name, settings.update_timeout)
        updated_to = None
        if info.update_available and not check_only:
            out.info(f"Updating {settings.package_name} {info.current} → {info.latest}...", fg="cyan")
            updated_to = perform_update(settings.package_name, settings.update_timeout)
    except SecretsAuditError as e:
        out.fail(e)

    if out.json_output:
        out.success({**info.to_dict(), "updated": updated_to is not None})
        return

    out.echo(f"Current version: {info.current}")
    out.echo(f"Latest version:  {info.latest}")

    if not info.update_available:
        out.echo("✓ You are running the latest version.", fg="green")
        return

    if updated_to is not None:
        log.info("self_update_complete", version=updated_to)
        out.echo(f"✓ Updated to {updated_to}", fg="green")
        return

    out.echo(f"Update available: {info.current} → {info.latest}", fg="yellow")
    if not info.in_virtualenv:
        out.info("Not running in a virtualenv; the upgrade may need --user or elevated rights.")
    out.info("Run 'secrets-audit update-check' to install it.")

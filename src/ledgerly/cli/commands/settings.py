"""Settings commands."""

import click
from ledgerly.domain.settings import SettingsService


def _on_off(flag: bool) -> str:
    return "on" if flag else "off"


@click.group()
def settings_group():
    """View and change preferences."""
    pass


@settings_group.command("show")
@click.pass_context
def show_settings(ctx):
    """Show current preferences."""
    settings = SettingsService(ctx.obj["db"]).get_duplicate_detection()
    click.echo("Duplicate detection:")
    click.echo(f"  Enabled:            {_on_off(settings.enabled)}")
    click.echo(f"  File warnings:      {_on_off(settings.show_file_warnings)}")


@settings_group.command("duplicates")
@click.option("--enable/--disable", "enabled", default=None, help="Turn duplicate detection on or off")
@click.option("--file-warnings/--no-file-warnings", "show_file_warnings", default=None, help="Refuse files that were imported before")
@click.pass_context
def duplicate_settings(ctx, enabled: bool | None, show_file_warnings: bool | None):
    """Change duplicate detection preferences."""
    service = SettingsService(ctx.obj["db"])
    settings = service.set_duplicate_detection(enabled=enabled, show_file_warnings=show_file_warnings)
    click.echo(
        f"Duplicate detection {_on_off(settings.enabled)}, "
        f"file warnings {_on_off(settings.show_file_warnings)}"
    )


def register_commands(cli):
    """Register settings commands with main CLI."""
    cli.add_command(settings_group, name="settings")

"""CLI interface for Tempsweep."""

from __future__ import annotations

import json
import logging
import os
import sys
from urllib.parse import urlsplit, urlunsplit

import click

from tempsweep import __version__
from tempsweep.audit import AuditLog
from tempsweep.config import Config
from tempsweep.core.engine import Cleaner
from tempsweep.models.cleanup_result import CleanupResult
from tempsweep.settings import PATH_LIST_KEYS, STRING_KEYS, Settings, SettingsError
from tempsweep.upload import LogUploader, UploadError
from tempsweep.utils import format_elapsed, format_size

log = logging.getLogger(__name__)


def _setup_logging(verbosity: int) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s")


@click.group()
@click.option("-v", "--verbose", count=True, help="Increase verbosity (-v info, -vv debug)")
@click.version_option(__version__, prog_name="tempsweep")
@click.pass_context
def main(ctx: click.Context, verbose: int) -> None:
    """Tempsweep: fast, safe cleaner for temporary directories."""
    _setup_logging(verbose)
    ctx.ensure_object(dict)
    if "settings" not in ctx.obj:
        ctx.obj["settings"] = Settings()
    if "config" not in ctx.obj:
        ctx.obj["config"] = Config.load(ctx.obj["settings"])


# ── dirs ─────────────────────────────────────────────────────────────────

@main.command()
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_obj
def dirs(obj: dict, as_json: bool) -> None:
    """List the temporary directories that would be cleaned."""
    config: Config = obj["config"]
    targets = config.targets()

    if as_json:
        data = [{"path": t, "exists": os.path.isdir(t)} for t in targets]
        click.echo(json.dumps({"platform": config.platform.value, "directories": data}, indent=2))
        return

    if not targets:
        click.echo(f"No temporary directories known for platform '{config.platform.value}'.")
        return

    for target in targets:
        if os.path.isdir(target):
            click.echo(f"  {click.style('✓', fg='green')} {target}")
        else:
            click.echo(f"  {click.style('·', fg='bright_black')} {click.style(target, fg='bright_black')} (not found)")


# ── clean ────────────────────────────────────────────────────────────────

@main.command()
@click.argument("targets", nargs=-1, type=click.Path())
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation")
@click.option("--dry-run", is_flag=True, help="Report what would be deleted without deleting it")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.option("--log-file", type=click.Path(dir_okay=False), default=None, help="Audit log location")
@click.option("--upload/--no-upload", default=True, help="Upload the audit log when a SAS URL is configured")
@click.pass_obj
def clean(
    obj: dict,
    targets: tuple[str, ...],
    yes: bool,
    dry_run: bool,
    as_json: bool,
    log_file: str | None,
    upload: bool,
) -> None:
    """Clean the configured temporary directories (or TARGETS)."""
    config: Config = obj["config"]
    directories = [os.path.abspath(t) for t in targets] if targets else config.targets()
    log_path = log_file or config.log_file

    if not directories:
        if as_json:
            click.echo(json.dumps({"status": "nothing_to_clean", "result": CleanupResult().to_dict()}))
        else:
            click.echo("No directories to clean.")
        return

    if not as_json:
        click.echo(f"\nFound {len(directories)} temporary directories to clean.")
        for directory in directories:
            click.echo(f"  {directory}")
        click.echo()

    if not yes and not as_json:
        if not click.confirm("Do you want to proceed?", default=False):
            click.echo("Operation canceled.")
            return

    if not as_json:
        click.echo(f"\n{click.style('🧹', bold=True)} Starting cleanup...\n")

    with AuditLog(log_path) as audit:
        cleaner = Cleaner(events=audit, dry_run=dry_run)
        result = cleaner.clean_directories(directories)

    uploaded: str | None = None
    upload_error: str | None = None
    uploader = LogUploader(config.sas_url)
    if upload and uploader.enabled:
        try:
            uploaded = uploader.upload(log_path)
        except UploadError as e:
            log.error("Failed to upload log file: %s", e)
            upload_error = str(e)

    if as_json:
        data = {
            "status": "dry_run" if dry_run else "cleaned",
            "directories": directories,
            "result": result.to_dict(),
            "log_file": log_path,
            "uploaded_blob": uploaded,
            "upload_error": upload_error,
        }
        click.echo(json.dumps(data, indent=2))
        return

    _print_report(result, dry_run, log_path)

    if uploaded:
        click.echo(f"   {click.style('☁', fg='cyan')}  Log uploaded as {uploaded}")
    elif upload_error:
        click.echo(f"   {click.style('!', fg='yellow')} Failed to upload log file: {upload_error}")
    click.echo()


# ── check-upload ─────────────────────────────────────────────────────────

@main.command("check-upload")
@click.pass_obj
def check_upload(obj: dict) -> None:
    """Check that the configured blob container is reachable."""
    uploader = LogUploader(obj["config"].sas_url)
    if not uploader.enabled:
        click.echo("Cloud log upload is not configured.")
        return
    try:
        uploader.test_connection()
    except UploadError as e:
        click.echo(f"{click.style('✗', fg='red')} {e}", err=True)
        sys.exit(1)
    click.echo(f"{click.style('✓', fg='green')} Blob container is reachable.")


# ── settings ─────────────────────────────────────────────────────────────

@main.group("settings")
def settings_group() -> None:
    """Show or change persistent settings."""


@settings_group.command("show")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_obj
def settings_show(obj: dict, as_json: bool) -> None:
    """Print the settings file location and its values."""
    settings: Settings = obj["settings"]
    values: dict[str, object] = {key: settings.paths(key) for key in PATH_LIST_KEYS}
    for key in STRING_KEYS:
        values[key] = settings.get(key)
    if values["upload.sas_url"]:
        values["upload.sas_url"] = _redact(values["upload.sas_url"])

    if as_json:
        click.echo(json.dumps({"path": str(settings.path), "settings": values}, indent=2))
        return

    click.echo(f"Settings file: {settings.path}")
    for key, value in values.items():
        if isinstance(value, list):
            value = ", ".join(value) if value else "(none)"
        elif not value:
            value = "(not set)"
        click.echo(f"  {key}: {value}")


@settings_group.command("set")
@click.argument("key", type=click.Choice(STRING_KEYS))
@click.argument("value")
@click.pass_obj
def settings_set(obj: dict, key: str, value: str) -> None:
    """Set the audit log location or the upload SAS URL."""
    _change_settings(lambda s: s.set(key, value), obj["settings"])
    click.echo(f"Set {key}.")


@settings_group.command("add")
@click.argument("key", type=click.Choice(PATH_LIST_KEYS))
@click.argument("path", type=click.Path())
@click.pass_obj
def settings_add(obj: dict, key: str, path: str) -> None:
    """Add PATH to the extra or excluded target list."""
    path = os.path.abspath(path)
    if _change_settings(lambda s: s.add_path(key, path), obj["settings"]):
        click.echo(f"Added {path} to {key}.")
    else:
        click.echo(f"{path} is already in {key}.")


@settings_group.command("remove")
@click.argument("key", type=click.Choice(PATH_LIST_KEYS))
@click.argument("path", type=click.Path())
@click.pass_obj
def settings_remove(obj: dict, key: str, path: str) -> None:
    """Remove PATH from the extra or excluded target list."""
    path = os.path.abspath(path)
    if _change_settings(lambda s: s.remove_path(key, path), obj["settings"]):
        click.echo(f"Removed {path} from {key}.")
    else:
        click.echo(f"{path} is not in {key}.")


def _change_settings(change, settings: Settings):
    try:
        return change(settings)
    except SettingsError as e:
        click.echo(str(e), err=True)
        sys.exit(1)


def _redact(url: str) -> str:
    """Hide the SAS token, keeping account and container."""
    parts = urlsplit(url)
    return urlunsplit((parts.scheme, parts.netloc, parts.path, "<redacted>" if parts.query else "", ""))


def _print_report(result: CleanupResult, dry_run: bool, log_path: str) -> None:
    """Render the aggregate result for a terminal."""
    title = "Dry run completed" if dry_run else "Cleanup completed"
    freed_label = "Space that would be freed" if dry_run else "Space freed"

    click.echo(f"{click.style('✓', fg='green')} {title}!")
    click.echo("Results:")
    click.echo(
        f"   Files processed: {result.total_files:,} (deleted: {result.deleted_files:,}, "
        f"failed: {result.failed_files:,}, skipped: {result.skipped_files:,})"
    )
    click.echo(
        f"   Directories processed: {result.total_dirs:,} (deleted: {result.deleted_dirs:,}, "
        f"failed: {result.failed_dirs:,}, skipped: {result.skipped_dirs:,})"
    )
    click.echo(f"   {freed_label}: {click.style(format_size(result.deleted_size), fg='green', bold=True)}")
    click.echo(f"   Processing time: {format_elapsed(result.processing_time)}")

    if result.error_messages:
        click.echo(
            f"   {click.style('!', fg='yellow')} {len(result.error_messages)} errors occurred "
            f"(check {log_path} for details)"
        )

from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional

import click

from .bot import BotService, StatusChannel
from .config import Settings, load_settings
from .exceptions import ConfigError, DecodeError
from .extraction import extract_from_file
from .logging_config import configure_logging
from .router import MessageRouter
from .script import generate_sql_script
from .storage import UploadStore
from .supervisor import Supervisor
from .telegram import TelegramClient


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(package_name="xls-script-bot", message="XLS Script Bot %(version)s")
def main() -> None:
    """Telegram bot that turns Excel contract lists into SQL report scripts."""


@main.command()
@click.option("--config", "config_path", type=click.Path(exists=True, path_type=Path), default=None)
@click.option("--files-dir", type=click.Path(file_okay=False, path_type=Path), default=None, help="Where uploaded files are stored.")
@click.option("--verbose", is_flag=True, default=False, help="Increase logging verbosity.")
def run(  # pragma: no cover - long-running entrypoint
    config_path: Optional[Path],
    files_dir: Optional[Path],
    verbose: bool,
) -> None:
    """Run the bot under the restart supervisor."""

    settings = _load_settings(config_path, files_dir=files_dir, verbose=verbose or None)
    logger = configure_logging(
        verbose=settings.verbose,
        log_files=(settings.log_file, settings.fallback_log_file),
        logger_name="xls_script_bot.cli",
    )
    logger.info("Application starting...")

    try:
        token = settings.require_token()
    except ConfigError as exc:
        logger.critical("%s", exc)
        sys.exit(1)

    supervisor = build_supervisor(settings, token)
    try:
        outcome = supervisor.run()
    except KeyboardInterrupt:
        logger.info("Received stop signal. Shutting down application.")
        return

    logger.critical(
        "Bot failed to start after maximum retries (%s after %d attempts). Application terminated.",
        outcome.reason,
        outcome.attempts,
    )
    sys.exit(1)


@main.command()
@click.argument("spreadsheet", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--output", "-o", type=click.Path(dir_okay=False, path_type=Path), default=None, help="Write the script here instead of stdout.")
@click.option("--verbose", is_flag=True, default=False, help="Increase logging verbosity.")
def extract(spreadsheet: Path, output: Optional[Path], verbose: bool) -> None:
    """Build the SQL script for a local Excel file, without Telegram."""

    configure_logging(verbose=verbose, logger_name="xls_script_bot.cli")
    try:
        result = extract_from_file(spreadsheet)
    except DecodeError as exc:
        raise click.ClickException(f"Cannot read {spreadsheet}: {exc}") from exc

    if not result.has_data:
        click.echo(click.style(f"No matching data found in {spreadsheet}.", fg="yellow"))
        return

    script = generate_sql_script(result.records)
    if output is None:
        click.echo(script)
        return

    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(script, encoding="utf-8")
    click.echo(click.style(f"Wrote {len(result.records)} records to {output}", fg="green"))


def build_supervisor(settings: Settings, token: str) -> Supervisor:
    """Wire a supervisor whose attempts each get a fresh client, connection and router."""

    def connection_factory(channel: StatusChannel) -> BotService:
        client = TelegramClient(token, settings.telegram)
        return BotService(client, channel, poll_retry_delay=settings.telegram.poll_retry_delay)

    def router_factory(connection: BotService) -> MessageRouter:
        uploads = UploadStore(settings.files_dir, timeout=settings.telegram.request_timeout)
        return MessageRouter(connection.client, uploads)

    return Supervisor(settings.supervisor, connection_factory, router_factory)


def _load_settings(config_path: Optional[Path], **overrides) -> Settings:
    try:
        return load_settings(config_path, **overrides)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

"""
XLS Script Bot - Telegram bot that turns uploaded spreadsheets into SQL report scripts.

This package exposes the CLI entrypoint together with the supervised bot
connection, the per-chat router and the extraction/generation pipeline.
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("xls-script-bot")
except PackageNotFoundError:  # pragma: no cover - fallback for editable installs
    __version__ = "0.0.0"

__all__ = ["__version__"]

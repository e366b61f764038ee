"""Exception hierarchy shared across the bot."""


class XlsScriptBotError(Exception):
    """Base exception for the bot."""


class ConfigError(XlsScriptBotError):
    """Raised when configuration is missing or invalid."""


class TransportError(XlsScriptBotError):
    """Raised when a Telegram Bot API call fails."""


class BotStartError(TransportError):
    """Raised when the bot cannot authorize against the Bot API."""


class RetrievalError(XlsScriptBotError):
    """Raised when an uploaded file cannot be fetched or stored."""


class DownloadError(RetrievalError):
    """Raised when the file download does not succeed."""


class StorageError(RetrievalError):
    """Raised when a downloaded file cannot be written locally."""


class DecodeError(XlsScriptBotError):
    """Raised when a file cannot be read as a spreadsheet."""


__all__ = [
    "BotStartError",
    "ConfigError",
    "DecodeError",
    "DownloadError",
    "RetrievalError",
    "StorageError",
    "TransportError",
    "XlsScriptBotError",
]

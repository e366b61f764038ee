"""User-facing message texts."""

from __future__ import annotations

TEXT_UNKNOWN_COMMAND = "Unknown command. Use /start to begin."

TEXT_GREETING = "Hello, "
TEXT_WELCOME = "Welcome to the XLS File Reader Bot!\n"
TEXT_WELCOME_DESC = "I'm here to help you process Excel files.\n\n"
TEXT_FUNCTIONS_HEADER = "📋 Available functions:\n"
TEXT_FUNCTIONS = (
    "• Send me an Excel file (.xls, .xlsx) to read and process\n",
    "• I will extract the contract numbers and build an SQL script for you\n",
    "• Use /start to see this message again",
)

TEXT_INSTRUCTIONS_HEADER = "📖 Bot Instructions\n\n"
TEXT_INSTRUCTIONS_DESC = "This bot helps you read and process Excel files.\n\n"
TEXT_INSTRUCTIONS_FUNCS = "📋 Functions:\n"
TEXT_INSTRUCTIONS = (
    "• Send Excel files (.xls, .xlsx) - I will read the contract rows\n",
    "• File processing - Extract contract numbers from your spreadsheets\n",
    "• Script generation - Receive a ready-to-run SQL report script\n\n",
)
TEXT_INSTRUCTIONS_TIP = "💡 To get started, use the /start command and then send me an Excel file!"

TEXT_FILE_RECEIVED = "✅ File received successfully!\n\n"
TEXT_FILE_NAME = "📄 File name: {name}\n"
TEXT_FILE_SIZE = "📊 File size: {size_kb:.2f} KB\n"
TEXT_FILE_PROCESSING = "Processing your Excel file..."
TEXT_FILE_INVALID_TYPE = "❌ Invalid file type!\n\nPlease send an Excel file (.xls or .xlsx format)."
TEXT_FILE_DOWNLOAD_ERROR = "❌ Error downloading file. Please try again."
TEXT_FILE_SAVE_ERROR = "❌ Error saving file. Please try again."
TEXT_FILE_READ_ERROR = "❌ Error reading Excel file. Please make sure it's a valid Excel file."
TEXT_FILE_NO_DATA = "ℹ️ No matching data found in the file.\n\nNo contract rows were recognised, so no script was generated."
TEXT_FILE_PROCESSED = "✅ File processed successfully!\n\nHere is the generated SQL script:"


def welcome_text(username: str) -> str:
    """Greeting shown after /start and for plain text in the START state."""
    name = username or "there"
    return (
        TEXT_GREETING
        + name
        + "! 👋\n\n"
        + TEXT_WELCOME
        + TEXT_WELCOME_DESC
        + TEXT_FUNCTIONS_HEADER
        + "".join(TEXT_FUNCTIONS)
    )


def instructions_text() -> str:
    return (
        TEXT_INSTRUCTIONS_HEADER
        + TEXT_INSTRUCTIONS_DESC
        + TEXT_INSTRUCTIONS_FUNCS
        + "".join(TEXT_INSTRUCTIONS)
        + TEXT_INSTRUCTIONS_TIP
    )


def file_received_text(file_name: str, size_bytes: int) -> str:
    return (
        TEXT_FILE_RECEIVED
        + TEXT_FILE_NAME.format(name=file_name)
        + TEXT_FILE_SIZE.format(size_kb=size_bytes / 1024)
        + TEXT_FILE_PROCESSING
    )

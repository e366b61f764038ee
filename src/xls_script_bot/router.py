from __future__ import annotations

import logging
from typing import Optional

from . import texts
from .exceptions import DecodeError, DownloadError, StorageError, TransportError
from .extraction import extract_from_file, is_spreadsheet_name
from .models import Document, Message, Update
from .script import SCRIPT_FILE_NAME, generate_sql_script
from .session import ChatAction, ChatEvent, SessionStore
from .storage import UploadStore
from .telegram import TelegramClient


LOGGER = logging.getLogger("xls_script_bot.router")

GREETING_COMMAND = "start"


class MessageRouter:
    """
    Route each inbound message through the chat state machine and act on it.

    The router owns its SessionStore, so separate routers never share chat
    state. Send failures are logged and never raised; everything that goes
    wrong while processing an upload ends in a message to the user.
    """

    def __init__(
        self,
        transport: TelegramClient,
        uploads: UploadStore,
        sessions: Optional[SessionStore] = None,
    ) -> None:
        self._transport = transport
        self._uploads = uploads
        self._sessions = sessions or SessionStore()

    @property
    def sessions(self) -> SessionStore:
        return self._sessions

    def close(self) -> None:
        self._uploads.close()

    def handle_update(self, update: Update) -> Optional[ChatAction]:
        """Handle one update and return the action taken, or None when it carried no message."""
        message = update.message
        if message is None:
            return None

        chat_id = message.chat.id
        event = self._classify(message)
        _, action = self._sessions.apply(chat_id, event)

        if action is ChatAction.WELCOME:
            if event is ChatEvent.GREETING:
                LOGGER.info("Responding to /start command from user: %s", message.sender_name)
            self._send_text(chat_id, texts.welcome_text(message.sender_name))
        elif action is ChatAction.INSTRUCTIONS:
            self._send_text(chat_id, texts.instructions_text())
        elif action is ChatAction.UNKNOWN_COMMAND:
            LOGGER.info("Unknown command: %s", message.command)
            self._send_text(chat_id, texts.TEXT_UNKNOWN_COMMAND)
        elif action is ChatAction.IGNORE:
            LOGGER.info("Chat %s not in START state, ignoring file %s", chat_id, message.document.file_name)
        elif action is ChatAction.REJECT_FILE:
            LOGGER.info("Invalid file type received: %s", message.document.file_name)
            self._send_text(chat_id, texts.TEXT_FILE_INVALID_TYPE)
        elif action is ChatAction.PROCESS_FILE:
            self._process_file(chat_id, message.document)
        return action

    def _classify(self, message: Message) -> ChatEvent:
        if message.is_command:
            return ChatEvent.GREETING if message.command == GREETING_COMMAND else ChatEvent.UNKNOWN_COMMAND
        if message.document is not None:
            LOGGER.info("Received file from chat %s: %s", message.chat.id, message.document.file_name)
            if is_spreadsheet_name(message.document.file_name):
                return ChatEvent.SPREADSHEET
            return ChatEvent.OTHER_FILE
        LOGGER.info("Received text message from chat %s: %s", message.chat.id, message.text)
        return ChatEvent.TEXT

    def _process_file(self, chat_id: int, document: Document) -> None:
        try:
            file_url = self._transport.get_file_url(document.file_id)
        except TransportError as exc:
            LOGGER.error("Error getting file URL: %s", exc)
            self._send_text(chat_id, texts.TEXT_FILE_DOWNLOAD_ERROR)
            return

        try:
            file_path = self._uploads.save_from_url(file_url, document.file_name)
        except DownloadError as exc:
            LOGGER.error("Error downloading file %s: %s", document.file_name, exc)
            self._send_text(chat_id, texts.TEXT_FILE_DOWNLOAD_ERROR)
            return
        except StorageError as exc:
            LOGGER.error("Error saving file %s: %s", document.file_name, exc)
            self._send_text(chat_id, texts.TEXT_FILE_SAVE_ERROR)
            return

        self._send_text(chat_id, texts.file_received_text(document.file_name, document.file_size))

        try:
            result = extract_from_file(file_path)
        except DecodeError as exc:
            LOGGER.error("Error reading Excel file %s: %s", file_path, exc)
            self._send_text(chat_id, texts.TEXT_FILE_READ_ERROR)
            return

        if not result.has_data:
            LOGGER.info("No matching data found in %s", file_path)
            self._send_text(chat_id, texts.TEXT_FILE_NO_DATA)
            return

        script = generate_sql_script(result.records)
        try:
            self._transport.send_document(
                chat_id,
                SCRIPT_FILE_NAME,
                script.encode("utf-8"),
                caption=texts.TEXT_FILE_PROCESSED,
            )
        except TransportError as exc:
            LOGGER.error("Error sending file to user: %s", exc)
            return
        LOGGER.info("Successfully sent %s with %d records to chat %s", SCRIPT_FILE_NAME, len(result.records), chat_id)

    def _send_text(self, chat_id: int, text: str) -> bool:
        try:
            self._transport.send_message(chat_id, text)
        except TransportError as exc:
            LOGGER.error("Error sending message to chat %s: %s", chat_id, exc)
            return False
        return True


__all__ = ["GREETING_COMMAND", "MessageRouter"]

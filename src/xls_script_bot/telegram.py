"""Minimal Telegram Bot API client built on requests."""
from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import requests
from pydantic import ValidationError

from .config import TelegramConfig
from .exceptions import TransportError
from .models import Update, User


LOGGER = logging.getLogger("xls_script_bot.telegram")


class TelegramClient:
    """
    Thin wrapper around the Bot API methods the bot relies on.

    Every failure (network error, non-JSON body, ``ok: false``) surfaces as
    TransportError with the bot token masked out of the message.
    """

    def __init__(
        self,
        token: str,
        config: Optional[TelegramConfig] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        self._token = token
        self._config = config or TelegramConfig()
        self._session = session or requests.Session()
        self._api_base = self._config.api_base.rstrip("/")

    def close(self) -> None:
        self._session.close()

    def get_me(self) -> User:
        result = self._request("getMe")
        try:
            return User.model_validate(result)
        except ValidationError as exc:
            raise TransportError(f"Invalid getMe response: {exc}") from exc

    def get_updates(self, offset: int, timeout: Optional[int] = None) -> List[Update]:
        poll_timeout = self._config.poll_timeout if timeout is None else timeout
        result = self._request(
            "getUpdates",
            {
                "offset": offset,
                "timeout": poll_timeout,
                "allowed_updates": json.dumps(["message"]),
            },
            timeout=poll_timeout + self._config.request_timeout,
        )
        if not isinstance(result, list):
            raise TransportError("Invalid getUpdates response: result is not a list")

        updates: List[Update] = []
        for raw in result:
            try:
                updates.append(Update.model_validate(raw))
            except ValidationError as exc:
                update_id = raw.get("update_id") if isinstance(raw, dict) else None
                LOGGER.warning("Skipping malformed update %s: %s", update_id, exc)
                if isinstance(update_id, int):
                    updates.append(Update(update_id=update_id))
        return updates

    def send_message(self, chat_id: int, text: str) -> Dict[str, Any]:
        return self._request("sendMessage", {"chat_id": chat_id, "text": text})

    def send_document(self, chat_id: int, file_name: str, content: bytes, caption: str = "") -> Dict[str, Any]:
        payload: Dict[str, Any] = {"chat_id": chat_id}
        if caption:
            payload["caption"] = caption
        return self._request(
            "sendDocument",
            payload,
            files={"document": (file_name, content, "text/plain")},
        )

    def get_file_url(self, file_id: str) -> str:
        """Resolve *file_id* into a direct download URL."""
        result = self._request("getFile", {"file_id": file_id})
        file_path = result.get("file_path") if isinstance(result, dict) else None
        if not isinstance(file_path, str) or not file_path.strip():
            raise TransportError("Telegram getFile response missing file_path")
        return f"{self._api_base}/file/bot{self._token}/{quote(file_path.lstrip('/'), safe='/')}"

    def _request(
        self,
        method: str,
        payload: Optional[Dict[str, Any]] = None,
        files: Optional[Dict[str, Any]] = None,
        timeout: Optional[float] = None,
    ) -> Any:
        endpoint = f"{self._api_base}/bot{self._token}/{method}"
        try:
            response = self._session.post(
                endpoint,
                data=payload or {},
                files=files,
                timeout=timeout or self._config.request_timeout,
            )
        except requests.RequestException as exc:
            raise TransportError(f"Telegram API {method} failed: {self._mask(str(exc))}") from exc

        try:
            decoded = response.json()
        except ValueError as exc:
            raise TransportError(
                f"Telegram API {method} returned non-JSON response (HTTP {response.status_code})"
            ) from exc

        if not isinstance(decoded, dict) or not decoded.get("ok"):
            description = decoded.get("description", "unknown Telegram error") if isinstance(decoded, dict) else decoded
            raise TransportError(f"Telegram API {method} failed: {self._mask(str(description))}")
        return decoded.get("result")

    def _mask(self, text: str) -> str:
        return text.replace(self._token, "***") if self._token else text


__all__ = ["TelegramClient"]

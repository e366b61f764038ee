from __future__ import annotations

import logging
import queue
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, List, Optional

from .exceptions import BotStartError, TransportError
from .models import Update
from .telegram import TelegramClient


LOGGER = logging.getLogger("xls_script_bot.bot")

UpdateHandler = Callable[[Update], Any]


class BotStatus(str, Enum):
    """Lifecycle phases reported by a bot connection."""

    STARTED = "started"
    STOPPED = "stopped"
    FAILED = "failed"
    CRASHED = "crashed"


@dataclass
class LivenessStatus:
    status: BotStatus
    message: str
    error: Optional[BaseException] = None


class StatusChannel:
    """
    Bounded, best-effort path for liveness statuses.

    Publishing never blocks: when the buffer is full the status is dropped and
    logged, so delivery is at most once. Consumers must tolerate missing
    statuses and use timeouts instead of waiting on a specific one.
    """

    def __init__(self, capacity: int = 10) -> None:
        self._queue: "queue.Queue[LivenessStatus]" = queue.Queue(maxsize=capacity)

    def publish(self, status: LivenessStatus) -> bool:
        try:
            self._queue.put_nowait(status)
        except queue.Full:
            LOGGER.warning("Status channel is full, dropping status: %s", status.status.value)
            return False
        return True

    def receive(self, timeout: Optional[float] = None) -> Optional[LivenessStatus]:
        """Return the next status, or None if *timeout* seconds pass first."""
        try:
            return self._queue.get(timeout=timeout)
        except queue.Empty:
            return None

    def drain(self) -> List[LivenessStatus]:
        """Remove and return every queued status without blocking."""
        drained: List[LivenessStatus] = []
        while True:
            try:
                drained.append(self._queue.get_nowait())
            except queue.Empty:
                return drained


class BotService:
    """
    One bot connection: authorizes, long-polls updates and hands each message to a handler.

    The service never restarts itself. Authorization failures, the end of the
    update stream and handler crashes are reported through the status channel
    and left to the supervisor.
    """

    def __init__(
        self,
        client: TelegramClient,
        channel: Optional[StatusChannel] = None,
        poll_retry_delay: float = 3.0,
    ) -> None:
        self._client = client
        self._channel = channel
        self._poll_retry_delay = poll_retry_delay
        self._stop_event = threading.Event()

    @property
    def client(self) -> TelegramClient:
        return self._client

    def start(self, handler: UpdateHandler) -> None:
        """Run until stop() is called. Exceptions raised by *handler* propagate."""
        LOGGER.info("Starting Telegram bot service...")
        try:
            me = self._client.get_me()
        except TransportError as exc:
            self._notify(BotStatus.FAILED, "Failed to create bot instance", exc)
            raise BotStartError(f"failed to create bot: {exc}") from exc

        LOGGER.info("Bot authorized on account: %s", me.username)
        self._notify(BotStatus.STARTED, f"Bot started successfully as @{me.username}")

        offset = 0
        LOGGER.info("Bot is now listening for updates...")
        while not self._stop_event.is_set():
            try:
                updates = self._client.get_updates(offset)
            except TransportError as exc:
                LOGGER.error("Failed to get updates, retrying in %.1f seconds: %s", self._poll_retry_delay, exc)
                self._stop_event.wait(self._poll_retry_delay)
                continue

            for update in updates:
                offset = max(offset, update.update_id + 1)
                if update.message is None:
                    continue
                LOGGER.info(
                    "Received message from user %s: %s",
                    update.message.sender_name,
                    update.message.text,
                )
                try:
                    handler(update)
                except Exception:
                    # Confirm the update so the next connection does not receive it again.
                    self._acknowledge(offset)
                    raise

        self._notify(BotStatus.STOPPED, "Bot stopped receiving updates")

    def _acknowledge(self, offset: int) -> None:
        try:
            self._client.get_updates(offset, timeout=0)
        except TransportError as exc:
            LOGGER.warning("Could not confirm updates before offset %d: %s", offset, exc)

    def stop(self) -> None:
        """Ask the polling loop to finish after the current long-poll returns."""
        self._stop_event.set()

    def close(self) -> None:
        """Release the transport client. Call once the polling loop has ended."""
        self._client.close()

    def _notify(self, status: BotStatus, message: str, error: Optional[BaseException] = None) -> None:
        if self._channel is not None:
            self._channel.publish(LivenessStatus(status=status, message=message, error=error))


__all__ = ["BotService", "BotStatus", "LivenessStatus", "StatusChannel", "UpdateHandler"]

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional, Tuple

from .bot import BotStatus, LivenessStatus, StatusChannel
from .config import SupervisorConfig


LOGGER = logging.getLogger("xls_script_bot.supervisor")

RETRIES_EXHAUSTED = "retries_exhausted"


@dataclass
class SupervisorOutcome:
    """Why supervision ended. The host process turns this into a non-zero exit."""

    reason: str
    failures: int
    attempts: int
    last_status: Optional[LivenessStatus] = None


ConnectionFactory = Callable[[StatusChannel], Any]
RouterFactory = Callable[[Any], Any]


class Supervisor:
    """
    Keep a bot connection alive, replacing it after crashes.

    Every attempt gets a new connection, a new router and a new status channel,
    so statuses from a retired connection can never be mistaken for the
    current one. A ``started`` status resets the consecutive failure count;
    ``max_retries`` consecutive crashes end supervision with a
    SupervisorOutcome. A connection that stops cleanly is replaced at once.
    """

    def __init__(
        self,
        config: SupervisorConfig,
        connection_factory: ConnectionFactory,
        router_factory: RouterFactory,
        sleep: Callable[[float], None] = time.sleep,
        channel_factory: Callable[[int], StatusChannel] = StatusChannel,
    ) -> None:
        self._config = config
        self._connection_factory = connection_factory
        self._router_factory = router_factory
        self._sleep = sleep
        self._channel_factory = channel_factory

    def run(self) -> SupervisorOutcome:
        failures = 0
        attempts = 0
        max_retries = self._config.max_retries

        while True:
            attempts += 1
            LOGGER.info("Launch attempt %d/%d", failures + 1, max_retries)

            channel = self._channel_factory(self._config.status_buffer)
            connection = self._connection_factory(channel)
            router = self._router_factory(connection)
            worker = threading.Thread(
                target=self._run_connection,
                args=(connection, router, channel),
                name=f"bot-connection-{attempts}",
                daemon=True,
            )
            worker.start()

            crashed = False
            status = channel.receive(timeout=self._config.init_timeout)
            if status is None:
                LOGGER.error("Bot initialization timeout - considering as failure")
                crashed = True
            elif status.status is BotStatus.STARTED:
                LOGGER.info("Bot status: %s - %s", status.status.value, status.message)
                failures = 0
                crashed, status = self._watch(channel, worker, status)
            else:
                LOGGER.error("Bot status: %s - %s (Error: %s)", status.status.value, status.message, status.error)
                crashed = True

            self._retire(connection, router, worker, channel)

            if not crashed:
                LOGGER.info("Bot connection ended without errors, relaunching")
                continue

            failures += 1
            if failures >= max_retries:
                LOGGER.critical("Bot failed %d times in a row. Maximum retries reached.", failures)
                return SupervisorOutcome(
                    reason=RETRIES_EXHAUSTED,
                    failures=failures,
                    attempts=attempts,
                    last_status=status,
                )

            LOGGER.warning(
                "Bot will restart in %.1f seconds... (Attempt %d/%d)",
                self._config.retry_delay,
                failures + 1,
                max_retries,
            )
            self._sleep(self._config.retry_delay)

    def _watch(
        self,
        channel: StatusChannel,
        worker: threading.Thread,
        last: LivenessStatus,
    ) -> Tuple[bool, Optional[LivenessStatus]]:
        """Follow a running connection; return (crashed, last status seen)."""
        LOGGER.info("Bot is running, waiting for updates...")
        while True:
            status = channel.receive(timeout=self._config.init_timeout)
            if status is None:
                if worker.is_alive():
                    continue
                # The worker may have published just before exiting.
                status = channel.receive(timeout=0)
                if status is None:
                    LOGGER.error("Bot connection exited without reporting a final status")
                    return True, last

            last = status
            LOGGER.info("Bot status update: %s - %s", status.status.value, status.message)
            if status.error is not None:
                LOGGER.error("Error: %s", status.error)
                return True, status
            if status.status in (BotStatus.FAILED, BotStatus.CRASHED):
                return True, status
            if status.status is BotStatus.STOPPED:
                return False, status

    def _retire(self, connection: Any, router: Any, worker: threading.Thread, channel: StatusChannel) -> None:
        connection.stop()
        worker.join(timeout=self._config.stop_timeout)
        if worker.is_alive():
            LOGGER.warning("Previous bot connection %s is still shutting down", worker.name)
        for stale in channel.drain():
            LOGGER.debug("Discarding status from retired connection: %s - %s", stale.status.value, stale.message)
        for resource in (connection, router):
            try:
                resource.close()
            except Exception as exc:
                LOGGER.warning("Failed to close %s of retired connection: %s", type(resource).__name__, exc)

    @staticmethod
    def _run_connection(connection: Any, router: Any, channel: StatusChannel) -> None:
        try:
            connection.start(router.handle_update)
        except Exception as exc:
            LOGGER.error("Bot crashed with error: %s", exc, exc_info=True)
            channel.publish(
                LivenessStatus(status=BotStatus.CRASHED, message="Bot encountered an error", error=exc)
            )


__all__ = ["RETRIES_EXHAUSTED", "Supervisor", "SupervisorOutcome"]

"""Per-chat conversation state."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Tuple


LOGGER = logging.getLogger("xls_script_bot.session")


class ChatState(str, Enum):
    """Conversation phases a chat moves through."""

    DEFAULT = "DEFAULT"
    START = "START"


class ChatEvent(str, Enum):
    """Classified inbound message kinds."""

    GREETING = "greeting"
    TEXT = "text"
    SPREADSHEET = "spreadsheet"
    OTHER_FILE = "other_file"
    UNKNOWN_COMMAND = "unknown_command"


class ChatAction(str, Enum):
    """What the router must do in response to an event."""

    WELCOME = "welcome"
    INSTRUCTIONS = "instructions"
    PROCESS_FILE = "process_file"
    REJECT_FILE = "reject_file"
    IGNORE = "ignore"
    UNKNOWN_COMMAND = "unknown_command"


_TRANSITIONS: Dict[Tuple[ChatState, ChatEvent], Tuple[ChatState, ChatAction]] = {
    (ChatState.DEFAULT, ChatEvent.GREETING): (ChatState.START, ChatAction.WELCOME),
    (ChatState.DEFAULT, ChatEvent.TEXT): (ChatState.DEFAULT, ChatAction.INSTRUCTIONS),
    (ChatState.DEFAULT, ChatEvent.SPREADSHEET): (ChatState.DEFAULT, ChatAction.IGNORE),
    (ChatState.DEFAULT, ChatEvent.OTHER_FILE): (ChatState.DEFAULT, ChatAction.IGNORE),
    (ChatState.DEFAULT, ChatEvent.UNKNOWN_COMMAND): (ChatState.DEFAULT, ChatAction.UNKNOWN_COMMAND),
    (ChatState.START, ChatEvent.GREETING): (ChatState.START, ChatAction.WELCOME),
    (ChatState.START, ChatEvent.TEXT): (ChatState.START, ChatAction.WELCOME),
    (ChatState.START, ChatEvent.SPREADSHEET): (ChatState.START, ChatAction.PROCESS_FILE),
    (ChatState.START, ChatEvent.OTHER_FILE): (ChatState.START, ChatAction.REJECT_FILE),
    (ChatState.START, ChatEvent.UNKNOWN_COMMAND): (ChatState.START, ChatAction.UNKNOWN_COMMAND),
}


def transition(state: ChatState, event: ChatEvent) -> Tuple[ChatState, ChatAction]:
    """Return the next state and the action for *event* received in *state*."""
    return _TRANSITIONS[(state, event)]


@dataclass
class Session:
    chat_id: int
    state: ChatState = ChatState.DEFAULT


class SessionStore:
    """
    Keyed session storage owned by a single router.

    A chat without a stored session is in the DEFAULT state. All access goes
    through one lock so the store stays consistent if messages are ever
    handled on more than one thread.
    """

    def __init__(self) -> None:
        self._sessions: Dict[int, Session] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def get(self, chat_id: int) -> Optional[Session]:
        with self._lock:
            session = self._sessions.get(chat_id)
            return Session(chat_id=session.chat_id, state=session.state) if session else None

    def get_state(self, chat_id: int) -> ChatState:
        with self._lock:
            session = self._sessions.get(chat_id)
            return session.state if session else ChatState.DEFAULT

    def set_state(self, chat_id: int, state: ChatState) -> None:
        with self._lock:
            self._set_locked(chat_id, state)

    def apply(self, chat_id: int, event: ChatEvent) -> Tuple[ChatState, ChatAction]:
        """Run *event* through the state machine for *chat_id* and store the new state."""
        with self._lock:
            session = self._sessions.get(chat_id)
            current = session.state if session else ChatState.DEFAULT
            next_state, action = transition(current, event)
            if session is None or next_state is not current:
                self._set_locked(chat_id, next_state)
            return next_state, action

    def _set_locked(self, chat_id: int, state: ChatState) -> None:
        session = self._sessions.get(chat_id)
        if session is None:
            session = self._sessions[chat_id] = Session(chat_id=chat_id)
            LOGGER.debug("Session created for chat %s", chat_id)
        if session.state is not state:
            session.state = state
            LOGGER.info("State changed for chat %s: %s", chat_id, state.value)


__all__ = ["ChatAction", "ChatEvent", "ChatState", "Session", "SessionStore", "transition"]

"""Inbound Telegram update payloads."""
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class User(BaseModel):
    id: int
    first_name: str = ""
    username: str = ""

    @property
    def display_name(self) -> str:
        return self.first_name or self.username


class Chat(BaseModel):
    id: int


class Document(BaseModel):
    """Metadata of an uploaded file; the content is fetched separately."""

    file_id: str
    file_name: str = ""
    file_size: int = 0


class Message(BaseModel):
    """The subset of a Telegram message the bot reacts to."""

    model_config = ConfigDict(populate_by_name=True)

    message_id: int = 0
    chat: Chat
    from_user: Optional[User] = Field(default=None, alias="from")
    text: str = ""
    document: Optional[Document] = None

    @property
    def is_command(self) -> bool:
        return len(self.text) > 1 and self.text[0] == "/" and not self.text[1].isspace()

    @property
    def command(self) -> str:
        """Command keyword without the slash, bot mention or arguments."""
        if not self.is_command:
            return ""
        head = self.text[1:].split(maxsplit=1)[0]
        return head.split("@", maxsplit=1)[0]

    @property
    def sender_name(self) -> str:
        return self.from_user.display_name if self.from_user else ""


class Update(BaseModel):
    update_id: int
    message: Optional[Message] = None


__all__ = ["Chat", "Document", "Message", "Update", "User"]

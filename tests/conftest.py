from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import openpyxl
import pytest

from xls_script_bot.exceptions import TransportError
from xls_script_bot.extraction import MARKER
from xls_script_bot.models import Update


class FakeResponse:
    """Just enough of requests.Response for the client and the upload store."""

    def __init__(self, status_code: int = 200, payload: Any = None, content: bytes = b"", reason: str = "OK") -> None:
        self.status_code = status_code
        self.reason = reason
        self._payload = payload
        self._content = content

    def json(self) -> Any:
        if self._payload is None:
            raise ValueError("no json body")
        return self._payload

    def iter_content(self, chunk_size: int = 1):
        for start in range(0, len(self._content), chunk_size):
            yield self._content[start:start + chunk_size]

    def __enter__(self) -> "FakeResponse":
        return self

    def __exit__(self, *exc_info) -> None:
        return None


class FakeHttpSession:
    """Records calls and answers them from per-method handlers."""

    def __init__(self) -> None:
        self.posts: List[Dict[str, Any]] = []
        self.gets: List[str] = []
        self.post_handler: Callable[[str, Dict[str, Any]], FakeResponse] = lambda url, call: FakeResponse(
            payload={"ok": True, "result": True}
        )
        self.get_handler: Callable[[str], FakeResponse] = lambda url: FakeResponse(content=b"")
        self.closed = False

    def post(self, url, data=None, files=None, timeout=None):
        call = {"url": url, "data": data, "files": files, "timeout": timeout}
        self.posts.append(call)
        return self.post_handler(url, call)

    def get(self, url, stream=False, timeout=None):
        self.gets.append(url)
        return self.get_handler(url)

    def close(self) -> None:
        self.closed = True


class FakeTransport:
    """In-memory stand-in for TelegramClient as seen by the router."""

    def __init__(self) -> None:
        self.messages: List[tuple] = []
        self.documents: List[dict] = []
        self.file_urls: Dict[str, str] = {}
        self.fail_sends = False
        self.fail_documents = False

    def send_message(self, chat_id: int, text: str) -> dict:
        if self.fail_sends:
            raise TransportError("sendMessage failed")
        self.messages.append((chat_id, text))
        return {}

    def send_document(self, chat_id: int, file_name: str, content: bytes, caption: str = "") -> dict:
        if self.fail_documents:
            raise TransportError("sendDocument failed")
        self.documents.append({"chat_id": chat_id, "file_name": file_name, "content": content, "caption": caption})
        return {}

    def get_file_url(self, file_id: str) -> str:
        try:
            return self.file_urls[file_id]
        except KeyError:
            raise TransportError(f"unknown file {file_id}") from None


def make_update(
    chat_id: int = 1001,
    text: str = "",
    document: Optional[dict] = None,
    update_id: int = 1,
    first_name: str = "Olena",
    username: str = "olena_k",
) -> Update:
    message: Dict[str, Any] = {
        "message_id": update_id,
        "chat": {"id": chat_id},
        "from": {"id": 7, "first_name": first_name, "username": username},
        "text": text,
    }
    if document is not None:
        message["document"] = document
    return Update.model_validate({"update_id": update_id, "message": message})


def xlsx_bytes(tmp_path: Path, rows: List[list], name: str = "source.xlsx") -> bytes:
    workbook = openpyxl.Workbook()
    worksheet = workbook.active
    for row in rows:
        worksheet.append(row)
    path = tmp_path / name
    workbook.save(path)
    return path.read_bytes()


@pytest.fixture()
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture()
def http_session() -> FakeHttpSession:
    return FakeHttpSession()


@pytest.fixture()
def marker_workbook(tmp_path: Path) -> bytes:
    return xlsx_bytes(
        tmp_path,
        [
            ["Header1", "Header2", "Header3"],
            [MARKER, "228960453", "123"],
            [MARKER, "228209382", "456"],
        ],
    )


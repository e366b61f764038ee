from pathlib import Path

import pytest
import requests

from conftest import FakeResponse, make_update, xlsx_bytes
from xls_script_bot import texts
from xls_script_bot.router import MessageRouter
from xls_script_bot.session import ChatAction, ChatState
from xls_script_bot.storage import UploadStore

FILE_URL = "https://files.example/doc-1"


@pytest.fixture()
def files_dir(tmp_path: Path) -> Path:
    return tmp_path / "files"


@pytest.fixture()
def router(transport, http_session, files_dir) -> MessageRouter:
    return MessageRouter(transport, UploadStore(files_dir, session=http_session))


def _document(name="contracts.xlsx", size=2048, file_id="doc-1"):
    return {"file_id": file_id, "file_name": name, "file_size": size}


def _greet(router, chat_id=1001):
    router.handle_update(make_update(chat_id=chat_id, text="/start"))


def test_update_without_message_is_ignored(router, transport):
    from xls_script_bot.models import Update

    assert router.handle_update(Update(update_id=5)) is None
    assert transport.messages == []


def test_start_command_sends_welcome_and_sets_state(router, transport):
    action = router.handle_update(make_update(text="/start"))
    assert action is ChatAction.WELCOME
    assert router.sessions.get_state(1001) is ChatState.START
    assert transport.messages == [(1001, texts.welcome_text("Olena"))]
    assert "Hello, Olena!" in transport.messages[0][1]


def test_start_with_bot_mention_and_username_fallback(router, transport):
    router.handle_update(make_update(text="/start@XlsScriptBot extra", first_name="", username="olena_k"))
    assert "Hello, olena_k!" in transport.messages[0][1]


def test_welcome_falls_back_to_there(router, transport):
    router.handle_update(make_update(text="/start", first_name="", username=""))
    assert "Hello, there!" in transport.messages[0][1]


def test_unknown_command_keeps_state(router, transport):
    action = router.handle_update(make_update(text="/help"))
    assert action is ChatAction.UNKNOWN_COMMAND
    assert transport.messages == [(1001, texts.TEXT_UNKNOWN_COMMAND)]
    assert router.sessions.get_state(1001) is ChatState.DEFAULT

    _greet(router)
    router.handle_update(make_update(text="/stop"))
    assert router.sessions.get_state(1001) is ChatState.START


def test_text_in_default_state_sends_instructions(router, transport):
    action = router.handle_update(make_update(text="hello"))
    assert action is ChatAction.INSTRUCTIONS
    assert transport.messages == [(1001, texts.instructions_text())]


def test_text_in_start_state_repeats_welcome(router, transport):
    _greet(router)
    router.handle_update(make_update(text="what now?"))
    assert transport.messages[-1] == (1001, texts.welcome_text("Olena"))


def test_file_in_default_state_is_ignored(router, transport, http_session, files_dir):
    action = router.handle_update(make_update(document=_document()))
    assert action is ChatAction.IGNORE
    assert transport.messages == []
    assert http_session.gets == []
    assert not files_dir.exists()


def test_invalid_file_type_is_rejected_before_download(router, transport, http_session):
    _greet(router)
    action = router.handle_update(make_update(document=_document(name="report.pdf")))
    assert action is ChatAction.REJECT_FILE
    assert transport.messages[-1] == (1001, texts.TEXT_FILE_INVALID_TYPE)
    assert http_session.gets == []
    assert router.sessions.get_state(1001) is ChatState.START


def test_spreadsheet_produces_script_document(router, transport, http_session, files_dir, marker_workbook):
    transport.file_urls["doc-1"] = FILE_URL
    http_session.get_handler = lambda url: FakeResponse(content=marker_workbook)
    _greet(router)

    action = router.handle_update(make_update(document=_document(size=2048)))

    assert action is ChatAction.PROCESS_FILE
    assert http_session.gets == [FILE_URL]
    assert (files_dir / "contracts.xlsx").read_bytes() == marker_workbook
    received = transport.messages[-1][1]
    assert "contracts.xlsx" in received
    assert "2.00 KB" in received
    assert len(transport.documents) == 1
    document = transport.documents[0]
    assert document["file_name"] == "script.txt"
    assert document["caption"] == texts.TEXT_FILE_PROCESSED
    script = document["content"].decode("utf-8")
    assert "('EP-228960453-123', 0)" in script
    assert "('EP-228209382-456', 1)" in script


def test_spreadsheet_without_marker_rows_reports_no_data(router, transport, http_session, tmp_path):
    transport.file_urls["doc-1"] = FILE_URL
    content = xlsx_bytes(tmp_path, [["Some Other Data", "Value1", "Value2"]], name="plain.xlsx")
    http_session.get_handler = lambda url: FakeResponse(content=content)
    _greet(router)

    router.handle_update(make_update(document=_document()))

    assert transport.messages[-1] == (1001, texts.TEXT_FILE_NO_DATA)
    assert transport.documents == []


def test_unreadable_spreadsheet_reports_read_error(router, transport, http_session):
    transport.file_urls["doc-1"] = FILE_URL
    http_session.get_handler = lambda url: FakeResponse(content=b"not a workbook")
    _greet(router)

    router.handle_update(make_update(document=_document()))

    assert transport.messages[-1] == (1001, texts.TEXT_FILE_READ_ERROR)
    assert transport.documents == []


def test_file_url_failure_reports_download_error(router, transport, http_session):
    _greet(router)
    router.handle_update(make_update(document=_document(file_id="missing")))
    assert transport.messages[-1] == (1001, texts.TEXT_FILE_DOWNLOAD_ERROR)
    assert http_session.gets == []


def test_bad_http_status_reports_download_error(router, transport, http_session, files_dir):
    transport.file_urls["doc-1"] = FILE_URL
    http_session.get_handler = lambda url: FakeResponse(status_code=404, reason="Not Found")
    _greet(router)

    router.handle_update(make_update(document=_document()))

    assert transport.messages[-1] == (1001, texts.TEXT_FILE_DOWNLOAD_ERROR)
    assert not (files_dir / "contracts.xlsx").exists()


def test_network_error_reports_download_error(router, transport, http_session):
    transport.file_urls["doc-1"] = FILE_URL

    def _raise(url):
        raise requests.ConnectionError("connection reset")

    http_session.get_handler = _raise
    _greet(router)
    router.handle_update(make_update(document=_document()))
    assert transport.messages[-1] == (1001, texts.TEXT_FILE_DOWNLOAD_ERROR)


def test_write_failure_reports_save_error(transport, http_session, tmp_path, marker_workbook):
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("occupied")
    router = MessageRouter(transport, UploadStore(blocker, session=http_session))
    transport.file_urls["doc-1"] = FILE_URL
    http_session.get_handler = lambda url: FakeResponse(content=marker_workbook)
    _greet(router)

    router.handle_update(make_update(document=_document()))

    assert transport.messages[-1] == (1001, texts.TEXT_FILE_SAVE_ERROR)


def test_send_failures_do_not_stop_the_pipeline(router, transport, http_session, marker_workbook):
    transport.file_urls["doc-1"] = FILE_URL
    http_session.get_handler = lambda url: FakeResponse(content=marker_workbook)
    _greet(router)
    transport.fail_sends = True

    router.handle_update(make_update(document=_document()))

    assert len(transport.documents) == 1


def test_document_send_failure_is_logged(router, transport, http_session, marker_workbook, caplog):
    transport.file_urls["doc-1"] = FILE_URL
    http_session.get_handler = lambda url: FakeResponse(content=marker_workbook)
    transport.fail_documents = True
    _greet(router)

    router.handle_update(make_update(document=_document()))

    assert "Error sending file to user" in caplog.text


def test_routers_do_not_share_sessions(transport, http_session, tmp_path):
    first = MessageRouter(transport, UploadStore(tmp_path / "a", session=http_session))
    second = MessageRouter(transport, UploadStore(tmp_path / "b", session=http_session))
    _greet(first)
    assert first.sessions.get_state(1001) is ChatState.START
    assert second.sessions.get_state(1001) is ChatState.DEFAULT


def test_close_releases_upload_session(router, http_session):
    router.close()
    assert http_session.closed

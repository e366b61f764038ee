from click.testing import CliRunner

from conftest import xlsx_bytes
from xls_script_bot.bot import BotService, StatusChannel
from xls_script_bot.cli import build_supervisor, main
from xls_script_bot.config import load_settings
from xls_script_bot.extraction import MARKER
from xls_script_bot.router import MessageRouter


def _workbook(tmp_path, rows):
    path = tmp_path / "contracts.xlsx"
    path.write_bytes(xlsx_bytes(tmp_path, rows, name="built.xlsx"))
    return path


def test_extract_prints_script(tmp_path):
    path = _workbook(tmp_path, [["Header"], [MARKER, "228960453", "123"], [MARKER, "228209382", "456"]])

    result = CliRunner().invoke(main, ["extract", str(path)])

    assert result.exit_code == 0
    assert "('EP-228960453-123', 0)" in result.output
    assert "('EP-228209382-456', 1)" in result.output


def test_extract_writes_output_file(tmp_path):
    path = _workbook(tmp_path, [[MARKER, "111", "a"]])
    output = tmp_path / "out" / "script.txt"

    result = CliRunner().invoke(main, ["extract", str(path), "-o", str(output)])

    assert result.exit_code == 0
    assert "Wrote 1 records to" in result.output
    assert "('EP-111-a', 0)" in output.read_text(encoding="utf-8")


def test_extract_without_matches(tmp_path):
    path = _workbook(tmp_path, [["Some Other Data", "Value1", "Value2"]])

    result = CliRunner().invoke(main, ["extract", str(path)])

    assert result.exit_code == 0
    assert "No matching data found" in result.output
    assert "SELECT" not in result.output


def test_extract_unreadable_file_fails(tmp_path):
    path = tmp_path / "broken.xlsx"
    path.write_bytes(b"not a workbook")

    result = CliRunner().invoke(main, ["extract", str(path)])

    assert result.exit_code == 1
    assert "Cannot read" in result.output


def test_help_lists_commands():
    result = CliRunner().invoke(main, ["-h"])
    assert result.exit_code == 0
    assert "extract" in result.output
    assert "run" in result.output


def test_build_supervisor_wires_fresh_connections(tmp_path):
    settings = load_settings(files_dir=tmp_path / "uploads", telegram_bot_token="123:abc")
    supervisor = build_supervisor(settings, settings.require_token())

    first = supervisor._connection_factory(StatusChannel())
    second = supervisor._connection_factory(StatusChannel())
    router = supervisor._router_factory(first)

    assert isinstance(first, BotService)
    assert first.client is not second.client
    assert isinstance(router, MessageRouter)

    first.close()
    second.close()
    router.close()

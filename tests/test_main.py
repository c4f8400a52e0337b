import py_compile
from pathlib import Path

from volunteer_sheets.adapters.local import LocalSheetsClient
from volunteer_sheets.config import Settings
from volunteer_sheets.main import build_client, main

ENV_VARS = (
    "GOOGLE_SPREADSHEET_ID",
    "GOOGLE_SERVICE_ACCOUNT_EMAIL",
    "GOOGLE_PRIVATE_KEY",
    "SHEETS_LOCAL_PATH",
    "SHEETS_TIMESTAMP_FALLBACK",
    "LOG_LEVEL",
)


def clear_env(monkeypatch) -> None:
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_main_compiles() -> None:
    """``python -m volunteer_sheets.main`` must at least be importable."""
    py_compile.compile(Path("volunteer_sheets/main.py"), doraise=True)


def test_build_client_uses_local_file_without_spreadsheet(tmp_path) -> None:
    client = build_client(Settings(local_path=str(tmp_path / "sheet.json")))
    assert isinstance(client, LocalSheetsClient)


def test_main_without_configuration(monkeypatch) -> None:
    clear_env(monkeypatch)
    assert main() == 2


def test_main_with_spreadsheet_but_no_credentials(monkeypatch) -> None:
    clear_env(monkeypatch)
    monkeypatch.setenv("GOOGLE_SPREADSHEET_ID", "sheet123")
    assert main() == 2


def test_main_rejects_unknown_fallback(monkeypatch, tmp_path) -> None:
    clear_env(monkeypatch)
    monkeypatch.setenv("SHEETS_LOCAL_PATH", str(tmp_path / "sheet.json"))
    monkeypatch.setenv("SHEETS_TIMESTAMP_FALLBACK", "sometimes")
    assert main() == 2


def test_main_prepares_local_spreadsheet(monkeypatch, tmp_path) -> None:
    path = tmp_path / "sheet.json"
    clear_env(monkeypatch)
    monkeypatch.setenv("SHEETS_LOCAL_PATH", str(path))
    assert main() == 0
    assert path.exists()
    assert '"ProjectComments"' in path.read_text(encoding="utf-8")

import os

import pytest

from passlane.csv_io import CSVExporter, CSVImporter
from passlane.exceptions import StorageIOError
from passlane.models import Credentials


def test_import_plain_format(tmp_path) -> None:
    path = tmp_path / "plain.csv"
    path.write_text("service,username,password\ngithub.com,octocat,pw-1\n")

    assert CSVImporter().import_from_file(str(path)) == [Credentials("github.com", "octocat", "pw-1")]


def test_import_browser_export_with_header_aliases(tmp_path) -> None:
    path = tmp_path / "chrome.csv"
    path.write_text(
        "name,url,login,pwd\n"
        "https://accounts.example.com/login,https://accounts.example.com,me@example.com,pw-2\n"
        "incomplete,https://x.example,,\n"
    )

    entries = CSVImporter().import_from_file(str(path))

    assert entries == [Credentials("accounts.example.com", "me@example.com", "pw-2")]


def test_import_missing_file(tmp_path) -> None:
    with pytest.raises(StorageIOError):
        CSVImporter().import_from_file(str(tmp_path / "missing.csv"))


def test_export_writes_header_and_rows(tmp_path) -> None:
    path = tmp_path / "out.csv"

    count = CSVExporter().export_to_file(str(path), [Credentials("a", "b", "c,d")])

    assert count == 1
    assert path.read_text().splitlines() == ["service,username,password", 'a,b,"c,d"']
    if os.name != "nt":
        assert os.stat(path).st_mode & 0o777 == 0o600

import os

import pytest

from passlane.exceptions import CorruptDataError, IncorrectPassphraseError, StorageIOError, VaultError
from passlane.models import Credentials
from passlane.storage import SingleSlotStore

PASSPHRASE = "correct-horse"

A = Credentials("alpha.example", "alice", "pw-alpha-1")
B = Credentials("bravo.example", "bob", "pw-bravo-2")
C = Credentials("charlie.example", "carol", "pw-charlie-3")


def _fill(store, *records):
    for record in records:
        store.append(PASSPHRASE, record)


def _read_bytes(path: str) -> bytes:
    with open(path, "rb") as f:
        return f.read()


def test_read_all_on_missing_store_is_empty(record_store) -> None:
    assert record_store.read_all() == []
    assert record_store.search(PASSPHRASE, ".*") == []


def test_append_search_delete_scenario(record_store) -> None:
    _fill(record_store, A, B, C)

    stored = record_store.read_all()
    assert [r.service for r in stored] == [A.service, B.service, C.service]
    assert all(r.password not in (A.password, B.password, C.password) for r in stored)

    assert record_store.search(PASSPHRASE, "bravo") == [B]

    positions = [position for position, _ in record_store.find("bravo")]
    assert positions == [1]
    assert record_store.delete(positions) == 1

    assert [r.service for r in record_store.read_all()] == [A.service, C.service]
    assert record_store.search(PASSPHRASE, "example") == [A, C]


def test_search_matches_username_and_ignores_case(record_store) -> None:
    _fill(record_store, A, B)

    assert record_store.search(PASSPHRASE, "BOB") == [B]
    assert record_store.search(PASSPHRASE, "BOB", ignore_case=False) == []


def test_search_without_passphrase_withholds_passwords(record_store) -> None:
    _fill(record_store, A)

    assert record_store.search(None, "alpha") == [Credentials(A.service, A.username, "")]


def test_search_is_idempotent(record_store) -> None:
    _fill(record_store, A, B, C)

    first = record_store.search(PASSPHRASE, "example")
    second = record_store.search(PASSPHRASE, "example")

    assert first == second == [A, B, C]


def test_search_with_invalid_pattern(record_store) -> None:
    _fill(record_store, A)

    with pytest.raises(VaultError):
        record_store.search(PASSPHRASE, "(unclosed")


def test_delete_handles_duplicate_services_by_position(record_store) -> None:
    first = Credentials("dup.example", "one", "pw-one-1")
    second = Credentials("dup.example", "two", "pw-two-2")
    _fill(record_store, first, second, A)

    record_store.delete([1])

    assert record_store.search(PASSPHRASE, ".*") == [first, A]


def test_delete_rejects_unknown_positions(record_store) -> None:
    _fill(record_store, A)
    before = _read_bytes(record_store.filepath)

    with pytest.raises(VaultError):
        record_store.delete([5])

    assert _read_bytes(record_store.filepath) == before


def test_rewrite_with_new_passphrase_preserves_order(record_store) -> None:
    _fill(record_store, A, B, C)

    assert record_store.rewrite_with_new_passphrase(PASSPHRASE, "new-pass") == 3

    assert record_store.search("new-pass", ".*") == [A, B, C]
    with pytest.raises(IncorrectPassphraseError):
        record_store.search(PASSPHRASE, ".*")
    assert not os.path.exists(record_store.temp_filepath)


def test_rewrite_with_wrong_old_passphrase_leaves_store_untouched(record_store) -> None:
    _fill(record_store, A, B, C)
    before = _read_bytes(record_store.filepath)

    with pytest.raises(IncorrectPassphraseError):
        record_store.rewrite_with_new_passphrase("wrong-pass", "new-pass")

    assert _read_bytes(record_store.filepath) == before
    assert len(record_store.read_all()) == 3
    assert not os.path.exists(record_store.temp_filepath)


def test_rewrite_failure_midway_keeps_original(record_store, crypto) -> None:
    _fill(record_store, A, B)
    # A record encrypted under another passphrase makes the rewrite fail on the last row
    record_store.append("other-pass", C)
    before = _read_bytes(record_store.filepath)

    with pytest.raises(IncorrectPassphraseError):
        record_store.rewrite_with_new_passphrase(PASSPHRASE, "new-pass")

    assert _read_bytes(record_store.filepath) == before


def test_import_records_appends_all(record_store) -> None:
    _fill(record_store, A)

    assert record_store.import_records([B, C], PASSPHRASE) == 2
    assert record_store.decrypt_all(PASSPHRASE) == [A, B, C]


def test_corrupt_store_header(record_store) -> None:
    os.makedirs(record_store.directory, exist_ok=True)
    with open(record_store.filepath, "w", encoding="utf-8") as f:
        f.write("foo,bar\n1,2\n")

    with pytest.raises(CorruptDataError):
        record_store.read_all()


def test_malformed_store_row(record_store) -> None:
    _fill(record_store, A)
    with open(record_store.filepath, "a", encoding="utf-8") as f:
        f.write("only-service\n")

    with pytest.raises(CorruptDataError):
        record_store.read_all()


@pytest.mark.skipif(os.name == "nt", reason="POSIX permissions")
def test_store_file_is_owner_only(record_store) -> None:
    _fill(record_store, A)

    assert os.stat(record_store.filepath).st_mode & 0o777 == 0o600


def test_single_slot_store_lifecycle(tmp_path) -> None:
    slot = SingleSlotStore(str(tmp_path / "slot"), serialize=str, deserialize=int)

    assert slot.load() is None
    slot.store(41)
    slot.store(42)
    assert slot.load() == 42
    assert slot.clear() is True
    assert slot.clear() is False
    assert slot.load() is None


def test_single_slot_store_write_failure_keeps_previous_value(tmp_path, monkeypatch) -> None:
    slot = SingleSlotStore(str(tmp_path / "slot"), serialize=str, deserialize=str)
    slot.store("old")

    def broken_replace(src, dst):
        raise OSError(28, "No space left on device")

    monkeypatch.setattr(os, "replace", broken_replace)

    with pytest.raises(StorageIOError):
        slot.store("new")

    monkeypatch.undo()
    assert slot.load() == "old"
    assert not os.path.exists(slot.filepath + ".tmp")

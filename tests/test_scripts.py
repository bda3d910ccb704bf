from __future__ import annotations

from datetime import datetime, timezone

from heyneighbor.core import config as core_config
from scripts import retire_item

EXPIRES = datetime(2025, 3, 10, 12, 15, tzinfo=timezone.utc)


def test_retire_item_script_reports_table_counts(database, repository, monkeypatch, capsys):
    owner = repository.create_account("d@allowed.example", "D", code="444444", expires_at=EXPIRES)
    item = repository.create_item(owner.id, "Ladder")
    borrow = repository.create_borrow_request(owner.id, item.id)
    repository.record_history(borrow.id, returned=True)

    monkeypatch.setenv("DATABASE_URL", database.url)
    core_config.get_settings.cache_clear()
    try:
        assert retire_item.main(["--item-id", str(item.id)]) == 0
    finally:
        core_config.get_settings.cache_clear()

    out = capsys.readouterr().out
    assert "OK: item retired" in out
    assert "item: 1 -> 0" in out
    assert "borrowing_history: 1 -> 0" in out
    assert "app_user: 1 -> 1" in out
    assert repository.count_rows()["item"] == 0


def test_retire_item_script_missing_item(database, monkeypatch, capsys):
    monkeypatch.setenv("DATABASE_URL", database.url)
    core_config.get_settings.cache_clear()
    try:
        assert retire_item.main(["--item-id", "9999"]) == 1
    finally:
        core_config.get_settings.cache_clear()
    assert "not_found" in capsys.readouterr().err

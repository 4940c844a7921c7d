"""Tests for :class:`minevaapen.core.database.Database`."""

from __future__ import annotations

from pathlib import Path

import pytest

from minevaapen.core.database import Database
from minevaapen.core.exceptions import StorageError


@pytest.fixture
def table(db: Database) -> Database:
    db.execute("CREATE TABLE items (id INTEGER PRIMARY KEY, name TEXT NOT NULL)")
    return db


def names(db: Database) -> list[str]:
    return [row["name"] for row in db.execute("SELECT name FROM items ORDER BY id").rows]


def test_connection_is_lazy(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "dir" / "store.db"
    db = Database(path)
    assert not db.is_open
    assert not path.exists()

    db.execute("SELECT 1")
    assert db.is_open
    assert path.exists()
    db.close()


def test_execute_returns_rows_and_counts(table: Database) -> None:
    result = table.execute("INSERT INTO items (name) VALUES (?)", ["a"])
    assert result.change_count == 1
    assert result.last_insert_id == 1

    table.execute("INSERT INTO items (name) VALUES (?)", ["b"])
    rows = table.execute("SELECT id, name FROM items ORDER BY id").rows
    assert rows == [{"id": 1, "name": "a"}, {"id": 2, "name": "b"}]

    assert table.execute("UPDATE items SET name = 'c'").change_count == 2
    assert table.execute("SELECT COUNT(*) FROM items").scalar() == 2
    assert table.execute("SELECT name FROM items WHERE id = 99").first() is None


def test_execute_wraps_engine_errors(table: Database) -> None:
    with pytest.raises(StorageError) as info:
        table.execute("INSERT INTO items (name) VALUES (NULL)")
    assert info.value.__cause__ is not None

    with pytest.raises(StorageError):
        table.execute("SELEC nonsense")


def test_transaction_commits(table: Database) -> None:
    with table.transaction() as tx:
        tx.execute("INSERT INTO items (name) VALUES ('a')")
        tx.execute("INSERT INTO items (name) VALUES ('b')")
    assert names(table) == ["a", "b"]
    assert not table.in_transaction


def test_transaction_rolls_back_and_reraises(table: Database) -> None:
    with pytest.raises(StorageError):
        with table.transaction() as tx:
            tx.execute("INSERT INTO items (name) VALUES ('a')")
            tx.execute("INSERT INTO items (name) VALUES (NULL)")
    assert names(table) == []

    class Boom(Exception):
        pass

    with pytest.raises(Boom):
        with table.transaction() as tx:
            tx.execute("INSERT INTO items (name) VALUES ('a')")
            raise Boom()
    assert names(table) == []
    assert not table.in_transaction


def test_nested_transaction_rolls_back_inner_only(table: Database) -> None:
    with table.transaction() as tx:
        tx.execute("INSERT INTO items (name) VALUES ('outer')")
        with pytest.raises(StorageError):
            with tx.transaction() as inner:
                inner.execute("INSERT INTO items (name) VALUES ('inner')")
                inner.execute("INSERT INTO items (name) VALUES (NULL)")
        tx.execute("INSERT INTO items (name) VALUES ('after')")
    assert names(table) == ["outer", "after"]


def test_with_transaction_returns_body_result(table: Database) -> None:
    def body(db: Database) -> int:
        db.execute("INSERT INTO items (name) VALUES ('a')")
        return db.execute("SELECT COUNT(*) FROM items").scalar()

    assert table.with_transaction(body) == 1


def test_close_and_reopen(table: Database) -> None:
    table.execute("INSERT INTO items (name) VALUES ('a')")
    table.close()
    assert not table.is_open
    table.close()  # closing twice is harmless
    assert names(table) == ["a"]
    assert table.is_open


def test_close_inside_transaction_is_refused(table: Database) -> None:
    with table.transaction():
        with pytest.raises(StorageError):
            table.close()


def test_detached_keeps_connection_closed(table: Database) -> None:
    with table.detached() as path:
        assert not table.is_open
        assert path == table.path
    assert not table.is_open
    assert names(table) == []


def test_foreign_keys_enforced(db: Database) -> None:
    db.execute("CREATE TABLE parent (id TEXT PRIMARY KEY)")
    db.execute("CREATE TABLE child (parent_id TEXT REFERENCES parent(id))")
    with pytest.raises(StorageError):
        db.execute("INSERT INTO child (parent_id) VALUES ('missing')")


def test_backup_to_copies_committed_rows(table: Database, tmp_path: Path) -> None:
    table.execute("INSERT INTO items (name) VALUES ('a')")
    target = tmp_path / "copy.db"
    table.backup_to(target)

    copy = Database(target)
    assert names(copy) == ["a"]
    copy.close()

"""
Collection store — the live relations plus their durable snapshot.

The three relations (inventory, decks, deck_cards) live in an in-memory
SQLite database owned by Flask-SQLAlchemy. Durability comes from a single
snapshot file that is rewritten wholesale after every business operation:

  load()      restore the snapshot into memory (or start empty), then
              create any missing tables.
  query()     select rows, ordered by id unless the caller sorts.
  mutation()  context manager: commit on success, roll back on error,
              then write exactly one snapshot.
  upsert()    INSERT … ON CONFLICT DO UPDATE keyed on a natural key.
  snapshot()  copy memory → <path>.tmp with the sqlite3 backup API, fsync
              it and os.replace() it over the snapshot (fully written or not).
  save()      snapshot(), restoring memory from the last good snapshot if
              the write fails.

The store does no locking of its own beyond `lock`, which callers hold to
serialize writers.
"""
import logging
import os
import sqlite3
import threading
from contextlib import contextmanager

from sqlalchemy import select
from sqlalchemy.dialects.sqlite import insert as sqlite_insert

from deckvault.errors import PersistenceError
from deckvault.extensions import db

log = logging.getLogger(__name__)


class CollectionStore:

    def __init__(self, snapshot_path: str, database=db):
        self.snapshot_path = snapshot_path
        self.db = database
        self.lock = threading.RLock()

    @property
    def session(self):
        return self.db.session

    def _driver_connection(self) -> sqlite3.Connection:
        """The raw sqlite3 connection behind the session (single, shared)."""
        return self.session.connection().connection.driver_connection

    # ── Load / snapshot ──────────────────────────────────────────────────────

    def load(self) -> None:
        path = self.snapshot_path
        if os.path.isfile(path):
            self._read_snapshot(path)
            log.info("Loaded collection snapshot from %s", path)
        else:
            log.info("No snapshot at %s, starting with an empty collection", path)

        self.db.create_all()
        self.session.commit()

    def _read_snapshot(self, path: str) -> None:
        """Overwrite the in-memory database with the snapshot file's contents."""
        src = sqlite3.connect(path)
        try:
            src.backup(self._driver_connection())
        except sqlite3.Error as exc:
            raise PersistenceError(f"Could not read snapshot {path}: {exc}") from exc
        finally:
            src.close()

    def snapshot(self) -> None:
        """Persist the complete current state, replacing the previous snapshot."""
        path = self.snapshot_path
        tmp = f"{path}.tmp"
        self.session.commit()
        try:
            os.makedirs(os.path.dirname(os.path.abspath(path)), exist_ok=True)
            if os.path.exists(tmp):
                os.remove(tmp)
            dest = sqlite3.connect(tmp)
            try:
                self._driver_connection().backup(dest)
            finally:
                dest.close()
            # Data must be on disk before the rename makes it the snapshot
            with open(tmp, "rb") as fh:
                os.fsync(fh.fileno())
            os.replace(tmp, path)
        except (OSError, sqlite3.Error) as exc:
            log.exception("Snapshot to %s failed", path)
            raise PersistenceError(f"Could not write snapshot: {exc}") from exc
        log.debug("Snapshot written to %s", path)

    def save(self) -> None:
        """Snapshot the committed state; on failure roll memory back to the last snapshot.

        The in-memory relations never run ahead of the snapshot file: when the
        write fails the caller sees PersistenceError and the store is left as
        it was after the last successful snapshot.
        """
        try:
            self.snapshot()
        except PersistenceError:
            self._restore()
            raise

    def _restore(self) -> None:
        path = self.snapshot_path
        self.session.rollback()
        self.session.expunge_all()
        if os.path.isfile(path):
            self._read_snapshot(path)
            self.db.create_all()
        else:
            for table in reversed(self.db.metadata.sorted_tables):
                self.session.execute(table.delete())
        self.session.commit()
        log.warning("Collection restored to last snapshot (%s)", path)

    # ── Reads ────────────────────────────────────────────────────────────────

    def get(self, model, row_id):
        return self.session.get(model, row_id)

    def query(self, model, *criteria, order_by=None) -> list:
        stmt = select(model)
        if criteria:
            stmt = stmt.where(*criteria)
        if order_by is None:
            order_by = (model.id,)
        elif not isinstance(order_by, (list, tuple)):
            order_by = (order_by,)
        return list(self.session.scalars(stmt.order_by(*order_by)))

    # ── Writes ───────────────────────────────────────────────────────────────

    @contextmanager
    def mutation(self, snapshot: bool = True):
        """Group writes into one commit, followed by one snapshot.

        Any exception rolls the session back and skips the snapshot. A failed
        snapshot leaves the store as it was before the block.
        """
        with self.lock:
            try:
                yield self.session
                self.session.commit()
            except Exception:
                self.session.rollback()
                raise
            if snapshot:
                self.save()

    def upsert(self, model, key: dict, values: dict, increment: str, amount: int):
        """Insert key+values, or add `amount` to `increment` on the existing row.

        `key` must match a unique constraint of the table. Returns the
        (refreshed) ORM instance of the inserted or updated row.
        """
        table = model.__table__
        stmt = (
            sqlite_insert(table)
            .values(**key, **values)
            .on_conflict_do_update(
                index_elements=list(key),
                set_={increment: table.c[increment] + amount},
            )
            .returning(table.c.id)
        )
        row_id = self.session.execute(stmt).scalar_one()
        return self.session.get(model, row_id, populate_existing=True)

"""
RecordStore - transactional table store over SQLAlchemy

Responsibilities:
- Open one SQLAlchemy session per transaction and commit or roll back as a unit
- Expose the four logistics tables with primary-key CRUD and iteration
- Assign auto-increment keys when a record carries the UNASSIGNED sentinel
- Serialize writers so overlapping operations never interleave
- Collect record changes and publish them after commit

Usage:
    store = RecordStore.from_app(app)
    with store.transaction() as tx:
        deposit = tx.deposit.get(1)
        tx.deposit.update(replace(deposit, name="Depot North"))
"""

from __future__ import annotations

import threading
import uuid
from collections import deque
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Callable, Deque, Dict, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker

from lodi.buisness.core.change_notification import INSERT, UPDATE, ChangeNotifier, RecordChange
from lodi.buisness.core.errors import DuplicateKeyError, InvalidArgumentError, NotFoundError
from lodi.buisness.logistics.records import UNASSIGNED
from lodi.data.logistics import ArticleRow, DepositRow, PackageRow, TransportLogRow
from lodi.logger import get_logger

logger = get_logger("lodi.store")


def default_package_id() -> str:
    return f"PKG-{uuid.uuid4().hex[:12].upper()}"


class Table:
    """
    Primary-key indexed view of one model inside a transaction.

    Reads and writes go through the transaction's session; every write is
    flushed immediately so later reads and iteration in the same transaction
    see it.
    """

    def __init__(self, transaction: "StoreTransaction", entity_type: str, model, auto_increment: bool = False):
        self._tx = transaction
        self.entity_type = entity_type
        self.model = model
        self.auto_increment = auto_increment

    @property
    def _session(self) -> Session:
        return self._tx.session

    def _key_of(self, record):
        return getattr(record, self.model.key_field)

    def insert(self, record):
        """
        Insert a record.

        Args:
            record: Record to insert. On auto-increment tables a key of
                UNASSIGNED lets the store pick the next key.

        Returns:
            The stored record, with its assigned key

        Raises:
            DuplicateKeyError: If an explicit key already exists
            InvalidArgumentError: If a table without auto-increment gets no key
        """
        key = self._key_of(record)
        assign_key = self.auto_increment and key in (UNASSIGNED, None)

        if not assign_key:
            if key in (UNASSIGNED, None, ''):
                raise InvalidArgumentError(f"{self.entity_type} records need an explicit key")
            if self._session.get(self.model, key) is not None:
                raise DuplicateKeyError(self.entity_type, key)

        row = self.model.from_record(record, skip_key=assign_key)
        self._session.add(row)
        try:
            self._session.flush()
        except IntegrityError as exc:
            raise DuplicateKeyError(self.entity_type, key) from exc

        stored = row.to_record()
        self._tx.record_change(RecordChange(self.entity_type, INSERT, None, stored))
        return stored

    def find(self, key) -> Optional[Any]:
        """Return the record stored under key, or None"""
        row = self._session.get(self.model, key)
        return row.to_record() if row is not None else None

    def get(self, key):
        """Return the record stored under key or raise NotFoundError"""
        record = self.find(key)
        if record is None:
            raise NotFoundError(self.entity_type, key)
        return record

    def update(self, record):
        """
        Overwrite the stored record that has the same key.

        Returns:
            The stored record after the update

        Raises:
            NotFoundError: If no record has this key
        """
        key = self._key_of(record)
        row = self._session.get(self.model, key)
        if row is None:
            raise NotFoundError(self.entity_type, key)

        old = row.to_record()
        row.apply_record(record)
        self._session.flush()

        new = row.to_record()
        self._tx.record_change(RecordChange(self.entity_type, UPDATE, old, new))
        return new

    def iterate(self) -> List[Any]:
        """All records in primary-key order, as seen by this transaction"""
        key_column = getattr(self.model, self.model.key_field)
        rows = self._session.query(self.model).order_by(key_column).all()
        return [row.to_record() for row in rows]

    def count(self) -> int:
        return self._session.query(self.model).count()


class StoreTransaction:
    """
    One atomic unit of work.

    Attributes:
        deposit, package, article, transport_log: Tables
        timestamp: Time the transaction started, used as "now" by operations
    """

    def __init__(self, store: "RecordStore", session: Session):
        self._store = store
        self.session = session
        self.timestamp: datetime = store.clock()
        self.changes: List[RecordChange] = []

        self.deposit = Table(self, 'deposit', DepositRow, auto_increment=True)
        self.package = Table(self, 'package', PackageRow)
        self.article = Table(self, 'article', ArticleRow)
        self.transport_log = Table(self, 'transport_log', TransportLogRow, auto_increment=True)

    def record_change(self, change: RecordChange) -> None:
        self.changes.append(change)

    def new_package_id(self) -> str:
        """Next unique package id from the store's id source"""
        return self._store.id_factory()


class RecordStore:
    """
    Transactional store for the logistics tables.

    Each store owns a session factory and a change notifier; tests create as
    many isolated stores as they need.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        notifier: Optional[ChangeNotifier] = None,
        clock: Optional[Callable[[], datetime]] = None,
        id_factory: Optional[Callable[[], str]] = None,
    ):
        self._session_factory = session_factory
        self.notifier = notifier or ChangeNotifier()
        self.clock = clock or datetime.utcnow
        self.id_factory = id_factory or default_package_id
        self._write_lock = threading.RLock()

        # Committed change batches waiting for delivery, in commit order
        self._pending: Deque[List[RecordChange]] = deque()
        self._publish_lock = threading.RLock()
        self._publishing = False

    @classmethod
    def from_app(cls, app, **kwargs) -> "RecordStore":
        """
        Build a store bound to the Flask app's database engine.

        Args:
            app: Flask app created by lodi.create_app()
            **kwargs: notifier, clock, id_factory overrides
        """
        from lodi import db

        with app.app_context():
            engine = db.engine
        return cls(sessionmaker(bind=engine, expire_on_commit=False), **kwargs)

    @contextmanager
    def transaction(self):
        """
        Run a block as one atomic operation.

        Commits and publishes collected changes on normal exit. On any
        exception the session is rolled back, nothing is published and the
        exception propagates.
        """
        with self._write_lock:
            session = self._session_factory()
            try:
                tx = StoreTransaction(self, session)
                yield tx
                session.commit()
            except Exception:
                session.rollback()
                raise
            finally:
                session.close()

            if tx.changes:
                self._pending.append(tx.changes)

        # Publish outside the write lock so handlers may call back into the store
        self._drain_pending()

    def _drain_pending(self) -> None:
        """
        Deliver queued batches one whole batch at a time, in commit order.

        A transaction committed by a handler while a batch is being delivered
        is queued behind it; the outer loop delivers it once the current
        batch is done. Other threads wait on the publish lock.
        """
        with self._publish_lock:
            if self._publishing:
                return
            self._publishing = True
            try:
                while self._pending:
                    changes = self._pending.popleft()
                    logger.debug(f"Publishing {len(changes)} committed change(s)")
                    self.notifier.publish(changes)
            finally:
                self._publishing = False

    def snapshot(self) -> Dict[str, List[Any]]:
        """All records of every table, read in a single transaction"""
        with self.transaction() as tx:
            return {
                'deposit': tx.deposit.iterate(),
                'package': tx.package.iterate(),
                'article': tx.article.iterate(),
                'transport_log': tx.transport_log.iterate(),
            }

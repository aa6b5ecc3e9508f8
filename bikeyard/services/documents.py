"""
bikeyard/services/documents.py
------------------------------
Document-store adapter. Collections of schemaless JSON documents, addressed
by (collection, id), persisted through SQLAlchemy.

Usage:
    store = DocumentStore()
    snap = store.add('bikes', {'bikeName': 'Classic 350', 'createdAt': SERVER_TIMESTAMP})
    store.query('bikes', where=[('status', '==', 'available')],
                order_by='createdAt', descending=True)

    with store.transaction() as txn:
        bike = txn.get('bikes', bike_id)
        txn.update('bikes', bike_id, {'status': 'sold'})

Datetimes are stored tagged ({"$date": iso}) and come back as aware UTC
datetimes. SERVER_TIMESTAMP is resolved to a single instant per write call.
"""
import operator
import secrets
import string
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone

from sqlalchemy import false, select, text
from sqlalchemy.exc import OperationalError, ProgrammingError

from bikeyard import db


AUTO_ID_ALPHABET = string.ascii_letters + string.digits
AUTO_ID_LENGTH = 20


class _ServerTimestamp:
    def __repr__(self):
        return 'SERVER_TIMESTAMP'


SERVER_TIMESTAMP = _ServerTimestamp()

_OPERATORS = {
    '==': operator.eq,
    '!=': operator.ne,
    '<':  operator.lt,
    '<=': operator.le,
    '>':  operator.gt,
    '>=': operator.ge,
    'in': lambda column, options: column.in_(options),
}


class StoreError(Exception):
    """Base class for document-store failures."""


class StoreUnavailable(StoreError):
    """The backing database is missing or unreachable."""


class DocumentNotFound(StoreError):
    def __init__(self, collection, doc_id):
        super().__init__(f'{collection}/{doc_id} not found')
        self.collection = collection
        self.doc_id = doc_id


class Document(db.Model):
    """One stored document. `data` holds the encoded field map."""
    __tablename__ = 'documents'

    collection = db.Column(db.String(64), primary_key=True)
    id         = db.Column(db.String(64), primary_key=True)
    data       = db.Column(db.JSON, nullable=False, default=dict)
    created_at = db.Column(db.DateTime, nullable=False,
                           default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(db.DateTime, nullable=False,
                           default=lambda: datetime.now(timezone.utc),
                           onupdate=lambda: datetime.now(timezone.utc))

    def __repr__(self) -> str:
        return f"<Document {self.collection}/{self.id}>"


@dataclass
class DocumentSnapshot:
    id: str
    data: dict = field(default_factory=dict)

    def get(self, key, default=None):
        return self.data.get(key, default)

    def to_dict(self) -> dict:
        """Document fields with the id folded in, as returned over the API."""
        return {'id': self.id, **self.data}


# ── Encoding ──────────────────────────────────────────────────────

def auto_id() -> str:
    return ''.join(secrets.choice(AUTO_ID_ALPHABET) for _ in range(AUTO_ID_LENGTH))


def _utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _date_text(value: datetime) -> str:
    # Fixed width, so stored timestamps sort as text
    return _utc(value).isoformat(timespec='microseconds')


def _encode(value, now):
    if value is SERVER_TIMESTAMP:
        value = now
    if isinstance(value, datetime):
        return {'$date': _date_text(value)}
    if isinstance(value, dict):
        return {k: _encode(v, now) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_encode(v, now) for v in value]
    return value


def _decode(value):
    if isinstance(value, dict):
        if set(value) == {'$date'}:
            return datetime.fromisoformat(value['$date'])
        return {k: _decode(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_decode(v) for v in value]
    return value


def _snapshot(row: Document) -> DocumentSnapshot:
    return DocumentSnapshot(id=row.id, data=_decode(row.data or {}))


def _is_unavailable(exc: Exception) -> bool:
    message = str(getattr(exc, 'orig', exc)).lower()
    if isinstance(exc, OperationalError):
        return True
    return 'does not exist' in message or 'no such table' in message


# ── Query translation ─────────────────────────────────────────────

def _date_field(field_name):
    return Document.data[(field_name, '$date')].as_string()


def _typed_field(field_name, sample):
    """JSON accessor for `field_name`, cast to match `sample`."""
    if isinstance(sample, datetime):
        return _date_field(field_name)
    if isinstance(sample, bool):
        return Document.data[field_name].as_boolean()
    if isinstance(sample, (int, float)):
        return Document.data[field_name].as_float()
    if isinstance(sample, str):
        return Document.data[field_name].as_string()
    raise ValueError(f'Unsupported query value for {field_name!r}: {sample!r}')


def _sql_value(value):
    return _date_text(value) if isinstance(value, datetime) else value


def _clause(field_name, op, value):
    if op not in _OPERATORS:
        raise ValueError(f'Unsupported query operator: {op!r}')
    if op == 'in':
        options = list(value)
        if not options:
            return false()
        column = _typed_field(field_name, options[0])
        return _OPERATORS[op](column, [_sql_value(v) for v in options])
    return _OPERATORS[op](_typed_field(field_name, value), _sql_value(value))


# ── Store ─────────────────────────────────────────────────────────

class DocumentStore:
    """Collections of JSON documents on top of the app's SQLAlchemy session."""

    def __init__(self, session=None):
        self._session = session

    @property
    def session(self):
        return self._session if self._session is not None else db.session

    @contextmanager
    def _guard(self):
        try:
            yield
        except (OperationalError, ProgrammingError) as exc:
            self.session.rollback()
            if _is_unavailable(exc):
                raise StoreUnavailable(str(getattr(exc, 'orig', exc))) from exc
            raise

    def _row(self, collection, doc_id, for_update=False):
        stmt = select(Document).where(
            Document.collection == collection,
            Document.id == doc_id,
        ).execution_options(populate_existing=True)
        if for_update:
            stmt = stmt.with_for_update()
        return self.session.execute(stmt).scalar_one_or_none()

    def ping(self) -> None:
        with self._guard():
            self.session.execute(text('SELECT 1'))
            self.session.execute(select(Document.id).limit(1))

    # ── Single-document operations ────────────────────────────────

    def add(self, collection, data) -> DocumentSnapshot:
        now = datetime.now(timezone.utc)
        row = Document(collection=collection, id=auto_id(), data=_encode(data, now))
        with self._guard():
            self.session.add(row)
            self.session.commit()
        return _snapshot(row)

    def get(self, collection, doc_id):
        with self._guard():
            row = self._row(collection, doc_id)
        return _snapshot(row) if row is not None else None

    def set(self, collection, doc_id, data) -> DocumentSnapshot:
        now = datetime.now(timezone.utc)
        with self._guard():
            _apply_set(self.session, self._row(collection, doc_id), collection, doc_id,
                       _encode(data, now))
            self.session.commit()
        return self.get(collection, doc_id)

    def update(self, collection, doc_id, changes) -> DocumentSnapshot:
        now = datetime.now(timezone.utc)
        with self._guard():
            row = self._row(collection, doc_id)
            if row is None:
                raise DocumentNotFound(collection, doc_id)
            _apply_update(row, _encode(changes, now))
            self.session.commit()
        return _snapshot(row)

    def delete(self, collection, doc_id) -> None:
        with self._guard():
            row = self._row(collection, doc_id)
            if row is not None:
                self.session.delete(row)
                self.session.commit()

    # ── Queries ───────────────────────────────────────────────────

    def query(self, collection, where=(), order_by=None, descending=False, limit=None):
        """
        Return snapshots of `collection` matching every (field, op, value)
        clause in `where`. Filtering, ordering and the limit run in SQL on
        the JSON column; each field is read with the type of the value it is
        compared against.

        `order_by` names a timestamp field. Documents missing it are left
        out, the same way an ordered query on a document database drops them.
        """
        stmt = select(Document).where(Document.collection == collection)
        for field_name, op, value in where:
            stmt = stmt.where(_clause(field_name, op, value))

        if order_by is not None:
            column = _date_field(order_by)
            stmt = stmt.where(column.isnot(None)).order_by(
                column.desc() if descending else column.asc(),
                Document.id,
            )
        if limit is not None:
            stmt = stmt.limit(limit)

        with self._guard():
            rows = self.session.execute(
                stmt.execution_options(populate_existing=True)
            ).scalars().all()
        return [_snapshot(row) for row in rows]

    # ── Atomic groups ─────────────────────────────────────────────

    def batch(self) -> 'WriteBatch':
        return WriteBatch(self)

    @contextmanager
    def transaction(self):
        """
        Read-modify-write unit. Reads lock their rows where the engine
        supports it; staged writes are applied and committed together when
        the block exits cleanly, and discarded if it raises.
        """
        txn = Transaction(self)
        with self._guard():
            try:
                yield txn
                txn._apply()
                self.session.commit()
            except Exception:
                self.session.rollback()
                raise


def _apply_set(session, row, collection, doc_id, encoded):
    if row is None:
        session.add(Document(collection=collection, id=doc_id, data=encoded))
    else:
        row.data = encoded


def _apply_update(row, encoded):
    merged = dict(row.data or {})
    merged.update(encoded)
    row.data = merged  # reassign so SQLAlchemy sees the JSON change


class _StagedWrites:
    def __init__(self, store: DocumentStore):
        self._store = store
        self._writes = []

    def set(self, collection, doc_id, data):
        self._writes.append(('set', collection, doc_id, data))
        return self

    def update(self, collection, doc_id, changes):
        self._writes.append(('update', collection, doc_id, changes))
        return self

    def delete(self, collection, doc_id):
        self._writes.append(('delete', collection, doc_id, None))
        return self

    def __len__(self):
        return len(self._writes)

    def _apply(self):
        session = self._store.session
        now = datetime.now(timezone.utc)
        for kind, collection, doc_id, payload in self._writes:
            row = self._store._row(collection, doc_id)
            if kind == 'set':
                _apply_set(session, row, collection, doc_id, _encode(payload, now))
            elif kind == 'update':
                if row is None:
                    raise DocumentNotFound(collection, doc_id)
                _apply_update(row, _encode(payload, now))
            elif row is not None:
                session.delete(row)
        self._writes = []


class WriteBatch(_StagedWrites):
    """Blind writes committed all-or-nothing by `commit()`."""

    def commit(self) -> None:
        store = self._store
        with store._guard():
            try:
                self._apply()
                store.session.commit()
            except Exception:
                store.session.rollback()
                raise


class Transaction(_StagedWrites):

    def get(self, collection, doc_id):
        row = self._store._row(collection, doc_id, for_update=True)
        return _snapshot(row) if row is not None else None

    def create(self, collection, data) -> str:
        doc_id = auto_id()
        self.set(collection, doc_id, data)
        return doc_id

    def query(self, collection, where=(), **kwargs):
        """Same as DocumentStore.query, read inside this transaction."""
        return self._store.query(collection, where, **kwargs)

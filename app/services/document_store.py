"""Keyed JSON document storage with merge-append semantics.

Documents live in a single ``documents`` table keyed by ``(collection, key)``.
Every operation opens its own session from the injected factory, so each
write commits on its own and a failure never rolls back earlier writes.

Merge-append is atomic only on a backend with row locks such as PostgreSQL,
where ``SELECT ... FOR UPDATE`` serializes writers of the same document.
SQLite ignores ``with_for_update``; there a concurrent create of the same
document is still caught by the primary key and retried, but two writers
updating an existing document can overwrite each other's append.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Mapping, Protocol

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..models import Document

logger = logging.getLogger(__name__)


class StoreError(RuntimeError):
    """Raised when a read or write against the document store fails."""


class DocumentNotFoundError(StoreError):
    """Raised when a partial update targets a document that does not exist."""

    def __init__(self, collection: str, key: str) -> None:
        super().__init__(f"{collection}/{key} does not exist")
        self.collection = collection
        self.key = key


@dataclass(frozen=True, slots=True)
class DocumentSnapshot:
    """Immutable view of a document as read from the store."""

    collection: str
    key: str
    data: dict[str, Any] = field(default_factory=dict)

    def get(self, name: str, default: Any = None) -> Any:
        return self.data.get(name, default)


class DocumentStore(Protocol):
    def get_document(self, collection: str, key: str) -> DocumentSnapshot | None: ...

    def merge_append_field(
        self,
        collection: str,
        key: str,
        field_name: str,
        value: Any,
        *,
        unique_by: str | None = None,
    ) -> bool: ...

    def query_where_equals(self, collection: str, filters: Mapping[str, str]) -> list[DocumentSnapshot]: ...

    def update_fields(self, collection: str, key: str, fields: Mapping[str, Any]) -> None: ...

    def set_document(self, collection: str, key: str, data: Mapping[str, Any], *, merge: bool = True) -> None: ...

    def now(self) -> datetime: ...


def _jsonable(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, Mapping):
        return {str(name): _jsonable(item) for name, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(item) for item in value]
    return value


def _already_present(items: list[Any], value: Any, unique_by: str | None) -> bool:
    if unique_by is None:
        return value in items
    if not isinstance(value, Mapping):
        raise ValueError("unique_by requires mapping values")
    target = value.get(unique_by)
    return any(isinstance(item, Mapping) and item.get(unique_by) == target for item in items)


def _snapshot(row: Document) -> DocumentSnapshot:
    return DocumentSnapshot(collection=row.collection, key=row.key, data=row.as_dict())


class SqlDocumentStore:
    """:class:`DocumentStore` implementation backed by SQLAlchemy."""

    def __init__(self, session_factory: Callable[[], Session]) -> None:
        self._session_factory = session_factory

    def _locked_row(self, session: Session, collection: str, key: str) -> Document | None:
        stmt = (
            select(Document)
            .where(Document.collection == collection, Document.key == key)
            .with_for_update()
        )
        return session.scalars(stmt).first()

    def get_document(self, collection: str, key: str) -> DocumentSnapshot | None:
        try:
            with self._session_factory() as session:
                row = session.get(Document, (collection, key))
                return _snapshot(row) if row is not None else None
        except SQLAlchemyError as exc:
            logger.exception("Failed to read %s/%s", collection, key)
            raise StoreError(f"failed to read {collection}/{key}") from exc

    def merge_append_field(
        self,
        collection: str,
        key: str,
        field_name: str,
        value: Any,
        *,
        unique_by: str | None = None,
    ) -> bool:
        """Append ``value`` to an array field unless an equal element exists.

        Creates the document when it is missing. With ``unique_by`` set, two
        mapping elements are equal when they share that sub-key. Returns
        ``True`` when a write happened.
        """

        payload = _jsonable(value)
        for attempt in (1, 2):
            try:
                with self._session_factory() as session:
                    row = self._locked_row(session, collection, key)
                    if row is None:
                        session.add(Document(collection=collection, key=key, data={field_name: [payload]}))
                        session.commit()
                        return True

                    data = row.as_dict()
                    existing = data.get(field_name)
                    items = list(existing) if isinstance(existing, list) else []
                    if _already_present(items, payload, unique_by):
                        return False

                    items.append(payload)
                    data[field_name] = items
                    row.data = data
                    session.commit()
                    return True
            except IntegrityError as exc:
                # Another writer created the document first; retry against its row.
                if attempt == 2:
                    logger.exception("Merge-append on %s/%s kept conflicting", collection, key)
                    raise StoreError(f"failed to append to {collection}/{key}") from exc
                logger.info("Concurrent create of %s/%s; retrying append", collection, key)
            except SQLAlchemyError as exc:
                logger.exception("Failed to append to %s/%s", collection, key)
                raise StoreError(f"failed to append to {collection}/{key}") from exc
        raise StoreError(f"failed to append to {collection}/{key}")

    def query_where_equals(self, collection: str, filters: Mapping[str, str]) -> list[DocumentSnapshot]:
        """Return documents whose top-level string fields equal every filter."""

        stmt = select(Document).where(Document.collection == collection)
        for name, expected in filters.items():
            stmt = stmt.where(Document.data[name].as_string() == str(expected))
        stmt = stmt.order_by(Document.created_at.asc(), Document.key.asc())
        try:
            with self._session_factory() as session:
                return [_snapshot(row) for row in session.scalars(stmt)]
        except SQLAlchemyError as exc:
            logger.exception("Failed to query %s", collection)
            raise StoreError(f"failed to query {collection}") from exc

    def update_fields(self, collection: str, key: str, fields: Mapping[str, Any]) -> None:
        try:
            with self._session_factory() as session:
                row = self._locked_row(session, collection, key)
                if row is None:
                    raise DocumentNotFoundError(collection, key)
                row.data = {**row.as_dict(), **_jsonable(fields)}
                session.commit()
        except SQLAlchemyError as exc:
            logger.exception("Failed to update %s/%s", collection, key)
            raise StoreError(f"failed to update {collection}/{key}") from exc

    def set_document(self, collection: str, key: str, data: Mapping[str, Any], *, merge: bool = True) -> None:
        payload = _jsonable(data)
        try:
            with self._session_factory() as session:
                row = self._locked_row(session, collection, key)
                if row is None:
                    session.add(Document(collection=collection, key=key, data=payload))
                elif merge:
                    row.data = {**row.as_dict(), **payload}
                else:
                    row.data = payload
                session.commit()
        except SQLAlchemyError as exc:
            logger.exception("Failed to write %s/%s", collection, key)
            raise StoreError(f"failed to write {collection}/{key}") from exc

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


__all__ = [
    "StoreError",
    "DocumentNotFoundError",
    "DocumentSnapshot",
    "DocumentStore",
    "SqlDocumentStore",
]

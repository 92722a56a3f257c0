"""SQLAlchemy implementation of :class:`BackendGateway`.

Collections map one-to-one onto tables registered on ``Base.metadata``.
SQLAlchemy sessions are synchronous, so every call runs in a worker thread
through :func:`anyio.to_thread.run_sync`; successful writes are then published
on the :class:`ChangeFeed` from the event loop.
"""

from __future__ import annotations

import logging
from functools import partial
from typing import Any, Callable, Iterable, Mapping, TypeVar
from uuid import uuid4

import anyio
from sqlalchemy import MetaData, Table, delete, insert, select, update
from sqlalchemy.exc import (
    DisconnectionError,
    IntegrityError,
    InterfaceError,
    OperationalError,
    SQLAlchemyError,
)
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.orm import Session, sessionmaker

from matrisync.application.ports import ChangeEvent, EventType, Filters, Order, WriteOp
from matrisync.domain.errors import GatewayError, NetworkError, ServerError, ValidationError

from .change_feed import ChangeFeed, InProcessChannel

logger = logging.getLogger(__name__)

Record = dict[str, Any]
T = TypeVar("T")


class SqlGateway:
    """Serve collection reads/writes from SQL tables and fan changes out."""

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        metadata: MetaData,
        change_feed: ChangeFeed | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._metadata = metadata
        self.change_feed = change_feed or ChangeFeed()

    async def read(
        self,
        collection: str,
        filters: Filters | None = None,
        *,
        order: Order | None = None,
        limit: int | None = None,
    ) -> list[Record]:
        return await self._run(
            partial(self._read_sync, collection, filters, order, limit)
        )

    async def write(
        self,
        collection: str,
        op: WriteOp,
        payload: Mapping[str, Any] | None = None,
        filters: Filters | None = None,
    ) -> Record | list[Record]:
        try:
            op = WriteOp(op)
        except ValueError as exc:
            raise ValidationError(f"Unsupported write operation {op!r}") from exc

        result, events = await self._run(
            partial(self._write_sync, collection, op, dict(payload or {}), filters)
        )
        for event in events:
            self.change_feed.publish(event)
        return result

    def channel(self, name: str) -> InProcessChannel:
        return InProcessChannel(name, self.change_feed)

    async def remove_channel(self, channel: InProcessChannel) -> None:
        await channel.unsubscribe()

    async def _run(self, func: Callable[[], T]) -> T:
        try:
            return await anyio.to_thread.run_sync(func)
        except GatewayError:
            raise
        except SQLAlchemyError as exc:
            raise _translate(exc) from exc

    # -- synchronous work ----------------------------------------------------

    def _table(self, collection: str) -> Table:
        table = self._metadata.tables.get(collection)
        if table is None:
            raise ValidationError(f"Unknown collection '{collection}'")
        return table

    def _conditions(self, table: Table, filters: Filters | None) -> list[Any]:
        conditions = []
        for column_name, expected in (filters or {}).items():
            column = table.c.get(column_name)
            if column is None:
                raise ValidationError(
                    f"Unknown column '{column_name}' for collection '{table.name}'"
                )
            if isinstance(expected, (list, tuple, set, frozenset)):
                conditions.append(column.in_(list(expected)))
            else:
                conditions.append(column == expected)
        return conditions

    def _check_payload(self, table: Table, payload: Mapping[str, Any]) -> None:
        unknown = sorted(set(payload) - set(table.c.keys()))
        if unknown:
            raise ValidationError(
                f"Unknown columns {', '.join(unknown)} for collection '{table.name}'"
            )

    def _read_sync(
        self,
        collection: str,
        filters: Filters | None,
        order: Order | None,
        limit: int | None,
    ) -> list[Record]:
        table = self._table(collection)
        statement = select(table).where(*self._conditions(table, filters))
        if order is not None:
            column = table.c.get(order.column)
            if column is None:
                raise ValidationError(f"Cannot order '{collection}' by '{order.column}'")
            statement = statement.order_by(column.asc() if order.ascending else column.desc())
        if limit is not None:
            statement = statement.limit(limit)
        with self._session_factory() as session:
            return [dict(row) for row in session.execute(statement).mappings().all()]

    def _write_sync(
        self,
        collection: str,
        op: WriteOp,
        payload: Record,
        filters: Filters | None,
    ) -> tuple[Record | list[Record], list[ChangeEvent]]:
        table = self._table(collection)
        self._check_payload(table, payload)
        with self._session_factory() as session:
            if op is WriteOp.INSERT:
                record = self._insert(session, table, payload)
                result: Record | list[Record] = record
                events = [ChangeEvent(collection, EventType.INSERT, record)]
            elif op is WriteOp.UPSERT:
                result, events = self._upsert(session, table, payload)
            elif op is WriteOp.UPDATE:
                if not filters:
                    raise ValidationError("Updates require at least one filter")
                result, events = self._update(session, table, payload, filters)
            else:
                if not filters:
                    raise ValidationError("Deletes require at least one filter")
                result, events = self._delete(session, table, filters)
            session.commit()
        logger.debug("%s on %s affected %d rows", op.value, collection, len(events))
        return result, events

    def _select_by_ids(self, session: Session, table: Table, ids: Iterable[Any]) -> list[Record]:
        ids = list(ids)
        if not ids:
            return []
        statement = select(table).where(table.c.id.in_(ids))
        return [dict(row) for row in session.execute(statement).mappings().all()]

    def _insert(self, session: Session, table: Table, payload: Record) -> Record:
        values = dict(payload)
        if "id" in table.c and values.get("id") is None:
            values["id"] = str(uuid4())
        session.execute(insert(table).values(**values))
        rows = self._select_by_ids(session, table, [values["id"]])
        return rows[0]

    def _upsert(
        self, session: Session, table: Table, payload: Record
    ) -> tuple[Record, list[ChangeEvent]]:
        record_id = payload.get("id")
        existing = self._select_by_ids(session, table, [record_id]) if record_id else []
        if not existing:
            record = self._insert(session, table, payload)
            return record, [ChangeEvent(table.name, EventType.INSERT, record)]
        changes = {key: value for key, value in payload.items() if key != "id"}
        if changes:
            session.execute(update(table).where(table.c.id == record_id).values(**changes))
        record = self._select_by_ids(session, table, [record_id])[0]
        return record, [ChangeEvent(table.name, EventType.UPDATE, record, existing[0])]

    def _update(
        self, session: Session, table: Table, payload: Record, filters: Filters
    ) -> tuple[list[Record], list[ChangeEvent]]:
        conditions = self._conditions(table, filters)
        before = [
            dict(row)
            for row in session.execute(select(table).where(*conditions)).mappings().all()
        ]
        if not before or not payload:
            return before, []
        ids = [row["id"] for row in before]
        session.execute(update(table).where(table.c.id.in_(ids)).values(**payload))
        after = {row["id"]: row for row in self._select_by_ids(session, table, ids)}
        records = [after[row["id"]] for row in before if row["id"] in after]
        events = [
            ChangeEvent(table.name, EventType.UPDATE, after[row["id"]], row)
            for row in before
            if row["id"] in after
        ]
        return records, events

    def _delete(
        self, session: Session, table: Table, filters: Filters
    ) -> tuple[list[Record], list[ChangeEvent]]:
        conditions = self._conditions(table, filters)
        doomed = [
            dict(row)
            for row in session.execute(select(table).where(*conditions)).mappings().all()
        ]
        if doomed:
            session.execute(delete(table).where(*conditions))
        events = [ChangeEvent(table.name, EventType.DELETE, row, row) for row in doomed]
        return doomed, events


def _translate(exc: SQLAlchemyError) -> GatewayError:
    """Classify a SQLAlchemy failure into one of the gateway error kinds."""

    if isinstance(exc, (DisconnectionError, PoolTimeoutError, InterfaceError)):
        return NetworkError(f"Database unreachable: {exc}")
    if isinstance(exc, OperationalError) and exc.connection_invalidated:
        return NetworkError(f"Database connection lost: {exc}")
    if isinstance(exc, IntegrityError):
        return ValidationError(f"Constraint violated: {exc.orig}")
    return ServerError(f"Database error: {exc}")


__all__ = ["SqlGateway"]

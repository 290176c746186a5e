"""Bulk read of the historical inbox, newest first."""

from __future__ import annotations

import typing as typ

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from smsrelay.errors import RowExtractionError, StoreAccessDeniedError
from smsrelay.observability import BridgeEventLogger
from smsrelay.records import NormalizedRecord
from smsrelay.store import InboxMessage

if typ.TYPE_CHECKING:
    from sqlalchemy.engine import Row
    from sqlalchemy.ext.asyncio import AsyncResult, AsyncSession, async_sessionmaker

ReadPermission: typ.TypeAlias = typ.Callable[[], bool]

_SCAN_STATEMENT = select(
    InboxMessage.address, InboxMessage.body, InboxMessage.date
).order_by(InboxMessage.date.desc())


def _text_column(column: str, value: object) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    raise RowExtractionError.wrong_type(column, value)


def _millis_column(value: object) -> int:
    if value is None:
        return 0
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    raise RowExtractionError.wrong_type("date", value)


def extract_record(row: Row[typ.Any]) -> NormalizedRecord:
    """Convert one ``(address, body, date)`` row into a record.

    Raises
    ------
    RowExtractionError
        If a column holds a type the record schema cannot carry.

    """
    address, body, date = row
    return NormalizedRecord(
        sender=_text_column("address", address),
        body=_text_column("body", body),
        timestamp_millis=_millis_column(date),
    )


class QueryBridge:
    """Answer ``scanAll`` from the inbox Store.

    Unreadable rows are skipped one at a time. A Store that cannot be read
    at all yields an empty list, which callers cannot tell apart from an empty
    inbox. Denied reads and missing tables count, and so do I/O failures
    such as a refused connection.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        read_permission: ReadPermission | None = None,
        event_logger: BridgeEventLogger | None = None,
    ) -> None:
        """Store the session factory and optional permission check."""
        self._session_factory = session_factory
        self._read_permission = read_permission
        self._event_logger = event_logger or BridgeEventLogger()

    async def scan_all(self) -> list[NormalizedRecord]:
        """Return every readable inbox row ordered by ``date`` descending.

        Ties on ``date`` come back in whatever order the Store yields them.
        """
        try:
            self._ensure_readable()
            async with self._session_factory() as session:
                result = await session.stream(_SCAN_STATEMENT)
                records, skipped = await self._collect(result)
        except (SQLAlchemyError, OSError) as exc:
            self._event_logger.log_scan_failed(exc)
            return []

        self._event_logger.log_scan_completed(len(records), skipped)
        return records

    def _ensure_readable(self) -> None:
        if self._read_permission is not None and not self._read_permission():
            raise StoreAccessDeniedError.read_denied()

    async def _collect(
        self, result: AsyncResult[typ.Any]
    ) -> tuple[list[NormalizedRecord], int]:
        records: list[NormalizedRecord] = []
        skipped = 0
        position = 0
        async for row in result:
            record = self._convert(position, row)
            if record is None:
                skipped += 1
            else:
                records.append(record)
            position += 1
        return records, skipped

    def _convert(self, position: int, row: Row[typ.Any]) -> NormalizedRecord | None:
        try:
            return extract_record(row)
        except RowExtractionError as exc:
            self._event_logger.log_row_skipped(position, exc)
            return None

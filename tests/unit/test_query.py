"""Unit tests for the inbox query bridge."""

from __future__ import annotations

import typing as typ

import pytest

from smsrelay.observability import BridgeEventType, ErrorCategory
from smsrelay.query import QueryBridge
from smsrelay.records import NormalizedRecord
from tests.helpers.femtologging_capture import capture_femto_logs
from tests.helpers.inbox import seed_inbox

if typ.TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker


@pytest.mark.asyncio
async def test_rows_come_back_newest_first(
    session_factory: async_sessionmaker[AsyncSession],
) -> None:
    """Rows are ordered by date descending, not insertion order."""
    await seed_inbox(
        session_factory,
        [
            ("+1", "first", 1000),
            ("+2", "third", 3000),
            ("+3", "second", 2000),
        ],
    )

    records = await QueryBridge(session_factory).scan_all()

    assert records == [
        NormalizedRecord(sender="+2", body="third", timestamp_millis=3000),
        NormalizedRecord(sender="+3", body="second", timestamp_millis=2000),
        NormalizedRecord(sender="+1", body="first", timestamp_millis=1000),
    ]


@pytest.mark.asyncio
async def test_null_columns_use_defaults(
    session_factory: async_sessionmaker[AsyncSession],
) -> None:
    """NULL address or body becomes empty text; NULL date becomes 0."""
    await seed_inbox(session_factory, [(None, None, 5), ("+1", "x", None)])

    records = await QueryBridge(session_factory).scan_all()

    assert NormalizedRecord(timestamp_millis=5) in records
    assert NormalizedRecord(sender="+1", body="x") in records


@pytest.mark.asyncio
async def test_bad_row_is_skipped(
    session_factory: async_sessionmaker[AsyncSession],
) -> None:
    """A row with a non-numeric date is dropped; its neighbours survive."""
    await seed_inbox(
        session_factory,
        [
            ("+1", "newest", 3000),
            ("+2", "broken", "yesterday"),
            ("+3", "oldest", 1000),
        ],
    )

    with capture_femto_logs("smsrelay.observability") as capture:
        records = await QueryBridge(session_factory).scan_all()

    assert [record.body for record in records] == ["newest", "oldest"]
    capture.wait_for_count(2)
    assert capture.messages_containing(BridgeEventType.ROW_SKIPPED)
    completed = capture.messages_containing(BridgeEventType.SCAN_COMPLETED)
    assert completed
    assert "records_returned=2 rows_skipped=1" in completed[0].message


@pytest.mark.asyncio
async def test_empty_inbox_returns_empty_list(
    session_factory: async_sessionmaker[AsyncSession],
) -> None:
    """No rows yields an empty list."""
    assert await QueryBridge(session_factory).scan_all() == []


@pytest.mark.asyncio
async def test_denied_read_is_indistinguishable_from_empty(
    session_factory: async_sessionmaker[AsyncSession],
) -> None:
    """Without permission the result is empty, exactly like an empty inbox."""
    await seed_inbox(session_factory, [("+1", "hidden", 1000)])
    bridge = QueryBridge(session_factory, read_permission=lambda: False)

    with capture_femto_logs("smsrelay.observability") as capture:
        records = await bridge.scan_all()

    assert records == []
    capture.wait_for_count(1)
    failed = capture.messages_containing(BridgeEventType.SCAN_FAILED)
    assert failed
    assert f"error_category={ErrorCategory.PERMISSION_DENIED}" in failed[0].message
    assert failed[0].level == "ERROR"


@pytest.mark.asyncio
async def test_granted_read_returns_rows(
    session_factory: async_sessionmaker[AsyncSession],
) -> None:
    """A passing permission check does not change the result."""
    await seed_inbox(session_factory, [("+1", "visible", 1000)])
    bridge = QueryBridge(session_factory, read_permission=lambda: True)

    records = await bridge.scan_all()

    assert [record.body for record in records] == ["visible"]


@pytest.mark.asyncio
async def test_missing_store_returns_empty_list(
    bare_session_factory: async_sessionmaker[AsyncSession],
) -> None:
    """A Store without the inbox table yields an empty list, not an error."""
    with capture_femto_logs("smsrelay.observability") as capture:
        records = await QueryBridge(bare_session_factory).scan_all()

    assert records == []
    capture.wait_for_count(1)
    failed = capture.messages_containing(BridgeEventType.SCAN_FAILED)
    assert failed
    assert f"error_category={ErrorCategory.STORE_UNAVAILABLE}" in failed[0].message


@pytest.mark.asyncio
async def test_failing_permission_check_returns_empty_list(
    session_factory: async_sessionmaker[AsyncSession],
) -> None:
    """An I/O error from the permission check yields an empty list."""
    await seed_inbox(session_factory, [("+1", "hidden", 1000)])

    def unreachable_permission_service() -> bool:
        raise ConnectionRefusedError("permission service unreachable")

    bridge = QueryBridge(
        session_factory, read_permission=unreachable_permission_service
    )

    with capture_femto_logs("smsrelay.observability") as capture:
        records = await bridge.scan_all()

    assert records == [], "an I/O failure must look like an empty inbox"
    capture.wait_for_count(1)
    failed = capture.messages_containing(BridgeEventType.SCAN_FAILED)
    assert failed
    assert f"error_category={ErrorCategory.STORE_UNAVAILABLE}" in failed[0].message


@pytest.mark.asyncio
async def test_unopenable_store_returns_empty_list() -> None:
    """An OSError while opening a session yields an empty list."""

    def unopenable_session() -> typ.NoReturn:
        raise OSError("database file is not readable")

    bridge = QueryBridge(
        typ.cast("async_sessionmaker[AsyncSession]", unopenable_session)
    )

    with capture_femto_logs("smsrelay.observability") as capture:
        records = await bridge.scan_all()

    assert records == []
    capture.wait_for_count(1)
    failed = capture.messages_containing(BridgeEventType.SCAN_FAILED)
    assert failed
    assert f"error_category={ErrorCategory.STORE_UNAVAILABLE}" in failed[0].message

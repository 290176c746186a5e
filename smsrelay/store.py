"""Persistence model for the historical message inbox."""

from __future__ import annotations

import typing as typ

from sqlalchemy import BigInteger, Index, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

if typ.TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine


class Base(DeclarativeBase):
    """Base declarative class for inbox models."""


class InboxMessage(Base):
    """One received text message as kept by the platform inbox.

    Columns mirror the platform store: ``address`` and ``body`` may be
    ``NULL``, ``date`` is epoch milliseconds.
    """

    __tablename__ = "inbox"
    __table_args__ = (Index("ix_inbox_date", "date"),)

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    address: Mapped[str | None] = mapped_column(Text(), default=None)
    body: Mapped[str | None] = mapped_column(Text(), default=None)
    date: Mapped[int | None] = mapped_column(BigInteger(), default=None)


async def init_inbox_storage(engine: AsyncEngine) -> None:
    """Create the inbox table if it is absent."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

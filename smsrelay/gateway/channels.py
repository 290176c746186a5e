"""Consumer channel contracts and the event-loop hand-off adapter."""

from __future__ import annotations

import typing as typ

if typ.TYPE_CHECKING:
    import asyncio

    from smsrelay.records import RecordPayload

MethodCallback: typ.TypeAlias = "typ.Callable[[str, RecordPayload], object]"


class ConsumerChannel(typ.Protocol):
    """Named-method push channel owned by the Consumer."""

    def invoke_method(self, method: str, arguments: RecordPayload) -> None:
        """Deliver ``arguments`` to the Consumer handler for ``method``."""
        ...


class LoopChannel:
    """Channel that runs the Consumer callback on its own event loop.

    ``invoke_method`` only schedules the callback, so a Transport thread
    calling through the relay never waits on Consumer work.
    """

    def __init__(
        self, loop: asyncio.AbstractEventLoop, callback: MethodCallback
    ) -> None:
        """Bind the channel to the Consumer's loop and handler."""
        self._loop = loop
        self._callback = callback

    def invoke_method(self, method: str, arguments: RecordPayload) -> None:
        """Schedule the callback on the Consumer loop."""
        self._loop.call_soon_threadsafe(self._callback, method, arguments)


class CollectingChannel:
    """Channel that records every call in order; used by the CLI and tests."""

    def __init__(self) -> None:
        """Start with no recorded calls."""
        self.calls: list[tuple[str, RecordPayload]] = []

    def invoke_method(self, method: str, arguments: RecordPayload) -> None:
        """Append the call to :attr:`calls`."""
        self.calls.append((method, arguments))

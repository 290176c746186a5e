"""Re-publish normalized records to the Consumer, one event per record."""

from __future__ import annotations

import typing as typ

from smsrelay.gateway.messages import RelayEvent
from smsrelay.observability import BridgeEventLogger

if typ.TYPE_CHECKING:
    from smsrelay.records import NormalizedRecord


class PushTarget(typ.Protocol):
    """Push half of the bridge gateway."""

    def push(self, event: RelayEvent) -> bool:
        """Deliver ``event``; return whether it reached a channel."""
        ...


class Relay:
    """Forward each record immediately; keeps no state between deliveries.

    Events are always stamped with this application's package name, even
    where the gateway attachment is exported and would accept others.
    """

    def __init__(
        self,
        target: PushTarget,
        *,
        package_name: str,
        event_logger: BridgeEventLogger | None = None,
    ) -> None:
        """Bind the relay to its push target and package name."""
        self._target = target
        self._package_name = package_name
        self._event_logger = event_logger or BridgeEventLogger()

    def relay(self, records: typ.Sequence[NormalizedRecord]) -> None:
        """Push one event per record, in order, without batching."""
        for record in records:
            event = RelayEvent(payload=record, origin_package=self._package_name)
            self._event_logger.log_event_attempted(event.method, record.sender)
            if self._target.push(event):
                self._event_logger.log_event_forwarded(event.method, record.sender)

"""Transport entry point for inbound message deliveries."""

from __future__ import annotations

import threading
import typing as typ

from smsrelay.observability import BridgeEventLogger
from smsrelay.records import SMS_RECEIVED_ACTION

if typ.TYPE_CHECKING:
    from smsrelay.normalizer import EventNormalizer
    from smsrelay.records import DeliveryEvent
    from smsrelay.relay import Relay


class SmsReceiver:
    """Filter Transport deliveries and run normalize-then-relay for each.

    Deliveries are processed one at a time: a second delivery waits until
    the first has been normalized and every record handed to the gateway.
    """

    def __init__(
        self,
        normalizer: EventNormalizer,
        relay: Relay,
        *,
        action: str = SMS_RECEIVED_ACTION,
        event_logger: BridgeEventLogger | None = None,
    ) -> None:
        """Wire the receiver to its normalizer and relay."""
        self._normalizer = normalizer
        self._relay = relay
        self._action = action
        self._event_logger = event_logger or BridgeEventLogger()
        self._lock = threading.Lock()

    def on_receive(self, event: DeliveryEvent) -> None:
        """Handle one Transport delivery; other event categories are ignored."""
        if event.action != self._action:
            self._event_logger.log_delivery_ignored(event.action)
            return

        with self._lock:
            unit_count = 0 if event.batch is None else len(event.batch.units)
            self._event_logger.log_delivery_received(event.action, unit_count)
            records = self._normalizer.normalize(event.batch)
            self._relay.relay(records)

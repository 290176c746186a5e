"""Unit tests for the relay and the transport receiver."""

from __future__ import annotations

import threading
import typing as typ

import pytest

from smsrelay.gateway.messages import EVENT_RECEIVED_METHOD, RelayEvent
from smsrelay.normalizer import EventNormalizer
from smsrelay.observability import BridgeEventType
from smsrelay.receiver import SmsReceiver
from smsrelay.records import (
    SMS_RECEIVED_ACTION,
    DeliveryEvent,
    NormalizedRecord,
    RawDeliveryBatch,
)
from smsrelay.relay import Relay
from tests.helpers import pdus
from tests.helpers.femtologging_capture import capture_femto_logs

PACKAGE = "com.example.inbox"
BOOT_COMPLETED_ACTION = "android.intent.action.BOOT_COMPLETED"


class _RecordingTarget:
    """Push target remembering every event it was offered."""

    def __init__(self, *, accept: bool = True) -> None:
        self.events: list[RelayEvent] = []
        self._accept = accept

    def push(self, event: RelayEvent) -> bool:
        self.events.append(event)
        return self._accept


class _BlockingTarget:
    """Push target that holds its first push until released."""

    def __init__(self) -> None:
        self.events: list[RelayEvent] = []
        self.entered = threading.Event()
        self.release = threading.Event()

    def push(self, event: RelayEvent) -> bool:
        self.events.append(event)
        if not self.entered.is_set():
            self.entered.set()
            self.release.wait(timeout=5.0)
        return True


@pytest.fixture
def target() -> _RecordingTarget:
    """Return a push target that accepts everything."""
    return _RecordingTarget()


class TestRelay:
    """Per-record forwarding."""

    def test_one_event_per_record_in_order(self, target: _RecordingTarget) -> None:
        """Each record becomes its own stamped event."""
        records = [
            NormalizedRecord(sender="a", body="1", timestamp_millis=1),
            NormalizedRecord(sender="b", body="2", timestamp_millis=2),
        ]

        Relay(target, package_name=PACKAGE).relay(records)

        assert [event.payload for event in target.events] == records
        assert all(event.method == EVENT_RECEIVED_METHOD for event in target.events)
        assert {event.origin_package for event in target.events} == {PACKAGE}

    def test_empty_input_pushes_nothing(self, target: _RecordingTarget) -> None:
        """No records means no events."""
        Relay(target, package_name=PACKAGE).relay([])
        assert target.events == []

    def test_dropped_push_is_not_logged_as_forwarded(self) -> None:
        """Only pushes that reached a channel count as forwarded."""
        target = _RecordingTarget(accept=False)
        record = NormalizedRecord(sender="a")

        with capture_femto_logs("smsrelay.observability") as capture:
            Relay(target, package_name=PACKAGE).relay([record])

        capture.wait_for_count(1)
        capture.settle()
        assert capture.messages_containing(BridgeEventType.EVENT_ATTEMPTED)
        assert not capture.messages_containing(BridgeEventType.EVENT_FORWARDED)


class TestSmsReceiver:
    """Transport filtering in front of normalize-then-relay."""

    @pytest.fixture
    def receiver(self, target: _RecordingTarget) -> SmsReceiver:
        """Wire a receiver to the recording target."""
        return SmsReceiver(EventNormalizer(), Relay(target, package_name=PACKAGE))

    def test_received_action_is_relayed(
        self, receiver: SmsReceiver, target: _RecordingTarget
    ) -> None:
        """A delivery of the received category reaches the target."""
        batch = RawDeliveryBatch.from_units([pdus.unit(pdus.UCS2_HEX)])

        receiver.on_receive(DeliveryEvent(SMS_RECEIVED_ACTION, batch))

        assert [event.payload.to_payload() for event in target.events] == [
            {
                "sender": pdus.UCS2_SENDER,
                "body": pdus.UCS2_BODY,
                "timestamp": pdus.JAN_15_2024_MILLIS,
            }
        ]

    def test_other_actions_are_ignored(
        self, receiver: SmsReceiver, target: _RecordingTarget
    ) -> None:
        """Unrelated event categories never reach the normalizer."""
        batch = RawDeliveryBatch.from_units([pdus.unit(pdus.UCS2_HEX)])

        receiver.on_receive(DeliveryEvent(BOOT_COMPLETED_ACTION, batch))

        assert target.events == []

    def test_missing_batch_relays_nothing(
        self, receiver: SmsReceiver, target: _RecordingTarget
    ) -> None:
        """A received delivery without units produces no events."""
        receiver.on_receive(DeliveryEvent(SMS_RECEIVED_ACTION))
        assert target.events == []

    def test_mixed_batch_relays_good_units(
        self, receiver: SmsReceiver, target: _RecordingTarget
    ) -> None:
        """A corrupt unit does not stop its neighbours."""
        units: typ.Sequence[bytes] = (
            pdus.unit(pdus.CLASSIC_HEX),
            pdus.TRUNCATED,
            pdus.unit(pdus.CONCATENATED_HEX),
        )
        batch = RawDeliveryBatch.from_units(units)

        receiver.on_receive(DeliveryEvent(SMS_RECEIVED_ACTION, batch))

        assert [event.payload.body for event in target.events] == [
            pdus.CLASSIC_BODY,
            pdus.CONCATENATED_BODY,
        ]

    def test_concurrent_deliveries_do_not_interleave(self) -> None:
        """A second delivery waits until the first has relayed every record."""
        target = _BlockingTarget()
        receiver = SmsReceiver(EventNormalizer(), Relay(target, package_name=PACKAGE))
        first = DeliveryEvent(
            SMS_RECEIVED_ACTION,
            RawDeliveryBatch.from_units(
                [pdus.unit(pdus.UCS2_HEX), pdus.unit(pdus.CLASSIC_HEX)]
            ),
        )
        second = DeliveryEvent(
            SMS_RECEIVED_ACTION,
            RawDeliveryBatch.from_units([pdus.unit(pdus.ALPHANUMERIC_HEX)]),
        )
        first_thread = threading.Thread(target=receiver.on_receive, args=(first,))
        second_thread = threading.Thread(target=receiver.on_receive, args=(second,))

        first_thread.start()
        assert target.entered.wait(timeout=5.0), "first delivery never pushed"
        second_thread.start()
        second_thread.join(timeout=0.2)

        assert len(target.events) == 1, "second delivery ran mid-relay"
        target.release.set()
        first_thread.join(timeout=5.0)
        second_thread.join(timeout=5.0)
        assert [event.payload.sender for event in target.events] == [
            pdus.UCS2_SENDER,
            pdus.CLASSIC_SENDER,
            pdus.ALPHANUMERIC_SENDER,
        ]

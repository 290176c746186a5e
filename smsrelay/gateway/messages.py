"""Messages exchanged between the Consumer and the bridge gateway."""

from __future__ import annotations

import typing as typ

import msgspec

from smsrelay.records import NormalizedRecord, RecordPayload

SCAN_ALL_METHOD = "scanAll"
EVENT_RECEIVED_METHOD = "onEventReceived"
SCAN_ERROR_CODE = "SCAN_ERROR"
DEFAULT_CHANNEL_NAME = "smsrelay/sms"


class BridgeRequest(msgspec.Struct, frozen=True):
    """Request issued by the Consumer; only ``scanAll`` is defined."""

    method: str


class Success(msgspec.Struct, frozen=True, tag="success"):
    """Successful response carrying records in Store order."""

    result: list[NormalizedRecord]

    def to_payload(self) -> list[RecordPayload]:
        """Return the result in the Consumer wire shape."""
        return [record.to_payload() for record in self.result]


class Failure(msgspec.Struct, frozen=True, tag="error"):
    """Named error response; carries no traceback or internal detail."""

    code: str
    message: str


class NotImplementedResponse(msgspec.Struct, frozen=True, tag="not_implemented"):
    """Response for method names the gateway does not serve."""


BridgeResponse: typ.TypeAlias = Success | Failure | NotImplementedResponse


class RelayEvent(msgspec.Struct, frozen=True, kw_only=True):
    """Fire-and-forget push of one record to the Consumer."""

    payload: NormalizedRecord
    origin_package: str
    method: str = EVENT_RECEIVED_METHOD

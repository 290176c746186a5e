"""Typed records shared by the push and pull paths."""

from __future__ import annotations

import dataclasses as dc
import typing as typ

import msgspec

SMS_RECEIVED_ACTION = "android.provider.Telephony.SMS_RECEIVED"
DEFAULT_PDU_FORMAT = "3gpp"

RecordPayload: typ.TypeAlias = dict[str, str | int]


class NormalizedRecord(msgspec.Struct, frozen=True, kw_only=True):
    """One text message in the canonical relay schema.

    Attributes
    ----------
    sender : str
        Originating address, ``""`` when the source omitted it.
    body : str
        Message text, ``""`` when the source omitted it.
    timestamp_millis : int
        Platform epoch milliseconds; ``0`` when unavailable.

    """

    sender: str = ""
    body: str = ""
    timestamp_millis: int = 0

    def to_payload(self) -> RecordPayload:
        """Return the wire mapping delivered to the Consumer."""
        return {
            "sender": self.sender,
            "body": self.body,
            "timestamp": self.timestamp_millis,
        }


@dc.dataclass(frozen=True, slots=True)
class RawDeliveryBatch:
    """Encoded units from one Transport delivery sharing a format tag."""

    units: tuple[bytes, ...]
    format: str | None = DEFAULT_PDU_FORMAT

    @classmethod
    def from_units(
        cls, units: typ.Iterable[bytes], fmt: str | None = DEFAULT_PDU_FORMAT
    ) -> RawDeliveryBatch:
        """Build a batch from any iterable of encoded units."""
        return cls(units=tuple(units), format=fmt)


@dc.dataclass(frozen=True, slots=True)
class DeliveryEvent:
    """Raw event envelope handed over by the Transport."""

    action: str
    batch: RawDeliveryBatch | None = None

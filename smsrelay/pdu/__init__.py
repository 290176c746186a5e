"""Decoders for encoded transport units, keyed by platform format tag."""

from __future__ import annotations

import typing as typ

from smsrelay.errors import PduDecodeError
from smsrelay.pdu.deliver import Alphabet, SmsDeliver, decode_deliver
from smsrelay.records import NormalizedRecord

UnitDecoder = typ.Callable[[bytes], NormalizedRecord]
_registry: dict[str, UnitDecoder] = {}


def register(fmt: str) -> typ.Callable[[UnitDecoder], UnitDecoder]:
    """Register a unit decoder for a format tag."""

    def _inner(func: UnitDecoder) -> UnitDecoder:
        _registry[fmt] = func
        return func

    return _inner


def get_unit_decoder(fmt: str) -> UnitDecoder | None:
    """Return the decoder registered for ``fmt`` if present."""
    return _registry.get(fmt)


@register("3gpp")
def decode_3gpp(unit: bytes) -> NormalizedRecord:
    """Decode a GSM/UMTS SMS-DELIVER unit."""
    message = decode_deliver(unit)
    return NormalizedRecord(
        sender=message.originating_address,
        body=message.body,
        timestamp_millis=message.timestamp_millis,
    )


def decode_unit(unit: bytes, fmt: str) -> NormalizedRecord:
    """Decode one unit with the decoder registered for ``fmt``.

    Raises
    ------
    PduDecodeError
        If no decoder handles ``fmt`` or the unit is malformed.

    """
    if not isinstance(unit, bytes | bytearray | memoryview):
        raise PduDecodeError.not_binary(type(unit).__name__)
    decoder = get_unit_decoder(fmt)
    if decoder is None:
        raise PduDecodeError.unsupported_format(fmt)
    return decoder(bytes(unit))


__all__ = [
    "Alphabet",
    "SmsDeliver",
    "UnitDecoder",
    "decode_3gpp",
    "decode_deliver",
    "decode_unit",
    "get_unit_decoder",
    "register",
]

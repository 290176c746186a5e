"""SMS-DELIVER decoding for 3GPP TS 23.040 PDUs.

Only the fields the relay needs are surfaced: the originating address, the
message text and the service-centre timestamp. The PDU is expected to carry
its SMSC address prefix, as handed over by the radio layer.
"""

from __future__ import annotations

import dataclasses as dc
import datetime as dt
import enum

from smsrelay.errors import PduDecodeError
from smsrelay.pdu import gsm7

_MTI_MASK = 0x03
_MTI_DELIVER = 0x00
_UDHI_FLAG = 0x40
_TON_INTERNATIONAL = 1
_TON_ALPHANUMERIC = 5
_SCTS_LENGTH = 7
_TZ_SIGN_FLAG = 0x08
_SEMI_OCTET_DIGITS = "0123456789*#abc"
_SEMI_OCTET_FILLER = 0x0F


class Alphabet(enum.Enum):
    """Character sets selectable through TP-DCS."""

    GSM7 = "gsm7"
    EIGHT_BIT = "8bit"
    UCS2 = "ucs2"


@dc.dataclass(frozen=True, slots=True)
class SmsDeliver:
    """Decoded SMS-DELIVER fields."""

    originating_address: str
    body: str
    timestamp_millis: int
    alphabet: Alphabet
    has_header: bool


class _Cursor:
    """Forward-only reader over PDU octets."""

    def __init__(self, data: bytes) -> None:
        self._data = data
        self._pos = 0

    def octet(self, field: str) -> int:
        if self._pos >= len(self._data):
            raise PduDecodeError.truncated(field)
        value = self._data[self._pos]
        self._pos += 1
        return value

    def take(self, size: int, field: str) -> bytes:
        end = self._pos + size
        if end > len(self._data):
            raise PduDecodeError.truncated(field)
        chunk = self._data[self._pos : end]
        self._pos = end
        return chunk

    def rest(self) -> bytes:
        return self._data[self._pos :]


def _swap_nibbles(octet: int) -> tuple[int, int]:
    return (octet & 0x0F, octet >> 4)


def _semi_octet_digits(data: bytes, count: int) -> str:
    digits: list[str] = []
    for octet in data:
        for nibble in _swap_nibbles(octet):
            if len(digits) == count or nibble == _SEMI_OCTET_FILLER:
                break
            digits.append(_SEMI_OCTET_DIGITS[nibble])
    return "".join(digits)


def _read_address(cursor: _Cursor) -> str:
    """Read TP-OA; its length counts semi-octets, not octets."""
    length = cursor.octet("address length")
    type_of_address = cursor.octet("type of address")
    raw = cursor.take((length + 1) // 2, "address value")
    ton = (type_of_address >> 4) & 0x07
    if ton == _TON_ALPHANUMERIC:
        return gsm7.decode_packed(raw, length * 4 // 7)
    digits = _semi_octet_digits(raw, length)
    if ton == _TON_INTERNATIONAL and digits:
        return f"+{digits}"
    return digits


def _alphabet_for(dcs: int) -> Alphabet:
    """Map TP-DCS to an alphabet (TS 23.038 section 4)."""
    group = dcs >> 4
    if group <= 0x07:
        if dcs & 0x20:
            raise PduDecodeError.unsupported_encoding(dcs)
        match (dcs >> 2) & 0x03:
            case 0x01:
                return Alphabet.EIGHT_BIT
            case 0x02:
                return Alphabet.UCS2
            case _:
                return Alphabet.GSM7
    if group == 0x0E:
        return Alphabet.UCS2
    if group == 0x0F:
        return Alphabet.EIGHT_BIT if dcs & 0x04 else Alphabet.GSM7
    return Alphabet.GSM7


def _bcd(octet: int) -> int:
    low, high = _swap_nibbles(octet)
    if low > 9 or high > 9:  # noqa: PLR2004 - decimal digit bound
        msg = f"octet {octet:#04x} is not semi-octet BCD"
        raise ValueError(msg)
    return low * 10 + high


def _timestamp_millis(scts: bytes) -> int:
    """Convert TP-SCTS to epoch milliseconds, or ``0`` if it is invalid."""
    tz_octet = scts[6]
    quarters = (tz_octet & 0x07) * 10 + (tz_octet >> 4)
    if tz_octet & _TZ_SIGN_FLAG:
        quarters = -quarters
    try:
        year, month, day, hour, minute, second = (
            _bcd(octet) for octet in scts[:6]
        )
        century = 1900 if year > 95 else 2000  # noqa: PLR2004 - TS 23.040 pivot
        stamp = dt.datetime(
            century + year,
            month,
            day,
            hour,
            minute,
            second,
            tzinfo=dt.timezone(dt.timedelta(minutes=15 * quarters)),
        )
    except ValueError:
        return 0
    return int(stamp.timestamp()) * 1000


def _decode_user_data(
    user_data: bytes, length: int, alphabet: Alphabet, *, has_header: bool
) -> str:
    header_octets = 0
    if has_header:
        if not user_data:
            raise PduDecodeError.truncated("user data header length")
        header_octets = user_data[0] + 1
        if header_octets > len(user_data):
            raise PduDecodeError.truncated("user data header")

    if alphabet is Alphabet.GSM7:
        skip = -(-header_octets * 8 // 7)
        if skip > length:
            raise PduDecodeError.invalid_user_data("header longer than TP-UDL")
        return gsm7.decode_packed(user_data, length - skip, start_bit=skip * 7)

    if length > len(user_data):
        raise PduDecodeError.truncated("user data")
    text = user_data[header_octets:length]
    if alphabet is Alphabet.UCS2:
        if len(text) % 2:
            raise PduDecodeError.invalid_user_data("odd UCS-2 octet count")
        try:
            return text.decode("utf-16-be")
        except UnicodeDecodeError as exc:
            raise PduDecodeError.invalid_user_data("unpaired surrogate") from exc
    # 8-bit data carries no text for the relay.
    return ""


def decode_deliver(pdu: bytes) -> SmsDeliver:
    """Decode an SMS-DELIVER PDU prefixed with its SMSC address."""
    cursor = _Cursor(pdu)
    smsc_length = cursor.octet("SMSC length")
    cursor.take(smsc_length, "SMSC address")

    first_octet = cursor.octet("first octet")
    mti = first_octet & _MTI_MASK
    if mti != _MTI_DELIVER:
        raise PduDecodeError.unsupported_message_type(mti)
    has_header = bool(first_octet & _UDHI_FLAG)

    sender = _read_address(cursor)
    cursor.octet("protocol identifier")
    dcs = cursor.octet("data coding scheme")
    alphabet = _alphabet_for(dcs)
    scts = cursor.take(_SCTS_LENGTH, "service centre timestamp")
    length = cursor.octet("user data length")
    timestamp = _timestamp_millis(scts)
    body = _decode_user_data(cursor.rest(), length, alphabet, has_header=has_header)

    return SmsDeliver(
        originating_address=sender,
        body=body,
        timestamp_millis=timestamp,
        alphabet=alphabet,
        has_header=has_header,
    )

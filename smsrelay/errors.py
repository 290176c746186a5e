"""Error types raised inside smsrelay.

None of these cross the Consumer boundary unconverted: the normalizer and
the query bridge absorb them, and the gateway turns anything that escapes
into a structured failure response.
"""

from __future__ import annotations

import enum


class PduDecodeReason(enum.StrEnum):
    """Machine-readable reasons for a PDU that could not be decoded."""

    TRUNCATED = "truncated"
    NOT_BINARY = "not_binary"
    UNSUPPORTED_FORMAT = "unsupported_format"
    UNSUPPORTED_MESSAGE_TYPE = "unsupported_message_type"
    UNSUPPORTED_ENCODING = "unsupported_encoding"
    INVALID_USER_DATA = "invalid_user_data"


class PduDecodeError(ValueError):
    """Raised when a single transport unit cannot be decoded."""

    def __init__(self, message: str, reason: PduDecodeReason) -> None:
        """Store the reason alongside the human-readable message."""
        super().__init__(message)
        self.reason = reason

    @classmethod
    def truncated(cls, field: str) -> PduDecodeError:
        """Return an error for a PDU that ends before ``field``."""
        return cls(f"PDU truncated while reading {field}", PduDecodeReason.TRUNCATED)

    @classmethod
    def not_binary(cls, type_name: str) -> PduDecodeError:
        """Return an error for a unit that is not a bytes-like object."""
        return cls(f"unit is {type_name}, not bytes", PduDecodeReason.NOT_BINARY)

    @classmethod
    def unsupported_format(cls, fmt: str) -> PduDecodeError:
        """Return an error for a format tag with no registered decoder."""
        return cls(
            f"no decoder registered for format {fmt!r}",
            PduDecodeReason.UNSUPPORTED_FORMAT,
        )

    @classmethod
    def unsupported_message_type(cls, mti: int) -> PduDecodeError:
        """Return an error for PDUs that are not SMS-DELIVER."""
        return cls(
            f"message type indicator {mti:#04b} is not SMS-DELIVER",
            PduDecodeReason.UNSUPPORTED_MESSAGE_TYPE,
        )

    @classmethod
    def unsupported_encoding(cls, dcs: int) -> PduDecodeError:
        """Return an error for data coding schemes we cannot render."""
        return cls(
            f"data coding scheme {dcs:#04x} is not supported",
            PduDecodeReason.UNSUPPORTED_ENCODING,
        )

    @classmethod
    def invalid_user_data(cls, detail: str) -> PduDecodeError:
        """Return an error for inconsistent user data fields."""
        return cls(
            f"invalid user data: {detail}", PduDecodeReason.INVALID_USER_DATA
        )


class RowExtractionError(ValueError):
    """Raised when one Store row does not fit the record schema."""

    @classmethod
    def wrong_type(cls, column: str, value: object) -> RowExtractionError:
        """Return an error for a column holding an unexpected type."""
        return cls(f"column {column} holds {type(value).__name__}")


class StoreAccessDeniedError(PermissionError):
    """Raised when the host has not granted read access to the Store."""

    @classmethod
    def read_denied(cls) -> StoreAccessDeniedError:
        """Return the error used when the read permission check fails."""
        return cls("read access to the message store was denied")


class RelayConfigError(ValueError):
    """Raised when environment configuration is invalid."""

    @classmethod
    def invalid_env(cls, name: str, raw: str, expected: str) -> RelayConfigError:
        """Return an error naming the variable and what it should hold."""
        return cls(f"{name} must be {expected}, got: {raw!r}")


__all__ = [
    "PduDecodeError",
    "PduDecodeReason",
    "RelayConfigError",
    "RowExtractionError",
    "StoreAccessDeniedError",
]

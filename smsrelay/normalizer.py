"""Normalize raw Transport batches into relay records."""

from __future__ import annotations

import typing as typ

from smsrelay.errors import PduDecodeError
from smsrelay.observability import BridgeEventLogger
from smsrelay.pdu import decode_unit
from smsrelay.records import DEFAULT_PDU_FORMAT, NormalizedRecord

if typ.TYPE_CHECKING:
    from smsrelay.records import RawDeliveryBatch


class EventNormalizer:
    """Decode every unit of a batch, dropping the ones that fail.

    The output keeps arrival order of the decodable units; it is never
    re-sorted by timestamp.
    """

    def __init__(self, event_logger: BridgeEventLogger | None = None) -> None:
        """Store the event logger used for skip diagnostics."""
        self._event_logger = event_logger or BridgeEventLogger()

    def normalize(self, batch: RawDeliveryBatch | None) -> list[NormalizedRecord]:
        """Return one record per decodable unit in ``batch``."""
        if batch is None:
            self._event_logger.log_batch_missing()
            return []

        fmt = batch.format or DEFAULT_PDU_FORMAT
        decoded = (
            self._decode(index, unit, fmt) for index, unit in enumerate(batch.units)
        )
        return [record for record in decoded if record is not None]

    def _decode(self, index: int, unit: bytes, fmt: str) -> NormalizedRecord | None:
        try:
            return decode_unit(unit, fmt)
        except PduDecodeError as exc:
            self._event_logger.log_unit_skipped(index, fmt, exc)
            return None

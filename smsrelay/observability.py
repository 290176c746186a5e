"""Structured diagnostics for the relay and query paths.

Every event is a single femtologging line of the form
``[event.type] key=value ...`` so support tooling can grep a device log for
one delivery or one scan. Per-delivery chatter is emitted at DEBUG; Store
failures at ERROR with a category for alert routing.
"""

from __future__ import annotations

import enum

from sqlalchemy.exc import (
    InterfaceError,
    OperationalError,
    ProgrammingError,
    SQLAlchemyError,
)

from smsrelay.errors import PduDecodeError, RowExtractionError, StoreAccessDeniedError
from smsrelay.logging import get_logger, log_debug, log_error, log_info, log_warning

logger = get_logger(__name__)


class BridgeEventType(enum.StrEnum):
    """Structured log event types emitted by smsrelay."""

    DELIVERY_RECEIVED = "relay.delivery.received"
    DELIVERY_IGNORED = "relay.delivery.ignored"
    BATCH_MISSING = "normalizer.batch.missing"
    UNIT_SKIPPED = "normalizer.unit.skipped"
    EVENT_ATTEMPTED = "relay.event.attempted"
    EVENT_FORWARDED = "relay.event.forwarded"
    EVENT_DROPPED = "relay.event.dropped"
    EVENT_REJECTED = "relay.event.rejected"
    GATEWAY_ATTACHED = "gateway.attached"
    GATEWAY_DETACHED = "gateway.detached"
    ROW_SKIPPED = "query.row.skipped"
    SCAN_COMPLETED = "query.scan.completed"
    SCAN_FAILED = "query.scan.failed"


class ErrorCategory(enum.StrEnum):
    """Categories for Store failures."""

    PERMISSION_DENIED = "permission_denied"
    STORE_UNAVAILABLE = "store_unavailable"
    SCHEMA_MISMATCH = "schema_mismatch"
    STORE_ERROR = "store_error"
    UNKNOWN = "unknown"


_EXCEPTION_CATEGORY_MAP: tuple[tuple[type[BaseException], ErrorCategory], ...] = (
    (StoreAccessDeniedError, ErrorCategory.PERMISSION_DENIED),
    (OSError, ErrorCategory.STORE_UNAVAILABLE),
    (OperationalError, ErrorCategory.STORE_UNAVAILABLE),
    (InterfaceError, ErrorCategory.STORE_UNAVAILABLE),
    (ProgrammingError, ErrorCategory.SCHEMA_MISMATCH),
    (SQLAlchemyError, ErrorCategory.STORE_ERROR),
)


def categorize_store_error(exc: BaseException) -> ErrorCategory:
    """Return the alert category for a Store-level failure."""
    for exc_type, category in _EXCEPTION_CATEGORY_MAP:
        if isinstance(exc, exc_type):
            return category
    return ErrorCategory.UNKNOWN


class BridgeEventLogger:
    """Emit structured smsrelay events via femtologging."""

    def log_delivery_received(self, action: str, unit_count: int) -> None:
        """Log a Transport delivery that passed the category filter."""
        log_debug(
            logger,
            "[%s] action=%s units=%d",
            BridgeEventType.DELIVERY_RECEIVED,
            action,
            unit_count,
        )

    def log_delivery_ignored(self, action: str) -> None:
        """Log a Transport delivery for an unrelated event category."""
        log_debug(
            logger, "[%s] action=%s", BridgeEventType.DELIVERY_IGNORED, action
        )

    def log_batch_missing(self) -> None:
        """Log a delivery that arrived without a batch."""
        log_warning(logger, "[%s] batch=None", BridgeEventType.BATCH_MISSING)

    def log_unit_skipped(self, index: int, fmt: str, error: PduDecodeError) -> None:
        """Log one undecodable unit that was left out of the output."""
        log_debug(
            logger,
            "[%s] index=%d format=%s reason=%s error_message=%s",
            BridgeEventType.UNIT_SKIPPED,
            index,
            fmt,
            error.reason,
            str(error),
        )

    def log_event_attempted(self, method: str, sender: str) -> None:
        """Log a relay delivery attempt."""
        log_debug(
            logger,
            "[%s] method=%s sender=%s",
            BridgeEventType.EVENT_ATTEMPTED,
            method,
            sender,
        )

    def log_event_forwarded(self, method: str, sender: str) -> None:
        """Log an event handed to the attached Consumer channel."""
        log_debug(
            logger,
            "[%s] method=%s sender=%s",
            BridgeEventType.EVENT_FORWARDED,
            method,
            sender,
        )

    def log_event_dropped(self, method: str) -> None:
        """Log an event dropped because no Consumer is attached."""
        log_debug(
            logger,
            "[%s] method=%s attached=False",
            BridgeEventType.EVENT_DROPPED,
            method,
        )

    def log_event_rejected(self, origin: str, package: str) -> None:
        """Log an event refused by the same-application restriction."""
        log_warning(
            logger,
            "[%s] origin_package=%s package=%s",
            BridgeEventType.EVENT_REJECTED,
            origin,
            package,
        )

    def log_gateway_attached(
        self, channel: str, package: str, *, exported: bool
    ) -> None:
        """Log a Consumer attachment."""
        log_info(
            logger,
            "[%s] channel=%s package=%s exported=%s",
            BridgeEventType.GATEWAY_ATTACHED,
            channel,
            package,
            exported,
        )

    def log_gateway_detached(self, channel: str, *, was_attached: bool) -> None:
        """Log a detach request, including no-op detaches."""
        log_info(
            logger,
            "[%s] channel=%s was_attached=%s",
            BridgeEventType.GATEWAY_DETACHED,
            channel,
            was_attached,
        )

    def log_row_skipped(self, position: int, error: RowExtractionError) -> None:
        """Log a Store row that could not be converted."""
        log_debug(
            logger,
            "[%s] position=%d error_message=%s",
            BridgeEventType.ROW_SKIPPED,
            position,
            str(error),
        )

    def log_scan_completed(self, returned: int, skipped: int) -> None:
        """Log a finished scan with its row counts."""
        log_info(
            logger,
            "[%s] records_returned=%d rows_skipped=%d",
            BridgeEventType.SCAN_COMPLETED,
            returned,
            skipped,
        )

    def log_scan_failed(self, error: BaseException) -> None:
        """Log a Store-level failure that collapsed the scan to empty."""
        log_error(
            logger,
            "[%s] error_type=%s error_category=%s error_message=%s",
            BridgeEventType.SCAN_FAILED,
            type(error).__name__,
            categorize_store_error(error),
            str(error),
            exc_info=error,
        )


__all__ = [
    "BridgeEventLogger",
    "BridgeEventType",
    "ErrorCategory",
    "categorize_store_error",
]

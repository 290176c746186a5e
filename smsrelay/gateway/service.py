"""Bridge gateway: one Consumer attachment, one request path, one push path."""

from __future__ import annotations

import dataclasses as dc
import enum
import threading
import typing as typ

from smsrelay.gateway.messages import (
    DEFAULT_CHANNEL_NAME,
    SCAN_ALL_METHOD,
    SCAN_ERROR_CODE,
    Failure,
    NotImplementedResponse,
    Success,
)
from smsrelay.logging import get_logger, log_exception
from smsrelay.observability import BridgeEventLogger

if typ.TYPE_CHECKING:
    from smsrelay.gateway.channels import ConsumerChannel
    from smsrelay.gateway.messages import BridgeRequest, BridgeResponse, RelayEvent
    from smsrelay.records import NormalizedRecord

logger = get_logger(__name__)


class GatewayState(enum.StrEnum):
    """Attachment state of the gateway's push channel."""

    DETACHED = "detached"
    ATTACHED = "attached"


class ScanAllSource(typ.Protocol):
    """Anything that can answer a full history scan."""

    async def scan_all(self) -> list[NormalizedRecord]:
        """Return every readable record, newest first."""
        ...


@dc.dataclass(frozen=True, slots=True)
class _Attachment:
    channel: ConsumerChannel
    exported: bool


class BridgeGateway:
    """Multiplex Consumer requests and relay pushes over one channel.

    The gateway holds at most one attachment. Swapping or clearing it and
    reading it for a push happen under the same lock, so a push is always
    delivered to either the old channel or the new one, never a mix.
    """

    def __init__(
        self,
        query: ScanAllSource,
        *,
        package_name: str,
        channel_name: str = DEFAULT_CHANNEL_NAME,
        event_logger: BridgeEventLogger | None = None,
    ) -> None:
        """Bind the gateway to its query source, package and channel name."""
        self._query = query
        self._package_name = package_name
        self._channel_name = channel_name
        self._event_logger = event_logger or BridgeEventLogger()
        self._lock = threading.Lock()
        self._attachment: _Attachment | None = None

    @property
    def package_name(self) -> str:
        """Return the application package this gateway belongs to."""
        return self._package_name

    @property
    def channel_name(self) -> str:
        """Return the name the Consumer channel is registered under."""
        return self._channel_name

    @property
    def state(self) -> GatewayState:
        """Return the current attachment state."""
        with self._lock:
            attached = self._attachment is not None
        return GatewayState.ATTACHED if attached else GatewayState.DETACHED

    def attach(self, channel: ConsumerChannel, *, exported: bool = False) -> None:
        """Register ``channel``, replacing any previous registration.

        With ``exported`` left ``False`` the gateway only accepts events
        stamped with its own package name.
        """
        with self._lock:
            self._attachment = _Attachment(channel=channel, exported=exported)
        self._event_logger.log_gateway_attached(
            self._channel_name, self._package_name, exported=exported
        )

    def detach(self) -> None:
        """Drop the current registration; a no-op when already detached."""
        with self._lock:
            was_attached = self._attachment is not None
            self._attachment = None
        self._event_logger.log_gateway_detached(
            self._channel_name, was_attached=was_attached
        )

    async def handle(self, request: BridgeRequest) -> BridgeResponse:
        """Dispatch a Consumer request by method name."""
        if request.method == SCAN_ALL_METHOD:
            return await self._scan_all()
        return NotImplementedResponse()

    async def _scan_all(self) -> BridgeResponse:
        try:
            records = await self._query.scan_all()
        except Exception as exc:  # noqa: BLE001 - translated into a Failure response
            log_exception(logger, f"{SCAN_ALL_METHOD} raised inside the bridge", exc)
            message = str(exc) or type(exc).__name__
            return Failure(code=SCAN_ERROR_CODE, message=message)
        return Success(result=records)

    def push(self, event: RelayEvent) -> bool:
        """Deliver ``event`` to the attached channel.

        Returns ``False`` when the event was dropped: nothing attached, the
        origin package was refused, or the channel raised.
        """
        with self._lock:
            attachment = self._attachment
        if attachment is None:
            self._event_logger.log_event_dropped(event.method)
            return False
        if not attachment.exported and event.origin_package != self._package_name:
            self._event_logger.log_event_rejected(
                event.origin_package, self._package_name
            )
            return False
        try:
            attachment.channel.invoke_method(event.method, event.payload.to_payload())
        except Exception as exc:  # noqa: BLE001 - nothing crosses the push boundary
            log_exception(logger, f"{event.method} push failed", exc)
            return False
        return True

"""Bridge gateway between the relay core and the Consumer."""

from __future__ import annotations

from .channels import CollectingChannel, ConsumerChannel, LoopChannel
from .messages import (
    DEFAULT_CHANNEL_NAME,
    EVENT_RECEIVED_METHOD,
    SCAN_ALL_METHOD,
    SCAN_ERROR_CODE,
    BridgeRequest,
    BridgeResponse,
    Failure,
    NotImplementedResponse,
    RelayEvent,
    Success,
)
from .service import BridgeGateway, GatewayState

__all__ = [
    "DEFAULT_CHANNEL_NAME",
    "EVENT_RECEIVED_METHOD",
    "SCAN_ALL_METHOD",
    "SCAN_ERROR_CODE",
    "BridgeGateway",
    "BridgeRequest",
    "BridgeResponse",
    "CollectingChannel",
    "ConsumerChannel",
    "Failure",
    "GatewayState",
    "LoopChannel",
    "NotImplementedResponse",
    "RelayEvent",
    "Success",
]

"""Relay host: wires the push and pull paths together for one application.

:class:`BridgeHost` owns the gateway and every component feeding it. A host
surface (UI shell, service wrapper, the CLI) builds one host, attaches its
Consumer channel when it starts and detaches when it stops.

Configuration is driven by :class:`smsrelay.config.RelayConfig`, usually
loaded with :meth:`RelayConfig.from_env`:

- ``SMSRELAY_DATABASE_URL``: inbox Store URL
- ``SMSRELAY_PACKAGE_NAME``: package stamped on and required of events
- ``SMSRELAY_CHANNEL_NAME``: Consumer channel name
- ``SMSRELAY_EXPORTED``: accept events from other packages
- ``SMSRELAY_LOG_LEVEL``: log level (default ``INFO``)
"""

from __future__ import annotations

import typing as typ

from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from smsrelay.config import RelayConfig
from smsrelay.gateway.service import BridgeGateway
from smsrelay.logging import configure_logging, get_logger, log_warning
from smsrelay.normalizer import EventNormalizer
from smsrelay.observability import BridgeEventLogger
from smsrelay.query import QueryBridge
from smsrelay.receiver import SmsReceiver
from smsrelay.relay import Relay

if typ.TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

    from smsrelay.gateway.channels import ConsumerChannel
    from smsrelay.query import ReadPermission

logger = get_logger(__name__)


def configure_runtime_logging(config: RelayConfig) -> str:
    """Apply ``config.log_level`` and warn when it had to fall back."""
    normalized_level, invalid_level = configure_logging(config.log_level)
    if invalid_level:
        log_warning(
            logger,
            "Invalid SMSRELAY_LOG_LEVEL %r, falling back to %s",
            config.log_level,
            normalized_level,
        )
    return normalized_level


class BridgeHost:
    """Object graph for one relay: receiver, relay, query bridge, gateway."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        config: RelayConfig | None = None,
        read_permission: ReadPermission | None = None,
        engine: AsyncEngine | None = None,
    ) -> None:
        """Build the components around an existing session factory.

        Parameters
        ----------
        session_factory : async_sessionmaker[AsyncSession]
            Factory for sessions against the inbox Store.
        config : RelayConfig | None, optional
            Host settings; defaults to :class:`RelayConfig` defaults.
        read_permission : ReadPermission | None, optional
            Checked before every scan; ``False`` yields an empty result.
        engine : AsyncEngine | None, optional
            Engine disposed by :meth:`aclose` when the host owns it.

        """
        self._config = config or RelayConfig()
        self._engine = engine
        event_logger = BridgeEventLogger()
        self._query = QueryBridge(
            session_factory,
            read_permission=read_permission,
            event_logger=event_logger,
        )
        self._gateway = BridgeGateway(
            self._query,
            package_name=self._config.package_name,
            channel_name=self._config.channel_name,
            event_logger=event_logger,
        )
        self._receiver = SmsReceiver(
            EventNormalizer(event_logger),
            Relay(
                self._gateway,
                package_name=self._config.package_name,
                event_logger=event_logger,
            ),
            event_logger=event_logger,
        )

    @classmethod
    def from_config(
        cls,
        config: RelayConfig,
        *,
        read_permission: ReadPermission | None = None,
    ) -> BridgeHost:
        """Create a host with its own engine for ``config.database_url``."""
        engine = create_async_engine(config.database_url)
        session_factory = async_sessionmaker(engine, expire_on_commit=False)
        return cls(
            session_factory,
            config=config,
            read_permission=read_permission,
            engine=engine,
        )

    @property
    def config(self) -> RelayConfig:
        """Return the host settings."""
        return self._config

    @property
    def gateway(self) -> BridgeGateway:
        """Return the gateway serving Consumer requests."""
        return self._gateway

    @property
    def query(self) -> QueryBridge:
        """Return the query bridge reading the inbox Store."""
        return self._query

    @property
    def receiver(self) -> SmsReceiver:
        """Return the Transport entry point."""
        return self._receiver

    def attach(self, channel: ConsumerChannel) -> None:
        """Attach the Consumer channel when the host surface starts."""
        self._gateway.attach(channel, exported=self._config.exported)

    def detach(self) -> None:
        """Detach the Consumer channel; safe to call more than once."""
        self._gateway.detach()

    async def aclose(self) -> None:
        """Detach and dispose the owned engine, if any."""
        self.detach()
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None


__all__ = ["BridgeHost", "configure_runtime_logging"]

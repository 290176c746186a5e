"""Runtime configuration for the relay host.

Usage
-----
>>> config = RelayConfig()
>>> config.package_name
'smsrelay'

Or load from environment variables:

>>> import os
>>> os.environ["SMSRELAY_PACKAGE_NAME"] = "com.example.inbox"
>>> RelayConfig.from_env().package_name
'com.example.inbox'

"""

from __future__ import annotations

import dataclasses as dc
import os

from smsrelay.errors import RelayConfigError
from smsrelay.gateway.messages import DEFAULT_CHANNEL_NAME

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off"})


@dc.dataclass(frozen=True, slots=True)
class RelayConfig:
    """Settings for one relay host.

    Attributes
    ----------
    database_url
        SQLAlchemy async URL of the inbox Store.
    package_name
        Application package stamped on relayed events and enforced by the
        gateway when the attachment is not exported.
    channel_name
        Name the Consumer channel is registered under; stamped on the
        gateway attach and detach events.
    exported
        Accept events from other packages. Only for platforms that cannot
        restrict delivery to the same application.
    log_level
        femtologging level name.

    """

    database_url: str = "sqlite+aiosqlite:///smsrelay.db"
    package_name: str = "smsrelay"
    channel_name: str = DEFAULT_CHANNEL_NAME
    exported: bool = False
    log_level: str = "INFO"

    @staticmethod
    def _parse_bool(env_var: str, *, default: bool) -> bool:
        raw = os.environ.get(env_var, "")
        value = raw.strip().lower()
        if not value:
            return default
        if value in _TRUE_VALUES:
            return True
        if value in _FALSE_VALUES:
            return False
        raise RelayConfigError.invalid_env(env_var, raw, "a boolean")

    @staticmethod
    def _parse_name(env_var: str, default: str) -> str:
        raw = os.environ.get(env_var)
        if raw is None:
            return default
        value = raw.strip()
        if not value:
            raise RelayConfigError.invalid_env(env_var, raw, "non-empty")
        return value

    @classmethod
    def from_env(cls) -> RelayConfig:
        """Create configuration from ``SMSRELAY_*`` environment variables.

        Reads ``SMSRELAY_DATABASE_URL``, ``SMSRELAY_PACKAGE_NAME``,
        ``SMSRELAY_CHANNEL_NAME``, ``SMSRELAY_EXPORTED`` and
        ``SMSRELAY_LOG_LEVEL``; unset variables keep their defaults.

        Raises
        ------
        RelayConfigError
            If a variable is set to an empty or unparseable value.

        """
        defaults = cls()
        return cls(
            database_url=cls._parse_name(
                "SMSRELAY_DATABASE_URL", defaults.database_url
            ),
            package_name=cls._parse_name(
                "SMSRELAY_PACKAGE_NAME", defaults.package_name
            ),
            channel_name=cls._parse_name(
                "SMSRELAY_CHANNEL_NAME", defaults.channel_name
            ),
            exported=cls._parse_bool("SMSRELAY_EXPORTED", default=defaults.exported),
            log_level=os.environ.get("SMSRELAY_LOG_LEVEL", defaults.log_level),
        )

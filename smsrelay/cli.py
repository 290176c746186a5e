"""Command-line tools for decoding raw message units and scanning the inbox."""

from __future__ import annotations

import argparse
import asyncio
import dataclasses as dc
import sys

import msgspec

from smsrelay.config import RelayConfig
from smsrelay.errors import RelayConfigError
from smsrelay.gateway.channels import CollectingChannel
from smsrelay.gateway.messages import SCAN_ALL_METHOD, BridgeRequest, Failure, Success
from smsrelay.records import SMS_RECEIVED_ACTION, DeliveryEvent, RawDeliveryBatch
from smsrelay.runtime import BridgeHost, configure_runtime_logging

_IN_MEMORY_URL = "sqlite+aiosqlite:///:memory:"


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="smsrelay", description=__doc__)
    commands = parser.add_subparsers(dest="command", required=True)

    decode = commands.add_parser(
        "decode", help="Relay hex-encoded units and print each pushed payload"
    )
    decode.add_argument(
        "--format",
        dest="fmt",
        default="3gpp",
        help="Format tag shared by every unit (default: 3gpp)",
    )
    decode.add_argument("units", nargs="+", metavar="HEX", help="Encoded unit")

    scan = commands.add_parser("scan", help="Print the inbox, newest first")
    scan.add_argument(
        "--database-url",
        default=None,
        help="Store URL; defaults to SMSRELAY_DATABASE_URL",
    )
    return parser


def _decode(config: RelayConfig, hex_units: list[str], fmt: str) -> int:
    try:
        units = [bytes.fromhex(unit) for unit in hex_units]
    except ValueError as exc:
        print(f"Invalid hex unit: {exc}", file=sys.stderr)
        return 1

    host = BridgeHost.from_config(dc.replace(config, database_url=_IN_MEMORY_URL))
    channel = CollectingChannel()
    host.attach(channel)
    try:
        batch = RawDeliveryBatch.from_units(units, fmt)
        host.receiver.on_receive(DeliveryEvent(SMS_RECEIVED_ACTION, batch))
    finally:
        asyncio.run(host.aclose())

    for _method, payload in channel.calls:
        print(msgspec.json.encode(payload).decode())
    if len(channel.calls) < len(units):
        print(
            f"{len(units) - len(channel.calls)} of {len(units)} units skipped",
            file=sys.stderr,
        )
    return 0


async def _scan_all(config: RelayConfig) -> Success | Failure:
    host = BridgeHost.from_config(config)
    try:
        response = await host.gateway.handle(BridgeRequest(SCAN_ALL_METHOD))
    finally:
        await host.aclose()
    if isinstance(response, Success | Failure):
        return response
    msg = f"unexpected response to {SCAN_ALL_METHOD}: {response!r}"
    raise TypeError(msg)


def _scan(config: RelayConfig, database_url: str | None) -> int:
    if database_url is not None:
        config = dc.replace(config, database_url=database_url)
    response = asyncio.run(_scan_all(config))
    if isinstance(response, Failure):
        print(f"{response.code}: {response.message}", file=sys.stderr)
        return 1
    print(msgspec.json.encode(response.to_payload()).decode())
    return 0


def main(argv: list[str] | None = None) -> int:
    """Run the ``smsrelay`` command line.

    Parameters
    ----------
    argv : list[str] | None, optional
        Command-line arguments. ``None`` defaults to ``sys.argv``.

    Returns
    -------
    int
        Exit code: 0 on success, 1 on bad input, configuration or scan error.

    """
    args = _build_parser().parse_args(argv)
    try:
        config = RelayConfig.from_env()
    except RelayConfigError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 1
    configure_runtime_logging(config)

    if args.command == "decode":
        return _decode(config, args.units, args.fmt)
    return _scan(config, args.database_url)


if __name__ == "__main__":
    raise SystemExit(main())

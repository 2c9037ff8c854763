"""Click CLI for the BACnet scanner."""

from __future__ import annotations

import asyncio
import dataclasses
import logging
import sys
from typing import Any

import click

from bacnet_scan.config import DEFAULT_PORT, ScanConfig, ScanOptions
from bacnet_scan.discovery import list_device_ids
from bacnet_scan.formatting import (
    OBJECT_TYPE_HEADERS,
    SUMMARY_HEADERS,
    object_type_rows,
    print_error,
    print_json,
    print_table,
    summary_rows,
)
from bacnet_scan.report import dumps_report, write_report
from bacnet_scan.scanner import scan as run_scan_sync
from bacnet_scan.session import open_session


def parse_predicate(text: str) -> dict[str, Any]:
    """Parse ``KEY=VALUE[,KEY=VALUE...]`` into a property predicate.

    Values that look like integers or reals are converted so they compare
    equal to numeric property values.

    Raises:
        ValueError: If a pair has no ``=`` or an empty key.
    """
    predicate: dict[str, Any] = {}
    for pair in text.split(","):
        key, sep, value = pair.partition("=")
        key = key.strip()
        if not sep or not key:
            msg = f"Expected KEY=VALUE, got {pair!r}"
            raise ValueError(msg)
        predicate[key] = _coerce(value.strip())
    return predicate


def _coerce(value: str) -> Any:
    for convert in (int, float):
        try:
            return convert(value)
        except ValueError:
            continue
    return value


def _parse_excludes(
    _ctx: click.Context, _param: click.Parameter, values: tuple[str, ...]
) -> list[dict[str, Any]]:
    try:
        return [parse_predicate(v) for v in values]
    except ValueError as e:
        raise click.BadParameter(str(e)) from e


def _discovery_options(func: Any) -> Any:
    """Options shared by every command that broadcasts a Who-Is."""
    func = click.option(
        "--settle",
        type=float,
        default=0.7,
        show_default=True,
        help="Seconds to wait for I-Am replies.",
    )(func)
    func = click.option(
        "--dest-port",
        type=int,
        default=DEFAULT_PORT,
        show_default=True,
        help="Destination port of a --broadcast Who-Is; a global broadcast uses the local port.",
    )(func)
    func = click.option(
        "--broadcast",
        default=None,
        help="Directed broadcast address (default: global broadcast).",
    )(func)
    func = click.option("--high", type=int, default=None, help="High device instance limit.")(func)
    func = click.option("--low", type=int, default=None, help="Low device instance limit.")(func)
    return func


def _scan_config(
    ctx: click.Context, broadcast: str | None, dest_port: int, settle: float, **changes: Any
) -> ScanConfig:
    return dataclasses.replace(
        ctx.obj["config"],
        broadcast_address=broadcast,
        dest_port=dest_port,
        settle_time=settle,
        **changes,
    )


@click.group()
@click.option(
    "--interface",
    default="0.0.0.0",
    show_default=True,
    help="Local bind address.",
)
@click.option(
    "--port",
    default=DEFAULT_PORT,
    type=int,
    show_default=True,
    help="Local BACnet/IP port.",
)
@click.option(
    "--instance",
    default=1337,
    type=int,
    show_default=True,
    help="Local device instance number.",
)
@click.option(
    "--timeout",
    default=20000,
    type=int,
    show_default=True,
    help="APDU timeout in milliseconds.",
)
@click.option(
    "--json",
    "use_json",
    is_flag=True,
    default=False,
    help="Output JSON instead of table.",
)
@click.option(
    "--verbose",
    is_flag=True,
    default=False,
    help="Enable debug logging.",
)
@click.pass_context
def cli(
    ctx: click.Context,
    interface: str,
    port: int,
    instance: int,
    timeout: int,
    use_json: bool,
    verbose: bool,
) -> None:
    """Discover BACnet devices and harvest their objects into JSON."""
    ctx.ensure_object(dict)
    ctx.obj["config"] = ScanConfig(
        local_instance=instance,
        interface=interface,
        port=port,
        apdu_timeout=timeout,
    )
    ctx.obj["use_json"] = use_json

    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
    )


@cli.command()
@_discovery_options
@click.pass_context
def devices(
    ctx: click.Context,
    low: int | None,
    high: int | None,
    broadcast: str | None,
    dest_port: int,
    settle: float,
) -> None:
    """List the instance numbers of responding devices."""
    use_json: bool = ctx.obj["use_json"]
    config = _scan_config(ctx, broadcast, dest_port, settle)

    async def _run() -> list[int]:
        async with open_session(config) as session:
            return await list_device_ids(session, low, high)

    try:
        ids = asyncio.run(_run())
    except Exception as e:
        print_error(str(e), use_json)
        sys.exit(1)

    if use_json:
        print_json({"devices": ids})
    elif not ids:
        click.echo("No devices responded.")
    else:
        click.echo(f"Found {len(ids)} device(s):\n")
        print_table(["Instance"], [[i] for i in ids])


@cli.command()
@_discovery_options
@click.option("--keep", type=int, multiple=True, help="Only scan this device (repeatable).")
@click.option("--remove", type=int, multiple=True, help="Skip this device (repeatable).")
@click.option(
    "--exclude",
    multiple=True,
    callback=_parse_excludes,
    metavar="KEY=VALUE[,KEY=VALUE]",
    help="Drop devices whose Device object matches all pairs (repeatable).",
)
@click.option("--trend-log", is_flag=True, default=False, help="Read Trend Log buffers.")
@click.option(
    "--backup-password",
    default=None,
    help="Back up configuration files using this ReinitializeDevice password.",
)
@click.option(
    "--concurrency",
    type=click.IntRange(min=1),
    default=1,
    show_default=True,
    help="Devices scanned at once.",
)
@click.option(
    "--output",
    "-o",
    "output_file",
    default=None,
    help="Output JSON file path (default: stdout).",
)
@click.pass_context
def scan(
    ctx: click.Context,
    low: int | None,
    high: int | None,
    broadcast: str | None,
    dest_port: int,
    settle: float,
    keep: tuple[int, ...],
    remove: tuple[int, ...],
    exclude: list[dict[str, Any]],
    trend_log: bool,
    backup_password: str | None,
    concurrency: int,
    output_file: str | None,
) -> None:
    """Discover devices and harvest every object into a JSON report."""
    use_json: bool = ctx.obj["use_json"]
    config = _scan_config(ctx, broadcast, dest_port, settle, concurrency=concurrency)
    options = ScanOptions(
        low_limit=low,
        high_limit=high,
        keep_ids=keep or None,
        remove_ids=remove,
        exclude_properties=exclude,
        include_trend_log=trend_log,
        backup_password=backup_password,
    )

    try:
        result = run_scan_sync(options, config)
    except Exception as e:
        print_error(str(e), use_json)
        sys.exit(1)

    if output_file is None:
        click.echo(dumps_report(result, pretty=True).decode())
        return

    write_report(result, output_file)
    if use_json:
        print_json({"output": output_file, "devices": list(result.devices)})
    else:
        click.echo(f"Scanned {len(result)} device(s), results written to {output_file}\n")
        print_table(SUMMARY_HEADERS, summary_rows(result))
        click.echo()
        print_table(OBJECT_TYPE_HEADERS, object_type_rows(result))


def main() -> None:
    cli(obj={})


if __name__ == "__main__":
    main()

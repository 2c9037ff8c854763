"""Console output for the scanner CLI: aligned tables or JSON."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import click
import orjson

from bacnet_scan.properties import object_type_name

if TYPE_CHECKING:
    from bacnet_scan.report import ScanResult


def print_table(headers: list[str], rows: list[list[Any]]) -> None:
    """Print *rows* under *headers*, each column padded to its widest cell."""
    cells = [headers, *([str(v) for v in row] for row in rows)]
    widths = [max(len(r[i]) if i < len(r) else 0 for r in cells) for i in range(len(headers))]
    lines = [cells[0], ["-" * w for w in widths], *cells[1:]]
    for line in lines:
        padded = (line[i] if i < len(line) else "" for i in range(len(headers)))
        click.echo("  ".join(v.ljust(w) for v, w in zip(padded, widths, strict=True)).rstrip())


def print_json(data: Any) -> None:
    click.echo(orjson.dumps(data, default=str, option=orjson.OPT_INDENT_2).decode())


def print_error(message: str, use_json: bool = False) -> None:
    """Report *message* as ``{"error": ...}`` on stdout or as text on stderr."""
    if use_json:
        click.echo(orjson.dumps({"error": message}).decode())
    else:
        click.echo(f"Error: {message}", err=True)


def summary_rows(result: ScanResult) -> list[list[Any]]:
    """One row per device: instance, name, address, object and backup status."""
    rows = []
    for instance, report in result.devices.items():
        object_count = sum(len(instances) for instances in report.objects.values())
        if report.backup is None:
            backup = "-"
        elif isinstance(report.backup, str):
            backup = report.backup
        else:
            backup = f"{len(report.backup)} file(s)"
        rows.append(
            [
                instance,
                report.name or "",
                report.ip_address,
                report.network_number,
                object_count,
                backup,
            ]
        )
    return rows


SUMMARY_HEADERS = ["Instance", "Name", "IP Address", "Network", "Objects", "Backup"]


def object_type_rows(result: ScanResult) -> list[list[Any]]:
    """Object counts per object type across every device, most common first."""
    counts: dict[int, int] = {}
    for report in result.devices.values():
        for object_type, instances in report.objects.items():
            counts[object_type] = counts.get(object_type, 0) + len(instances)
    ordered = sorted(counts.items(), key=lambda item: (-item[1], item[0]))
    return [[object_type_name(code), code, count] for code, count in ordered]


OBJECT_TYPE_HEADERS = ["Object Type", "Code", "Count"]

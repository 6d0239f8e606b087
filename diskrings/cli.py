"""Command line front-end for DiskRings."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import replace
from typing import Any, Dict, List, Optional

import click
from PySide6.QtCore import QCoreApplication

from .config import ScanConfig, load_config
from .drives import list_volumes, volume_usage
from .models import FileSystemEntry, TrashError
from .session import ScanSession
from .sunburst import build_rings
from .trash import move_to_trash
from .utils import clamp, format_bytes, shorten_middle


def _setup_logging(verbosity: int) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s")


def _configs(logical: bool) -> tuple:
    try:
        scan_cfg, chart_cfg = load_config()
    except ValueError as e:
        raise click.ClickException(str(e)) from None
    if logical:
        scan_cfg = replace(scan_cfg, size_mode="logical")
    return scan_cfg, chart_cfg


def run_scan(path: str, scan_cfg: ScanConfig, show_progress: bool = True) -> FileSystemEntry:
    """Scan ``path`` through a ScanSession, driving a Qt event loop until it ends."""
    app = QCoreApplication.instance() or QCoreApplication([])
    session = ScanSession(scan_cfg)
    outcome: Dict[str, Any] = {}

    def on_progress(fraction: float, name: str):
        if show_progress:
            pct = int(clamp(fraction * 100.0, 0, 100))
            click.echo(f"\r{pct:3d}%  {shorten_middle(name, 70, 30)}\033[K", err=True, nl=False)

    def on_finished(root: FileSystemEntry):
        outcome["root"] = root
        app.quit()

    def on_failed(err: Exception):
        outcome["error"] = err
        app.quit()

    session.progress.connect(on_progress)
    session.finished.connect(on_finished)
    session.failed.connect(on_failed)
    session.cancelled.connect(app.quit)

    session.start_scan(path)
    app.exec()
    session.cancel_scan()
    if show_progress:
        click.echo("", err=True)

    if "error" in outcome:
        raise click.ClickException(str(outcome["error"]))
    if "root" not in outcome:
        raise click.ClickException("Scan cancelled")
    return outcome["root"]


def _tree_json(node: FileSystemEntry, depth: int) -> Dict[str, Any]:
    d: Dict[str, Any] = {
        "name": node.name,
        "path": node.path,
        "is_dir": node.is_dir,
        "size": node.size,
        "percentage": round(node.percentage, 4),
    }
    if node.is_bundle:
        d["is_bundle"] = True
    if node.children is not None and depth > 0:
        d["children"] = [_tree_json(c, depth - 1) for c in node.children]
    return d


@click.group()
@click.option("-v", "--verbose", count=True, help="Increase verbosity (-v info, -vv debug)")
def main(verbose: int) -> None:
    """DiskRings: disk usage as a drill-down sunburst chart."""
    _setup_logging(verbose)


# ── scan ─────────────────────────────────────────────────────────────────

def _echo_nested(node: FileSystemEntry, level: int, depth: int) -> None:
    if level >= depth or not node.children:
        return
    indent = "    " * level
    for c in node.children:
        kind = "/" if c.is_dir and not c.is_bundle else ""
        click.echo(f"  {indent}{format_bytes(c.size):>12}  {c.percentage:6.2f}%  {c.name}{kind}")
        _echo_nested(c, level + 1, depth)


@main.command()
@click.argument("path", type=click.Path())
@click.option("--logical", is_flag=True, help="Use logical file sizes instead of allocated blocks")
@click.option("--depth", default=1, show_default=True, type=click.IntRange(0), help="Levels to print")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def scan(path: str, logical: bool, depth: int, as_json: bool) -> None:
    """Measure PATH and print its breakdown."""
    scan_cfg, chart_cfg = _configs(logical)
    root = run_scan(path, scan_cfg, show_progress=not as_json)

    if as_json:
        click.echo(json.dumps(_tree_json(root, depth), indent=2, ensure_ascii=False))
        return

    click.echo(f"{click.style(root.name, bold=True)}  {format_bytes(root.size)}  "
               f"({root.file_count} files, {root.dir_count} directories)")
    usage = volume_usage(root.path)
    if usage:
        click.echo(f"  volume: {format_bytes(usage['used'])} used of {format_bytes(usage['total'])}")

    ring_list = build_rings(root, config=chart_cfg)
    if not ring_list:
        click.echo("  (empty)")
        return
    for s in ring_list[0]:
        n = s.node
        kind = "/" if n.is_dir and not n.is_bundle else ""
        click.echo(f"  {format_bytes(n.size):>12}  {n.percentage:6.2f}%  {s.span:7.2f}°  {n.name}{kind}")
        _echo_nested(n, 1, depth)


# ── rings ────────────────────────────────────────────────────────────────

def _resolve_expanded(root: FileSystemEntry, names: List[str]) -> set:
    wanted = set(names)
    wanted_paths = {os.path.abspath(n) for n in names}
    return {n.id for n in root.iter_nodes()
            if n.children and (n.name in wanted or n.path in wanted_paths)}


@main.command()
@click.argument("path", type=click.Path())
@click.option("--logical", is_flag=True, help="Use logical file sizes instead of allocated blocks")
@click.option("--expand", "expand", multiple=True, help="Name or path of a directory to expand past the base depth")
@click.option("--base-depth", default=None, type=click.IntRange(1), help="Rings built without expansion")
def rings(path: str, logical: bool, expand: tuple, base_depth: Optional[int]) -> None:
    """Print the sunburst rings for PATH."""
    scan_cfg, chart_cfg = _configs(logical)
    if base_depth is not None:
        try:
            chart_cfg = replace(chart_cfg, base_depth=base_depth,
                                max_rings=max(chart_cfg.max_rings, base_depth))
        except ValueError as e:
            raise click.ClickException(str(e)) from None
    root = run_scan(path, scan_cfg)
    expanded = _resolve_expanded(root, list(expand))

    for i, ring in enumerate(build_rings(root, expanded, chart_cfg)):
        click.echo(click.style(f"ring {i}", fg="cyan", bold=True) + f"  ({len(ring)} slices)")
        for s in ring:
            click.echo(f"  [{s.start_angle:8.2f}, {s.end_angle:8.2f})  c{s.color_index:<2}  "
                       f"{s.node.percentage:6.2f}%  {s.node.name}")


# ── volumes ──────────────────────────────────────────────────────────────

@main.command()
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def volumes(as_json: bool) -> None:
    """List mounted volumes that can be scanned."""
    vols = list_volumes()
    if as_json:
        click.echo(json.dumps(vols, indent=2))
        return
    if not vols:
        click.echo("No volumes found.")
        return
    for v in vols:
        click.echo(f"  {v['mountpoint']:30s}  {v['fstype']:8s}  {format_bytes(v['used']):>12} / "
                   f"{format_bytes(v['total']):>12}  ({v['percent']:.1f}%)")


# ── trash ────────────────────────────────────────────────────────────────

@main.command()
@click.argument("path", type=click.Path())
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation")
def trash(path: str, yes: bool) -> None:
    """Move PATH to the trash."""
    if not yes:
        click.confirm(f"Move {path} to the trash?", abort=True)
    try:
        move_to_trash(path)
    except TrashError as e:
        raise click.ClickException(str(e)) from None
    click.echo(f"Moved {path} to the trash.")

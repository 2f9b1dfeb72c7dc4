"""Operation-specific Rich renderers for ServiceResult.

Each renderer writes to a Rich Console (backed by StringIO). Renderers are
dispatched by ``result.op`` in :func:`render_result`; unknown ops fall
through to a generic key-value renderer.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from rich.table import Table
from rich.text import Text

from depctl.output.console import create_console, get_output, style_for_status, style_for_tier

if TYPE_CHECKING:
    from rich.console import Console

    from depctl.services.result import ServiceResult


# ── Public API ────────────────────────────────────────────────────────


def render_result(result: ServiceResult, *, verbose: bool = False) -> str:
    """Render a ServiceResult to a styled string via Rich."""
    console = create_console()
    if result.ok:
        renderer = _OP_RENDERERS.get(result.op, _render_generic)
        renderer(result, console, verbose=verbose)
    else:
        _render_error(result, console, verbose=verbose)
    return get_output(console).rstrip("\n")


def render_quiet(result: ServiceResult) -> str:
    """Render minimal output for ``--quiet`` mode: one name per line."""
    if not result.ok:
        msg = result.error.message if result.error else "Unknown error"
        return f"ERROR: {result.op}: {msg}"

    data = result.data
    if result.op == "exports":
        if "symbol" in data:
            return str(data.get("file", ""))
        return "\n".join(sorted(data.get("exports", {})))
    if result.op == "why":
        return "\n".join(data.get("transitive", []))

    rows = data.get("packages") or data.get("items")
    if rows and isinstance(rows, list):
        return "\n".join(str(r["name"]) for r in rows if isinstance(r, dict) and "name" in r)
    return f"OK: {result.op}"


# ── Helpers ───────────────────────────────────────────────────────────


def _status_line(console: Console, result: ServiceResult) -> None:
    console.print(Text("OK", style="dep.ok"), Text(f"  {result.op}", style="dep.op"))


def _field(console: Console, key: str, value: Any) -> None:
    """Print a single indented key-value field."""
    k = Text(f"  {key}: ", style="dep.key")
    if key in ("path", "expected_path", "output_root", "map_path"):
        v = Text(str(value), style="dep.path")
    elif key == "name":
        v = Text(str(value), style="dep.name")
    else:
        v = Text(str(value))
    console.print(Text.assemble(k, v))


def _render_meta(console: Console, result: ServiceResult) -> None:
    """Print the meta block, including the telemetry span tree."""
    if not result.meta:
        return
    console.print()
    console.print(Text("  meta:", style="dim"))
    for k, v in result.meta.items():
        if k == "telemetry":
            _render_telemetry_tree(console, v, indent=4)
        else:
            console.print(f"    {k}: {v}")


def _render_telemetry_tree(console: Console, span_data: dict[str, Any], indent: int = 4) -> None:
    """Render a hierarchical span tree with color-coded timing."""
    prefix = " " * indent
    duration = span_data.get("duration_ms", 0.0)
    if duration > 1000:
        style = "bold red"
    elif duration > 100:
        style = "yellow"
    else:
        style = "dim"

    line = f"{prefix}[{style}]{duration:>8.2f}ms[/{style}]  {span_data.get('name', '?')}"
    annotations = span_data.get("annotations") or {}
    if annotations:
        line += "  (" + ", ".join(f"{k}={v}" for k, v in annotations.items()) + ")"
    console.print(line)

    for child in span_data.get("children", []):
        _render_telemetry_tree(console, child, indent=indent + 4)


def _package_table(rows: list[dict[str, Any]], *, verbose: bool = False) -> Table:
    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("Package", style="dep.name", no_wrap=True)
    table.add_column("Tier")
    table.add_column("Status")
    table.add_column("Version")
    table.add_column("Files", justify="right")
    table.add_column("Exports", justify="right")
    if verbose:
        table.add_column("Path", style="dep.path")

    for row in rows:
        tier = str(row.get("tier", ""))
        status = str(row.get("status", ""))
        cells: list[str | Text] = [
            str(row.get("name", "")),
            Text(tier, style=style_for_tier(tier)),
            Text(status, style=style_for_status(status)),
            str(row.get("version") or ""),
            str(row.get("files", 0)),
            str(row.get("exports", 0)),
        ]
        if verbose:
            cells.append(str(row.get("path") or ""))
        table.add_row(*cells)
    return table


def _render_problems(console: Console, rows: list[dict[str, Any]]) -> None:
    """Degraded and failed packages, with where they were expected and a hint."""
    for row in rows:
        status = row.get("status")
        if status == "resolved":
            continue
        label = "degraded" if status == "degraded" else "failed"
        console.print(
            Text(f"  {label}", style=style_for_status(str(status))),
            Text(str(row["name"]), style="dep.name"),
        )
        for err in row.get("errors", []):
            console.print(f"    {err}")
        if row.get("expected_path"):
            _field(console, "  expected at", row["expected_path"])
        if row.get("hint"):
            console.print(Text(f"    hint: {row['hint']}", style="dep.hint"))


def _render_messages(console: Console, key: str, messages: list[str], style: str) -> None:
    if not messages:
        return
    console.print()
    console.print(Text(f"  {key} ({len(messages)}):", style=style))
    for msg in messages:
        console.print(f"    - {msg}")


# ── Error renderer ────────────────────────────────────────────────────


def _render_error(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    err = result.error
    msg = err.message if err else "Unknown error"
    console.print(
        Text("ERROR", style="dep.error"),
        Text(f"  {result.op}", style="dep.op"),
        Text(f": {msg}"),
    )
    if err and err.detail:
        if err.detail.get("expected_path"):
            _field(console, "expected at", err.detail["expected_path"])
        if err.detail.get("hint"):
            console.print(Text(f"  hint: {err.detail['hint']}", style="dep.hint"))
        for line in err.detail.get("errors", []):
            console.print(f"  - {line}")
        if err.detail.get("available"):
            _field(console, "available", ", ".join(err.detail["available"]))
    rows = result.data.get("packages") if result.data else None
    if rows:
        console.print()
        console.print(_package_table(rows, verbose=verbose))
        _render_problems(console, rows)
    if verbose and err and err.detail:
        console.print(Text("  detail:", style="dim"))
        for k, v in err.detail.items():
            console.print(f"    {k}: {v}")


# ── Operation renderers ───────────────────────────────────────────────


def _render_resolve(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render resolve/install reports: package table, problems, summary."""
    d = result.data
    rows = d.get("packages", [])
    _status_line(console, result)
    if rows:
        console.print(_package_table(rows, verbose=verbose))
    _render_problems(console, rows)

    counts = d.get("counts", {})
    console.print(
        f"\n{len(rows)} packages: {counts.get('resolved', 0)} resolved, "
        f"{counts.get('degraded', 0)} degraded, {counts.get('failed', 0)} failed; "
        f"{d.get('files', 0)} files in {d.get('elapsed_ms', 0)}ms"
    )
    if d.get("map_path"):
        _field(console, "map_path", d["map_path"])

    mat = d.get("materialize")
    if mat:
        console.print()
        _field(console, "output_root", mat["output_root"])
        _field(console, "copied", f"{len(mat['succeeded'])} packages, {mat['files']} files, {mat['bytes']} bytes")
        if mat.get("skipped_duplicates"):
            _field(console, "deduplicated", ", ".join(mat["skipped_duplicates"]))
        for failure in mat.get("failed", []):
            console.print(f"  [dep.error]failed[/dep.error] {failure['name']}: {failure['error']}")

    _render_messages(console, "errors", d.get("errors", []), "dep.error")
    if verbose:
        _render_meta(console, result)


def _render_exports(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    d = result.data
    _status_line(console, result)
    _field(console, "name", d.get("name", ""))
    _field(console, "main", d.get("main", ""))
    if "symbol" in d:
        _field(console, d["symbol"], d.get("file", ""))
    else:
        table = Table(show_header=True, pad_edge=False, expand=False)
        table.add_column("Symbol", style="dep.name")
        table.add_column("File", style="dep.path")
        for symbol, target in sorted(d.get("exports", {}).items()):
            table.add_row(symbol, str(target))
        console.print(table)
    if verbose:
        _render_meta(console, result)


def _render_list(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    items = result.data.get("items", [])
    table = Table(show_header=True, pad_edge=False, expand=False)
    table.add_column("Package", style="dep.name", no_wrap=True)
    table.add_column("Version")
    table.add_column("Tier")
    table.add_column("Description")
    if verbose:
        table.add_column("Path", style="dep.path")
    for item in items:
        tier = str(item.get("tier", ""))
        cells: list[str | Text] = [
            str(item.get("name", "")),
            str(item.get("version", "")),
            Text(tier, style=style_for_tier(tier)),
            str(item.get("description", "")),
        ]
        if verbose:
            cells.append(str(item.get("path", "")))
        table.add_row(*cells)
    console.print(table)
    console.print(f"\n{result.data.get('count', len(items))} packages")


def _render_why(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    d = result.data
    _status_line(console, result)
    _field(console, "name", d.get("name", ""))
    if d.get("is_root"):
        console.print("  imported directly by the application")
    _field(console, "direct dependents", ", ".join(d.get("direct", [])) or "(none)")
    _field(console, "all dependents", ", ".join(d.get("transitive", [])) or "(none)")
    for chain in d.get("chains", []):
        console.print(f"    {' -> '.join(chain)}")
    if verbose:
        _render_meta(console, result)


def _render_generic(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Fallback renderer: status line + all data as key-value pairs."""
    _status_line(console, result)
    for key, value in result.data.items():
        if isinstance(value, (dict, list)):
            _field(console, key, json.dumps(value, separators=(",", ":")))
        else:
            _field(console, key, value)
    if verbose:
        _render_meta(console, result)


# ── Dispatch table ────────────────────────────────────────────────────

_OP_RENDERERS: dict[str, Any] = {
    "resolve": _render_resolve,
    "install": _render_resolve,
    "exports": _render_exports,
    "list": _render_list,
    "why": _render_why,
}

"""Operation-specific Rich renderers for ServiceResult.

Each renderer writes to a Rich Console (backed by StringIO).  The caller
extracts the rendered text via ``get_output(console)``.

Renderers are dispatched by ``result.op`` in :func:`render_result`.
Unknown ops fall through to a generic key-value renderer.
"""

from __future__ import annotations

import json as _json
from typing import TYPE_CHECKING, Any

from rich.table import Table
from rich.text import Text

from rentalctl.output.console import create_console, get_output, style_for_status

if TYPE_CHECKING:
    from rich.console import Console

    from rentalctl.services.result import ServiceResult


# ── Public API ────────────────────────────────────────────────────────


def render_result(result: ServiceResult, *, verbose: bool = False) -> str:
    """Render a ServiceResult to a styled string via Rich.

    Returns plain text (no ANSI) when Rich detects no terminal,
    which is the case inside Click's CliRunner and piped output.
    """
    console = create_console()

    if result.ok:
        renderer = _OP_RENDERERS.get(result.op, _render_generic)
        renderer(result, console, verbose=verbose)
    else:
        _render_error(result, console, verbose=verbose)

    return get_output(console).rstrip("\n")


def render_quiet(result: ServiceResult) -> str:
    """Render minimal output for ``--quiet`` mode."""
    if not result.ok:
        msg = result.error.message if result.error else "Unknown error"
        return f"ERROR: {result.op} — {msg}"

    items = result.data.get("items")
    if items and isinstance(items, list):
        return "\n".join(_extract_id(item) for item in items if _extract_id(item))

    for key in _ENTITY_KEYS:
        entity = result.data.get(key)
        if isinstance(entity, dict) and "id" in entity:
            return str(entity["id"])
    return f"OK: {result.op}"


# ── Helpers ───────────────────────────────────────────────────────────

# Keys under which single-entity results carry their snapshot.
_ENTITY_KEYS = ("rental", "reservation", "equipment", "member", "assessment")


def _extract_id(item: Any) -> str:
    """Extract an ID from a list item (entities or sweep rows)."""
    if isinstance(item, dict):
        for key in ("id", "rental_id", "reservation_id", "equipment_id"):
            val = item.get(key)
            if val is not None:
                return str(val)
    return ""


def _status_line(console: Console, result: ServiceResult) -> None:
    """Print the OK status line."""
    label = Text("OK", style="rent.ok")
    op = Text(f"  {result.op}", style="rent.op")
    console.print(label, op, end="")
    console.print()


def _field(console: Console, key: str, value: Any) -> None:
    """Print a single indented key-value field."""
    k = Text(f"  {key}: ", style="rent.key")
    if key == "id" or key.endswith("_id"):
        v = Text(str(value), style="rent.id")
    elif key == "name":
        v = Text(str(value), style="rent.name")
    elif key == "status":
        v = Text(str(value), style=style_for_status(str(value)))
    elif key in _MONEY_KEYS:
        v = Text(str(value), style="rent.money")
    else:
        v = Text(str(value))
    console.print(k, v, end="")
    console.print()


_MONEY_KEYS = frozenset(
    {
        "daily_rate",
        "base_cost",
        "total_cost",
        "late_fee",
        "damage_fee",
        "amount",
        "refunded",
        "additional_cost",
        "estimated_cost",
        "discount",
        "total_fees",
        "previous_rate",
    }
)


def _render_meta(console: Console, result: ServiceResult) -> None:
    """Print meta block including telemetry span tree (verbose only)."""
    if not result.meta:
        return

    console.print()
    console.print(Text("  meta:", style="dim"))

    for k, v in result.meta.items():
        if k == "telemetry":
            _render_telemetry_tree(console, v, indent=4)
        else:
            console.print(f"    {k}: {v}")


def _render_telemetry_tree(
    console: Console,
    span_data: dict[str, Any],
    indent: int = 4,
) -> None:
    """Render a hierarchical span tree with color-coded timing."""
    prefix = " " * indent
    name = span_data.get("name", "?")
    duration = span_data.get("duration_ms", 0.0)

    if duration > 1000:
        style = "bold red"
    elif duration > 100:
        style = "yellow"
    else:
        style = "dim"

    line = f"{prefix}[{style}]{duration:>8.2f}ms[/{style}]  {name}"
    annotations = span_data.get("annotations") or {}
    if annotations:
        line += "  (" + ", ".join(f"{k}={v}" for k, v in annotations.items()) + ")"
    console.print(line)

    for child in span_data.get("children", []):
        _render_telemetry_tree(console, child, indent=indent + 4)


def _entity_fields(console: Console, entity: dict[str, Any]) -> None:
    """Print an entity snapshot; the booking period is flattened."""
    for key, value in entity.items():
        if value is None or value == "":
            continue
        if key == "period" and isinstance(value, dict):
            _field(console, "start", value.get("start"))
            _field(console, "end", value.get("end"))
            _field(console, "days", value.get("days"))
        else:
            _field(console, key, value)


def _payment_line(console: Console, key: str, payment: dict[str, Any] | None) -> None:
    if not payment:
        return
    k = Text(f"  {key}: ", style="rent.key")
    v = Text.assemble(
        (str(payment.get("transaction_id", "")), "rent.id"),
        " ",
        (str(payment.get("amount", "")), "rent.money"),
        f" {payment.get('status', '')}",
    )
    console.print(k, v, end="")
    console.print()


def _status_cell(status: Any) -> Text:
    return Text(str(status), style=style_for_status(str(status)))


# ── Error renderer ────────────────────────────────────────────────────


def _render_error(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    err = result.error
    msg = err.message if err else "Unknown error"
    label = Text("ERROR", style="rent.error")
    op = Text(f"  {result.op}", style="rent.op")
    code = Text(f" [{err.code}]", style="dim") if err else Text("")
    sep = Text(" — ")
    console.print(label, op, code, sep, msg)

    if verbose and err and err.detail:
        console.print(Text("  detail:", style="dim"))
        for k, v in err.detail.items():
            console.print(f"    {k}: {v}")


# ── Single-entity renderers ───────────────────────────────────────────


def _render_entity(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render results that carry one entity plus a few scalar extras."""
    _status_line(console, result)
    d = result.data
    for key in _ENTITY_KEYS:
        if isinstance(d.get(key), dict):
            _entity_fields(console, d[key])
            break
    for key, value in d.items():
        if key in _ENTITY_KEYS:
            continue
        if key in ("payment", "refund"):
            _payment_line(console, key, value)
        elif isinstance(value, list):
            if value:
                _field(console, key, ", ".join(str(v) for v in value))
        elif value is not None:
            _field(console, key, value)
    if verbose:
        _render_meta(console, result)


def _render_fulfillment(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    d = result.data
    _field(console, "reservation_id", d["reservation"]["id"])
    _field(console, "status", d["reservation"]["status"])
    console.print()
    _entity_fields(console, d["rental"])
    _payment_line(console, "payment", d.get("payment"))
    if verbose:
        _render_meta(console, result)


def _render_availability(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    d = result.data
    _status_line(console, result)
    _field(console, "equipment_id", d["equipment_id"])
    _field(console, "window", f"{d['start']} → {d['end']} ({d['days']} days)")
    if d["available"]:
        verdict = Text("yes", style="rent.ok")
    else:
        verdict = Text("no", style="rent.error")
    console.print(Text("  available: ", style="rent.key"), verdict)
    if d.get("equipment_problem"):
        _field(console, "equipment", d["equipment_problem"])
    for key in ("reservation_conflicts", "rental_conflicts"):
        if d.get(key):
            _field(console, key, ", ".join(d[key]))
    _field(console, "estimated_cost", d["estimated_cost"])


# ── Table renderers ───────────────────────────────────────────────────


def _table(*columns: str) -> Table:
    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    for col in columns:
        if col == "ID":
            table.add_column(col, style="rent.id", no_wrap=True)
        else:
            table.add_column(col)
    return table


def _footer(console: Console, result: ServiceResult, noun: str) -> None:
    count = result.data.get("count", len(result.data.get("items", [])))
    console.print(f"\n{count} {noun}")


def _render_equipment_table(
    result: ServiceResult, console: Console, *, verbose: bool = False
) -> None:
    table = _table("ID", "Name", "Category", "Rate", "Condition", "Available")
    if verbose:
        table.add_column("Rental", style="dim")
    for e in result.data.get("items", []):
        row: list[Any] = [
            e["id"],
            Text(e["name"], style="rent.name"),
            e["category"],
            Text(e["daily_rate"], style="rent.money"),
            e["condition"],
            "yes" if e["is_available"] else "no",
        ]
        if verbose:
            row.append(e.get("current_rental_id") or "")
        table.add_row(*row)
    console.print(table)
    _footer(console, result, "items")


def _render_member_table(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    table = _table("ID", "Name", "Email", "Tier", "Active", "Rentals")
    for m in result.data.get("items", []):
        table.add_row(
            m["id"],
            Text(m["name"], style="rent.name"),
            m["email"],
            m["tier"],
            "yes" if m["is_active"] else "no",
            f"{m['active_rental_count']}/{m['max_concurrent_rentals']}",
        )
    console.print(table)
    _footer(console, result, "members")


def _render_rental_table(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    table = _table("ID", "Equipment", "Member", "Start", "End", "Status", "Total")
    for r in result.data.get("items", []):
        table.add_row(
            r["id"],
            r["equipment_id"],
            r["member_id"],
            r["period"]["start"],
            r["period"]["end"],
            _status_cell(r["status"]),
            Text(r["total_cost"], style="rent.money"),
        )
    console.print(table)
    _footer(console, result, "rentals")


def _render_reservation_table(
    result: ServiceResult, console: Console, *, verbose: bool = False
) -> None:
    table = _table("ID", "Equipment", "Member", "Start", "End", "Status")
    if verbose:
        table.add_column("Hold", style="dim")
    for r in result.data.get("items", []):
        row: list[Any] = [
            r["id"],
            r["equipment_id"],
            r["member_id"],
            r["period"]["start"],
            r["period"]["end"],
            _status_cell(r["status"]),
        ]
        if verbose:
            row.append(r.get("authorization_id") or "")
        table.add_row(*row)
    console.print(table)
    _footer(console, result, "reservations")


def _render_assessment_table(
    result: ServiceResult, console: Console, *, verbose: bool = False
) -> None:
    table = _table("ID", "Rental", "Before", "After", "Fee", "Assessed by")
    for a in result.data.get("items", []):
        table.add_row(
            a["id"],
            a["rental_id"],
            a["condition_before"],
            a["condition_after"],
            Text(a["damage_fee"], style="rent.money"),
            a["assessed_by"],
        )
    console.print(table)
    _footer(console, result, "assessments")
    if "total_fees" in result.data:
        _field(console, "total_fees", result.data["total_fees"])


def _render_rows(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render sweep and schedule results: one column per row key."""
    _status_line(console, result)
    items: list[dict[str, Any]] = result.data.get("items", [])
    if items:
        table = _table(*[k.replace("_", " ").title() for k in items[0]])
        for row in items:
            table.add_row(*[str(v) if v is not None else "" for v in row.values()])
        console.print(table)
    for key, value in result.data.items():
        if key != "items":
            _field(console, key, value)
    if verbose:
        _render_meta(console, result)


# ── Generic fallback ──────────────────────────────────────────────────


def _render_generic(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Fallback renderer: status line + all data as key-value pairs."""
    _status_line(console, result)
    for key, value in result.data.items():
        if isinstance(value, (dict, list)):
            _field(console, key, _json.dumps(value, separators=(",", ":")))
        else:
            _field(console, key, value)
    if verbose:
        _render_meta(console, result)


# ── Dispatch table ────────────────────────────────────────────────────

_OP_RENDERERS: dict[str, Any] = {
    # Equipment
    "register_equipment": _render_entity,
    "get_equipment": _render_entity,
    "update_condition": _render_entity,
    "record_maintenance": _render_entity,
    "update_daily_rate": _render_entity,
    "list_equipment": _render_equipment_table,
    "maintenance_schedule": _render_rows,
    # Members
    "register_member": _render_entity,
    "get_member": _render_entity,
    "change_tier": _render_entity,
    "deactivate_member": _render_entity,
    "reactivate_member": _render_entity,
    "update_contact": _render_entity,
    "list_members": _render_member_table,
    # Rentals
    "create_rental": _render_entity,
    "return_rental": _render_entity,
    "extend_rental": _render_entity,
    "cancel_rental": _render_entity,
    "get_rental": _render_entity,
    "list_rentals": _render_rental_table,
    "process_overdue_rentals": _render_rows,
    "send_due_reminders": _render_rows,
    # Reservations
    "create_reservation": _render_entity,
    "confirm_reservation": _render_entity,
    "cancel_reservation": _render_entity,
    "get_reservation": _render_entity,
    "fulfill_reservation": _render_fulfillment,
    "check_availability": _render_availability,
    "list_reservations": _render_reservation_table,
    "list_ready_to_fulfill": _render_reservation_table,
    "process_expired_reservations": _render_rows,
    "send_reservation_reminders": _render_rows,
    # Damage
    "assess_damage": _render_entity,
    "get_assessment": _render_entity,
    "update_assessment_notes": _render_entity,
    "list_assessments": _render_assessment_table,
    # Events
    "event_status": _render_generic,
    "drain_events": _render_rows,
}

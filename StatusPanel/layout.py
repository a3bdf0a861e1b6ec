"""Layout and rendering logic for the status panel - pure functions for testability."""
from datetime import datetime
from typing import List, Optional
from zoneinfo import ZoneInfo

from view_state import ViewState

SERVER_TIMEZONE = ZoneInfo("Europe/London")


class DrawOp:
    """Represents one element of the panel (for testing/layout calculation)."""
    def __init__(self, op_type: str, **kwargs):
        self.op_type = op_type
        self.kwargs = kwargs

    def __repr__(self) -> str:
        return f"DrawOp({self.op_type!r}, {self.kwargs!r})"


def format_server_time(timestamp: Optional[datetime]) -> str:
    """
    Format a server timestamp the way the panel shows it.

    Rendered in UK local time as ``dd/mm/yyyy, HH:MM``. Naive timestamps
    are taken to be UTC.

    Args:
        timestamp: Parsed server timestamp, or None

    Returns:
        Display string ("Invalid date" when missing)
    """
    if timestamp is None:
        return "Invalid date"
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=ZoneInfo("UTC"))
    return timestamp.astimezone(SERVER_TIMEZONE).strftime("%d/%m/%Y, %H:%M")


def format_last_updated(last_updated: Optional[datetime]) -> str:
    if last_updated is None:
        return ""
    return last_updated.astimezone().strftime("%H:%M:%S")


def calculate_layout(state: ViewState) -> List[DrawOp]:
    """
    Calculate the panel elements for a view state.

    This is a pure function that returns drawing operations, making it
    easy to test without a terminal. Each data source contributes its own
    section, so a failure in one never hides the other.

    Args:
        state: Current view state

    Returns:
        List of DrawOp objects representing what to show
    """
    ops = [DrawOp("title", text="Status Panel")]

    # Status bar
    ops.append(DrawOp(
        "button",
        action="refresh",
        label="Refreshing..." if state.loading else "Refresh data",
        enabled=not state.loading,
    ))
    ops.append(DrawOp("text", role="last_updated",
                      text=f"Last updated: {format_last_updated(state.last_updated)}"))

    result = state.result
    has_payload = result is not None and result.payload is not None

    if state.loading and not has_payload and state.fetch_error is None:
        ops.append(DrawOp("loading", text="Loading data..."))

    if state.fetch_error is not None:
        ops.append(DrawOp("error", text=f"Error: {state.fetch_error.message}",
                          source=state.fetch_error.source))
        ops.append(DrawOp("button", action="retry", label="Retry", enabled=not state.loading))

    if has_payload:
        ops.append(DrawOp("message", text=result.message or "", stale=result.is_stale))
        if result.is_stale:
            ops.append(DrawOp("annotation", text="(cached data)"))
        ops.append(DrawOp("server_time", heading="Server time (UK)",
                          text=format_server_time(result.timestamp)))
        if result.environment:
            ops.append(DrawOp("text", role="environment", text=f"Environment: {result.environment}"))

    if state.coords is not None:
        ops.extend(_location_panel(state))

    return ops


def _location_panel(state: ViewState) -> List[DrawOp]:
    ops = [DrawOp("heading", text="Your location")]
    info = state.location
    if info is not None and info.city:
        ops.append(DrawOp("text", role="city", text=f"City: {info.city}"))
    if info is not None and info.country:
        ops.append(DrawOp("text", role="country", text=f"Country: {info.country}"))
    ops.append(DrawOp("text", role="coordinates", text=f"Coordinates: {state.coords.format()}"))

    if state.map_url is not None:
        if state.map_loaded:
            ops.append(DrawOp("map", url=state.map_url, alt="Location map"))
        elif state.map_error is not None:
            ops.append(DrawOp("map_placeholder", url=state.map_url, text="Map unavailable"))
        else:
            ops.append(DrawOp("map_placeholder", url=state.map_url, text="Loading map..."))
    return ops


def render_panel(ops: List[DrawOp]) -> str:
    """
    Render panel elements as plain terminal text.

    Args:
        ops: Output of calculate_layout()

    Returns:
        Multi-line string
    """
    lines = []
    for op in ops:
        kw = op.kwargs
        if op.op_type == "title":
            lines.append(kw["text"])
            lines.append("=" * len(kw["text"]))
        elif op.op_type == "button":
            label = f"[{kw['label']}]"
            lines.append(label if kw["enabled"] else f"{label} (disabled)")
        elif op.op_type == "heading":
            lines.append("")
            lines.append(kw["text"])
        elif op.op_type == "message":
            lines.append("")
            lines.append(kw["text"])
        elif op.op_type == "server_time":
            lines.append(f"{kw['heading']}: {kw['text']}")
        elif op.op_type == "map":
            lines.append(f"Map: {kw['url']}")
        elif op.op_type == "map_placeholder":
            lines.append(f"Map: {kw['text']}")
        else:
            lines.append(kw.get("text", ""))
    return "\n".join(lines)

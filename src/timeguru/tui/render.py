# SPDX-License-Identifier: MIT

import textwrap
from typing import Optional

from rich import box
from rich.console import Group
from rich.layout import Layout
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from timeguru.model.project import Project
from timeguru.service.duration import effective_duration, format_duration
from timeguru.service.grouping import billable_state, display_duration
from timeguru.time import (
    date_to_str,
    datetime_to_local_date_str,
)
from timeguru.tui.controller import Controller
from timeguru.tui.state import Overlay, ViewMode

HEADER_HEIGHT = 3
FOOTER_HEIGHT = 3
OVERLAY_WIDTH = 44
ERROR_MAX_LINES = 8
NO_DESCRIPTION = "(no description)"

_VIEW_LABELS = {
    ViewMode.FLAT: "entries",
    ViewMode.GROUPED: "grouped",
    ViewMode.GROUPED_BY_DAY: "grouped by day",
}

_BROWSE_HINTS = (
    "j/k move  g group  d by day  s sort  r rounding  f filter  "
    "p project  e edit  t start/stop  R refresh  q quit"
)


def wrap_error(message: str, width: int, max_lines: int = ERROR_MAX_LINES) -> list[str]:
    """Wrap error text to ``width`` columns, truncating past ``max_lines``."""
    width = max(width, 10)
    lines: list[str] = []
    for paragraph in message.splitlines() or [""]:
        lines.extend(textwrap.wrap(paragraph, width) or [""])
    if len(lines) > max_lines:
        lines = lines[:max_lines]
        lines[-1] = lines[-1][: width - 1] + "…"
    return lines


def visible_window(selected: int, count: int, height: int) -> tuple[int, int]:
    """Half-open slice of rows to show so that ``selected`` stays on screen."""
    height = max(height, 1)
    if count <= height:
        return 0, count
    first = min(max(selected - height // 2, 0), count - height)
    return first, first + height


def _color_text(text: str, color: Optional[str]) -> Text:
    if color:
        return Text(text, style=color)
    return Text(text)


def _project_text(controller: Controller, project_id: Optional[int]) -> Text:
    for project in controller.projects:
        if project["remote_id"] == project_id:
            return _color_text(project["name"], project["color"])
    return Text("")


def render_header(controller: Controller) -> Panel:
    toggles = controller.toggles
    parts = [
        f"[dark_orange]timeguru[/dark_orange]  "
        f"{datetime_to_local_date_str(controller.start)} → "
        f"{datetime_to_local_date_str(controller.end)}",
        f"view: [plum1]{_VIEW_LABELS[toggles.view_mode]}[/plum1]",
        f"sort: [plum1]{toggles.sort_mode}[/plum1]",
    ]
    if toggles.grouped:
        rounding = (
            f"{controller.round_minutes}m"
            if toggles.rounding and controller.round_minutes
            else "off"
        )
        parts.append(f"rounding: [plum1]{rounding}[/plum1]")
    if controller.filter_active:
        parts.append("[yellow]filtered[/yellow]")
    if controller.offline:
        parts.append("[red]offline[/red]")
    running = controller.running_entry()
    if running is not None:
        parts.append(
            f"[green]● {running['description'] or 'running'} "
            f"{format_duration(effective_duration(running, controller.now()))}[/green]"
        )
    return Panel(Text.from_markup("  ".join(parts)), box=box.ROUNDED)


def render_list(controller: Controller, height: int) -> Table:
    rows_height = max(height - 4, 1)
    first, last = visible_window(controller.selected, controller.row_count, rows_height)
    now = controller.now()

    table = Table(box=box.SIMPLE, expand=True, pad_edge=False)
    if controller.toggles.grouped:
        if controller.toggles.view_mode == ViewMode.GROUPED_BY_DAY:
            table.add_column("date", no_wrap=True)
        table.add_column("description", ratio=1, no_wrap=True, overflow="ellipsis")
        table.add_column("project", no_wrap=True, overflow="ellipsis")
        table.add_column("n", justify="right")
        table.add_column("duration", justify="right", no_wrap=True)
        table.add_column("billable", no_wrap=True)
        for index in range(first, last):
            group = controller.groups[index]
            row: list[Text | str] = [
                group["description"] or NO_DESCRIPTION,
                _project_text(controller, group["project_id"]),
                str(len(group["entries"])),
                format_duration(
                    display_duration(
                        group, controller.round_minutes, controller.toggles.rounding
                    )
                ),
                billable_state(group),
            ]
            if controller.toggles.view_mode == ViewMode.GROUPED_BY_DAY:
                row.insert(0, date_to_str(group["date"]) if group["date"] else "")
            table.add_row(*row, style="reverse" if index == controller.selected else None)
    else:
        table.add_column("start", no_wrap=True)
        table.add_column("description", ratio=1, no_wrap=True, overflow="ellipsis")
        table.add_column("project", no_wrap=True, overflow="ellipsis")
        table.add_column("duration", justify="right", no_wrap=True)
        table.add_column("tags", no_wrap=True, overflow="ellipsis")
        table.add_column("billable", no_wrap=True)
        for index in range(first, last):
            entry = controller.entries[index]
            duration = format_duration(effective_duration(entry, now))
            table.add_row(
                entry["start"].in_tz(controller.tz).format("YYYY-MM-DD HH:mm"),
                entry["description"] or NO_DESCRIPTION,
                _project_text(controller, entry["project_id"]),
                Text(duration, style="green") if entry["duration"] is None else duration,
                ", ".join(entry["tags"]),
                "yes" if entry["billable"] else "",
                style="reverse" if index == controller.selected else None,
            )

    if controller.row_count == 0:
        table.add_row("No time entries in this range")
    return table


def render_project_selector(controller: Controller, height: int) -> Panel:
    projects: list[Project] = controller.filtered_projects()
    lines: list[Text] = []
    if controller.project_query is not None:
        lines.append(Text(f"/{controller.project_query}▏", style="bold"))
    rows_height = max(height - 4 - len(lines), 1)
    first, last = visible_window(controller.project_selected, len(projects), rows_height)
    for index in range(first, last):
        project = projects[index]
        line = _color_text(project["name"], project["color"])
        if index == controller.project_selected:
            line.stylize("reverse")
        lines.append(line)
    if not projects:
        lines.append(Text("No matching projects", style="dim"))

    count = len(controller.selected_entries())
    title = "Assign project" if count == 1 else f"Assign project to {count} entries"
    return Panel(Group(*lines), title=title, subtitle="/ search  enter assign  esc close")


def render_text_edit(controller: Controller) -> Panel:
    return Panel(
        Text(controller.edit_buffer + "▏"),
        title="Edit description",
        subtitle="enter save  esc cancel",
    )


def render_filter_panel(controller: Controller) -> Panel:
    billable = controller.entry_filter["billable"]
    lines = [
        Text(f"billable only: {'on' if billable else 'off'}"),
        Text(f"showing {len(controller.entries)} of {len(controller.all_entries)}"),
        Text(""),
        Text("b toggle billable  c clear  esc close", style="dim"),
    ]
    return Panel(Group(*lines), title="Filters")


def render_error_popup(controller: Controller, width: int) -> Panel:
    lines = wrap_error(controller.error_message or "", width - 4)
    return Panel(
        Text("\n".join(lines), style="red"),
        title="Error",
        subtitle="enter/esc dismiss",
        border_style="red",
    )


def render_overlay(controller: Controller, height: int, width: int) -> Optional[Panel]:
    match controller.overlay:
        case Overlay.PROJECT_SELECTOR:
            return render_project_selector(controller, height)
        case Overlay.TEXT_EDIT:
            return render_text_edit(controller)
        case Overlay.FILTER_PANEL:
            return render_filter_panel(controller)
        case Overlay.ERROR_POPUP:
            return render_error_popup(controller, width)
    return None


def render_footer(controller: Controller) -> Panel:
    if controller.status_message:
        return Panel(Text(controller.status_message), box=box.ROUNDED)
    return Panel(Text(_BROWSE_HINTS, style="dim"), box=box.ROUNDED)


def render(controller: Controller, height: int) -> Layout:
    """Build the whole screen for the controller's current state."""
    body_height = max(height - HEADER_HEIGHT - FOOTER_HEIGHT, 1)

    layout = Layout()
    layout.split_column(
        Layout(render_header(controller), name="header", size=HEADER_HEIGHT),
        Layout(name="body"),
        Layout(render_footer(controller), name="footer", size=FOOTER_HEIGHT),
    )

    overlay = render_overlay(controller, body_height, OVERLAY_WIDTH)
    if overlay is None:
        layout["body"].update(render_list(controller, body_height))
    else:
        layout["body"].split_row(
            Layout(render_list(controller, body_height), name="list"),
            Layout(overlay, name="overlay", size=OVERLAY_WIDTH),
        )
    return layout

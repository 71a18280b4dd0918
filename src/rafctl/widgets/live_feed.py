"""Live feed widget showing one row per new transcript event."""
from rich.text import Text
from textual.widgets import RichLog

from rafctl.monitor import DisplayLine

STATUS_MARKS = {
    "pending": ("◐", "yellow"),
    "ok": ("✓", "green"),
    "error": ("✗", "red"),
}

CATEGORY_STYLES = {
    "tool": "yellow",
    "agent": "magenta",
    "todo": "blue",
    "result": "",
    "message": "cyan",
    "system": "dim",
}

TARGET_WIDTH = 48


def shorten_target(target: str, width: int = TARGET_WIDTH) -> str:
    """File paths collapse to their file name; anything else is cut to width."""
    if "/" in target and " " not in target:
        target = target.rstrip("/").rsplit("/", 1)[-1] or target
    return target if len(target) <= width else target[:width - 3] + "..."


def format_feed_line(line: DisplayLine) -> str:
    """Plain-text rendering of a feed row (for testing and --plain output)."""
    text = f"[{line.time_str}] {line.icon} {line.label}"
    if line.target:
        text += f" → {shorten_target(line.target)}"
    if line.status and line.category != "result":
        text += f"  {STATUS_MARKS[line.status][0]}"
    return text


def render_feed_line(line: DisplayLine) -> Text:
    text = Text()
    text.append(f"[{line.time_str}] ", style="dim")
    text.append(f"{line.icon} ")
    style = CATEGORY_STYLES.get(line.category, "")
    if line.category == "result":
        style = "red" if line.status == "error" else "green"
    text.append(line.label, style=style)
    if line.target:
        text.append(f" → {shorten_target(line.target)}", style="dim")
    if line.status and line.category != "result":
        mark, mark_style = STATUS_MARKS[line.status]
        text.append(f"  {mark}", style=mark_style)
    return text


class LiveFeedWidget(RichLog):
    """Scrollable chronological feed of tool calls and messages."""

    def add_lines(self, lines: list[DisplayLine]):
        for line in lines:
            self.write(render_feed_line(line))

    def add_notice(self, message: str):
        self.write(Text(message, style="dim italic"))

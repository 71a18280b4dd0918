"""Stats panel widget showing live session tallies and recent agents."""
from __future__ import annotations
from datetime import datetime
from textual.widgets import Static

from rafctl.monitor import LiveMonitor
from rafctl.report import format_duration, format_ms, shorten_id
from rafctl.statusline import shorten_model

RULE = "  " + "─" * 38


def format_elapsed(started_at: datetime | None, ended_at: datetime | None) -> str:
    if started_at is None or ended_at is None:
        return "-"
    return format_duration(ended_at - started_at)


class SessionStatsWidget(Static):
    """Displays session tallies: messages, tools, errors, agents."""

    def format_summary(self, monitor: LiveMonitor) -> str:
        session = shorten_id(monitor.session_id) if monitor.session_id else "-"
        model = shorten_model(monitor.model) if monitor.model else "-"
        return (
            f"  Session:   {session}\n"
            f"  Model:     {model}\n"
            f"  Elapsed:   {format_elapsed(monitor.started_at, monitor.ended_at)}\n"
            f"  Messages:  {monitor.message_count:,}"
        )

    def format_counts(self, monitor: LiveMonitor) -> str:
        return (
            f"  Tools: {monitor.tool_count}  |  Agents: {monitor.agent_count}\n"
            f"  Errors: {monitor.error_count}  |  Running: {monitor.pending_count}"
        )

    def format_tools(self, monitor: LiveMonitor, limit: int = 8) -> list[str]:
        """Tool names among the retained recent calls, most used first."""
        counts: dict[str, int] = {}
        for call in monitor.recent_tools:
            counts[call.name] = counts.get(call.name, 0) + 1
        ordered = sorted(counts.items(), key=lambda x: (-x[1], x[0]))
        return [f"    {name:<20} {count:>4}" for name, count in ordered[:limit]]

    def format_agents(self, monitor: LiveMonitor) -> list[str]:
        lines = []
        for call in reversed(monitor.recent_agents):
            status = "◐ running" if call.pending else ("✗ failed" if call.is_error else f"✓ {format_ms(call.duration_ms)}")
            lines.append(f"    {call.subagent_type[:22]:<22} {status}")
        return lines

    def update_stats(self, monitor: LiveMonitor):
        parts = [self.format_summary(monitor), RULE, self.format_counts(monitor)]

        tools = self.format_tools(monitor)
        if tools:
            parts.append("")
            parts.append(RULE)
            parts.append(f"  Recent tools (last {len(monitor.recent_tools)}):")
            parts.extend(tools)

        agents = self.format_agents(monitor)
        if agents:
            parts.append("")
            parts.append(RULE)
            parts.append("  Agents:")
            parts.extend(agents)

        self.update("\n".join(parts))

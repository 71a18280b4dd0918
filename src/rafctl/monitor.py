"""Bounded rolling view of a session that is still being written."""
from collections import deque
from dataclasses import dataclass
from datetime import datetime

from rafctl.correlator import AgentCall, Correlator, TodoSnapshot, ToolCall, TODO_TOOL
from rafctl.transcript import TranscriptEvent, parse_line

DEFAULT_MAX_TOOLS = 50
DEFAULT_MAX_AGENTS = 10

TOOL_ICONS = {
    "Read": "📖",
    "Write": "📝",
    "Edit": "✏️",
    "Bash": "🚀",
    "Glob": "🔍",
    "Grep": "🔎",
    "Task": "🤖",
    "TodoWrite": "📋",
    "TodoRead": "📋",
}
DEFAULT_TOOL_ICON = "🔧"


def tool_icon(name: str) -> str:
    return TOOL_ICONS.get(name, DEFAULT_TOOL_ICON)


@dataclass
class DisplayLine:
    """One rendered row of the live feed."""
    timestamp: datetime | None
    icon: str
    category: str  # tool, agent, todo, result, message, system
    label: str
    target: str | None = None
    status: str = ""  # pending, ok, error, or "" for non-tool rows

    @property
    def time_str(self) -> str:
        if self.timestamp is None:
            return "??:??:??"
        return self.timestamp.astimezone().strftime("%H:%M:%S")


def _call_status(call: ToolCall) -> str:
    if call.pending:
        return "pending"
    return "error" if call.is_error else "ok"


def _category(call: ToolCall) -> str:
    if isinstance(call, AgentCall):
        return "agent"
    if call.name == TODO_TOOL:
        return "todo"
    return "tool"


class LiveMonitor:
    """Keeps the latest tool and agent calls of a live session.

    recent_tools and recent_agents are ring buffers: once full, the oldest
    call by arrival is dropped. The monitor does no I/O; callers feed it
    lines and render the DisplayLines it returns.
    """

    def __init__(self, max_tools: int = DEFAULT_MAX_TOOLS, max_agents: int = DEFAULT_MAX_AGENTS):
        self.max_tools = max_tools
        self.max_agents = max_agents
        self.reset()

    def reset(self):
        """Forget everything; the next line starts a new session."""
        self.correlator = Correlator()
        self.recent_tools: deque[ToolCall] = deque(maxlen=self.max_tools)
        self.recent_agents: deque[AgentCall] = deque(maxlen=self.max_agents)
        self.session_id: str | None = None
        self.model: str | None = None
        self.started_at: datetime | None = None
        self.ended_at: datetime | None = None
        self.message_count = 0
        self.tool_count = 0
        self.agent_count = 0
        self.error_count = 0

    @property
    def todos(self) -> TodoSnapshot | None:
        return self.correlator.todos

    @property
    def pending_count(self) -> int:
        return len(self.correlator.pending)

    def ingest_lines(self, lines: list[str]) -> list[DisplayLine]:
        display = []
        for line in lines:
            row = self.ingest_line(line)
            if row is not None:
                display.append(row)
        return display

    def ingest_line(self, line: str) -> DisplayLine | None:
        event = parse_line(line)
        if event is None:
            return None
        return self.ingest(event)

    def ingest(self, event: TranscriptEvent) -> DisplayLine:
        if self.session_id is None and event.session_id:
            self.session_id = event.session_id
        if self.model is None and event.model:
            self.model = event.model
        ts = event.timestamp
        if ts is not None:
            if self.started_at is None:
                self.started_at = ts
            if self.ended_at is None or ts > self.ended_at:
                self.ended_at = ts
        if event.is_message:
            self.message_count += 1

        updates = self.correlator.feed(event)
        started = [u.call for u in updates if u.kind == "started"]
        finished = [u.call for u in updates if u.kind == "finished"]
        for call in started:
            self.tool_count += 1
            self.recent_tools.append(call)
            if isinstance(call, AgentCall):
                self.agent_count += 1
                self.recent_agents.append(call)
        for call in finished:
            if call.is_error:
                self.error_count += 1

        return self._display(event, started, finished)

    def _display(self, event: TranscriptEvent, started: list[ToolCall], finished: list[ToolCall]) -> DisplayLine:
        ts = event.timestamp
        if started:
            call = started[0]
            label = call.name
            if len(started) > 1:
                label += f" (+{len(started) - 1} more)"
            return DisplayLine(ts, tool_icon(call.name), _category(call), label, call.target, _call_status(call))
        if finished:
            failed = [c for c in finished if c.is_error]
            call = failed[0] if failed else finished[0]
            label = f"{call.name} done" if not failed else f"{call.name} failed"
            return DisplayLine(ts, "✗" if failed else "✓", "result", label, call.target, _call_status(call))
        if event.entry_type == "user":
            return DisplayLine(ts, "💬", "message", "User message")
        if event.entry_type == "assistant":
            return DisplayLine(ts, "🧠", "message", "Assistant")
        return DisplayLine(ts, "·", "system", event.entry_type or "event")

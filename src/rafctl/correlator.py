"""Match tool invocations with their results and classify agent calls."""
import logging
from dataclasses import dataclass, field
from datetime import datetime

from rafctl.transcript import ToolResult, ToolUse, TranscriptEvent

logger = logging.getLogger(__name__)

AGENT_TOOL = "Task"
TODO_TOOL = "TodoWrite"
BASH_TARGET_LEN = 30


@dataclass
class ToolCall:
    """A single tool invocation, open until its result arrives."""
    id: str
    name: str
    target: str | None = None
    started_at: datetime | None = None
    ended_at: datetime | None = None
    duration_ms: int | None = None
    is_error: bool = False
    completed: bool = False

    @property
    def pending(self) -> bool:
        return not self.completed

    @property
    def is_agent(self) -> bool:
        return False


@dataclass
class AgentCall(ToolCall):
    """A Task invocation that runs a sub-agent."""
    subagent_type: str = "unknown"
    description: str = ""

    @property
    def is_agent(self) -> bool:
        return True


@dataclass
class TodoItem:
    content: str
    status: str = "pending"
    active_form: str = ""


@dataclass
class TodoSnapshot:
    """The todo list as written by the most recent TodoWrite call."""
    items: list[TodoItem] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.items)

    @property
    def completed(self) -> int:
        return sum(1 for item in self.items if item.status == "completed")

    @property
    def in_progress(self) -> TodoItem | None:
        return next((item for item in self.items if item.status == "in_progress"), None)

    @property
    def progress(self) -> str:
        return f"{self.completed}/{self.total}"


@dataclass
class CallUpdate:
    """Emitted by the correlator whenever a call starts or finishes."""
    kind: str  # "started" or "finished"
    call: ToolCall


def truncate(text: str, max_len: int) -> str:
    """Shorten text to at most max_len characters, marking the cut with '...'."""
    if len(text) <= max_len:
        return text
    return text[:max(max_len - 3, 0)] + "..."


def _str_field(tool_input: dict, *keys: str) -> str | None:
    for key in keys:
        value = tool_input.get(key)
        if isinstance(value, str) and value:
            return value
    return None


def extract_target(name: str, tool_input: dict) -> str | None:
    """Pick the human-readable target of a tool call.

    Bash shows its command (truncated), file tools their path, search tools
    their pattern and Task its sub-agent type. Other tools have no target.
    """
    if name == "Bash":
        command = _str_field(tool_input, "command")
        return truncate(command, BASH_TARGET_LEN) if command else None
    if name in ("Read", "Write", "Edit"):
        return _str_field(tool_input, "file_path", "path")
    if name in ("Glob", "Grep"):
        return _str_field(tool_input, "pattern")
    if name == AGENT_TOOL:
        return _str_field(tool_input, "subagent_type") or "unknown"
    return None


def parse_todos(tool_input: dict) -> TodoSnapshot:
    items = []
    todos = tool_input.get("todos")
    if isinstance(todos, list):
        for todo in todos:
            if not isinstance(todo, dict):
                continue
            items.append(TodoItem(
                content=str(todo.get("content", "")),
                status=str(todo.get("status", "pending")),
                active_form=str(todo.get("activeForm", "")),
            ))
    return TodoSnapshot(items=items)


def _duration_ms(start: datetime | None, end: datetime | None) -> int | None:
    if start is None or end is None:
        return None
    return max(0, int((end - start).total_seconds() * 1000))


class Correlator:
    """Streams ToolUse/ToolResult blocks into ToolCall and AgentCall updates.

    Only calls still waiting for a result are held here, keyed by tool use
    id. Whoever consumes the updates decides how many finished calls to keep.
    """

    def __init__(self):
        self.pending: dict[str, ToolCall] = {}
        self.todos: TodoSnapshot | None = None

    def feed(self, event: TranscriptEvent) -> list[CallUpdate]:
        updates: list[CallUpdate] = []
        for block in event.blocks:
            if isinstance(block, ToolUse):
                updates.append(CallUpdate("started", self._start(block, event.timestamp)))
            elif isinstance(block, ToolResult):
                call = self._finish(block, event.timestamp)
                if call is not None:
                    updates.append(CallUpdate("finished", call))
        return updates

    def _start(self, block: ToolUse, timestamp: datetime | None) -> ToolCall:
        target = extract_target(block.name, block.input)
        if block.name == AGENT_TOOL:
            call: ToolCall = AgentCall(
                id=block.id,
                name=block.name,
                target=target,
                started_at=timestamp,
                subagent_type=target or "unknown",
                description=_str_field(block.input, "description") or "",
            )
        else:
            call = ToolCall(id=block.id, name=block.name, target=target, started_at=timestamp)

        if block.id in self.pending:
            logger.debug("Tool use id %s reused before its result arrived", block.id)
        self.pending[block.id] = call

        if block.name == TODO_TOOL:
            self.todos = parse_todos(block.input)
        return call

    def _finish(self, block: ToolResult, timestamp: datetime | None) -> ToolCall | None:
        call = self.pending.pop(block.tool_use_id, None)
        if call is None:
            logger.debug("Dropping orphan tool result for id %s", block.tool_use_id)
            return None
        call.completed = True
        call.is_error = block.is_error
        call.ended_at = timestamp
        call.duration_ms = _duration_ms(call.started_at, timestamp)
        return call

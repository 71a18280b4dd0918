import json
from datetime import datetime, timezone

from rafctl.correlator import (
    AgentCall, Correlator, TodoSnapshot, ToolCall,
    extract_target, parse_todos, truncate,
)
from rafctl.transcript import parse_line


def _tool_use(tool_use_id: str, name: str, tool_input: dict, timestamp: str = "2026-02-07T10:00:00.000Z"):
    return parse_line(json.dumps({
        "type": "assistant",
        "timestamp": timestamp,
        "message": {"content": [{"type": "tool_use", "id": tool_use_id, "name": name, "input": tool_input}]},
    }))


def _tool_result(tool_use_id: str, timestamp: str = "2026-02-07T10:00:02.000Z", is_error: bool | None = None):
    block = {"type": "tool_result", "tool_use_id": tool_use_id, "content": "..."}
    if is_error is not None:
        block["is_error"] = is_error
    return parse_line(json.dumps({"type": "user", "timestamp": timestamp, "message": {"content": [block]}}))


def test_truncate():
    assert truncate("hello", 10) == "hello"
    assert truncate("hello world", 8) == "hello..."
    assert truncate("Привет мир", 8) == "Приве..."
    assert truncate("", 5) == ""
    assert truncate("abc", 3) == "abc"


def test_bash_target_is_truncated_to_30_chars():
    target = extract_target("Bash", {"command": "cargo build --release --all-features extra"})
    assert len(target) == 30
    assert target == "cargo build --release --all..."


def test_short_bash_command_is_kept():
    assert extract_target("Bash", {"command": "ls -la"}) == "ls -la"


def test_file_tools_use_file_path_then_path():
    assert extract_target("Read", {"file_path": "/src/main.rs"}) == "/src/main.rs"
    assert extract_target("Write", {"path": "/src/lib.rs"}) == "/src/lib.rs"
    assert extract_target("Edit", {"file_path": "/a", "path": "/b"}) == "/a"
    assert extract_target("Read", {}) is None


def test_search_tools_use_pattern():
    assert extract_target("Glob", {"pattern": "**/*.py"}) == "**/*.py"
    assert extract_target("Grep", {"pattern": "fn main"}) == "fn main"


def test_task_target_is_subagent_type():
    assert extract_target("Task", {"subagent_type": "Explore"}) == "Explore"
    assert extract_target("Task", {"description": "no type"}) == "unknown"


def test_other_tools_have_no_target():
    assert extract_target("WebFetch", {"url": "https://example.com"}) is None


def test_tool_use_then_result_yields_completed_call():
    correlator = Correlator()
    started = correlator.feed(_tool_use("a", "Read", {"file_path": "x"}, "2026-02-07T10:00:00.000Z"))
    finished = correlator.feed(_tool_result("a", "2026-02-07T10:00:02.500Z", is_error=False))

    assert [u.kind for u in started] == ["started"]
    assert [u.kind for u in finished] == ["finished"]
    call = finished[0].call
    assert call is started[0].call
    assert call.name == "Read"
    assert call.target == "x"
    assert call.duration_ms == 2500
    assert call.is_error is False
    assert call.completed
    assert call.ended_at == datetime(2026, 2, 7, 10, 0, 2, 500000, tzinfo=timezone.utc)
    assert correlator.pending == {}


def test_error_result_sets_flag():
    correlator = Correlator()
    correlator.feed(_tool_use("a", "Bash", {"command": "false"}))
    update = correlator.feed(_tool_result("a", is_error=True))[0]
    assert update.call.is_error


def test_unresolved_call_stays_pending():
    correlator = Correlator()
    call = correlator.feed(_tool_use("a", "Bash", {"command": "sleep 600"}))[0].call
    assert call.pending
    assert call.duration_ms is None
    assert "a" in correlator.pending


def test_orphan_result_is_dropped():
    correlator = Correlator()
    assert correlator.feed(_tool_result("nobody")) == []


def test_missing_timestamps_leave_duration_unknown():
    correlator = Correlator()
    correlator.feed(_tool_use("a", "Read", {"file_path": "x"}, timestamp=None))
    call = correlator.feed(_tool_result("a"))[0].call
    assert call.completed
    assert call.duration_ms is None


def test_result_before_use_clamps_duration_to_zero():
    correlator = Correlator()
    correlator.feed(_tool_use("a", "Read", {}, "2026-02-07T10:00:05.000Z"))
    call = correlator.feed(_tool_result("a", "2026-02-07T10:00:00.000Z"))[0].call
    assert call.duration_ms == 0


def test_task_is_classified_as_agent_call():
    correlator = Correlator()
    call = correlator.feed(_tool_use("t", "Task", {"subagent_type": "Explore", "description": "Find callers"}))[0].call
    assert isinstance(call, AgentCall)
    assert call.is_agent
    assert call.subagent_type == "Explore"
    assert call.description == "Find callers"


def test_task_without_subagent_type_is_unknown():
    correlator = Correlator()
    call = correlator.feed(_tool_use("t", "Task", {"description": "x"}))[0].call
    assert call.subagent_type == "unknown"


def test_plain_tool_is_not_agent():
    correlator = Correlator()
    call = correlator.feed(_tool_use("r", "Read", {"file_path": "x"}))[0].call
    assert type(call) is ToolCall
    assert not call.is_agent


def test_reused_id_last_write_wins():
    correlator = Correlator()
    first = correlator.feed(_tool_use("dup", "Read", {"file_path": "one"}))[0].call
    second = correlator.feed(_tool_use("dup", "Read", {"file_path": "two"}))[0].call
    finished = correlator.feed(_tool_result("dup"))[0].call
    assert finished is second
    assert first.pending


def test_todowrite_replaces_snapshot():
    correlator = Correlator()
    correlator.feed(_tool_use("t1", "TodoWrite", {"todos": [
        {"content": "A", "status": "completed"},
        {"content": "B", "status": "pending"},
    ]}))
    correlator.feed(_tool_use("t2", "TodoWrite", {"todos": [
        {"content": "C", "status": "in_progress", "activeForm": "Doing C"},
    ]}))
    assert [item.content for item in correlator.todos.items] == ["C"]
    assert correlator.todos.in_progress.active_form == "Doing C"


def test_several_blocks_in_one_event():
    correlator = Correlator()
    event = parse_line(json.dumps({
        "type": "assistant",
        "message": {"content": [
            {"type": "tool_use", "id": "a", "name": "Read", "input": {"file_path": "x"}},
            {"type": "text", "text": "and"},
            {"type": "tool_use", "id": "b", "name": "Grep", "input": {"pattern": "y"}},
        ]},
    }))
    updates = correlator.feed(event)
    assert [u.call.name for u in updates] == ["Read", "Grep"]


def test_todo_snapshot_progress():
    snapshot = parse_todos({"todos": [
        {"content": "A", "status": "completed"},
        {"content": "B", "status": "completed"},
        {"content": "C", "status": "pending"},
        "junk",
    ]})
    assert snapshot.total == 3
    assert snapshot.completed == 2
    assert snapshot.progress == "2/3"
    assert snapshot.in_progress is None


def test_todo_snapshot_empty():
    assert parse_todos({}) == TodoSnapshot(items=[])

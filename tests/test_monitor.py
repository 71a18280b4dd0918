import json

from rafctl.monitor import DisplayLine, LiveMonitor, tool_icon


def _tool_use(tool_use_id: str, name: str, tool_input: dict | None = None, timestamp: str = "2026-02-07T10:00:00.000Z") -> str:
    return json.dumps({
        "type": "assistant",
        "sessionId": "live",
        "timestamp": timestamp,
        "message": {
            "model": "claude-opus-4-6",
            "content": [{"type": "tool_use", "id": tool_use_id, "name": name, "input": tool_input or {}}],
        },
    })


def _tool_result(tool_use_id: str, is_error: bool = False, timestamp: str = "2026-02-07T10:00:03.000Z") -> str:
    return json.dumps({
        "type": "user",
        "timestamp": timestamp,
        "message": {"content": [{"type": "tool_result", "tool_use_id": tool_use_id, "is_error": is_error}]},
    })


def test_tool_icons():
    assert tool_icon("Read") == "📖"
    assert tool_icon("Task") == "🤖"
    assert tool_icon("mcp__github__search") == "🔧"


def test_time_str_unknown():
    assert DisplayLine(None, "·", "system", "event").time_str == "??:??:??"


def test_ingest_fixture(session_file):
    monitor = LiveMonitor()
    rows = monitor.ingest_lines(session_file.read_text().splitlines())
    assert len(rows) == 12  # every parseable line, garbage skipped
    assert monitor.session_id == "3f2a9c1e-7b44-4d0a-9e51-0c6f2b8d1a77"
    assert monitor.model == "claude-sonnet-4-5-20250929"
    assert monitor.message_count == 10
    assert monitor.tool_count == 5
    assert monitor.agent_count == 1
    assert monitor.error_count == 1
    assert monitor.pending_count == 1
    assert monitor.todos.progress == "0/2"
    assert rows[0].category == "system"
    assert rows[0].label == "summary"


def test_tool_use_row():
    row = LiveMonitor().ingest_line(_tool_use("t1", "Read", {"file_path": "/src/app.py"}))
    assert row.icon == "📖"
    assert row.category == "tool"
    assert row.label == "Read"
    assert row.target == "/src/app.py"
    assert row.status == "pending"


def test_result_rows():
    monitor = LiveMonitor()
    monitor.ingest_line(_tool_use("t1", "Bash", {"command": "make"}))
    monitor.ingest_line(_tool_use("t2", "Read", {"file_path": "x"}))

    failed = monitor.ingest_line(_tool_result("t1", is_error=True))
    assert (failed.icon, failed.category, failed.label, failed.status) == ("✗", "result", "Bash failed", "error")

    done = monitor.ingest_line(_tool_result("t2"))
    assert (done.icon, done.label, done.status) == ("✓", "Read done", "ok")
    assert monitor.error_count == 1
    assert monitor.pending_count == 0


def test_agent_and_todo_rows():
    monitor = LiveMonitor()
    agent = monitor.ingest_line(_tool_use("a1", "Task", {"subagent_type": "Plan"}))
    todo = monitor.ingest_line(_tool_use("w1", "TodoWrite", {"todos": [{"content": "x", "status": "pending"}]}))
    assert (agent.category, agent.target) == ("agent", "Plan")
    assert todo.category == "todo"
    assert list(monitor.recent_agents)[0].subagent_type == "Plan"


def test_several_tool_uses_in_one_event():
    line = json.dumps({
        "type": "assistant",
        "message": {"content": [
            {"type": "tool_use", "id": "a", "name": "Read", "input": {"file_path": "x"}},
            {"type": "tool_use", "id": "b", "name": "Read", "input": {"file_path": "y"}},
            {"type": "tool_use", "id": "c", "name": "Grep", "input": {"pattern": "z"}},
        ]},
    })
    monitor = LiveMonitor()
    row = monitor.ingest_line(line)
    assert row.label == "Read (+2 more)"
    assert monitor.tool_count == 3


def test_message_rows():
    monitor = LiveMonitor()
    user = monitor.ingest_line(json.dumps({"type": "user", "message": {"content": "hello"}}))
    assistant = monitor.ingest_line(json.dumps({"type": "assistant", "message": {"content": [{"type": "text", "text": "hi"}]}}))
    system = monitor.ingest_line(json.dumps({"type": "progress"}))
    assert (user.icon, user.label) == ("💬", "User message")
    assert (assistant.icon, assistant.label) == ("🧠", "Assistant")
    assert (system.category, system.label) == ("system", "progress")


def test_unparseable_line_yields_nothing():
    monitor = LiveMonitor()
    assert monitor.ingest_line("{broken") is None
    assert monitor.ingest_lines(["", "nope"]) == []


def test_recent_tools_ring_buffer_keeps_newest():
    monitor = LiveMonitor(max_tools=3, max_agents=2)
    for i in range(5):
        monitor.ingest_line(_tool_use(f"t{i}", "Task", {"subagent_type": f"type{i}"}))
    assert [c.id for c in monitor.recent_tools] == ["t2", "t3", "t4"]
    assert [c.subagent_type for c in monitor.recent_agents] == ["type3", "type4"]
    assert monitor.tool_count == 5
    assert monitor.agent_count == 5


def test_calls_evicted_from_buffer_still_complete():
    monitor = LiveMonitor(max_tools=1)
    monitor.ingest_line(_tool_use("old", "Bash", {"command": "sleep 5"}))
    monitor.ingest_line(_tool_use("new", "Read", {"file_path": "x"}))
    row = monitor.ingest_line(_tool_result("old"))
    assert row.label == "Bash done"


def test_reset_forgets_session():
    monitor = LiveMonitor()
    monitor.ingest_line(_tool_use("t1", "Read", {"file_path": "x"}))
    monitor.reset()
    assert monitor.session_id is None
    assert monitor.tool_count == 0
    assert monitor.pending_count == 0
    assert len(monitor.recent_tools) == 0
    assert monitor.todos is None
    assert monitor.ingest_line(_tool_result("t1")).category == "message"

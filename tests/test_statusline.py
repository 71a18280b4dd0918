import io
import json
from copy import deepcopy
from pathlib import Path

import pytest

from rafctl import statusline
from rafctl.config import DEFAULT_CONFIG
from rafctl.errors import ConfigError
from rafctl.sessions import load_session
from rafctl.statusline import count_configs, parse_payload, render_statusline, shorten_model


def _payload(**overrides) -> str:
    data = {
        "transcript_path": "/tmp/none.jsonl",
        "cwd": "/home/dev/project",
        "model": {"id": "claude-sonnet-4-5-20250929", "display_name": "Sonnet 4.5"},
        "context_window": {
            "context_window_size": 200_000,
            "current_usage": {
                "input_tokens": 1_000,
                "cache_creation_input_tokens": 4_000,
                "cache_read_input_tokens": 50_000,
                "output_tokens": 900,
            },
        },
    }
    data.update(overrides)
    return json.dumps(data)


def test_parse_payload():
    payload = parse_payload(_payload())
    assert payload.transcript_path == Path("/tmp/none.jsonl")
    assert payload.cwd == Path("/home/dev/project")
    assert payload.model_name == "claude-sonnet-4-5-20250929"
    assert payload.context_window_size == 200_000
    assert payload.usage.total == 55_000


def test_parse_payload_model_name_fallback():
    payload = parse_payload(_payload(model={"name": "claude-opus-4-6"}))
    assert payload.model_name == "claude-opus-4-6"


def test_parse_payload_mistyped_fields_are_zero():
    payload = parse_payload(_payload(
        context_window={"context_window_size": "big", "current_usage": {"input_tokens": True, "cache_read_input_tokens": -5}},
        model="sonnet",
        cwd=42,
    ))
    assert payload.context_window_size == 0
    assert payload.usage.total == 0
    assert payload.model_name is None
    assert payload.cwd is None


@pytest.mark.parametrize("text", ["not json", "[1, 2]", "null"])
def test_parse_payload_invalid_is_empty(text):
    payload = parse_payload(text)
    assert payload.transcript_path is None
    assert payload.context_window_size == 0


@pytest.mark.parametrize("name,short", [
    ("claude-sonnet-4-5-20250929", "sonnet-4-5"),
    ("claude-opus-4-6", "opus-4-6"),
    ("claude-3-5-haiku-20241022", "3-5-haiku"),
])
def test_shorten_model(name, short):
    assert shorten_model(name) == short


def test_render_full_statusline(session_file):
    line = render_statusline(
        50, "low",
        profile="work",
        cwd=Path("/home/dev/project"),
        model="sonnet-4-5",
        branch="main",
        session=load_session(session_file),
    )
    assert line.plain == "[work] | 📁 project | [sonnet-4-5] | █████░░░░░ 50% | git:(main) | 🔧5 (1!) | 🤖1 | 📋0/2"


def test_render_minimal_statusline():
    assert render_statusline(0, "low").plain == "░░░░░░░░░░ 0%"


def test_render_bar_colour_follows_tier():
    line = render_statusline(90, "high")
    assert any(span.style == "red" for span in line.spans)


def test_main_initializing(monkeypatch, capsys):
    monkeypatch.setattr("sys.stdin", io.StringIO(""))
    statusline.main()
    assert "Initializing..." in capsys.readouterr().out


def test_main_renders_percent_and_session(monkeypatch, capsys, session_file):
    monkeypatch.setattr(statusline, "load_config", lambda: deepcopy(DEFAULT_CONFIG))
    monkeypatch.setattr(statusline, "git_branch", lambda cwd: None)
    monkeypatch.setattr(statusline, "count_configs", lambda cwd: 0)
    monkeypatch.delenv("RAFCTL_PROFILE", raising=False)
    monkeypatch.setattr("sys.stdin", io.StringIO(_payload(transcript_path=str(session_file))))
    statusline.main()
    out = capsys.readouterr().out
    assert "50%" in out
    assert "sonnet-4-5" in out
    assert "🔧5" in out
    assert "📋0/2" in out


def test_main_missing_transcript(monkeypatch, capsys, tmp_path):
    monkeypatch.setattr(statusline, "load_config", lambda: deepcopy(DEFAULT_CONFIG))
    monkeypatch.setattr(statusline, "git_branch", lambda cwd: None)
    monkeypatch.setattr(statusline, "count_configs", lambda cwd: 0)
    monkeypatch.setattr("sys.stdin", io.StringIO(_payload(transcript_path=str(tmp_path / "gone.jsonl"))))
    statusline.main()
    out = capsys.readouterr().out
    assert "50%" in out
    assert "🔧" not in out


def test_git_branch_outside_repo(tmp_path):
    assert statusline.git_branch(tmp_path) is None
    assert statusline.git_branch(None) is None


def test_count_configs(tmp_path):
    home = tmp_path / "home"
    (home / ".claude" / "rules").mkdir(parents=True)
    (home / ".claude" / "CLAUDE.md").write_text("")
    (home / ".claude" / "rules" / "style.md").write_text("")
    (home / ".claude" / "rules" / "tests.md").write_text("")
    project = tmp_path / "project"
    (project / ".claude").mkdir(parents=True)
    (project / "CLAUDE.md").write_text("")
    (project / ".mcp.json").write_text("{}")
    (project / ".claude" / "settings.local.json").write_text("{}")

    assert count_configs(project, home=home) == 6
    assert count_configs(None, home=home) == 3
    assert count_configs(None, home=tmp_path / "nobody") == 0


def test_render_config_count_after_branch():
    line = render_statusline(10, "low", branch="main", configs=3)
    assert line.plain == "█░░░░░░░░░ 10% | git:(main) | ⚙️3"


def test_main_malformed_config_uses_defaults(monkeypatch, capsys):
    def broken():
        raise ConfigError(Path("config.toml"), ValueError("bad"))

    monkeypatch.setattr(statusline, "load_config", broken)
    monkeypatch.setattr(statusline, "git_branch", lambda cwd: None)
    monkeypatch.setattr(statusline, "count_configs", lambda cwd: 2)
    monkeypatch.setattr("sys.stdin", io.StringIO(_payload()))
    statusline.main()
    out = capsys.readouterr().out
    assert "50%" in out
    assert "⚙️2" in out

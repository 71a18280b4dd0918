"""One-shot statusline renderer for the Claude Code statusLine hook.

Claude Code runs the configured command every few hundred milliseconds and
pipes a JSON payload to it. Each run parses the whole transcript again; there
is no state shared between runs.
"""
import json
import logging
import os
import subprocess
import sys
from copy import deepcopy
from dataclasses import dataclass, field
from pathlib import Path

from rich.console import Console
from rich.text import Text

from rafctl.config import DEFAULT_CONFIG, load_config
from rafctl.context import TIER_STYLES, TokenUsage, calculate_percent, context_tier, progress_bar
from rafctl.errors import RafctlError
from rafctl.registry import ENV_PROFILE
from rafctl.sessions import Session, load_session

logger = logging.getLogger(__name__)


@dataclass
class StatuslinePayload:
    transcript_path: Path | None = None
    cwd: Path | None = None
    model_name: str | None = None
    context_window_size: int = 0
    usage: TokenUsage = field(default_factory=TokenUsage)


def _int(value) -> int:
    return value if isinstance(value, int) and not isinstance(value, bool) and value > 0 else 0


def _path(value) -> Path | None:
    return Path(value) if isinstance(value, str) and value else None


def parse_payload(text: str) -> StatuslinePayload:
    """Read the stdin payload. Absent or mistyped fields count as zero/unknown."""
    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        logger.debug("Statusline payload is not JSON")
        return StatuslinePayload()
    if not isinstance(data, dict):
        return StatuslinePayload()

    model = data.get("model")
    model_name = (model.get("id") or model.get("name")) if isinstance(model, dict) else None
    context = data.get("context_window")
    context = context if isinstance(context, dict) else {}
    usage = context.get("current_usage")
    usage = usage if isinstance(usage, dict) else {}

    return StatuslinePayload(
        transcript_path=_path(data.get("transcript_path")),
        cwd=_path(data.get("cwd")),
        model_name=model_name if isinstance(model_name, str) else None,
        context_window_size=_int(context.get("context_window_size")),
        usage=TokenUsage(
            input_tokens=_int(usage.get("input_tokens")),
            cache_creation_input_tokens=_int(usage.get("cache_creation_input_tokens")),
            cache_read_input_tokens=_int(usage.get("cache_read_input_tokens")),
        ),
    )


def shorten_model(name: str) -> str:
    """claude-sonnet-4-5-20250929 -> sonnet-4-5"""
    short = name.replace("claude-", "").replace("-20", " ")
    parts = short.split()
    return parts[0] if parts else name


def git_branch(cwd: Path | None) -> str | None:
    if cwd is None or not cwd.is_dir():
        return None
    try:
        result = subprocess.run(
            ["git", "rev-parse", "--abbrev-ref", "HEAD"],
            cwd=cwd, capture_output=True, text=True, timeout=1,
        )
    except (OSError, subprocess.SubprocessError):
        return None
    branch = result.stdout.strip()
    if result.returncode != 0 or not branch or branch == "HEAD":
        return None
    return branch


def count_configs(cwd: Path | None, home: Path | None = None) -> int:
    """Number of Claude Code memory, settings and rule files in effect for cwd."""
    count = 0
    claude_dir = (home or Path.home()) / ".claude"
    count += sum(1 for name in ("CLAUDE.md", "settings.json") if (claude_dir / name).exists())
    rules = claude_dir / "rules"
    if rules.is_dir():
        count += sum(1 for _ in rules.iterdir())
    if cwd is not None:
        project_files = ("CLAUDE.md", "CLAUDE.local.md", ".claude/CLAUDE.md", ".mcp.json", ".claude/settings.local.json")
        count += sum(1 for name in project_files if (cwd / name).exists())
    return count


def render_statusline(
    percent: int,
    tier: str,
    profile: str | None = None,
    cwd: Path | None = None,
    model: str | None = None,
    branch: str | None = None,
    configs: int = 0,
    session: Session | None = None,
) -> Text:
    parts: list[Text] = []
    if profile:
        parts.append(Text.assemble("[", (profile, "cyan"), "]"))
    if cwd is not None:
        parts.append(Text(f"📁 {cwd.name or 'project'}"))
    if model:
        parts.append(Text.assemble("[", (model, "bold"), "]"))
    parts.append(Text.assemble((progress_bar(percent), TIER_STYLES[tier]), f" {percent}%"))
    if branch:
        parts.append(Text.assemble("git:(", (branch, "magenta"), ")"))
    if configs:
        parts.append(Text(f"⚙️{configs}"))

    if session is not None:
        if session.tool_call_count:
            tools = Text(f"🔧{session.tool_call_count}")
            if session.error_count:
                tools.append(f" ({session.error_count}!)", style="red")
            parts.append(tools)
        if session.agent_call_count:
            parts.append(Text(f"🤖{session.agent_call_count}"))
        if session.todos is not None and session.todos.total:
            parts.append(Text(f"📋{session.todos.progress}"))

    return Text(" | ").join(parts)


def main():
    text = sys.stdin.read()
    console = Console(force_terminal=True, color_system="standard", highlight=False, soft_wrap=True)
    if not text.strip():
        console.print("Initializing...")
        return

    try:
        config = load_config()
    except RafctlError as e:
        logger.warning("%s; using defaults", e)
        config = deepcopy(DEFAULT_CONFIG)
    ctx = config["context"]
    payload = parse_payload(text)
    percent = calculate_percent(payload.context_window_size, payload.usage.total, ctx["reserved_buffer"])
    tier = context_tier(percent, ctx["medium_threshold"], ctx["high_threshold"])

    session = None
    if payload.transcript_path is not None:
        try:
            session = load_session(payload.transcript_path)
        except RafctlError as e:
            logger.warning("%s", e)

    line = render_statusline(
        percent,
        tier,
        profile=os.environ.get(ENV_PROFILE),
        cwd=payload.cwd,
        model=shorten_model(payload.model_name) if payload.model_name else None,
        branch=git_branch(payload.cwd),
        configs=count_configs(payload.cwd),
        session=session,
    )
    console.print(line)


if __name__ == "__main__":
    main()

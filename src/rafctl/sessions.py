"""Batch aggregation of whole transcripts into Session summaries."""
import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from pathlib import Path

from rafctl.correlator import AgentCall, Correlator, TodoSnapshot, ToolCall
from rafctl.errors import AmbiguousSessionError, SessionNotFoundError, TranscriptUnreadableError
from rafctl.transcript import TranscriptEvent, Usage, iter_events

logger = logging.getLogger(__name__)


@dataclass
class Session:
    """Everything we know about one transcript file."""
    session_id: str
    path: Path | None = None
    started_at: datetime | None = None
    ended_at: datetime | None = None
    message_count: int = 0
    tool_calls: list[ToolCall] = field(default_factory=list)
    agent_calls: list[AgentCall] = field(default_factory=list)
    todos: TodoSnapshot | None = None
    cwd: str | None = None
    git_branch: str | None = None
    model: str | None = None
    usage: Usage = field(default_factory=Usage)
    model_usage: dict[str, Usage] = field(default_factory=dict)

    @property
    def duration(self) -> timedelta | None:
        if self.started_at is None or self.ended_at is None:
            return None
        return self.ended_at - self.started_at

    @property
    def tool_call_count(self) -> int:
        return len(self.tool_calls)

    @property
    def agent_call_count(self) -> int:
        return len(self.agent_calls)

    @property
    def error_count(self) -> int:
        return sum(1 for call in self.tool_calls if call.is_error)

    @property
    def pending_count(self) -> int:
        return sum(1 for call in self.tool_calls if call.pending)

    @property
    def token_count(self) -> int:
        return self.usage.total


def aggregate(events: Iterable[TranscriptEvent], session_id: str = "", path: Path | None = None) -> Session:
    """Fold an ordered event sequence into a Session."""
    session = Session(session_id="", path=path)
    correlator = Correlator()
    billed: set[str] = set()

    for event in events:
        if event.session_id and not session.session_id:
            session.session_id = event.session_id
        if session.cwd is None:
            session.cwd = event.cwd
        if session.git_branch is None:
            session.git_branch = event.git_branch
        if session.model is None:
            session.model = event.model

        ts = event.timestamp
        if ts is not None:
            if session.started_at is None:
                session.started_at = ts
            if session.ended_at is None or ts > session.ended_at:
                session.ended_at = ts

        if event.is_message:
            session.message_count += 1
        if event.usage is not None and event.usage.total:
            # One API message may span several lines that repeat its usage.
            if event.message_id is None or event.message_id not in billed:
                if event.message_id is not None:
                    billed.add(event.message_id)
                model = event.model or session.model or "unknown"
                session.usage += event.usage
                session.model_usage[model] = session.model_usage.get(model, Usage()) + event.usage

        for update in correlator.feed(event):
            if update.kind != "started":
                continue
            session.tool_calls.append(update.call)
            if isinstance(update.call, AgentCall):
                session.agent_calls.append(update.call)

    session.todos = correlator.todos
    if not session.session_id:
        session.session_id = session_id or (path.stem if path is not None else "")
    return session


def load_session(path: Path) -> Session | None:
    """Parse and aggregate one transcript file.

    Returns None when the file does not exist. Any other OS error (for
    example permission denied) is raised as TranscriptUnreadableError.
    """
    try:
        with open(path, encoding="utf-8", errors="replace") as f:
            return aggregate(iter_events(f), session_id=path.stem, path=path)
    except FileNotFoundError:
        logger.debug("Transcript %s does not exist", path)
        return None
    except OSError as e:
        raise TranscriptUnreadableError(path, e) from e


def list_session_files(base_dir: Path) -> list[Path]:
    """All top-level session transcripts under base_dir, newest first.

    base_dir holds one sub-directory per project. Sub-agent transcripts
    (agent-*.jsonl, or anything under a subagents/ directory) are skipped.
    """
    if not base_dir.is_dir():
        return []
    files = []
    for project_dir in base_dir.iterdir():
        if not project_dir.is_dir():
            continue
        for path in project_dir.glob("*.jsonl"):
            if path.stem.startswith("agent-") or "subagents" in path.parts:
                continue
            files.append(path)
    files.sort(key=lambda p: p.stat().st_mtime, reverse=True)
    return files


def _start_key(session: Session) -> float:
    return session.started_at.timestamp() if session.started_at else float("-inf")


def sort_sessions(sessions: list[Session]) -> list[Session]:
    """Newest start first; sessions without timestamps go last."""
    return sorted(sessions, key=_start_key, reverse=True)


def load_sessions(base_dir: Path, today_only: bool = False, now: datetime | None = None) -> list[Session]:
    """Aggregate every transcript under base_dir, sorted for display."""
    sessions = []
    today = (now or datetime.now().astimezone()).astimezone().date()
    for path in list_session_files(base_dir):
        session = load_session(path)
        if session is None:
            continue
        if today_only and (session.started_at is None or session.started_at.astimezone().date() != today):
            continue
        sessions.append(session)
    return sort_sessions(sessions)


def resolve_session(sessions: list[Session], prefix: str) -> Session:
    """Find the session whose id is prefix, or uniquely starts with it."""
    for session in sessions:
        if session.session_id == prefix:
            return session
    matches = [s for s in sessions if prefix and s.session_id.startswith(prefix)]
    if not matches:
        raise SessionNotFoundError(prefix)
    if len(matches) > 1:
        raise AmbiguousSessionError(prefix, [s.session_id for s in matches])
    return matches[0]

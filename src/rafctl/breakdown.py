"""Grouping of tool and agent calls into per-name statistics."""
from collections import Counter
from dataclasses import dataclass
from datetime import date

from rafctl.correlator import AgentCall, ToolCall


@dataclass
class ToolStat:
    name: str
    count: int
    percentage: float


@dataclass
class AgentStat:
    subagent_type: str
    count: int
    mean_duration_ms: int | None = None


@dataclass
class DayActivity:
    day: date
    sessions: int = 0
    messages: int = 0
    tool_calls: int = 0
    errors: int = 0
    tokens: int = 0


@dataclass
class ModelStat:
    name: str
    sessions: int
    tokens: int
    percentage: float


def tool_breakdown(calls: list[ToolCall]) -> list[ToolStat]:
    """Count calls per tool name with their share of the total.

    Sorted by count descending, ties broken by name.
    """
    counts = Counter(call.name for call in calls)
    total = sum(counts.values())
    stats = [
        ToolStat(name=name, count=count, percentage=(count / total * 100) if total else 0.0)
        for name, count in counts.items()
    ]
    stats.sort(key=lambda s: (-s.count, s.name))
    return stats


def agent_breakdown(agent_calls: list[AgentCall]) -> list[AgentStat]:
    """Group agent calls by sub-agent type.

    The mean duration only covers calls whose result was seen; a type whose
    calls are all still running has no mean.
    """
    groups: dict[str, list[AgentCall]] = {}
    for call in agent_calls:
        groups.setdefault(call.subagent_type, []).append(call)

    stats = []
    for subagent_type, calls in groups.items():
        durations = [c.duration_ms for c in calls if c.duration_ms is not None]
        mean = round(sum(durations) / len(durations)) if durations else None
        stats.append(AgentStat(subagent_type=subagent_type, count=len(calls), mean_duration_ms=mean))
    stats.sort(key=lambda s: (-s.count, s.subagent_type))
    return stats


def daily_activity(sessions: list) -> list[DayActivity]:
    """Per-day totals keyed on each session's start date, newest day first."""
    days: dict[date, DayActivity] = {}
    for session in sessions:
        if session.started_at is None:
            continue
        day = session.started_at.astimezone().date()
        activity = days.setdefault(day, DayActivity(day=day))
        activity.sessions += 1
        activity.messages += session.message_count
        activity.tool_calls += session.tool_call_count
        activity.errors += session.error_count
        activity.tokens += session.token_count
    return sorted(days.values(), key=lambda d: d.day, reverse=True)


def model_breakdown(sessions: list) -> list[ModelStat]:
    """Tokens per model with their share of all tokens, largest first.

    A session counts once for every model that answered in it.
    """
    tokens: Counter[str] = Counter()
    session_counts: Counter[str] = Counter()
    for session in sessions:
        names = set(session.model_usage) or ({session.model} if session.model else set())
        for name in names:
            session_counts[name] += 1
        for name, usage in session.model_usage.items():
            tokens[name] += usage.total

    total = sum(tokens.values())
    stats = [
        ModelStat(
            name=name,
            sessions=count,
            tokens=tokens[name],
            percentage=(tokens[name] / total * 100) if total else 0.0,
        )
        for name, count in session_counts.items()
    ]
    stats.sort(key=lambda s: (-s.tokens, -s.sessions, s.name))
    return stats

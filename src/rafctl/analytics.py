"""Usage statistics across many sessions."""
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta

from rafctl.breakdown import (
    AgentStat, DayActivity, ModelStat, ToolStat,
    agent_breakdown, daily_activity, model_breakdown, tool_breakdown,
)
from rafctl.registry import ProfileRegistry
from rafctl.sessions import Session, load_sessions


@dataclass
class Totals:
    sessions: int = 0
    messages: int = 0
    tool_calls: int = 0
    agent_calls: int = 0
    errors: int = 0
    tokens: int = 0


@dataclass
class Analytics:
    days: int | None
    totals: Totals
    daily: list[DayActivity] = field(default_factory=list)
    tools: list[ToolStat] = field(default_factory=list)
    agents: list[AgentStat] = field(default_factory=list)
    models: list[ModelStat] = field(default_factory=list)


@dataclass
class ProfileSummary:
    name: str
    tool: str
    messages: int = 0
    tokens: int = 0
    last_active: date | None = None


def within_days(sessions: list[Session], days: int, now: datetime | None = None) -> list[Session]:
    """Sessions that started during the last `days` days (today counts as one)."""
    now = (now or datetime.now().astimezone()).astimezone()
    cutoff = now.date() - timedelta(days=days - 1)
    return [s for s in sessions if s.started_at is not None and s.started_at.astimezone().date() >= cutoff]


def build_analytics(sessions: list[Session], days: int | None = None, now: datetime | None = None) -> Analytics:
    if days is not None:
        sessions = within_days(sessions, days, now)

    all_calls = [call for s in sessions for call in s.tool_calls]
    all_agents = [call for s in sessions for call in s.agent_calls]
    totals = Totals(
        sessions=len(sessions),
        messages=sum(s.message_count for s in sessions),
        tool_calls=len(all_calls),
        agent_calls=len(all_agents),
        errors=sum(s.error_count for s in sessions),
        tokens=sum(s.token_count for s in sessions),
    )

    return Analytics(
        days=days,
        totals=totals,
        daily=daily_activity(sessions),
        tools=tool_breakdown(all_calls),
        agents=agent_breakdown(all_agents),
        models=model_breakdown(sessions),
    )


def profile_summaries(
    registry: ProfileRegistry,
    days: int | None = None,
    now: datetime | None = None,
) -> list[ProfileSummary]:
    """Messages and tokens per profile, busiest profile first."""
    summaries = []
    for name, meta in registry.profiles.items():
        sessions = load_sessions(registry.transcripts_dir(name))
        if days is not None:
            sessions = within_days(sessions, days, now)
        starts = [s.started_at.astimezone().date() for s in sessions if s.started_at is not None]
        summaries.append(ProfileSummary(
            name=name,
            tool=str(meta.get("tool", "claude")),
            messages=sum(s.message_count for s in sessions),
            tokens=sum(s.token_count for s in sessions),
            last_active=max(starts) if starts else None,
        ))
    summaries.sort(key=lambda p: (-p.tokens, p.name))
    return summaries

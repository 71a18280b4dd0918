"""Human, plain and JSON renderings of sessions and analytics."""
import json
from datetime import datetime, timedelta

from rich.console import Console, Group
from rich.table import Table
from rich.text import Text

from rafctl.analytics import Analytics, ProfileSummary
from rafctl.breakdown import agent_breakdown, tool_breakdown
from rafctl.context import progress_bar
from rafctl.costs import CostEstimate
from rafctl.sessions import Session
from rafctl.statusline import shorten_model
from rafctl.transcript import Usage

FORMATS = ("human", "plain", "json")


def format_duration(duration: timedelta | None) -> str:
    if duration is None:
        return "-"
    secs = int(duration.total_seconds())
    if secs < 60:
        return f"{secs}s"
    if secs < 3600:
        return f"{secs // 60}m"
    return f"{secs // 3600}h {(secs % 3600) // 60}m"


def format_ms(ms: int | None) -> str:
    if ms is None:
        return "-"
    if ms < 1000:
        return f"{ms}ms"
    return format_duration(timedelta(milliseconds=ms)) if ms >= 60_000 else f"{ms / 1000:.1f}s"


def format_tokens(n: int) -> str:
    """1.5M, 320K or the plain count below a thousand."""
    if n >= 1_000_000:
        return f"{n / 1_000_000:.1f}M"
    if n >= 1_000:
        return f"{n / 1_000:.0f}K"
    return str(n)


def format_cost(cost: float) -> str:
    return f"${cost:,.2f}" if cost >= 0.01 or cost == 0 else "<$0.01"


def format_time(dt: datetime | None, fmt: str = "%Y-%m-%d %H:%M") -> str:
    return dt.astimezone().strftime(fmt) if dt is not None else "-"


def shorten_id(session_id: str, length: int = 12) -> str:
    return f"{session_id[:length]}..." if len(session_id) > length else session_id


def _iso(dt: datetime | None) -> str | None:
    return dt.isoformat() if dt is not None else None


# -- JSON documents ---------------------------------------------------------

def session_row(session: Session) -> dict:
    return {
        "session_id": session.session_id,
        "started_at": _iso(session.started_at),
        "duration": format_duration(session.duration) if session.duration is not None else None,
        "messages": session.message_count,
        "tool_calls": session.tool_call_count,
        "errors": session.error_count,
        "tokens": session.token_count,
        "model": shorten_model(session.model) if session.model else None,
    }


def usage_document(usage: Usage) -> dict:
    return {
        "input": usage.input_tokens,
        "output": usage.output_tokens,
        "cache_read": usage.cache_read_tokens,
        "cache_write": usage.cache_write_tokens,
        "total": usage.total,
    }


def session_detail(session: Session) -> dict:
    return {
        "session_id": session.session_id,
        "path": str(session.path) if session.path else None,
        "started_at": _iso(session.started_at),
        "ended_at": _iso(session.ended_at),
        "duration_seconds": session.duration.total_seconds() if session.duration is not None else None,
        "cwd": session.cwd,
        "git_branch": session.git_branch,
        "model": session.model,
        "messages": session.message_count,
        "tool_calls": session.tool_call_count,
        "tool_errors": session.error_count,
        "pending_calls": session.pending_count,
        "agent_calls": session.agent_call_count,
        "tokens": usage_document(session.usage),
        "model_tokens": [
            {"model": name, **usage_document(usage)} for name, usage in sorted(session.model_usage.items())
        ],
        "tool_breakdown": [
            {"tool": s.name, "count": s.count, "percentage": round(s.percentage, 1)}
            for s in tool_breakdown(session.tool_calls)
        ],
        "agent_breakdown": [
            {"subagent_type": a.subagent_type, "count": a.count, "mean_duration_ms": a.mean_duration_ms}
            for a in agent_breakdown(session.agent_calls)
        ],
        "todos": [
            {"content": t.content, "status": t.status} for t in session.todos.items
        ] if session.todos is not None else [],
    }


def analytics_document(analytics: Analytics) -> dict:
    t = analytics.totals
    return {
        "days": analytics.days,
        "totals": {
            "sessions": t.sessions,
            "messages": t.messages,
            "tool_calls": t.tool_calls,
            "agent_calls": t.agent_calls,
            "errors": t.errors,
            "tokens": t.tokens,
        },
        "daily_activity": [
            {"date": d.day.isoformat(), "sessions": d.sessions, "messages": d.messages,
             "tool_calls": d.tool_calls, "errors": d.errors, "tokens": d.tokens}
            for d in analytics.daily
        ],
        "tools": [{"tool": s.name, "count": s.count, "percentage": round(s.percentage, 1)} for s in analytics.tools],
        "agents": [
            {"subagent_type": a.subagent_type, "count": a.count, "mean_duration_ms": a.mean_duration_ms}
            for a in analytics.agents
        ],
        "models": [
            {"model": m.name, "sessions": m.sessions, "tokens": m.tokens, "percentage": round(m.percentage, 1)}
            for m in analytics.models
        ],
    }


def cost_document(estimate: CostEstimate, days: int | None) -> dict:
    return {
        "days": days,
        "models": [
            {"model": m.name, **usage_document(m.usage), "cost": m.cost if m.priced else None}
            for m in estimate.models
        ],
        "total_cost": estimate.total,
        "unpriced": estimate.unpriced,
    }


def profiles_document(summaries: list[ProfileSummary], days: int | None) -> dict:
    return {
        "days": days,
        "profiles": [
            {
                "profile": p.name,
                "tool": p.tool,
                "messages": p.messages,
                "tokens": p.tokens,
                "last_active": p.last_active.isoformat() if p.last_active else None,
            }
            for p in summaries
        ],
    }


def to_json(document: dict) -> str:
    return json.dumps(document, indent=2)


# -- plain (tab separated) --------------------------------------------------

def plain_session_list(sessions: list[Session]) -> str:
    lines = ["SESSION_ID\tSTARTED\tDURATION\tMESSAGES\tTOOLS\tERRORS"]
    for s in sessions:
        lines.append(
            f"{s.session_id}\t{format_time(s.started_at)}\t{format_duration(s.duration)}\t"
            f"{s.message_count}\t{s.tool_call_count}\t{s.error_count}"
        )
    return "\n".join(lines)


def plain_session_detail(session: Session) -> str:
    rows = [
        ("SESSION_ID", session.session_id),
        ("STARTED", format_time(session.started_at, "%Y-%m-%d %H:%M:%S")),
        ("ENDED", format_time(session.ended_at, "%Y-%m-%d %H:%M:%S")),
        ("DURATION", format_duration(session.duration)),
        ("CWD", session.cwd or "-"),
        ("BRANCH", session.git_branch or "-"),
        ("MODEL", session.model or "-"),
        ("MESSAGES", session.message_count),
        ("TOOLS", session.tool_call_count),
        ("ERRORS", session.error_count),
        ("AGENTS", session.agent_call_count),
        ("TOKENS", session.token_count),
    ]
    return "\n".join(f"{key}\t{value}" for key, value in rows)


def plain_analytics(analytics: Analytics) -> str:
    lines = ["DATE\tSESSIONS\tMESSAGES\tTOOLS\tERRORS\tTOKENS"]
    for d in analytics.daily:
        lines.append(f"{d.day.isoformat()}\t{d.sessions}\t{d.messages}\t{d.tool_calls}\t{d.errors}\t{d.tokens}")
    t = analytics.totals
    lines.append(f"TOTAL\t{t.sessions}\t{t.messages}\t{t.tool_calls}\t{t.errors}\t{t.tokens}")
    if analytics.models:
        lines.append("")
        lines.append("MODEL\tSESSIONS\tTOKENS\tPERCENTAGE")
        for m in analytics.models:
            lines.append(f"{m.name}\t{m.sessions}\t{m.tokens}\t{m.percentage:.1f}")
    return "\n".join(lines)


def plain_costs(estimate: CostEstimate) -> str:
    lines = ["MODEL\tINPUT\tOUTPUT\tCACHE_READ\tCACHE_WRITE\tCOST"]
    for m in estimate.models:
        u = m.usage
        cost = f"{m.cost:.6f}" if m.priced else "-"
        lines.append(f"{m.name}\t{u.input_tokens}\t{u.output_tokens}\t{u.cache_read_tokens}\t{u.cache_write_tokens}\t{cost}")
    lines.append(f"TOTAL\t\t\t\t\t{estimate.total:.6f}")
    return "\n".join(lines)


def plain_profiles(summaries: list[ProfileSummary]) -> str:
    lines = ["PROFILE\tTOOL\tMESSAGES\tTOKENS\tLAST_ACTIVE"]
    for p in summaries:
        last = p.last_active.isoformat() if p.last_active else "-"
        lines.append(f"{p.name}\t{p.tool}\t{p.messages}\t{p.tokens}\t{last}")
    return "\n".join(lines)


# -- human (rich) -----------------------------------------------------------

def session_table(sessions: list[Session]) -> Table:
    table = Table(show_edge=False, header_style="bold")
    for column in ("Session ID", "Started", "Duration", "Messages", "Tools", "Errors", "Model"):
        table.add_column(column, justify="right" if column in ("Messages", "Tools", "Errors") else "left")
    for s in sessions:
        errors = Text(str(s.error_count), style="red" if s.error_count else "green")
        table.add_row(
            Text(shorten_id(s.session_id), style="cyan"),
            format_time(s.started_at),
            format_duration(s.duration),
            str(s.message_count),
            str(s.tool_call_count),
            errors,
            shorten_model(s.model) if s.model else "-",
        )
    return table


def _breakdown_lines(session: Session) -> list[Text]:
    lines = []
    for stat in tool_breakdown(session.tool_calls):
        lines.append(Text(f"  {progress_bar(stat.percentage)} {stat.name:<12} {stat.count:>4} calls ({stat.percentage:.0f}%)"))
    return lines


def session_detail_view(session: Session) -> Group:
    header = Text.assemble("\n📋 ", ("Session Details", "bold"), " — ", (shorten_id(session.session_id), "bold cyan"), "\n")
    info = Table.grid(padding=(0, 2))
    info.add_column(style="dim")
    info.add_column()
    info.add_row("Started", format_time(session.started_at, "%Y-%m-%d %H:%M:%S"))
    info.add_row("Ended", format_time(session.ended_at, "%Y-%m-%d %H:%M:%S"))
    info.add_row("Duration", format_duration(session.duration))
    info.add_row("Directory", session.cwd or "-")
    info.add_row("Git Branch", session.git_branch or "-")
    info.add_row("Model", session.model or "-")
    info.add_row("Messages", str(session.message_count))
    info.add_row("Tool Calls", Text.assemble(
        str(session.tool_call_count), " (",
        (str(session.error_count), "red" if session.error_count else "green"), " errors, ",
        str(session.pending_count), " pending)",
    ))
    info.add_row("Agent Calls", str(session.agent_call_count))
    if session.token_count:
        u = session.usage
        info.add_row("Tokens", (
            f"{format_tokens(u.total)} ({format_tokens(u.input_tokens)} in, "
            f"{format_tokens(u.output_tokens)} out, {format_tokens(u.cache_read_tokens)} cache read, "
            f"{format_tokens(u.cache_write_tokens)} cache write)"
        ))
    if session.todos is not None and session.todos.total:
        info.add_row("Todos", f"{session.todos.progress} completed")

    parts = [header, info]
    tools = _breakdown_lines(session)
    if tools:
        parts.append(Text("\nTool Breakdown:", style="bold"))
        parts.extend(tools)
    agents = agent_breakdown(session.agent_calls)
    if agents:
        parts.append(Text("\nAgents:", style="bold"))
        for a in agents:
            parts.append(Text(f"  🤖 {a.subagent_type:<24} {a.count:>3} calls  avg {format_ms(a.mean_duration_ms)}"))
    return Group(*parts)


def analytics_view(analytics: Analytics) -> Group:
    period = f"last {analytics.days} days" if analytics.days else "all time"
    parts: list = [Text.assemble("\n📊 ", ("Usage Analytics", "bold"), f" ({period})\n")]

    if analytics.daily:
        table = Table(show_edge=False, header_style="bold")
        for column in ("Date", "Sessions", "Messages", "Tools", "Errors", "Tokens"):
            table.add_column(column, justify="left" if column == "Date" else "right")
        for d in analytics.daily:
            table.add_row(
                d.day.isoformat(), str(d.sessions), str(d.messages), str(d.tool_calls), str(d.errors),
                format_tokens(d.tokens),
            )
        parts.append(table)

    t = analytics.totals
    parts.append(Text.assemble(
        "\n", ("Totals", "bold"), ": ",
        (str(t.sessions), "cyan"), " sessions · ",
        (str(t.messages), "cyan"), " messages · ",
        (str(t.tool_calls), "cyan"), " tool calls · ",
        (str(t.agent_calls), "cyan"), " agent calls · ",
        (str(t.errors), "red" if t.errors else "green"), " errors · ",
        (format_tokens(t.tokens), "cyan"), " tokens",
    ))

    if analytics.tools:
        parts.append(Text("\nTools:", style="bold"))
        for s in analytics.tools[:10]:
            parts.append(Text(f"  {progress_bar(s.percentage)} {s.name:<14} {s.count:>6} ({s.percentage:.1f}%)"))
    if analytics.agents:
        parts.append(Text("\nAgents:", style="bold"))
        for a in analytics.agents:
            parts.append(Text(f"  🤖 {a.subagent_type:<24} {a.count:>4} calls  avg {format_ms(a.mean_duration_ms)}"))
    if analytics.models:
        parts.append(Text("\nModels:", style="bold"))
        for m in analytics.models:
            parts.append(Text(
                f"  {progress_bar(m.percentage)} {shorten_model(m.name):<16} {format_tokens(m.tokens):>7} tokens "
                f"({m.percentage:.1f}%)  {m.sessions} sessions"
            ))
    return Group(*parts)


def cost_view(estimate: CostEstimate, days: int | None) -> Group:
    period = f"last {days} days" if days else "all time"
    parts: list = [Text.assemble("\n💰 ", ("Cost Estimate", "bold"), f" ({period})\n")]
    table = Table(show_edge=False, header_style="bold")
    for column in ("Model", "Input", "Output", "Cache Read", "Cache Write", "Cost"):
        table.add_column(column, justify="left" if column == "Model" else "right")
    for m in estimate.models:
        u = m.usage
        table.add_row(
            shorten_model(m.name),
            format_tokens(u.input_tokens),
            format_tokens(u.output_tokens),
            format_tokens(u.cache_read_tokens),
            format_tokens(u.cache_write_tokens),
            format_cost(m.cost) if m.priced else Text("no pricing", style="yellow"),
        )
    parts.append(table)
    parts.append(Text.assemble("\n", ("Total", "bold"), ": ", (format_cost(estimate.total), "bold green")))
    if estimate.unpriced:
        parts.append(Text(
            f"Not priced: {', '.join(estimate.unpriced)}. Add them under [pricing] in the config file.",
            style="dim",
        ))
    return Group(*parts)


def profiles_table(summaries: list[ProfileSummary]) -> Table:
    table = Table(show_edge=False, header_style="bold")
    for column in ("Profile", "Tool", "Messages", "Tokens", "Last Active"):
        table.add_column(column, justify="right" if column in ("Messages", "Tokens") else "left")
    for p in summaries:
        table.add_row(
            Text(p.name, style="cyan"),
            p.tool,
            str(p.messages),
            format_tokens(p.tokens),
            p.last_active.isoformat() if p.last_active else "-",
        )
    return table


def _print_raw(console: Console, text: str):
    console.print(text, soft_wrap=True, highlight=False, markup=False, emoji=False)


def print_session_list(console: Console, sessions: list[Session], total: int, fmt: str, title: str = "Recent Sessions"):
    if fmt == "json":
        _print_raw(console, to_json({"sessions": [session_row(s) for s in sessions], "total": total}))
    elif fmt == "plain":
        _print_raw(console, plain_session_list(sessions))
    else:
        console.print(Text.assemble("\n📋 ", (title, "bold"), f" ({total} total)\n"))
        if not sessions:
            console.print("No sessions found.")
            return
        console.print(session_table(sessions))
        if total > len(sessions):
            console.print(Text(f"\nShowing {len(sessions)} of {total} sessions. Use --limit to see more.", style="dim"))


def print_session_detail(console: Console, session: Session, fmt: str):
    if fmt == "json":
        _print_raw(console, to_json(session_detail(session)))
    elif fmt == "plain":
        _print_raw(console, plain_session_detail(session))
    else:
        console.print(session_detail_view(session))


def print_analytics(console: Console, analytics: Analytics, fmt: str):
    if fmt == "json":
        _print_raw(console, to_json(analytics_document(analytics)))
    elif fmt == "plain":
        _print_raw(console, plain_analytics(analytics))
    elif analytics.totals.sessions == 0:
        console.print("ℹ No usage data found. Run Claude Code to generate sessions.")
    else:
        console.print(analytics_view(analytics))


def print_costs(console: Console, estimate: CostEstimate, days: int | None, fmt: str):
    if fmt == "json":
        _print_raw(console, to_json(cost_document(estimate, days)))
    elif fmt == "plain":
        _print_raw(console, plain_costs(estimate))
    elif not estimate.models:
        console.print("ℹ No usage data found. Run Claude Code to generate sessions.")
    else:
        console.print(cost_view(estimate, days))


def print_profiles(console: Console, summaries: list[ProfileSummary], days: int | None, fmt: str):
    if fmt == "json":
        _print_raw(console, to_json(profiles_document(summaries, days)))
    elif fmt == "plain":
        _print_raw(console, plain_profiles(summaries))
    elif not summaries:
        console.print("ℹ No profiles found.")
    else:
        period = f"last {days} days" if days else "all time"
        console.print(Text.assemble("\n👥 ", ("Profiles", "bold"), f" ({period})\n"))
        console.print(profiles_table(summaries))

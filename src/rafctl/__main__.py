"""Entry point for rafctl."""
import argparse
import logging
import sys
import time
from pathlib import Path

from rich.console import Console
from rich.text import Text

from rafctl.analytics import build_analytics, profile_summaries, within_days
from rafctl.config import load_config
from rafctl.costs import estimate_costs
from rafctl.errors import RafctlError
from rafctl.monitor import LiveMonitor
from rafctl.registry import ProfileRegistry, default_profiles_dir
from rafctl.report import (
    FORMATS, print_analytics, print_costs, print_profiles, print_session_detail, print_session_list,
)
from rafctl.sessions import load_sessions, resolve_session
from rafctl.watcher import SessionWatcher


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="rafctl", description="Claude Code session transcripts and live monitor")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log debug output to stderr")
    parser.add_argument("--profile", default=None, help="Read transcripts of this rafctl profile")
    sub = parser.add_subparsers(dest="command", required=True)

    sessions = sub.add_parser("sessions", help="List sessions or show one in detail")
    sessions.add_argument("session_id", nargs="?", default=None, help="Session id or unique prefix")
    sessions.add_argument("--today", action="store_true", help="Only sessions started today")
    sessions.add_argument("--limit", type=int, default=20, help="Maximum sessions to list")
    sessions.add_argument("--format", choices=FORMATS, default="human")

    analytics = sub.add_parser("analytics", help="Usage statistics across sessions")
    analytics.add_argument("--days", type=int, default=7, help="Window in days")
    analytics.add_argument("--all", action="store_true", help="Ignore --days and use every session")
    view = analytics.add_mutually_exclusive_group()
    view.add_argument("--cost", action="store_true", help="Estimate cost per model from token usage")
    view.add_argument("--all-profiles", action="store_true", help="Summarize every rafctl profile")
    analytics.add_argument("--format", choices=FORMATS, default="human")

    watch = sub.add_parser("watch", help="Follow the newest session live")
    watch.add_argument("--plain", action="store_true", help="Stream lines instead of the full-screen view")
    watch.add_argument("--file", type=Path, default=None, help="Watch this transcript instead of the newest")
    watch.add_argument("--project-dir", default=None, help="Prefer sessions of this project directory")

    sub.add_parser("statusline", help="Render the Claude Code statusline from stdin")
    return parser


def profile_registry(config: dict) -> ProfileRegistry:
    profiles_dir = config["paths"].get("profiles_dir")
    return ProfileRegistry(Path(profiles_dir).expanduser() if profiles_dir else default_profiles_dir())


def transcripts_dir(config: dict, profile: str | None) -> Path:
    if profile:
        return profile_registry(config).transcripts_dir(profile)
    return Path(config["paths"]["transcripts_dir"]).expanduser()


def cmd_sessions(args, config: dict, console: Console):
    base_dir = transcripts_dir(config, args.profile)
    sessions = load_sessions(base_dir, today_only=args.today)
    if args.session_id:
        session = resolve_session(sessions, args.session_id)
        print_session_detail(console, session, args.format)
        return
    title = "Today's Sessions" if args.today else "Recent Sessions"
    print_session_list(console, sessions[:args.limit], len(sessions), args.format, title=title)


def cmd_analytics(args, config: dict, console: Console):
    days = None if args.all else args.days
    if args.all_profiles:
        print_profiles(console, profile_summaries(profile_registry(config), days=days), days, args.format)
        return

    sessions = load_sessions(transcripts_dir(config, args.profile))
    if args.cost:
        if days is not None:
            sessions = within_days(sessions, days)
        print_costs(console, estimate_costs(sessions, config["pricing"]), days, args.format)
        return
    print_analytics(console, build_analytics(sessions, days=days), args.format)


def run_plain_watch(watcher: SessionWatcher, console: Console, poll_interval: float):
    """Print feed rows as they arrive until interrupted."""
    from rafctl.widgets.live_feed import render_feed_line

    was_waiting = False
    current = watcher.path
    try:
        while True:
            lines = watcher.tick()
            if watcher.waiting and not was_waiting:
                console.print(Text("Waiting for session to start...", style="dim"))
            was_waiting = watcher.waiting
            if watcher.path != current and watcher.path is not None:
                console.print(Text(f"── Session {watcher.path.stem} ──", style="bold cyan"))
                current = watcher.path
            for line in lines:
                console.print(render_feed_line(line))
            time.sleep(poll_interval)
    except KeyboardInterrupt:
        console.print(Text("Stopped watching.", style="dim"))


def cmd_watch(args, config: dict, console: Console):
    monitor_config = config["monitor"]
    monitor = LiveMonitor(max_tools=monitor_config["max_tools"], max_agents=monitor_config["max_agents"])
    watcher = SessionWatcher(
        monitor,
        path=args.file,
        base_dir=transcripts_dir(config, args.profile),
        project_cwd=args.project_dir,
    )
    poll_interval = float(monitor_config["poll_interval"])
    if args.plain:
        console.print(Text.assemble(("🔴 LIVE", "bold red"), " Session Monitor — Press Ctrl+C to stop"))
        run_plain_watch(watcher, console, poll_interval)
        return

    from rafctl.app import WatchApp
    WatchApp(watcher, poll_interval=poll_interval, profile=args.profile).run()


def main(argv: list[str] | None = None):
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    if args.command == "statusline":
        from rafctl.statusline import main as statusline_main
        statusline_main()
        return

    console = Console()
    commands = {"sessions": cmd_sessions, "analytics": cmd_analytics, "watch": cmd_watch}
    try:
        config = load_config()
        commands[args.command](args, config, console)
    except RafctlError as e:
        Console(stderr=True).print(Text(f"error: {e}", style="red"))
        sys.exit(1)


if __name__ == "__main__":
    main()

"""Textual application for `rafctl watch`."""
import logging

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical, VerticalScroll
from textual.theme import Theme
from textual.widgets import Header, Footer, Static

from rafctl.errors import RafctlError
from rafctl.monitor import LiveMonitor
from rafctl.report import shorten_id
from rafctl.watcher import SessionWatcher
from rafctl.widgets.live_feed import LiveFeedWidget
from rafctl.widgets.session_stats import SessionStatsWidget
from rafctl.widgets.todo_list import TodoListWidget

logger = logging.getLogger(__name__)

FEED_MAX_LINES = 1000

TERMINAL_THEME = Theme(
    name="terminal",
    primary="#ffffff",
    secondary="#333333",
    accent="#ffffff",
    foreground="#ffffff",
    background="#000000",
    surface="#000000",
    panel="#000000",
    dark=True,
    variables={
        "border": "#333333",
        "border-blurred": "#333333",
        "scrollbar": "#333333",
        "scrollbar-background": "#000000",
    },
)

MAINFRAME_THEME = Theme(
    name="mainframe",
    primary="#33ff33",
    secondary="#000000",
    accent="#33ff33",
    foreground="#33ff33",
    background="#000000",
    surface="#000000",
    panel="#000000",
    dark=True,
    variables={
        "footer-foreground": "#1a7a1a",
        "footer-background": "#000000",
        "footer-key-foreground": "#33ff33",
        "footer-description-foreground": "#1a7a1a",
        "border": "#0a1f0a",
        "border-blurred": "#0a1f0a",
        "scrollbar": "#0a1f0a",
        "scrollbar-background": "#000000",
    },
)


class WatchApp(App):
    """Live monitor for the newest Claude Code session."""

    TITLE = "RAFCTL WATCH"
    CSS = """
    Screen { background: #000000; }
    * { background: transparent; }
    #top-row { height: 1fr; }
    #feed-column { width: 1fr; }
    #side-column { width: 45; }
    #feed-panel { height: 1fr; border: tall $border; }
    #stats-panel { height: auto; border: tall $border; }
    #todo-panel { height: auto; border: tall $border; }
    .panel-title { text-style: bold; padding: 0 1; }
    Header { background: #000000; color: $foreground; }
    Footer { background: #000000; }
    """

    BINDINGS = [
        Binding("q", "quit", "Quit"),
        Binding("c", "clear_feed", "Clear"),
        Binding("t", "toggle_theme", "Theme"),
    ]

    def __init__(self, watcher: SessionWatcher, poll_interval: float = 0.3, profile: str | None = None):
        super().__init__()
        self.watcher = watcher
        self.poll_interval = poll_interval
        self.profile = profile
        self._current_theme = "terminal"
        self._was_waiting: bool | None = None
        self._last_error: str | None = None

    @property
    def monitor(self) -> LiveMonitor:
        return self.watcher.monitor

    def compose(self) -> ComposeResult:
        yield Header()
        with Horizontal(id="top-row"):
            with Vertical(id="feed-column"):
                with Vertical(id="feed-panel"):
                    yield Static("LIVE", classes="panel-title")
                    yield LiveFeedWidget(id="feed", max_lines=FEED_MAX_LINES, wrap=False)
            with VerticalScroll(id="side-column"):
                with Vertical(id="stats-panel"):
                    yield Static("SESSION", classes="panel-title")
                    yield SessionStatsWidget(id="stats")
                with Vertical(id="todo-panel"):
                    yield Static("TODOS", classes="panel-title")
                    yield TodoListWidget(id="todos")
        yield Footer()

    def on_mount(self):
        self.register_theme(TERMINAL_THEME)
        self.register_theme(MAINFRAME_THEME)
        self.theme = "terminal"
        self._poll()
        self.set_interval(self.poll_interval, self._poll)

    def _poll(self):
        """One watcher tick: read appended lines and refresh the panels."""
        previous = self.watcher.path
        feed = self.query_one("#feed", LiveFeedWidget)
        try:
            lines = self.watcher.tick()
        except RafctlError as e:
            if str(e) != self._last_error:
                logger.info("%s", e)
                feed.add_notice(f"error: {e}")
                self._last_error = str(e)
            return
        self._last_error = None

        waiting = self.watcher.waiting
        if waiting and self._was_waiting is not True:
            feed.add_notice("Waiting for session to start...")
        self._was_waiting = waiting

        if previous is not None and self.watcher.path != previous:
            feed.add_notice(f"New session: {self.watcher.path.stem}")
        if lines:
            feed.add_lines(lines)
        self._refresh_ui()

    def _refresh_ui(self):
        self.query_one("#stats", SessionStatsWidget).update_stats(self.monitor)
        self.query_one("#todos", TodoListWidget).update_todos(self.monitor.todos)
        session_id = shorten_id(self.watcher.path.stem, 8) if self.watcher.path else "none"
        profile = self.profile or "default"
        self.sub_title = f"profile: {profile}  session: {session_id}"

    def action_clear_feed(self):
        self.query_one("#feed", LiveFeedWidget).clear()

    def action_toggle_theme(self):
        if self._current_theme == "terminal":
            self.theme = "mainframe"
            self._current_theme = "mainframe"
        else:
            self.theme = "terminal"
            self._current_theme = "terminal"

"""Incremental tailing of live session transcripts."""
import errno
import logging
import os
import stat
from dataclasses import dataclass, field
from pathlib import Path

from rafctl.errors import TranscriptUnreadableError
from rafctl.monitor import DisplayLine, LiveMonitor
from rafctl.sessions import list_session_files

logger = logging.getLogger(__name__)

DEFAULT_TRANSCRIPTS_DIR = Path.home() / ".claude" / "projects"


@dataclass
class TailBatch:
    """Result of one poll: the complete lines appended since the last one."""
    lines: list[str] = field(default_factory=list)
    rotated: bool = False
    exists: bool = True


class TailReader:
    """Reads only what was appended to a file since the previous poll.

    offset is the byte position just past the last newline consumed. It only
    moves backwards when the file shrinks below it, which we take to mean the
    file was replaced and a new session began.
    """

    def __init__(self, path: Path, offset: int = 0):
        self.path = Path(path)
        self.offset = offset

    def poll(self) -> TailBatch:
        """Read whatever was appended since the last poll.

        Raises TranscriptUnreadableError when the file exists but cannot be
        read. A file that disappears mid-poll is reported as missing.
        """
        try:
            st = self.path.stat()
        except FileNotFoundError:
            return TailBatch(exists=False)
        except OSError as e:
            raise TranscriptUnreadableError(self.path, e) from e
        if stat.S_ISDIR(st.st_mode):
            raise TranscriptUnreadableError(self.path, IsADirectoryError(errno.EISDIR, os.strerror(errno.EISDIR)))
        size = st.st_size

        rotated = False
        if size < self.offset:
            logger.info("%s shrank from %d to %d bytes, starting over", self.path, self.offset, size)
            self.offset = 0
            rotated = True
        if size == self.offset:
            return TailBatch(rotated=rotated)

        try:
            with open(self.path, "rb") as f:
                f.seek(self.offset)
                chunk = f.read(size - self.offset)
        except FileNotFoundError:
            return TailBatch(rotated=rotated, exists=False)
        except OSError as e:
            raise TranscriptUnreadableError(self.path, e) from e

        end = chunk.rfind(b"\n")
        if end == -1:
            # Only a partial line so far; wait for its newline.
            return TailBatch(rotated=rotated)
        self.offset += end + 1

        lines = []
        for raw in chunk[:end].split(b"\n"):
            line = raw.decode("utf-8", errors="replace").rstrip("\r")
            if line.strip():
                lines.append(line)
        return TailBatch(lines=lines, rotated=rotated)


def _cwd_to_project_dir_name(cwd: str) -> str:
    """Convert a working directory path to Claude's project directory name."""
    return cwd.replace("/", "-")


def find_project_sessions(base_dir: Path | None = None, project_cwd: str | None = None) -> list[Path]:
    """Find all session JSONL files for the given project directory.

    Matches CWD to Claude's project directory naming convention.
    Returns sessions sorted oldest-first.
    """
    if base_dir is None:
        base_dir = DEFAULT_TRANSCRIPTS_DIR
    if not base_dir.exists():
        return []
    if project_cwd is None:
        project_cwd = str(Path.cwd())

    project_dir = base_dir / _cwd_to_project_dir_name(project_cwd)
    if not project_dir.exists():
        return []

    sessions = [s for s in project_dir.glob("*.jsonl") if not s.stem.startswith("agent-")]
    sessions.sort(key=lambda p: p.stat().st_mtime)
    return sessions


def find_latest_session(base_dir: Path | None = None) -> Path | None:
    """The most recently modified session transcript across all projects."""
    files = list_session_files(base_dir or DEFAULT_TRANSCRIPTS_DIR)
    return files[0] if files else None


class SessionWatcher:
    """Drives one LiveMonitor from the newest transcript, one tick at a time.

    With an explicit path the watcher sticks to that file. Otherwise it
    follows the newest session of project_cwd (or of any project), and
    switches, resetting the monitor, when a newer session file appears.
    """

    def __init__(
        self,
        monitor: LiveMonitor,
        path: Path | None = None,
        base_dir: Path | None = None,
        project_cwd: str | None = None,
    ):
        self.monitor = monitor
        self.base_dir = base_dir or DEFAULT_TRANSCRIPTS_DIR
        self.project_cwd = project_cwd
        self._follow_latest = path is None
        self.reader: TailReader | None = TailReader(path) if path is not None else None

    @property
    def path(self) -> Path | None:
        return self.reader.path if self.reader else None

    @property
    def waiting(self) -> bool:
        """True until the watched transcript exists."""
        return self.reader is None or not self.reader.path.exists()

    def _discover(self) -> Path | None:
        if self.project_cwd is not None:
            project_sessions = find_project_sessions(self.base_dir, self.project_cwd)
            if project_sessions:
                return project_sessions[-1]
        return find_latest_session(self.base_dir)

    def tick(self) -> list[DisplayLine]:
        if self._follow_latest:
            latest = self._discover()
            if latest is not None and (self.reader is None or latest != self.reader.path):
                if self.reader is not None:
                    logger.info("Switching to newer session %s", latest.stem)
                self.reader = TailReader(latest)
                self.monitor.reset()
        if self.reader is None:
            return []

        batch = self.reader.poll()
        if batch.rotated:
            self.monitor.reset()
        return self.monitor.ingest_lines(batch.lines)

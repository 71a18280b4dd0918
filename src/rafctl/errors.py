"""User-visible error types for rafctl."""
from pathlib import Path


class RafctlError(Exception):
    """Base class for errors reported to the user by the CLI."""


class SessionNotFoundError(RafctlError):
    def __init__(self, session_id: str):
        super().__init__(f"Session '{session_id}' not found")
        self.session_id = session_id


class AmbiguousSessionError(RafctlError):
    def __init__(self, prefix: str, matches: list[str]):
        shown = ", ".join(matches[:5])
        if len(matches) > 5:
            shown += ", ..."
        super().__init__(
            f"Session prefix '{prefix}' is ambiguous ({len(matches)} matches: {shown}). "
            "Use a longer prefix."
        )
        self.prefix = prefix
        self.matches = matches


class ProfileNotFoundError(RafctlError):
    def __init__(self, name: str):
        super().__init__(f"Profile '{name}' not found")
        self.name = name


class TranscriptUnreadableError(RafctlError):
    def __init__(self, path: Path, cause: OSError):
        super().__init__(f"Cannot read transcript '{path}': {cause.strerror or cause}")
        self.path = path
        self.cause = cause


class ConfigError(RafctlError):
    def __init__(self, path: Path, cause: Exception):
        super().__init__(f"Invalid config file '{path}': {cause}")
        self.path = path
        self.cause = cause

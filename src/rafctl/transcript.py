"""Transcript event model and tolerant JSONL line parser.

Claude Code appends one JSON object per line to the session transcript while
it runs. Lines that cannot be read as a transcript entry (including a
half-written last line) are dropped and parsing carries on with the next one.
"""
import json
import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from datetime import datetime, timezone

logger = logging.getLogger(__name__)

MESSAGE_TYPES = ("user", "assistant")


@dataclass(frozen=True)
class ToolUse:
    """An assistant request to run a tool."""
    id: str
    name: str
    input: dict = field(default_factory=dict)


@dataclass(frozen=True)
class ToolResult:
    """The outcome of a tool run, pointing back at its ToolUse by id."""
    tool_use_id: str
    is_error: bool = False


@dataclass(frozen=True)
class OtherBlock:
    """Any block we do not interpret (text, thinking, image, ...)."""
    kind: str


ContentBlock = ToolUse | ToolResult | OtherBlock


@dataclass(frozen=True)
class Usage:
    """Tokens billed for one assistant message."""
    input_tokens: int = 0
    output_tokens: int = 0
    cache_read_tokens: int = 0
    cache_write_tokens: int = 0

    @property
    def total(self) -> int:
        return self.input_tokens + self.output_tokens + self.cache_read_tokens + self.cache_write_tokens

    def __add__(self, other: "Usage") -> "Usage":
        return Usage(
            input_tokens=self.input_tokens + other.input_tokens,
            output_tokens=self.output_tokens + other.output_tokens,
            cache_read_tokens=self.cache_read_tokens + other.cache_read_tokens,
            cache_write_tokens=self.cache_write_tokens + other.cache_write_tokens,
        )


@dataclass(frozen=True)
class TranscriptEvent:
    """One parsed transcript line."""
    entry_type: str
    timestamp: datetime | None = None
    session_id: str | None = None
    cwd: str | None = None
    git_branch: str | None = None
    model: str | None = None
    blocks: tuple[ContentBlock, ...] = ()
    message_id: str | None = None
    usage: Usage | None = None

    @property
    def is_message(self) -> bool:
        return self.entry_type in MESSAGE_TYPES

    @property
    def tool_uses(self) -> list[ToolUse]:
        return [b for b in self.blocks if isinstance(b, ToolUse)]

    @property
    def tool_results(self) -> list[ToolResult]:
        return [b for b in self.blocks if isinstance(b, ToolResult)]


def parse_timestamp(value) -> datetime | None:
    """Parse an ISO-8601 timestamp into an aware UTC datetime."""
    if not isinstance(value, str) or not value:
        return None
    try:
        dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _str_or_none(value) -> str | None:
    return value if isinstance(value, str) and value else None


def _count(value) -> int:
    return value if isinstance(value, int) and not isinstance(value, bool) and value > 0 else 0


def _parse_usage(usage) -> Usage | None:
    if not isinstance(usage, dict):
        return None
    return Usage(
        input_tokens=_count(usage.get("input_tokens")),
        output_tokens=_count(usage.get("output_tokens")),
        cache_read_tokens=_count(usage.get("cache_read_input_tokens")),
        cache_write_tokens=_count(usage.get("cache_creation_input_tokens")),
    )


def _parse_block(item) -> ContentBlock | None:
    if not isinstance(item, dict):
        return None
    block_type = item.get("type")
    if block_type == "tool_use":
        tool_input = item.get("input")
        return ToolUse(
            id=item.get("id") if isinstance(item.get("id"), str) else "",
            name=_str_or_none(item.get("name")) or "unknown",
            input=tool_input if isinstance(tool_input, dict) else {},
        )
    if block_type == "tool_result":
        is_error = item.get("is_error")
        return ToolResult(
            tool_use_id=item.get("tool_use_id") if isinstance(item.get("tool_use_id"), str) else "",
            is_error=is_error if isinstance(is_error, bool) else False,
        )
    return OtherBlock(kind=block_type if isinstance(block_type, str) else "unknown")


def _parse_content(content) -> tuple[ContentBlock, ...]:
    if isinstance(content, str):
        return (OtherBlock(kind="text"),)
    if not isinstance(content, list):
        return ()
    blocks = []
    for item in content:
        block = _parse_block(item)
        if block is not None:
            blocks.append(block)
    return tuple(blocks)


def parse_line(line: str) -> TranscriptEvent | None:
    """Parse one transcript line, returning None for anything unusable.

    Never raises.
    """
    if not line or not line.strip():
        return None
    try:
        entry = json.loads(line)
    except (json.JSONDecodeError, RecursionError):
        logger.debug("Skipping non-JSON transcript line: %.80s", line)
        return None
    if not isinstance(entry, dict):
        logger.debug("Skipping transcript line that is not an object")
        return None

    message = entry.get("message")
    if message is not None and not isinstance(message, dict):
        logger.debug("Skipping transcript line with malformed message envelope")
        return None
    message = message or {}

    entry_type = entry.get("type")
    return TranscriptEvent(
        entry_type=entry_type if isinstance(entry_type, str) else "",
        timestamp=parse_timestamp(entry.get("timestamp")),
        session_id=_str_or_none(entry.get("sessionId")),
        cwd=_str_or_none(entry.get("cwd")),
        git_branch=_str_or_none(entry.get("gitBranch")),
        model=_str_or_none(message.get("model")),
        blocks=_parse_content(message.get("content")),
        message_id=_str_or_none(message.get("id")),
        usage=_parse_usage(message.get("usage")),
    )


def iter_events(lines: Iterable[str]) -> Iterator[TranscriptEvent]:
    """Parse many lines, silently dropping the unusable ones."""
    for line in lines:
        event = parse_line(line)
        if event is not None:
            yield event

"""Context-window usage math for the statusline."""
import math
from dataclasses import dataclass

# Tokens Claude Code keeps back for its own scaffolding; added to the observed
# usage so our percentage matches the one the host tool reports.
RESERVED_BUFFER = 45_000
MEDIUM_THRESHOLD = 70
HIGH_THRESHOLD = 85

TIER_STYLES = {
    "low": "green",
    "medium": "yellow",
    "high": "red",
}

BAR_FILLED = "█"
BAR_EMPTY = "░"


@dataclass
class TokenUsage:
    input_tokens: int = 0
    cache_creation_input_tokens: int = 0
    cache_read_input_tokens: int = 0

    @property
    def total(self) -> int:
        return self.input_tokens + self.cache_creation_input_tokens + self.cache_read_input_tokens


def calculate_percent(capacity: int, tokens: int, buffer: int = RESERVED_BUFFER) -> int:
    """Percentage of the context window in use, 0-100.

    Windows no larger than the reserved buffer report 0.
    """
    if capacity <= buffer:
        return 0
    percent = (tokens + buffer) / capacity * 100
    return min(int(math.floor(percent + 0.5)), 100)


def context_tier(percent: int, medium: int = MEDIUM_THRESHOLD, high: int = HIGH_THRESHOLD) -> str:
    if percent >= high:
        return "high"
    if percent >= medium:
        return "medium"
    return "low"


def progress_bar(percent: float, width: int = 10) -> str:
    filled = min(max(int(math.floor(percent / 100 * width + 0.5)), 0), width)
    return BAR_FILLED * filled + BAR_EMPTY * (width - filled)

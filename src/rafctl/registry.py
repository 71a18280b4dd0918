"""Profile registry: reads meta.yaml for each rafctl profile."""
import os
from pathlib import Path

import yaml

from rafctl.errors import ProfileNotFoundError

PROFILE_META_FILE = "meta.yaml"
ENV_CONFIG_DIR = "RAFCTL_CONFIG_DIR"
ENV_PROFILE = "RAFCTL_PROFILE"


def default_profiles_dir() -> Path:
    base = os.environ.get(ENV_CONFIG_DIR)
    return (Path(base) if base else Path.home() / ".rafctl") / "profiles"


class ProfileRegistry:
    """Loads profile metadata from <profiles_dir>/<name>/meta.yaml.

    Profile names are case-insensitive; `profiles` is keyed by the lowercased
    directory name.
    """

    def __init__(self, profiles_dir: Path):
        self.profiles_dir = profiles_dir
        self.profiles: dict[str, dict] = {}
        self.dirs: dict[str, Path] = {}
        self._load(profiles_dir)

    def _load(self, profiles_dir: Path):
        if not profiles_dir.exists():
            return
        for meta_file in sorted(profiles_dir.glob(f"*/{PROFILE_META_FILE}")):
            meta = self._parse_meta(meta_file)
            if meta is None:
                continue
            meta.setdefault("name", meta_file.parent.name)
            meta.setdefault("tool", "claude")
            key = meta_file.parent.name.lower()
            self.profiles[key] = meta
            self.dirs[key] = meta_file.parent

    def _parse_meta(self, path: Path) -> dict | None:
        try:
            meta = yaml.safe_load(path.read_text())
        except yaml.YAMLError:
            return None
        return meta if isinstance(meta, dict) else None

    def transcripts_dir(self, name: str) -> Path:
        """Where Claude Code keeps transcripts when run under this profile."""
        key = name.lower()
        if key not in self.profiles:
            raise ProfileNotFoundError(name)
        return self.dirs[key] / "claude" / "projects"

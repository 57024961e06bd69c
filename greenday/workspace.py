"""Workspace root, profile, timezone and path helpers for GreenDay."""

from __future__ import annotations

import os
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml
from loguru import logger

from greenday.fileio import read_yaml, write_yaml_atomic

WEEKDAY_NAMES = ("mon", "tue", "wed", "thu", "fri", "sat", "sun")

DEFAULT_PROFILE = {
    "timezone": "UTC",
    "week_start": "sun",
}


def workspace_root() -> Path:
    """Get the workspace root directory (contains tracker/)."""
    return Path(
        os.environ.get("GREENDAY_ROOT", str(Path.home() / "greenday"))
    ).expanduser().resolve()


def load_profile(root: Path | None = None) -> dict:
    """Read profile.yaml merged over the defaults.

    A missing or unparseable profile yields the defaults.
    """
    if root is None:
        root = workspace_root()
    try:
        data = read_yaml(profile_path(root))
    except (OSError, UnicodeDecodeError, yaml.YAMLError) as e:
        logger.warning("Ignoring unreadable profile {}: {}", profile_path(root), e)
        data = {}
    profile = dict(DEFAULT_PROFILE)
    profile.update({k: v for k, v in data.items() if v is not None})
    return profile


def get_user_timezone(root: Path | None = None) -> ZoneInfo:
    """Get user's timezone from profile.yaml, defaulting to UTC."""
    name = load_profile(root).get("timezone", "UTC")
    try:
        return ZoneInfo(str(name))
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Unknown timezone {!r} in profile, using UTC", name)
        return ZoneInfo("UTC")


def get_week_start(root: Path | None = None) -> int:
    """First column of the calendar grid as a weekday index (Mon=0 .. Sun=6)."""
    value = str(load_profile(root).get("week_start", "sun")).strip().lower()[:3]
    if value not in WEEKDAY_NAMES:
        logger.warning("Unknown week_start {!r} in profile, using sun", value)
        value = "sun"
    return WEEKDAY_NAMES.index(value)


def ensure_workspace(root: Path | None = None) -> Path:
    """Create tracker/ and a default profile.yaml if they don't exist yet."""
    if root is None:
        root = workspace_root()
    pp = profile_path(root)
    if not pp.exists():
        write_yaml_atomic(pp, dict(DEFAULT_PROFILE))
        logger.info("Created default profile at {}", pp)
    return root


# ── Path helpers ──────────────────────────────────────────────

def state_path(root: Path | None = None) -> Path:
    if root is None:
        root = workspace_root()
    return root / "tracker" / "state.json"


def profile_path(root: Path | None = None) -> Path:
    if root is None:
        root = workspace_root()
    return root / "tracker" / "profile.yaml"


def hooks_config_path(root: Path | None = None) -> Path:
    if root is None:
        root = workspace_root()
    return root / "tracker" / "hooks.yaml"

"""Shell hooks for GreenDay.

Hooks run shell commands when the store changes.
Configured via tracker/hooks.yaml, e.g.::

    post_toggle:
      - "notify-send 'Day marked'"
    on_day_change:
      - command: ./backup.sh
        timeout: 10

Hook points:
- post_toggle: a day changed colour
- on_day_change: "today" moved
- on_storage_error: state could not be written
"""

from __future__ import annotations

import json
import subprocess
from pathlib import Path
from typing import Any

import yaml
from loguru import logger

from greenday.fileio import read_yaml
from greenday.workspace import hooks_config_path, workspace_root


VALID_HOOK_POINTS = {
    "post_toggle",
    "on_day_change",
    "on_storage_error",
}

DEFAULT_TIMEOUT = 30
OUTPUT_CAP = 4096


def load_hooks_config(root: Path | None = None) -> dict[str, Any]:
    """Load hooks configuration from tracker/hooks.yaml."""
    if root is None:
        root = workspace_root()
    path = hooks_config_path(root)
    if not path.exists():
        return {}
    try:
        return read_yaml(path)
    except (OSError, yaml.YAMLError) as e:
        logger.warning("Ignoring unreadable hooks config {}: {}", path, e)
        return {}


def run_hooks(
    hook_point: str,
    context: dict[str, Any],
    root: Path | None = None,
) -> list[dict[str, Any]]:
    """Run all hooks registered for a given hook point.

    Context is passed as JSON via stdin to each hook subprocess.
    Returns list of results with stdout/stderr and exit codes.
    """
    if hook_point not in VALID_HOOK_POINTS:
        return []

    if root is None:
        root = workspace_root()

    config = load_hooks_config(root)
    hooks = config.get(hook_point, [])

    if not hooks or not isinstance(hooks, list):
        return []

    results = []
    context_json = json.dumps(context, ensure_ascii=False, default=str)

    for hook in hooks:
        if isinstance(hook, str):
            command = hook
            timeout = DEFAULT_TIMEOUT
        elif isinstance(hook, dict):
            command = hook.get("command", "")
            timeout = hook.get("timeout", DEFAULT_TIMEOUT)
        else:
            continue

        if not command:
            continue

        result: dict[str, Any] = {"command": command, "hook_point": hook_point}
        try:
            proc = subprocess.run(
                command,
                shell=True,
                input=context_json,
                capture_output=True,
                text=True,
                timeout=timeout,
                cwd=str(root),
            )
            result["exit_code"] = proc.returncode
            result["stdout"] = proc.stdout[:OUTPUT_CAP]
            result["stderr"] = proc.stderr[:OUTPUT_CAP]
            if proc.returncode != 0:
                logger.warning("Hook {!r} ({}) exited with {}", command, hook_point, proc.returncode)
        except subprocess.TimeoutExpired:
            result["exit_code"] = -1
            result["error"] = f"Hook timed out after {timeout}s"
            logger.warning("Hook {!r} ({}) timed out after {}s", command, hook_point, timeout)
        except OSError as e:
            result["exit_code"] = -1
            result["error"] = str(e)
            logger.warning("Hook {!r} ({}) failed: {}", command, hook_point, e)

        results.append(result)

    return results


class HookRunner:
    """Store subscriber that forwards store events to shell hooks."""

    EVENT_HOOKS = {
        "toggle": "post_toggle",
        "day_changed": "on_day_change",
        "storage_error": "on_storage_error",
    }

    def __init__(self, root: Path | None = None) -> None:
        self.root = root if root is not None else workspace_root()
        self.last_results: list[dict[str, Any]] = []

    def __call__(self, event: str, payload: dict[str, Any]) -> None:
        hook_point = self.EVENT_HOOKS.get(event)
        if hook_point is None:
            return
        self.last_results = run_hooks(hook_point, {"event": event, **payload}, self.root)

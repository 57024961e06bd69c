"""GreenDay core library — day colours, eligibility and score.

Public API re-exports for convenient imports:
    from greenday import DateStateStore, DayStatus, month_grid, ...
"""

# Errors
from greenday.errors import (
    GreenDayError,
    InvalidDateKey,
    StorageUnavailable,
)

# Workspace & paths
from greenday.workspace import (
    workspace_root,
    ensure_workspace,
    load_profile,
    get_user_timezone,
    get_week_start,
    state_path,
    profile_path,
    hooks_config_path,
)

# File I/O
from greenday.fileio import (
    read_text,
    read_json,
    read_yaml,
    write_json_atomic,
    write_yaml_atomic,
)

# Models
from greenday.models import (
    DayStatus,
    TrackerState,
    ScoreSummary,
    to_date_key,
    format_date_key,
)

# Clock & storage
from greenday.clock import Clock, SystemClock, FixedClock
from greenday.storage import Storage, JsonFileStorage, MemoryStorage

# Store
from greenday.store import DateStateStore

# Calendar grid
from greenday.calendar_grid import (
    GRID_CELLS,
    SUNDAY,
    MONDAY,
    month_grid,
    month_weeks,
    weekday_labels,
    month_title,
    shift_month,
)

# Hooks
from greenday.hooks import run_hooks, load_hooks_config, HookRunner

# Logging
from greenday.log import configure_logging

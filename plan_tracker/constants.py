"""Central constants for the persisted document layout and defaults."""

from __future__ import annotations

DOC_TEMPLATES: str = "templates"
DOC_DAYS: str = "days"
DOC_EXPORT_PATH: str = "exportPath"
DOC_EXPORT_HISTORY: str = "exportHistory"

# Alternate spellings of the export fields, accepted on load only.
DOC_EXPORT_PATH_ALIAS: str = "exportDirectory"
DOC_EXPORT_HISTORY_ALIAS: str = "exportedWeeks"

CURRENT_FORMAT_KEYS: tuple[str, ...] = (
    DOC_TEMPLATES,
    DOC_DAYS,
    DOC_EXPORT_PATH,
    DOC_EXPORT_HISTORY,
    DOC_EXPORT_PATH_ALIAS,
    DOC_EXPORT_HISTORY_ALIAS,
)

DATA_FOLDER_NAME: str = ".plan"
DEFAULT_STATE_FILENAME: str = "data.json"
TEMP_FILE_PREFIX: str = "plan-tmp-"

EXPORT_FOLDER_NAME: str = "PLAN_Exports"
DEFAULT_EXPORT_ROOT_NAME: str = "Downloads"
WEEKLY_EXPORT_FILENAME: str = "PLAN-Weekly-{week_start}.html"
EXPORT_HISTORY_WEEKS: int = 52

DATA_DIR_ENV: str = "PLAN_DATA_DIR"
EXPORT_DIR_ENV: str = "PLAN_EXPORT_DIR"

DEFAULT_TASK_NAMES: tuple[str, ...] = ("Morning Routine", "Deep Work", "Exercise", "Evening Review")
LEGACY_TASK_COUNT: int = 4

DAYS_PER_WEEK: int = 7
TREND_THRESHOLD: float = 10.0

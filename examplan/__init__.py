"""examplan core library: allocation, calendar slots, check-ins, sync, migration.

Public API re-exports for convenient imports:
    from examplan import allocate, merge_records, is_due, migrate, ...
"""

# Workspace & config
from examplan.workspace import (
    workspace_root,
    get_user_timezone,
    today_str,
    now_local,
    settings_path,
    local_store_path,
    local_store,
)
from examplan.config import AppConfig, load_config, configure_logging

# Storage
from examplan.storage import (
    KeyValueStore,
    JsonFileStore,
    MemoryStore,
    StoreError,
    read_yaml,
    write_json_atomic,
)

# Allocation
from examplan.allocator import (
    allocate,
    active_days,
    build_metadata,
    calendar_days,
    generate_local_plan,
    net_learning_days,
    plan_days,
)

# Slots
from examplan.slots import (
    SlotError,
    clear_group,
    clear_unlocked,
    create_day_slots,
    ensure_calendar,
    find_run,
    lock_slot,
    move_group,
    place_learning_days,
    slots_to_sessions,
    split_group,
    unlock_slot,
)

# AI suggestions & plan generation
from examplan.suggest import (
    OpenAIPlanProvider,
    ProviderError,
    Suggestion,
    SuggestionParseError,
    build_prompt,
    parse_suggestion,
    suggest_plan,
)
from examplan.planner import create_plan, generate_plan, schedule_plan, validate_wizard_data

# Check-ins & sync
from examplan.merge import (
    InMemoryRemoteStore,
    merge_record_dicts,
    merge_records,
    push_local,
    reconcile,
)
from examplan.checkin import (
    CHECKIN_QUESTIONS,
    current_period,
    is_button_enabled,
    is_due,
    skip_checkin,
    submit_checkin,
    was_morning_skipped,
    well_score,
    well_score_trend,
)

# Migration
from examplan.migration import (
    KEY_MIGRATIONS,
    MIGRATION_VERSION,
    clear_old_keys,
    migrate,
    migrate_snapshot,
    migration_status,
)

# Schedule import
from examplan.schedule_import import import_schedule, parse_schedule_lines, parsed_to_topics

# Models
from examplan.models import (
    Calendar,
    CheckinEntry,
    ColorPalette,
    DayRecord,
    EligibilitySettings,
    LearningDay,
    PlanMetadata,
    PlanResult,
    PlanSettings,
    RecordMap,
    Slot,
    Topic,
    WeekdayNames,
)

"""Shared utilities for inspecting and editing Standard MIDI Files."""

from .commands import (  # noqa: F401
    EDIT_ORDER,
    EditCommand,
    EditPlan,
    EditResult,
    apply_plan,
    build_plan,
    validate_plan,
)
from .container import MidiDocument, Track  # noqa: F401
from .errors import (  # noqa: F401
    InvalidArgument,
    LoadError,
    MalformedOption,
    MidiEditError,
    OutOfRangeError,
    WriteError,
)
from .events import (  # noqa: F401
    ChannelEvent,
    Event,
    MetaEvent,
    SysExEvent,
    channel,
    classify,
    event_from_bytes,
    is_meta,
    is_system_exclusive,
    message_type,
)
from .inspector import TrackSummary, format_info, summarize  # noqa: F401
from .mutator import (  # noqa: F401
    CHANNEL_MODE_OR,
    CHANNEL_MODE_REPLACE,
    insert_program_change,
    rename_track,
    scale_volume,
    set_channel,
    set_note,
)

"""Parse ``<track>,<value>`` edit options and apply them as one plan.

A session runs in four stages: parse every option, load the file, validate
every command against the loaded document, then apply. Any failure aborts
the remaining stages, so the output file is written only when every edit
succeeded.

Commands always run in ``EDIT_ORDER``, whatever order the options were
given in.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
from typing import Callable

from .container import MidiDocument
from .errors import MalformedOption
from .mutator import (
    DEFAULT_CHANNEL_MODE,
    check_channel,
    check_channel_mode,
    check_multiplier,
    check_note,
    check_program,
    insert_program_change,
    rename_track,
    scale_volume,
    set_channel,
    set_note,
)


logger = logging.getLogger(__name__)

TRACK_NAME = "track_name"
CHANNEL = "channel"
PROGRAM_CHANGE = "program_change"
NOTE_SET = "note_set"
VOLUME = "volume"
EDIT_ORDER = (TRACK_NAME, CHANNEL, PROGRAM_CHANGE, NOTE_SET, VOLUME)

OPTION_LABELS = {
    TRACK_NAME: "track number",
    CHANNEL: "track number or channel number",
    PROGRAM_CHANGE: "track number or program change",
    NOTE_SET: "track number or note value",
    VOLUME: "track number or multiplier",
}

Value = str | int | float


@dataclass(frozen=True)
class EditCommand:
    kind: str
    track: int
    value: Value

    def describe(self) -> str:
        return f"{self.kind} track={self.track} value={self.value!r}"


@dataclass(frozen=True)
class EditPlan:
    commands: tuple[EditCommand, ...] = ()

    def __bool__(self) -> bool:
        return bool(self.commands)

    def __len__(self) -> int:
        return len(self.commands)


@dataclass
class EditResult:
    """Changed-event counts per applied command, in application order."""

    counts: list[tuple[EditCommand, int]] = field(default_factory=list)

    @property
    def total(self) -> int:
        return sum(count for _, count in self.counts)


def split_option(text: str) -> list[str]:
    """Split on commas, dropping empty items and stray carriage returns."""

    return [item for item in text.split(",") if item not in ("", "\r")]


def _parse_fields(kind: str, text: str) -> tuple[int, list[str]]:
    params = split_option(text)
    label = OPTION_LABELS[kind]
    if len(params) < 2:
        raise MalformedOption(f"invalid {label}: {text}")
    try:
        track = int(params[0])
    except ValueError as exc:
        raise MalformedOption(f"invalid {label}: {text}") from exc
    return track, params[1:]


def _parse_int_option(kind: str, text: str) -> EditCommand:
    track, rest = _parse_fields(kind, text)
    try:
        value = int(rest[0])
    except ValueError as exc:
        raise MalformedOption(f"invalid {OPTION_LABELS[kind]}: {text}") from exc
    return EditCommand(kind=kind, track=track, value=value)


def parse_track_name(text: str) -> EditCommand:
    # empty fields are dropped like everywhere else; the remaining fields
    # are the name, so names may contain commas
    track, rest = _parse_fields(TRACK_NAME, text)
    name = ",".join(rest).rstrip("\r")
    return EditCommand(kind=TRACK_NAME, track=track, value=name)


def parse_channel(text: str) -> EditCommand:
    return _parse_int_option(CHANNEL, text)


def parse_program_change(text: str) -> EditCommand:
    return _parse_int_option(PROGRAM_CHANGE, text)


def parse_note_set(text: str) -> EditCommand:
    return _parse_int_option(NOTE_SET, text)


def parse_volume(text: str) -> EditCommand:
    track, rest = _parse_fields(VOLUME, text)
    try:
        value = float(rest[0])
    except ValueError as exc:
        raise MalformedOption(f"invalid {OPTION_LABELS[VOLUME]}: {text}") from exc
    return EditCommand(kind=VOLUME, track=track, value=value)


_PARSERS: dict[str, Callable[[str], EditCommand]] = {
    TRACK_NAME: parse_track_name,
    CHANNEL: parse_channel,
    PROGRAM_CHANGE: parse_program_change,
    NOTE_SET: parse_note_set,
    VOLUME: parse_volume,
}


def build_plan(
    *,
    track_name: str | None = None,
    channel: str | None = None,
    program_change: str | None = None,
    note_set: str | None = None,
    volume: str | None = None,
) -> EditPlan:
    """Parse the raw option strings that were supplied into an ordered plan."""

    raw: dict[str, str | None] = {
        TRACK_NAME: track_name,
        CHANNEL: channel,
        PROGRAM_CHANGE: program_change,
        NOTE_SET: note_set,
        VOLUME: volume,
    }
    commands = [
        _PARSERS[kind](raw[kind]) for kind in EDIT_ORDER if raw[kind] is not None
    ]
    return EditPlan(commands=tuple(commands))


_VALUE_CHECKS: dict[str, Callable[[Value], object]] = {
    TRACK_NAME: lambda value: value,
    CHANNEL: check_channel,
    PROGRAM_CHANGE: check_program,
    NOTE_SET: check_note,
    VOLUME: check_multiplier,
}


def validate_plan(
    document: MidiDocument,
    plan: EditPlan,
    *,
    channel_mode: str = DEFAULT_CHANNEL_MODE,
) -> None:
    """Reject the plan before any edit runs if any command would fail."""

    if any(command.kind == CHANNEL for command in plan.commands):
        check_channel_mode(channel_mode)
    for command in plan.commands:
        document.check_track_index(command.track)
        _VALUE_CHECKS[command.kind](command.value)


def apply_plan(
    document: MidiDocument,
    plan: EditPlan,
    *,
    channel_mode: str = DEFAULT_CHANNEL_MODE,
    add_missing_name: bool = False,
) -> EditResult:
    validate_plan(document, plan, channel_mode=channel_mode)

    result = EditResult()
    for command in plan.commands:
        if command.kind == TRACK_NAME:
            count = rename_track(
                document, command.track, command.value, add_if_missing=add_missing_name
            )
        elif command.kind == CHANNEL:
            count = set_channel(document, command.track, command.value, mode=channel_mode)
        elif command.kind == PROGRAM_CHANGE:
            count = insert_program_change(document, command.track, command.value)
        elif command.kind == NOTE_SET:
            count = set_note(document, command.track, command.value)
        elif command.kind == VOLUME:
            count = scale_volume(document, command.track, command.value)
        else:
            raise ValueError(f"unknown edit kind {command.kind!r}")
        logger.debug("applied %s: %d event(s)", command.describe(), count)
        result.counts.append((command, count))
    return result

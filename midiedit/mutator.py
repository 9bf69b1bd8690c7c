"""In-place track edits.

Every operation validates the track index and its argument first and only
then touches event bytes, so a rejected call leaves the document unchanged.
Each returns the number of events it rewrote or inserted.

Byte offsets used by the edits:

  channel event : [0] status (type | channel)  [1] note/program  [2] velocity
  meta event    : [0] 0xFF  [1] type  [2..] length VLQ + payload
"""

from __future__ import annotations

import logging
import math

from .container import MidiDocument
from .errors import InvalidArgument
from .events import (
    MIDI_CHANNEL_MASK,
    MIDI_MESSAGE_MASK,
    NOTE_OFF,
    NOTE_ON,
    SEQUENCE_TRACK_NAME,
    is_meta,
    is_system_exclusive,
    make_program_change,
    make_track_name,
    message_type,
    meta_type,
)


logger = logging.getLogger(__name__)

CHANNEL_MODE_REPLACE = "replace"
CHANNEL_MODE_OR = "or"
VALID_CHANNEL_MODES = {CHANNEL_MODE_REPLACE, CHANNEL_MODE_OR}
DEFAULT_CHANNEL_MODE = CHANNEL_MODE_REPLACE

MAX_DATA_BYTE = 127


def _int_in_range(value: object, *, where: str, low: int, high: int) -> int:
    if not isinstance(value, int) or isinstance(value, bool):
        raise InvalidArgument(f"{where} must be an integer, got {value!r}")
    if not (low <= value <= high):
        raise InvalidArgument(f"{where} must be in [{low}, {high}], got {value}")
    return value


def check_channel(channel_no: object) -> int:
    return _int_in_range(channel_no, where="channel", low=1, high=16)


def check_program(program_no: object) -> int:
    if not isinstance(program_no, int) or isinstance(program_no, bool):
        raise InvalidArgument(f"program must be an integer, got {program_no!r}")
    if not 0 <= program_no <= MAX_DATA_BYTE:
        raise InvalidArgument(
            f"program must be in [0, {MAX_DATA_BYTE}], got {program_no}; "
            "MIDI data bytes are 7-bit, so 128-255 cannot be written to a file"
        )
    return program_no


def check_note(note_no: object) -> int:
    return _int_in_range(note_no, where="note", low=0, high=MAX_DATA_BYTE)


def check_multiplier(multiplier: object) -> float:
    if isinstance(multiplier, bool) or not isinstance(multiplier, (int, float)):
        raise InvalidArgument(f"multiplier must be a number, got {multiplier!r}")
    if not math.isfinite(multiplier):
        raise InvalidArgument(f"multiplier must be finite, got {multiplier}")
    return float(multiplier)


def check_channel_mode(mode: str) -> str:
    if mode not in VALID_CHANNEL_MODES:
        valid = ", ".join(sorted(VALID_CHANNEL_MODES))
        raise InvalidArgument(f"channel mode must be one of: {valid}")
    return mode


def _encode_name(new_name: str | bytes) -> bytes:
    if isinstance(new_name, str):
        return new_name.encode("utf-8")
    return bytes(new_name)


def rename_track(
    document: MidiDocument,
    track_index: int,
    new_name: str | bytes,
    *,
    add_if_missing: bool = False,
) -> int:
    """Replace every track-name meta event of a track with ``new_name``.

    Each replacement sits at the position of the event it replaces and keeps
    its delta time.  A track without a name is left alone unless
    ``add_if_missing`` is set, in which case one is inserted at position 0.
    """

    track = document.track(track_index)
    payload = _encode_name(new_name)

    replaced = 0
    for position in range(track.event_count()):
        event = track[position]
        if is_meta(event) and meta_type(event) == SEQUENCE_TRACK_NAME:
            old = track.remove(position)
            track.insert(position, make_track_name(payload, delta=old.delta))
            replaced += 1

    if replaced == 0 and add_if_missing:
        track.insert(0, make_track_name(payload))
        replaced = 1

    logger.debug("track %d: renamed %d event(s) to %r", track_index, replaced, payload)
    return replaced


def set_channel(
    document: MidiDocument,
    track_index: int,
    channel_no: int,
    *,
    mode: str = DEFAULT_CHANNEL_MODE,
) -> int:
    """Move every non-system event of a track to 1-based ``channel_no``.

    ``mode="replace"`` clears the old channel nibble before setting the new
    one.  ``mode="or"`` ORs the new nibble into the status byte, which can
    add channel bits but never remove them (channel 16 -> 1 is a no-op).
    """

    track = document.track(track_index)
    channel_no = check_channel(channel_no)
    mode = check_channel_mode(mode)
    nibble = channel_no - 1

    changed = 0
    for event in track:
        if is_system_exclusive(event):
            continue
        status = event[0]
        if mode == CHANNEL_MODE_OR:
            new_status = status | nibble
        else:
            new_status = (status & MIDI_MESSAGE_MASK) | (nibble & MIDI_CHANNEL_MASK)
        if new_status != status:
            event[0] = new_status
            changed += 1

    logger.debug(
        "track %d: channel %d (%s) rewrote %d event(s)", track_index, channel_no, mode, changed
    )
    return changed


def insert_program_change(
    document: MidiDocument,
    track_index: int,
    program_no: int,
    *,
    channel: int = 0,
) -> int:
    """Insert a program change as the first event of a track."""

    track = document.track(track_index)
    program_no = check_program(program_no)
    track.insert(0, make_program_change(program_no, channel=channel))
    logger.debug("track %d: inserted program change %d", track_index, program_no)
    return 1


def set_note(document: MidiDocument, track_index: int, note_no: int) -> int:
    track = document.track(track_index)
    note_no = check_note(note_no)

    changed = 0
    for event in track:
        if message_type(event) in (NOTE_ON, NOTE_OFF):
            event[1] = note_no
            changed += 1

    logger.debug("track %d: set %d note event(s) to %d", track_index, changed, note_no)
    return changed


def scale_velocity(velocity: int, multiplier: float) -> int:
    """Truncate ``velocity * multiplier`` toward zero and clamp to 0-127."""

    return max(0, min(MAX_DATA_BYTE, int(velocity * multiplier)))


def scale_volume(document: MidiDocument, track_index: int, multiplier: float) -> int:
    """Scale NOTE_ON velocities of a track.  NOTE_OFF velocities are kept."""

    track = document.track(track_index)
    multiplier = check_multiplier(multiplier)

    changed = 0
    for event in track:
        if message_type(event) == NOTE_ON:
            event[2] = scale_velocity(event[2], multiplier)
            changed += 1

    logger.debug(
        "track %d: scaled %d velocity value(s) by %g", track_index, changed, multiplier
    )
    return changed

"""Read-only track summaries.

One linear scan per track collects:

  name     : payload of the last track-name meta event, non-printable bytes
             shown as '.'
  program  : data byte of the last program change (None if absent)
  channels : 1-based channels of every non-system event
  notes    : note numbers of every NOTE_ON
"""

from __future__ import annotations

from dataclasses import dataclass

from .container import MidiDocument, Track
from .events import (
    NOTE_ON,
    PROGRAM_CHANGE,
    SEQUENCE_TRACK_NAME,
    channel,
    is_meta,
    is_system_exclusive,
    message_type,
    meta_payload,
    meta_type,
)


PRINTABLE_LOW = 0x20
PRINTABLE_HIGH = 0x7E
INFO_HEADER = "[name/prog change/channel(s)/note(s)]"


@dataclass(frozen=True)
class TrackSummary:
    name: str
    program: int | None
    channels: tuple[int, ...]  # 1-based, ascending
    notes: tuple[int, ...]  # ascending

    def describe(self) -> str:
        program = self.program if self.program is not None else -1
        channels = "".join(f"{ch} " for ch in self.channels)
        notes = "".join(f"{note} " for note in self.notes)
        return f"{self.name} / {program} / {channels}/ {notes}/"


def printable_name(payload: bytes) -> str:
    return "".join(
        chr(byte) if PRINTABLE_LOW <= byte <= PRINTABLE_HIGH else "."
        for byte in payload
    )


def summarize(track: Track) -> TrackSummary:
    name = ""
    program: int | None = None
    channels: set[int] = set()
    notes: set[int] = set()

    for event in track:
        if is_meta(event) and meta_type(event) == SEQUENCE_TRACK_NAME:
            name = printable_name(meta_payload(event))
        kind = message_type(event)
        if kind == PROGRAM_CHANGE:
            program = event[1]
        if not is_system_exclusive(event):
            channels.add(channel(event) + 1)
        if kind == NOTE_ON:
            notes.add(event[1])

    return TrackSummary(
        name=name,
        program=program,
        channels=tuple(sorted(channels)),
        notes=tuple(sorted(notes)),
    )


def summarize_document(document: MidiDocument) -> list[TrackSummary]:
    return [summarize(track) for track in document.tracks]


def format_info(document: MidiDocument) -> str:
    """Render the per-track report printed by ``midi_edit.py --info``."""

    lines = [
        "File info:",
        f"Tracks: {document.track_count()} {INFO_HEADER}",
    ]
    for index, summary in enumerate(summarize_document(document)):
        lines.append(f"{index} : {summary.describe()}")
    return "\n".join(lines)

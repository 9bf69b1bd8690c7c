"""Standard MIDI File container boundary.

mido does the byte-stream work: chunk framing, running status, delta-time
VLQs and end-of-track fix-ups.  This module converts between
``mido.MidiFile`` and the editable document: a fixed tuple of tracks, each an
ordered list of owned :class:`~midiedit.events.Event` buffers.

Round-trip guarantee: ``MidiDocument.from_midifile(mid).to_midifile()``
yields the same messages (bytes and delta times) as ``mid``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import io
import logging
from pathlib import Path
from typing import Iterator

import mido
from mido.midifiles.meta import build_meta_message

from .errors import LoadError, OutOfRangeError, WriteError
from .events import Event, MetaEvent, event_from_bytes


logger = logging.getLogger(__name__)

DEFAULT_TICKS_PER_BEAT = 480

# what mido raises on truncated or corrupt chunks and meta payloads
_DECODE_ERRORS = (OSError, EOFError, ValueError, KeyError, IndexError)


def event_from_message(msg: mido.Message | mido.MetaMessage) -> Event:
    return event_from_bytes(msg.bytes(), delta=msg.time)


def message_from_event(event: Event) -> mido.Message | mido.MetaMessage:
    if isinstance(event, MetaEvent):
        return build_meta_message(event.meta_type, list(event.payload), event.delta)
    return mido.Message.from_bytes(bytes(event), time=event.delta)


@dataclass
class Track:
    """Ordered events of one MTrk chunk.  Position is the only event identity."""

    events: list[Event] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.events)

    def __iter__(self) -> Iterator[Event]:
        return iter(self.events)

    def __getitem__(self, position: int) -> Event:
        return self.events[position]

    def event_count(self) -> int:
        return len(self.events)

    def insert(self, position: int, event: Event) -> None:
        if not 0 <= position <= len(self.events):
            raise IndexError(
                f"insert position {position} outside [0, {len(self.events)}]"
            )
        self.events.insert(position, event)

    def remove(self, position: int) -> Event:
        if not 0 <= position < len(self.events):
            raise IndexError(
                f"remove position {position} outside [0, {len(self.events) - 1}]"
            )
        return self.events.pop(position)

    @classmethod
    def from_miditrack(cls, track: mido.MidiTrack) -> "Track":
        return cls(events=[event_from_message(msg) for msg in track])

    def to_miditrack(self) -> mido.MidiTrack:
        return mido.MidiTrack(message_from_event(event) for event in self.events)


@dataclass
class MidiDocument:
    """A loaded SMF: header facts plus exactly the tracks it was loaded with."""

    tracks: tuple[Track, ...]
    file_type: int = 1
    ticks_per_beat: int = DEFAULT_TICKS_PER_BEAT

    def __post_init__(self) -> None:
        self.tracks = tuple(self.tracks)

    def track_count(self) -> int:
        return len(self.tracks)

    def check_track_index(self, index: int) -> None:
        if not 0 <= index < len(self.tracks):
            raise OutOfRangeError(
                f"track {index} out of range; file has {len(self.tracks)} "
                f"track(s) (valid: 0-{len(self.tracks) - 1})"
            )

    def track(self, index: int) -> Track:
        self.check_track_index(index)
        return self.tracks[index]

    @classmethod
    def from_midifile(cls, mid: mido.MidiFile) -> "MidiDocument":
        return cls(
            tracks=tuple(Track.from_miditrack(track) for track in mid.tracks),
            file_type=mid.type,
            ticks_per_beat=mid.ticks_per_beat,
        )

    def to_midifile(self) -> mido.MidiFile:
        mid = mido.MidiFile(type=self.file_type, ticks_per_beat=self.ticks_per_beat)
        mid.tracks.extend(track.to_miditrack() for track in self.tracks)
        return mid

    @classmethod
    def from_bytes(cls, data: bytes) -> "MidiDocument":
        try:
            mid = mido.MidiFile(file=io.BytesIO(data))
        except _DECODE_ERRORS as exc:
            raise LoadError(f"not a valid MIDI file: {exc}") from exc
        return cls.from_midifile(mid)

    def to_bytes(self) -> bytes:
        buf = io.BytesIO()
        try:
            self.to_midifile().save(file=buf)
        except ValueError as exc:
            raise WriteError(f"cannot encode document: {exc}") from exc
        return buf.getvalue()

    @classmethod
    def load(cls, path: Path | str) -> "MidiDocument":
        path = Path(path)
        try:
            mid = mido.MidiFile(str(path))
        except _DECODE_ERRORS as exc:
            raise LoadError(f"unable to open file: {path} ({exc})") from exc
        document = cls.from_midifile(mid)
        logger.debug(
            "loaded %s: type=%d tracks=%d tpb=%d",
            path,
            document.file_type,
            document.track_count(),
            document.ticks_per_beat,
        )
        return document

    def save(self, path: Path | str) -> None:
        path = Path(path)
        try:
            mid = self.to_midifile()
            mid.save(str(path))
        except OSError as exc:
            raise WriteError(f"unable to write file: {path} ({exc})") from exc
        except ValueError as exc:
            raise WriteError(f"cannot encode document for {path}: {exc}") from exc
        logger.debug("saved %s: tracks=%d", path, self.track_count())

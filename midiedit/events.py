"""Classify and build raw SMF track events.

An event is the byte sequence of one track message without its delta time:

  channel : status (0x80-0xEF) + 1 or 2 data bytes
  meta    : FF <type> <length VLQ> <payload>
  sysex   : F0 <payload> F7  (or an F7 escape packet)

The status byte's high nibble selects the message type, the low nibble the
0-based channel.  Meta events declare their payload length, so no event is
assumed to have a fixed size.  For lengths 0-127 the length field is a single
byte.
"""

from __future__ import annotations

import io
from typing import Iterable, Sequence

from mido.midifiles.meta import encode_variable_int
from mido.midifiles.midifiles import read_variable_int


# Channel message types (status high nibble)
NOTE_OFF = 0x80
NOTE_ON = 0x90
POLYPHONIC_PRESSURE = 0xA0
CONTROLLER_CHANGE = 0xB0
PROGRAM_CHANGE = 0xC0
CHANNEL_KEY_PRESSURE = 0xD0
PITCH_BEND = 0xE0
SYSTEM_EXCLUSIVE = 0xF0

MIDI_MESSAGE_MASK = 0xF0
MIDI_CHANNEL_MASK = 0x0F
META_STATUS = 0xFF

# Meta event types (byte 1 of a meta event)
SEQUENCE_NUMBER = 0x00
TEXT_EVENT = 0x01
COPYRIGHT_NOTICE = 0x02
SEQUENCE_TRACK_NAME = 0x03
INSTRUMENT_NAME = 0x04
LYRIC = 0x05
MARKER = 0x06
CUE_POINT = 0x07
MIDI_CHANNEL_PREFIX = 0x20
END_OF_TRACK = 0x2F
SET_TEMPO = 0x51
SMPTE_OFFSET = 0x54
TIME_SIGNATURE = 0x58
KEY_SIGNATURE = 0x59
SEQUENCER_SPECIFIC = 0x7F

META_TYPE_NAMES = {
    SEQUENCE_NUMBER: "sequence_number",
    TEXT_EVENT: "text",
    COPYRIGHT_NOTICE: "copyright",
    SEQUENCE_TRACK_NAME: "track_name",
    INSTRUMENT_NAME: "instrument_name",
    LYRIC: "lyrics",
    MARKER: "marker",
    CUE_POINT: "cue_marker",
    MIDI_CHANNEL_PREFIX: "channel_prefix",
    END_OF_TRACK: "end_of_track",
    SET_TEMPO: "set_tempo",
    SMPTE_OFFSET: "smpte_offset",
    TIME_SIGNATURE: "time_signature",
    KEY_SIGNATURE: "key_signature",
    SEQUENCER_SPECIFIC: "sequencer_specific",
}

CHANNEL_MESSAGE_NAMES = {
    NOTE_OFF: "note_off",
    NOTE_ON: "note_on",
    POLYPHONIC_PRESSURE: "polytouch",
    CONTROLLER_CHANGE: "control_change",
    PROGRAM_CHANGE: "program_change",
    CHANNEL_KEY_PRESSURE: "aftertouch",
    PITCH_BEND: "pitchwheel",
}

CHANNEL = "channel"
META = "meta"
SYSEX = "sysex"

ByteSequence = Sequence[int]


def _status(event: ByteSequence) -> int:
    if len(event) == 0:
        raise ValueError("empty event has no status byte")
    return event[0]


def is_meta(event: ByteSequence) -> bool:
    return _status(event) == META_STATUS


def is_system_exclusive(event: ByteSequence) -> bool:
    """True for every status in 0xF0-0xFF, meta events included."""

    return (_status(event) & MIDI_MESSAGE_MASK) == SYSTEM_EXCLUSIVE


def message_type(event: ByteSequence) -> int:
    return _status(event) & MIDI_MESSAGE_MASK


def channel(event: ByteSequence) -> int:
    return _status(event) & MIDI_CHANNEL_MASK


def classify(event: ByteSequence) -> str:
    """Return ``"meta"``, ``"sysex"`` or ``"channel"`` for a raw event."""

    status = _status(event)
    if status == META_STATUS:
        return META
    if (status & MIDI_MESSAGE_MASK) == SYSTEM_EXCLUSIVE:
        return SYSEX
    if status & 0x80:
        return CHANNEL
    raise ValueError(f"0x{status:02X} is a data byte, not a status byte")


def _meta_header(event: ByteSequence) -> tuple[int, int, int]:
    """Return ``(meta_type, length, payload_start)`` for a meta event."""

    if not is_meta(event):
        raise ValueError(f"not a meta event (status 0x{event[0]:02X})")
    if len(event) < 3:
        raise ValueError(f"meta event too short ({len(event)} bytes, need 3)")
    stream = io.BytesIO(bytes(event[2:]))
    try:
        length = read_variable_int(stream)
    except EOFError as exc:
        raise ValueError("unterminated meta length field") from exc
    start = 2 + stream.tell()
    if start + length > len(event):
        raise ValueError(
            f"meta event declares {length} payload bytes but only "
            f"{len(event) - start} follow"
        )
    return event[1], length, start


def meta_type(event: ByteSequence) -> int:
    return _meta_header(event)[0]


def meta_length(event: ByteSequence) -> int:
    return _meta_header(event)[1]


def meta_payload(event: ByteSequence) -> bytes:
    _, length, start = _meta_header(event)
    return bytes(event[start : start + length])


class Event:
    """An owned byte buffer for one track event plus its delta time in ticks.

    Subclasses fix the category.  Writes that would turn the event into
    another category (e.g. a channel status overwritten with 0xFF) are
    rejected, so the variant always matches the bytes it holds.
    """

    __slots__ = ("raw", "delta")
    category = ""

    def __init__(self, raw: Iterable[int], delta: int = 0) -> None:
        buf = bytearray(raw)
        kind = classify(buf)
        if kind != self.category:
            raise ValueError(
                f"{type(self).__name__} cannot hold a {kind} event "
                f"(status 0x{buf[0]:02X}); use event_from_bytes()"
            )
        if delta < 0:
            raise ValueError(f"delta time must be >= 0, got {delta}")
        self.raw = buf
        self.delta = delta

    def __len__(self) -> int:
        return len(self.raw)

    def __getitem__(self, index):
        return self.raw[index]

    def __setitem__(self, index, value) -> None:
        candidate = bytearray(self.raw)
        candidate[index] = value
        kind = classify(candidate)
        if kind != self.category:
            raise ValueError(
                f"write would turn a {self.category} event into a {kind} event"
            )
        self.raw = candidate

    def __bytes__(self) -> bytes:
        return bytes(self.raw)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Event):
            return NotImplemented
        return type(self) is type(other) and self.raw == other.raw and self.delta == other.delta

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.raw.hex(' ')!r}, delta={self.delta})"

    def resize(self, length: int) -> None:
        """Truncate or zero-pad the buffer to ``length`` bytes (status kept)."""

        if length < 1:
            raise ValueError(f"event length must be >= 1, got {length}")
        if length < len(self.raw):
            del self.raw[length:]
        else:
            self.raw.extend(b"\x00" * (length - len(self.raw)))

    def copy(self) -> "Event":
        return type(self)(self.raw, self.delta)

    @property
    def status(self) -> int:
        return self.raw[0]

    @property
    def message_type(self) -> int:
        return message_type(self.raw)

    @property
    def channel(self) -> int:
        return channel(self.raw)

    def is_meta(self) -> bool:
        return is_meta(self.raw)

    def is_system_exclusive(self) -> bool:
        return is_system_exclusive(self.raw)


class ChannelEvent(Event):
    """Channel-voice message: status 0x80-0xEF followed by data bytes."""

    __slots__ = ()
    category = CHANNEL

    @property
    def data(self) -> bytes:
        return bytes(self.raw[1:])

    @property
    def type_name(self) -> str:
        return CHANNEL_MESSAGE_NAMES[self.message_type]


class MetaEvent(Event):
    __slots__ = ()
    category = META

    @property
    def meta_type(self) -> int:
        return meta_type(self.raw)

    @property
    def length(self) -> int:
        return meta_length(self.raw)

    @property
    def payload(self) -> bytes:
        return meta_payload(self.raw)

    @property
    def type_name(self) -> str:
        kind = self.raw[1]
        return META_TYPE_NAMES.get(kind, f"unknown_meta_0x{kind:02X}")


class SysExEvent(Event):
    __slots__ = ()
    category = SYSEX

    @property
    def payload(self) -> bytes:
        return bytes(self.raw[1:])


_EVENT_CLASSES: dict[str, type[Event]] = {
    CHANNEL: ChannelEvent,
    META: MetaEvent,
    SYSEX: SysExEvent,
}


def event_from_bytes(raw: Iterable[int], delta: int = 0) -> Event:
    """Wrap raw event bytes in the variant matching their status byte."""

    buf = bytearray(raw)
    return _EVENT_CLASSES[classify(buf)](buf, delta)


def make_track_name(name: bytes, delta: int = 0) -> MetaEvent:
    """Build a sequence/track name meta event whose length matches ``name``."""

    raw = bytearray([META_STATUS, SEQUENCE_TRACK_NAME])
    raw.extend(encode_variable_int(len(name)))
    raw.extend(name)
    return MetaEvent(raw, delta)


def make_program_change(program: int, channel: int = 0, delta: int = 0) -> ChannelEvent:
    if not 0 <= program <= 127:
        raise ValueError(f"program must be in [0, 127], got {program}")
    if not 0 <= channel <= 15:
        raise ValueError(f"channel must be in [0, 15], got {channel}")
    return ChannelEvent([PROGRAM_CHANGE | channel, program], delta)

import io
from pathlib import Path
import sys

import mido
import pytest

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from midiedit.container import MidiDocument, Track  # noqa: E402
from midiedit.errors import LoadError, OutOfRangeError, WriteError  # noqa: E402
from midiedit.events import ChannelEvent, MetaEvent, SysExEvent, event_from_bytes  # noqa: E402


def _sample_midifile() -> mido.MidiFile:
    mid = mido.MidiFile(type=1, ticks_per_beat=96)
    mid.tracks.append(
        mido.MidiTrack(
            [
                mido.MetaMessage("track_name", name="Conductor", time=0),
                mido.MetaMessage("set_tempo", tempo=mido.bpm2tempo(120), time=0),
                mido.MetaMessage("end_of_track", time=0),
            ]
        )
    )
    mid.tracks.append(
        mido.MidiTrack(
            [
                mido.MetaMessage("track_name", name="Piano", time=0),
                mido.Message("program_change", channel=2, program=5, time=0),
                mido.Message("note_on", channel=2, note=60, velocity=100, time=0),
                mido.Message("note_off", channel=2, note=60, velocity=0, time=96),
                mido.Message("sysex", data=[0x7E, 0x7F, 0x09, 0x01], time=0),
                mido.MetaMessage("end_of_track", time=0),
            ]
        )
    )
    return mid


def _message_bytes(mid: mido.MidiFile) -> list[list[tuple[bytes, int]]]:
    return [[(bytes(msg.bytes()), msg.time) for msg in track] for track in mid.tracks]


def test_document_roundtrip_through_midifile() -> None:
    mid = _sample_midifile()
    document = MidiDocument.from_midifile(mid)
    rebuilt = document.to_midifile()

    assert rebuilt.type == 1
    assert rebuilt.ticks_per_beat == 96
    assert _message_bytes(rebuilt) == _message_bytes(mid)


def _to_bytes(mid: mido.MidiFile) -> bytes:
    buf = io.BytesIO()
    mid.save(file=buf)
    return buf.getvalue()


def test_document_roundtrip_bytes() -> None:
    data = _to_bytes(_sample_midifile())
    document = MidiDocument.from_bytes(data)
    assert document.to_bytes() == data


def test_events_become_tagged_variants() -> None:
    document = MidiDocument.from_midifile(_sample_midifile())
    piano = document.track(1)

    kinds = [type(event) for event in piano]
    assert kinds == [MetaEvent, ChannelEvent, ChannelEvent, ChannelEvent, SysExEvent, MetaEvent]
    assert piano[0].payload == b"Piano"
    assert piano[2].data == bytes([60, 100])
    assert piano[3].delta == 96
    assert piano[4].payload == bytes([0x7E, 0x7F, 0x09, 0x01, 0xF7])


def test_save_and_load_file(tmp_path: Path) -> None:
    document = MidiDocument.from_midifile(_sample_midifile())
    out = tmp_path / "song.mid"
    document.save(out)

    loaded = MidiDocument.load(out)
    assert loaded.track_count() == 2
    assert loaded.ticks_per_beat == 96
    assert [bytes(e) for e in loaded.track(1)] == [bytes(e) for e in document.track(1)]
    assert [e.delta for e in loaded.track(1)] == [e.delta for e in document.track(1)]


def test_load_missing_file_raises_load_error(tmp_path: Path) -> None:
    with pytest.raises(LoadError):
        MidiDocument.load(tmp_path / "missing.mid")


def test_load_garbage_raises_load_error(tmp_path: Path) -> None:
    path = tmp_path / "garbage.mid"
    path.write_bytes(b"not a midi file at all")
    with pytest.raises(LoadError):
        MidiDocument.load(path)
    with pytest.raises(LoadError):
        MidiDocument.from_bytes(b"not midi")


def _smf_bytes(track_data: bytes) -> bytes:
    header = b"MThd" + (6).to_bytes(4, "big") + b"\x00\x00\x00\x01\x00\x60"
    return header + b"MTrk" + len(track_data).to_bytes(4, "big") + track_data


def test_load_short_meta_payload_raises_load_error(tmp_path: Path) -> None:
    # time signature declaring one payload byte instead of four
    data = _smf_bytes(bytes.fromhex("00 FF 58 01 04 00 FF 2F 00"))
    path = tmp_path / "short_meta.mid"
    path.write_bytes(data)
    with pytest.raises(LoadError):
        MidiDocument.load(path)
    with pytest.raises(LoadError):
        MidiDocument.from_bytes(data)


def test_save_to_missing_directory_raises_write_error(tmp_path: Path) -> None:
    document = MidiDocument.from_midifile(_sample_midifile())
    with pytest.raises(WriteError):
        document.save(tmp_path / "no-such-dir" / "out.mid")


def test_track_index_checks() -> None:
    document = MidiDocument.from_midifile(_sample_midifile())
    assert document.track(0) is document.tracks[0]
    for bad in (-1, 2, 99):
        with pytest.raises(OutOfRangeError):
            document.track(bad)


def test_track_count_is_fixed() -> None:
    document = MidiDocument.from_midifile(_sample_midifile())
    assert isinstance(document.tracks, tuple)
    with pytest.raises(AttributeError):
        document.tracks.append(Track())  # type: ignore[attr-defined]


def test_track_insert_and_remove_bounds() -> None:
    track = Track([event_from_bytes(b"\x90\x3C\x64"), event_from_bytes(b"\x80\x3C\x00")])
    track.insert(2, event_from_bytes(b"\xFF\x2F\x00"))
    assert track.event_count() == 3
    removed = track.remove(0)
    assert bytes(removed) == b"\x90\x3C\x64"
    assert len(track) == 2
    with pytest.raises(IndexError):
        track.insert(5, event_from_bytes(b"\x90\x3C\x64"))
    with pytest.raises(IndexError):
        track.remove(2)

"""CLI integration tests for tools/midi_edit.py."""

from __future__ import annotations

import importlib.util
import os
from pathlib import Path
import subprocess
import sys

import mido
import pytest

REPO_ROOT = Path(__file__).resolve().parents[1]
SCRIPT = REPO_ROOT / "tools" / "midi_edit.py"
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from midiedit.container import MidiDocument  # noqa: E402
from midiedit.inspector import summarize  # noqa: E402


def _load_tool_module():
    spec = importlib.util.spec_from_file_location("midi_edit_tool", SCRIPT)
    assert spec is not None and spec.loader is not None
    module = importlib.util.module_from_spec(spec)
    sys.modules[spec.name] = module
    spec.loader.exec_module(module)
    return module


midi_edit = _load_tool_module()


def _run_cli(*args: str) -> subprocess.CompletedProcess[str]:
    env = dict(os.environ)
    env["PYTHONPATH"] = str(REPO_ROOT)
    return subprocess.run(
        [sys.executable, str(SCRIPT), *args],
        cwd=str(REPO_ROOT),
        env=env,
        text=True,
        capture_output=True,
        check=False,
    )


def _write_song(path: Path) -> Path:
    mid = mido.MidiFile(type=1, ticks_per_beat=480)
    mid.tracks.append(
        mido.MidiTrack(
            [
                mido.MetaMessage("track_name", name="Tempo"),
                mido.MetaMessage("set_tempo", tempo=mido.bpm2tempo(100)),
                mido.MetaMessage("end_of_track"),
            ]
        )
    )
    mid.tracks.append(
        mido.MidiTrack(
            [
                mido.MetaMessage("track_name", name="Piano"),
                mido.Message("note_on", channel=1, note=60, velocity=100),
                mido.Message("note_off", channel=1, note=60, velocity=64, time=480),
                mido.Message("note_on", channel=1, note=64, velocity=80),
                mido.Message("note_off", channel=1, note=64, velocity=0, time=480),
                mido.MetaMessage("end_of_track"),
            ]
        )
    )
    mid.save(str(path))
    return path


def test_info_prints_report_without_writing(tmp_path: Path, capsys) -> None:
    song = _write_song(tmp_path / "song.mid")
    before = song.read_bytes()

    assert midi_edit.main(["-i", "-c", "1,5", str(song)]) == 0

    out = capsys.readouterr().out.splitlines()
    assert out == [
        "File info:",
        "Tracks: 2 [name/prog change/channel(s)/note(s)]",
        "0 : Tempo / -1 / / /",
        "1 : Piano / -1 / 2 / 60 64 /",
    ]
    assert song.read_bytes() == before


def test_edits_overwrite_input_by_default(tmp_path: Path, capsys) -> None:
    song = _write_song(tmp_path / "song.mid")

    code = midi_edit.main(
        ["-t", "1,Rhodes", "-c", "1,3", "-p", "1,4", "-v", "1,0.5", str(song)]
    )
    assert code == 0
    assert "Wrote 2 track(s)" in capsys.readouterr().out

    summary = summarize(MidiDocument.load(song).track(1))
    assert summary.name == "Rhodes"
    assert summary.program == 4
    # program change is inserted after the channel edit, so it stays on channel 1
    assert summary.channels == (1, 3)

    mid = mido.MidiFile(str(song))
    velocities = [msg.velocity for msg in mid.tracks[1] if msg.type == "note_on"]
    releases = [msg.velocity for msg in mid.tracks[1] if msg.type == "note_off"]
    assert velocities == [50, 40]
    assert releases == [64, 0]


def test_output_file_leaves_input_untouched(tmp_path: Path) -> None:
    song = _write_song(tmp_path / "song.mid")
    before = song.read_bytes()
    out = tmp_path / "out.mid"

    assert midi_edit.main(["-n", "1,36", "-o", str(out), str(song)]) == 0

    assert song.read_bytes() == before
    mid = mido.MidiFile(str(out))
    notes = {msg.note for msg in mid.tracks[1] if msg.type in ("note_on", "note_off")}
    assert notes == {36}


@pytest.mark.parametrize(
    "option, message",
    [
        (["-c", "1"], "ERROR - invalid track number or channel number: 1"),
        (["-v", "1,loud"], "ERROR - invalid track number or multiplier: 1,loud"),
        (["-c", "1,17"], "ERROR - channel must be in [1, 16], got 17"),
        (["-n", "5,60"], "ERROR - track 5 out of range"),
    ],
)
def test_bad_option_aborts_without_writing(tmp_path: Path, capsys, option, message) -> None:
    song = _write_song(tmp_path / "song.mid")
    before = song.read_bytes()

    code = midi_edit.main(["-t", "1,Changed", *option, str(song)])

    assert code == 1
    assert capsys.readouterr().err.startswith(message)
    assert song.read_bytes() == before


def test_dry_run_does_not_write(tmp_path: Path, capsys) -> None:
    song = _write_song(tmp_path / "song.mid")
    before = song.read_bytes()

    assert midi_edit.main(["--dry-run", "-v", "1,2.0", str(song)]) == 0

    assert "dry-run OK: edits=1 events_changed=2" in capsys.readouterr().out
    assert song.read_bytes() == before


def test_no_edit_options_is_an_error(tmp_path: Path, capsys) -> None:
    song = _write_song(tmp_path / "song.mid")
    assert midi_edit.main([str(song)]) == 1
    assert "not enough command line options" in capsys.readouterr().err


def test_missing_input_reports_load_error(tmp_path: Path, capsys) -> None:
    assert midi_edit.main(["-i", str(tmp_path / "missing.mid")]) == 1
    assert capsys.readouterr().err.startswith("ERROR - unable to open file:")


def test_cli_subprocess_channel_mode_or(tmp_path: Path) -> None:
    song = _write_song(tmp_path / "song.mid")
    out = tmp_path / "or.mid"

    proc = _run_cli("--channel-mode", "or", "-c", "1,3", "-o", str(out), str(song))
    assert proc.returncode == 0, proc.stderr

    # channel 2 (nibble 1) OR channel 3 (nibble 2) lands on nibble 3
    mid = mido.MidiFile(str(out))
    channels = {msg.channel for msg in mid.tracks[1] if not msg.is_meta}
    assert channels == {3}


def test_cli_subprocess_help() -> None:
    proc = _run_cli("--help")
    assert proc.returncode == 0
    assert "--track-name" in proc.stdout
    assert "MIDI channels are specified as 1 to 16" in proc.stdout

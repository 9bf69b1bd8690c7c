#!/usr/bin/env python3
"""Script-driven Standard MIDI File editor.

Examples
--------
Track summary:
    python tools/midi_edit.py --info song.mid

Rename track 1, move it to channel 10 and halve its velocities (in place):
    python tools/midi_edit.py -t "1,Drums" -c 1,10 -v 1,0.5 song.mid

Write to a new file instead of overwriting the input:
    python tools/midi_edit.py -p 2,33 -o bass.mid song.mid

Edits run in a fixed order (track name, channel, program change, note set,
volume) regardless of the order the options are given.  MIDI channels are
numbered 1-16; track numbers start at 0.  If any option is malformed or out
of range nothing is written.
"""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
import sys

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from midiedit.commands import apply_plan, build_plan  # noqa: E402
from midiedit.container import MidiDocument  # noqa: E402
from midiedit.errors import MidiEditError  # noqa: E402
from midiedit.inspector import format_info  # noqa: E402
from midiedit.mutator import DEFAULT_CHANNEL_MODE, VALID_CHANNEL_MODES  # noqa: E402


LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

logger = logging.getLogger("midi_edit")


def _init_logging(verbose: bool) -> None:
    if logging.getLogger().handlers:
        return
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format=LOG_FORMAT,
        stream=sys.stderr,
    )


def _build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Basic script based MIDI file editor",
        epilog="Note: MIDI channels are specified as 1 to 16",
    )
    parser.add_argument(
        "input",
        type=Path,
        help="MIDI file to read (and overwrite unless --output-file is given)",
    )
    parser.add_argument(
        "-i",
        "--info",
        action="store_true",
        help="Print information about this file and exit",
    )
    parser.add_argument(
        "-t",
        "--track-name",
        metavar="TRACK,NAME",
        default=None,
        help="Set track name",
    )
    parser.add_argument(
        "-c",
        "--channel",
        metavar="TRACK,CHANNEL",
        default=None,
        help="Specify MIDI channel (1-16) for track",
    )
    parser.add_argument(
        "-p",
        "--program-change",
        metavar="TRACK,PROGRAM",
        default=None,
        help="Add a program change message to start of track",
    )
    parser.add_argument(
        "-n",
        "--note-set",
        metavar="TRACK,NOTE",
        default=None,
        help="Set all notes of a track to the specified value",
    )
    parser.add_argument(
        "-v",
        "--volume",
        metavar="TRACK,MULTIPLIER",
        default=None,
        help="Scale note-on velocities in track",
    )
    parser.add_argument(
        "-o",
        "--output-file",
        type=Path,
        default=None,
        help="Write data to this file, otherwise overwrite input file",
    )
    parser.add_argument(
        "--channel-mode",
        choices=sorted(VALID_CHANNEL_MODES),
        default=DEFAULT_CHANNEL_MODE,
        help="'replace' clears the old channel first; 'or' ORs the new channel "
        "bits into the status byte (legacy behaviour, cannot lower a channel)",
    )
    parser.add_argument(
        "--add-missing-name",
        action="store_true",
        help="With --track-name, insert a name event if the track has none",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Apply edits and report them without writing output",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Debug logging to stderr",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = _build_arg_parser()
    args = parser.parse_args(argv)
    _init_logging(args.verbose)

    try:
        if args.info:
            document = MidiDocument.load(args.input)
            print(format_info(document))
            return 0

        plan = build_plan(
            track_name=args.track_name,
            channel=args.channel,
            program_change=args.program_change,
            note_set=args.note_set,
            volume=args.volume,
        )
        if not plan and args.output_file is None:
            print("ERROR - not enough command line options", file=sys.stderr)
            return 1

        document = MidiDocument.load(args.input)
        result = apply_plan(
            document,
            plan,
            channel_mode=args.channel_mode,
            add_missing_name=args.add_missing_name,
        )
        for command, count in result.counts:
            print(f"  {command.describe()}: {count} event(s)")

        if args.dry_run:
            print(f"dry-run OK: edits={len(plan)} events_changed={result.total}")
            return 0

        out_path = args.output_file if args.output_file is not None else args.input
        document.save(out_path)
    except MidiEditError as exc:
        logger.debug("aborted", exc_info=True)
        print(f"ERROR - {exc}", file=sys.stderr)
        return 1

    print(f"Wrote {document.track_count()} track(s) -> {out_path}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

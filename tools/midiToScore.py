import sys
import logging
import argparse

from midichart import midi, constants
from midichart.base import pitch_to_note_name
from midichart.chart import ChartWriter, preview
from midichart.score import NoteFormat, Diagnostic
from midichart.rational import RationalTime

"""
Converts a MIDI file into a rhythm game score file.

Difficulty tracks are found by name ('1', '2' and '3' for easy, normal and hard).  Lanes are given as
note names, leftmost lane first, e.g.

    python midiToScore.py song.mid song.txt C3 D3 E3 F3
"""


def print_notes(label, notes):
    if len(notes) == 0:
        return
    shown, remaining = preview(notes)
    print("  %s:" % label)
    for n in shown:
        print("    bar %03d  pos %s  %s" % (n.bar, n.pos_in_bar, pitch_to_note_name(n.note_num)))
    if remaining > 0:
        print("    ... and %d more" % remaining)


def main():
    parser = argparse.ArgumentParser(description="Convert a MIDI file into a rhythm game score")
    parser.add_argument('midi_in_file', help='midi filename to import')
    parser.add_argument('score_out_file', help='score filename to write')
    parser.add_argument('lanes', nargs='+', help='note name for each lane, e.g. C3 D#3')
    parser.add_argument('-a', '--amplitude', type=int, default=constants.DEFAULT_ADJUSTMENT_AMPLITUDE,
                        help='ticks searched on each side of a note when snapping')
    parser.add_argument('-t', '--threshold', type=int, default=constants.DEFAULT_SNAP_THRESHOLD,
                        help='largest position denominator left unsnapped')
    parser.add_argument('--hold', default='1/1', help='shortest hold note, in bars (e.g. 1/4)')
    parser.add_argument('-p', '--parallels', type=int, help='maximum number of simultaneous notes')
    parser.add_argument('--id', dest='song_id', help='song id for the score header')
    parser.add_argument('--artist', help='artist for the score header')
    parser.add_argument('-v', '--verbose', action='store_true', help='debug logging')
    parser.add_argument('--version', action='version', version='%(prog)s ' + constants.MIDICHART_VERSION)

    args = parser.parse_args()
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    reader = midi.MidiReader()
    config = midi.ReaderConfig(adjustment_amplitude=args.amplitude, snap_threshold=args.threshold)
    print("Reading %s" % args.midi_in_file)
    status = reader.open_and_read(args.midi_in_file, config)
    if status != midi.Status.OK:
        print("Error: %s" % status.name, file=sys.stderr)
        sys.exit(1)
    if len(reader.tempo_events) == 0:
        print("Error: no tempo in MIDI file", file=sys.stderr)
        sys.exit(1)

    hold_num, _, hold_denom = args.hold.partition('/')
    note_format = NoteFormat.from_note_names(args.lanes,
                                             hold_min_length=RationalTime(int(hold_num), int(hold_denom or 1)),
                                             parallels_limit=args.parallels)

    writer = ChartWriter()
    writer.set_options(title=reader.title or None, song_id=args.song_id, artist=args.artist)
    writer.to_file(reader, args.score_out_file, note_format)

    for difficulty, encoder in writer.encoders.items():
        result = writer.results[difficulty]
        print("%s: %s" % (difficulty, 'ok' if result.diagnostics == Diagnostic.NONE else result.diagnostics))
        print_notes('concurrent notes', encoder.concurrent_notes)
        print_notes('notes outside the lanes', [n for n in encoder.deviated_notes if n.is_note_on])
        print_notes('too many parallel notes', encoder.parallel_notes)
        for line in encoder.long_lines:
            print("  long line: lane %d bar %03d (%d positions)" % line)
        for lane, name in enumerate(args.lanes):
            agg = encoder.aggregate(lane)
            print("  %-4s hit %4d  accent %4d  hold %4d  all %4d" % (name, agg.hit, agg.accent_hit, agg.hold, agg.total))

    print("\ndone")


if __name__ == '__main__':
    main()

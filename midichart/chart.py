import io
import logging
import more_itertools as moreit
from midichart.base import *
from midichart import constants
from midichart.score import ScoreEncoder

logger = logging.getLogger(__name__)


def preview(notes, limit=10):
    """
    First few events of a diagnostic list, for showing to a chart author.

    :param notes: events from one of the encoder's diagnostic lists
    :type notes: list of NoteEvent
    :param limit: maximum number of events returned
    :type limit: int
    :return: (events, number of events not shown)
    :rtype: tuple of list, int
    """
    shown = moreit.take(limit, notes)
    return (shown, len(notes) - len(shown))


class ChartWriter(MidiChartIO):
    """
    Writes the complete score file for a MIDI file: a header section with tempo and time signature
    changes, then one section per difficulty.

    A difficulty section is written for every track whose name is one of the keys of the
    `difficulties` option; the section is named by the corresponding value.

    Options:
        * **difficulties** (dict) track name -> difficulty name, in output order
          (default {'1': 'easy', '2': 'normal', '3': 'hard'})
        * **song_id**, **title**, **artist** (str) optional header metadata lines
    """
    @classmethod
    def cts_type(cls):
        return 'Chart'

    def __init__(self):
        MidiChartIO.__init__(self)
        self.set_options(difficulties=dict(constants.DEFAULT_DIFFICULTIES))
        self.results = {}  #: EncodeResult per difficulty from the last export
        self.encoders = {}  #: ScoreEncoder per difficulty, holding the diagnostic lists

    def to_bin(self, midi_song, note_format, **kwargs):
        """
        Produces the score text.

        :param midi_song: a MidiReader that has read a file successfully
        :type midi_song: midi.MidiReader
        :param note_format: lane and note type configuration
        :type note_format: score.NoteFormat
        :return: score text
        :rtype: str
        """
        self.set_options(**kwargs)
        out = io.StringIO()
        self.write_header(out, midi_song)
        self.results = {}
        self.encoders = {}
        for track_name, difficulty in self.get_option('difficulties').items():
            track_num = midi_song.find_track(track_name)
            if track_num is None:
                logger.debug("No track named %r; skipping %s", track_name, difficulty)
                continue
            self.write_difficulty(out, midi_song, note_format, track_num, difficulty)
        return out.getvalue()

    def to_file(self, midi_song, filename, note_format, **kwargs):
        """
        Writes the score text to a file.

        :return: True if every difficulty encoded without errors
        :rtype: bool
        """
        text = self.to_bin(midi_song, note_format, **kwargs)
        with open(filename, 'w', encoding='utf-8', newline='\n') as f:
            f.write(text)
        return all(r.ok for r in self.results.values())

    def write_header(self, out, midi_song):
        out.write("begin:header\n\n")
        for option, key in (('song_id', 'id'), ('title', 'title'), ('artist', 'artist')):
            value = self.get_option(option)
            if value is not None:
                out.write("%s:%s\n" % (key, value))
        if any(self.get_option(o) is not None for o in ('song_id', 'title', 'artist')):
            out.write('\n')
        for t in midi_song.tempo_events:
            out.write("tempo:%0*d:%s:%.3f\n" % (constants.BAR_DIGITS, t.bar, t.pos_in_bar, t.bpm))
        for b in midi_song.time_signature_events:
            out.write("beat:%0*d:%s\n" % (constants.BAR_DIGITS, b.bar, b.beat))
        out.write("\nend\n\n")

    def write_difficulty(self, out, midi_song, note_format, track_num, difficulty):
        encoder = ScoreEncoder()
        out.write("begin:%s\n\n" % difficulty)
        result = encoder.write(out, note_format, midi_song.get_note_events(track_num))
        out.write("\nend\n\n")
        if not result.ok:
            logger.warning("%s: track %d encoded with %s", difficulty, track_num, result.diagnostics)
        self.results[difficulty] = result
        self.encoders[difficulty] = encoder

import re
import enum
import collections
from midichart.errors import *
from midichart import constants
from midichart.rational import RationalTime


# Named tuple types for several lists throughout
MidiHeader = collections.namedtuple('MidiHeader', ['format', 'num_tracks', 'ppq'])
TimeSignatureEvent = collections.namedtuple('TimeSignature', ['time', 'bar', 'beat'])
TempoEvent = collections.namedtuple('Tempo', ['time', 'bar', 'pos_in_bar', 'bpm'])
Track = collections.namedtuple('Track', ['index', 'name'])
ScorePosition = collections.namedtuple('ScorePosition', ['bar', 'pos_in_bar'])


class MidiEventType(enum.Enum):
    NOTE_OFF = constants.NOTE_OFF
    NOTE_ON = constants.NOTE_ON


class NoteEvent:
    """
    A note-on or note-off read from a MIDI track.  The reader fills in the raw fields; bar and
    pos_in_bar are attached afterwards by the quantizer.
    """

    def __init__(self, event_type, channel, note_num, velocity, time, bar=0, pos_in_bar=None):
        self.type = event_type      #: MidiEventType.NOTE_ON or MidiEventType.NOTE_OFF
        self.channel = channel      #: MIDI channel 0-15
        self.note_num = note_num    #: MIDI note number 0-127
        self.velocity = velocity    #: MIDI velocity 0-127
        self.time = time            #: In ticks since tick 0
        self.bar = bar              #: 1-based bar number, 0 until quantized
        self.pos_in_bar = pos_in_bar if pos_in_bar is not None else RationalTime(0)  #: Fraction of the bar

    @property
    def is_note_on(self):
        return self.type == MidiEventType.NOTE_ON

    @property
    def position(self):
        return ScorePosition(self.bar, self.pos_in_bar)

    def __eq__(self, other):
        """ Two events are equal when their raw MIDI content and tick are the same """
        if not isinstance(other, NoteEvent):
            return NotImplemented
        return (self.type, self.channel, self.note_num, self.velocity, self.time) \
            == (other.type, other.channel, other.note_num, other.velocity, other.time)

    def __str__(self):
        return "%-8s ch=%2d  pit=%-4s vel=%3d  t=%6d  bar=%03d pos=%s" \
               % (self.type.name, self.channel, pitch_to_note_name(self.note_num), self.velocity,
                  self.time, self.bar, self.pos_in_bar)


def sort_note_events(evt):
    """ Sort key for note events: time, then note-off before note-on """
    return (evt.time, 0 if evt.type == MidiEventType.NOTE_OFF else 1)


class MidiChartBase:
    @classmethod
    def cts_type(cls):
        return 'MidiChartBase'

    def __init__(self):
        self._options = {}

    def get_option(self, arg, default=None):
        """
        Get an option

        :param arg: option name
        :type arg: str
        :param default: default value
        :type default: type of option
        :return: value of option
        :rtype: option type
        """
        if arg in self._options:
            return self._options[arg]
        return default

    def get_options(self):
        """
        Get a dictionary of all current options

        :return: options
        :rtype: dict
        """
        return self._options

    def set_options(self, **kwargs):
        """
        Set options.  All option keywords are converted to lowercase.

        :param kwargs: options
        :type kwargs: keyword options
        """
        for op, val in kwargs.items():
            self._options[op.lower()] = val


class MidiChartIO(MidiChartBase):
    @classmethod
    def cts_type(cls):
        return 'IO'

    def __init__(self):
        MidiChartBase.__init__(self)

    def to_bin(self, midi_song, note_format, **kwargs):
        """
        Outputs a song into the desired format (which may be ASCII text)

        :param midi_song: decoded MIDI file
        :type midi_song: midi.MidiReader
        :param note_format: lane and note type configuration
        :type note_format: score.NoteFormat
        :param kwargs: Keyword options for the particular I/O class
        :return: binary
        :rtype: either str or bytearray, depending on the output
        """
        raise NotImplementedError("Not implemented for %s" % self.cts_type())

    def to_file(self, midi_song, filename, note_format, **kwargs):
        """
        Writes a song to a file

        :param midi_song: decoded MIDI file
        :type midi_song: midi.MidiReader
        :param filename: Name of output file
        :type filename: str
        :param note_format: lane and note type configuration
        :type note_format: score.NoteFormat
        :param kwargs: Keyword options for the particular I/O class
        :return: True on success
        :rtype: bool
        """
        raise NotImplementedError("Not implemented for %s" % self.cts_type())


# --------------------------------------------------------------------------------------
#
#  Utility functions
#
# --------------------------------------------------------------------------------------


def pitch_to_note_name(note_num, octave_offset=0):
    """
    Gets note name for a given MIDI pitch

    :param note_num: a midi note number
    :type note_num: int
    :param octave_offset: value that shifts one or more octaves up or down
    :type octave_offset: int
    :return: string representation of note and octave
    :rtype: str
    """
    if not 0 <= note_num <= 127:
        raise MidiChartValueError("Illegal note number %d" % note_num)
    octave = (note_num // 12) + octave_offset - 1
    pitch = note_num % 12
    return "%s%d" % (constants.PITCHES[pitch], octave)


# Regular expression for matching note names
note_name_format = re.compile('^([A-G])(#|##|b|bb)?(-{0,1}[0-9])$')

def note_name_to_pitch(note_name, octave_offset=0):
    """
    Returns MIDI note number for a named pitch.  C4 = 60
    Note names are case-insensitive for the letter, so 'c#3' and 'C#3' are the same pitch.

    :param note_name: A note name as a string, e.g. C#4
    :type note_name: str
    :param octave_offset: Octave offset
    :type octave_offset: int
    :return: Midi note number
    :rtype: int
    """
    note_name = note_name.strip()
    if note_name:
        note_name = note_name[0].upper() + note_name[1:]
    m = note_name_format.match(note_name)
    if m is None:
        raise MidiChartValueError('Illegal note name: "%s"' % note_name)
    letter = m.group(1)
    accidentals = m.group(2)
    octave = int(m.group(3)) - octave_offset + 1
    note_num = constants.PITCHES.index(letter) + 12 * octave
    if accidentals is not None:
        note_num += accidentals.count('#')
        note_num -= accidentals.count('b')
    if not 0 <= note_num <= 127:
        raise MidiChartValueError('Note name out of MIDI range: "%s"' % note_name)
    return note_num

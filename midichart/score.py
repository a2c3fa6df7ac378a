# Score encoding
#
# Score rows look like
#
#     0:020:0000100000000000
#
# lane 0, bar 20, and one row character per subdivision of the bar.  '0' is an empty subdivision; any
# other character is chr(ord('0') + note type + (channel << 3)).  The row is as short as possible: its
# length is the lcm of the position denominators of the notes in that lane and bar.

import enum
import logging
import functools
import collections
from dataclasses import dataclass, field
from typing import Callable, List, Optional
from midichart.base import *
from midichart import constants
from midichart.rational import RationalTime, lcm

logger = logging.getLogger(__name__)


class NoteType(enum.IntEnum):
    NONE = 0
    HIT = 1
    HOLD_BEGIN = 2
    HOLD_END = 3
    ACCENT_HIT = 4


class Diagnostic(enum.Flag):
    """
    Problems found while encoding.  Combine with |; DEVIATED_NOTES is a warning, the rest are errors.
    """
    NONE = 0
    CONCURRENT_NOTES = 0b00001  #: Two notes at the same position in one lane
    DEVIATED_NOTES = 0b00100    #: Notes whose pitch is not assigned to any lane
    LONG_LINES = 0b01000        #: Rows longer than the allowed line length
    TOO_MANY_PARALLELS = 0b10000  #: More simultaneous notes than the parallel limit


DIAGNOSTIC_ERRORS = Diagnostic.CONCURRENT_NOTES | Diagnostic.LONG_LINES | Diagnostic.TOO_MANY_PARALLELS

ScoreNote = collections.namedtuple('ScoreNote', ['note_type', 'event'])
ScoreLine = collections.namedtuple('ScoreLine', ['lane', 'bar', 'length'])


@dataclass
class NoteFormat:
    """
    Encoder configuration.  Lane n receives the notes whose pitch is lane_allocation[n].
    """
    lane_allocation: List[int] = field(default_factory=list)
    hold_min_length: RationalTime = field(default_factory=lambda: RationalTime(1, 1))  #: In bars
    allowed_line_length: int = constants.DEFAULT_ALLOWED_LINE_LENGTH
    parallels_limit: Optional[int] = None
    accent_decider: Optional[Callable[[NoteEvent], bool]] = None

    @classmethod
    def from_note_names(cls, note_names, octave_offset=0, **kwargs):
        """
        Builds a note format from note names such as 'C3' or 'D#3', one per lane.

        :param note_names: note names, leftmost lane first
        :type note_names: list of str
        :param octave_offset: octave offset for the note names
        :type octave_offset: int
        :return: note format
        :rtype: NoteFormat
        """
        return cls(lane_allocation=[note_name_to_pitch(n, octave_offset) for n in note_names], **kwargs)

    def select_lane(self, note_num):
        """
        :return: lane for the pitch, or None if the pitch has no lane
        :rtype: int
        """
        try:
            return self.lane_allocation.index(note_num)
        except ValueError:
            return None


class NoteAggregate:
    """ Counts of encoded notes in one lane """

    def __init__(self):
        self.hit = 0
        self.accent_hit = 0
        self.hold = 0

    def increment(self, note_type):
        if note_type == NoteType.HIT:
            self.hit += 1
        elif note_type == NoteType.ACCENT_HIT:
            self.accent_hit += 1
        elif note_type == NoteType.HOLD_END:
            self.hold += 1

    @property
    def total(self):
        return self.hit + self.accent_hit + self.hold


@dataclass
class EncodeResult:
    text: str = ''
    diagnostics: Diagnostic = Diagnostic.NONE
    lines: List[str] = field(default_factory=list)

    @property
    def ok(self):
        return not (self.diagnostics & DIAGNOSTIC_ERRORS)


def note_symbol(score_note):
    """
    Row character for a note: the note type, with the channel folded into the upper bits.

    :param score_note: classified note
    :type score_note: ScoreNote
    :return: one character
    :rtype: str
    """
    return chr(ord('0') + int(score_note.note_type) + (score_note.event.channel << 3))


def note_length(begin, end):
    """
    Distance in bars between two quantized events.

    :rtype: RationalTime
    """
    return (end.bar - begin.bar) + (end.pos_in_bar - begin.pos_in_bar)


class ScoreEncoder:
    """
    Encodes the quantized note events of one track into score rows.

    Encoding never stops at a problem.  Every problem is recorded in one of the lists below and flagged
    in the returned diagnostics, and the score is still produced for every note.
    """

    def __init__(self):
        self.clear()

    def clear(self):
        self.concurrent_notes = []  #: Notes that landed on an already occupied row position
        self.deviated_notes = []    #: Notes whose pitch has no lane
        self.parallel_notes = []    #: Notes in groups larger than the parallel limit
        self.long_lines = []        #: ScoreLine for every row longer than allowed
        self.note_aggregates = []   #: NoteAggregate per lane

    def aggregate(self, lane):
        return self.note_aggregates[lane]

    def write(self, stream, note_format, note_events):
        """
        Encodes a track and writes the rows to a text stream.

        :return: encoding result
        :rtype: EncodeResult
        """
        result = self.encode(note_format, note_events)
        stream.write(result.text)
        return result

    def encode(self, note_format, note_events):
        """
        Encodes the note events of a track.

        :param note_format: lane allocation and note type rules
        :type note_format: NoteFormat
        :param note_events: quantized note events of one track
        :type note_events: list of NoteEvent
        :return: score rows and diagnostics
        :rtype: EncodeResult
        """
        self.clear()
        n_lanes = len(note_format.lane_allocation)
        self.note_aggregates = [NoteAggregate() for _ in range(n_lanes)]
        diagnostics = Diagnostic.NONE

        lanes = [[] for _ in range(n_lanes)]
        for evt in note_events:
            lane = note_format.select_lane(evt.note_num)
            if lane is None:
                self.deviated_notes.append(evt)
                if evt.is_note_on:
                    diagnostics |= Diagnostic.DEVIATED_NOTES
            else:
                lanes[lane].append(evt)

        if note_format.parallels_limit is not None:
            diagnostics |= self.check_parallels(lanes, note_format.parallels_limit)

        cells = collections.defaultdict(list)
        for lane, lane_events in enumerate(lanes):
            lane_events.sort(key=sort_note_events)
            for note in self.classify_lane(lane_events, note_format):
                self.note_aggregates[lane].increment(note.note_type)
                cells[(note.event.bar, lane)].append(note)

        lines = []
        for bar, lane in sorted(cells):
            row, cell_diagnostics = self.create_row(lane, bar, cells[(bar, lane)], note_format)
            diagnostics |= cell_diagnostics
            lines.append("%d:%0*d:%s" % (lane, constants.BAR_DIGITS, bar, row))

        if diagnostics != Diagnostic.NONE:
            logger.info("Score encoded with %s", diagnostics)
        return EncodeResult(''.join(line + '\n' for line in lines), diagnostics, lines)

    def check_parallels(self, lanes, limit):
        """
        Finds note-ons that start at the same tick in more than limit lanes.
        """
        by_time = collections.defaultdict(list)
        for lane_events in lanes:
            for evt in lane_events:
                if evt.is_note_on:
                    by_time[evt.time].append(evt)

        diagnostics = Diagnostic.NONE
        for t in sorted(by_time):
            if len(by_time[t]) > limit:
                logger.debug("%d parallel notes at tick %d", len(by_time[t]), t)
                self.parallel_notes.extend(by_time[t])
                diagnostics |= Diagnostic.TOO_MANY_PARALLELS
        return diagnostics

    def classify_lane(self, lane_events, note_format):
        """
        Classifies the note-ons of one lane.  A note-on whose next event in the lane is at least
        hold_min_length away becomes a hold; that next event is the hold's end and is not classified
        again.  Other note-ons are hits, or accented hits if the accent decider says so.

        :param lane_events: events of one lane, sorted by time
        :type lane_events: list of NoteEvent
        :param note_format: note format
        :type note_format: NoteFormat
        :return: classified notes
        :rtype: list of ScoreNote
        """
        ret_val = []
        hold_end_index = None
        for i, evt in enumerate(lane_events):
            if i == hold_end_index or not evt.is_note_on:
                continue
            if i + 1 < len(lane_events):
                next_evt = lane_events[i + 1]
                if note_length(evt, next_evt) >= note_format.hold_min_length:
                    ret_val.append(ScoreNote(NoteType.HOLD_BEGIN, evt))
                    ret_val.append(ScoreNote(NoteType.HOLD_END, next_evt))
                    hold_end_index = i + 1
                    continue
            if note_format.accent_decider is not None and note_format.accent_decider(evt):
                ret_val.append(ScoreNote(NoteType.ACCENT_HIT, evt))
            else:
                ret_val.append(ScoreNote(NoteType.HIT, evt))
        return ret_val

    def create_row(self, lane, bar, score_notes, note_format):
        """
        Builds the row for one lane in one bar.

        :return: (row string, diagnostics)
        :rtype: tuple of str, Diagnostic
        """
        diagnostics = Diagnostic.NONE
        row_length = functools.reduce(lcm, (n.event.pos_in_bar.denominator for n in score_notes), 1)
        row = ['0'] * row_length

        for note in sorted(score_notes, key=lambda n: n.event.time):
            offset = note.event.pos_in_bar.with_denominator(row_length).numerator
            if row[offset] != '0':
                logger.debug("Concurrent note in lane %d: %s", lane, note.event)
                self.concurrent_notes.append(note.event)
                diagnostics |= Diagnostic.CONCURRENT_NOTES
                continue
            row[offset] = note_symbol(note)

        if row_length > note_format.allowed_line_length:
            logger.debug("Lane %d bar %03d needs %d positions", lane, bar, row_length)
            self.long_lines.append(ScoreLine(lane, bar, row_length))
            diagnostics |= Diagnostic.LONG_LINES
        return ''.join(row), diagnostics

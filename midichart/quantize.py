# Bar and position-in-bar calculation
#

import logging
from midichart.base import *
from midichart.rational import RationalTime

logger = logging.getLogger(__name__)


class TimeQuantizer:
    """
    Converts absolute MIDI ticks into (bar, position-in-bar) score coordinates.

    Bars are counted from 1.  The length of each bar comes from the time signature active at the start
    of the bar, and the position within the bar is an exact fraction of that length.  Without any time
    signature the coordinates degenerate to bar 0, position 0/1.
    """

    def __init__(self, ppq, time_signature_events):
        """
        :param ppq: ticks per quarter note
        :type ppq: int
        :param time_signature_events: time signature changes, ordered by time
        :type time_signature_events: list of TimeSignatureEvent
        """
        if ppq <= 0:
            raise MidiChartValueError("Illegal ppq %d" % ppq)
        self.ppq = ppq
        self.time_signature_events = sorted(time_signature_events, key=lambda e: e.time)

    def get_active_beat(self, time_in_ticks):
        """
        Gets the time signature fraction active at a given time.  Before the first time signature
        change the first one applies.

        :param time_in_ticks: Time in MIDI ticks
        :type time_in_ticks: int
        :return: time signature as a fraction (numerator = beats per bar)
        :rtype: RationalTime
        """
        active = self.time_signature_events[0].beat
        for ts in self.time_signature_events:
            if ts.time > time_in_ticks:
                break
            active = ts.beat
        return active

    def bar_length(self, time_in_ticks):
        """
        Length, in ticks, of a bar starting at time_in_ticks.

        :param time_in_ticks: start of the bar in MIDI ticks
        :type time_in_ticks: int
        :return: bar length in ticks
        :rtype: int
        """
        beat = self.get_active_beat(time_in_ticks)
        length = 4 * self.ppq * beat.numerator // beat.denominator
        if length <= 0:
            raise MidiChartQuantizationError("Time signature %s gives an empty bar" % beat)
        return length

    def position_of(self, time_in_ticks):
        """
        Returns the bar and position within the bar for a time.

        :param time_in_ticks: Time in MIDI ticks
        :type time_in_ticks: int
        :return: bar number and reduced position in bar
        :rtype: ScorePosition
        """
        if len(self.time_signature_events) == 0:
            return ScorePosition(0, RationalTime(0, 1))

        bar = 1
        bar_start = 0
        length = self.bar_length(bar_start)
        while time_in_ticks - bar_start >= length:
            bar_start += length
            bar += 1
            length = self.bar_length(bar_start)

        pos_in_bar = RationalTime(time_in_ticks - bar_start, length).reduce()
        if pos_in_bar.is_zero():
            pos_in_bar = RationalTime(0, 1)
        return ScorePosition(bar, pos_in_bar)

    def snap(self, time_in_ticks, amplitude, threshold):
        """
        Moves a time by at most amplitude ticks so that its position in the bar has the smallest
        possible denominator.  Times whose position denominator is already no larger than threshold
        are left alone.  Candidates are tried from -amplitude to +amplitude; the first one reaching the
        smallest denominator wins, and only a strictly smaller denominator replaces the current best.

        :param time_in_ticks: Time in MIDI ticks
        :type time_in_ticks: int
        :param amplitude: largest offset to try, in ticks
        :type amplitude: int
        :param threshold: largest denominator that needs no snapping
        :type threshold: int
        :return: (snapped time, its position)
        :rtype: tuple of int, ScorePosition
        """
        best_time = time_in_ticks
        best = self.position_of(time_in_ticks)
        if best.pos_in_bar.denominator <= threshold:
            return (best_time, best)

        for offset in range(-amplitude, amplitude + 1):
            candidate_time = time_in_ticks + offset
            if offset == 0 or candidate_time < 0:
                continue
            candidate = self.position_of(candidate_time)
            if candidate.pos_in_bar.denominator < best.pos_in_bar.denominator:
                best_time, best = candidate_time, candidate

        if best_time != time_in_ticks:
            logger.debug("Snapped tick %d to %d (bar %03d pos %s)", time_in_ticks, best_time, best.bar, best.pos_in_bar)
        return (best_time, best)

    def annotate_notes(self, note_events, amplitude=0, threshold=None, snap_note_off=False):
        """
        Snaps note-on times and attaches bar and position to every note event, in place.

        :param note_events: note events of one track
        :type note_events: list of NoteEvent
        :param amplitude: snapping amplitude in ticks; 0 disables snapping
        :type amplitude: int
        :param threshold: largest position denominator left alone by snapping
        :type threshold: int
        :param snap_note_off: also snap note-off times
        :type snap_note_off: bool
        """
        for n in note_events:
            if amplitude > 0 and threshold is not None and (n.is_note_on or snap_note_off):
                n.time, (n.bar, n.pos_in_bar) = self.snap(n.time, amplitude, threshold)
            else:
                n.bar, n.pos_in_bar = self.position_of(n.time)

    def annotate_tempos(self, tempo_events):
        """
        :param tempo_events: tempo changes
        :type tempo_events: list of TempoEvent
        :return: tempo changes with bar and position filled in
        :rtype: list of TempoEvent
        """
        ret_val = []
        for e in tempo_events:
            bar, pos_in_bar = self.position_of(e.time)
            ret_val.append(TempoEvent(e.time, bar, pos_in_bar, e.bpm))
        return ret_val

    def annotate_time_signatures(self, time_signature_events):
        return [TimeSignatureEvent(e.time, self.position_of(e.time).bar, e.beat) for e in time_signature_events]

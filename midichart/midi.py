import io
import enum
import logging
from dataclasses import dataclass
import mido
from midichart.base import *
from midichart import constants
from midichart.byte_util import big_endian_int, read_variable_length, read_binary_file
from midichart.quantize import TimeQuantizer
from midichart.rational import RationalTime

logger = logging.getLogger(__name__)


def decode_name(data):
    """
    Decodes a track or instrument name.  SMF does not specify an encoding; UTF-8 is tried first, and
    anything that is not valid UTF-8 is read as Latin-1 so that every byte maps to a character.

    :param data: name bytes from the meta event
    :type data: bytes
    :return: name
    :rtype: str
    """
    try:
        return data.decode('utf-8')
    except UnicodeDecodeError:
        return data.decode('latin-1')


class Status(enum.Enum):
    """
    Result of reading a MIDI file.  Negative values are fatal.
    """
    CANNOT_OPEN_FILE = -1
    INVALID_ARG = -2
    UNSUPPORTED_FORMAT = -4
    INVALID_FILE = -5
    OK = 1
    NO_EMBEDDED_TIME_SIGNATURE = 2  #: Soft: everything was read but bars cannot be computed

    @property
    def succeeded(self):
        return self.value > 0


@dataclass
class ReaderConfig:
    adjustment_amplitude: int = constants.DEFAULT_ADJUSTMENT_AMPLITUDE  #: Snap search range in ticks
    snap_threshold: int = constants.DEFAULT_SNAP_THRESHOLD  #: Positions with larger denominators get snapped
    snap_note_off: bool = False  #: Snap note-off events as well as note-ons
    control_change_quirk: bool = True  #: Skip a byte > 0x7F that follows a control change


class MidiReader:
    """
    Reads a Standard MIDI File (format 0 or 1) into note events, tempo changes, time signature changes
    and track names.

    Every note, tempo and time signature event is given its bar and position in the bar once all tracks
    have been read.  Note-on times are snapped toward cleaner positions first, as configured by
    ReaderConfig.

    Running status is not supported; files that rely on it are rejected as INVALID_FILE.
    """

    def __init__(self, filename=None, config=None):
        self.config = config if config is not None else ReaderConfig()
        self.close()
        if filename is not None:
            self.open_and_read(filename, config)

    def close(self):
        """
        Clear everything read so far
        """
        self.header = MidiHeader(0, 0, 0)
        self.title = ''                    #: Music title
        self.note_events = []              #: List of note event lists, one per track
        self.time_signature_events = []    #: Time signature changes from all tracks, sorted by time
        self.tempo_events = []             #: Tempo changes from all tracks, sorted by time
        self.tracks = []                   #: Named tracks (excluding the title track)
        self.channels = []                 #: Channels used by note-on events, in order of appearance

    def open_and_read(self, filename, config=None):
        """
        Open and read a MIDI file.

        :param filename: MIDI filename
        :type filename: str
        :param config: reader configuration; the reader's own configuration if None
        :type config: ReaderConfig
        :return: status of the read
        :rtype: Status
        """
        if not filename:
            self.close()
            return Status.INVALID_ARG
        try:
            data = read_binary_file(filename)
        except OSError as e:
            logger.warning("Cannot open %s: %s", filename, e)
            data = None
        if data is None:
            self.close()
            return Status.CANNOT_OPEN_FILE
        logger.debug("Read %d bytes from %s", len(data), filename)
        return self.read_bytes(data, config)

    def read_bytes(self, data, config=None):
        """
        Read a MIDI file already held in memory.

        :param data: the complete file
        :type data: bytes
        :param config: reader configuration; the reader's own configuration if None
        :type config: ReaderConfig
        :return: status of the read
        :rtype: Status
        """
        if config is not None:
            self.config = config
        self.close()
        try:
            self._read_all(io.BytesIO(data))
        except MidiChartFileError as e:
            logger.warning("MIDI read failed with %s: %s", e.status.name, e)
            self.close()
            return e.status

        if len(self.time_signature_events) == 0:
            logger.info("No time signature embedded in MIDI file")
            return Status.NO_EMBEDDED_TIME_SIGNATURE
        return Status.OK

    def get_note_events(self, track_num):
        """
        Gets the note events of a track.

        :param track_num: 1-based track number
        :type track_num: int
        :return: note events, or an empty list if there is no such track
        :rtype: list of NoteEvent
        """
        if not 1 <= track_num <= len(self.note_events):
            return []
        return self.note_events[track_num - 1]

    def find_track(self, name):
        """
        Finds the first track with the given name.

        :param name: track name
        :type name: str
        :return: 1-based track number, or None
        :rtype: int
        """
        return next((t.index for t in self.tracks if t.name == name), None)

    # --------------------------------------------------------------------------------------
    #  Decoding
    # --------------------------------------------------------------------------------------

    def _read_all(self, stream):
        self.header = self._read_header(stream)
        logger.debug("MIDI format %d, %d tracks, ppq %d", *self.header)

        for track_num in range(1, self.header.num_tracks + 1):
            self.note_events.append(self._read_track(stream, track_num))

        self.time_signature_events.sort(key=lambda e: e.time)
        self.tempo_events.sort(key=lambda e: e.time)

        quantizer = TimeQuantizer(self.header.ppq, self.time_signature_events)
        for events in self.note_events:
            quantizer.annotate_notes(events, self.config.adjustment_amplitude, self.config.snap_threshold,
                                     self.config.snap_note_off)
            events.sort(key=sort_note_events)
        self.tempo_events = quantizer.annotate_tempos(self.tempo_events)
        self.time_signature_events = quantizer.annotate_time_signatures(self.time_signature_events)

    @staticmethod
    def _read_exactly(stream, n_bytes):
        data = stream.read(n_bytes)
        if len(data) != n_bytes:
            raise MidiChartFileError(Status.INVALID_FILE, "Unexpected end of data")
        return data

    def _read_header(self, stream):
        chunk = self._read_exactly(stream, 4)
        if chunk != constants.HEADER_CHUNK:
            raise MidiChartFileError(Status.INVALID_FILE, "Missing %s header chunk" % constants.HEADER_CHUNK)
        chunk_length = big_endian_int(self._read_exactly(stream, 4))
        if chunk_length < constants.HEADER_LENGTH:
            raise MidiChartFileError(Status.INVALID_FILE, "Header chunk too short (%d)" % chunk_length)
        body = self._read_exactly(stream, chunk_length)

        midi_format = big_endian_int(body[0:2])
        num_tracks = big_endian_int(body[2:4])
        division = big_endian_int(body[4:6])
        if midi_format == 2:
            raise MidiChartFileError(Status.UNSUPPORTED_FORMAT, "SMF format 2 is unsupported")
        if midi_format > 2:
            raise MidiChartFileError(Status.INVALID_FILE, "Unknown SMF format %d" % midi_format)
        if division & 0x8000:
            raise MidiChartFileError(Status.UNSUPPORTED_FORMAT, "SMPTE time division is unsupported")
        if division == 0:
            raise MidiChartFileError(Status.INVALID_FILE, "Zero ticks per quarter note")
        return MidiHeader(midi_format, num_tracks, division)

    def _read_track(self, stream, track_num):
        """
        Reads one MTrk chunk.  Meta events update the reader's tempo, time signature and naming state;
        note events are returned.
        """
        chunk = self._read_exactly(stream, 4)
        if chunk != constants.TRACK_CHUNK:
            raise MidiChartFileError(Status.INVALID_FILE, "Track %d: bad chunk tag %r" % (track_num, chunk))
        chunk_length = big_endian_int(self._read_exactly(stream, 4))
        track = io.BytesIO(self._read_exactly(stream, chunk_length))

        notes = []
        current_time = 0
        while True:
            try:
                delta, _ = read_variable_length(track)
            except EOFError:
                raise MidiChartFileError(Status.INVALID_FILE, "Track %d ended without an end-of-track event"
                                         % track_num)
            current_time += delta
            status = self._read_exactly(track, 1)[0]

            if status == constants.META_EVENT:
                if not self._read_meta(track, track_num, current_time):
                    break
            elif status in (constants.SYSEX, constants.SYSEX_ESCAPE):
                length = self._read_length(track)
                self._read_exactly(track, length)
            elif status < 0x80:
                raise MidiChartFileError(Status.INVALID_FILE, "Track %d: data byte 0x%02X where a status byte "
                                         "was expected (running status is unsupported)" % (track_num, status))
            elif status >= 0xF0:
                raise MidiChartFileError(Status.INVALID_FILE, "Track %d: unexpected system message 0x%02X"
                                         % (track_num, status))
            else:
                evt = self._read_channel_message(track, status, current_time)
                if evt is not None:
                    notes.append(evt)
        return notes

    def _read_length(self, track):
        try:
            length, _ = read_variable_length(track)
        except EOFError:
            raise MidiChartFileError(Status.INVALID_FILE, "Truncated variable-length value")
        return length

    def _read_data_bytes(self, track, n_bytes):
        data = self._read_exactly(track, n_bytes)
        if any(b > 0x7F for b in data):
            raise MidiChartFileError(Status.INVALID_FILE, "Illegal MIDI data byte in %s" % data.hex())
        return data

    def _read_channel_message(self, track, status, current_time):
        message_type = status >> 4
        channel = status & 0x0F

        if message_type in (constants.NOTE_ON, constants.NOTE_OFF):
            note_num, velocity = self._read_data_bytes(track, 2)
            event_type = MidiEventType(message_type)
            # Some MIDI devices use a note_on with velocity of 0 to turn notes off.
            if event_type == MidiEventType.NOTE_ON and velocity == 0:
                event_type = MidiEventType.NOTE_OFF
            if event_type == MidiEventType.NOTE_ON and channel not in self.channels:
                self.channels.append(channel)
            return NoteEvent(event_type, channel, note_num, velocity, current_time)

        self._read_exactly(track, constants.CHANNEL_MESSAGE_LENGTHS[message_type])
        if message_type == constants.CONTROL_CHANGE and self.config.control_change_quirk:
            extra = track.read(1)
            if len(extra) == 1 and extra[0] <= 0x7F:
                track.seek(-1, io.SEEK_CUR)
        return None

    def _read_meta(self, track, track_num, current_time):
        """
        Reads a meta event.

        :return: False at the end of the track
        :rtype: bool
        """
        event_type = self._read_exactly(track, 1)[0]
        length = self._read_length(track)
        data = self._read_exactly(track, length)

        if event_type == constants.META_TRACK_END:
            return False

        elif event_type == constants.META_INST_NAME:
            name = decode_name(data)
            if self.header.format == 0:
                self.title = name
            elif track_num == 1:
                self.title = name
            else:
                self.tracks = [t for t in self.tracks if t.index != track_num]
                self.tracks.append(Track(track_num, name))

        elif event_type == constants.META_TEMPO:
            if length < 3:
                raise MidiChartFileError(Status.INVALID_FILE, "Truncated tempo event")
            usec_per_quarter = big_endian_int(data[:3])
            if usec_per_quarter == 0:
                raise MidiChartFileError(Status.INVALID_FILE, "Tempo of zero microseconds per quarter note")
            self.tempo_events.append(TempoEvent(current_time, 0, RationalTime(0), mido.tempo2bpm(usec_per_quarter)))

        elif event_type == constants.META_TIME_SIGNATURE:
            if length < 2:
                raise MidiChartFileError(Status.INVALID_FILE, "Truncated time signature event")
            numerator, denominator_exp = data[0], data[1]
            if numerator == 0:
                raise MidiChartFileError(Status.INVALID_FILE, "Time signature with zero beats")
            beat = RationalTime(numerator, 2 ** denominator_exp)
            if 4 * self.header.ppq * beat.numerator // beat.denominator == 0:
                raise MidiChartFileError(Status.INVALID_FILE, "Time signature %s is shorter than a tick" % beat)
            self.time_signature_events.append(TimeSignatureEvent(current_time, 0, beat))

        else:
            logger.debug("Track %d: skipped meta event 0x%02X (%d bytes)", track_num, event_type, length)

        return True

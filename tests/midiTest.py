import io
import os
import tempfile
import unittest
import mido
from parameterized import parameterized

from midichart import testing_tools as tt
from midichart.base import MidiHeader, MidiEventType, Track
from midichart.byte_util import read_variable_length, variable_length_bytes
from midichart.midi import MidiReader, ReaderConfig, Status
from midichart.rational import RationalTime

PPQ = 96


def conductor_track(title='Test Song', numerator=4, denominator=4, bpm=120):
    return [(0, tt.track_name(title)), (0, tt.time_signature(numerator, denominator)), (0, tt.tempo(bpm))]


def short_note(pitch, delta=0, length=48, channel=0):
    return [(delta, tt.note_on(pitch, channel=channel)), (length, tt.note_off(pitch, channel=channel))]


class VariableLengthTestCase(unittest.TestCase):
    @parameterized.expand([
        (b'\x00', 0x00),
        (b'\x40', 0x40),
        (b'\x7F', 0x7F),
        (b'\x81\x00', 0x80),
        (b'\xC0\x00', 0x2000),
        (b'\xFF\x7F', 0x3FFF),
        (b'\x81\x80\x00', 0x4000),
        (b'\xFF\xFF\xFF\x7F', 0x0FFFFFFF),
    ])
    def test_read_variable_length(self, encoded, value):
        self.assertEqual(read_variable_length(io.BytesIO(encoded)), (value, len(encoded)))

    def test_stops_at_last_byte(self):
        stream = io.BytesIO(b'\x81\x00\x90')
        self.assertEqual(read_variable_length(stream), (0x80, 2))
        self.assertEqual(stream.read(), b'\x90')

    def test_truncated(self):
        with self.assertRaises(EOFError):
            read_variable_length(io.BytesIO(b'\x81\x80'))

    def test_encode(self):
        self.assertEqual(variable_length_bytes(0), bytearray(b'\x00'))
        self.assertEqual(variable_length_bytes(0x80), bytearray(b'\x81\x00'))
        self.assertEqual(variable_length_bytes(0x0FFFFFFF), bytearray(b'\xFF\xFF\xFF\x7F'))


class MidiReaderTestCase(unittest.TestCase):
    def read(self, data, config=None):
        reader = MidiReader()
        status = reader.read_bytes(data, config)
        return reader, status

    def test_single_note(self):
        data = tt.smf_bytes([conductor_track(), [(0, tt.track_name('1'))] + short_note(60)], ppq=PPQ)
        reader, status = self.read(data)

        self.assertEqual(status, Status.OK)
        self.assertEqual(reader.header, MidiHeader(1, 2, PPQ))
        self.assertEqual(reader.title, 'Test Song')
        self.assertEqual(reader.tracks, [Track(2, '1')])
        self.assertEqual(reader.get_note_events(1), [])

        on, off = reader.get_note_events(2)
        self.assertEqual(on.type, MidiEventType.NOTE_ON)
        self.assertEqual((on.channel, on.note_num, on.velocity, on.time), (0, 60, 100, 0))
        self.assertEqual(on.bar, 1)
        self.assertEqual((on.pos_in_bar.numerator, on.pos_in_bar.denominator), (0, 1))
        self.assertEqual(off.type, MidiEventType.NOTE_OFF)
        self.assertEqual(off.time, 48)
        self.assertEqual(off.bar, 1)
        self.assertEqual(off.pos_in_bar, RationalTime(1, 8))

        self.assertEqual(len(reader.tempo_events), 1)
        self.assertAlmostEqual(reader.tempo_events[0].bpm, 120.0, 3)
        self.assertEqual(reader.tempo_events[0].bar, 1)
        self.assertEqual(str(reader.tempo_events[0].pos_in_bar), '0/1')
        self.assertEqual(len(reader.time_signature_events), 1)
        self.assertEqual(str(reader.time_signature_events[0].beat), '4/4')
        self.assertEqual(reader.time_signature_events[0].bar, 1)

    def test_track_lookup(self):
        data = tt.smf_bytes([conductor_track(),
                             [(0, tt.track_name('1'))] + short_note(60),
                             [(0, tt.track_name('2'))] + short_note(62)], ppq=PPQ)
        reader, status = self.read(data)
        self.assertEqual(status, Status.OK)
        self.assertEqual(reader.tracks, [Track(2, '1'), Track(3, '2')])
        self.assertEqual(reader.find_track('2'), 3)
        self.assertIsNone(reader.find_track('3'))
        self.assertEqual(reader.get_note_events(0), [])
        self.assertEqual(reader.get_note_events(4), [])

    def test_format_zero_name_is_title(self):
        events = conductor_track(title='Solo') + short_note(60)
        reader, status = self.read(tt.smf_bytes([events], midi_format=0, ppq=PPQ))
        self.assertEqual(status, Status.OK)
        self.assertEqual(reader.header.format, 0)
        self.assertEqual(reader.title, 'Solo')
        self.assertEqual(reader.tracks, [])
        self.assertEqual(len(reader.get_note_events(1)), 2)

    def test_zero_velocity_note_on_is_note_off(self):
        events = conductor_track() + [(0, tt.note_on(60)), (24, tt.note_on(60, velocity=0))]
        reader, status = self.read(tt.smf_bytes([events], midi_format=0, ppq=PPQ))
        on, off = reader.get_note_events(1)
        self.assertEqual(on.type, MidiEventType.NOTE_ON)
        self.assertEqual(off.type, MidiEventType.NOTE_OFF)
        self.assertEqual(off.time, 24)

    def test_channels(self):
        events = conductor_track() + short_note(60, channel=3) + short_note(62, channel=1)
        reader, status = self.read(tt.smf_bytes([events], midi_format=0, ppq=PPQ))
        self.assertEqual(reader.channels, [3, 1])
        self.assertEqual(reader.get_note_events(1)[0].channel, 3)

    def test_skipped_messages(self):
        events = conductor_track() + [
            (0, mido.Message('program_change', program=5)),
            (0, mido.Message('control_change', control=7, value=100)),
            (0, mido.Message('pitchwheel', pitch=1000)),
            (0, mido.Message('aftertouch', value=20)),
            (0, mido.Message('polytouch', note=60, value=20)),
            (0, b'\xF0\x03\x01\x02\xF7'),
            (0, mido.MetaMessage('text', text='hello')),
            (0, mido.MetaMessage('marker', text='A')),
        ] + short_note(60)
        reader, status = self.read(tt.smf_bytes([events], midi_format=0, ppq=PPQ))
        self.assertEqual(status, Status.OK)
        self.assertEqual([(e.type, e.time) for e in reader.get_note_events(1)],
                         [(MidiEventType.NOTE_ON, 0), (MidiEventType.NOTE_OFF, 48)])

    def test_control_change_quirk(self):
        # The byte after a control change's data is swallowed when it has its high bit set
        events = conductor_track() + [
            (0, mido.Message('control_change', control=7, value=100)),
            (128, tt.note_on(60)),
        ]
        data = tt.smf_bytes([events], midi_format=0, ppq=PPQ)

        reader, status = self.read(data)
        self.assertEqual(status, Status.OK)
        self.assertEqual(reader.get_note_events(1)[0].time, 0)

        reader, status = self.read(data, ReaderConfig(control_change_quirk=False))
        self.assertEqual(status, Status.OK)
        self.assertEqual(reader.get_note_events(1)[0].time, 128)

    def test_time_signature_changes(self):
        conductor = conductor_track() + [(4 * PPQ, tt.time_signature(3, 4))]
        notes = short_note(60, delta=7 * PPQ) + short_note(62, delta=PPQ // 2)
        reader, status = self.read(tt.smf_bytes([conductor, notes], ppq=PPQ))
        self.assertEqual(status, Status.OK)
        self.assertEqual([(ts.bar, str(ts.beat)) for ts in reader.time_signature_events],
                         [(1, '4/4'), (2, '3/4')])
        on_1, off_1, on_2, off_2 = reader.get_note_events(2)
        # bar 2 is 3 quarters long, so tick 672 starts bar 3
        self.assertEqual((on_1.bar, on_1.pos_in_bar), (3, RationalTime(0, 1)))
        self.assertEqual((on_2.time, on_2.bar, on_2.pos_in_bar), (768, 3, RationalTime(1, 3)))

    def test_events_sorted_after_snapping(self):
        # Note-on one tick early is snapped onto the beat
        notes = [(PPQ - 1, tt.note_on(60)), (48, tt.note_off(60))]
        reader, status = self.read(tt.smf_bytes([conductor_track(), notes], ppq=PPQ))
        on, off = reader.get_note_events(2)
        self.assertEqual(on.time, PPQ)
        self.assertEqual(on.pos_in_bar, RationalTime(1, 4))
        # Note-offs are not snapped by default
        self.assertEqual(off.time, 2 * PPQ - 1 - PPQ // 2)

    def test_snap_disabled(self):
        notes = [(PPQ - 1, tt.note_on(60)), (48, tt.note_off(60))]
        data = tt.smf_bytes([conductor_track(), notes], ppq=PPQ)
        reader, status = self.read(data, ReaderConfig(adjustment_amplitude=0))
        self.assertEqual(reader.get_note_events(2)[0].time, PPQ - 1)
        self.assertEqual(reader.get_note_events(2)[0].pos_in_bar, RationalTime(PPQ - 1, 4 * PPQ))

    def test_no_time_signature(self):
        events = [(0, tt.tempo(120))] + short_note(60, delta=PPQ)
        reader, status = self.read(tt.smf_bytes([events], midi_format=0, ppq=PPQ))
        self.assertEqual(status, Status.NO_EMBEDDED_TIME_SIGNATURE)
        self.assertTrue(status.succeeded)
        on, off = reader.get_note_events(1)
        self.assertEqual((on.bar, on.pos_in_bar), (0, RationalTime(0, 1)))
        self.assertEqual(on.time, PPQ)
        self.assertEqual(reader.tempo_events[0].bar, 0)

    @parameterized.expand([
        ('utf8', b'\xE6\x9B\xB2', '曲'),
        ('latin1', b'Caf\xE9', 'Caf\xe9'),
        ('ascii', b'Song', 'Song'),
    ])
    def test_name_encoding(self, _, raw_name, expected):
        title = b'\xFF\x03' + bytes([len(raw_name)]) + raw_name
        conductor = [(0, title), (0, tt.time_signature(4, 4)), (0, tt.tempo(120))]
        notes = [(0, b'\xFF\x03' + bytes([len(raw_name)]) + raw_name)] + short_note(60)
        reader, status = self.read(tt.smf_bytes([conductor, notes], ppq=PPQ))
        self.assertEqual(status, Status.OK)
        self.assertEqual(reader.title, expected)
        self.assertEqual(reader.find_track(expected), 2)

    def test_tempo_uses_three_bytes(self):
        events = [(0, tt.time_signature(4, 4)), (0, b'\xFF\x51\x04\x07\xA1\x20\x00')] + short_note(60)
        reader, status = self.read(tt.smf_bytes([events], midi_format=0, ppq=PPQ))
        self.assertEqual(status, Status.OK)
        self.assertEqual(reader.tempo_events[0].bpm, 120.0)


class MidiReaderFailureTestCase(unittest.TestCase):
    def assert_fails(self, data, expected_status):
        reader = MidiReader()
        status = reader.read_bytes(data)
        self.assertEqual(status, expected_status)
        self.assertFalse(status.succeeded)
        # No partial data survives a failed read
        self.assertEqual(reader.header, MidiHeader(0, 0, 0))
        self.assertEqual(reader.note_events, [])
        self.assertEqual(reader.tempo_events, [])
        self.assertEqual(reader.time_signature_events, [])

    def test_format_2(self):
        self.assert_fails(tt.header_chunk(2, 1, PPQ) + tt.track_chunk(short_note(60)), Status.UNSUPPORTED_FORMAT)

    def test_smpte_division(self):
        self.assert_fails(tt.header_chunk(1, 1, 0xE728) + tt.track_chunk(short_note(60)), Status.UNSUPPORTED_FORMAT)

    def test_bad_header_tag(self):
        data = tt.smf_bytes([short_note(60)])
        self.assert_fails(b'RIFF' + data[4:], Status.INVALID_FILE)

    def test_bad_track_tag(self):
        data = tt.smf_bytes([conductor_track(), short_note(60)])
        self.assert_fails(data[:14] + b'MTrx' + data[18:], Status.INVALID_FILE)

    def test_missing_track_end(self):
        data = tt.header_chunk(0, 1, PPQ) + tt.track_chunk(conductor_track() + short_note(60), end_of_track=False)
        self.assert_fails(data, Status.INVALID_FILE)

    def test_truncated_file(self):
        data = tt.smf_bytes([conductor_track() + short_note(60)], midi_format=0)
        self.assert_fails(data[:-3], Status.INVALID_FILE)
        self.assert_fails(data[:10], Status.INVALID_FILE)
        self.assert_fails(b'', Status.INVALID_FILE)

    def test_missing_track(self):
        data = tt.header_chunk(1, 2, PPQ) + tt.track_chunk(conductor_track())
        self.assert_fails(data, Status.INVALID_FILE)

    def test_running_status(self):
        events = conductor_track() + [(0, tt.note_on(60)), (48, b'\x3C\x00')]
        self.assert_fails(tt.smf_bytes([events], midi_format=0), Status.INVALID_FILE)

    def test_zero_beat_time_signature(self):
        events = [(0, b'\xFF\x58\x04\x00\x02\x18\x08')] + short_note(60)
        self.assert_fails(tt.smf_bytes([events], midi_format=0), Status.INVALID_FILE)

    def test_sub_tick_time_signature(self):
        # 4/2**20 at 96 ppq gives a bar shorter than one tick
        events = [(0, b'\xFF\x58\x04\x04\x14\x18\x08')] + short_note(60)
        self.assert_fails(tt.smf_bytes([events], midi_format=0, ppq=96), Status.INVALID_FILE)

    def test_truncated_tempo(self):
        events = [(0, tt.time_signature(4, 4)), (0, b'\xFF\x51\x02\x07\xA1')] + short_note(60)
        self.assert_fails(tt.smf_bytes([events], midi_format=0), Status.INVALID_FILE)


class MidiReaderFileTestCase(unittest.TestCase):
    def test_empty_filename(self):
        self.assertEqual(MidiReader().open_and_read(''), Status.INVALID_ARG)

    def test_empty_filename_clears_previous_song(self):
        reader = MidiReader()
        data = tt.smf_bytes([conductor_track(), [(0, tt.track_name('1'))] + short_note(60)], ppq=PPQ)
        self.assertEqual(reader.read_bytes(data), Status.OK)
        self.assertEqual(reader.open_and_read(''), Status.INVALID_ARG)
        self.assertEqual(reader.header, MidiHeader(0, 0, 0))
        self.assertEqual(reader.title, '')
        self.assertEqual(reader.tracks, [])
        self.assertEqual(reader.note_events, [])

    def test_missing_file(self):
        with tempfile.TemporaryDirectory() as tmp_dir:
            self.assertEqual(MidiReader().open_and_read(os.path.join(tmp_dir, 'missing.mid')),
                             Status.CANNOT_OPEN_FILE)
            self.assertEqual(MidiReader().open_and_read(tmp_dir), Status.CANNOT_OPEN_FILE)

    def test_read_file(self):
        data = tt.smf_bytes([conductor_track(), [(0, tt.track_name('1'))] + short_note(60)], ppq=PPQ)
        with tempfile.TemporaryDirectory() as tmp_dir:
            filename = os.path.join(tmp_dir, 'song.mid')
            with open(filename, 'wb') as f:
                f.write(data)
            reader = MidiReader(filename)
            self.assertEqual(reader.title, 'Test Song')
            self.assertEqual(reader.find_track('1'), 2)

            reader.close()
            self.assertEqual(reader.note_events, [])
            self.assertEqual(reader.open_and_read(filename, ReaderConfig(adjustment_amplitude=0)), Status.OK)
            self.assertEqual(reader.config.adjustment_amplitude, 0)


if __name__ == '__main__':
    unittest.main(failfast=False)

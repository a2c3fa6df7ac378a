# Builders for small Standard MIDI Files used by the tests
#
# Events are (delta_ticks, message) pairs where message is a mido Message/MetaMessage or raw bytes.
# mido supplies the message encoding; the chunks are assembled here without running status, which the
# reader does not support.

import mido
from midichart import constants
from midichart.byte_util import big_endian_bytes, variable_length_bytes


def event_bytes(delta, msg):
    if isinstance(msg, (bytes, bytearray)):
        body = bytes(msg)
    else:
        body = bytes(msg.bytes())
    return bytes(variable_length_bytes(delta)) + body


def track_chunk(events, end_of_track=True):
    """
    Builds an MTrk chunk.

    :param events: (delta ticks, message) pairs
    :type events: list of tuple
    :param end_of_track: append an end-of-track meta event
    :type end_of_track: bool
    :return: chunk bytes
    :rtype: bytes
    """
    body = b''.join(event_bytes(delta, msg) for delta, msg in events)
    if end_of_track:
        body += event_bytes(0, mido.MetaMessage('end_of_track'))
    return constants.TRACK_CHUNK + bytes(big_endian_bytes(len(body), 4)) + body


def header_chunk(midi_format, num_tracks, ppq):
    return constants.HEADER_CHUNK + bytes(big_endian_bytes(constants.HEADER_LENGTH, 4)) \
        + bytes(big_endian_bytes(midi_format, 2)) + bytes(big_endian_bytes(num_tracks, 2)) \
        + bytes(big_endian_bytes(ppq, 2))


def smf_bytes(tracks, midi_format=1, ppq=96):
    """
    Builds a complete MIDI file.

    :param tracks: one event list per track
    :type tracks: list of list of tuple
    :return: file contents
    :rtype: bytes
    """
    return header_chunk(midi_format, len(tracks), ppq) + b''.join(track_chunk(t) for t in tracks)


def note_on(note, velocity=100, channel=0):
    return mido.Message('note_on', note=note, velocity=velocity, channel=channel)


def note_off(note, velocity=0, channel=0):
    return mido.Message('note_off', note=note, velocity=velocity, channel=channel)


def time_signature(numerator=4, denominator=4):
    return mido.MetaMessage('time_signature', numerator=numerator, denominator=denominator)


def tempo(bpm=120):
    return mido.MetaMessage('set_tempo', tempo=mido.bpm2tempo(bpm))


def track_name(name):
    return mido.MetaMessage('track_name', name=name)

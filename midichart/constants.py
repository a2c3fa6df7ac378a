# Constants for midichart
#

# Version information.  Update BUILD_VERSION with every significant bugfix;
# update MINOR_VERSION with every feature addition
MAJOR_VERSION = 0
MINOR_VERSION = 1
BUILD_VERSION = 0

MIDICHART_VERSION = f"{MAJOR_VERSION}.{MINOR_VERSION}.{BUILD_VERSION}"

# SMF chunk tags
HEADER_CHUNK = b'MThd'
TRACK_CHUNK = b'MTrk'
HEADER_LENGTH = 6

# Channel message types (upper nibble of the status byte)
NOTE_OFF = 0x8
NOTE_ON = 0x9
KEY_PRESSURE = 0xA
CONTROL_CHANGE = 0xB
PROGRAM_CHANGE = 0xC
CHANNEL_PRESSURE = 0xD
PITCH_BEND = 0xE

# Data bytes that follow each channel message type (control change has an extra quirk)
CHANNEL_MESSAGE_LENGTHS = {
    KEY_PRESSURE: 2,
    CONTROL_CHANGE: 2,
    PROGRAM_CHANGE: 1,
    CHANNEL_PRESSURE: 1,
    PITCH_BEND: 2,
}

# System status bytes
SYSEX = 0xF0
SYSEX_ESCAPE = 0xF7
META_EVENT = 0xFF

# Meta event types
META_INST_NAME = 0x03
META_TRACK_END = 0x2F
META_TEMPO = 0x51
META_TIME_SIGNATURE = 0x58

# Score defaults
DEFAULT_ADJUSTMENT_AMPLITUDE = 2  #: ticks searched on each side of a note-on when snapping
DEFAULT_SNAP_THRESHOLD = 48       #: largest position denominator left alone by snapping
DEFAULT_ALLOWED_LINE_LENGTH = 192
BAR_DIGITS = 3

# Track names that select a difficulty section, in output order
DEFAULT_DIFFICULTIES = {'1': 'easy', '2': 'normal', '3': 'hard'}

PITCHES = ["C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B"]


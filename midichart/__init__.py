
from .rational import RationalTime
from .midi import MidiReader, ReaderConfig, Status
from .quantize import TimeQuantizer
from .score import ScoreEncoder, NoteFormat, NoteType, Diagnostic
from .chart import ChartWriter

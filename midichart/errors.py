'''
Exceptions for the midichart library
'''


class MidiChartException(Exception):
    """
    Generic base class for midichart exceptions
    """
    pass


class MidiChartTypeError(MidiChartException, TypeError):
    """
    Type error
    """
    pass


class MidiChartValueError(MidiChartException, ValueError):
    """
    Value error
    """
    pass


class MidiChartZeroDivisionError(MidiChartException, ZeroDivisionError):
    """
    Zero denominator or division by a zero fraction
    """
    pass


class MidiChartQuantizationError(MidiChartException):
    """
    Quantization error (such as a bar with no length)
    """
    pass


class MidiChartFileError(MidiChartException):
    """
    Structural error while decoding a MIDI file.  Carries the status the reader reports.
    """
    def __init__(self, status, message=''):
        super().__init__(message or status.name)
        self.status = status

# Common byte functions

from midichart.errors import MidiChartValueError


def big_endian_bytes(a_num, min_bytes=2):
    retval = bytearray()
    remaining = a_num
    while remaining != 0:
        retval.append(remaining & 0xFF)
        remaining >>= 8
    while len(retval) < min_bytes:
        retval.append(0)
    return retval[::-1]


def big_endian_int(a_bytearray, signed=False):
    return int.from_bytes(a_bytearray, byteorder='big', signed=signed)


def variable_length_bytes(a_num):
    """
    Encodes a non-negative int as a MIDI variable-length quantity: 7 bits per byte, most significant
    group first, high bit set on every byte except the last.

    :param a_num: value to encode
    :type a_num: int
    :return: encoded bytes
    :rtype: bytearray
    """
    if a_num < 0:
        raise MidiChartValueError("Cannot encode negative variable-length value %d" % a_num)
    retval = bytearray([a_num & 0x7F])
    a_num >>= 7
    while a_num:
        retval.append((a_num & 0x7F) | 0x80)
        a_num >>= 7
    return retval[::-1]


def read_variable_length(stream):
    """
    Reads a MIDI variable-length quantity from a binary stream.

    :param stream: stream positioned at the first byte of the quantity
    :type stream: io.BufferedIOBase
    :return: (value, number of bytes consumed)
    :rtype: tuple of int, int
    :raises EOFError: if the stream ends inside the quantity
    """
    value = 0
    n_bytes = 0
    while True:
        b = stream.read(1)
        if len(b) == 0:
            raise EOFError("Stream ended inside a variable-length quantity")
        n_bytes += 1
        value = (value << 7) | (b[0] & 0x7F)
        if not b[0] & 0x80:
            return (value, n_bytes)


def read_binary_file(path_and_filename):
    try:
        with open(path_and_filename, mode='rb') as in_file:
            return in_file.read()
    except FileNotFoundError:
        return None
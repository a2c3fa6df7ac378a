# Exact fractions for musical time
#
# Positions inside a bar are kept as RationalTime values.  Unlike fractions.Fraction, a RationalTime
# is not reduced automatically: a 4/4 time signature stays 4/4 and a position can be re-expressed over
# any multiple of its denominator.  Reduction only happens when reduce() is called.

from fractions import Fraction
from midichart.errors import MidiChartTypeError, MidiChartValueError, MidiChartZeroDivisionError


def gcd(a, b):
    """
    Greatest common divisor of the magnitudes of a and b.

    Returns 0 when either argument is 0, so callers dividing by the result must check for zero.

    :param a: integer
    :type a: int
    :param b: integer
    :type b: int
    :return: gcd, or 0 if either input is 0
    :rtype: int
    """
    a, b = abs(a), abs(b)
    if a == 0 or b == 0:
        return 0
    while b:
        a, b = b, a % b
    return a


def lcm(a, b):
    """
    Least common multiple, a * b / gcd(a, b).  Returns 0 when either argument is 0.

    :param a: integer
    :type a: int
    :param b: integer
    :type b: int
    :return: lcm
    :rtype: int
    """
    g = gcd(a, b)
    if g == 0:
        return 0
    return abs(a * b) // g


def _to_rational(value):
    if isinstance(value, RationalTime):
        return value
    if isinstance(value, int):
        return RationalTime(value)
    if isinstance(value, Fraction):
        return RationalTime.from_fraction(value)
    return None


def common_denominator(a, b):
    """
    Re-expresses two fractions over their least common denominator.

    :param a: first fraction
    :type a: RationalTime
    :param b: second fraction
    :type b: RationalTime
    :return: (a, b) over the same denominator
    :rtype: tuple of RationalTime
    """
    d = lcm(a.denominator, b.denominator)
    return a.with_denominator(d), b.with_denominator(d)


class RationalTime:
    """
    A signed fraction with a positive denominator.

    The numerator carries the sign.  Equality and ordering compare numerators after both operands are
    expressed over their least common denominator, so 1/2 == 2/4 even though neither is reduced.
    """

    __slots__ = ('_numerator', '_denominator')

    def __init__(self, numerator=0, denominator=1):
        if not isinstance(numerator, int) or not isinstance(denominator, int):
            raise MidiChartTypeError("RationalTime needs integer terms, got %r/%r" % (numerator, denominator))
        if denominator == 0:
            raise MidiChartZeroDivisionError("RationalTime denominator is zero")
        if denominator < 0:
            numerator, denominator = -numerator, -denominator
        self._numerator = numerator
        self._denominator = denominator

    @classmethod
    def from_fraction(cls, f):
        return cls(f.numerator, f.denominator)

    @property
    def numerator(self):
        return self._numerator

    @property
    def denominator(self):
        return self._denominator

    def reduce(self):
        """
        Returns this fraction in lowest terms.  Zero always reduces to 0/1.

        :return: reduced fraction
        :rtype: RationalTime
        """
        if self._numerator == 0:
            return RationalTime(0, 1)
        g = gcd(self._numerator, self._denominator)
        return RationalTime(self._numerator // g, self._denominator // g)

    def with_denominator(self, denominator):
        """
        Re-expresses the fraction over a new denominator, which must be a multiple of the reduced
        denominator.

        :param denominator: new denominator
        :type denominator: int
        :return: equal fraction over denominator
        :rtype: RationalTime
        """
        if denominator <= 0:
            raise MidiChartZeroDivisionError("Illegal denominator %d" % denominator)
        scaled = self._numerator * denominator
        if scaled % self._denominator != 0:
            raise MidiChartValueError("%s cannot be expressed over %d" % (self, denominator))
        return RationalTime(scaled // self._denominator, denominator)

    def to_fraction(self):
        return Fraction(self._numerator, self._denominator)

    def is_zero(self):
        return self._numerator == 0

    def __str__(self):
        return "%d/%d" % (self._numerator, self._denominator)

    def __repr__(self):
        return "RationalTime(%d, %d)" % (self._numerator, self._denominator)

    def __float__(self):
        return self._numerator / self._denominator

    def __int__(self):
        # truncates toward zero
        q = abs(self._numerator) // self._denominator
        return q if self._numerator >= 0 else -q

    def __bool__(self):
        return self._numerator != 0

    def __hash__(self):
        # same hash as the equal int or Fraction
        return hash(self.to_fraction())

    # Arithmetic

    def __pos__(self):
        return RationalTime(self._numerator, self._denominator)

    def __neg__(self):
        return RationalTime(-self._numerator, self._denominator)

    def __add__(self, other):
        other = _to_rational(other)
        if other is None:
            return NotImplemented
        a, b = common_denominator(self, other)
        return RationalTime(a.numerator + b.numerator, a.denominator)

    __radd__ = __add__

    def __sub__(self, other):
        other = _to_rational(other)
        if other is None:
            return NotImplemented
        a, b = common_denominator(self, other)
        return RationalTime(a.numerator - b.numerator, a.denominator)

    def __rsub__(self, other):
        other = _to_rational(other)
        if other is None:
            return NotImplemented
        return other - self

    def __mul__(self, other):
        other = _to_rational(other)
        if other is None:
            return NotImplemented
        return RationalTime(self._numerator * other.numerator, self._denominator * other.denominator)

    __rmul__ = __mul__

    def __truediv__(self, other):
        other = _to_rational(other)
        if other is None:
            return NotImplemented
        if other.numerator == 0:
            raise MidiChartZeroDivisionError("Division of %s by zero" % self)
        return RationalTime(self._numerator * other.denominator, self._denominator * other.numerator)

    def __rtruediv__(self, other):
        other = _to_rational(other)
        if other is None:
            return NotImplemented
        return other / self

    # Comparison

    def _compare(self, other):
        """ Returns the numerators of both operands over their common denominator """
        a, b = common_denominator(self, other)
        return a.numerator, b.numerator

    def __eq__(self, other):
        other = _to_rational(other)
        if other is None:
            return NotImplemented
        if self._numerator == 0 and other.numerator == 0:
            return True
        a, b = self._compare(other)
        return a == b

    def __lt__(self, other):
        other = _to_rational(other)
        if other is None:
            return NotImplemented
        a, b = self._compare(other)
        return a < b

    def __le__(self, other):
        other = _to_rational(other)
        if other is None:
            return NotImplemented
        a, b = self._compare(other)
        return a <= b

    def __gt__(self, other):
        other = _to_rational(other)
        if other is None:
            return NotImplemented
        a, b = self._compare(other)
        return a > b

    def __ge__(self, other):
        other = _to_rational(other)
        if other is None:
            return NotImplemented
        a, b = self._compare(other)
        return a >= b

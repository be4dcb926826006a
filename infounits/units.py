#
# infounits Information Units of Measurement
#

# Standard library -----------------------------------------------------------------------------------------------------
import json
import math
import re
import string
from dataclasses import dataclass, field
from typing import ClassVar, Self

# Third-party ----------------------------------------------------------------------------------------------------------
from frozendict import frozendict

# Local ----------------------------------------------------------------------------------------------------------------
from .errors import InvalidNumberError, InvalidUnitError


# @formatter:off

class UnitsConf:
    WIDTH = 64
    MAX_COUNT = 2 ** 64 - 1
    PREFIXES = ("K", "M", "G", "T", "P", "E")


# Decimal float literal: optional sign, digits with optional fraction, optional exponent
_number_literal = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?", re.ASCII)
# @formatter:on

# Classes --------------------------------------------------------------------------------------------------------------

@dataclass(frozen=True)
class UnitTable:
    """
    Multiplier table of a single unit family.

    Multipliers are expressed in bits, so every family shares the same integer domain.

    Attributes:
        name (str)      : Family name used in error messages - 'Bit', 'Byte'
        marker (str)    : Mandatory trailing character of the text form - 'b', 'B'
        base (int)      : Size of the base unit in bits - 1 for bit, 8 for byte
        radix (int)     : Ratio between consecutive prefixes - 1000 (SI) or 1024 (binary)
        prefixes (tuple): Prefix letters in increasing order of magnitude
        multipliers     : Read-only map of prefix letter to multiplier, '' is the base unit
    """
    name: str
    marker: str
    base: int
    radix: int
    prefixes: tuple[str, ...] = UnitsConf.PREFIXES

    multipliers: frozendict = field(init=False, default=frozendict(), repr=False, compare=False)

    def __post_init__(self):
        multipliers = {"": self.base}
        for power, prefix in enumerate(self.prefixes, start=1):
            multipliers[prefix] = self.base * self.radix ** power
        object.__setattr__(self, 'multipliers', frozendict(multipliers))

    def multiplier(self, prefix: str) -> int:
        """Multiplier of a prefix letter in bits, '' for the base unit."""
        try:
            return self.multipliers[prefix]
        except KeyError:
            raise ValueError(
                f"Unknown {self.name} prefix: {prefix!r}, expected one of {tuple(self.multipliers)}"
            ) from None

    def prefix_for(self, count: int) -> str:
        """
        The largest prefix whose multiplier does not exceed count, '' if count is below all of them.

        Examples:
            BIT_TABLE.prefix_for(999) == ""
            BIT_TABLE.prefix_for(1000) == "K"
            BYTE_TABLE.prefix_for(8192) == "K"
        """
        for prefix in reversed(self.prefixes):
            if count >= self.multipliers[prefix]:
                return prefix
        return ""


BIT_TABLE = UnitTable(name="Bit", marker="b", base=1, radix=1000)
BYTE_TABLE = UnitTable(name="Byte", marker="B", base=8, radix=1024)


@dataclass(frozen=True, order=True)
class ScaledUnit:
    """
    Immutable count of bits rendered with the prefixes of a unit family.

    Subclasses bind a UnitTable through the `table` class attribute; the parser and the
    formatter are shared by all families.

    The count lives in the unsigned 64-bit domain: construction wraps it modulo 2**64,
    so negative counts and counts above 2**64 - 1 wrap around silently.

    Numeric semantics of parse():
        The literal is parsed as a float and multiplied by the float multiplier before it
        is truncated toward zero. Magnitudes close to 2**64 lose precision on this path,
        e.g. '18.446744073709551615Eb' does not produce 2**64 - 1 exactly.

    Text form:
        <number><prefix?><marker>, the empty string denotes zero.
    """

    count: int = 0

    table: ClassVar[UnitTable]

    def __post_init__(self):
        if not hasattr(type(self), "table"):
            raise TypeError(f"{type(self).__name__} has no unit table, use Bits or Bytes")
        if isinstance(self.count, bool) or not isinstance(self.count, int):
            raise TypeError(f"count must be an int, got {type(self.count).__name__}")
        object.__setattr__(self, 'count', self.count & UnitsConf.MAX_COUNT)

    @classmethod
    def parse(cls, s: str) -> Self:
        """
        Parse a text value like '10Mb' or '1.5KB' into an exact count.

        Raises:
            InvalidUnitError: The trailing marker is missing, the input is shorter than 2 characters,
                or the character before the marker is neither a prefix letter nor a digit.
            InvalidNumberError: The numeric literal is not a finite decimal float.
            TypeError: s is not a str.

        Examples:
            Bits.parse("2Kb") == Bits(2000)
            Bytes.parse("1KB") == Bytes(8192)
            Bits.parse("") == Bits(0)
        """
        if not isinstance(s, str):
            raise TypeError(f"value to parse must be a str, got {type(s).__name__}")

        table = cls.table
        if not s:
            return cls(0)
        if len(s) < 2 or s[-1] != table.marker:
            raise InvalidUnitError(f"Invalid {table.name}: {s!r}")

        literal, prefix = s[:-1], ""
        last = literal[-1]
        if last in table.prefixes:
            literal, prefix = literal[:-1], last
        elif last not in string.digits:
            raise InvalidUnitError(f"Invalid {table.name}: {s!r}")

        number = _parse_literal(literal, table)
        product = number * float(table.multipliers[prefix])
        if not math.isfinite(product):
            raise InvalidNumberError(f"{table.name} number out of range: {s!r}")
        return cls(int(product))

    @classmethod
    def from_text(cls, text: str | bytes | bytearray) -> Self:
        """Parse the text form, raw bytes are decoded as ASCII."""
        if isinstance(text, (bytes, bytearray)):
            try:
                text = text.decode("ascii")
            except UnicodeDecodeError as e:
                raise InvalidUnitError(f"Invalid {cls.table.name}: {bytes(text)!r}") from e
        return cls.parse(text)

    @classmethod
    def from_json(cls, doc: str | bytes | bytearray) -> Self:
        """
        Parse a JSON document holding the text form as a string, e.g. '"10MB"'.

        Raises:
            InvalidUnitError: The document is not valid JSON or is not a JSON string.
        """
        try:
            text = json.loads(doc)
        except json.JSONDecodeError as e:
            raise InvalidUnitError(f"Invalid {cls.table.name} JSON document: {e}") from e
        if not isinstance(text, str):
            raise InvalidUnitError(
                f"Invalid {cls.table.name} JSON document: expected a string, got {type(text).__name__}"
            )
        return cls.parse(text)

    def format(self) -> str:
        """
        Canonical text form using the largest unit that does not exceed the value.

        Below the first prefix the count is shown in base units. Bits are always whole there,
        bytes that are not a multiple of 8 bits keep a fraction (Bytes(12) is '1.5B') so that
        parsing the text gives the same count back.

        Examples:
            Bits(1500).format() == "1.5Kb"
            Bytes(8192).format() == "1KB"
            Bytes(0).format() == "0B"
        """
        table = self.table
        prefix = table.prefix_for(self.count)
        number = _format_quotient(self.count, table.multipliers[prefix])
        return f"{number}{prefix}{table.marker}"

    def to_text(self) -> str:
        return self.format()

    def to_json(self) -> str:
        """Text form quoted as a JSON string."""
        return json.dumps(self.format())

    def in_unit(self, prefix: str = "") -> float:
        """
        Value expressed in the unit of a prefix letter, '' for the base unit.

        Examples:
            Bytes(40).in_unit("") == 5.0
            Bits(1500).in_unit("K") == 1.5
        """
        return self.count / self.table.multiplier(prefix)

    def __str__(self):
        return self.format()

    def __int__(self):
        return self.count

    def __index__(self):
        return self.count

    def __bool__(self):
        return self.count != 0


class Bits(ScaledUnit):
    """
    Count of bits with SI prefixes (powers of 1000) and the 'b' marker.

    Examples:
        Bits.parse("10Mb") == Bits(10_000_000)
        str(Bits(1500)) == "1.5Kb"
    """

    table = BIT_TABLE

    def as_bytes(self) -> "Bytes":
        """Same count of bits as a Bytes value."""
        return Bytes(self.count)

    @property
    def kilobits(self) -> float:
        return self.in_unit("K")

    @property
    def megabits(self) -> float:
        return self.in_unit("M")

    @property
    def gigabits(self) -> float:
        return self.in_unit("G")

    @property
    def terabits(self) -> float:
        return self.in_unit("T")

    @property
    def petabits(self) -> float:
        return self.in_unit("P")

    @property
    def exabits(self) -> float:
        return self.in_unit("E")


class Bytes(ScaledUnit):
    """
    Count of bits at byte granularity with binary prefixes (powers of 1024) and the 'B' marker.

    The stored count is in bits, one byte is a count of 8.

    Examples:
        Bytes.parse("1KB") == Bytes(8192)
        str(Bytes(40)) == "5B"
    """

    table = BYTE_TABLE

    def as_bits(self) -> Bits:
        """Same count of bits as a Bits value."""
        return Bits(self.count)

    @property
    def kilobytes(self) -> float:
        return self.in_unit("K")

    @property
    def megabytes(self) -> float:
        return self.in_unit("M")

    @property
    def gigabytes(self) -> float:
        return self.in_unit("G")

    @property
    def terabytes(self) -> float:
        return self.in_unit("T")

    @property
    def petabytes(self) -> float:
        return self.in_unit("P")

    @property
    def exabytes(self) -> float:
        return self.in_unit("E")


# @formatter:off
BIT      = Bits(BIT_TABLE.multiplier(""))
KILOBIT  = Bits(BIT_TABLE.multiplier("K"))
MEGABIT  = Bits(BIT_TABLE.multiplier("M"))
GIGABIT  = Bits(BIT_TABLE.multiplier("G"))
TERABIT  = Bits(BIT_TABLE.multiplier("T"))
PETABIT  = Bits(BIT_TABLE.multiplier("P"))
EXABIT   = Bits(BIT_TABLE.multiplier("E"))
MAX_BITS = Bits(UnitsConf.MAX_COUNT)
MIN_BITS = Bits(0)

BYTE      = Bytes(BYTE_TABLE.multiplier(""))
KILOBYTE  = Bytes(BYTE_TABLE.multiplier("K"))
MEGABYTE  = Bytes(BYTE_TABLE.multiplier("M"))
GIGABYTE  = Bytes(BYTE_TABLE.multiplier("G"))
TERABYTE  = Bytes(BYTE_TABLE.multiplier("T"))
PETABYTE  = Bytes(BYTE_TABLE.multiplier("P"))
EXABYTE   = Bytes(BYTE_TABLE.multiplier("E"))
MAX_BYTES = Bytes(UnitsConf.MAX_COUNT)
MIN_BYTES = Bytes(0)
# @formatter:on

# Methods --------------------------------------------------------------------------------------------------------------

def parse_bits(s: str) -> Bits:
    """Parse a bit value like '10Mb', see ScaledUnit.parse()"""
    return Bits.parse(s)


def parse_bytes(s: str) -> Bytes:
    """Parse a byte value like '10MB', see ScaledUnit.parse()"""
    return Bytes.parse(s)


def _parse_literal(literal: str, table: UnitTable) -> float:
    """Parse the numeric part of a unit string into a finite float."""
    if not _number_literal.fullmatch(literal):
        raise InvalidNumberError(f"Invalid {table.name} number: {literal!r}")

    number = float(literal)
    if not math.isfinite(number):
        raise InvalidNumberError(f"{table.name} number out of range: {literal!r}")
    return number


def _format_quotient(count: int, unit: int) -> str:
    """
    Shortest decimal form of count / unit.

    Exact multiples are rendered from integer division, others from the float repr
    without a trailing '.0'.
    """
    whole, remainder = divmod(count, unit)
    if not remainder:
        return str(whole)

    text = repr(count / unit)
    if text.endswith(".0"):
        text = text[:-2]
    return text


# Module Sanity Checks -------------------------------------------------------------------------------------------------

# Both families must name the same prefixes so the text forms differ only by the marker.
if BIT_TABLE.prefixes != BYTE_TABLE.prefixes:
    raise AssertionError(
        "Configuration Error: BIT_TABLE and BYTE_TABLE must use identical prefix letters."
    )

for _table in (BIT_TABLE, BYTE_TABLE):
    _values = list(_table.multipliers.values())
    if _values != sorted(set(_values)):
        raise AssertionError(f"Configuration Error: {_table.name} multipliers must be strictly increasing.")
    if _values[-1] > UnitsConf.MAX_COUNT:
        raise AssertionError(f"Configuration Error: {_table.name} multipliers must fit in {UnitsConf.WIDTH} bits.")
    if _table.marker in _table.prefixes:
        raise AssertionError(f"Configuration Error: {_table.name} marker must not be a prefix letter.")

del _table, _values

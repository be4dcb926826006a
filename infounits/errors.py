"""
Exceptions raised by infounits parsers and decoders.
"""


class UnitParseError(ValueError):
    """Base class for failures to parse a unit string."""


class InvalidUnitError(UnitParseError):
    """
    The unit part of a string is malformed.

    Raised when the trailing marker ('b' or 'B') is missing, the input is too short,
    or the character before the marker is neither a prefix letter nor a digit.
    """


class InvalidNumberError(UnitParseError):
    """The numeric literal in front of the unit cannot be parsed as a float."""


class DecodeError(ValueError):
    """
    Failure to decode a mapping into a structure.

    Attributes:
        path (str): Dotted path of the field that failed, empty for the root object.
    """

    def __init__(self, message: str, path: str = ""):
        self.path = path
        if path:
            message = f"{path}: {message}"
        super().__init__(message)

# asnmap/errors.py


class AsnmapError(Exception):
    """Base class for failures that abort a build stage."""


class EmptyInputError(AsnmapError):
    """A table required by the join is missing or has no rows."""


class FetchError(AsnmapError):
    """A source file could not be downloaded."""


class DecodeError(AsnmapError):
    """An archive or RIB snapshot could not be turned into text."""


class InvalidDateError(AsnmapError, ValueError):
    """The snapshot date is not a recognizable calendar day."""

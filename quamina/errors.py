"""Exception hierarchy for the matching library."""


class QuaminaError(Exception):
    """Base class for every error raised by this package."""


class FlattenError(QuaminaError):
    """An event could not be flattened into fields."""


class PatternError(QuaminaError):
    """A pattern could not be parsed."""


class NumberError(QuaminaError, ValueError):
    """A number could not be canonicalized."""
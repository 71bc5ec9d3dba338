"""Error taxonomy for geography, palette and map composition calls."""

from __future__ import annotations

from typing import Iterable


class EumapsError(ValueError):
    """Base class for every failure reported by a composition call."""


class InvalidInput(EumapsError):
    """Raised when an argument is malformed or out of range."""


class InvalidDateFormat(InvalidInput):
    """Raised when a date string is not a real `YYYY-MM-DD` date."""


class InvalidAspectRatio(InvalidInput):
    """Raised when an explicit aspect ratio is outside [0.5, 2]."""


class InvalidZoom(InvalidInput):
    """Raised when a zoom factor is outside [0.5, 1]."""


class InvalidColorCount(InvalidInput):
    """Raised when `count_colors` is not an integer in [2, 10]."""


class InvalidColor(InvalidInput):
    """Raised when a color literal is neither RGB(A) nor 6/8-digit hex."""


class InvalidResolution(InvalidInput):
    """Raised when a border resolution is not `high` or `low`."""


class ValueOutOfRange(InvalidInput):
    """Raised for out-of-range data when the palette policy is `error`."""


class EmptySelection(EumapsError):
    """Raised when no member state matches the date and subset."""


class DuplicateNames(EumapsError):
    """Raised when member state names supplied for shading repeat."""


class LengthMismatch(EumapsError):
    """Raised when the name and value arrays differ in length."""


class UnknownTerritory(EumapsError):
    """Raised when a name is not in the member state table."""

    def __init__(self, names: Iterable[str], argument: str) -> None:
        self.names = tuple(names)
        self.argument = argument
        super().__init__(
            f"The argument '{argument}' contains unknown member state names: "
            + ", ".join(self.names)
            + ". Run list_member_states() to see the valid values."
        )

"""
Sexagesimal Codecs for Celestial Coordinates
============================================

Codecs handle conversion between the text representation used in target
lists, slit lists and configuration files and the (whole, minutes, seconds)
triplets stored on :class:`~csumask.model.targets.RaDec`.

Key principle: the triplets are stored exactly as read. Rounding (and the
carry from 60 seconds into the next minute) happens ONLY at the output
boundary, inside ``encode``/``encode_parts``.

Usage:
    from csumask.model.codecs import CODECS

    # Decode from a target list
    ra = CODECS['ra'].decode("10:20:30.5")      # (10.0, 20.0, 30.5)

    # Encode for a slit list
    text = CODECS['ra'].encode((10.0, 20.0, 30.5))   # "10 20 30.50"

Codec types:
- RAHoursCodec: Right ascension (HH MM SS.ss)
- DecDegreesCodec: Declination (+DD MM SS.ss), sign kept for -00 degrees
"""

from abc import ABC, abstractmethod
import math
import re
from typing import Tuple

Sexagesimal = Tuple[float, float, float]


class Codec(ABC):
    """
    Abstract base class for coordinate codecs.

    A codec converts between a text field and a sexagesimal triplet.
    """

    @abstractmethod
    def decode(self, text: str) -> Sexagesimal:
        """
        Decode a text field to a (whole, minutes, seconds) triplet.

        Parameters
        ----------
        text : str
            Field as it appears in a file, separated by ':' or spaces

        Returns
        -------
        tuple of float
            Triplet with the sign (if any) carried by the first element
        """
        pass

    @abstractmethod
    def encode_parts(self, parts: Sexagesimal, decimals: int = 2) -> Tuple[str, str, str]:
        """
        Format a triplet as three zero-padded text fields.

        Parameters
        ----------
        parts : tuple of float
            (whole, minutes, seconds)
        decimals : int
            Decimal places kept on the seconds field

        Returns
        -------
        tuple of str
            The formatted fields
        """
        pass

    def encode(self, parts: Sexagesimal, decimals: int = 2, sep: str = " ") -> str:
        """Join the formatted fields with ``sep``."""
        return sep.join(self.encode_parts(parts, decimals))


def _carry(whole: float, minutes: float, seconds: float, decimals: int) -> Tuple[int, int, float]:
    """Round seconds and propagate a 60-second overflow."""
    whole_i = int(abs(whole))
    minutes_i = int(minutes)
    seconds = round(seconds, decimals)
    if seconds >= 60.0:
        seconds -= 60.0
        minutes_i += 1
    if minutes_i >= 60:
        minutes_i -= 60
        whole_i += 1
    return whole_i, minutes_i, seconds


def _seconds_field(seconds: float, decimals: int) -> str:
    width = 3 + decimals if decimals > 0 else 2
    return f"{seconds:0{width}.{decimals}f}"


class RAHoursCodec(Codec):
    """
    Right Ascension codec: HH MM SS.ss <-> (hours, minutes, seconds)

    Examples:
        "19:09:47.43" -> (19.0, 9.0, 47.43)
        (23.0, 59.0, 59.999) -> "00 00 00.00"
    """

    _PATTERN = re.compile(r'^(\d+)[:\s]+(\d+)[:\s]+(\d+(?:\.\d*)?)$')

    def decode(self, text: str) -> Sexagesimal:
        """
        Parse a sexagesimal RA.

        Raises
        ------
        ValueError
            If format is invalid or a field is out of range
        """
        text = text.strip()
        match = self._PATTERN.match(text)
        if not match:
            raise ValueError(f"Cannot parse RA: '{text}'")

        hours = float(match.group(1))
        minutes = float(match.group(2))
        seconds = float(match.group(3))

        if not (0 <= hours < 24):
            raise ValueError(f"Hours must be 0-23, got {hours:g}")
        if not (0 <= minutes < 60):
            raise ValueError(f"Minutes must be 0-59, got {minutes:g}")
        if not (0 <= seconds < 60):
            raise ValueError(f"Seconds must be 0-60, got {seconds:g}")
        return hours, minutes, seconds

    def encode_parts(self, parts: Sexagesimal, decimals: int = 2) -> Tuple[str, str, str]:
        hours, minutes, seconds = _carry(*parts, decimals)
        if hours >= 24:
            hours -= 24
        return f"{hours:02d}", f"{minutes:02d}", _seconds_field(seconds, decimals)


class DecDegreesCodec(Codec):
    """
    Declination codec: +DD MM SS.ss <-> (degrees, minutes, seconds)

    The sign lives on the degrees element; "-00 30 00" decodes to
    (-0.0, 30.0, 0.0) so the sign survives a zero-degree field.

    Examples:
        "-37:44:14.46" -> (-37.0, 44.0, 14.46)
        (5.0, 3.0, 2.5) -> "+05 03 02.50"
    """

    _PATTERN = re.compile(r'^([+-]?)(\d+)[:\s]+(\d+)[:\s]+(\d+(?:\.\d*)?)$')

    def decode(self, text: str) -> Sexagesimal:
        """
        Parse a sexagesimal Dec.

        Raises
        ------
        ValueError
            If format is invalid or a field is out of range
        """
        text = text.strip()
        match = self._PATTERN.match(text)
        if not match:
            raise ValueError(f"Cannot parse Dec: '{text}'")

        sign = -1.0 if match.group(1) == '-' else 1.0
        degrees = float(match.group(2))
        minutes = float(match.group(3))
        seconds = float(match.group(4))

        if not (0 <= degrees <= 90):
            raise ValueError(f"Degrees must be 0-90, got {degrees:g}")
        if not (0 <= minutes < 60):
            raise ValueError(f"Minutes must be 0-59, got {minutes:g}")
        if not (0 <= seconds < 60):
            raise ValueError(f"Seconds must be 0-60, got {seconds:g}")
        return math.copysign(degrees, sign), minutes, seconds

    def encode_parts(self, parts: Sexagesimal, decimals: int = 2) -> Tuple[str, str, str]:
        sign = '-' if math.copysign(1.0, parts[0]) < 0 else '+'
        degrees, minutes, seconds = _carry(*parts, decimals)
        return f"{sign}{degrees:02d}", f"{minutes:02d}", _seconds_field(seconds, decimals)


# =============================================================================
# Codec Registry
# =============================================================================

CODECS = {
    'ra': RAHoursCodec(),
    'dec': DecDegreesCodec(),
}


def get_codec(name: str) -> Codec:
    """
    Get a codec by name.

    Parameters
    ----------
    name : str
        Codec name (ra, dec)

    Returns
    -------
    Codec
        The codec instance

    Raises
    ------
    KeyError
        If codec not found
    """
    return CODECS[name]

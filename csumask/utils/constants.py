"""Instrument constants for the cryogenic slit unit (CSU).

This module contains the fixed geometry of the bar-pair array, the
bar travel limits and the default slit widths used throughout csumask.
The values are also bundled into :class:`CsuGeometry` so that the engine
can be driven with an alternate geometry in tests.
"""

import math
from dataclasses import dataclass, field
from typing import Tuple

# === Array Layout ===

CSU_NUMBER_OF_BAR_PAIRS = 46
"""Number of bar pairs (mechanical rows) in the CSU"""

CSU_ROW_HEIGHT = 8.0
"""Height of one mechanical row on the sky in arcsec (bar pitch)"""

OVERLAP = 0.9
"""Row-overlap margin in arcsec

Light between adjacent bar pairs is lost to the bar edges; a science slit
of n rows is n * CSU_ROW_HEIGHT - OVERLAP long.
"""

SINGLE_SLIT_HEIGHT = CSU_ROW_HEIGHT - OVERLAP
"""Usable length of a single-row slit in arcsec"""

CSU_HEIGHT = CSU_NUMBER_OF_BAR_PAIRS * CSU_ROW_HEIGHT
"""Total height of the CSU field in arcsec"""

CSU_WIDTH = CSU_HEIGHT
"""Total width of the CSU field in arcsec (the field is square)"""

CSU_FP_RADIUS = 204.0
"""Radius of the unvignetted focal plane in arcsec"""

CSU_SLIT_TILT_ANGLE = 4.0
"""Tilt of the slits relative to the CSU y axis in degrees"""

CSU_SLIT_TILT_ANGLE_RADIANS = math.radians(CSU_SLIT_TILT_ANGLE)
"""Slit tilt in radians"""

# === Bar Mechanics ===

CSU_ARCSEC_PER_MM = 1.37896
"""Plate scale at the CSU focal plane in arcsec per mm of bar travel"""

CSU_ZERO_PT = 137.40
"""Bar position in mm corresponding to the CSU center line"""

CSU_MINIMUM_BAR_POSITION_MM = 0.0
"""Lower travel limit of every bar in mm"""

CSU_MAXIMUM_BAR_POSITION_MM = 274.80
"""Upper travel limit of every bar in mm"""

# === Slit Widths ===

MINIMUM_SLIT_WIDTH = 0.3
"""Narrowest slit the bars can form, in arcsec"""

DEFAULT_SLIT_WIDTH = 0.7
"""Default science slit width in arcsec"""

ALIGNMENT_BOX_SLIT_WIDTH = 4.0
"""Width of an alignment box in arcsec"""

# === Calibration Presets ===

CSU_CALIBRATION_SLIT_MIDDLE_ROW = 23
"""Mechanical row at the middle of long-slit calibration masks"""

CSU_OPEN_BAR_RIGHT_MM = 4.0
"""Retracted position of the odd-numbered (right) bars for an open mask"""

CSU_OPEN_BAR_LEFT_MM = 270.8
"""Retracted position of the even-numbered (left) bars for an open mask"""

CSU_OPEN_BAR_TARGETS = tuple(
    position
    for _ in range(CSU_NUMBER_OF_BAR_PAIRS)
    for position in (CSU_OPEN_BAR_RIGHT_MM, CSU_OPEN_BAR_LEFT_MM)
)
"""Bar target table for the open mask, in mm

Ordered by bar number: entry 2*i is the odd bar of row i+1 and entry
2*i+1 the even bar of the same row.
"""

CSU_OPEN_MASK_SLIT_WIDTH = (CSU_OPEN_BAR_LEFT_MM - CSU_OPEN_BAR_RIGHT_MM) * CSU_ARCSEC_PER_MM
"""Slit width recorded for the open mask in arcsec"""

# === Generation Defaults ===

DEFAULT_MASK_NAME = "default"
"""Mask name used when none is given"""

DEFAULT_DITHER_SPACE = 2.5
"""Default dither margin in arcsec"""

DEFAULT_MINIMUM_ALIGNMENT_STARS = 4
"""Default number of alignment stars to place"""

DEFAULT_ALIGNMENT_STAR_EDGE_BUFFER = 1.0
"""Default minimum distance in arcsec between a star and its row edge"""

DEFAULT_MAXIMUM_SLIT_LENGTH = 15
"""Default maximum science slit length in rows"""

DEFAULT_MINIMUM_CLOSE_OFF_SLIT_WIDTH = 2.0
"""Slits at least this wide (arcsec) are closed off for the science mask"""

DEFAULT_CLOSED_OFF_SLIT_WIDTH = 0.7
"""Width in arcsec given to closed-off slits"""

MSC_VERSION = "2.0"
"""Format version written into slit configuration files"""


@dataclass(frozen=True)
class CsuGeometry:
    """Fixed geometry of the bar-pair array.

    Attributes
    ----------
    n_rows : int
        Number of bar pairs.
    row_height : float
        Row pitch on the sky (arcsec).
    overlap : float
        Row-overlap margin (arcsec).
    width : float
        Field width (arcsec).
    fp_radius : float
        Focal-plane radius (arcsec).
    tilt_degrees : float
        Slit tilt (degrees).
    arcsec_per_mm : float
        Bar plate scale.
    zero_point_mm : float
        Bar position of the center line (mm).
    bar_limits_mm : tuple of float
        (minimum, maximum) bar travel (mm).
    minimum_slit_width : float
        Narrowest allowed slit (arcsec).
    """
    n_rows: int = CSU_NUMBER_OF_BAR_PAIRS
    row_height: float = CSU_ROW_HEIGHT
    overlap: float = OVERLAP
    width: float = CSU_WIDTH
    fp_radius: float = CSU_FP_RADIUS
    tilt_degrees: float = CSU_SLIT_TILT_ANGLE
    arcsec_per_mm: float = CSU_ARCSEC_PER_MM
    zero_point_mm: float = CSU_ZERO_PT
    bar_limits_mm: Tuple[float, float] = field(
        default=(CSU_MINIMUM_BAR_POSITION_MM, CSU_MAXIMUM_BAR_POSITION_MM)
    )
    minimum_slit_width: float = MINIMUM_SLIT_WIDTH

    @property
    def height(self) -> float:
        return self.n_rows * self.row_height

    @property
    def single_slit_height(self) -> float:
        return self.row_height - self.overlap

    @property
    def tilt_radians(self) -> float:
        return math.radians(self.tilt_degrees)

    @property
    def minimum_bar_mm(self) -> float:
        return self.bar_limits_mm[0]

    @property
    def maximum_bar_mm(self) -> float:
        return self.bar_limits_mm[1]

    def slit_length(self, rows: int) -> float:
        """Length in arcsec of a science slit spanning ``rows`` rows."""
        return rows * self.row_height - self.overlap


DEFAULT_GEOMETRY = CsuGeometry()
"""Geometry of the instrument as built"""

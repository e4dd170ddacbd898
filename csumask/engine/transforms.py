"""Coordinate transforms between the sky, the tangent plane and the CSU.

Three frames are involved:

* **sky**: equatorial RA/Dec (:class:`~csumask.model.targets.RaDec`).
* **WCS**: a tangent-plane position in arcsec,
  ``x = RA * cos(dec_ref)``, ``y = Dec``, where ``dec_ref`` is the Dec of
  the pointing center.
* **CSU**: focal-plane position in arcsec relative to the array center,
  obtained by translating the WCS position to the pointing center and
  rotating by the position angle. ``x`` grows to the left, ``y`` upward.

Rows are counted two ways. Engine arrays use a 0-based row index from the
bottom of the array; hardware slit numbers are 1-based from the top, with
``slit_number = n_rows - row``.

Coordinate wrap
---------------
A pointing whose objects straddle 0h RA is projected in a frame shifted by
12 hours, so hour 0 becomes 12 and hour 23 becomes 11 and the linear
projection stays continuous. :class:`Projection` applies the shift on entry
and removes it on exit; callers always pass and receive true sky
coordinates.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from typing import Tuple

from csumask.model.targets import PointingSolution, RaDec
from csumask.utils.constants import DEFAULT_GEOMETRY, CsuGeometry

Point = Tuple[float, float]


# ---------------------------------------------------------------------------
# Sky <-> WCS
# ---------------------------------------------------------------------------

def shift_ra_half_day(ra_dec: RaDec) -> RaDec:
    """Return a copy with RA shifted by 12 hours (its own inverse)."""
    return replace(ra_dec, ra_hour=(ra_dec.ra_hour + 12.0) % 24.0)


def ra_dec_to_wcs(ra_dec: RaDec, reference_dec_deg: float) -> Point:
    """Project a sky position onto the tangent plane (arcsec)."""
    x = ra_dec.ra_degrees * 3600.0 * math.cos(math.radians(reference_dec_deg))
    y = ra_dec.dec_degrees * 3600.0
    return x, y


def wcs_to_ra_dec(point: Point, reference_dec_deg: float) -> RaDec:
    """Inverse of :func:`ra_dec_to_wcs`."""
    ra_deg = point[0] / math.cos(math.radians(reference_dec_deg)) / 3600.0
    dec_deg = point[1] / 3600.0
    return RaDec.from_degrees(ra_deg, dec_deg)


# ---------------------------------------------------------------------------
# WCS <-> CSU
# ---------------------------------------------------------------------------

def wcs_to_csu(point: Point, center: Point, position_angle: float) -> Point:
    """Translate to the array center and rotate by the position angle."""
    theta = math.radians(position_angle)
    x_old = point[0] - center[0]
    y_old = point[1] - center[1]
    x = x_old * math.cos(theta) - y_old * math.sin(theta)
    y = x_old * math.sin(theta) + y_old * math.cos(theta)
    return x, y


def csu_to_wcs(point: Point, center: Point, position_angle: float) -> Point:
    """Inverse of :func:`wcs_to_csu`."""
    theta = math.radians(position_angle)
    x_old = point[0] * math.cos(theta) + point[1] * math.sin(theta)
    y_old = -point[0] * math.sin(theta) + point[1] * math.cos(theta)
    return x_old + center[0], y_old + center[1]


# ---------------------------------------------------------------------------
# Rows
# ---------------------------------------------------------------------------

def row_from_y(y: float, geometry: CsuGeometry = DEFAULT_GEOMETRY) -> int:
    """0-based row (from the bottom) containing CSU height ``y``."""
    return math.floor((y + geometry.height / 2.0) / geometry.row_height)


def slit_number_from_y(y: float, geometry: CsuGeometry = DEFAULT_GEOMETRY) -> int:
    """1-based hardware slit number containing CSU height ``y``."""
    return geometry.n_rows - row_from_y(y, geometry)


def dither_rows(y: float, dither_space: float,
                geometry: CsuGeometry = DEFAULT_GEOMETRY) -> Tuple[int, int]:
    """Inclusive 0-based row range touched by a target during the dither.

    The dither half-range is projected onto the slit axis and widened by
    the row-overlap margin on both sides.
    """
    reach = dither_space * math.cos(geometry.tilt_radians)
    half_height = geometry.height / 2.0
    min_row = math.floor((y - reach + half_height - geometry.overlap) / geometry.row_height)
    max_row = math.floor((y + reach + half_height + geometry.overlap) / geometry.row_height)
    return min_row, max_row


def star_row(y: float, edge_buffer: float,
             geometry: CsuGeometry = DEFAULT_GEOMETRY) -> int:
    """0-based row for an alignment star, or -1 if it is too near an edge.

    A star must keep ``edge_buffer`` arcsec (plus half the overlap margin)
    from both edges of its row, and must lie on the array.
    """
    y_from_bottom = y + geometry.height / 2.0
    row = math.floor(y_from_bottom / geometry.row_height)
    if row < 0 or row >= geometry.n_rows:
        return -1
    inside = y_from_bottom - row * geometry.row_height
    margin = geometry.overlap / 2.0 + edge_buffer
    if inside < margin or inside > geometry.row_height - margin:
        return -1
    return row


def slit_position(row: int, rows: int, target: Point,
                  geometry: CsuGeometry = DEFAULT_GEOMETRY) -> Point:
    """CSU center of a slit spanning ``rows`` rows upward from ``row``.

    The slit is tilted, so its x center is the target x shifted along the
    tilt by the vertical distance between target and slit center.
    """
    y = (row + rows / 2.0) * geometry.row_height - geometry.height / 2.0
    x = target[0] - (target[1] - y) * math.tan(geometry.tilt_radians)
    return x, y


def center_distance(target_y: float, slit_y: float,
                    geometry: CsuGeometry = DEFAULT_GEOMETRY) -> float:
    """Target offset from the slit center measured along the tilted slit."""
    return (target_y - slit_y) / math.cos(geometry.tilt_radians)


# ---------------------------------------------------------------------------
# Wrap-safe projection
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Projection:
    """Sky <-> CSU mapping for one pointing.

    Attributes
    ----------
    center : RaDec
        Pointing center (true sky coordinates).
    position_angle : float
        Position angle in degrees.
    coord_wrap : bool
        Project in the 12-hour shifted frame.
    geometry : CsuGeometry
        Array geometry.
    center_wcs : tuple of float
        Tangent-plane position of the center in the projection frame.
    """
    center: RaDec
    position_angle: float = 0.0
    coord_wrap: bool = False
    geometry: CsuGeometry = DEFAULT_GEOMETRY
    center_wcs: Point = field(init=False)

    def __post_init__(self):
        object.__setattr__(self, 'center_wcs', self.sky_to_wcs(self.center))

    @classmethod
    def for_pointing(cls, pointing: PointingSolution,
                     geometry: CsuGeometry = DEFAULT_GEOMETRY) -> Projection:
        return cls(pointing.center, pointing.position_angle, pointing.coord_wrap, geometry)

    @property
    def reference_dec(self) -> float:
        return self.center.dec_degrees

    def sky_to_wcs(self, ra_dec: RaDec) -> Point:
        if self.coord_wrap:
            ra_dec = shift_ra_half_day(ra_dec)
        return ra_dec_to_wcs(ra_dec, self.reference_dec)

    def wcs_to_sky(self, point: Point) -> RaDec:
        ra_dec = wcs_to_ra_dec(point, self.reference_dec)
        if self.coord_wrap:
            ra_dec = shift_ra_half_day(ra_dec)
        return ra_dec

    def sky_to_csu(self, ra_dec: RaDec) -> Point:
        return wcs_to_csu(self.sky_to_wcs(ra_dec), self.center_wcs, self.position_angle)

    def csu_to_sky(self, point: Point) -> RaDec:
        return self.wcs_to_sky(csu_to_wcs(point, self.center_wcs, self.position_angle))

    def slit_number(self, ra_dec: RaDec) -> int:
        """Hardware slit number under a sky position."""
        return slit_number_from_y(self.sky_to_csu(ra_dec)[1], self.geometry)

"""Sky-side records: coordinates, targets and the pointing solution.

Targets are created by target-list ingestion and are only ever referenced
by slits, never copied, so that every slit pointing at the same object sees
the same derived positions. Identity (``is``) is what ties a mechanical row
to its science slit.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from csumask.model.codecs import CODECS


@dataclass
class RaDec:
    """Equatorial coordinates stored as sexagesimal triplets.

    The Dec sign is carried by ``dec_deg`` (use ``-0.0`` for southern
    declinations between 0 and -1 degree).
    """
    ra_hour: float = 0.0
    ra_min: float = 0.0
    ra_sec: float = 0.0
    dec_deg: float = 0.0
    dec_min: float = 0.0
    dec_sec: float = 0.0

    @property
    def is_south(self) -> bool:
        return math.copysign(1.0, self.dec_deg) < 0

    @property
    def ra_degrees(self) -> float:
        return (self.ra_hour + self.ra_min / 60.0 + self.ra_sec / 3600.0) * 15.0

    @property
    def dec_degrees(self) -> float:
        magnitude = abs(self.dec_deg) + self.dec_min / 60.0 + self.dec_sec / 3600.0
        return -magnitude if self.is_south else magnitude

    @classmethod
    def from_degrees(cls, ra_deg: float, dec_deg: float) -> RaDec:
        """Split decimal degrees into triplets; RA is wrapped to [0, 24h)."""
        ra_hours = (ra_deg / 15.0) % 24.0
        hours = math.floor(ra_hours)
        ra_minutes = (ra_hours - hours) * 60.0
        minutes = math.floor(ra_minutes)
        seconds = (ra_minutes - minutes) * 60.0

        dec_abs = abs(dec_deg)
        degrees = math.floor(dec_abs)
        dec_minutes = (dec_abs - degrees) * 60.0
        arcmin = math.floor(dec_minutes)
        arcsec = (dec_minutes - arcmin) * 60.0
        signed_degrees = -float(degrees) if dec_deg < 0 else float(degrees)

        return cls(float(hours), float(minutes), seconds,
                   signed_degrees, float(arcmin), arcsec)

    @classmethod
    def from_strings(cls, ra: str, dec: str) -> RaDec:
        """Parse ``"HH:MM:SS.s"`` / ``"+DD:MM:SS.s"`` (colons or spaces)."""
        return cls(*CODECS['ra'].decode(ra), *CODECS['dec'].decode(dec))

    def ra_string(self, decimals: int = 2, sep: str = " ") -> str:
        return CODECS['ra'].encode((self.ra_hour, self.ra_min, self.ra_sec), decimals, sep)

    def dec_string(self, decimals: int = 2, sep: str = " ") -> str:
        return CODECS['dec'].encode((self.dec_deg, self.dec_min, self.dec_sec), decimals, sep)

    def __str__(self) -> str:
        return f"{self.ra_string()} {self.dec_string()}"


@dataclass(eq=False)
class Target:
    """An astronomical object placed (or placeable) in the mask.

    Attributes
    ----------
    name : str
        Object identifier.
    priority : float
        Selection priority; alignment candidates carry a negative priority
        in target lists.
    magnitude : float
        Catalog magnitude.
    ra_dec : RaDec
        Equatorial position.
    epoch, equinox : float
        Catalog epoch and equinox.
    wcs_x, wcs_y : float
        Sky-tangent-plane position (arcsec), derived.
    obj_x, obj_y : float
        Focal-plane (CSU) position relative to the array center, derived.
    min_row, max_row : int
        Inclusive 0-based row range (counted from the bottom of the array)
        occupied during a dithered observation, derived.
    align_row : int
        0-based row of an alignment star, -1 when the star sits too close
        to a row edge.
    in_valid_slit : bool
        True when the object stays inside its slit across the dither.
    center_distance : float
        Offset from the center of its slit along the slit (arcsec).
    """
    name: str = ""
    priority: float = 0.0
    magnitude: float = 0.0
    ra_dec: RaDec = field(default_factory=RaDec)
    epoch: float = 2000.0
    equinox: float = 2000.0

    wcs_x: float = 0.0
    wcs_y: float = 0.0
    obj_x: float = 0.0
    obj_y: float = 0.0
    min_row: int = 0
    max_row: int = 0
    align_row: int = -1
    in_valid_slit: bool = False
    center_distance: float = 0.0

    @property
    def is_alignment_candidate(self) -> bool:
        return self.priority < 0

    def __repr__(self) -> str:
        return f"Target({self.name!r}, priority={self.priority:g}, {self.ra_dec})"


def spans_ra_wrap(objects: Iterable[Target]) -> bool:
    """True if the objects straddle 0h RA (some at hour 0, some at hour 23)."""
    hours = {int(obj.ra_dec.ra_hour) for obj in objects}
    return 0 in hours and 23 in hours


@dataclass
class PointingSolution:
    """Where the mask points and what it holds.

    Attributes
    ----------
    center : RaDec
        Sky position of the CSU center.
    position_angle : float
        Position angle of the mask in degrees.
    total_priority : float
        Sum of priorities of validly placed targets.
    coord_wrap : bool
        True if the object set spans the 0h/24h RA boundary.
    targets : list of Target
        Science targets to place, in input order.
    alignment_candidates : list of Target
        Stars eligible as alignment references.
    alignment_stars : list of Target
        Stars chosen by the alignment selector.
    """
    center: RaDec = field(default_factory=RaDec)
    position_angle: float = 0.0
    total_priority: float = 0.0
    coord_wrap: bool = False
    targets: List[Target] = field(default_factory=list)
    alignment_candidates: List[Target] = field(default_factory=list)
    alignment_stars: List[Target] = field(default_factory=list)

    @classmethod
    def from_target_list(
        cls,
        objects: Iterable[Target],
        center: RaDec,
        position_angle: float,
    ) -> PointingSolution:
        """Split a mixed target list into science targets and candidates.

        Objects with negative priority are alignment candidates.
        """
        objects = list(objects)
        return cls(
            center=center,
            position_angle=position_angle,
            coord_wrap=spans_ra_wrap(objects),
            targets=[obj for obj in objects if not obj.is_alignment_candidate],
            alignment_candidates=[obj for obj in objects if obj.is_alignment_candidate],
        )

    def find_target(self, name: str) -> Optional[Target]:
        """Look a target or star up by name."""
        for obj in self.targets + self.alignment_stars + self.alignment_candidates:
            if obj.name == name:
                return obj
        return None

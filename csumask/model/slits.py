"""Mechanical and science slit records.

A :class:`MechanicalSlit` is one bar pair. Its aperture is described by a
center offset and a width in arcsec; the bar positions in mm follow from
the plate scale and must always lie inside the travel limits.

Bar numbering: row ``n`` is formed by the odd bar ``2n - 1`` (right, lower
mm position) and the even bar ``2n`` (left, higher mm position), so that
``width = (left - right) * arcsec_per_mm``.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Optional

from csumask.model.targets import RaDec, Target
from csumask.utils.constants import DEFAULT_GEOMETRY, DEFAULT_SLIT_WIDTH, CsuGeometry

UNASSIGNED_ROWS = -1
"""Row-span sentinel for a bar pair with no target"""


@dataclass
class MechanicalSlit:
    """One bar pair.

    Attributes
    ----------
    slit_number : int
        1-based row number (1 at the top of the array).
    center_position : float
        Aperture center in arcsec, positive to the left.
    slit_width : float
        Aperture width in arcsec.
    slit_rows : int
        Row-span of the science slit this row belongs to, or
        ``UNASSIGNED_ROWS``.
    target : Target, optional
        Object in the slit.
    target_name : str
        Free-text target name, used before ``target`` is resolved.
    center_distance : float
        Target offset from the slit center (alignment boxes only).
    """
    slit_number: int
    center_position: float = 0.0
    slit_width: float = DEFAULT_SLIT_WIDTH
    slit_rows: int = UNASSIGNED_ROWS
    target: Optional[Target] = None
    target_name: str = ""
    center_distance: float = 0.0

    # --- Target helpers ---------------------------------------------------

    @property
    def name(self) -> str:
        """Name of the target, falling back to the unresolved name."""
        return self.target.name if self.target is not None else self.target_name

    @property
    def priority(self) -> float:
        return self.target.priority if self.target is not None else 0.0

    @property
    def is_assigned(self) -> bool:
        return self.target is not None and self.slit_rows != UNASSIGNED_ROWS

    # --- Bars -------------------------------------------------------------

    @property
    def left_bar_number(self) -> int:
        return 2 * self.slit_number

    @property
    def right_bar_number(self) -> int:
        return 2 * self.slit_number - 1

    def left_bar_position_mm(self, geometry: CsuGeometry = DEFAULT_GEOMETRY) -> float:
        return geometry.zero_point_mm + (
            self.center_position + self.slit_width / 2.0) / geometry.arcsec_per_mm

    def right_bar_position_mm(self, geometry: CsuGeometry = DEFAULT_GEOMETRY) -> float:
        return geometry.zero_point_mm + (
            self.center_position - self.slit_width / 2.0) / geometry.arcsec_per_mm

    def bars_within_limits(self, geometry: CsuGeometry = DEFAULT_GEOMETRY) -> bool:
        """True if both bars sit inside the travel limits."""
        return (self.left_bar_position_mm(geometry) <= geometry.maximum_bar_mm
                and self.right_bar_position_mm(geometry) >= geometry.minimum_bar_mm)

    def copy(self) -> MechanicalSlit:
        """Shallow copy sharing the same Target."""
        return copy.copy(self)


@dataclass
class ScienceSlit:
    """One or more contiguous rows sharing a target.

    Attributes
    ----------
    slit_number : int
        1-based science slit number, top to bottom.
    ra_dec : RaDec
        Sky position of the slit center.
    slit_width : float
        Width in arcsec.
    slit_length : float
        Length in arcsec (``rows * row_height - overlap``).
    slit_rows : int
        Number of mechanical rows.
    target : Target
        Object in the slit.
    center_distance : float
        Target offset from the slit center along the slit (arcsec).
    """
    slit_number: int
    target: Target
    slit_rows: int = 1
    slit_width: float = DEFAULT_SLIT_WIDTH
    slit_length: float = 0.0
    ra_dec: RaDec = field(default_factory=RaDec)
    center_distance: float = 0.0

    @classmethod
    def from_mechanical(
        cls,
        slit_number: int,
        mech: MechanicalSlit,
        rows: int,
        geometry: CsuGeometry = DEFAULT_GEOMETRY,
    ) -> ScienceSlit:
        """Start a science slit from the first row of a run."""
        return cls(
            slit_number=slit_number,
            target=mech.target,
            slit_rows=rows,
            slit_width=mech.slit_width,
            slit_length=geometry.slit_length(rows),
        )


def slit_number_key(slit) -> int:
    """Sort key ordering slits by slit number."""
    return slit.slit_number

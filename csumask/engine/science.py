"""Science slit builder.

Collapses runs of contiguous mechanical rows sharing one target into
logical science slits and derives their sky position, length and target
offset.
"""

import logging
from typing import List, Sequence

from csumask.engine.transforms import Projection, center_distance, slit_position
from csumask.model.slits import MechanicalSlit, ScienceSlit

logger = logging.getLogger(__name__)


def place_science_slit(
    slit: ScienceSlit,
    bottom_row: int,
    rows: int,
    projection: Projection,
    dither_space: float,
) -> None:
    """Recompute a science slit for a new row range, in place.

    Parameters
    ----------
    slit : ScienceSlit
        Slit to update; its target's validity flag is refreshed too.
    bottom_row : int
        0-based row (from the bottom) of the lowest row in the slit.
    rows : int
        Number of rows.
    projection : Projection
        Pointing projection.
    dither_space : float
        Dither half-range (arcsec).
    """
    geometry = projection.geometry
    target = slit.target
    position = slit_position(bottom_row, rows, (target.obj_x, target.obj_y), geometry)

    slit.slit_rows = rows
    slit.slit_length = geometry.slit_length(rows)
    slit.ra_dec = projection.csu_to_sky(position)
    slit.center_distance = center_distance(target.obj_y, position[1], geometry)

    target.center_distance = slit.center_distance
    target.in_valid_slit = abs(slit.center_distance) <= slit.slit_length / 2.0 - dither_space


def build_science_slits(
    mechanical_slits: Sequence[MechanicalSlit],
    projection: Projection,
    dither_space: float,
) -> List[ScienceSlit]:
    """Group a slit-number-ordered mechanical list into science slits.

    Each maximal run of rows holding the same Target becomes one slit,
    numbered top to bottom. Rows without a target are skipped.
    """
    n_rows = projection.geometry.n_rows
    science: List[ScienceSlit] = []

    ii = 0
    while ii < len(mechanical_slits):
        first = mechanical_slits[ii]
        if first.target is None:
            ii += 1
            continue
        rows = 1
        while (ii + rows < len(mechanical_slits)
               and mechanical_slits[ii + rows].target is first.target):
            rows += 1

        slit = ScienceSlit.from_mechanical(len(science) + 1, first, rows, projection.geometry)
        place_science_slit(slit, n_rows - ii - rows, rows, projection, dither_space)
        science.append(slit)
        ii += rows

    logger.debug(f"Built {len(science)} science slits from {len(mechanical_slits)} rows")
    return science

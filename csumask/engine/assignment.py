"""Mechanical slit assignment and slit expansion.

Turns a target list and a pointing into a full bar-pair layout:

1. Every target is projected into CSU coordinates and assigned to every
   row it can touch during the dither. Later targets overwrite earlier
   ones on shared rows.
2. Optionally, rows left empty are claimed by their neighbors with a
   fixed, order-sensitive expansion heuristic. The produced layout is sent
   to hardware, so the pass order and the tie-break predicates below are
   part of the contract and must not be reordered or symmetrized.

Working arrays are indexed by 0-based row from the bottom of the array,
so index ``i`` holds hardware slit number ``n_rows - i``.
"""

import logging
from typing import List, Sequence

from csumask.engine.transforms import Projection, dither_rows, slit_position
from csumask.model.slits import UNASSIGNED_ROWS, MechanicalSlit, slit_number_key
from csumask.model.targets import Target
from csumask.utils.constants import DEFAULT_GEOMETRY, CsuGeometry

logger = logging.getLogger(__name__)


def project_target(target: Target, projection: Projection, dither_space: float) -> None:
    """Derive a target's WCS/CSU position and dithered row range in place."""
    target.wcs_x, target.wcs_y = projection.sky_to_wcs(target.ra_dec)
    target.obj_x, target.obj_y = projection.sky_to_csu(target.ra_dec)
    target.min_row, target.max_row = dither_rows(target.obj_y, dither_space, projection.geometry)


# ---------------------------------------------------------------------------
# Assignment
# ---------------------------------------------------------------------------

def assign_targets(
    targets: Sequence[Target],
    projection: Projection,
    slit_width: float,
    dither_space: float,
) -> List[MechanicalSlit]:
    """Assign each target to the rows it occupies.

    Parameters
    ----------
    targets : sequence of Target
        Science targets in input order; positions are derived in place.
    projection : Projection
        Pointing projection.
    slit_width : float
        Width given to every row (arcsec).
    dither_space : float
        Dither half-range (arcsec).

    Returns
    -------
    list of MechanicalSlit
        Bottom-first working array; unassigned rows carry
        ``UNASSIGNED_ROWS``.
    """
    geometry = projection.geometry
    n_rows = geometry.n_rows
    slots = [MechanicalSlit(n_rows - ii, slit_width=slit_width) for ii in range(n_rows)]

    for target in targets:
        project_target(target, projection, dither_space)
        min_row = max(target.min_row, 0)
        max_row = min(target.max_row, n_rows - 1)
        if (min_row, max_row) != (target.min_row, target.max_row):
            logger.warning(
                f"Target {target.name} spans rows {target.min_row}-{target.max_row}, "
                f"clipped to the array"
            )
        if min_row > max_row:
            continue
        span = max_row - min_row + 1
        for jj in range(min_row, max_row + 1):
            slots[jj].target = target
            slots[jj].slit_width = slit_width
            slots[jj].slit_rows = span

    n_used = sum(1 for slot in slots if slot.is_assigned)
    logger.debug(f"Assigned {len(targets)} targets to {n_used} of {n_rows} rows")
    return slots


# ---------------------------------------------------------------------------
# Expansion
# ---------------------------------------------------------------------------

def _claim(slots: List[MechanicalSlit], index: int, source: int) -> None:
    """Copy row ``source`` into row ``index`` keeping the hardware number."""
    clone = slots[source].copy()
    clone.slit_number = len(slots) - index
    slots[index] = clone


def expand_unused_rows(
    slots: List[MechanicalSlit],
    dither_space: float,
    geometry: CsuGeometry = DEFAULT_GEOMETRY,
) -> None:
    """Fill empty rows of a bottom-first working array in place.

    Passes, in order: boundary singles-to-doubles, general singles to
    doubles/triples, envelope fill, end rows, and row-count correction.
    """
    n = len(slots)
    dead_space = dither_space + geometry.overlap / 2.0
    single_height = geometry.single_slit_height

    def rows(ii):
        return slots[ii].slit_rows

    def prio(ii):
        return slots[ii].priority

    # --- Boundary singles to doubles -------------------------------------
    if rows(1) == 1 and rows(2) == UNASSIGNED_ROWS and prio(1) > prio(3):
        _claim(slots, 2, 1)
    if rows(n - 2) == 1 and rows(n - 3) == UNASSIGNED_ROWS and prio(n - 2) > prio(n - 4):
        _claim(slots, n - 3, n - 2)
    if rows(1) == 1 and rows(0) == UNASSIGNED_ROWS:
        _claim(slots, 0, 1)
    if rows(n - 2) == 1 and rows(n - 1) == UNASSIGNED_ROWS:
        _claim(slots, n - 1, n - 2)

    # --- Singles to doubles and triples ----------------------------------
    for ii in range(n):
        if rows(ii) != 1:
            continue
        if (ii < n - 2 and rows(ii + 1) == UNASSIGNED_ROWS
                and (prio(ii) > prio(ii + 2) or rows(ii + 2) == 2)):
            _claim(slots, ii + 1, ii)
        if (ii > 1 and rows(ii - 1) == UNASSIGNED_ROWS
                and (prio(ii) > prio(ii - 2) or rows(ii - 2) == 2)):
            _claim(slots, ii - 1, ii)

    # --- Envelope fill ---------------------------------------------------
    for _ in range(n):
        for ii in range(1, n - 1):
            if rows(ii) != UNASSIGNED_ROWS:
                continue
            before, after = prio(ii - 1), prio(ii + 1)
            if rows(ii - 1) > 0 and before > after:
                _claim(slots, ii, ii - 1)
            elif rows(ii + 1) > 0 and after > before:
                _claim(slots, ii, ii + 1)
            elif after == before:
                upper = slots[ii + 1].target
                y = upper.obj_y if upper is not None else 0.0
                reach = (ii + 1) * single_height + 2 * ii * dead_space
                if (y - dead_space - reach) < (dead_space + reach - y):
                    _claim(slots, ii, ii + 1)
                else:
                    _claim(slots, ii, ii - 1)

    # --- End rows --------------------------------------------------------
    if rows(n - 1) == UNASSIGNED_ROWS and rows(n - 2) > 0:
        _claim(slots, n - 1, n - 2)
    if rows(0) == UNASSIGNED_ROWS and rows(1) > 0:
        _claim(slots, 0, 1)

    # --- Row-count correction --------------------------------------------
    counts = {}
    for slot in slots:
        if slot.target is not None:
            counts[slot.name] = counts.get(slot.name, 0) + 1
    for slot in slots:
        if slot.target is not None:
            slot.slit_rows = counts[slot.name]

    n_empty = sum(1 for slot in slots if not slot.is_assigned)
    logger.debug(f"Slit expansion finished with {n_empty} empty rows")


# ---------------------------------------------------------------------------
# Layout
# ---------------------------------------------------------------------------

def place_slit_centers(slots: List[MechanicalSlit],
                       geometry: CsuGeometry = DEFAULT_GEOMETRY) -> None:
    """Center every row of a bottom-first array under its target."""
    for ii, slot in enumerate(slots):
        target = slot.target
        target_xy = (target.obj_x, target.obj_y) if target is not None else (0.0, 0.0)
        slot.center_position = slit_position(ii, 1, target_xy, geometry)[0]


def build_mechanical_layout(
    targets: Sequence[Target],
    projection: Projection,
    slit_width: float,
    dither_space: float,
    reassign_unused_slits: bool,
) -> List[MechanicalSlit]:
    """Assign, optionally expand, and center; returned sorted by slit number."""
    slots = assign_targets(targets, projection, slit_width, dither_space)
    if reassign_unused_slits:
        expand_unused_rows(slots, dither_space, projection.geometry)
    place_slit_centers(slots, projection.geometry)
    return sorted(slots, key=slit_number_key)

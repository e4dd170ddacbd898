"""Alignment star selection.

Chooses ``K`` alignment stars, at most one per row, spread as widely as
possible over the field. Every ``K``-subset of the usable candidates is
scored by the sum of its pairwise distances plus ``K`` times its smallest
pairwise distance; the first subset (in lexicographic combination order)
with the highest score wins.

The search is exhaustive, C(n, K) subsets. Candidate lists are short
(typically a few dozen stars) so this runs to completion without limits.
"""

import itertools
import logging
from typing import List, Optional, Sequence

import numpy as np

from csumask.engine.transforms import Projection, center_distance, slit_position, star_row
from csumask.model.slits import MechanicalSlit, slit_number_key
from csumask.model.targets import Target
from csumask.utils.constants import ALIGNMENT_BOX_SLIT_WIDTH

logger = logging.getLogger(__name__)


def locate_stars(candidates: Sequence[Target], projection: Projection,
                 edge_buffer: float) -> None:
    """Derive CSU positions and rows of alignment candidates in place."""
    for star in candidates:
        star.wcs_x, star.wcs_y = projection.sky_to_wcs(star.ra_dec)
        star.obj_x, star.obj_y = projection.sky_to_csu(star.ra_dec)
        star.align_row = star_row(star.obj_y, edge_buffer, projection.geometry)
        star.min_row = star.max_row = star.align_row


def pairwise_distances(points: np.ndarray) -> np.ndarray:
    """Euclidean distance matrix for an (n, 2) array of CSU positions."""
    delta = points[:, np.newaxis, :] - points[np.newaxis, :, :]
    return np.sqrt(delta[..., 0] * delta[..., 0] + delta[..., 1] * delta[..., 1])


def subset_score(distances: np.ndarray, subset: Sequence[int]) -> float:
    """Sum of pairwise distances plus len(subset) times the smallest one."""
    total = 0.0
    smallest: Optional[float] = None
    for i, j in itertools.combinations(subset, 2):
        d = float(distances[i, j])
        total += d
        if smallest is None or d < smallest:
            smallest = d
    if smallest is None:
        smallest = 0.0
    return total + smallest * len(subset)


def find_best_alignment_set(
    candidates: Sequence[Target],
    projection: Projection,
    minimum_stars: int,
    edge_buffer: float,
) -> List[Target]:
    """Pick the best-spread set of ``minimum_stars`` stars on distinct rows.

    Parameters
    ----------
    candidates : sequence of Target
        Eligible stars, in input order.
    projection : Projection
        Pointing projection.
    minimum_stars : int
        Subset size K.
    edge_buffer : float
        Minimum distance from a star to its row edge (arcsec).

    Returns
    -------
    list of Target
        The chosen stars in candidate order, or an empty list if no subset
        of K stars on K distinct rows exists.
    """
    locate_stars(candidates, projection, edge_buffer)
    usable = [star for star in candidates if star.align_row >= 0]
    if minimum_stars <= 0 or len(usable) < minimum_stars:
        logger.warning(
            f"Only {len(usable)} usable alignment stars, {minimum_stars} requested"
        )
        return []

    points = np.array([[star.obj_x, star.obj_y] for star in usable], dtype=np.float64)
    distances = pairwise_distances(points)

    best: Optional[tuple] = None
    best_score = 0.0
    n_checked = 0
    for subset in itertools.combinations(range(len(usable)), minimum_stars):
        n_checked += 1
        if len({usable[i].align_row for i in subset}) != minimum_stars:
            continue
        score = subset_score(distances, subset)
        if best is None or score > best_score:
            best, best_score = subset, score

    logger.debug(f"Checked {n_checked} alignment subsets, best score {best_score:.3f}")
    if best is None:
        logger.warning("No alignment star subset with distinct rows")
        return []
    return [usable[i] for i in best]


def build_alignment_slits(stars: Sequence[Target],
                          projection: Projection) -> List[MechanicalSlit]:
    """One alignment box per star, centered under it, sorted by slit number."""
    geometry = projection.geometry
    slits = []
    for star in stars:
        row = star.align_row
        position = slit_position(row, 1, (star.obj_x, star.obj_y), geometry)
        distance = center_distance(star.obj_y, position[1], geometry)
        star.center_distance = distance
        slits.append(MechanicalSlit(
            slit_number=geometry.n_rows - row,
            center_position=position[0],
            slit_width=ALIGNMENT_BOX_SLIT_WIDTH,
            slit_rows=1,
            target=star,
            center_distance=distance,
        ))
    return sorted(slits, key=slit_number_key)

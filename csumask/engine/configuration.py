"""Slit configuration aggregate.

A :class:`Configuration` owns the mechanical, science and alignment slit
lists of one mask, the pointing it was generated for and the parameters
used to generate it. It is created empty, from a preset, by
:meth:`Configuration.generate`, or by the MSC reader, and is then edited
in place.

Edits are atomic. Bounds violations are reported by returning ``False``
with nothing changed; references to rows or targets that do not belong to
any slit raise :class:`~csumask.errors.SlitLookupError` before anything is
changed.

Status lifecycle::

    NEW / UNSAVEABLE --edit--> MODIFIED --write--> SAVED --edit--> MODIFIED
    (parse) -----------------------------------> SAVED
"""

import copy
import logging
import math
from enum import Enum
from typing import List, Optional

from csumask.engine.alignment import (
    build_alignment_slits,
    find_best_alignment_set,
    locate_stars,
)
from csumask.engine.assignment import build_mechanical_layout, project_target
from csumask.engine.science import build_science_slits, place_science_slit
from csumask.engine.transforms import Projection, dither_rows, slit_number_from_y, slit_position
from csumask.errors import SlitLookupError
from csumask.model.parameters import MaskParameters
from csumask.model.slits import UNASSIGNED_ROWS, MechanicalSlit, ScienceSlit
from csumask.model.targets import PointingSolution, Target, spans_ra_wrap
from csumask.utils.constants import (
    ALIGNMENT_BOX_SLIT_WIDTH,
    CSU_CALIBRATION_SLIT_MIDDLE_ROW,
    CSU_OPEN_BAR_TARGETS,
    CSU_OPEN_MASK_SLIT_WIDTH,
    DEFAULT_GEOMETRY,
    DEFAULT_SLIT_WIDTH,
    CsuGeometry,
)

logger = logging.getLogger(__name__)


class ConfigurationStatus(Enum):
    """Persistence state of a configuration."""
    NEW = "new"
    MODIFIED = "modified"
    SAVED = "saved"
    UNSAVEABLE = "unsaveable"


def _format_width(width: float) -> str:
    """Up to six decimals, trailing zeros dropped (1.0 -> '1')."""
    return f"{width:.6f}".rstrip('0').rstrip('.')


class Configuration:
    """
    Slit layout of one mask.

    Parameters
    ----------
    mask_name : str, default "none"
        Name of the mask.
    is_new : bool, default False
        Start in status NEW instead of UNSAVEABLE.
    geometry : CsuGeometry, optional
        Array geometry.

    Attributes
    ----------
    mechanical_slits : list of MechanicalSlit
        Bar pairs in slit-number order.
    science_slits : list of ScienceSlit
        Logical slits in slit-number order.
    align_slits : list of MechanicalSlit
        Alignment boxes in slit-number order.
    pointing : PointingSolution
        Center, position angle and targets.
    parameters : MaskParameters
        Generation and edit parameters.
    status : ConfigurationStatus
        Persistence state.
    msc_version : str
        Format version of the file it was loaded from.
    original_filename : str
        File it was loaded from, or the preset name.
    """

    def __init__(
        self,
        mask_name: str = "none",
        is_new: bool = False,
        geometry: CsuGeometry = DEFAULT_GEOMETRY,
    ):
        self.mask_name = mask_name
        self.geometry = geometry
        self.status = ConfigurationStatus.NEW if is_new else ConfigurationStatus.UNSAVEABLE
        self.msc_version = "unknown"
        self.original_filename = "none"

        self.mechanical_slits: List[MechanicalSlit] = [
            MechanicalSlit(ii + 1, 0.0, DEFAULT_SLIT_WIDTH) for ii in range(geometry.n_rows)
        ]
        self.science_slits: List[ScienceSlit] = []
        self.align_slits: List[MechanicalSlit] = []
        self.pointing = PointingSolution()
        self.parameters = MaskParameters()

    def __repr__(self) -> str:
        return (f"Configuration({self.mask_name!r}, status={self.status.value}, "
                f"{len(self.science_slits)} science slits, {len(self.align_slits)} align slits)")

    @property
    def projection(self) -> Projection:
        return Projection.for_pointing(self.pointing, self.geometry)

    @property
    def total_priority(self) -> float:
        return self.pointing.total_priority

    # --- Factories --------------------------------------------------------

    @classmethod
    def long_slit(
        cls,
        slit_length: int,
        slit_width: float,
        geometry: CsuGeometry = DEFAULT_GEOMETRY,
    ) -> "Configuration":
        """Long-slit preset centered on the calibration middle row.

        Parameters
        ----------
        slit_length : int
            Number of rows in the slit.
        slit_width : float
            Slit width in arcsec.

        Returns
        -------
        Configuration
            UNSAVEABLE configuration with ``slit_length`` mechanical slits
            and one alignment box at the middle row.

        Raises
        ------
        ValueError
            If ``slit_length`` does not fit the array.
        """
        if not 1 <= slit_length <= geometry.n_rows:
            raise ValueError(f"Long slit length must be 1-{geometry.n_rows}, got {slit_length}")

        config = cls(f"LONGSLIT-{slit_length}x{_format_width(slit_width)}", geometry=geometry)
        half_rows = math.ceil(slit_length / 2.0) - 1
        tan_tilt = math.tan(geometry.tilt_radians)

        config.mechanical_slits = []
        for ii in range(slit_length):
            row = CSU_CALIBRATION_SLIT_MIDDLE_ROW - half_rows + ii
            offset = (half_rows - ii) * geometry.single_slit_height
            config.mechanical_slits.append(MechanicalSlit(row, tan_tilt * offset, slit_width))

        config.align_slits = [MechanicalSlit(
            CSU_CALIBRATION_SLIT_MIDDLE_ROW,
            config.mechanical_slits[half_rows].center_position,
            ALIGNMENT_BOX_SLIT_WIDTH,
        )]
        config.parameters.mask_name = config.mask_name
        config.parameters.slit_width = slit_width
        config.original_filename = config.mask_name
        return config

    @classmethod
    def open_mask(cls, geometry: CsuGeometry = DEFAULT_GEOMETRY) -> "Configuration":
        """Open-mask preset driven by the fixed bar-target table."""
        config = cls("OPEN", geometry=geometry)
        config.mechanical_slits = []
        for ii in range(geometry.n_rows):
            odd_bar = CSU_OPEN_BAR_TARGETS[2 * ii]
            even_bar = CSU_OPEN_BAR_TARGETS[2 * ii + 1]
            width = (even_bar - odd_bar) * geometry.arcsec_per_mm
            center = ((even_bar + odd_bar) / 2.0 - geometry.zero_point_mm) * geometry.arcsec_per_mm
            config.mechanical_slits.append(MechanicalSlit(ii + 1, center, width))
        config.parameters.mask_name = config.mask_name
        config.parameters.slit_width = CSU_OPEN_MASK_SLIT_WIDTH
        config.original_filename = config.mask_name
        return config

    @classmethod
    def generate(
        cls,
        pointing: PointingSolution,
        parameters: MaskParameters,
        reassign_unused_slits: Optional[bool] = None,
        geometry: CsuGeometry = DEFAULT_GEOMETRY,
    ) -> "Configuration":
        """Lay out a mask for a pointing.

        Parameters
        ----------
        pointing : PointingSolution
            Center, position angle, targets and alignment candidates. Target
            positions are derived in place.
        parameters : MaskParameters
            Slit width, dither and alignment settings.
        reassign_unused_slits : bool, optional
            Run the slit expansion heuristic. Defaults to
            ``parameters.reassign_unused_slits``.

        Returns
        -------
        Configuration
            Fully populated configuration in status NEW.
        """
        if reassign_unused_slits is None:
            reassign_unused_slits = parameters.reassign_unused_slits

        config = cls(parameters.mask_name, is_new=True, geometry=geometry)
        config.pointing = pointing
        config.parameters = parameters
        projection = config.projection

        config.mechanical_slits = build_mechanical_layout(
            pointing.targets, projection, parameters.slit_width,
            parameters.dither_space, reassign_unused_slits,
        )
        config.science_slits = build_science_slits(
            config.mechanical_slits, projection, parameters.dither_space)

        if parameters.minimum_alignment_stars > 0:
            stars = find_best_alignment_set(
                pointing.alignment_candidates, projection,
                parameters.minimum_alignment_stars, parameters.alignment_star_edge_buffer,
            )
            pointing.alignment_stars = stars
            config.align_slits = build_alignment_slits(stars, projection)

        config.update_priority()
        logger.info(
            f"Generated mask {config.mask_name}: {len(config.science_slits)} science slits, "
            f"{len(config.align_slits)} alignment boxes, "
            f"total priority {config.total_priority:.2f}"
        )
        return config

    # --- Derived state ----------------------------------------------------

    def update_priority(self) -> float:
        """Recompute the total priority of validly placed targets."""
        self.pointing.total_priority = sum(
            slit.target.priority for slit in self.science_slits if slit.target.in_valid_slit
        )
        return self.pointing.total_priority

    def update_astro_objects(self) -> None:
        """Re-derive target positions and validity from the pointing."""
        projection = self.projection
        dither = self.parameters.dither_space
        for slit in self.science_slits:
            project_target(slit.target, projection, dither)
            slit.target.center_distance = slit.center_distance
            slit.target.in_valid_slit = abs(slit.center_distance) <= slit.slit_length / 2.0 - dither
        stars = [slit.target for slit in self.align_slits if slit.target is not None]
        locate_stars(stars, projection, self.parameters.alignment_star_edge_buffer)
        for slit in self.align_slits:
            if slit.target is not None:
                slit.target.center_distance = slit.center_distance

    def resolve_target_names(self) -> None:
        """Point mechanical rows at Targets by name and recount row-spans.

        Consecutive rows with the same name share one Target. Names not
        found in the pointing get a bare placeholder Target.
        """
        previous: Optional[MechanicalSlit] = None
        for slit in self.mechanical_slits:
            name = slit.name
            if not name:
                slit.target = None
            elif previous is not None and previous.name == name:
                slit.target = previous.target
            else:
                found = self.pointing.find_target(name)
                if found is None:
                    logger.warning(f"Mechanical slit {slit.slit_number}: unknown target {name}")
                    found = Target(name=name)
                slit.target = found
            previous = slit if name else None
        self._recount_runs()

    def _recount_runs(self) -> None:
        """Set every row's span to the length of its same-target run."""
        ii = 0
        slits = self.mechanical_slits
        while ii < len(slits):
            target = slits[ii].target
            if target is None:
                slits[ii].slit_rows = UNASSIGNED_ROWS
                ii += 1
                continue
            end = ii
            while end + 1 < len(slits) and slits[end + 1].target is target:
                end += 1
            for slit in slits[ii:end + 1]:
                slit.slit_rows = end - ii + 1
                slit.target_name = target.name
            ii = end + 1

    def refresh_after_load(self) -> None:
        """Rebuild derived state after parsing and mark SAVED."""
        science_targets = [slit.target for slit in self.science_slits]
        stars = [slit.target for slit in self.align_slits if slit.target is not None]
        self.pointing.targets = science_targets
        self.pointing.alignment_stars = stars
        self.pointing.coord_wrap = spans_ra_wrap(science_targets + stars)
        self.update_astro_objects()
        self.resolve_target_names()
        self.update_priority()
        self.status = ConfigurationStatus.SAVED

    def mark_saved(self) -> None:
        self.status = ConfigurationStatus.SAVED

    # --- Accessors --------------------------------------------------------

    def all_targets(self) -> List[Target]:
        """Science targets followed by alignment stars."""
        targets = [slit.target for slit in self.science_slits]
        targets.extend(slit.target for slit in self.align_slits if slit.target is not None)
        return targets

    def excess_targets(self) -> List[Target]:
        """Pointing targets that did not end up in any science slit."""
        placed = {id(slit.target) for slit in self.science_slits}
        return [target for target in self.pointing.targets if id(target) not in placed]

    def has_invalid_slits(self) -> bool:
        return any(not slit.target.in_valid_slit for slit in self.science_slits)

    def mech_slit_index(self, slit_number: int) -> int:
        """Index in ``mechanical_slits`` of a hardware slit number."""
        for index, slit in enumerate(self.mechanical_slits):
            if slit.slit_number == slit_number:
                return index
        raise SlitLookupError(f"No mechanical slit number {slit_number}")

    def science_slit_for(self, target: Optional[Target]) -> Optional[ScienceSlit]:
        if target is None:
            return None
        for slit in self.science_slits:
            if slit.target is target:
                return slit
        return None

    def clone(self) -> "Configuration":
        """Deep copy sharing nothing mutable with the original."""
        return copy.deepcopy(self)

    # --- Width edits ------------------------------------------------------

    def increment_slit_width(self, offset: float) -> bool:
        """Widen (or narrow) every slit by ``offset`` arcsec.

        Returns
        -------
        bool
            False, with nothing changed, if any row would fall below the
            minimum width or push a bar past its travel limit.
        """
        geometry = self.geometry
        side_mm = offset / geometry.arcsec_per_mm / 2.0
        for slit in self.mechanical_slits:
            if slit.slit_width + offset < geometry.minimum_slit_width:
                return False
            if slit.left_bar_position_mm(geometry) + side_mm > geometry.maximum_bar_mm:
                return False
            if slit.right_bar_position_mm(geometry) - side_mm < geometry.minimum_bar_mm:
                return False

        self.parameters.slit_width += offset
        for slit in self.mechanical_slits:
            slit.slit_width += offset
        for slit in self.science_slits:
            slit.slit_width += offset
        self.status = ConfigurationStatus.MODIFIED
        return True

    def set_slit_width(self, mech_index: int, width: float) -> bool:
        """Set the width of the science slit owning a mechanical row.

        The width is clamped to the minimum slit width and to the widest
        aperture that keeps every row of the slit inside the field.

        Returns
        -------
        bool
            False if the row belongs to no science slit.
        """
        slit = self.mechanical_slits[mech_index]
        science = self.science_slit_for(slit.target)
        if science is None:
            return False

        group = [row for row in self.mechanical_slits if row.target is science.target]
        extreme = max((row.center_position for row in group), key=abs)
        max_width = (self.geometry.width / 2.0 - abs(extreme)) * 2.0
        width = min(max(width, self.geometry.minimum_slit_width), max_width)

        for row in group:
            row.slit_width = width
        science.slit_width = width
        self.status = ConfigurationStatus.MODIFIED
        return True

    # --- Row transfers ----------------------------------------------------

    def align_slit_with_neighbor(self, mech_index: int, above: bool) -> None:
        """Give a row to the science slit of its upper or lower neighbor.

        Parameters
        ----------
        mech_index : int
            Index into ``mechanical_slits`` of the row to transfer.
        above : bool
            Join the slit above (lower slit number) instead of below.

        Raises
        ------
        SlitLookupError
            If the neighbor does not exist or either row's target has no
            science slit.
        """
        slits = self.mechanical_slits
        neighbor_index = mech_index - 1 if above else mech_index + 1
        if not (0 <= mech_index < len(slits) and 0 <= neighbor_index < len(slits)):
            raise SlitLookupError(f"Row index {mech_index} has no neighbor "
                                  f"{'above' if above else 'below'}")

        mech = slits[mech_index]
        new_target = slits[neighbor_index].target
        orig_target = mech.target
        if new_target is orig_target:
            return

        target_slit = self.science_slit_for(new_target)
        orig_slit = self.science_slit_for(orig_target)
        if target_slit is None or orig_slit is None:
            raise SlitLookupError(
                f"Rows {mech.slit_number} and {slits[neighbor_index].slit_number} "
                f"do not both belong to science slits"
            )

        geometry = self.geometry
        n_rows = geometry.n_rows
        projection = self.projection
        dither = self.parameters.dither_space
        new_rows = target_slit.slit_rows + 1
        orig_rows = orig_slit.slit_rows - 1

        mech.target = new_target
        mech.target_name = new_target.name
        mech.slit_width = target_slit.slit_width
        mech.center_position = slit_position(
            n_rows - mech_index - 1, 1, (new_target.obj_x, new_target.obj_y), geometry)[0]
        for row in slits:
            if row.target is new_target:
                row.slit_rows = new_rows
            elif row.target is orig_target:
                row.slit_rows = orig_rows

        if above:
            target_bottom = n_rows - mech_index - 1
            orig_bottom = n_rows - mech_index - orig_rows - 1
        else:
            target_bottom = n_rows - mech_index - new_rows
            orig_bottom = n_rows - mech_index

        place_science_slit(target_slit, target_bottom, new_rows, projection, dither)
        if orig_rows > 0:
            place_science_slit(orig_slit, orig_bottom, orig_rows, projection, dither)
        else:
            removed = orig_slit.slit_number
            self.science_slits.remove(orig_slit)
            for slit in self.science_slits:
                if slit.slit_number > removed:
                    slit.slit_number -= 1
            orig_target.in_valid_slit = False

        self.status = ConfigurationStatus.MODIFIED
        self.update_priority()

    def move_slit_onto_target(self, mech_index: int, new_target: Target) -> bool:
        """Re-center the rows around a new target's dither range onto it.

        If the new range lies strictly inside the current occupant's range
        it is grown to keep the occupant contiguous: towards whichever end
        the occupant's own target lies on, or over the whole range if the
        occupant's target sits inside the new range.

        Returns
        -------
        bool
            False, with nothing changed, if the range leaves the array or
            any row's bars would exceed their travel limits.

        Raises
        ------
        SlitLookupError
            If the row's current target has no science slit.
        """
        slits = self.mechanical_slits
        mech = slits[mech_index]
        orig_target = mech.target
        if self.science_slit_for(orig_target) is None:
            raise SlitLookupError(f"Row {mech.slit_number} does not belong to a science slit")

        geometry = self.geometry
        n_rows = geometry.n_rows
        projection = self.projection
        dither = self.parameters.dither_space
        # new_target is only updated once the move is accepted
        target_xy = projection.sky_to_csu(new_target.ra_dec)
        min_row, max_row = dither_rows(target_xy[1], dither, geometry)

        new_start = n_rows - max_row
        new_end = n_rows - min_row
        orig_numbers = [row.slit_number for row in slits if row.target is orig_target]
        orig_start, orig_end = min(orig_numbers), max(orig_numbers)
        orig_target_number = slit_number_from_y(orig_target.obj_y, geometry)

        start, end = new_start, new_end
        if orig_start < new_start and orig_end > new_end:
            if orig_target_number < new_start:
                end = orig_end
            elif orig_target_number > new_end:
                start = orig_start
            else:
                start, end = orig_start, orig_end

        if start < 1 or end > n_rows:
            logger.debug(f"Move onto {new_target.name} rejected: rows {start}-{end}")
            return False

        affected = [row for row in slits if start <= row.slit_number <= end]
        saved = [(row, row.center_position, row.target) for row in affected]
        for row in affected:
            row.center_position = slit_position(
                n_rows - row.slit_number, 1, target_xy, geometry)[0]
            if not row.bars_within_limits(geometry):
                for saved_row, center, target in saved:
                    saved_row.center_position = center
                    saved_row.target = target
                logger.debug(f"Move onto {new_target.name} rejected: row "
                             f"{row.slit_number} exceeds bar travel")
                return False
            row.target = new_target

        project_target(new_target, projection, dither)
        self._recount_runs()
        self.science_slits = build_science_slits(slits, projection, dither)
        self.update_priority()
        self.status = ConfigurationStatus.MODIFIED
        return True

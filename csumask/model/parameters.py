"""
Mask Generation Parameters
==========================

Edit and generation parameters owned by a
:class:`~csumask.engine.configuration.Configuration`.

Key concepts:
- MaskParameters: mutable dataclass holding slit width, dither margin and
  alignment-star settings
- PARAMETER_ATTRIBUTES: ordered mapping between dataclass fields and the
  attribute names written into slit configuration files

Usage:
    from csumask.model.parameters import MaskParameters

    params = MaskParameters(mask_name="cosmos_a", dither_space=2.0)
    attrs = params.to_attributes()          # {'maskName': 'cosmos_a', ...}
    params = MaskParameters.from_attributes(attrs)
"""

from dataclasses import dataclass, fields
from typing import Dict, Tuple

from csumask.utils.constants import (
    DEFAULT_ALIGNMENT_STAR_EDGE_BUFFER,
    DEFAULT_CLOSED_OFF_SLIT_WIDTH,
    DEFAULT_DITHER_SPACE,
    DEFAULT_MASK_NAME,
    DEFAULT_MAXIMUM_SLIT_LENGTH,
    DEFAULT_MINIMUM_ALIGNMENT_STARS,
    DEFAULT_MINIMUM_CLOSE_OFF_SLIT_WIDTH,
    DEFAULT_SLIT_WIDTH,
)


@dataclass
class MaskParameters:
    """
    Parameters used to generate and edit a mask.

    Attributes
    ----------
    mask_name : str
        Name of the mask.
    slit_width : float
        Science slit width in arcsec.
    dither_space : float
        Half-range of the dither pattern in arcsec.
    minimum_alignment_stars : int
        Number of alignment stars to place (0 disables alignment).
    alignment_star_edge_buffer : float
        Minimum distance in arcsec between an alignment star and its row edge.
    maximum_slit_length : int
        Longest science slit, in rows.
    minimum_close_off_slit_width : float
        Slits at least this wide are closed off in the science mask.
    closed_off_slit_width : float
        Width given to closed-off slits.
    reassign_unused_slits : bool
        Run the slit expansion heuristic to fill empty rows.
    """
    mask_name: str = DEFAULT_MASK_NAME
    slit_width: float = DEFAULT_SLIT_WIDTH
    dither_space: float = DEFAULT_DITHER_SPACE
    minimum_alignment_stars: int = DEFAULT_MINIMUM_ALIGNMENT_STARS
    alignment_star_edge_buffer: float = DEFAULT_ALIGNMENT_STAR_EDGE_BUFFER
    maximum_slit_length: int = DEFAULT_MAXIMUM_SLIT_LENGTH
    minimum_close_off_slit_width: float = DEFAULT_MINIMUM_CLOSE_OFF_SLIT_WIDTH
    closed_off_slit_width: float = DEFAULT_CLOSED_OFF_SLIT_WIDTH
    reassign_unused_slits: bool = True

    def to_attributes(self) -> Dict[str, str]:
        """Render every field as a file attribute string."""
        attrs = {}
        for name, attribute in PARAMETER_ATTRIBUTES:
            value = getattr(self, name)
            if isinstance(value, bool):
                attrs[attribute] = "true" if value else "false"
            elif isinstance(value, float):
                attrs[attribute] = f"{value:.2f}"
            else:
                attrs[attribute] = str(value)
        return attrs

    @classmethod
    def from_attributes(cls, attrs: Dict[str, str]) -> "MaskParameters":
        """Build parameters from file attributes; absent keys keep defaults.

        Raises
        ------
        ValueError
            If a present attribute cannot be converted.
        """
        types = {f.name: f.type for f in fields(cls)}
        kwargs = {}
        for name, attribute in PARAMETER_ATTRIBUTES:
            if attribute not in attrs:
                continue
            raw = attrs[attribute].strip()
            kind = types[name]
            if kind in (bool, 'bool'):
                kwargs[name] = raw.lower() in ('true', '1', 'yes')
            elif kind in (int, 'int'):
                kwargs[name] = int(float(raw))
            elif kind in (float, 'float'):
                kwargs[name] = float(raw)
            else:
                kwargs[name] = raw
        return cls(**kwargs)


PARAMETER_ATTRIBUTES: Tuple[Tuple[str, str], ...] = (
    ('mask_name', 'maskName'),
    ('slit_width', 'slitWidth'),
    ('dither_space', 'ditherSpace'),
    ('minimum_alignment_stars', 'minimumAlignmentStars'),
    ('alignment_star_edge_buffer', 'alignmentStarEdgeBuffer'),
    ('maximum_slit_length', 'maximumSlitLength'),
    ('minimum_close_off_slit_width', 'minimumCloseOffSlitWidth'),
    ('closed_off_slit_width', 'closedOffSlitWidth'),
    ('reassign_unused_slits', 'reassignUnusedSlits'),
)
"""(field name, file attribute) pairs in write order"""

"""Line-oriented text products of a configuration.

- Science slit list (tab separated, one slit per line)
- Keck-style star list line for the pointing
- CSU command scripts for the science and alignment masks
- DS9 region overlay
"""

import logging
from pathlib import Path
from typing import List, Union

from csumask.engine.configuration import Configuration
from csumask.engine.transforms import slit_position
from csumask.model.slits import MechanicalSlit, slit_number_key
from csumask.model.targets import RaDec

logger = logging.getLogger(__name__)

STAR_LIST_NAME_WIDTH = 15
"""Star-list names are padded so coordinates start in column 17"""


def _write_lines(lines: List[str], path: Union[str, Path]) -> Path:
    path = Path(path)
    with open(path, 'w') as f:
        f.writelines(line + "\n" for line in lines)
    return path


def _sexagesimal_fields(ra_dec: RaDec) -> List[str]:
    return ra_dec.ra_string(sep="\t").split("\t") + ra_dec.dec_string(sep="\t").split("\t")


# ---------------------------------------------------------------------------
# Slit list
# ---------------------------------------------------------------------------

def format_slit_list(config: Configuration) -> List[str]:
    """Tab-separated science slit lines, in slit-number order."""
    lines = []
    for slit in sorted(config.science_slits, key=slit_number_key):
        target = slit.target
        fields = [str(slit.slit_number)]
        fields += _sexagesimal_fields(slit.ra_dec)
        fields += [f"{slit.slit_width:.2f}", f"{slit.slit_length:.2f}",
                   target.name, f"{target.priority:.2f}", f"{slit.center_distance:.2f}"]
        fields += _sexagesimal_fields(target.ra_dec)
        lines.append("\t".join(fields))
    return lines


def write_slit_list(config: Configuration, path: Union[str, Path]) -> Path:
    return _write_lines(format_slit_list(config), path)


# ---------------------------------------------------------------------------
# Star list
# ---------------------------------------------------------------------------

def format_star_list_line(config: Configuration) -> str:
    """Keck star-list line for the mask center and position angle."""
    center = config.pointing.center
    name = config.mask_name.ljust(STAR_LIST_NAME_WIDTH)[:STAR_LIST_NAME_WIDTH]
    return (f"{name} {center.ra_string()}  {center.dec_string()} 2000.00 "
            f"rotdest={config.pointing.position_angle:.2f} rotmode=PA")


def write_star_list(config: Configuration, path: Union[str, Path]) -> Path:
    return _write_lines([format_star_list_line(config)], path)


# ---------------------------------------------------------------------------
# CSU scripts
# ---------------------------------------------------------------------------

def _script_lines(setup_name: str, slits: List[MechanicalSlit], config: Configuration,
                  set_targets_only: bool) -> List[str]:
    geometry = config.geometry
    lines = [f'modify -s mcsus setupname="{setup_name}"']
    for slit in sorted(slits, key=slit_number_key):
        lines.append(f"modify -s mcsus b{slit.right_bar_number:02d}targ= "
                     f"{slit.right_bar_position_mm(geometry):7.3f}")
        lines.append(f"modify -s mcsus b{slit.left_bar_number:02d}targ= "
                     f"{slit.left_bar_position_mm(geometry):7.3f}")
    if not set_targets_only:
        lines.append("modify -s mcsus setupinit=1")
    return lines


def format_science_script(config: Configuration, set_targets_only: bool = False) -> List[str]:
    """Bar commands for the science mask, one pair per mechanical slit."""
    return _script_lines(config.mask_name, config.mechanical_slits, config, set_targets_only)


def format_alignment_script(config: Configuration, set_targets_only: bool = False) -> List[str]:
    """Bar commands for the alignment mask.

    Alignment boxes replace the mechanical slits with the same number.
    """
    slits = list(config.mechanical_slits)
    for align in config.align_slits:
        slits[config.mech_slit_index(align.slit_number)] = align
    return _script_lines(f"{config.mask_name} (align)", slits, config, set_targets_only)


def write_science_script(config: Configuration, path: Union[str, Path],
                         set_targets_only: bool = False) -> Path:
    return _write_lines(format_science_script(config, set_targets_only), path)


def write_alignment_script(config: Configuration, path: Union[str, Path],
                           set_targets_only: bool = False) -> Path:
    return _write_lines(format_alignment_script(config, set_targets_only), path)


# ---------------------------------------------------------------------------
# DS9 regions
# ---------------------------------------------------------------------------

def format_ds9_regions(config: Configuration) -> List[str]:
    """DS9 fk5 regions: field outline, slits, alignment boxes and targets."""
    geometry = config.geometry
    projection = config.projection
    angle = config.pointing.position_angle
    center = config.pointing.center

    lines = [
        "# Region file format: DS9 version 4.1",
        f"# Mask: {config.mask_name}",
        'global color=green dashlist=8 3 width=1 font="helvetica 10 normal roman" '
        'select=1 highlite=1 dash=0 fixed=0 edit=1 move=1 delete=1 include=1 source=1',
        "fk5",
        f'box({center.ra_degrees:.6f},{center.dec_degrees:.6f},{geometry.width:.3f}",'
        f'{geometry.height:.3f}",{angle:.3f}) # color=white text={{CSU}}',
    ]

    slit_angle = angle + geometry.tilt_degrees
    for slit in config.science_slits:
        ra_dec = slit.ra_dec
        lines.append(
            f'box({ra_dec.ra_degrees:.6f},{ra_dec.dec_degrees:.6f},{slit.slit_width:.3f}",'
            f'{slit.slit_length:.3f}",{slit_angle:.3f}) # text={{{slit.slit_number}}}'
        )

    for slit in config.align_slits:
        row = geometry.n_rows - slit.slit_number
        y = slit_position(row, 1, (0.0, 0.0), geometry)[1]
        ra_dec = projection.csu_to_sky((slit.center_position, y))
        lines.append(
            f'box({ra_dec.ra_degrees:.6f},{ra_dec.dec_degrees:.6f},{slit.slit_width:.3f}",'
            f'{geometry.single_slit_height:.3f}",{slit_angle:.3f}) # color=magenta'
        )

    for target in config.all_targets():
        color = "magenta" if target.is_alignment_candidate else "cyan"
        lines.append(
            f'circle({target.ra_dec.ra_degrees:.6f},{target.ra_dec.dec_degrees:.6f},0.5") '
            f'# color={color} text={{{target.name}}}'
        )
    return lines


def write_ds9_regions(config: Configuration, path: Union[str, Path]) -> Path:
    return _write_lines(format_ds9_regions(config), path)

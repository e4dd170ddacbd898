"""Writer for MSC slit configuration files (XML).

Layout::

    <slitConfiguration mscVersion="...">
      <maskDescription maskName=... totalPriority=... centerRaH=... maskPA=.../>
      <mechanicalSlitConfig>
        <mechanicalSlit slitNumber=... leftBarPositionMM=... target=.../>
      </mechanicalSlitConfig>
      <scienceSlitConfig>
        <scienceSlit slitNumber=... slitRaH=... target=... targetRaH=.../>
      </scienceSlitConfig>
      <alignment>
        <alignSlit mechSlitNumber=... target=.../>
      </alignment>
      <mascgenArguments maskName=... slitWidth=.../>
    </slitConfiguration>

Every field is an attribute. Positions and widths keep 3 decimals;
priorities, lengths, magnitudes, distances, epochs, the position angle and
sexagesimal seconds keep 2.
"""

import logging
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Dict, Union
from xml.dom import minidom

from csumask.engine.configuration import Configuration
from csumask.model.codecs import CODECS
from csumask.model.slits import MechanicalSlit
from csumask.model.targets import RaDec, Target
from csumask.utils.constants import MSC_VERSION

logger = logging.getLogger(__name__)

ROOT_ELEMENT = "slitConfiguration"
MASK_DESCRIPTION = "maskDescription"
MECHANICAL_SLIT_CONFIG = "mechanicalSlitConfig"
MECHANICAL_SLIT = "mechanicalSlit"
SCIENCE_SLIT_CONFIG = "scienceSlitConfig"
SCIENCE_SLIT = "scienceSlit"
ALIGNMENT = "alignment"
ALIGN_SLIT = "alignSlit"
MASCGEN_ARGUMENTS = "mascgenArguments"


def _f3(value: float) -> str:
    return f"{value:.3f}"


def _f2(value: float) -> str:
    return f"{value:.2f}"


def _ra_dec_attributes(ra_dec: RaDec, prefix: str) -> Dict[str, str]:
    ra_h, ra_m, ra_s = CODECS['ra'].encode_parts((ra_dec.ra_hour, ra_dec.ra_min, ra_dec.ra_sec))
    dec_d, dec_m, dec_s = CODECS['dec'].encode_parts(
        (ra_dec.dec_deg, ra_dec.dec_min, ra_dec.dec_sec))
    return {
        f"{prefix}RaH": ra_h, f"{prefix}RaM": ra_m, f"{prefix}RaS": ra_s,
        f"{prefix}DecD": dec_d, f"{prefix}DecM": dec_m, f"{prefix}DecS": dec_s,
    }


def _target_attributes(target: Target, center_distance: float) -> Dict[str, str]:
    attrs = {
        "target": target.name,
        "targetPriority": _f2(target.priority),
        "targetMag": _f2(target.magnitude),
        "targetCenterDistance": _f2(center_distance),
    }
    attrs.update(_ra_dec_attributes(target.ra_dec, "target"))
    attrs["targetEpoch"] = _f2(target.epoch)
    attrs["targetEquinox"] = _f2(target.equinox)
    return attrs


def _bar_attributes(slit: MechanicalSlit, config: Configuration) -> Dict[str, str]:
    return {
        "leftBarNumber": str(slit.left_bar_number),
        "rightBarNumber": str(slit.right_bar_number),
        "leftBarPositionMM": _f3(slit.left_bar_position_mm(config.geometry)),
        "rightBarPositionMM": _f3(slit.right_bar_position_mm(config.geometry)),
        "centerPositionArcsec": _f3(slit.center_position),
        "slitWidthArcsec": _f3(slit.slit_width),
    }


def configuration_to_element(config: Configuration) -> ET.Element:
    """Build the XML tree of a configuration."""
    root = ET.Element(ROOT_ELEMENT, mscVersion=MSC_VERSION)

    description = {
        "maskName": config.mask_name,
        "totalPriority": _f2(config.total_priority),
    }
    description.update(_ra_dec_attributes(config.pointing.center, "center"))
    description["maskPA"] = _f2(config.pointing.position_angle)
    ET.SubElement(root, MASK_DESCRIPTION, description)

    mechanical = ET.SubElement(root, MECHANICAL_SLIT_CONFIG)
    for slit in config.mechanical_slits:
        attrs = {"slitNumber": str(slit.slit_number)}
        attrs.update(_bar_attributes(slit, config))
        attrs["target"] = slit.name
        ET.SubElement(mechanical, MECHANICAL_SLIT, attrs)

    science = ET.SubElement(root, SCIENCE_SLIT_CONFIG)
    for slit in config.science_slits:
        attrs = {"slitNumber": str(slit.slit_number)}
        attrs.update(_ra_dec_attributes(slit.ra_dec, "slit"))
        attrs["slitWidthArcsec"] = _f3(slit.slit_width)
        attrs["slitLengthArcsec"] = _f2(slit.slit_length)
        attrs.update(_target_attributes(slit.target, slit.center_distance))
        ET.SubElement(science, SCIENCE_SLIT, attrs)

    alignment = ET.SubElement(root, ALIGNMENT)
    for slit in config.align_slits:
        attrs = {"mechSlitNumber": str(slit.slit_number)}
        attrs.update(_bar_attributes(slit, config))
        if slit.target is not None:
            attrs.update(_target_attributes(slit.target, slit.center_distance))
        ET.SubElement(alignment, ALIGN_SLIT, attrs)

    ET.SubElement(root, MASCGEN_ARGUMENTS, config.parameters.to_attributes())
    return root


def configuration_to_string(config: Configuration) -> str:
    """Pretty-printed XML document."""
    rough_string = ET.tostring(configuration_to_element(config), encoding='unicode')
    reparsed = minidom.parseString(rough_string)
    return reparsed.toprettyxml(indent="  ")


def write_msc_file(config: Configuration, path: Union[str, Path]) -> Path:
    """Write a configuration and mark it SAVED.

    Parameters
    ----------
    config : Configuration
        Configuration to write.
    path : str or Path
        Destination file.

    Returns
    -------
    Path
        The written file.
    """
    path = Path(path)
    text = configuration_to_string(config)
    with open(path, 'w') as f:
        f.write(text)

    config.msc_version = MSC_VERSION
    config.original_filename = str(path)
    config.mark_saved()
    logger.info(f"Wrote slit configuration {config.mask_name} to {path}")
    return path

"""Parser for MSC slit configuration files (XML).

The whole document is parsed into fresh records before a
:class:`~csumask.engine.configuration.Configuration` is assembled, so a
malformed file raises :class:`~csumask.errors.FormatError` without
touching any existing configuration. Recoverable oddities (a mechanical
slit without a target name) are collected as warnings.
"""

import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple, Union

from csumask.engine.configuration import Configuration
from csumask.errors import FormatError
from csumask.io.msc_writer import (
    ALIGN_SLIT,
    ALIGNMENT,
    MASCGEN_ARGUMENTS,
    MASK_DESCRIPTION,
    MECHANICAL_SLIT,
    MECHANICAL_SLIT_CONFIG,
    ROOT_ELEMENT,
    SCIENCE_SLIT,
    SCIENCE_SLIT_CONFIG,
)
from csumask.model.parameters import MaskParameters
from csumask.model.slits import MechanicalSlit, ScienceSlit
from csumask.model.targets import PointingSolution, RaDec, Target
from csumask.utils.constants import DEFAULT_GEOMETRY, CsuGeometry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ParseResult:
    """Outcome of a successful parse.

    Attributes
    ----------
    configuration : Configuration
        The loaded configuration, status SAVED.
    warnings : tuple of str
        Non-fatal problems found while parsing.
    """
    configuration: Configuration
    warnings: Tuple[str, ...] = ()


class _ElementReader:
    """Typed attribute access that raises FormatError with context."""

    def __init__(self, source: Optional[Union[str, Path]]):
        self.source = source

    def text(self, element: ET.Element, name: str) -> str:
        value = element.get(name)
        if value is None:
            raise FormatError(f"<{element.tag}> is missing attribute '{name}'",
                              self.source, element.tag)
        return value

    def number(self, element: ET.Element, name: str) -> float:
        raw = self.text(element, name)
        try:
            return float(raw)
        except ValueError as exc:
            raise FormatError(f"<{element.tag}> attribute '{name}' is not a number: {raw!r}",
                              self.source, element.tag) from exc

    def integer(self, element: ET.Element, name: str) -> int:
        raw = self.text(element, name)
        try:
            return int(raw)
        except ValueError as exc:
            raise FormatError(f"<{element.tag}> attribute '{name}' is not an integer: {raw!r}",
                              self.source, element.tag) from exc

    def ra_dec(self, element: ET.Element, prefix: str) -> RaDec:
        return RaDec(
            self.number(element, f"{prefix}RaH"),
            self.number(element, f"{prefix}RaM"),
            self.number(element, f"{prefix}RaS"),
            self.number(element, f"{prefix}DecD"),
            self.number(element, f"{prefix}DecM"),
            self.number(element, f"{prefix}DecS"),
        )

    def target(self, element: ET.Element) -> Target:
        return Target(
            name=self.text(element, "target"),
            priority=self.number(element, "targetPriority"),
            magnitude=self.number(element, "targetMag"),
            ra_dec=self.ra_dec(element, "target"),
            epoch=self.number(element, "targetEpoch"),
            equinox=self.number(element, "targetEquinox"),
        )


def _rows_from_length(length: float, geometry: CsuGeometry) -> int:
    return max(1, round((length + geometry.overlap) / geometry.row_height))


def parse_msc_element(
    root: ET.Element,
    source: Optional[Union[str, Path]] = None,
    geometry: CsuGeometry = DEFAULT_GEOMETRY,
) -> ParseResult:
    """Build a configuration from a parsed XML tree.

    Raises
    ------
    FormatError
        If the root, a required section or a required attribute is missing,
        an unknown section is present, or a value does not parse.
    """
    reader = _ElementReader(source)
    if root.tag != ROOT_ELEMENT:
        raise FormatError(f"Root element is <{root.tag}>, expected <{ROOT_ELEMENT}>",
                          source, root.tag)

    warnings: List[str] = []
    description = None
    mechanical: Optional[List[MechanicalSlit]] = None
    science: Optional[List[ScienceSlit]] = None
    align: List[MechanicalSlit] = []
    parameters: Optional[MaskParameters] = None

    for child in root:
        if child.tag == MASK_DESCRIPTION:
            description = (
                reader.text(child, "maskName"),
                reader.number(child, "totalPriority"),
                reader.ra_dec(child, "center"),
                reader.number(child, "maskPA"),
            )
        elif child.tag == MECHANICAL_SLIT_CONFIG:
            mechanical = []
            for element in child.iter(MECHANICAL_SLIT):
                number = reader.integer(element, "slitNumber")
                name = element.get("target")
                if name is None:
                    warnings.append(f"Mechanical slit {number} has no target attribute")
                    name = ""
                mechanical.append(MechanicalSlit(
                    slit_number=number,
                    center_position=reader.number(element, "centerPositionArcsec"),
                    slit_width=reader.number(element, "slitWidthArcsec"),
                    target_name=name,
                ))
        elif child.tag == SCIENCE_SLIT_CONFIG:
            science = []
            for element in child.iter(SCIENCE_SLIT):
                length = reader.number(element, "slitLengthArcsec")
                science.append(ScienceSlit(
                    slit_number=reader.integer(element, "slitNumber"),
                    target=reader.target(element),
                    slit_rows=_rows_from_length(length, geometry),
                    slit_width=reader.number(element, "slitWidthArcsec"),
                    slit_length=length,
                    ra_dec=reader.ra_dec(element, "slit"),
                    center_distance=reader.number(element, "targetCenterDistance"),
                ))
        elif child.tag == ALIGNMENT:
            for element in child.iter(ALIGN_SLIT):
                has_target = element.get("target") is not None
                align.append(MechanicalSlit(
                    slit_number=reader.integer(element, "mechSlitNumber"),
                    center_position=reader.number(element, "centerPositionArcsec"),
                    slit_width=reader.number(element, "slitWidthArcsec"),
                    slit_rows=1,
                    target=reader.target(element) if has_target else None,
                    center_distance=(reader.number(element, "targetCenterDistance")
                                     if has_target else 0.0),
                ))
        elif child.tag == MASCGEN_ARGUMENTS:
            try:
                parameters = MaskParameters.from_attributes(dict(child.attrib))
            except ValueError as exc:
                raise FormatError(f"Bad <{MASCGEN_ARGUMENTS}>: {exc}", source,
                                  MASCGEN_ARGUMENTS) from exc
        else:
            raise FormatError(f"Unknown element <{child.tag}>", source, child.tag)

    for section, value in ((MASK_DESCRIPTION, description),
                           (MECHANICAL_SLIT_CONFIG, mechanical),
                           (SCIENCE_SLIT_CONFIG, science)):
        if value is None:
            raise FormatError(f"Missing required element <{section}>", source, section)

    mask_name, total_priority, center, position_angle = description
    if parameters is None:
        parameters = MaskParameters(mask_name=mask_name)

    config = Configuration(mask_name, geometry=geometry)
    config.msc_version = root.get("mscVersion", "unknown")
    config.original_filename = str(source) if source is not None else "none"
    config.parameters = parameters
    config.pointing = PointingSolution(
        center=center, position_angle=position_angle, total_priority=total_priority)
    config.mechanical_slits = sorted(mechanical, key=lambda slit: slit.slit_number)
    config.science_slits = sorted(science, key=lambda slit: slit.slit_number)
    config.align_slits = sorted(align, key=lambda slit: slit.slit_number)
    config.refresh_after_load()

    for message in warnings:
        logger.warning(message)
    return ParseResult(config, tuple(warnings))


def parse_msc_string(text: str, geometry: CsuGeometry = DEFAULT_GEOMETRY) -> ParseResult:
    """Parse an MSC document held in memory."""
    try:
        root = ET.fromstring(text)
    except ET.ParseError as exc:
        raise FormatError(f"Not well-formed XML: {exc}") from exc
    return parse_msc_element(root, geometry=geometry)


def read_msc_file(path: Union[str, Path],
                  geometry: CsuGeometry = DEFAULT_GEOMETRY) -> ParseResult:
    """Read an MSC file.

    Parameters
    ----------
    path : str or Path
        File to read.

    Returns
    -------
    ParseResult
        The configuration (status SAVED) and any warnings.

    Raises
    ------
    FormatError
        If the file is not a valid slit configuration.
    OSError
        If the file cannot be read.
    """
    path = Path(path)
    try:
        tree = ET.parse(path)
    except ET.ParseError as exc:
        raise FormatError(f"Not well-formed XML: {exc}", path) from exc
    result = parse_msc_element(tree.getroot(), path, geometry)
    logger.info(f"Read slit configuration {result.configuration.mask_name} from {path}")
    return result
